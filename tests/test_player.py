import struct
import wave

import pytest

from superwav.config import ClientCard, ClientSound, ClientSpeakers
from superwav.player import (
    INT32_MAX,
    MemorySink,
    Player,
    WaveFileSink,
    play,
    play_when_ready,
)
from superwav.wfs import SoundBank, wave_field_synthesis

SOURCE = (0.5, -1.0)


def make_player(samples=None, angles=(90.0, -90.0), buffer_size=256, sounds=1):
    card = ClientCard(
        pcm_name="default", frame_rate=44100, pcm_buffer_size=buffer_size, pcm_period_size=64
    )
    sound = ClientSound("sounds/", 50, sounds, [f"sounds/{i}.wav" for i in range(sounds)])
    speakers = ClientSpeakers(2, 2, [(0.0, 0.0), (1.0, 0.0)], list(angles))
    if samples is None:
        samples = [1000 << 16] * 1024
    bank = SoundBank([list(samples) for _ in range(sounds)])
    wfs = [wave_field_synthesis(speakers, *SOURCE) for _ in range(sounds)]
    return Player(
        card=card,
        sound=sound,
        speakers=speakers,
        bank=bank,
        wfs_vector=wfs,
        song_positions=[SOURCE] * sounds,
    )


def test_total_blocks_for_short_delay():
    # delay is well under 512 samples, so 1024 samples make two blocks
    assert make_player().total_blocks() == 2


def test_total_blocks_grows_with_sound_length():
    short = make_player(samples=[1] * 1024)
    long = make_player(samples=[1] * 2048)
    assert long.total_blocks() - short.total_blocks() == 2


def test_total_blocks_without_sounds():
    player = make_player(sounds=0)
    with pytest.raises(ValueError):
        player.total_blocks()


def test_play_writes_every_block():
    player = make_player()
    sink = MemorySink()
    written = play(player, sink)
    assert written == player.total_blocks()
    assert len(sink.blocks) == written
    assert all(len(block) == 2 for block in sink.blocks)
    assert all(len(row) == player.card.buffer for block in sink.blocks for row in block)
    assert player.finished is True
    assert sink.closed is True


def test_silent_sounds_give_silent_output():
    player = make_player(samples=[0] * 1024)
    sink = MemorySink()
    play(player, sink)
    assert all(value == 0 for row in sink.samples for value in row)


def test_finish_flag_stops_after_one_block():
    player = make_player()
    player.finished = True
    sink = MemorySink()
    assert play(player, sink) == 1
    assert len(sink.blocks) == 1


def test_play_rejects_block_shorter_than_filter():
    player = make_player(buffer_size=128)
    with pytest.raises(ValueError):
        play(player, MemorySink())


def test_play_when_ready_in_the_past_plays_at_once():
    player = make_player()
    player.time_to_start = 0
    sink = MemorySink()
    assert play_when_ready(player, sink) == player.total_blocks()
    assert sink.closed is True


def test_set_song_position_single():
    player = make_player(sounds=2)
    player.set_song_position(1, 3.0, -2.0)
    assert player.song_positions == [SOURCE, (3.0, -2.0)]
    assert player.wfs_vector[1] == wave_field_synthesis(player.speakers, 3.0, -2.0)
    assert player.wfs_vector[0] == wave_field_synthesis(player.speakers, *SOURCE)


def test_set_song_position_all():
    player = make_player(sounds=3)
    player.set_song_position(-1, 2.0, -4.0)
    assert player.song_positions == [(2.0, -4.0)] * 3
    expected = wave_field_synthesis(player.speakers, 2.0, -4.0)
    assert all(values == expected for values in player.wfs_vector)


def test_set_song_position_out_of_range():
    player = make_player(sounds=2)
    with pytest.raises(IndexError):
        player.set_song_position(2, 0.0, 0.0)


def test_memory_sink_rejects_write_after_close():
    sink = MemorySink()
    sink.close()
    with pytest.raises(ValueError):
        sink.write([[1, 2]])


def test_memory_sink_rejects_changing_channel_count():
    sink = MemorySink()
    sink.write([[1], [2]])
    with pytest.raises(ValueError):
        sink.write([[1]])


def test_wave_file_sink_round_trip(tmp_path):
    path = tmp_path / "out.wav"
    sink = WaveFileSink(path, 44100, 2)
    sink.write([[1, 2, 3], [-1, -2, -3]])
    sink.write([[2**40], [-(2**40)]])
    sink.close()
    with wave.open(str(path), "rb") as handle:
        assert handle.getnchannels() == 2
        assert handle.getsampwidth() == 4
        assert handle.getframerate() == 44100
        frames = handle.readframes(handle.getnframes())
    values = list(struct.unpack(f"<{len(frames) // 4}i", frames))
    assert values == [1, -1, 2, -2, 3, -3, INT32_MAX, -(2**31)]


def test_wave_file_sink_rejects_wrong_channel_count(tmp_path):
    with WaveFileSink(tmp_path / "out.wav", 8000, 2) as sink:
        with pytest.raises(ValueError):
            sink.write([[1, 2, 3]])


def test_play_into_wave_file(tmp_path):
    player = make_player()
    path = tmp_path / "play.wav"
    written = play(player, WaveFileSink(path, player.card.frame_rate, 2))
    with wave.open(str(path), "rb") as handle:
        assert handle.getnframes() == written * player.card.buffer
        assert handle.getnchannels() == 2