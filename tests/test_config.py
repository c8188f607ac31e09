import pytest

from superwav.config import (
    ClientSpeakers,
    ConfigError,
    card_from_config,
    load_config,
    parse_libconfig,
    sound_from_config,
    speakers_from_config,
    time_to_start_from_config,
)

SAMPLE = """
# client configuration
time_to_start = 5;
client = {
  card = {
    pcm_name = "default";
    frame_Rate = 44100;
    pcm_buffer_size = 2048;
    pcm_period_size = 512;
  };
  sound = {
    sound_folder = "sounds/";
    word_length = 50;
    sounds_number = 2;
    sounds_list = ( { file_name = "a.wav"; }, { file_name = "b.wav"; } );
  };
  speakers = {
    speakers_number = 2;
    chanels_number = 2;
    speakers_position = (
      { posX = 2.0; posY = 0.0; angle = 0.0; },
      { posX = 4.0; posY = 0.0; angle = 180.0; }
    );
  };
};
"""


def test_parse_scalars_and_comments():
    cfg = parse_libconfig(
        'a = 7; // comment\nb : -2.5;\n/* block\ncomment */ c = "x" "y";\nd = TRUE; e = false;'
    )
    assert cfg == {"a": 7, "b": -2.5, "c": "xy", "d": True, "e": False}


def test_parse_hex_and_long_integers():
    cfg = parse_libconfig("h = 0x10; l = 42L;")
    assert cfg["h"] == 16
    assert cfg["l"] == 42


def test_parse_string_escapes():
    cfg = parse_libconfig(r's = "a\"b\\c\n";')
    assert cfg["s"] == 'a"b\\c\n'


def test_parse_lists_arrays_groups():
    cfg = parse_libconfig("g = { x = [1, 2, 3]; y = ( \"s\", { z = 1.5; }, [] ); };")
    assert cfg["g"]["x"] == [1, 2, 3]
    assert cfg["g"]["y"] == ["s", {"z": 1.5}, []]


def test_parse_error_reports_line():
    with pytest.raises(ConfigError) as info:
        parse_libconfig("a = 1;\nb = }")
    assert info.value.line == 2


def test_parse_duplicate_setting():
    with pytest.raises(ConfigError):
        parse_libconfig("a = 1; a = 2;")


def test_parse_mixed_array():
    with pytest.raises(ConfigError):
        parse_libconfig("a = [1, 2.0];")


def test_parse_unterminated_group():
    with pytest.raises(ConfigError):
        parse_libconfig("a = { b = 1;")


def test_card():
    card = card_from_config(parse_libconfig(SAMPLE))
    assert card.pcm_name == "default"
    assert card.frame_rate == 44100
    assert card.pcm_buffer_size == 2048
    assert card.pcm_period_size == 512
    assert card.buffer == 512


def test_card_missing_field():
    cfg = parse_libconfig('client = { card = { pcm_name = "default"; }; };')
    with pytest.raises(ConfigError, match="Missing config Client Card"):
        card_from_config(cfg)


def test_card_missing_client():
    with pytest.raises(ConfigError):
        card_from_config(parse_libconfig("time_to_start = 1;"))


def test_sound_paths_join_folder():
    sound = sound_from_config(parse_libconfig(SAMPLE))
    assert sound.sounds_number == 2
    assert sound.word_length == 50
    assert sound.sounds_list == ["sounds/a.wav", "sounds/b.wav"]


def test_sound_entry_without_file_name_left_empty():
    cfg = parse_libconfig(
        'client = { sound = { sound_folder = "f/"; word_length = 20; sounds_number = 2;'
        ' sounds_list = ( { other = 1; }, { file_name = "b.wav"; } ); }; };'
    )
    assert sound_from_config(cfg).sounds_list == ["", "f/b.wav"]


def test_sound_path_too_long():
    cfg = parse_libconfig(
        'client = { sound = { sound_folder = "folder/"; word_length = 5; sounds_number = 1;'
        ' sounds_list = ( { file_name = "a.wav"; } ); }; };'
    )
    with pytest.raises(ConfigError):
        sound_from_config(cfg)


def test_sound_more_entries_than_number():
    cfg = parse_libconfig(
        'client = { sound = { sound_folder = ""; word_length = 20; sounds_number = 1;'
        ' sounds_list = ( { file_name = "a"; }, { file_name = "b"; } ); }; };'
    )
    with pytest.raises(ConfigError):
        sound_from_config(cfg)


def test_speakers():
    speakers = speakers_from_config(parse_libconfig(SAMPLE))
    assert speakers.speakers_number == 2
    assert speakers.channels_number == 2
    assert speakers.positions == [(2.0, 0.0), (4.0, 0.0)]
    assert speakers.angles == [0.0, 180.0]


def test_speakers_count_mismatch():
    cfg = parse_libconfig(
        "client = { speakers = { speakers_number = 2; chanels_number = 2;"
        " speakers_position = ( { posX = 1.0; posY = 1.0; angle = 0.0; } ); }; };"
    )
    with pytest.raises(ConfigError):
        speakers_from_config(cfg)


def test_speakers_dataclass_validates_lengths():
    with pytest.raises(ValueError):
        ClientSpeakers(2, 2, [(0.0, 0.0)], [0.0])


def test_time_to_start():
    assert time_to_start_from_config(parse_libconfig(SAMPLE)) == 5
    with pytest.raises(ConfigError, match="time_to_start"):
        time_to_start_from_config(parse_libconfig("other = 1;"))


def test_load_config(tmp_path):
    path = tmp_path / "default.cfg"
    path.write_text(SAMPLE, encoding="utf-8")
    config = load_config(path)
    assert config.time_to_start == 5
    assert config.card.pcm_name == "default"
    assert config.sound.sounds_list == ["sounds/a.wav", "sounds/b.wav"]
    assert config.speakers.angles == [0.0, 180.0]


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.cfg")