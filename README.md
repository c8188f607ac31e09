# superwav

A client for wave field synthesis (WFS). It connects to a control server over
TCP, receives its ID, a shared start time and the positions of virtual sound
sources, and renders a set of WAV files across a speaker array so that every
sound appears to come from its virtual position. Each speaker channel gets its
own delay and gain, and a fixed 64-tap FIR filter, applied by overlap-add
convolution, shapes the mixed output of every channel. The result is written
to a multichannel 32-bit WAV file.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Command line

```
superwav-client <IP address> <port> [-config <config file>] [-output <wav file>]
superwav-client -h
```

- `-config` defaults to `../config/default.cfg`.
- `-output` defaults to `superwav.wav`.

The configuration is read before connecting. The output file has one channel
per configured channel (`chanels_number`) and the card's `frame_Rate` as its
sample rate. The command exits with status 0 on success, 1 when the
configuration, the connection or the output fails, and 255 on wrong usage.

### Messages from the server

The server sends comma-separated `key:value` messages of up to 256 bytes:

- `Action:identification,ID:<n>` is expected first and sets the client ID.
- `Action:start,StartTime:<ms>,ClientPosX:..,ClientPosY:..,Song:<n>,SongPosX:..,SongPosY:..`
  gives the start time in milliseconds since the epoch and places sound `<n>`
  (every sound when `Song:-1`) at the given position. Playback begins once
  that time is reached.
- `Action:song,Song:<n>,SongPosX:..,SongPosY:..` moves a sound while playback
  runs. A sound number out of range is logged as an error and ignored.
- `Action:client,...` is logged only; moving the listener is not supported.
- `Action:exit` stops waiting, or stops playback after the current block.

Before `start`, every sound sits at the origin. If the server closes the
connection, the client stops listening and lets playback run to the end.

## Configuration

The configuration file uses the libconfig syntax: a top-level setting
`time_to_start` (seconds) and a `client` group with:

- `card`: `pcm_name`, `frame_Rate`, `pcm_buffer_size` and `pcm_period_size`.
  Blocks hold `pcm_buffer_size / 4` samples, which must be at least 64, the
  filter length.
- `sound`: `sound_folder`, `word_length`, `sounds_number` and a `sounds_list`
  of entries with a `file_name`. Each path is `sound_folder + file_name` and
  must be shorter than `word_length`.
- `speakers`: `speakers_number`, `chanels_number` and a `speakers_position`
  list of exactly `speakers_number` entries with `posX`, `posY` and `angle`
  (degrees). `chanels_number` must not exceed `speakers_number`.

Sound files are read as 16-bit PCM after a fixed 44-byte header.

`superwav.config.load_config(path)` returns a `ClientConfig`; errors raise
`ConfigError`. `parse_libconfig(text)` parses the text into nested dicts and
lists.

## Library use

- `superwav.convolution`: `convolve`, `convolve8`, `next_pow2` and
  `OverlapAdd`, a block-wise filter with `process`, `process_int` and `reset`.
- `superwav.fft`: a radix-2 FFT (`fft`, `ifft`, `fft_general` with `Sign`) and
  `convolve_fft`, a circular convolution of two equal power-of-two lengths.
- `superwav.parser`: `parse_message` turns server messages into `Message`
  objects; `split_tokens` splits on a set of delimiters.
- `superwav.wavio`: `read_pcm`, `open_wav_convert32` (16-bit samples to
  32-bit values), `new_wav_16` and `new_wav_2ch`.
- `superwav.wfs`: `wave_field_synthesis` computes per-speaker activity, gain
  and delay (`WFS`) for a source position; `load_sounds` builds a `SoundBank`;
  `generate_song_wfs`, `add_to_buffer` and `max_delay` render and mix blocks.
- `superwav.player`: `Player` holds the playback state and moves sounds with
  `set_song_position`; `play` and `play_when_ready` render into a sink.
  `WaveFileSink` writes a 32-bit multichannel WAV file; `MemorySink` keeps the
  blocks in memory.
- `superwav.client`: `connect`, `ClientConnection`, `build_player`,
  `apply_song_message` and `run_client`, which handles a whole session.

## What it does not do

- It does not play to a sound card. `pcm_name` and `pcm_period_size` are read
  but unused; the output always goes to a sink such as a WAV file.
- It contains no control server; it only connects to one.
- The listener position sent by the server is stored but has no effect on the
  rendering.

## Running the tests

```
pytest
```