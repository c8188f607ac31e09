"""Command line entry point of the sound field client."""

from __future__ import annotations

import sys

from .client import DEFAULT_CONFIG_PATH, run_client
from .config import ConfigError, load_config
from .player import WaveFileSink

USAGE = (
    "SuperWavAppClient <IP Direction> <PortNumber> "
    "-config <PathOfConfig> -output <PathOfWav>"
)
WRONG_USE = "Wrong use of the program! For help use -h option."
EXIT_USAGE = 255
DEFAULT_OUTPUT = "superwav.wav"
_OPTIONS = ("-config", "-output")


def _options(rest: list[str]) -> dict[str, str]:
    found: dict[str, str] = {}
    items = iter(rest)
    for flag in items:
        value = next(items, None)
        if value is None:
            break
        if flag in _OPTIONS:
            found[flag] = value
    return found


def main(argv=None) -> int:
    """Run the client; returns the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(WRONG_USE)
        return EXIT_USAGE
    if len(args) == 1 and args[0] == "-h":
        print(f"To use the program:\n{USAGE}")
        return 0
    if len(args) < 2:
        print(f"{WRONG_USE}\n{USAGE}")
        return EXIT_USAGE

    address, port_text = args[0], args[1]
    try:
        port = int(port_text)
    except ValueError:
        print(f"{WRONG_USE}\n{USAGE}")
        return EXIT_USAGE

    options = _options(args[2:])
    config_path = options.get("-config") or DEFAULT_CONFIG_PATH
    output = options.get("-output", DEFAULT_OUTPUT)

    print(
        "\n***********************\n"
        f"IP Direction: {address}\n"
        f"Port Number: {port}\n"
        "***********************"
    )

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        print(f"{config_path}: {exc}", file=sys.stderr)
        return 1

    try:
        sink = WaveFileSink(output, config.card.frame_rate, config.speakers.channels_number)
        blocks = run_client(address, port, config_path, sink)
    except (OSError, OverflowError, ConfigError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(f"Played {blocks} blocks into {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())