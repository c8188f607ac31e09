"""Control connection to the server and the client's main loop."""

from __future__ import annotations

import logging
import socket
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from .config import load_config
from .parser import Message, parse_message
from .player import Player, Sink, play_when_ready
from .wfs import load_sounds, wave_field_synthesis

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "../config/default.cfg"
BUFFER_SIZE = 256
_POLL_SECONDS = 0.1


def current_timestamp() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


@dataclass
class ClientConnection:
    """A TCP connection to the control server."""

    sock: socket.socket
    client_id: int = 0

    def receive_message(self) -> Message | None:
        """Read one message; None once the server has closed the connection."""
        data = self.sock.recv(BUFFER_SIZE)
        if not data:
            return None
        return parse_message(data)

    def close(self) -> None:
        """Close the socket."""
        self.sock.close()

    def __enter__(self) -> "ClientConnection":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def connect(address: str, port: int) -> ClientConnection:
    """Open a TCP connection to the server at *address*:*port*."""
    try:
        infos = socket.getaddrinfo(address, port, socket.AF_INET, socket.SOCK_STREAM)
    except socket.gaierror as exc:
        raise ConnectionError(f"no such host: {address}") from exc
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.connect(infos[0][4])
    except OSError:
        sock.close()
        raise
    return ClientConnection(sock)


def build_player(config_path) -> Player:
    """Read the configuration and the sounds, with every sound at the origin."""
    config = load_config(config_path)
    count = config.sound.sounds_number
    bank = load_sounds(config.sound)
    return Player(
        card=config.card,
        sound=config.sound,
        speakers=config.speakers,
        bank=bank,
        wfs_vector=[wave_field_synthesis(config.speakers, 0.0, 0.0) for _ in range(count)],
        song_positions=[(0.0, 0.0)] * count,
        time_to_start_seconds=config.time_to_start,
    )


def apply_song_message(player: Player, message: Message) -> None:
    """Move the sound named by *message* (all sounds for -1) to its position."""
    player.set_song_position(message.song, message.song_pos_x, message.song_pos_y)


def _apply_logged(player: Player, message: Message) -> None:
    try:
        apply_song_message(player, message)
    except IndexError as exc:
        log.error("Error, %s", exc)
    log.info(
        "Sound: %d, PosX: %f, PosY: %f",
        message.song,
        message.song_pos_x,
        message.song_pos_y,
    )


def _stop(player: Player) -> None:
    with player.lock:
        player.finished = True


def _wait_for_start(connection: ClientConnection) -> Message | None:
    message = connection.receive_message()
    if message is None:
        raise ConnectionError("server closed the connection before identification")
    if message.action == "identification":
        connection.client_id = message.identification
        log.info("My ID: %d", connection.client_id)

    while True:
        message = connection.receive_message()
        if message is None:
            raise ConnectionError("server closed the connection before start")
        if message.action == "exit":
            return None
        if message.action == "start":
            return message


def _listen(connection: ClientConnection, player: Player, future: Future) -> None:
    while not (player.finished or future.done()):
        try:
            message = connection.receive_message()
        except TimeoutError:
            continue
        if message is None:
            log.info("server closed the connection")
            return
        if message.action == "exit":
            log.info("See you soon!")
            _stop(player)
            return
        if message.action == "client":
            log.info(
                "Client => PosX: %f, PosY: %f (not available)",
                message.client_pos_x,
                message.client_pos_y,
            )
        elif message.action == "song":
            _apply_logged(player, message)


def _session(connection: ClientConnection, config_path, sink: Sink) -> int:
    player = build_player(config_path)
    start = _wait_for_start(connection)
    if start is None:
        return 0

    log.info(
        "Action:%s,StartTime:%d,ClientPosX:%f,ClientPosY:%f,Song:%d,SongPosX:%f,SongPosY:%f",
        start.action,
        start.start_time,
        start.client_pos_x,
        start.client_pos_y,
        start.song,
        start.song_pos_x,
        start.song_pos_y,
    )
    player.time_to_start = start.start_time
    player.client_pos = (start.client_pos_x, start.client_pos_y)
    _apply_logged(player, start)

    now = current_timestamp()
    log.info("Time offset: %d", player.time_to_start - now)
    log.info(
        "Delay (%d seconds program): %d",
        player.time_to_start_seconds,
        player.time_to_start - player.time_to_start_seconds * 1000 - now,
    )

    connection.sock.settimeout(_POLL_SECONDS)
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(play_when_ready, player, sink)
        try:
            _listen(connection, player, future)
        except BaseException:
            _stop(player)
            raise
        return future.result()


def run_client(address: str, port: int, config_path, sink: Sink) -> int:
    """Connect, wait for the start order, play into *sink*; return blocks played."""
    path = config_path or DEFAULT_CONFIG_PATH
    try:
        with connect(address, port) as connection:
            return _session(connection, path, sink)
    finally:
        sink.close()