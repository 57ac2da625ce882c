"""Command that runs a ticket server on a TCP port until interrupted."""

from __future__ import annotations

import os
import signal
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from .client_app import DEFAULT_PORT, parse_port
from .host import TicketServerHost
from .seed_data import DATA_DIR, load_seed_data
from .ticket_server import TicketServer

RESERVATION_TIMEOUT_SECONDS = 60
_POLL_INTERVAL_SECONDS = 0.2


def default_data_file() -> Path:
    """Seed data file used when none is given."""
    return Path(os.path.normpath(DATA_DIR / "server_seed.json"))


def resolve_data_file_path(value: Union[str, Path]) -> Path:
    """Resolve a --data value; relative paths are taken inside the data directory."""
    text = str(value)
    if not text:
        return default_data_file()
    path = Path(text)
    if path.is_absolute():
        return Path(os.path.normpath(path))
    return Path(os.path.normpath(DATA_DIR / path))


@dataclass
class _ServerOptions:
    port: int = DEFAULT_PORT
    data_file: Path = field(default_factory=default_data_file)
    show_help: bool = False


def parse_server_args(argv: Sequence[str]) -> _ServerOptions:
    """Parse command-line arguments (without the program name)."""
    options = _ServerOptions()
    args = iter(argv)
    for argument in args:
        if argument in ("--help", "-h"):
            options.show_help = True
            return options
        if argument == "--port":
            value = next(args, None)
            if value is None:
                raise ValueError("Missing value after --port")
            port = parse_port(value)
            if port is None:
                raise ValueError("Invalid port value")
            options.port = port
            continue
        if argument == "--data":
            value = next(args, None)
            if value is None:
                raise ValueError("Missing value after --data")
            options.data_file = resolve_data_file_path(value)
            continue
        raise ValueError(f"Unknown argument: {argument}")
    return options


def _print_help() -> None:
    sys.stdout.write(
        "Usage: ticketbooth-server [--port PORT] [--data FILE_OR_PATH]\n"
        f"Default data file: {default_data_file()}\n"
        f"Relative values passed to --data are resolved inside: {DATA_DIR}\n"
    )


def _serve(options: _ServerOptions) -> None:
    seed = load_seed_data(options.data_file)
    stop_requested = threading.Event()

    previous_handler = None
    in_main_thread = threading.current_thread() is threading.main_thread()
    if in_main_thread:
        previous_handler = signal.signal(
            signal.SIGINT, lambda signum, frame: stop_requested.set()
        )

    try:
        server = TicketServer(seed.tickets, seed.cashbox, RESERVATION_TIMEOUT_SECONDS)
        with TicketServerHost(server, options.port) as host:
            sys.stdout.write(
                f"Ticket server is listening on 127.0.0.1:{host.port}\n"
                f"Data file: {options.data_file}\n"
                "Start clients in separate terminals, for example:\n"
                f"  ticketbooth --host 127.0.0.1 --port {host.port}\n"
                "Press Ctrl+C to stop the server.\n"
            )
            sys.stdout.flush()
            while not stop_requested.wait(_POLL_INTERVAL_SECONDS):
                pass
            sys.stdout.write("Stopping server...\n")
            sys.stdout.flush()
    finally:
        if in_main_thread and previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the ticket server; return the process exit code."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        options = parse_server_args(argv)
        if options.show_help:
            _print_help()
            return 0
        _serve(options)
        return 0
    except Exception as error:
        sys.stderr.write(f"Server error: {error}\n")
        return 1