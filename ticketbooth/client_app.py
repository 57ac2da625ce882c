"""Interactive console ticket machine that talks to a ticket server."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, TextIO

from .client import TicketMachineClient
from .coins import SUPPORTED_DENOMINATIONS, CoinInventory, is_supported_denomination
from .models import CustomerData, PurchaseFailure, PurchaseSuccess, ReservationResult

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5555
_MAX_PORT = 65535

_USAGE = "Usage: ticketbooth [--host HOST] [--port PORT]\n"
_COMMAND_HELP = (
    "Available commands:\n"
    "  help                 Show this help\n"
    "  list                 Show available tickets\n"
    "  reserve <type>       Reserve a ticket type\n"
    "  status               Show current reservation\n"
    "  buy                  Finalize the current reservation\n"
    "  cancel               Cancel the current reservation\n"
    "  quit                 Exit the client\n"
)
_LEADING_INTEGER = re.compile(r"\s*([+-]?)(\d+)")
_DENOMINATIONS_TEXT = ", ".join(str(value) for value in SUPPORTED_DENOMINATIONS)


def _leading_integer(value: str) -> Optional[int]:
    match = _LEADING_INTEGER.match(value)
    if match is None:
        return None
    number = int(match.group(2))
    return -number if match.group(1) == "-" else number


def parse_port(value: str) -> Optional[int]:
    """Parse a TCP port number; return None if it is not a valid port."""
    number = _leading_integer(value)
    if number is None or number < 0 or number > _MAX_PORT:
        return None
    return number


def format_money(amount: int) -> str:
    """Render an amount in grosz as zloty with two decimals."""
    sign = "-" if amount < 0 else ""
    whole, cents = divmod(abs(amount), 100)
    return f"{sign}{whole}.{cents:02d}"


@dataclass
class _ClientOptions:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    show_help: bool = False


def parse_client_args(argv: Sequence[str]) -> _ClientOptions:
    """Parse command-line arguments (without the program name)."""
    options = _ClientOptions()
    args = iter(argv)
    for argument in args:
        if argument in ("--help", "-h"):
            options.show_help = True
            return options
        if argument == "--host":
            value = next(args, None)
            if value is None:
                raise ValueError("Missing value after --host")
            options.host = value
            continue
        if argument == "--port":
            value = next(args, None)
            if value is None:
                raise ValueError("Missing value after --port")
            port = parse_port(value)
            if port is None:
                raise ValueError("Invalid port value")
            options.port = port
            continue
        raise ValueError(f"Unknown argument: {argument}")
    return options


class ConsoleClientApp:
    """Reads commands from a text stream and drives a ticket machine client."""

    def __init__(self, client, stdin: TextIO, stdout: TextIO) -> None:
        self._client = client
        self._in = stdin
        self._out = stdout
        self._reservation: Optional[ReservationResult] = None

    def run_loop(self) -> None:
        """Process commands until the user quits or input ends."""
        while True:
            self._write("task1> ")
            line = self._read_line()
            if line is None:
                self._write("\nInput closed. Exiting client.\n")
                return
            line = line.strip()
            if not line:
                continue
            try:
                if self.handle_command(line):
                    return
            except Exception as error:  # a failed command must not end the session
                self._write(f"Command failed: {error}\n")

    def handle_command(self, line: str) -> bool:
        """Run one command line; return True when the session should end."""
        tokens = line.split()
        if not tokens:
            return False
        command = tokens[0]

        if command == "help":
            self._write(_COMMAND_HELP)
        elif command == "list":
            self._print_availability()
        elif command == "reserve":
            if len(tokens) < 2:
                self._write("Usage: reserve <ticket_type>\n")
            else:
                self._handle_reserve(tokens[1])
        elif command == "status":
            self._print_status()
        elif command == "buy":
            self._handle_buy()
        elif command == "cancel":
            self._handle_cancel()
        elif command in ("quit", "exit"):
            self._write("Goodbye.\n")
            return True
        else:
            self._write(f"Unknown command: {command}\n")
        return False

    def _write(self, text: str) -> None:
        self._out.write(text)
        self._out.flush()

    def _read_line(self) -> Optional[str]:
        line = self._in.readline()
        if line == "":
            return None
        return line.rstrip("\n")

    def _describe(self, reservation: ReservationResult) -> str:
        return (
            f"ticket type '{reservation.ticket_type}'"
            f" | ticket id: {reservation.ticket_id}"
            f" | reservation id: {reservation.reservation_id}"
            f" | price: {format_money(reservation.price)} PLN\n"
        )

    def _handle_reserve(self, ticket_type: str) -> None:
        if self._reservation is not None:
            self._write("A reservation is already active. Use 'buy' or 'cancel' first.\n")
            return
        reservation = self._client.select_ticket(ticket_type)
        if reservation is None:
            self._write(f"No ticket of type '{ticket_type}' is currently available.\n")
            return
        self._reservation = reservation
        self._write(
            f"Reserved ticket type '{reservation.ticket_type}'"
            f" | ticket id: {reservation.ticket_id}"
            f" | reservation id: {reservation.reservation_id}"
            f" | price: {format_money(reservation.price)} PLN\n"
        )

    def _handle_buy(self) -> None:
        if self._reservation is None:
            self._write("No active reservation. Use 'reserve <type>' first.\n")
            return
        customer = self._read_customer()
        if customer is None:
            self._write("Purchase cancelled before customer data was completed.\n")
            return
        inserted = self._read_inserted_coins()
        if inserted is None:
            self._write("Purchase cancelled before payment was completed.\n")
            return

        result = self._client.buy(self._reservation.reservation_id, customer, inserted)
        self._reservation = None
        if isinstance(result, PurchaseSuccess):
            self._print_success(result)
        else:
            self._print_failure(result)

    def _handle_cancel(self) -> None:
        if self._reservation is None:
            self._write("No active reservation.\n")
            return
        reservation_id = self._reservation.reservation_id
        cancelled = self._client.cancel(reservation_id)
        self._reservation = None
        if cancelled:
            self._write(f"Reservation {reservation_id} was cancelled.\n")
        else:
            self._write(f"Reservation {reservation_id} was no longer active.\n")

    def _print_status(self) -> None:
        if self._reservation is None:
            self._write("No active reservation.\n")
            return
        self._write("Current reservation: " + self._describe(self._reservation))

    def _print_availability(self) -> None:
        availability = self._client.show_available_tickets()
        if not availability:
            self._write("No tickets are currently available.\n")
            return
        lines: List[str] = ["Available tickets:\n"]
        lines.extend(
            f"  - {item.type} | price: {format_money(item.price)} PLN"
            f" | available: {item.available_count}\n"
            for item in availability
        )
        self._write("".join(lines))

    def _print_coins(self, coins: Dict[int, int]) -> None:
        self._write(
            "".join(
                f"    - {denomination} gr x {count}\n"
                for denomination, count in sorted(coins.items(), reverse=True)
            )
        )

    def _print_success(self, success: PurchaseSuccess) -> None:
        self._write(
            "Purchase completed successfully.\n"
            f"  Ticket ID: {success.ticket_id}\n"
            f"  Owner: {success.customer.first_name} {success.customer.last_name}\n"
            f"  Paid: {format_money(success.paid)} PLN\n"
            f"  Price: {format_money(success.price)} PLN\n"
            f"  Change: {format_money(success.change.total)} PLN\n"
        )
        if not success.change.coins:
            self._write("  No coins dispensed as change.\n")
            return
        self._write("  Dispensed coins:\n")
        self._print_coins(success.change.coins)

    def _print_failure(self, failure: PurchaseFailure) -> None:
        self._write(f"Purchase failed.\n  Reason: {failure.message}\n")
        if not failure.returned_coins:
            self._write("  No coins were returned.\n")
            return
        self._write("  Returned coins:\n")
        self._print_coins(failure.returned_coins)

    def _read_name(self, label: str) -> Optional[str]:
        self._write(f"{label} (or 'cancel'): ")
        line = self._read_line()
        if line is None:
            return None
        value = line.strip()
        if value == "cancel":
            return None
        if not value:
            self._write(f"{label} cannot be empty.\n")
            return None
        return value

    def _read_customer(self) -> Optional[CustomerData]:
        first_name = self._read_name("First name")
        if first_name is None:
            return None
        last_name = self._read_name("Last name")
        if last_name is None:
            return None
        return CustomerData(first_name=first_name, last_name=last_name)

    def _read_inserted_coins(self) -> Optional[CoinInventory]:
        self._write(
            f"Enter inserted coin denominations in grosz ({_DENOMINATIONS_TEXT}), "
            "one per line. Type 'done' when finished or 'cancel' to abort.\n"
        )
        inserted: Dict[int, int] = {}
        while True:
            self._write("coin> ")
            line = self._read_line()
            if line is None:
                return None
            line = line.strip()
            if line == "cancel":
                return None
            if line == "done":
                try:
                    return CoinInventory(inserted)
                except ValueError as error:
                    self._write(f"Invalid coin inventory: {error}\n")
                    inserted.clear()
                    continue

            denomination = _leading_integer(line)
            if denomination is None:
                self._write(
                    "Invalid denomination. Enter the coin value in grosz, "
                    "for example 500 or 100.\n"
                )
            elif denomination <= 0:
                self._write("Coin denomination must be positive.\n")
            elif not is_supported_denomination(denomination):
                self._write(
                    f"Unsupported coin denomination. Use one of: {_DENOMINATIONS_TEXT}.\n"
                )
            else:
                inserted[denomination] = inserted.get(denomination, 0) + 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the console client; return the process exit code."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        options = parse_client_args(argv)
        if options.show_help:
            sys.stdout.write(_USAGE)
            return 0
        with TicketMachineClient(options.host, options.port) as client:
            client.ping()
            sys.stdout.write(
                f"Ticket machine client connected to {options.host}:{options.port}\n"
            )
            sys.stdout.write(_COMMAND_HELP)
            ConsoleClientApp(client, sys.stdin, sys.stdout).run_loop()
        return 0
    except Exception as error:
        sys.stderr.write(f"Fatal error: {error}\n")
        return 1