"""Loading the server's initial tickets and cashbox from a JSON file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from .coins import CoinInventory
from .models import CustomerData, Ticket, TicketStatus

SOURCE_DIR = Path(__file__).resolve().parent
DATA_DIR = SOURCE_DIR / "data"


class SeedDataError(ValueError):
    """Raised when seed data cannot be read or is invalid."""


@dataclass
class ServerSeedData:
    """Tickets and cashbox a server starts with."""

    tickets: List[Ticket] = field(default_factory=list)
    cashbox: CoinInventory = field(default_factory=CoinInventory)


def _require(data: Dict[str, Any], key: str, kind: type) -> Any:
    if key not in data:
        raise SeedDataError(f"Missing field: {key}")
    value = data[key]
    if (kind is int and isinstance(value, bool)) or not isinstance(value, kind):
        raise SeedDataError(f"Field has the wrong type: {key}")
    return value


def _parse_status(value: Any) -> TicketStatus:
    try:
        return TicketStatus(value)
    except ValueError:
        raise SeedDataError(f"Invalid ticket status in seed data: {value}") from None


def _parse_customer(value: Any) -> CustomerData:
    if not isinstance(value, dict):
        raise SeedDataError("Ticket owner must be a JSON object")
    return CustomerData(
        first_name=_require(value, "first_name", str),
        last_name=_require(value, "last_name", str),
    )


def _parse_ticket(value: Any) -> Ticket:
    if not isinstance(value, dict):
        raise SeedDataError("Each ticket entry must be a JSON object")

    ticket = Ticket(
        id=_require(value, "id", int),
        price=_require(value, "price", int),
        type=_require(value, "type", str),
        status=_parse_status(value.get("status", "available")),
    )
    if ticket.id <= 0:
        raise SeedDataError("Ticket id must be positive")
    if ticket.price <= 0:
        raise SeedDataError("Ticket price must be positive")
    if not ticket.type:
        raise SeedDataError("Ticket type cannot be empty")

    if value.get("owner") is not None:
        ticket.owner = _parse_customer(value["owner"])
    return ticket


def _parse_cashbox(value: Any) -> CoinInventory:
    if not isinstance(value, list):
        raise SeedDataError("cashbox must be a JSON array")

    coins: Dict[int, int] = {}
    for entry in value:
        if not isinstance(entry, dict):
            raise SeedDataError("Each cashbox entry must be a JSON object")
        denomination = _require(entry, "denomination", int)
        count = _require(entry, "count", int)
        if denomination <= 0:
            raise SeedDataError("Cashbox denomination must be positive")
        if count < 0:
            raise SeedDataError("Cashbox coin count cannot be negative")
        coins[denomination] = coins.get(denomination, 0) + count

    try:
        return CoinInventory(coins)
    except ValueError as error:
        raise SeedDataError(str(error)) from error


def _validate_unique_ids(tickets: List[Ticket]) -> None:
    seen = set()
    for ticket in tickets:
        if ticket.id in seen:
            raise SeedDataError(f"Duplicate ticket id in seed data: {ticket.id}")
        seen.add(ticket.id)


def parse_seed_data(root: Any) -> ServerSeedData:
    """Build seed data from an already decoded JSON document."""
    if not isinstance(root, dict):
        raise SeedDataError("Server seed data root must be a JSON object")
    if "tickets" not in root:
        raise SeedDataError("Server seed data must contain 'tickets'")
    if "cashbox" not in root:
        raise SeedDataError("Server seed data must contain 'cashbox'")

    raw_tickets = root["tickets"]
    if not isinstance(raw_tickets, list):
        raise SeedDataError("tickets must be a JSON array")
    tickets = [_parse_ticket(entry) for entry in raw_tickets]
    _validate_unique_ids(tickets)

    return ServerSeedData(tickets=tickets, cashbox=_parse_cashbox(root["cashbox"]))


def load_seed_data(file_path: Union[str, Path]) -> ServerSeedData:
    """Read and validate seed data from a JSON file."""
    path = Path(file_path)
    try:
        with path.open(encoding="utf-8") as handle:
            text = handle.read()
    except OSError:
        raise SeedDataError(f"Could not open server seed data file: {path}") from None

    try:
        root = json.loads(text)
    except json.JSONDecodeError as error:
        raise SeedDataError(f"Invalid JSON in server seed data file: {error}") from error
    return parse_seed_data(root)