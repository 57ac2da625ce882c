"""Domain types shared by the ticket server, the protocol and the clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

Money = int
TicketId = int
ReservationId = int
CoinMap = Dict[int, int]


class TicketStatus(Enum):
    """Lifecycle state of a single ticket."""

    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"


class PurchaseError(Enum):
    """Reason a purchase could not be completed."""

    RESERVATION_NOT_FOUND = "reservation_not_found"
    RESERVATION_EXPIRED = "reservation_expired"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    CANNOT_MAKE_CHANGE = "cannot_make_change"


@dataclass(frozen=True)
class CustomerData:
    """Name of the person buying a ticket."""

    first_name: str
    last_name: str


@dataclass
class Ticket:
    """A single ticket held by the server."""

    id: TicketId
    price: Money
    type: str
    status: TicketStatus = TicketStatus.AVAILABLE
    owner: Optional[CustomerData] = None


@dataclass(frozen=True)
class Reservation:
    """A time-limited hold on a ticket; times are clock readings in seconds."""

    id: ReservationId
    ticket_id: TicketId
    created_at: float
    expires_at: float


@dataclass(frozen=True)
class ChangeResult:
    """Change to hand back: its total and the coins making it up."""

    total: Money = 0
    coins: CoinMap = field(default_factory=dict)


@dataclass(frozen=True)
class PurchaseSuccess:
    """Outcome of a completed purchase."""

    ticket_id: TicketId
    paid: Money
    price: Money
    ticket_type: str
    customer: CustomerData
    change: ChangeResult


@dataclass(frozen=True)
class PurchaseFailure:
    """Outcome of a failed purchase; the inserted coins are returned."""

    error: PurchaseError
    returned_coins: CoinMap
    message: str


@dataclass(frozen=True)
class ReservationResult:
    """What a client learns about a reservation it has made."""

    ticket_type: str
    reservation_id: ReservationId
    ticket_id: TicketId
    price: Money


@dataclass(frozen=True)
class TicketAvailability:
    """Number of available tickets of one type and price."""

    type: str
    price: Money
    available_count: int = 0