"""In-memory ticket server: reservations with timeouts and coin-paid purchases."""

from __future__ import annotations

import copy
import threading
import time
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from .change import compute_minimal_change
from .coins import CoinInventory
from .models import (
    CustomerData,
    PurchaseError,
    PurchaseFailure,
    PurchaseSuccess,
    Reservation,
    ReservationResult,
    Ticket,
    TicketAvailability,
    TicketStatus,
)

Clock = Callable[[], float]
PurchaseOutcome = Union[PurchaseSuccess, PurchaseFailure]


class TicketServer:
    """Thread-safe pool of tickets, reservations and the machine's cashbox."""

    def __init__(
        self,
        tickets: Iterable[Ticket],
        cashbox: CoinInventory,
        reservation_timeout: float,
        clock: Clock = time.monotonic,
    ) -> None:
        self._lock = threading.Lock()
        self._tickets: List[Ticket] = [copy.copy(ticket) for ticket in tickets]
        self._cashbox = CoinInventory(cashbox.coins)
        self._reservations: List[Reservation] = []
        self._expired_ids: Set[int] = set()
        self._timeout = reservation_timeout
        self._clock = clock
        self._next_reservation_id = 1

    def get_available_tickets(self) -> List[TicketAvailability]:
        """Available ticket counts per type, sorted by type then price."""
        with self._lock:
            self._cleanup_expired()
            aggregated: Dict[str, Tuple[int, int]] = {}
            for ticket in self._tickets:
                _, count = aggregated.get(ticket.type, (ticket.price, 0))
                if ticket.status is TicketStatus.AVAILABLE:
                    count += 1
                aggregated[ticket.type] = (ticket.price, count)

        result = [
            TicketAvailability(type=ticket_type, price=price, available_count=count)
            for ticket_type, (price, count) in aggregated.items()
        ]
        result.sort(key=lambda item: (item.type, item.price))
        return result

    def reserve_ticket(self, ticket_type: str) -> Optional[ReservationResult]:
        """Reserve the first available ticket of a type, or return None."""
        with self._lock:
            self._cleanup_expired()
            ticket = next(
                (
                    t
                    for t in self._tickets
                    if t.type == ticket_type and t.status is TicketStatus.AVAILABLE
                ),
                None,
            )
            if ticket is None:
                return None

            ticket.status = TicketStatus.RESERVED
            now = self._clock()
            reservation = Reservation(
                id=self._next_reservation_id,
                ticket_id=ticket.id,
                created_at=now,
                expires_at=now + self._timeout,
            )
            self._next_reservation_id += 1
            self._reservations.append(reservation)
            return ReservationResult(
                ticket_type=ticket.type,
                reservation_id=reservation.id,
                ticket_id=ticket.id,
                price=ticket.price,
            )

    def cancel_reservation(self, reservation_id: int) -> bool:
        """Release a reservation; return False if it is not active."""
        with self._lock:
            self._cleanup_expired()
            reservation = self._find_reservation(reservation_id)
            if reservation is None:
                return False
            ticket = self._find_ticket(reservation.ticket_id)
            if ticket is not None and ticket.status is TicketStatus.RESERVED:
                ticket.status = TicketStatus.AVAILABLE
            self._remove_reservation(reservation_id)
            return True

    def finalize_purchase(
        self,
        reservation_id: int,
        customer: CustomerData,
        inserted_coins: CoinInventory,
    ) -> PurchaseOutcome:
        """Sell the reserved ticket for the inserted coins, paying out change."""
        with self._lock:
            self._cleanup_expired()
            reservation = self._find_reservation(reservation_id)
            ticket = (
                self._find_ticket(reservation.ticket_id) if reservation is not None else None
            )

            def fail(error: PurchaseError, message: str) -> PurchaseFailure:
                if ticket is not None and ticket.status is TicketStatus.RESERVED:
                    ticket.status = TicketStatus.AVAILABLE
                self._remove_reservation(reservation_id)
                return PurchaseFailure(
                    error=error, returned_coins=inserted_coins.coins, message=message
                )

            if ticket is None or ticket.status is not TicketStatus.RESERVED:
                if reservation_id in self._expired_ids:
                    return fail(PurchaseError.RESERVATION_EXPIRED, "Reservation expired")
                return fail(PurchaseError.RESERVATION_NOT_FOUND, "Reservation not found")

            paid = inserted_coins.total()
            if paid < ticket.price:
                return fail(
                    PurchaseError.INSUFFICIENT_FUNDS, "Paid amount less than ticket price"
                )

            available = CoinInventory(self._cashbox.coins)
            available.add_coins(inserted_coins)
            change = compute_minimal_change(paid - ticket.price, available)
            if change is None:
                return fail(
                    PurchaseError.CANNOT_MAKE_CHANGE, "No change available for this amount"
                )

            self._cashbox.add_coins(inserted_coins)
            self._cashbox.remove_coins(change.coins)
            ticket.status = TicketStatus.SOLD
            ticket.owner = customer
            self._remove_reservation(reservation_id)

            return PurchaseSuccess(
                ticket_id=ticket.id,
                paid=paid,
                price=ticket.price,
                ticket_type=ticket.type,
                customer=customer,
                change=change,
            )

    def _cleanup_expired(self) -> None:
        now = self._clock()
        still_active = []
        for reservation in self._reservations:
            if reservation.expires_at <= now:
                ticket = self._find_ticket(reservation.ticket_id)
                if ticket is not None and ticket.status is TicketStatus.RESERVED:
                    ticket.status = TicketStatus.AVAILABLE
                self._expired_ids.add(reservation.id)
            else:
                still_active.append(reservation)
        self._reservations = still_active

    def _remove_reservation(self, reservation_id: int) -> None:
        self._reservations = [r for r in self._reservations if r.id != reservation_id]

    def _find_ticket(self, ticket_id: int) -> Optional[Ticket]:
        return next((t for t in self._tickets if t.id == ticket_id), None)

    def _find_reservation(self, reservation_id: int) -> Optional[Reservation]:
        return next((r for r in self._reservations if r.id == reservation_id), None)