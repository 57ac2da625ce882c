"""JSON wire format used between ticket machine clients and the server."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from .coins import CoinInventory
from .models import (
    ChangeResult,
    CustomerData,
    PurchaseError,
    PurchaseFailure,
    PurchaseSuccess,
    ReservationResult,
    TicketAvailability,
)


class ProtocolError(ValueError):
    """Raised when a message does not follow the wire format."""


def _field(data: Any, key: str, kind: type) -> Any:
    if not isinstance(data, Mapping):
        raise ProtocolError(f"Expected an object holding field: {key}")
    if key not in data:
        raise ProtocolError(f"Missing field: {key}")
    value = data[key]
    wrong_bool = kind is int and isinstance(value, bool)
    if wrong_bool or not isinstance(value, kind):
        raise ProtocolError(f"Field has the wrong type: {key}")
    return value


def error_response(message: str) -> Dict[str, Any]:
    """Response reporting a failed request."""
    return {"ok": False, "message": message}


def ok_response() -> Dict[str, Any]:
    """Bare successful response."""
    return {"ok": True}


def customer_to_json(customer: CustomerData) -> Dict[str, Any]:
    return {"first_name": customer.first_name, "last_name": customer.last_name}


def customer_from_json(data: Any) -> CustomerData:
    return CustomerData(
        first_name=_field(data, "first_name", str),
        last_name=_field(data, "last_name", str),
    )


def coins_to_json(coins: Mapping[int, int]) -> List[Dict[str, int]]:
    """Encode a coin map as a list ordered from the largest denomination."""
    return [
        {"denomination": denomination, "count": count}
        for denomination, count in sorted(coins.items(), reverse=True)
    ]


def coins_from_json(data: Any) -> Dict[int, int]:
    """Decode a coin list, summing repeated denominations."""
    if not isinstance(data, list):
        raise ProtocolError("Coin list must be an array")
    result: Dict[int, int] = {}
    for entry in data:
        denomination = _field(entry, "denomination", int)
        count = _field(entry, "count", int)
        result[denomination] = result.get(denomination, 0) + count
    return dict(sorted(result.items(), reverse=True))


def inventory_to_json(inventory: CoinInventory) -> List[Dict[str, int]]:
    return coins_to_json(inventory.coins)


def inventory_from_json(data: Any) -> CoinInventory:
    return CoinInventory(coins_from_json(data))


def change_to_json(change: ChangeResult) -> Dict[str, Any]:
    return {"total": change.total, "coins": coins_to_json(change.coins)}


def reservation_to_json(reservation: ReservationResult) -> Dict[str, Any]:
    return {
        "ticket_type": reservation.ticket_type,
        "reservation_id": reservation.reservation_id,
        "ticket_id": reservation.ticket_id,
        "price": reservation.price,
    }


def reservation_from_json(data: Any) -> ReservationResult:
    return ReservationResult(
        ticket_type=_field(data, "ticket_type", str),
        reservation_id=_field(data, "reservation_id", int),
        ticket_id=_field(data, "ticket_id", int),
        price=_field(data, "price", int),
    )


def availability_to_json(availability: TicketAvailability) -> Dict[str, Any]:
    return {
        "type": availability.type,
        "price": availability.price,
        "available_count": availability.available_count,
    }


def availability_list_from_json(data: Any) -> List[TicketAvailability]:
    if not isinstance(data, list):
        raise ProtocolError("Availability payload must be an array")
    return [
        TicketAvailability(
            type=_field(entry, "type", str),
            price=_field(entry, "price", int),
            available_count=_field(entry, "available_count", int),
        )
        for entry in data
    ]


def purchase_success_to_json(success: PurchaseSuccess) -> Dict[str, Any]:
    return {
        "ticket_id": success.ticket_id,
        "paid": success.paid,
        "price": success.price,
        "ticket_type": success.ticket_type,
        "customer": customer_to_json(success.customer),
        "change": change_to_json(success.change),
    }


def purchase_success_from_json(data: Any) -> PurchaseSuccess:
    change = _field(data, "change", dict)
    return PurchaseSuccess(
        ticket_id=_field(data, "ticket_id", int),
        paid=_field(data, "paid", int),
        price=_field(data, "price", int),
        ticket_type=_field(data, "ticket_type", str),
        customer=customer_from_json(_field(data, "customer", dict)),
        change=ChangeResult(
            total=_field(change, "total", int),
            coins=coins_from_json(_field(change, "coins", list)),
        ),
    )


def purchase_failure_to_json(failure: PurchaseFailure) -> Dict[str, Any]:
    return {
        "error": error_to_string(failure.error),
        "returned_coins": coins_to_json(failure.returned_coins),
        "message": failure.message,
    }


def purchase_failure_from_json(data: Any) -> PurchaseFailure:
    return PurchaseFailure(
        error=error_from_string(_field(data, "error", str)),
        returned_coins=coins_from_json(_field(data, "returned_coins", list)),
        message=_field(data, "message", str),
    )


def error_to_string(error: PurchaseError) -> str:
    return error.value


def error_from_string(value: str) -> PurchaseError:
    try:
        return PurchaseError(value)
    except ValueError:
        raise ProtocolError(f"Unknown purchase error string: {value}") from None