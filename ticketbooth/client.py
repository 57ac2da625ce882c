"""Ticket machine clients: one talking to a server in-process, one over TCP."""

from __future__ import annotations

import json
import socket
from typing import Any, BinaryIO, Dict, List, Optional, Union

from .coins import CoinInventory
from .models import (
    CustomerData,
    PurchaseFailure,
    PurchaseSuccess,
    ReservationResult,
    TicketAvailability,
)
from .protocol import (
    ProtocolError,
    availability_list_from_json,
    customer_to_json,
    inventory_to_json,
    purchase_failure_from_json,
    purchase_success_from_json,
    reservation_from_json,
)
from .ticket_server import TicketServer

PurchaseOutcome = Union[PurchaseSuccess, PurchaseFailure]


class ServerError(RuntimeError):
    """Raised when the server answers a request with an error."""


def _ensure_ok(response: Dict[str, Any]) -> None:
    if not response.get("ok", False):
        raise ServerError(response.get("message", "Unknown server error"))


def _flag(response: Dict[str, Any], key: str) -> bool:
    if key not in response:
        raise ProtocolError(f"Missing field: {key}")
    value = response[key]
    if not isinstance(value, bool):
        raise ProtocolError(f"Field has the wrong type: {key}")
    return value


def _payload(response: Dict[str, Any], key: str) -> Any:
    if key not in response:
        raise ProtocolError(f"Missing field: {key}")
    return response[key]


class LocalTicketMachineClient:
    """Ticket machine working directly against an in-process server."""

    def __init__(self, server: TicketServer) -> None:
        self._server = server

    def show_available_tickets(self) -> List[TicketAvailability]:
        return self._server.get_available_tickets()

    def select_ticket(self, ticket_type: str) -> Optional[ReservationResult]:
        return self._server.reserve_ticket(ticket_type)

    def cancel(self, reservation_id: int) -> bool:
        return self._server.cancel_reservation(reservation_id)

    def buy(
        self, reservation_id: int, customer: CustomerData, inserted_coins: CoinInventory
    ) -> PurchaseOutcome:
        return self._server.finalize_purchase(reservation_id, customer, inserted_coins)

    def ping(self) -> None:
        """A local server is always reachable."""

    def close(self) -> None:
        """Nothing to release for a local server."""


class TicketMachineClient:
    """Ticket machine talking to a remote server over one TCP connection."""

    def __init__(self, host: str, port: int) -> None:
        self._host = host
        self._port = port
        self._socket: Optional[socket.socket] = None
        self._reader: Optional[BinaryIO] = None

    def show_available_tickets(self) -> List[TicketAvailability]:
        response = self._request({"action": "list_tickets"})
        _ensure_ok(response)
        return availability_list_from_json(_payload(response, "tickets"))

    def select_ticket(self, ticket_type: str) -> Optional[ReservationResult]:
        response = self._request({"action": "reserve_ticket", "ticket_type": ticket_type})
        _ensure_ok(response)
        if not response.get("reserved", False):
            return None
        return reservation_from_json(_payload(response, "reservation"))

    def cancel(self, reservation_id: int) -> bool:
        response = self._request(
            {"action": "cancel_reservation", "reservation_id": reservation_id}
        )
        _ensure_ok(response)
        return _flag(response, "cancelled")

    def buy(
        self, reservation_id: int, customer: CustomerData, inserted_coins: CoinInventory
    ) -> PurchaseOutcome:
        response = self._request(
            {
                "action": "finalize_purchase",
                "reservation_id": reservation_id,
                "customer": customer_to_json(customer),
                "inserted_coins": inventory_to_json(inserted_coins),
            }
        )
        _ensure_ok(response)
        purchase = _payload(response, "purchase")
        if _flag(response, "success"):
            return purchase_success_from_json(purchase)
        return purchase_failure_from_json(purchase)

    def ping(self) -> None:
        """Check that the server answers; raise ServerError if it refuses."""
        response = self._request({"action": "ping"})
        if not _flag(response, "ok"):
            raise ServerError(response.get("message", "Ping request failed"))

    def close(self) -> None:
        """Shut the connection down; the next request reconnects."""
        sock, reader = self._socket, self._reader
        self._socket = None
        self._reader = None
        if reader is not None:
            try:
                reader.close()
            except OSError:
                pass
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()

    def _connect(self) -> socket.socket:
        if self._socket is not None:
            return self._socket
        try:
            sock = socket.create_connection((self._host, self._port))
        except socket.gaierror as error:
            raise ConnectionError(f"Could not resolve server address: {error}") from error
        except OSError as error:
            raise ConnectionError(f"Could not connect to server: {error}") from error
        self._socket = sock
        self._reader = sock.makefile("rb")
        return sock

    def _request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        sock = self._connect()
        payload = (json.dumps(request) + "\n").encode("utf-8")
        try:
            sock.sendall(payload)
        except OSError as error:
            self.close()
            raise ConnectionError(f"Could not send request to server: {error}") from error

        assert self._reader is not None
        try:
            line = self._reader.readline()
        except OSError as error:
            self.close()
            raise ConnectionError(f"Could not read response from server: {error}") from error
        if not line.endswith(b"\n"):
            self.close()
            raise ConnectionError("Could not read response from server: connection closed")

        text = line[:-1].decode("utf-8")
        if not text:
            raise ServerError("Received an empty response from the server")
        try:
            response = json.loads(text)
        except ValueError as error:
            raise ProtocolError(f"Invalid response from server: {error}") from error
        if not isinstance(response, dict):
            raise ProtocolError("Response must be a JSON object")
        return response

    def __enter__(self) -> "TicketMachineClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()