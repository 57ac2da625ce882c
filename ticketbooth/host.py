"""TCP front end that serves a TicketServer to remote ticket machines."""

from __future__ import annotations

import json
import socket
import socketserver
import sys
import threading
from typing import Any, Dict, Mapping, Optional, Set

from .models import PurchaseSuccess
from .protocol import (
    ProtocolError,
    availability_to_json,
    customer_from_json,
    error_response,
    error_to_string,
    inventory_from_json,
    ok_response,
    purchase_failure_to_json,
    purchase_success_to_json,
    reservation_to_json,
)
from .ticket_server import TicketServer

_log_lock = threading.Lock()


def _log(message: str) -> None:
    with _log_lock:
        sys.stdout.write(f"[server] {message}\n")
        sys.stdout.flush()


def _require(request: Mapping[str, Any], key: str, kind: type) -> Any:
    if key not in request:
        raise ProtocolError(f"Missing field: {key}")
    value = request[key]
    if (kind is int and isinstance(value, bool)) or not isinstance(value, kind):
        raise ProtocolError(f"Field has the wrong type: {key}")
    return value


class _RequestHandler(socketserver.StreamRequestHandler):
    """Serves one client connection: one JSON request per line."""

    server: "_ThreadedServer"

    def handle(self) -> None:
        host = self.server.ticket_host
        address = self.client_address
        label = f"{address[0]}:{address[1]}" if address else "unknown-client"
        host._register(self.connection)
        _log(f"Client connected: {label}")
        try:
            for raw in self.rfile:
                line = raw[:-1] if raw.endswith(b"\n") else raw
                if not line:
                    continue
                try:
                    response = host.handle_request(json.loads(line), label)
                except Exception as error:  # every failure becomes an error response
                    response = error_response(str(error))
                self.wfile.write((json.dumps(response) + "\n").encode("utf-8"))
        except OSError:
            pass
        finally:
            host._unregister(self.connection)
            _log(f"Client disconnected: {label}")


class _ThreadedServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address: tuple, ticket_host: "TicketServerHost") -> None:
        self.ticket_host = ticket_host
        super().__init__(address, _RequestHandler)


class TicketServerHost:
    """Listens on a TCP port and answers ticket machine requests."""

    def __init__(self, server: TicketServer, port: int) -> None:
        self._server = server
        self._requested_port = port
        self._bound_port = 0
        self._running = False
        self._state_lock = threading.Lock()
        self._listener: Optional[_ThreadedServer] = None
        self._worker: Optional[threading.Thread] = None
        self._connections: Set[socket.socket] = set()
        self._connections_lock = threading.Lock()

    def start(self) -> None:
        """Bind the port and start serving in a background thread."""
        with self._state_lock:
            if self._running:
                raise RuntimeError("TicketServerHost is already running")
            self._running = True
        try:
            listener = _ThreadedServer(("", self._requested_port), self)
        except OSError as error:
            with self._state_lock:
                self._running = False
            raise RuntimeError(f"Could not bind acceptor: {error}") from error

        self._listener = listener
        self._bound_port = listener.server_address[1]
        _log(f"Server is ready on port {self._bound_port}")
        self._worker = threading.Thread(
            target=listener.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True
        )
        self._worker.start()

    def stop(self) -> None:
        """Stop accepting clients and drop every open connection."""
        with self._state_lock:
            if not self._running:
                return
            self._running = False

        _log("Stopping server host")
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.shutdown()
            listener.server_close()

        with self._connections_lock:
            connections = list(self._connections)
            self._connections.clear()
        for connection in connections:
            try:
                connection.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

        worker, self._worker = self._worker, None
        if worker is not None:
            worker.join()

    @property
    def port(self) -> int:
        """Port actually bound; 0 before the first start."""
        return self._bound_port

    @property
    def is_running(self) -> bool:
        return self._running

    def handle_request(self, request: Any, client_label: str = "local") -> Dict[str, Any]:
        """Answer one decoded request; raises ProtocolError on malformed input."""
        if not isinstance(request, Mapping):
            raise ProtocolError("Request must be a JSON object")
        action = _require(request, "action", str)
        _log(f"Request from {client_label}: {action}")

        if action == "ping":
            return {"ok": True, "message": "pong"}

        if action == "list_tickets":
            availability = self._server.get_available_tickets()
            _log(
                f"Listing available tickets for {client_label}: "
                f"{len(availability)} ticket groups visible"
            )
            response = ok_response()
            response["tickets"] = [availability_to_json(item) for item in availability]
            return response

        if action == "reserve_ticket":
            ticket_type = _require(request, "ticket_type", str)
            reservation = self._server.reserve_ticket(ticket_type)
            if reservation is None:
                _log(
                    f"Reservation rejected for {client_label}: "
                    f"ticket type='{ticket_type}' is unavailable"
                )
                return {"ok": True, "reserved": False}
            _log(
                f"Reservation created for {client_label}: "
                f"reservation_id={reservation.reservation_id}, "
                f"ticket_id={reservation.ticket_id}, type='{reservation.ticket_type}'"
            )
            return {
                "ok": True,
                "reserved": True,
                "reservation": reservation_to_json(reservation),
            }

        if action == "cancel_reservation":
            reservation_id = _require(request, "reservation_id", int)
            cancelled = self._server.cancel_reservation(reservation_id)
            outcome = "succeeded" if cancelled else "had no effect"
            _log(f"Cancellation for {client_label}: reservation_id={reservation_id} {outcome}")
            return {"ok": True, "cancelled": cancelled}

        if action == "finalize_purchase":
            reservation_id = _require(request, "reservation_id", int)
            customer = customer_from_json(_require(request, "customer", dict))
            inserted = inventory_from_json(_require(request, "inserted_coins", list))
            result = self._server.finalize_purchase(reservation_id, customer, inserted)

            response = ok_response()
            if isinstance(result, PurchaseSuccess):
                _log(
                    f"Purchase completed for {client_label}: ticket_id={result.ticket_id}, "
                    f"reservation_id={reservation_id}, change={result.change.total}"
                )
                response["success"] = True
                response["purchase"] = purchase_success_to_json(result)
            else:
                _log(
                    f"Purchase failed for {client_label}: reservation_id={reservation_id}, "
                    f"error={error_to_string(result.error)}"
                )
                response["success"] = False
                response["purchase"] = purchase_failure_to_json(result)
            return response

        return error_response(f"Unknown action: {action}")

    def _register(self, connection: socket.socket) -> None:
        with self._connections_lock:
            self._connections.add(connection)

    def _unregister(self, connection: socket.socket) -> None:
        with self._connections_lock:
            self._connections.discard(connection)

    def __enter__(self) -> "TicketServerHost":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()