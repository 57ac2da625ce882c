import json
import socket

import pytest

from ticketbooth.coins import CoinInventory
from ticketbooth.host import TicketServerHost
from ticketbooth.models import Ticket
from ticketbooth.protocol import ProtocolError
from ticketbooth.ticket_server import TicketServer


def _make_server():
    tickets = [
        Ticket(id=1, price=350, type="normal"),
        Ticket(id=2, price=350, type="normal"),
        Ticket(id=3, price=170, type="reduced"),
    ]
    return TicketServer(tickets, CoinInventory({200: 1, 100: 5, 50: 2}), 60, clock=lambda: 0.0)


@pytest.fixture
def host():
    return TicketServerHost(_make_server(), 0)


@pytest.fixture
def running_host():
    with TicketServerHost(_make_server(), 0) as started:
        yield started


def _connect(port):
    sock = socket.create_connection(("127.0.0.1", port), timeout=5)
    return sock, sock.makefile("rb")


def _exchange(sock, reader, payload):
    sock.sendall(payload)
    return json.loads(reader.readline())


def _purchase_request(reservation_id, coins):
    return {
        "action": "finalize_purchase",
        "reservation_id": reservation_id,
        "customer": {"first_name": "Jan", "last_name": "Kowalski"},
        "inserted_coins": coins,
    }


def test_ping_answers_pong(host):
    assert host.handle_request({"action": "ping"}, "test") == {"ok": True, "message": "pong"}


def test_request_is_logged(host, capsys):
    host.handle_request({"action": "ping"}, "test")
    assert "[server] Request from test: ping" in capsys.readouterr().out


def test_list_tickets_groups_by_type(host):
    response = host.handle_request({"action": "list_tickets"}, "test")
    assert response["ok"] is True
    assert response["tickets"] == [
        {"type": "normal", "price": 350, "available_count": 2},
        {"type": "reduced", "price": 170, "available_count": 1},
    ]


def test_reserve_then_unavailable(host):
    first = host.handle_request({"action": "reserve_ticket", "ticket_type": "reduced"}, "t")
    assert first["reserved"] is True
    assert first["reservation"]["ticket_id"] == 3
    assert first["reservation"]["price"] == 170
    second = host.handle_request({"action": "reserve_ticket", "ticket_type": "reduced"}, "t")
    assert second == {"ok": True, "reserved": False}


def test_cancel_reports_whether_it_had_effect(host):
    reserved = host.handle_request({"action": "reserve_ticket", "ticket_type": "normal"}, "t")
    reservation_id = reserved["reservation"]["reservation_id"]
    request = {"action": "cancel_reservation", "reservation_id": reservation_id}
    assert host.handle_request(request, "t") == {"ok": True, "cancelled": True}
    assert host.handle_request(request, "t") == {"ok": True, "cancelled": False}


def test_finalize_purchase_success(host):
    reserved = host.handle_request({"action": "reserve_ticket", "ticket_type": "normal"}, "t")
    reservation_id = reserved["reservation"]["reservation_id"]
    response = host.handle_request(
        _purchase_request(reservation_id, [{"denomination": 500, "count": 1}]), "t"
    )
    assert response["ok"] is True
    assert response["success"] is True
    assert response["purchase"]["ticket_id"] == 1
    assert response["purchase"]["change"]["total"] == 150


def test_finalize_purchase_failure(host):
    reserved = host.handle_request({"action": "reserve_ticket", "ticket_type": "normal"}, "t")
    reservation_id = reserved["reservation"]["reservation_id"]
    coins = [{"denomination": 200, "count": 1}, {"denomination": 100, "count": 1}]
    response = host.handle_request(_purchase_request(reservation_id, coins), "t")
    assert response["success"] is False
    assert response["purchase"]["error"] == "insufficient_funds"
    assert response["purchase"]["returned_coins"] == coins


def test_unknown_action_is_an_error_response(host):
    assert host.handle_request({"action": "dance"}, "t") == {
        "ok": False,
        "message": "Unknown action: dance",
    }


def test_missing_action_raises(host):
    with pytest.raises(ProtocolError, match="action"):
        host.handle_request({}, "t")


def test_start_binds_port_and_stop_clears_running(host):
    assert host.port == 0
    host.start()
    try:
        assert host.is_running is True
        assert host.port > 0
    finally:
        host.stop()
    assert host.is_running is False


def test_double_start_raises(running_host):
    with pytest.raises(RuntimeError, match="already running"):
        running_host.start()


def test_can_restart_after_stop(host):
    host.start()
    host.stop()
    host.start()
    try:
        sock, reader = _connect(host.port)
        with sock, reader:
            assert _exchange(sock, reader, b'{"action": "ping"}\n')["message"] == "pong"
    finally:
        host.stop()


def test_socket_ping_and_empty_lines_skipped(running_host):
    sock, reader = _connect(running_host.port)
    with sock, reader:
        response = _exchange(sock, reader, b'\n{"action": "ping"}\n')
    assert response == {"ok": True, "message": "pong"}


def test_socket_invalid_json_gives_error_response(running_host):
    sock, reader = _connect(running_host.port)
    with sock, reader:
        response = _exchange(sock, reader, b"not json\n")
        assert response["ok"] is False
        follow_up = _exchange(sock, reader, b'{"action": "ping"}\n')
    assert follow_up["ok"] is True


def test_socket_unsupported_coin_gives_error_response(running_host):
    sock, reader = _connect(running_host.port)
    with sock, reader:
        reserved = _exchange(sock, reader, b'{"action": "reserve_ticket", "ticket_type": "normal"}\n')
        request = _purchase_request(
            reserved["reservation"]["reservation_id"], [{"denomination": 25, "count": 1}]
        )
        response = _exchange(sock, reader, (json.dumps(request) + "\n").encode())
    assert response == {"ok": False, "message": "Unsupported coin denomination"}


def test_stop_closes_client_connections(host):
    host.start()
    sock, reader = _connect(host.port)
    with sock, reader:
        assert _exchange(sock, reader, b'{"action": "ping"}\n')["ok"] is True
        host.stop()
        assert reader.readline() == b""