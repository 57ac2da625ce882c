import json

import pytest

from ticketbooth.models import CustomerData, TicketStatus
from ticketbooth.seed_data import SeedDataError, load_seed_data, parse_seed_data

SAMPLE = {
    "tickets": [
        {"id": 1, "price": 350, "type": "normal"},
        {"id": 2, "price": 350, "type": "normal", "status": "available"},
        {"id": 3, "price": 170, "type": "reduced"},
        {
            "id": 4,
            "price": 170,
            "type": "reduced",
            "status": "sold",
            "owner": {"first_name": "Anna", "last_name": "Nowak"},
        },
    ],
    "cashbox": [
        {"denomination": 500, "count": 1},
        {"denomination": 200, "count": 2},
        {"denomination": 100, "count": 1},
        {"denomination": 50, "count": 2},
    ],
}


def write(tmp_path, document):
    path = tmp_path / "server_seed.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def test_loads_seed_file(tmp_path):
    seed = load_seed_data(write(tmp_path, SAMPLE))
    assert len(seed.tickets) == 4
    assert seed.cashbox.total() == 1100


def test_ticket_fields_and_defaults(tmp_path):
    seed = load_seed_data(str(write(tmp_path, SAMPLE)))
    first, _, _, sold = seed.tickets
    assert first.status is TicketStatus.AVAILABLE
    assert first.owner is None
    assert sold.status is TicketStatus.SOLD
    assert sold.owner == CustomerData(first_name="Anna", last_name="Nowak")


def test_cashbox_entries_are_summed():
    seed = parse_seed_data(
        {
            "tickets": [],
            "cashbox": [
                {"denomination": 100, "count": 2},
                {"denomination": 100, "count": 3},
            ],
        }
    )
    assert seed.cashbox.count(100) == 5


def test_null_owner_is_ignored():
    seed = parse_seed_data(
        {"tickets": [{"id": 1, "price": 10, "type": "a", "owner": None}], "cashbox": []}
    )
    assert seed.tickets[0].owner is None


def test_missing_file_raises(tmp_path):
    with pytest.raises(SeedDataError, match="Could not open"):
        load_seed_data(tmp_path / "absent.json")


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SeedDataError):
        load_seed_data(path)


@pytest.mark.parametrize(
    "document, message",
    [
        ([], "root must be a JSON object"),
        ({"cashbox": []}, "must contain 'tickets'"),
        ({"tickets": []}, "must contain 'cashbox'"),
        ({"tickets": [5], "cashbox": []}, "Each ticket entry must be a JSON object"),
        ({"tickets": [{"id": 0, "price": 10, "type": "a"}], "cashbox": []}, "id must be positive"),
        ({"tickets": [{"id": 1, "price": 0, "type": "a"}], "cashbox": []}, "price must be positive"),
        ({"tickets": [{"id": 1, "price": 10, "type": ""}], "cashbox": []}, "type cannot be empty"),
        ({"tickets": [{"id": 1, "price": 10}], "cashbox": []}, "Missing field: type"),
        (
            {"tickets": [{"id": 1, "price": 10, "type": "a", "status": "lost"}], "cashbox": []},
            "Invalid ticket status in seed data: lost",
        ),
        (
            {"tickets": [{"id": 1, "price": 10, "type": "a", "owner": "x"}], "cashbox": []},
            "owner must be a JSON object",
        ),
        (
            {
                "tickets": [
                    {"id": 1, "price": 10, "type": "a"},
                    {"id": 1, "price": 20, "type": "b"},
                ],
                "cashbox": [],
            },
            "Duplicate ticket id in seed data: 1",
        ),
        ({"tickets": [], "cashbox": {}}, "cashbox must be a JSON array"),
        ({"tickets": [], "cashbox": [1]}, "Each cashbox entry must be a JSON object"),
        (
            {"tickets": [], "cashbox": [{"denomination": 0, "count": 1}]},
            "denomination must be positive",
        ),
        (
            {"tickets": [], "cashbox": [{"denomination": 100, "count": -1}]},
            "count cannot be negative",
        ),
        (
            {"tickets": [], "cashbox": [{"denomination": 25, "count": 1}]},
            "Unsupported coin denomination",
        ),
    ],
)
def test_invalid_documents_raise(document, message):
    with pytest.raises(SeedDataError, match=message):
        parse_seed_data(document)