# ticketbooth

A ticket machine that runs as a small TCP server. Clients can list the
tickets, reserve one, and then buy it or cancel it. A reservation expires
after a fixed timeout (60 seconds for the `ticketbooth-server` command). When
a customer overpays, the machine gives change with the fewest coins it can
make from the coins in its cashbox together with the coins just inserted. If
it cannot make the exact change, or the payment is too small, the purchase is
refused, the reservation is released and the inserted coins are returned.

All amounts are in grosz (1/100 PLN). The machine accepts these coins:
1, 2, 5, 10, 20, 50, 100, 200 and 500.

## Installation

```
pip install .
```

To install with the test dependencies:

```
pip install ".[test]"
```

## Running the server

```
ticketbooth-server [--port PORT] [--data FILE_OR_PATH]
```

The server listens on all IPv4 interfaces, on port 5555 unless you give
another. It loads its tickets and its starting cashbox from a JSON seed file.
An absolute `--data` path is used as given; a relative one is looked up inside
the `data` directory next to the package's modules, and without `--data` the
file `server_seed.json` in that directory is used. Run
`ticketbooth-server --help` to see both paths. Press Ctrl+C to stop the
server.

A seed file looks like this:

```json
{
  "tickets": [
    {"id": 1, "price": 350, "type": "normal"},
    {"id": 2, "price": 170, "type": "reduced", "status": "available"},
    {"id": 3, "price": 350, "type": "normal", "status": "sold",
     "owner": {"first_name": "Jan", "last_name": "Kowalski"}}
  ],
  "cashbox": [
    {"denomination": 200, "count": 1},
    {"denomination": 100, "count": 5},
    {"denomination": 50, "count": 2}
  ]
}
```

Ticket ids must be positive and unique. Prices must be positive and types
must not be empty. The status is `available` when it is not given, and may
also be `reserved` or `sold`. Cashbox denominations must be among the
accepted coins and counts must not be negative; repeated denominations are
added together. An invalid file stops the server with an error message.

## Running a client

```
ticketbooth [--host HOST] [--port PORT]
```

The client connects to `127.0.0.1:5555` by default, checks that the server
answers, and gives you a prompt with these commands:

| command          | effect                                   |
|------------------|------------------------------------------|
| `help`           | show the command list                    |
| `list`           | show ticket types, prices and counts     |
| `reserve <type>` | reserve one ticket of the given type     |
| `status`         | show the current reservation             |
| `buy`            | pay for the current reservation          |
| `cancel`         | release the current reservation          |
| `quit` / `exit`  | leave the client                         |

Only one reservation can be active at a time. `buy` asks for the customer's
first and last name. It then reads the coins you insert, one denomination per
line, until you type `done`. Type `cancel` at any of these prompts to abort
the purchase.

## Using it as a library

```python
import time

from ticketbooth.coins import CoinInventory
from ticketbooth.models import CustomerData, PurchaseSuccess, Ticket
from ticketbooth.ticket_server import TicketServer

server = TicketServer(
    [Ticket(id=1, price=350, type="normal")],
    CoinInventory({200: 1, 100: 5, 50: 2}),
    60,
    time.monotonic,
)

reservation = server.reserve_ticket("normal")
result = server.finalize_purchase(
    reservation.reservation_id,
    CustomerData(first_name="Jan", last_name="Kowalski"),
    CoinInventory({500: 1}),
)
if isinstance(result, PurchaseSuccess):
    print(result.change.total, result.change.coins)  # 150 {100: 1, 50: 1}
else:
    print(result.error, result.message, result.returned_coins)
```

`TicketServer` is safe to use from several threads. Its `clock` argument
defaults to `time.monotonic`; pass your own callable to control expiry, for
example in tests.

Other entry points:

- `ticketbooth.change.compute_minimal_change(amount, inventory)` computes
  change on its own and returns `None` when the amount cannot be paid out.
- `ticketbooth.seed_data.load_seed_data(path)` and `parse_seed_data(document)`
  read seed data into a `ServerSeedData`, raising `SeedDataError` on bad input.
- `ticketbooth.host.TicketServerHost(server, port)` serves a `TicketServer`
  over TCP. Pass port 0 to let the system choose a free port, then read
  `host.port`. It can be used as a context manager.
- `ticketbooth.client.TicketMachineClient(host, port)` talks to a running
  server; `LocalTicketMachineClient(server)` offers the same methods for a
  `TicketServer` in the same process. A server-side error is raised as
  `ServerError`.
- `ticketbooth.protocol` holds the JSON encoders and decoders for the wire
  format: one JSON object per line in each direction.

## What it does not do

- No seed file comes with the package. Create one, and either pass its
  absolute path with `--data` or place it in the package's `data` directory.
- Nothing is saved. Sales, reservations and cashbox changes live in memory
  and are lost when the server stops; the seed file is never written back.

## Running the tests

```
pytest
```