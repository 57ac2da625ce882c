from ticketbooth.change import compute_minimal_change
from ticketbooth.coins import CoinInventory


def test_returns_empty_change_for_zero_amount():
    result = compute_minimal_change(0, CoinInventory({200: 3, 100: 2}))
    assert result is not None
    assert result.total == 0
    assert result.coins == {}


def test_finds_simple_change():
    result = compute_minimal_change(150, CoinInventory({100: 5, 50: 5}))
    assert result is not None
    assert result.total == 150
    assert result.coins == {100: 1, 50: 1}


def test_minimizes_number_of_coins():
    result = compute_minimal_change(200, CoinInventory({100: 5, 50: 5, 20: 5, 10: 5}))
    assert result is not None
    assert result.coins == {100: 2}


def test_respects_limited_coin_counts():
    result = compute_minimal_change(200, CoinInventory({100: 1, 50: 10}))
    assert result is not None
    assert result.coins[100] == 1
    assert result.coins[50] == 2


def test_returns_none_when_change_cannot_be_made():
    assert compute_minimal_change(220, CoinInventory({200: 10})) is None


def test_returns_none_for_negative_amount():
    assert compute_minimal_change(-1, CoinInventory({100: 1})) is None


def test_reconstruction_does_not_exceed_available_counts():
    inventory = CoinInventory({5: 2, 2: 1, 1: 1})
    result = compute_minimal_change(12, inventory)
    assert result is not None
    assert result.total == 12
    for denomination, used in result.coins.items():
        assert used <= inventory.count(denomination)
    assert sum(d * c for d, c in result.coins.items()) == 12
    assert sum(result.coins.values()) == 3
    assert result.coins[5] == 2
    assert result.coins[2] == 1
    assert 1 not in result.coins