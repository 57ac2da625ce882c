"""Coin denominations and a validated coin inventory."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

SUPPORTED_DENOMINATIONS = (1, 2, 5, 10, 20, 50, 100, 200, 500)


def is_supported_denomination(denomination: int) -> bool:
    """Return True if the denomination (in grosz) is an accepted coin."""
    return denomination in SUPPORTED_DENOMINATIONS


def _validate_entry(denomination: int, count: int) -> None:
    if denomination <= 0:
        raise ValueError("Coin denomination must be positive")
    if not is_supported_denomination(denomination):
        raise ValueError("Unsupported coin denomination")
    if count < 0:
        raise ValueError("Coin count cannot be negative")


def _is_removable(denomination: int, count: int) -> bool:
    return denomination > 0 and is_supported_denomination(denomination)


class CoinInventory:
    """A multiset of coins keyed by denomination."""

    def __init__(self, coins: Optional[Mapping[int, int]] = None) -> None:
        self._coins: Dict[int, int] = dict(coins or {})
        for denomination, count in self._coins.items():
            _validate_entry(denomination, count)

    @property
    def coins(self) -> Dict[int, int]:
        """Coins held, ordered from the largest denomination down."""
        return dict(sorted(self._coins.items(), reverse=True))

    def add_coin(self, denomination: int, count: int = 1) -> None:
        """Add ``count`` coins of one denomination."""
        _validate_entry(denomination, count)
        if count == 0:
            return
        self._coins[denomination] = self._coins.get(denomination, 0) + count

    def add_coins(self, other: "CoinInventory") -> None:
        """Add every coin held by another inventory."""
        for denomination, count in other.coins.items():
            self.add_coin(denomination, count)

    def remove_coin(self, denomination: int, count: int = 1) -> bool:
        """Remove coins of one denomination; return False if not possible."""
        if not _is_removable(denomination, count) or count <= 0:
            return False
        held = self._coins.get(denomination)
        if held is None or held < count:
            return False
        if held == count:
            del self._coins[denomination]
        else:
            self._coins[denomination] = held - count
        return True

    def remove_coins(self, coins: Mapping[int, int]) -> bool:
        """Remove all given coins at once, or none of them; return success."""
        for denomination, count in coins.items():
            if not _is_removable(denomination, count) or count < 0:
                return False
            held = self._coins.get(denomination)
            if held is None or held < count:
                return False
        for denomination, count in coins.items():
            self.remove_coin(denomination, count)
        return True

    def count(self, denomination: int) -> int:
        """Number of coins of the given denomination."""
        return self._coins.get(denomination, 0)

    def total(self) -> int:
        """Total value of all coins in grosz."""
        return sum(denomination * count for denomination, count in self._coins.items())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CoinInventory):
            return NotImplemented
        return self._coins == other._coins

    def __repr__(self) -> str:
        return f"CoinInventory({self.coins!r})"