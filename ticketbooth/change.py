"""Minimal-coin change making with limited coin supplies."""

from __future__ import annotations

from typing import List, Optional

from .coins import CoinInventory
from .models import ChangeResult


def compute_minimal_change(amount: int, inventory: CoinInventory) -> Optional[ChangeResult]:
    """Find the change for ``amount`` using the fewest coins from ``inventory``.

    Returns None if the amount is negative or cannot be paid out exactly.
    """
    if amount < 0:
        return None
    if amount == 0:
        return ChangeResult(total=0, coins={})

    coin_types = [
        (denomination, available)
        for denomination, available in inventory.coins.items()
        if denomination > 0 and available > 0
    ]

    best: List[Optional[int]] = [0] + [None] * amount
    choices: List[List[int]] = []
    for denomination, available in coin_types:
        row: List[Optional[int]] = [None] * (amount + 1)
        chosen = [-1] * (amount + 1)
        for current in range(amount + 1):
            for used in range(available + 1):
                used_value = denomination * used
                if used_value > current:
                    break
                previous = best[current - used_value]
                if previous is None:
                    continue
                candidate = previous + used
                if row[current] is None or candidate < row[current]:
                    row[current] = candidate
                    chosen[current] = used
        best = row
        choices.append(chosen)

    if best[amount] is None:
        return None

    coins = {}
    remaining = amount
    for (denomination, _), chosen in zip(reversed(coin_types), reversed(choices)):
        used = chosen[remaining]
        if used < 0:
            return None
        if used == 0:
            continue
        coins[denomination] = used
        remaining -= denomination * used

    if remaining != 0:
        return None
    return ChangeResult(total=amount, coins=dict(sorted(coins.items(), reverse=True)))