# mining_model/core/block_reward.py
"""
Halving-aware block subsidy lookup.

The schedule is static configuration (settings.HALVING_SCHEDULE): genesis
reward followed by each known or estimated halving.
"""
from __future__ import annotations

from datetime import date
from typing import List, Tuple

from mining_model.config import settings

HALVING_SCHEDULE: List[Tuple[date, float]] = [
    (date(*ymd), reward) for ymd, reward in settings.HALVING_SCHEDULE
]


def block_reward(when: date) -> float:
    """
    Return the block subsidy (BTC) active on the given date.

    Uses the latest schedule entry on or before `when`; dates before
    genesis get the genesis reward.
    """
    reward = HALVING_SCHEDULE[0][1]
    for effective, entry_reward in reversed(HALVING_SCHEDULE):
        if when >= effective:
            reward = entry_reward
            break
    return reward
