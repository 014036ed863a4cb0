"""
Reward table shared by every policy.

Translates outcomes (a correct pick, a burnt dish, an accepted
embellishment) into numeric reward signals. Magnitudes are tuning
parameters; signs are part of the contract: desired outcomes are
positive and undesired outcomes negative.
"""
from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class Reward(str, Enum):
    """Outcome types that produce a reward."""
    TASK_COMPLETE = "task_complete"
    ON_TIME = "on_time"
    CREATIVE_ACCEPTED = "creative_accepted"
    PLAYER_ENGAGED = "player_engaged"
    GOOD_INGREDIENT = "good_ingredient"
    SUGGESTION_DECLINED = "suggestion_declined"
    LATE = "late"
    WRONG_ACTION = "wrong_action"
    WASTED_INGREDIENT = "wasted_ingredient"
    BURNT = "burnt"


DEFAULT_REWARDS: Mapping[Reward, float] = MappingProxyType({
    Reward.TASK_COMPLETE: 10.0,
    Reward.ON_TIME: 5.0,
    Reward.CREATIVE_ACCEPTED: 3.0,
    Reward.PLAYER_ENGAGED: 2.0,
    Reward.GOOD_INGREDIENT: 2.0,
    Reward.SUGGESTION_DECLINED: -0.5,
    Reward.LATE: -1.0,
    Reward.WRONG_ACTION: -2.0,
    Reward.WASTED_INGREDIENT: -3.0,
    Reward.BURNT: -5.0,
})


class RewardTable:
    """
    Immutable reward lookup with optional overrides.

    An override whose sign differs from the default is ignored, since the
    policies depend on desired outcomes staying positive.
    """

    def __init__(self, overrides: Optional[Mapping[str, float]] = None):
        """
        Args:
            overrides: Reward name (or Reward) -> replacement magnitude
        """
        values: Dict[Reward, float] = dict(DEFAULT_REWARDS)
        for key, value in (overrides or {}).items():
            try:
                reward = Reward(key)
            except ValueError:
                logger.warning(f"Unknown reward override ignored: {key}")
                continue

            default = DEFAULT_REWARDS[reward]
            if value == 0 or (value > 0) != (default > 0):
                logger.warning(
                    f"Reward override for {reward.value} ({value}) flips or zeroes "
                    f"its sign (default {default}); keeping default"
                )
                continue
            values[reward] = float(value)

        self._values: Mapping[Reward, float] = MappingProxyType(values)

    def __getitem__(self, reward: Reward) -> float:
        return self._values[reward]

    def get(self, reward: Reward) -> float:
        return self._values[reward]

    def to_dict(self) -> Dict[str, float]:
        return {r.value: v for r, v in self._values.items()}


DEFAULT_REWARD_TABLE = RewardTable()
