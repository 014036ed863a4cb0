"""
Cooking duration policy.

Chooses one of five timing bands for time-sensitive steps, learns from
whether the chosen timing worked, and reads a burn-risk estimate back out
of the learned values.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from ..catalog import Catalog, DEFAULT_CATALOG
from ..learning.learning_config import AgentPresets, QLearningConfig
from ..learning.q_table import PhaseState, QTable, QTableStats
from ..learning.rewards import DEFAULT_REWARD_TABLE, Reward, RewardTable
from ..types import Step
from ..util import random_choice

logger = logging.getLogger(__name__)

POST_TIMING = PhaseState("post_timing")

# Thresholds on Q(very_late) and Q(perfect) for burn_risk
BURN_Q_THRESHOLD = -2.0
PERFECT_Q_THRESHOLD = 2.0
HIGH_BURN_RISK = 0.8
LOW_BURN_RISK = 0.1
MEDIUM_BURN_RISK = 0.3


class TimingBand(str, Enum):
    """How early or late to act, ordered from earliest to latest."""
    VERY_EARLY = "very_early"
    EARLY = "early"
    PERFECT = "perfect"
    LATE = "late"
    VERY_LATE = "very_late"

    @property
    def factor(self) -> float:
        return _BAND_FACTORS[self]

    @property
    def risk(self) -> Optional[str]:
        return _BAND_RISKS[self]


_BAND_FACTORS = {
    TimingBand.VERY_EARLY: 0.5,
    TimingBand.EARLY: 0.75,
    TimingBand.PERFECT: 1.0,
    TimingBand.LATE: 1.25,
    TimingBand.VERY_LATE: 1.5,
}

_BAND_RISKS = {
    TimingBand.VERY_EARLY: "undercooked",
    TimingBand.EARLY: "slightly raw",
    TimingBand.PERFECT: None,
    TimingBand.LATE: None,
    TimingBand.VERY_LATE: "burnt",
}

TIMING_BANDS: List[TimingBand] = list(TimingBand)


class TimingState(NamedTuple):
    """State key: the task and the shape of the timed step."""
    task_id: str
    action: str
    station: str
    duration: float


@dataclass
class TimingRecommendation:
    band: Optional[TimingBand]
    seconds: float
    risk: Optional[str]
    message: str

    @property
    def is_instant(self) -> bool:
        return self.band is None


@dataclass
class TimingHistory:
    attempts: int = 0
    successes: int = 0
    total_duration: float = 0.0


class TimingAgent:
    """
    Q-learning policy over timing bands.

    Attributes:
        q_table: Learned values, keyed by TimingState
        timing_history: "task:action" -> attempts/successes/duration (diagnostics only)
        burn_count: Failed timings so far
        perfect_timings: Successful timings so far
    """

    name = "timing"

    def __init__(
        self,
        config: Optional[QLearningConfig] = None,
        catalog: Catalog = DEFAULT_CATALOG,
        rewards: RewardTable = DEFAULT_REWARD_TABLE,
        rng: Optional[random.Random] = None,
    ):
        config = config or AgentPresets.timing()
        self.rng = rng or random.Random(config.prng_seed)
        self.q_table = QTable(config, rng=self.rng, name=self.name)
        self.catalog = catalog
        self.rewards = rewards
        self.timing_history: Dict[str, TimingHistory] = {}
        self.burn_count = 0
        self.perfect_timings = 0

    @staticmethod
    def state_for(task_id: str, step: Step) -> TimingState:
        return TimingState(
            task_id=task_id,
            action=step.action.value,
            station=step.station or "",
            duration=step.duration or 0,
        )

    def recommend(self, step: Optional[Step], task_id: str) -> TimingRecommendation:
        """
        Recommend how long to run a step.

        Steps without a duration get an instant, zero-risk result.
        """
        if step is None or not step.duration:
            return TimingRecommendation(band=None, seconds=0.0, risk=None, message="Quick step!")

        state = self.state_for(task_id, step)
        band = self.q_table.select_action(state, TIMING_BANDS)
        seconds = round(step.duration * band.factor, 1)

        template = random_choice(self.catalog.messages.timing[band.value], self.rng)
        return TimingRecommendation(
            band=band,
            seconds=seconds,
            risk=band.risk,
            message=template.format(seconds=seconds),
        )

    def learn(
        self,
        task_id: str,
        step: Step,
        band: TimingBand,
        was_successful: bool,
        actual_duration: Optional[float] = None,
    ) -> float:
        """
        Reward or penalize a timing choice.

        A failure at the very-late band counts as a burnt dish; any other
        failure counts as a late action.

        Returns:
            New value for the (step, band) pair
        """
        if was_successful:
            reward = self.rewards[Reward.ON_TIME]
        elif band is TimingBand.VERY_LATE:
            reward = self.rewards[Reward.BURNT]
        else:
            reward = self.rewards[Reward.LATE]

        state = self.state_for(task_id, step)
        new_value = self.q_table.update(state, band, reward, POST_TIMING, TIMING_BANDS)

        if was_successful:
            self.perfect_timings += 1
        else:
            self.burn_count += 1

        history = self.timing_history.setdefault(f"{task_id}:{step.action.value}", TimingHistory())
        history.attempts += 1
        if was_successful:
            history.successes += 1
        if actual_duration:
            history.total_duration += actual_duration
        return new_value

    def burn_risk(self, task_id: str, step: Optional[Step]) -> float:
        """
        Estimate burn risk for a step from its learned values.

        High when very-late has been punished hard, low when perfect has
        been rewarded well, medium otherwise; 0 for untimed steps.
        """
        if step is None or not step.duration:
            return 0.0
        state = self.state_for(task_id, step)
        if self.q_table.value(state, TimingBand.VERY_LATE) < BURN_Q_THRESHOLD:
            return HIGH_BURN_RISK
        if self.q_table.value(state, TimingBand.PERFECT) > PERFECT_Q_THRESHOLD:
            return LOW_BURN_RISK
        return MEDIUM_BURN_RISK

    def encouragement(self, remaining: float, total: float) -> str:
        """Countdown line for a step in progress."""
        ratio = remaining / total if total > 0 else 0.0
        if ratio > 0.7:
            key = "plenty"
        elif ratio > 0.4:
            key = "halfway"
        elif ratio > 0.15:
            key = "close"
        elif ratio > 0:
            key = "now"
        else:
            key = "done"
        return random_choice(self.catalog.messages.encouragement[key], self.rng)

    def stats(self) -> QTableStats:
        return self.q_table.stats()

    def detailed_stats(self) -> Dict[str, Any]:
        return {
            "q_table": self.q_table.stats().to_dict(),
            "timing_history": {k: asdict(v) for k, v in self.timing_history.items()},
            "burn_count": self.burn_count,
            "perfect_timings": self.perfect_timings,
        }

    def reset(self) -> None:
        self.q_table.reset()
        self.timing_history = {}
        self.burn_count = 0
        self.perfect_timings = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "q_table": self.q_table.to_dict(),
            "timing_history": {k: asdict(v) for k, v in self.timing_history.items()},
            "burn_count": self.burn_count,
            "perfect_timings": self.perfect_timings,
        }

    def load_dict(self, data: Dict[str, Any]) -> None:
        self.q_table.load_dict(
            data.get("q_table", {}),
            state_types={"TimingState": TimingState, "PhaseState": PhaseState},
            action_type=TimingBand,
        )
        self.timing_history = {
            k: TimingHistory(**v) for k, v in data.get("timing_history", {}).items()
        }
        self.burn_count = data.get("burn_count", 0)
        self.perfect_timings = data.get("perfect_timings", 0)
