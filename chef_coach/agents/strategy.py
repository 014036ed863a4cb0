"""
Behavioural stance policy.

Each decision cycle the coach picks one of five stances (help, compete,
neutral, cheer, teach) from the player's skill tier, the round progress,
their streak and whether they have been improving across rounds. The
policy also keeps a rolling player profile built from completed rounds.
"""
from __future__ import annotations

import logging
import math
import random
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Union

from ..catalog import Catalog, DEFAULT_CATALOG
from ..learning.learning_config import AgentPresets, QLearningConfig
from ..learning.q_table import QTable, QTableStats
from ..learning.rewards import DEFAULT_REWARD_TABLE, Reward, RewardTable
from ..util import mean, random_choice

logger = logging.getLogger(__name__)

MAX_STREAK_BUCKET = 5
TREND_WINDOW = 3
PREFERENCE_WINDOW = 5


class Stance(str, Enum):
    HELP = "help"
    COMPETE = "compete"
    NEUTRAL = "neutral"
    CHEER = "cheer"
    TEACH = "teach"

    @property
    def behavior_tag(self) -> str:
        return _BEHAVIOR_TAGS[self]


_BEHAVIOR_TAGS = {
    Stance.HELP: "assist",
    Stance.COMPETE: "race",
    Stance.NEUTRAL: "observe",
    Stance.CHEER: "encourage",
    Stance.TEACH: "explain",
}

STANCES: List[Stance] = list(Stance)


class SkillTier(str, Enum):
    """Coarse estimate of how well the player is doing this round."""
    STRUGGLING = "struggling"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class StrategyState(NamedTuple):
    tier: str
    progress: float
    trend: str
    streak: int


@dataclass
class StrategyDecision:
    stance: Stance
    behavior_tag: str
    message: str


@dataclass(frozen=True)
class RoundRecord:
    """One completed round, appended once and never changed."""
    skill_tier: str
    stance: Optional[str]
    engagement: float
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "skill_tier": self.skill_tier,
            "stance": self.stance,
            "engagement": self.engagement,
            "score": self.score,
        }


@dataclass
class PlayerProfile:
    """
    Rolling summary of the player, rebuilt from the round history each
    time a round is recorded.
    """
    improvement_trend: float = 0.0
    preferred_stance: Optional[Stance] = None
    total_rounds: int = 0

    @property
    def is_improving(self) -> bool:
        return self.improvement_trend > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "improvement_trend": self.improvement_trend,
            "preferred_stance": self.preferred_stance.value if self.preferred_stance else None,
            "total_rounds": self.total_rounds,
        }


def _tier_value(tier: Union[SkillTier, str]) -> str:
    return tier.value if isinstance(tier, SkillTier) else str(tier)


class StrategyAgent:
    """
    Q-learning policy over coach stances.

    Attributes:
        q_table: Learned values, keyed by StrategyState
        current_stance: Stance chosen by the most recent decide() (None before the first)
        round_history: Completed rounds, oldest first
        profile: Player profile derived from round_history
    """

    name = "strategy"

    def __init__(
        self,
        config: Optional[QLearningConfig] = None,
        catalog: Catalog = DEFAULT_CATALOG,
        rewards: RewardTable = DEFAULT_REWARD_TABLE,
        rng: Optional[random.Random] = None,
        help_idle_threshold: float = 8.0,
        teach_idle_threshold: float = 12.0,
        struggling_idle_threshold: float = 15.0,
    ):
        config = config or AgentPresets.strategy()
        self.rng = rng or random.Random(config.prng_seed)
        self.q_table = QTable(config, rng=self.rng, name=self.name)
        self.catalog = catalog
        self.rewards = rewards

        self.help_idle_threshold = help_idle_threshold
        self.teach_idle_threshold = teach_idle_threshold
        self.struggling_idle_threshold = struggling_idle_threshold

        self.current_stance: Optional[Stance] = None
        self.round_history: List[RoundRecord] = []
        self.profile = PlayerProfile()

    def state_for(
        self,
        skill_tier: Union[SkillTier, str],
        progress: float,
        streak: int,
    ) -> StrategyState:
        return StrategyState(
            tier=_tier_value(skill_tier),
            progress=math.floor(progress * 10 + 0.5) / 10,
            trend="improving" if self.profile.is_improving else "steady",
            streak=min(max(int(streak), 0), MAX_STREAK_BUCKET),
        )

    def decide(
        self,
        skill_tier: Union[SkillTier, str],
        progress: float,
        streak: int,
    ) -> StrategyDecision:
        """
        Pick a stance for this decision cycle.

        Args:
            skill_tier: Current skill estimate
            progress: Round progress in [0, 1]
            streak: Consecutive correct actions
        """
        state = self.state_for(skill_tier, progress, streak)
        stance = self.q_table.select_action(state, STANCES)
        self.current_stance = stance

        message = random_choice(self.catalog.messages.stance[stance.value], self.rng) or ""
        return StrategyDecision(stance=stance, behavior_tag=stance.behavior_tag, message=message)

    def learn(
        self,
        skill_tier: Union[SkillTier, str],
        progress: float,
        stance: Stance,
        engagement: float,
        streak: int,
    ) -> float:
        """
        Reward the stance that was active when the player acted.

        The next state is the current state: stance choice is treated as a
        single-step episode.

        Returns:
            New value for the (state, stance) pair
        """
        state = self.state_for(skill_tier, progress, streak)
        reward = self.rewards[Reward.PLAYER_ENGAGED if engagement > 0 else Reward.WRONG_ACTION]
        return self.q_table.update(state, Stance(stance), reward, state, STANCES)

    def record_round(
        self,
        skill_tier: Union[SkillTier, str],
        stance: Optional[Stance],
        engagement: float,
        score: float,
    ) -> PlayerProfile:
        """Append a round record and rebuild the player profile."""
        self.round_history.append(RoundRecord(
            skill_tier=_tier_value(skill_tier),
            stance=Stance(stance).value if stance else None,
            engagement=engagement,
            score=score,
        ))
        self._rebuild_profile()
        logger.debug(
            f"[{self.name}] Round {self.profile.total_rounds} recorded: score={score} "
            f"trend={self.profile.improvement_trend:.2f} "
            f"preferred={self.profile.preferred_stance}"
        )
        return self.profile

    def _rebuild_profile(self) -> None:
        scores = [r.score for r in self.round_history]

        trend = 0.0
        if len(scores) >= 2:
            recent = scores[-TREND_WINDOW:]
            older = scores[-2 * TREND_WINDOW:-TREND_WINDOW]
            trend = mean(recent) - mean(older)

        stances = [r.stance for r in self.round_history[-PREFERENCE_WINDOW:] if r.stance]
        preferred = None
        if stances:
            preferred = Stance(Counter(stances).most_common(1)[0][0])

        self.profile = PlayerProfile(
            improvement_trend=trend,
            preferred_stance=preferred,
            total_rounds=len(self.round_history),
        )

    def should_auto_assist(self, skill_tier: Union[SkillTier, str], idle_seconds: float) -> bool:
        """Whether the coach should step in on its own after the player goes idle."""
        if self.current_stance is Stance.HELP and idle_seconds > self.help_idle_threshold:
            return True
        if self.current_stance is Stance.TEACH and idle_seconds > self.teach_idle_threshold:
            return True
        if (_tier_value(skill_tier) == SkillTier.STRUGGLING.value
                and idle_seconds > self.struggling_idle_threshold):
            return True
        return False

    def post_round_message(self, completed: bool, mistakes: int) -> str:
        if completed and mistakes == 0:
            key = "perfect"
        elif completed:
            key = "completed"
        else:
            key = "failed"
        return random_choice(self.catalog.messages.post_round[key], self.rng) or ""

    def stats(self) -> QTableStats:
        return self.q_table.stats()

    def detailed_stats(self) -> Dict[str, Any]:
        return {
            "q_table": self.q_table.stats().to_dict(),
            "current_stance": self.current_stance.value if self.current_stance else None,
            "profile": self.profile.to_dict(),
            "rounds": len(self.round_history),
        }

    def reset(self) -> None:
        self.q_table.reset()
        self.current_stance = None
        self.round_history = []
        self.profile = PlayerProfile()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "q_table": self.q_table.to_dict(),
            "round_history": [r.to_dict() for r in self.round_history],
        }

    def load_dict(self, data: Dict[str, Any]) -> None:
        self.q_table.load_dict(
            data.get("q_table", {}),
            state_types={"StrategyState": StrategyState},
            action_type=Stance,
        )
        self.round_history = [RoundRecord(**r) for r in data.get("round_history", [])]
        self._rebuild_profile()
