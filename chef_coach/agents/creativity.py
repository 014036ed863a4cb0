"""
Creative embellishment policy.

Offers an optional variation for the current recipe (a chocolate drizzle,
a funny face) and learns which variations players actually use. Also the
source of trivia and cooking tips.
"""
from __future__ import annotations

import logging
import random
from typing import Any, Dict, NamedTuple, Optional, Sequence, Set

from ..catalog import Catalog, DEFAULT_CATALOG
from ..learning.learning_config import AgentPresets, QLearningConfig
from ..learning.q_table import QTable, QTableStats
from ..learning.rewards import DEFAULT_REWARD_TABLE, Reward, RewardTable
from ..types import Embellishment, Item, StepAction
from ..util import random_choice

logger = logging.getLogger(__name__)

MID_ROUND_WINDOW = (0.3, 0.9)
MID_ROUND_CHANCE = 0.3


class CreativityState(NamedTuple):
    """State key: the task and how many suggestions came before in this session."""
    task_id: str
    slot: int


class CreativityAgent:
    """
    Q-learning policy over a recipe's embellishment ids.

    The state carries the session-wide suggestion counter, so repeated
    suggestions for the same recipe land in fresh states. Feedback is
    recorded against the slot the next suggestion will use; a declined
    variation is therefore steered away from on the following offer.

    Attributes:
        q_table: Learned values, keyed by CreativityState
        total_suggestions: Suggestions made this session
        accepted: Suggestions the player used
        ledger: Task -> embellishment ids offered this session
    """

    name = "creativity"

    def __init__(
        self,
        config: Optional[QLearningConfig] = None,
        catalog: Catalog = DEFAULT_CATALOG,
        rewards: RewardTable = DEFAULT_REWARD_TABLE,
        rng: Optional[random.Random] = None,
    ):
        config = config or AgentPresets.creativity()
        self.rng = rng or random.Random(config.prng_seed)
        self.q_table = QTable(config, rng=self.rng, name=self.name)
        self.catalog = catalog
        self.rewards = rewards

        self.total_suggestions = 0
        self.accepted = 0
        self.ledger: Dict[str, Set[str]] = {}

    def suggest(self, task_id: str, available: Sequence[Item] = ()) -> Optional[Embellishment]:
        """
        Propose an embellishment for a task.

        Args:
            task_id: Recipe name
            available: Items on hand (unused by the current catalog, kept
                so item-dependent variations can be filtered later)

        Returns:
            The suggestion, or None if the task has no embellishments
        """
        options = self.catalog.embellishments.get(task_id)
        if not options:
            return None

        state = CreativityState(task_id, self.total_suggestions)
        chosen_id = self.q_table.select_action(state, [e.id for e in options])
        chosen = next((e for e in options if e.id == chosen_id), options[0])

        self.total_suggestions += 1
        self.ledger.setdefault(task_id, set()).add(chosen.id)

        logger.debug(f"[{self.name}] Suggested {chosen.id} for {task_id} (#{self.total_suggestions})")
        return chosen

    def suggest_mid_round(self, task_id: str, step_index: int, total_steps: int) -> Optional[Embellishment]:
        """Occasionally suggest something while the round is in its middle stretch."""
        if total_steps <= 0:
            return None
        progress = step_index / total_steps
        lo, hi = MID_ROUND_WINDOW
        if progress < lo or progress > hi:
            return None
        if self.rng.random() > MID_ROUND_CHANCE:
            return None
        return self.suggest(task_id)

    def learn(self, task_id: str, suggestion_id: str, was_used: bool) -> float:
        """
        Reward a used suggestion, lightly penalize an ignored one.

        Returns:
            New value for the suggestion at the next slot
        """
        state = CreativityState(task_id, self.total_suggestions)
        reward = self.rewards[Reward.CREATIVE_ACCEPTED if was_used else Reward.SUGGESTION_DECLINED]
        new_value = self.q_table.update(state, suggestion_id, reward, state, [suggestion_id])
        if was_used:
            self.accepted += 1
        return new_value

    def acceptance_rate(self) -> float:
        if self.total_suggestions == 0:
            return 0.0
        return self.accepted / self.total_suggestions

    def suggested(self, task_id: str) -> Set[str]:
        return set(self.ledger.get(task_id, ()))

    def fun_fact(self) -> str:
        return random_choice(self.catalog.messages.fun_facts, self.rng) or ""

    def cooking_tip(self, action: Optional[StepAction]) -> str:
        tips = self.catalog.messages.cooking_tips
        pool = tips.get(action.value if action else "", ()) or tips.get(StepAction.PICK.value, ())
        return random_choice(pool, self.rng) or ""

    def stats(self) -> QTableStats:
        return self.q_table.stats()

    def detailed_stats(self) -> Dict[str, Any]:
        return {
            "q_table": self.q_table.stats().to_dict(),
            "total_suggestions": self.total_suggestions,
            "accepted": self.accepted,
            "acceptance_rate": self.acceptance_rate(),
            "suggested": {k: sorted(v) for k, v in self.ledger.items()},
        }

    def reset(self) -> None:
        self.q_table.reset()
        self.total_suggestions = 0
        self.accepted = 0
        self.ledger = {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "q_table": self.q_table.to_dict(),
            "total_suggestions": self.total_suggestions,
            "accepted": self.accepted,
            "ledger": {k: sorted(v) for k, v in self.ledger.items()},
        }

    def load_dict(self, data: Dict[str, Any]) -> None:
        self.q_table.load_dict(
            data.get("q_table", {}),
            state_types={"CreativityState": CreativityState},
        )
        self.total_suggestions = data.get("total_suggestions", 0)
        self.accepted = data.get("accepted", 0)
        self.ledger = {k: set(v) for k, v in data.get("ledger", {}).items()}
