"""
Ingredient selection policy.

Recommends which item to use for the current step, learns from whether
the player's pick was correct, and offers deterministic substitution and
priority ranking that never touch the learned table.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from ..catalog import Catalog, DEFAULT_CATALOG
from ..learning.learning_config import AgentPresets, QLearningConfig
from ..learning.q_table import PhaseState, QTable, QTableStats
from ..learning.rewards import DEFAULT_REWARD_TABLE, Reward, RewardTable
from ..types import Item, Step
from ..util import clamp, random_choice

logger = logging.getLogger(__name__)

POST_PICK = PhaseState("post_pick")


class IngredientState(NamedTuple):
    """State key: what the step does and which item it needs."""
    action: str
    required_item: str


@dataclass
class IngredientRecommendation:
    item: str
    confidence: float
    is_correct: bool


@dataclass
class Substitute:
    name: str
    reason: str


@dataclass
class RankedItem:
    item: Item
    priority: float
    is_needed: bool


@dataclass
class UsageCounts:
    correct: int = 0
    wrong: int = 0


class IngredientAgent:
    """
    Q-learning policy over the names of the available items.

    Attributes:
        q_table: Learned values, keyed by IngredientState
        usage_history: Item name -> correct/wrong pick counts (diagnostics only)
    """

    name = "ingredient"

    def __init__(
        self,
        config: Optional[QLearningConfig] = None,
        catalog: Catalog = DEFAULT_CATALOG,
        rewards: RewardTable = DEFAULT_REWARD_TABLE,
        rng: Optional[random.Random] = None,
    ):
        config = config or AgentPresets.ingredient()
        self.rng = rng or random.Random(config.prng_seed)
        self.q_table = QTable(config, rng=self.rng, name=self.name)
        self.catalog = catalog
        self.rewards = rewards
        self.usage_history: Dict[str, UsageCounts] = {}

    @staticmethod
    def state_for(step: Step) -> IngredientState:
        return IngredientState(action=step.action.value, required_item=step.required_item or "")

    def recommend(
        self,
        step: Optional[Step],
        available: Sequence[Item],
    ) -> Optional[IngredientRecommendation]:
        """
        Recommend an item for a step.

        Args:
            step: Current step
            available: Items the player can use

        Returns:
            The recommendation, or None if the step needs no item or
            nothing is available
        """
        if step is None or not step.required_item:
            return None

        state = self.state_for(step)
        chosen = self.q_table.select_action(state, [i.name for i in available])
        if chosen is None:
            return None

        q = self.q_table.value(state, chosen)
        confidence = clamp(0.5 + q / 10.0, 0.1, 1.0)
        return IngredientRecommendation(
            item=chosen,
            confidence=confidence,
            is_correct=chosen == step.required_item,
        )

    def prioritize(self, steps: Sequence[Step], available: Sequence[Item]) -> List[RankedItem]:
        """
        Rank items: those needed by a remaining step first, then by
        category relevance, highest first.
        """
        needed = {s.required_item for s in steps if s.required_item}
        ranked = [
            RankedItem(
                item=item,
                priority=2.0 if item.name in needed else self.catalog.relevance(item.category),
                is_needed=item.name in needed,
            )
            for item in available
        ]
        ranked.sort(key=lambda r: r.priority, reverse=True)
        return ranked

    def learn(
        self,
        step: Step,
        chosen_item: str,
        was_correct: bool,
        available: Sequence[Item],
    ) -> float:
        """
        Reward or penalize a pick.

        Returns:
            New value for the (step, item) pair
        """
        state = self.state_for(step)
        reward = self.rewards[Reward.GOOD_INGREDIENT if was_correct else Reward.WASTED_INGREDIENT]
        new_value = self.q_table.update(
            state, chosen_item, reward, POST_PICK, [i.name for i in available]
        )

        counts = self.usage_history.setdefault(chosen_item, UsageCounts())
        if was_correct:
            counts.correct += 1
        else:
            counts.wrong += 1
        return new_value

    def suggest_substitute(
        self,
        required_item: str,
        available: Sequence[Item],
        definitions: Optional[Sequence[Item]] = None,
    ) -> Optional[Substitute]:
        """
        Find a stand-in for a missing item.

        Direct substitutes are tried in table order; failing that, any
        in-stock item from the same category. Never consults the Q-table.

        Args:
            required_item: Item the step wants
            available: Items on hand
            definitions: Item definitions for category lookup (catalog by default)
        """
        in_stock = {i.name: i for i in available if i.quantity > 0}

        for candidate in self.catalog.substitutions.get(required_item, ()):
            if candidate in in_stock:
                return Substitute(name=candidate, reason="direct substitute")

        definitions = self.catalog.ingredients if definitions is None else definitions
        required = next((d for d in definitions if d.name == required_item), None)
        if required is None:
            return None

        for item in in_stock.values():
            if item.category == required.category and item.name != required_item:
                return Substitute(name=item.name, reason="same category")
        return None

    def recommendation_message(self, step: Optional[Step], available: Sequence[Item]) -> Optional[str]:
        rec = self.recommend(step, available)
        if rec is None:
            return None
        pools = self.catalog.messages
        if rec.is_correct:
            return random_choice(pools.ingredient_correct, self.rng).format(item=rec.item)
        return random_choice(pools.ingredient_unsure, self.rng).format(required=step.required_item)

    def stats(self) -> QTableStats:
        return self.q_table.stats()

    def detailed_stats(self) -> Dict[str, Any]:
        return {
            "q_table": self.q_table.stats().to_dict(),
            "usage_history": {k: asdict(v) for k, v in self.usage_history.items()},
            "total_learnings": self.q_table.update_count,
        }

    def reset(self) -> None:
        self.q_table.reset()
        self.usage_history = {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "q_table": self.q_table.to_dict(),
            "usage_history": {k: asdict(v) for k, v in self.usage_history.items()},
        }

    def load_dict(self, data: Dict[str, Any]) -> None:
        self.q_table.load_dict(
            data.get("q_table", {}),
            state_types={"IngredientState": IngredientState, "PhaseState": PhaseState},
        )
        self.usage_history = {
            k: UsageCounts(**v) for k, v in data.get("usage_history", {}).items()
        }
