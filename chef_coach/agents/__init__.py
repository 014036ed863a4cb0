"""
Coach policies.

Four tabular Q-learning agents, each owning its own value table and
history structures:

- IngredientAgent: which item to use for the current step
- TimingAgent: how early or late to act on time-sensitive steps
- StrategyAgent: which behavioural stance the coach takes
- CreativityAgent: which optional embellishment to propose
"""

from .ingredient import (
    IngredientAgent,
    IngredientRecommendation,
    IngredientState,
    RankedItem,
    Substitute,
)
from .timing import TimingAgent, TimingBand, TimingRecommendation, TimingState
from .strategy import (
    PlayerProfile,
    RoundRecord,
    SkillTier,
    Stance,
    StrategyAgent,
    StrategyDecision,
    StrategyState,
)
from .creativity import CreativityAgent, CreativityState


__all__ = [
    # Ingredient
    "IngredientAgent",
    "IngredientRecommendation",
    "IngredientState",
    "RankedItem",
    "Substitute",

    # Timing
    "TimingAgent",
    "TimingBand",
    "TimingRecommendation",
    "TimingState",

    # Strategy
    "StrategyAgent",
    "StrategyDecision",
    "StrategyState",
    "Stance",
    "SkillTier",
    "PlayerProfile",
    "RoundRecord",

    # Creativity
    "CreativityAgent",
    "CreativityState",
]
