"""
Learning layer for the chef coach.

A generic tabular Q-learning engine shared by every coach policy.

Key principles:
- The engine knows nothing about cooking; policies build the state keys
- Every random choice goes through a seedable per-table PRNG
- Exploration only ever decays within a session
- Learned state is in memory by default; persistence is opt-in

Design:
- Epsilon-greedy selection with first-occurrence tie-break
- One-step temporal-difference update
- Reward signs fixed by a shared reward table
"""

from .learning_config import QLearningConfig, AgentPresets
from .q_table import QTable, QTableStats, PhaseState
from .rewards import Reward, RewardTable, DEFAULT_REWARDS, DEFAULT_REWARD_TABLE
from .persistence_hooks import LearningPersistence, STATE_SCHEMA_VERSION


__all__ = [
    # Configuration
    "QLearningConfig",
    "AgentPresets",

    # Engine
    "QTable",
    "QTableStats",
    "PhaseState",

    # Rewards
    "Reward",
    "RewardTable",
    "DEFAULT_REWARDS",
    "DEFAULT_REWARD_TABLE",

    # Persistence
    "LearningPersistence",
    "STATE_SCHEMA_VERSION",
]
