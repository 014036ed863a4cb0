"""
Learning configuration for the tabular Q-learning engine.

Every parameter is bounded and clamped on construction, so a table can
never be built with a learning rate outside (0, 1] or an exploration
floor above the starting exploration rate.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class QLearningConfig:
    """
    Configuration for one Q-table.

    Attributes:
        alpha: Learning rate, in (0, 1]
        gamma: Discount factor, in [0, 1]
        epsilon: Initial exploration probability, in [epsilon_min, 1]
        epsilon_decay: Multiplicative decay applied after every update, in (0, 1]
        epsilon_min: Exploration floor, >= 0
        prng_seed: Seed for exploration and message choice (None = random)
    """
    alpha: float = 0.1
    gamma: float = 0.9
    epsilon: float = 0.3
    epsilon_decay: float = 0.995
    epsilon_min: float = 0.05
    prng_seed: Optional[int] = None

    def __post_init__(self):
        """Clamp all parameters to valid ranges."""
        self.alpha = max(1e-6, min(1.0, self.alpha))
        self.gamma = max(0.0, min(1.0, self.gamma))
        self.epsilon = max(0.0, min(1.0, self.epsilon))
        self.epsilon_decay = max(1e-6, min(1.0, self.epsilon_decay))
        self.epsilon_min = max(0.0, min(self.epsilon, self.epsilon_min))

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "alpha": self.alpha,
            "gamma": self.gamma,
            "epsilon": self.epsilon,
            "epsilon_decay": self.epsilon_decay,
            "epsilon_min": self.epsilon_min,
            "prng_seed": self.prng_seed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QLearningConfig":
        """Deserialize from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__annotations__})

    def with_seed(self, seed: Optional[int]) -> "QLearningConfig":
        """Copy of this config with a different seed."""
        data = self.to_dict()
        data["prng_seed"] = seed
        return QLearningConfig.from_dict(data)


class AgentPresets:
    """Tuned per-policy learning presets."""

    @staticmethod
    def ingredient(seed: Optional[int] = None) -> QLearningConfig:
        return QLearningConfig(alpha=0.15, gamma=0.85, epsilon=0.3, prng_seed=seed)

    @staticmethod
    def timing(seed: Optional[int] = None) -> QLearningConfig:
        return QLearningConfig(alpha=0.12, gamma=0.9, epsilon=0.25, prng_seed=seed)

    @staticmethod
    def strategy(seed: Optional[int] = None) -> QLearningConfig:
        return QLearningConfig(alpha=0.1, gamma=0.85, epsilon=0.35, prng_seed=seed)

    @staticmethod
    def creativity(seed: Optional[int] = None) -> QLearningConfig:
        return QLearningConfig(alpha=0.1, gamma=0.8, epsilon=0.4, prng_seed=seed)

    @staticmethod
    def greedy(seed: int = 42, alpha: float = 0.1, gamma: float = 0.9) -> QLearningConfig:
        """Exploration disabled; used by deterministic tests."""
        return QLearningConfig(
            alpha=alpha,
            gamma=gamma,
            epsilon=0.0,
            epsilon_min=0.0,
            prng_seed=seed,
        )
