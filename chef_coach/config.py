"""
Configuration for the coach orchestrator.

Cadence, thresholds and per-policy learning parameters live in one
`CoachConfig`, which can be loaded from YAML or JSON files or taken from
one of the built-in presets.
"""
from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .learning.learning_config import AgentPresets, QLearningConfig

logger = logging.getLogger(__name__)

AGENT_NAMES = ("ingredient", "timing", "strategy", "creativity")


@dataclass
class CoachConfig:
    """
    Configuration for one coach session.

    Attributes:
        action_interval: Seconds between periodic stance decisions
        compete_interval_step: Interval reduction per COMPETE decision
        min_action_interval: Floor for the shortened interval
        idle_hint_threshold: Idle seconds before a hint for the next step
        help_idle_threshold: Idle seconds before auto-assist while helping
        teach_idle_threshold: Idle seconds before auto-assist while teaching
        struggling_idle_threshold: Idle seconds before auto-assist for a struggling player
        trivia_chance: Probability a NEUTRAL decision shares trivia
        mid_round_suggestions: Let the creativity policy interject mid-round
        worried_time: Seconds remaining below which the coach looks worried
        stance_duration: Display seconds for stance lines
        advice_duration: Display seconds for ingredient/timing advice
        hint_duration: Display seconds for idle hints
        round_message_duration: Display seconds for post-round lines
        ingredient/timing/strategy/creativity: Learning parameters per policy
        reward_overrides: Reward name -> replacement magnitude (signs must match)
        prng_seed: Session seed; each policy derives its own from it
    """
    action_interval: float = 5.0
    compete_interval_step: float = 0.3
    min_action_interval: float = 3.0
    idle_hint_threshold: float = 5.0
    help_idle_threshold: float = 8.0
    teach_idle_threshold: float = 12.0
    struggling_idle_threshold: float = 15.0
    trivia_chance: float = 0.3
    worried_time: float = 20.0
    mid_round_suggestions: bool = False

    stance_duration: float = 3.5
    advice_duration: float = 4.0
    hint_duration: float = 3.0
    round_message_duration: float = 4.0

    ingredient: QLearningConfig = field(default_factory=AgentPresets.ingredient)
    timing: QLearningConfig = field(default_factory=AgentPresets.timing)
    strategy: QLearningConfig = field(default_factory=AgentPresets.strategy)
    creativity: QLearningConfig = field(default_factory=AgentPresets.creativity)

    reward_overrides: Dict[str, float] = field(default_factory=dict)
    prng_seed: Optional[int] = None

    def __post_init__(self):
        """Clamp cadence and thresholds to sane ranges."""
        self.action_interval = max(0.5, self.action_interval)
        self.min_action_interval = max(0.5, min(self.action_interval, self.min_action_interval))
        self.compete_interval_step = max(0.0, self.compete_interval_step)
        self.idle_hint_threshold = max(0.0, self.idle_hint_threshold)
        self.trivia_chance = max(0.0, min(1.0, self.trivia_chance))

    def agent_config(self, name: str) -> QLearningConfig:
        """
        Learning config for one policy.

        A policy without its own seed gets one derived from the session
        seed, so seeded sessions replay exactly.
        """
        config: QLearningConfig = getattr(self, name)
        if config.prng_seed is None and self.prng_seed is not None:
            return config.with_seed(self.prng_seed + AGENT_NAMES.index(name))
        return config

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for key in self.__dataclass_fields__:
            value = getattr(self, key)
            if isinstance(value, QLearningConfig):
                value = value.to_dict()
            elif isinstance(value, dict):
                value = dict(value)
            data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoachConfig":
        kwargs = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        for name in AGENT_NAMES:
            if isinstance(kwargs.get(name), dict):
                kwargs[name] = QLearningConfig.from_dict(kwargs[name])
        return cls(**kwargs)

    def save(self, path: str) -> None:
        """Save config to JSON file."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> Optional["CoachConfig"]:
        """Load config from JSON or YAML file."""
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()

            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(content) or {}
            else:
                data = json.loads(content)

            return cls.from_dict(data)

        except Exception as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            return None


# Built-in coach presets
PRESETS: Dict[str, CoachConfig] = {
    "default": CoachConfig(),
    "patient": CoachConfig(
        action_interval=7.0,
        min_action_interval=5.0,
        idle_hint_threshold=8.0,
        help_idle_threshold=12.0,
        teach_idle_threshold=16.0,
        struggling_idle_threshold=20.0,
        trivia_chance=0.2,
    ),
    "playful": CoachConfig(
        action_interval=4.0,
        compete_interval_step=0.5,
        min_action_interval=2.5,
        trivia_chance=0.5,
        mid_round_suggestions=True,
        strategy=QLearningConfig(alpha=0.15, gamma=0.85, epsilon=0.5),
        creativity=QLearningConfig(alpha=0.15, gamma=0.8, epsilon=0.6),
    ),
    "deterministic": CoachConfig(
        ingredient=AgentPresets.greedy(seed=42, alpha=0.15, gamma=0.85),
        timing=AgentPresets.greedy(seed=43, alpha=0.12, gamma=0.9),
        strategy=AgentPresets.greedy(seed=44, alpha=0.1, gamma=0.85),
        creativity=AgentPresets.greedy(seed=45, alpha=0.1, gamma=0.8),
        trivia_chance=0.0,
        prng_seed=42,
    ),
}


def get_preset(name: str) -> Optional[CoachConfig]:
    """Get a copy of a built-in coach preset by name."""
    preset = PRESETS.get(name.lower())
    return copy.deepcopy(preset) if preset else None


def list_presets() -> List[str]:
    """List available preset names."""
    return list(PRESETS.keys())
