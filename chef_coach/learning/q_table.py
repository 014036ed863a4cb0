"""
Generic tabular Q-learning engine.

A value table keyed by (state, action), an epsilon-greedy selection rule
with multiplicative decay, and the one-step temporal-difference update:

    Q(s, a) <- Q(s, a) + alpha * (r + gamma * max_a' Q(s', a') - Q(s, a))

States are hashable composite keys (NamedTuples) built by the owning
policy; the engine itself knows nothing about the domain. Entries are
never deleted during a session, only overwritten by `update`.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Hashable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .learning_config import QLearningConfig

logger = logging.getLogger(__name__)

TableKey = Tuple[Hashable, Hashable]


class PhaseState(NamedTuple):
    """Post-action state shared by all decisions of one kind (e.g. after a pick)."""
    phase: str


@dataclass
class QTableStats:
    """
    Read-only diagnostic snapshot of a Q-table.

    Only meant for debug overlays and logs; nothing in the decision layer
    reads it back.
    """
    entry_count: int
    update_count: int
    epsilon: float
    top_entries: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_count": self.entry_count,
            "update_count": self.update_count,
            "epsilon": self.epsilon,
            "top_entries": self.top_entries,
        }


def _encode_action(action: Hashable) -> Any:
    return action.value if isinstance(action, Enum) else action


def _encode_state(state: Hashable) -> Dict[str, Any]:
    if isinstance(state, tuple):
        return {"kind": type(state).__name__, "fields": [_encode_action(v) for v in state]}
    return {"kind": "raw", "fields": [state]}


class QTable:
    """
    State-action value table with an epsilon-greedy policy.

    Attributes:
        config: Learning parameters this table was built with
        epsilon: Current exploration probability (non-increasing)
        update_count: Number of updates applied so far
        rng: PRNG behind every random choice the table makes
    """

    def __init__(
        self,
        config: Optional[QLearningConfig] = None,
        rng: Optional[random.Random] = None,
        name: str = "q_table",
    ):
        """
        Initialize an empty table.

        Args:
            config: Learning parameters (defaults to QLearningConfig())
            rng: Shared PRNG; a new one seeded from config.prng_seed otherwise
            name: Label used in logs
        """
        self.config = config or QLearningConfig()
        self.name = name
        self.rng = rng or random.Random(self.config.prng_seed)

        self.alpha = self.config.alpha
        self.gamma = self.config.gamma
        self.epsilon = self.config.epsilon
        self.epsilon_decay = self.config.epsilon_decay
        self.epsilon_min = self.config.epsilon_min

        self.table: Dict[TableKey, float] = {}
        self.update_count = 0

    def value(self, state: Hashable, action: Hashable) -> float:
        """Stored value for (state, action), 0.0 when absent."""
        return self.table.get((state, action), 0.0)

    def values(self, state: Hashable, actions: Sequence[Hashable]) -> Dict[Hashable, float]:
        """Stored values for every candidate action at a state."""
        return {a: self.value(state, a) for a in actions}

    def select_action(self, state: Hashable, actions: Sequence[Hashable]) -> Optional[Hashable]:
        """
        Pick an action with the epsilon-greedy rule.

        Args:
            state: Current state key
            actions: Candidate actions, in preference order for ties

        Returns:
            Chosen action, or None if there are no candidates
        """
        if not actions:
            return None

        if self.rng.random() < self.epsilon:
            return actions[self.rng.randrange(len(actions))]

        best_action = actions[0]
        best_value = self.value(state, best_action)
        for action in actions[1:]:
            q = self.value(state, action)
            if q > best_value:
                best_value = q
                best_action = action
        return best_action

    def update(
        self,
        state: Hashable,
        action: Hashable,
        reward: float,
        next_state: Hashable,
        next_actions: Sequence[Hashable] = (),
    ) -> float:
        """
        Apply one temporal-difference update and decay exploration.

        Args:
            state: State the action was taken in
            action: Action taken
            reward: Observed reward
            next_state: State reached afterwards
            next_actions: Actions available at next_state (empty = terminal)

        Returns:
            The new value stored for (state, action)
        """
        current = self.value(state, action)

        max_next = 0.0
        if next_actions:
            max_next = max(self.value(next_state, a) for a in next_actions)

        new_value = current + self.alpha * (reward + self.gamma * max_next - current)
        self.table[(state, action)] = new_value

        self.epsilon = max(self.epsilon_min, self.epsilon * self.epsilon_decay)
        self.update_count += 1

        logger.debug(
            f"[{self.name}] Q({state}, {_encode_action(action)}) = {new_value:.3f} "
            f"| reward={reward} | eps={self.epsilon:.3f} | updates={self.update_count}"
        )
        return new_value

    def stats(self, top_n: int = 5) -> QTableStats:
        """Diagnostic snapshot: entry count, update count, epsilon, best entries."""
        ranked = sorted(self.table.items(), key=lambda kv: kv[1], reverse=True)[:top_n]
        return QTableStats(
            entry_count=len(self.table),
            update_count=self.update_count,
            epsilon=self.epsilon,
            top_entries=[
                {
                    "state": _encode_state(state)["fields"],
                    "action": _encode_action(action),
                    "q": round(q, 3),
                }
                for (state, action), q in ranked
            ],
        )

    def reset(self) -> None:
        """Discard all learned values (new session)."""
        self.table = {}
        self.update_count = 0
        self.epsilon = self.config.epsilon

    def __len__(self) -> int:
        return len(self.table)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "config": self.config.to_dict(),
            "epsilon": self.epsilon,
            "update_count": self.update_count,
            "entries": [
                {
                    "state": _encode_state(state),
                    "action": _encode_action(action),
                    "value": q,
                }
                for (state, action), q in self.table.items()
            ],
        }

    def load_dict(
        self,
        data: Mapping[str, Any],
        state_types: Mapping[str, Callable[..., Hashable]],
        action_type: Callable[[Any], Hashable] = str,
    ) -> None:
        """
        Restore entries produced by `to_dict` into this table.

        Entries whose state kind is not in `state_types` are skipped.

        Args:
            data: Serialized table
            state_types: State class name -> constructor taking the fields
            action_type: Converts a stored action back to its runtime type
        """
        self.epsilon = max(self.epsilon_min, min(1.0, data.get("epsilon", self.epsilon)))
        self.update_count = data.get("update_count", 0)

        skipped = 0
        for entry in data.get("entries", []):
            state_data = entry["state"]
            factory = state_types.get(state_data["kind"])
            if factory is None:
                skipped += 1
                continue
            state = factory(*state_data["fields"])
            self.table[(state, action_type(entry["action"]))] = float(entry["value"])

        if skipped:
            logger.warning(f"[{self.name}] Skipped {skipped} entries with unknown state kinds")

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        state_types: Mapping[str, Callable[..., Hashable]],
        action_type: Callable[[Any], Hashable] = str,
        rng: Optional[random.Random] = None,
        name: str = "q_table",
    ) -> "QTable":
        """Build a new table from `to_dict` output."""
        config = QLearningConfig.from_dict(data.get("config", {}))
        table = cls(config=config, rng=rng, name=name)
        table.load_dict(data, state_types, action_type)
        return table
