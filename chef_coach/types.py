from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class StepAction(str, Enum):
    """Kinds of action a round step can require."""
    PICK = "pick"
    CHOP = "chop"
    MIX = "mix"
    COOK = "cook"
    PLATE = "plate"


@dataclass(frozen=True)
class Step:
    """
    One required step of a round.

    Attributes:
        action: What the player has to do
        description: Human-readable instruction
        required_item: Item the step consumes (pick steps only)
        station: Station the step happens at
        duration: Seconds the step takes, for time-sensitive steps
    """
    action: StepAction
    description: str = ""
    required_item: Optional[str] = None
    station: Optional[str] = None
    duration: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["action"] = self.action.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Step":
        return cls(
            action=StepAction(data["action"]),
            description=data.get("description", ""),
            required_item=data.get("required_item"),
            station=data.get("station"),
            duration=data.get("duration"),
        )


@dataclass(frozen=True)
class Item:
    """An item on offer to the player."""
    name: str
    category: str
    quantity: int = 3


@dataclass(frozen=True)
class Embellishment:
    """An optional creative variation for a task."""
    id: str
    bonus: int
    message: str


@dataclass(frozen=True)
class Recipe:
    """A task: an ordered list of steps under a time limit."""
    name: str
    steps: Tuple[Step, ...]
    time_limit: float
    difficulty: int = 1
    description: str = ""


@dataclass(frozen=True)
class RoundSnapshot:
    """
    What the game layer reports about the round in progress.

    The orchestrator reads one of these per tick and per event; it never
    holds on to one across ticks.

    Attributes:
        task_id: Recipe identifier
        current_step: Step the player is on (None once all steps are done)
        steps: Every step of the round, in order
        step_index: Index of current_step within steps
        step_in_progress: current_step is a timed step whose timer is running
        available_items: Items the player can currently use
        progress: Fraction of steps completed (0.0 to 1.0)
        mistakes: Mistakes made this round
        streak: Consecutive correct actions
        time_remaining: Seconds left on the clock
        time_limit: Seconds the round started with
        score: Points earned so far
        completed: Round finished successfully
        failed: Round ran out of time
    """
    task_id: str
    current_step: Optional[Step]
    steps: Tuple[Step, ...] = ()
    step_index: int = 0
    step_in_progress: bool = False
    available_items: Tuple[Item, ...] = ()
    progress: float = 0.0
    mistakes: int = 0
    streak: int = 0
    time_remaining: float = 0.0
    time_limit: float = 1.0
    score: int = 0
    completed: bool = False
    failed: bool = False

    @property
    def time_ratio(self) -> float:
        if self.time_limit <= 0:
            return 0.0
        return self.time_remaining / self.time_limit

    @property
    def finished(self) -> bool:
        return self.completed or self.failed

    @property
    def last_completed_step(self) -> Optional[Step]:
        """
        Step the most recent correct action was checked against.

        A timed step stays current while its timer runs; any other step
        has already been left behind by the time the snapshot is taken.
        """
        if self.step_in_progress:
            return self.current_step
        if 0 < self.step_index <= len(self.steps):
            return self.steps[self.step_index - 1]
        return self.current_step

    @property
    def remaining_steps(self) -> List[Step]:
        if self.current_step is None:
            return []
        return list(self.steps[self.step_index:]) or [self.current_step]


@dataclass(frozen=True)
class Utterance:
    """
    Something the coach says.

    Attributes:
        text: What to display
        duration: Seconds the bubble stays up
        kind: Origin of the line (stance, hint, advice, trivia, round, greeting)
    """
    text: str
    duration: float = 3.5
    kind: str = "stance"
