"""
Tick-driven simulation of one round.

Validates player actions against the recipe's current step, keeps score
and streaks, runs timed steps down on `tick`, and produces the
`RoundSnapshot` the coach reads. Time only advances through `tick`, so a
round replays identically for the same inputs.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .types import Embellishment, Item, Recipe, RoundSnapshot, Step, StepAction

logger = logging.getLogger(__name__)

STEP_POINTS = 10
COMPLETION_BONUS = 20
TIME_BONUS = 5
PERFECT_BONUS = 15


@dataclass
class ActionResult:
    """
    Outcome of one attempted action.

    Attributes:
        success: The action matched the current step
        message: Feedback line for the player
        reward: Game-side reward for the attempt (negative on mistakes)
        wait_for_timer: A timed step started and completes on tick()
        streak: Streak after the attempt
        step: Step the attempt was checked against
    """
    success: bool
    message: str
    reward: float = 0.0
    wait_for_timer: bool = False
    streak: int = 0
    step: Optional[Step] = None


@dataclass
class TickResult:
    done: bool
    message: str = ""
    reward: float = 0.0
    remaining: float = 0.0
    step: Optional[Step] = None


def streak_bonus(streak: int) -> int:
    if streak == 3:
        return 3
    if streak == 5:
        return 5
    if streak >= 7:
        return 8
    return 0


class RoundTracker:
    """
    State of one attempt at a recipe.

    Attributes:
        recipe: Recipe being cooked
        step_index: Index of the current step
        elapsed: Seconds of round time consumed
        score: Points so far, including bonuses
        mistakes: Wrong actions, stations or items
        streak: Consecutive correct actions
        best_streak: Longest streak this round
        embellishment: Creative variation applied at the end, if any
        log: Human-readable event log
    """

    def __init__(self, recipe: Recipe):
        self.recipe = recipe
        self.step_index = 0
        self.elapsed = 0.0
        self.completed = False
        self.failed = False
        self.score = 0
        self.mistakes = 0
        self.streak = 0
        self.best_streak = 0
        self.step_timer = 0.0
        self.step_in_progress = False
        self.embellishment: Optional[Embellishment] = None
        self.embellishment_bonus = 0
        self.log: List[str] = []

    @property
    def current_step(self) -> Optional[Step]:
        if self.step_index >= len(self.recipe.steps):
            return None
        return self.recipe.steps[self.step_index]

    @property
    def progress(self) -> float:
        return self.step_index / len(self.recipe.steps) if self.recipe.steps else 1.0

    @property
    def remaining(self) -> float:
        return max(0.0, self.recipe.time_limit - self.elapsed)

    @property
    def finished(self) -> bool:
        return self.completed or self.failed

    def _mistake(self, message: str, reward: float, step: Step) -> ActionResult:
        self.mistakes += 1
        self.streak = 0
        self.log.append(message)
        return ActionResult(success=False, message=message, reward=reward, step=step)

    def _complete(self) -> float:
        self.completed = True
        time_bonus = TIME_BONUS if self.remaining > 0 else 0
        perfect_bonus = PERFECT_BONUS if self.mistakes == 0 else 0
        self.score += COMPLETION_BONUS + time_bonus + perfect_bonus
        logger.debug(f"Round {self.recipe.name} complete: score={self.score} mistakes={self.mistakes}")
        return 10 + time_bonus + perfect_bonus

    def attempt_action(
        self,
        action: StepAction,
        station: Optional[str],
        item: Optional[str] = None,
    ) -> ActionResult:
        """
        Check an action against the current step and advance on success.

        Wrong action, station or item each count as a mistake and reset
        the streak.
        """
        if self.finished:
            return ActionResult(success=False, message="Recipe already finished!")

        if self.remaining <= 0:
            self.failed = True
            return ActionResult(success=False, message="Time's up!", reward=-5)

        step = self.current_step
        if step is None:
            return ActionResult(success=False, message="No more steps!")

        if self.step_in_progress:
            return ActionResult(success=False, message="Wait for it...", step=step)

        if step.action != action:
            return self._mistake(f"Hmm, try to {step.action.value} instead!", -2, step)

        if step.station and step.station != station:
            return self._mistake(f"Use the {step.station} for this step!", -1, step)

        if step.required_item and item and step.required_item != item:
            return self._mistake(f"We need {step.required_item}, not {item}!", -3, step)

        self.streak += 1
        self.best_streak = max(self.best_streak, self.streak)
        bonus = streak_bonus(self.streak)
        self.score += STEP_POINTS + bonus
        self.log.append(f"Step {self.step_index + 1}: {step.description}")

        if step.duration:
            self.step_in_progress = True
            self.step_timer = float(step.duration)
            return ActionResult(
                success=True,
                message=f"{step.description} ({step.duration:g}s)",
                reward=2 + bonus,
                wait_for_timer=True,
                streak=self.streak,
                step=step,
            )

        self.step_index += 1
        if self.current_step is None:
            reward = self._complete()
            return ActionResult(success=True, message="Recipe complete!", reward=reward,
                                streak=self.streak, step=step)

        return ActionResult(
            success=True,
            message=f"Great! Next: {self.current_step.description}",
            reward=2 + bonus,
            streak=self.streak,
            step=step,
        )

    def tick(self, dt: float) -> Optional[TickResult]:
        """
        Advance round time; finishes a timed step when its timer runs out.

        Returns:
            Timed-step progress, or None when no timed step is running
        """
        if self.finished:
            return None

        self.elapsed += dt
        if self.remaining <= 0 and not self.step_in_progress:
            self.failed = True
            logger.debug(f"Round {self.recipe.name} failed: out of time")
            return None

        if not self.step_in_progress:
            return None

        self.step_timer -= dt
        if self.step_timer > 0:
            return TickResult(done=False, remaining=self.step_timer, step=self.current_step)

        step = self.current_step
        self.step_in_progress = False
        self.step_timer = 0.0
        self.step_index += 1

        if self.current_step is None:
            reward = self._complete()
            return TickResult(done=True, message="Recipe complete!", reward=reward, step=step)
        return TickResult(done=True, message=f"Done! Next: {self.current_step.description}",
                          reward=2, step=step)

    def apply_embellishment(self, embellishment: Embellishment) -> int:
        """Add a creative variation's bonus to the score."""
        self.embellishment = embellishment
        self.embellishment_bonus = embellishment.bonus
        self.score += embellishment.bonus
        self.log.append(f"Creative bonus: {embellishment.message} (+{embellishment.bonus})")
        return embellishment.bonus

    def star_rating(self) -> int:
        """0-5 stars from score, time left, mistakes, streak and creativity."""
        steps = len(self.recipe.steps)
        time_ratio = self.remaining / self.recipe.time_limit if self.recipe.time_limit else 0.0
        mistake_ratio = self.mistakes / max(1, steps)

        rating = 2.0
        if self.score > steps * STEP_POINTS:
            rating += 1
        if time_ratio > 0.3:
            rating += 1
        if mistake_ratio < 0.15:
            rating += 1
        if self.best_streak >= 3:
            rating += 0.5
        if self.embellishment:
            rating += 0.5
        # halves round up
        return min(5, max(0, int(rating + 0.5)))

    def snapshot(self, available_items: Sequence[Item] = ()) -> RoundSnapshot:
        return RoundSnapshot(
            task_id=self.recipe.name,
            current_step=self.current_step,
            steps=self.recipe.steps,
            step_index=self.step_index,
            step_in_progress=self.step_in_progress,
            available_items=tuple(available_items),
            progress=self.progress,
            mistakes=self.mistakes,
            streak=self.streak,
            time_remaining=self.remaining,
            time_limit=self.recipe.time_limit,
            score=self.score,
            completed=self.completed,
            failed=self.failed,
        )
