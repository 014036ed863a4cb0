"""
Simulated play sessions.

Runs a seeded simulated player through recipes against a `RoundTracker`
while a `CoachOrchestrator` watches, so coach behaviour and learning can be
exercised end to end without a game client.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .catalog import Catalog, DEFAULT_CATALOG
from .coach import CoachOrchestrator
from .config import CoachConfig
from .learning.persistence_hooks import LearningPersistence
from .round_tracker import RoundTracker
from .types import Item, Recipe, StepAction

logger = logging.getLogger(__name__)

PlayerMove = Tuple[StepAction, Optional[str], Optional[str]]


class SimulatedPlayer:
    """
    A player that gets each step right with probability `skill`.

    Between actions it thinks for `think_time` seconds, or now and then
    stalls for `idle_time` seconds (long enough to draw an idle hint).
    """

    def __init__(
        self,
        skill: float = 0.7,
        seed: Optional[int] = None,
        think_time: float = 1.0,
        idle_chance: float = 0.1,
        idle_time: float = 6.0,
    ):
        self.skill = max(0.0, min(1.0, skill))
        self.rng = random.Random(seed)
        self.think_time = think_time
        self.idle_chance = idle_chance
        self.idle_time = idle_time

    def delay(self) -> float:
        if self.rng.random() < self.idle_chance:
            return self.idle_time
        return self.think_time

    def choose(self, tracker: RoundTracker, items: Sequence[Item]) -> Optional[PlayerMove]:
        step = tracker.current_step
        if step is None:
            return None

        if self.rng.random() < self.skill:
            return step.action, step.station, step.required_item

        if step.required_item:
            wrong = [i.name for i in items if i.name != step.required_item]
            if wrong:
                return step.action, step.station, self.rng.choice(wrong)

        wrong_actions = [a for a in StepAction if a is not step.action]
        return self.rng.choice(wrong_actions), step.station, None


@dataclass
class RoundResult:
    task_id: str
    completed: bool
    score: int
    stars: int
    mistakes: int
    stance: Optional[str]
    embellishment: Optional[str]
    bonus: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "completed": self.completed,
            "score": self.score,
            "stars": self.stars,
            "mistakes": self.mistakes,
            "stance": self.stance,
            "embellishment": self.embellishment,
            "bonus": self.bonus,
        }


@dataclass
class SessionReport:
    """Outcome of a simulated session."""
    rounds: List[RoundResult] = field(default_factory=list)
    acceptance_rate: float = 0.0
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def completion_rate(self) -> float:
        if not self.rounds:
            return 0.0
        return sum(1 for r in self.rounds if r.completed) / len(self.rounds)

    @property
    def average_score(self) -> float:
        if not self.rounds:
            return 0.0
        return sum(r.score for r in self.rounds) / len(self.rounds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rounds": [r.to_dict() for r in self.rounds],
            "completion_rate": self.completion_rate,
            "average_score": self.average_score,
            "acceptance_rate": self.acceptance_rate,
            "stats": self.stats,
        }


def play_round(
    coach: CoachOrchestrator,
    player: SimulatedPlayer,
    recipe: Recipe,
    items: Sequence[Item],
    dt: float = 0.5,
) -> RoundResult:
    """Play one recipe to completion or timeout."""
    tracker = RoundTracker(recipe)
    coach.start_round(tracker.snapshot(items))
    wait = player.delay()

    while not tracker.finished:
        tracker.tick(dt)
        coach.update(dt, tracker.snapshot(items))
        if tracker.finished:
            break

        wait -= dt
        if wait > 0 or tracker.step_in_progress:
            continue

        move = player.choose(tracker, items)
        if move is None:
            break
        action, station, item = move
        result = tracker.attempt_action(action, station, item)
        snapshot = tracker.snapshot(items)

        if result.success:
            coach.on_player_success(snapshot, result.step, item)
        elif result.step is not None and not tracker.step_in_progress:
            coach.on_player_mistake(snapshot, result.step, item)
        wait = player.delay()

    summary = coach.on_round_complete(tracker.snapshot(items))
    if summary.bonus and summary.embellishment is not None:
        tracker.apply_embellishment(summary.embellishment)

    return RoundResult(
        task_id=recipe.name,
        completed=tracker.completed,
        score=tracker.score,
        stars=tracker.star_rating(),
        mistakes=tracker.mistakes,
        stance=coach.strategy.round_history[-1].stance,
        embellishment=summary.embellishment.id if summary.embellishment else None,
        bonus=summary.bonus,
    )


def run_session(
    rounds: int = 5,
    skill: float = 0.7,
    seed: Optional[int] = None,
    config: Optional[CoachConfig] = None,
    catalog: Catalog = DEFAULT_CATALOG,
    recipes: Optional[Sequence[str]] = None,
    dt: float = 0.5,
    persistence: Optional[LearningPersistence] = None,
    snapshot_every: int = 1,
    session_id: str = "simulated",
    coach: Optional[CoachOrchestrator] = None,
) -> SessionReport:
    """
    Run a simulated session of several rounds.

    Args:
        rounds: Number of rounds to play
        skill: Probability the player gets a step right
        seed: Seed for the player (the coach is seeded through config)
        config: Coach configuration
        catalog: Reference data
        recipes: Recipe names to cycle through (all catalog recipes by default)
        dt: Simulated seconds per tick
        persistence: Optional snapshot target for the learned state
        snapshot_every: Snapshot after every n-th round
        session_id: Session label used in logs and snapshot file names
        coach: Existing coach to keep training (a new one otherwise)
    """
    coach = coach or CoachOrchestrator(config, catalog, session_id=session_id)
    player = SimulatedPlayer(skill=skill, seed=seed)

    names = list(recipes) if recipes else catalog.recipe_names()
    playable = [catalog.recipe(n) for n in names if catalog.recipe(n) is not None]
    if not playable:
        logger.warning(f"No playable recipes among {names}")
        return SessionReport()

    report = SessionReport()
    for i in range(rounds):
        recipe = playable[i % len(playable)]
        result = play_round(coach, player, recipe, catalog.ingredients, dt=dt)
        report.rounds.append(result)
        logger.info(
            f"Round {i + 1}/{rounds} {recipe.name}: "
            f"{'completed' if result.completed else 'failed'} score={result.score} "
            f"stars={result.stars} stance={result.stance}"
        )

        if persistence is not None and persistence.should_snapshot(snapshot_every):
            persistence.snapshot(session_id, coach)

    report.acceptance_rate = coach.creativity.acceptance_rate()
    report.stats = coach.stats()
    return report
