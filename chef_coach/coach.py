"""
Coach orchestrator.

Composes the four policies into one behaviour stream. The host calls
`update(dt, snapshot)` once per frame and the `on_player_*` /
`on_round_complete` callbacks on discrete game events; every policy call
and learning update triggered from them completes before they return.

The orchestrator owns no learned state. It keeps only per-round scratch:
the active stance, timers, the emotion label and what it is saying.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .agents.creativity import CreativityAgent
from .agents.ingredient import IngredientAgent
from .agents.strategy import PlayerProfile, SkillTier, Stance, StrategyAgent, StrategyDecision
from .agents.timing import TimingAgent, TimingBand
from .catalog import Catalog, DEFAULT_CATALOG
from .config import CoachConfig
from .learning.rewards import RewardTable
from .logging_config import log_event
from .types import Embellishment, RoundSnapshot, Step, StepAction, Utterance

logger = logging.getLogger(__name__)


class Emotion(str, Enum):
    HAPPY = "happy"
    EXCITED = "excited"
    WORRIED = "worried"
    THINKING = "thinking"
    PROUD = "proud"
    ENCOURAGING = "encouraging"


@dataclass
class RoundSummary:
    """
    What the coach concluded at the end of a round.

    Attributes:
        task_id: Recipe the round was for
        completed: Round finished successfully
        score: Score reported by the game, before the bonus
        bonus: Embellishment bonus to add to the score (0 if none applied)
        embellishment: Embellishment offered for the round, if any
        message: Post-round line the coach said
        profile: Player profile after recording the round
    """
    task_id: str
    completed: bool
    score: float
    bonus: int
    embellishment: Optional[Embellishment]
    message: str
    profile: PlayerProfile

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "completed": self.completed,
            "score": self.score,
            "bonus": self.bonus,
            "embellishment": (
                {"id": self.embellishment.id, "bonus": self.embellishment.bonus,
                 "message": self.embellishment.message}
                if self.embellishment else None
            ),
            "message": self.message,
            "profile": self.profile.to_dict(),
        }


def assess_skill(snapshot: RoundSnapshot) -> SkillTier:
    """Three-tier skill estimate from mistakes, progress and time left."""
    ratio = snapshot.time_ratio
    if snapshot.mistakes > 3 or (snapshot.progress < 0.2 and ratio < 0.5):
        return SkillTier.STRUGGLING
    if snapshot.mistakes == 0 and snapshot.progress > 0.3 and ratio > 0.5:
        return SkillTier.ADVANCED
    return SkillTier.INTERMEDIATE


def classify_emotion(snapshot: Optional[RoundSnapshot], worried_time: float = 20.0) -> Emotion:
    """Expression for the current tick; depends on nothing but the snapshot."""
    if snapshot is None:
        return Emotion.HAPPY
    if snapshot.completed:
        return Emotion.PROUD if snapshot.mistakes == 0 else Emotion.EXCITED
    if snapshot.streak >= 5:
        return Emotion.EXCITED
    if snapshot.time_remaining < worried_time:
        return Emotion.WORRIED
    if snapshot.mistakes > 2:
        return Emotion.ENCOURAGING
    if snapshot.progress > 0.5:
        return Emotion.HAPPY
    return Emotion.THINKING


class CoachOrchestrator:
    """
    The coach character's decision layer.

    Attributes:
        ingredient, timing, strategy, creativity: The four policies
        decision: Stance decision active this round (None until the first cycle)
        emotion: Expression label recomputed every tick
        utterance: Line currently displayed, if any
        idle_time: Seconds since the player last acted
        action_interval: Seconds between stance decisions (shrinks while competing)
        suggestion: Embellishment offered this round, if any
    """

    def __init__(
        self,
        config: Optional[CoachConfig] = None,
        catalog: Catalog = DEFAULT_CATALOG,
        session_id: str = "default",
    ):
        self.config = config or CoachConfig()
        self.catalog = catalog
        self.session_id = session_id
        self.rewards = RewardTable(self.config.reward_overrides)
        self.rng = random.Random(self.config.prng_seed)

        self.ingredient = IngredientAgent(self.config.agent_config("ingredient"), catalog, self.rewards)
        self.timing = TimingAgent(self.config.agent_config("timing"), catalog, self.rewards)
        self.strategy = StrategyAgent(
            self.config.agent_config("strategy"),
            catalog,
            self.rewards,
            help_idle_threshold=self.config.help_idle_threshold,
            teach_idle_threshold=self.config.teach_idle_threshold,
            struggling_idle_threshold=self.config.struggling_idle_threshold,
        )
        self.creativity = CreativityAgent(self.config.agent_config("creativity"), catalog, self.rewards)

        self.emotion = Emotion.HAPPY
        self.utterance: Optional[Utterance] = None
        self.utterance_remaining = 0.0
        self._reset_round_state()

    def _reset_round_state(self) -> None:
        self.decision: Optional[StrategyDecision] = None
        self.strategy.current_stance = None
        self.idle_time = 0.0
        self.action_timer = 0.0
        self.action_interval = self.config.action_interval
        self.suggestion: Optional[Embellishment] = None

    @property
    def current_stance(self) -> Optional[Stance]:
        return self.decision.stance if self.decision else None

    def _log(self, event_type: str, msg: str, **fields: Any) -> None:
        log_event(logger, event_type, msg, session_id=self.session_id, **fields)

    def say(self, text: str, duration: Optional[float] = None, kind: str = "stance") -> Utterance:
        """Replace whatever the coach is saying."""
        utterance = Utterance(
            text=text,
            duration=self.config.stance_duration if duration is None else duration,
            kind=kind,
        )
        self.utterance = utterance
        self.utterance_remaining = utterance.duration
        return utterance

    # ------------------------------------------------------------------
    # Per-frame driver
    # ------------------------------------------------------------------

    def update(self, dt: float, snapshot: Optional[RoundSnapshot]) -> Optional[Utterance]:
        """
        Advance timers by `dt` seconds and act if it is time to.

        Returns:
            A line the coach started saying this tick, or None
        """
        if self.utterance is not None:
            self.utterance_remaining -= dt
            if self.utterance_remaining <= 0:
                self.utterance = None
                self.utterance_remaining = 0.0

        self.idle_time += dt
        self.emotion = classify_emotion(snapshot, self.config.worried_time)

        if snapshot is None or snapshot.finished:
            return None

        said = None
        if self.idle_time > self.config.idle_hint_threshold and self.utterance is None:
            said = self._idle_hint(snapshot)

        self.action_timer += dt
        if self.action_timer >= self.action_interval:
            self.action_timer = 0.0
            said = self.perform_action(snapshot) or said
        return said

    def _idle_hint(self, snapshot: RoundSnapshot) -> Optional[Utterance]:
        step = snapshot.current_step
        if step is None:
            return None

        template = self.catalog.messages.hints.get(step.action.value)
        if template:
            hint = template.format(item=step.required_item or "item", station=step.station or "station")
        else:
            hint = f"Try: {step.description}"

        self.idle_time = 0.0
        self._log("idle_hint", f"Idle hint: {hint}", step=step.action.value)
        return self.say(hint, self.config.hint_duration, kind="hint")

    def perform_action(self, snapshot: RoundSnapshot) -> Optional[Utterance]:
        """Run one decision cycle: assess, pick a stance, dispatch on it."""
        step = snapshot.current_step
        if step is None:
            return None

        if self.config.mid_round_suggestions and self.suggestion is None:
            suggestion = self.creativity.suggest_mid_round(
                snapshot.task_id, snapshot.step_index, len(snapshot.steps)
            )
            if suggestion is not None:
                self.suggestion = suggestion
                self._log("suggestion", f"Mid-round suggestion {suggestion.id}", task=snapshot.task_id)
                return self.say(suggestion.message, self.config.advice_duration, kind="creative")

        tier = assess_skill(snapshot)
        decision = self.strategy.decide(tier, snapshot.progress, snapshot.streak)
        previous = self.current_stance
        if previous is not decision.stance:
            self._log(
                "stance_change",
                f"Stance {previous.value if previous else None} -> {decision.stance.value}",
                agent=self.strategy.name,
                tier=tier.value,
            )
        self.decision = decision

        stance = decision.stance
        if stance is Stance.HELP or stance is Stance.TEACH:
            return self._give_advice(snapshot, step, decision)
        elif stance is Stance.COMPETE:
            self.action_interval = max(
                self.config.min_action_interval,
                self.action_interval - self.config.compete_interval_step,
            )
            return self.say(decision.message, kind="stance")
        elif stance is Stance.CHEER:
            return self.say(decision.message, kind="stance")
        elif stance is Stance.NEUTRAL:
            if self.rng.random() < self.config.trivia_chance:
                return self.say(self.creativity.fun_fact(), self.config.advice_duration, kind="trivia")
            return self.say(decision.message, kind="stance")
        raise ValueError(f"Unhandled stance: {stance}")

    def _give_advice(self, snapshot: RoundSnapshot, step: Step, decision: StrategyDecision) -> Utterance:
        if step.action is StepAction.PICK and step.required_item:
            msg = self.ingredient.recommendation_message(step, snapshot.available_items)
        elif step.duration:
            msg = self.timing.recommend(step, snapshot.task_id).message
        else:
            msg = self.creativity.cooking_tip(step.action)
        return self.say(msg or decision.message, self.config.advice_duration, kind="advice")

    def should_auto_assist(self, snapshot: RoundSnapshot) -> bool:
        return self.strategy.should_auto_assist(assess_skill(snapshot), self.idle_time)

    # ------------------------------------------------------------------
    # Game events
    # ------------------------------------------------------------------

    def start_round(self, snapshot: RoundSnapshot) -> Utterance:
        """Clear per-round state and greet the player."""
        self._reset_round_state()
        self._log("round_start", f"Round started: {snapshot.task_id}", task=snapshot.task_id)
        greeting = self.catalog.messages.greeting.format(task=snapshot.task_id)
        return self.say(greeting, self.config.hint_duration, kind="greeting")

    def on_player_success(
        self,
        snapshot: RoundSnapshot,
        step: Optional[Step] = None,
        item_name: Optional[str] = None,
    ) -> None:
        """
        Feed a correct action back into the policies.

        Args:
            snapshot: Round state after the action
            step: Step the action completed (defaults to snapshot.last_completed_step)
            item_name: Item used, for pick steps
        """
        self.idle_time = 0.0
        step = step or snapshot.last_completed_step
        if step is None:
            return

        if step.action is StepAction.PICK and item_name:
            self.ingredient.learn(step, item_name, True, snapshot.available_items)

        if step.duration:
            self.timing.learn(snapshot.task_id, step, TimingBand.PERFECT, True)

        if self.current_stance is not None:
            self.strategy.learn(
                assess_skill(snapshot), snapshot.progress, self.current_stance, 1, snapshot.streak
            )

    def on_player_mistake(
        self,
        snapshot: RoundSnapshot,
        step: Optional[Step] = None,
        item_name: Optional[str] = None,
    ) -> None:
        """Feed a wrong action back into the policies."""
        self.idle_time = 0.0
        step = step or snapshot.current_step

        if step is not None and step.action is StepAction.PICK and item_name:
            self.ingredient.learn(step, item_name, False, snapshot.available_items)

        if self.current_stance is not None:
            self.strategy.learn(
                assess_skill(snapshot), snapshot.progress, self.current_stance, -1, snapshot.streak
            )

    def on_round_complete(self, snapshot: RoundSnapshot) -> RoundSummary:
        """
        Record the round, settle the embellishment and reset round state.

        The bonus in the returned summary is not added to any score here;
        the host applies it to its own round state.
        """
        tier = assess_skill(snapshot)
        profile = self.strategy.record_round(
            tier, self.current_stance or Stance.NEUTRAL, 1, snapshot.score
        )

        if self.suggestion is None:
            self.suggestion = self.creativity.suggest(snapshot.task_id, snapshot.available_items)

        bonus = 0
        if self.suggestion is not None and snapshot.completed:
            bonus = self.suggestion.bonus
            self.creativity.learn(snapshot.task_id, self.suggestion.id, True)

        message = self.strategy.post_round_message(snapshot.completed, snapshot.mistakes)
        self.say(message, self.config.round_message_duration, kind="round")

        summary = RoundSummary(
            task_id=snapshot.task_id,
            completed=snapshot.completed,
            score=snapshot.score,
            bonus=bonus,
            embellishment=self.suggestion,
            message=message,
            profile=profile,
        )
        self._log(
            "round_complete",
            f"Round {snapshot.task_id} {'completed' if snapshot.completed else 'failed'} "
            f"score={snapshot.score} bonus={bonus}",
            task=snapshot.task_id,
            tier=tier.value,
            trend=profile.improvement_trend,
        )

        self._reset_round_state()
        return summary

    # ------------------------------------------------------------------
    # Diagnostics and lifecycle
    # ------------------------------------------------------------------

    def stats(self) -> Dict[str, Any]:
        """Per-policy table snapshots for a debug overlay."""
        creativity = self.creativity.stats().to_dict()
        creativity["acceptance_rate"] = self.creativity.acceptance_rate()
        return {
            "ingredient": self.ingredient.stats().to_dict(),
            "timing": self.timing.stats().to_dict(),
            "strategy": self.strategy.stats().to_dict(),
            "creativity": creativity,
            "stance": self.current_stance.value if self.current_stance else None,
            "emotion": self.emotion.value,
            "profile": self.strategy.profile.to_dict(),
        }

    def export_state(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "ingredient": self.ingredient.to_dict(),
            "timing": self.timing.to_dict(),
            "strategy": self.strategy.to_dict(),
            "creativity": self.creativity.to_dict(),
        }

    def import_state(self, data: Dict[str, Any]) -> None:
        for agent in (self.ingredient, self.timing, self.strategy, self.creativity):
            if agent.name in data:
                agent.load_dict(data[agent.name])
        self._log("state_imported", "Learned state imported")

    def reset_session(self) -> None:
        """Discard everything learned and start a fresh session."""
        for agent in (self.ingredient, self.timing, self.strategy, self.creativity):
            agent.reset()
        self.utterance = None
        self.utterance_remaining = 0.0
        self.emotion = Emotion.HAPPY
        self._reset_round_state()
        self._log("session_reset", "Session reset")
