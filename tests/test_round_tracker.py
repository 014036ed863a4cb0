"""
Tests for the tick-driven round simulation.
"""
import pytest

from chef_coach.round_tracker import RoundTracker, streak_bonus
from chef_coach.types import Embellishment, Item, Recipe, Step, StepAction


RECIPE = Recipe(
    name="Toast",
    time_limit=60,
    steps=(
        Step(StepAction.PICK, "Grab bread", required_item="Bread", station="cutting"),
        Step(StepAction.COOK, "Toast it", station="stove", duration=2),
        Step(StepAction.PLATE, "Serve", station="plate"),
    ),
)


def play_perfect(tracker: RoundTracker) -> None:
    tracker.attempt_action(StepAction.PICK, "cutting", "Bread")
    tracker.attempt_action(StepAction.COOK, "stove")
    tracker.tick(1.0)
    tracker.tick(1.0)
    tracker.attempt_action(StepAction.PLATE, "plate")


class TestAttemptAction:
    """Tests for attempt_action()."""

    def test_correct_action_advances(self):
        tracker = RoundTracker(RECIPE)
        result = tracker.attempt_action(StepAction.PICK, "cutting", "Bread")

        assert result.success
        assert result.step is RECIPE.steps[0]
        assert tracker.step_index == 1
        assert tracker.score == 10
        assert tracker.streak == 1

    def test_wrong_action(self):
        tracker = RoundTracker(RECIPE)
        result = tracker.attempt_action(StepAction.CHOP, "cutting")
        assert not result.success
        assert result.reward == -2
        assert tracker.mistakes == 1

    def test_wrong_station(self):
        tracker = RoundTracker(RECIPE)
        result = tracker.attempt_action(StepAction.PICK, "stove", "Bread")
        assert result.reward == -1
        assert tracker.mistakes == 1

    def test_wrong_item(self):
        tracker = RoundTracker(RECIPE)
        result = tracker.attempt_action(StepAction.PICK, "cutting", "Cheese")
        assert result.reward == -3
        assert "Bread" in result.message
        assert tracker.step_index == 0

    def test_mistake_resets_streak(self):
        tracker = RoundTracker(RECIPE)
        tracker.attempt_action(StepAction.PICK, "cutting", "Bread")
        tracker.attempt_action(StepAction.PLATE, "plate")
        assert tracker.streak == 0
        assert tracker.best_streak == 1


class TestTimedSteps:
    """Tests for steps with a duration."""

    def test_timed_step_waits_for_ticks(self):
        tracker = RoundTracker(RECIPE)
        tracker.attempt_action(StepAction.PICK, "cutting", "Bread")

        result = tracker.attempt_action(StepAction.COOK, "stove")
        assert result.success
        assert result.wait_for_timer
        assert tracker.step_index == 1

        tick = tracker.tick(1.0)
        assert not tick.done
        assert tick.remaining == pytest.approx(1.0)

        tick = tracker.tick(1.0)
        assert tick.done
        assert tracker.step_index == 2

    def test_actions_during_timer_are_not_mistakes(self):
        tracker = RoundTracker(RECIPE)
        tracker.attempt_action(StepAction.PICK, "cutting", "Bread")
        tracker.attempt_action(StepAction.COOK, "stove")

        result = tracker.attempt_action(StepAction.COOK, "stove")
        assert not result.success
        assert result.message == "Wait for it..."
        assert tracker.mistakes == 0
        assert tracker.step_index == 1

    def test_tick_without_timer(self):
        tracker = RoundTracker(RECIPE)
        assert tracker.tick(1.0) is None
        assert tracker.elapsed == 1.0


class TestCompletion:
    """Tests for completion, failure and scoring."""

    def test_perfect_round_score(self):
        tracker = RoundTracker(RECIPE)
        play_perfect(tracker)

        assert tracker.completed
        assert tracker.finished
        # 3 steps + streak bonus at 3 + completion + time + perfect
        assert tracker.score == 30 + 3 + 20 + 5 + 15

    def test_round_with_mistake_loses_perfect_bonus(self):
        tracker = RoundTracker(RECIPE)
        tracker.attempt_action(StepAction.CHOP, "cutting")
        play_perfect(tracker)
        assert tracker.score == 30 + 3 + 20 + 5

    def test_actions_after_finish_are_rejected(self):
        tracker = RoundTracker(RECIPE)
        play_perfect(tracker)
        result = tracker.attempt_action(StepAction.PLATE, "plate")
        assert result.message == "Recipe already finished!"

    def test_running_out_of_time_fails(self):
        tracker = RoundTracker(RECIPE)
        tracker.tick(61.0)
        assert tracker.failed
        assert not tracker.completed
        assert tracker.remaining == 0.0

    def test_streak_bonuses(self):
        assert [streak_bonus(n) for n in range(1, 10)] == [0, 0, 3, 0, 5, 0, 8, 8, 8]


class TestRatingAndSnapshot:
    """Tests for star_rating(), embellishments and snapshot()."""

    def test_perfect_round_gets_five_stars(self):
        tracker = RoundTracker(RECIPE)
        play_perfect(tracker)
        assert tracker.star_rating() == 5

    def test_failed_round_rating(self):
        tracker = RoundTracker(RECIPE)
        tracker.attempt_action(StepAction.CHOP, "cutting")
        tracker.tick(61.0)
        # base 2, nothing else earned
        assert tracker.star_rating() == 2

    def test_embellishment_adds_bonus(self):
        tracker = RoundTracker(RECIPE)
        play_perfect(tracker)
        before = tracker.score

        added = tracker.apply_embellishment(Embellishment("jam", 3, "Jam on top!"))

        assert added == 3
        assert tracker.score == before + 3
        assert tracker.embellishment.id == "jam"

    def test_snapshot_reflects_state(self):
        tracker = RoundTracker(RECIPE)
        tracker.attempt_action(StepAction.PICK, "cutting", "Bread")
        tracker.tick(10.0)
        items = [Item("Bread", "grain")]

        snap = tracker.snapshot(items)

        assert snap.task_id == "Toast"
        assert snap.current_step is RECIPE.steps[1]
        assert snap.step_index == 1
        assert snap.progress == pytest.approx(1 / 3)
        assert snap.time_remaining == pytest.approx(50.0)
        assert snap.time_ratio == pytest.approx(50 / 60)
        assert snap.available_items == (Item("Bread", "grain"),)
        assert snap.remaining_steps == list(RECIPE.steps[1:])
        assert not snap.finished
