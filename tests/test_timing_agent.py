"""
Tests for the cooking duration policy.
"""
import pytest

from chef_coach.agents import TimingAgent, TimingBand
from chef_coach.agents.timing import HIGH_BURN_RISK, LOW_BURN_RISK, MEDIUM_BURN_RISK
from chef_coach.learning import AgentPresets
from chef_coach.types import Step, StepAction


COOK = Step(StepAction.COOK, "Cook the pancakes", station="stove", duration=4)
PLATE = Step(StepAction.PLATE, "Plate up", station="plate")


def greedy_agent() -> TimingAgent:
    return TimingAgent(AgentPresets.greedy(alpha=0.12, gamma=0.9))


class TestRecommend:
    """Tests for recommend()."""

    def test_untimed_step_is_instant(self):
        agent = greedy_agent()
        rec = agent.recommend(PLATE, "Pancakes")
        assert rec.is_instant
        assert rec.seconds == 0.0
        assert rec.risk is None
        assert rec.message == "Quick step!"

    def test_untrained_greedy_takes_earliest_band(self):
        agent = greedy_agent()
        rec = agent.recommend(COOK, "Pancakes")
        assert rec.band is TimingBand.VERY_EARLY
        assert rec.seconds == 2.0
        assert rec.risk == "undercooked"

    def test_seconds_scale_with_band(self):
        agent = greedy_agent()
        for _ in range(3):
            agent.learn("Pancakes", COOK, TimingBand.EARLY, True)

        rec = agent.recommend(COOK, "Pancakes")
        assert rec.band is TimingBand.EARLY
        assert rec.seconds == 3.0
        assert "3s" in rec.message

    def test_state_is_per_task(self):
        agent = greedy_agent()
        agent.learn("Pancakes", COOK, TimingBand.PERFECT, True)
        assert agent.recommend(COOK, "Pancakes").band is TimingBand.PERFECT
        assert agent.recommend(COOK, "Omelette").band is TimingBand.VERY_EARLY


class TestLearn:
    """Tests for learn() reward shaping."""

    def test_success_is_rewarded(self):
        agent = greedy_agent()
        value = agent.learn("Pancakes", COOK, TimingBand.PERFECT, True)
        assert value == pytest.approx(0.12 * 5.0)
        assert agent.perfect_timings == 1

    def test_very_late_failure_counts_as_burnt(self):
        agent = greedy_agent()
        value = agent.learn("Pancakes", COOK, TimingBand.VERY_LATE, False)
        assert value == pytest.approx(0.12 * -5.0)
        assert agent.burn_count == 1

    def test_other_failure_counts_as_late(self):
        agent = greedy_agent()
        value = agent.learn("Pancakes", COOK, TimingBand.LATE, False)
        assert value == pytest.approx(0.12 * -1.0)

    def test_history_tracks_attempts(self):
        agent = greedy_agent()
        agent.learn("Pancakes", COOK, TimingBand.PERFECT, True, actual_duration=4.2)
        agent.learn("Pancakes", COOK, TimingBand.LATE, False, actual_duration=5.0)

        history = agent.detailed_stats()["timing_history"]["Pancakes:cook"]
        assert history["attempts"] == 2
        assert history["successes"] == 1
        assert history["total_duration"] == pytest.approx(9.2)


class TestBurnRisk:
    """Tests for burn_risk()."""

    def test_untimed_step_has_no_risk(self):
        assert greedy_agent().burn_risk("Pancakes", PLATE) == 0.0

    def test_medium_by_default(self):
        assert greedy_agent().burn_risk("Pancakes", COOK) == MEDIUM_BURN_RISK

    def test_high_after_repeated_burns(self):
        agent = greedy_agent()
        for _ in range(20):
            agent.learn("Pancakes", COOK, TimingBand.VERY_LATE, False)
        assert agent.burn_risk("Pancakes", COOK) == HIGH_BURN_RISK

    def test_low_after_repeated_perfect_timing(self):
        agent = greedy_agent()
        for _ in range(20):
            agent.learn("Pancakes", COOK, TimingBand.PERFECT, True)
        assert agent.burn_risk("Pancakes", COOK) == LOW_BURN_RISK

    def test_burns_outweigh_good_timing(self):
        agent = greedy_agent()
        for _ in range(20):
            agent.learn("Pancakes", COOK, TimingBand.PERFECT, True)
            agent.learn("Pancakes", COOK, TimingBand.VERY_LATE, False)
        assert agent.burn_risk("Pancakes", COOK) == HIGH_BURN_RISK


class TestEncouragementAndState:
    """Tests for countdown lines and serialization."""

    @pytest.mark.parametrize("remaining,key", [
        (9.0, "plenty"),
        (5.0, "halfway"),
        (3.0, "close"),
        (1.0, "now"),
        (0.0, "done"),
    ])
    def test_encouragement_bands(self, remaining, key):
        agent = greedy_agent()
        line = agent.encouragement(remaining, 10.0)
        assert line in agent.catalog.messages.encouragement[key]

    def test_state_survives_export(self):
        agent = greedy_agent()
        for _ in range(5):
            agent.learn("Pancakes", COOK, TimingBand.LATE, True)

        restored = greedy_agent()
        restored.load_dict(agent.to_dict())

        assert restored.recommend(COOK, "Pancakes").band is TimingBand.LATE
        assert restored.perfect_timings == 5

    def test_reset_forgets(self):
        agent = greedy_agent()
        agent.learn("Pancakes", COOK, TimingBand.VERY_LATE, False)
        agent.reset()
        assert agent.burn_count == 0
        assert agent.timing_history == {}
        assert len(agent.q_table) == 0
