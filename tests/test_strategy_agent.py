"""
Tests for the behavioural stance policy and the player profile.
"""
import json
from dataclasses import FrozenInstanceError

import pytest

from chef_coach.agents import SkillTier, Stance, StrategyAgent, StrategyState
from chef_coach.learning import AgentPresets


def greedy_agent(**kwargs) -> StrategyAgent:
    return StrategyAgent(AgentPresets.greedy(alpha=0.1, gamma=0.85), **kwargs)


class TestDecide:
    """Tests for stance selection and learning."""

    def test_state_buckets(self):
        agent = greedy_agent()
        state = agent.state_for(SkillTier.ADVANCED, 0.44, 9)
        assert state == StrategyState("advanced", 0.4, "steady", 5)

    def test_progress_halves_round_up(self):
        agent = greedy_agent()
        assert agent.state_for(SkillTier.STRUGGLING, 0.25, 0).progress == 0.3
        assert agent.state_for(SkillTier.STRUGGLING, 0.35, 0).progress == 0.4
        assert agent.state_for(SkillTier.STRUGGLING, 1.0, 0).progress == 1.0

    def test_untrained_greedy_helps(self):
        agent = greedy_agent()
        decision = agent.decide(SkillTier.INTERMEDIATE, 0.5, 2)
        assert decision.stance is Stance.HELP
        assert decision.behavior_tag == "assist"
        assert decision.message in agent.catalog.messages.stance["help"]
        assert agent.current_stance is Stance.HELP

    def test_behavior_tags(self):
        assert Stance.COMPETE.behavior_tag == "race"
        assert Stance.NEUTRAL.behavior_tag == "observe"
        assert Stance.CHEER.behavior_tag == "encourage"
        assert Stance.TEACH.behavior_tag == "explain"

    def test_engagement_reward(self):
        agent = greedy_agent()
        value = agent.learn(SkillTier.INTERMEDIATE, 0.5, Stance.CHEER, 1, 2)
        assert value == pytest.approx(0.1 * 2.0)

        value = agent.learn(SkillTier.INTERMEDIATE, 0.5, Stance.TEACH, -1, 2)
        assert value == pytest.approx(0.1 * (-2.0 + 0.85 * 0.2))

    def test_learned_stance_is_chosen(self):
        agent = greedy_agent()
        agent.learn(SkillTier.ADVANCED, 0.6, Stance.COMPETE, 1, 3)
        assert agent.decide(SkillTier.ADVANCED, 0.6, 3).stance is Stance.COMPETE

    def test_punished_stance_is_avoided(self):
        agent = greedy_agent()
        agent.learn(SkillTier.STRUGGLING, 0.1, Stance.HELP, -1, 0)
        assert agent.decide(SkillTier.STRUGGLING, 0.1, 0).stance is Stance.COMPETE


class TestPlayerProfile:
    """Tests for round history and the derived profile."""

    def test_trend_compares_recent_and_older_windows(self):
        agent = greedy_agent()
        for score in [10, 20, 30, 5, 5, 5]:
            profile = agent.record_round(SkillTier.INTERMEDIATE, Stance.HELP, 1, score)
        assert profile.improvement_trend == pytest.approx(-15.0)
        assert not profile.is_improving
        assert profile.total_rounds == 6

    def test_single_round_has_no_trend(self):
        agent = greedy_agent()
        profile = agent.record_round(SkillTier.INTERMEDIATE, Stance.HELP, 1, 50)
        assert profile.improvement_trend == 0.0

    def test_short_history_compares_against_zero(self):
        agent = greedy_agent()
        agent.record_round(SkillTier.INTERMEDIATE, Stance.HELP, 1, 10)
        profile = agent.record_round(SkillTier.INTERMEDIATE, Stance.HELP, 1, 20)
        assert profile.improvement_trend == pytest.approx(15.0)
        assert profile.is_improving

    def test_improving_player_changes_state(self):
        agent = greedy_agent()
        agent.record_round(SkillTier.ADVANCED, Stance.CHEER, 1, 40)
        agent.record_round(SkillTier.ADVANCED, Stance.CHEER, 1, 60)
        assert agent.state_for(SkillTier.ADVANCED, 0.5, 1).trend == "improving"

    def test_preferred_stance_breaks_ties_by_first_seen(self):
        agent = greedy_agent()
        for stance in [Stance.HELP, Stance.CHEER, Stance.HELP, Stance.CHEER, Stance.TEACH]:
            profile = agent.record_round(SkillTier.INTERMEDIATE, stance, 1, 10)
        assert profile.preferred_stance is Stance.HELP

    def test_preferred_stance_uses_recent_rounds(self):
        agent = greedy_agent()
        stances = [Stance.TEACH, Stance.TEACH, Stance.CHEER, Stance.CHEER, Stance.NEUTRAL, Stance.CHEER]
        for stance in stances:
            profile = agent.record_round(SkillTier.INTERMEDIATE, stance, 1, 10)
        assert profile.preferred_stance is Stance.CHEER

    def test_records_are_immutable(self):
        agent = greedy_agent()
        agent.record_round(SkillTier.INTERMEDIATE, Stance.HELP, 1, 10)
        with pytest.raises(FrozenInstanceError):
            agent.round_history[0].score = 99


class TestAutoAssist:
    """Tests for should_auto_assist()."""

    def test_no_stance_intermediate_never_assists(self):
        agent = greedy_agent()
        assert not agent.should_auto_assist(SkillTier.INTERMEDIATE, 100.0)

    def test_struggling_threshold(self):
        agent = greedy_agent()
        assert not agent.should_auto_assist(SkillTier.STRUGGLING, 14.0)
        assert agent.should_auto_assist(SkillTier.STRUGGLING, 16.0)

    def test_help_and_teach_thresholds(self):
        agent = greedy_agent()
        agent.current_stance = Stance.HELP
        assert not agent.should_auto_assist(SkillTier.INTERMEDIATE, 7.0)
        assert agent.should_auto_assist(SkillTier.INTERMEDIATE, 9.0)

        agent.current_stance = Stance.TEACH
        assert not agent.should_auto_assist(SkillTier.INTERMEDIATE, 11.0)
        assert agent.should_auto_assist(SkillTier.INTERMEDIATE, 13.0)

    def test_custom_thresholds(self):
        agent = greedy_agent(help_idle_threshold=2.0)
        agent.current_stance = Stance.HELP
        assert agent.should_auto_assist(SkillTier.ADVANCED, 3.0)


class TestMessagesAndState:
    """Tests for post-round lines and serialization."""

    def test_post_round_pools(self):
        agent = greedy_agent()
        pools = agent.catalog.messages.post_round
        assert agent.post_round_message(True, 0) in pools["perfect"]
        assert agent.post_round_message(True, 2) in pools["completed"]
        assert agent.post_round_message(False, 0) in pools["failed"]

    def test_state_survives_json_export(self):
        agent = greedy_agent()
        agent.learn(SkillTier.ADVANCED, 0.6, Stance.TEACH, 1, 3)
        for score in [10, 30]:
            agent.record_round(SkillTier.ADVANCED, Stance.TEACH, 1, score)

        restored = greedy_agent()
        restored.load_dict(json.loads(json.dumps(agent.to_dict())))

        assert len(restored.round_history) == 2
        assert restored.profile.preferred_stance is Stance.TEACH
        assert restored.profile.improvement_trend == pytest.approx(20.0)

    def test_reset_forgets(self):
        agent = greedy_agent()
        agent.decide(SkillTier.ADVANCED, 0.6, 3)
        agent.record_round(SkillTier.ADVANCED, Stance.HELP, 1, 10)
        agent.reset()
        assert agent.current_stance is None
        assert agent.round_history == []
        assert agent.profile.total_rounds == 0
