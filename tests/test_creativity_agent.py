"""
Tests for the creative embellishment policy.
"""
import pytest

from chef_coach.agents import CreativityAgent
from chef_coach.learning import AgentPresets
from chef_coach.types import StepAction


def greedy_agent() -> CreativityAgent:
    return CreativityAgent(AgentPresets.greedy(alpha=0.1, gamma=0.8))


class TestSuggest:
    """Tests for suggest()."""

    def test_unknown_task_has_no_suggestion(self):
        agent = greedy_agent()
        assert agent.suggest("Mystery Stew") is None
        assert agent.total_suggestions == 0

    def test_suggestion_comes_from_catalog(self):
        agent = greedy_agent()
        emb = agent.suggest("Pancakes")
        assert emb in agent.catalog.embellishments["Pancakes"]
        assert agent.total_suggestions == 1
        assert agent.suggested("Pancakes") == {emb.id}

    def test_declined_suggestion_is_not_repeated_next(self):
        """Greedy policy never offers the same variation right after it was declined."""
        agent = greedy_agent()
        previous = None
        for _ in range(10):
            emb = agent.suggest("Pancakes")
            assert emb.id != previous
            agent.learn("Pancakes", emb.id, False)
            previous = emb.id

    def test_accepted_suggestion_is_valued(self):
        agent = greedy_agent()
        emb = agent.suggest("Fruit Salad")
        value = agent.learn("Fruit Salad", emb.id, True)
        assert value == pytest.approx(0.1 * 3.0)
        assert agent.accepted == 1

    def test_ledger_accumulates_per_task(self):
        agent = greedy_agent()
        for _ in range(3):
            emb = agent.suggest("Smoothie")
            agent.learn("Smoothie", emb.id, False)
        agent.suggest("Lemonade")

        assert len(agent.suggested("Smoothie")) >= 2
        assert len(agent.suggested("Lemonade")) == 1
        assert agent.suggested("Omelette") == set()


class TestAcceptanceRate:
    """Tests for acceptance_rate()."""

    def test_zero_without_suggestions(self):
        assert greedy_agent().acceptance_rate() == 0.0

    def test_ratio_of_used_suggestions(self):
        agent = greedy_agent()
        first = agent.suggest("Pancakes")
        agent.learn("Pancakes", first.id, True)
        second = agent.suggest("Pancakes")
        agent.learn("Pancakes", second.id, False)
        assert agent.acceptance_rate() == pytest.approx(0.5)


class TestMidRound:
    """Tests for suggest_mid_round()."""

    def test_outside_window_never_suggests(self, monkeypatch):
        agent = greedy_agent()
        monkeypatch.setattr(agent.rng, "random", lambda: 0.0)
        assert agent.suggest_mid_round("Pancakes", 1, 10) is None
        assert agent.suggest_mid_round("Pancakes", 10, 10) is None
        assert agent.suggest_mid_round("Pancakes", 0, 0) is None
        assert agent.total_suggestions == 0

    def test_inside_window_depends_on_chance(self, monkeypatch):
        agent = greedy_agent()
        monkeypatch.setattr(agent.rng, "random", lambda: 0.99)
        assert agent.suggest_mid_round("Pancakes", 5, 10) is None

        monkeypatch.setattr(agent.rng, "random", lambda: 0.1)
        assert agent.suggest_mid_round("Pancakes", 5, 10) is not None
        assert agent.total_suggestions == 1


class TestTriviaAndState:
    """Tests for trivia, tips and serialization."""

    def test_fun_fact(self):
        agent = greedy_agent()
        assert agent.fun_fact() in agent.catalog.messages.fun_facts

    def test_cooking_tip_matches_action(self):
        agent = greedy_agent()
        tips = agent.catalog.messages.cooking_tips
        assert agent.cooking_tip(StepAction.CHOP) in tips["chop"]
        assert agent.cooking_tip(None) in tips["pick"]

    def test_state_survives_export(self):
        agent = greedy_agent()
        emb = agent.suggest("Pancakes")
        agent.learn("Pancakes", emb.id, False)

        restored = greedy_agent()
        restored.load_dict(agent.to_dict())

        assert restored.total_suggestions == 1
        assert restored.suggested("Pancakes") == {emb.id}
        assert restored.suggest("Pancakes").id != emb.id

    def test_reset_forgets(self):
        agent = greedy_agent()
        agent.suggest("Pancakes")
        agent.reset()
        assert agent.total_suggestions == 0
        assert agent.ledger == {}
