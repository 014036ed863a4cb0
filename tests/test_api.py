"""
Tests for the HTTP API.
"""
import os
import tempfile

import pytest
from fastapi.testclient import TestClient

from chef_coach.api import create_app


ITEMS = [
    {"name": "Flour", "category": "dry"},
    {"name": "Egg", "category": "dairy"},
    {"name": "Milk", "category": "dairy"},
]
FLOUR_STEP = {"action": "pick", "description": "Add flour", "required_item": "Flour", "station": "mixer"}


def round_snapshot(**fields):
    data = {
        "task_id": "Pancakes",
        "current_step": FLOUR_STEP,
        "steps": [FLOUR_STEP, {"action": "mix", "station": "mixer", "duration": 3}],
        "available_items": ITEMS,
        "progress": 0.0,
        "time_remaining": 110.0,
        "time_limit": 120.0,
    }
    data.update(fields)
    return data


@pytest.fixture
def data_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def client(data_dir):
    return TestClient(create_app(data_dir=data_dir))


@pytest.fixture
def session(client):
    response = client.post("/sessions/s1", json={"preset": "deterministic"})
    assert response.status_code == 200
    return "s1"


class TestServiceRoutes:
    """Tests for health and preset listing."""

    def test_root(self, client):
        data = client.get("/").json()
        assert data["status"] == "ok"
        assert data["service"] == "chef-coach"
        assert data["sessions"] == 0

    def test_presets(self, client):
        assert "deterministic" in client.get("/presets").json()


class TestSessions:
    """Tests for session lifecycle."""

    def test_create_session(self, client):
        data = client.post("/sessions/abc", json={"preset": "deterministic", "seed": 7}).json()
        assert data == {"status": "created", "session_id": "abc", "seed": 7}
        assert client.get("/").json()["sessions"] == 1

    def test_create_with_default_preset(self, client):
        assert client.post("/sessions/abc").status_code == 200

    def test_unknown_preset(self, client):
        response = client.post("/sessions/abc", json={"preset": "frantic"})
        assert response.status_code == 400

    def test_unknown_session(self, client):
        response = client.post("/sessions/missing/tick", json={"dt": 1.0})
        assert response.status_code == 404
        assert client.get("/sessions/missing/stats").status_code == 404

    def test_invalid_tick(self, client, session):
        response = client.post(f"/sessions/{session}/tick", json={"dt": 0})
        assert response.status_code == 422


class TestRoundFlow:
    """Tests for ticks and player events."""

    def test_start_greets(self, client, session):
        data = client.post(f"/sessions/{session}/events/start",
                           json={"snapshot": round_snapshot()}).json()
        assert data["utterance"]["text"] == "Let's cook Pancakes!"
        assert data["utterance"]["kind"] == "greeting"

    def test_tick_runs_decision_cycle(self, client, session):
        data = client.post(f"/sessions/{session}/tick",
                           json={"dt": 5.0, "snapshot": round_snapshot()}).json()
        assert data["stance"] == "help"
        assert data["emotion"] == "thinking"
        assert data["utterance"]["kind"] == "advice"
        assert "Flour" in data["utterance"]["text"]
        assert data["auto_assist"] is False

    def test_tick_without_snapshot(self, client, session):
        data = client.post(f"/sessions/{session}/tick", json={"dt": 1.0}).json()
        assert data["stance"] is None
        assert data["emotion"] == "happy"
        assert data["utterance"] is None

    def test_success_and_mistake_feed_learning(self, client, session):
        body = {"snapshot": round_snapshot(), "step": FLOUR_STEP, "item_name": "Flour"}
        assert client.post(f"/sessions/{session}/events/success", json=body).status_code == 200

        body["item_name"] = "Egg"
        assert client.post(f"/sessions/{session}/events/mistake", json=body).status_code == 200

        stats = client.get(f"/sessions/{session}/stats").json()
        assert stats["ingredient"]["update_count"] == 2
        assert stats["ingredient"]["top_entries"][0]["action"] == "Flour"

    def test_success_without_step_uses_step_just_done(self, client, session):
        mix_step = {"action": "mix", "station": "mixer", "duration": 3}
        after_pick = round_snapshot(current_step=mix_step, step_index=1, progress=0.5)
        body = {"snapshot": after_pick, "item_name": "Flour"}
        assert client.post(f"/sessions/{session}/events/success", json=body).status_code == 200

        stats = client.get(f"/sessions/{session}/stats").json()
        assert stats["ingredient"]["top_entries"][0]["state"] == ["pick", "Flour"]
        assert stats["timing"]["update_count"] == 0

    def test_round_complete(self, client, session):
        snapshot = round_snapshot(current_step=None, progress=1.0, completed=True, score=90)
        data = client.post(f"/sessions/{session}/events/round-complete",
                           json={"snapshot": snapshot}).json()

        assert data["completed"] is True
        assert data["bonus"] == 3
        assert data["embellishment"]["id"] == "choco_drizzle"
        assert data["profile"]["total_rounds"] == 1


class TestSnapshots:
    """Tests for saving and restoring learned state."""

    def test_snapshot_and_restore(self, client, session, data_dir):
        body = {"snapshot": round_snapshot(), "step": FLOUR_STEP, "item_name": "Milk"}
        client.post(f"/sessions/{session}/events/success", json=body)

        response = client.post(f"/sessions/{session}/snapshot")
        assert response.json() == {"status": "saved", "session_id": session}
        assert os.path.exists(os.path.join(data_dir, f"{session}_coach.json"))

        client.post(f"/sessions/{session}", json={"preset": "deterministic", "restore": True})
        stats = client.get(f"/sessions/{session}/stats").json()
        assert stats["ingredient"]["update_count"] == 1

    def test_reset_without_restore_forgets(self, client, session):
        body = {"snapshot": round_snapshot(), "step": FLOUR_STEP, "item_name": "Milk"}
        client.post(f"/sessions/{session}/events/success", json=body)

        client.post(f"/sessions/{session}", json={"preset": "deterministic"})
        stats = client.get(f"/sessions/{session}/stats").json()
        assert stats["ingredient"]["update_count"] == 0
