"""Tests for the REST API.

Covers:
- State, agent, config and difficulty reads from the published snapshot
- Event feed filters by category and agent
- Report validation (422 on out-of-range values)
- Queued commands applied on the engine thread after a step
- Control actions and speed
"""

import sys
import os
import time

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from combat_ai.api.app import create_app
from combat_ai.config import CombatConfig

API = "/api/v1"


@pytest.fixture
def client():
    app = create_app(CombatConfig(seed=7, log_level="WARNING"), autostart=False)
    with TestClient(app) as c:
        yield c


def _wait_for(client: TestClient, path: str, predicate, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    data = client.get(path).json()
    while not predicate(data) and time.monotonic() < deadline:
        time.sleep(0.02)
        data = client.get(path).json()
    return data


class TestReads:
    def test_state_after_build(self, client):
        resp = client.get(f"{API}/state")
        assert resp.status_code == 200
        data = resp.json()
        assert data["tick"] == 0
        assert data["seed"] == 7
        assert len(data["agents"]) == 3
        assert data["player"] is not None
        assert data["stats"]["running"] is False
        assert sum(e["category"] == "spawn" for e in data["events"]) == 3

    def test_event_filters_and_totals(self, client):
        agents = client.get(f"{API}/state").json()["agents"]
        first = agents[0]["id"]
        data = client.get(f"{API}/state", params={"category": "spawn", "agent_id": first}).json()
        assert [e["entity_ids"] for e in data["events"]] == [[first]]
        assert data["stats"]["event_totals"]["spawn"] == 3
        assert client.get(f"{API}/state", params={"category": "decision"}).json()["events"] == []

    def test_agent_detail_and_extra_fields(self, client):
        agents = client.get(f"{API}/state").json()["agents"]
        smart = next(a for a in agents if "ai_type" in a["extra"])
        resp = client.get(f"{API}/agents/{smart['id']}")
        assert resp.status_code == 200
        assert resp.json()["extra"]["ai_type"] == "adaptive"

    def test_unknown_agent_404(self, client):
        assert client.get(f"{API}/agents/9999").status_code == 404

    def test_config(self, client):
        data = client.get(f"{API}/config").json()
        assert data["seed"] == 7
        assert data["decision_cache_capacity"] == 50
        assert data["tick_rate"] == pytest.approx(0.05)

    def test_difficulty(self, client):
        data = client.get(f"{API}/difficulty").json()
        assert data["level"] == "Normal"
        assert data["index"] == 1
        assert data["changes_this_level"] == 0
        assert data["performance"]["score"] == 0.0


class TestReports:
    def test_rating_out_of_range_rejected(self, client):
        assert client.post(f"{API}/report/accuracy", json={"value": 1.5}).status_code == 422

    def test_unknown_kill_kind_rejected(self, client):
        assert client.post(f"{API}/report/kill", json={"kind": "dragon"}).status_code == 422

    def test_negative_damage_rejected(self, client):
        assert client.post(f"{API}/report/damage", json={"amount": -1}).status_code == 422

    def test_damage_unknown_agent_404(self, client):
        assert client.post(f"{API}/agents/9999/damage", json={"amount": 5}).status_code == 404

    def test_reports_apply_on_next_tick(self, client):
        resp = client.post(f"{API}/report/kill", json={"kind": "enemy"})
        assert resp.json()["status"] == "queued"
        client.post(f"{API}/report/accuracy", json={"value": 0.6})
        client.post(f"{API}/control/step")
        data = _wait_for(client, f"{API}/difficulty",
                         lambda d: d["performance"]["enemies_defeated"] == 1)
        assert data["performance"]["enemies_defeated"] == 1
        assert data["performance"]["accuracy_rating"] == pytest.approx(0.6)


class TestControl:
    def test_pause_requires_running(self, client):
        data = client.post(f"{API}/control/pause").json()
        assert data["status"] == "error"

    def test_start_pause_resume(self, client):
        assert client.post(f"{API}/control/start").json()["status"] == "ok"
        assert client.post(f"{API}/control/start").json()["status"] == "noop"
        assert client.post(f"{API}/control/pause").json()["status"] == "ok"
        assert client.post(f"{API}/control/resume").json()["status"] == "ok"
        state = _wait_for(client, f"{API}/state", lambda d: d["tick"] > 0)
        assert state["tick"] > 0

    def test_reset_returns_to_tick_zero(self, client):
        client.post(f"{API}/control/start")
        _wait_for(client, f"{API}/state", lambda d: d["tick"] > 0)
        data = client.post(f"{API}/control/reset").json()
        assert data["status"] == "ok"
        assert data["tick"] == 0
        assert client.get(f"{API}/state").json()["stats"]["running"] is False

    def test_unknown_action(self, client):
        assert client.post(f"{API}/control/explode").status_code == 422

    def test_speed(self, client):
        assert client.post(f"{API}/speed", params={"tps": 10}).status_code == 200
        assert client.get(f"{API}/config").json()["tick_rate"] == pytest.approx(0.1)
