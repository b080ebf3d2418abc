"""Tests for the context session API."""

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from config import Settings

PREFIX = "/api/context"


def make_client(**overrides) -> TestClient:
    """Client for a fresh app with its own session registry."""
    params = dict(context_max_size=100, instructions_content="", summary_limit=5, max_sessions=10)
    params.update(overrides)
    return TestClient(create_app(Settings(**params)))


class TestSessionRoutes:
    """Tests for session lifecycle endpoints."""

    def setup_method(self):
        self.client = make_client()

    def test_health(self):
        response = self.client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_create_uses_settings_defaults(self):
        response = self.client.post(f"{PREFIX}/sessions", json={})

        assert response.status_code == 200
        data = response.json()
        assert data["session_id"]
        assert data["stats"]["max_size"] == 100
        assert data["stats"]["item_count"] == 0

    def test_create_with_explicit_id_and_overrides(self):
        response = self.client.post(
            f"{PREFIX}/sessions",
            json={"session_id": "abc", "max_size": 40, "instructions": "x" * 40}
        )

        assert response.status_code == 200
        assert response.json()["session_id"] == "abc"
        assert response.json()["stats"]["pinned_size"] == 10

        duplicate = self.client.post(f"{PREFIX}/sessions", json={"session_id": "abc"})
        assert duplicate.status_code == 409

    def test_create_rejects_bad_capacity(self):
        response = self.client.post(f"{PREFIX}/sessions", json={"max_size": 0})

        assert response.status_code == 422

    def test_session_limit(self):
        client = make_client(max_sessions=1)
        assert client.post(f"{PREFIX}/sessions", json={}).status_code == 200

        response = client.post(f"{PREFIX}/sessions", json={})

        assert response.status_code == 429

    def test_unknown_session(self):
        assert self.client.get(f"{PREFIX}/sessions/missing").status_code == 404
        assert self.client.get(f"{PREFIX}/sessions/missing/render").status_code == 404
        assert self.client.delete(f"{PREFIX}/sessions/missing").status_code == 404

    def test_delete_session(self):
        session_id = self.client.post(f"{PREFIX}/sessions", json={}).json()["session_id"]

        response = self.client.delete(f"{PREFIX}/sessions/{session_id}")

        assert response.status_code == 200
        assert self.client.get(f"{PREFIX}/sessions/{session_id}").status_code == 404
        assert session_id not in self.client.get(f"{PREFIX}/sessions").json()["sessions"]


class TestFragmentRoutes:
    """Tests for fragment operations over HTTP."""

    def setup_method(self):
        self.client = make_client()
        response = self.client.post(f"{PREFIX}/sessions", json={"max_size": 10, "instructions": ""})
        self.base = f"{PREFIX}/sessions/{response.json()['session_id']}"

    def _add(self, content, priority=0.5):
        response = self.client.post(f"{self.base}/fragments", json={"content": content, "priority": priority})
        assert response.status_code == 200
        return response.json()

    def test_add_returns_fragment_and_report(self):
        data = self._add("x" * 16, 0.7)

        assert data["fragment"]["id"] == "ctx_1"
        assert data["fragment"]["size"] == 4
        assert data["fragment"]["resident"] is True
        assert data["report"]["compression_ratio"] == 1.0

    def test_add_past_capacity_archives(self):
        self._add("x" * 32, 0.6)
        data = self._add("y" * 32, 0.4)

        assert data["fragment"]["resident"] is False
        assert data["report"]["evicted"] == ["ctx_2"]
        assert data["report"]["compression_ratio"] == pytest.approx(0.5)

        listing = self.client.get(f"{self.base}/fragments").json()
        assert [f["id"] for f in listing["items"]] == ["ctx_1"]
        assert [f["id"] for f in listing["archived_items"]] == ["ctx_2"]

    def test_batch_add(self):
        response = self.client.post(
            f"{self.base}/fragments/batch",
            json=[{"content": "one"}, {"content": "two", "priority": 0.9}]
        )

        assert response.status_code == 200
        assert [f["priority"] for f in response.json()["fragments"]] == [0.5, 0.9]

    def test_update_priority_clamps(self):
        self._add("note")

        response = self.client.patch(f"{self.base}/fragments/ctx_1", json={"priority": 1.5})

        assert response.status_code == 200
        assert response.json()["fragment"]["priority"] == 1.0
        assert response.json()["report"] is None

    def test_update_priority_archived_is_404(self):
        self._add("x" * 32, 0.6)
        self._add("y" * 32, 0.4)

        response = self.client.patch(f"{self.base}/fragments/ctx_2", json={"priority": 0.9})

        assert response.status_code == 404

    def test_remove(self):
        self._add("note")

        assert self.client.delete(f"{self.base}/fragments/ctx_1").status_code == 200
        assert self.client.delete(f"{self.base}/fragments/ctx_1").status_code == 404

    def test_restore(self):
        self._add("x" * 32, 0.6)
        self._add("y" * 32, 0.4)

        assert self.client.post(f"{self.base}/fragments/ctx_1/restore").status_code == 404

        self.client.put(f"{self.base}/capacity", json={"max_size": 20})
        response = self.client.post(f"{self.base}/fragments/ctx_2/restore")

        assert response.status_code == 200
        assert response.json()["fragment"]["resident"] is True

    def test_capacity_change(self):
        self._add("x" * 32, 0.6)

        response = self.client.put(f"{self.base}/capacity", json={"max_size": 4})

        assert response.status_code == 200
        assert response.json()["report"]["evicted"] == ["ctx_1"]
        assert response.json()["stats"]["archived_count"] == 1

        assert self.client.put(f"{self.base}/capacity", json={"max_size": -1}).status_code == 422

    @pytest.mark.parametrize("raw", ["NaN", "Infinity"])
    def test_non_finite_capacity_rejected(self, raw):
        response = self.client.put(
            f"{self.base}/capacity",
            content=f'{{"max_size": {raw}}}',
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 422
        assert self.client.get(self.base).json()["stats"]["max_size"] == 10

    def test_nan_priority_rejected(self):
        self._add("note")
        headers = {"Content-Type": "application/json"}

        added = self.client.post(f"{self.base}/fragments", content='{"content": "x", "priority": NaN}', headers=headers)
        patched = self.client.patch(f"{self.base}/fragments/ctx_1", content='{"priority": NaN}', headers=headers)

        assert added.status_code == 422
        assert patched.status_code == 422
        assert self.client.get(f"{self.base}/fragments").json()["items"][0]["priority"] == 0.5

    def test_ids_not_reused_after_clear(self):
        self._add("old")
        self.client.post(f"{self.base}/clear")

        data = self._add("new")

        assert data["fragment"]["id"] == "ctx_2"
        assert self.client.delete(f"{self.base}/fragments/ctx_1").status_code == 404

    def test_archive_below(self):
        self._add("a", 0.1)
        self._add("b", 0.8)

        response = self.client.post(f"{self.base}/archive-below", json={})

        assert response.json()["archived"] == 1
        assert response.json()["stats"]["item_count"] == 1

    def test_instructions_render_and_summary(self):
        self._add("keep me", 0.95)
        self._add("z" * 80, 0.2)

        response = self.client.put(f"{self.base}/instructions", json={"instructions": "Be brief."})
        assert response.json()["instructions"] == "Be brief."

        context = self.client.get(f"{self.base}/render").json()["context"]
        assert context.startswith("📋 INSTRUCTIONS:\nBe brief.\n\n⭐ [1] keep me")
        assert context.endswith("(1 items) ---\n")

        summary = self.client.get(f"{self.base}/archive/summary", params={"limit": 1}).json()["summary"]
        assert summary.startswith("📦 Archived Context Summary:\n1. [")
        assert "z" * 50 + "..." in summary

    def test_clear(self):
        self._add("x" * 32, 0.6)
        self._add("y" * 32, 0.4)

        archived_only = self.client.post(f"{self.base}/clear", params={"archived_only": True}).json()
        assert archived_only["stats"]["archived_count"] == 0
        assert archived_only["stats"]["item_count"] == 1

        cleared = self.client.post(f"{self.base}/clear").json()
        assert cleared["stats"]["item_count"] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
