"""Integration tests for the policy admin routes."""

from __future__ import annotations

from fastapi.testclient import TestClient

BODY = {"key": "203.0.113.7", "kind": "TOKEN_BUCKET", "capacity": 10, "refill_rate": 2}


class TestCreate:
    def test_created(self, client: TestClient):
        resp = client.post("/admin/policies", json=BODY)
        assert resp.status_code == 201
        data = resp.json()
        assert data["key"] == "203.0.113.7"
        assert data["kind"] == "TOKEN_BUCKET"
        assert data["capacity"] == 10
        assert data["refill_rate"] == 2
        assert data["window_seconds"] == 60

    def test_kind_spelling_is_normalized(self, client: TestClient):
        resp = client.post(
            "/admin/policies",
            json={"key": "k", "kind": "sliding-window", "capacity": 5, "window_seconds": 30},
        )
        assert resp.status_code == 201
        assert resp.json()["kind"] == "SLIDING_WINDOW"

    def test_duplicate_is_409(self, client: TestClient):
        client.post("/admin/policies", json=BODY)
        resp = client.post("/admin/policies", json=BODY)
        assert resp.status_code == 409
        assert "already exists" in resp.json()["detail"]

    def test_unknown_kind_is_422(self, client: TestClient):
        resp = client.post("/admin/policies", json={**BODY, "kind": "LEAKY_BUCKET"})
        assert resp.status_code == 422

    def test_out_of_range_is_422(self, client: TestClient):
        assert client.post("/admin/policies", json={**BODY, "capacity": 0}).status_code == 422
        assert client.post("/admin/policies", json={**BODY, "refill_rate": -1}).status_code == 422
        assert client.post("/admin/policies", json={**BODY, "window_seconds": 0}).status_code == 422
        assert client.post("/admin/policies", json={**BODY, "key": ""}).status_code == 422


class TestReadUpdateDelete:
    def test_get(self, client: TestClient):
        client.post("/admin/policies", json=BODY)
        resp = client.get("/admin/policies/203.0.113.7")
        assert resp.status_code == 200
        assert resp.json()["capacity"] == 10

    def test_get_missing_is_404(self, client: TestClient):
        resp = client.get("/admin/policies/ghost")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "No policy found for key: ghost"}

    def test_list(self, client: TestClient):
        client.post("/admin/policies", json={**BODY, "key": "b"})
        client.post("/admin/policies", json={**BODY, "key": "a"})
        resp = client.get("/admin/policies")
        assert [p["key"] for p in resp.json()] == ["a", "b"]

    def test_update(self, client: TestClient):
        client.post("/admin/policies", json=BODY)
        resp = client.put(
            "/admin/policies/203.0.113.7",
            json={"kind": "SLIDING_WINDOW", "capacity": 3, "window_seconds": 10},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["key"] == "203.0.113.7"
        assert data["kind"] == "SLIDING_WINDOW"
        assert data["capacity"] == 3

    def test_update_missing_is_404(self, client: TestClient):
        resp = client.put("/admin/policies/ghost", json={"capacity": 3})
        assert resp.status_code == 404

    def test_delete(self, client: TestClient):
        client.post("/admin/policies", json=BODY)
        resp = client.delete("/admin/policies/203.0.113.7")
        assert resp.status_code == 200
        assert resp.json()["key"] == "203.0.113.7"
        assert client.delete("/admin/policies/203.0.113.7").status_code == 404

    def test_new_policy_applies_to_gate(self, client: TestClient):
        client.post("/admin/policies", json={"key": "9.9.9.9", "capacity": 1})
        headers = {"X-Forwarded-For": "9.9.9.9"}
        assert client.get("/health", headers=headers).status_code == 200
        assert client.get("/admin/status", headers=headers).status_code == 200
        assert client.get("/admin/status", headers=headers).status_code == 429
