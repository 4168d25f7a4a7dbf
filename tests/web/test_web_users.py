"""Tests for the wallet endpoint."""

import pytest
from fastapi.testclient import TestClient

from satprep.web.api import create_app


@pytest.fixture
def client(lifecycle, seed):
    seed.user("u1", "student")
    seed.user("u2", "student")
    seed.test("t1")
    return TestClient(create_app())


class TestWallet:
    """Tests for GET /api/users/{id}/wallet."""

    def test_wallet_after_completion(self, client):
        headers = {"X-User-Id": "u1"}
        start = client.post("/api/attempts", json={"test_id": "t1"}, headers=headers)
        attempt_id = start.json()["attempt"]["attempt_id"]
        client.put(
            f"/api/attempts/{attempt_id}",
            json={
                "question_results": [
                    {"question_id": "q1", "user_answer": "A", "is_correct": True}
                ]
            },
            headers=headers,
        )

        data = client.get("/api/users/u1/wallet", headers=headers).json()
        assert data["coins"] == 6
        assert data["total_tests_taken"] == 1
        assert data["login_streak"] == 1
        assert data["streak_bonus_used_today"] is True
        assert data["last_coin_earned_date"] == "2025-03-10"

    def test_wallet_other_user_forbidden(self, client):
        response = client.get("/api/users/u2/wallet", headers={"X-User-Id": "u1"})
        assert response.status_code == 403

    def test_wallet_unknown_user(self, client):
        response = client.get("/api/users/ghost/wallet", headers={"X-User-Id": "ghost"})
        assert response.status_code == 404
