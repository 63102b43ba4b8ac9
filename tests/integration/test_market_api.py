"""Integration tests for markets, trading, resolution and the leaderboard."""

import pytest
from httpx import AsyncClient

from tests.helpers import approved_user_headers


@pytest.fixture
async def traders(client: AsyncClient, admin_headers: dict[str, str]) -> dict[str, dict[str, str]]:
    return {
        "alice": await approved_user_headers(client, admin_headers, "alice@example.com"),
        "bob": await approved_user_headers(client, admin_headers, "bob@example.com"),
    }


async def _create_market(client: AsyncClient, headers: dict[str, str], market_id: str = "M1"):
    return await client.post(
        "/api/v1/markets",
        json={
            "market_id": market_id,
            "question": "Will KIT-001 reach Nairobi by Friday?",
            "kit_id": "KIT-001",
            "deadline": "2026-06-01T12:00:00Z",
        },
        headers=headers,
    )


class TestMarketLifecycle:
    async def test_create_and_read(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        resp = await _create_market(client, admin_headers)

        assert resp.status_code == 201
        market = resp.json()["data"]
        assert market["status"] == "OPEN"
        assert market["pool"] == {"YES": 1000, "NO": 1000}
        assert market["probabilities"] == {"YES": 50, "NO": 50}
        assert market["deadline"] == "2026-06-01T12:00:00.000Z"
        assert market["created_by"] == "admin@kitledger.org"

        listed = (await client.get("/api/v1/markets?status=OPEN")).json()["data"]["items"]
        assert [m["market_id"] for m in listed] == ["M1"]

    async def test_duplicate_market(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        await _create_market(client, admin_headers)
        resp = await _create_market(client, admin_headers)
        assert resp.status_code == 409
        assert resp.json()["code"] == 3003

    async def test_unknown_market(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/markets/missing")
        assert resp.status_code == 404
        assert resp.json()["code"] == 3001

    async def test_create_requires_login(self, client: AsyncClient) -> None:
        assert (await _create_market(client, {})).status_code == 401


class TestTrading:
    async def test_buy_moves_price(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        traders: dict[str, dict[str, str]],
    ) -> None:
        await _create_market(client, admin_headers)

        resp = await client.post(
            "/api/v1/markets/M1/buy", json={"outcome": "YES", "amount": 200}, headers=traders["alice"]
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["amount"] == 200.0
        probs = (await client.get("/api/v1/markets/M1/probabilities")).json()["data"]
        assert probs == {"YES": 56, "NO": 44}

        positions = (await client.get("/api/v1/positions/me", headers=traders["alice"])).json()
        assert positions["data"]["credits"] == 9800.0
        assert positions["data"]["holdings"][0]["yes_shares"] == 200

    async def test_sell_back(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        traders: dict[str, dict[str, str]],
    ) -> None:
        await _create_market(client, admin_headers)
        await client.post(
            "/api/v1/markets/M1/buy", json={"outcome": "YES", "amount": 200}, headers=traders["alice"]
        )
        await client.post(
            "/api/v1/markets/M1/buy", json={"outcome": "NO", "amount": 300}, headers=traders["bob"]
        )

        resp = await client.post(
            "/api/v1/markets/M1/sell", json={"outcome": "YES", "amount": 100}, headers=traders["alice"]
        )

        assert resp.json()["data"]["amount"] == 87.5
        trades = (await client.get("/api/v1/markets/M1/trades")).json()["data"]["items"]
        assert [t["direction"] for t in trades] == ["BUY", "BUY", "SELL"]

    async def test_cannot_sell_unheld_shares(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        traders: dict[str, dict[str, str]],
    ) -> None:
        await _create_market(client, admin_headers)
        await client.post(
            "/api/v1/markets/M1/buy", json={"outcome": "YES", "amount": 10}, headers=traders["alice"]
        )
        resp = await client.post(
            "/api/v1/markets/M1/sell", json={"outcome": "NO", "amount": 1}, headers=traders["alice"]
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 5002

    async def test_pool_cannot_be_drained(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        traders: dict[str, dict[str, str]],
    ) -> None:
        await _create_market(client, admin_headers)
        resp = await client.post(
            "/api/v1/markets/M1/buy", json={"outcome": "NO", "amount": 1000}, headers=traders["bob"]
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3004

    async def test_zero_amount_rejected(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        traders: dict[str, dict[str, str]],
    ) -> None:
        await _create_market(client, admin_headers)
        resp = await client.post(
            "/api/v1/markets/M1/buy", json={"outcome": "YES", "amount": 0}, headers=traders["bob"]
        )
        assert resp.status_code == 422

    async def test_trading_requires_login(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        await _create_market(client, admin_headers)
        resp = await client.post("/api/v1/markets/M1/buy", json={"outcome": "YES", "amount": 1})
        assert resp.status_code == 401


class TestResolution:
    async def test_resolve_settles_and_ranks(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        traders: dict[str, dict[str, str]],
    ) -> None:
        await _create_market(client, admin_headers)
        await client.post(
            "/api/v1/markets/M1/buy", json={"outcome": "YES", "amount": 200}, headers=traders["alice"]
        )
        await client.post(
            "/api/v1/markets/M1/buy", json={"outcome": "NO", "amount": 300}, headers=traders["bob"]
        )

        resp = await client.post(
            "/api/v1/admin/markets/M1/resolve", json={"outcome": "YES"}, headers=admin_headers
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["positions_settled"] == 2
        market = (await client.get("/api/v1/markets/M1")).json()["data"]
        assert market["status"] == "RESOLVED"
        assert market["winning_outcome"] == "YES"

        board = (await client.get("/api/v1/leaderboard")).json()["data"]["items"]
        assert [e["rank"] for e in board] == [1, 2]
        assert board[0]["accuracy"] == 100
        assert board[1]["accuracy"] == 0

        alice = (await client.get("/api/v1/positions/me", headers=traders["alice"])).json()["data"]
        assert alice["holdings"] == []
        assert alice["stats"]["correct_predictions"] == 1

    async def test_no_trading_after_resolution(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        traders: dict[str, dict[str, str]],
    ) -> None:
        await _create_market(client, admin_headers)
        await client.post(
            "/api/v1/admin/markets/M1/resolve", json={"outcome": "NO"}, headers=admin_headers
        )
        resp = await client.post(
            "/api/v1/markets/M1/buy", json={"outcome": "YES", "amount": 1}, headers=traders["bob"]
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3002

    async def test_resolve_requires_admin(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        traders: dict[str, dict[str, str]],
    ) -> None:
        await _create_market(client, admin_headers)
        resp = await client.post(
            "/api/v1/admin/markets/M1/resolve", json={"outcome": "NO"}, headers=traders["bob"]
        )
        assert resp.status_code == 403
