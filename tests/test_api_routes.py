import os
import unittest
from datetime import datetime
from unittest.mock import patch

os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from database import SessionLocal
from main import app
from models.position import Position
from services.ai.llm_service import get_llm_service
from services.cache.quote_cache import QuoteCache, get_quote_cache
from services.finnhub.finnhub_service import get_finnhub_service
from tests.fakes import FakeClock, FakeFinnhubService, FakeLLM, llm_down, provider_down


class _ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.finnhub = FakeFinnhubService(
            {"c": 189.5, "d": 1.5, "dp": 0.8, "pc": 188.0},
            search_results=[
                {"symbol": "AAPLW", "description": "APPLE WARRANT"},
                {"symbol": "AAP", "description": "ADVANCE AUTO PARTS"},
                {"symbol": "AAPL", "description": "APPLE INC"},
                {"symbol": "AAPL.SW", "description": "APPLE INC"},
            ],
            news=[{"title": "Chips rally"}],
        )
        self.clock = FakeClock()
        self.cache = QuoteCache(self.finnhub, clock=self.clock)
        self.llm = FakeLLM(reply="Hold.")

        app.dependency_overrides[get_finnhub_service] = lambda: self.finnhub
        app.dependency_overrides[get_quote_cache] = lambda: self.cache
        app.dependency_overrides[get_llm_service] = lambda: self.llm
        self.client = TestClient(app)
        self._clear_positions()

    def tearDown(self):
        app.dependency_overrides.clear()
        self._clear_positions()

    def _clear_positions(self):
        db = SessionLocal()
        try:
            db.query(Position).delete()
            db.commit()
        finally:
            db.close()


class TestPingAndPortfolio(_ApiTestCase):
    def test_ping(self):
        r = self.client.get("/api/ping")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"message": "Server is working!"})
        self.assertTrue(r.headers.get("X-Request-ID"))

    def test_create_list_delete(self):
        r = self.client.post("/api/portfolio", json={"ticker": "aapl", "quantity": 10, "buyPrice": 150.0})
        self.assertEqual(r.status_code, 201)
        created = r.json()
        self.assertEqual(created["ticker"], "AAPL")
        self.assertEqual(created["quantity"], 10)
        self.assertEqual(created["buyPrice"], 150.0)
        self.assertTrue(created["id"])
        self.assertTrue(created["dateAdded"])

        listed = self.client.get("/api/portfolio").json()
        self.assertEqual([p["id"] for p in listed], [created["id"]])

        r = self.client.delete(f"/api/portfolio/{created['id']}")
        self.assertEqual(r.status_code, 204)
        self.assertEqual(r.content, b"")
        self.assertEqual(self.client.get("/api/portfolio").json(), [])

    def test_create_validation_errors_are_400(self):
        bodies = [
            {"quantity": 1, "buyPrice": 1},
            {"ticker": "AAPL", "quantity": "lots", "buyPrice": 1},
            {"ticker": "AAPL", "quantity": 0, "buyPrice": 1},
            {"ticker": "AAPL", "quantity": 1, "buyPrice": -5},
            {"ticker": " ", "quantity": 1, "buyPrice": 1},
        ]
        for body in bodies:
            with self.subTest(body=body):
                r = self.client.post("/api/portfolio", json=body)
                self.assertEqual(r.status_code, 400)
                self.assertIn("detail", r.json())
        self.assertEqual(self.client.get("/api/portfolio").json(), [])

    def test_delete_missing_id_is_204(self):
        self.assertEqual(self.client.delete("/api/portfolio/424242").status_code, 204)

    def test_delete_malformed_id_is_400(self):
        self.assertEqual(self.client.delete("/api/portfolio/not-an-id").status_code, 400)

    def test_enriched_portfolio(self):
        self.client.post("/api/portfolio", json={"ticker": "AAPL", "quantity": 2, "buyPrice": 180.0})
        r = self.client.get("/api/portfolio/enriched")
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["totalInvested"], 360.0)
        self.assertEqual(body["totalValue"], 379.0)
        self.assertEqual(body["positions"][0]["currentPrice"], 189.5)
        self.assertEqual(body["positions"][0]["priceStatus"], "ok")
        self.assertEqual(body["holdings"][0]["totalCost"], 360.0)

    def test_create_rejects_boolean_numbers(self):
        bodies = [
            {"ticker": "AAPL", "quantity": True, "buyPrice": 150},
            {"ticker": "AAPL", "quantity": 1, "buyPrice": False},
            {"ticker": "AAPL", "quantity": "3", "buyPrice": 150},
        ]
        for body in bodies:
            with self.subTest(body=body):
                self.assertEqual(self.client.post("/api/portfolio", json=body).status_code, 400)
        self.assertEqual(self.client.get("/api/portfolio").json(), [])

    def test_date_added_is_utc(self):
        created = self.client.post(
            "/api/portfolio", json={"ticker": "AAPL", "quantity": 1, "buyPrice": 100}
        ).json()
        listed = self.client.get("/api/portfolio").json()
        enriched = self.client.get("/api/portfolio/enriched").json()
        for value in (created["dateAdded"], listed[0]["dateAdded"], enriched["positions"][0]["dateAdded"]):
            with self.subTest(value=value):
                parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
                self.assertIsNotNone(parsed.tzinfo)
                self.assertEqual(parsed.utcoffset().total_seconds(), 0)


def _store_down() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestStoreFailures(_ApiTestCase):
    def test_list_store_down_is_500(self):
        with patch.object(Session, "query", side_effect=_store_down()):
            r = self.client.get("/api/portfolio")
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"detail": "Failed to fetch portfolio"})

    def test_enriched_store_down_is_500(self):
        with patch.object(Session, "query", side_effect=_store_down()):
            r = self.client.get("/api/portfolio/enriched")
        self.assertEqual(r.status_code, 500)
        self.assertEqual(self.finnhub.calls, [])

    def test_create_store_down_is_400(self):
        with patch.object(Session, "commit", side_effect=_store_down()):
            r = self.client.post("/api/portfolio", json={"ticker": "AAPL", "quantity": 1, "buyPrice": 100})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json(), {"detail": "Failed to add stock"})
        self.assertEqual(self.client.get("/api/portfolio").json(), [])

    def test_delete_store_down_is_400(self):
        created = self.client.post(
            "/api/portfolio", json={"ticker": "AAPL", "quantity": 1, "buyPrice": 100}
        ).json()
        with patch.object(Session, "commit", side_effect=_store_down()):
            r = self.client.delete(f"/api/portfolio/{created['id']}")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json(), {"detail": "Failed to delete stock"})
        self.assertEqual([p["id"] for p in self.client.get("/api/portfolio").json()], [created["id"]])


class TestMarketRoutes(_ApiTestCase):
    def test_price_is_cached(self):
        r1 = self.client.get("/api/price/aapl")
        r2 = self.client.get("/api/price/AAPL")
        self.assertEqual(r1.status_code, 200)
        self.assertEqual(
            r1.json(),
            {"price": 189.5, "change": 1.5, "percent": 0.8, "previousClose": 188.0, "fetchedAt": 1000.0},
        )
        self.assertEqual(r2.json(), r1.json())
        self.assertEqual(self.finnhub.calls, ["AAPL"])

        self.clock.advance(60)
        r3 = self.client.get("/api/price/AAPL")
        self.assertEqual(r3.json()["fetchedAt"], 1060.0)
        self.assertEqual(len(self.finnhub.calls), 2)

    def test_price_invalid_quote_is_500(self):
        self.finnhub.payloads = [{"c": 0, "pc": 0}]
        r = self.client.get("/api/price/NOPE")
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"detail": "Failed to fetch price"})

    def test_price_provider_down_is_500(self):
        self.finnhub.error = provider_down()
        self.assertEqual(self.client.get("/api/price/AAPL").status_code, 500)

    def test_suggest(self):
        r = self.client.get("/api/suggest/aapl")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(
            r.json(),
            [
                {"symbol": "AAPL", "name": "APPLE INC"},
                {"symbol": "AAPLW", "name": "APPLE WARRANT"},
                {"symbol": "AAP", "name": "ADVANCE AUTO PARTS"},
            ],
        )

    def test_suggest_provider_down_is_500(self):
        self.finnhub.search_error = provider_down()
        self.assertEqual(self.client.get("/api/suggest/AAPL").status_code, 500)


class TestAiRoutes(_ApiTestCase):
    def test_advise(self):
        r = self.client.post(
            "/api/ai/advise",
            json={"ticker": "AAPL", "quantity": 10, "buyPrice": 150, "currentPrice": 189.5},
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"advice": "Hold."})

    def test_boolean_numbers_are_400_without_llm_call(self):
        r = self.client.post(
            "/api/ai/advise",
            json={"ticker": "AAPL", "quantity": True, "buyPrice": 150, "currentPrice": 189.5},
        )
        self.assertEqual(r.status_code, 400)
        r = self.client.post(
            "/api/ai/summary",
            json={"portfolio": [{"ticker": "AAPL", "quantity": 1, "buyPrice": 150, "currentPrice": False}]},
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(self.llm.prompts, [])

    def test_advise_provider_down_is_500(self):
        self.llm.error = llm_down()
        r = self.client.post(
            "/api/ai/advise",
            json={"ticker": "AAPL", "quantity": 10, "buyPrice": 150, "currentPrice": 189.5},
        )
        self.assertEqual(r.status_code, 500)

    def test_recommendations(self):
        self.llm.reply = '[{"ticker": "NVDA", "reason": "Chip demand."}]'
        r = self.client.get("/api/ai/recommendations")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), [{"ticker": "NVDA", "reason": "Chip demand."}])

    def test_recommendations_non_json_is_500(self):
        self.llm.reply = "NVDA looks great!"
        r = self.client.get("/api/ai/recommendations")
        self.assertEqual(r.status_code, 500)
        self.assertNotIn("NVDA", r.text)

    def test_recommendations_nan_is_500(self):
        self.llm.reply = '[{"ticker": "NVDA", "reason": NaN}]'
        r = self.client.get("/api/ai/recommendations")
        self.assertEqual(r.status_code, 500)

    def test_summary(self):
        r = self.client.post(
            "/api/ai/summary",
            json={"portfolio": [
                {"_id": "x", "ticker": "AAPL", "quantity": 1, "buyPrice": 100, "currentPrice": 120},
            ]},
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"summary": "Hold."})
        self.assertIn("AAPL: 1 shares bought at $100.00, now $120.00 (20.0%)", self.llm.prompts[0])

    def test_summary_empty_portfolio_is_400_without_llm_call(self):
        for body in ({"portfolio": []}, {}):
            with self.subTest(body=body):
                r = self.client.post("/api/ai/summary", json=body)
                self.assertEqual(r.status_code, 400)
        self.assertEqual(self.llm.prompts, [])

    def test_summary_provider_down_is_500(self):
        self.llm.error = llm_down()
        r = self.client.post(
            "/api/ai/summary",
            json={"portfolio": [{"ticker": "AAPL", "quantity": 1, "buyPrice": 100, "currentPrice": 120}]},
        )
        self.assertEqual(r.status_code, 500)


if __name__ == "__main__":
    unittest.main()
