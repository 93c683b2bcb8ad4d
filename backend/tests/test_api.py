"""
API tests against an in-memory candle store.
"""

import pytest
from fastapi.testclient import TestClient

from cryptoscan.main import app
from cryptoscan.services.analyzer import PairAnalyzer, get_pair_analyzer
from cryptoscan.services.base import UpstreamFetchError
from cryptoscan.services.candles import InMemoryCandleStore, get_candle_store
from cryptoscan.services.correlation import CorrelationService, get_correlation_service
from cryptoscan.services.trends import TrendMonitor, get_trend_monitor

from conftest import DAY, make_candles, today_ts, uptrend_closes


def _override(store, settings):
    analyzer = PairAnalyzer(store, settings)
    app.dependency_overrides[get_candle_store] = lambda: store
    app.dependency_overrides[get_pair_analyzer] = lambda: analyzer
    app.dependency_overrides[get_correlation_service] = lambda: CorrelationService(store, settings)
    monitor = TrendMonitor(analyzer)
    app.dependency_overrides[get_trend_monitor] = lambda: monitor


@pytest.fixture
def client(settings):
    end_ts = today_ts()
    store = InMemoryCandleStore()
    store.add_candles(make_candles("AAA-USD", uptrend_closes(), end_ts=end_ts))
    store.add_candles(make_candles("BBB-USD", uptrend_closes(), end_ts=end_ts))
    _override(store, settings)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


class _DownStore(InMemoryCandleStore):
    async def get_all_pairs(self):
        raise UpstreamFetchError("DownStore", "store unavailable")


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["candle_store"] == "InMemoryCandleStore"


def test_analyze_all_pairs(client):
    response = client.get("/api/v1/crypto/pairs")
    assert response.status_code == 200

    data = response.json()
    assert [p["pair"] for p in data["pairs"]] == ["AAA-USD", "BBB-USD"]
    assert data["market_summary"]["total_pairs"] == 2
    assert data["market_summary"]["advances"] == 2


def test_analyze_pairs_limit(client):
    response = client.get("/api/v1/crypto/pairs", params={"limit": 1})
    assert response.status_code == 200
    assert len(response.json()["pairs"]) == 1


def test_pair_indicators(client):
    response = client.get("/api/v1/crypto/pair/aaa-usd/indicators")
    assert response.status_code == 200

    data = response.json()
    assert data["pair"] == "AAA-USD"
    assert data["indicators"]["moving_averages"]["ema_cross"] == "Above (Golden Cross)"
    assert 0 <= data["scores"]["enhanced"] <= 1


def test_unknown_pair_is_404(client):
    response = client.get("/api/v1/crypto/pair/NOPE-USD/indicators")
    assert response.status_code == 404


def test_pair_history(client):
    end = today_ts()
    response = client.get(
        "/api/v1/crypto/pairs/AAA-USD/history", params={"start": end - 4 * DAY, "end": end}
    )
    assert response.status_code == 200
    candles = response.json()
    assert len(candles) == 5
    assert candles[-1]["timestamp"] == end

    response = client.get(
        "/api/v1/crypto/pairs/AAA-USD/history", params={"start": end, "end": end - DAY}
    )
    assert response.status_code == 400


def test_market_summary(client):
    response = client.get("/api/v1/crypto/market/summary")
    assert response.status_code == 200
    data = response.json()
    assert data["total_pairs"] == 2
    assert data["sentiment"] in {
        "Strongly Bullish", "Bullish", "Neutral", "Bearish", "Strongly Bearish"
    }


def test_market_correlations(client):
    response = client.get("/api/v1/crypto/market/correlations", params={"period": 30})
    assert response.status_code == 200

    records = response.json()
    assert len(records) == 1
    assert records[0]["correlation"] == pytest.approx(1.0)
    assert records[0]["significance"] == "High"


def test_correlation_period_is_validated(client):
    response = client.get("/api/v1/crypto/market/correlations", params={"period": 3})
    assert response.status_code == 422


def test_trends_are_quiet_without_new_data(client):
    first = client.get("/api/v1/crypto/trends")
    second = client.get("/api/v1/crypto/trends", params={"significance": "high"})

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json() == []
    assert second.json() == []


def test_trend_significance_is_validated(client):
    response = client.get("/api/v1/crypto/trends", params={"significance": "extreme"})
    assert response.status_code == 422


def test_store_outage_is_503(client, settings):
    _override(_DownStore(), settings)
    response = client.get("/api/v1/crypto/market/summary")
    assert response.status_code == 503


def test_health_reports_degraded_store(client, settings):
    _override(_DownStore(), settings)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["candle_store"] == "_DownStore"
