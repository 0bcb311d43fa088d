import datetime

import pytest
from fastapi.testclient import TestClient

from ohlcv_chart.api import create_app
from ohlcv_chart.config import Settings
from ohlcv_chart.errors import UpstreamHTTPError, UpstreamUnreachable
from ohlcv_chart.models import MarketChart, PricePoint, VolumePoint
from ohlcv_chart.service import ChartService
from ohlcv_chart.timeframes import Timeframe

CHART_PATH = "/market-data/v1/charts/kta-usdt"


@pytest.fixture
def client(stub_provider):
    stub_provider.chart = MarketChart(
        prices=(PricePoint(1_000, 1.5), PricePoint(2_000, 1.75)),
        volumes=(VolumePoint(1_500, 12.3456),),
    )
    service = ChartService(
        provider=stub_provider,
        pair="KTA/USDT",
        now=lambda: datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc),
    )
    with TestClient(create_app(settings=Settings(), service=service)) as test_client:
        yield test_client


def test_chart_defaults_to_one_day(client, stub_provider):
    resp = client.get(CHART_PATH)

    assert resp.status_code == 200
    assert resp.json() == {
        "pair": "KTA/USDT",
        "timeframe": "1D",
        "granularitySeconds": 900,
        "updatedAt": "2024-01-02T03:04:05.000Z",
        "source": "stub",
        "candles": [{"time": 0, "open": 1.5, "high": 1.75, "low": 1.5, "close": 1.75, "volume": 12.35}],
    }
    assert stub_provider.calls == [Timeframe.ONE_DAY.config]


def test_timeframe_is_case_insensitive(client, stub_provider):
    resp = client.get(CHART_PATH, params={"timeframe": "90d"})

    assert resp.status_code == 200
    assert resp.json()["timeframe"] == "90D"
    assert resp.json()["granularitySeconds"] == 86_400


def test_invalid_timeframe_is_rejected(client, stub_provider):
    resp = client.get(CHART_PATH, params={"timeframe": "1Y"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid query parameters"
    assert stub_provider.calls == []


def test_blank_timeframe_is_rejected(client, stub_provider):
    resp = client.get(CHART_PATH, params={"timeframe": ""})

    assert resp.status_code == 400
    assert stub_provider.calls == []


def test_pre_epoch_prices_are_served(client, stub_provider):
    stub_provider.chart = MarketChart(prices=(PricePoint(-1_000, 1.0), PricePoint(100, 2.0)))

    resp = client.get(CHART_PATH)

    assert resp.status_code == 200
    assert [c["time"] for c in resp.json()["candles"]] == [-900, 0]


def test_upstream_http_error_maps_to_bad_gateway(client, stub_provider):
    stub_provider.error = UpstreamHTTPError(429)

    resp = client.get(CHART_PATH)

    assert resp.status_code == 502
    assert resp.json()["error"] == "UpstreamHTTPError"
    assert resp.json()["status"] == 429


def test_unreachable_upstream_maps_to_bad_gateway(client, stub_provider):
    stub_provider.error = UpstreamUnreachable("connection refused")

    resp = client.get(CHART_PATH, params={"timeframe": "7D"})

    assert resp.status_code == 502
    assert resp.json() == {"error": "UpstreamUnreachable", "detail": "connection refused"}


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "pair": "KTA/USDT", "source": "stub"}


def test_injected_service_is_not_closed(stub_provider):
    service = ChartService(provider=stub_provider, pair="KTA/USDT")
    with TestClient(create_app(settings=Settings(), service=service)):
        pass

    assert not stub_provider.closed
