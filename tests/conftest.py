import datetime

import pytest

from ohlcv_chart.models import ChartResponse, MarketChart
from ohlcv_chart.providers.base import MarketChartProvider
from ohlcv_chart.timeframes import Timeframe


class FakeClock:
    def __init__(self, start=1_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class StubProvider(MarketChartProvider):
    """Returns a canned chart (or raises) and records each request."""

    name = "stub"

    def __init__(self, chart=None, error=None):
        self.chart = chart if chart is not None else MarketChart(prices=())
        self.error = error
        self.calls = []
        self.closed = False

    async def fetch(self, config):
        self.calls.append(config)
        if self.error is not None:
            raise self.error
        return self.chart

    async def close(self):
        self.closed = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def make_response():
    def _make(timeframe=Timeframe.ONE_DAY, pair="KTA/USDT"):
        return ChartResponse(
            pair=pair,
            timeframe=timeframe,
            bucket_width_seconds=timeframe.config.bucket_width_seconds,
            generated_at=datetime.datetime.now(datetime.timezone.utc),
            source="stub",
        )

    return _make
