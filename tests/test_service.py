import asyncio
import datetime

import pytest

from ohlcv_chart.cache import ChartCache
from ohlcv_chart.config import Settings
from ohlcv_chart.errors import UpstreamMalformedResponse, UpstreamUnreachable
from ohlcv_chart.models import Candle, MarketChart, PricePoint, VolumePoint
from ohlcv_chart.providers.coingecko import CoinGeckoProvider
from ohlcv_chart.service import ChartService
from ohlcv_chart.timeframes import Timeframe

FIXED_NOW = datetime.datetime(2024, 5, 1, tzinfo=datetime.timezone.utc)
HOUR_MS = 3_600_000


@pytest.fixture
def service(stub_provider, clock):
    return ChartService(
        provider=stub_provider,
        pair="KTA/USDT",
        cache=ChartCache(clock=clock),
        now=lambda: FIXED_NOW,
    )


async def test_builds_chart_from_provider_series(service, stub_provider):
    stub_provider.chart = MarketChart(
        prices=(
            PricePoint(HOUR_MS + 10, 2.0),
            PricePoint(10, 1.0),
            PricePoint(HOUR_MS + 20, 3.0),
        ),
        volumes=(VolumePoint(5, 100.0), VolumePoint(HOUR_MS + 15, 50.0)),
    )

    chart = await service.get_chart(Timeframe.SEVEN_DAYS)

    assert stub_provider.calls == [Timeframe.SEVEN_DAYS.config]
    assert chart.pair == "KTA/USDT"
    assert chart.timeframe is Timeframe.SEVEN_DAYS
    assert chart.bucket_width_seconds == 3600
    assert chart.generated_at == FIXED_NOW
    assert chart.source == "stub"
    assert chart.candles == (
        Candle(time=0, open=1.0, high=1.0, low=1.0, close=1.0, volume=100.0),
        Candle(time=3600, open=2.0, high=3.0, low=2.0, close=3.0, volume=50.0),
    )


async def test_default_timeframe_is_one_day(service, stub_provider):
    chart = await service.get_chart()

    assert chart.timeframe is Timeframe.ONE_DAY
    assert stub_provider.calls == [Timeframe.ONE_DAY.config]
    assert chart.candles == ()


async def test_repeat_request_served_from_cache(service, stub_provider, clock):
    first = await service.get_chart(Timeframe.ONE_DAY)
    second = await service.get_chart(Timeframe.ONE_DAY)
    assert second is first
    assert len(stub_provider.calls) == 1

    clock.advance(60)
    third = await service.get_chart(Timeframe.ONE_DAY)
    assert third is not first
    assert len(stub_provider.calls) == 2


async def test_concurrent_requests_hit_upstream_once(service, stub_provider):
    results = await asyncio.gather(*(service.get_chart(Timeframe.THIRTY_DAYS) for _ in range(8)))

    assert len(stub_provider.calls) == 1
    assert all(result is results[0] for result in results)


@pytest.mark.parametrize("error", [UpstreamUnreachable("down"), UpstreamMalformedResponse("bad")])
async def test_upstream_errors_propagate(service, stub_provider, error):
    stub_provider.error = error

    with pytest.raises(type(error)) as info:
        await service.get_chart(Timeframe.ONE_DAY)

    assert info.value is error
    assert service.cache.peek(Timeframe.ONE_DAY, allow_stale=True) is None


async def test_close_closes_provider(service, stub_provider):
    await service.close()

    assert stub_provider.closed


async def test_from_settings_wires_coingecko():
    settings = Settings(base_url="http://upstream.test/api/v3/", pair="ABC/USDT", pair_id="abc", timeout_seconds=3)

    service = ChartService.from_settings(settings)
    try:
        assert isinstance(service.provider, CoinGeckoProvider)
        assert service.provider.url() == "http://upstream.test/api/v3/coins/abc/market_chart"
        assert service.pair == "ABC/USDT"
        assert service.source == "coingecko"
    finally:
        await service.close()
