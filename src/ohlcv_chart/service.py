"""Chart service: loads charts through the per-timeframe cache."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable

from ohlcv_chart.cache import ChartCache
from ohlcv_chart.candles import build_candles
from ohlcv_chart.config import Settings
from ohlcv_chart.models import ChartResponse
from ohlcv_chart.providers.base import MarketChartProvider
from ohlcv_chart.providers.coingecko import CoinGeckoProvider
from ohlcv_chart.timeframes import DEFAULT_TIMEFRAME, Timeframe

logger = logging.getLogger(__name__)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class ChartService:
    """Serves cached OHLCV charts for a single pair.

    Construct one per process (the FastAPI lifespan does this) and call
    :meth:`close` on shutdown. Upstream errors propagate unchanged; nothing is
    downgraded to an empty chart.
    """

    def __init__(
        self,
        provider: MarketChartProvider,
        pair: str,
        cache: ChartCache | None = None,
        now: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        self.provider = provider
        self.pair = pair
        self.cache = cache if cache is not None else ChartCache()
        self._now = now

    @classmethod
    def from_settings(cls, settings: Settings) -> ChartService:
        provider = CoinGeckoProvider(
            coin_id=settings.pair_id,
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
        )
        return cls(provider=provider, pair=settings.pair)

    @property
    def source(self) -> str:
        return self.provider.name

    async def get_chart(self, timeframe: Timeframe = DEFAULT_TIMEFRAME) -> ChartResponse:
        """Return the chart for *timeframe*, from cache while it is fresh.

        Raises:
            UpstreamError: if a refresh was needed and the upstream fetch failed.
        """
        return await self.cache.get_or_refresh(timeframe, lambda: self._load(timeframe))

    async def _load(self, timeframe: Timeframe) -> ChartResponse:
        config = timeframe.config
        chart = await self.provider.fetch(config)
        candles = build_candles(chart.prices, chart.volumes, config.bucket_width_ms)
        logger.info(
            "Built %d %s candles for %s from %d prices / %d volumes",
            len(candles),
            timeframe.value,
            self.pair,
            len(chart.prices),
            len(chart.volumes),
        )
        return ChartResponse(
            pair=self.pair,
            timeframe=timeframe,
            bucket_width_seconds=config.bucket_width_seconds,
            generated_at=self._now(),
            source=self.source,
            candles=tuple(candles),
        )

    async def close(self) -> None:
        await self.provider.close()
