"""CoinGecko provider — raw price and volume history from ``/market_chart``."""

from __future__ import annotations

import asyncio
import logging

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ohlcv_chart.errors import UpstreamHTTPError, UpstreamMalformedResponse, UpstreamUnreachable
from ohlcv_chart.models import MarketChart, PricePoint, VolumePoint
from ohlcv_chart.providers.base import MarketChartProvider
from ohlcv_chart.timeframes import TimeframeConfig

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
DEFAULT_TIMEOUT_SECONDS = 10.0
USER_AGENT = "ohlcv-chart/0.1.0"

# Only this much of an error body ends up in the log line
_BODY_SNIPPET = 200


class _MarketChartPayload(BaseModel):
    """Expected body shape. Strict JSON mode: no string/bool coercion, no NaN."""

    model_config = ConfigDict(strict=True, allow_inf_nan=False)

    prices: list[tuple[float, float]]
    total_volumes: list[tuple[float, float]] = Field(default_factory=list)


def parse_market_chart(body: bytes | str) -> MarketChart:
    """Validate a raw ``market_chart`` body and decode it into a :class:`MarketChart`.

    Raises:
        UpstreamMalformedResponse: if the body is not JSON or not the expected shape.
    """
    try:
        payload = _MarketChartPayload.model_validate_json(body)
    except ValidationError as exc:
        raise UpstreamMalformedResponse(
            f"unexpected market_chart structure: {exc.error_count()} validation error(s)"
        ) from exc

    return MarketChart(
        prices=tuple(PricePoint(timestamp_ms=int(ts), price=price) for ts, price in payload.prices),
        volumes=tuple(
            VolumePoint(timestamp_ms=int(ts), volume=volume) for ts, volume in payload.total_volumes
        ),
    )


class CoinGeckoProvider(MarketChartProvider):
    """Fetches ``market_chart`` history for one coin from the CoinGecko REST API.

    No API key required on the public endpoint. A single ``ClientSession`` is
    created lazily and reused across requests; pass *session* to share one
    owned elsewhere (it is then left open by :meth:`close`).
    """

    name = "coingecko"

    def __init__(
        self,
        coin_id: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.coin_id = coin_id
        self.base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    def url(self) -> str:
        return f"{self.base_url}/coins/{self.coin_id}/market_chart"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def fetch(self, config: TimeframeConfig) -> MarketChart:
        url = self.url()
        params = {"vs_currency": "usd", "days": str(config.lookback_days)}
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}

        logger.info("Fetching CoinGecko chart for %s (%d days): %s", self.coin_id, config.lookback_days, url)

        session = await self._get_session()
        try:
            async with session.get(url, params=params, headers=headers, timeout=self._timeout) as resp:
                body = await resp.read()
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Failed to reach CoinGecko for %s (%d days): %r", self.coin_id, config.lookback_days, exc)
            raise UpstreamUnreachable(f"unable to contact CoinGecko API: {exc!r}") from exc

        if not 200 <= status < 300:
            snippet = body[:_BODY_SNIPPET].decode("utf-8", errors="replace")
            logger.error("CoinGecko responded with status %d for %s: %s", status, self.coin_id, snippet)
            raise UpstreamHTTPError(status, f"CoinGecko request failed with status {status}")

        try:
            return parse_market_chart(body)
        except UpstreamMalformedResponse:
            logger.error("CoinGecko response validation failed for %s", self.coin_id)
            raise
