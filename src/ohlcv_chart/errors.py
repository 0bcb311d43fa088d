"""Exception hierarchy for chart loading and request validation."""

from __future__ import annotations


class ChartError(Exception):
    """Base class for every error raised by ohlcv-chart."""


class UpstreamError(ChartError):
    """The upstream price-history provider could not deliver usable data."""


class UpstreamUnreachable(UpstreamError):
    """The request never completed (DNS, refused connection, timeout …)."""


class UpstreamHTTPError(UpstreamError):
    """The provider answered with a non-2xx status."""

    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = status
        super().__init__(message or f"upstream request failed with status {status}")


class UpstreamMalformedResponse(UpstreamError):
    """The response body does not match the expected market-chart shape."""


class InvalidTimeframe(ChartError, ValueError):
    """A timeframe selector outside the supported set."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"unsupported timeframe: {value!r}")
