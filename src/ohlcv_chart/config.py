"""Runtime settings, read from the environment (and a ``.env`` file if present)."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv

from ohlcv_chart.providers.coingecko import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS


@dataclass(slots=True, frozen=True)
class Settings:
    """Service configuration.

    Env vars: ``COINGECKO_BASE_URL``, ``CHART_PAIR``, ``CHART_PAIR_ID``,
    ``UPSTREAM_TIMEOUT_SECONDS``, ``LOG_LEVEL``, ``API_HOST``, ``API_PORT``.
    """

    base_url: str = DEFAULT_BASE_URL
    pair: str = "KTA/USDT"
    pair_id: str = "keeta"
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")

    @property
    def pair_slug(self) -> str:
        """URL-safe pair name, e.g. ``KTA/USDT`` → ``kta-usdt``."""
        return re.sub(r"[^a-z0-9]+", "-", self.pair.lower()).strip("-")

    @classmethod
    def from_env(cls, dotenv: bool = True) -> Settings:
        if dotenv:
            load_dotenv()
        return cls(
            base_url=os.getenv("COINGECKO_BASE_URL") or DEFAULT_BASE_URL,
            pair=os.getenv("CHART_PAIR") or "KTA/USDT",
            pair_id=os.getenv("CHART_PAIR_ID") or "keeta",
            timeout_seconds=float(os.getenv("UPSTREAM_TIMEOUT_SECONDS") or DEFAULT_TIMEOUT_SECONDS),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
            host=os.getenv("API_HOST") or "0.0.0.0",
            port=int(os.getenv("API_PORT") or 8080),
        )
