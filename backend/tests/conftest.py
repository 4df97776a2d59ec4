"""
Market Data Core - Test Configuration
Shared fixtures and test configuration.
"""
import os
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional
import pytest
from unittest.mock import AsyncMock, MagicMock

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment
os.environ["APP_ENV"] = "testing"

from market_data.providers.adapters.base import BaseAdapter, ProviderConfig
from market_data.providers.capabilities import Coverage, ProviderCapabilities
from market_data.providers.errors import ProviderError
from market_data.providers.models import InstrumentKind, Quote
from market_data.providers.rate_limiter import RateLimitConfig


# =========================
# Fake Provider
# =========================

class FakeAdapter(BaseAdapter):
    """
    In-memory adapter. `outcomes` maps an operation name ("latest",
    "historical", "search", "profile") to a value to return, an exception
    to raise, or an async callable invoked with the call arguments.
    """

    def __init__(
        self,
        name: str,
        priority: int = 100,
        capabilities: Optional[ProviderCapabilities] = None,
        rate_limit: Optional[RateLimitConfig] = None,
        outcomes: Optional[dict[str, Any]] = None,
    ):
        super().__init__(ProviderConfig(
            name=name,
            priority=priority,
            capabilities=capabilities or ProviderCapabilities(
                instrument_kinds=frozenset({InstrumentKind.EQUITY}),
                supports_search=True,
                supports_profile=True,
            ),
            rate_limit=rate_limit or RateLimitConfig(),
        ))
        self.outcomes = outcomes or {}
        self.calls: list[str] = []
        self.initialized = False

    async def initialize(self) -> None:
        self.initialized = True

    async def close(self) -> None:
        self.initialized = False

    async def health_check(self) -> bool:
        return True

    async def _run(self, operation: str, *args):
        self.calls.append(operation)
        outcome = self.outcomes.get(operation)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome(*args)
        if outcome is None:
            raise ProviderError(self.name, f"no outcome configured for {operation}")
        return outcome

    async def get_latest_quote(self, context, instrument):
        return await self._run("latest", context, instrument)

    async def get_historical_quotes(self, context, instrument, start, end):
        return await self._run("historical", context, instrument, start, end)

    async def search(self, query):
        return await self._run("search", query)

    async def get_profile(self, symbol):
        return await self._run("profile", symbol)


@pytest.fixture
def make_adapter():
    """Factory for fake adapters."""
    return FakeAdapter


@pytest.fixture
def equity_capabilities() -> ProviderCapabilities:
    """Equities on any exchange except the Johannesburg Stock Exchange."""
    return ProviderCapabilities(
        instrument_kinds=frozenset({InstrumentKind.EQUITY}),
        coverage=Coverage(equity_mic_deny=("XJSE",)),
        supports_search=True,
        supports_profile=True,
    )


# =========================
# Quote Fixtures
# =========================

@pytest.fixture
def sample_quote() -> Quote:
    """Sample canonical quote."""
    return Quote(
        timestamp=datetime(2026, 2, 10, 14, 0, tzinfo=timezone.utc),
        open=Decimal("3150"),
        high=Decimal("3250"),
        low=Decimal("3100"),
        close=Decimal("3200"),
        volume=Decimal("15000"),
        currency="TZS",
        source="DSE",
    )


# =========================
# HTTP Fixtures
# =========================

@pytest.fixture
def mock_session():
    """
    Factory for a mock aiohttp.ClientSession whose get() yields a
    response with the given status and text body.
    """
    def _make(status: int = 200, body: str = "{}") -> MagicMock:
        response = MagicMock()
        response.status = status
        response.text = AsyncMock(return_value=body)

        request_ctx = MagicMock()
        request_ctx.__aenter__ = AsyncMock(return_value=response)
        request_ctx.__aexit__ = AsyncMock(return_value=False)

        session = MagicMock()
        session.get = MagicMock(return_value=request_ctx)
        session.close = AsyncMock()
        return session

    return _make
