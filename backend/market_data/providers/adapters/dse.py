"""
Dar es Salaam Stock Exchange (DSE) Adapter

Fetches Tanzanian equity data from an external DSE API service.

Endpoints:
- GET /api/v1/quotes/{symbol}/latest
- GET /api/v1/quotes/{symbol}/history?start=YYYY-MM-DD&end=YYYY-MM-DD
- GET /api/v1/symbols/search?query=...
- GET /api/v1/symbols/{symbol}/profile

Auth: API key via `X-API-Key` header (optional).
"""
import asyncio
import json
import time
from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote as url_quote

import aiohttp
from loguru import logger

from market_data.providers.adapters.base import BaseAdapter, ProviderConfig
from market_data.providers.capabilities import Coverage, ProviderCapabilities
from market_data.providers.data_normalizer import data_normalizer
from market_data.providers.errors import (
    NoDataForRangeError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    SymbolNotFoundError,
)
from market_data.providers.models import (
    AssetProfile,
    InstrumentKind,
    ProviderInstrument,
    Quote,
    QuoteContext,
    SearchResult,
)
from market_data.providers.rate_limiter import RateLimitConfig
from market_data.providers.resolver import CurrencyResolver


DSE_DEFAULT_BASE_URL = "http://localhost:9090"
DSE_PROVIDER_ID = "DSE"
DSE_MIC = "XDAR"
DSE_EXCHANGE_NAME = "Dar es Salaam Stock Exchange"
DSE_DEFAULT_CURRENCY = "TZS"


def create_dse_config(api_key: str = "", base_url: str = DSE_DEFAULT_BASE_URL) -> ProviderConfig:
    """Create configuration for DSE adapter."""
    return ProviderConfig(
        name=DSE_PROVIDER_ID,
        api_key=api_key or None,
        base_url=(base_url or DSE_DEFAULT_BASE_URL).strip().rstrip("/"),
        default_currency=DSE_DEFAULT_CURRENCY,
        timeout_seconds=30.0,
        rate_limit=RateLimitConfig(
            requests_per_minute=120,
            max_concurrency=5,
            min_delay=0.1,
        ),
        capabilities=ProviderCapabilities(
            instrument_kinds=frozenset({InstrumentKind.EQUITY}),
            coverage=Coverage(
                equity_mic_allow=(DSE_MIC,),
                equity_mic_deny=None,
                allow_unknown_mic=True,
                metal_quote_ccy_allow=None,
            ),
            supports_latest=True,
            supports_historical=True,
            supports_search=True,
            supports_profile=True,
        ),
        priority=5,
    )


class DSEAdapter(BaseAdapter):
    """
    DSE data provider adapter.

    Features:
    - Latest and daily historical quotes (TZS)
    - Symbol search with XDAR exchange metadata
    - Company profiles

    Usage:
        config = create_dse_config("your_api_key")
        adapter = DSEAdapter(config)
        await adapter.initialize()

        quote = await adapter.get_latest_quote(QuoteContext(), EquitySymbol("CRDB"))
        bars = await adapter.get_historical_quotes(QuoteContext(), EquitySymbol("TCC"), start, end)
    """

    def __init__(self, config: ProviderConfig, resolver: Optional[CurrencyResolver] = None):
        super().__init__(config, resolver)
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            logger.info(f"DSE adapter initialized ({self.config.base_url})")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
        logger.info("DSE adapter closed")

    async def health_check(self) -> bool:
        """Check API connectivity."""
        try:
            await self._fetch("/api/v1/symbols/search?query=DSE")
            return True
        except Exception as e:
            logger.error(f"DSE health check failed: {e}")
            return False

    # ==================== HTTP ====================

    async def _fetch(self, path: str) -> str:
        """Shared GET with auth and status-to-error mapping."""
        if self._session is None:
            await self.initialize()

        url = f"{self.config.base_url}{path}"
        headers = {"Accept": "application/json"}
        if self.config.api_key:
            headers["X-API-Key"] = self.config.api_key

        logger.debug(f"DSE request: {path}")

        try:
            start_time = time.monotonic()
            async with self._session.get(url, headers=headers) as response:
                status = response.status
                body = await response.text()
            latency_ms = (time.monotonic() - start_time) * 1000
        except asyncio.TimeoutError as e:
            self._record_error(e)
            raise ProviderTimeoutError(DSE_PROVIDER_ID)
        except aiohttp.ClientError as e:
            self._record_error(e)
            raise ProviderError(DSE_PROVIDER_ID, f"Request failed: {e}")

        logger.debug(f"DSE response status: {status} for {path}")

        if status == 429:
            error = RateLimitError(DSE_PROVIDER_ID)
        elif status == 401:
            error = ProviderError(DSE_PROVIDER_ID, "Invalid or missing API key")
        elif not 200 <= status < 300:
            error = ProviderError(DSE_PROVIDER_ID, self._error_message(status, body))
        else:
            self._record_success(latency_ms)
            return body

        self._record_error(error)
        raise error

    @staticmethod
    def _error_message(status: int, body: str) -> str:
        """Prefer the `error`/`message` field of a JSON error body."""
        try:
            payload = json.loads(body)
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            for key in ("error", "message"):
                message = payload.get(key)
                if isinstance(message, str):
                    return message

        return f"HTTP {status} - {body}"

    @staticmethod
    def _parse(text: str, what: str, expected: type = dict) -> Any:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise ProviderError(DSE_PROVIDER_ID, f"Failed to parse {what} response: {e}")
        if not isinstance(data, expected):
            raise ProviderError(
                DSE_PROVIDER_ID,
                f"Failed to parse {what} response: expected {expected.__name__}, got {type(data).__name__}",
            )
        return data

    # ==================== Quote Methods ====================

    async def get_latest_quote(
        self,
        context: QuoteContext,
        instrument: ProviderInstrument,
    ) -> Quote:
        """Get the latest quote for a DSE equity."""
        symbol = self.extract_symbol(instrument)
        currency = self.resolve_currency(context)
        logger.debug(f"Fetching latest quote for {symbol} from DSE")

        text = await self._fetch(f"/api/v1/quotes/{url_quote(symbol, safe='')}/latest")
        data = self._parse(text, "quote")
        return data_normalizer.normalize_latest(data, symbol, DSE_PROVIDER_ID, currency)

    async def get_historical_quotes(
        self,
        context: QuoteContext,
        instrument: ProviderInstrument,
        start: datetime,
        end: datetime,
    ) -> list[Quote]:
        """Get daily bars for a DSE equity."""
        symbol = self.extract_symbol(instrument)
        currency = self.resolve_currency(context)
        start_day = start.strftime("%Y-%m-%d")
        end_day = end.strftime("%Y-%m-%d")
        logger.debug(f"Fetching historical quotes for {symbol} from DSE ({start_day} to {end_day})")

        text = await self._fetch(
            f"/api/v1/quotes/{url_quote(symbol, safe='')}/history?start={start_day}&end={end_day}"
        )
        data = self._parse(text, "historical")

        rows = data.get("quotes")
        if not isinstance(rows, list):
            raise ProviderError(DSE_PROVIDER_ID, "Failed to parse historical response: missing quotes")
        if not rows:
            raise NoDataForRangeError(provider=DSE_PROVIDER_ID)

        response_currency = data_normalizer.to_text(data.get("currency")) or currency
        return data_normalizer.normalize_history(rows, DSE_PROVIDER_ID, response_currency)

    # ==================== Reference Data ====================

    async def search(self, query: str) -> list[SearchResult]:
        """Search DSE listings."""
        logger.debug(f"Searching DSE for '{query}'")

        text = await self._fetch(f"/api/v1/symbols/search?query={url_quote(query, safe='')}")
        data = self._parse(text, "search")

        items = data.get("results")
        if not isinstance(items, list):
            raise ProviderError(DSE_PROVIDER_ID, "Failed to parse search response: missing results")

        results = []
        for item in items:
            symbol = data_normalizer.to_text(item.get("symbol")) if isinstance(item, dict) else None
            name = data_normalizer.to_text(item.get("name")) if isinstance(item, dict) else None
            if symbol is None or name is None:
                logger.warning(f"DSE: skipping search result without symbol/name: {item!r}")
                continue

            results.append(
                SearchResult.create(symbol, name, DSE_PROVIDER_ID, data_normalizer.to_text(item.get("type")) or "EQUITY")
                .with_exchange_mic(DSE_MIC)
                .with_exchange_name(DSE_EXCHANGE_NAME)
                .with_currency(data_normalizer.to_text(item.get("currency")) or DSE_DEFAULT_CURRENCY)
                .with_data_source(DSE_PROVIDER_ID)
            )

        return results

    async def get_profile(self, symbol: str) -> AssetProfile:
        """Get the company profile for a DSE listing."""
        logger.debug(f"Fetching profile for {symbol} from DSE")

        text = await self._fetch(f"/api/v1/symbols/{url_quote(symbol, safe='')}/profile")
        if text.strip() in ("", "{}", "null"):
            raise SymbolNotFoundError(f"No profile data for symbol: {symbol}", provider=DSE_PROVIDER_ID)

        data = self._parse(text, "profile")
        return data_normalizer.normalize_profile(data, symbol, DSE_PROVIDER_ID, quote_type="EQUITY")
