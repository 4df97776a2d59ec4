"""
Base Provider Adapter Interface

Defines the abstract interface that all market data provider adapters must implement.
The router only ever holds this type, never a concrete vendor adapter.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from loguru import logger

from market_data.providers.capabilities import ProviderCapabilities
from market_data.providers.errors import UnsupportedAssetTypeError
from market_data.providers.models import (
    AssetProfile,
    InstrumentKind,
    ProviderInstrument,
    Quote,
    QuoteContext,
    SearchResult,
)
from market_data.providers.rate_limiter import RateLimitConfig
from market_data.providers.resolver import CurrencyResolver, ResolverChain, resolve_currency


@dataclass
class ProviderConfig:
    """Construction-time configuration for a data provider."""
    name: str
    capabilities: ProviderCapabilities
    api_key: Optional[str] = None
    base_url: str = ""
    default_currency: str = "USD"

    # Timeouts
    timeout_seconds: float = 30.0

    # Rate limiting
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    # Priority (lower = tried first)
    priority: int = 100


@dataclass
class ProviderStatus:
    """Observational status for a provider. Never used for routing."""
    name: str
    last_success: Optional[datetime] = None
    last_error: Optional[datetime] = None
    last_error_message: Optional[str] = None
    error_count: int = 0
    success_count: int = 0
    avg_latency_ms: float = 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "last_success": self.last_success.isoformat() if self.last_success else None,
            "last_error": self.last_error.isoformat() if self.last_error else None,
            "last_error_message": self.last_error_message,
            "error_count": self.error_count,
            "success_count": self.success_count,
            "avg_latency_ms": round(self.avg_latency_ms, 2),
        }


class BaseAdapter(ABC):
    """
    Abstract base class for all market data provider adapters.

    Each provider adapter must implement:
    - initialize() / close(): manage the HTTP session
    - health_check(): verify provider connectivity
    - get_latest_quote(): latest quote for an instrument
    - get_historical_quotes(): daily bars for an instrument

    and, when its capabilities declare them:
    - search(): symbol search
    - get_profile(): asset profile

    Failures are raised as MarketDataError subclasses.
    """

    def __init__(self, config: ProviderConfig, resolver: Optional[CurrencyResolver] = None):
        self.config = config
        self.name = config.name
        self.resolver = resolver or ResolverChain.default()
        self._status = ProviderStatus(name=config.name)

    # ==================== Descriptor ====================

    @property
    def id(self) -> str:
        return self.config.name

    @property
    def priority(self) -> int:
        return self.config.priority

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self.config.capabilities

    @property
    def rate_limit(self) -> RateLimitConfig:
        return self.config.rate_limit

    @property
    def status(self) -> ProviderStatus:
        """Get current provider status."""
        return self._status

    # ==================== Lifecycle ====================

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the adapter (create sessions)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is accessible."""
        pass

    # ==================== Operations ====================

    @abstractmethod
    async def get_latest_quote(
        self,
        context: QuoteContext,
        instrument: ProviderInstrument,
    ) -> Quote:
        """
        Get the latest quote for an instrument.

        Raises:
            MarketDataError: If the request fails
        """
        pass

    @abstractmethod
    async def get_historical_quotes(
        self,
        context: QuoteContext,
        instrument: ProviderInstrument,
        start: datetime,
        end: datetime,
    ) -> list[Quote]:
        """
        Get daily quotes between two instants.

        Returns:
            Quotes sorted ascending by timestamp
        """
        pass

    async def search(self, query: str) -> list[SearchResult]:
        """Search for symbols."""
        raise UnsupportedAssetTypeError(f"{self.name} does not support search", provider=self.name)

    async def get_profile(self, symbol: str) -> AssetProfile:
        """Get the asset profile for a symbol."""
        raise UnsupportedAssetTypeError(f"{self.name} does not support profiles", provider=self.name)

    # Helper methods
    def resolve_currency(self, context: QuoteContext) -> str:
        """Resolver chain, then the context hint, then this provider's default."""
        return resolve_currency(self.resolver, self.id, context, self.config.default_currency)

    def extract_symbol(self, instrument: ProviderInstrument) -> str:
        """Return the ticker of an equity instrument, rejecting other kinds."""
        if instrument.kind != InstrumentKind.EQUITY:
            raise UnsupportedAssetTypeError(
                f"{self.name} only supports equities", provider=self.name
            )
        return instrument.symbol

    def _record_success(self, latency_ms: float) -> None:
        """Record a successful request."""
        self._status.success_count += 1
        self._status.last_success = datetime.now(timezone.utc)

        # Update average latency (exponential moving average)
        alpha = 0.1
        self._status.avg_latency_ms = (
            alpha * latency_ms + (1 - alpha) * self._status.avg_latency_ms
        )
        self._status.error_count = 0

    def _record_error(self, error: Exception) -> None:
        """Record a failed request."""
        self._status.error_count += 1
        self._status.last_error = datetime.now(timezone.utc)
        self._status.last_error_message = str(error)
        logger.debug(f"Provider {self.name} error #{self._status.error_count}: {error}")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, priority={self.priority})>"
