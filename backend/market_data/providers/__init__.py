"""
Market Data Providers Package

Provider abstraction and routing layer: canonical model, capability
matching, rate limiting, currency resolution, adapters and failover.
"""
from market_data.providers.errors import (
    ErrorKind,
    MarketDataError,
    ProviderTimeoutError,
    RateLimitError,
    ProviderError,
    SymbolNotFoundError,
    UnsupportedAssetTypeError,
    NoDataForRangeError,
    ValidationFailedError,
    NoProviderAvailableError,
)
from market_data.providers.models import (
    InstrumentKind,
    EquitySymbol,
    FxPair,
    CryptoPair,
    MetalSpot,
    ProviderInstrument,
    QuoteContext,
    Quote,
    AssetProfile,
    SearchResult,
)
from market_data.providers.capabilities import (
    OperationKind,
    Coverage,
    ProviderCapabilities,
    matches,
)
from market_data.providers.rate_limiter import RateLimiter, RateLimitConfig
from market_data.providers.resolver import (
    CurrencyResolver,
    ExchangeCurrencyResolver,
    ProviderExchangeResolver,
    ResolverChain,
    resolve_currency,
)
from market_data.providers.data_normalizer import data_normalizer, DataNormalizer
from market_data.providers.failover import FailoverManager, FailoverConfig
from market_data.providers.orchestrator import ProviderOrchestrator, OrchestratorConfig

__all__ = [
    # Errors
    "ErrorKind",
    "MarketDataError",
    "ProviderTimeoutError",
    "RateLimitError",
    "ProviderError",
    "SymbolNotFoundError",
    "UnsupportedAssetTypeError",
    "NoDataForRangeError",
    "ValidationFailedError",
    "NoProviderAvailableError",
    # Models
    "InstrumentKind",
    "EquitySymbol",
    "FxPair",
    "CryptoPair",
    "MetalSpot",
    "ProviderInstrument",
    "QuoteContext",
    "Quote",
    "AssetProfile",
    "SearchResult",
    # Capabilities
    "OperationKind",
    "Coverage",
    "ProviderCapabilities",
    "matches",
    # Rate Limiter
    "RateLimiter",
    "RateLimitConfig",
    # Resolver
    "CurrencyResolver",
    "ExchangeCurrencyResolver",
    "ProviderExchangeResolver",
    "ResolverChain",
    "resolve_currency",
    # Data Normalizer
    "data_normalizer",
    "DataNormalizer",
    # Failover
    "FailoverManager",
    "FailoverConfig",
    # Orchestrator
    "ProviderOrchestrator",
    "OrchestratorConfig",
]
