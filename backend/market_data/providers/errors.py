"""
Market Data Errors

Error taxonomy shared by every provider adapter and the router.
Each error carries a kind tag so callers can branch on the outcome
without inspecting messages.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Tag identifying the class of a market data failure."""
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"
    SYMBOL_NOT_FOUND = "symbol_not_found"
    UNSUPPORTED_ASSET_TYPE = "unsupported_asset_type"
    NO_DATA_FOR_RANGE = "no_data_for_range"
    VALIDATION_FAILED = "validation_failed"
    NO_PROVIDER_AVAILABLE = "no_provider_available"


TRANSIENT_KINDS = frozenset({ErrorKind.TIMEOUT, ErrorKind.RATE_LIMITED})

NOT_FOUND_KINDS = frozenset({
    ErrorKind.SYMBOL_NOT_FOUND,
    ErrorKind.UNSUPPORTED_ASSET_TYPE,
    ErrorKind.NO_DATA_FOR_RANGE,
})


class MarketDataError(Exception):
    """Base exception for market data failures."""
    
    kind: ErrorKind = ErrorKind.PROVIDER_ERROR
    
    def __init__(self, message: str, provider: Optional[str] = None):
        self.message = message
        self.provider = provider
        prefix = f"[{provider}] " if provider else ""
        super().__init__(f"{prefix}{message}")
    
    @property
    def is_transient(self) -> bool:
        """Timeouts and rate limits: the provider may answer later."""
        return self.kind in TRANSIENT_KINDS
    
    @property
    def is_not_found(self) -> bool:
        """The provider answered correctly that it has nothing."""
        return self.kind in NOT_FOUND_KINDS


class ProviderTimeoutError(MarketDataError):
    """Request exceeded its deadline."""
    
    kind = ErrorKind.TIMEOUT
    
    def __init__(self, provider: str, message: str = "Request timed out"):
        super().__init__(message, provider=provider)


class RateLimitError(MarketDataError):
    """Rate limit exceeded error."""
    
    kind = ErrorKind.RATE_LIMITED
    
    def __init__(self, provider: str, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        message = "Rate limit exceeded"
        if retry_after is not None:
            message += f". Retry after: {retry_after:.1f}s"
        super().__init__(message, provider=provider)


class ProviderError(MarketDataError):
    """Vendor returned an error status or a malformed payload."""
    
    kind = ErrorKind.PROVIDER_ERROR
    
    def __init__(self, provider: str, message: str):
        super().__init__(message, provider=provider)


class SymbolNotFoundError(MarketDataError):
    """Vendor affirmatively has no data for the requested symbol."""
    
    kind = ErrorKind.SYMBOL_NOT_FOUND


class UnsupportedAssetTypeError(MarketDataError):
    """Instrument kind is incompatible with the adapter."""
    
    kind = ErrorKind.UNSUPPORTED_ASSET_TYPE


class NoDataForRangeError(MarketDataError):
    """Historical query produced no usable rows."""
    
    kind = ErrorKind.NO_DATA_FOR_RANGE
    
    def __init__(self, message: str = "No data for the requested range", provider: Optional[str] = None):
        super().__init__(message, provider=provider)


class ValidationFailedError(MarketDataError):
    """A mandatory field failed numeric or shape validation."""
    
    kind = ErrorKind.VALIDATION_FAILED


class NoProviderAvailableError(MarketDataError):
    """No registered provider can serve the request."""
    
    kind = ErrorKind.NO_PROVIDER_AVAILABLE
