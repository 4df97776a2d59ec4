"""
Canonical Market Data Model

Vendor-independent shapes every adapter normalizes into. All monetary
fields are Decimal; instances are immutable values.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from market_data.providers.errors import ValidationFailedError


class InstrumentKind(str, Enum):
    """Asset kinds an instrument can identify."""
    EQUITY = "equity"
    FX = "fx"
    CRYPTO = "crypto"
    METAL = "metal"


# ==================== Instruments ====================

@dataclass(frozen=True)
class EquitySymbol:
    """Equity identified by its ticker symbol."""
    symbol: str
    
    kind: ClassVar[InstrumentKind] = InstrumentKind.EQUITY
    
    @property
    def quote_currency(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class FxPair:
    """Currency pair, priced as units of `to_currency` per `from_currency`."""
    from_currency: str
    to_currency: str
    
    kind: ClassVar[InstrumentKind] = InstrumentKind.FX
    
    @property
    def quote_currency(self) -> Optional[str]:
        return self.to_currency


@dataclass(frozen=True)
class CryptoPair:
    """Crypto asset quoted in a fiat or crypto currency."""
    symbol: str
    quote_currency: str
    
    kind: ClassVar[InstrumentKind] = InstrumentKind.CRYPTO


@dataclass(frozen=True)
class MetalSpot:
    """Precious metal spot price (e.g. XAU) in a quote currency."""
    metal: str
    quote_currency: str
    
    kind: ClassVar[InstrumentKind] = InstrumentKind.METAL


ProviderInstrument = Union[EquitySymbol, FxPair, CryptoPair, MetalSpot]


# ==================== Request Context ====================

@dataclass(frozen=True)
class QuoteContext:
    """Ambient hints for a quote request. Read-only to adapters."""
    currency_hint: Optional[str] = None
    exchange_mic: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


# ==================== Results ====================

def _decimal_str(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


@dataclass(frozen=True)
class Quote:
    """Normalized OHLCV record."""
    timestamp: datetime
    close: Decimal
    currency: str
    source: str
    open: Optional[Decimal] = None
    high: Optional[Decimal] = None
    low: Optional[Decimal] = None
    volume: Optional[Decimal] = None
    
    def __post_init__(self):
        if not isinstance(self.close, Decimal) or not self.close.is_finite():
            raise ValidationFailedError(f"Invalid close price: {self.close!r}", provider=self.source)
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "open": _decimal_str(self.open),
            "high": _decimal_str(self.high),
            "low": _decimal_str(self.low),
            "close": str(self.close),
            "volume": _decimal_str(self.volume),
            "currency": self.currency,
            "source": self.source,
        }


@dataclass(frozen=True)
class AssetProfile:
    """Descriptive metadata for a security. Only `name` is mandatory."""
    name: str
    source: Optional[str] = None
    quote_type: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    market_cap: Optional[Decimal] = None
    employees: Optional[int] = None
    logo_url: Optional[str] = None
    pe_ratio: Optional[Decimal] = None
    dividend_yield: Optional[Decimal] = None
    week_52_high: Optional[Decimal] = None
    week_52_low: Optional[Decimal] = None
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "source": self.source,
            "quote_type": self.quote_type,
            "sector": self.sector,
            "industry": self.industry,
            "country": self.country,
            "description": self.description,
            "website": self.website,
            "market_cap": _decimal_str(self.market_cap),
            "employees": self.employees,
            "logo_url": self.logo_url,
            "pe_ratio": _decimal_str(self.pe_ratio),
            "dividend_yield": _decimal_str(self.dividend_yield),
            "week_52_high": _decimal_str(self.week_52_high),
            "week_52_low": _decimal_str(self.week_52_low),
        }


@dataclass(frozen=True)
class SearchResult:
    """
    Symbol search hit.
    
    Build with the fluent constructor:
    
        SearchResult.create("TCC", "Tanzania Cigarette Company", "DSE", "EQUITY")
            .with_exchange_mic("XDAR")
            .with_currency("TZS")
            .with_data_source("DSE")
    """
    symbol: str
    name: str
    exchange: str
    asset_type: str
    exchange_mic: Optional[str] = None
    exchange_name: Optional[str] = None
    currency: Optional[str] = None
    data_source: Optional[str] = None
    
    @classmethod
    def create(cls, symbol: str, name: str, exchange: str, asset_type: str) -> "SearchResult":
        """New result; the exchange display name defaults to the exchange code."""
        return cls(
            symbol=symbol,
            name=name,
            exchange=exchange,
            asset_type=(asset_type or "EQUITY").upper(),
            exchange_name=exchange,
        )
    
    def with_exchange_mic(self, mic: str) -> "SearchResult":
        return replace(self, exchange_mic=mic)
    
    def with_exchange_name(self, name: str) -> "SearchResult":
        return replace(self, exchange_name=name)
    
    def with_currency(self, currency: str) -> "SearchResult":
        return replace(self, currency=currency)
    
    def with_data_source(self, source: str) -> "SearchResult":
        return replace(self, data_source=source)
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "exchange": self.exchange,
            "asset_type": self.asset_type,
            "exchange_mic": self.exchange_mic,
            "exchange_name": self.exchange_name,
            "currency": self.currency,
            "data_source": self.data_source,
        }
