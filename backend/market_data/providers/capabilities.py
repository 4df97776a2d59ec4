"""
Provider Capabilities

Static, provider-owned declaration of what an adapter can serve:
instrument kinds, supported operations and exchange/currency coverage.
The router evaluates `matches()` against every registered adapter on
each request, so it must stay pure.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from market_data.providers.models import InstrumentKind, ProviderInstrument, QuoteContext


class OperationKind(str, Enum):
    """Fetch operations a provider may implement."""
    LATEST = "latest"
    HISTORICAL = "historical"
    SEARCH = "search"
    PROFILE = "profile"


@dataclass(frozen=True)
class Coverage:
    """
    Exchange and currency allow/deny rules.
    
    MIC lists are matched case-insensitively. An explicit deny always
    wins over an allow for the same MIC.
    """
    equity_mic_allow: Optional[tuple[str, ...]] = None
    equity_mic_deny: Optional[tuple[str, ...]] = None
    allow_unknown_mic: bool = True
    metal_quote_ccy_allow: Optional[tuple[str, ...]] = None
    
    def accepts_mic(self, mic: Optional[str]) -> bool:
        """Check whether an equity listed on `mic` is covered."""
        if not mic:
            return True
        
        mic = mic.upper()
        if self.equity_mic_deny and mic in _upper(self.equity_mic_deny):
            return False
        if self.equity_mic_allow and mic in _upper(self.equity_mic_allow):
            return True
        return self.allow_unknown_mic
    
    def accepts_quote_currency(self, currency: Optional[str]) -> bool:
        """Check the quote currency of a non-equity instrument."""
        if self.metal_quote_ccy_allow is None or currency is None:
            return True
        return currency.upper() in _upper(self.metal_quote_ccy_allow)


def _upper(values: tuple[str, ...]) -> frozenset[str]:
    return frozenset(v.upper() for v in values)


@dataclass(frozen=True)
class ProviderCapabilities:
    """What a provider serves. Constructed once per adapter, never mutated."""
    instrument_kinds: frozenset[InstrumentKind]
    coverage: Coverage = field(default_factory=Coverage)
    supports_latest: bool = True
    supports_historical: bool = True
    supports_search: bool = False
    supports_profile: bool = False
    
    def supports(self, operation: OperationKind) -> bool:
        """Check if this provider implements an operation."""
        return {
            OperationKind.LATEST: self.supports_latest,
            OperationKind.HISTORICAL: self.supports_historical,
            OperationKind.SEARCH: self.supports_search,
            OperationKind.PROFILE: self.supports_profile,
        }[operation]
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for status reporting."""
        return {
            "instrument_kinds": sorted(k.value for k in self.instrument_kinds),
            "operations": [op.value for op in OperationKind if self.supports(op)],
            "coverage": {
                "equity_mic_allow": list(self.coverage.equity_mic_allow or []),
                "equity_mic_deny": list(self.coverage.equity_mic_deny or []),
                "allow_unknown_mic": self.coverage.allow_unknown_mic,
                "metal_quote_ccy_allow": (
                    list(self.coverage.metal_quote_ccy_allow)
                    if self.coverage.metal_quote_ccy_allow is not None else None
                ),
            },
        }


def matches(
    capabilities: ProviderCapabilities,
    instrument: ProviderInstrument,
    context: QuoteContext,
) -> bool:
    """
    Check whether a provider may serve an instrument.
    
    Args:
        capabilities: The provider's static capabilities
        instrument: Instrument being priced
        context: Request context (carries the exchange MIC, if known)
        
    Returns:
        True if the instrument is within the provider's coverage
    """
    if instrument.kind not in capabilities.instrument_kinds:
        return False
    
    coverage = capabilities.coverage
    if instrument.kind == InstrumentKind.EQUITY:
        return coverage.accepts_mic(context.exchange_mic)
    
    return coverage.accepts_quote_currency(instrument.quote_currency)
