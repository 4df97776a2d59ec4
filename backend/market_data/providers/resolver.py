"""
Currency Resolver Chain

Ordered fallback rules that derive the quote currency for a
(provider, request context) pair when the vendor response omits it.

Every adapter resolves currency in the same three tiers:
chain -> context.currency_hint -> the adapter's hard default.
"""
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from market_data.providers.models import QuoteContext


# Settlement currency by exchange MIC. Minor units where the venue quotes in them.
EXCHANGE_CURRENCIES: dict[str, str] = {
    "XDAR": "TZS",  # Dar es Salaam
    "XNAI": "KES",  # Nairobi
    "XUGA": "UGX",  # Uganda
    "XJSE": "ZAc",  # Johannesburg
    "XNYS": "USD",
    "XNAS": "USD",
    "ARCX": "USD",
    "XTSE": "CAD",
    "XLON": "GBp",
    "XETR": "EUR",
    "XPAR": "EUR",
    "XAMS": "EUR",
    "XMIL": "EUR",
    "XSWX": "CHF",
    "XTKS": "JPY",
    "XHKG": "HKD",
    "XASX": "AUD",
    "XNSE": "INR",
    "XBOM": "INR",
}


class CurrencyResolver(ABC):
    """A single currency rule."""
    
    @abstractmethod
    def get_currency(self, provider_id: str, context: QuoteContext) -> Optional[str]:
        """Return a currency, or None when the rule does not apply."""


class ExchangeCurrencyResolver(CurrencyResolver):
    """Resolves the currency from the exchange MIC in the request context."""
    
    def __init__(self, mic_currencies: Optional[dict[str, str]] = None):
        table = EXCHANGE_CURRENCIES if mic_currencies is None else mic_currencies
        self._currencies = {mic.upper(): ccy for mic, ccy in table.items()}
    
    def get_currency(self, provider_id: str, context: QuoteContext) -> Optional[str]:
        if not context.exchange_mic:
            return None
        return self._currencies.get(context.exchange_mic.upper())


class ProviderExchangeResolver(CurrencyResolver):
    """Vendor-specific overrides keyed by (provider id, MIC)."""
    
    def __init__(self, overrides: dict[tuple[str, str], str]):
        self._overrides = {
            (provider, mic.upper()): ccy for (provider, mic), ccy in overrides.items()
        }
    
    def get_currency(self, provider_id: str, context: QuoteContext) -> Optional[str]:
        if not context.exchange_mic:
            return None
        return self._overrides.get((provider_id, context.exchange_mic.upper()))


class ResolverChain(CurrencyResolver):
    """Evaluates resolvers in order and returns the first answer."""
    
    def __init__(self, resolvers: Optional[Iterable[CurrencyResolver]] = None):
        self._resolvers: list[CurrencyResolver] = list(resolvers or [])
    
    @classmethod
    def default(cls) -> "ResolverChain":
        """Chain with the built-in exchange currency table."""
        return cls([ExchangeCurrencyResolver()])
    
    def add(self, resolver: CurrencyResolver, first: bool = False) -> None:
        """Append a resolver, or put it ahead of the others."""
        if first:
            self._resolvers.insert(0, resolver)
        else:
            self._resolvers.append(resolver)
    
    def get_currency(self, provider_id: str, context: QuoteContext) -> Optional[str]:
        for resolver in self._resolvers:
            currency = resolver.get_currency(provider_id, context)
            if currency:
                return currency
        return None


def resolve_currency(
    chain: CurrencyResolver,
    provider_id: str,
    context: QuoteContext,
    default: str,
) -> str:
    """Apply the chain, then the context hint, then the provider default."""
    return chain.get_currency(provider_id, context) or context.currency_hint or default
