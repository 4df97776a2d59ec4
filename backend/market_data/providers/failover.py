"""
Failover Manager

Registry of provider adapters plus the sequential call-with-fallback loop.
Candidates are filtered by capabilities and coverage, ordered by priority,
and tried one at a time under rate limiter admission.
"""
import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from market_data.providers.adapters.base import BaseAdapter
from market_data.providers.capabilities import OperationKind, matches
from market_data.providers.errors import (
    MarketDataError,
    NoProviderAvailableError,
    ProviderError,
    ProviderTimeoutError,
)
from market_data.providers.models import ProviderInstrument, QuoteContext
from market_data.providers.rate_limiter import RateLimiter


T = TypeVar('T')


@dataclass
class FailoverConfig:
    """Configuration for failover behavior."""
    request_timeout: float = 30.0    # seconds, per candidate
    blocking_admission: bool = False  # wait for a full rate window instead of failing over


class FailoverManager:
    """
    Manages failover between data providers.

    Features:
    - Capability and coverage filtering per request
    - Stable priority ordering (ties keep registration order)
    - Per-candidate timeout with guaranteed rate limiter slot release
    - Terminal error precedence: "not found" answers win over opaque failures

    Candidates are never raced: querying a losing candidate costs quota.
    """

    def __init__(
        self,
        config: Optional[FailoverConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.config = config or FailoverConfig()
        self.rate_limiter = rate_limiter or RateLimiter()
        self._providers: list[BaseAdapter] = []

    # ==================== Registry ====================

    def register_provider(self, adapter: BaseAdapter) -> None:
        """Register a data provider adapter."""
        if self.get_provider(adapter.id) is not None:
            raise ValueError(f"Provider already registered: {adapter.id}")

        self._providers.append(adapter)
        self.rate_limiter.configure(adapter.id, adapter.rate_limit)

        logger.info(
            f"Registered provider: {adapter.id} "
            f"(priority: {adapter.priority}, "
            f"kinds: {sorted(k.value for k in adapter.capabilities.instrument_kinds)})"
        )

    def unregister_provider(self, provider_id: str) -> Optional[BaseAdapter]:
        """Remove a provider; returns it, or None if it was not registered."""
        adapter = self.get_provider(provider_id)
        if adapter is None:
            return None

        self._providers.remove(adapter)
        self.rate_limiter.remove(provider_id)
        logger.info(f"Unregistered provider: {provider_id}")
        return adapter

    def get_provider(self, provider_id: str) -> Optional[BaseAdapter]:
        """Get a specific provider by id."""
        for adapter in self._providers:
            if adapter.id == provider_id:
                return adapter
        return None

    @property
    def providers(self) -> list[BaseAdapter]:
        """Registered providers in registration order."""
        return list(self._providers)

    # ==================== Selection ====================

    def candidates(
        self,
        operation: OperationKind,
        instrument: Optional[ProviderInstrument] = None,
        context: Optional[QuoteContext] = None,
    ) -> list[BaseAdapter]:
        """
        Providers eligible for a request, in the order they will be tried.

        Args:
            operation: Requested operation
            instrument: Instrument to match against coverage (None for search)
            context: Request context

        Returns:
            Eligible providers by ascending priority, ties in registration order
        """
        context = context or QuoteContext()
        eligible = [
            adapter for adapter in self._providers
            if adapter.capabilities.supports(operation)
            and (instrument is None or matches(adapter.capabilities, instrument, context))
        ]
        # sorted() is stable, so equal priorities keep registration order
        return sorted(eligible, key=lambda adapter: adapter.priority)

    # ==================== Execution ====================

    async def execute_with_failover(
        self,
        operation: OperationKind,
        call: Callable[[BaseAdapter], Awaitable[T]],
        instrument: Optional[ProviderInstrument] = None,
        context: Optional[QuoteContext] = None,
        operation_name: str = "request",
    ) -> T:
        """
        Execute an operation with automatic failover.

        Args:
            operation: Requested operation (drives candidate filtering)
            call: Async function that takes a provider and returns the result
            instrument: Instrument being requested, if any
            context: Request context
            operation_name: Name for logging

        Returns:
            Result from the first candidate that succeeds

        Raises:
            NoProviderAvailableError: No provider matched the request
            MarketDataError: Every candidate failed; the last "not found"
                error if any candidate produced one, else the last failure
        """
        candidates = self.candidates(operation, instrument, context)
        if not candidates:
            logger.warning(f"No providers available for {operation_name}")
            raise NoProviderAvailableError(f"No provider available for {operation_name}")

        not_found_error: Optional[MarketDataError] = None
        last_error: Optional[MarketDataError] = None

        for provider in candidates:
            try:
                async with self.rate_limiter.slot(
                    provider.id, blocking=self.config.blocking_admission
                ):
                    return await asyncio.wait_for(
                        call(provider), timeout=self.config.request_timeout
                    )
            except asyncio.TimeoutError:
                error = ProviderTimeoutError(
                    provider.id, f"No response within {self.config.request_timeout:.1f}s"
                )
            except MarketDataError as e:
                error = e
            except Exception as e:
                logger.error(f"Unexpected error from {provider.id}: {e!r}")
                error = ProviderError(provider.id, f"Unexpected error: {e}")

            if error.is_not_found:
                logger.info(f"{provider.id} has no data for {operation_name}: {error}")
                not_found_error = error
            else:
                logger.warning(f"{provider.id} failed {operation_name}, trying next provider: {error}")
                last_error = error

        logger.warning(f"All providers failed for {operation_name}")
        raise not_found_error or last_error

    def get_status(self) -> dict:
        """Get status of all registered providers."""
        return {
            adapter.id: {
                "priority": adapter.priority,
                "capabilities": adapter.capabilities.to_dict(),
                "rate_limit": self.rate_limiter.get_stats(adapter.id),
                "status": adapter.status.to_dict(),
            }
            for adapter in self._providers
        }
