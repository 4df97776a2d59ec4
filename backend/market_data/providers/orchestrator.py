"""
Provider Orchestrator

Public entry point for market data requests. Callers never learn which
provider answered; every result is in the canonical model.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger

from market_data.providers.adapters.base import BaseAdapter
from market_data.providers.capabilities import OperationKind
from market_data.providers.data_normalizer import data_normalizer
from market_data.providers.errors import ValidationFailedError
from market_data.providers.failover import FailoverConfig, FailoverManager
from market_data.providers.models import (
    AssetProfile,
    EquitySymbol,
    ProviderInstrument,
    Quote,
    QuoteContext,
    SearchResult,
)


@dataclass
class OrchestratorConfig:
    """Configuration for the orchestrator."""
    # Timeouts
    request_timeout: float = 30.0

    # Data quality
    validate_data: bool = True


class ProviderOrchestrator:
    """
    Central orchestrator for market data operations.

    Usage:
        async with ProviderOrchestrator() as orchestrator:
            orchestrator.register_provider(DSEAdapter(create_dse_config()))

            quote = await orchestrator.get_latest_quote(QuoteContext(), EquitySymbol("CRDB"))
            history = await orchestrator.get_historical_quotes(QuoteContext(), EquitySymbol("TCC"), start, end)
    """

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        failover: Optional[FailoverManager] = None,
    ):
        self.config = config or OrchestratorConfig()
        self.failover = failover or FailoverManager(
            FailoverConfig(request_timeout=self.config.request_timeout)
        )
        self._initialized = False

    async def __aenter__(self) -> "ProviderOrchestrator":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    async def initialize(self) -> None:
        """Initialize all registered providers."""
        if self._initialized:
            return

        for provider in self.failover.providers:
            await provider.initialize()
            logger.info(f"Initialized provider: {provider.id}")

        self._initialized = True
        logger.info("Provider orchestrator initialized")

    async def shutdown(self) -> None:
        """Shutdown all providers."""
        for provider in self.failover.providers:
            try:
                await provider.close()
            except Exception as e:
                logger.error(f"Error closing provider {provider.id}: {e}")

        self._initialized = False

    def register_provider(self, adapter: BaseAdapter) -> None:
        """Register a data provider with the orchestrator."""
        self.failover.register_provider(adapter)

    def unregister_provider(self, provider_id: str) -> Optional[BaseAdapter]:
        """Remove a provider from the orchestrator."""
        return self.failover.unregister_provider(provider_id)

    # ==================== Quote Operations ====================

    async def get_latest_quote(
        self,
        context: QuoteContext,
        instrument: ProviderInstrument,
    ) -> Quote:
        """
        Get the latest quote for an instrument.

        Args:
            context: Request context (currency hint, exchange MIC)
            instrument: Instrument to price

        Returns:
            Quote from the first provider that has one
        """
        quote = await self.failover.execute_with_failover(
            OperationKind.LATEST,
            lambda provider: provider.get_latest_quote(context, instrument),
            instrument=instrument,
            context=context,
            operation_name=f"get_latest_quote({instrument})",
        )

        if self.config.validate_data:
            warnings = data_normalizer.validate_quote(quote)
            if warnings:
                logger.warning(f"Quote validation warnings for {instrument}: {warnings}")

        return quote

    async def get_historical_quotes(
        self,
        context: QuoteContext,
        instrument: ProviderInstrument,
        start: datetime,
        end: datetime,
    ) -> list[Quote]:
        """
        Get daily quotes for an instrument.

        Returns:
            Quotes sorted ascending by timestamp

        Raises:
            ValidationFailedError: start is after end
        """
        if start > end:
            raise ValidationFailedError(f"start ({start}) is after end ({end})")

        return await self.failover.execute_with_failover(
            OperationKind.HISTORICAL,
            lambda provider: provider.get_historical_quotes(context, instrument, start, end),
            instrument=instrument,
            context=context,
            operation_name=f"get_historical_quotes({instrument}, {start:%Y-%m-%d}..{end:%Y-%m-%d})",
        )

    # ==================== Reference Data ====================

    async def search(self, query: str) -> list[SearchResult]:
        """Search for symbols across providers."""
        query = query.strip()
        if not query:
            return []

        return await self.failover.execute_with_failover(
            OperationKind.SEARCH,
            lambda provider: provider.search(query),
            operation_name=f"search({query!r})",
        )

    async def get_profile(self, symbol: str) -> AssetProfile:
        """Get the asset profile for an equity symbol."""
        symbol = symbol.strip()
        return await self.failover.execute_with_failover(
            OperationKind.PROFILE,
            lambda provider: provider.get_profile(symbol),
            instrument=EquitySymbol(symbol),
            operation_name=f"get_profile({symbol})",
        )

    def get_status(self) -> dict:
        """Get status of all registered providers."""
        return {
            "initialized": self._initialized,
            "providers": self.failover.get_status(),
        }
