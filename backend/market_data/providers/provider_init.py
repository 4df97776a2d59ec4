"""
Provider Initialization Module

Builds an orchestrator from settings and registers the enabled providers.
"""
from typing import Optional
from loguru import logger

from market_data.config import Settings, settings as default_settings
from market_data.providers.adapters.dse import DSEAdapter, create_dse_config
from market_data.providers.orchestrator import OrchestratorConfig, ProviderOrchestrator
from market_data.providers.resolver import CurrencyResolver
from market_data.utils.logger import setup_logging


def create_orchestrator(
    config: Optional[Settings] = None,
    resolver: Optional[CurrencyResolver] = None,
) -> ProviderOrchestrator:
    """
    Configure logging, then create an orchestrator with every provider
    enabled in settings.
    
    Args:
        config: Settings to read from (defaults to the global settings)
        resolver: Currency resolver chain shared by the adapters
        
    Returns:
        Orchestrator with providers registered (not yet initialized)
    """
    config = config or default_settings
    setup_logging(config)
    
    orchestrator = ProviderOrchestrator(
        OrchestratorConfig(request_timeout=config.PROVIDER_REQUEST_TIMEOUT)
    )
    
    if config.ENABLE_DSE_PROVIDER:
        adapter = DSEAdapter(
            create_dse_config(api_key=config.DSE_API_KEY, base_url=config.DSE_API_URL),
            resolver=resolver,
        )
        orchestrator.register_provider(adapter)
    
    registered = [p.id for p in orchestrator.failover.providers]
    if registered:
        logger.info(f"Market data providers ready: {registered}")
    else:
        logger.warning("No market data providers enabled")
    
    return orchestrator
