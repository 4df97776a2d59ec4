"""
Provider Adapters Package

Contains adapters for all supported data providers.
Each adapter implements the BaseAdapter interface for consistent data access.
"""
from market_data.providers.adapters.base import (
    BaseAdapter,
    ProviderConfig,
    ProviderStatus,
)
from market_data.providers.adapters.dse import (
    DSEAdapter,
    create_dse_config,
)

__all__ = [
    # Base
    "BaseAdapter",
    "ProviderConfig",
    "ProviderStatus",
    # Exchanges
    "DSEAdapter",
    "create_dse_config",
]
