"""
Market Data Core

Provider abstraction and routing layer for security quotes, profiles
and symbol search across heterogeneous market-data vendors.
"""
__version__ = "0.1.0"
