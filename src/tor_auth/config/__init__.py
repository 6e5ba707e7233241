"""
tor-auth Configuration Module
"""

from .loader import ConfigLoader, load_config
from .schema import (
    ConfigurationError,
    DiscoveryConfig,
    IngressConfig,
    ListenConfig,
    LoggingConfig,
    ResolverConfig,
    TorAuthConfig,
)

__all__ = [
    "ConfigLoader",
    "load_config",
    "ConfigurationError",
    "DiscoveryConfig",
    "IngressConfig",
    "ListenConfig",
    "LoggingConfig",
    "ResolverConfig",
    "TorAuthConfig",
]
