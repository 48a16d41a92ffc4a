"""Configuration package for the interview representative service."""
from .providers import ProviderConfig, provider_config
from .settings import Settings, settings

__all__ = [
    "ProviderConfig",
    "provider_config",
    "Settings",
    "settings",
]
