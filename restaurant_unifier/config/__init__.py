"""
Configuration schemas and run settings.
"""

from .schemas import (
    LocationConfig, LocationsConfig, ProductGroupConfig, ProductGroupsConfig,
    VariationPatternConfig, VariationPatternsConfig, load_config, parse_config,
)
from .settings import PlatformFailurePolicy, ResolutionPolicy, RunPolicy, Settings

__all__ = [
    "LocationConfig", "LocationsConfig", "ProductGroupConfig", "ProductGroupsConfig",
    "VariationPatternConfig", "VariationPatternsConfig", "load_config", "parse_config",
    "PlatformFailurePolicy", "ResolutionPolicy", "RunPolicy", "Settings",
]
