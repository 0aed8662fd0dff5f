"""Configuration management for dem_overlay.

This module provides dataclass-based configuration objects for overlay runs,
with support for validation and YAML-based configuration files.
"""

from .models import (
    ACCUMULATION_MODES,
    CompositeConfig,
    LayerConfig,
)
from .yaml_loader import (
    ConfigurationError,
    load_composite_config,
)

__all__ = [
    # Dataclasses
    "LayerConfig",
    "CompositeConfig",
    "ACCUMULATION_MODES",
    # YAML loading
    "ConfigurationError",
    "load_composite_config",
]
