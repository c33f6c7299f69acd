"""
Core infrastructure for Service Designer.

Shared components used across the analysis pipeline:
- Configuration management
- Logging setup
- Error types raised at input boundaries
"""

from service_designer.core.config import Settings, get_settings, reset_settings
from service_designer.core.errors import (
    ConfigurationLoadError,
    RuleConfigError,
    ServiceDesignerError,
)
from service_designer.core.logging import configure_logging

__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
    "ConfigurationLoadError",
    "RuleConfigError",
    "ServiceDesignerError",
    "configure_logging",
]
