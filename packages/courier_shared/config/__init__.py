"""Public API for shared Courier configuration utilities."""

from .loader import get_settings, load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    ApiSettings,
    CourierSettings,
    LoggingSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ApiSettings",
    "CourierSettings",
    "LoggingSettings",
    "get_settings",
    "load_settings",
]
