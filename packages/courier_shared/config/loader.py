"""Settings loading with deterministic precedence.

The cascade is always:
1) Explicit params (``cli_params``)
2) Environment variables
3) ``~/.config/courier/courier.yaml`` (or an explicit ``config_path``)
4) Model defaults

Environment variable format:
- Prefix: ``COURIER_``
- Nested keys: ``__`` separator
- Example: ``COURIER_API__MAX_RETRIES=5`` -> ``api.max_retries = 5``
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from .models import CONFIG_PATH, DEFAULT_CONFIG_PATH, CourierSettings


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> CourierSettings:
    """Build a fresh settings object by applying the standard cascade."""
    resolved = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    token = CONFIG_PATH.set(resolved)
    try:
        return CourierSettings(**dict(cli_params or {}))
    finally:
        CONFIG_PATH.reset(token)


@lru_cache(maxsize=1)
def get_settings() -> CourierSettings:
    """Return process-wide settings, loaded once on first use."""
    return load_settings()
