"""
Environment variable utilities for reliable configuration handling.

This module provides consistent environment variable parsing across the application.
"""
import os
from typing import Optional

from gridagg.utils.error_handling import ConfigurationError


def env_str(name: str, default: str = "") -> str:
    """Get environment variable as string with default."""
    v = os.getenv(name)
    return v if v is not None else default


def env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    """
    Get environment variable as int.

    Empty or unset values return ``default``; a value that is set but not an
    integer raises ConfigurationError so a typo in deployment config is not ignored.
    """
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return int(v.strip())
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be an integer (got {v!r}).") from None
