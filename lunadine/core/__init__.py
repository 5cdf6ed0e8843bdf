"""
Core module initialization.
Exports configuration, logging utilities and domain exceptions.
"""

from lunadine.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from lunadine.core.exceptions import (
    LunaDineError,
    ValidationError,
    InvalidItemError,
    NotFoundError,
    MethodNotAllowedError,
    InternalError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "LunaDineError",
    "ValidationError",
    "InvalidItemError",
    "NotFoundError",
    "MethodNotAllowedError",
    "InternalError",
]
