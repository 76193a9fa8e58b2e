"""Shared utilities and infrastructure.

This module contains the exception hierarchy and logging setup used
throughout the application.
"""

from __future__ import annotations

from freelan.utils.exceptions import (
    ConfigurationError,
    CredentialLoadError,
    FreelanError,
    SecurityError,
)
from freelan.utils.logging_config import get_logger, setup_logging

__all__ = [
    "ConfigurationError",
    "CredentialLoadError",
    "FreelanError",
    "SecurityError",
    "get_logger",
    "setup_logging",
]
