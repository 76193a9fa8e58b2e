"""Configuration management.

This module handles option declaration, configuration file discovery and
loading, and assembly of the typed startup configuration.
"""

from __future__ import annotations

from freelan.config.assembler import assemble
from freelan.config.config import ConfigManager, load_configuration
from freelan.config.loader import RawValueSet, ValueSource, load
from freelan.config.options import (
    OptionDescriptor,
    OptionDomain,
    OptionKind,
    combined_schema,
    describe_domain,
)
from freelan.config.source import default_search_paths, resolve_source

__all__ = [
    "ConfigManager",
    "OptionDescriptor",
    "OptionDomain",
    "OptionKind",
    "RawValueSet",
    "ValueSource",
    "assemble",
    "combined_schema",
    "default_search_paths",
    "describe_domain",
    "load",
    "load_configuration",
    "resolve_source",
]
