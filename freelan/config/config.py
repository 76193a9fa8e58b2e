"""Configuration management for freelan.

Runs the startup pipeline once: find the configuration file, merge it with
the command line and the defaults, then assemble the typed configuration.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Sequence

from freelan.config.assembler import assemble
from freelan.config.loader import CliValue, RawValueSet, load
from freelan.config.options import OptionSchema, combined_schema
from freelan.config.source import (
    CONFIGURATION_FILE_ENV_VAR,
    default_search_paths,
    resolve_source,
)
from freelan.models import Configuration
from freelan.utils.logging_config import get_logger

logger = get_logger(__name__)


class ConfigManager:
    """Resolves the startup configuration.

    Every step runs from the constructor, so a ConfigManager that exists
    holds a fully validated configuration.
    """

    def __init__(
        self,
        cli_values: Mapping[str, CliValue] | None = None,
        configuration_file: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
        search_paths: Sequence[str | Path] | None = None,
        schema: OptionSchema | None = None,
    ):
        """Initialize configuration manager.

        Args:
            cli_values: Command line tokens by option name
            configuration_file: Explicitly requested configuration file
            environ: Environment to read the file variable from (os.environ by default)
            search_paths: Discovery candidates (platform defaults by default)
            schema: Option schema (all domains by default)

        """
        self.schema = schema if schema is not None else combined_schema()
        self.environ = environ if environ is not None else os.environ
        self.search_paths = (
            list(search_paths) if search_paths is not None else default_search_paths()
        )

        self.config_file = resolve_source(
            configuration_file,
            self.environ.get(CONFIGURATION_FILE_ENV_VAR),
            self.search_paths,
        )
        self.raw_values = self._load_raw_values(cli_values or {})
        self.config = self._assemble()

    def _load_raw_values(self, cli_values: Mapping[str, CliValue]) -> RawValueSet:
        raw = load(self.schema, cli_values, self.config_file)
        for name in raw:
            logger.debug("%s = %s (%s)", name, " ".join(raw[name]), raw.source(name).value)
        return raw

    def _assemble(self) -> Configuration:
        config = assemble(self.raw_values, self.schema)
        logger.debug("Configuration assembled")
        return config


def load_configuration(
    cli_values: Mapping[str, CliValue] | None = None,
    configuration_file: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    search_paths: Sequence[str | Path] | None = None,
) -> Configuration:
    """Resolve the startup configuration in one call."""
    return ConfigManager(
        cli_values,
        configuration_file=configuration_file,
        environ=environ,
        search_paths=search_paths,
    ).config
