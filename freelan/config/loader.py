"""Raw option value loading.

Merges command line tokens, configuration file values and schema defaults
into one RawValueSet. The command line wins, the file only fills what the
command line did not set and defaults fill the rest.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Mapping, Sequence, Union

import toml

from freelan.config.options import OptionDescriptor, OptionSchema
from freelan.utils.exceptions import (
    ConfigurationFileError,
    FileUnreadableError,
    InvalidOptionValueError,
    MissingRequiredOptionError,
)
from freelan.utils.logging_config import get_logger

logger = get_logger(__name__)

CliValue = Union[str, Sequence[str], None]


class ValueSource(str, Enum):
    """Where a raw option value came from."""

    COMMAND_LINE = "command line"
    CONFIGURATION_FILE = "configuration file"
    DEFAULT = "default"


class RawValueSet(Mapping[str, tuple[str, ...]]):
    """Read-only mapping of option names to their raw string tokens."""

    def __init__(
        self,
        values: Mapping[str, Sequence[str]],
        sources: Mapping[str, ValueSource] | None = None,
    ):
        """Initialize from tokens and, optionally, where each came from."""
        self._values = {name: tuple(tokens) for name, tokens in values.items()}
        self._sources = dict(sources or {})

    def __getitem__(self, name: str) -> tuple[str, ...]:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"RawValueSet({self._values!r})"

    def source(self, name: str) -> ValueSource | None:
        """Return where the value of an option came from, if known."""
        return self._sources.get(name)

    def require(self, name: str) -> tuple[str, ...]:
        """Return the tokens of an option that must have at least one.

        Raises:
            MissingRequiredOptionError: If the option has no token

        """
        tokens = self._values.get(name)
        if not tokens:
            raise MissingRequiredOptionError(name)
        return tokens


def _split(tokens: Sequence[str]) -> tuple[str, ...]:
    return tuple(part for token in tokens for part in token.split())


def _cli_tokens(descriptor: OptionDescriptor, value: CliValue) -> tuple[str, ...] | None:
    if value is None:
        return None

    if descriptor.multiple:
        if isinstance(value, str):
            return _split([value])
        if not value:
            return None
        return _split(value)

    if isinstance(value, str):
        return (value,)
    if not value:
        return None
    if len(value) > 1:
        raise InvalidOptionValueError(
            descriptor.name, " ".join(value), "expected a single value"
        )
    return (value[0],)


def _scalar_token(name: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise InvalidOptionValueError(name, str(value), "expected a single value")


def _file_tokens(descriptor: OptionDescriptor, value: Any) -> tuple[str, ...]:
    if descriptor.multiple:
        if isinstance(value, list):
            return tuple(_scalar_token(descriptor.name, item) for item in value)
        return _split([_scalar_token(descriptor.name, value)])
    return (_scalar_token(descriptor.name, value),)


def parse_configuration_file(schema: OptionSchema, path: str | Path) -> dict[str, tuple[str, ...]]:
    """Parse a TOML configuration file into raw tokens under a schema.

    Tables are named after the option domains and keys are option names
    without their domain prefix. String values must be quoted, so an INI
    style ``listen_on = 0.0.0.0:12000`` is rejected. Unknown tables and keys
    are ignored.

    Raises:
        FileUnreadableError: If the file can not be read
        ConfigurationFileError: If the file is not valid UTF-8 encoded TOML
        InvalidOptionValueError: If a single value option holds a table or array

    """
    try:
        with open(path, encoding="utf-8") as f:
            data = toml.load(f)
    except toml.TomlDecodeError as e:
        raise ConfigurationFileError(path, f"{e} (string values must be quoted)") from e
    except UnicodeDecodeError as e:
        raise ConfigurationFileError(path, f"not valid UTF-8: {e}") from e
    except OSError as e:
        raise FileUnreadableError(path) from e

    domains = {descriptor.domain for descriptor in schema.values()}
    values: dict[str, tuple[str, ...]] = {}

    for section, table in data.items():
        if section not in domains or not isinstance(table, dict):
            logger.debug("Ignoring unknown section '%s' in %s", section, path)
            continue

        for key, value in table.items():
            name = f"{section}.{key}"
            descriptor = schema.get(name)
            if descriptor is None:
                logger.debug("Ignoring unknown option '%s' in %s", name, path)
                continue
            values[name] = _file_tokens(descriptor, value)

    return values


def load(
    schema: OptionSchema,
    cli_values: Mapping[str, CliValue],
    file_path: str | Path | None = None,
) -> RawValueSet:
    """Merge command line, file and default values under a schema.

    Args:
        schema: Combined option schema
        cli_values: Command line tokens by option name (None when unset)
        file_path: Configuration file to read, if any

    Returns:
        The merged raw value set

    Raises:
        MissingRequiredOptionError: If a required option has no value
        ConfigurationFileError: If the configuration file is malformed

    """
    values: dict[str, tuple[str, ...]] = {}
    sources: dict[str, ValueSource] = {}

    for name, value in cli_values.items():
        descriptor = schema.get(name)
        if descriptor is None:
            logger.debug("Ignoring unknown command line option '%s'", name)
            continue
        tokens = _cli_tokens(descriptor, value)
        if tokens is not None:
            values[name] = tokens
            sources[name] = ValueSource.COMMAND_LINE

    if file_path is not None:
        for name, tokens in parse_configuration_file(schema, file_path).items():
            if name not in values:
                values[name] = tokens
                sources[name] = ValueSource.CONFIGURATION_FILE

    for name, descriptor in schema.items():
        if name not in values and descriptor.default is not None:
            values[name] = descriptor.default_tokens
            sources[name] = ValueSource.DEFAULT

    for name, descriptor in schema.items():
        if descriptor.required and not values.get(name):
            raise MissingRequiredOptionError(name)

    # Keep schema order so summaries read like the option tables
    ordered = {name: values[name] for name in schema if name in values}
    return RawValueSet(ordered, sources)
