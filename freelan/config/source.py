"""Configuration file discovery."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Sequence

from freelan.utils.exceptions import FileUnreadableError
from freelan.utils.logging_config import get_logger

logger = get_logger(__name__)

IS_WINDOWS = sys.platform == "win32"

CONFIGURATION_FILE_NAME = "freelan.toml"
CONFIGURATION_FILE_ENV_VAR = "FREELAN_CONFIGURATION_FILE"


def application_directory() -> Path:
    """Directory of the running program."""
    return Path(sys.argv[0]).resolve().parent


def default_search_paths() -> list[Path]:
    """Return the platform's configuration file candidates, in search order."""
    if IS_WINDOWS:
        home_candidate = Path.home() / CONFIGURATION_FILE_NAME
    else:
        home_candidate = Path.home() / ".freelan" / CONFIGURATION_FILE_NAME

    return [
        home_candidate,
        application_directory() / CONFIGURATION_FILE_NAME,
    ]


def _check_readable(path: Path) -> Path:
    if not path.is_file() or not os.access(path, os.R_OK):
        raise FileUnreadableError(path)
    return path


def resolve_source(
    explicit_path: str | Path | None,
    env_value: str | None,
    search_paths: Sequence[str | Path],
) -> Path | None:
    """Select the single configuration file to read.

    The explicit path wins, then the environment value, then the first
    existing search path. An explicit or environment path that can not be
    read is an error; nothing found during discovery is not.

    Args:
        explicit_path: Path given on the command line
        env_value: Value of the configuration file environment variable
        search_paths: Discovery candidates, in order

    Returns:
        The file to read, or None when discovery found nothing

    Raises:
        FileUnreadableError: If an explicit or environment path can not be read

    """
    if explicit_path:
        path = _check_readable(Path(explicit_path))
    elif env_value:
        path = _check_readable(Path(env_value))
    else:
        candidates = [Path(p) for p in search_paths]
        path = next((p for p in candidates if p.is_file()), None)
        if path is None:
            logger.warning(
                "Unable to find a configuration file. Searched in: %s",
                ", ".join(str(p) for p in candidates),
            )
            return None

    logger.info("Reading configuration file at: %s", path)
    return path
