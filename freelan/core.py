"""Startup context handed to the networking engine.

The engine itself lives outside this package. It is created by a factory
that receives a StartupContext and must provide ``open``, ``run`` and
``close``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, Protocol

from freelan.models import Configuration
from freelan.utils.logging_config import get_logger

logger = get_logger(__name__)


class ShutdownToken:
    """Thread-safe request for the engine to stop."""

    def __init__(self) -> None:
        """Initialize an unrequested token."""
        self._event = threading.Event()

    def request(self) -> None:
        """Ask the engine to stop. Calling it again has no effect."""
        if not self._event.is_set():
            logger.info("Shutdown requested")
        self._event.set()

    @property
    def requested(self) -> bool:
        """Whether a shutdown was requested."""
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until a shutdown is requested or the timeout expires.

        Returns:
            True if a shutdown was requested

        """
        return self._event.wait(timeout)


@dataclass(frozen=True)
class StartupContext:
    """Everything the engine receives at startup."""

    configuration: Configuration
    shutdown: ShutdownToken = field(default_factory=ShutdownToken)


class Engine(Protocol):
    """Lifecycle the startup routine drives."""

    def open(self) -> None: ...

    def run(self) -> None: ...

    def close(self) -> None: ...


EngineFactory = Callable[[StartupContext], Engine]


def run_engine(factory: EngineFactory, context: StartupContext) -> None:
    """Create the engine, run it until it returns, and always close it."""
    engine = factory(context)
    engine.open()
    try:
        logger.info("Engine running")
        engine.run()
    finally:
        engine.close()
        logger.info("Engine closed")
