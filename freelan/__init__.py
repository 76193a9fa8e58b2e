"""freelan - configuration core of a peer-to-peer secure networking daemon."""

from __future__ import annotations

__version__ = "0.1.0"
