"""Allow running freelan with ``python -m freelan``."""

from __future__ import annotations

from freelan.cli.main import main

if __name__ == "__main__":
    main()
