"""
Logging setup.

Every module logs through `logging.getLogger("orderflow.<area>")`.
"""

from __future__ import annotations

import logging


LOG_FORMAT = "%(asctime)s [%(levelname)s] [orderflow] %(name)s: %(message)s"


def get_logger(area: str) -> logging.Logger:
    return logging.getLogger(f"orderflow.{area}")


def configure(level: str | int = "INFO") -> None:
    """Install a basic handler for the service process."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("orderflow").setLevel(level)


__all__ = ("LOG_FORMAT", "get_logger", "configure")
