"""Shared logging helpers for captimeline."""

from __future__ import annotations

import logging

from pythonjsonlogger import jsonlogger


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure JSON logging for the CLI and loaders."""
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler], force=True)
