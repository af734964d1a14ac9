# mining_model/config/logging_config.py
from __future__ import annotations

import logging

from mining_model.config import settings


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging for scripts and notebooks.

    Library modules only create module-level loggers; callers decide
    whether and how to emit them.
    """
    logging.basicConfig(
        level=(level or settings.DEFAULT_LOG_LEVEL).upper(),
        format=settings.LOG_FORMAT,
    )
