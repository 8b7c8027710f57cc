"""
Logging configuration for the Dual Terminal.
"""

import logging
import logging.config
import os


def resolve_level(value: str | None, default: int = logging.INFO) -> int:
    """Translate a level name such as ``"debug"`` into a logging constant.

    Unknown or missing names fall back to ``default``.
    """
    if not value:
        return default
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(default_level: int | None = None) -> None:
    """Configure structured logging for the entire package.

    This function sets up a root logger using Python's ``logging.config``
    dictionary configuration. It ensures consistent formatting across
    all modules and suppresses duplicate loggers.

    Example:
        ```python
        from dual_terminal.core.logging import setup_logging

        setup_logging()
        logger = logging.getLogger(__name__)
        logger.info("Logging initialized successfully.")
        ```

    Args:
        default_level: The level for the root logger. When omitted it is
            read from the ``LOG_LEVEL`` environment variable, falling back
            to ``logging.WARNING`` so log lines do not interleave with the
            interactive console.

    Returns:
        None
    """
    if default_level is None:
        default_level = resolve_level(os.getenv("LOG_LEVEL"), logging.WARNING)

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "[%(asctime)s] - [%(levelname)s] - %(name)s: %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": default_level,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": default_level,
        },
    }

    logging.config.dictConfig(logging_config)
