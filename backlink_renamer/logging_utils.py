"""Logging setup for the backlink-renamer command line."""

import logging
from typing import Iterable

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that report every connection at DEBUG
NOISY_LOGGERS = ("urllib3",)


def resolve_level(log_level: str) -> int:
    """Translate a level name such as 'debug' into its numeric value."""
    numeric_level = logging.getLevelName(log_level.strip().upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")
    return numeric_level


def setup_logging(log_level: str = "INFO", quiet: Iterable[str] = NOISY_LOGGERS) -> int:
    """
    Configure root logging for a run and return the numeric level used.

    Loggers named in ``quiet`` never drop below INFO, so a DEBUG run shows
    rewrite details without the HTTP connection chatter.
    """
    numeric_level = resolve_level(log_level)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    for name in quiet:
        logging.getLogger(name).setLevel(max(numeric_level, logging.INFO))
    return numeric_level
