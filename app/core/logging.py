"""
Logging utilities for the FastAPI application and the state sweeper.

Provides a consistent logging format and configuration.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )


def mask_secret(value: str | None, keep: int = 6) -> str:
    """Return a log-safe rendering of an identifier or credential.

    Only the first ``keep`` characters survive; the rest is replaced by ``****``.
    """
    if not value:
        return "-"
    return f"{value[:keep]}****"


__all__ = ["configure_logging", "mask_secret"]
