"""
Logging configuration for CLI runs.
"""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str, verbose: bool = False) -> None:
    """
    Attach a stream handler to the ``newslens`` logger.

    Parameters
    ----------
    level : str
        Level name from settings (e.g. ``"INFO"``).
    verbose : bool
        Force DEBUG output regardless of *level*.
    """
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger("newslens")
    root_logger.setLevel(log_level)

    # Reuse the CLI handler across invocations, rebinding to the current stderr
    for handler in root_logger.handlers:
        if getattr(handler, "_newslens_cli", False):
            handler.setLevel(log_level)
            handler.stream = sys.stderr  # type: ignore[attr-defined]
            return

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    console_handler._newslens_cli = True  # type: ignore[attr-defined]
    root_logger.addHandler(console_handler)
