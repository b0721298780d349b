"""Logging configuration for the rating engine and its scripts.

Engine modules log under the ``hbr`` namespace::

    import logging
    logger = logging.getLogger("hbr.module_name")

Call ``setup_logging()`` once from an entry point; library code never
configures handlers itself.
"""

from __future__ import annotations

import logging
import sys

APP_LOGGER_NAME = "hbr"


def setup_logging(app_level: int = logging.INFO) -> None:
    """Root logger at WARNING with one stdout handler; ``hbr.*`` at ``app_level``."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root_logger.addHandler(handler)

    logging.getLogger(APP_LOGGER_NAME).setLevel(app_level)


__all__ = ["APP_LOGGER_NAME", "setup_logging"]
