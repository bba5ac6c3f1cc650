"""
Logging setup - one format for every module logger.

Modules log through logging.getLogger(__name__); this only installs
the root handler once at application start.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler (no-op if one is already configured)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )
