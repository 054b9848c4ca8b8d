"""
Logging setup shared by the API entry point and scripts.
"""
import logging

from utils.config import config

_configured = False


def configure_logging(level: str = None) -> None:
    """Apply the process-wide logging format once."""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=(level or config.logging.level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _configured = True
