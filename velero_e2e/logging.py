"""Logging configuration for the velero_e2e package."""
import logging

from .config import Config

NOISY_LOGGERS = ("urllib3", "kubernetes")


def configure_logging(debug_mode: bool = False) -> None:
    """Configure root logging for a CLI run.

    Args:
        debug_mode: Log at DEBUG and keep library loggers verbose
    """
    log_level = logging.DEBUG if debug_mode else getattr(logging, Config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format=Config.LOG_FORMAT,
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[logging.StreamHandler()]
    )
    # Disable debug logging for noisy libraries
    if not debug_mode:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
