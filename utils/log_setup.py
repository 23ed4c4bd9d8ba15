# log_setup.py
#
# Root logger configuration shared by all entry points.

import logging
import sys

import config

_configured = False


def _coerce_level(level):
    if isinstance(level, str):
        name = level.upper()
        if not hasattr(logging, name):
            raise ValueError(f"Unknown log level '{level}'")
        return getattr(logging, name)
    return int(level)


def configure_logging(level=config.LOG_LEVEL, force=False):
    """
    Install a single stream handler with the project formatter on the root logger.

    Calling it again only changes the level unless force is True.
    """
    global _configured
    numeric_level = _coerce_level(level)
    root = logging.getLogger()
    root.setLevel(numeric_level)

    if _configured and not force:
        return

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=config.LOG_FORMAT, datefmt=config.LOG_DATEFMT))
    root.addHandler(handler)
    _configured = True
