"""Logging setup shared by the CLI entry points."""

import logging
import os
import sys

from rvgold.errors import ConfigError

# Verbosity control (0 = minimal, 1 = normal, 2 = debug)
LEVELS = {0: logging.WARNING, 1: logging.INFO, 2: logging.DEBUG}


def verbosity_from_env(env=None) -> int:
    env = os.environ if env is None else env
    raw = env.get("RVGOLD_VERBOSE", "").strip()
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"RVGOLD_VERBOSE must be 0, 1 or 2, got {raw!r}") from None


def setup_logging(verbosity=None):
    """Configure the ``rvgold`` logger. ``verbosity`` defaults to RVGOLD_VERBOSE."""
    if verbosity is None:
        verbosity = verbosity_from_env()
    level = LEVELS[max(0, min(verbosity, 2))]

    logger = logging.getLogger("rvgold")
    logger.setLevel(level)
    # rebind to the current stderr on every call
    for handler in [h for h in logger.handlers if getattr(h, "_rvgold", False)]:
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler._rvgold = True
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)-7s %(name)s: %(message)s"))
    logger.addHandler(handler)
    return logger
