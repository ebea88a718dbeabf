"""Logging setup for the s3-signer process."""

import logging
import sys

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_VERBOSITY_LEVELS = [logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG, TRACE]


def level_for_verbosity(verbosity: int) -> int:
    """Map a ``-v`` count to a log level: 0 is ERROR, 4 and above is TRACE."""
    return _VERBOSITY_LEVELS[max(0, min(verbosity, len(_VERBOSITY_LEVELS) - 1))]


def configure_logging(verbosity: int = 0) -> int:
    """Install a single stderr handler on the root logger.

    Args:
        verbosity: Number of ``-v`` flags given on the command line.

    Returns:
        The numeric level that was applied.
    """
    level = level_for_verbosity(verbosity)
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    return level
