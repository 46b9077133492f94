"""Verbosity-driven logging for treemapper.

Verbosity is chosen once with ``-v`` on the command line and maps onto a
logger hierarchy rooted at ``treemapper``. Modules log through child
loggers (``get_logger(__name__)``) so debug output names its source.

=========  =============  ==============================================
verbosity  level          what shows up
=========  =============  ==============================================
0          ERROR          failed refreshes, unreadable sources
1          CHANGES (25)   record sets replaced, coloring field advanced
2          CHECKS (15)    values that fell back to a neutral color
3          DEBUG          pipeline counts, prefixed with the module name
=========  =============  ==============================================
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

ROOT_LOGGER = "treemapper"

CHANGES_LEVEL = 25
CHECKS_LEVEL = 15

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0
VERBOSITY_CHANGES = 1
VERBOSITY_CHECKS = 2
VERBOSITY_DEBUG = 3

# Indexed by verbosity
_LEVELS = (logging.ERROR, CHANGES_LEVEL, CHECKS_LEVEL, logging.DEBUG)


class TreemapperLogger(logging.Logger):
    """Logger with one method per custom verbosity level."""

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger(name: str | None = None) -> TreemapperLogger:
    """Return the root treemapper logger, or a child of it.

    Args:
        name: Module name such as ``treemapper.sources``; a bare suffix
            like ``sources`` is placed under the root as well

    Returns:
        A TreemapperLogger sharing the root's handler and level
    """
    if name is None or name == ROOT_LOGGER:
        full_name = ROOT_LOGGER
    elif name.startswith(ROOT_LOGGER + "."):
        full_name = name
    else:
        full_name = f"{ROOT_LOGGER}.{name}"

    logging.setLoggerClass(TreemapperLogger)
    logger = logging.getLogger(full_name)
    assert isinstance(logger, TreemapperLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the root logger for a verbosity level.

    Safe to call repeatedly; the previous handler is replaced. Out-of-range
    verbosities are clamped to 0..3.

    Args:
        verbosity: 0=errors only, 1=changes, 2=checks, 3=debug
        stream: Output stream, stderr when omitted
    """
    verbosity = min(max(verbosity, VERBOSITY_SILENT), VERBOSITY_DEBUG)
    root = get_logger()
    root.handlers.clear()
    root.setLevel(_LEVELS[verbosity])
    root.propagate = False

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    if verbosity == VERBOSITY_DEBUG:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)


def reset_logger() -> None:
    """Drop handlers and return to errors-only (used between tests)."""
    root = get_logger()
    root.handlers.clear()
    root.setLevel(logging.ERROR)


def verbosity() -> int:
    """Verbosity the root logger is currently configured for."""
    level = get_logger().getEffectiveLevel()
    for v in range(VERBOSITY_DEBUG, VERBOSITY_SILENT, -1):
        if level <= _LEVELS[v]:
            return v
    return VERBOSITY_SILENT
