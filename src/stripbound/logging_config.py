"""
Rich logging setup for stripbound hosts.

Every stripbound module logs through `get_logger(__name__)`:

- stripbound.observer: binds, clears, link-set transitions (debug),
  unknown automation modes and destroyed strips (warning)
- stripbound.sink: every delivered message (debug, RecordingSink) and
  transport failures (error)
- stripbound.signals: callback exceptions with traceback
- stripbound.surface / stripbound.driver: connect, disconnect and tick errors

Nothing is printed until the host calls setup_logging().
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_logging_configured = False


def setup_logging(
    level: int = logging.INFO,
    show_time: bool = True,
    show_path: bool = True,
    rich_tracebacks: bool = True,
    console: Optional[Console] = None,
) -> None:
    """
    Route all log output through a single RichHandler.

    Only the first call installs the handler; later calls (a host and a
    demo both configuring logging) are ignored.

    Args:
        level: Root level; INFO shows surface connect/disconnect only
        show_time: Show timestamp column
        show_path: Show the emitting module and line
        rich_tracebacks: Render callback and tick exceptions with rich
        console: Console to write to (stderr if None, keeping stdout free)

    Example:
        >>> setup_logging(level=logging.DEBUG)  # every bind and clear
    """
    global _logging_configured

    if _logging_configured:
        return

    if console is None:
        console = Console(stderr=True)

    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
        markup=True,
        log_time_format="[%X]",
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a stripbound module; pass __name__."""
    return logging.getLogger(name)


def set_module_level(module_name: str, level: int) -> None:
    """
    Set logging level for a specific module.

    Useful to watch every outgoing message without drowning in tick noise
    from the rest of the library.

    Args:
        module_name: Full module name (e.g., 'stripbound.sink')
        level: Logging level (logging.DEBUG, logging.INFO, etc.)

    Example:
        >>> set_module_level('stripbound.observer', logging.DEBUG)
    """
    logging.getLogger(module_name).setLevel(level)
