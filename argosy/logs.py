"""
Logging setup for argosy hosts.

Every argosy module logs through ``logging.getLogger(__name__)``; this module only
decides where records go and which levels pass:

- a rich.logging.RichHandler on the diagnostics console (stderr), installed only
  when the root logger has no handler yet;
- the root level from ``Logging:LogLevel:Default`` (or the level argument);
- per-logger levels from ``Logging:LogLevel:<logger name>``.

Level names follow the stdlib (DEBUG, INFO, ...) and also accept the names used by
appsettings files (Trace, Information, None).
"""
import logging

from rich.logging import RichHandler

from . import faults
from .utils import *

DEFAULT_LEVEL = logging.INFO

_ALIASES = {
    "trace": logging.DEBUG,
    "information": logging.INFO,
    "none": logging.CRITICAL + 10,
}


def parse_level(value, /):
    """Translate a level name or number into a logging level."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if not isinstance(value, str):
        raise TypeError(f"invalid log level {value!r}")
    if (name := value.strip().casefold()) in _ALIASES:
        return _ALIASES[name]
    if name.isdigit():
        return int(name)
    if isinstance(level := logging.getLevelName(name.upper()), int):
        return level
    raise ValueError(f"unknown log level {value!r}")


def configure_logging(configuration=Unset, *, level=Unset, console=Unset):
    """
    Install the rich console handler and apply configured levels.

    Returns the root logger.
    """
    root = logging.getLogger()
    if not root.handlers:
        handler = RichHandler(
            console=coalesce(console, faults.console),
            show_path=False,
            rich_tracebacks=True,
            markup=False,
            log_time_format="[%X]",
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)

    settings = configuration.section("Logging:LogLevel") if configuration is not Unset else Unset
    if level is Unset and settings is not Unset:
        level = settings.get("Default", Unset)
    root.setLevel(parse_level(coalesce(level, DEFAULT_LEVEL)))

    if settings is not Unset:
        for name, value in settings.items():
            if name.casefold() != "default":
                logging.getLogger(name).setLevel(parse_level(value))

    return root


__all__ = (
    "DEFAULT_LEVEL",
    "parse_level",
    "configure_logging",
)
