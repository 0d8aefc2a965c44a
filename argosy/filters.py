"""
Stock filters.

- ExecutionTimeFilter: measures the inner chain and stores the elapsed seconds in
  context.items["execution-time"].
- ExceptionHandlingFilter: turns exceptions escaping the inner chain into exit codes
  (ValueError 400, PermissionError 403, FileNotFoundError 404, OperationCancelledError
  130, anything else 500) and shows them on the diagnostics console.
- LoggingFilter: logs the start and the end of the command.

Typical registration, outermost timing and innermost exception translation:

    >>> commands.add_global_filter(ExecutionTimeFilter, order=-100)
    >>> commands.add_global_filter(ExceptionHandlingFilter, order=sys.maxsize)
"""
import logging
import time

from .faults import CommandException, OperationCancelledError, trigger
from .handlers import CommandFilter
from .utils import *

logger = logging.getLogger(__name__)

EXECUTION_TIME = "execution-time"


class ExecutionTimeFilter(CommandFilter):
    async def execute(self, context, next):
        started = time.perf_counter()
        try:
            return await next(context)
        finally:
            context.items[EXECUTION_TIME] = elapsed = time.perf_counter() - started
            logger.info("command executed in %.0fms", elapsed * 1000)


class ExceptionHandlingFilter(CommandFilter):
    """
    Exception to exit-code translation.

    The most specific entry of EXIT_CODES along the exception MRO wins; subclasses
    may extend the table.
    """
    EXIT_CODES = {
        ValueError: 400,
        PermissionError: 403,
        FileNotFoundError: 404,
        OperationCancelledError: 130,
    }
    FALLBACK = 500

    def exit_code(self, exception, /):
        for cls in type(exception).__mro__:
            if cls in self.EXIT_CODES:
                return self.EXIT_CODES[cls]
        return self.FALLBACK

    async def execute(self, context, next):
        try:
            return await next(context)
        except Exception as exception:
            context.exit_code = code = self.exit_code(exception)
            logger.error(
                "unhandled exception in command %s: %s",
                context.command_type.__name__,
                exception,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            if not isinstance(exception, CommandException):
                exception = CommandException(
                    str(exception) or type(exception).__name__,
                    title=typename(type(exception).__name__).replace("-", " "),
                    code=code,
                )
            trigger(exception)


class LoggingFilter(CommandFilter):
    async def execute(self, context, next):
        logger.info("start command: %s", context.command_type.__name__)
        try:
            return await next(context)
        finally:
            logger.info("end command: %s", context.command_type.__name__)


__all__ = (
    "EXECUTION_TIME",
    "ExecutionTimeFilter",
    "ExceptionHandlingFilter",
    "LoggingFilter",
)
