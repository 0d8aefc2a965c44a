"""
Per-invocation state threaded through the filter chain.

A CommandContext is created once per command invocation, handed to every
filter and to the terminal operation, and discarded after its exit code has
been read. It is never shared between invocations.
"""
import threading

from .faults import OperationCancelledError


class CancellationToken:
    """
    Advisory cancellation signal.

    The pipeline never aborts a stage on its own; filters and commands observe
    the token (typically before expensive work) and bail out cooperatively.
    """

    def __init__(self):
        self._event = threading.Event()

    @property
    def cancelled(self):
        return self._event.is_set()

    def cancel(self):
        self._event.set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise OperationCancelledError("the operation was cancelled")

    def __repr__(self):
        return f"cancellation-token(cancelled={self.cancelled!r})"


class CommandContext:
    """
    Mutable state of one command invocation.

    Read-only
    - command_type: the resolved command type.
    - command: the freshly constructed command instance.
    - cancellation: the CancellationToken of this run.

    Mutable
    - items: string-keyed scratch space for filters to hand data along the chain.
    - exit_code: integer reported by the host once the chain returns (default 0).
    """

    def __init__(self, command_type, command, cancellation=None):
        self._command_type = command_type
        self._command = command
        self._cancellation = cancellation if cancellation is not None else CancellationToken()
        self._items = {}
        self._exit_code = 0

    @property
    def command_type(self):
        return self._command_type

    @property
    def command(self):
        return self._command

    @property
    def cancellation(self):
        return self._cancellation

    @property
    def items(self):
        return self._items

    @property
    def exit_code(self):
        return self._exit_code

    @exit_code.setter
    def exit_code(self, value):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError("exit_code must be an integer")
        self._exit_code = value

    def __repr__(self):
        return (
            f"command-context(command_type={self._command_type.__qualname__}, "
            f"exit_code={self._exit_code!r}, items={self._items!r})"
        )


__all__ = (
    "CancellationToken",
    "CommandContext",
)
