"""
Argosy faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every fault the framework
  raises. Codes are grouped by domain so logs and searches stay predictable.
- CommandException: base type that carries message + options (code, title, hint)
  and knows how to render itself with rich.
- trigger(): central entry point to print a fault on the diagnostics console.
- getdoc(): optional description lookup for a code from the host application;
  rendered faults show it below the message.

Taxonomy
- configuration faults (ConfigurationError and subclasses): raised eagerly while
  the command tree is built, never deferred to invocation time.
- parse faults (ParseError): owned by the parser collaborator; the host only
  renders them and reports their status.
- execution faults: ResolutionError, OperationCancelledError and anything the
  application raises; they travel up the filter chain and may be translated into
  exit codes by a filter.

Integration
- Hosts can provide __prog__, __styles__ and __docs__ in __main__ to rename the
  program shown in headers, restyle the output or attach documentation to codes.
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the framework (stable identifiers).

    grouping (by high-level domain)
    - configuration (211xx)
      • AMBIGUOUS_COMMAND, DUPLICATE_COMMAND, INVALID_COMMAND, MISSING_OPERATION,
        DUPLICATE_OPTION, INVALID_FILTER
    - parsing (221xx)
      • PARSE_FAILURE
    - execution (231xx)
      • UNRESOLVABLE_SERVICE, OPERATION_CANCELLED

    normalize() allows the host to remap codes to custom labels while keeping
    the numeric values stable.
    """
    # --- configuration errors (211xx) ---
    AMBIGUOUS_COMMAND           = 21101
    DUPLICATE_COMMAND           = 21102
    INVALID_COMMAND             = 21103
    MISSING_OPERATION           = 21111
    DUPLICATE_OPTION            = 21112
    INVALID_FILTER              = 21121

    # --- parsing errors (221xx) ---
    PARSE_FAILURE               = 22101

    # --- execution errors (231xx) ---
    UNRESOLVABLE_SERVICE        = 23101
    OPERATION_CANCELLED         = 23111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base class of every fault raised by argosy.

    Class-level defaults (code, title) are overridden per subclass; instances
    carry a message plus free-form options (hint, prog, colorful, fancy, and any
    detail a renderer may want to show).
    """
    code = Unset
    title = "command fault"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = coalesce(message, type(self).title)
        self.options = MappingProxyType(options)

    @property
    def hint(self):
        return self.options.get("hint")

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "doc": "dim #C8C8D0",  # faded documentation line
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), styles[style])

        code = coalesce(self.options.get("code", Unset), type(self).code)
        prog = getattr(main, "__prog__", self.options.get("prog", "argosy"))

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else code, "code"),
            " | ",
            text(self.options.get("title", type(self).title).title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        renders = [message]
        if self.hint:
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint")))
        if isinstance(code, FaultCode) and (doc := getdoc(code)):
            renders.append(text(doc, "doc"))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigurationError(CommandException):
    title = "configuration error"


class AmbiguousCommandError(ConfigurationError):
    code = FaultCode.AMBIGUOUS_COMMAND
    title = "ambiguous command"


class DuplicateCommandError(ConfigurationError):
    code = FaultCode.DUPLICATE_COMMAND
    title = "duplicate command"


class InvalidCommandError(ConfigurationError):
    code = FaultCode.INVALID_COMMAND
    title = "invalid command"


class MissingOperationError(ConfigurationError):
    code = FaultCode.MISSING_OPERATION
    title = "missing operation"


class DuplicateOptionError(ConfigurationError):
    code = FaultCode.DUPLICATE_OPTION
    title = "duplicate option"


class InvalidFilterError(ConfigurationError):
    code = FaultCode.INVALID_FILTER
    title = "invalid filter"


class ParseError(CommandException):
    code = FaultCode.PARSE_FAILURE
    title = "invalid usage"

    @property
    def status(self):
        return self.options.get("status", 2)


class ResolutionError(CommandException):
    code = FaultCode.UNRESOLVABLE_SERVICE
    title = "unresolvable service"


class OperationCancelledError(CommandException):
    code = FaultCode.OPERATION_CANCELLED
    title = "operation cancelled"


def trigger(fault, /, **options):
    """
    print a fault on the diagnostics console with the given runtime options.

    contract
    - fault must provide __rich__ and __replace__ (see CommandException).
    - options are merged into the fault via copy.replace(...) before rendering,
      so the original fault is left untouched.
    """
    if (
        not hasattr(fault, "__rich__") or
        not callable(fault.__rich__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __rich__ and __replace__ methods")
    console.print(copy.replace(fault, **options) if options else fault)


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "CommandException",
    "ConfigurationError",
    "AmbiguousCommandError",
    "DuplicateCommandError",
    "InvalidCommandError",
    "MissingOperationError",
    "DuplicateOptionError",
    "InvalidFilterError",
    "ParseError",
    "ResolutionError",
    "OperationCancelledError",
    "trigger",
    "getdoc",
)
