"""
Argosy binders: turning a command type into parser declarations plus an operation.

Overview
- BindingPlan: per command type, the ordered option declarations handed to the
  parser and the operation run once the tokens are parsed.
- A binder (builder) is any callable builder(plan) filling a plan. Three sources:
  • explicit: registered with add_action_builder() or passed to the registry;
  • reflect(type): walks the Option metadata on every call of the builder;
  • generate(type): emits a straight-line builder once per type with exec, so
    nothing is introspected at invocation time.
- resolve_builder(type): explicit builder when registered, reflect(type) otherwise.
- bind(type, services, builder=Unset): builds and seals the plan of a type.

Default resolution (per option)
- explicit default present -> that value, even for required options;
- not required -> zero value of the type (0, 0.0, 0j, Decimal(0), False), None
  for any other type (str, optionals, user types);
- otherwise -> Unset, the parser enforces presence.

reflect(type) and generate(type) register the same declarations in the same order
and bind the same attributes; they only differ in when the metadata is read.
"""
import decimal
import functools
import keyword
import logging
import textwrap

from .faults import DuplicateOptionError, InvalidCommandError, MissingOperationError
from .handlers import is_command
from .metadata import option_members, resolve_action_builder
from .parsing import OptionDeclaration
from .utils import *

logger = logging.getLogger(__name__)

_ZERO_TYPES = (int, float, complex, decimal.Decimal, bool)


class BindingPlan:
    """
    Binding result of one command type.

    - options: declarations in registration order.
    - operation: callable operation(command, result, context) -> awaitable; set by
      the builder, invoked by the host inside the filter pipeline.
    - seal(): final check performed at command-tree build time.
    """

    def __init__(self, command_type, services=None):
        self._command_type = command_type
        self._services = services
        self._options = []
        self._operation = None

    @property
    def command_type(self):
        return self._command_type

    @property
    def services(self):
        return self._services

    @property
    def options(self):
        return tuple(self._options)

    @property
    def operation(self):
        return self._operation

    @operation.setter
    def operation(self, value):
        if value is not None and not callable(value):
            raise TypeError("binding plan 'operation' must be callable")
        self._operation = value

    def add_option(self, declaration, /):
        if not isinstance(declaration, OptionDeclaration):
            raise TypeError("add_option() argument must be an option declaration")
        taken = {name for option in self._options for name in option.names}
        if clashes := taken.intersection(declaration.names):
            raise DuplicateOptionError(
                f"{self._command_type.__qualname__} declares {', '.join(sorted(clashes))} more than once",
                hint="every option name and alias must be unique within a command",
            )
        self._options.append(declaration)

    def seal(self):
        if self._operation is None:
            raise MissingOperationError(
                f"binder of {self._command_type.__qualname__} did not set an operation",
                hint="assign plan.operation inside the builder",
            )
        return self

    def __repr__(self):
        return f"binding-plan(command_type={self._command_type.__qualname__}, options={len(self._options)})"


def zero(type, /):
    """Zero value of a type: type() for numeric and boolean types, None otherwise."""
    return type() if type in _ZERO_TYPES else None


def effective_default(option, type, /):
    """Resolve the default handed to the parser for an option of the given value type."""
    if option.default is not Unset:
        return option.default
    if not option.required:
        return zero(type)
    return Unset


def _check_executable(cls):
    if not isinstance(cls, type):
        raise InvalidCommandError(f"{cls!r} is not a class")
    if not is_command(cls):
        raise InvalidCommandError(
            f"{cls.__qualname__} does not implement execute(context)",
            hint="derive from argosy.CommandHandler or register an explicit builder",
        )


async def _execute(command, context):
    return await settle(command.execute(context))


def reflect(cls, /):
    """
    Introspective builder of a command type.

    The Option metadata is read each time the builder runs; parsed values are copied
    onto the command attributes right before execute(context).
    """
    _check_executable(cls)

    @rename(f"reflect_{cls.__name__}")
    def builder(plan, /):
        bindings = []
        for member in option_members(cls):
            option = member.option
            declaration = OptionDeclaration(option.name, *option.aliases, type=member.type)
            if option.descr is not Unset:
                declaration.descr = option.descr
            declaration.required = option.required
            declaration.default = effective_default(option, member.type)
            declaration.completions = option.completions
            plan.add_option(declaration)
            bindings.append((member.attribute, declaration))

        async def operation(command, result, context, /):
            for attribute, declaration in bindings:
                setattr(command, attribute, result.get_value(declaration))
            return await _execute(command, context)

        plan.operation = operation

    return builder


def _local(attribute):
    name = f"option_{attribute}"
    return name + "_" if keyword.iskeyword(name) else name


@functools.cache
def generate(cls, /):
    """
    Generated builder of a command type.

    Emits the source of a builder with one statement per declaration and one
    assignment per bound attribute, compiles it with exec and caches the result per
    type. Values that have no literal form (types, defaults, completions) travel
    through the __constants__ tuple of the generated function globals. The emitted
    source stays available as builder.__source__.
    """
    _check_executable(cls)

    constants = []

    def constant(value):
        constants.append(value)
        return f"__constants__[{len(constants) - 1}]"

    declarations = []
    assignments = []
    for member in option_members(cls):
        option = member.option
        local = _local(member.attribute)
        names = ", ".join(map(repr, option.names))
        declarations.append(f"{local} = OptionDeclaration({names}, type={constant(member.type)})")
        if option.descr is not Unset:
            declarations.append(f"{local}.descr = {option.descr!r}")
        declarations.append(f"{local}.required = {option.required!r}")
        if (default := effective_default(option, member.type)) is not Unset:
            declarations.append(f"{local}.default = {constant(default)}")
        if option.completions:
            declarations.append(f"{local}.completions = {constant(option.completions)}")
        declarations.append(f"plan.add_option({local})")
        assignments.append(f"command.{member.attribute} = result.get_value({local})")

    body = "\n".join(declarations + [
        "async def operation(command, result, context, /):",
        *(f"    {line}" for line in assignments),
        "    return await _execute(command, context)",
        "plan.operation = operation",
    ])
    source = "\n".join((
        f"@rename({f'generate_{cls.__name__}'!r})",
        "def builder(plan, /):",
        textwrap.indent(body, "    "),
    )) + "\n"

    namespace = {
        "OptionDeclaration": OptionDeclaration,
        "rename": rename,
        "_execute": _execute,
        "__constants__": tuple(constants),
    }
    exec(compile(source, f"<argosy-binder {cls.__qualname__}>", "exec"), namespace)
    builder = namespace["builder"]
    builder.__source__ = source
    logger.debug("generated binder for %s (%d options)", cls.__qualname__, len(assignments))
    return builder


def resolve_builder(cls, /):
    """Registered explicit builder of a type, else its introspective builder."""
    if (builder := resolve_action_builder(cls)) is not Unset:
        return builder
    return reflect(cls)


def bind(cls, /, services=None, builder=Unset):
    """
    Build and seal the binding plan of a command type.

    Raises
    - MissingOperationError: the builder did not set an operation.
    - DuplicateOptionError: two declarations share a name or alias.
    """
    plan = BindingPlan(cls, services)
    builder = builder if builder is not Unset else resolve_builder(cls)
    builder(plan)
    logger.debug("bound %s with %d options", cls.__qualname__, len(plan.options))
    return plan.seal()


__all__ = (
    "BindingPlan",
    "zero",
    "effective_default",
    "reflect",
    "generate",
    "resolve_builder",
    "bind",
)
