r"""
Argosy metadata model: options, filters and command names attached to types.

Overview
- Option: data descriptor declared as a class attribute of a command type. It
  carries the option metadata (name, aliases, description, required flag, default,
  ordering key, completion candidates) and stores the bound value per instance.
- with_filter(FilterType, order=0): class decorator attaching a filter to a
  command type. Attachments are inherited by subclasses.
- command(name, descr=...): class decorator naming a command type.

Metadata provider
- Explicit registration that bypasses decorators, for code that prefers a static
  registration call per type (or code generators):
  • add_command_metadata(type, name, descr)
  • add_filter_descriptor(target, filter_type, order)
  • add_action_builder(type, builder)
- Lookups used while the command tree is built:
  • resolve_command_metadata(type) -> CommandMetadata
  • filter_descriptors(type, inherit=True) -> tuple[FilterDescriptor, ...]
  • option_members(type) -> tuple[OptionMember, ...]
  • resolve_action_builder(type) -> builder | Unset
- Scans are performed once per type and cached for the process lifetime;
  explicit registration drops the caches.

Option ordering
- option_members(type) walks the MRO from the most-derived class (level 0) to its bases
  (level -1, -2, ...). Members are sorted by (order, level, declaration index),
  so with equal orders base options come first, then derived ones, each in
  declaration order. Every binder uses this sequence, which keeps the option
  registration order identical whatever binder strategy runs.

Quick example:
    >>> @command("greet", descr="Greet someone")
    ... @with_filter(LoggingFilter, order=10)
    ... class GreetCommand(CommandHandler):
    ...     name: str = Option("--name", "-n", descr="Name to greet")
    ...     count: int = Option("--count", "-c", required=False, default=1)
    ...
    ...     async def execute(self, context): ...
"""
import inspect
import re
import sys
from collections import namedtuple
from collections.abc import Iterable

from .faults import InvalidFilterError
from .handlers import is_filter
from .utils import *

_NAME_PATTERN = re.compile(r"--?[^\W\d_](-?[^\W_]+)*")

FilterDescriptor = namedtuple("FilterDescriptor", ("type", "order"))
FilterDescriptor.__doc__ = """Filter type identity plus its integer order (lower runs outer)."""

CommandMetadata = namedtuple("CommandMetadata", ("name", "descr"))
CommandMetadata.__doc__ = """Invocation name and human-readable description of a command type."""

OptionMember = namedtuple("OptionMember", ("attribute", "option", "type", "level", "index"))
OptionMember.__doc__ = """An Option found on a type, with its value type and sort-key components."""


class Option:
    """
    Declarative option bound to a command attribute.

    Parameters
    - name: display name such as "--text".
    - *aliases: extra names such as "-t".
    - type: value type (converter); defaults to the attribute annotation, then to
      the type of the explicit default, then to str.
    - descr: short help text.
    - required: whether the parser must see the option (default True).
    - default: explicit default value; when present it always wins.
    - order: ordering key among the options of a command (default: last).
    - completions: completion candidates for shells and help.

    Descriptor protocol
    - Reading the attribute on the class returns the Option itself.
    - Reading it on an instance returns the bound value; AttributeError until bound.
    """
    LAST = sys.maxsize

    name = mirror("name")
    aliases = mirror("aliases")
    type = mirror("type")
    descr = mirror("descr")
    required = mirror("required")
    order = mirror("order")
    completions = mirror("completions")
    attribute = mirror("attribute")

    def __init__(
            self,
            name,
            /,
            *aliases,
            type=Unset,
            descr=Unset,
            required=True,
            default=Unset,
            order=LAST,
            completions=(),
    ):
        names = (name, *aliases)
        for item in names:
            if not isinstance(item, str):
                raise TypeError("option names must be strings")
            elif not _NAME_PATTERN.fullmatch(item):
                raise ValueError(f"option name {item!r} is not a valid switch name")
        if len(set(names)) != len(names):
            raise ValueError(f"option {name!r} cannot repeat names")

        if type is not Unset and not callable(type):
            raise TypeError(f"option {name!r} 'type' must be callable")
        if not isinstance(descr, str | Unset):
            raise TypeError(f"option {name!r} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"option {name!r} 'descr' cannot be empty")
        if not isinstance(required, bool):
            raise TypeError(f"option {name!r} 'required' must be a boolean")
        if isinstance(order, bool) or not isinstance(order, int):
            raise TypeError(f"option {name!r} 'order' must be an integer")
        if isinstance(completions, str) or not isinstance(completions, Iterable):
            raise TypeError(f"option {name!r} 'completions' must be an iterable of strings")
        completions = tuple(completions)
        if not all(isinstance(item, str) for item in completions):
            raise TypeError(f"option {name!r} 'completions' must be an iterable of strings")

        self._name = name
        self._aliases = aliases
        self._type = type
        self._descr = descr
        self._required = required
        self._default = default
        self._order = order
        self._completions = completions
        self._attribute = Unset

    @property
    def default(self):
        return self._default

    @property
    def names(self):
        return (self._name, *self._aliases)

    def __set_name__(self, owner, name):
        if self._attribute is not Unset and self._attribute != name:
            raise TypeError(f"option {self._name!r} is already bound to attribute {self._attribute!r}")
        self._attribute = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        try:
            return instance.__dict__[self._attribute]
        except KeyError:
            raise AttributeError(f"option {self._name!r} has no bound value") from None

    def __set__(self, instance, value):
        instance.__dict__[self._attribute] = value

    def __delete__(self, instance):
        instance.__dict__.pop(self._attribute, None)

    def __repr__(self):
        fields = ", ".join(
            f"{name}={getattr(self, name)!r}"
            for name in ("name", "aliases", "type", "descr", "required", "default", "order")
            if getattr(self, name) is not Unset
        )
        return f"option({fields})"


_command_metadata = {}
_filter_descriptors = {}
_action_builders = {}

_options_cache = {}
_filters_cache = {}


def _invalidate():
    _options_cache.clear()
    _filters_cache.clear()


def _validate_command_name(name):
    if not isinstance(name, str):
        raise TypeError("command name must be a string")
    elif not (name := name.strip()) or any(char.isspace() for char in name):
        raise ValueError(f"command name {name!r} must be a non-empty word")
    return name


def _validate_descr(descr):
    if not isinstance(descr, str | Unset):
        raise TypeError("command 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError("command 'descr' cannot be empty")
    return descr


def command(name=Unset, /, descr=Unset):
    """
    Name a command type, directly or as a decorator factory.

    Forms
    - @command                        -> name derived from the class name
    - @command("greet", descr="...")  -> explicit name and description

    The metadata is attached to the decorated class only; subclasses must be
    named on their own.
    """
    if isinstance(name, type):
        cls, name = name, Unset
        return command(name, descr)(cls)

    if name is not Unset:
        name = _validate_command_name(name)
    descr = _validate_descr(descr)

    @rename("command")
    def wrapper(cls, /):
        if not isinstance(cls, type):
            raise TypeError("@command() must be applied to a class")
        cls.__command__ = CommandMetadata(coalesce(name, _derive_name(cls)), coalesce(descr))
        return cls

    return wrapper


def with_filter(filter_type, /, order=0):
    """
    Attach a filter to a command type.

    Stacked decorators keep their top-to-bottom order; the attachment is inherited
    by every subclass of the decorated type.

    Raises
    - InvalidFilterError: the filter type does not implement the filter capability.
    - TypeError: order is not an integer.
    """
    if not is_filter(filter_type):
        raise InvalidFilterError(
            f"{filter_type!r} does not implement execute(context, next)",
            hint="derive from argosy.CommandFilter or define an execute(context, next) method",
        )
    if isinstance(order, bool) or not isinstance(order, int):
        raise TypeError("@with_filter() 'order' must be an integer")

    @rename("with_filter")
    def wrapper(cls, /):
        if not isinstance(cls, type):
            raise TypeError("@with_filter() must be applied to a class")
        cls.__filters__ = (FilterDescriptor(filter_type, order), *vars(cls).get("__filters__", ()))
        _invalidate()
        return cls

    return wrapper


def add_command_metadata(cls, name, /, descr=Unset):
    """Register the name and description of a command type without decorating it."""
    if not isinstance(cls, type):
        raise TypeError("add_command_metadata() first argument must be a class")
    _command_metadata[cls] = CommandMetadata(_validate_command_name(name), coalesce(_validate_descr(descr)))


def add_filter_descriptor(target, filter_type, /, order=0):
    """Attach a filter to a command type without decorating it."""
    if not isinstance(target, type):
        raise TypeError("add_filter_descriptor() first argument must be a class")
    if not is_filter(filter_type):
        raise InvalidFilterError(f"{filter_type!r} does not implement execute(context, next)")
    if isinstance(order, bool) or not isinstance(order, int):
        raise TypeError("add_filter_descriptor() 'order' must be an integer")
    _filter_descriptors.setdefault(target, []).append(FilterDescriptor(filter_type, order))
    _invalidate()


def add_action_builder(cls, builder, /):
    """Register an explicit binder for a command type (bypasses introspection)."""
    if not isinstance(cls, type):
        raise TypeError("add_action_builder() first argument must be a class")
    if not callable(builder):
        raise TypeError("add_action_builder() second argument must be callable")
    _action_builders[cls] = builder


def _derive_name(cls):
    name = typename(cls.__name__)
    if name != "command" and name.endswith("-command"):
        name = name.removesuffix("-command")
    return name


def resolve_command_metadata(cls, /):
    """
    Return the CommandMetadata of a type.

    Lookup order: explicit registration, @command on the class itself, and finally
    a name derived from the class name ("UserRoleCommand" -> "user-role").
    """
    if (metadata := _command_metadata.get(cls)) is not None:
        return metadata
    if isinstance(metadata := vars(cls).get("__command__"), CommandMetadata):
        return metadata
    return CommandMetadata(_derive_name(cls), None)


def filter_descriptors(cls, /, inherit=True):
    """
    Filter descriptors attached to a type, base classes first.

    Within one class, decorator attachments come before explicitly registered
    descriptors, each in declaration order. With inherit=False only the type's
    own attachments are returned.
    """
    try:
        return _filters_cache[cls, inherit]
    except KeyError:
        pass

    descriptors = []
    for base in (reversed(cls.__mro__) if inherit else (cls,)):
        descriptors.extend(vars(base).get("__filters__", ()))
        descriptors.extend(_filter_descriptors.get(base, ()))

    _filters_cache[cls, inherit] = descriptors = tuple(descriptors)
    return descriptors


def _annotations(cls):
    try:
        return inspect.get_annotations(cls, eval_str=True)
    except (NameError, SyntaxError, TypeError):
        return inspect.get_annotations(cls)


def _resolve_type(option, annotation):
    if option.type is not Unset:
        return option.type
    if annotation is not Unset and not isinstance(annotation, str):
        return annotation
    if option.default is not Unset and option.default is not None:
        return type(option.default)
    return str


def option_members(cls, /):
    """
    Options declared on a type and its bases, in registration order.

    A name defined again in a more-derived class (as an Option or as anything
    else) shadows the base declaration.
    """
    try:
        return _options_cache[cls]
    except KeyError:
        pass

    members = []
    shadowed = set()
    for level, base in enumerate(cls.__mro__):
        if base is object:
            continue
        annotations = _annotations(base)
        index = 0
        for attribute, value in vars(base).items():
            if not isinstance(value, Option) or attribute in shadowed:
                continue
            members.append(OptionMember(
                attribute,
                value,
                _resolve_type(value, annotations.get(attribute, Unset)),
                -level,
                index,
            ))
            index += 1
        shadowed.update(vars(base))

    members.sort(key=lambda member: (member.option.order, member.level, member.index))
    _options_cache[cls] = members = tuple(members)
    return members


def resolve_action_builder(cls, /):
    """Explicitly registered binder of a type, or Unset."""
    return _action_builders.get(cls, Unset)


__all__ = (
    # Declarations
    "Option",
    "command",
    "with_filter",

    # Records
    "FilterDescriptor",
    "CommandMetadata",
    "OptionMember",

    # Metadata provider
    "add_command_metadata",
    "add_filter_descriptor",
    "add_action_builder",
    "resolve_command_metadata",
    "resolve_action_builder",
    "filter_descriptors",
    "option_members",
)
