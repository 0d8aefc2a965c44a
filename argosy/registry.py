"""
Command registry: the declared command tree before it is turned into parser nodes.

- register() inserts one command type under an optional parent; it never
  overwrites, and every conflict is reported immediately.
- materialize() returns an immutable snapshot of the tree (CommandDescriptor
  tuples, children in registration order) and makes every executable command
  type constructible per invocation through the service collection.
"""
import logging
from collections import namedtuple

from .faults import AmbiguousCommandError, DuplicateCommandError, InvalidCommandError
from .handlers import is_command
from .metadata import resolve_action_builder, resolve_command_metadata
from .utils import *

logger = logging.getLogger(__name__)


class CommandDescriptor(namedtuple("CommandDescriptor", ("name", "descr", "type", "builder", "children"))):
    """
    Immutable snapshot of one registered command.

    - builder: explicit binder given at registration, or Unset.
    - children: tuple of CommandDescriptor, in registration order.
    """
    __slots__ = ()

    @property
    def executable(self):
        return (
            is_command(self.type) or
            self.builder is not Unset or
            resolve_action_builder(self.type) is not Unset
        )


_Entry = namedtuple("_Entry", ("name", "descr", "type", "builder", "parent"))


class CommandRegistry:
    def __init__(self, services=None):
        self._services = services
        self._entries = {}
        self._children = {None: []}

    def __contains__(self, cls):
        return cls in self._entries

    def __len__(self):
        return len(self._entries)

    def register(self, cls, /, name=Unset, descr=Unset, parent=Unset, builder=Unset):
        """
        Insert a command type.

        Raises
        - InvalidCommandError: cls is not a class, the parent is unknown, or the name
          is not a single word.
        - AmbiguousCommandError: cls is already registered under another parent.
        - DuplicateCommandError: cls is already registered under the same parent, or
          a sibling already uses the name.
        """
        if not isinstance(cls, type):
            raise InvalidCommandError(f"{cls!r} is not a class")
        parent = coalesce(parent, None)
        if parent is not None and parent not in self._entries:
            raise InvalidCommandError(
                f"parent {getattr(parent, '__qualname__', parent)!r} of {cls.__qualname__} is not registered",
                hint="register the parent command first",
            )
        if (existing := self._entries.get(cls)) is not None:
            if existing.parent is parent:
                raise DuplicateCommandError(f"{cls.__qualname__} is registered twice under the same parent")
            raise AmbiguousCommandError(
                f"{cls.__qualname__} is already registered under another parent",
                hint="a command type can appear only once in the command tree",
            )
        if builder is not Unset and not callable(builder):
            raise InvalidCommandError(f"builder of {cls.__qualname__} must be callable")

        metadata = resolve_command_metadata(cls)
        name = coalesce(name, metadata.name)
        if not isinstance(name, str) or not name.strip() or any(char.isspace() for char in name.strip()):
            raise InvalidCommandError(f"command name {name!r} of {cls.__qualname__} must be a non-empty word")
        name = name.strip()
        for sibling in self._children[parent]:
            if self._entries[sibling].name == name:
                raise DuplicateCommandError(
                    f"{cls.__qualname__} and {sibling.__qualname__} share the command name {name!r}",
                )

        self._entries[cls] = _Entry(name, coalesce(descr, metadata.descr), cls, builder, parent)
        self._children[parent].append(cls)
        self._children[cls] = []
        logger.debug("registered command %r (%s)", name, cls.__qualname__)

    def _snapshot(self, cls):
        entry = self._entries[cls]
        descriptor = CommandDescriptor(
            entry.name,
            entry.descr,
            entry.type,
            entry.builder,
            tuple(map(self._snapshot, self._children[cls])),
        )
        if self._services is not None and descriptor.executable:
            self._services.try_add_transient(cls)
        return descriptor

    def materialize(self):
        """Depth-first immutable snapshot of the command tree (top-level commands)."""
        return tuple(map(self._snapshot, self._children[None]))


class SubCommandBuilder:
    """Fluent nesting of commands under a parent type."""

    def __init__(self, registry, parent):
        self._registry = registry
        self._parent = parent

    @property
    def parent(self):
        return self._parent

    def add_subcommand(self, cls, configure=Unset, /, *, builder=Unset, name=Unset, descr=Unset):
        self._registry.register(cls, name=name, descr=descr, parent=self._parent, builder=builder)
        if configure is not Unset:
            configure(SubCommandBuilder(self._registry, cls))
        return self


__all__ = (
    "CommandDescriptor",
    "CommandRegistry",
    "SubCommandBuilder",
)
