"""
Argosy parser collaborator: a thin adapter over argparse.

The host never tokenizes anything itself. It declares options on command nodes,
hands the tokens over, and reads typed values back:

- OptionDeclaration: what a binder registers for one option (names, value type,
  description, required flag, default, completion candidates).
- CommandNode: one node of the external command tree; carries declarations,
  children and an optional asynchronous action.
- ParseResult: outcome of a parse; get_value(declaration) returns the typed value
  or the declaration default.

Value types
- str, int, float and any type constructible from one token (e.g. pathlib.Path).
- bool: a bare flag means True; a following "true/false/yes/no/on/off/1/0" word (or
  --flag=word) sets it explicitly. Any other following token is left alone.
- Optional[X] / X | None: converted as X; None when absent and not required.
- list[X]: one or more tokens converted as X.
- Enum subclasses: matched by value, then by member name.

Failures
- Conversion errors, missing required options and unknown tokens raise ParseError
  (status 2, argparse convention). --help prints the help and returns 0.
"""
import argparse
import enum
import sys
import types
import typing
from collections.abc import Iterable

from .faults import DuplicateCommandError, DuplicateOptionError, ParseError
from .utils import *

_NODE = "argosy_node"

_TRUTHY = frozenset(("true", "yes", "on", "1"))
_FALSY = frozenset(("false", "no", "off", "0"))


class _ParserExit(Exception):
    def __init__(self, status, message):
        super().__init__(status, message)
        self.status = status
        self.message = message


class _ArgumentParser(argparse.ArgumentParser):
    """argparse parser that raises instead of terminating the process."""

    def error(self, message):
        raise ParseError(
            message,
            prog=self.prog,
            usage=self.format_usage(),
            hint=f"run '{self.prog} --help' to see valid forms",
            status=2,
        )

    def exit(self, status=0, message=None):
        raise _ParserExit(status, message)


@rename("boolean")
def _boolean(token):
    if (token := token.strip().lower()) in _TRUTHY:
        return True
    if token in _FALSY:
        return False
    raise ValueError(f"invalid boolean value: {token!r}")


def _enumeration(cls):
    @rename(cls.__name__)
    def convert(token):
        try:
            return cls(token)
        except ValueError:
            pass
        try:
            return cls[token]
        except KeyError:
            raise ValueError(f"invalid {cls.__name__} value: {token!r}") from None
    return convert


def _unwrap(type):
    """Strip Optional[...] wrappers: Optional[int] -> int."""
    if typing.get_origin(type) in (typing.Union, types.UnionType):
        arguments = tuple(argument for argument in typing.get_args(type) if argument is not types.NoneType)
        if len(arguments) == 1:
            return _unwrap(arguments[0])
    return type


def _converter(cls):
    if isinstance(cls, type) and issubclass(cls, enum.Enum):
        return _enumeration(cls)
    if not callable(cls):
        raise TypeError(f"option type {cls!r} is not convertible from a string")
    return cls


def _arguments(declaration):
    """Translate a declaration into argparse add_argument() keyword arguments."""
    value = _unwrap(declaration.type)
    arguments = {}

    if value is bool:
        arguments.update(nargs="?", const=True, type=_boolean, metavar="BOOL")
    elif typing.get_origin(value) is list or value is list:
        element, = typing.get_args(value) or (str,)
        arguments.update(nargs="+", type=_converter(_unwrap(element)))
    else:
        arguments.update(type=_converter(value))

    if declaration.descr is not Unset:
        arguments["help"] = declaration.descr
    if declaration.default is not Unset:
        arguments.update(default=declaration.default, required=False)
    else:
        arguments.update(default=None, required=declaration.required)
    return arguments


def _is_switch(declaration):
    return _unwrap(declaration.type) is bool


def _is_many(declaration):
    value = _unwrap(declaration.type)
    return typing.get_origin(value) is list or value is list


def _explicit_switches(node, tokens):
    """
    Rewrite boolean switches into their "--switch=value" form.

    A switch takes the next token only when it reads as a boolean word; otherwise
    it stands alone, so "parent --verbose child" still routes to child. The walk
    follows sub-command names to know which declarations are in scope.
    """
    rewritten = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if token == "--":
            rewritten.extend(tokens[index - 1:])
            break
        if not token.startswith("-"):
            node = next((child for child in node.children if child.name == token), node)
            rewritten.append(token)
            continue
        declaration = next((option for option in node.options if token in option.names), None)
        if declaration is None:
            rewritten.append(token)
        elif _is_switch(declaration):
            if index < len(tokens) and tokens[index].strip().lower() in _TRUTHY | _FALSY:
                rewritten.append(f"{token}={tokens[index]}")
                index += 1
            else:
                rewritten.append(f"{token}=true")
        else:
            rewritten.append(token)
            start = index
            while index < len(tokens) and (index == start or _is_many(declaration)):
                if index > start and tokens[index].startswith("-"):
                    break
                index += 1
            rewritten.extend(tokens[start:index])
    return rewritten


class OptionDeclaration:
    """
    Parser-side declaration of one option.

    Built by binders, registered on a CommandNode, and used as the key to read the
    parsed value back from a ParseResult. descr, required, default and completions
    can be adjusted after construction, before the node is parsed.
    """
    name = mirror("name")
    aliases = mirror("aliases")
    type = mirror("type")
    completions = mirror("completions")

    def __init__(self, name, /, *aliases, type=str, descr=Unset, required=True, default=Unset, completions=()):
        for item in (name, *aliases):
            if not isinstance(item, str) or not item.startswith("-"):
                raise ValueError(f"option name {item!r} must start with '-'")
        self._name = name
        self._aliases = aliases
        self._type = type
        self.descr = descr
        self.required = required
        self.default = default
        self.completions = completions

    @property
    def names(self):
        return (self._name, *self._aliases)

    @property
    def descr(self):
        return self._descr

    @descr.setter
    def descr(self, value):
        if not isinstance(value, str | Unset):
            raise TypeError(f"option {self._name!r} 'descr' must be a string")
        self._descr = value

    @property
    def required(self):
        return self._required

    @required.setter
    def required(self, value):
        if not isinstance(value, bool):
            raise TypeError(f"option {self._name!r} 'required' must be a boolean")
        self._required = value

    @property
    def default(self):
        return self._default

    @default.setter
    def default(self, value):
        self._default = value

    @completions.setter
    def completions(self, value):
        if isinstance(value, str) or not isinstance(value, Iterable):
            raise TypeError(f"option {self._name!r} 'completions' must be an iterable of strings")
        self._completions = tuple(value)

    def __repr__(self):
        return (
            f"option-declaration(name={self._name!r}, aliases={self._aliases!r}, "
            f"type={self._type!r}, required={self._required!r}, default={self._default!r})"
        )


class ParseResult:
    """Typed access to the outcome of CommandNode.parse()."""

    def __init__(self, node, namespace, destinations, tokens, cancellation=None):
        self._node = node
        self._namespace = namespace
        self._destinations = destinations
        self._tokens = tuple(tokens)
        self.cancellation = cancellation

    @property
    def node(self):
        return self._node

    @property
    def tokens(self):
        return self._tokens

    def get_value(self, declaration, /):
        try:
            destination = self._destinations[declaration]
        except KeyError:
            raise LookupError(f"option {declaration.name!r} is not declared on this command tree") from None
        return getattr(self._namespace, destination, coalesce(declaration.default))


class CommandNode:
    """
    One node of the external command tree.

    - options: declarations registered with add_option(), in registration order.
    - children: sub-command nodes registered with add_child().
    - action: coroutine function action(result) -> int, or None for pure
      namespace nodes (which then require a sub-command).
    """

    def __init__(self, name, /, descr=Unset):
        if not isinstance(name, str) or not name.strip():
            raise ValueError("command node name must be a non-empty string")
        self._name = name.strip()
        self._descr = coalesce(descr)
        self._options = []
        self._children = []
        self._parent = None
        self.action = None

    @property
    def name(self):
        return self._name

    @name.setter
    def name(self, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError("command node name must be a non-empty string")
        self._name = value.strip()

    @property
    def descr(self):
        return self._descr

    @descr.setter
    def descr(self, value):
        self._descr = coalesce(value)

    @property
    def options(self):
        return tuple(self._options)

    @property
    def children(self):
        return tuple(self._children)

    @property
    def parent(self):
        return self._parent

    def add_option(self, declaration, /):
        if not isinstance(declaration, OptionDeclaration):
            raise TypeError("add_option() argument must be an option declaration")
        taken = {name for option in self._options for name in option.names}
        if clashes := taken.intersection(declaration.names):
            raise DuplicateOptionError(
                f"command {self._name!r} already declares {', '.join(sorted(clashes))}",
            )
        self._options.append(declaration)

    def add_child(self, node, /):
        if not isinstance(node, CommandNode):
            raise TypeError("add_child() argument must be a command node")
        if any(child.name == node.name for child in self._children):
            raise DuplicateCommandError(f"command {self._name!r} already has a sub-command named {node.name!r}")
        node._parent = self
        self._children.append(node)

    def _populate(self, parser, destinations, depth):
        parser.set_defaults(**{_NODE: self})
        for declaration in self._options:
            destinations[declaration] = destination = f"argosy_option_{len(destinations)}"
            action = parser.add_argument(
                *declaration.names,
                dest=destination,
                **_arguments(declaration),
            )
            if declaration.completions:
                action.completer = lambda prefix, choices=declaration.completions, **unused: [
                    choice for choice in choices if choice.startswith(prefix)
                ]
        if not self._children:
            return
        subparsers = parser.add_subparsers(
            dest=f"argosy_command_{depth}",
            metavar="COMMAND",
            title="commands",
        )
        subparsers.required = self.action is None
        for child in self._children:
            child._populate(
                subparsers.add_parser(child.name, help=child.descr, description=child.descr, allow_abbrev=False),
                destinations,
                depth + 1,
            )

    def parse(self, tokens, /, cancellation=None):
        """Parse tokens against the tree rooted at this node."""
        tokens = list(tokens)
        parser = _ArgumentParser(prog=self._name, description=self._descr, allow_abbrev=False)
        destinations = {}
        self._populate(parser, destinations, 0)
        namespace = parser.parse_args(_explicit_switches(self, tokens))
        return ParseResult(getattr(namespace, _NODE), namespace, destinations, tokens, cancellation)

    async def invoke(self, tokens, /, cancellation=None):
        """
        Parse tokens and run the matched node action.

        Returns the action exit code, or the parser status for --help. Raises
        ParseError when the tokens do not match the tree.
        """
        try:
            result = self.parse(tokens, cancellation)
        except _ParserExit as exit:
            if exit.message:
                sys.stderr.write(exit.message)
            return exit.status
        if result.node.action is None:
            raise ParseError(
                f"command {result.node.name!r} has nothing to run",
                prog=self._name,
                hint=f"run '{self._name} --help' to see valid forms",
                status=2,
            )
        return await result.node.action(result)

    def __repr__(self):
        return f"command-node(name={self._name!r}, options={len(self._options)}, children={len(self._children)})"


__all__ = (
    "OptionDeclaration",
    "ParseResult",
    "CommandNode",
)
