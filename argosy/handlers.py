"""
Capabilities the host expects from application types.

- CommandHandler: an executable command; exposes execute(context).
- CommandFilter: a middleware stage; exposes order and execute(context, next).

Both are abstract base classes with a structural __subclasshook__, so a plain
class that merely defines ``execute`` with the matching number of parameters
qualifies without inheriting.
The framework only ever checks capabilities through issubclass()/isinstance().
"""
import inspect
from abc import ABC, abstractmethod


def _implements(cls, name, arity):
    for base in cls.__mro__:
        if name in vars(base):
            break
    else:
        return False
    if not callable(method := vars(base)[name]):
        return False
    try:
        parameters = list(inspect.signature(method).parameters.values())[1:]
    except (TypeError, ValueError):
        return True
    if any(parameter.kind is parameter.VAR_POSITIONAL for parameter in parameters):
        return True
    positional = [
        parameter for parameter in parameters
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD)
    ]
    required = [parameter for parameter in positional if parameter.default is parameter.empty]
    return len(required) <= arity <= len(positional)


class CommandHandler(ABC):
    """
    Executable command.

    Instances are constructed fresh for every invocation, receive the parsed
    option values on their Option attributes, then execute(context) runs.
    execute may be a coroutine function or a plain function.
    """

    @abstractmethod
    async def execute(self, context):
        raise NotImplementedError

    @classmethod
    def __subclasshook__(cls, subclass):
        if cls is CommandHandler:
            return _implements(subclass, "execute", 1) or NotImplemented
        return NotImplemented


class CommandFilter(ABC):
    """
    Middleware stage wrapped around command execution.

    execute(context, next) decides whether, when and how often to await
    next(context); not awaiting it short-circuits everything downstream.
    """
    order = 0

    @abstractmethod
    async def execute(self, context, next):
        raise NotImplementedError

    @classmethod
    def __subclasshook__(cls, subclass):
        if cls is CommandFilter:
            return _implements(subclass, "execute", 2) or NotImplemented
        return NotImplemented


def is_command(object, /):
    return isinstance(object, type) and issubclass(object, CommandHandler)


def is_filter(object, /):
    return isinstance(object, type) and issubclass(object, CommandFilter)


__all__ = (
    "CommandHandler",
    "CommandFilter",
    "is_command",
    "is_filter",
)
