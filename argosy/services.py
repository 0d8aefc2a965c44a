"""
Argosy services: a small dependency-injection container.

Registration (ServiceCollection)
- add_singleton(type, value=Unset): one instance per provider. value may be an
  instance of type, an implementation class, or a factory factory(provider).
- add_transient(type, value=Unset): a new instance on every resolution. value may
  be an implementation class or a factory factory(provider).
- try_add_singleton / try_add_transient: same, unless type is already registered.
- Later registrations of the same type replace earlier ones.

Resolution (ServiceProvider)
- resolve(type): registered instance, or None when type is not registered.
- construct(type): always a fresh instance, through the registered factory or by
  auto-wiring the constructor (annotated parameters are resolved; parameters with
  a default are left alone when their type is not registered).
- close(): closes the singletons created by this provider, newest first.
"""
import inspect
import logging
from collections import namedtuple
from enum import Enum

from .faults import ResolutionError
from .utils import *

logger = logging.getLogger(__name__)


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


ServiceDescriptor = namedtuple("ServiceDescriptor", ("type", "lifetime", "factory", "instance"))
ServiceDescriptor.__doc__ = """Registration of one service type: lifetime plus factory or ready instance."""


def _descriptor(service_type, lifetime, value):
    if not isinstance(service_type, type):
        raise TypeError("service type must be a class")
    if value is Unset:
        return ServiceDescriptor(service_type, lifetime, service_type, Unset)
    if isinstance(value, type):
        if not issubclass(value, service_type):
            raise TypeError(f"{value.__qualname__} is not a subclass of {service_type.__qualname__}")
        return ServiceDescriptor(service_type, lifetime, value, Unset)
    if lifetime is Lifetime.SINGLETON and isinstance(value, service_type):
        return ServiceDescriptor(service_type, lifetime, Unset, value)
    if callable(value):
        return ServiceDescriptor(service_type, lifetime, value, Unset)
    raise TypeError(f"cannot register {value!r} as {service_type.__qualname__}")


class ServiceCollection:
    def __init__(self):
        self._descriptors = {}

    def add_singleton(self, service_type, value=Unset, /):
        self._descriptors[service_type] = _descriptor(service_type, Lifetime.SINGLETON, value)
        return self

    def add_transient(self, service_type, value=Unset, /):
        self._descriptors[service_type] = _descriptor(service_type, Lifetime.TRANSIENT, value)
        return self

    def try_add_singleton(self, service_type, value=Unset, /):
        if service_type in self._descriptors:
            return False
        self.add_singleton(service_type, value)
        return True

    def try_add_transient(self, service_type, value=Unset, /):
        if service_type in self._descriptors:
            return False
        self.add_transient(service_type, value)
        return True

    def remove(self, service_type, /):
        self._descriptors.pop(service_type, None)

    def __contains__(self, service_type):
        return service_type in self._descriptors

    def __iter__(self):
        return iter(tuple(self._descriptors.values()))

    def __len__(self):
        return len(self._descriptors)

    def build(self):
        return ServiceProvider(self._descriptors)


class ServiceProvider:
    def __init__(self, descriptors):
        self._descriptors = dict(descriptors)
        self._singletons = {}
        self._created = []
        self._pending = []
        self._closed = False

    def __contains__(self, service_type):
        return service_type in self._descriptors or service_type is ServiceProvider

    def resolve(self, service_type, /):
        if service_type is ServiceProvider:
            return self
        if (descriptor := self._descriptors.get(service_type)) is None:
            return None
        if descriptor.lifetime is Lifetime.TRANSIENT:
            return self._create(descriptor)
        if descriptor.instance is not Unset:
            return descriptor.instance
        try:
            return self._singletons[service_type]
        except KeyError:
            pass
        self._singletons[service_type] = instance = self._create(descriptor)
        self._created.append(instance)
        return instance

    def construct(self, service_type, /):
        """Create a fresh instance of service_type, registered or not."""
        descriptor = self._descriptors.get(service_type)
        if descriptor is not None and descriptor.factory is not Unset:
            return self._create(descriptor)
        return self._autowire(service_type)

    def _create(self, descriptor):
        if isinstance(descriptor.factory, type):
            return self._autowire(descriptor.factory)
        return descriptor.factory(self)

    def _autowire(self, cls):
        if self._closed:
            raise ResolutionError(f"cannot construct {cls.__qualname__}: the provider is closed")
        if cls in self._pending:
            chain = " -> ".join(item.__qualname__ for item in (*self._pending, cls))
            raise ResolutionError(f"circular dependency: {chain}")

        try:
            signature = inspect.signature(cls, eval_str=True)
        except (NameError, SyntaxError):
            signature = inspect.signature(cls)
        except (TypeError, ValueError):
            return cls()

        self._pending.append(cls)
        try:
            arguments = {}
            for name, parameter in signature.parameters.items():
                if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
                    continue
                annotation = parameter.annotation
                dependency = None
                if isinstance(annotation, type):
                    dependency = self.resolve(annotation)
                if dependency is not None:
                    arguments[name] = dependency
                elif parameter.default is parameter.empty:
                    raise ResolutionError(
                        f"cannot construct {cls.__qualname__}: parameter {name!r} is not resolvable",
                        hint="register the parameter type with the service collection or give it a default",
                    )
            positional = [
                arguments.pop(name)
                for name, parameter in signature.parameters.items()
                if parameter.kind is parameter.POSITIONAL_ONLY and name in arguments
            ]
            return cls(*positional, **arguments)
        finally:
            self._pending.pop()

    def close(self):
        """Close created singletons that expose close(), newest first."""
        if self._closed:
            return
        self._closed = True
        while self._created:
            instance = self._created.pop()
            if callable(close := getattr(instance, "close", None)):
                logger.debug("closing %s", type(instance).__qualname__)
                close()
        self._singletons.clear()

    def __enter__(self):
        return self

    def __exit__(self, *unused):
        self.close()


__all__ = (
    "Lifetime",
    "ServiceDescriptor",
    "ServiceCollection",
    "ServiceProvider",
)
