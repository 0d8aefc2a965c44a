"""
Argosy hosting: from declared commands to a runnable command-line host.

Overview
- CommandHostBuilder: gathers configuration, environment, services and command
  configuration, then build() produces a CommandHost.
- CommandBuilder: handed to configure_commands(); registers commands (nested with
  SubCommandBuilder), global filters, filter options and root command settings.
- RootCommandBuilder: name, description, optional root handler and hooks that
  receive the root CommandNode once it exists.
- CommandHost: hands the prompt to the parser and returns the exit code.

Build (CommandHostBuilder.build)
1) Run the command configuration callbacks on a fresh CommandBuilder.
2) Materialize the registry; executable command types become transient services.
3) Register global and attached filter types as transient services (unless already
   registered), plus Configuration, HostEnvironment and FilterOptions singletons.
4) Finalize the service provider.
5) Create one parser node per descriptor, recursively. Executable descriptors are
   bound right away, so binder faults (missing operation, duplicate option) are
   raised here and not on first use.

Invocation (terminal action of every executable node)
- construct a fresh command instance through the provider;
- create a CommandContext carrying the cancellation token of the run;
- run the filter pipeline around plan.operation(command, result, context);
- return context.exit_code.

Quick example:
    >>> builder = create_default_builder()
    >>> builder.configure_commands(lambda commands: commands.add_command(GreetCommand))
    >>> with builder.build() as host:
    ...     raise SystemExit(host.run())
"""
import asyncio
import logging
import shlex
import sys
from collections.abc import Iterable

from .binding import bind
from .config import Configuration, HostEnvironment, add_default_sources
from .context import CommandContext
from .faults import ParseError, trigger
from .logs import configure_logging
from .metadata import filter_descriptors
from .parsing import CommandNode
from .pipeline import FilterOptions, FilterPipeline
from .registry import CommandRegistry, SubCommandBuilder
from .services import ServiceCollection
from .utils import *

logger = logging.getLogger(__name__)


class RootCommandBuilder:
    def __init__(self):
        self._name = Unset
        self._descr = Unset
        self._handler = Unset
        self._builder = Unset
        self._configurations = []

    name = mirror("name")
    descr = mirror("descr")
    handler = mirror("handler")
    builder = mirror("builder")

    def with_name(self, name, /):
        if not isinstance(name, str) or not name.strip():
            raise ValueError("root command name must be a non-empty string")
        self._name = name.strip()
        return self

    def with_description(self, descr, /):
        if not isinstance(descr, str):
            raise TypeError("root command description must be a string")
        self._descr = descr
        return self

    def use_handler(self, cls, /, *, builder=Unset):
        """Make the root command itself executable with the given command type."""
        if not isinstance(cls, type):
            raise TypeError("use_handler() argument must be a class")
        self._handler = cls
        self._builder = builder
        return self

    def configure(self, configure, /):
        """Register a hook receiving the root CommandNode after the tree is built."""
        if not callable(configure):
            raise TypeError("configure() argument must be callable")
        self._configurations.append(configure)
        return self

    def _apply(self, node):
        for configure in self._configurations:
            configure(node)


class CommandBuilder:
    def __init__(self, services):
        self._services = services
        self._registry = CommandRegistry(services)
        self._root = RootCommandBuilder()
        self._filter_options = FilterOptions()

    @property
    def registry(self):
        return self._registry

    @property
    def root(self):
        return self._root

    @property
    def filter_options(self):
        return self._filter_options

    def configure_root_command(self, configure, /):
        configure(self._root)
        return self

    def add_command(self, cls, configure=Unset, /, *, builder=Unset, name=Unset, descr=Unset):
        """
        Register a top-level command.

        configure, when given, receives a SubCommandBuilder nesting commands below cls.
        """
        self._registry.register(cls, name=name, descr=descr, builder=builder)
        if configure is not Unset:
            configure(SubCommandBuilder(self._registry, cls))
        return self

    def add_global_filter(self, filter_type, /, order=Unset):
        """
        Apply a filter to every command.

        Without order, FilterOptions.default_order at the time of the call is used.
        """
        self._filter_options.global_filters.add(filter_type, order)
        self._services.try_add_transient(filter_type)
        return self

    def configure_filter_options(self, configure, /):
        configure(self._filter_options)
        return self


def _walk(descriptors):
    for descriptor in descriptors:
        yield descriptor
        yield from _walk(descriptor.children)


def _terminal(command_type, plan, provider, pipeline):
    async def action(result):
        command = provider.construct(command_type)
        context = CommandContext(command_type, command, result.cancellation)
        await pipeline.execute(context, lambda context: plan.operation(command, result, context))
        logger.debug("command %s finished with exit code %d", command_type.__qualname__, context.exit_code)
        return context.exit_code
    return rename(action, f"{command_type.__name__}.action")


def _attach(node, command_type, builder, provider, pipeline):
    plan = bind(command_type, provider, builder)
    for declaration in plan.options:
        node.add_option(declaration)
    node.action = _terminal(command_type, plan, provider, pipeline)


def _create_node(descriptor, provider, pipeline):
    node = CommandNode(descriptor.name, coalesce(descriptor.descr))
    if descriptor.executable:
        _attach(node, descriptor.type, descriptor.builder, provider, pipeline)
    for child in descriptor.children:
        node.add_child(_create_node(child, provider, pipeline))
    return node


class CommandHostBuilder:
    """
    Entry point of an argosy application.

    - configuration: Configuration, filled by use_default_configuration() or by hand.
    - environment: HostEnvironment of this run.
    - services: ServiceCollection for application services.
    """

    def __init__(self, prompt=Unset, /, *, environment=Unset):
        self._prompt = prompt
        self._environment = coalesce(environment, HostEnvironment())
        self._configuration = Configuration()
        self._services = ServiceCollection()
        self._command_configurations = []
        self._logging = Unset

    @property
    def configuration(self):
        return self._configuration

    @property
    def environment(self):
        return self._environment

    @property
    def services(self):
        return self._services

    def configure_commands(self, configure, /):
        """Register a command configuration callback; callbacks run in order at build()."""
        if not callable(configure):
            raise TypeError("configure_commands() argument must be callable")
        self._command_configurations.append(configure)
        return self

    def use_default_configuration(self, environ=Unset):
        add_default_sources(self._configuration, self._environment, environ=environ)
        return self

    def use_default_logging(self, *, level=Unset, console=Unset):
        """Install the rich log handler at build() time, once configuration is complete."""
        self._logging = {"level": level, "console": console}
        return self

    def use_defaults(self):
        return self.use_default_configuration().use_default_logging()

    def build(self):
        if self._logging is not Unset:
            configure_logging(self._configuration, **self._logging)

        commands = CommandBuilder(self._services)
        for configure in self._command_configurations:
            configure(commands)

        descriptors = commands.registry.materialize()
        root = commands.root
        attached = [descriptor.type for descriptor in _walk(descriptors) if descriptor.executable]
        if root.handler is not Unset:
            self._services.try_add_transient(root.handler)
            attached.append(root.handler)
        for command_type in attached:
            for descriptor in filter_descriptors(command_type, inherit=commands.filter_options.include_base_filters):
                self._services.try_add_transient(descriptor.type)

        self._services.try_add_singleton(Configuration, self._configuration)
        self._services.try_add_singleton(HostEnvironment, self._environment)
        self._services.try_add_singleton(FilterOptions, commands.filter_options)

        provider = self._services.build()
        pipeline = FilterPipeline(provider, commands.filter_options)

        node = CommandNode(coalesce(root.name, self._environment.application_name), coalesce(root.descr))
        if root.handler is not Unset:
            _attach(node, root.handler, root.builder, provider, pipeline)
        for descriptor in descriptors:
            node.add_child(_create_node(descriptor, provider, pipeline))
        root._apply(node)

        logger.debug("command host built with %d commands", len(attached))
        return CommandHost(node, provider, self._prompt)


def _tokens(prompt):
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("prompt must be a string or an iterable of strings")
        return tokens
    raise TypeError("prompt must be a string or an iterable of strings")


class CommandHost:
    """
    Built host. Owns the root command node and the service provider.

    Use as a context manager (or call close()) to release the provider.
    """

    def __init__(self, root, services, prompt=Unset):
        self._root = root
        self._services = services
        self._prompt = prompt

    @property
    def root(self):
        return self._root

    @property
    def services(self):
        return self._services

    async def run_async(self, prompt=Unset, /, *, cancellation=Unset):
        """
        Parse the prompt and run the matched command.

        prompt falls back to the prompt given to the builder, then to sys.argv[1:].
        Parse failures are shown on the diagnostics console and reported through
        their status (2); anything else raised by a command propagates.
        """
        tokens = _tokens(prompt if prompt is not Unset else self._prompt)
        try:
            return await self._root.invoke(tokens, coalesce(cancellation, None))
        except ParseError as fault:
            trigger(fault)
            return fault.status

    def run(self, prompt=Unset, /):
        """Synchronous run_async(); an interrupted run (Ctrl+C) returns 130."""
        try:
            return asyncio.run(self.run_async(prompt))
        except KeyboardInterrupt:
            return 130

    def close(self):
        self._services.close()

    def __enter__(self):
        return self

    def __exit__(self, *unused):
        self.close()


def create_builder(prompt=Unset, /, **options):
    return CommandHostBuilder(prompt, **options)


def create_default_builder(prompt=Unset, /, **options):
    """Builder with default configuration sources and rich logging."""
    return CommandHostBuilder(prompt, **options).use_defaults()


__all__ = (
    "RootCommandBuilder",
    "CommandBuilder",
    "CommandHostBuilder",
    "CommandHost",
    "create_builder",
    "create_default_builder",
)
