import asyncio
import logging
import sys

from rich.pretty import pprint

from argosy import *

__prog__ = "argosy-sample"

logger = logging.getLogger("sample")


class GreetService:
    def execute(self, name, message):
        logger.info("greeting: %s, %s!", message, name)


@command("message", descr="Basic usage")
class MessageCommand(CommandHandler):
    text: str = Option("--text", "-t", descr="Text to show")

    async def execute(self, context):
        logger.info("show %s", self.text)


@command("greet", descr="DI service")
class GreetCommand(CommandHandler):
    name: str = Option("--name", "-n", descr="Name to greet")
    greeting: str = Option("--greeting", "-g", descr="Greeting message", required=False, default="Hello")
    count: int = Option("--count", "-c", descr="Number of times to greet", required=False, default=1)

    def __init__(self, service: GreetService):
        self.service = service

    async def execute(self, context):
        for _ in range(self.count):
            self.service.execute(self.name, self.greeting)


@with_filter(LoggingFilter)
@command("filter", descr="Filter test")
class FilterCommand(CommandHandler):
    message: str = Option("--message", "-m", descr="Message to display")

    async def execute(self, context):
        await asyncio.sleep(0.05)
        logger.info("message: %s", self.message)
        await asyncio.sleep(0.05)


@command("exception", descr="Exception test")
class ExceptionCommand(CommandHandler):
    async def execute(self, context):
        raise RuntimeError("Something went wrong")


@command("user", descr="User management")
class UserCommand:
    pass


@command("list", descr="List users")
class UserListCommand(CommandHandler):
    verbose: bool = Option("--verbose", "-v", descr="Show details", required=False)

    async def execute(self, context):
        pprint({"users": ["alice", "bob"], "verbose": self.verbose})


@command("add", descr="Add a user")
class UserAddCommand(CommandHandler):
    name: str = Option("--name", "-n", descr="User name")
    email: str | None = Option("--email", "-e", descr="Mail address", required=False)

    async def execute(self, context):
        if "@" not in (self.email or "@"):
            raise ValueError(f"invalid mail address: {self.email}")
        logger.info("added user %s", self.name)


@command("role", descr="Role management")
class UserRoleCommand:
    pass


class UserRoleChange(CommandHandler):
    user: str = Option("--user", "-u", descr="User name", order=0)
    role: str = Option("--role", "-r", descr="Role name", order=1, completions=("admin", "editor", "viewer"))


@command("assign", descr="Assign a role")
class UserRoleAssignCommand(UserRoleChange):
    async def execute(self, context):
        logger.info("assigned %s to %s", self.role, self.user)


@command("remove", descr="Remove a role")
class UserRoleRemoveCommand(UserRoleChange):
    async def execute(self, context):
        logger.info("removed %s from %s", self.role, self.user)


def configure(commands):
    commands.configure_root_command(lambda root: root.with_description("Sample CLI tool"))

    commands.add_global_filter(ExecutionTimeFilter, order=-100)
    commands.add_global_filter(ExceptionHandlingFilter, order=sys.maxsize)

    commands.add_command(MessageCommand)
    commands.add_command(GreetCommand)
    commands.add_command(FilterCommand)
    commands.add_command(ExceptionCommand)
    commands.add_command(UserCommand, lambda user: (
        user.add_subcommand(UserListCommand)
            .add_subcommand(UserAddCommand)
            .add_subcommand(UserRoleCommand, lambda role: (
                role.add_subcommand(UserRoleAssignCommand)
                    .add_subcommand(UserRoleRemoveCommand)
            ))
    ))


if __name__ == '__main__':
    builder = create_default_builder()
    builder.services.add_singleton(GreetService)
    builder.configure_commands(configure)

    with builder.build() as host:
        logger.info("application: %s", builder.environment.application_name)
        logger.info("environment: %s", builder.environment.environment_name)
        exit_code = host.run()
    logger.info("exit code: %d", exit_code)
    sys.exit(exit_code)
