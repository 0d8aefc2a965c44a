"""
Metadata model tests (options, filter attachments, command names).

Scope
- Option descriptor validation and instance binding.
- Option ordering across the class hierarchy.
- Filter attachment order and inheritance.
- Command name resolution and explicit registration.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from argosy import (
    CommandFilter,
    CommandHandler,
    CommandMetadata,
    FilterDescriptor,
    InvalidFilterError,
    Option,
    add_action_builder,
    add_command_metadata,
    add_filter_descriptor,
    command,
    filter_descriptors,
    option_members,
    resolve_action_builder,
    resolve_command_metadata,
    with_filter,
)
from argosy.utils import Unset


class FirstFilter(CommandFilter):
    async def execute(self, context, next):
        return await next(context)


class SecondFilter(CommandFilter):
    async def execute(self, context, next):
        return await next(context)


class TestOption(TestCase):
    """Option descriptor declaration and binding."""

    def testDefaults(self):
        option = Option("--text", "-t")
        self.assertEqual(option.name, "--text")
        self.assertEqual(option.aliases, ("-t",))
        self.assertEqual(option.names, ("--text", "-t"))
        self.assertTrue(option.required)
        self.assertIs(option.default, Unset)
        self.assertIs(option.descr, Unset)
        self.assertEqual(option.order, Option.LAST)
        self.assertEqual(option.completions, ())

    def testInvalidNameRaises(self):
        with self.assertRaises(ValueError):
            Option("text")
        with self.assertRaises(ValueError):
            Option("--text", "--text")
        with self.assertRaises(TypeError):
            Option("--count", order="1")
        with self.assertRaises(TypeError):
            Option("--count", required="yes")

    def testListDefaultIsKept(self):
        option = Option("--tags", default=["a"])
        self.assertEqual(option.default, ["a"])

    def testDescriptorBinding(self):
        class Command:
            text = Option("--text")

        self.assertIsInstance(Command.text, Option)
        self.assertEqual(Command.text.attribute, "text")

        instance = Command()
        with self.assertRaises(AttributeError):
            instance.text
        instance.text = "hello"
        self.assertEqual(instance.text, "hello")
        self.assertNotIn("text", vars(Command()))


class TestOptionMembers(TestCase):
    """Registration order of options across a hierarchy."""

    def testDeclarationOrder(self):
        class Command:
            first: str = Option("--first")
            second: int = Option("--second")
            third = Option("--third", default=1.5)

        members = option_members(Command)
        self.assertEqual([member.attribute for member in members], ["first", "second", "third"])
        self.assertEqual([member.type for member in members], [str, int, float])

    def testBaseOptionsComeFirst(self):
        class Base:
            base = Option("--base")

        class Derived(Base):
            derived = Option("--derived")

        self.assertEqual([member.attribute for member in option_members(Derived)], ["base", "derived"])
        self.assertEqual([member.level for member in option_members(Derived)], [-1, 0])

    def testOrderKeyWins(self):
        class Base:
            base = Option("--base", order=5)

        class Derived(Base):
            early = Option("--early", order=1)
            late = Option("--late")

        self.assertEqual([member.attribute for member in option_members(Derived)], ["early", "base", "late"])

    def testRedeclaredNameShadowsBase(self):
        class Base:
            text = Option("--text")
            other = Option("--other")

        class Derived(Base):
            text = Option("--message")
            other = None

        members = option_members(Derived)
        self.assertEqual([member.option.name for member in members], ["--message"])

    def testExplicitTypeWins(self):
        class Command:
            value: str = Option("--value", type=int)

        self.assertIs(option_members(Command)[0].type, int)


class TestFilterDescriptors(TestCase):
    """Filter attachment declaration and inheritance."""

    def testStackedDecoratorsKeepOrder(self):
        @with_filter(FirstFilter, order=3)
        @with_filter(SecondFilter, order=1)
        class Command:
            pass

        self.assertEqual(
            filter_descriptors(Command),
            (FilterDescriptor(FirstFilter, 3), FilterDescriptor(SecondFilter, 1)),
        )

    def testInheritedBaseFirst(self):
        @with_filter(FirstFilter)
        class Base:
            pass

        @with_filter(SecondFilter)
        class Derived(Base):
            pass

        self.assertEqual([item.type for item in filter_descriptors(Derived)], [FirstFilter, SecondFilter])
        self.assertEqual([item.type for item in filter_descriptors(Derived, inherit=False)], [SecondFilter])

    def testNoAttachments(self):
        class Command:
            pass

        self.assertEqual(filter_descriptors(Command), ())

    def testInvalidFilterRaises(self):
        class NotAFilter:
            pass

        with self.assertRaises(InvalidFilterError):
            with_filter(NotAFilter)

    def testStructuralFilter(self):
        class Structural:
            async def execute(self, context, next):
                return await next(context)

        @with_filter(Structural)
        class Command:
            pass

        self.assertEqual(filter_descriptors(Command)[0].type, Structural)

    def testExplicitRegistration(self):
        class Command:
            pass

        add_filter_descriptor(Command, FirstFilter, order=7)
        self.assertEqual(filter_descriptors(Command), (FilterDescriptor(FirstFilter, 7),))


class TestCommandMetadata(TestCase):
    """Command names and descriptions."""

    def testDecorator(self):
        @command("greet", descr="Greet someone")
        class GreetCommand(CommandHandler):
            async def execute(self, context):
                pass

        self.assertEqual(resolve_command_metadata(GreetCommand), CommandMetadata("greet", "Greet someone"))

    def testBareDecoratorDerivesName(self):
        @command
        class UserRoleAssignCommand:
            pass

        self.assertEqual(resolve_command_metadata(UserRoleAssignCommand).name, "user-role-assign")

    def testMissingMetadataDerivesName(self):
        class ListUsers:
            pass

        self.assertEqual(resolve_command_metadata(ListUsers), CommandMetadata("list-users", None))

    def testNotInherited(self):
        @command("base")
        class Base:
            pass

        class ChildCommand(Base):
            pass

        self.assertEqual(resolve_command_metadata(ChildCommand).name, "child")

    def testExplicitRegistrationWins(self):
        @command("decorated")
        class Command:
            pass

        add_command_metadata(Command, "registered", descr="Registered")
        self.assertEqual(resolve_command_metadata(Command), CommandMetadata("registered", "Registered"))

    def testInvalidNameRaises(self):
        with self.assertRaises(ValueError):
            command("two words")

    def testActionBuilderRegistration(self):
        class Command:
            pass

        def builder(plan):
            pass

        self.assertIs(resolve_action_builder(Command), Unset)
        add_action_builder(Command, builder)
        self.assertIs(resolve_action_builder(Command), builder)


if __name__ == "__main__":
    unittest.main()
