"""
Parser collaborator tests (argparse adapter).

Scope
- Typed values, defaults and required options.
- Sub-command routing and node actions.
- Parse failures surfaced as ParseError with status 2, --help as status 0.

Conventions
- Test method names follow CamelCase per project convention.
"""
import enum
import io
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import IsolatedAsyncioTestCase, TestCase

from argosy import (
    CommandNode,
    DuplicateCommandError,
    DuplicateOptionError,
    OptionDeclaration,
    ParseError,
)


class Color(enum.Enum):
    RED = "red"
    BLUE = "blue"


class TestOptionDeclaration(TestCase):
    def testDefaults(self):
        declaration = OptionDeclaration("--name", "-n")
        self.assertEqual(declaration.names, ("--name", "-n"))
        self.assertIs(declaration.type, str)
        self.assertTrue(declaration.required)
        self.assertEqual(declaration.completions, ())

    def testMutableAttributes(self):
        declaration = OptionDeclaration("--name")
        declaration.descr = "Name"
        declaration.required = False
        declaration.default = "Bob"
        declaration.completions = ["Bob", "Alice"]
        self.assertEqual(declaration.descr, "Name")
        self.assertFalse(declaration.required)
        self.assertEqual(declaration.default, "Bob")
        self.assertEqual(declaration.completions, ("Bob", "Alice"))

    def testInvalidNameRaises(self):
        with self.assertRaises(ValueError):
            OptionDeclaration("name")


class TestCommandNodeParsing(TestCase):
    def setUp(self):
        self.root = CommandNode("tool")
        self.root.action = lambda result: None

    def declare(self, *names, **options):
        declaration = OptionDeclaration(*names, **options)
        self.root.add_option(declaration)
        return declaration

    def testTypedValues(self):
        count = self.declare("--count", type=int)
        ratio = self.declare("--ratio", type=float)
        path = self.declare("--path", type=Path)
        result = self.root.parse(["--count", "3", "--ratio", "0.5", "--path", "out"])
        self.assertEqual(result.get_value(count), 3)
        self.assertEqual(result.get_value(ratio), 0.5)
        self.assertEqual(result.get_value(path), Path("out"))

    def testAliases(self):
        name = self.declare("--name", "-n")
        self.assertEqual(self.root.parse(["-n", "Bob"]).get_value(name), "Bob")

    def testBooleanFlag(self):
        verbose = self.declare("--verbose", type=bool, required=False, default=False)
        self.assertTrue(self.root.parse(["--verbose"]).get_value(verbose))
        self.assertFalse(self.root.parse(["--verbose", "no"]).get_value(verbose))
        self.assertFalse(self.root.parse([]).get_value(verbose))

    def testBooleanWords(self):
        verbose = self.declare("--verbose", "-v", type=bool, required=False, default=False)
        name = self.declare("--name", required=False)
        self.assertFalse(self.root.parse(["-v", "off"]).get_value(verbose))
        self.assertFalse(self.root.parse(["--verbose=false"]).get_value(verbose))
        result = self.root.parse(["-v", "--name", "true"])
        self.assertTrue(result.get_value(verbose))
        self.assertEqual(result.get_value(name), "true")
        with self.assertRaises(ParseError) as capture:
            self.root.parse(["--verbose=maybe"])
        self.assertIn("invalid boolean value", capture.exception.message)

    def testOptionalAndList(self):
        limit = self.declare("--limit", type=int | None, required=False, default=None)
        tags = self.declare("--tags", type=list[int], required=False, default=None)
        result = self.root.parse(["--limit", "4", "--tags", "1", "2"])
        self.assertEqual(result.get_value(limit), 4)
        self.assertEqual(result.get_value(tags), [1, 2])

    def testEnumValues(self):
        color = self.declare("--color", type=Color)
        self.assertIs(self.root.parse(["--color", "red"]).get_value(color), Color.RED)
        self.assertIs(self.root.parse(["--color", "BLUE"]).get_value(color), Color.BLUE)

    def testDefaultWhenAbsent(self):
        greeting = self.declare("--greeting", required=False, default="Hello")
        self.assertEqual(self.root.parse([]).get_value(greeting), "Hello")

    def testDefaultWinsOverRequired(self):
        greeting = self.declare("--greeting", required=True, default="Hello")
        self.assertEqual(self.root.parse([]).get_value(greeting), "Hello")

    def testMissingRequiredRaises(self):
        self.declare("--name")
        with self.assertRaises(ParseError) as capture:
            self.root.parse([])
        self.assertEqual(capture.exception.status, 2)

    def testConversionFailureRaises(self):
        self.declare("--count", type=int)
        with self.assertRaises(ParseError):
            self.root.parse(["--count", "three"])

    def testUnknownTokenRaises(self):
        with self.assertRaises(ParseError):
            self.root.parse(["--unknown"])

    def testDuplicateOptionRaises(self):
        self.declare("--name", "-n")
        with self.assertRaises(DuplicateOptionError):
            self.declare("--other", "-n")

    def testUndeclaredOptionLookupRaises(self):
        result = self.root.parse([])
        with self.assertRaises(LookupError):
            result.get_value(OptionDeclaration("--ghost"))


class TestCommandNodeTree(IsolatedAsyncioTestCase):
    def setUp(self):
        self.calls = []
        self.root = CommandNode("tool")
        self.user = CommandNode("user")
        self.add = CommandNode("add")
        self.name = OptionDeclaration("--name")
        self.add.add_option(self.name)

        async def action(result):
            self.calls.append((result.node.name, result.get_value(self.name)))
            return 7

        self.add.action = action
        self.user.add_child(self.add)
        self.root.add_child(self.user)

    async def testRoutesToNestedAction(self):
        self.assertEqual(await self.root.invoke(["user", "add", "--name", "Bob"]), 7)
        self.assertEqual(self.calls, [("add", "Bob")])

    async def testNamespaceWithoutSubcommandRaises(self):
        with self.assertRaises(ParseError):
            await self.root.invoke(["user"])

    async def testUnknownSubcommandRaises(self):
        with self.assertRaises(ParseError):
            await self.root.invoke(["group"])

    async def testHelpReturnsZero(self):
        with redirect_stdout(io.StringIO()) as output:
            self.assertEqual(await self.root.invoke(["--help"]), 0)
        self.assertIn("user", output.getvalue())

    async def testLeafWithoutActionRaises(self):
        self.user.add_child(CommandNode("empty"))
        with self.assertRaises(ParseError):
            await self.root.invoke(["user", "empty"])

    async def testSwitchBeforeSubcommand(self):
        verbose = OptionDeclaration("--verbose", "-v", type=bool, required=False, default=False)
        self.user.add_option(verbose)

        async def action(result):
            self.calls.append(("user", result.get_value(verbose)))
            return 3

        self.user.action = action
        self.assertEqual(await self.root.invoke(["user", "-v"]), 3)
        self.assertEqual(await self.root.invoke(["user", "-v", "add", "--name", "Bob"]), 7)
        self.assertEqual(await self.root.invoke(["user", "--verbose", "yes", "add", "--name", "Eve"]), 7)
        self.assertEqual(self.calls, [("user", True), ("add", "Bob"), ("add", "Eve")])

    def testDuplicateChildRaises(self):
        with self.assertRaises(DuplicateCommandError):
            self.user.add_child(CommandNode("add"))

    def testParent(self):
        self.assertIs(self.add.parent, self.user)
        self.assertIs(self.user.parent, self.root)


if __name__ == "__main__":
    unittest.main()
