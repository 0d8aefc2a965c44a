"""
Tests for the Unset sentinel and the small helpers of argosy.utils.
"""
import asyncio
import copy
import unittest
from unittest import TestCase

from argosy.utils import *


class UnsetTest(TestCase):
    """Singleton identity, falsiness and finality of Unset."""

    def testSingleton(self) -> None:
        self.assertIs(UnsetType(), Unset)

    def testFalsy(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testCopyKeepsIdentity(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy([Unset])[0], Unset)

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})

    def testUnion(self) -> None:
        self.assertIsInstance("text", str | Unset)
        self.assertIsInstance(Unset, str | Unset)
        self.assertNotIsInstance(1, str | Unset)


class HelpersTest(TestCase):
    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertIsNone(coalesce(Unset))

    def testRename(self) -> None:
        @rename("renamed")
        def original():
            pass

        self.assertEqual(original.__name__, "renamed")
        self.assertEqual(original.__qualname__, "renamed")
        with self.assertRaises(TypeError):
            rename(1, "name")

    def testTypename(self) -> None:
        self.assertEqual(typename("UserRoleAssignCommand"), "user-role-assign-command")
        self.assertEqual(typename("Greet"), "greet")

    def testMirrorCopiesContainers(self) -> None:
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = ["a", "b"]

        holder = Holder()
        self.assertEqual(holder.items, ("a", "b"))
        with self.assertRaises(AttributeError):
            holder.items = ()

    def testSettle(self) -> None:
        async def coroutine():
            return 1

        async def main():
            return await settle(coroutine()), await settle(2)

        self.assertEqual(asyncio.run(main()), (1, 2))


if __name__ == '__main__':
    unittest.main()
