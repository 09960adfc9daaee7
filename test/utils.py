"""
Tests for the internal helpers.

This module verifies the guarantees of argtree.utils:
- Unset singleton identity, falsy semantics and PEP 604 unions.
- coalesce() resolving only Unset, never other falsy values.
- rename() in both direct and decorator forms.
- mirror() exposing read-only views of private fields.
"""
import unittest
from types import MappingProxyType
from unittest import TestCase

from argtree.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `UnsetType` singleton.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the module-level instance on every call.
        """
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsy(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testUnionInIsinstance(self) -> None:
        """
        `str | Unset` and `Unset | str` are usable in isinstance checks.
        """
        self.assertTrue(isinstance("x", str | Unset))
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance(Unset, Unset | str))
        self.assertFalse(isinstance(1, str | Unset))

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            class Subclass(UnsetType):  # NOQA: F-811
                pass


class CoalesceTest(TestCase):

    def testUnsetResolvesToDefault(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))

    def testFalsyValuesPreserved(self) -> None:
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertEqual(coalesce("", "fallback"), "")


class RenameTest(TestCase):

    def testDirectForm(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self) -> None:
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")

    def testWrongArity(self) -> None:
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(print, "a", "b")

    def testNonCallableRejected(self) -> None:
        with self.assertRaises(TypeError):
            rename(1, "name")

    def testNonStringNameRejected(self) -> None:
        with self.assertRaises(TypeError):
            rename(lambda: None, 1)


class MirrorTest(TestCase):

    class Holder:
        items = mirror("items")
        mapping = mirror("mapping")
        scalar = mirror("scalar")

        def __init__(self):
            self._items = [1, 2]
            self._mapping = {"a": 1}
            self._scalar = "text"

    def testSequencesBecomeTuples(self) -> None:
        self.assertEqual(self.Holder().items, (1, 2))

    def testMappingsBecomeLiveProxies(self) -> None:
        holder = self.Holder()
        self.assertIsInstance(holder.mapping, MappingProxyType)
        holder._mapping["b"] = 2
        self.assertEqual(dict(holder.mapping), {"a": 1, "b": 2})

    def testStringsPassThrough(self) -> None:
        self.assertEqual(self.Holder().scalar, "text")

    def testReadOnly(self) -> None:
        with self.assertRaises(AttributeError):
            self.Holder().items = ()


if __name__ == "__main__":
    unittest.main()
