"""
Results module behavioral tests (Ok, Err, Terminal).

Scope
- Validate truthiness, equality, unwrap() and map() on both variants.
- Validate structural pattern matching on Ok/Err.
- Validate Terminal action normalization (values, Results, exceptions).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argtree import Command, Ok, Err, Terminal
from argtree.faults import DelegatedError, FaultCode, UnexpectedOptionError


class TestVariants(TestCase):
    """Behavioral tests for Ok and Err."""

    def testOkIsTruthy(self):
        self.assertTrue(Ok(0))
        self.assertTrue(Ok())

    def testErrIsFalsy(self):
        self.assertFalse(Err(ValueError("boom")))

    def testOkUnwrap(self):
        self.assertEqual(Ok(3).unwrap(), 3)
        self.assertIsNone(Ok(3).error)

    def testErrUnwrapRaises(self):
        error = UnexpectedOptionError("unexpected option 'x'")
        with self.assertRaises(UnexpectedOptionError) as context:
            Err(error).unwrap()
        self.assertIs(context.exception, error)
        self.assertIsNone(Err(error).value)

    def testErrRequiresException(self):
        with self.assertRaises(TypeError):
            Err("message")

    def testMap(self):
        self.assertEqual(Ok(2).map(lambda value: value * 2), Ok(4))
        error = Err(ValueError("boom"))
        self.assertIs(error.map(lambda value: value * 2), error)

    def testEquality(self):
        self.assertEqual(Ok(1), Ok(1))
        self.assertNotEqual(Ok(1), Ok(2))
        self.assertEqual(Err(UnexpectedOptionError("x")), Err(UnexpectedOptionError("x")))
        self.assertNotEqual(Ok(1), Err(UnexpectedOptionError("x")))

    def testPatternMatching(self):
        match Ok("value"):
            case Err(error):
                self.fail(f"unexpected error {error!r}")
            case Ok(value):
                self.assertEqual(value, "value")

        match Err(UnexpectedOptionError("unexpected option 'x'")):
            case Ok(value):
                self.fail(f"unexpected value {value!r}")
            case Err(error):
                self.assertEqual(str(error), "unexpected option 'x'")

    def testResultCannotBeSubclassedOutside(self):
        from argtree.results import Result
        with self.assertRaises(TypeError):
            class Maybe(Result):
                pass


class TestTerminal(TestCase):
    """Behavioral tests for Terminal action normalization."""

    def testRouteAndEquality(self):
        root = Command(name="tool")
        build = root.command("build")
        self.assertEqual(Terminal(build).route, ("tool", "build"))
        self.assertEqual(Terminal(build), Terminal(build))
        self.assertNotEqual(Terminal(build), Terminal(root))

    def testIdleActionSucceeds(self):
        self.assertEqual(Terminal(Command(name="tool"))(), Ok(None))

    def testReturnValueWrapped(self):
        self.assertEqual(Terminal(Command(name="tool", action=lambda: 7))(), Ok(7))

    def testReturnedResultPassedThrough(self):
        error = Err(ValueError("nope"))
        self.assertIs(Terminal(Command(name="tool", action=lambda: error))(), error)

    def testReturnedParseErrorWrapped(self):
        error = UnexpectedOptionError("unexpected option 'x'")
        self.assertEqual(Terminal(Command(name="tool", action=lambda: error))(), Err(error))

    def testRaisedExceptionDelegated(self):
        def action():
            raise RuntimeError("disk full")

        outcome = Terminal(Command(name="tool", action=action))()
        self.assertFalse(outcome)
        self.assertIsInstance(outcome.error, DelegatedError)
        self.assertEqual(outcome.error.code, FaultCode.DELEGATED_ERROR)
        self.assertIsInstance(outcome.error.__cause__, RuntimeError)
        self.assertIn("disk full", str(outcome.error))


if __name__ == "__main__":
    unittest.main()
