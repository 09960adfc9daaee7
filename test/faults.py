"""
Faults module behavioral tests (codes, errors, warnings, trigger, rendering).

Scope
- Validate ParseError value semantics (message, options, equality, replace).
- Validate trigger() in non-shell mode (raise / warn) and shell mode (print + exit).
- Validate rich rendering of the header, message and hint.

Conventions
- Test method names follow CamelCase per project convention.
- Rendering is captured with a Console writing to io.StringIO.
"""

from __future__ import annotations

import io
import unittest
import warnings
from unittest import TestCase, mock

from rich.console import Console

from argtree import faults
from argtree.faults import (
    FaultCode,
    ParseError,
    ConversionError,
    DelegatedError,
    DuplicateAliasWarning,
    UnexpectedOptionError,
    getdoc,
    trigger,
)


def render(fault, width=80):
    console = Console(file=io.StringIO(), color_system=None, width=width)
    console.print(fault)
    return console.file.getvalue()


class TestFaultCode(TestCase):
    """Behavioral tests for FaultCode."""

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.UNEXPECTED_OPTION.normalize(), "11201")

    def testNormalizeHonorsHostCodes(self):
        main = __import__("__main__")
        with mock.patch.object(main, "__codes__", {FaultCode.UNEXPECTED_OPTION: "E-OPT"}, create=True):
            self.assertEqual(FaultCode.UNEXPECTED_OPTION.normalize(), "E-OPT")

    def testGetdoc(self):
        main = __import__("__main__")
        self.assertIsNone(getdoc(FaultCode.OUT_OF_RANGE))
        with mock.patch.object(main, "__docs__", {FaultCode.OUT_OF_RANGE: "see docs"}, create=True):
            self.assertEqual(getdoc(FaultCode.OUT_OF_RANGE), "see docs")
        with self.assertRaises(TypeError):
            getdoc(11302)


class TestParseError(TestCase):
    """Behavioral tests for ParseError values."""

    def testMessageAndOptions(self):
        error = ConversionError("option 'j' is not int32 value: 'x'", code=FaultCode.UNCONVERTIBLE_VALUE, name="j")
        self.assertEqual(str(error), "option 'j' is not int32 value: 'x'")
        self.assertEqual(error.code, FaultCode.UNCONVERTIBLE_VALUE)
        self.assertEqual(error.options["name"], "j")
        with self.assertRaises(TypeError):
            error.options["name"] = "k"

    def testMessageMustBeString(self):
        with self.assertRaises(TypeError):
            ParseError(42)

    def testEqualityByTypeAndMessage(self):
        self.assertEqual(UnexpectedOptionError("x", index=1), UnexpectedOptionError("x", index=2))
        self.assertNotEqual(UnexpectedOptionError("x"), ConversionError("x"))

    def testReplaceMergesOptions(self):
        error = UnexpectedOptionError("x", name="x")
        replaced = error.__replace__(shell=True)
        self.assertIsNot(replaced, error)
        self.assertEqual(replaced.options["name"], "x")
        self.assertTrue(replaced.options["shell"])
        self.assertNotIn("shell", error.options)

    def testDelegatedErrorKeepsCause(self):
        cause = RuntimeError("boom")
        error = DelegatedError("failed", exception=cause)
        self.assertIs(error.__cause__, cause)
        self.assertIs(error.__replace__(shell=False).__cause__, cause)


class TestTrigger(TestCase):
    """Behavioral tests for trigger()."""

    def testRaisesOutsideShell(self):
        with self.assertRaises(UnexpectedOptionError):
            trigger(UnexpectedOptionError("unexpected option 'x'"))

    def testDelegatedCauseSurvivesRaise(self):
        cause = RuntimeError("boom")
        with self.assertRaises(DelegatedError) as context:
            trigger(DelegatedError("failed", exception=cause))
        self.assertIs(context.exception.__cause__, cause)

    def testWarnsOutsideShell(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            trigger(DuplicateAliasWarning("option alias 'v' is declared more than once"))
        self.assertEqual(len(caught), 1)
        self.assertIsInstance(caught[0].message, DuplicateAliasWarning)

    def testShellPrintsAndExits(self):
        console = Console(file=io.StringIO(), color_system=None, width=80)
        with mock.patch.object(faults, "console", console):
            with self.assertRaises(SystemExit) as context:
                trigger(UnexpectedOptionError("unexpected option 'x'", title="unexpected option"), shell=True, prog="tool")
        self.assertEqual(context.exception.code, 1)
        self.assertIn("unexpected option 'x'", console.file.getvalue())

    def testRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


class TestRendering(TestCase):
    """Behavioral tests for rich rendering of faults."""

    def testPlainLayout(self):
        output = render(UnexpectedOptionError(
            "unexpected option 'jbos'",
            prog="tool",
            code=FaultCode.UNEXPECTED_OPTION,
            title="unexpected option",
            hint="did you mean '--jobs'?",
        ))
        lines = output.splitlines()
        self.assertEqual(lines[0], "[ tool — 11201 | Unexpected Option ]")
        self.assertEqual(lines[1], "unexpected option 'jbos'")
        self.assertIn("→ did you mean '--jobs'?", lines[2])

    def testMissingCodeRendersDash(self):
        self.assertIn("[ argtree — - |", render(UnexpectedOptionError("x", title="oops")))

    def testFancyUsesPanel(self):
        output = render(UnexpectedOptionError("unexpected option 'x'", prog="tool", fancy=True))
        self.assertIn("╭", output)
        self.assertIn("unexpected option 'x'", output)


if __name__ == "__main__":
    unittest.main()
