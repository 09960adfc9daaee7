"""
Rendering module behavioral tests (help and version output).

Scope
- Validate the usage line, description, option/argument groups and the
  children table.
- Validate flag spelling (one prefix for short names, two for long ones).
- Validate hidden specs and fancy panels.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured with Console(file=io.StringIO(), color_system=None, width=80).
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from argtree import Argument, Arity, Bool, Command, Int32, Option, Slot
from argtree.rendering import flag, render_help, render_version


def render(function, *args, **kwargs):
    console = Console(file=io.StringIO(), color_system=None, width=80)
    function(console, *args, **kwargs)
    return console.file.getvalue()


class TestFlag(TestCase):
    """Behavioral tests for flag()."""

    def testShortAndLong(self):
        self.assertEqual(flag("v"), "-v")
        self.assertEqual(flag("version"), "--version")
        self.assertEqual(flag("v", "/"), "/v")
        self.assertEqual(flag("out", "+"), "++out")


class TestHelp(TestCase):
    """Behavioral tests for render_help()."""

    def setUp(self):
        self.root = Command("build things", name="tool", options=[
            Option("v", "version", arity=Arity.NOT_REQUIRED, descr="print version"),
            Option("j", "jobs", type=Int32, into=Slot(), descr="parallel jobs"),
            Option("verbose", type=Bool, into=Slot()),
            Option("secret", hidden=True),
        ])
        self.build = self.root.command("build", "compile a target", arguments=[
            Argument("target", descr="what to build", metavar="TARGET"),
        ])
        self.root.command("clean")

    def testUsageLine(self):
        first = render(render_help, self.root).splitlines()[0]
        self.assertEqual(first, "usage: tool [-v] [-j <INT>] [--verbose [BOOL]] <command>")

    def testDescription(self):
        self.assertIn("build things", render(render_help, self.root))

    def testOptionsGroup(self):
        output = render(render_help, self.root)
        self.assertIn("options:", output)
        self.assertIn("-v, --version", output)
        self.assertIn("-j, --jobs <INT>", output)
        self.assertIn("parallel jobs", output)

    def testHiddenOptionsOmitted(self):
        self.assertNotIn("secret", render(render_help, self.root))

    def testChildrenTable(self):
        output = render(render_help, self.root)
        self.assertIn("commands", output)
        self.assertIn("compile a target", output)
        self.assertIn("clean", output)
        self.assertNotIn("for details", output)

    def testChildrenHintWithHelpOption(self):
        self.root.option(Option("h", "help", arity=Arity.NOT_REQUIRED, descr="print help"))
        self.assertIn("run 'tool --help clean' for details", render(render_help, self.root))

    def testNestedChildrenHaveNoHint(self):
        self.root.option(Option("h", "help", arity=Arity.NOT_REQUIRED, descr="print help"))
        clean = self.root.find("clean")
        clean.option(Option("h", "help", arity=Arity.NOT_REQUIRED))
        clean.command("purge")
        output = render(render_help, clean)
        self.assertIn("subcommands", output)
        self.assertIn("purge", output)
        self.assertNotIn("for details", output)

    def testArgumentMetavarFromName(self):
        copy = self.root.command("copy", arguments=[
            Argument("source", into=Slot()),
            Argument("dest", into=Slot()),
        ])
        output = render(render_help, copy)
        self.assertEqual(output.splitlines()[0], "usage: tool copy SOURCE DEST")
        self.assertNotIn("TEXT", output)

    def testSubcommandHelp(self):
        output = render(render_help, self.build)
        self.assertEqual(output.splitlines()[0], "usage: tool build TARGET")
        self.assertIn("arguments:", output)
        self.assertIn("what to build", output)
        self.assertNotIn("options:", output)

    def testCustomPrefix(self):
        output = render(render_help, self.root, prefix="/")
        self.assertIn("/j, //jobs", output)

    def testFancyPanel(self):
        output = render(render_help, self.root, fancy=True)
        self.assertIn("TOOL HELP", output)
        self.assertIn("╭", output)

    def testDescrTextNotMutated(self):
        from rich.text import Text
        descr = Text("styled")
        root = Command(descr, name="tool")
        render(render_help, root, colorful=True)
        self.assertEqual(descr.plain, "styled")


class TestVersion(TestCase):
    """Behavioral tests for render_version()."""

    def testPlain(self):
        self.assertEqual(render(render_version, "tool", "1.2.0").strip(), "tool — 1.2.0")

    def testFancy(self):
        output = render(render_version, "tool", "1.2.0", fancy=True)
        self.assertIn("TOOL VERSION", output)
        self.assertIn("tool — 1.2.0", output)


if __name__ == "__main__":
    unittest.main()
