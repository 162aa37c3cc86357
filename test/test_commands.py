"""
Command layer behavioral tests (switches, routing, invocation, surfacing).

Scope
- Switch construction and the switch faults raised while stripping.
- "--" handling: positionals after it, raw vector kept for passthrough.
- Routing through children and aliases, find(), path/root/usage.
- Group commands rejecting unknown names with the unclaimed-token fault.
- invoke() prompt forms and return values.
- Shell mode: faults printed through rich on stderr, exit status 1.

Conventions
- Test method names follow CamelCase per project convention.
- Commands are built per test so no state leaks between cases.
"""

from __future__ import annotations

import io
import sys
import unittest
from types import SimpleNamespace
from unittest import TestCase, mock

from rich.console import Console

from argslots import (
    Command,
    DuplicatedSwitchError,
    FaultCode,
    FlagAssignmentError,
    MissingArgumentError,
    OptionValueRequiredError,
    Switch,
    UnclaimedTokenError,
    UnknownSwitchError,
    command,
    invoke,
    namearg,
    passthrough,
    positionals,
)


def tail_command(**runtime):
    options = SimpleNamespace(name="")

    @command(
        args=positionals(namearg(options, "name")),
        switches=[Switch("--since", nargs=1, default="10s"), Switch("-f", "--follow")],
        **runtime,
    )
    def tail(since, follow):
        return options.name, since, follow

    return tail


def run_command():
    options = SimpleNamespace(command=None)

    @command(args=positionals(passthrough(options, "command")), switches=[Switch("--verbose")])
    def run(verbose):
        return options.command, verbose

    return run


class TestSwitch(TestCase):
    """Construction-time behavior of Switch."""

    def testDefaults(self):
        self.assertIs(Switch("--debug").default, False)
        self.assertIsNone(Switch("--since", nargs=1).default)
        self.assertEqual(Switch("--since", nargs=1, default="10s").default, "10s")

    def testDest(self):
        self.assertEqual(Switch("-f", "--follow-up").dest, "follow_up")

    def testUsage(self):
        self.assertEqual(Switch("--since", nargs=1).usage, "--since SINCE")
        self.assertEqual(Switch("-d", "--debug").usage, "--debug")

    def testNamesAreCopies(self):
        switch = Switch("-f", "--follow")
        switch.names.append("--other")
        self.assertEqual(switch.names, ["-f", "--follow"])

    def testValidation(self):
        with self.assertRaises(TypeError):
            Switch()
        with self.assertRaises(TypeError):
            Switch(1)
        with self.assertRaises(ValueError):
            Switch("debug")
        with self.assertRaises(ValueError):
            Switch("--debug", "--debug")
        with self.assertRaises(ValueError):
            Switch("--since", nargs=2)
        with self.assertRaises(ValueError):
            Switch("--since", nargs=True)
        with self.assertRaises(ValueError):
            Switch("--since", descr="  ")


class TestSwitchStripping(TestCase):
    """Switch parsing ahead of positional matching."""

    def testSpacedValue(self):
        self.assertEqual(invoke(tail_command(), ["my-app", "--since", "1h"]), ("my-app", "1h", False))

    def testInlineValue(self):
        self.assertEqual(invoke(tail_command(), ["--since=1h", "my-app"]), ("my-app", "1h", False))

    def testDefaultsFilled(self):
        self.assertEqual(invoke(tail_command(), ["my-app"]), ("my-app", "10s", False))

    def testFlag(self):
        self.assertEqual(invoke(tail_command(), ["-f", "my-app"]), ("my-app", "10s", True))

    def testUnknownSwitch(self):
        with self.assertRaises(UnknownSwitchError) as context:
            invoke(tail_command(), ["my-app", "--nope"])
        self.assertEqual(str(context.exception), 'unknown switch "--nope" for "tail"')
        self.assertEqual(context.exception.options["code"], FaultCode.UNKNOWN_SWITCH)
        self.assertEqual(context.exception.options["index"], 1)

    def testUnknownSwitchWithoutSwitches(self):
        tool = Command(lambda: None, name="bare")
        with self.assertRaises(UnknownSwitchError) as context:
            invoke(tool, ["-x"])
        self.assertEqual(context.exception.options["hint"], "'bare' takes no switches")

    def testFlagAssignment(self):
        with self.assertRaises(FlagAssignmentError):
            invoke(tail_command(), ["my-app", "--follow=yes"])

    def testDuplicatedSwitch(self):
        with self.assertRaises(DuplicatedSwitchError):
            invoke(tail_command(), ["my-app", "-f", "--follow"])

    def testOptionValueRequired(self):
        with self.assertRaises(OptionValueRequiredError):
            invoke(tail_command(), ["my-app", "--since"])

    def testSingleDashIsPositional(self):
        self.assertEqual(invoke(tail_command(), ["-"]), ("-", "10s", False))

    def testSwitchParsingStopsAtSeparator(self):
        self.assertEqual(invoke(tail_command(), ["--", "--since"]), ("--since", "10s", False))

    def testPassthroughKeepsSwitchesAfterSeparator(self):
        result = invoke(run_command(), ["--verbose", "--", "ls", "--verbose"])
        self.assertEqual(result, (["ls", "--verbose"], True))

    def testPassthroughWithoutSeparator(self):
        self.assertEqual(invoke(run_command(), ["ls"]), (None, False))

    def testPassthroughTrailingSeparator(self):
        self.assertEqual(invoke(run_command(), ["ls", "--"]), ([], False))

    def testSeparatorTakenAsOptionValue(self):
        options = SimpleNamespace(command=None)
        tool = Command(
            lambda since: since,
            name="run",
            args=positionals(passthrough(options, "command")),
            switches=[Switch("--since", nargs=1)],
        )
        self.assertEqual(invoke(tool, ["--since", "--", "ls"]), "--")
        self.assertIsNone(options.command)

        self.assertEqual(invoke(tool, ["--since", "--", "--", "ls"]), "--")
        self.assertEqual(options.command, ["ls"])


class TestRouting(TestCase):
    """Command hierarchy: children, aliases, lookup."""

    def setUp(self):
        self.riff = Command(name="riff")
        self.application = Command(name="application", aliases=["applications", "app"], parent=self.riff)
        self.tail = self.application.command(
            lambda since: since,
            name="tail",
            switches=[Switch("--since", nargs=1, default="10s")],
        )

    def testRouteByName(self):
        self.assertEqual(invoke(self.riff, ["application", "tail", "--since", "1h"]), "1h")

    def testRouteByAlias(self):
        self.assertEqual(invoke(self.riff, ["applications", "tail"]), "10s")
        self.assertEqual(invoke(self.riff, ["app", "tail"]), "10s")

    def testFind(self):
        self.assertIs(self.riff.find("app", "tail"), self.tail)
        self.assertIs(self.riff.find(), self.riff)
        self.assertIsNone(self.riff.find("application", "nope"))

    def testPathAndRoot(self):
        self.assertEqual(self.tail.path, (self.riff, self.application, self.tail))
        self.assertIs(self.tail.root, self.riff)
        self.assertIs(self.riff.root, self.riff)
        self.assertIs(self.tail.parent, self.application)
        self.assertEqual(self.application.children, {"tail": self.tail})

    def testUsage(self):
        self.assertEqual(self.tail.usage, "riff application tail [switches]")
        self.assertEqual(self.riff.usage, "riff")

    def testUsageWithPositionals(self):
        named = self.riff.command(
            lambda: None,
            name="delete",
            args=positionals(namearg(SimpleNamespace(), "name")),
        )
        self.assertEqual(named.usage, "riff delete NAME")

    def testGroupRejectsUnknownName(self):
        handler = Command(name="handler")
        with self.assertRaises(UnclaimedTokenError) as context:
            invoke(handler, ["foo"])
        self.assertEqual(str(context.exception), 'unknown command "foo" for "handler"')
        self.assertEqual(context.exception.options["hint"], "run as: handler")

    def testNestedGroupUsesOwnName(self):
        with self.assertRaises(UnclaimedTokenError) as context:
            invoke(self.riff, ["application", "foo"])
        self.assertEqual(str(context.exception), 'unknown command "foo" for "application"')

    def testGroupWithoutTokens(self):
        self.assertIsNone(invoke(self.riff, []))
        self.assertIsNone(invoke(self.riff, ["application"]))

    def testDuplicateChildName(self):
        with self.assertRaises(ValueError):
            Command(name="application", parent=self.riff)
        with self.assertRaises(ValueError):
            Command(name="other", aliases=["app"], parent=self.riff)

    def testRoutingOnlyOnFirstToken(self):
        options = SimpleNamespace(names=None)
        self.riff.command(lambda: None, name="echo", args=positionals(passthrough(options, "names")))
        invoke(self.riff, ["echo", "--", "application"])
        self.assertEqual(options.names, ["application"])


class TestCommand(TestCase):
    """Construction-time behavior of Command and command()."""

    def testNameFromCallback(self):
        def my_tool():
            pass

        self.assertEqual(command(my_tool).name, "my-tool")

    def testValidation(self):
        with self.assertRaises(TypeError):
            Command()
        with self.assertRaises(TypeError):
            Command("not-callable", name="x")
        with self.assertRaises(ValueError):
            Command(name="1bad")
        with self.assertRaises(ValueError):
            Command(name="--bad")
        with self.assertRaises(TypeError):
            Command(name="x", args="NAME")
        with self.assertRaises(TypeError):
            Command(name="x", aliases="y")
        with self.assertRaises(ValueError):
            Command(name="x", aliases=["x"])
        with self.assertRaises(TypeError):
            Command(name="x", switches=[object()])
        with self.assertRaises(ValueError):
            Command(name="x", switches=[Switch("-f", "--follow"), Switch("--follow")])
        with self.assertRaises(TypeError):
            Command(name="x", parent="riff")
        with self.assertRaises(ValueError):
            Command(name="x", descr=" ")

    def testDecoratorRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            command(name="x")("nope")

    def testSealed(self):
        with self.assertRaises(TypeError):
            type("Sub", (type(Command(name="x")),), {})

    def testPropertiesAreReadOnly(self):
        tool = Command(name="x")
        with self.assertRaises(AttributeError):
            tool.name = "y"

    def testRepr(self):
        self.assertTrue(repr(Command(name="x")).startswith("command(name='x', descr=None, aliases=[]"))

    def testDefaultArgsRejectPositionals(self):
        tool = Command(lambda: "done", name="x")
        self.assertEqual(invoke(tool, []), "done")
        with self.assertRaises(UnclaimedTokenError):
            invoke(tool, ["extra"])


class TestInvoke(TestCase):
    """Prompt forms accepted by invoke()."""

    def testStringPrompt(self):
        self.assertEqual(invoke(tail_command(), "my-app --since '1 h'"), ("my-app", "1 h", False))

    def testIterablePrompt(self):
        self.assertEqual(invoke(tail_command(), iter(["my-app"])), ("my-app", "10s", False))

    def testDefaultPromptReadsArgv(self):
        with mock.patch.object(sys, "argv", ["prog", "my-app", "-f"]):
            self.assertEqual(invoke(tail_command()), ("my-app", "10s", True))

    def testPlainCallable(self):
        def answer():
            return 42

        self.assertEqual(invoke(answer, []), 42)

    def testBadPrompt(self):
        with self.assertRaises(TypeError):
            invoke(tail_command(), 5)
        with self.assertRaises(TypeError):
            invoke(tail_command(), ["my-app", 1])

    def testBadObject(self):
        with self.assertRaises(TypeError):
            invoke(5)


class TestShellMode(TestCase):
    """Faults printed on stderr through rich, then exit 1."""

    def setUp(self):
        self.console = Console(file=io.StringIO(), color_system=None, width=100)
        patcher = mock.patch("argslots.faults.console", self.console)
        patcher.start()
        self.addCleanup(patcher.stop)

    def testMissingArgumentExits(self):
        with self.assertRaises(SystemExit) as context:
            invoke(tail_command(shell=True), [])
        self.assertEqual(context.exception.code, 1)
        output = self.console.file.getvalue()
        self.assertIn("missing required argument(s)", output)
        self.assertIn("Missing Arguments", output)
        self.assertIn("expected NAME", output)
        self.assertIn("tail", output)

    def testFancyPanel(self):
        with self.assertRaises(SystemExit):
            invoke(tail_command(shell=True, fancy=True), ["my-app", "extra"])
        output = self.console.file.getvalue()
        self.assertIn('unknown command "extra" for "tail"', output)
        self.assertIn("Unknown Command", output)
        self.assertIn("run as: tail [switches] NAME", output)

    def testSwitchFaultExits(self):
        with self.assertRaises(SystemExit) as context:
            invoke(tail_command(shell=True, colorful=False), ["--nope"])
        self.assertEqual(context.exception.code, 1)
        self.assertIn('unknown switch "--nope" for "tail"', self.console.file.getvalue())

    def testPlainModeRaises(self):
        with self.assertRaises(MissingArgumentError):
            invoke(tail_command(), [])
        self.assertEqual(self.console.file.getvalue(), "")


if __name__ == "__main__":
    unittest.main()
