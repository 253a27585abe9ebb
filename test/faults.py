"""
Faults module tests (codes, context, rich rendering and dispatch).

Scope
- Validate that every fault kind carries a stable code and its raise-time context.
- Validate rich rendering of the header, message and hint.
- Validate FaultHandler MRO dispatch, decorator registration and re-raising.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import io
import unittest
from unittest import TestCase

from rich.console import Console

from cap import CommandManager, CommandSender
from cap.faults import (
    CommandException,
    CommandNotFoundError,
    FaultCode,
    FaultHandler,
    MissingArgumentError,
    TokenizationError,
    UnterminatedQuoteError,
    ValidationFailureError,
)


class RecordingSender(CommandSender):
    def __init__(self):
        self.messages = []

    def send(self, message, /):
        self.messages.append(message)


def render(renderable):
    console = Console(file=io.StringIO(), record=True, width=120, color_system=None)
    console.print(renderable)
    return console.export_text()


class TestCommandException(TestCase):
    """Message, code and context."""

    def testMessageDefaultsToTitle(self):
        self.assertEqual(str(CommandNotFoundError()), "unknown command")
        self.assertEqual(CommandNotFoundError("nope").message, "nope")

    def testCodesAreStable(self):
        self.assertEqual(UnterminatedQuoteError.code, FaultCode.UNTERMINATED_QUOTE)
        self.assertEqual(MissingArgumentError.code.normalize(), "11122")
        self.assertTrue(issubclass(UnterminatedQuoteError, TokenizationError))

    def testContextIsReadFromOptions(self):
        fault = ValidationFailureError("rejected", raw="10", value=10, constraint="> 10", index=2)
        self.assertEqual((fault.raw, fault.value, fault.constraint, fault.index), ("10", 10, "> 10", 2))
        self.assertIsNone(fault.command)
        self.assertIsNone(fault.argument)

    def testOptionsAreReadOnly(self):
        fault = CommandNotFoundError("nope", index=1)
        with self.assertRaises(TypeError):
            fault.options["index"] = 2

    def testReplaceKeepsMessageAndContext(self):
        fault = MissingArgumentError("no value", index=3)
        replaced = copy.replace(fault, fancy=True)
        self.assertIsInstance(replaced, MissingArgumentError)
        self.assertEqual(replaced.message, "no value")
        self.assertEqual(replaced.index, 3)
        self.assertTrue(replaced.options["fancy"])


class TestFaultRendering(TestCase):
    """Rich output."""

    def testPlainRendering(self):
        text = render(CommandNotFoundError("unknown command 'x' from first position", colorful=False))
        self.assertIn("[ cap", text)
        self.assertIn("11111", text)
        self.assertIn("Unknown Command", text)
        self.assertIn("unknown command 'x' from first position", text)
        self.assertIn("→ check the spelling or ask for help", text)

    def testProgramNameFromCommand(self):
        manager = CommandManager()
        doors = manager.command("bigdoors", virtual=True)
        text = render(MissingArgumentError("missing", command=doors.command("add", executor=print)))
        self.assertIn("[ bigdoors", text)

    def testHintOverride(self):
        text = render(MissingArgumentError("missing", hint="write -p=name"))
        self.assertIn("→ write -p=name", text)

    def testFancyRenderingUsesPanel(self):
        text = render(MissingArgumentError("missing", fancy=True))
        self.assertIn("╭", text)
        self.assertIn("missing", text)


class TestFaultHandler(TestCase):
    """Dispatch by kind."""

    def setUp(self):
        self.sender = RecordingSender()

    def testMostSpecificHandlerWins(self):
        handled = []
        handler = FaultHandler({
            CommandException: lambda sender, fault: handled.append("any"),
            TokenizationError: lambda sender, fault: handled.append("tokens"),
        })
        handler.handle(self.sender, UnterminatedQuoteError())
        handler.handle(self.sender, MissingArgumentError())
        self.assertEqual(handled, ["tokens", "any"])

    def testDecoratorRegistration(self):
        handler = FaultHandler()

        @handler.register(MissingArgumentError)
        def missing(sender, fault):
            sender.send(fault.message)

        self.assertIn(MissingArgumentError, handler)
        handler.handle(self.sender, MissingArgumentError("no value"))
        self.assertEqual(self.sender.messages, ["no value"])

    def testUnhandledFaultIsReraised(self):
        handler = FaultHandler()
        with self.assertRaises(CommandNotFoundError):
            handler.handle(self.sender, CommandNotFoundError())

    def testKindMustBeCommandException(self):
        with self.assertRaises(TypeError):
            FaultHandler().register(ValueError, print)

    def testDefaultHandlerSendsRenderableCopy(self):
        handler = FaultHandler.default(fancy=True, colorful=False)
        fault = MissingArgumentError("no value")
        handler.handle(self.sender, fault)
        sent, = self.sender.messages
        self.assertIsNot(sent, fault)
        self.assertTrue(sent.options["fancy"])
        self.assertFalse(sent.options["colorful"])


if __name__ == "__main__":
    unittest.main()
