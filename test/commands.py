"""
Commands module behavioral tests (tree building, automatic wiring, results).

Scope
- Validate executor/virtual rules and folded name uniqueness.
- Validate the weak parent link, paths and subcommand counting.
- Validate default help argument and help subcommand injection.
- Validate CommandResult as a read-only mapping.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (CommandManager, Command, factories).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from cap import CommandManager, CommandSender, Settings, flag, positional, repeatable


class RecordingSender(CommandSender):
    def __init__(self):
        self.messages = []

    def send(self, message, /):
        self.messages.append(message)


def noop(result):
    return None


class TestCommandConstruction(TestCase):
    """Construction rules."""

    def setUp(self):
        self.manager = CommandManager()

    def testVirtualRejectsExecutor(self):
        with self.assertRaises(TypeError):
            self.manager.command("doors", virtual=True, executor=noop)

    def testExecutableRequiresExecutor(self):
        with self.assertRaises(TypeError):
            self.manager.command("doors")

    def testInvalidNameRaises(self):
        with self.assertRaises(ValueError):
            self.manager.command("big doors", executor=noop)

    def testNonCallablePermissionRaises(self):
        with self.assertRaises(TypeError):
            self.manager.command("doors", executor=noop, permission=True)

    def testTopLevelNamesAreUnique(self):
        self.manager.command("doors", executor=noop)
        with self.assertRaises(ValueError):
            self.manager.command("DOORS", executor=noop)

    def testSubcommandNamesAreFolded(self):
        doors = self.manager.command("doors", virtual=True)
        doors.command("add", executor=noop)
        with self.assertRaises(ValueError):
            doors.command("ADD", executor=noop)

    def testCaseSensitiveSubcommandNames(self):
        manager = CommandManager(Settings(case_sensitive=True))
        doors = manager.command("doors", virtual=True)
        doors.command("add", executor=noop)
        doors.command("ADD", executor=noop)
        self.assertEqual([child.name for child in doors.children], ["add", "ADD"])

    def testSectionTitleDefaultsToName(self):
        doors = self.manager.command("doors", virtual=True)
        self.assertEqual(doors.section_title, "doors")


class TestCommandTree(TestCase):
    """Parent links, paths and counts."""

    def setUp(self):
        self.manager = CommandManager()
        self.root = self.manager.command("root", virtual=True)
        self.middle = self.root.command("middle", virtual=True)
        self.leaf = self.middle.command("leaf", executor=noop)

    def testParentAndTopLevel(self):
        self.assertIs(self.leaf.parent, self.middle)
        self.assertIs(self.leaf.top_level, self.root)
        self.assertIsNone(self.root.parent)

    def testPathAndQualifiedName(self):
        self.assertEqual(self.leaf.path, (self.root, self.middle, self.leaf))
        self.assertEqual(self.leaf.qualified_name, "root middle leaf")

    def testSubcommandCountCoversDescendants(self):
        self.assertEqual(self.root.subcommand_count, 2)
        self.assertEqual(self.middle.subcommand_count, 1)
        self.root.command("other", executor=noop)
        self.assertEqual(self.root.subcommand_count, 3)
        self.assertEqual(self.middle.subcommand_count, 1)

    def testGetSubcommandIsFolded(self):
        self.assertIs(self.root.get_subcommand("MIDDLE"), self.middle)
        self.assertIsNone(self.root.get_subcommand("leaf"))

    def testManagerGetCommandByPath(self):
        self.assertIs(self.manager.get_command("root middle leaf"), self.leaf)
        self.assertIsNone(self.manager.get_command("root nothing"))

    def testVirtualGetsPageArgument(self):
        page = self.root.arguments.identify("page")
        self.assertTrue(page.positional)
        self.assertEqual(page.default, 1)


class TestHelpWiring(TestCase):
    """Default help argument and help subcommand."""

    def setUp(self):
        self.manager = CommandManager()

    def testDefaultHelpArgumentInjected(self):
        command = self.manager.command("tool", executor=noop, add_default_help_argument=True)
        self.assertEqual(command.help_argument.identifier, "help")
        self.assertEqual(command.help_argument.names, ("h", "help"))
        self.assertIn(command.help_argument, command.arguments)

    def testNoHelpArgumentUnlessAsked(self):
        command = self.manager.command("tool", executor=noop)
        self.assertIsNone(command.help_argument)
        self.assertIsNone(command.arguments.identify("help"))

    def testDeclaredHelpArgumentIsKept(self):
        own = flag("h", "hilfe", identifier="help")
        command = self.manager.command("tool", executor=noop, arguments=[own], add_default_help_argument=True)
        self.assertIs(command.help_argument, own)
        self.assertEqual(len(command.arguments), 1)

    def testExplicitHelpArgument(self):
        own = flag("u", "usage")
        command = self.manager.command("tool", executor=noop, help_argument=own)
        self.assertIs(command.help_argument, own)
        self.assertIn(own, command.arguments)

    def testHelpArgumentMustBeValueless(self):
        with self.assertRaises(TypeError):
            self.manager.command("tool", executor=noop, help_argument=positional("topic"))

    def testHelpSubcommandIsFirstChild(self):
        doors = self.manager.command("doors", virtual=True, add_default_help_subcommand=True)
        doors.command("add", executor=noop)
        self.assertEqual([child.name for child in doors.children], ["help", "add"])
        self.assertIs(doors.help_command, doors.children[0])

    def testCustomHelpCommand(self):
        def build(parent):
            return parent.command("manual", executor=noop)

        doors = self.manager.command("doors", virtual=True, help_command=build)
        self.assertEqual(doors.help_command.name, "manual")

    def testHelpCommandMustBuildSubcommand(self):
        with self.assertRaises(TypeError):
            self.manager.command("doors", virtual=True, help_command=lambda parent: None)


class TestCommandTexts(TestCase):
    """Static and sender dependent texts."""

    def testCallableTextsResolvePerSender(self):
        manager = CommandManager()
        command = manager.command("tool", executor=noop, summary=lambda sender: f"summary for {sender}")
        self.assertEqual(command.text("summary", "alice"), "summary for alice")

    def testMissingTextIsEmpty(self):
        command = CommandManager().command("tool", executor=noop)
        self.assertEqual(command.text("description"), "")

    def testUnknownTextRaises(self):
        command = CommandManager().command("tool", executor=noop)
        with self.assertRaises(ValueError):
            command.text("footer")


class TestCommandResult(TestCase):
    """Results are read-only mappings."""

    def setUp(self):
        self.manager = CommandManager()
        self.sender = RecordingSender()
        self.calls = []
        self.manager.command(
            "tool",
            executor=self.calls.append,
            arguments=[positional("name", required=True), repeatable("p", "player")],
            add_default_help_argument=True,
        )

    def testMappingAccess(self):
        result = self.manager.parse_input(self.sender, "tool door -p=a")
        self.assertEqual(result["name"], "door")
        self.assertEqual(result["p"], ["a"])
        self.assertEqual(set(result), {"name", "p", "help"})
        self.assertEqual(result.parsed("name").raw, "door")

    def testResultRejectsWrites(self):
        result = self.manager.parse_input(self.sender, "tool door")
        with self.assertRaises(TypeError):
            result["name"] = "other"
        with self.assertRaises(AttributeError):
            result.parsed("name").bind("other")

    def testRunCallsExecutor(self):
        result = self.manager.parse_input(self.sender, "tool door")
        self.manager.run(result)
        self.assertEqual(self.calls, [result])
        self.assertEqual(self.sender.messages, [])

    def testRunShowsHelpInstead(self):
        result = self.manager.parse_input(self.sender, "tool -h")
        self.assertTrue(result.help_requested)
        self.manager.run(result)
        self.assertEqual(self.calls, [])
        self.assertEqual(len(self.sender.messages), 1)


if __name__ == "__main__":
    unittest.main()
