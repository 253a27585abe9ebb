"""
CAP entry point: the CommandManager.

A manager owns the top-level commands, the settings shared by all of them, the
tab-completion cache, the help renderer and the fault handler.

Operations
- parse_input(sender, line) -> CommandResult: strict tokenization, resolution of
  the deepest matching command path, binding, parsing and validation. All or
  nothing: any failure raises a CommandException and no result is produced.
- get_tab_complete_options(sender, line) -> list[str]: tolerant tokenization,
  never fails on an unterminated quote.
- run(result): execute a parsed result (see CommandResult.run).
- execute(sender, line): parse and run, routing CommandExceptions through the
  fault handler; other exceptions raised by executors propagate untouched.
"""
import logging
import time

from .binder import bind
from .cache import TabCompletionCache
from .commands import Command, CommandResult
from .completion import Completer
from .faults import CommandException, CommandNotFoundError, FaultHandler, PermissionDeniedError
from .renderers import HelpRenderer
from .settings import Settings
from .tokens import tokenize
from .utils import fold, mirror

logger = logging.getLogger(__name__)


class CommandManager:
    """
    Registry of top-level commands and the parse/complete/run entry points.
    """

    def __init__(self, settings=None, /, *, renderer=None, fault_handler=None, clock=time.monotonic):
        if settings is None:
            settings = Settings()
        if not isinstance(settings, Settings):
            raise TypeError("command-manager 'settings' must be a settings instance")
        self._settings = settings
        self._renderer = renderer if renderer is not None else HelpRenderer()
        self._fault_handler = fault_handler if fault_handler is not None else FaultHandler.default()
        self._commands = []
        self._lookup = {}
        self._cache = TabCompletionCache.from_settings(settings, clock=clock)
        self._completer = Completer(self, self._cache)

    settings = mirror("settings")
    renderer = mirror("renderer")
    fault_handler = mirror("fault_handler")
    cache = mirror("cache")

    @property
    def commands(self):
        return tuple(self._commands)

    def command(self, name, /, **options):
        """
        Build a top-level command of this manager.
        """
        return Command(self, name, **options)

    def add_command(self, command, /):
        """
        Register a top-level command; names are unique after case folding.
        """
        if not isinstance(command, Command):
            raise TypeError("command-manager can only register commands")
        if command.manager is not self:
            raise ValueError(f"command {command.name!r} belongs to another manager")
        if command.parent is not None:
            raise ValueError(f"command {command.name!r} is a subcommand")
        if (name := fold(command.name, self._settings.case_sensitive)) in self._lookup:
            if self._lookup[name] is command:
                return command
            raise ValueError(f"command name {command.name!r} is already in use")
        self._lookup[name] = command
        self._commands.append(command)
        logger.debug("registered command %r", command.name)
        return command

    def resolve(self, tokens, /):
        """
        Match the longest prefix of tokens against the command tree.

        Returns (command, depth) where depth is the number of tokens naming the
        path, or None when the first token names no top-level command.
        """
        tokens = list(tokens)
        if not tokens or (command := self._lookup.get(fold(tokens[0], self._settings.case_sensitive))) is None:
            return None
        depth = 1
        while depth < len(tokens) and (child := command.get_subcommand(tokens[depth])) is not None:
            command, depth = child, depth + 1
        return command, depth

    def get_command(self, name, /):
        """
        Return the command at the space separated path name, or None.
        """
        tokens = name.split()
        resolved = self.resolve(tokens)
        if resolved is None or resolved[1] != len(tokens):
            return None
        return resolved[0]

    def parse_input(self, sender, line, /):
        """
        Parse line for sender into a CommandResult.

        Raises TokenizationError, CommandNotFoundError, PermissionDeniedError or any
        binder fault (NonExistingArgumentError, MissingArgumentError,
        IllegalValueError, ParseFailureError, ValidationFailureError).
        """
        tokens = tokenize(line)
        if not tokens:
            raise CommandNotFoundError("no command was given", raw=line, index=1)

        resolved = self.resolve(tokens)
        if resolved is None:
            raise CommandNotFoundError(
                f"unknown command {tokens[0]!r} from first position",
                raw=tokens[0],
                index=1,
            )
        command, depth = resolved
        logger.debug("resolved %r to %r (%d path token(s))", line, command.qualified_name, depth)

        if not command.has_permission(sender):
            raise PermissionDeniedError(
                f"you are not allowed to use command: {command.qualified_name}",
                command=command,
                index=depth,
            )

        arguments = bind(command, sender, tokens[depth:], self._settings, offset=depth)
        return CommandResult(command, sender, arguments)

    def get_tab_complete_options(self, sender, line, /):
        """
        Return the completion suggestions for the partially typed line.
        """
        return self._completer.complete(sender, line)

    def run(self, result, /):
        if not isinstance(result, CommandResult):
            raise TypeError("command-manager can only run command results")
        return result.run()

    def execute(self, sender, line, /):
        """
        Parse and run line, routing faults through the fault handler.
        """
        try:
            return self.run(self.parse_input(sender, line))
        except CommandException as fault:
            logger.debug("%s while executing %r: %s", type(fault).__name__, line, fault,
                         exc_info=self._settings.debug)
            return self._fault_handler.handle(sender, fault)

    def __repr__(self):
        return f"CommandManager(commands={[command.name for command in self._commands]!r})"


__all__ = (
    "CommandManager",
)
