"""
Tab completion: suggestions for a partially typed line.

The line is tokenized in tolerant mode, so an unterminated quote is simply the
token still being typed. When the line ends in whitespace a new, empty token has
begun. The last token is the partial; every token before it is resolved against
the command tree, after which the suggestions come from
- the subcommands of the resolved command (when no argument follows its path),
- flag names (`-h`, `--help`, `-p=`) when the partial starts with a dash,
- the completion provider of a flag (`-p=<partial>`),
- or the completion provider of the next positional argument.

Every list is filtered by the partial, case folded per settings. Answers go
through the TabCompletionCache, which narrows the previous list instead of
recomputing when it can. Suggestions containing whitespace come back wrapped in
the quote left open on the line (a double quote otherwise).
"""
import logging

from .tokens import ESCAPE, Lexer
from .utils import fold

logger = logging.getLogger(__name__)

DEFAULT_QUOTE = "\""


def _quoted(suggestion, quote, /):
    """
    Wrap a suggestion containing whitespace in quote so it reads back as one token.
    """
    if not any(char.isspace() for char in suggestion):
        return suggestion
    return quote + suggestion.replace(quote, ESCAPE + quote) + quote


class Completer:
    """
    Computes completion candidates for one manager.
    """

    def __init__(self, manager, cache, /):
        self._manager = manager
        self._cache = cache

    @property
    def settings(self):
        return self._manager.settings

    def complete(self, sender, line, /):
        """
        Return the suggestions for line; never raises on unterminated quotes.
        """
        lexer = Lexer(line, tolerant=True)
        tokens = lexer.tokens
        if not tokens or lexer.trailing:
            tokens.append("")
        suggestions = self._cache.get_tab_complete_options(
            sender,
            len(tokens),
            tokens[-1],
            lambda: self.compute(sender, tokens),
        )
        return [_quoted(suggestion, lexer.quote or DEFAULT_QUOTE) for suggestion in suggestions]

    def compute(self, sender, tokens, /):
        """
        Compute the full suggestion list for tokens (the last one being the partial).
        """
        *head, partial = tokens

        if not head:
            return self._names(self._manager.commands, sender, partial)

        resolved = self._manager.resolve(head)
        if resolved is None:
            logger.debug("no command named %r to complete against", head[0])
            return []
        command, depth = resolved
        if not command.has_permission(sender):
            return []

        rest = head[depth:]
        if not rest and command.children:
            if suggestions := self._names(command.children, sender, partial):
                return suggestions

        return self._arguments(command, sender, rest, partial)

    def _matches(self, candidate, partial, /):
        sensitive = self.settings.case_sensitive
        return fold(candidate, sensitive).startswith(fold(partial, sensitive))

    def _names(self, commands, sender, partial, /):
        return [
            command.name for command in commands
            if command.has_permission(sender) and self._matches(command.name, partial)
        ]

    def _flag(self, arguments, token, /):
        """
        Split a flag token into (argument, name, value, separated); argument may be None.
        """
        body = token[2:] if token.startswith("--") else token[1:]
        separator = self.settings.separator
        if self.settings.whitespace_separated:
            name, separated, value = body, False, ""
        else:
            name, found, value = body.partition(separator)
            separated = bool(found)
        argument = arguments.get(name) if name else None
        if argument is not None and argument.positional:
            argument = None
        return argument, name, value, separated

    def _arguments(self, command, sender, rest, partial, /):
        arguments = command.arguments
        separator = self.settings.separator
        whitespace = self.settings.whitespace_separated

        # values already given positionally, and a flag waiting for its value
        filled, pending = 0, None
        for token in rest:
            if pending is not None:
                pending = None
                continue
            if token.startswith("-") and token not in ("-", "--"):
                argument, _, _, separated = self._flag(arguments, token)
                if argument is not None and not argument.valueless and whitespace and not separated:
                    pending = argument
                continue
            filled += 1

        if pending is not None:
            return [value for value in pending.complete(sender, partial) if self._matches(value, partial)]

        if partial.startswith("-"):
            argument, name, value, separated = self._flag(arguments, partial)
            if separated and argument is not None and not argument.valueless:
                prefix = partial[:len(partial) - len(value)]
                return [prefix + candidate for candidate in argument.complete(sender, value) if self._matches(candidate, value)]
            return [flag for flag in self._flags(arguments, separator, whitespace) if self._matches(flag, partial)]

        positionals = arguments.positional
        if not positionals:
            return []
        if filled >= len(positionals):
            if not positionals[-1].repeatable:
                return []
            filled = len(positionals) - 1
        argument = positionals[filled]
        return [value for value in argument.complete(sender, partial) if self._matches(value, partial)]

    @staticmethod
    def _flags(arguments, separator, whitespace, /):
        suffix = "" if whitespace else separator
        flags = []
        for argument in arguments.named:
            tail = "" if argument.valueless else suffix
            flags.append(f"-{argument.name}{tail}")
            if argument.long is not None:
                flags.append(f"--{argument.long}{tail}")
        return flags


__all__ = (
    "Completer",
)
