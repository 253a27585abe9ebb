"""
CAP argument binder: tokens -> sealed ParsedArguments for one command.

Binding rules
- A flag token is "-name" or "--name" where name is the short or long name of a
  named argument (folded per settings), optionally followed by the separator and
  an inline value ("-p=value"). Either dash count works with either name.
- Free tokens fill positional arguments strictly in declaration order; a
  repeatable positional (always the last one) takes every remaining free token.
- Valueless arguments consume nothing; an inline value on them is illegal.
- A valued flag without inline value takes the next token when the separator is
  whitespace, and is missing its value otherwise.
- Repeatable arguments accumulate in encounter order; a non-repeatable argument
  given twice keeps the last value.
- An unknown flag token is rejected, unless it reads as a negative number and a
  positional argument is still open, in which case it is a free token.

Finalization
- Every required argument must be bound, except when the help argument is given.
- Unbound optional arguments take their default (repeatables: an empty list).
- Bound raw strings go through the parser, then the validator, in ArgumentSet order.

Every fault names the ordinal position of the offending token on the whole line.
"""
import logging
import re

from .arguments import ParsedArgument
from .faults import (
    IllegalValueError,
    MissingArgumentError,
    NonExistingArgumentError,
    ParseFailureError,
    ValidationFailureError,
)
from .utils import Unset, ordinal

logger = logging.getLogger(__name__)

NUMBER = re.compile(r"-\d+(?:\.\d+)?")


class Binder:
    """
    Binds the remaining tokens of one input line against one command.

    offset is the number of tokens that named the command path; positions in
    messages count from the start of the line.
    """

    def __init__(self, command, sender, settings, /):
        self._command = command
        self._sender = sender
        self._settings = settings
        self._arguments = command.arguments
        self._raws = {}
        self._positionals = list(self._arguments.positional)
        self._cursor = 0

    def bind(self, tokens, /, *, offset=0):
        """
        Consume tokens and return {identifier: ParsedArgument} (not yet sealed).
        """
        tokens = list(tokens)
        index = 0
        while index < len(tokens):
            token = tokens[index]
            position = offset + index + 1
            flag = self._classify(token, position)
            if flag is None:
                self._free(token, position)
            else:
                argument, inline = flag
                if argument.valueless:
                    if inline is not Unset:
                        raise IllegalValueError(
                            f"argument {token.partition(self._settings.separator)[0]!r} "
                            f"from {ordinal(position)} position takes no value",
                            command=self._command,
                            argument=argument,
                            raw=token,
                            index=position,
                            hint=f"remove the {self._settings.separator!r} and what follows it",
                        )
                    self._store(argument, "", position)
                elif inline is not Unset:
                    self._store(argument, inline, position)
                elif self._settings.whitespace_separated and index + 1 < len(tokens):
                    index += 1
                    self._store(argument, tokens[index], offset + index + 1)
                else:
                    raise MissingArgumentError(
                        f"argument {token!r} from {ordinal(position)} position expects a value",
                        command=self._command,
                        argument=argument,
                        raw=token,
                        index=position,
                        hint=f"write it as -{argument.name}{self._settings.separator}{argument.label}",
                    )
            index += 1

        return self._finalize()

    def _classify(self, token, position, /):
        """
        Return (argument, inline value or Unset) for a flag token, None for a free token.
        """
        if not token.startswith("-") or token in ("-", "--"):
            return None

        body = token[2:] if token.startswith("--") else token[1:]
        if self._settings.whitespace_separated:
            name, inline = body, Unset
        else:
            name, separator, inline = body.partition(self._settings.separator)
            inline = inline if separator else Unset

        argument = self._arguments.get(name) if name else None
        if argument is not None and not argument.positional:
            return argument, inline

        if NUMBER.fullmatch(token) and self._cursor < len(self._positionals):
            return None

        raise NonExistingArgumentError(
            f"unknown argument {token!r} from {ordinal(position)} position "
            f"for command: {self._command.name}",
            command=self._command,
            raw=token,
            index=position,
        )

    def _free(self, token, position, /):
        if self._cursor >= len(self._positionals):
            raise NonExistingArgumentError(
                f"unexpected value {token!r} from {ordinal(position)} position "
                f"for command: {self._command.name}",
                command=self._command,
                raw=token,
                index=position,
                hint="quote values containing spaces",
            )
        argument = self._positionals[self._cursor]
        self._store(argument, token, position)
        if not argument.repeatable:
            self._cursor += 1

    def _store(self, argument, raw, position, /):
        if argument.repeatable:
            self._raws.setdefault(argument.identifier, []).append((raw, position))
        else:
            self._raws[argument.identifier] = [(raw, position)]

    def _help_requested(self):
        return (argument := self._command.help_argument) is not None and argument.identifier in self._raws

    def _finalize(self):
        if not self._help_requested():
            for argument in self._arguments.required:
                if argument.identifier not in self._raws:
                    raise MissingArgumentError(
                        f"no value found for argument \"{argument.identifier}\" of command: {self._command.name}",
                        command=self._command,
                        argument=argument,
                        hint="provide a value for every required argument",
                    )

        parsed = {}
        for argument in self._arguments:
            holder = parsed[argument.identifier] = ParsedArgument(argument)
            if (raws := self._raws.get(argument.identifier)) is None:
                holder.default()
                continue
            for raw, position in raws:
                value = self._convert(argument, raw, position)
                if argument.repeatable:
                    holder.append(value, raw)
                else:
                    holder.bind(value, raw)

        logger.debug("bound %d argument(s) for %r", len(self._raws), self._command.qualified_name)
        return parsed

    def _convert(self, argument, raw, position, /):
        try:
            value = argument.parser(raw)
        except (ValueError, TypeError, ArithmeticError) as error:
            raise ParseFailureError(
                f"invalid value {raw!r} for argument \"{argument.identifier}\" "
                f"from {ordinal(position)} position: {error}",
                command=self._command,
                argument=argument,
                raw=raw,
                index=position,
            ) from error

        if (validator := argument.validator) is None:
            return value

        constraint = None
        try:
            accepted = validator(self._sender, argument, value)
        except ValueError as error:
            accepted, constraint = False, str(error)
        if accepted:
            return value

        if constraint is None and callable(describe := getattr(validator, "describe", None)):
            constraint = describe(self._sender, argument)

        raise ValidationFailureError(
            f"value {value!r} for argument \"{argument.identifier}\" from {ordinal(position)} position "
            + (f"must be {constraint}" if constraint else "was rejected"),
            command=self._command,
            argument=argument,
            raw=raw,
            value=value,
            constraint=constraint,
            index=position,
        )


def bind(command, sender, tokens, settings, /, *, offset=0):
    """
    Bind tokens against command and return {identifier: ParsedArgument}.
    """
    return Binder(command, sender, settings).bind(tokens, offset=offset)


__all__ = (
    "Binder",
    "bind",
)
