"""
CAP faults (command errors), rendering and dispatch.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing error.
  Codes are grouped by pipeline stage so logs and searches stay predictable.
- CommandException and its kinds: each carries a message plus structured context
  (command, argument, raw, value, constraint, index) and knows how to render itself
  through rich in a lowercased, actionable way.
- FaultHandler: caller-owned dispatch table from exception kind to handler.

UX goals
- Position-first messages: binder faults name the ordinal position of the token
  (“from third position”) so users can locate the mistake.
- Short titles, one-sentence bodies, a single hint.
- Styling configurable via __styles__ in __main__; codes remappable via __codes__.

Integration
- The engine only raises. Deciding how a fault is shown belongs to the caller, who
  either catches CommandException directly or routes it through a FaultHandler.
"""
import copy
import logging
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce, rename

logger = logging.getLogger(__name__)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by pipeline stage)
    - tokenization (1110x)
      • UNTERMINATED_QUOTE
    - resolution (1111x)
      • COMMAND_NOT_FOUND, PERMISSION_DENIED
    - binding (1112x)
      • NON_EXISTING_ARGUMENT, MISSING_ARGUMENT, ILLEGAL_VALUE
    - values (1113x)
      • PARSE_FAILURE, VALIDATION_FAILURE
    """
    # --- tokenization errors ---
    UNTERMINATED_QUOTE    = 11101

    # --- resolution errors ---
    COMMAND_NOT_FOUND     = 11111
    PERMISSION_DENIED     = 11112

    # --- binding errors ---
    NON_EXISTING_ARGUMENT = 11121
    MISSING_ARGUMENT      = 11122
    ILLEGAL_VALUE         = 11123

    # --- value errors ---
    PARSE_FAILURE         = 11131
    VALIDATION_FAILURE    = 11132

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _context(name, /):
    @rename(name)
    def getter(self):
        return self.options.get(name)

    return property(getter)


class CommandException(Exception):
    """
    Base of every fault the engine raises.

    Class attributes `code`, `title` and `hint` give each kind its defaults; the
    options passed at raise time may override them and carry the context fields.
    """
    code = Unset
    title = "command error"
    hint = ""

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, self.title))
        self.message = coalesce(message, self.title)
        self.options = MappingProxyType(options)

    command = _context("command")
    argument = _context("argument")
    raw = _context("raw")
    value = _context("value")
    constraint = _context("constraint")
    index = _context("index")

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), styles[style] if colorful else "")

        command = self.options.get("command")
        prog = getattr(main, "__prog__", command.top_level.name if command is not None else "cap")
        code = self.options.get("code", self.code)

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(code.normalize() if code else "", "code"),
            " | ",
            text(self.options.get("title", self.title).title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        hint = self.options.get("hint", self.hint)

        renders = [message]
        if hint:
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class TokenizationError(CommandException):
    title = "malformed input"


class UnterminatedQuoteError(TokenizationError):
    code = FaultCode.UNTERMINATED_QUOTE
    title = "unterminated quote"
    hint = "close the quote or escape it with a backslash"


class CommandNotFoundError(CommandException):
    code = FaultCode.COMMAND_NOT_FOUND
    title = "unknown command"
    hint = "check the spelling or ask for help"


class PermissionDeniedError(CommandException):
    code = FaultCode.PERMISSION_DENIED
    title = "permission denied"


class NonExistingArgumentError(CommandException):
    code = FaultCode.NON_EXISTING_ARGUMENT
    title = "unknown argument"
    hint = "use -h to list the accepted arguments"


class MissingArgumentError(CommandException):
    code = FaultCode.MISSING_ARGUMENT
    title = "missing argument"


class IllegalValueError(CommandException):
    code = FaultCode.ILLEGAL_VALUE
    title = "illegal value"


class ParseFailureError(CommandException):
    code = FaultCode.PARSE_FAILURE
    title = "invalid value"


class ValidationFailureError(CommandException):
    code = FaultCode.VALIDATION_FAILURE
    title = "rejected value"


class FaultHandler:
    """
    Dispatch table mapping fault kinds to handlers `(sender, fault) -> None`.

    Lookup walks the fault's MRO, so a handler registered for CommandException
    catches every kind not claimed by a more specific entry. A fault nobody
    handles is re-raised.
    """

    def __init__(self, handlers=None, /):
        self._handlers = {}
        for kind, handler in dict(coalesce(handlers, None) or {}).items():
            self.register(kind, handler)

    def register(self, kind, handler=Unset, /):
        """
        Register handler for kind; without handler, return a decorator.
        """
        if not (isinstance(kind, type) and issubclass(kind, CommandException)):
            raise TypeError("fault-handler kind must be a command-exception subclass")

        if handler is Unset:
            def decorator(handler):
                self.register(kind, handler)
                return handler

            return decorator

        if not callable(handler):
            raise TypeError("fault-handler handler must be callable")

        self._handlers[kind] = handler
        return handler

    def resolve(self, kind, /):
        """
        Return the handler responsible for kind, or None.
        """
        for base in kind.__mro__:
            try:
                return self._handlers[base]
            except KeyError:
                continue
        return None

    def handle(self, sender, fault, /):
        handler = self.resolve(type(fault))
        if handler is None:
            raise fault
        logger.debug("routing %s to %s", type(fault).__name__, getattr(handler, "__name__", handler))
        return handler(sender, fault)

    @classmethod
    def default(cls, *, fancy=False, colorful=True):
        """
        Build a handler that renders every fault with rich and sends it to the sender.
        """
        @rename("render")
        def render(sender, fault):
            sender.send(copy.replace(fault, fancy=fancy, colorful=colorful))

        return cls({CommandException: render})

    def __contains__(self, kind):
        return self.resolve(kind) is not None

    def __repr__(self):
        return f"FaultHandler({', '.join(kind.__name__ for kind in self._handlers)})"


__all__ = (
    "FaultCode",
    "CommandException",
    "TokenizationError",
    "UnterminatedQuoteError",
    "CommandNotFoundError",
    "PermissionDeniedError",
    "NonExistingArgumentError",
    "MissingArgumentError",
    "IllegalValueError",
    "ParseFailureError",
    "ValidationFailureError",
    "FaultHandler",
)
