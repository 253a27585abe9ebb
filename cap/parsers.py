"""
Built-in parse functions: (raw: str) -> value.

A parse function signals bad input by raising ValueError; the binder turns that
into a ParseFailureError naming the argument and the raw token.
"""
from .utils import rename

TRUTHY = frozenset(("true", "yes", "on", "1", "y"))
FALSY = frozenset(("false", "no", "off", "0", "n"))


def string(raw, /):
    return raw


def integer(raw, /):
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{raw!r} is not an integer") from None


def decimal(raw, /):
    try:
        value = float(raw.strip())
    except ValueError:
        raise ValueError(f"{raw!r} is not a number") from None
    if value != value or value in (float("inf"), float("-inf")):
        raise ValueError(f"{raw!r} is not a finite number")
    return value


def boolean(raw, /):
    """
    Accept the usual spellings of yes/no (true/false, on/off, 1/0), any case.
    """
    if (folded := raw.strip().casefold()) in TRUTHY:
        return True
    if folded in FALSY:
        return False
    raise ValueError(f"{raw!r} is not a boolean")


def valueless(value=True, /):
    """
    Build the parser of a valueless argument: whatever the raw token, return value.
    """
    @rename("valueless")
    def parser(raw, /):
        return value

    parser.value = value
    return parser


__all__ = (
    "string",
    "integer",
    "decimal",
    "boolean",
    "valueless",
)
