"""
CAP utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the argument, command, binder and completion
  layers so they agree on "not provided", naming and case folding.

Overview
- UnsetType / Unset
  • Singleton sentinel for “value not provided”, distinct from None (None is a
    legitimate argument default).
- coalesce(value, default=None)
  • Replace Unset with a concrete default; None/0/""/[] are preserved.
- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated callables (executors, providers).
- mirror("attr")
  • Read-only property over a private backing field (self._attr); containers are
    handed out as fresh copies so callers cannot mutate definitions.
- fold(name, sensitive)
  • The one place where case sensitivity is applied to command and argument names.
- ordinal(number)
  • “first”, “second”, … “11th”, used by position-first fault messages.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> fold("ADD", False)
    'add'
    >>> ordinal(3)
    'third'
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a parameter default when None is meaningful to the caller (for
example an argument whose default value is None) and materialize it with
coalesce(...).
"""


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns object unless it is Unset, in which case default is returned. Falsey
    values such as None, 0, "" or [] are kept as they are.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator doing so.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name) -> decorator

    Raises
    - TypeError: wrong arity, non-callable target, non-string name, or a callable
      whose names cannot be updated (built-ins).
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values so a caller never receives internal state.

    - Sequence (non-string) → list, Mapping → dict (keys kept), Set → set.
    - Anything else is returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private field "_{name}".

    Container values are copied on every access (see _immortalize); scalars and
    callables are returned unchanged.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def fold(name, sensitive, /):
    """
    Apply the configured case sensitivity to a command or argument name.

    Both the registration side (building lookup maps) and the lookup side (tokens)
    go through this function so the two can never disagree.
    """
    return name if sensitive else name.casefold()


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    1..10 are words; everything else gets a numeric suffix (11th, 21st, 112th).
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"

    return f"{number}%s" % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "fold",
    "ordinal",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
