r"""
CAP argument specifications, argument sets and parsed values.

Overview
- Argument[_T]: one specification class carrying capability flags instead of a
  type hierarchy:
  • positional: bound by token order rather than by name.
  • required: must be bound after all tokens are consumed.
  • repeatable: may appear several times; values accumulate in encounter order.
  • valueless: presence alone conveys a fixed value; consumes no token.
- Factories: required(), optional(), positional(), repeatable(), flag().
- ArgumentSet: sorted, immutable view over the arguments of one command
  (positional-before-named, required-before-optional, valueless-before-valued,
  repeatable-last) with case-folded name lookup.
- ParsedArgument[_T]: the value of one argument for one invocation; writable while
  the binder works on it, sealed afterwards.

Metadata (sanitized on construction)
- name: short name (e.g. "p"), required; long: optional long name (e.g. "player").
  Names must match r"[^\W\d_][\w-]*".
- identifier: key in the parse result; defaults to the short name.
- label: value placeholder in usage lines; defaults to the long name, else the short name.
- summary: one-line help text.
- parser: callable (raw: str) -> _T, raising ValueError on bad input.
- validator: optional callable (sender, argument, value) -> bool.
- completion: optional callable (sender, partial) -> list[str].
- default: value bound when an optional argument is not given.

Validation highlights
- valueless arguments cannot be positional, required or repeatable.
- required arguments cannot declare a default.
- required repeatable arguments must be positional.

Quick example:
    >>> from cap.arguments import required, repeatable, flag
    >>> door = positional("doorID", required=True)
    >>> players = repeatable("p", "player", label="player")
    >>> admin = flag("a", "admin")
"""
import functools
import operator
import re

from . import parsers
from .utils import *

NAME = r"[^\W\d_][\w-]*"


class ArgumentType(type):
    """
    Metaclass giving argument classes stable, introspectable representations.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens); it
      is used in every construction error message.
    - Expose the names listed in __introspectable__ as read-only properties backed
      by "_<name>" fields (see mirror()).
    - Provide __repr__/__rich_repr__ over __displayable__ (or __introspectable__).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate the short/long names and the identifier.

    - name: required string matching NAME after trimming.
    - long: Unset or a string matching NAME, different from the short name.
    - identifier: Unset (defaults to the short name) or a non-empty string.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif not re.fullmatch(NAME, name):
        raise ValueError(f"{cls.__typename__} 'name' must start with a letter and contain no spaces")
    metadata["name"] = name

    if not isinstance(long := metadata["long"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'long' must be a string")
    elif isinstance(long, str):
        if not (long := long.strip()):
            raise ValueError(f"{cls.__typename__} 'long' cannot be empty")
        elif not re.fullmatch(NAME, long):
            raise ValueError(f"{cls.__typename__} 'long' must start with a letter and contain no spaces")
        elif long == name:
            raise ValueError(f"{cls.__typename__} 'long' cannot repeat the short name")
    metadata["long"] = coalesce(long)

    if not isinstance(identifier := metadata["identifier"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'identifier' must be a string")
    elif isinstance(identifier, str) and not (identifier := identifier.strip()):
        raise ValueError(f"{cls.__typename__} 'identifier' cannot be empty")
    metadata["identifier"] = coalesce(identifier, name)


def _sanitize_texts(cls, metadata, /):
    """
    Internal: validate label and summary, both optional non-empty strings.
    """
    if not isinstance(label := metadata["label"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'label' must be a string")
    elif isinstance(label, str) and not (label := label.strip()):
        raise ValueError(f"{cls.__typename__} 'label' cannot be empty")
    metadata["label"] = coalesce(label, metadata["long"] or metadata["name"])

    if not isinstance(summary := metadata["summary"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'summary' must be a string")
    elif isinstance(summary, str) and not (summary := summary.strip()):
        raise ValueError(f"{cls.__typename__} 'summary' cannot be empty")
    metadata["summary"] = coalesce(summary)


def _sanitize_callbacks(cls, metadata, /):
    if not callable(metadata["parser"]):
        raise TypeError(f"{cls.__typename__} 'parser' must be callable")
    if metadata["validator"] is not None and not callable(metadata["validator"]):
        raise TypeError(f"{cls.__typename__} 'validator' must be callable")
    if metadata["completion"] is not None and not callable(metadata["completion"]):
        raise TypeError(f"{cls.__typename__} 'completion' must be callable")


def _sanitize_capabilities(cls, metadata, /):
    """
    Internal: reject capability combinations that cannot be bound consistently.
    """
    if metadata["valueless"]:
        if metadata["positional"]:
            raise TypeError(f"valueless {cls.__typename__} cannot be positional")
        if metadata["required"]:
            raise TypeError(f"valueless {cls.__typename__} cannot be required")
        if metadata["repeatable"]:
            raise TypeError(f"valueless {cls.__typename__} cannot be repeatable")

    if metadata["required"] and metadata["default"] is not Unset:
        raise TypeError(f"required {cls.__typename__} cannot have a default")

    if metadata["required"] and metadata["repeatable"] and not metadata["positional"]:
        raise TypeError(f"required repeatable {cls.__typename__} must be positional")

    if metadata["repeatable"]:
        metadata["default"] = list(coalesce(metadata["default"], ()))
    else:
        metadata["default"] = coalesce(metadata["default"])


class Argument[_T](metaclass=ArgumentType):
    """
    Specification of one argument of a command.

    Instances are immutable once built; every field is exposed as a read-only
    property. Use the factory functions for the common shapes.
    """

    __introspectable__ = (
        "name",
        "long",
        "identifier",
        "label",
        "summary",
        "parser",
        "validator",
        "completion",
        "default",
        "positional",
        "required",
        "repeatable",
        "valueless",
    )
    __displayable__ = (
        "name",
        "long",
        "identifier",
        "positional",
        "required",
        "repeatable",
        "valueless",
    )

    def __init__(
            self,
            name,
            long=Unset,
            /,
            *,
            identifier=Unset,
            label=Unset,
            summary=Unset,
            parser=parsers.string,
            validator=None,
            completion=None,
            default=Unset,
            positional=False,
            required=False,
            repeatable=False,
            valueless=False,
    ):
        metadata = {
            "name": name,
            "long": long,
            "identifier": identifier,
            "label": label,
            "summary": summary,
            "parser": parser,
            "validator": validator,
            "completion": completion,
            "default": default,
            "positional": bool(positional),
            "required": bool(required),
            "repeatable": bool(repeatable),
            "valueless": bool(valueless),
        }
        _sanitize_names(type(self), metadata)
        _sanitize_texts(type(self), metadata)
        _sanitize_callbacks(type(self), metadata)
        _sanitize_capabilities(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def names(self):
        """The short name followed by the long name, when there is one."""
        return (self._name,) if self._long is None else (self._name, self._long)

    @property
    def optional(self):
        return not self._required

    def complete(self, sender, partial, /):
        """
        Return completion candidates for partial (empty without a provider).
        """
        if self._completion is None:
            return []
        return list(self._completion(sender, partial))


def required(name, long=Unset, /, **options):
    """Build a required named argument (`-name=value` must be given)."""
    return Argument(name, long, required=True, **options)


def optional(name, long=Unset, /, **options):
    """Build an optional named argument, bound to `default` when absent."""
    return Argument(name, long, **options)


def positional(name, /, **options):
    """Build a positional argument; pass required=True to make it mandatory."""
    return Argument(name, positional=True, **options)


def repeatable(name, long=Unset, /, **options):
    """Build a repeatable named argument; values accumulate in encounter order."""
    return Argument(name, long, repeatable=True, **options)


def flag(name, long=Unset, /, *, value=True, **options):
    """
    Build a valueless argument: its presence binds value, its absence binds not value.
    """
    if "parser" in options or "default" in options:
        raise TypeError("valueless argument cannot declare a 'parser' or a 'default'")
    return Argument(name, long, valueless=True, parser=parsers.valueless(value), default=not value, **options)


def _ordering(argument):
    return (
        not argument.positional,
        not argument.required,
        not argument.valueless,
        argument.repeatable,
    )


class ArgumentSet:
    """
    Sorted, immutable view over the arguments of one command.

    Iteration follows the stable order positional-before-named,
    required-before-optional, valueless-before-valued, repeatable-last; ties keep
    declaration order. Named arguments are looked up by either name, folded with
    the configured case sensitivity.

    Construction rejects
    - duplicate names or identifiers (after folding),
    - a repeatable positional that is not the last positional,
    - an optional positional declared before a required one.
    """

    def __init__(self, arguments=(), /, *, case_sensitive=False):
        arguments = tuple(arguments)
        for argument in arguments:
            if not isinstance(argument, Argument):
                raise TypeError("argument-set members must be arguments")

        self._case_sensitive = bool(case_sensitive)
        self._arguments = tuple(sorted(arguments, key=_ordering))
        self._names = {}
        self._identifiers = {}

        for argument in self._arguments:
            for name in argument.names:
                if (folded := fold(name, self._case_sensitive)) in self._names:
                    raise ValueError(f"argument-set cannot contain duplicate name {name!r}")
                self._names[folded] = argument
            if argument.identifier in self._identifiers:
                raise ValueError(f"argument-set cannot contain duplicate identifier {argument.identifier!r}")
            self._identifiers[argument.identifier] = argument

        positionals = [argument for argument in arguments if argument.positional]
        for index, argument in enumerate(positionals):
            if argument.repeatable and index != len(positionals) - 1:
                raise ValueError(f"repeatable positional {argument.identifier!r} must be the last positional")
            if argument.required and any(not previous.required for previous in positionals[:index]):
                raise ValueError(f"required positional {argument.identifier!r} cannot follow an optional one")

    case_sensitive = mirror("case_sensitive")

    @property
    def positional(self):
        return tuple(argument for argument in self._arguments if argument.positional)

    @property
    def named(self):
        return tuple(argument for argument in self._arguments if not argument.positional)

    @property
    def required(self):
        return tuple(argument for argument in self._arguments if argument.required)

    @property
    def optional(self):
        return tuple(argument for argument in self._arguments if not argument.required)

    def get(self, name, default=None, /):
        """
        Return the argument with the given short or long name (folded), or default.
        """
        return self._names.get(fold(name, self._case_sensitive), default)

    def identify(self, identifier, default=None, /):
        """
        Return the argument with the given identifier, or default.
        """
        return self._identifiers.get(identifier, default)

    def extend(self, *arguments):
        """
        Return a new set with arguments added.
        """
        return type(self)((*self._arguments, *arguments), case_sensitive=self._case_sensitive)

    def __iter__(self):
        return iter(self._arguments)

    def __len__(self):
        return len(self._arguments)

    def __contains__(self, argument):
        return isinstance(argument, Argument) and self._identifiers.get(argument.identifier) is argument

    def __repr__(self):
        return f"argument-set({", ".join(argument.identifier for argument in self._arguments)})"


class ParsedArgument[_T]:
    """
    The resolved value of one argument for one invocation.

    The binder writes to it through bind()/append() and calls seal() when it is
    done; afterwards any write raises AttributeError.
    """
    __slots__ = ("_argument", "_value", "_raw", "_given", "_sealed")

    def __init__(self, argument, /):
        self._argument = argument
        self._value = [] if argument.repeatable else None
        self._raw = [] if argument.repeatable else None
        self._given = False
        self._sealed = False

    argument = mirror("argument")
    value = mirror("value")
    raw = mirror("raw")
    given = mirror("given")
    sealed = mirror("sealed")

    def _check(self):
        if self._sealed:
            raise AttributeError(f"parsed argument {self._argument.identifier!r} is read-only")

    def bind(self, value, raw=None, /):
        """
        Store value (replacing any previous one), recording the raw token.
        """
        self._check()
        if self._argument.repeatable:
            raise TypeError(f"repeatable argument {self._argument.identifier!r} must be appended to")
        self._value = value
        self._raw = raw
        self._given = True

    def append(self, value, raw=None, /):
        """
        Add value after the ones already accumulated (repeatable arguments only).
        """
        self._check()
        if not self._argument.repeatable:
            raise TypeError(f"argument {self._argument.identifier!r} is not repeatable")
        self._value.append(value)
        self._raw.append(raw)
        self._given = True

    def default(self):
        """
        Bind the declared default without marking the argument as given.
        """
        self._check()
        self._value = self._argument.default
        if self._argument.repeatable:
            self._value = list(self._value)

    def seal(self):
        self._sealed = True
        return self

    def __repr__(self):
        return f"ParsedArgument({self._argument.identifier}={self._value!r})"


__all__ = (
    # Classes
    "Argument",
    "ArgumentSet",
    "ParsedArgument",

    # Factories
    "required",
    "optional",
    "positional",
    "repeatable",
    "flag",
)

del ArgumentType
