"""
CAP command layer: the command tree and the result of a successful parse.

What this module provides
- Command: one node of the tree. It owns its children and its ArgumentSet and
  keeps only a weak reference to its parent.
  • Executable commands carry an executor(result); virtual commands only group
    subcommands and render their help menu when invoked.
  • Optional permission predicate (sender, command) -> bool; no predicate means
    everyone may use the command.
  • Texts (description, summary, header) are strings or callables (sender) -> str.
- CommandResult: read-only mapping identifier -> value for one invocation, plus the
  resolved command and the sender; run() executes it.
- help_subcommand(): builder of the default `help [page|command]` subcommand.

Automatic wiring (opt-in per command)
- add_default_help_argument: inject a valueless `-h/--help` argument (identifier
  "help") unless the command already declares an argument with that identifier.
- add_default_help_subcommand: build the default help subcommand and place it
  first among the children.
- virtual commands receive an optional positional integer `page` argument.

Quick example
    >>> manager = CommandManager()
    >>> doors = manager.command("bigdoors", virtual=True, add_default_help_subcommand=True)
    >>> doors.command("addowner", executor=print, arguments=[positional("doorID", required=True)])
"""
import functools
import operator
import re
import weakref
from collections.abc import Mapping
from types import MappingProxyType

from . import parsers
from .arguments import Argument, ArgumentSet, flag, positional
from .settings import Settings
from .utils import *

NAME = r"[^\W\d_][\w-]*"

HELP = "help"
PAGE = "page"


def _default_help_argument():
    return flag("h", "help", identifier=HELP, summary="Displays the help menu for this command.")


def _default_virtual_argument():
    return positional(PAGE, parser=parsers.integer, default=1, summary="The page number of the help menu to display.")


class CommandType(type):
    """
    Metaclass giving commands a typename, mirrored properties and stable reprs.

    Conventions
    - __typename__ is derived from the class name and used in construction errors.
    - __displayable__ narrows the fields shown by __repr__/__rich_repr__.
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


def _sanitize_identity(cls, metadata, /):
    """
    Internal: validate the manager, the name and the parent.

    - manager: anything exposing a Settings instance as `settings`.
    - name: string matching NAME after trimming.
    - parent: Unset or a Command of the same manager.
    """
    if not isinstance(getattr(metadata["manager"], "settings", None), Settings):
        raise TypeError(f"{cls.__typename__} 'manager' must be a command manager")

    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif not re.fullmatch(NAME, name):
        raise ValueError(f"{cls.__typename__} 'name' must start with a letter and contain no spaces")
    metadata["name"] = name

    if not isinstance(parent := metadata["parent"], Command | Unset):
        raise TypeError(f"{cls.__typename__} 'parent' must be a command")
    elif parent and parent.manager is not metadata["manager"]:
        raise ValueError(f"{cls.__typename__} 'parent' belongs to another manager")


def _sanitize_texts(cls, metadata, /):
    """
    Internal: texts are Unset, non-empty strings or callables (sender) -> str.
    """
    for field in ("description", "summary", "header", "section_title"):
        if callable(text := metadata[field]):
            continue
        if not isinstance(text, str | Unset):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string or a callable")
        elif isinstance(text, str) and not (text := text.strip()):
            raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
        metadata[field] = text

    metadata["section_title"] = coalesce(metadata["section_title"], metadata["name"])


def _sanitize_behavior(cls, metadata, /):
    """
    Internal: a virtual command has no executor, an executable one must have one.
    """
    if metadata["virtual"]:
        if metadata["executor"] is not None:
            raise TypeError(f"virtual {cls.__typename__} cannot have an executor")
    elif metadata["executor"] is None:
        raise TypeError(f"non-virtual {cls.__typename__} requires an executor")
    elif not callable(metadata["executor"]):
        raise TypeError(f"{cls.__typename__} 'executor' must be callable")

    if metadata["permission"] is not None and not callable(metadata["permission"]):
        raise TypeError(f"{cls.__typename__} 'permission' must be callable")


def _sanitize_arguments(cls, metadata, /):
    """
    Internal: resolve the help argument and the virtual page argument, then build
    the sorted ArgumentSet.
    """
    arguments = list(metadata["arguments"])
    for argument in arguments:
        if not isinstance(argument, Argument):
            raise TypeError(f"{cls.__typename__} 'arguments' must contain only arguments")

    declared = next((argument for argument in arguments if argument.identifier == HELP), None)

    if (toggle := metadata["help_argument"]) is not Unset:
        if not isinstance(toggle, Argument):
            raise TypeError(f"{cls.__typename__} 'help_argument' must be an argument")
        if not toggle.valueless:
            raise TypeError(f"{cls.__typename__} 'help_argument' must be valueless")
        if toggle not in arguments:
            arguments.append(toggle)
    elif declared is not None and declared.valueless:
        toggle = declared
    elif metadata["add_default_help_argument"] and declared is None:
        arguments.append(toggle := _default_help_argument())
    metadata["help_argument"] = coalesce(toggle)

    if metadata["virtual"] and all(argument.identifier != PAGE for argument in arguments):
        arguments.append(_default_virtual_argument())

    metadata["arguments"] = ArgumentSet(arguments, case_sensitive=metadata["manager"].settings.case_sensitive)


def _attach_to_parent(self, parent, /):
    """
    Register self under its parent (or as a top-level command of its manager).

    Child names are unique under one parent after case folding. The subtree size of
    every ancestor grows by the size of the attached subtree.
    """
    if not parent:
        self.manager.add_command(self)
        return

    if (name := fold(self.name, self.manager.settings.case_sensitive)) in parent._lookup:
        raise ValueError(f"{type(self).__typename__} subcommand name {self.name!r} is already in use")

    parent._lookup[name] = self
    parent._children.append(self)
    self._parent = weakref.ref(parent)

    delta = 1 + self._subcommand_count
    ancestor = parent
    while ancestor is not None:
        ancestor._subcommand_count += delta
        ancestor = ancestor.parent


class Command(metaclass=CommandType):
    """
    One node of the command tree.

    Lifecycle
    - Built with a manager and an optional parent; attaches itself on construction
      (under the parent, or as a top-level command of the manager).
    - Its arguments are sealed into an ArgumentSet at construction.
    - Children are added by building commands with parent=self (see command()).

    Notes
    - The parent is held through weakref.ref; the tree is owned from the top.
    - subcommand_count is the number of descendants, kept up to date on attach.
    """

    __introspectable__ = (
        "manager",
        "name",
        "arguments",
        "virtual",
        "permission",
        "description",
        "summary",
        "header",
        "section_title",
        "help_argument",
        "subcommand_count",
    )
    __displayable__ = (
        "name",
        "virtual",
        "arguments",
        "children",
    )

    def __init__(
            self,
            manager,
            name,
            /,
            parent=Unset,
            *,
            arguments=(),
            executor=None,
            virtual=False,
            permission=None,
            description=Unset,
            summary=Unset,
            header=Unset,
            section_title=Unset,
            help_command=Unset,
            add_default_help_subcommand=False,
            help_argument=Unset,
            add_default_help_argument=False,
    ):
        """
        Construct a command and attach it to the tree.

        Parameters
        - manager: the CommandManager providing settings and the top-level registry.
        - name: the command name as typed by users.
        - parent: Command | Unset; top-level when Unset.
        - arguments: iterable of Argument.
        - executor: callable (result) -> Any; required unless virtual.
        - virtual: grouping node rendering its help menu when invoked.
        - permission: callable (sender, command) -> bool, or None.
        - description, summary, header, section_title: str or callable (sender) -> str.
        - help_command: callable (parent) -> Command building the help subcommand.
        - add_default_help_subcommand: use help_subcommand when help_command is Unset.
        - help_argument: valueless Argument toggling the long help.
        - add_default_help_argument: inject `-h/--help` when help_argument is Unset.

        Raises
        - TypeError/ValueError on invalid metadata or a name already in use.
        """
        metadata = {
            "manager": manager,
            "name": name,
            "parent": parent,
            "arguments": arguments,
            "executor": executor,
            "virtual": bool(virtual),
            "permission": permission,
            "description": description,
            "summary": summary,
            "header": header,
            "section_title": section_title,
            "help_argument": help_argument,
            "add_default_help_argument": bool(add_default_help_argument),
        }
        _sanitize_identity(type(self), metadata)
        _sanitize_texts(type(self), metadata)
        _sanitize_behavior(type(self), metadata)
        _sanitize_arguments(type(self), metadata)

        del metadata["parent"], metadata["add_default_help_argument"]
        for field, object in metadata.items():
            setattr(self, "_" + field, coalesce(object))

        self._parent = None
        self._children = []
        self._lookup = {}
        self._subcommand_count = 0
        self._help_command = None

        if help_command is Unset and add_default_help_subcommand:
            help_command = help_subcommand
        if help_command is not Unset and not callable(help_command):
            raise TypeError(f"{type(self).__typename__} 'help_command' must be callable")

        _attach_to_parent(self, parent)

        if help_command is not Unset:
            built = help_command(self)
            if not isinstance(built, Command) or built.parent is not self:
                raise TypeError(f"{type(self).__typename__} 'help_command' must build a subcommand of its argument")
            self._children.remove(built)
            self._children.insert(0, built)
            self._help_command = built

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @property
    def executor(self):
        """
        The user executor, or the help-menu renderer for virtual commands.
        """
        return self._render_menu if self._virtual else self._executor

    @property
    def children(self):
        return tuple(self._children)

    @property
    def help_command(self):
        return self._help_command

    @property
    def top_level(self):
        """
        Return the topmost command of this command's tree.
        """
        command = self
        while (parent := command.parent) is not None:
            command = parent
        return command

    @property
    def path(self):
        """
        Return the commands from the top-level one down to this one.
        """
        path = [command := self]
        while (command := command.parent) is not None:
            path.append(command)
        return tuple(reversed(path))

    @property
    def qualified_name(self):
        return " ".join(command.name for command in self.path)

    def command(self, name, /, **options):
        """
        Build a subcommand of this command (parent=self is injected).
        """
        return type(self)(self._manager, name, self, **options)

    def get_subcommand(self, name, /):
        """
        Return the direct child named name (case folded per settings), or None.
        """
        return self._lookup.get(fold(name, self._manager.settings.case_sensitive))

    def has_permission(self, sender, /):
        return self._permission is None or bool(self._permission(sender, self))

    def text(self, field, sender=None, /):
        """
        Resolve one of description/summary/header/section_title for sender.
        """
        if field not in ("description", "summary", "header", "section_title"):
            raise ValueError(f"unknown {type(self).__typename__} text {field!r}")
        text = getattr(self, "_" + field)
        if callable(text):
            text = text(sender)
        return text or ""

    def _render_menu(self, result, /):
        renderer = self._manager.renderer
        result.sender.send(renderer.render_menu(result.sender, self, result.get(PAGE, 1)))

    def __iter__(self):
        return iter(self._children)


def help_subcommand(parent, /, *, name="help", summary=Unset, header=Unset):
    """
    Build the default help subcommand of parent.

    `help` renders the first page of parent's subcommand menu, `help <n>` page n,
    and `help <command>` the long help of that subcommand (or of the command at
    that path, falling back to parent when nothing matches).
    """
    @rename("help")
    def executor(result):
        sender = result.sender
        renderer = parent.manager.renderer
        topic = result.get("topic")

        if topic is None:
            return sender.send(renderer.render_menu(sender, parent, 1))

        try:
            page = parsers.integer(topic)
        except ValueError:
            pass
        else:
            return sender.send(renderer.render_menu(sender, parent, page))

        command = parent.get_subcommand(topic) or parent.manager.get_command(topic) or parent
        return sender.send(renderer.render_help(sender, command))

    return Command(
        parent.manager,
        name,
        parent,
        arguments=[positional("topic", label="page|command", summary="A page number or the name of a command.")],
        executor=executor,
        summary=coalesce(summary, "Displays help information for this command and its subcommands."),
        header=coalesce(header, (
            "When no command or a page number is given, the usage help for the main command is displayed.\n"
            "If a command is specified, the help for that command is shown."
        )),
    )


class CommandResult(Mapping):
    """
    Outcome of one successful parse: command, sender and the sealed arguments.

    Indexing by identifier yields the value; parsed(identifier) yields the
    ParsedArgument itself. Nothing can be written after construction.
    """

    def __init__(self, command, sender, arguments, /):
        self._command = command
        self._sender = sender
        self._arguments = MappingProxyType({
            identifier: parsed.seal() for identifier, parsed in dict(arguments).items()
        })

    @property
    def command(self):
        return self._command

    @property
    def sender(self):
        return self._sender

    @property
    def arguments(self):
        return self._arguments

    def parsed(self, identifier, /):
        return self._arguments[identifier]

    @property
    def help_requested(self):
        """
        Whether the command's help argument was given on the line.
        """
        argument = self._command.help_argument
        if argument is None:
            return False
        parsed = self._arguments.get(argument.identifier)
        return parsed is not None and parsed.given and bool(parsed.value)

    def run(self):
        """
        Show the command's long help when requested, otherwise call its executor.
        """
        if self.help_requested:
            renderer = self._command.manager.renderer
            return self._sender.send(renderer.render_help(self._sender, self._command))
        return self._command.executor(self)

    def __getitem__(self, identifier):
        return self._arguments[identifier].value

    def __iter__(self):
        return iter(self._arguments)

    def __len__(self):
        return len(self._arguments)

    def __repr__(self):
        return f"CommandResult({self._command.qualified_name!r}, {dict(self)!r})"


__all__ = (
    "Command",
    "CommandResult",
    "help_subcommand",
)

del CommandType
