"""
Default help renderer.

HelpRenderer turns the command tree into rich Text:
- render_menu(sender, command, page): paginated list of the command's subcommands
  (depth first), each with its usage line and summary; the first page opens with
  the command's header.
- render_help(sender, command): the long help of one command (header, usage,
  description, arguments and direct subcommands).
- usage(command): `<required>`, `[optional]`, a trailing `+` for repeatables and
  `-p=label` for named arguments, using the manager's separator.

Only subcommands the sender may use are listed. Palette entries can be overridden
through a __styles__ mapping in __main__.
"""
import math
from collections import defaultdict

from rich.text import Text

from .faults import IllegalValueError


class HelpRenderer:
    """
    Rich based renderer of help menus and long help texts.
    """

    def __init__(self, *, colorful=True):
        self._colorful = bool(colorful)

    @property
    def colorful(self):
        return self._colorful

    def _styles(self):
        return defaultdict(str, {
            "header": "bold #FFFFFF",
            "usage-label": "bold #00E6FF",
            "command": "bold #36C5F0",
            "required": "bold #FFD600",
            "optional": "#FFD600",
            "flag-name": "bold #22C55E",
            "summary": "#9CA3AF",
            "description": "italic #A3A3A3",
            "section": "bold #FFFFFF",
            "page": "#737373",
        } | getattr(__import__("__main__"), "__styles__", {}))

    def _text(self, fragment, style, styles, /):
        return Text(str(fragment), styles[style] if self._colorful else "")

    def usage(self, command, /):
        """
        Build the usage line of command, e.g. `bigdoors addowner <doorID> [-a] [-p=player]+`.
        """
        styles = self._styles()
        separator = command.manager.settings.separator
        usage = self._text(command.qualified_name, "command", styles)

        for argument in command.arguments:
            if argument.positional:
                shape = argument.label
            elif argument.valueless:
                shape = f"-{argument.name}"
            else:
                shape = f"-{argument.name}{separator}{argument.label}"

            style = "required" if argument.required else "optional"
            opening, closing = ("<", ">") if argument.required else ("[", "]")
            usage.append(" ")
            usage.append_text(self._text(f"{opening}{shape}{closing}", style, styles))
            if argument.repeatable:
                usage.append_text(self._text("+", style, styles))

        return usage

    def _entries(self, sender, command, /):
        for child in command.children:
            if not child.has_permission(sender):
                continue
            yield child
            yield from self._entries(sender, child)

    def pages(self, sender, command, /):
        """
        Number of menu pages for command as seen by sender (at least 1).
        """
        settings = command.manager.settings
        count = sum(1 for _ in self._entries(sender, command))
        remaining = max(0, count - settings.first_page_size)
        return 1 + math.ceil(remaining / settings.help_page_size)

    def render_menu(self, sender, command, page=1, /):
        """
        Render one page of command's subcommand menu.

        Raises IllegalValueError when page is not between 1 and the page count.
        """
        settings = command.manager.settings
        pages = self.pages(sender, command)
        if not isinstance(page, int) or not 1 <= page <= pages:
            raise IllegalValueError(
                f"page {page} does not exist for command: {command.name}",
                command=command,
                value=page,
                constraint=f"between 1 and {pages}",
                hint=f"choose a page between 1 and {pages}",
            )

        entries = list(self._entries(sender, command))
        if page == 1:
            start, stop = 0, settings.first_page_size
        else:
            start = settings.first_page_size + (page - 2) * settings.help_page_size
            stop = start + settings.help_page_size

        styles = self._styles()
        menu = Text()
        if page == 1 and (header := command.text("header", sender)):
            menu.append_text(self._text(header, "header", styles)).append("\n\n")
        menu.append_text(self._text(command.text("section_title", sender), "section", styles))
        menu.append_text(self._text(f" (page {page}/{pages})", "page", styles)).append("\n")

        for entry in entries[start:stop]:
            menu.append("  ").append_text(self.usage(entry)).append("\n")
            if summary := entry.text("summary", sender):
                menu.append("    ").append_text(self._text(summary, "summary", styles)).append("\n")

        menu.rstrip()
        return menu

    def render_help(self, sender, command, /):
        """
        Render the long help of command.
        """
        styles = self._styles()
        rendered = Text()

        if header := command.text("header", sender):
            rendered.append_text(self._text(header, "header", styles)).append("\n\n")

        rendered.append_text(self._text("usage", "usage-label", styles)).append(": ")
        rendered.append_text(self.usage(command)).append("\n")

        if description := command.text("description", sender) or command.text("summary", sender):
            rendered.append_text(self._text(description, "description", styles)).append("\n")

        if len(command.arguments):
            rendered.append("\n").append_text(self._text("arguments", "section", styles)).append(":\n")
            for argument in command.arguments:
                if argument.positional:
                    names = f"<{argument.label}>"
                else:
                    names = f"-{argument.name}" if argument.long is None else f"-{argument.name}, --{argument.long}"
                rendered.append("  ").append_text(self._text(names, "flag-name", styles))
                if argument.summary:
                    rendered.append("  ").append_text(self._text(argument.summary, "summary", styles))
                rendered.append("\n")

        if children := [child for child in command.children if child.has_permission(sender)]:
            rendered.append("\n").append_text(self._text("subcommands", "section", styles)).append(":\n")
            for child in children:
                rendered.append("  ").append_text(self._text(child.name, "command", styles))
                if summary := child.text("summary", sender):
                    rendered.append("  ").append_text(self._text(summary, "summary", styles))
                rendered.append("\n")

        rendered.rstrip()
        return rendered


__all__ = (
    "HelpRenderer",
)
