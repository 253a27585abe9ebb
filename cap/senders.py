"""
Command senders: who typed the line, and where answers go.

The engine only needs a sender to be hashable (completion cache key), to expose
a locale and to accept messages through send(). Embedding applications usually
adapt their own player/user objects to CommandSender; DefaultSender prints to a
rich console.
"""
from abc import ABC, abstractmethod

from rich.console import Console


class CommandSender(ABC):
    """
    Base of command senders; equality and hashing are by identity.
    """

    locale = "en_US"

    @abstractmethod
    def send(self, message, /):
        """
        Deliver message: a string or any rich renderable.
        """

    def __hash__(self):
        return id(self)

    def __eq__(self, other):
        return self is other


class DefaultSender(CommandSender):
    """
    Sender writing every message to a rich console (stdout unless given).
    """

    def __init__(self, console=None, /, *, locale="en_US"):
        self._console = console if console is not None else Console()
        self.locale = locale

    @property
    def console(self):
        return self._console

    def send(self, message, /):
        self._console.print(message)

    def __repr__(self):
        return f"DefaultSender(locale={self.locale!r})"


__all__ = (
    "CommandSender",
    "DefaultSender",
)
