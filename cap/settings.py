"""
Process-wide engine configuration.

One Settings instance belongs to a CommandManager and is shared by every command
registered with it, so the separator and case sensitivity never vary per command.
"""
import dataclasses
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Immutable engine settings.

    separator: character between a flag name and its inline value (`-p=value`);
        whitespace means the value is the following token.
    case_sensitive: whether command and flag names are compared as typed.
    debug: attach tracebacks when routed faults are logged.
    completion_ttl: seconds a completion cache entry lives after insertion.
    completion_sweep: seconds between automatic sweeps of expired entries.
    completion_capacity: optional bound on cached senders (oldest evicted first).
    help_page_size / help_first_page_size: entries per help menu page; the first
        page may be shorter to leave room for a header.
    """
    separator: str = "="
    case_sensitive: bool = False
    debug: bool = False
    completion_ttl: float = 120.0
    completion_sweep: float = 300.0
    completion_capacity: int | None = None
    help_page_size: int = 10
    help_first_page_size: int | None = None

    def __post_init__(self):
        if not isinstance(self.separator, str) or len(self.separator) != 1:
            raise ValueError("settings separator must be a single character")
        if self.separator == "-" or self.separator in "\"'\\":
            raise ValueError(f"settings separator cannot be {self.separator!r}")
        if self.completion_ttl <= 0:
            raise ValueError("settings completion-ttl must be positive")
        if self.completion_sweep <= 0:
            raise ValueError("settings completion-sweep must be positive")
        if self.completion_capacity is not None and self.completion_capacity < 1:
            raise ValueError("settings completion-capacity must be at least 1")
        if self.help_page_size < 1:
            raise ValueError("settings help-page-size must be at least 1")
        if self.help_first_page_size is not None and self.help_first_page_size < 1:
            raise ValueError("settings help-first-page-size must be at least 1")

    @property
    def whitespace_separated(self):
        return self.separator.isspace()

    @property
    def first_page_size(self):
        return self.help_first_page_size if self.help_first_page_size is not None else self.help_page_size

    def replace(self, **changes):
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)


__all__ = (
    "Settings",
)
