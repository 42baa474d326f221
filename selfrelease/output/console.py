"""Console output and confirmation prompts.

This module provides protocols for console output and yes/no confirmation
that can be implemented by different backends (Rich for the terminal,
in-memory fakes for tests). The release pipeline only talks to these
protocols, so every confirmation gate can be driven from a test.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "Confirmer",
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConfirmer",
    "RichConsole",
    "ScriptedConfirmer",
    "Style",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()  # Green, positive message
    ERROR = auto()  # Red, error message
    WARNING = auto()  # Yellow, warning message
    INFO = auto()  # Cyan, informational
    DIM = auto()  # Dimmed/muted text
    DEBUG = auto()  # Only shown with --debug


class ConsoleProtocol(Protocol):
    """Protocol for console output.

    Implementations can use Rich or capture output for testing.
    """

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message with optional styling."""
        ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None:
        """Print a diagnostic line; silent unless debug output is enabled."""
        ...

    def newline(self) -> None: ...


class Confirmer(Protocol):
    """Capability for yes/no questions asked of the operator."""

    def confirm(self, prompt: str) -> bool:
        """Ask ``prompt``; True means the operator agreed."""
        ...


class RichConsole:
    """Console implementation using the Rich library.

    Writes to stderr by default: release progress is status output, and
    stdout stays free for anything a caller wants to pipe.
    """

    def __init__(self, *, debug: bool = False, stderr: bool = True) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console
        from rich.markup import escape

        self._console = Console(stderr=stderr, highlight=False)
        # Message text is literal, never markup.
        self._escape = escape
        self._debug = debug
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DIM: "dim",
            Style.DEBUG: "dim italic",
        }

    @property
    def rich(self) -> Console:
        """The underlying rich Console (shared with RichConfirmer)."""
        return self._console

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(self._escape(message), style=rich_style)
        else:
            self._console.print(self._escape(message))

    def success(self, message: str) -> None:
        self._console.print(f"[green]OK[/green] {self._escape(message)}")

    def error(self, message: str) -> None:
        self._console.print(f"[red bold]error:[/red bold] {self._escape(message)}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]warning:[/yellow] {self._escape(message)}")

    def info(self, message: str) -> None:
        self._console.print(f"[cyan]info:[/cyan] {self._escape(message)}")

    def debug(self, message: str) -> None:
        if self._debug:
            self._console.print(f"debug: {message}", style="dim italic", markup=False)

    def newline(self) -> None:
        self._console.print()


class RichConfirmer:
    """Confirmer backed by ``rich.prompt.Confirm``.

    Defaults to "yes" on a bare Enter.
    """

    def __init__(self, console: RichConsole | None = None, *, default: bool = True) -> None:
        self._console = console.rich if console is not None else None
        self._default = default

    def confirm(self, prompt: str) -> bool:
        from rich.prompt import Confirm

        return Confirm.ask(prompt, console=self._console, default=self._default)


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    """Factory for empty outputs list (helps type inference)."""
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def debug(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"debug: {message}", Style.DEBUG))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    # Test helper methods

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        """All output as a single newline-separated string."""
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        """Find all outputs containing a substring."""
        return [o for o in self.outputs if substring in o.message]


def _empty_prompts() -> list[str]:
    return []


@dataclass
class ScriptedConfirmer:
    """Confirmer that answers from a fixed script, for tests.

    Once the script runs out every further question is answered with
    ``default``. Every prompt is recorded in ``prompts``.
    """

    answers: list[bool] = field(default_factory=list)
    default: bool = True
    prompts: list[str] = field(default_factory=_empty_prompts)

    @classmethod
    def always(cls, answer: bool) -> ScriptedConfirmer:
        return cls(answers=[], default=answer)

    @classmethod
    def sequence(cls, answers: Iterable[bool], *, default: bool = True) -> ScriptedConfirmer:
        return cls(answers=list(answers), default=default)

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        if self.answers:
            return self.answers.pop(0)
        return self.default
