"""Output abstraction layer."""

from .console import (
    Confirmer,
    ConsoleProtocol,
    MockConsole,
    RichConfirmer,
    RichConsole,
    ScriptedConfirmer,
    Style,
)

__all__ = [
    "Confirmer",
    "ConsoleProtocol",
    "MockConsole",
    "RichConfirmer",
    "RichConsole",
    "ScriptedConfirmer",
    "Style",
]
