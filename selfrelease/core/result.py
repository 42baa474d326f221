"""Result type used by every fallible release operation.

Gates, git calls and host requests return ``Ok(value)`` or ``Err(error)``
instead of raising, so the pipeline can stop at the first failure and report
which stage produced it.

Usage:
    match gateway.current_branch():
        case Ok(branch):
            console.info(f"on {branch}")
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[E]
