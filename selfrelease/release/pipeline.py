"""Sequential pipeline of typed stage results.

Each stage takes the current state and returns ``Ok(next_state)`` or
``Err(ReleaseError)``. The runner stops at the first error and reports
which stage produced it.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from selfrelease.core.result import Err, Ok, Result
from selfrelease.release.errors import ReleaseError

S = TypeVar("S")

StageHandler = Callable[[S], Result[S, ReleaseError]]
StageObserver = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class Stage(Generic[S]):
    name: str
    handler: StageHandler[S]


@dataclass(frozen=True, slots=True)
class StageFailure:
    """The stage that aborted the run and why."""

    stage: str
    error: ReleaseError
    completed: tuple[str, ...] = ()


def run_pipeline(
    *,
    initial_state: S,
    stages: Sequence[Stage[S]],
    on_stage: StageObserver | None = None,
) -> Result[S, StageFailure]:
    current = initial_state
    completed: list[str] = []

    for stage in stages:
        if on_stage is not None:
            on_stage(stage.name)

        outcome = stage.handler(current)
        if isinstance(outcome, Err):
            return Err(
                StageFailure(stage=stage.name, error=outcome.error, completed=tuple(completed))
            )

        current = outcome.value
        completed.append(stage.name)

    return Ok(current)
