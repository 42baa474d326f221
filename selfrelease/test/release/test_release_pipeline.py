from __future__ import annotations

from selfrelease.core.result import Err, Ok, Result
from selfrelease.release.errors import ReleaseError
from selfrelease.release.pipeline import Stage, StageFailure, run_pipeline


def _add(n: int):  # noqa: ANN202
    def handler(state: int) -> Result[int, ReleaseError]:
        return Ok(state + n)

    return handler


def _fail(state: int) -> Result[int, ReleaseError]:
    return Err(ReleaseError(kind="declined", message="no"))


def test_runs_stages_in_order() -> None:
    seen: list[str] = []

    result = run_pipeline(
        initial_state=0,
        stages=[Stage("one", _add(1)), Stage("two", _add(10))],
        on_stage=seen.append,
    )

    assert result == Ok(11)
    assert seen == ["one", "two"]


def test_stops_at_first_error() -> None:
    calls: list[int] = []

    def record(state: int) -> Result[int, ReleaseError]:
        calls.append(state)
        return Ok(state)

    result = run_pipeline(
        initial_state=1,
        stages=[Stage("one", _add(1)), Stage("two", _fail), Stage("three", record)],
    )

    assert isinstance(result, Err)
    assert result.error == StageFailure(
        stage="two",
        error=ReleaseError(kind="declined", message="no"),
        completed=("one",),
    )
    assert calls == []


def test_no_stages() -> None:
    assert run_pipeline(initial_state="s", stages=[]) == Ok("s")
