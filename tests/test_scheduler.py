"""Unit tests for Scheduler and outcome logging."""

import logging
from typing import List

import pytest

from prefix_list_monitor.cli import (
    FetchFailed,
    OutcomeKind,
    ReconciliationOutcome,
    RemoteError,
    Scheduler,
    VersionConflict,
    log_outcome,
)


class StopLoop(Exception):
    """Raised by the fake sleep to break out of continuous mode."""


class ScriptedReconciler:
    """Returns queued outcomes (or raises queued exceptions) per cycle."""

    def __init__(self, results: List[object]):
        self._results = list(results)
        self.calls = 0

    def reconcile(self) -> ReconciliationOutcome:
        self.calls += 1
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result  # type: ignore[return-value]


def make_sleep(max_calls: int, record: List[float]):
    def sleep(seconds: float) -> None:
        record.append(seconds)
        if len(record) >= max_calls:
            raise StopLoop()

    return sleep


UPDATED = ReconciliationOutcome.updated("5.6.7.8", "5.6.7.8/32", 1, 4)
UNCHANGED = ReconciliationOutcome.unchanged("5.6.7.8", "5.6.7.8/32")


def test_once_mode_runs_single_cycle_without_sleeping() -> None:
    reconciler = ScriptedReconciler([UPDATED])
    sleeps: List[float] = []
    scheduler = Scheduler(reconciler, sleep=make_sleep(1, sleeps))  # type: ignore[arg-type]

    scheduler.run(300, once=True)

    assert reconciler.calls == 1
    assert sleeps == []


def test_once_mode_returns_even_when_cycle_fails() -> None:
    failed = ReconciliationOutcome.failed(RemoteError("boom"), "5.6.7.8", "5.6.7.8/32")
    reconciler = ScriptedReconciler([failed])
    scheduler = Scheduler(reconciler, sleep=make_sleep(1, []))  # type: ignore[arg-type]

    scheduler.run(300, once=True)

    assert reconciler.calls == 1


def test_continuous_mode_sleeps_interval_between_cycles() -> None:
    reconciler = ScriptedReconciler([UPDATED, UNCHANGED, UNCHANGED])
    sleeps: List[float] = []
    scheduler = Scheduler(reconciler, sleep=make_sleep(3, sleeps))  # type: ignore[arg-type]

    with pytest.raises(StopLoop):
        scheduler.run(120, once=False)

    assert reconciler.calls == 3
    assert sleeps == [120, 120, 120]


def test_continuous_mode_survives_failures_and_exceptions(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Neither failed outcomes nor unexpected exceptions stop the loop."""
    conflict = ReconciliationOutcome.failed(VersionConflict("moved"), "5.6.7.8", "5.6.7.8/32")
    reconciler = ScriptedReconciler([conflict, RuntimeError("unexpected"), UPDATED])
    sleeps: List[float] = []
    scheduler = Scheduler(reconciler, sleep=make_sleep(3, sleeps))  # type: ignore[arg-type]

    with caplog.at_level(logging.DEBUG), pytest.raises(StopLoop):
        scheduler.run(60)

    assert reconciler.calls == 3
    tracebacks = [
        r for r in caplog.records if r.levelno == logging.ERROR and r.exc_info is not None
    ]
    assert len(tracebacks) == 1
    assert isinstance(tracebacks[0].exc_info[1], RuntimeError)


def test_run_cycle_returns_none_on_unexpected_exception() -> None:
    scheduler = Scheduler(ScriptedReconciler([ValueError("bad")]))  # type: ignore[arg-type]

    assert scheduler.run_cycle() is None


def test_run_cycle_returns_outcome() -> None:
    scheduler = Scheduler(ScriptedReconciler([UPDATED]))  # type: ignore[arg-type]

    outcome = scheduler.run_cycle()

    assert outcome is not None
    assert outcome.kind == OutcomeKind.UPDATED


# =============================================================================
# Outcome Logging
# =============================================================================


def test_version_conflict_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    outcome = ReconciliationOutcome.failed(VersionConflict("moved"), "5.6.7.8", "5.6.7.8/32")

    with caplog.at_level(logging.DEBUG):
        log_outcome(outcome)

    assert [r.levelno for r in caplog.records] == [logging.WARNING]
    assert "5.6.7.8/32" in caplog.text


def test_remote_error_logs_error(caplog: pytest.LogCaptureFixture) -> None:
    outcome = ReconciliationOutcome.failed(RemoteError("AccessDenied"), "5.6.7.8", "5.6.7.8/32")

    with caplog.at_level(logging.DEBUG):
        log_outcome(outcome)

    assert [r.levelno for r in caplog.records] == [logging.ERROR]
    assert "5.6.7.8/32" in caplog.text


def test_fetch_failure_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    outcome = ReconciliationOutcome.failed(FetchFailed("timed out"))

    with caplog.at_level(logging.DEBUG):
        log_outcome(outcome)

    assert [r.levelno for r in caplog.records] == [logging.WARNING]


def test_updated_logs_info(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG):
        log_outcome(UPDATED)

    assert [r.levelno for r in caplog.records] == [logging.INFO]
    assert "replaced 1 old entries" in caplog.text
