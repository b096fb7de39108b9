#
# tests/unit/test_background.py
#
"""
Tests for BackgroundRun, the worker-thread wrapper used by embeddings.
"""

import os
import threading
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from runstream.config import RunnerConfig
from runstream.exceptions import AlreadyRunningError, InvalidTargetError
from runstream.runner import OutputLine, RunRequest, RunStatus, SubprocessProcessRunner
from runstream.runtime import BackgroundRun


def test_result_and_on_done(python_config: RunnerConfig, passing_script: Path):
    out: list[OutputLine] = []
    caller_thread = threading.get_ident()
    sink_threads: set[int] = set()
    on_done = MagicMock()

    def on_stdout(line: OutputLine) -> None:
        sink_threads.add(threading.get_ident())
        out.append(line)

    run = BackgroundRun(
        SubprocessProcessRunner(python_config),
        RunRequest(target=passing_script),
        on_stdout,
        lambda line: None,
        on_done=on_done,
    ).start()
    result = run.result(timeout=30)

    assert result.status is RunStatus.COMPLETED
    assert result.exit_code == 0
    assert run.done
    assert "Test Run Successful." in [line.text for line in out]
    assert caller_thread not in sink_threads
    on_done.assert_called_once()


def test_cancel_from_caller_thread(python_config: RunnerConfig, sleeper_script: Path):
    started = threading.Event()

    def on_stdout(line: OutputLine) -> None:
        if line.text == "started":
            started.set()

    runner = SubprocessProcessRunner(python_config)
    run = BackgroundRun(runner, RunRequest(target=sleeper_script), on_stdout, lambda line: None).start()

    assert started.wait(timeout=15)
    run.cancel()
    result = run.result(timeout=15)

    assert result.status is RunStatus.CANCELLED
    assert runner.is_running is False


def test_cancel_immediately_after_start(python_config: RunnerConfig, sleeper_script: Path):
    run = BackgroundRun(
        SubprocessProcessRunner(python_config),
        RunRequest(target=sleeper_script),
        lambda line: None,
        lambda line: None,
    )
    run.start()
    run.cancel()

    assert run.result(timeout=15).status is RunStatus.CANCELLED


def test_runner_errors_are_reraised(python_config: RunnerConfig, tmp_path: Path):
    run = BackgroundRun(
        SubprocessProcessRunner(python_config),
        RunRequest(target=tmp_path / "missing.dll"),
        lambda line: None,
        lambda line: None,
    ).start()

    with pytest.raises(InvalidTargetError):
        run.result(timeout=15)


def test_start_twice_rejected(python_config: RunnerConfig, passing_script: Path):
    run = BackgroundRun(
        SubprocessProcessRunner(python_config),
        RunRequest(target=passing_script),
        lambda line: None,
        lambda line: None,
    ).start()

    with pytest.raises(RuntimeError):
        run.start()
    run.result(timeout=30)


def _start_sleeper(runner: SubprocessProcessRunner, sleeper_script: Path) -> BackgroundRun:
    started = threading.Event()

    def on_stdout(line: OutputLine) -> None:
        if line.text == "started":
            started.set()

    run = BackgroundRun(runner, RunRequest(target=sleeper_script), on_stdout, lambda line: None).start()
    assert started.wait(timeout=15)
    return run


@pytest.mark.skipif(os.name != "posix", reason="relies on killing a sleeping child")
def test_finished_handle_does_not_cancel_next_run(
    python_config: RunnerConfig, passing_script: Path, sleeper_script: Path
):
    runner = SubprocessProcessRunner(python_config)
    first = BackgroundRun(runner, RunRequest(target=passing_script), lambda line: None, lambda line: None).start()
    assert first.result(timeout=30).status is RunStatus.COMPLETED

    second = _start_sleeper(runner, sleeper_script)

    assert first.cancel() is False
    time.sleep(0.3)
    assert not second.done
    assert runner.is_running

    assert second.cancel() is True
    assert second.result(timeout=15).status is RunStatus.CANCELLED


@pytest.mark.skipif(os.name != "posix", reason="relies on killing a sleeping child")
def test_rejected_handle_does_not_cancel_active_run(python_config: RunnerConfig, sleeper_script: Path):
    runner = SubprocessProcessRunner(python_config)
    active = _start_sleeper(runner, sleeper_script)

    rejected = BackgroundRun(runner, RunRequest(target=sleeper_script), lambda line: None, lambda line: None).start()
    with pytest.raises(AlreadyRunningError):
        rejected.result(timeout=15)

    rejected.cancel()
    time.sleep(0.3)
    assert not active.done
    assert runner.is_running

    active.cancel()
    assert active.result(timeout=15).status is RunStatus.CANCELLED
