#
# tests/unit/test_api.py
#
"""
Tests for the blocking run_tests() boundary.
"""

import os
from pathlib import Path

import pytest

from runstream.api import EXIT_INVALID_TARGET, EXIT_SPAWN_FAILURE, run_tests, shell_exit_code
from runstream.config import RunnerConfig
from runstream.runner import ERROR_PREFIX, StreamName


def test_returns_exit_code_and_lines(python_config: RunnerConfig, passing_script: Path):
    exit_code, lines = run_tests(passing_script, config=python_config)

    assert exit_code == 0
    stdout = [line.text for line in lines if line.stream is StreamName.STDOUT]
    stderr = [line.text for line in lines if line.stream is StreamName.STDERR]
    assert stdout[-1] == "Test Run Successful."
    assert stderr == ["warning: test host is slow"]


def test_passes_child_exit_code_and_args(python_config: RunnerConfig, exit_with_arg_script: Path):
    exit_code, lines = run_tests(str(exit_with_arg_script), ["--flag", "4"], config=python_config)

    assert exit_code == 4
    assert lines[0].text == "ARGS --flag 4"


def test_missing_target_sentinel(python_config: RunnerConfig, tmp_path: Path):
    exit_code, lines = run_tests(tmp_path / "nope.dll", config=python_config)

    assert exit_code == EXIT_INVALID_TARGET
    assert lines == []


def test_spawn_failure_sentinel(passing_script: Path):
    config = RunnerConfig(executable="definitely-not-a-test-runner-3f9a")

    exit_code, lines = run_tests(passing_script, config=config)

    assert exit_code == EXIT_SPAWN_FAILURE
    assert len(lines) == 1
    assert lines[0].text.startswith(ERROR_PREFIX)


def test_shell_exit_code_maps_signals():
    assert shell_exit_code(0) == 0
    assert shell_exit_code(3) == 3
    assert shell_exit_code(-9) == 137
    assert shell_exit_code(-15) == 143


@pytest.mark.skipif(os.name != "posix", reason="signal exit statuses are POSIX only")
def test_signal_killed_child_maps_to_shell_code(python_config: RunnerConfig, make_script):
    script = make_script("import os, signal\nos.kill(os.getpid(), signal.SIGTERM)\n")

    exit_code, _ = run_tests(script, config=python_config)

    assert exit_code == 143
