import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from runstream.config import RunnerConfig

# Each fake "test runner" is a Python script passed as the target, with the
# interpreter standing in for the test-runner executable.
PASSING_RUN = """
    import sys
    print("Starting test execution, please wait...")
    print("Passed SampleTests.Adds [1 ms]")
    print("")
    print("   ")
    print("Passed SampleTests.Subtracts [2 ms]")
    print("Total tests: 2")
    print("Test Run Successful.")
    sys.stderr.write("warning: test host is slow\\n")
    sys.exit(0)
"""

FAILING_RUN = """
    import sys
    print("Failed SampleTests.Divides [3 ms]")
    print("Total tests: 1")
    print("Test Run Failed.")
    sys.exit(1)
"""

EXIT_WITH_ARG = """
    import sys
    print("ARGS " + " ".join(sys.argv[1:]))
    sys.exit(int(sys.argv[-1]))
"""

ECHO_ARGS = """
    import sys
    print("ARGS " + " ".join(sys.argv[1:]))
"""

MANY_LINES = """
    import sys
    for i in range(200):
        print(f"out {i}")
        sys.stderr.write(f"err {i}\\n")
"""

SLEEP_FOREVER = """
    import time
    print("buffered line", flush=True)
    print("started", flush=True)
    time.sleep(3600)
"""


@pytest.fixture
def make_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Writes a fake test-runner script and returns its path."""

    def _make(body: str, name: str = "fake_tests.py") -> Path:
        script = tmp_path / name
        script.write_text(textwrap.dedent(body), encoding="utf-8")
        return script

    return _make


@pytest.fixture
def python_config() -> RunnerConfig:
    """Runner config that launches the current interpreter as the test runner."""
    return RunnerConfig(executable=sys.executable, drain_timeout=5.0)


@pytest.fixture
def passing_script(make_script) -> Path:
    return make_script(PASSING_RUN, "passing_tests.py")


@pytest.fixture
def failing_script(make_script) -> Path:
    return make_script(FAILING_RUN, "failing_tests.py")


@pytest.fixture
def sleeper_script(make_script) -> Path:
    return make_script(SLEEP_FOREVER, "hanging_tests.py")


@pytest.fixture
def exit_with_arg_script(make_script) -> Path:
    """Echoes its arguments and exits with the last one as the code."""
    return make_script(EXIT_WITH_ARG, "exit_code_tests.py")


@pytest.fixture
def echo_args_script(make_script) -> Path:
    return make_script(ECHO_ARGS, "echo_args_tests.py")


@pytest.fixture
def many_lines_script(make_script) -> Path:
    return make_script(MANY_LINES, "chatty_tests.py")
