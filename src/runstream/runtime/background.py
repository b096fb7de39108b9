# src/runstream/runtime/background.py

"""
Runs a ProcessRunner on a worker thread so a UI or main thread never blocks.
"""

import asyncio
import threading
from collections.abc import Callable
from concurrent.futures import Future

import structlog

from runstream.runner.protocols import LineSink, ProcessRunner, RunRequest, RunResult
from runstream.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.background")


class BackgroundRun:
    """
    Drives one run on a dedicated daemon thread with its own event loop.

    Sinks and `on_done` are called on the worker thread. Hand-off to a UI
    thread (posting a message, a dispatcher call) belongs in the sinks.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        request: RunRequest,
        on_stdout: LineSink,
        on_stderr: LineSink,
        on_done: Callable[["Future[RunResult]"], None] | None = None,
    ):
        self.runner = runner
        self.request = request
        self._on_stdout = on_stdout
        self._on_stderr = on_stderr
        self._future: Future[RunResult] = Future()
        if on_done is not None:
            self._future.add_done_callback(on_done)
        self._cancel_requested = threading.Event()
        self._lock = threading.Lock()
        # Token of this run on the runner; None until the run has registered.
        self._token: int | None = None
        self._thread: threading.Thread | None = None

    @property
    def done(self) -> bool:
        return self._future.done()

    def start(self) -> "BackgroundRun":
        if self._thread is not None:
            raise RuntimeError("BackgroundRun can only be started once")
        self._thread = threading.Thread(
            target=self._worker,
            name=f"runstream-{self.request.target.name}",
            daemon=True,
        )
        self._thread.start()
        log.debug("Background run started", target=str(self.request.target), thread=self._thread.name)
        return self

    def cancel(self) -> bool:
        """
        Requests cancellation of this run only. Safe to call from any thread,
        at any time; once this run has finished it never touches the runner.
        """
        if self.done:
            return False
        with self._lock:
            self._cancel_requested.set()
            token = self._token
        if token is None:
            # Not registered yet; _drive replays the request once it is.
            return True
        return self.runner.cancel(token)

    def result(self, timeout: float | None = None) -> RunResult:
        """Blocks until the run finishes and returns its result or re-raises its error."""
        return self._future.result(timeout=timeout)

    def _worker(self) -> None:
        if not self._future.set_running_or_notify_cancel():
            return
        try:
            result = asyncio.run(self._drive())
        except BaseException as e:
            log.debug("Background run raised", error=str(e), error_type=type(e).__name__)
            self._future.set_exception(e)
        else:
            self._future.set_result(result)

    async def _drive(self) -> RunResult:
        task = asyncio.create_task(self.runner.run(self.request, self._on_stdout, self._on_stderr))
        # One yield lets the run take its first step: it either registers with
        # the runner or fails (e.g. AlreadyRunningError) without registering.
        await asyncio.sleep(0)
        if not task.done():
            with self._lock:
                self._token = self.runner.active_token
                replay = self._cancel_requested.is_set()
            if replay and self._token is not None:
                self.runner.cancel(self._token)
        try:
            return await task
        finally:
            with self._lock:
                self._token = None


# 🔼⚙️
