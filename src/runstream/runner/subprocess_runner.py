#
# src/runstream/runner/subprocess_runner.py
#
"""
Runs the external test tool with asyncio.subprocess and streams its output line by line.
"""
import asyncio
import itertools
import os
import shlex
import signal
import threading
import time
from typing import Any

import structlog

from runstream.config.models import RunnerConfig
from runstream.exceptions import AlreadyRunningError, InvalidTargetError, SpawnFailureError
from runstream.runner.protocols import (
    ERROR_PREFIX,
    LineSink,
    OutputLine,
    ProcessRunner,
    RunRequest,
    RunResult,
    RunStatus,
    StreamName,
)

log = structlog.get_logger("runner.subprocess")

IS_POSIX = os.name == "posix"


class _LineEmitter:
    """Numbers lines for one stream and hands them to that stream's sink."""

    def __init__(self, stream: StreamName, sink: LineSink):
        self.stream = stream
        self.sink = sink
        self.count = 0

    def emit(self, text: str, synthetic: bool = False) -> None:
        line = OutputLine(text=text, stream=self.stream, index=self.count, synthetic=synthetic)
        self.count += 1
        self.sink(line)


class SubprocessProcessRunner(ProcessRunner):
    """
    Implements the ProcessRunner protocol on top of asyncio.create_subprocess_exec.

    One run at a time per instance. `cancel()` may be called from any thread.
    """

    def __init__(self, config: RunnerConfig | None = None) -> None:
        self.config = config if config is not None else RunnerConfig()
        # Held for the whole lifetime of a run.
        self._gate = threading.Lock()
        self._state_lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._cancel_event: asyncio.Event | None = None
        self._token: int | None = None
        self._tokens = itertools.count(1)
        self._log = log.bind(runner_id=id(self), executable=self.config.executable)

    @property
    def is_running(self) -> bool:
        return self._gate.locked()

    @property
    def active_token(self) -> int | None:
        """Token of the in-flight run, for targeting it with `cancel(token)`."""
        with self._state_lock:
            return self._token

    def build_command(self, request: RunRequest) -> list[str]:
        """Executable, then the target as a single argument, then default and extra args."""
        return [
            self.config.executable,
            str(request.target),
            *self.config.default_args,
            *request.extra_args,
        ]

    def cancel(self, token: int | None = None) -> bool:
        """
        Signals the in-flight run to stop. With a token, only the run that
        token belongs to is signalled; a stale token is a no-op.
        """
        with self._state_lock:
            loop, event, active = self._loop, self._cancel_event, self._token
        if loop is None or event is None:
            self._log.debug("Cancel requested but no run is active")
            return False
        if token is not None and token != active:
            self._log.debug("Cancel ignored, token does not match the active run", token=token, active_token=active)
            return False
        try:
            loop.call_soon_threadsafe(event.set)
        except RuntimeError:
            # Loop already closed; the run has finished.
            return False
        self._log.info("Cancellation requested", emoji_key="cancel")
        return True

    async def run(
        self,
        request: RunRequest,
        on_stdout: LineSink,
        on_stderr: LineSink,
    ) -> RunResult:
        # Everything up to the first await runs synchronously, so the run is
        # registered for cancel() as soon as the task has taken its first step.
        if not request.target.is_file() or not os.access(request.target, os.R_OK):
            self._log.error("Test target is not a readable file", target=str(request.target), emoji_key="fail")
            raise InvalidTargetError(request.target)

        if not self._gate.acquire(blocking=False):
            self._log.warning("Run rejected, another run is in progress", target=str(request.target))
            raise AlreadyRunningError()

        try:
            cancel_event = asyncio.Event()
            with self._state_lock:
                self._loop = asyncio.get_running_loop()
                self._cancel_event = cancel_event
                self._token = next(self._tokens)
            return await self._execute(
                request,
                cancel_event,
                _LineEmitter(StreamName.STDOUT, on_stdout),
                _LineEmitter(StreamName.STDERR, on_stderr),
            )
        finally:
            with self._state_lock:
                self._loop = None
                self._cancel_event = None
                self._token = None
            self._gate.release()

    async def _execute(
        self,
        request: RunRequest,
        cancel_event: asyncio.Event,
        out: _LineEmitter,
        err: _LineEmitter,
    ) -> RunResult:
        command = self.build_command(request)
        run_log = self._log.bind(command=shlex.join(command), target=str(request.target))
        run_log.info("Launching test runner", emoji_key="spawn")

        started = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.config.working_dir,
                limit=self.config.line_limit,
                **self._session_kwargs(),
            )
        except OSError as e:
            run_log.error("Failed to launch test runner", error=str(e), emoji_key="fail")
            self._deliver(err, f"{ERROR_PREFIX}{e}", err, synthetic=True)
            raise SpawnFailureError(self.config.executable, e) from e

        run_log = run_log.bind(pid=process.pid)
        run_log.debug("Test runner started")

        pumps = [
            asyncio.create_task(self._pump(process.stdout, out, err)),
            asyncio.create_task(self._pump(process.stderr, err, err)),
        ]
        waiter = asyncio.create_task(process.wait())
        canceller = asyncio.create_task(cancel_event.wait())

        try:
            done, _ = await asyncio.wait({waiter, canceller}, return_when=asyncio.FIRST_COMPLETED)
            cancelled = waiter not in done
            if not cancelled:
                # The child may exit while a grandchild still holds the pipes.
                while not canceller.done() and not all(pump.done() for pump in pumps):
                    open_pumps = [pump for pump in pumps if not pump.done()]
                    await asyncio.wait({canceller, *open_pumps}, return_when=asyncio.FIRST_COMPLETED)
                cancelled = not all(pump.done() for pump in pumps)
            if cancelled:
                self._kill(process, run_log)
                await process.wait()
                await self._drain(pumps, run_log)
        except asyncio.CancelledError:
            run_log.warning("Run task cancelled, killing test runner", emoji_key="cancel")
            self._kill(process, run_log)
            await process.wait()
            raise
        finally:
            canceller.cancel()
            waiter.cancel()
            for pump in pumps:
                pump.cancel()

        result = RunResult(
            status=RunStatus.CANCELLED if cancelled else RunStatus.COMPLETED,
            exit_code=None if cancelled else process.returncode,
            elapsed=time.monotonic() - started,
            pid=process.pid,
            stdout_lines=out.count,
            stderr_lines=err.count,
        )
        run_log.info(
            "Test runner finished",
            status=result.status.name,
            exit_code=result.exit_code,
            elapsed=round(result.elapsed, 3),
            emoji_key="cancel" if cancelled else "time",
        )
        return result

    async def _pump(
        self,
        reader: asyncio.StreamReader | None,
        emitter: _LineEmitter,
        err: _LineEmitter,
    ) -> None:
        """Reads one pipe to EOF, delivering each non-blank line in order."""
        if reader is None:
            return
        stream_name = emitter.stream.name.lower()
        # True while the remainder of an overlong line is still being discarded.
        skipping = False
        while True:
            try:
                raw = await reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                # EOF; a last line without a newline is still a line.
                if e.partial and not skipping:
                    self._deliver_raw(e.partial, emitter, err)
                break
            except asyncio.LimitOverrunError as e:
                if not skipping:
                    self._log.warning("Discarded overlong output line", stream=stream_name, limit=self.config.line_limit)
                    self._deliver(
                        err,
                        f"{ERROR_PREFIX}Discarded overlong {stream_name} line (over {self.config.line_limit} bytes)",
                        err,
                        synthetic=True,
                    )
                skipping = True
                # The data is left in the buffer; drop it and keep reading to the newline.
                await reader.read(max(e.consumed, 1))
                continue
            if skipping:
                skipping = False
                continue
            self._deliver_raw(raw, emitter, err)

    def _deliver_raw(self, raw: bytes, emitter: _LineEmitter, err: _LineEmitter) -> None:
        text = raw.decode(self.config.encoding, errors="replace").rstrip("\r\n")
        if text.strip():
            self._deliver(emitter, text, err)

    def _deliver(
        self,
        emitter: _LineEmitter,
        text: str,
        err: _LineEmitter,
        synthetic: bool = False,
    ) -> None:
        """Emits a line; a failing sink is reported to the stderr sink instead of aborting the run."""
        try:
            emitter.emit(text, synthetic=synthetic)
        except Exception as e:
            stream_name = emitter.stream.name.lower()
            self._log.warning("Line sink raised", stream=stream_name, error=str(e), exc_info=True)
            if emitter is not err:
                self._deliver(err, f"{ERROR_PREFIX}{stream_name} sink failed: {e}", err, synthetic=True)

    async def _drain(self, pumps: list[asyncio.Task], run_log: Any) -> None:
        """Lets the pumps flush what was already buffered, bounded by drain_timeout."""
        _, pending = await asyncio.wait(pumps, timeout=self.config.drain_timeout)
        if pending:
            run_log.warning("Output streams did not close after kill", pending=len(pending))
            for task in pending:
                task.cancel()

    @staticmethod
    def _session_kwargs() -> dict[str, Any]:
        # A new session lets _kill take down grandchildren holding the pipes.
        return {"start_new_session": True} if IS_POSIX else {}

    @staticmethod
    def _kill(process: asyncio.subprocess.Process, run_log: Any) -> None:
        """Kills the child's process group, which outlives the child if a grandchild is still in it."""
        try:
            if IS_POSIX:
                os.killpg(process.pid, signal.SIGKILL)
            elif process.returncode is None:
                process.kill()
        except ProcessLookupError:
            run_log.debug("Test runner and its process group already exited before kill")

# 🔼⚙️
