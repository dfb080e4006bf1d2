"""Streaming execution engine shared by every runner backend.

Spawns a built :class:`~buildrunner.runner.models.Command`, drains stdout
and stderr concurrently line by line, redacts each line, appends it to the
build log in the working directory and returns the aggregated result.

Two reader tasks feed one :class:`asyncio.Queue`; lines are consumed in
the order their reads complete.  Line order within one stream is kept,
ordering across streams is not a real-time guarantee.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from typing import IO, TYPE_CHECKING

from buildrunner.runner.errors import RunnerError, RunnerTimeoutError, SpawnError
from buildrunner.runner.models import ExecutionResult
from buildrunner.utils.telemetry import (
    ATTR_EXIT_CODE,
    ATTR_PROGRAM,
    ATTR_WORK_DIR,
    get_tracer,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from buildrunner.runner.models import Command

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

LOG_FILE_NAME = "conda_build.log"
STREAM_LIMIT = 1024 * 1024
KILL_GRACE = 5.0

_STDOUT = "stdout"
_STDERR = "stderr"


def ordered_redactions(redactions: Mapping[str, str] | None) -> list[tuple[str, str]]:
    """Order replacements longest source first; ties keep mapping order.

    A secret that contains another secret is therefore masked as a whole.
    Empty sources are dropped.
    """
    if not redactions:
        return []
    items = [(src, dst) for src, dst in redactions.items() if src]
    return sorted(items, key=lambda item: len(item[0]), reverse=True)


def redact(line: str, replacements: list[tuple[str, str]]) -> str:
    for src, dst in replacements:
        line = line.replace(src, dst)
    return line


class BuildLog:
    """Append-only build log; write and flush failures only warn."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._file: IO[bytes] | None = None

    def __enter__(self) -> BuildLog:
        try:
            self._file = self.path.open("ab")
        except OSError as exc:
            raise RunnerError(f"Cannot open build log {self.path}: {exc}") from exc
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def write_line(self, line: str) -> None:
        if self._file is None:
            return
        try:
            self._file.write(line.encode() + b"\n")
        except OSError as exc:
            logger.warning("Failed to write to build log: %s", exc)

    def close(self) -> None:
        if self._file is None:
            return
        try:
            self._file.flush()
        except OSError as exc:
            logger.warning("Failed to flush build log: %s", exc)
        finally:
            try:
                self._file.close()
            except OSError as exc:
                logger.warning("Failed to close build log: %s", exc)
            self._file = None


async def execute(
    command: Command,
    work_dir: Path,
    redactions: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> ExecutionResult:
    """Run *command* to completion and capture its redacted output.

    Raises:
        SpawnError: The child process could not be created.
        RunnerTimeoutError: *timeout* elapsed; the child has been killed.
    """
    replacements = ordered_redactions(redactions)

    with _tracer.start_as_current_span("runner.execute") as span, BuildLog(work_dir / LOG_FILE_NAME) as log:
        span.set_attribute(ATTR_PROGRAM, command.program)
        span.set_attribute(ATTR_WORK_DIR, str(work_dir))

        logger.debug("Spawning %s in %s", command.argv, command.cwd)
        try:
            proc = await asyncio.create_subprocess_exec(
                command.program,
                *command.args,
                cwd=command.cwd,
                env={**os.environ, **command.env},
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT,
                # Own process group so a timeout can take down the whole script tree
                start_new_session=os.name == "posix",
            )
        except OSError as exc:
            raise SpawnError(f"Failed to spawn {command.program}: {exc}") from exc

        try:
            exit_code, stdout, stderr = await asyncio.wait_for(
                _communicate(proc, log, replacements),
                timeout=timeout,
            )
        except TimeoutError:
            await _kill(proc)
            raise RunnerTimeoutError(timeout or 0.0) from None
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        span.set_attribute(ATTR_EXIT_CODE, exit_code)

    return ExecutionResult(exit_code=exit_code, stdout=stdout, stderr=stderr)


async def _communicate(
    proc: asyncio.subprocess.Process,
    log: BuildLog,
    replacements: list[tuple[str, str]],
) -> tuple[int, bytes, bytes]:
    """Drain both pipes, then collect the exit status."""
    stdout, stderr = await _drain(proc, log, replacements)
    return await proc.wait(), stdout, stderr


async def _drain(
    proc: asyncio.subprocess.Process,
    log: BuildLog,
    replacements: list[tuple[str, str]],
) -> tuple[bytes, bytes]:
    """Consume both pipes until each has reported end-of-stream."""
    assert proc.stdout is not None and proc.stderr is not None

    queue: asyncio.Queue[tuple[str, bytes | None]] = asyncio.Queue()
    readers = [
        asyncio.create_task(_read_stream(proc.stdout, _STDOUT, queue)),
        asyncio.create_task(_read_stream(proc.stderr, _STDERR, queue)),
    ]
    captured: dict[str, list[bytes]] = {_STDOUT: [], _STDERR: []}
    closed = {_STDOUT: False, _STDERR: False}

    try:
        while not all(closed.values()):
            name, raw = await queue.get()
            if raw is None:
                closed[name] = True
                continue

            line = redact(_decode_line(raw), replacements)
            captured[name].append(line.encode() + b"\n")
            log.write_line(line)
            logger.info("%s", line)
    finally:
        for task in readers:
            task.cancel()
        await asyncio.gather(*readers, return_exceptions=True)

    return b"".join(captured[_STDOUT]), b"".join(captured[_STDERR])


async def _read_stream(
    stream: asyncio.StreamReader,
    name: str,
    queue: asyncio.Queue[tuple[str, bytes | None]],
) -> None:
    """Push every line of *stream* to *queue*, then an end-of-stream marker.

    A failed read ends this stream only; the other stream keeps draining.
    """
    try:
        while (line := await _read_line(stream)) is not None:
            await queue.put((name, line))
    except (OSError, asyncio.IncompleteReadError) as exc:
        logger.warning("Error reading %s: %s", name, exc)
    finally:
        queue.put_nowait((name, None))


async def _read_line(stream: asyncio.StreamReader) -> bytes | None:
    """Read one line, tolerating lines longer than the stream limit."""
    parts: list[bytes] = []
    while True:
        try:
            return b"".join(parts) + await stream.readuntil(b"\n")
        except asyncio.IncompleteReadError as exc:
            # EOF: a final line without terminator still counts
            if parts or exc.partial:
                return b"".join(parts) + exc.partial
            return None
        except asyncio.LimitOverrunError as exc:
            parts.append(await stream.readexactly(max(exc.consumed, 1)))


def _decode_line(raw: bytes) -> str:
    line = raw.removesuffix(b"\n").removesuffix(b"\r")
    return line.decode(errors="replace")


async def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill the child and everything it started, then reap it."""
    try:
        if os.name == "posix":
            os.killpg(proc.pid, signal.SIGKILL)
        elif proc.returncode is None:
            proc.kill()
    except (ProcessLookupError, PermissionError):
        pass

    try:
        await asyncio.wait_for(proc.wait(), timeout=KILL_GRACE)
    except TimeoutError:
        logger.warning("Process %s did not exit %ss after being killed", proc.pid, KILL_GRACE)
