from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Sequence

from .types import ProcessResult

logger = logging.getLogger(__name__)

ANSI_ESCAPE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
WARNING_MARKER = re.compile(r"\[[^\]]+\]")
READ_CHUNK = 4096


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE.sub("", text)


def extract_warnings(stderr: str) -> tuple[str, ...]:
    return tuple(WARNING_MARKER.findall(strip_ansi(stderr)))


async def _pump(
    stream: asyncio.StreamReader, combined: list[bytes], own: list[bytes] | None
) -> None:
    while True:
        chunk = await stream.read(READ_CHUNK)
        if not chunk:
            return
        combined.append(chunk)
        if own is not None:
            own.append(chunk)


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


async def run_process(
    argv: Sequence[str], *, kill_after: float | None = None
) -> ProcessResult:
    """Run one command to completion and capture its output the way a terminal shows it.

    stdout and stderr are drained concurrently into a single combined buffer,
    chunk by chunk in arrival order. stderr is additionally kept on its own
    for warning extraction; any stderr data at all marks the result as
    having warnings.

    If ``kill_after`` is given and the process outlives it, the process is
    killed and the result is a failure. Otherwise the process is never
    killed, except when the awaiting coroutine itself is cancelled.
    """
    start = time.monotonic()
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        logger.debug("failed to spawn %s: %s", argv, exc)
        return ProcessResult(
            failed=True,
            combined_output=f"Failed to run {' '.join(argv)}: {exc}\n",
            has_warnings=False,
            warnings=(),
            returncode=None,
            duration_s=time.monotonic() - start,
        )

    combined: list[bytes] = []
    stderr: list[bytes] = []
    assert proc.stdout is not None and proc.stderr is not None
    readers = asyncio.gather(
        _pump(proc.stdout, combined, None),
        _pump(proc.stderr, combined, stderr),
    )

    killed = False
    try:
        try:
            await asyncio.wait_for(asyncio.shield(readers), timeout=kill_after)
        except TimeoutError:
            killed = True
            logger.warning("killing %s after %ss", argv, kill_after)
            proc.kill()
            await readers
        returncode = await proc.wait()
    except asyncio.CancelledError:
        try:
            if proc.returncode is None:
                proc.kill()
            await proc.wait()
        finally:
            readers.cancel()
        raise

    output = _decode(combined)
    if killed:
        output += f"[killed] process exceeded {kill_after}s\n"

    return ProcessResult(
        failed=killed or returncode != 0,
        combined_output=output,
        has_warnings=len(stderr) > 0,
        warnings=extract_warnings(_decode(stderr)),
        returncode=returncode,
        duration_s=time.monotonic() - start,
    )
