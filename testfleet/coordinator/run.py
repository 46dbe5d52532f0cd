from __future__ import annotations

import asyncio
import functools
import logging
import sys
from collections.abc import Collection, Iterable
from typing import TextIO

from testfleet.executor import Progress, Runner, UnitOutcome, run_unit
from testfleet.languages import ALL_FILTER, LANGUAGES, LanguageSpec
from testfleet.pool import TaskOutcome, TaskPool, TaskState
from testfleet.runner import run_process

from .types import InternalError, RunSettings, RunSummary

logger = logging.getLogger(__name__)


async def run_all(
    targets: Iterable[str],
    filter: str = ALL_FILTER,
    selected: Collection[str] | None = None,
    *,
    settings: RunSettings = RunSettings(),
    languages: tuple[LanguageSpec, ...] = LANGUAGES,
    runner: Runner | None = None,
    out: TextIO | None = None,
) -> RunSummary:
    """Test every target through one bounded pool and collect one outcome per target.

    A unit that times out is recorded as failed as soon as its slot times
    out; its processes are left to finish on their own unless
    ``settings.kill_after`` bounds them. Any other error escaping a unit is a
    bug: the first one is raised as :class:`InternalError` without waiting
    for the rest of the run.
    """
    ordered = list(dict.fromkeys(targets))
    if runner is None:
        runner = functools.partial(run_process, kill_after=settings.kill_after)

    pool = TaskPool(settings.max_concurrency, settings.unit_timeout)
    progress = Progress(len(ordered))

    def on_settled(target: str, future: asyncio.Future[TaskOutcome]) -> None:
        if not future.cancelled() and future.result().state is TaskState.TIMED_OUT:
            logger.warning("%s timed out after %ss", target, settings.unit_timeout)
            progress.report(UnitOutcome.timed_out_for(target, settings.unit_timeout), out)

    futures = []
    for target in ordered:
        future = pool.submit(
            functools.partial(
                run_unit,
                target,
                filter,
                selected,
                languages=languages,
                runner=runner,
                progress=progress,
                out=out,
            )
        )
        future.add_done_callback(functools.partial(on_settled, target))
        futures.append(future)

    outcomes: dict[int, UnitOutcome] = {}
    for next_settled in asyncio.as_completed(futures):
        outcome = await next_settled
        target = ordered[outcome.index]
        match outcome.state:
            case TaskState.COMPLETED:
                outcomes[outcome.index] = outcome.value
            case TaskState.TIMED_OUT:
                outcomes[outcome.index] = UnitOutcome.timed_out_for(target, settings.unit_timeout)
            case _:
                assert outcome.error is not None
                raise InternalError(target, outcome.error) from outcome.error

    await pool.join()
    return RunSummary(tuple(outcomes[index] for index in range(len(ordered))))


def report(summary: RunSummary, out: TextIO | None = None) -> None:
    stream = out or sys.stdout
    failed = summary.failed
    warned = summary.warned
    succeeded = summary.succeeded

    print(file=stream)

    for outcome in warned:
        outcome.explain(stream)
    for outcome in failed:
        outcome.explain(stream)

    print(file=stream)

    if failed:
        print(f"FAIL {[o.target for o in failed]}", file=stream)
    if warned:
        print(f"WARN {[o.target for o in warned]}", file=stream)

    print(file=stream)

    parts = []
    if failed:
        parts.append(f"{len(failed)} failed")
    if succeeded:
        parts.append(f"{len(succeeded)} succeeded")
    if warned:
        parts.append(f"{len(warned)} warnings")

    print(f"All done, {', '.join(parts)}", file=stream)


async def run_and_report(
    targets: Iterable[str],
    filter: str = ALL_FILTER,
    selected: Collection[str] | None = None,
    *,
    settings: RunSettings = RunSettings(),
    languages: tuple[LanguageSpec, ...] = LANGUAGES,
    runner: Runner | None = None,
    out: TextIO | None = None,
) -> int:
    summary = await run_all(
        targets,
        filter,
        selected,
        settings=settings,
        languages=languages,
        runner=runner,
        out=out,
    )
    report(summary, out)

    if summary.failed:
        # Let buffered output reach external log capture before exiting
        (out or sys.stdout).flush()
        await asyncio.sleep(settings.grace_period)

    return summary.exit_code
