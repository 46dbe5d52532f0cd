from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Collection, Sequence
from typing import TextIO

from testfleet.languages import ALL_FILTER, LANGUAGES, LanguageSpec, resolve_languages
from testfleet.runner import ProcessResult, run_process

from .types import LanguageRun, Progress, UnitOutcome

logger = logging.getLogger(__name__)

Runner = Callable[[Sequence[str]], Awaitable[ProcessResult]]


async def run_unit(
    target: str,
    filter: str = ALL_FILTER,
    selected: Collection[str] | None = None,
    *,
    languages: tuple[LanguageSpec, ...] = LANGUAGES,
    runner: Runner = run_process,
    progress: Progress | None = None,
    out: TextIO | None = None,
) -> UnitOutcome:
    """Test one target in every selected language, one language at a time.

    Runs for the same target must never overlap: the test scripts share the
    target's request nonces, and interleaved runs would invalidate them.
    """
    scheduled = resolve_languages(selected, languages)
    runs: list[LanguageRun] = []

    for language in scheduled:
        argv = language.invocation(target, filter)
        logger.debug("%s: running %s", target, argv)
        result = await runner(argv)
        runs.append(LanguageRun(language, result))

    outcome = UnitOutcome.from_runs(target, tuple(runs))
    if progress is None:
        progress = Progress(1)
    progress.report(outcome, out)
    return outcome
