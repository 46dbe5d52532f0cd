from __future__ import annotations

import sys
import textwrap
from dataclasses import dataclass, field
from typing import TextIO

from testfleet.languages import LanguageSpec
from testfleet.runner import ProcessResult

INDENT = "    "


@dataclass(frozen=True)
class LanguageRun:
    language: LanguageSpec
    result: ProcessResult


@dataclass(frozen=True)
class UnitOutcome:
    target: str
    failed: bool
    has_warnings: bool
    warnings: tuple[str, ...]
    results: tuple[LanguageRun, ...]
    timed_out: bool = False
    timeout_s: float | None = field(default=None, compare=False)

    @classmethod
    def from_runs(cls, target: str, runs: tuple[LanguageRun, ...]) -> UnitOutcome:
        warnings: list[str] = []
        for run in runs:
            warnings.extend(run.result.warnings)

        return cls(
            target=target,
            failed=any(run.result.failed for run in runs),
            has_warnings=any(run.result.has_warnings for run in runs),
            warnings=tuple(warnings),
            results=runs,
        )

    @classmethod
    def timed_out_for(cls, target: str, seconds: float) -> UnitOutcome:
        return cls(
            target=target,
            failed=True,
            has_warnings=False,
            warnings=(),
            results=(),
            timed_out=True,
            timeout_s=seconds,
        )

    @property
    def status(self) -> str:
        if self.failed:
            return "FAIL"
        if self.has_warnings:
            return "WARN"
        return "OK"

    def render_explanation(self) -> str:
        blocks: list[str] = []

        if self.timed_out:
            blocks.append(f"\nFAILED {self.target} (timed out after {self.timeout_s}s)\n")

        for run in self.results:
            result = run.result
            if not (result.failed or result.has_warnings):
                continue

            label = "FAILED" if result.failed else "WARN"
            header = f"\n{label} {self.target} ({run.language.name}):\n"
            blocks.append(header + "\n" + textwrap.indent(result.combined_output, INDENT))

        return "".join(blocks)

    def explain(self, file: TextIO | None = None) -> None:
        print(self.render_explanation(), file=file or sys.stdout)


class Progress:
    """Completion tally shared by every unit of one run.

    Each target gets exactly one progress line: whichever of the unit or the
    coordinator reports it first wins, later reports are ignored.
    """

    def __init__(self, total: int) -> None:
        self.total = total
        self.done = 0
        self._reported: set[str] = set()

    def advance(self) -> str:
        self.done += 1
        if self.total < 1:
            return "100%"
        # Half-up, so 12.5% shows as 13%
        return f"{int(self.done / self.total * 100 + 0.5)}%"

    def report(self, outcome: UnitOutcome, out: TextIO | None = None) -> bool:
        if outcome.target in self._reported:
            return False
        self._reported.add(outcome.target)

        match outcome.status:
            case "FAIL":
                status = "FAIL"
            case "WARN":
                status = " ".join(outcome.warnings) if outcome.warnings else "WARN"
            case _:
                status = "OK"

        print(f"[{self.advance()}] Testing {outcome.target} {status}", file=out or sys.stdout)
        return True
