from __future__ import annotations

from dataclasses import dataclass

from testfleet.executor import UnitOutcome


@dataclass(frozen=True)
class RunSettings:
    # Keeps the number of live interpreters and pipes under typical OS limits
    max_concurrency: int = 50
    unit_timeout: float = 120.0
    kill_after: float | None = None
    grace_period: float = 10.0


@dataclass(frozen=True)
class RunSummary:
    outcomes: tuple[UnitOutcome, ...]

    @property
    def failed(self) -> list[UnitOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def warned(self) -> list[UnitOutcome]:
        return [o for o in self.outcomes if not o.failed and o.has_warnings]

    @property
    def succeeded(self) -> list[UnitOutcome]:
        return [o for o in self.outcomes if not o.failed and not o.has_warnings]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


class InternalError(Exception):
    def __init__(self, target: str, cause: BaseException):
        super().__init__(f"Unexpected error while testing {target}: {cause!r}")
        self.target = target
        self.cause = cause
