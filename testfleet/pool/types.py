from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class TaskState(Enum):
    QUEUED = auto()
    RUNNING = auto()
    COMPLETED = auto()
    TIMED_OUT = auto()
    FAILED = auto()


class PoolError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class TaskTimeoutError(PoolError):
    def __init__(self, index: int, seconds: float):
        super().__init__(f"Task #{index} timed out after {seconds}s")
        self.index = index
        self.seconds = seconds


@dataclass(frozen=True)
class TaskOutcome:
    index: int
    state: TaskState
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.state is TaskState.COMPLETED

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value
