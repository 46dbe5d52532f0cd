from .pool import Task, TaskPool
from .types import PoolError, TaskOutcome, TaskState, TaskTimeoutError

__all__ = ["TaskPool", "Task", "TaskOutcome", "TaskState", "PoolError", "TaskTimeoutError"]
