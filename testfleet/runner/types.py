from dataclasses import dataclass


@dataclass(frozen=True)
class ProcessResult:
    failed: bool
    combined_output: str
    has_warnings: bool
    warnings: tuple[str, ...]
    returncode: int | None
    duration_s: float
