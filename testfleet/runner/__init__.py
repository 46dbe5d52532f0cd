from .process import extract_warnings, run_process, strip_ansi
from .types import ProcessResult

__all__ = ["run_process", "extract_warnings", "strip_ansi", "ProcessResult"]
