from .run import report, run_all, run_and_report
from .types import InternalError, RunSettings, RunSummary

__all__ = ["run_all", "run_and_report", "report", "RunSettings", "RunSummary", "InternalError"]
