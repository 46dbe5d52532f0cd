from .types import LanguageRun, Progress, UnitOutcome
from .unit import Runner, run_unit

__all__ = ["run_unit", "Runner", "UnitOutcome", "LanguageRun", "Progress"]
