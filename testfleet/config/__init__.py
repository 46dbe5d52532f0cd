from .loader import load_targets
from .types import ConfigError, TargetList, UnsupportedConfigFormatError

__all__ = ["load_targets", "TargetList", "ConfigError", "UnsupportedConfigFormatError"]
