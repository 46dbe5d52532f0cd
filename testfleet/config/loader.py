import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml

from .types import ConfigError, TargetList, UnsupportedConfigFormatError

logger = logging.getLogger(__name__)

BUILD_HINT = "please run `npm run build` to generate it"


def load_targets(path: str | Path) -> TargetList:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"No {pure_path.name} found at {pure_path}, {BUILD_HINT}")

    if not pure_path.is_file():
        raise ConfigError(f"Target list path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt)
    targets = _build_target_list(pure_path, raw_file)
    logger.debug("loaded %d targets from %s", len(targets), pure_path)
    return targets


def _detect_format(path: Path) -> str:
    fmt = path.suffix
    match fmt:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case _:
            raise UnsupportedConfigFormatError(
                f"Non supported file extension: {fmt}\n Expected format: .json, .yml/.yaml, .toml"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    match fmt:
        case "yaml":
            try:
                raw_file = yaml.safe_load(text)
            except yaml.YAMLError as exc:
                raise ConfigError(f"{path}: invalid YAML, {BUILD_HINT}") from exc
        case "toml":
            try:
                raw_file = tomllib.loads(text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"{path}: invalid TOML, {BUILD_HINT}") from exc
        case "json":
            try:
                raw_file = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"{path}: invalid JSON, {BUILD_HINT}") from exc
        case _:
            raise AssertionError("Unreachable")

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: parsed successfully but top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _build_target_list(path: Path, raw: Mapping[str, Any]) -> TargetList:
    if "ids" not in raw:
        raise ConfigError(f"{path}: missing 'ids' field, {BUILD_HINT}")

    ids = raw["ids"]
    if not isinstance(ids, list):
        raise ConfigError(f"{path}: 'ids' must be a list, got {type(ids)}")

    if len(ids) < 1:
        raise ConfigError(f"{path}: 'ids' must name at least one target")

    targets: list[str] = []
    seen: set[str] = set()

    for item in ids:
        if not isinstance(item, str):
            raise ConfigError(f"{path}: target id must be a string, got {type(item)}")

        target = item.strip()

        if len(target) < 1:
            raise ConfigError(f"{path}: a target id can't be empty")

        # Duplicates keep their first position
        if target in seen:
            continue

        targets.append(target)
        seen.add(target)

    return TargetList(tuple(targets))
