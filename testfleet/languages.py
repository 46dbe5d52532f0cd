from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass

ALL_FILTER = "all"


@dataclass(frozen=True)
class LanguageSpec:
    key: str
    name: str
    argv: tuple[str, ...]

    def invocation(self, target: str, filter: str = ALL_FILTER) -> list[str]:
        extra = [] if filter == ALL_FILTER else [filter]
        return [*self.argv, target, *extra]


LANGUAGES: tuple[LanguageSpec, ...] = (
    LanguageSpec("js", "JavaScript", ("node", "test/test.js")),
    LanguageSpec("php", "PHP", ("php", "-f", "test/test.php")),
    LanguageSpec("python", "Python", ("python", "test/test.py")),
    LanguageSpec("python3", "Python 3", ("python3", "test/test_async.py")),
)


def resolve_languages(
    selected: Collection[str] | None,
    table: tuple[LanguageSpec, ...] = LANGUAGES,
) -> tuple[LanguageSpec, ...]:
    """Restrict ``table`` to the ``selected`` keys, or the whole table if none are selected.

    Table order is kept regardless of the order of ``selected``.
    """
    if not selected:
        return table

    known = {lang.key for lang in table}
    unknown = sorted(set(selected) - known)
    if unknown:
        raise ValueError(f"Unknown language keys: {', '.join(unknown)}")

    return tuple(lang for lang in table if lang.key in selected)
