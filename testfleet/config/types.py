from dataclasses import dataclass


@dataclass(frozen=True)
class TargetList:
    targets: tuple[str, ...]

    def __iter__(self):
        yield from self.targets

    def __len__(self):
        return len(self.targets)

    def ids(self) -> list[str]:
        return list(self.targets)


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedConfigFormatError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
