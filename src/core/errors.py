"""Configuration error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


class ConfigError(Exception):
    """Raised when configuration parsing or validation fails."""


class ConfigFileError(ConfigError):
    """The configuration file exists but cannot be read or parsed."""


class ConfigParseError(ConfigError):
    """A value cannot be coerced to the type declared for its key."""

    def __init__(self, message: str, *, key: str, source: str) -> None:
        super().__init__(message)
        self.key = key
        self.source = source


@dataclass(frozen=True)
class Violation:
    """Single validation rule failure."""

    section: str
    field: str
    message: str


SECTION_ORDER = ("bot", "docker", "logging", "server")


def render_violations(violations: Iterable[Violation]) -> str:
    """Render violations as ``validation errors: bot config: a; b; docker config: c``."""
    grouped: dict[str, list[str]] = {}
    for violation in violations:
        grouped.setdefault(violation.section, []).append(violation.message)

    ordered = [s for s in SECTION_ORDER if s in grouped]
    ordered += [s for s in grouped if s not in SECTION_ORDER]
    parts = [f"{section} config: {'; '.join(grouped[section])}" for section in ordered]
    return f"validation errors: {'; '.join(parts)}"


class ConfigValidationError(ConfigError):
    """One or more semantic rules failed; carries every violation found."""

    def __init__(self, violations: Iterable[Violation]) -> None:
        self.violations: List[Violation] = list(violations)
        super().__init__(render_violations(self.violations))

    def for_section(self, section: str) -> List[Violation]:
        return [v for v in self.violations if v.section == section]


__all__ = [
    "ConfigError",
    "ConfigFileError",
    "ConfigParseError",
    "ConfigValidationError",
    "Violation",
    "render_violations",
]
