"""Diagnostics collected during a projection run."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class Severity(enum.Enum):
    WARNING = "warning"
    SKIP = "skip"
    FATAL = "fatal"


_LOG_LEVELS = {
    Severity.WARNING: logging.WARNING,
    Severity.SKIP: logging.DEBUG,
    Severity.FATAL: logging.ERROR,
}


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    # Signature or name of the originating entity.
    entity: str
    message: str

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.entity}: {self.message}"


@dataclass
class DiagnosticLog:
    entries: list[Diagnostic] = field(default_factory=list)

    def add(self, severity: Severity, entity: str, message: str) -> Diagnostic:
        diag = Diagnostic(severity=severity, entity=entity, message=message)
        self.entries.append(diag)
        logger.log(_LOG_LEVELS[severity], "%s: %s", entity, message)
        return diag

    def warn(self, entity: str, message: str) -> Diagnostic:
        return self.add(Severity.WARNING, entity, message)

    def skip(self, entity: str, message: str) -> Diagnostic:
        return self.add(Severity.SKIP, entity, message)

    def fatal(self, entity: str, message: str) -> Diagnostic:
        return self.add(Severity.FATAL, entity, message)

    def of(self, severity: Severity) -> list[Diagnostic]:
        return [d for d in self.entries if d.severity is severity]

    @property
    def has_fatal(self) -> bool:
        return any(d.severity is Severity.FATAL for d in self.entries)

    def report(self) -> str:
        return "\n".join(str(d) for d in self.entries)
