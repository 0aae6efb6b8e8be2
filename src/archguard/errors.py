"""Exception hierarchy shared by the engine, the loader and the CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from archguard.engine.report import FailureRecord


class ArchGuardError(Exception):
    """Base class for every error raised by archguard."""


class ConfigurationError(ArchGuardError):
    """Raised when the configuration or the rule catalog is invalid."""


class LoadingError(ArchGuardError):
    """Raised when a classpath location or a rule source cannot be loaded."""


class DiscoveryError(ArchGuardError):
    """Raised when a rule source registers something that is not a rule provider."""


class CodeImportError(ArchGuardError):
    """Raised when the code set to analyze cannot be imported."""


class RuleInvocationError(ArchGuardError):
    """Raised when a configurable rule cannot be instantiated or invoked."""


class ArchViolationError(ArchGuardError):
    """Raised at the end of a run when at least one check failed."""

    def __init__(self, report: str, records: list[FailureRecord]) -> None:
        super().__init__(report)
        self.report = report
        self.records = records
