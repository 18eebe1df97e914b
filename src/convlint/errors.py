"""Exception taxonomy shared by the loader, the engine and the orchestrator."""

from __future__ import annotations


class ConvlintError(Exception):
    """Base class for all convlint errors."""


class InvalidRuleError(ConvlintError, ValueError):
    """Raised when a rule or convention is malformed at load time."""


class DuplicateRuleError(ConvlintError, ValueError):
    """Raised when two rules share an id but declare different severities."""

    def __init__(self, rule_id: str, first: str, second: str) -> None:
        self.rule_id = rule_id
        self.first = first
        self.second = second
        super().__init__(
            f"Duplicate rule '{rule_id}' with conflicting severities "
            f"'{first}' and '{second}'"
        )


class ConfigError(ConvlintError, ValueError):
    """Raised when ``config.yml`` contains an invalid value."""


class RuleExecutionError(ConvlintError):
    """A single rule failed while matching one file.

    Recovered by the matcher: the failure is reported as a ``rule-error``
    finding and the remaining rules keep running.
    """

    def __init__(self, rule_id: str, path: str, cause: BaseException) -> None:
        self.rule_id = rule_id
        self.path = path
        self.cause = cause
        super().__init__(f"Rule '{rule_id}' failed on {path}: {type(cause).__name__}: {cause}")


class ScanIOError(ConvlintError, OSError):
    """A file could not be read (or was skipped) during the scan."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")
