"""Linter orchestrator: load rules, scan files in parallel, aggregate, report."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from convlint.config import LintConfig, load_config
from convlint.engine.scanner import discover_files, scan_files
from convlint.errors import ConfigError, ConvlintError, DuplicateRuleError, InvalidRuleError
from convlint.report.aggregator import Aggregator, Report
from convlint.rules.loader import load_rule_set

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from convlint.rules.model import RuleSet

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LintError(ConvlintError):
    """Raised when lint encounters a configuration or rule-loading error."""


class PipelineStateError(ConvlintError, RuntimeError):
    """Raised on an out-of-order pipeline transition."""


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class PipelineState(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SCANNING = "scanning"
    REPORTING = "reporting"
    DONE = "done"


_STATE_ORDER: tuple[PipelineState, ...] = tuple(PipelineState)


@dataclass
class LintResult:
    """Result of a lint run."""

    report: Report = field(default_factory=Report)
    rules_evaluated: int = 0
    files_scanned: int = 0
    elapsed_ms: float = 0.0

    @property
    def exit_code(self) -> int:
        return self.report.exit_code


class LintPipeline:
    """One lint run, moving strictly forward through
    ``IDLE -> LOADING -> SCANNING -> REPORTING -> DONE``.

    Each stage method performs exactly one transition; calling them out of
    order (or twice) raises ``PipelineStateError``.  A failed load leaves the
    pipeline in ``LOADING``, so a broken rule set can never be scanned with.
    """

    def __init__(self, project_root: Path, config: LintConfig) -> None:
        self.project_root = project_root
        self.config = config
        self.state = PipelineState.IDLE
        self._rule_set: RuleSet | None = None
        self._aggregator: Aggregator | None = None

    def _advance(self, target: PipelineState) -> None:
        current = _STATE_ORDER.index(self.state)
        if _STATE_ORDER.index(target) != current + 1:
            msg = f"cannot move from {self.state.value} to {target.value}"
            raise PipelineStateError(msg)
        logger.debug("Pipeline %s -> %s", self.state.value, target.value)
        self.state = target

    @property
    def rule_set(self) -> RuleSet:
        if self._rule_set is None:
            msg = "rule set is not loaded"
            raise PipelineStateError(msg)
        return self._rule_set

    def load(self, rules_path: Path | None = None) -> RuleSet:
        self._advance(PipelineState.LOADING)
        path = rules_path or self.config.resolve_rules_path(self.project_root)
        if not path.is_file():
            msg = f"Rules file not found: {path} (run 'convlint init' to create one)"
            raise LintError(msg)
        try:
            self._rule_set = load_rule_set(path)
        except (InvalidRuleError, DuplicateRuleError) as exc:
            msg = f"Invalid rules configuration: {exc}"
            raise LintError(msg) from exc
        except OSError as exc:
            msg = f"Cannot read rules file {path}: {exc}"
            raise LintError(msg) from exc
        return self._rule_set

    def scan(self, paths: Iterable[Path]) -> int:
        """Scan *paths* in parallel; return the number of files scanned."""
        rule_set = self.rule_set
        self._advance(PipelineState.SCANNING)
        files = discover_files(paths, include=self.config.include, exclude=self.config.exclude)
        logger.debug("Scanning %d files with %d rules", len(files), len(rule_set))

        aggregator = Aggregator(rule_set, min_severity=self.config.min_severity)
        for result in scan_files(
            rule_set,
            files,
            max_workers=self.config.max_workers,
            max_file_size_bytes=self.config.max_file_size_bytes,
            root=self.project_root,
        ):
            aggregator.add(result.path, result.findings)
        self._aggregator = aggregator
        return len(files)

    def report(self) -> Report:
        self._advance(PipelineState.REPORTING)
        if self._aggregator is None:
            msg = "nothing was scanned"
            raise PipelineStateError(msg)
        report = self._aggregator.build()
        self._advance(PipelineState.DONE)
        return report


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def lint(
    project_root: Path,
    *,
    paths: Iterable[Path] | None = None,
    rules_path: Path | None = None,
    config: LintConfig | None = None,
) -> LintResult:
    """Run the whole pipeline and return its result.

    Parameters
    ----------
    project_root:
        Root of the project (where ``.convlint/`` lives).  Reported paths
        are relative to it.
    paths:
        Files or directories to scan.  Defaults to the project root.
    rules_path:
        Explicit path to ``rules.yml``; overrides the configured one.
    config:
        Settings to use instead of reading ``.convlint/config.yml``.

    Raises
    ------
    LintError
        When the configuration or the rule set is invalid.  Scan-time
        problems never raise; they appear in ``result.report.errors``.
    """
    start = time.monotonic()

    if config is None:
        try:
            config = load_config(project_root)
        except ConfigError as exc:
            msg = f"Invalid configuration: {exc}"
            raise LintError(msg) from exc

    pipeline = LintPipeline(project_root, config)
    rule_set = pipeline.load(rules_path)
    files_scanned = pipeline.scan(list(paths) if paths is not None else [project_root])
    report = pipeline.report()

    elapsed = (time.monotonic() - start) * 1000
    return LintResult(
        report=report,
        rules_evaluated=len(rule_set),
        files_scanned=files_scanned,
        elapsed_ms=elapsed,
    )
