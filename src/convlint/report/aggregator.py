"""Aggregator: merge per-file findings into one filtered, grouped report."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from convlint.rules.model import SEVERITY_RANK, VALID_SEVERITIES, severity_at_least

if TYPE_CHECKING:
    from collections.abc import Iterable

    from convlint.rules.model import Finding, RuleSet

logger = logging.getLogger(__name__)


@dataclass
class Report:
    """Everything a formatter needs to render one run."""

    violations: list[Finding] = field(default_factory=list)
    errors: list[Finding] = field(default_factory=list)
    files_scanned: int = 0
    rules_evaluated: int = 0
    min_severity: str = "info"
    dropped: int = 0

    @property
    def files(self) -> dict[str, dict[int, list[Finding]]]:
        """Violations grouped by file, then by line (both ascending)."""
        grouped: dict[str, dict[int, list[Finding]]] = {}
        for finding in self.violations:
            grouped.setdefault(finding.path, {}).setdefault(finding.line, []).append(finding)
        return grouped

    @property
    def counts(self) -> dict[str, int]:
        """Violation count per severity (every severity present, possibly 0)."""
        counter = Counter(f.severity for f in self.violations)
        return {sev: counter.get(sev, 0) for sev in sorted(SEVERITY_RANK, key=SEVERITY_RANK.get)}

    def ranked_rules(self) -> list[tuple[str, str, int]]:
        """``(rule_id, severity, hits)`` ordered by severity, then hits, then id."""
        hits = Counter((f.rule_id or "", f.severity) for f in self.violations)
        return sorted(
            ((rule_id, sev, n) for (rule_id, sev), n in hits.items()),
            key=lambda item: (-SEVERITY_RANK[item[1]], -item[2], item[0]),
        )

    @property
    def passed(self) -> bool:
        return not any(f.severity == "error" for f in self.violations)

    @property
    def exit_code(self) -> int:
        """1 when any violation has ``error`` severity, else 0."""
        return 0 if self.passed else 1


class Aggregator:
    """Single join point for scan results.

    Findings are added per file as scans complete, in any order.  ``build``
    drops violations whose rule is not in the rule set, removes exact
    duplicates, applies the severity threshold to violations (execution
    errors are always kept) and sorts everything deterministically.
    """

    def __init__(self, rule_set: RuleSet, *, min_severity: str = "info") -> None:
        if min_severity not in VALID_SEVERITIES:
            msg = (
                f"invalid min_severity '{min_severity}', "
                f"must be one of {sorted(VALID_SEVERITIES)}"
            )
            raise ValueError(msg)
        self._rule_set = rule_set
        self._min_severity = min_severity
        self._findings: dict[Finding, None] = {}
        self._files: set[str] = set()
        self._dropped = 0

    def add(self, path: str, findings: Iterable[Finding]) -> None:
        """Merge the findings of one scanned file."""
        self._files.add(path)
        for finding in findings:
            if finding.is_violation and finding.rule_id not in self._rule_set:
                logger.warning(
                    "Dropping finding at %s:%d for unknown rule '%s'",
                    finding.path,
                    finding.line,
                    finding.rule_id,
                )
                self._dropped += 1
                continue
            self._findings[finding] = None

    def build(self) -> Report:
        violations: list[Finding] = []
        errors: list[Finding] = []
        for finding in self._findings:
            if not finding.is_violation:
                errors.append(finding)
            elif severity_at_least(finding.severity, self._min_severity):
                violations.append(finding)

        violations.sort(key=lambda f: f.sort_key)
        errors.sort(key=lambda f: (f.path, f.kind, f.rule_id or ""))
        return Report(
            violations=violations,
            errors=errors,
            files_scanned=len(self._files),
            rules_evaluated=len(self._rule_set),
            min_severity=self._min_severity,
            dropped=self._dropped,
        )
