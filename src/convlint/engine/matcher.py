"""Matcher engine: apply a rule set to one file's text and produce findings."""

from __future__ import annotations

import bisect
import heapq
import logging
from typing import TYPE_CHECKING

from convlint.errors import RuleExecutionError
from convlint.rules.model import Finding
from convlint.rules.predicates import line_starts, physical_lines

if TYPE_CHECKING:
    from collections.abc import Iterator

    from convlint.rules.model import Rule, RuleSet

logger = logging.getLogger(__name__)

SNIPPET_MAX_CHARS = 200


class _LineIndex:
    """Offset -> (line, column) lookup for one text, both 1-based."""

    def __init__(self, text: str) -> None:
        self._starts = line_starts(text)
        self._lines = physical_lines(text)

    def position(self, offset: int) -> tuple[int, int]:
        line = bisect.bisect_right(self._starts, offset)
        # The last entry of _starts is the end of text, not a line.
        line = max(1, min(line, len(self._starts) - 1))
        return line, offset - self._starts[line - 1] + 1

    def line_text(self, line: int) -> str:
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1].rstrip("\r\n")
        return ""


def _order_key(finding: Finding) -> tuple[int, int, str]:
    return (finding.line, finding.column, finding.rule_id or "")


class FileScan:
    """Lazy, restartable sequence of findings for one file.

    Each ``iter()`` re-scans the text from scratch; nothing is cached and
    nothing is mutated, so iterating twice yields identical sequences.

    Violations come first, ordered by line, then column, then rule id.  A
    rule whose predicate raises is cut off at that point and reported as a
    single ``rule-error`` finding after the violations, ordered by rule id;
    the other rules on the file are unaffected.
    """

    def __init__(self, rule_set: RuleSet, path: str, text: str) -> None:
        self.rule_set = rule_set
        self.path = path
        self.text = text

    def __repr__(self) -> str:
        return f"FileScan({self.path!r}, {len(self.rule_set)} rules)"

    def __iter__(self) -> Iterator[Finding]:
        rules = self.rule_set.applicable(self.path)
        if not rules:
            return

        index = _LineIndex(self.text)
        failures: dict[str, RuleExecutionError] = {}
        streams = [self._rule_stream(rule, index, failures) for rule in rules]
        yield from heapq.merge(*streams, key=_order_key)

        for rule_id in sorted(failures):
            error = failures[rule_id]
            yield Finding(
                path=self.path,
                line=1,
                column=1,
                end_line=1,
                end_column=1,
                rule_id=rule_id,
                severity="warning",
                message=str(error),
                kind="rule-error",
            )

    def _rule_stream(
        self,
        rule: Rule,
        index: _LineIndex,
        failures: dict[str, RuleExecutionError],
    ) -> Iterator[Finding]:
        message = rule.render_message(self.rule_set.convention(rule.convention_id))
        try:
            for start, end in rule.predicate.finditer(self.text):
                line, column = index.position(start)
                end_line, end_column = index.position(end)
                yield Finding(
                    path=self.path,
                    line=line,
                    column=column,
                    end_line=end_line,
                    end_column=end_column,
                    rule_id=rule.id,
                    severity=rule.severity,
                    message=message,
                    snippet=index.line_text(line).strip()[:SNIPPET_MAX_CHARS],
                )
        except Exception as exc:  # noqa: BLE001
            error = RuleExecutionError(rule.id, self.path, exc)
            logger.warning("%s", error)
            failures[rule.id] = error


def scan_file(rule_set: RuleSet, path: str, text: str) -> FileScan:
    """Return the lazy finding sequence for *path* with contents *text*."""
    return FileScan(rule_set, path, text)
