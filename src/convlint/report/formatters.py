"""Report formatters: human-readable text, JSON, and porcelain."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from convlint.report.aggregator import Report
    from convlint.rules.model import Finding

_GLYPHS: dict[str, str] = {"error": "✗", "warning": "!", "info": "i"}


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_rich(report: Report, *, elapsed_ms: float | None = None) -> str:
    """Format a Report as human-readable text grouped by file and line.

    Example output::

        Rules: 3 loaded
        Files: 2 scanned

        src/app.js
          1:1   ✗ error    no-var  Use const or let instead of var.
          4:9   ! warning  loose-equality  Use === and !== instead of loose equality.

        Execution errors:
          src/broken.py  rule-error  py-print-call  Rule 'py-print-call' failed ...

        2 violations found (1 error, 1 warning, 0 info; 3 rules evaluated, 0.1s)
    """
    lines: list[str] = [
        f"Rules: {report.rules_evaluated} loaded",
        f"Files: {report.files_scanned} scanned",
        "",
    ]

    for path, by_line in report.files.items():
        lines.append(path)
        for findings in by_line.values():
            for f in findings:
                loc = f"{f.line}:{f.column}"
                glyph = _GLYPHS.get(f.severity, "?")
                lines.append(f"  {loc:<6}{glyph} {f.severity:<8} {f.rule_id}  {f.message}")
        lines.append("")

    if report.errors:
        lines.append("Execution errors:")
        for e in report.errors:
            rule = f"  {e.rule_id}" if e.rule_id else ""
            lines.append(f"  {e.path}  {e.kind}{rule}  {e.message}")
        lines.append("")

    counts = report.counts
    details = (
        f"{_plural(counts['error'], 'error')}, "
        f"{_plural(counts['warning'], 'warning')}, {counts['info']} info; "
        f"{report.rules_evaluated} rules evaluated"
    )
    if elapsed_ms is not None:
        details += f", {elapsed_ms / 1000:.1f}s"

    if report.violations:
        lines.append(f"{_plural(len(report.violations), 'violation')} found ({details})")
    else:
        lines.append(f"✓ No violations found ({details})")
    return "\n".join(lines)


def _finding_dict(f: Finding) -> dict[str, object]:
    return {
        "line": f.line,
        "column": f.column,
        "end_line": f.end_line,
        "end_column": f.end_column,
        "rule_id": f.rule_id,
        "severity": f.severity,
        "message": f.message,
        "snippet": f.snippet,
    }


def format_json(report: Report, *, elapsed_ms: float | None = None) -> str:
    """Format a Report as structured JSON.

    ``files`` maps each path to its violations (ordered by line), ``errors``
    lists execution errors, and ``summary`` carries counts and the verdict.
    """
    files: dict[str, list[dict[str, object]]] = {}
    for path, by_line in report.files.items():
        files[path] = [_finding_dict(f) for findings in by_line.values() for f in findings]

    errors = [
        {"path": e.path, "kind": e.kind, "rule_id": e.rule_id, "message": e.message}
        for e in report.errors
    ]

    output: dict[str, object] = {
        "files": files,
        "errors": errors,
        "summary": {
            "rules_evaluated": report.rules_evaluated,
            "files_scanned": report.files_scanned,
            "violations_count": len(report.violations),
            "errors_count": len(report.errors),
            "by_severity": report.counts,
            "min_severity": report.min_severity,
            "passed": report.passed,
            "elapsed_ms": elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(report: Report, *, elapsed_ms: float | None = None) -> str:
    """One line per finding: ``path:line:column:severity:rule_id:kind:message``.

    Execution errors follow violations; an io-error has an empty rule id.
    Returns an empty string when there is nothing to report.
    """
    lines = [
        f"{f.path}:{f.line}:{f.column}:{f.severity}:{f.rule_id or ''}:{f.kind}:{f.message}"
        for f in [*report.violations, *report.errors]
    ]
    return "\n".join(lines)
