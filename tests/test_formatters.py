"""Tests for convlint.report.formatters."""

from __future__ import annotations

import json

from convlint.report.aggregator import Report
from convlint.report.formatters import format_json, format_porcelain, format_rich
from convlint.rules.model import Finding


def _violation(
    path: str, line: int, rule_id: str, severity: str, message: str = "msg"
) -> Finding:
    return Finding(
        path=path,
        line=line,
        column=1,
        end_line=line,
        end_column=4,
        rule_id=rule_id,
        severity=severity,
        message=message,
        snippet="var x = 1;",
    )


def _report() -> Report:
    return Report(
        violations=[
            _violation("src/app.js", 1, "no-var", "error", "Use const or let instead of var."),
            _violation("src/app.js", 4, "loose-equality", "warning"),
            _violation("src/util.js", 2, "console-log", "info"),
        ],
        errors=[
            Finding(
                path="src/broken.js",
                line=1,
                column=1,
                end_line=1,
                end_column=1,
                rule_id=None,
                severity="warning",
                message="Cannot read src/broken.js: not valid UTF-8 (invalid start byte)",
                kind="io-error",
            )
        ],
        files_scanned=3,
        rules_evaluated=3,
    )


class TestFormatRich:
    def test_header_and_grouping(self) -> None:
        output = format_rich(_report())
        lines = output.splitlines()
        assert lines[0] == "Rules: 3 loaded"
        assert lines[1] == "Files: 3 scanned"
        assert "src/app.js" in lines
        assert "  1:1   ✗ error    no-var  Use const or let instead of var." in lines
        assert lines.index("src/app.js") < lines.index("src/util.js")

    def test_execution_errors_section(self) -> None:
        output = format_rich(_report())
        assert "Execution errors:" in output
        assert "src/broken.js  io-error  Cannot read" in output

    def test_summary_line(self) -> None:
        output = format_rich(_report(), elapsed_ms=1234)
        assert output.splitlines()[-1] == (
            "3 violations found (1 error, 1 warning, 1 info; 3 rules evaluated, 1.2s)"
        )

    def test_clean_report(self) -> None:
        output = format_rich(Report(files_scanned=1, rules_evaluated=2))
        assert output.splitlines()[-1] == (
            "✓ No violations found (0 errors, 0 warnings, 0 info; 2 rules evaluated)"
        )
        assert "Execution errors:" not in output


class TestFormatJson:
    def test_structure(self) -> None:
        parsed = json.loads(format_json(_report(), elapsed_ms=12.5))
        assert list(parsed["files"]) == ["src/app.js", "src/util.js"]
        first = parsed["files"]["src/app.js"][0]
        assert first["rule_id"] == "no-var"
        assert first["line"] == 1
        assert first["end_column"] == 4
        assert first["snippet"] == "var x = 1;"
        assert parsed["errors"][0]["kind"] == "io-error"
        assert parsed["errors"][0]["rule_id"] is None

    def test_summary(self) -> None:
        summary = json.loads(format_json(_report()))["summary"]
        assert summary["violations_count"] == 3
        assert summary["errors_count"] == 1
        assert summary["by_severity"] == {"info": 1, "warning": 1, "error": 1}
        assert summary["passed"] is False
        assert summary["min_severity"] == "info"
        assert summary["elapsed_ms"] is None

    def test_empty_report(self) -> None:
        parsed = json.loads(format_json(Report()))
        assert parsed["files"] == {}
        assert parsed["errors"] == []
        assert parsed["summary"]["passed"] is True


class TestFormatPorcelain:
    def test_one_line_per_finding(self) -> None:
        lines = format_porcelain(_report()).splitlines()
        assert lines == [
            "src/app.js:1:1:error:no-var:violation:Use const or let instead of var.",
            "src/app.js:4:1:warning:loose-equality:violation:msg",
            "src/util.js:2:1:info:console-log:violation:msg",
            "src/broken.js:1:1:warning::io-error:"
            "Cannot read src/broken.js: not valid UTF-8 (invalid start byte)",
        ]

    def test_empty(self) -> None:
        assert format_porcelain(Report()) == ""
