"""Tests for convlint.engine.scanner: file discovery and the parallel scan."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from convlint.engine.scanner import FileResult, discover_files, scan_files, scan_one
from convlint.rules.loader import build_rule_set

if TYPE_CHECKING:
    from pathlib import Path

    from convlint.rules.model import RuleSet


@pytest.fixture()
def rule_set() -> RuleSet:
    return build_rule_set(
        {},
        [{"id": "no-var", "pattern": r"\bvar\b", "severity": "error", "glob": "*.js"}],
    )


def _tree(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


# ---------------------------------------------------------------------------
# discover_files
# ---------------------------------------------------------------------------


class TestDiscoverFiles:
    def test_walks_directories_sorted(self, tmp_path: Path) -> None:
        _tree(tmp_path, {"b.js": "", "a.js": "", "sub/c.py": ""})
        found = discover_files([tmp_path])
        assert [p.relative_to(tmp_path).as_posix() for p in found] == ["a.js", "b.js", "sub/c.py"]

    def test_default_excludes(self, tmp_path: Path) -> None:
        _tree(
            tmp_path,
            {
                "app.js": "",
                "node_modules/lib/index.js": "",
                ".git/config": "",
                ".convlint/rules.yml": "",
            },
        )
        found = discover_files([tmp_path])
        assert [p.name for p in found] == ["app.js"]

    def test_custom_exclude_glob(self, tmp_path: Path) -> None:
        _tree(tmp_path, {"app.js": "", "app.min.js": "", "build/out.js": ""})
        found = discover_files([tmp_path], exclude=("*.min.js", "build"))
        assert [p.name for p in found] == ["app.js"]

    def test_include_filter(self, tmp_path: Path) -> None:
        _tree(tmp_path, {"app.js": "", "app.py": "", "README.md": ""})
        found = discover_files([tmp_path], include=("*.py", "*.js"))
        assert sorted(p.name for p in found) == ["app.js", "app.py"]

    def test_explicit_file_always_kept(self, tmp_path: Path) -> None:
        missing = tmp_path / "node_modules" / "gone.js"
        assert discover_files([missing]) == [missing]

    def test_duplicates_collapsed(self, tmp_path: Path) -> None:
        _tree(tmp_path, {"a.js": ""})
        assert discover_files([tmp_path, tmp_path / "a.js"]) == [tmp_path / "a.js"]


# ---------------------------------------------------------------------------
# scan_one
# ---------------------------------------------------------------------------


class TestScanOne:
    def test_paths_relative_to_root(self, tmp_path: Path, rule_set: RuleSet) -> None:
        _tree(tmp_path, {"src/a.js": "var x = 1;\n"})
        result = scan_one(rule_set, tmp_path / "src" / "a.js", root=tmp_path)
        assert result.path == "src/a.js"
        assert [f.path for f in result.findings] == ["src/a.js"]
        assert not result.failed

    def test_missing_file_is_io_error(self, tmp_path: Path, rule_set: RuleSet) -> None:
        result = scan_one(rule_set, tmp_path / "gone.js", root=tmp_path)
        assert result.failed
        (finding,) = result.findings
        assert finding.kind == "io-error"
        assert finding.rule_id is None
        assert finding.path == "gone.js"
        assert "Cannot read gone.js" in finding.message

    def test_undecodable_file(self, tmp_path: Path, rule_set: RuleSet) -> None:
        (tmp_path / "bin.js").write_bytes(b"var \xff\xfe\n")
        result = scan_one(rule_set, tmp_path / "bin.js", root=tmp_path)
        assert result.failed
        assert "not valid UTF-8" in result.findings[0].message

    def test_byte_order_mark_is_stripped(self, tmp_path: Path) -> None:
        rule_set = build_rule_set(
            {},
            [
                {"id": "py-print", "pattern": "Call:print", "syntax": "python-ast"},
                {"id": "first-word", "pattern": "^print", "severity": "info"},
            ],
        )
        (tmp_path / "a.py").write_bytes(b"\xef\xbb\xbfprint(1)\n")
        result = scan_one(rule_set, tmp_path / "a.py", root=tmp_path)
        assert [(f.kind, f.rule_id, f.line, f.column) for f in result.findings] == [
            ("violation", "first-word", 1, 1),
            ("violation", "py-print", 1, 1),
        ]

    def test_oversized_file(self, tmp_path: Path, rule_set: RuleSet) -> None:
        _tree(tmp_path, {"big.js": "var x;\n" * 100})
        result = scan_one(rule_set, tmp_path / "big.js", root=tmp_path, max_file_size_bytes=50)
        assert result.failed
        assert "limit is 50" in result.findings[0].message


# ---------------------------------------------------------------------------
# scan_files
# ---------------------------------------------------------------------------


class TestScanFiles:
    def test_empty_file_list(self, rule_set: RuleSet) -> None:
        assert list(scan_files(rule_set, [])) == []

    def test_every_file_scanned_once(self, tmp_path: Path, rule_set: RuleSet) -> None:
        files = {f"f{i:02d}.js": "var a;\n" * (i % 3) for i in range(20)}
        _tree(tmp_path, files)
        paths = sorted(tmp_path / name for name in files)
        results = list(scan_files(rule_set, paths, max_workers=4, root=tmp_path))
        assert all(isinstance(r, FileResult) for r in results)
        assert sorted(r.path for r in results) == sorted(files)
        hits = {r.path: len(r.findings) for r in results}
        assert hits == {name: i % 3 for i, name in enumerate(sorted(files))}

    def test_one_bad_file_does_not_stop_others(self, tmp_path: Path, rule_set: RuleSet) -> None:
        _tree(tmp_path, {"good.js": "var a;\n"})
        (tmp_path / "bad.js").write_bytes(b"\xff\xff")
        paths = [tmp_path / "bad.js", tmp_path / "good.js", tmp_path / "missing.js"]
        results = {r.path: r for r in scan_files(rule_set, paths, max_workers=2, root=tmp_path)}
        assert results["bad.js"].failed
        assert results["missing.js"].failed
        assert not results["good.js"].failed
        assert [f.rule_id for f in results["good.js"].findings] == ["no-var"]

    def test_results_are_deterministic_across_worker_counts(
        self, tmp_path: Path, rule_set: RuleSet
    ) -> None:
        _tree(tmp_path, {f"m{i}.js": "x;\nvar y;\nvar z;\n" for i in range(8)})
        paths = discover_files([tmp_path])

        def collect(workers: int) -> list[tuple[str, int, int, str]]:
            results = scan_files(rule_set, paths, max_workers=workers, root=tmp_path)
            return sorted(f.sort_key for r in results for f in r.findings)

        assert collect(1) == collect(8)
