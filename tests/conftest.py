"""Shared test fixtures for convlint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


NO_VAR_RULES = (
    "version: 1\n"
    "conventions:\n"
    "  - id: js-no-var\n"
    "    domain: nodejs\n"
    "    category: style\n"
    "    text: Use const or let instead of var.\n"
    "rules:\n"
    "  - id: no-var\n"
    "    convention: js-no-var\n"
    "    pattern: '\\bvar\\b'\n"
    "    severity: error\n"
    '    glob: "*.js"\n'
)


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a minimal project with ``.convlint/rules.yml`` holding the no-var rule."""
    config_dir = tmp_path / ".convlint"
    config_dir.mkdir()
    (config_dir / "rules.yml").write_text(NO_VAR_RULES)
    return tmp_path
