"""Project configuration: the ``lint`` section of ``.convlint/config.yml``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from convlint.engine.scanner import DEFAULT_EXCLUDES, DEFAULT_MAX_FILE_SIZE_BYTES
from convlint.errors import ConfigError
from convlint.rules.model import VALID_SEVERITIES

logger = logging.getLogger(__name__)

CONFIG_DIR = ".convlint"
CONFIG_FILE = "config.yml"
DEFAULT_RULES_PATH = Path(CONFIG_DIR) / "rules.yml"


@dataclass(frozen=True)
class LintConfig:
    """Settings for one lint run.

    Configurable via ``config.yml``::

        lint:
          rules: .convlint/rules.yml
          min_severity: warning
          include: ["*.py", "*.js"]
          exclude: [build, "*.min.js"]
          max_workers: 8
          max_file_size_bytes: 500000

    Relative ``rules`` paths resolve against the project root.
    """

    rules_path: Path = DEFAULT_RULES_PATH
    min_severity: str = "info"
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = DEFAULT_EXCLUDES
    max_workers: int | None = None
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES

    def __post_init__(self) -> None:
        if self.min_severity not in VALID_SEVERITIES:
            msg = (
                f"invalid min_severity '{self.min_severity}', "
                f"must be one of {sorted(VALID_SEVERITIES)}"
            )
            raise ConfigError(msg)
        if self.max_workers is not None and self.max_workers < 1:
            msg = f"max_workers must be a positive integer, got {self.max_workers}"
            raise ConfigError(msg)
        if self.max_file_size_bytes < 1:
            msg = f"max_file_size_bytes must be positive, got {self.max_file_size_bytes}"
            raise ConfigError(msg)

    def resolve_rules_path(self, project_root: Path) -> Path:
        if self.rules_path.is_absolute():
            return self.rules_path
        return project_root / self.rules_path


def _string_tuple(section: dict[str, object], key: str) -> tuple[str, ...] | None:
    raw = section.get(key)
    if raw is None:
        return None
    if isinstance(raw, str):
        return (raw,)
    if not isinstance(raw, list):
        msg = f"config.yml: lint.{key} must be a list of strings"
        raise ConfigError(msg)
    return tuple(str(item) for item in raw)


def _int_value(section: dict[str, object], key: str) -> int | None:
    raw = section.get(key)
    if raw is None:
        return None
    try:
        return int(raw)  # type: ignore[call-overload]
    except (TypeError, ValueError) as exc:
        msg = f"config.yml: lint.{key} must be an integer, got {raw!r}"
        raise ConfigError(msg) from exc


def load_config(project_root: Path) -> LintConfig:
    """Load ``LintConfig`` from ``<project_root>/.convlint/config.yml``.

    Falls back to defaults for a missing file, missing keys, or a file that
    cannot be read or parsed.  Values that are present but invalid raise
    ``ConfigError``.
    """
    config_path = project_root / CONFIG_DIR / CONFIG_FILE
    if not config_path.is_file():
        return LintConfig()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default settings", config_path)
        return LintConfig()

    if not isinstance(data, dict):
        return LintConfig()

    section = data.get("lint")
    if not isinstance(section, dict):
        return LintConfig()

    kwargs: dict[str, object] = {}
    if section.get("rules") is not None:
        kwargs["rules_path"] = Path(str(section["rules"]))
    if section.get("min_severity") is not None:
        kwargs["min_severity"] = str(section["min_severity"])

    include = _string_tuple(section, "include")
    if include is not None:
        kwargs["include"] = include
    exclude = _string_tuple(section, "exclude")
    if exclude is not None:
        # User excludes extend the built-in ones (.git, node_modules, ...).
        kwargs["exclude"] = DEFAULT_EXCLUDES + exclude

    max_workers = _int_value(section, "max_workers")
    if max_workers is not None:
        kwargs["max_workers"] = max_workers
    max_size = _int_value(section, "max_file_size_bytes")
    if max_size is not None:
        kwargs["max_file_size_bytes"] = max_size

    return LintConfig(**kwargs)  # type: ignore[arg-type]
