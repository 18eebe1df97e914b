"""Rule model: conventions, rules, findings, and the immutable rule set."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from convlint.errors import InvalidRuleError
from convlint.rules.predicates import compile_predicate

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from convlint.rules.predicates import Predicate

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VALID_DOMAINS: frozenset[str] = frozenset({"python", "bash", "nodejs", "laravel", "wordpress"})
VALID_SEVERITIES: frozenset[str] = frozenset({"info", "warning", "error"})
SEVERITY_RANK: dict[str, int] = {"info": 0, "warning": 1, "error": 2}
VALID_FINDING_KINDS: frozenset[str] = frozenset({"violation", "rule-error", "io-error"})

LANGUAGE_GLOBS: dict[str, tuple[str, ...]] = {
    "python": ("*.py",),
    "bash": ("*.sh", "*.bash", "*.zsh"),
    "nodejs": ("*.js", "*.mjs", "*.cjs", "*.ts", "*.jsx", "*.tsx"),
    "laravel": ("*.php",),
    "wordpress": ("*.php",),
}


def severity_at_least(severity: str, threshold: str) -> bool:
    """Return True if *severity* ranks at or above *threshold*."""
    return SEVERITY_RANK[severity] >= SEVERITY_RANK[threshold]


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Convention:
    """One documented guideline, as authored in prose.

    ``domain`` is ``None`` for conventions given as bare text, which carry
    no domain or category of their own.
    """

    id: str
    domain: str | None
    category: str
    text: str
    example: str | None = None

    def __post_init__(self) -> None:
        if not self.id.strip():
            msg = "convention id must be a non-empty string"
            raise InvalidRuleError(msg)
        if self.domain is not None and self.domain not in VALID_DOMAINS:
            msg = (
                f"Convention '{self.id}': invalid domain '{self.domain}', "
                f"must be one of {sorted(VALID_DOMAINS)}"
            )
            raise InvalidRuleError(msg)


@dataclass(frozen=True)
class Rule:
    """A machine-checkable derivative of a convention.

    Construction compiles the pattern, so an existing ``Rule`` is always
    usable by the matcher.  ``globs`` and ``language`` both restrict which
    files the rule applies to; with neither set the rule applies everywhere.
    """

    id: str
    pattern: str
    severity: str
    globs: tuple[str, ...] = ()
    language: str | None = None
    syntax: str = "regex"
    message: str | None = None
    convention_id: str | None = None
    ignore_case: bool = False
    predicate: Predicate = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.id.strip():
            msg = "rule id must be a non-empty string"
            raise InvalidRuleError(msg)
        if self.severity not in VALID_SEVERITIES:
            msg = (
                f"Rule '{self.id}': invalid severity '{self.severity}', "
                f"must be one of {sorted(VALID_SEVERITIES)}"
            )
            raise InvalidRuleError(msg)
        if self.language is not None and self.language not in LANGUAGE_GLOBS:
            msg = (
                f"Rule '{self.id}': invalid language '{self.language}', "
                f"must be one of {sorted(LANGUAGE_GLOBS)}"
            )
            raise InvalidRuleError(msg)
        try:
            predicate = compile_predicate(self.syntax, self.pattern, ignore_case=self.ignore_case)
        except InvalidRuleError as exc:
            raise InvalidRuleError(f"Rule '{self.id}': {exc}") from exc
        object.__setattr__(self, "predicate", predicate)

    @property
    def file_globs(self) -> tuple[str, ...]:
        """Explicit globs plus the globs implied by ``language``."""
        implied = LANGUAGE_GLOBS[self.language] if self.language is not None else ()
        return self.globs + implied

    def applies_to(self, path: str) -> bool:
        """Return True if this rule should run against *path*.

        Each glob is tried against the full POSIX path and the base name, so
        ``*.js`` matches ``src/app/a.js``.
        """
        globs = self.file_globs
        if not globs:
            return True
        posix = PurePosixPath(path.replace("\\", "/"))
        full, name = posix.as_posix(), posix.name
        return any(fnmatch.fnmatch(full, g) or fnmatch.fnmatch(name, g) for g in globs)

    def render_message(self, convention: Convention | None = None) -> str:
        if self.message:
            return self.message
        if convention is not None and convention.text:
            return convention.text
        return f"Matched pattern {self.pattern}"


@dataclass(frozen=True)
class Finding:
    """One detected violation, or a finding-like execution error."""

    path: str
    line: int
    column: int
    end_line: int
    end_column: int
    rule_id: str | None
    severity: str
    message: str
    kind: str = "violation"  # "violation" | "rule-error" | "io-error"
    snippet: str = ""

    @property
    def is_violation(self) -> bool:
        return self.kind == "violation"

    @property
    def sort_key(self) -> tuple[str, int, int, str]:
        return (self.path, self.line, self.column, self.rule_id or "")


class RuleSet:
    """Ordered, immutable collection of rules plus the conventions they cite."""

    __slots__ = ("_by_id", "_conventions", "_rules")

    def __init__(
        self,
        rules: tuple[Rule, ...] | list[Rule] = (),
        conventions: Mapping[str, Convention] | None = None,
    ) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules)
        self._by_id: dict[str, Rule] = {r.id: r for r in self._rules}
        self._conventions: dict[str, Convention] = dict(conventions or {})
        if len(self._by_id) != len(self._rules):
            msg = "RuleSet rule ids must be unique"
            raise InvalidRuleError(msg)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def __repr__(self) -> str:
        return f"RuleSet({len(self._rules)} rules, {len(self._conventions)} conventions)"

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    @property
    def conventions(self) -> tuple[Convention, ...]:
        return tuple(self._conventions.values())

    def get(self, rule_id: str) -> Rule | None:
        return self._by_id.get(rule_id)

    def convention(self, convention_id: str | None) -> Convention | None:
        if convention_id is None:
            return None
        return self._conventions.get(convention_id)

    def ids(self) -> tuple[str, ...]:
        return tuple(r.id for r in self._rules)

    def applicable(self, path: str) -> tuple[Rule, ...]:
        """Rules whose file filter matches *path*, in rule-set order."""
        return tuple(r for r in self._rules if r.applies_to(path))
