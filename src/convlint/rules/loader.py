"""Rule set loader: parse ``rules.yml`` (or in-memory tables) into a RuleSet."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import yaml

from convlint.errors import DuplicateRuleError, InvalidRuleError
from convlint.rules.model import Convention, Rule, RuleSet

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})

_RULE_KEYS: frozenset[str] = frozenset(
    {
        "id",
        "pattern",
        "severity",
        "glob",
        "language",
        "syntax",
        "message",
        "convention",
        "ignore_case",
    }
)
_CONVENTION_KEYS: frozenset[str] = frozenset({"id", "domain", "category", "text", "example"})


# ---------------------------------------------------------------------------
# Entry parsing
# ---------------------------------------------------------------------------


def _parse_globs(rule_id: str, raw: object) -> tuple[str, ...]:
    """Normalize ``glob`` (string or list of strings) to a tuple."""
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list) or not all(isinstance(g, str) and g.strip() for g in raw):
        msg = f"Rule '{rule_id}': 'glob' must be a non-empty string or a list of strings"
        raise InvalidRuleError(msg)
    return tuple(raw)


def _parse_rule(entry: Mapping[str, object], context: str) -> Rule:
    unknown = set(entry) - _RULE_KEYS
    if unknown:
        msg = f"{context}: unknown keys {sorted(unknown)}"
        raise InvalidRuleError(msg)

    rule_id = entry.get("id")
    if not isinstance(rule_id, str) or not rule_id.strip():
        msg = f"{context}: missing required 'id' field"
        raise InvalidRuleError(msg)

    pattern = entry.get("pattern")
    if not isinstance(pattern, str) or not pattern:
        msg = f"Rule '{rule_id}': 'pattern' must be a non-empty string"
        raise InvalidRuleError(msg)

    ignore_case = entry.get("ignore_case", False)
    if not isinstance(ignore_case, bool):
        msg = f"Rule '{rule_id}': 'ignore_case' must be true or false, got {ignore_case!r}"
        raise InvalidRuleError(msg)

    language = entry.get("language")
    message = entry.get("message")
    convention = entry.get("convention")

    return Rule(
        id=rule_id,
        pattern=pattern,
        severity=str(entry.get("severity", "error")),
        globs=_parse_globs(rule_id, entry.get("glob")),
        language=str(language) if language is not None else None,
        syntax=str(entry.get("syntax", "regex")),
        message=str(message) if message is not None else None,
        convention_id=str(convention) if convention is not None else None,
        ignore_case=ignore_case,
    )


def _parse_convention(entry: Mapping[str, object], context: str) -> Convention:
    unknown = set(entry) - _CONVENTION_KEYS
    if unknown:
        msg = f"{context}: unknown keys {sorted(unknown)}"
        raise InvalidRuleError(msg)

    conv_id = entry.get("id")
    if not isinstance(conv_id, str) or not conv_id.strip():
        msg = f"{context}: missing required 'id' field"
        raise InvalidRuleError(msg)

    text = entry.get("text")
    if not isinstance(text, str) or not text.strip():
        msg = f"Convention '{conv_id}': 'text' must be a non-empty string"
        raise InvalidRuleError(msg)

    domain = entry.get("domain")
    example = entry.get("example")
    return Convention(
        id=conv_id,
        domain=str(domain) if domain is not None else None,
        category=str(entry.get("category", "general")).lower(),
        text=text.strip(),
        example=str(example) if example is not None else None,
    )


# ---------------------------------------------------------------------------
# Rule set assembly
# ---------------------------------------------------------------------------


def build_rule_set(
    conventions: Mapping[str, str | Convention],
    table: Iterable[Mapping[str, object]] | None = None,
) -> RuleSet:
    """Assemble a RuleSet from conventions and an optional rule table.

    *conventions* maps a convention id to its text (or to a full
    ``Convention``).  *table* rows carry ``id``, ``pattern``, ``severity``
    and ``glob``, plus the optional ``language``, ``syntax``, ``message``,
    ``convention`` and ``ignore_case``.

    Rules keep their declaration order.  Re-declaring an id with the same
    severity replaces the earlier rule in place (last write wins);
    re-declaring it with a different severity raises ``DuplicateRuleError``.
    """
    conv_map: dict[str, Convention] = {}
    for conv_id, value in conventions.items():
        if isinstance(value, Convention):
            if value.id != conv_id:
                msg = f"Convention keyed '{conv_id}' has id '{value.id}'"
                raise InvalidRuleError(msg)
            conv_map[conv_id] = value
        else:
            conv_map[conv_id] = Convention(
                id=conv_id, domain=None, category="general", text=str(value)
            )

    rules: dict[str, Rule] = {}
    for idx, entry in enumerate(table or ()):
        if not isinstance(entry, dict):
            msg = f"rule at index {idx} must be a mapping"
            raise InvalidRuleError(msg)
        rule = _parse_rule(entry, f"rule at index {idx}")

        if rule.convention_id is not None and rule.convention_id not in conv_map:
            msg = f"Rule '{rule.id}': unknown convention '{rule.convention_id}'"
            raise InvalidRuleError(msg)

        previous = rules.get(rule.id)
        if previous is not None:
            if previous.severity != rule.severity:
                raise DuplicateRuleError(rule.id, previous.severity, rule.severity)
            logger.debug("Rule '%s' re-declared, later pattern wins", rule.id)
        rules[rule.id] = rule

    return RuleSet(tuple(rules.values()), conv_map)


def load_rule_set(rules_path: Path) -> RuleSet:
    """Parse ``rules.yml`` and return a validated RuleSet.

    Expected layout::

        version: 1
        conventions:
          - id: js-no-var
            domain: nodejs
            category: style
            text: Use const or let instead of var.
        rules:
          - id: no-var
            convention: js-no-var
            pattern: '\\bvar\\b'
            severity: error
            glob: "*.js"

    Raises ``InvalidRuleError`` / ``DuplicateRuleError`` on schema errors.
    ``OSError`` from reading the file propagates unchanged.
    """
    with rules_path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except UnicodeDecodeError as exc:
            msg = f"{rules_path.name}: not valid UTF-8 ({exc.reason})"
            raise InvalidRuleError(msg) from exc
        except yaml.YAMLError as exc:
            msg = f"{rules_path.name}: invalid YAML: {exc}"
            raise InvalidRuleError(msg) from exc

    if not isinstance(data, dict):
        msg = f"{rules_path.name} must be a YAML mapping"
        raise InvalidRuleError(msg)

    version = data.get("version")
    if version is None:
        msg = f"{rules_path.name}: missing required 'version' field"
        raise InvalidRuleError(msg)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"{rules_path.name}: unsupported version {version}, expected one of {expected}"
        raise InvalidRuleError(msg)

    conventions_data = data.get("conventions") or []
    if not isinstance(conventions_data, list):
        msg = f"{rules_path.name}: 'conventions' must be a list"
        raise InvalidRuleError(msg)

    conventions: dict[str, Convention] = {}
    for idx, entry in enumerate(conventions_data):
        if not isinstance(entry, dict):
            msg = f"{rules_path.name}: convention at index {idx} must be a mapping"
            raise InvalidRuleError(msg)
        convention = _parse_convention(entry, f"{rules_path.name}: convention at index {idx}")
        if convention.id in conventions:
            msg = f"{rules_path.name}: Duplicate convention id '{convention.id}'"
            raise InvalidRuleError(msg)
        conventions[convention.id] = convention

    rules_data = data.get("rules") or []
    if not isinstance(rules_data, list):
        msg = f"{rules_path.name}: 'rules' must be a list"
        raise InvalidRuleError(msg)

    rule_set = build_rule_set(conventions, rules_data)
    logger.debug(
        "Loaded %d rules and %d conventions from %s",
        len(rule_set),
        len(rule_set.conventions),
        rules_path,
    )
    return rule_set


# ---------------------------------------------------------------------------
# Convention queries
# ---------------------------------------------------------------------------


def query_conventions(
    rule_set: RuleSet,
    *,
    domain: str | None = None,
    category: str | None = None,
) -> list[Convention]:
    """Return conventions filtered by domain/category, sorted for display."""
    matches = [
        c
        for c in rule_set.conventions
        if (domain is None or c.domain == domain)
        and (category is None or c.category == category.lower())
    ]
    return sorted(matches, key=lambda c: (c.domain or "", c.category, c.id))


def rules_for_convention(rule_set: RuleSet, convention_id: str) -> list[Rule]:
    """Rules derived from *convention_id*, in rule-set order."""
    return [r for r in rule_set if r.convention_id == convention_id]
