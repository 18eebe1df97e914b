"""Rules domain: conventions, rule model, predicates, loader, presets."""

from convlint.rules.loader import (
    build_rule_set,
    load_rule_set,
    query_conventions,
    rules_for_convention,
)
from convlint.rules.model import (
    SEVERITY_RANK,
    VALID_DOMAINS,
    VALID_SEVERITIES,
    Convention,
    Finding,
    Rule,
    RuleSet,
    severity_at_least,
)
from convlint.rules.predicates import compile_predicate

__all__ = [
    "SEVERITY_RANK",
    "VALID_DOMAINS",
    "VALID_SEVERITIES",
    "Convention",
    "Finding",
    "Rule",
    "RuleSet",
    "build_rule_set",
    "compile_predicate",
    "load_rule_set",
    "query_conventions",
    "rules_for_convention",
    "severity_at_least",
]
