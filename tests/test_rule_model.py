"""Tests for convlint.rules.model and convlint.rules.predicates."""

from __future__ import annotations

import pytest

from convlint.errors import InvalidRuleError
from convlint.rules.model import Convention, Finding, Rule, RuleSet, severity_at_least
from convlint.rules.predicates import AstPredicate, RegexPredicate, compile_predicate

# ---------------------------------------------------------------------------
# Rule construction
# ---------------------------------------------------------------------------


class TestRuleValidation:
    """A Rule validates severity and compiles its pattern on construction."""

    def test_valid_rule(self) -> None:
        rule = Rule(id="no-var", pattern=r"\bvar\b", severity="error", globs=("*.js",))
        assert rule.severity == "error"
        assert isinstance(rule.predicate, RegexPredicate)

    @pytest.mark.parametrize("severity", ["fatal", "warn", "ERROR", ""])
    def test_unknown_severity(self, severity: str) -> None:
        with pytest.raises(InvalidRuleError, match="invalid severity"):
            Rule(id="r", pattern="x", severity=severity)

    def test_pattern_that_does_not_compile(self) -> None:
        with pytest.raises(InvalidRuleError, match="does not compile"):
            Rule(id="broken", pattern="(unclosed", severity="error")

    def test_empty_pattern(self) -> None:
        with pytest.raises(InvalidRuleError, match="non-empty"):
            Rule(id="empty", pattern="", severity="info")

    def test_unknown_syntax(self) -> None:
        with pytest.raises(InvalidRuleError, match="invalid syntax"):
            Rule(id="r", pattern="x", severity="info", syntax="glob")

    def test_unknown_language(self) -> None:
        with pytest.raises(InvalidRuleError, match="invalid language"):
            Rule(id="r", pattern="x", severity="info", language="cobol")

    def test_error_message_names_rule(self) -> None:
        with pytest.raises(InvalidRuleError, match="Rule 'broken'"):
            Rule(id="broken", pattern="[", severity="error")

    def test_rules_are_immutable(self) -> None:
        rule = Rule(id="r", pattern="x", severity="info")
        with pytest.raises(AttributeError):
            rule.severity = "error"  # type: ignore[misc]

    def test_equality_ignores_compiled_predicate(self) -> None:
        assert Rule(id="r", pattern="x", severity="info") == Rule(
            id="r", pattern="x", severity="info"
        )


class TestAppliesTo:
    """File filtering by glob and language tag."""

    def test_glob_matches_basename_in_subdirectory(self) -> None:
        rule = Rule(id="r", pattern="x", severity="info", globs=("*.js",))
        assert rule.applies_to("a.js")
        assert rule.applies_to("src/app/a.js")
        assert not rule.applies_to("a.py")

    def test_path_glob(self) -> None:
        rule = Rule(id="r", pattern="x", severity="info", globs=("src/*",))
        assert rule.applies_to("src/a.py")
        assert not rule.applies_to("tests/a.py")

    def test_language_tag(self) -> None:
        rule = Rule(id="r", pattern="x", severity="info", language="bash")
        assert rule.applies_to("deploy.sh")
        assert rule.applies_to("zshrc.zsh")
        assert not rule.applies_to("deploy.py")

    def test_no_filter_applies_everywhere(self) -> None:
        rule = Rule(id="r", pattern="x", severity="info")
        assert rule.applies_to("anything.txt")

    def test_windows_separators(self) -> None:
        rule = Rule(id="r", pattern="x", severity="info", globs=("src/*.py",))
        assert rule.applies_to("src\\main.py")


class TestRenderMessage:
    def test_explicit_message_wins(self) -> None:
        conv = Convention(id="c", domain="nodejs", category="style", text="Use const.")
        rule = Rule(id="r", pattern="x", severity="info", message="custom")
        assert rule.render_message(conv) == "custom"

    def test_falls_back_to_convention_text(self) -> None:
        conv = Convention(id="c", domain="nodejs", category="style", text="Use const.")
        rule = Rule(id="r", pattern="x", severity="info", convention_id="c")
        assert rule.render_message(conv) == "Use const."

    def test_falls_back_to_pattern(self) -> None:
        rule = Rule(id="r", pattern="x+", severity="info")
        assert rule.render_message() == "Matched pattern x+"


# ---------------------------------------------------------------------------
# Conventions, severities, rule sets
# ---------------------------------------------------------------------------


class TestConvention:
    def test_unknown_domain(self) -> None:
        with pytest.raises(InvalidRuleError, match="invalid domain"):
            Convention(id="c", domain="rust", category="style", text="...")

    def test_text_only_convention_has_no_domain(self) -> None:
        conv = Convention(id="c", domain=None, category="general", text="Be nice.")
        assert conv.domain is None


def test_severity_ordering() -> None:
    assert severity_at_least("error", "warning")
    assert severity_at_least("warning", "warning")
    assert not severity_at_least("info", "warning")


class TestRuleSet:
    def test_order_and_lookup(self) -> None:
        a = Rule(id="b-rule", pattern="b", severity="info")
        b = Rule(id="a-rule", pattern="a", severity="error")
        rule_set = RuleSet([a, b])
        assert rule_set.ids() == ("b-rule", "a-rule")
        assert "a-rule" in rule_set
        assert "missing" not in rule_set
        assert rule_set.get("a-rule") is b
        assert len(rule_set) == 2

    def test_duplicate_ids_rejected(self) -> None:
        rule = Rule(id="r", pattern="x", severity="info")
        with pytest.raises(InvalidRuleError):
            RuleSet([rule, rule])

    def test_applicable(self) -> None:
        js = Rule(id="js", pattern="x", severity="info", globs=("*.js",))
        py = Rule(id="py", pattern="x", severity="info", language="python")
        rule_set = RuleSet([js, py])
        assert rule_set.applicable("a.js") == (js,)
        assert rule_set.applicable("a.py") == (py,)
        assert rule_set.applicable("a.md") == ()


def test_finding_sort_key() -> None:
    finding = Finding(
        path="a.js",
        line=3,
        column=2,
        end_line=3,
        end_column=5,
        rule_id="no-var",
        severity="error",
        message="m",
    )
    assert finding.sort_key == ("a.js", 3, 2, "no-var")
    assert finding.is_violation


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


class TestRegexPredicate:
    def test_non_overlapping_offsets(self) -> None:
        predicate = compile_predicate("regex", "aa")
        assert list(predicate.finditer("aaaaa")) == [(0, 2), (2, 4)]

    def test_multiline_anchors(self) -> None:
        predicate = compile_predicate("regex", r"^eval")
        assert list(predicate.finditer("x\neval y\n")) == [(2, 6)]

    def test_literal_is_escaped(self) -> None:
        predicate = compile_predicate("literal", "a.b(")
        assert list(predicate.finditer("a.b( axb(")) == [(0, 4)]

    def test_ignore_case(self) -> None:
        predicate = compile_predicate("regex", "todo", ignore_case=True)
        assert list(predicate.finditer("TODO")) == [(0, 4)]


class TestAstPredicate:
    def test_call_by_name(self) -> None:
        predicate = compile_predicate("python-ast", "Call:print")
        assert isinstance(predicate, AstPredicate)
        text = "x = 1\nprint(x)\nlogger.print(x)\n"
        assert list(predicate.finditer(text)) == [(6, 14), (15, 30)]

    def test_nested_matches_collapse(self) -> None:
        predicate = compile_predicate("python-ast", "Call:print")
        assert list(predicate.finditer("print(print(1))\n")) == [(0, 15)]

    def test_star_import(self) -> None:
        predicate = compile_predicate("python-ast", "ImportFrom:*")
        text = "from os import path\nfrom os.path import *\n"
        assert list(predicate.finditer(text)) == [(20, 41)]

    def test_import_prefix(self) -> None:
        predicate = compile_predicate("python-ast", "Import:os")
        assert len(list(predicate.finditer("import os.path\nimport sys\n"))) == 1

    def test_bare_node_type(self) -> None:
        predicate = compile_predicate("python-ast", "Global")
        text = "def f():\n    global X\n"
        assert list(predicate.finditer(text)) == [(13, 21)]

    def test_non_ascii_columns(self) -> None:
        predicate = compile_predicate("python-ast", "Call:print")
        text = 'é = 1; print("ü")\n'
        assert list(predicate.finditer(text)) == [(7, 17)]

    def test_syntax_error_raises(self) -> None:
        predicate = compile_predicate("python-ast", "Call:print")
        with pytest.raises(SyntaxError):
            list(predicate.finditer("var x = 1;"))

    @pytest.mark.parametrize("pattern", ["Bogus", "print", "Call:", "NodeVisitor"])
    def test_invalid_patterns(self, pattern: str) -> None:
        with pytest.raises(InvalidRuleError):
            compile_predicate("python-ast", pattern)
