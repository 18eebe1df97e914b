"""Match predicates: compiled forms of a rule's pattern.

Three pattern syntaxes are supported:

- ``regex``: a Python regular expression, matched over the whole text with
  ``re.MULTILINE`` so that ``^``/``$`` anchor at line boundaries.
- ``literal``: plain text, escaped and matched like a regex.
- ``python-ast``: a structural pattern over a Python syntax tree, written as
  ``NodeType`` or ``NodeType:name`` (e.g. ``Call:print``, ``ImportFrom:*``,
  ``Global``).

Every predicate yields non-overlapping ``(start, end)`` character offsets in
ascending order.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from convlint.errors import InvalidRuleError

if TYPE_CHECKING:
    from collections.abc import Iterator

VALID_SYNTAXES: frozenset[str] = frozenset({"regex", "literal", "python-ast"})


class Predicate(Protocol):
    """Anything that can locate matches inside a file's text."""

    def finditer(self, text: str) -> Iterator[tuple[int, int]]: ...


# ---------------------------------------------------------------------------
# Regex / literal
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RegexPredicate:
    """Text predicate backed by a compiled regular expression."""

    regex: re.Pattern[str]

    def finditer(self, text: str) -> Iterator[tuple[int, int]]:
        for match in self.regex.finditer(text):
            yield match.start(), match.end()


# ---------------------------------------------------------------------------
# Python AST
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AstPredicate:
    """Structural predicate matching nodes of a Python syntax tree.

    The optional *name* narrows the node type:

    - ``Call:name`` -- callee is ``name`` or ``<anything>.name``
    - ``Import:mod`` / ``ImportFrom:mod`` -- module ``mod`` or a submodule;
      ``ImportFrom:*`` matches star imports
    - ``Name:id`` / ``Attribute:attr`` -- the identifier itself
    - any other node type -- its ``name`` attribute (functions, classes, ...)

    Parsing happens on every call, so a file that is not valid Python makes
    ``finditer`` raise ``SyntaxError``.
    """

    node_type: type[ast.AST]
    name: str | None = None
    ignore_case: bool = False

    def finditer(self, text: str) -> Iterator[tuple[int, int]]:
        tree = ast.parse(text)
        lines = physical_lines(text)
        starts = line_starts(text)

        spans: list[tuple[int, int]] = []
        for node in ast.walk(tree):
            if not isinstance(node, self.node_type) or not self._name_matches(node):
                continue
            lineno = getattr(node, "lineno", None)
            col = getattr(node, "col_offset", None)
            if lineno is None or col is None:
                continue
            start = _to_offset(starts, lines, lineno, col)
            end_lineno = getattr(node, "end_lineno", None) or lineno
            end_col = getattr(node, "end_col_offset", None)
            end = _to_offset(starts, lines, end_lineno, end_col) if end_col is not None else start
            spans.append((start, end))

        # Nested matches (print(print(x))) collapse into the outermost one.
        last_end = -1
        for start, end in sorted(spans):
            if start < last_end:
                continue
            last_end = max(end, start + 1)
            yield start, end

    def _name_matches(self, node: ast.AST) -> bool:
        if self.name is None:
            return True
        candidates = _node_names(node)
        if self.ignore_case:
            wanted = self.name.casefold()
            return any(c.casefold() == wanted for c in candidates)
        return self.name in candidates


def _node_names(node: ast.AST) -> set[str]:
    """Return the identifiers a ``NodeType:name`` pattern may refer to."""
    if isinstance(node, ast.Call):
        func = node.func
        if isinstance(func, ast.Name):
            return {func.id}
        if isinstance(func, ast.Attribute):
            return {func.attr}
        return set()
    if isinstance(node, ast.Import):
        return {prefix for alias in node.names for prefix in _module_prefixes(alias.name)}
    if isinstance(node, ast.ImportFrom):
        names = set(_module_prefixes(node.module or ""))
        if any(alias.name == "*" for alias in node.names):
            names.add("*")
        return names
    if isinstance(node, ast.Name):
        return {node.id}
    if isinstance(node, ast.Attribute):
        return {node.attr}
    name = getattr(node, "name", None)
    return {name} if isinstance(name, str) else set()


def _module_prefixes(module: str) -> list[str]:
    """``a.b.c`` -> ``['a', 'a.b', 'a.b.c']``."""
    parts = [p for p in module.split(".") if p]
    return [".".join(parts[: i + 1]) for i in range(len(parts))]


_LINE_RE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+\Z")


def physical_lines(text: str) -> list[str]:
    """Split *text* into lines (with endings) the way the Python tokenizer does."""
    return _LINE_RE.findall(text)


def line_starts(text: str) -> list[int]:
    """Character offset at which each line starts, plus a final end offset."""
    starts = [0]
    for line in physical_lines(text):
        starts.append(starts[-1] + len(line))
    return starts


def _to_offset(starts: list[int], lines: list[str], lineno: int, byte_col: int) -> int:
    """Convert an AST (1-based line, UTF-8 byte column) to a character offset."""
    if lineno - 1 >= len(lines):
        return starts[-1]
    line = lines[lineno - 1]
    char_col = len(line.encode("utf-8")[:byte_col].decode("utf-8", errors="ignore"))
    return starts[lineno - 1] + char_col


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def compile_predicate(syntax: str, pattern: str, *, ignore_case: bool = False) -> Predicate:
    """Compile *pattern* under *syntax*.

    Raises ``InvalidRuleError`` when the syntax is unknown, the pattern is
    empty, or the pattern does not compile.
    """
    if syntax not in VALID_SYNTAXES:
        msg = f"invalid syntax '{syntax}', must be one of {sorted(VALID_SYNTAXES)}"
        raise InvalidRuleError(msg)
    if not pattern:
        msg = "pattern must be a non-empty string"
        raise InvalidRuleError(msg)

    if syntax == "python-ast":
        return _compile_ast(pattern, ignore_case=ignore_case)

    source = re.escape(pattern) if syntax == "literal" else pattern
    flags = re.MULTILINE | (re.IGNORECASE if ignore_case else 0)
    try:
        regex = re.compile(source, flags)
    except re.error as exc:
        msg = f"pattern {pattern!r} does not compile: {exc}"
        raise InvalidRuleError(msg) from exc
    return RegexPredicate(regex)


def _compile_ast(pattern: str, *, ignore_case: bool) -> AstPredicate:
    type_name, sep, name = pattern.partition(":")
    type_name = type_name.strip()
    node_type = getattr(ast, type_name, None)
    if not isinstance(node_type, type) or not issubclass(node_type, ast.AST):
        msg = f"pattern {pattern!r}: '{type_name}' is not a Python AST node type"
        raise InvalidRuleError(msg)
    name = name.strip()
    if sep and not name:
        msg = f"pattern {pattern!r}: empty name after ':'"
        raise InvalidRuleError(msg)
    return AstPredicate(
        node_type=node_type,
        name=name or None,
        ignore_case=ignore_case,
    )
