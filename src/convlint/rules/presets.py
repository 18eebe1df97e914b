"""Built-in convention presets for the supported domains.

Each preset pairs a handful of prose conventions with the rules that make
them checkable.  ``convlint init`` renders the selected presets into a
starter ``rules.yml``; most conventions in a real catalog stay prose-only.
"""

from __future__ import annotations

from dataclasses import dataclass

import yaml


@dataclass(frozen=True)
class PresetRule:
    """A rule row as it appears in ``rules.yml``."""

    id: str
    pattern: str
    severity: str
    convention: str
    syntax: str = "regex"
    message: str | None = None


@dataclass(frozen=True)
class PresetConvention:
    id: str
    category: str
    text: str
    example: str | None = None


@dataclass(frozen=True)
class Preset:
    """Conventions and rules for one domain."""

    domain: str
    description: str
    conventions: tuple[PresetConvention, ...]
    rules: tuple[PresetRule, ...]


# ---------------------------------------------------------------------------
# Built-in presets
# ---------------------------------------------------------------------------

PYTHON = Preset(
    domain="python",
    description="Python / FastAPI services: explicit errors, typed modules, no stray output.",
    conventions=(
        PresetConvention(
            "py-explicit-except",
            "style",
            "Catch specific exceptions; never use a bare 'except:'.",
            "except ValueError as exc:",
        ),
        PresetConvention(
            "py-no-print",
            "structure",
            "Use the logging module instead of print() in application code.",
            "logger.info('started')",
        ),
        PresetConvention(
            "py-no-star-import",
            "style",
            "Import names explicitly; wildcard imports hide dependencies.",
        ),
    ),
    rules=(
        PresetRule("py-bare-except", r"^\s*except\s*:", "error", "py-explicit-except"),
        PresetRule(
            "py-print-call", "Call:print", "warning", "py-no-print", syntax="python-ast"
        ),
        PresetRule(
            "py-star-import", "ImportFrom:*", "error", "py-no-star-import", syntax="python-ast"
        ),
    ),
)

BASH = Preset(
    domain="bash",
    description="Bash / ZSH scripts: strict mode and modern substitution.",
    conventions=(
        PresetConvention(
            "sh-modern-substitution",
            "style",
            "Use $(...) for command substitution instead of backticks.",
            'now="$(date +%s)"',
        ),
        PresetConvention(
            "sh-no-eval",
            "security",
            "Avoid eval; build commands as arrays instead.",
        ),
    ),
    rules=(
        PresetRule("sh-backticks", r"`[^`\n]+`", "warning", "sh-modern-substitution"),
        PresetRule("sh-eval", r"^\s*eval\s", "error", "sh-no-eval"),
    ),
)

NODEJS = Preset(
    domain="nodejs",
    description="Node.js: block-scoped declarations and strict equality.",
    conventions=(
        PresetConvention(
            "js-no-var",
            "style",
            "Use const or let instead of var.",
            "const total = 0;",
        ),
        PresetConvention(
            "js-strict-equality",
            "style",
            "Use === and !== instead of loose equality.",
        ),
        PresetConvention(
            "js-no-console",
            "structure",
            "Use a logger instead of console.log in services.",
        ),
    ),
    rules=(
        PresetRule("no-var", r"\bvar\b", "error", "js-no-var"),
        PresetRule("loose-equality", r"[^=!]==[^=]", "warning", "js-strict-equality"),
        PresetRule("console-log", r"\bconsole\.log\(", "info", "js-no-console"),
    ),
)

LARAVEL = Preset(
    domain="laravel",
    description="Laravel / TALL stack: no debug helpers, config through config().",
    conventions=(
        PresetConvention(
            "laravel-no-debug-helpers",
            "structure",
            "Do not leave dd() or dump() calls in committed code.",
        ),
        PresetConvention(
            "laravel-env-in-config",
            "structure",
            "Read env() only inside config files; use config() elsewhere.",
            "config('services.mail.key')",
        ),
    ),
    rules=(
        PresetRule("laravel-dd", r"\b(?:dd|dump)\(", "error", "laravel-no-debug-helpers"),
        PresetRule("laravel-env-call", r"\benv\(", "warning", "laravel-env-in-config"),
    ),
)

WORDPRESS = Preset(
    domain="wordpress",
    description="WordPress: sanitize request input and escape output.",
    conventions=(
        PresetConvention(
            "wp-sanitize-input",
            "security",
            "Sanitize superglobals with sanitize_text_field() or similar before use.",
            "$name = sanitize_text_field( wp_unslash( $_POST['name'] ) );",
        ),
        PresetConvention(
            "wp-escape-output",
            "security",
            "Escape output with esc_html() / esc_attr() when echoing variables.",
        ),
    ),
    rules=(
        PresetRule(
            "wp-raw-superglobal",
            r"(?<!wp_unslash\( )\$_(?:GET|POST|REQUEST)\[",
            "error",
            "wp-sanitize-input",
        ),
        PresetRule("wp-echo-variable", r"\becho\s+\$", "warning", "wp-escape-output"),
    ),
)

_PRESETS: dict[str, Preset] = {
    p.domain: p for p in (PYTHON, BASH, NODEJS, LARAVEL, WORDPRESS)
}


def get_preset(domain: str) -> Preset:
    """Return the preset for *domain*; raise ``KeyError`` if unknown."""
    return _PRESETS[domain]


def list_presets() -> list[Preset]:
    return [_PRESETS[d] for d in sorted(_PRESETS)]


def render_rules_yaml(domains: list[str] | tuple[str, ...]) -> str:
    """Render the presets for *domains* as a ``rules.yml`` document."""
    conventions: list[dict[str, object]] = []
    rules: list[dict[str, object]] = []
    for domain in dict.fromkeys(domains):
        preset = get_preset(domain)
        for conv in preset.conventions:
            entry: dict[str, object] = {
                "id": conv.id,
                "domain": preset.domain,
                "category": conv.category,
                "text": conv.text,
            }
            if conv.example is not None:
                entry["example"] = conv.example
            conventions.append(entry)
        for rule in preset.rules:
            row: dict[str, object] = {
                "id": rule.id,
                "convention": rule.convention,
                "pattern": rule.pattern,
                "severity": rule.severity,
                "language": preset.domain,
            }
            if rule.syntax != "regex":
                row["syntax"] = rule.syntax
            if rule.message is not None:
                row["message"] = rule.message
            rules.append(row)

    document = {"version": 1, "conventions": conventions, "rules": rules}
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True, width=100)
