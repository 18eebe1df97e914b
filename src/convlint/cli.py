"""convlint CLI entry point."""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from convlint import __version__
from convlint.rules.model import VALID_DOMAINS, VALID_SEVERITIES

if TYPE_CHECKING:
    from convlint.rules.model import RuleSet

_PROJECT_OPTION = click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
_RULES_OPTION = click.option(
    "--rules",
    "rules_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Rules file (default: from config.yml or .convlint/rules.yml).",
)


def _configure_logging(*, verbose: bool, quiet: bool) -> None:
    """Route ``convlint.*`` log records to stderr through Rich."""
    from rich.console import Console
    from rich.logging import RichHandler

    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    pkg_logger = logging.getLogger("convlint")
    pkg_logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
        )
        pkg_logger.addHandler(handler)


@click.group()
@click.version_option(version=__version__, prog_name="convlint")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """convlint - check code against structured coding conventions."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose=verbose, quiet=quiet)


def _load_rule_set_or_exit(project_root: Path, rules_path: Path | None) -> RuleSet:
    from convlint.config import load_config
    from convlint.errors import ConfigError, DuplicateRuleError, InvalidRuleError
    from convlint.rules.loader import load_rule_set

    if rules_path is None:
        try:
            rules_path = load_config(project_root).resolve_rules_path(project_root)
        except ConfigError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(2)

    if not rules_path.is_file():
        click.echo(
            f"Error: rules file not found: {rules_path}. Run `convlint init` first.", err=True
        )
        sys.exit(2)
    try:
        return load_rule_set(rules_path)
    except (InvalidRuleError, DuplicateRuleError, OSError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)


@main.command()
@click.argument("paths", nargs=-1, type=click.Path(path_type=Path))
@_PROJECT_OPTION
@_RULES_OPTION
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
@click.option(
    "--min-severity",
    type=click.Choice(sorted(VALID_SEVERITIES)),
    default=None,
    help="Hide violations below this severity (default: from config.yml or info).",
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=None,
    help="Number of parallel scan workers.",
)
def lint(
    *,
    paths: tuple[Path, ...],
    project: Path | None,
    rules_path: Path | None,
    fmt: str | None,
    min_severity: str | None,
    jobs: int | None,
) -> None:
    """Check PATHS (default: the project root) against the project's rules.

    Exit codes: 0 = no error-severity violations, 1 = at least one
    error-severity violation, 2 = configuration or rule-loading error.
    """
    from convlint.config import load_config
    from convlint.errors import ConfigError
    from convlint.linter import LintError
    from convlint.linter import lint as run_lint
    from convlint.report.formatters import format_json, format_porcelain, format_rich

    project_root = project or Path.cwd()

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        config = load_config(project_root)
        overrides: dict[str, object] = {}
        if min_severity is not None:
            overrides["min_severity"] = min_severity
        if jobs is not None:
            overrides["max_workers"] = jobs
        if overrides:
            config = dataclasses.replace(config, **overrides)  # type: ignore[arg-type]
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    try:
        result = run_lint(
            project_root,
            paths=list(paths) or None,
            rules_path=rules_path,
            config=config,
        )
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    formatters = {
        "rich": format_rich,
        "json": format_json,
        "porcelain": format_porcelain,
    }
    output = formatters[fmt](result.report, elapsed_ms=result.elapsed_ms)
    if output:
        click.echo(output)

    if result.exit_code:
        sys.exit(result.exit_code)


@main.command("rules")
@_PROJECT_OPTION
@_RULES_OPTION
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def rules_cmd(*, project: Path | None, rules_path: Path | None, output_json: bool) -> None:
    """List the rules loaded from the rules file, in evaluation order."""
    rule_set = _load_rule_set_or_exit(project or Path.cwd(), rules_path)

    if output_json:
        data = [
            {
                "id": r.id,
                "severity": r.severity,
                "syntax": r.syntax,
                "pattern": r.pattern,
                "files": list(r.file_globs),
                "convention": r.convention_id,
            }
            for r in rule_set
        ]
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    table = Table(title=f"Rules ({len(rule_set)})")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("severity")
    table.add_column("files")
    table.add_column("pattern", overflow="fold")
    severity_style = {"error": "red", "warning": "yellow", "info": "blue"}
    for r in rule_set:
        table.add_row(
            r.id,
            f"[{severity_style[r.severity]}]{r.severity}[/]",
            ", ".join(r.file_globs) or "*",
            escape(f"{r.pattern} ({r.syntax})" if r.syntax != "regex" else r.pattern),
        )
    Console().print(table)


@main.command("conventions")
@_PROJECT_OPTION
@_RULES_OPTION
@click.option(
    "--domain",
    type=click.Choice(sorted(VALID_DOMAINS)),
    default=None,
    help="Only show conventions for this domain.",
)
@click.option("--category", default=None, help="Only show conventions in this category.")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def conventions_cmd(
    *,
    project: Path | None,
    rules_path: Path | None,
    domain: str | None,
    category: str | None,
    output_json: bool,
) -> None:
    """Query the conventions declared in the rules file."""
    from convlint.rules.loader import query_conventions, rules_for_convention

    rule_set = _load_rule_set_or_exit(project or Path.cwd(), rules_path)
    matches = query_conventions(rule_set, domain=domain, category=category)

    if output_json:
        data = [
            {
                "id": c.id,
                "domain": c.domain,
                "category": c.category,
                "text": c.text,
                "example": c.example,
                "rules": [r.id for r in rules_for_convention(rule_set, c.id)],
            }
            for c in matches
        ]
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not matches:
        click.echo("No conventions match.")
        return

    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    table = Table(title=f"Conventions ({len(matches)})")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("domain")
    table.add_column("category")
    table.add_column("convention", overflow="fold")
    table.add_column("rules")
    for c in matches:
        checked = ", ".join(r.id for r in rules_for_convention(rule_set, c.id))
        table.add_row(
            c.id, c.domain or "-", c.category, escape(c.text), checked or "[dim]prose only[/]"
        )
    Console().print(table)


@main.command()
@_PROJECT_OPTION
@click.option(
    "--domain",
    "domains",
    type=click.Choice(sorted(VALID_DOMAINS)),
    multiple=True,
    help="Domain presets to include (repeatable; default: all).",
)
@click.option("--force", is_flag=True, help="Overwrite an existing rules file.")
def init(*, project: Path | None, domains: tuple[str, ...], force: bool) -> None:
    """Write a starter .convlint/rules.yml from the built-in presets."""
    from convlint.config import CONFIG_DIR, CONFIG_FILE, DEFAULT_RULES_PATH
    from convlint.rules.presets import render_rules_yaml

    project_root = project or Path.cwd()
    rules_file = project_root / DEFAULT_RULES_PATH
    if rules_file.exists() and not force:
        click.echo(f"Error: {rules_file} already exists (use --force to overwrite).", err=True)
        sys.exit(1)

    selected = domains or tuple(sorted(VALID_DOMAINS))
    rules_file.parent.mkdir(parents=True, exist_ok=True)
    rules_file.write_text(render_rules_yaml(selected), encoding="utf-8")

    config_file = project_root / CONFIG_DIR / CONFIG_FILE
    if not config_file.exists():
        config_file.write_text(
            "lint:\n"
            f"  rules: {DEFAULT_RULES_PATH.as_posix()}\n"
            "  min_severity: info\n"
            "  exclude: []\n",
            encoding="utf-8",
        )

    quiet = bool(click.get_current_context().find_root().obj.get("quiet"))
    if not quiet:
        click.echo(f"Created {rules_file} ({', '.join(selected)})")
