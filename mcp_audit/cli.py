"""CLI entrypoint for mcp-audit."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from mcp_audit import __version__
from mcp_audit.config import (
    OUTPUT_FORMATS,
    AuditConfig,
    default_config_template,
    load_audit_config,
)
from mcp_audit.evaluator import audit_path
from mcp_audit.output import render_human, render_json
from mcp_audit.project import DetectionError, Kind
from mcp_audit.rules import build_rules, list_rule_info
from mcp_audit.rules.base import Rule

KINDS: dict[str, Kind] = {"typescript": "typescript", "python": "python"}

app = typer.Typer(
    name="mcp-audit",
    help="Audit MCP server projects against the fleet governance standard.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Audit MCP server projects; with no command, audit the current directory."""
    _ = version
    if ctx.invoked_subcommand is None:
        audit_command()


@app.command("audit")
def audit_command(
    path: Annotated[Path, typer.Argument(help="Project directory to audit.")] = Path("."),
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    fail_on_warnings: Annotated[
        bool | None,
        typer.Option(
            "--fail-on-warnings/--no-fail-on-warnings",
            help="Exit nonzero when the audit passes with warnings.",
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log rule evaluation to stderr.")
    ] = False,
) -> None:
    """Audit a server project and report errors and warnings."""
    _configure_logging(verbose)
    audit_config = _load_config_or_raise(config_file)
    output_format = (format or audit_config.format).lower()
    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    rules = _build_configured_rules_or_raise(audit_config)
    try:
        report = audit_path(path, rules=rules)
    except DetectionError as exc:
        typer.echo(f"❌ {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if output_format == "json":
        typer.echo(render_json(report))
    else:
        typer.echo(render_human(report))

    strict = fail_on_warnings if fail_on_warnings is not None else audit_config.fail_on_warnings
    if report.verdict == "fail":
        raise typer.Exit(code=1)
    if report.verdict == "pass_with_warnings" and strict:
        raise typer.Exit(code=1)


@app.command("rules")
def rules_command(
    kind: Annotated[
        str | None, typer.Option(help="Only list rules for: typescript|python.")
    ] = None,
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List the audit checklist and which rules are enabled."""
    output_format = format.lower()
    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    selected_kind: Kind | None = None
    if kind is not None:
        selected_kind = KINDS.get(kind.lower())
        if selected_kind is None:
            raise typer.BadParameter("kind must be one of: python, typescript", param_hint="--kind")

    audit_config = _load_config_or_raise(config_file)
    active_ids = {rule.rule_id for rule in _build_configured_rules_or_raise(audit_config)}
    rule_info = list_rule_info(selected_kind)

    if output_format == "json":
        payload = {
            "rules": [
                {
                    "rule_id": item.rule_id,
                    "section": item.section,
                    "title": item.title,
                    "severity": item.severity,
                    "kinds": list(item.kinds),
                    "enabled": item.rule_id in active_ids,
                }
                for item in rule_info
            ],
            "meta": {"config": audit_config.to_dict()},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available rules:"]
    for item in rule_info:
        status = "enabled" if item.rule_id in active_ids else "disabled"
        kinds = ",".join(item.kinds)
        lines.append(f"- {item.rule_id} [{status}; {item.severity}; {kinds}] - {item.title}")
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        "mcp-audit.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


def main() -> None:
    """Console script entrypoint."""
    app()


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


def _load_config_or_raise(config_file: Path | None) -> AuditConfig:
    try:
        return load_audit_config(config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_configured_rules_or_raise(audit_config: AuditConfig) -> list[Rule]:
    try:
        return build_rules(
            enabled_rule_ids=audit_config.rule_enable,
            disabled_rule_ids=audit_config.rule_disable,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc
