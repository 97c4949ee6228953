"""
buildplan — CLI entrypoint.

Usage:
    python -m buildplan.main --help
    python -m buildplan.main resolve
    python -m buildplan.main clean --dry-run
    python -m buildplan.main config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from buildplan import __version__
from buildplan.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="buildplan")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to buildplan.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """buildplan — resolve build layout, repositories and plugins."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("BUILDPLAN_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("BUILDPLAN_LOG_FILE"),
        log_file_level=os.environ.get("BUILDPLAN_LOG_FILE_LEVEL"),
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, as_json: bool) -> None:
    """Resolve the effective build plan."""
    from buildplan.core.use_cases.resolve import resolve_build

    result = resolve_build(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    plan = result.plan
    assert plan is not None  # guaranteed after error check above
    quiet = ctx.obj.get("quiet", False)

    if not quiet:
        click.secho("\n📦 Build plan", fg="cyan", bold=True)
        click.echo(f"   Output root: {plan.root_output_dir}")
        click.echo(f"   SDK: {plan.sdk_path}")
        for path in plan.external_builds:
            click.echo(f"   Included build: {path}")
        click.echo()

    click.secho(f"   Projects: {len(plan.evaluation_order)}", fg="white", bold=True)
    for name in plan.evaluation_order:
        click.echo(f"     • :{name}  → {plan.output_dirs[name]}")

    click.echo()
    click.secho(
        f"   Plugin repositories: {len(plan.plugin_repositories)}", fg="white", bold=True
    )
    for repo in plan.plugin_repositories:
        click.echo(f"     • {repo.describe()}")

    click.echo()
    click.secho(
        f"   Dependency repositories ({plan.resolution_mode.value}): "
        f"{len(plan.dependency_repositories)}",
        fg="white",
        bold=True,
    )
    for repo in plan.dependency_repositories:
        click.echo(f"     • {repo.describe()}")

    click.echo()
    click.secho(f"   Plugins: {len(plan.plugins)}", fg="white", bold=True)
    for plugin in plan.plugins:
        click.echo(f"     • {plugin.describe()}")

    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Show what would be deleted.")
@click.pass_context
def clean(ctx: click.Context, as_json: bool, dry_run: bool) -> None:
    """Delete the resolved build output root."""
    from buildplan.core.use_cases.clean import run_clean

    outcome = run_clean(config_path=ctx.obj.get("config_path"), dry_run=dry_run)

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
        sys.exit(0 if outcome.error is None else 1)
        return

    if outcome.error:
        click.secho(f"❌ {outcome.error}", fg="red")
        sys.exit(1)

    result = outcome.result
    assert result is not None
    verb = "Would delete" if dry_run else "Deleted"
    if not result.deleted:
        click.echo(f"Nothing to clean at {result.root}")
        return
    for path in result.deleted:
        click.secho(f"🧹 {verb} {path}", fg="green")


@cli.group()
def config() -> None:
    """Build configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate buildplan.yml configuration."""
    from buildplan.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Projects: {len(result.config.projects)}")
        click.echo(f"   Plugins: {len(result.config.plugins)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


if __name__ == "__main__":
    cli()
