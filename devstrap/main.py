"""
devstrap — CLI entrypoint.

Usage:
    devstrap --help
    devstrap run --dry-run
    devstrap run --role vps --yes
    devstrap modules
    devstrap history
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from devstrap import __version__
from devstrap.core.observability.logging_config import resolve_level, setup_logging

_STATUS_COLORS = {"ok": "green", "partial": "yellow", "failed": "red", "skipped": "yellow"}
_STATUS_MARKERS = {"ok": "✓", "failed": "✗", "skipped": "⊘"}


@click.group()
@click.version_option(version=__version__, prog_name="devstrap")
@click.option("--verbose", "-v", is_flag=True, help="Show debug messages.")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors.")
@click.option("--debug", is_flag=True, help="Debug logging with timestamps and source locations.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to devstrap.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """devstrap — bootstrap a developer workstation or VPS."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(verbose=verbose, quiet=quiet, debug=debug),
        detailed=debug,
    )


# ── run ─────────────────────────────────────────────────────────


@cli.command()
@click.option("--role", type=click.Choice(["local", "vps"]), default=None, help="Environment role (default: auto-detect).")
@click.option("--yes", "-y", "auto_confirm", is_flag=True, help="Don't ask for confirmation.")
@click.option("--dry-run", is_flag=True, help="Show what would change without changing anything.")
@click.option("--skip", multiple=True, help="Comma-separated modules to skip (repeatable).")
@click.option("--only", multiple=True, help="Comma-separated modules to run instead of the defaults.")
@click.option("--setup-github-key", is_flag=True, help="Add the ssh module (automatic for --role vps).")
@click.option("--key-name", default=None, help="SSH key file name (default: id_ed25519_github_dev).")
@click.option("--email", default=None, help="SSH key comment (default: git user.email).")
@click.option("--alias", default=None, help="SSH host alias for GitHub (default: github-dev).")
@click.option("--no-alias", is_flag=True, help="Don't write an SSH host alias.")
@click.option("--force", is_flag=True, help="Regenerate the SSH key even if it exists.")
@click.option("--mock", is_flag=True, help="Use mock package/ssh/git/network tools.")
@click.option("--backup-root", type=click.Path(file_okay=False), default=None, help="Backup root directory.")
@click.option("--home", "home", type=click.Path(file_okay=False), default=None, help="Home directory to configure.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output the run report as JSON.")
@click.pass_context
def run(
    ctx: click.Context,
    role: str | None,
    auto_confirm: bool,
    dry_run: bool,
    skip: tuple[str, ...],
    only: tuple[str, ...],
    setup_github_key: bool,
    key_name: str | None,
    email: str | None,
    alias: str | None,
    no_alias: bool,
    force: bool,
    mock: bool,
    backup_root: str | None,
    home: str | None,
    as_json: bool,
) -> None:
    """Run setup modules on this machine.

    Examples:

        devstrap run --dry-run

        devstrap run --role vps --yes

        devstrap run --only shell,git

        devstrap run --skip packages --setup-github-key --email me@example.com
    """
    from devstrap.core.errors import BootstrapError
    from devstrap.core.selection import parse_module_list
    from devstrap.core.use_cases.run import RunOptions, execute_run, prepare_run

    options = RunOptions(
        role=role,
        dry_run=dry_run,
        auto_confirm=auto_confirm,
        only=parse_module_list(only),
        skip=parse_module_list(skip),
        setup_github_key=setup_github_key,
        key_name=key_name,
        email=email,
        alias=alias,
        no_alias=no_alias,
        force=force,
        mock=mock,
        backup_root=Path(backup_root).expanduser() if backup_root else None,
        config_path=ctx.obj.get("config_path"),
        home=Path(home).expanduser() if home else None,
    )

    try:
        plan = prepare_run(options)
    except BootstrapError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if not as_json:
        mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
        click.secho(f"\n⚡ {mode_label}devstrap — {plan.ctx.role}", fg="cyan", bold=True)
        click.echo(f"   Host: {plan.host.os_family} ({plan.host.package_manager or 'no package manager'})")
        click.echo(f"   Modules: {', '.join(plan.module_names) or '(none)'}")
        click.echo()

    try:
        if not (auto_confirm or dry_run):
            if not click.confirm("Continue with installation?", default=False):
                click.echo("Installation cancelled.")
                return
        report = execute_run(plan)
    except (KeyboardInterrupt, click.Abort):
        click.secho("\n⊘ Interrupted", fg="yellow", err=True)
        sys.exit(130)
    except BootstrapError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"❌ Unexpected error: {type(e).__name__}: {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({"plan": plan.to_dict(), "report": report.to_dict()}, indent=2))
        return

    _print_summary(report, quiet=ctx.obj.get("quiet", False))


def _print_summary(report, quiet: bool = False) -> None:
    click.secho("=== Summary ===", bold=True)
    for result in report.module_results:
        marker = _STATUS_MARKERS.get(result.status, "?")
        color = _STATUS_COLORS.get(result.status, "white")
        click.secho(f"   {marker} {result.name}", fg=color, nl=False)
        if report.dry_run:
            click.echo(f"  ({result.would_apply} to change, {result.unchanged} unchanged)")
        else:
            click.echo(f"  ({result.applied} applied, {result.unchanged} unchanged)")
        if result.error:
            click.echo(f"     │ {result.error}")
        for failed in (r for r in result.results if r.failed):
            click.echo(f"     │ {failed.target}: {failed.error}")

    if report.backup_errors:
        click.echo()
        click.secho("⚠️  Backup failures (changes were still applied):", fg="yellow", bold=True)
        for error in report.backup_errors:
            click.echo(f"   • {error}")

    if report.backups:
        click.echo()
        click.echo(f"   Backups saved to: {report.backup_dir}")

    click.echo()
    click.secho(f"   Status: {report.status}", fg=_STATUS_COLORS.get(report.status, "white"), bold=True)

    if report.notes and not quiet and not report.dry_run:
        click.echo()
        click.secho("Next steps:", bold=True)
        for module, note in report.notes:
            click.echo(f"   • [{module}] {note}")
    click.echo()


# ── modules ─────────────────────────────────────────────────────


@cli.command("modules")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_modules(ctx: click.Context, as_json: bool) -> None:
    """List setup modules and the default list for each role."""
    from devstrap.core.config.loader import load_settings
    from devstrap.core.errors import ConfigurationError
    from devstrap.core.modules import default_registry

    try:
        settings, _ = load_settings(ctx.obj.get("config_path"))
    except ConfigurationError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    registry = default_registry()
    defaults = {role: settings.default_modules(role) for role in ("local", "vps")}

    if as_json:
        data = {
            "modules": [
                {
                    "name": m.name,
                    "description": m.description,
                    "requires": list(m.requires),
                    "provides": list(m.provides),
                }
                for m in registry
            ],
            "defaults": defaults,
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.secho("\n📦 Modules", fg="cyan", bold=True)
    for module in registry:
        click.echo(f"   • {module.name:<10} {module.description}")
    click.echo()
    for role, names in defaults.items():
        click.echo(f"   {role} defaults: {', '.join(names)}")
    click.echo()


# ── history ─────────────────────────────────────────────────────


@cli.command()
@click.option("-n", "limit", type=int, default=10, show_default=True, help="Number of runs to show.")
@click.option("--backup-root", type=click.Path(file_okay=False), default=None, help="Backup root directory.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, limit: int, backup_root: str | None, as_json: bool) -> None:
    """Show recent runs from the ledger."""
    from devstrap.core.config.loader import load_settings
    from devstrap.core.errors import ConfigurationError
    from devstrap.core.persistence.audit import RunLedger

    if backup_root:
        root = Path(backup_root).expanduser()
    else:
        try:
            settings, _ = load_settings(ctx.obj.get("config_path"))
        except ConfigurationError as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(1)
        root = Path(settings.backup_root).expanduser()

    ledger = RunLedger(backup_root=root)
    entries = ledger.read_recent(limit)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo(f"No runs recorded in {ledger.path}")
        return

    click.secho(f"\n📜 Last {len(entries)} run(s)", fg="cyan", bold=True)
    for entry in reversed(entries):
        color = _STATUS_COLORS.get(entry.status, "white")
        click.echo(f"   {entry.timestamp[:19]}  ", nl=False)
        click.secho(f"{entry.status:<8}", fg=color, nl=False)
        click.echo(f" {entry.role:<6} {', '.join(entry.modules)}")
        if entry.failed:
            click.echo(f"     │ failed: {', '.join(entry.failed)}")
        if entry.backups:
            click.echo(f"     │ backups: {entry.backup_dir}")
    click.echo()


if __name__ == "__main__":
    cli()
