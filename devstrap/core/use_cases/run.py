"""
Run use case — bootstrap this machine.

This is the top-level orchestrator: it loads settings, detects the host
and role, resolves the module list, checks the environment, runs the
modules and records the run in the ledger.

Everything that can fail before the first mutation happens in
prepare_run(), so a bad flag or an unsupported host never leaves a
half-configured machine behind.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from pathlib import Path

from devstrap.adapters.registry import Toolbox
from devstrap.core.config.loader import load_settings, resolve_configs_dir
from devstrap.core.context import ExecutionContext, Role
from devstrap.core.engine.executor import RunReport, execute_modules, generate_run_id
from devstrap.core.errors import BootstrapEnvironmentError
from devstrap.core.host import HostInfo, detect_host, detect_role, shell_name
from devstrap.core.models.settings import BootstrapSettings
from devstrap.core.modules import ModuleRegistry, SetupModule, default_registry
from devstrap.core.persistence.audit import RunEntry, RunLedger
from devstrap.core.selection import resolve_modules

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Everything the user asked for on the command line."""

    role: str | None = None
    dry_run: bool = False
    auto_confirm: bool = False
    only: list[str] = field(default_factory=list)
    skip: list[str] = field(default_factory=list)
    setup_github_key: bool = False
    key_name: str | None = None
    email: str | None = None
    alias: str | None = None
    no_alias: bool = False
    force: bool = False
    mock: bool = False
    backup_root: Path | None = None
    config_path: Path | None = None
    home: Path | None = None


@dataclass
class RunPlan:
    """A validated run, ready to execute."""

    ctx: ExecutionContext
    settings: BootstrapSettings
    toolbox: Toolbox
    host: HostInfo
    modules: list[SetupModule] = field(default_factory=list)
    settings_path: Path | None = None

    @property
    def module_names(self) -> list[str]:
        return [m.name for m in self.modules]

    def to_dict(self) -> dict:
        return {
            "role": str(self.ctx.role),
            "os_family": self.host.os_family,
            "package_manager": self.host.package_manager,
            "modules": self.module_names,
            "dry_run": self.ctx.dry_run,
            "mock": self.toolbox.mock,
            "home": str(self.ctx.home),
            "backup_dir": str(self.ctx.backup_dir),
            "configs_dir": str(self.ctx.configs_dir),
            "settings_file": str(self.settings_path) if self.settings_path else None,
        }


def _apply_overrides(settings: BootstrapSettings, options: RunOptions) -> BootstrapSettings:
    """Fold SSH flags into the settings."""
    update = {}
    if options.key_name:
        update["key_name"] = options.key_name
    if options.email:
        update["email"] = options.email
    if options.alias:
        update["alias"] = options.alias
    if options.no_alias:
        update["use_alias"] = False
    if options.force:
        update["force"] = True
    if not update:
        return settings
    return settings.model_copy(update={"ssh": settings.ssh.model_copy(update=update)})


def _under_home(raw: str | Path, home: Path) -> Path:
    raw = str(raw)
    if raw == "~":
        return home
    if raw.startswith("~/"):
        return home / raw[2:]
    return Path(raw)


def check_environment(modules: list[SetupModule], host: HostInfo, toolbox: Toolbox) -> None:
    """Fail before any mutation when the host cannot run the modules.

    A command a module requires counts as present when an earlier
    selected module provides it.

    Raises:
        BootstrapEnvironmentError: Unsupported package manager, or a
            required command that nothing will install.
    """
    if toolbox.mock:
        logger.debug("Mock toolbox: skipping environment checks")
        return

    names = [m.name for m in modules]
    if "packages" in names and not host.supported:
        raise BootstrapEnvironmentError(
            f"Unsupported OS for package installation ({host.os_family}); "
            "supported: macOS (brew), Debian/Ubuntu (apt). Use --skip packages."
        )

    provided: set[str] = set()
    missing: list[str] = []
    for module in modules:
        for command in module.requires:
            if command in provided or toolbox.command_exists(command):
                continue
            missing.append(f"{command} (needed by {module.name})")
        provided.update(module.provides)

    if missing:
        raise BootstrapEnvironmentError(f"Missing required commands: {', '.join(missing)}")


def prepare_run(
    options: RunOptions,
    registry: ModuleRegistry | None = None,
    toolbox: Toolbox | None = None,
    host: HostInfo | None = None,
) -> RunPlan:
    """Validate everything and build the run's context.

    Raises:
        ConfigurationError: Bad settings file or module names.
        BootstrapEnvironmentError: The host cannot run the modules.
    """
    registry = registry or default_registry()

    settings, settings_path = load_settings(options.config_path)
    settings = _apply_overrides(settings, options)

    host = host or detect_host()
    role = Role(options.role) if options.role else detect_role()
    logger.debug("Host: %s (package manager: %s), role: %s", host.os_family, host.package_manager, role)

    names = resolve_modules(
        role=role,
        defaults=settings.default_modules(role),
        known=registry.names(),
        only=options.only,
        skip=options.skip,
        setup_github_key=options.setup_github_key,
    )
    modules = registry.resolve(names)

    home = options.home or Path.home()

    if toolbox is None:
        if options.mock:
            toolbox = Toolbox.mock_toolbox(host.package_manager or "apt")
        else:
            toolbox = Toolbox.real(host.package_manager, home=options.home)

    check_environment(modules, host, toolbox)

    backup_root = options.backup_root or _under_home(settings.backup_root, home)
    ctx = ExecutionContext(
        dry_run=options.dry_run,
        auto_confirm=options.auto_confirm,
        home=home,
        backup_root=backup_root,
        configs_dir=resolve_configs_dir(settings, settings_path),
        role=role,
        os_family=host.os_family,
        package_manager=host.package_manager,
        shell=shell_name(),
    )

    return RunPlan(
        ctx=ctx,
        settings=settings,
        toolbox=toolbox,
        host=host,
        modules=modules,
        settings_path=settings_path,
    )


def execute_run(
    plan: RunPlan,
    run_id: str | None = None,
    ledger: RunLedger | None = None,
) -> RunReport:
    """Run the planned modules and record the run (real runs only)."""
    run_id = run_id or generate_run_id()
    ctx = plan.ctx

    logger.info("Role: %s", ctx.role)
    logger.info("Modules to run: %s", ", ".join(plan.module_names) or "(none)")
    if ctx.dry_run:
        logger.info("Dry run: no changes will be made")
    else:
        logger.info("Backups will be saved to: %s", ctx.backup_dir)

    report = execute_modules(plan.modules, ctx, plan.toolbox, plan.settings, run_id=run_id)

    if not ctx.dry_run:
        ledger = ledger or RunLedger(backup_root=ctx.backup_root)
        ledger.write(
            RunEntry(
                run_id=report.run_id,
                role=report.role,
                host=socket.gethostname(),
                modules=report.modules,
                completed=report.completed,
                failed=report.failed,
                skipped=report.skipped,
                status=report.status,
                applied=report.applied,
                unchanged=report.unchanged,
                duration_ms=report.duration_ms,
                backup_dir=report.backup_dir,
                backups=report.backups,
                backup_errors=report.backup_errors,
                context={"mock": plan.toolbox.mock, "os_family": plan.host.os_family},
            )
        )

    return report
