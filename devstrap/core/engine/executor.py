"""
Engine executor — runs setup modules in order and aggregates results.

Flow:
    modules → session per module → setup() → ModuleResult → RunReport

A BootstrapError raised by a module marks that module failed and the run
moves on to the next one.  Anything else is a bug: it is logged with the
module name and propagates to the caller.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from devstrap.adapters.registry import Toolbox
from devstrap.core.context import ExecutionContext
from devstrap.core.engine.mutator import Mutator
from devstrap.core.errors import BootstrapError, MutationError, SourceMissingError
from devstrap.core.models.mutation import MutationRequest, MutationResult
from devstrap.core.models.settings import BootstrapSettings

if TYPE_CHECKING:
    from devstrap.core.modules.base import SetupModule

logger = logging.getLogger(__name__)


# ── Results ─────────────────────────────────────────────────────


@dataclass
class ModuleResult:
    """Outcome of one module."""

    name: str
    status: str = "ok"                 # ok, failed, skipped
    results: list[MutationResult] = field(default_factory=list)
    error: str | None = None
    notes: list[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def applied(self) -> int:
        return sum(1 for r in self.results if r.applied)

    @property
    def unchanged(self) -> int:
        return sum(1 for r in self.results if r.skipped and not r.would_apply)

    @property
    def would_apply(self) -> int:
        return sum(1 for r in self.results if r.would_apply)

    @property
    def failed_mutations(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def backup_errors(self) -> list[str]:
        return [e for r in self.results for e in r.backup_errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "error": self.error,
            "notes": list(self.notes),
            "duration_ms": self.duration_ms,
            "applied": self.applied,
            "unchanged": self.unchanged,
            "would_apply": self.would_apply,
            "failed": self.failed_mutations,
            "results": [r.model_dump(mode="json") for r in self.results],
        }


@dataclass
class RunReport:
    """Summary of a whole run."""

    run_id: str = ""
    role: str = ""
    dry_run: bool = False
    backup_dir: str = ""
    modules: list[str] = field(default_factory=list)
    module_results: list[ModuleResult] = field(default_factory=list)
    duration_ms: int = 0

    def _names(self, status: str) -> list[str]:
        return [m.name for m in self.module_results if m.status == status]

    @property
    def completed(self) -> list[str]:
        return self._names("ok")

    @property
    def failed(self) -> list[str]:
        return self._names("failed")

    @property
    def skipped(self) -> list[str]:
        return self._names("skipped")

    @property
    def applied(self) -> int:
        return sum(m.applied for m in self.module_results)

    @property
    def unchanged(self) -> int:
        return sum(m.unchanged for m in self.module_results)

    @property
    def would_apply(self) -> int:
        return sum(m.would_apply for m in self.module_results)

    @property
    def backup_errors(self) -> list[str]:
        return [e for m in self.module_results for e in m.backup_errors]

    @property
    def backups(self) -> list[str]:
        return [
            b.backup_path
            for m in self.module_results
            for r in m.results
            for b in r.backups
        ]

    @property
    def notes(self) -> list[tuple[str, str]]:
        return [(m.name, note) for m in self.module_results for note in m.notes]

    @property
    def status(self) -> str:
        if not self.failed:
            return "ok"
        if self.completed:
            return "partial"
        return "failed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "role": self.role,
            "dry_run": self.dry_run,
            "status": self.status,
            "backup_dir": self.backup_dir,
            "modules": list(self.modules),
            "completed": self.completed,
            "failed": self.failed,
            "skipped": self.skipped,
            "applied": self.applied,
            "unchanged": self.unchanged,
            "would_apply": self.would_apply,
            "backups": self.backups,
            "backup_errors": self.backup_errors,
            "duration_ms": self.duration_ms,
            "module_results": [m.to_dict() for m in self.module_results],
        }


# ── Session ─────────────────────────────────────────────────────


class ModuleSession:
    """What a module sees while it runs: context, tools, settings, results."""

    def __init__(
        self,
        name: str,
        ctx: ExecutionContext,
        toolbox: Toolbox,
        mutator: Mutator,
        settings: BootstrapSettings,
    ):
        self.name = name
        self.ctx = ctx
        self.toolbox = toolbox
        self.mutator = mutator
        self.settings = settings
        self.results: list[MutationResult] = []
        self.notes: list[str] = []
        self.skip_reason: str | None = None

    def apply(self, request: MutationRequest, tolerate: bool = False) -> MutationResult:
        """Apply one request and record its result.

        A missing source never aborts the module: it is recorded as a
        failed result and the module carries on.  With ``tolerate`` set,
        every MutationError is handled that way.
        """
        try:
            result = self.mutator.apply(request)
        except MutationError as e:
            if not (tolerate or isinstance(e, SourceMissingError)):
                raise
            return self.record_failure(request, e)
        self.results.append(result)
        return result

    def record_failure(self, request: MutationRequest, error: MutationError) -> MutationResult:
        """Record a failed resource without aborting the module."""
        logger.warning("%s: %s", self.name, error)
        result = MutationResult.for_failed(request, str(error), metadata={"reason": str(error.reason)})
        self.results.append(result)
        return result

    def is_applied(self, request: MutationRequest) -> bool:
        return self.mutator.is_applied(request)

    def which(self, command: str) -> str | None:
        return self.toolbox.which(command)

    def expand(self, path: str | Path) -> Path:
        return self.ctx.expand(path)

    def note(self, text: str) -> None:
        """Record a next-step hint for the run summary."""
        self.notes.append(text)

    def skip(self, reason: str) -> None:
        """Mark the module skipped.  The caller returns right after."""
        logger.info("Skipping %s: %s", self.name, reason)
        self.skip_reason = reason


# ── Execution ───────────────────────────────────────────────────


def run_module(module: SetupModule, session: ModuleSession) -> ModuleResult:
    """Run one module's setup and classify the outcome."""
    logger.info("── %s ──", module.name)
    start = time.monotonic()
    result = ModuleResult(name=module.name)

    try:
        module.setup(session)
    except BootstrapError as e:
        result.status = "failed"
        result.error = str(e)
        logger.error("%s failed: %s", module.name, e)
    except Exception:
        logger.error("Unexpected error in module %s", module.name, exc_info=True)
        raise

    result.results = list(session.results)
    result.notes = list(session.notes)
    result.duration_ms = int((time.monotonic() - start) * 1000)

    if result.status != "failed":
        if result.failed_mutations:
            result.status = "failed"
            result.error = f"{result.failed_mutations} resource(s) could not be applied"
        elif session.skip_reason is not None:
            result.status = "skipped"
            result.error = session.skip_reason

    status_marker = "✓" if result.status == "ok" else "✗" if result.status == "failed" else "⊘"
    logger.info(
        "%s %s → %s (%d applied, %d unchanged)",
        status_marker,
        module.name,
        result.status,
        result.applied,
        result.unchanged,
    )
    return result


def execute_modules(
    modules: list[SetupModule],
    ctx: ExecutionContext,
    toolbox: Toolbox,
    settings: BootstrapSettings,
    run_id: str | None = None,
) -> RunReport:
    """Run modules in order against one context.

    Args:
        modules: Resolved module objects, in execution order.
        ctx: The run's execution context.
        toolbox: Capability adapters.
        settings: Loaded settings.
        run_id: Identifier for the report (generated when omitted).

    Returns:
        RunReport with one ModuleResult per module.
    """
    start = time.monotonic()
    mutator = Mutator(ctx, toolbox, download_timeout=settings.download_timeout)
    report = RunReport(
        run_id=run_id or generate_run_id(),
        role=str(ctx.role),
        dry_run=ctx.dry_run,
        backup_dir=str(ctx.backup_dir),
        modules=[m.name for m in modules],
    )

    for module in modules:
        session = ModuleSession(module.name, ctx, toolbox, mutator, settings)
        report.module_results.append(run_module(module, session))

    report.duration_ms = int((time.monotonic() - start) * 1000)
    return report


def generate_run_id() -> str:
    """Generate a unique run ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"run-{now}-{short}"
