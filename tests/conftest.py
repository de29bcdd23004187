"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from devstrap.adapters.registry import Toolbox
from devstrap.core.context import ExecutionContext
from devstrap.core.engine.mutator import Mutator
from devstrap.core.models.settings import BootstrapSettings

RUN_TIMESTAMP = "20240101_120000"


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """A sandbox home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def configs_dir(tmp_path: Path) -> Path:
    configs = tmp_path / "configs"
    configs.mkdir()
    return configs


@pytest.fixture
def ctx(tmp_path: Path, home: Path, configs_dir: Path) -> ExecutionContext:
    """Real-run context rooted in tmp_path."""
    return ExecutionContext(
        home=home,
        backup_root=tmp_path / "backups",
        run_timestamp=RUN_TIMESTAMP,
        configs_dir=configs_dir,
        os_family="ubuntu",
        package_manager="apt",
        shell="bash",
    )


@pytest.fixture
def dry_ctx(ctx: ExecutionContext) -> ExecutionContext:
    return ctx.model_copy(update={"dry_run": True})


@pytest.fixture
def toolbox() -> Toolbox:
    return Toolbox.mock_toolbox()


@pytest.fixture
def mutator(ctx: ExecutionContext, toolbox: Toolbox) -> Mutator:
    return Mutator(ctx, toolbox)


@pytest.fixture
def settings() -> BootstrapSettings:
    return BootstrapSettings()
