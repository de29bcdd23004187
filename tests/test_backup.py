"""
Tests for the backup manager — naming, collisions, failure policy.
"""

import os
import shutil
from pathlib import Path

from devstrap.core.engine.backup import BackupManager
from devstrap.core.engine.mutator import Mutator
from devstrap.core.models.mutation import MutationRequest


class TestBackupManager:
    def test_missing_path_is_noop(self, ctx, home):
        manager = BackupManager(ctx)
        assert manager.backup(home / "absent") is None
        assert not ctx.backup_dir.exists()

    def test_copies_file_into_run_directory(self, ctx, home):
        original = home / ".bashrc"
        original.write_text("content")

        record = BackupManager(ctx).backup(original)

        assert record.original_path == str(original)
        assert record.backup_path == str(ctx.backup_root / ctx.run_timestamp / ".bashrc.backup")
        assert Path(record.backup_path).read_text() == "content"
        assert record.created_at

    def test_same_resource_backed_up_once(self, ctx, home):
        original = home / ".bashrc"
        original.write_text("v1")
        manager = BackupManager(ctx)

        first = manager.backup(original)
        original.write_text("v2")
        second = manager.backup(original)

        assert second is first
        assert Path(first.backup_path).read_text() == "v1"
        assert len(manager.records) == 1

    def test_name_collision_gets_timestamp_then_counter(self, ctx, tmp_path):
        manager = BackupManager(ctx)
        paths = []
        for sub in ("a", "b", "c"):
            d = tmp_path / sub
            d.mkdir()
            (d / "config").write_text(sub)
            paths.append(d / "config")

        names = [Path(manager.backup(p).backup_path).name for p in paths]

        assert names == [
            "config.backup",
            f"config.backup.{ctx.run_timestamp}",
            f"config.backup.{ctx.run_timestamp}.1",
        ]
        # Never overwritten
        assert (ctx.backup_dir / "config.backup").read_text() == "a"

    def test_existing_backup_file_is_not_overwritten(self, ctx, home):
        ctx.backup_dir.mkdir(parents=True)
        (ctx.backup_dir / ".bashrc.backup").write_text("from an earlier run")
        original = home / ".bashrc"
        original.write_text("now")

        record = BackupManager(ctx).backup(original)

        assert Path(record.backup_path).name == f".bashrc.backup.{ctx.run_timestamp}"
        assert (ctx.backup_dir / ".bashrc.backup").read_text() == "from an earlier run"

    def test_dangling_symlink_is_copied_as_link(self, ctx, home):
        link = home / ".vimrc"
        link.symlink_to(home / "gone")

        record = BackupManager(ctx).backup(link)

        backup = Path(record.backup_path)
        assert backup.is_symlink()
        assert os.readlink(backup) == str(home / "gone")

    def test_directory_copied_with_symlinks(self, ctx, home):
        tree = home / ".config" / "app"
        tree.mkdir(parents=True)
        (tree / "settings").write_text("x")
        (tree / "link").symlink_to("settings")

        record = BackupManager(ctx).backup(tree)

        backup = Path(record.backup_path)
        assert (backup / "settings").read_text() == "x"
        assert (backup / "link").is_symlink()

    def test_dry_run_does_nothing(self, dry_ctx, home):
        original = home / ".bashrc"
        original.write_text("x")

        assert BackupManager(dry_ctx).backup(original) is None
        assert not dry_ctx.backup_dir.exists()


class TestBackupFailurePolicy:
    def test_safe_backup_records_failure(self, ctx, home, monkeypatch):
        original = home / ".bashrc"
        original.write_text("x")

        def broken_copy(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(shutil, "copy2", broken_copy)
        manager = BackupManager(ctx)

        record, error = manager.safe_backup(original)

        assert record is None
        assert "disk full" in error
        assert manager.failures == [error]

    def test_mutation_proceeds_when_backup_fails(self, ctx, toolbox, home, monkeypatch):
        rc = home / ".bashrc"
        rc.write_text("mine\n")

        def broken_copy(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(shutil, "copy2", broken_copy)

        result = Mutator(ctx, toolbox).apply(MutationRequest.file_append(rc, "export A=1"))

        assert result.applied
        assert result.backups == []
        assert len(result.backup_errors) == 1
        assert rc.read_text() == "mine\nexport A=1\n"
