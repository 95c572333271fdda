"""
Tests for committing staged units and rolling them back.
"""

import os
from pathlib import Path

import pytest

from portal_deploy.api.exceptions import CommitFailed
from portal_deploy.core.committer import Committer, RollbackJournal
from portal_deploy.core.manifest_resolver import ManifestResolver
from portal_deploy.core.stager import Stager
from portal_deploy.models import DeployConfig

from conftest import ASSETS, write_file

FIVE_ASSETS = list(ASSETS)[:5]


class FailingCommitter(Committer):
    """Committer whose promotion fails after a number of successful writes"""

    def __init__(self, fail_after: int, **kwargs):
        super().__init__(**kwargs)
        self.fail_after = fail_after
        self.promoted = 0

    def _promote(self, staged: Path, dest: Path) -> None:
        if self.promoted == self.fail_after:
            raise OSError(5, "Input/output error", str(dest))
        super()._promote(staged, dest)
        self.promoted += 1


@pytest.fixture
def five_file_config(deploy_config):
    return DeployConfig(
        source_root=deploy_config.source_root,
        site_name=deploy_config.site_name,
        web_target=deploy_config.web_target,
        config_target=deploy_config.config_target,
        assets=FIVE_ASSETS,
        required_assets=[],
        owner=None,
        group=None,
        lock_dir=deploy_config.lock_dir,
    )


@pytest.fixture
def five_file_unit(five_file_config):
    return ManifestResolver(five_file_config).resolve(include_config=False)


class TestCommit:
    """Test successful commits"""

    def test_commit_into_empty_target(self, deploy_config, tmp_path, snapshot):
        unit = ManifestResolver(deploy_config).resolve()

        with Stager(tmp_path).stage(unit) as area:
            journal = Committer().commit(unit, area)

        live = snapshot(deploy_config.web_target)
        for relative, content in ASSETS.items():
            expected = content if isinstance(content, bytes) else content.encode()
            assert live[relative] == expected
        assert deploy_config.config_dest.read_bytes() == deploy_config.config_source.read_bytes()
        assert len(journal) > len(unit)

    def test_file_and_directory_modes(self, deploy_config, tmp_path):
        unit = ManifestResolver(deploy_config).resolve()

        with Stager(tmp_path).stage(unit) as area:
            Committer().commit(unit, area)

        index = deploy_config.web_target / "index.html"
        assert index.stat().st_mode & 0o777 == 0o664
        assert (deploy_config.web_target / "shared").stat().st_mode & 0o777 == 0o755

    def test_no_temporary_files_left(self, deploy_config, populated_live, tmp_path):
        unit = ManifestResolver(deploy_config).resolve()

        with Stager(tmp_path).stage(unit) as area:
            Committer().commit(unit, area)

        leftovers = [p for p in deploy_config.web_target.rglob("*") if p.name.endswith("-tmp")]
        assert leftovers == []


class TestCommitFailure:
    """Test rollback after a failed promotion"""

    def test_failure_after_two_of_five_restores_everything(
        self, five_file_config, five_file_unit, tmp_path, snapshot
    ):
        for relative in FIVE_ASSETS:
            write_file(five_file_config.web_target / relative, f"old {relative}\n")
        before = snapshot(five_file_config.web_target)

        with Stager(tmp_path).stage(five_file_unit) as area:
            with pytest.raises(CommitFailed) as exc_info:
                FailingCommitter(fail_after=2).commit(five_file_unit, area)

        assert exc_info.value.files_written == 2
        assert exc_info.value.files_restored == 2
        assert exc_info.value.rollback_errors == []
        assert snapshot(five_file_config.web_target) == before

    def test_failure_removes_created_files_and_directories(
        self, five_file_config, five_file_unit, tmp_path, live_root, snapshot
    ):
        with Stager(tmp_path).stage(five_file_unit) as area:
            with pytest.raises(CommitFailed):
                FailingCommitter(fail_after=4).commit(five_file_unit, area)

        assert snapshot(live_root) == {}
        assert not five_file_config.web_target.exists()
        assert list(live_root.iterdir()) == []

    def test_failure_on_first_file_writes_nothing(
        self, five_file_config, five_file_unit, tmp_path, live_root, snapshot
    ):
        with Stager(tmp_path).stage(five_file_unit) as area:
            with pytest.raises(CommitFailed) as exc_info:
                FailingCommitter(fail_after=0).commit(five_file_unit, area)

        assert exc_info.value.files_written == 0
        assert snapshot(live_root) == {}

    def test_restored_file_keeps_mode(self, five_file_config, five_file_unit, tmp_path):
        index = write_file(five_file_config.web_target / "index.html", "old index\n")
        index.chmod(0o600)

        with Stager(tmp_path).stage(five_file_unit) as area:
            with pytest.raises(CommitFailed):
                FailingCommitter(fail_after=3).commit(five_file_unit, area)

        assert index.read_text() == "old index\n"
        assert index.stat().st_mode & 0o777 == 0o600

    def test_restored_symlink_stays_a_link(self, five_file_config, five_file_unit, tmp_path):
        shared = write_file(tmp_path / "releases" / "index.html", "shared index\n")
        index = five_file_config.web_target / "index.html"
        index.parent.mkdir(parents=True)
        index.symlink_to(shared)

        with Stager(tmp_path).stage(five_file_unit) as area:
            with pytest.raises(CommitFailed) as exc_info:
                FailingCommitter(fail_after=2).commit(five_file_unit, area)

        assert exc_info.value.files_restored == 2
        assert index.is_symlink()
        assert os.readlink(index) == str(shared)
        assert shared.read_text() == "shared index\n"


class TestRollback:
    """Test scoped journal replay"""

    def test_rollback_only_selected_destination(self, deploy_config, populated_live, tmp_path):
        unit = ManifestResolver(deploy_config).resolve()
        committer = Committer()

        with Stager(tmp_path).stage(unit) as area:
            journal = committer.commit(unit, area)
            restored, errors = committer.rollback(journal, only=[unit.config.dest_path])

        assert (restored, errors) == (1, [])
        assert deploy_config.config_dest.read_text() == "server { listen 80; }  # old\n"
        assert (deploy_config.web_target / "index.html").read_bytes() == \
            (deploy_config.web_source / "index.html").read_bytes()

    def test_unapplied_records_are_skipped(self, tmp_path):
        journal = RollbackJournal(tmp_path / "journal")
        dest = write_file(tmp_path / "live" / "page.html", "current\n")
        journal.record_file(dest)

        restored, errors = Committer().rollback(journal)

        assert (restored, errors) == (0, [])
        assert dest.read_text() == "current\n"

    def test_discard_drops_backups(self, tmp_path):
        journal = RollbackJournal(tmp_path / "journal")
        journal.record_file(write_file(tmp_path / "live" / "page.html", "current\n"))

        journal.discard()

        assert len(journal) == 0
        assert not (tmp_path / "journal").exists()
