"""Promote staged files into the live target with a rollback journal"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .stager import StagingArea
from ..api.exceptions import CommitFailed
from ..constants import DIRECTORY_MODE, FILE_MODE, PROMOTE_TMP_SUFFIX
from ..models import DeploymentUnit, FileEntry
from ..utils.file_utils import apply_ownership, atomic_copy, missing_parents

logger = logging.getLogger(__name__)


@dataclass
class JournalEntry:
    """State of a live path before the committer changed it

    ``backup_path`` and ``link_target`` are both None when the path did not
    exist. A symlink is journaled by its target, never by the file it
    points to. ``applied`` turns true once the change actually reached the
    live path.
    """

    dest_path: Path
    backup_path: Optional[Path] = None
    link_target: Optional[str] = None
    is_directory: bool = False
    mode: Optional[int] = None
    uid: Optional[int] = None
    gid: Optional[int] = None
    applied: bool = False


class RollbackJournal:
    """Write-ahead journal of destructive writes, in write order"""

    def __init__(self, backup_dir: Path):
        self.backup_dir = Path(backup_dir)
        self.entries: List[JournalEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    def record_directory(self, path: Path) -> JournalEntry:
        """Journal a directory about to be created"""
        record = JournalEntry(dest_path=path, is_directory=True)
        self.entries.append(record)
        return record

    def record_file(self, dest_path: Path) -> JournalEntry:
        """Snapshot a file (or its absence) before it is overwritten"""
        record = JournalEntry(dest_path=dest_path)

        if dest_path.is_symlink():
            record.link_target = os.readlink(dest_path)
        elif dest_path.exists():
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            backup_path = self.backup_dir / f"{len(self.entries):04d}-{dest_path.name}"
            shutil.copy2(dest_path, backup_path)
            stat = dest_path.stat()
            record.backup_path = backup_path
            record.mode = stat.st_mode & 0o7777
            record.uid = stat.st_uid
            record.gid = stat.st_gid

        self.entries.append(record)
        return record

    def discard(self) -> None:
        """Forget every entry and drop the backups"""
        self.entries.clear()
        if self.backup_dir.exists():
            shutil.rmtree(self.backup_dir, ignore_errors=True)


class Committer:
    """Atomically promote staged files into their live destinations"""

    def __init__(self,
                 owner: Optional[str] = None,
                 group: Optional[str] = None,
                 file_mode: int = FILE_MODE,
                 dir_mode: int = DIRECTORY_MODE):
        """
        Initialize committer

        Args:
            owner: Owner applied to written files and created directories
            group: Group applied to written files and created directories
            file_mode: Mode for written files
            dir_mode: Mode for created directories
        """
        self.owner = owner
        self.group = group
        self.file_mode = file_mode
        self.dir_mode = dir_mode

    def commit(self, unit: DeploymentUnit, area: StagingArea) -> RollbackJournal:
        """
        Promote every staged entry of a unit, in manifest order

        Args:
            unit: Deployment unit that was fully staged
            area: Staging area holding the unit

        Returns:
            The journal, needed for a later config rollback

        Raises:
            CommitFailed: On the first failure, after rolling back every
                write of this commit
        """
        journal = RollbackJournal(area.journal_dir)
        written = 0

        for entry in unit.entries:
            try:
                self._write_entry(entry, area, journal)
            except KeyboardInterrupt:
                self.rollback(journal)
                raise
            except Exception as e:
                logger.error(f"Failed to deploy {entry.dest_path}: {e}")
                restored, errors = self.rollback(journal)
                raise CommitFailed(str(entry.dest_path), str(e), written, restored, errors) from e

            written += 1
            logger.info(f"Deployed {entry.relative_path or entry.dest_path}")

        logger.info(f"Committed {written} file(s)")
        return journal

    def rollback(self, journal: RollbackJournal,
                 only: Optional[Iterable[Path]] = None) -> Tuple[int, List[str]]:
        """
        Replay the journal in reverse

        Args:
            journal: Journal filled by ``commit``
            only: Restrict the replay to these destination files (and the
                directories created for them)

        Returns:
            Tuple of (files restored, rollback error messages)
        """
        targets = set(only) if only is not None else None
        restored = 0
        errors: List[str] = []
        remaining: List[JournalEntry] = []

        for record in reversed(journal.entries):
            if targets is not None and not self._in_scope(record, targets):
                remaining.append(record)
                continue

            if not record.applied:
                continue

            try:
                if record.is_directory:
                    self._undo_directory(record)
                else:
                    self._undo_file(record)
                    restored += 1
            except OSError as e:
                message = f"{record.dest_path}: {e}"
                errors.append(message)
                logger.error(f"Rollback failed for {message}")

        journal.entries = list(reversed(remaining))
        logger.warning(f"Rolled back {restored} file(s)")
        return restored, errors

    def _write_entry(self, entry: FileEntry, area: StagingArea, journal: RollbackJournal) -> None:
        staged = area.staged_path(entry)

        for directory in missing_parents(entry.dest_path):
            record = journal.record_directory(directory)
            directory.mkdir()
            record.applied = True
            os.chmod(directory, self.dir_mode)
            apply_ownership(directory, self.owner, self.group)

        record = journal.record_file(entry.dest_path)
        self._promote(staged, entry.dest_path)
        record.applied = True

    def _promote(self, staged: Path, dest: Path) -> None:
        atomic_copy(
            staged, dest,
            mode=self.file_mode,
            owner=self.owner,
            group=self.group,
            tmp_suffix=PROMOTE_TMP_SUFFIX
        )

    @staticmethod
    def _in_scope(record: JournalEntry, targets: set) -> bool:
        if record.is_directory:
            return any(record.dest_path in target.parents for target in targets)
        return record.dest_path in targets

    def _undo_file(self, record: JournalEntry) -> None:
        dest = record.dest_path

        if record.link_target is not None:
            tmp_path = dest.with_name(dest.name + PROMOTE_TMP_SUFFIX)
            tmp_path.unlink(missing_ok=True)
            os.symlink(record.link_target, tmp_path)
            os.replace(tmp_path, dest)
            logger.debug(f"Restored link {dest} -> {record.link_target}")
            return

        if record.backup_path is None:
            dest.unlink(missing_ok=True)
            logger.debug(f"Removed {dest}")
            return

        tmp_path = dest.with_name(dest.name + PROMOTE_TMP_SUFFIX)
        shutil.copyfile(record.backup_path, tmp_path)
        os.chmod(tmp_path, record.mode)
        stat = tmp_path.stat()
        if (stat.st_uid, stat.st_gid) != (record.uid, record.gid):
            os.chown(tmp_path, record.uid, record.gid)
        os.replace(tmp_path, dest)
        logger.debug(f"Restored {dest}")

    def _undo_directory(self, record: JournalEntry) -> None:
        directory = record.dest_path
        if not directory.exists():
            return
        if any(directory.iterdir()):
            logger.debug(f"Keeping non-empty directory {directory}")
            return
        directory.rmdir()
        logger.debug(f"Removed directory {directory}")
