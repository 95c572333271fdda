"""Stage deployment files in a private holding area"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from ..api.exceptions import StageFailed
from ..constants import JOURNAL_DIR_NAME, STAGING_PREFIX
from ..models import DeploymentUnit, FileEntry
from ..utils.file_utils import calculate_file_checksum, strip_anchor

logger = logging.getLogger(__name__)


class StagingArea:
    """Uniquely named temporary directory owned by one deployment

    Staged files mirror their destination path below ``files/``. The area
    also hosts the rollback journal's backups. It is removed on ``cleanup``
    or when leaving the context manager, whatever the outcome.
    """

    def __init__(self, parent_dir: Optional[Union[str, Path]] = None):
        self.path = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=parent_dir))
        self.files_dir = self.path / "files"
        self.files_dir.mkdir()
        self._staged: Dict[Path, Path] = {}

    def __enter__(self) -> 'StagingArea':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return False

    @property
    def journal_dir(self) -> Path:
        return self.path / JOURNAL_DIR_NAME

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def path_for(self, entry: FileEntry) -> Path:
        """Location inside the area mirroring the entry's destination"""
        return self.files_dir / strip_anchor(entry.dest_path)

    def staged_path(self, entry: FileEntry) -> Path:
        """Staged copy of an entry

        Raises:
            KeyError: If the entry was never staged
        """
        return self._staged[entry.dest_path]

    def record(self, entry: FileEntry, staged: Path) -> None:
        self._staged[entry.dest_path] = staged

    def is_staged(self, entry: FileEntry) -> bool:
        return entry.dest_path in self._staged

    def cleanup(self) -> None:
        """Remove the area and everything in it"""
        if self.path.exists():
            shutil.rmtree(self.path, ignore_errors=True)
            logger.debug(f"Removed staging area {self.path}")
        self._staged.clear()


class Stager:
    """Copy a deployment unit into a staging area, all or nothing"""

    def __init__(self, staging_parent: Optional[Union[str, Path]] = None):
        """
        Initialize stager

        Args:
            staging_parent: Directory in which staging areas are created,
                defaults to the system temp directory
        """
        self.staging_parent = staging_parent

    def stage(self, unit: DeploymentUnit) -> StagingArea:
        """
        Stage every entry of a unit

        Args:
            unit: Validated deployment unit

        Returns:
            StagingArea holding a verified copy of every entry

        Raises:
            StageFailed: If any copy fails; the staging area is discarded
        """
        area = StagingArea(self.staging_parent)
        logger.debug(f"Staging {len(unit)} file(s) in {area.path}")

        try:
            for entry in unit.entries:
                self._stage_entry(area, entry)
        except StageFailed:
            area.cleanup()
            raise
        except OSError as e:
            area.cleanup()
            raise StageFailed(str(getattr(e, "filename", None) or "<unknown>"), str(e)) from e

        logger.info(f"Staged {len(unit)} file(s)")
        return area

    def _stage_entry(self, area: StagingArea, entry: FileEntry) -> None:
        staged = area.path_for(entry)
        staged.parent.mkdir(parents=True, exist_ok=True)

        try:
            shutil.copyfile(entry.source_path, staged)
        except OSError as e:
            raise StageFailed(str(entry.source_path), e.strerror or str(e)) from e

        source_checksum = calculate_file_checksum(entry.source_path)
        staged_checksum = calculate_file_checksum(staged)
        if source_checksum != staged_checksum:
            raise StageFailed(str(entry.source_path), "staged copy checksum mismatch")

        area.record(entry, staged)
        logger.debug(f"Staged {entry.source_path} -> {staged}")
