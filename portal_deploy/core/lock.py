"""
Deployment lock scoped to a target root.
"""
import fcntl
import hashlib
import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..api.exceptions import DeploymentInProgress
from ..constants import DEFAULT_LOCK_DIR, LOCK_FILE_PATTERN


class DeploymentLock:
    """
    Prevents concurrent deployments to the same target.
    Uses file-based locking; a held lock fails fast instead of waiting.
    The lock file lives outside the target so acquiring it never writes
    to the live tree.
    """

    def __init__(self, target_root: Union[str, Path],
                 lock_dir: Union[str, Path] = DEFAULT_LOCK_DIR):
        """
        Initialize deployment lock.

        Args:
            target_root: Live directory the lock protects
            lock_dir: Directory where lock files are kept
        """
        self.target_root = Path(target_root)
        digest = hashlib.sha1(str(self.target_root).encode("utf-8")).hexdigest()[:12]
        self.lock_file_path = Path(lock_dir) / LOCK_FILE_PATTERN.format(digest=digest)
        self.lock_file = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Acquire lock (context manager)"""
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Release lock (context manager)"""
        self.release()
        return False

    @property
    def is_held(self) -> bool:
        return self.lock_file is not None

    def acquire(self) -> None:
        """
        Acquire the lock without waiting.

        Raises:
            DeploymentInProgress: If another deployment holds the lock
        """
        self.logger.debug(f"Attempting to acquire deployment lock: {self.lock_file_path}")
        self.lock_file_path.parent.mkdir(parents=True, exist_ok=True)

        lock_file = open(self.lock_file_path, 'a+')
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            lock_file.close()
            self.logger.error(
                f"Deployment lock held by PID {self.holder_pid()}: {self.lock_file_path}"
            )
            raise DeploymentInProgress(str(self.target_root), str(self.lock_file_path))
        except Exception:
            lock_file.close()
            raise

        # Record owner PID for operators
        lock_file.seek(0)
        lock_file.truncate()
        lock_file.write(f"{os.getpid()}\n")
        lock_file.flush()

        self.lock_file = lock_file
        self.logger.info("Deployment lock acquired")

    def release(self) -> None:
        """Release the lock"""
        if not self.lock_file:
            return

        # Never unlinked; every contender must lock the same inode
        fcntl.flock(self.lock_file.fileno(), fcntl.LOCK_UN)
        self.lock_file.close()
        self.lock_file = None
        self.logger.info("Deployment lock released")

    def holder_pid(self) -> Optional[int]:
        """PID recorded by the current or last holder"""
        try:
            content = self.lock_file_path.read_text().strip()
        except OSError:
            return None
        return int(content) if content.isdigit() else None
