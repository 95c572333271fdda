"""File operation utilities"""

import hashlib
import os
import shutil
from pathlib import Path
from typing import Optional

from ..constants import CHECKSUM_ALGORITHM


def calculate_file_checksum(file_path: Path,
                            algorithm: str = CHECKSUM_ALGORITHM,
                            chunk_size: int = 8192) -> str:
    """
    Calculate file checksum

    Args:
        file_path: Path to file
        algorithm: Hash algorithm (sha256, md5, sha1)
        chunk_size: Read chunk size

    Returns:
        Hex digest string
    """
    hash_func = hashlib.new(algorithm)

    with open(file_path, 'rb') as f:
        while chunk := f.read(chunk_size):
            hash_func.update(chunk)

    return hash_func.hexdigest()


def is_readable_file(path: Path) -> bool:
    """Check that path is a regular file the current user can read"""
    return path.is_file() and os.access(path, os.R_OK)


def strip_anchor(path: Path) -> Path:
    """Turn an absolute path into the equivalent relative one

    ``/var/www/index.html`` becomes ``var/www/index.html`` so it can be
    mirrored under another directory.
    """
    return path.relative_to(path.anchor)


def missing_parents(path: Path) -> list:
    """List the parent directories of path that do not exist, outermost first"""
    missing = []
    parent = path.parent
    while not parent.exists():
        missing.append(parent)
        if parent.parent == parent:
            break
        parent = parent.parent
    return list(reversed(missing))


def apply_ownership(path: Path,
                    owner: Optional[str] = None,
                    group: Optional[str] = None) -> None:
    """
    Set owner and group of a path

    Args:
        path: Path to update
        owner: User name, unchanged when None
        group: Group name, unchanged when None
    """
    if owner is None and group is None:
        return
    shutil.chown(path, user=owner, group=group)


def atomic_copy(src: Path, dst: Path, mode: int,
                owner: Optional[str] = None,
                group: Optional[str] = None,
                tmp_suffix: str = ".tmp") -> None:
    """
    Copy src over dst through a temporary sibling and a rename

    The destination either keeps its old content or has the complete new
    content with the requested mode and ownership; readers never observe a
    partially written file.

    Args:
        src: Source file
        dst: Destination file (parent directory must exist)
        mode: Permission bits for the destination
        owner: Optional owner name
        group: Optional group name
        tmp_suffix: Suffix for the temporary sibling
    """
    tmp_path = dst.with_name(dst.name + tmp_suffix)
    try:
        shutil.copyfile(src, tmp_path)
        os.chmod(tmp_path, mode)
        apply_ownership(tmp_path, owner, group)
        os.replace(tmp_path, dst)
    except BaseException:
        if tmp_path.exists():
            tmp_path.unlink()
        raise

