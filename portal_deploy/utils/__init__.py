"""Utility functions for portal-deploy"""

from .file_utils import (
    calculate_file_checksum,
    is_readable_file,
    strip_anchor,
    missing_parents,
    apply_ownership,
    atomic_copy,
)
from .git_utils import (
    get_repository_root,
    get_hooks_dir,
    get_changed_paths,
)

__all__ = [
    # File utilities
    "calculate_file_checksum",
    "is_readable_file",
    "strip_anchor",
    "missing_parents",
    "apply_ownership",
    "atomic_copy",

    # Git utilities
    "get_repository_root",
    "get_hooks_dir",
    "get_changed_paths",
]
