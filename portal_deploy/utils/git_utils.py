"""Git operation utilities"""

import subprocess
from pathlib import Path
from typing import List, Optional


def get_repository_root(path: Path) -> Optional[Path]:
    """
    Get top-level directory of the working tree

    Args:
        path: Any directory inside the repository

    Returns:
        Repository root or None
    """
    try:
        result = subprocess.run(
            ['git', 'rev-parse', '--show-toplevel'],
            cwd=path,
            capture_output=True,
            text=True,
            check=True
        )
        return Path(result.stdout.strip())
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None


def get_hooks_dir(path: Path) -> Optional[Path]:
    """
    Get the hooks directory of a repository

    Args:
        path: Repository path

    Returns:
        Absolute hooks directory or None
    """
    try:
        result = subprocess.run(
            ['git', 'rev-parse', '--git-path', 'hooks'],
            cwd=path,
            capture_output=True,
            text=True,
            check=True
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None

    hooks_dir = Path(result.stdout.strip())
    if not hooks_dir.is_absolute():
        hooks_dir = path / hooks_dir
    return hooks_dir


def get_changed_paths(path: Path, rev: str = 'HEAD') -> List[str]:
    """
    Get paths changed by a commit

    Works for the root commit too (``--root``).

    Args:
        path: Repository path
        rev: Commit to inspect

    Returns:
        Paths relative to the repository root

    Raises:
        subprocess.CalledProcessError: If git fails (e.g. unknown revision)
    """
    result = subprocess.run(
        ['git', 'diff-tree', '--no-commit-id', '--name-only', '-r', '--root', rev],
        cwd=path,
        capture_output=True,
        text=True,
        check=True
    )
    return [line for line in result.stdout.splitlines() if line.strip()]
