"""Path resolution module for portal-deploy"""

import os
from pathlib import Path
from typing import Mapping, Optional, Union

from ..api.exceptions import ProjectNotFoundError
from ..constants import ENV_CONFIG_PATH, PROJECT_CONFIG_FILE, PROJECT_MARKERS


class PathResolver:
    """Resolves paths within a portal source tree"""

    def __init__(self, source_root: Optional[Union[str, Path]] = None):
        """Initialize path resolver

        Args:
            source_root: Root of the source tree. Found by searching upward
                from the current directory when not given.
        """
        self._source_root = Path(source_root).resolve() if source_root else None

    @property
    def source_root(self) -> Path:
        """Get source root (lazy lookup)"""
        if self._source_root is None:
            self._source_root = self.find_source_root()
        return self._source_root

    def find_source_root(self, start_path: Optional[Path] = None) -> Path:
        """Find the source tree root by walking up from start_path

        Args:
            start_path: Starting directory, defaults to the current directory

        Returns:
            Directory containing one of the project markers

        Raises:
            ProjectNotFoundError: If no marker is found up to the filesystem root
        """
        current = Path(start_path or Path.cwd()).resolve()

        for directory in [current, *current.parents]:
            for marker in PROJECT_MARKERS:
                if (directory / marker).exists():
                    return directory

        raise ProjectNotFoundError()

    def resolve(self, path: Union[str, Path]) -> Path:
        """Resolve a path relative to the source root

        Args:
            path: Path to resolve (can be relative or absolute)

        Returns:
            Resolved absolute path
        """
        path = Path(path)

        if path.is_absolute():
            return path

        return (self.source_root / path).resolve()

    def get_config_path(self, environ: Optional[Mapping[str, str]] = None) -> Path:
        """Get configuration file path

        The ``PORTAL_DEPLOY_CONFIG`` environment variable takes precedence.
        """
        environ = os.environ if environ is None else environ
        config_path = environ.get(ENV_CONFIG_PATH)
        if config_path:
            return self.resolve(config_path)

        return self.source_root / PROJECT_CONFIG_FILE
