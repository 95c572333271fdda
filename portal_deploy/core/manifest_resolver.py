"""Resolve the files that make up one deployment"""

import logging
from typing import Iterable, List, Optional

from ..api.exceptions import MissingSource, NothingToDeploy
from ..models import ConfigEntry, DeployConfig, DeploymentUnit, EntryKind, FileEntry

logger = logging.getLogger(__name__)


def _normalize(path: str) -> str:
    path = path.replace("\\", "/").strip()
    while path.startswith("./"):
        path = path[2:]
    return path.strip("/")


def path_matches(entry_path: str, changed_path: str) -> bool:
    """Check if a changed path touches a manifest entry

    A match is an exact match or either path being a directory prefix of
    the other, so ``www/shared`` touches ``www/shared/header.html``.
    """
    entry_path = _normalize(entry_path)
    changed_path = _normalize(changed_path)
    if not entry_path or not changed_path:
        return False
    return (
        entry_path == changed_path
        or entry_path.startswith(changed_path + "/")
        or changed_path.startswith(entry_path + "/")
    )


class ManifestResolver:
    """Build a DeploymentUnit from the configured manifest"""

    def __init__(self, config: DeployConfig):
        self.config = config

    def full_manifest(self, include_config: bool = True) -> DeploymentUnit:
        """Every configured asset plus the config file"""
        assets = tuple(self._asset_entry(asset) for asset in self.config.assets)
        config_entry = self._config_entry() if include_config else None
        return DeploymentUnit(assets=assets, config=config_entry)

    def resolve(self,
                changed_paths: Optional[Iterable[str]] = None,
                include_config: bool = True) -> DeploymentUnit:
        """
        Resolve the deployment unit

        Args:
            changed_paths: Paths changed by a commit, relative to the source
                root. None deploys the full manifest.
            include_config: Whether the service config may be part of the unit

        Returns:
            DeploymentUnit

        Raises:
            NothingToDeploy: If no manifest entry is touched by the change-set
            MissingSource: If a required source of the unit is absent
        """
        unit = self.full_manifest(include_config)

        if changed_paths is not None:
            changed = [path for path in changed_paths if _normalize(path)]
            logger.debug(f"Filtering manifest by {len(changed)} changed path(s)")
            unit = self._filter(unit, changed)

        if unit.is_empty:
            raise NothingToDeploy()

        self._check_required(unit)

        logger.info(
            f"Resolved {len(unit.assets)} asset(s)"
            f"{' and the service config' if unit.config else ''}"
        )
        return unit

    def _filter(self, unit: DeploymentUnit, changed: List[str]) -> DeploymentUnit:
        def touched(entry: FileEntry) -> bool:
            return any(path_matches(entry.relative_path, path) for path in changed)

        assets = tuple(entry for entry in unit.assets if touched(entry))
        config_entry = unit.config if unit.config and touched(unit.config) else None
        return DeploymentUnit(assets=assets, config=config_entry)

    def _check_required(self, unit: DeploymentUnit) -> None:
        missing = [
            str(entry.source_path)
            for entry in unit.entries
            if entry.required and not entry.source_path.exists()
        ]
        if missing:
            raise MissingSource(missing)

    def _asset_entry(self, asset: str) -> FileEntry:
        asset = _normalize(asset)
        return FileEntry(
            source_path=self.config.web_source / asset,
            dest_path=self.config.web_target / asset,
            kind=EntryKind.ASSET,
            relative_path=self.config.asset_relative_path(asset),
            required=asset in {_normalize(a) for a in self.config.required_assets},
        )

    def _config_entry(self) -> ConfigEntry:
        return ConfigEntry(
            source_path=self.config.config_source,
            dest_path=self.config.config_dest,
            relative_path=self.config.config_relative_path,
            required=True,
            service_target=self.config.service.name,
            requires_reload=True,
        )
