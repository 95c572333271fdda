"""Deployment unit models"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from ..constants import DEFAULT_SERVICE_NAME, MARKUP_SUFFIXES


class EntryKind(Enum):
    """Kind of file carried by a deployment unit"""
    ASSET = "asset"
    CONFIG = "config"


@dataclass(frozen=True)
class FileEntry:
    """A single source file and the live path it is deployed to"""

    source_path: Path
    dest_path: Path
    kind: EntryKind = EntryKind.ASSET
    relative_path: str = ""
    required: bool = False

    def __post_init__(self):
        if not self.source_path.is_absolute() or not self.dest_path.is_absolute():
            raise ValueError(
                f"Entry paths must be absolute: {self.source_path} -> {self.dest_path}"
            )

    @property
    def is_markup(self) -> bool:
        """Check if the entry is an HTML document or fragment"""
        return self.source_path.suffix.lower() in MARKUP_SUFFIXES


@dataclass(frozen=True)
class ConfigEntry(FileEntry):
    """The service configuration file of a deployment unit"""

    kind: EntryKind = EntryKind.CONFIG
    service_target: str = DEFAULT_SERVICE_NAME
    requires_reload: bool = True


@dataclass(frozen=True)
class DeploymentUnit:
    """Ordered set of files deployed together in one run

    Assets keep manifest order and the optional config entry always comes
    last. Destination paths are unique within a unit.
    """

    assets: Tuple[FileEntry, ...] = field(default_factory=tuple)
    config: Optional[ConfigEntry] = None

    def __post_init__(self):
        seen = set()
        for entry in self.entries:
            if entry.dest_path in seen:
                raise ValueError(f"Duplicate destination in deployment unit: {entry.dest_path}")
            seen.add(entry.dest_path)

    @property
    def entries(self) -> List[FileEntry]:
        """All entries in deployment order"""
        entries: List[FileEntry] = list(self.assets)
        if self.config is not None:
            entries.append(self.config)
        return entries

    @property
    def is_empty(self) -> bool:
        return not self.assets and self.config is None

    def __len__(self) -> int:
        return len(self.assets) + (1 if self.config is not None else 0)

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(self.entries)
