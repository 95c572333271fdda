"""Data models for portal-deploy"""

from .manifest import EntryKind, FileEntry, ConfigEntry, DeploymentUnit
from .result import DeploymentStatus, DeploymentResult, PlannedCopy
from .config import DeployConfig, ServiceConfig, CONFIG_SCHEMA

__all__ = [
    # Manifest models
    "EntryKind",
    "FileEntry",
    "ConfigEntry",
    "DeploymentUnit",

    # Result models
    "DeploymentStatus",
    "DeploymentResult",
    "PlannedCopy",

    # Config models
    "DeployConfig",
    "ServiceConfig",
    "CONFIG_SCHEMA",
]
