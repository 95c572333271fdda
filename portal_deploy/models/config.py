"""Configuration data models"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..constants import (
    DEFAULT_ASSETS,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_CONFIG_SOURCE_DIR,
    DEFAULT_CONFIG_TARGET,
    DEFAULT_GROUP,
    DEFAULT_LOCK_DIR,
    DEFAULT_OWNER,
    DEFAULT_PARTIAL_MARKERS,
    DEFAULT_RELOAD_COMMAND,
    DEFAULT_REQUIRED_ASSETS,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SITE_NAME,
    DEFAULT_TEST_CANDIDATE_COMMAND,
    DEFAULT_TEST_LIVE_COMMAND,
    DEFAULT_WEB_SOURCE_DIR,
    DEFAULT_WEB_TARGET,
    SITE_NAME_PATTERN,
)

# JSON schema for .portal-deploy.yaml
CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "version": {"type": "string"},
        "site": {
            "type": "object",
            "properties": {"name": {"type": "string", "minLength": 1}},
            "additionalProperties": False,
        },
        "paths": {
            "type": "object",
            "properties": {
                "web_source": {"type": "string"},
                "config_source": {"type": "string"},
                "web_target": {"type": "string"},
                "config_target": {"type": "string"},
                "lock_dir": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "assets": {"type": "array", "items": {"type": "string"}},
        "required_assets": {"type": "array", "items": {"type": "string"}},
        "ownership": {
            "type": "object",
            "properties": {
                "owner": {"type": ["string", "null"]},
                "group": {"type": ["string", "null"]},
            },
            "additionalProperties": False,
        },
        "service": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "test_candidate": {"type": "string"},
                "test_live": {"type": "string"},
                "reload": {"type": "string"},
                "timeout": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": False,
        },
        "validation": {
            "type": "object",
            "properties": {
                "partial_markers": {"type": "array", "items": {"type": "string"}},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}


@dataclass
class ServiceConfig:
    """Commands of the web server that consumes the deployed config"""

    name: str = DEFAULT_SERVICE_NAME
    test_candidate: str = DEFAULT_TEST_CANDIDATE_COMMAND
    test_live: str = DEFAULT_TEST_LIVE_COMMAND
    reload: str = DEFAULT_RELOAD_COMMAND
    timeout: float = DEFAULT_COMMAND_TIMEOUT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ServiceConfig':
        """Create from dictionary"""
        return cls(
            name=data.get("name", DEFAULT_SERVICE_NAME),
            test_candidate=data.get("test_candidate", DEFAULT_TEST_CANDIDATE_COMMAND),
            test_live=data.get("test_live", DEFAULT_TEST_LIVE_COMMAND),
            reload=data.get("reload", DEFAULT_RELOAD_COMMAND),
            timeout=data.get("timeout", DEFAULT_COMMAND_TIMEOUT),
        )


@dataclass
class DeployConfig:
    """Deployment configuration for one source tree

    Paths of the source layout are relative to ``source_root``; targets
    are absolute.
    """

    source_root: Path
    site_name: str = DEFAULT_SITE_NAME
    web_source_dir: str = DEFAULT_WEB_SOURCE_DIR
    config_source_dir: str = DEFAULT_CONFIG_SOURCE_DIR
    web_target: Path = Path(DEFAULT_WEB_TARGET)
    config_target: Path = Path(DEFAULT_CONFIG_TARGET)
    assets: List[str] = field(default_factory=lambda: list(DEFAULT_ASSETS))
    required_assets: List[str] = field(default_factory=lambda: list(DEFAULT_REQUIRED_ASSETS))
    owner: Optional[str] = DEFAULT_OWNER
    group: Optional[str] = DEFAULT_GROUP
    service: ServiceConfig = field(default_factory=ServiceConfig)
    partial_markers: List[str] = field(default_factory=lambda: list(DEFAULT_PARTIAL_MARKERS))
    lock_dir: Path = Path(DEFAULT_LOCK_DIR)

    def __post_init__(self):
        self.source_root = Path(self.source_root).resolve()
        self.web_target = Path(self.web_target)
        self.config_target = Path(self.config_target)
        self.lock_dir = Path(self.lock_dir)

        if not SITE_NAME_PATTERN.match(self.site_name):
            raise ValueError(f"Invalid site name: {self.site_name!r}")

        for target in (self.web_target, self.config_target):
            if not target.is_absolute():
                raise ValueError(f"Deployment targets must be absolute paths: {target}")

        unknown = set(self.required_assets) - set(self.assets)
        if unknown:
            raise ValueError(
                f"Required assets not listed in assets: {', '.join(sorted(unknown))}"
            )

    @property
    def web_source(self) -> Path:
        """Directory holding the assets in the source tree"""
        return self.source_root / self.web_source_dir

    @property
    def config_relative_path(self) -> str:
        """Config file path relative to the source root"""
        return f"{self.config_source_dir.strip('/')}/{self.site_name}"

    @property
    def config_source(self) -> Path:
        return self.source_root / self.config_relative_path

    @property
    def config_dest(self) -> Path:
        return self.config_target / self.site_name

    @property
    def site_url(self) -> str:
        return f"https://{self.site_name}"

    def asset_relative_path(self, asset: str) -> str:
        """Asset path relative to the source root"""
        return f"{self.web_source_dir.strip('/')}/{asset}"

    @classmethod
    def from_dict(cls, source_root: Path, data: Dict[str, Any]) -> 'DeployConfig':
        """Create from a parsed configuration file"""
        site = data.get("site", {})
        paths = data.get("paths", {})
        ownership = data.get("ownership", {})
        validation = data.get("validation", {})

        return cls(
            source_root=source_root,
            site_name=site.get("name", DEFAULT_SITE_NAME),
            web_source_dir=paths.get("web_source", DEFAULT_WEB_SOURCE_DIR),
            config_source_dir=paths.get("config_source", DEFAULT_CONFIG_SOURCE_DIR),
            web_target=Path(paths.get("web_target", DEFAULT_WEB_TARGET)),
            config_target=Path(paths.get("config_target", DEFAULT_CONFIG_TARGET)),
            assets=data.get("assets", list(DEFAULT_ASSETS)),
            required_assets=data.get("required_assets", list(DEFAULT_REQUIRED_ASSETS)),
            owner=ownership.get("owner", DEFAULT_OWNER),
            group=ownership.get("group", DEFAULT_GROUP),
            service=ServiceConfig.from_dict(data.get("service", {})),
            partial_markers=validation.get("partial_markers", list(DEFAULT_PARTIAL_MARKERS)),
            lock_dir=Path(paths.get("lock_dir", DEFAULT_LOCK_DIR)),
        )
