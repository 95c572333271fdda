"""Configuration management service"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Union

import yaml

from ..api.exceptions import ConfigError
from ..constants import ENV_CONFIG_PATH, ENV_CONFIG_TARGET, ENV_WEB_TARGET
from ..core.path_resolver import PathResolver
from ..core.validation_engine import ValidationEngine
from ..models import DeployConfig

logger = logging.getLogger(__name__)


class ConfigService:
    """Service for loading the deployment configuration"""

    def __init__(self,
                 source_root: Optional[Union[str, Path]] = None,
                 config_path: Optional[Union[str, Path]] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Initialize config service

        Args:
            source_root: Source tree root, searched for when not given
            config_path: Explicit configuration file
            environ: Environment used for overrides and ${VAR} expansion
        """
        self.path_resolver = PathResolver(source_root)
        self.environ = os.environ if environ is None else environ
        self._config_path = Path(config_path) if config_path else None
        self._config: Optional[DeployConfig] = None

    @property
    def config_path(self) -> Path:
        if self._config_path is not None:
            return self.path_resolver.resolve(self._config_path)
        return self.path_resolver.get_config_path(self.environ)

    @property
    def config(self) -> DeployConfig:
        """Get current configuration (lazy load)"""
        if self._config is None:
            self.load_config()
        return self._config

    def load_config(self) -> DeployConfig:
        """Load configuration from file

        A missing default config file means built-in defaults; a missing
        explicitly requested file is an error.

        Returns:
            Loaded configuration

        Raises:
            ConfigError: If the file cannot be parsed or fails validation
        """
        config_path = self.config_path
        data = {}

        if config_path.exists():
            data = self._read(config_path)
        elif self._config_path is not None or self.environ.get(ENV_CONFIG_PATH):
            raise ConfigError(f"Configuration file not found: {config_path}")
        else:
            logger.debug(f"No configuration file at {config_path}, using defaults")

        validation = ValidationEngine().validate_config(data)
        if not validation.is_valid:
            raise ConfigError(f"Invalid configuration {config_path}: {'; '.join(validation.errors)}")

        self._apply_env_overrides(data)

        try:
            self._config = DeployConfig.from_dict(self.path_resolver.source_root, data)
        except ValueError as e:
            raise ConfigError(f"Invalid configuration {config_path}: {e}") from e

        logger.debug(
            f"Loaded configuration: web target {self._config.web_target}, "
            f"config target {self._config.config_target}"
        )
        return self._config

    def _read(self, config_path: Path) -> dict:
        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()

        # Simple environment variable expansion
        for key, value in self.environ.items():
            content = content.replace(f"${{{key}}}", value)

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {config_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration {config_path} must be a mapping")
        return data

    def _apply_env_overrides(self, data: dict) -> None:
        paths = data.setdefault("paths", {})
        if self.environ.get(ENV_WEB_TARGET):
            paths["web_target"] = self.environ[ENV_WEB_TARGET]
        if self.environ.get(ENV_CONFIG_TARGET):
            paths["config_target"] = self.environ[ENV_CONFIG_TARGET]
