# portal_deploy/core/validation_engine.py
"""Pre-flight validation of a deployment unit"""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import jsonschema

from .service_controller import ServiceController
from ..api.exceptions import ConfigSyntaxInvalid, StructureInvalid
from ..constants import DEFAULT_PARTIAL_MARKERS, MARKUP_ROOT_TAG
from ..models import CONFIG_SCHEMA, ConfigEntry, DeploymentUnit
from ..utils.file_utils import is_readable_file

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Validation result container"""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add error message"""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add warning message"""
        self.warnings.append(message)

    def merge(self, other: 'ValidationResult') -> None:
        """Merge another result into this one"""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        if not other.is_valid:
            self.is_valid = False


class ValidationEngine:
    """Run the structure, content and config checks before staging"""

    def __init__(self,
                 controller: Optional[ServiceController] = None,
                 partial_markers: Optional[Sequence[str]] = None):
        """
        Initialize validation engine

        Args:
            controller: Service adapter used for the config self-test
            partial_markers: Comment markers that identify HTML fragments
        """
        self.controller = controller
        self.partial_markers = list(
            DEFAULT_PARTIAL_MARKERS if partial_markers is None else partial_markers
        )

    def validate_unit(self, unit: DeploymentUnit) -> ValidationResult:
        """
        Run every pre-flight check on a unit

        Args:
            unit: Resolved deployment unit

        Returns:
            ValidationResult carrying the soft warnings

        Raises:
            StructureInvalid: If any source is missing or unreadable
            ConfigSyntaxInvalid: If the candidate config fails the self-test
        """
        result = ValidationResult()
        result.merge(self.check_structure(unit))
        result.merge(self.check_content(unit))
        if unit.config is not None:
            result.merge(self.check_config(unit.config))
        return result

    def check_structure(self, unit: DeploymentUnit) -> ValidationResult:
        """
        Check that every source exists and is readable

        Raises:
            StructureInvalid: Listing every offending path
        """
        result = ValidationResult()
        invalid = [
            str(entry.source_path)
            for entry in unit.entries
            if not is_readable_file(entry.source_path)
        ]

        if invalid:
            raise StructureInvalid(invalid)

        logger.info("Source structure valid")
        return result

    def check_content(self, unit: DeploymentUnit) -> ValidationResult:
        """
        Advisory lint of markup assets

        A markup file passes when it has an opening root tag or one of the
        partial markers. Failures only produce warnings.
        """
        result = ValidationResult()
        suspicious = []

        for entry in unit.assets:
            if not entry.is_markup:
                continue
            text = entry.source_path.read_text(encoding="utf-8", errors="replace")
            if MARKUP_ROOT_TAG in text.lower():
                continue
            if any(marker in text for marker in self.partial_markers):
                continue
            suspicious.append(str(entry.source_path))

        for path in suspicious:
            message = f"HTML file may be invalid (missing <html> tag): {path}"
            result.add_warning(message)
            logger.warning(message)

        return result

    def check_config(self, entry: ConfigEntry) -> ValidationResult:
        """
        Self-test the candidate config on a disposable copy

        Raises:
            ConfigSyntaxInvalid: If the service rejects the candidate
        """
        result = ValidationResult()

        if self.controller is None:
            raise ValueError("A service controller is required to check the config")

        fd, tmp_name = tempfile.mkstemp(prefix=f"{entry.service_target}-test-")
        os.close(fd)
        candidate = Path(tmp_name)
        try:
            shutil.copyfile(entry.source_path, candidate)
            check = self.controller.test_candidate(candidate)
        finally:
            candidate.unlink(missing_ok=True)

        if not check.ok:
            logger.error(f"{entry.service_target} configuration has syntax errors")
            raise ConfigSyntaxInvalid(str(entry.source_path), check.output)

        logger.info(f"{entry.service_target} configuration syntax valid")
        return result

    def validate_config(self, config: Dict[str, Any],
                        schema: Optional[Dict[str, Any]] = None) -> ValidationResult:
        """
        Validate a parsed configuration file against its JSON schema

        Args:
            config: Configuration to validate
            schema: JSON schema, defaults to the deployment config schema

        Returns:
            ValidationResult
        """
        result = ValidationResult()

        try:
            jsonschema.validate(config, schema or CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            location = ".".join(str(part) for part in e.absolute_path) or "<root>"
            result.add_error(f"Schema validation failed at {location}: {e.message}")

        return result
