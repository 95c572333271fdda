"""Test and reload the web server after a commit"""

import logging

from .committer import Committer, RollbackJournal
from .service_controller import ServiceController
from ..api.exceptions import ReloadFailed, ReloadPreCheckFailed
from ..models import DeploymentUnit

logger = logging.getLogger(__name__)


class Reloader:
    """Apply a committed config to the running service"""

    def __init__(self, controller: ServiceController, committer: Committer):
        self.controller = controller
        self.committer = committer

    def needs_reload(self, unit: DeploymentUnit, skip: bool = False) -> bool:
        """Check if a unit requires a service reload"""
        if skip or unit.config is None:
            return False
        return unit.config.requires_reload

    def reload(self, unit: DeploymentUnit, journal: RollbackJournal, skip: bool = False) -> bool:
        """
        Self-test the live config, then reload the service

        Args:
            unit: Committed deployment unit
            journal: Journal of the commit, used to undo a bad config
            skip: Caller asked to leave the service alone

        Returns:
            True if a reload was performed

        Raises:
            ReloadPreCheckFailed: Live config rejected; the config entry was rolled back
            ReloadFailed: Reload command failed; nothing was rolled back
        """
        if not self.needs_reload(unit, skip):
            logger.info("No service reload required")
            return False

        service = unit.config.service_target
        logger.info(f"Testing {service} configuration...")
        check = self.controller.test_live()

        if not check.ok:
            logger.error(f"{service} configuration test failed, restoring previous configuration")
            restored, errors = self.committer.rollback(journal, only=[unit.config.dest_path])
            diagnostics = check.output
            if errors:
                diagnostics = "\n".join([diagnostics, "Rollback errors:", *errors]).strip()
            raise ReloadPreCheckFailed(diagnostics, restored)

        logger.info(f"Reloading {service}...")
        result = self.controller.reload()
        if not result.ok:
            logger.error(f"Failed to reload {service}")
            raise ReloadFailed(service, result.output)

        logger.info(f"{service} reloaded successfully")
        return True
