"""Deploy service: resolve, validate, stage, commit and reload"""

import logging
from typing import Callable, Iterable, List, Optional

from ..api.exceptions import (
    CommitFailed,
    NothingToDeploy,
    PortalDeployError,
    ReloadPreCheckFailed,
)
from ..constants import EMOJI_ARROW
from ..core.committer import Committer
from ..core.lock import DeploymentLock
from ..core.manifest_resolver import ManifestResolver
from ..core.reloader import Reloader
from ..core.service_controller import ServiceController
from ..core.stager import Stager
from ..core.validation_engine import ValidationEngine
from ..models import (
    DeployConfig,
    DeploymentResult,
    DeploymentStatus,
    DeploymentUnit,
    PlannedCopy,
)

logger = logging.getLogger(__name__)

PlanCallback = Callable[[DeploymentUnit, DeploymentResult], None]
ConfirmCallback = Callable[[DeploymentUnit], bool]


class DeployService:
    """Service running one deployment of the portal"""

    def __init__(self,
                 config: DeployConfig,
                 controller: Optional[ServiceController] = None,
                 stager: Optional[Stager] = None,
                 committer: Optional[Committer] = None,
                 on_plan: Optional[PlanCallback] = None,
                 confirm: Optional[ConfirmCallback] = None):
        """Initialize deploy service

        Args:
            config: Deployment configuration
            controller: Web server adapter, built from the config when omitted
            stager: Stager instance
            committer: Committer instance, applying the configured ownership
                when omitted
            on_plan: Called with the validated unit before anything is committed
            confirm: Asked to approve the plan unless forced; declining cancels
        """
        self.config = config
        self.controller = controller or ServiceController(config.service)
        self.resolver = ManifestResolver(config)
        self.validator = ValidationEngine(self.controller, config.partial_markers)
        self.stager = stager or Stager()
        self.committer = committer or Committer(owner=config.owner, group=config.group)
        self.reloader = Reloader(self.controller, self.committer)
        self.on_plan = on_plan
        self.confirm = confirm

    def resolve(self,
                changed_paths: Optional[Iterable[str]] = None,
                include_config: bool = True) -> DeploymentUnit:
        """Resolve the deployment unit for a change-set (None for everything)"""
        return self.resolver.resolve(changed_paths, include_config=include_config)

    def deploy(self,
               changed_paths: Optional[Iterable[str]] = None,
               dry_run: bool = False,
               force: bool = False,
               skip_reload: bool = False) -> DeploymentResult:
        """
        Run the deployment pipeline

        Args:
            changed_paths: Restrict the run to files touched by these paths
            dry_run: Validate and stage only; never touch the live targets
            force: Skip the confirmation prompt (validation still runs)
            skip_reload: Leave the service config out and do not reload

        Returns:
            DeploymentResult; failures are reported in it, not raised
        """
        result = DeploymentResult(status=DeploymentStatus.FAILED)

        if dry_run:
            logger.warning("DRY RUN MODE - No changes will be made")

        try:
            with DeploymentLock(self.config.web_target, self.config.lock_dir):
                return self._run(result, changed_paths, dry_run, force, skip_reload)
        except NothingToDeploy as e:
            logger.info("No deployable files changed")
            return result.complete(DeploymentStatus.NOTHING_TO_DEPLOY, str(e))
        except PortalDeployError as e:
            return self.failure_result(e, result)

    def failure_result(self, error: PortalDeployError,
                       result: Optional[DeploymentResult] = None) -> DeploymentResult:
        """Record a pipeline error in a failed result"""
        result = result or DeploymentResult(status=DeploymentStatus.FAILED)
        result.error_code = error.error_code
        result.exit_code_override = error.exit_code

        if isinstance(error, CommitFailed):
            result.files_written = error.files_written
            result.files_restored = error.files_restored
        elif isinstance(error, ReloadPreCheckFailed):
            result.files_restored = error.files_restored

        logger.error(str(error))
        return result.complete(DeploymentStatus.FAILED, str(error))

    def _run(self, result: DeploymentResult,
             changed_paths: Optional[Iterable[str]],
             dry_run: bool, force: bool, skip_reload: bool) -> DeploymentResult:
        unit = self.resolve(changed_paths, include_config=not skip_reload)

        validation = self.validator.validate_unit(unit)
        result.warnings.extend(validation.warnings)
        result.planned = self._plan(unit)

        with self.stager.stage(unit) as area:
            if self.on_plan:
                self.on_plan(unit, result)

            if dry_run:
                self._log_dry_run(unit, result.planned, skip_reload)
                return result.complete(
                    DeploymentStatus.DRY_RUN_ONLY,
                    "Dry run completed - no changes were made"
                )

            if not force and self.confirm and not self.confirm(unit):
                logger.warning("Deployment cancelled by user")
                return result.complete(DeploymentStatus.CANCELLED, "Deployment cancelled by user")

            journal = self.committer.commit(unit, area)
            result.files_written = len(unit)

            try:
                result.reload_performed = self.reloader.reload(unit, journal, skip=skip_reload)
            finally:
                journal.discard()

        return result.complete(DeploymentStatus.SUCCESS, "Deployment completed successfully")

    @staticmethod
    def _plan(unit: DeploymentUnit) -> List[PlannedCopy]:
        return [
            PlannedCopy(
                source=str(entry.source_path),
                dest=str(entry.dest_path),
                kind=entry.kind.value
            )
            for entry in unit.entries
        ]

    def _log_dry_run(self, unit: DeploymentUnit, planned: List[PlannedCopy],
                     skip_reload: bool) -> None:
        for copy in planned:
            logger.info(f"[DRY-RUN] Would copy: {copy.source} {EMOJI_ARROW} {copy.dest}")
        if self.reloader.needs_reload(unit, skip_reload):
            logger.info(f"[DRY-RUN] Would run: {self.config.service.test_live}")
            logger.info(f"[DRY-RUN] Would run: {self.config.service.reload}")
