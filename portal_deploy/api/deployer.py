"""Deployer API for deployment operations"""

import os
from pathlib import Path
from typing import Iterable, Mapping, Optional, TextIO, Union

from ..constants import DEFAULT_TRIGGER_DELAY
from ..core.service_controller import ServiceController
from ..core.trigger import DeploymentTrigger, TickCallback
from ..models import DeployConfig, DeploymentResult
from ..services.config_service import ConfigService
from ..services.deploy_service import ConfirmCallback, DeployService, PlanCallback


class Deployer:
    """Deployer class for deployment operations"""

    def __init__(self,
                 source_root: Optional[Union[str, Path]] = None,
                 config_path: Optional[Union[str, Path]] = None,
                 config: Optional[DeployConfig] = None,
                 controller: Optional[ServiceController] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """
        Initialize deployer

        Args:
            source_root: Source tree root, searched upward from the current
                directory when omitted
            config_path: Explicit configuration file
            config: Ready configuration, bypasses file loading
            controller: Web server adapter
            environ: Environment for config overrides and the opt-out flag
        """
        self.environ = os.environ if environ is None else environ
        if config is None:
            config = ConfigService(source_root, config_path, self.environ).load_config()
        self.config = config
        self.controller = controller

    def _service(self, on_plan: Optional[PlanCallback] = None,
                 confirm: Optional[ConfirmCallback] = None) -> DeployService:
        return DeployService(
            self.config,
            controller=self.controller,
            on_plan=on_plan,
            confirm=confirm
        )

    def deploy(self,
               dry_run: bool = False,
               force: bool = False,
               skip_reload: bool = False,
               changed_paths: Optional[Iterable[str]] = None,
               on_plan: Optional[PlanCallback] = None,
               confirm: Optional[ConfirmCallback] = None) -> DeploymentResult:
        """
        Deploy the portal

        Args:
            dry_run: Show what would be deployed without making changes
            force: Skip the confirmation prompt
            skip_reload: Skip the service configuration and reload
            changed_paths: Deploy only files touched by these paths
            on_plan: Called with the validated plan
            confirm: Asked to approve the plan unless forced

        Returns:
            DeploymentResult
        """
        return self._service(on_plan, confirm).deploy(
            changed_paths=changed_paths,
            dry_run=dry_run,
            force=force,
            skip_reload=skip_reload
        )

    def trigger(self,
                changed_paths: Iterable[str],
                delay: float = DEFAULT_TRIGGER_DELAY,
                skip_reload: bool = False,
                on_tick: Optional[TickCallback] = None,
                terminal: Optional[TextIO] = None) -> DeploymentResult:
        """
        Deploy a commit's change-set after a cancellable countdown

        Args:
            changed_paths: Paths changed by the commit
            delay: Countdown length in seconds
            skip_reload: Skip the service configuration and reload
            on_tick: Called with the remaining seconds
            terminal: Stream read for proceed/cancel keystrokes

        Returns:
            DeploymentResult
        """
        trigger = DeploymentTrigger(
            self._service(),
            delay=delay,
            environ=self.environ,
            on_tick=on_tick,
            terminal=terminal
        )
        return trigger.fire(changed_paths, skip_reload=skip_reload)


def deploy(source_root: Optional[Union[str, Path]] = None,
           dry_run: bool = False,
           force: bool = True,
           skip_reload: bool = False,
           **options) -> DeploymentResult:
    """
    Convenience function for deployment

    Args:
        source_root: Source tree root
        dry_run: Show what would be deployed without making changes
        force: Skip confirmation (no prompt is available programmatically)
        skip_reload: Skip the service configuration and reload
        **options: Passed to ``Deployer`` (config_path, config, controller, environ)

    Returns:
        DeploymentResult
    """
    deployer = Deployer(source_root=source_root, **options)
    return deployer.deploy(dry_run=dry_run, force=force, skip_reload=skip_reload)
