# portal_deploy/api/__init__.py
"""API layer for portal-deploy"""

from .deployer import Deployer, deploy
from .exceptions import (
    PortalDeployError,
    ConfigError,
    ProjectNotFoundError,
    MissingSource,
    StructureInvalid,
    ConfigSyntaxInvalid,
    StageFailed,
    CommitFailed,
    ReloadPreCheckFailed,
    ReloadFailed,
    DeploymentInProgress,
    NothingToDeploy,
)

__all__ = [
    # Main class
    "Deployer",

    # Convenience function
    "deploy",

    # Exceptions
    "PortalDeployError",
    "ConfigError",
    "ProjectNotFoundError",
    "MissingSource",
    "StructureInvalid",
    "ConfigSyntaxInvalid",
    "StageFailed",
    "CommitFailed",
    "ReloadPreCheckFailed",
    "ReloadFailed",
    "DeploymentInProgress",
    "NothingToDeploy",
]
