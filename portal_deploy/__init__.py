"""Portal Deploy - Safe deployment of the admin portal's static site.

Copies HTML/image assets and the nginx virtual-host file from a git working
tree to production, validates the configuration and reloads the server,
staging everything first and rolling back on failure.
"""

from .__version__ import __version__, __version_info__, __author__, __email__, __license__

# Core API
from .api.deployer import Deployer, deploy

# Data models
from .models import (
    DeployConfig,
    DeploymentResult,
    DeploymentStatus,
    DeploymentUnit,
    FileEntry,
    ConfigEntry,
)

# Exceptions
from .api.exceptions import (
    PortalDeployError,
    ConfigError,
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
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__email__",
    "__license__",

    # Main class
    "Deployer",

    # Core API function
    "deploy",

    # Data models
    "DeployConfig",
    "DeploymentResult",
    "DeploymentStatus",
    "DeploymentUnit",
    "FileEntry",
    "ConfigEntry",

    # Exceptions
    "PortalDeployError",
    "ConfigError",
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
