"""Core functionality for portal-deploy"""

from .path_resolver import PathResolver
from .manifest_resolver import ManifestResolver
from .validation_engine import ValidationEngine, ValidationResult
from .service_controller import ServiceController, ServiceCheck
from .stager import Stager, StagingArea
from .committer import Committer, RollbackJournal, JournalEntry
from .reloader import Reloader
from .lock import DeploymentLock
from .trigger import Countdown, CountdownInputs, DeploymentTrigger

__all__ = [
    "PathResolver",
    "ManifestResolver",
    "ValidationEngine",
    "ValidationResult",
    "ServiceController",
    "ServiceCheck",
    "Stager",
    "StagingArea",
    "Committer",
    "RollbackJournal",
    "JournalEntry",
    "Reloader",
    "DeploymentLock",
    "Countdown",
    "CountdownInputs",
    "DeploymentTrigger",
]
