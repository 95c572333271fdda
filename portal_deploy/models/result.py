"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..constants import ExitCode


class DeploymentStatus(Enum):
    """Terminal status of a deployment run"""
    SUCCESS = "success"
    FAILED = "failed"
    DRY_RUN_ONLY = "dry_run_only"
    CANCELLED = "cancelled"
    NOTHING_TO_DEPLOY = "nothing_to_deploy"
    SKIPPED = "skipped"


@dataclass
class PlannedCopy:
    """A copy the pipeline performs (or would perform in dry-run)"""

    source: str
    dest: str
    kind: str

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "dest": self.dest, "kind": self.kind}


@dataclass
class DeploymentResult:
    """Result of a deployment run"""

    status: DeploymentStatus
    reason: str = ""
    files_written: int = 0
    reload_performed: bool = False
    error_code: Optional[str] = None
    files_restored: int = 0
    warnings: List[str] = field(default_factory=list)
    planned: List[PlannedCopy] = field(default_factory=list)
    exit_code_override: Optional[int] = None
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    @property
    def is_failed(self) -> bool:
        return self.status == DeploymentStatus.FAILED

    @property
    def exit_code(self) -> int:
        """Process exit code for this result"""
        if self.exit_code_override is not None:
            return self.exit_code_override
        if self.is_failed:
            return ExitCode.PREFLIGHT_FAILED
        return ExitCode.OK

    @property
    def duration(self) -> Optional[float]:
        """Get run duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def complete(self, status: Optional[DeploymentStatus] = None,
                 reason: Optional[str] = None) -> 'DeploymentResult':
        """Mark the run as complete"""
        self.end_time = datetime.now()
        if status:
            self.status = status
        if reason is not None:
            self.reason = reason
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "status": self.status.value,
            "reason": self.reason,
            "files_written": self.files_written,
            "reload_performed": self.reload_performed,
            "files_restored": self.files_restored,
            "warnings": self.warnings,
            "planned": [copy.to_dict() for copy in self.planned],
            "duration": self.duration,
        }

        if self.error_code:
            data["error_code"] = self.error_code

        return data
