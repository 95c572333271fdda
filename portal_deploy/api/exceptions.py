"""Exception definitions for portal-deploy"""

from typing import List, Optional, Sequence

from ..constants import ErrorCode, ExitCode


class PortalDeployError(Exception):
    """Base exception for portal-deploy"""

    exit_code = ExitCode.PREFLIGHT_FAILED

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code


class ConfigError(PortalDeployError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_FORMAT_ERROR)


class ProjectNotFoundError(PortalDeployError):
    """Source root not found error"""

    def __init__(self, message: str = None):
        if message is None:
            message = (
                "No source root found. Please ensure:\n"
                "1. You are inside the portal git working tree\n"
                "2. The tree contains .portal-deploy.yaml or a .git directory\n"
                "3. Or use --source-root to specify the tree location"
            )
        super().__init__(message, ErrorCode.PATH_ERROR)


def _format_paths(header: str, paths: Sequence[str]) -> str:
    lines = [header]
    lines.extend(f"  - {path}" for path in paths)
    return "\n".join(lines)


class MissingSource(PortalDeployError):
    """Required source files are absent from the working tree"""

    def __init__(self, paths: Sequence[str]):
        super().__init__(
            _format_paths("Missing required source files:", paths),
            ErrorCode.MISSING_SOURCE
        )
        self.paths = list(paths)


class StructureInvalid(PortalDeployError):
    """One or more manifest sources are missing or unreadable"""

    def __init__(self, paths: Sequence[str]):
        super().__init__(
            _format_paths("Source tree structure invalid:", paths),
            ErrorCode.STRUCTURE_INVALID
        )
        self.paths = list(paths)


class ConfigSyntaxInvalid(PortalDeployError):
    """Candidate service configuration failed the self-test"""

    def __init__(self, config_path: str, diagnostics: str = ""):
        message = f"Configuration syntax invalid: {config_path}"
        if diagnostics:
            message = f"{message}\n{diagnostics}"
        super().__init__(message, ErrorCode.CONFIG_SYNTAX_INVALID)
        self.config_path = config_path
        self.diagnostics = diagnostics


class StageFailed(PortalDeployError):
    """Copying into the staging area failed; nothing live was touched"""

    def __init__(self, source_path: str, reason: str):
        super().__init__(
            f"Staging failed for {source_path}: {reason}",
            ErrorCode.STAGE_FAILED
        )
        self.source_path = source_path


class CommitFailed(PortalDeployError):
    """Promotion into the live target failed and was rolled back"""

    exit_code = ExitCode.COMMIT_FAILED

    def __init__(self, dest_path: str, reason: str,
                 files_written: int, files_restored: int,
                 rollback_errors: Optional[List[str]] = None):
        message = (
            f"Commit failed at {dest_path}: {reason} "
            f"({files_written} file(s) written, {files_restored} restored)"
        )
        if rollback_errors:
            message = _format_paths(f"{message}\nRollback errors:", rollback_errors)
        super().__init__(message, ErrorCode.COMMIT_FAILED)
        self.dest_path = dest_path
        self.files_written = files_written
        self.files_restored = files_restored
        self.rollback_errors = rollback_errors or []


class ReloadPreCheckFailed(PortalDeployError):
    """Live configuration failed the self-test; config was rolled back"""

    exit_code = ExitCode.RELOAD_PRECHECK_FAILED

    def __init__(self, diagnostics: str = "", files_restored: int = 0):
        message = "Service configuration test failed, configuration rolled back"
        if diagnostics:
            message = f"{message}\n{diagnostics}"
        super().__init__(message, ErrorCode.RELOAD_PRECHECK_FAILED)
        self.diagnostics = diagnostics
        self.files_restored = files_restored


class ReloadFailed(PortalDeployError):
    """Files are committed but the service did not reload"""

    exit_code = ExitCode.RELOAD_FAILED

    def __init__(self, service: str, diagnostics: str = ""):
        message = (
            f"Failed to reload {service}. Files are deployed but the running "
            f"service still uses the previous configuration; reload it manually."
        )
        if diagnostics:
            message = f"{message}\n{diagnostics}"
        super().__init__(message, ErrorCode.RELOAD_FAILED)
        self.service = service
        self.diagnostics = diagnostics


class DeploymentInProgress(PortalDeployError):
    """Another deployment holds the lock for this target"""

    exit_code = ExitCode.DEPLOYMENT_IN_PROGRESS

    def __init__(self, target_root: str, lock_path: str):
        super().__init__(
            f"Another deployment to {target_root} is in progress (lock: {lock_path})",
            ErrorCode.DEPLOYMENT_IN_PROGRESS
        )
        self.target_root = target_root
        self.lock_path = lock_path


class NothingToDeploy(PortalDeployError):
    """The resolved deployment unit is empty. Not a failure."""

    exit_code = ExitCode.OK

    def __init__(self, message: str = "No deployable files changed"):
        super().__init__(message, ErrorCode.NOTHING_TO_DEPLOY)
