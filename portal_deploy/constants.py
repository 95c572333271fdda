"""Global constants for portal-deploy"""

import re

APP_NAME = "portal-deploy"
LOG_FORMAT = "%(message)s"

# Project identification
PROJECT_CONFIG_FILE = ".portal-deploy.yaml"
PROJECT_MARKERS = [
    PROJECT_CONFIG_FILE,
    ".git",
]

# Source tree layout
DEFAULT_WEB_SOURCE_DIR = "www"
DEFAULT_CONFIG_SOURCE_DIR = "nginx/sites-available"

# Deployment targets
DEFAULT_WEB_TARGET = "/var/www/billing"
DEFAULT_CONFIG_TARGET = "/etc/nginx/sites-available"
DEFAULT_SITE_NAME = "admin.gcbehavioral.com"
DEFAULT_SERVICE_NAME = "nginx"

# Assets deployed from the web source directory, in deployment order
DEFAULT_ASSETS = [
    "index.html",
    "status.html",
    "newstatus.html",
    "shared/header.html",
    "shared/footer.html",
    "shared/images/favicon.ico",
    "images/favicon.ico",
]

# Assets that must exist for any deployment to start
DEFAULT_REQUIRED_ASSETS = [
    "index.html",
    "shared/header.html",
    "shared/footer.html",
]

# Soft markup validation
MARKUP_SUFFIXES = (".html", ".htm")
MARKUP_ROOT_TAG = "<html"
DEFAULT_PARTIAL_MARKERS = ["<!-- GLOBAL"]

# Ownership and permissions
DEFAULT_OWNER = "root"
DEFAULT_GROUP = "puki"
FILE_MODE = 0o664
DIRECTORY_MODE = 0o755

# External service commands ({config} is replaced by the candidate path)
DEFAULT_TEST_CANDIDATE_COMMAND = "nginx -t -c {config}"
DEFAULT_TEST_LIVE_COMMAND = "nginx -t"
DEFAULT_RELOAD_COMMAND = "systemctl reload nginx"
DEFAULT_COMMAND_TIMEOUT = 60  # seconds

# Staging and journaling
STAGING_PREFIX = "portal-deploy-stage-"
JOURNAL_DIR_NAME = ".journal"
PROMOTE_TMP_SUFFIX = ".portal-deploy-tmp"
CHECKSUM_ALGORITHM = "sha256"

# Locking
DEFAULT_LOCK_DIR = "/tmp"
LOCK_FILE_PATTERN = "portal-deploy-{digest}.lock"

# Trigger
DEFAULT_TRIGGER_DELAY = 5  # seconds
PROCEED_KEYS = ("", "y", "yes")
CANCEL_KEYS = ("n", "no", "q", "c")
POST_COMMIT_HOOK = "post-commit"

# Environment variables
ENV_SKIP_DEPLOY = "SKIP_DEPLOY"
ENV_CONFIG_PATH = "PORTAL_DEPLOY_CONFIG"
ENV_WEB_TARGET = "PORTAL_DEPLOY_WEB_TARGET"
ENV_CONFIG_TARGET = "PORTAL_DEPLOY_CONFIG_TARGET"
ENV_LOG_LEVEL = "PORTAL_DEPLOY_LOG_LEVEL"


# Error codes
class ErrorCode:
    CONFIG_FORMAT_ERROR = "PD001"
    MISSING_SOURCE = "PD002"
    STRUCTURE_INVALID = "PD003"
    CONFIG_SYNTAX_INVALID = "PD004"
    STAGE_FAILED = "PD005"
    COMMIT_FAILED = "PD006"
    RELOAD_PRECHECK_FAILED = "PD007"
    RELOAD_FAILED = "PD008"
    DEPLOYMENT_IN_PROGRESS = "PD009"
    NOTHING_TO_DEPLOY = "PD010"
    PATH_ERROR = "PD011"


# Process exit codes
class ExitCode:
    OK = 0
    PREFLIGHT_FAILED = 1
    COMMIT_FAILED = 2
    RELOAD_PRECHECK_FAILED = 3
    RELOAD_FAILED = 4
    DEPLOYMENT_IN_PROGRESS = 5


# Validation patterns
SITE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.-]*$")

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"
EMOJI_ARROW = "→"

# Interactive prompts
PROMPT_CONFIRM_DEPLOY = "Proceed with deployment?"
