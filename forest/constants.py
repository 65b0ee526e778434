"""Shared constants for forest."""

from pathlib import Path


# Config file location and default worktree root
CONFIG_DIR_NAME = ".config/forest"
CONFIG_FILE_NAME = "config.json"
DEFAULT_WORKTREE_DIR = "~/.forest/worktrees"
LOG_DIR_NAME = ".forest"

# Only persisted configuration key
CONFIG_KEYS = ("directory",)

# Validation limits
MAX_PATH_LENGTH = 4096
MAX_BRANCH_LENGTH = 256

# System directories a worktree root may never live in
PROTECTED_SYSTEM_DIRS = (
    "/",
    "/etc",
    "/usr",
    "/var",
    "/sys",
    "/proc",
    "/boot",
    "/dev",
    "/lib",
    "/sbin",
    "/bin",
)

# Branch name sanitization
UNSAFE_PATH_CHARS = '/\\:*?"<>|'
SANITIZED_REPLACEMENT = "-"
EMPTY_BRANCH_PLACEHOLDER = "branch"
DEFAULT_REPO_IDENTITY = "repo"
DEFAULT_REMOTE = "origin"

# Worktree inventory
DETACHED_BRANCH = "detached"
SHORT_COMMIT_LENGTH = 7
ROOT_GROUP = "(root)"


class ErrorCode:
    """Machine-readable error codes shared by the JSON and human output."""

    INVALID_ARGS = "INVALID_ARGS"
    INVALID_PATH = "INVALID_PATH"
    INVALID_BRANCH = "INVALID_BRANCH"
    INVALID_CONFIG = "INVALID_CONFIG"
    UNKNOWN_CONFIG_KEY = "UNKNOWN_CONFIG_KEY"
    UNKNOWN_COMMAND = "UNKNOWN_COMMAND"
    NOT_FOUND = "NOT_FOUND"
    NOT_LOCKED = "NOT_LOCKED"
    NOT_A_REPOSITORY = "NOT_A_REPOSITORY"
    CONFIG_ERROR = "CONFIG_ERROR"
    SYNC_FAILED = "SYNC_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Codes reported before any operation was attempted (exit code 2)
USAGE_ERROR_CODES = frozenset(
    {
        ErrorCode.INVALID_ARGS,
        ErrorCode.INVALID_PATH,
        ErrorCode.INVALID_BRANCH,
        ErrorCode.INVALID_CONFIG,
        ErrorCode.UNKNOWN_CONFIG_KEY,
        ErrorCode.UNKNOWN_COMMAND,
    }
)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def config_file_path() -> Path:
    """Location of the persisted configuration, resolved against the current home."""
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME
