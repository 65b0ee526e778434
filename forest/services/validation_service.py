"""Validation predicates run before any mutating git call."""

import os
from dataclasses import dataclass
from typing import Optional

from forest.constants import MAX_BRANCH_LENGTH, MAX_PATH_LENGTH, PROTECTED_SYSTEM_DIRS


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


VALID = ValidationResult(True)


def validate_path(path: str) -> ValidationResult:
    """Check a worktree path argument.

    Args:
        path: Path as given on the command line

    Returns:
        ValidationResult, with an error message when invalid
    """
    if not path or not path.strip():
        return ValidationResult(False, "Path cannot be empty")
    if len(path) > MAX_PATH_LENGTH:
        return ValidationResult(False, f"Path exceeds maximum length ({MAX_PATH_LENGTH} chars)")
    if "\0" in path:
        return ValidationResult(False, "Path contains null bytes")
    return VALID


def validate_branch(branch: str) -> ValidationResult:
    """Check a branch name argument."""
    if not branch or not branch.strip():
        return ValidationResult(False, "Branch name cannot be empty")
    if len(branch) > MAX_BRANCH_LENGTH:
        return ValidationResult(
            False, f"Branch name exceeds maximum length ({MAX_BRANCH_LENGTH} chars)"
        )
    if "\0" in branch or "\n" in branch:
        return ValidationResult(False, "Branch contains invalid characters")
    return VALID


def _is_within(path: str, directory: str) -> bool:
    if directory == "/":
        return path == "/"
    return path == directory or path.startswith(directory + "/")


def validate_config_path(path: str) -> ValidationResult:
    """Check a worktree root directory before it is stored in the config.

    Stricter than validate_path: the root decides where every generated
    worktree lands, so traversal segments and system directories are refused.
    """
    if not path or not path.strip():
        return ValidationResult(False, "Directory cannot be empty")
    if len(path) > MAX_PATH_LENGTH:
        return ValidationResult(
            False, f"Directory exceeds maximum length ({MAX_PATH_LENGTH} chars)"
        )
    if "\0" in path:
        return ValidationResult(False, "Directory contains null bytes")

    segments = path.replace("\\", "/").split("/")
    if ".." in segments:
        return ValidationResult(False, "Directory must not contain path traversal ('..')")

    expanded = os.path.expanduser(path.strip())
    # Collapse duplicate and trailing separators only; ".." was rejected above
    normalized = os.path.normpath(expanded) if expanded.startswith("/") else expanded
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    for system_dir in PROTECTED_SYSTEM_DIRS:
        if _is_within(normalized, system_dir):
            return ValidationResult(
                False, f"Directory points into a sensitive system location: {system_dir}"
            )
    return VALID
