"""Custom exceptions for forest"""

from typing import Optional

from forest.constants import ErrorCode


class ForestError(Exception):
    """Base exception for all forest errors."""

    code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self, message: str, code: Optional[str] = None, suggestion: Optional[str] = None
    ):
        self.message = message
        if code:
            self.code = code
        self.suggestion = suggestion
        super().__init__(message)

    def to_command_error(self):
        """Convert to the structured error carried by a CommandResult."""
        from forest.models.result import CommandError

        return CommandError(code=self.code, message=self.message, suggestion=self.suggestion)


class ValidationError(ForestError):
    """Raised when arguments fail validation before any git call is made."""

    code = ErrorCode.INVALID_ARGS


class GitOperationError(ForestError):
    """Exception raised for errors in Git operations."""

    def __init__(
        self,
        operation: str,
        path: Optional[str] = None,
        message: Optional[str] = None,
        stderr: Optional[str] = None,
        status=None,
        suggestion: Optional[str] = None,
    ):
        self.operation = operation
        self.path = path
        self.stderr = stderr
        self.status = status

        error_msg = f"Git operation '{operation}' failed"
        if path:
            error_msg += f" for '{path}'"
        if message:
            error_msg += f": {message}"

        super().__init__(
            error_msg,
            code=f"{operation.upper().replace('-', '_').replace(' ', '_')}_ERROR",
            suggestion=suggestion,
        )


class WorktreeNotFoundError(ForestError):
    """Exception raised when no registered worktree matches a path or branch."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, target: str):
        self.target = target
        super().__init__(
            f"Worktree not found: {target}",
            suggestion="Use 'forest list' to see available worktrees",
        )


class NotARepositoryError(ForestError):
    """Exception raised when forest runs outside a git repository."""

    code = ErrorCode.NOT_A_REPOSITORY

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Not a git repository: {path}",
            suggestion="Run forest from inside a git repository",
        )
