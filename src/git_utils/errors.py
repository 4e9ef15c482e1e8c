"""Errors raised by git-utils."""

from pathlib import Path
from typing import Optional, Sequence


class GitError(Exception):
    """Git operation error."""


class NotARepository(GitError):
    """Raised when a path is not inside a git repository."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"Not a git repository: {path}")
        self.path = path


class DetachedHead(GitError):
    """Raised when HEAD does not point at a named branch."""

    def __init__(self) -> None:
        super().__init__("HEAD is detached")


class BranchNotFound(GitError):
    """Raised when a local branch does not exist."""

    def __init__(self, branch: str) -> None:
        super().__init__(f"Branch not found: {branch}")
        self.branch = branch


class BaseBranchNotFound(GitError):
    """Raised when no base branch can be resolved."""

    def __init__(self, configured: Optional[str] = None) -> None:
        if configured:
            message = f"Configured base branch '{configured}' does not exist"
        else:
            message = "Base branch not found. Please configure git-branch-delete.base in .gitconfig"
        super().__init__(message)
        self.configured = configured


class BranchNotMerged(GitError):
    """Raised when a non-forced delete targets an unmerged branch."""

    def __init__(self, branch: str, base: str) -> None:
        super().__init__(f"Branch '{branch}' is not merged into '{base}'. Use --force to delete anyway.")
        self.branch = branch
        self.base = base


class InvalidRepositoryUrl(GitError):
    """Raised when a clone URL cannot be split into domain, user and repository."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Invalid repository URL '{url}': {reason}")
        self.url = url
        self.reason = reason


class DirtyWorkingTree(GitError):
    """Raised when a repository has uncommitted changes."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"Repository has uncommitted changes: {path}")
        self.path = path


class UnpushedCommits(GitError):
    """Raised when a repository has commits its upstream does not."""

    def __init__(self, path: Path | str, count: int) -> None:
        super().__init__(f"Repository has {count} unpushed commit(s): {path}")
        self.path = path
        self.count = count


class ExternalCommandFailed(GitError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, command: Sequence[str], stderr: Optional[str] = None, status: Optional[int] = None) -> None:
        self.command = list(command)
        self.stderr = (stderr or "").strip()
        self.status = status
        message = f"Command failed: {' '.join(self.command)}"
        if self.stderr:
            message += f"\n{self.stderr}"
        super().__init__(message)


class IoFailure(GitError):
    """Raised when a filesystem operation fails."""

    def __init__(self, path: Path | str, err: OSError) -> None:
        super().__init__(f"I/O error on {path}: {err.strerror or err}")
        self.path = path


class RepoRootNotConfigured(GitError):
    """Raised when git-repo.root is not set."""

    def __init__(self) -> None:
        super().__init__("git-repo.root not configured. Run 'git config --global git-repo.root <path>'")


class PromptUnavailable(GitError):
    """Raised when an interactive prompt is needed but stdin is not a terminal."""
