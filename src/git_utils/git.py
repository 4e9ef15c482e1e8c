"""Git repository operations."""

from pathlib import Path
from typing import Optional

from git import GitCommandError, Head, InvalidGitRepositoryError, NoSuchPathError, Reference, Repo

from git_utils.config import ConfigProvider, GitConfigProvider, configured_base_branch
from git_utils.errors import (
    BaseBranchNotFound,
    BranchNotFound,
    BranchNotMerged,
    DetachedHead,
    DirtyWorkingTree,
    ExternalCommandFailed,
    GitError,
    NotARepository,
)
from git_utils.logging_config import get_logger

logger = get_logger(__name__)

BASE_BRANCH_CANDIDATES = ("main", "master", "develop")
CHECKOUT_PREFIX = "checkout: moving from"


def command_failed(err: GitCommandError) -> ExternalCommandFailed:
    """Convert a GitPython command error into our error type."""
    command = err.command if isinstance(err.command, (list, tuple)) else str(err.command).split()
    stderr = err.stderr.strip() if isinstance(err.stderr, str) else ""
    # GitPython prefixes captured stderr with "stderr: '...'"
    if stderr.startswith("stderr: "):
        stderr = stderr[len("stderr: ") :].strip("'").strip()
    return ExternalCommandFailed(command, stderr, err.status if isinstance(err.status, int) else None)


class GitRepo:
    """An opened repository and the branch queries built on it."""

    def __init__(self, path: Path = Path("."), config: Optional[ConfigProvider] = None) -> None:
        """Open the repository containing ``path``.

        Args:
            path: Any directory inside the working tree
            config: Configuration source, defaults to git config seen from ``path``
        """
        try:
            self.repo: Repo = Repo(path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as err:
            raise NotARepository(path) from err
        if self.repo.bare:
            raise GitError("Cannot operate on bare repository")
        self.config: ConfigProvider = config if config is not None else GitConfigProvider(self.root)

    @property
    def root(self) -> Path:
        return Path(self.repo.working_tree_dir)

    def _head(self, branch: str) -> Head:
        # repo.heads[name] resolves through getattr and trips over names like "count"
        return Head(self.repo, Head.to_full_path(branch))

    def local_branches(self) -> set[str]:
        """Get the names of all local branches."""
        return {head.name for head in self.repo.heads}

    def current_branch(self) -> str:
        """Get current branch name."""
        if self.repo.head.is_detached:
            raise DetachedHead()
        try:
            return self.repo.active_branch.name
        except TypeError as err:
            raise DetachedHead() from err

    def resolve_base_branch(self, config: Optional[ConfigProvider] = None) -> str:
        """Resolve the branch other branches are compared against.

        The configured ``git-branch-delete.base`` wins; otherwise the first of
        main, master and develop that exists locally.
        """
        branches = self.local_branches()
        configured = configured_base_branch(config if config is not None else self.config)
        if configured:
            if configured not in branches:
                raise BaseBranchNotFound(configured)
            return configured
        for candidate in BASE_BRANCH_CANDIDATES:
            if candidate in branches:
                return candidate
        raise BaseBranchNotFound()

    def is_merged(self, branch: str, base: str) -> bool:
        """Check whether ``branch``'s work has already landed on ``base``.

        True when both tips are the same commit or the branch tip is an
        ancestor of the base tip. Any failure counts as not merged.
        """
        try:
            branch_commit = self._head(branch).commit
            base_commit = self._head(base).commit
            if branch_commit == base_commit:
                return True
            return self.repo.is_ancestor(branch_commit, base_commit)
        except (ValueError, GitCommandError) as err:
            logger.debug("Merge check %s -> %s failed, treating as unmerged: %s", branch, base, err)
            return False

    def recent_branches(self) -> list[str]:
        """Branches recently switched to, most recent first."""
        branches: list[str] = []
        seen: set[str] = set()
        for entry in reversed(self.repo.head.log()):
            message = entry.message or ""
            if not message.startswith(CHECKOUT_PREFIX):
                continue
            parts = message.split()
            if not parts:
                continue
            target = parts[-1]
            if target not in seen:
                seen.add(target)
                branches.append(target)
        return branches

    def switch_branch(self, branch: str) -> None:
        """Check out a local branch."""
        if branch not in self.local_branches():
            raise BranchNotFound(branch)
        try:
            self._head(branch).checkout()
        except GitCommandError as err:
            raise command_failed(err) from err

    def delete_branch(self, branch: str, base: Optional[str] = None, force: bool = False) -> None:
        """Delete a local branch.

        Unless ``force`` is set the branch must be merged into ``base`` (the
        resolved base branch when not given). This check is the last line of
        defence: callers may have filtered on a merge status that defaulted.
        """
        if branch not in self.local_branches():
            raise BranchNotFound(branch)
        if not force:
            base = base or self.resolve_base_branch()
            if not self.is_merged(branch, base):
                raise BranchNotMerged(branch, base)
        try:
            # -D: the merge check above is made against the base branch,
            # git's own -d would compare against HEAD or the upstream
            self.repo.delete_head(branch, force=True)
        except GitCommandError as err:
            raise command_failed(err) from err

    def remote_branch_exists(self, branch: str, remote: str = "origin") -> bool:
        """Check for a remote-tracking ref ``refs/remotes/<remote>/<branch>``."""
        return Reference(self.repo, f"refs/remotes/{remote}/{branch}").is_valid()

    def delete_remote_branch(self, branch: str, remote: str = "origin") -> None:
        """Delete a branch on the remote with ``git push <remote> --delete``."""
        try:
            self.repo.git.push(remote, "--delete", branch)
        except GitCommandError as err:
            raise command_failed(err) from err

    def is_dirty(self) -> bool:
        """Check for uncommitted changes, untracked files included."""
        return self.repo.is_dirty(untracked_files=True)

    def unpushed_commit_count(self) -> int:
        """Count commits on HEAD that its upstream does not have.

        Only the ahead side matters: a stale branch loses nothing when removed.
        A detached HEAD, an unborn branch or a missing upstream count as zero.
        """
        if self.repo.head.is_detached:
            return 0
        try:
            branch = self.repo.active_branch
            local_commit = branch.commit
        except (TypeError, ValueError):
            return 0

        upstream = branch.tracking_branch()
        if upstream is None:
            fallback = Reference(self.repo, f"refs/remotes/origin/{branch.name}")
            upstream = fallback if fallback.is_valid() else None
        if upstream is None:
            return 0
        try:
            upstream_commit = upstream.commit
            count = self.repo.git.rev_list("--count", f"{upstream_commit.hexsha}..{local_commit.hexsha}")
        except (ValueError, GitCommandError) as err:
            logger.debug("Cannot compare %s with its upstream: %s", branch.name, err)
            return 0
        return int(count.strip() or 0)

    def latest_tag(self) -> Optional[str]:
        """Get the most recent tag reachable from HEAD."""
        try:
            return self.repo.git.describe("--tags", "--abbrev=0").strip() or None
        except GitCommandError:
            return None

    def log_subjects(self, rev_range: str) -> list[str]:
        """Get commit subjects in a revision range."""
        try:
            output = self.repo.git.log("--format=%s", rev_range)
        except GitCommandError as err:
            raise command_failed(err) from err
        return output.splitlines()

    def remote_url(self, name: str = "origin") -> str:
        try:
            return self.repo.remote(name).url
        except ValueError as err:
            raise GitError(f"No '{name}' remote found") from err

    def pull(self) -> None:
        """Pull the current branch; refuses to run on a dirty working tree."""
        if self.is_dirty():
            raise DirtyWorkingTree(self.root)
        try:
            self.repo.git.pull()
        except GitCommandError as err:
            raise command_failed(err) from err

    def branch_label(self) -> Optional[str]:
        """Short name of HEAD for listings: the branch, or "HEAD" when detached."""
        try:
            if self.repo.head.is_detached:
                return "HEAD"
            return self.repo.active_branch.name
        except (TypeError, ValueError):
            return None
