"""Branch deletion and switching decisions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

from git_utils.errors import BaseBranchNotFound, GitError
from git_utils.git import GitRepo
from git_utils.logging_config import get_logger

logger = get_logger(__name__)


class DeleteMode(Enum):
    """How delete candidates are chosen."""

    ALL = "all"
    MERGED = "merged"
    SELECT = "select"


@dataclass
class DeleteOptions:
    """Flags of one branch-delete run.

    Conflicting combinations are rejected here, before a repository is opened.
    """

    all: bool = False
    merged: bool = False
    select: bool = False
    force: bool = False
    remote: bool = False
    remote_name: str = "origin"

    def __post_init__(self):
        if self.all and (self.merged or self.select):
            raise ValueError("--all cannot be combined with --merged or --select")
        if self.force and self.merged:
            raise ValueError("--force cannot be combined with --merged")

    @property
    def mode(self) -> DeleteMode:
        if self.all:
            return DeleteMode.ALL
        if self.select:
            return DeleteMode.SELECT
        return DeleteMode.MERGED


@dataclass
class SwitchOptions:
    """Flags of one branch-switch run."""

    pattern: Optional[str] = None
    recent: bool = False
    merged: bool = False
    no_merged: bool = False

    def __post_init__(self):
        if self.merged and self.no_merged:
            raise ValueError("--merged cannot be combined with --no-merged")


@dataclass(frozen=True)
class BranchCandidate:
    name: str
    merged: bool = False

    @property
    def label(self) -> str:
        return f"{self.name} [merged]" if self.merged else self.name


@dataclass
class DeleteReport:
    """Outcome of a delete batch."""

    deleted: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)
    remote_deleted: list[str] = field(default_factory=list)
    remote_failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class BranchCleaner:
    """Picks branches to delete and deletes them one by one."""

    def __init__(self, repo: GitRepo, base: str, options: DeleteOptions) -> None:
        self.repo = repo
        self.base = base
        self.options = options

    def candidates(self, current: str) -> list[BranchCandidate]:
        """Local branches other than ``current`` and the base, filtered by mode.

        In merged mode (the default) only merged branches remain, unless
        ``force`` is set. Every candidate carries its merge status so select
        mode can show it.
        """
        names = sorted(self.repo.local_branches() - {current, self.base})
        result = [BranchCandidate(name, self.repo.is_merged(name, self.base)) for name in names]
        if self.options.mode is DeleteMode.MERGED and not self.options.force:
            result = [candidate for candidate in result if candidate.merged]
        return result

    def delete(
        self,
        branches: Iterable[str],
        confirm_remote: Optional[Callable[[str], bool]] = None,
    ) -> DeleteReport:
        """Delete ``branches``, carrying on past individual failures.

        Args:
            branches: Local branch names to delete
            confirm_remote: Asked for each deleted branch that also exists on
                the remote; only consulted when remote deletion is enabled
        """
        report = DeleteReport()
        remote = self.options.remote_name
        for branch in branches:
            try:
                self.repo.delete_branch(branch, base=self.base, force=self.options.force)
            except GitError as err:
                logger.warning("Failed to delete branch '%s': %s", branch, err)
                report.skipped.append((branch, str(err)))
                continue
            logger.info("Deleted local branch '%s'", branch)
            report.deleted.append(branch)

            if not self.options.remote or not self.repo.remote_branch_exists(branch, remote):
                continue
            if confirm_remote is not None and not confirm_remote(branch):
                continue
            try:
                self.repo.delete_remote_branch(branch, remote)
            except GitError as err:
                logger.warning("Failed to delete remote branch '%s/%s': %s", remote, branch, err)
                report.remote_failed.append((branch, str(err)))
                continue
            report.remote_deleted.append(branch)
        return report


def switch_candidates(repo: GitRepo, current: str, options: SwitchOptions) -> list[BranchCandidate]:
    """Branches offered by the switcher, labelled with their merge status.

    Raises BaseBranchNotFound when filtering by merge status without a base.
    """
    local = repo.local_branches()
    if options.recent:
        # the reflog also names deleted branches and detached checkouts
        names = [name for name in repo.recent_branches() if name in local]
    else:
        names = sorted(local)

    if options.pattern:
        names = [name for name in names if options.pattern in name]

    base: Optional[str]
    if options.merged or options.no_merged:
        base = repo.resolve_base_branch()
    else:
        try:
            base = repo.resolve_base_branch()
        except BaseBranchNotFound:
            base = None

    candidates = [
        BranchCandidate(name, repo.is_merged(name, base) if base else False)
        for name in names
        if name != current
    ]
    if options.merged:
        candidates = [candidate for candidate in candidates if candidate.merged]
    elif options.no_merged:
        candidates = [candidate for candidate in candidates if not candidate.merged]
    return candidates
