"""Managed repository tree: clone, list and delete."""

import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from git import GitCommandError, Repo

from git_utils.errors import (
    DirtyWorkingTree,
    GitError,
    IoFailure,
    NotARepository,
    PromptUnavailable,
    UnpushedCommits,
)
from git_utils.git import GitRepo, command_failed
from git_utils.logging_config import get_logger
from git_utils.scanner import RepoEntry, is_repository, scan
from git_utils.urls import RepoInfo, convert_url_if_needed, parse_repo_url

logger = get_logger(__name__)


class CollisionAction(Enum):
    """What to do when the clone target already exists."""

    SKIP = "skip"
    UPDATE = "update"
    REPLACE = "replace"
    RENAME = "rename"


@dataclass
class CloneOptions:
    shallow: bool = False
    bare: bool = False
    branch: Optional[str] = None

    def clone_kwargs(self) -> dict:
        """Options for ``Repo.clone_from``, turned into git flags by GitPython."""
        kwargs: dict = {}
        if self.shallow:
            kwargs["depth"] = 1
        if self.bare:
            kwargs["bare"] = True
        if self.branch:
            kwargs["branch"] = self.branch
        return kwargs


@dataclass
class CloneResult:
    url: str
    path: Path
    action: str  # "cloned", "skipped" or "updated"


def target_path(root: Path, info: RepoInfo) -> Path:
    return info.path_under(root)


def next_available_path(path: Path) -> Path:
    """First of ``<path>-2``, ``<path>-3``, ... that does not exist yet."""
    suffix = 2
    while True:
        candidate = path.with_name(f"{path.name}-{suffix}")
        if not candidate.exists():
            return candidate
        suffix += 1


def ensure_under_root(root: Path, target: Path) -> None:
    """Refuse the root itself and anything that resolves outside it."""
    resolved, base = target.resolve(), root.resolve()
    if resolved == base or not resolved.is_relative_to(base):
        raise GitError(f"Refusing to touch {target}: outside the repository root {root}")


def update_repo(path: Path) -> None:
    """Pull an existing checkout, refusing when it has uncommitted changes."""
    # GitRepo searches parent directories, a plain directory would pull the enclosing repository
    if not is_repository(path):
        raise NotARepository(path)
    GitRepo(path).pull()


def _clone(url: str, path: Path, options: CloneOptions) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        raise IoFailure(path.parent, err) from err
    logger.info("Cloning %s to %s", url, path)
    try:
        Repo.clone_from(url, str(path), **options.clone_kwargs())
    except GitCommandError as err:
        raise command_failed(err) from err


def clone_repo(
    url: str,
    root: Path,
    options: Optional[CloneOptions] = None,
    prefer_ssh: bool = False,
    choose: Optional[Callable[[Path], CollisionAction]] = None,
) -> CloneResult:
    """Clone ``url`` to ``<root>/<domain>/<user>/<repo>``.

    Args:
        url: Clone URL, SSH or HTTPS
        root: Managed repository root
        options: Shallow, bare and branch settings
        prefer_ssh: Rewrite HTTPS URLs to SSH before cloning
        choose: Decides what to do when the target exists; without it
            (non-interactive use) an existing target is skipped
    """
    options = options or CloneOptions()
    url = convert_url_if_needed(url, prefer_ssh)
    info = parse_repo_url(url)
    target = target_path(root, info)
    ensure_under_root(root, target)

    if target.exists():
        action = choose(target) if choose is not None else CollisionAction.SKIP
        logger.debug("Target %s exists, action: %s", target, action.value)
        if action is CollisionAction.SKIP:
            return CloneResult(url, target, "skipped")
        if action is CollisionAction.UPDATE:
            update_repo(target)
            return CloneResult(url, target, "updated")
        if action is CollisionAction.REPLACE:
            try:
                shutil.rmtree(target)
            except OSError as err:
                raise IoFailure(target, err) from err
        elif action is CollisionAction.RENAME:
            target = next_available_path(target)
            ensure_under_root(root, target)

    _clone(url, target, options)
    return CloneResult(url, target, "cloned")


@dataclass
class RepoSafety:
    """Reasons not to delete a checkout."""

    uncommitted: bool = False
    unpushed: int = 0

    @property
    def warnings(self) -> list[str]:
        messages = []
        if self.uncommitted:
            messages.append("Repository has uncommitted changes")
        if self.unpushed:
            messages.append("Repository has unpushed commits")
        return messages


def check_repo_safety(path: Path) -> RepoSafety:
    repo = GitRepo(path)
    return RepoSafety(uncommitted=repo.is_dirty(), unpushed=repo.unpushed_commit_count())


def resolve_delete_target(
    root: Path,
    repo_path: Optional[str] = None,
    select: Optional[Callable[[list[str]], str]] = None,
) -> Path:
    """Find the directory to delete, by relative path or by interactive pick."""
    if not root.exists():
        raise GitError(f"Repository root does not exist: {root}")
    if select is not None:
        entries = sorted(entry.path for entry in scan(root))
        if not entries:
            raise GitError("No repositories found")
        return root / select(entries)
    if repo_path:
        target = root / repo_path
        if not target.exists():
            raise GitError(f"Repository not found: {repo_path}")
        return target
    raise GitError("Either specify a repository path or use --interactive")


@dataclass
class DeleteOutcome:
    path: Path
    relative: str
    status: str  # "deleted", "cancelled" or "dry-run"
    safety: RepoSafety


def delete_repo(
    target: Path,
    root: Path,
    force: bool = False,
    dry_run: bool = False,
    confirm: Optional[Callable[[str], bool]] = None,
    assume_yes: bool = False,
) -> DeleteOutcome:
    """Remove a checkout after the safety checks.

    Unless ``force`` is set, uncommitted changes and unpushed commits each need
    ``confirm``; without a confirm callback they raise instead. ``dry_run``
    stops before any confirmation or removal. The final confirmation is asked
    even when forced and is only skipped with ``assume_yes``.
    """
    try:
        relative = target.relative_to(root).as_posix()
    except ValueError:
        relative = str(target)
    ensure_under_root(root, target)
    if not is_repository(target):
        raise NotARepository(relative)

    safety = RepoSafety() if force else check_repo_safety(target)
    if not dry_run:
        if safety.uncommitted:
            if confirm is None:
                raise DirtyWorkingTree(relative)
            if not confirm("Repository has uncommitted changes. Continue anyway?"):
                return DeleteOutcome(target, relative, "cancelled", safety)
        if safety.unpushed:
            if confirm is None:
                raise UnpushedCommits(relative, safety.unpushed)
            if not confirm("Repository has unpushed commits. Continue anyway?"):
                return DeleteOutcome(target, relative, "cancelled", safety)

    if dry_run:
        return DeleteOutcome(target, relative, "dry-run", safety)

    if not assume_yes:
        if confirm is None:
            raise PromptUnavailable(f"Deleting '{relative}' needs confirmation")
        if not confirm(f"Delete repository '{relative}'?"):
            return DeleteOutcome(target, relative, "cancelled", safety)

    try:
        shutil.rmtree(target)
    except OSError as err:
        raise IoFailure(target, err) from err
    logger.info("Deleted repository %s", target)
    return DeleteOutcome(target, relative, "deleted", safety)


def describe_entry(entry: RepoEntry, with_status: bool = True) -> RepoEntry:
    """Add current branch and clean/dirty status to a scanned entry."""
    try:
        repo = GitRepo(entry.absolute_path)
    except GitError as err:
        logger.debug("Cannot open %s: %s", entry.absolute_path, err)
        return entry
    status = None
    if with_status:
        status = "[dirty]" if repo.is_dirty() else "[clean]"
    return RepoEntry(entry.path, entry.absolute_path, branch=repo.branch_label(), status=status)


def list_repos(root: Path, long: bool = False, dirty_only: bool = False) -> list[RepoEntry]:
    """Repositories under ``root`` sorted by relative path.

    With ``dirty_only`` clean repositories are left out; ones that cannot be
    opened stay in.
    """
    entries = []
    for entry in sorted(scan(root), key=lambda item: item.path):
        if dirty_only or long:
            described = describe_entry(entry)
            if dirty_only and described.status == "[clean]":
                continue
            if long:
                entry = described
        entries.append(entry)
    return entries
