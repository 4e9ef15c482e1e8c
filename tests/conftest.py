"""Test configuration and fixtures."""

from pathlib import Path
from typing import Callable, Generator

import pytest
from git import Actor, Repo

AUTHOR = Actor("Test User", "test@example.com")


def init_repo(path: Path) -> Repo:
    """Create a repository with one commit on ``main``."""
    path.mkdir(parents=True, exist_ok=True)
    repo = Repo.init(path)
    with repo.config_writer() as writer:
        writer.set_value("user", "name", AUTHOR.name)
        writer.set_value("user", "email", AUTHOR.email)
    readme = path / "README.md"
    readme.write_text("# Test Repository")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit", author=AUTHOR, committer=AUTHOR)
    # Whatever init.defaultBranch says, the trunk is main
    repo.git.branch("-M", "main")
    return repo


def commit_file(repo: Repo, name: str, content: str, message: str | None = None) -> None:
    path = Path(repo.working_tree_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    repo.index.commit(message or f"Add {name}", author=AUTHOR, committer=AUTHOR)


@pytest.fixture
def make_repo() -> Callable[[Path], Repo]:
    return init_repo


@pytest.fixture
def add_commit() -> Callable[..., None]:
    return commit_file


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a local repository with an origin and some branches.

    Branches:
        main             base branch, pushed
        feature/merged   merged into main with a merge commit, pushed
        feature/fresh    points at main, never committed to
        feature/unmerged one commit main does not have, pushed
        feature/local    one commit main does not have, never pushed
        feature/current  checked out

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote.git"
    local_path = tmp_path / "local"
    Repo.init(remote_path, bare=True)

    local_repo = init_repo(local_path)
    main_branch = local_repo.heads.main
    origin = local_repo.create_remote("origin", url=str(remote_path))
    origin.push("main")
    main_branch.set_tracking_branch(origin.refs.main)

    def create_branch(name: str, merge: bool = False, push: bool = True) -> None:
        main_branch.checkout()
        branch = local_repo.create_head(name)
        branch.checkout()
        commit_file(local_repo, f"{name}.txt", f"{name} content")
        if push:
            origin.push(name)
            branch.set_tracking_branch(origin.refs[name])
        if merge:
            main_branch.checkout()
            local_repo.git.merge(name, "--no-ff", "-m", f"Merge {name}")
            origin.push("main")

    create_branch("feature/merged", merge=True)
    create_branch("feature/unmerged")
    create_branch("feature/local", push=False)
    main_branch.checkout()
    local_repo.create_head("feature/fresh")
    create_branch("feature/current")

    yield local_path, remote_path


@pytest.fixture
def repo_tree(tmp_path: Path) -> Path:
    """A managed root laid out as <root>/<domain>/<user>/<repo>."""
    root = tmp_path / "src"
    init_repo(root / "github.com" / "org" / "clean")
    dirty = init_repo(root / "github.com" / "org" / "dirty")
    (Path(dirty.working_tree_dir) / "scratch.txt").write_text("not committed")
    init_repo(root / "gitlab.com" / "someone" / "tool")
    (root / "github.com" / "org" / "not-a-repo").mkdir(parents=True)
    return root
