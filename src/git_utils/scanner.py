"""Discovery of repositories under a root directory."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from git_utils.errors import IoFailure

# <root>/<domain>/<user>/<repo>
MAX_DEPTH = 3
MARKER = ".git"


@dataclass(frozen=True)
class RepoEntry:
    """A repository found under the root."""

    path: str
    absolute_path: Path
    branch: Optional[str] = None
    status: Optional[str] = None

    def to_dict(self, absolute: bool = False) -> dict:
        data: dict = {"path": self.path}
        if absolute:
            data["absolute_path"] = str(self.absolute_path)
        if self.branch is not None:
            data["branch"] = self.branch
        if self.status is not None:
            data["status"] = self.status
        return data


def is_repository(path: Path) -> bool:
    return (path / MARKER).exists()


def find_repos(root: Path, max_depth: int = MAX_DEPTH) -> list[Path]:
    """Find repository roots at most ``max_depth`` levels below ``root``.

    A directory holding a ``.git`` marker is reported and its contents are not
    searched, so repositories are never nested in the result. Order is not
    defined.
    """
    found: list[Path] = []
    stack: list[tuple[Path, int]] = [(root, 0)]
    while stack:
        directory, depth = stack.pop()
        if not directory.is_dir():
            continue
        if is_repository(directory):
            found.append(directory)
            continue
        if depth >= max_depth:
            continue
        try:
            children = list(directory.iterdir())
        except OSError as err:
            raise IoFailure(directory, err) from err
        for child in children:
            if child.is_dir():
                stack.append((child, depth + 1))
    return found


def scan(root: Path, max_depth: int = MAX_DEPTH) -> list[RepoEntry]:
    """Find repositories and describe them relative to ``root``."""
    return [
        RepoEntry(path=repo.relative_to(root).as_posix(), absolute_path=repo)
        for repo in find_repos(root, max_depth)
    ]
