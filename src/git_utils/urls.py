"""Repository URL parsing."""

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from git_utils.errors import InvalidRepositoryUrl


@dataclass(frozen=True)
class RepoInfo:
    """Identity of a repository as given by its clone URL."""

    domain: str
    user: str
    repo: str

    @property
    def https_url(self) -> str:
        return f"https://{self.domain}/{self.user}/{self.repo}.git"

    @property
    def ssh_url(self) -> str:
        return f"git@{self.domain}:{self.user}/{self.repo}.git"

    @property
    def slug(self) -> str:
        return f"{self.user}/{self.repo}"

    def path_under(self, root: Path) -> Path:
        """Canonical checkout location: ``<root>/<domain>/<user>/<repo>``."""
        return root / self.domain / self.user / self.repo


def _check_component(url: str, value: str, what: str) -> str:
    # Each component becomes one directory level under the managed root
    if value in ("", ".", "..") or "/" in value or "\\" in value:
        raise InvalidRepositoryUrl(url, f"{what} '{value}' is not a usable directory name")
    return value


def _split_path(url: str, path: str) -> tuple[str, str]:
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    parts = [part for part in path.split("/") if part]
    if len(parts) < 2:
        raise InvalidRepositoryUrl(url, "expected <user>/<repo> in the path")
    return _check_component(url, parts[0], "user"), _check_component(url, parts[1], "repository")


def parse_repo_url(url: str) -> RepoInfo:
    """Split a clone URL into domain, user and repository name.

    Accepts scp-like SSH addresses (``git@github.com:org/repo.git``) and
    URLs with a scheme (``https://github.com/org/repo.git``). Both spellings of
    the same repository give the same result.
    """
    url = url.strip()
    if "://" in url:
        parsed = urlparse(url)
        host = parsed.hostname
        if not host:
            raise InvalidRepositoryUrl(url, "no host in URL")
        user, repo = _split_path(url, parsed.path)
        return RepoInfo(domain=_check_component(url, host, "host"), user=user, repo=repo)

    if ":" not in url:
        raise InvalidRepositoryUrl(url, "expected <host>:<path> or a URL with a scheme")
    authority, path = url.split(":", 1)
    host = authority.rsplit("@", 1)[-1]
    if not host:
        raise InvalidRepositoryUrl(url, "no host in URL")
    user, repo = _split_path(url, path)
    return RepoInfo(domain=_check_component(url, host, "host"), user=user, repo=repo)


def convert_url_if_needed(url: str, prefer_ssh: bool) -> str:
    """Rewrite an HTTP(S) URL to the scp-like SSH form when SSH is preferred."""
    if not prefer_ssh or "://" not in url:
        return url
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return url
    return f"git@{parsed.hostname}:{parsed.path.lstrip('/')}"
