"""Merged pull requests in a revision range, looked up with the GitHub CLI."""

import json
import re
import subprocess
from dataclasses import dataclass
from typing import Iterable, Optional

from git_utils.errors import ExternalCommandFailed, GitError, InvalidRepositoryUrl
from git_utils.logging_config import get_logger
from git_utils.urls import parse_repo_url

logger = get_logger(__name__)

PR_NUMBER_PATTERN = re.compile(r"#(\d+)")
PR_FIELDS = "number,title,url,mergedAt,author"
DEFAULT_RANGE = "HEAD~10..HEAD"
PLATFORM = "github"


@dataclass
class RangeOptions:
    revision_range: Optional[str] = None
    count: Optional[int] = None

    def __post_init__(self):
        if self.revision_range and self.count is not None:
            raise ValueError("--count cannot be combined with a revision range")
        if self.count is not None and self.count <= 0:
            raise ValueError(f"--count must be positive, got {self.count}")


@dataclass
class PullRequest:
    number: int
    title: str
    url: str
    merged_at: Optional[str] = None
    author: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"number": self.number, "title": self.title, "url": self.url}
        if self.merged_at is not None:
            data["merged_at"] = self.merged_at
        if self.author is not None:
            data["author"] = self.author
        return data

    @classmethod
    def from_gh(cls, number: int, payload: dict) -> "PullRequest":
        author = payload.get("author") or {}
        return cls(
            number=number,
            title=payload.get("title") or "",
            url=payload.get("url") or "",
            merged_at=payload.get("mergedAt"),
            author=author.get("login"),
        )


def resolve_range(options: RangeOptions, latest_tag: Optional[str]) -> str:
    """Explicit range, then the last ``count`` commits, then ``<tag>..HEAD``."""
    if options.revision_range:
        return options.revision_range
    if options.count is not None:
        return f"HEAD~{options.count}..HEAD"
    if latest_tag:
        return f"{latest_tag}..HEAD"
    return DEFAULT_RANGE


def extract_pr_numbers(subjects: Iterable[str]) -> list[int]:
    """PR references like ``#123`` in commit subjects, first occurrence order."""
    numbers: list[int] = []
    seen: set[int] = set()
    for subject in subjects:
        for match in PR_NUMBER_PATTERN.finditer(subject):
            number = int(match.group(1))
            if number not in seen:
                seen.add(number)
                numbers.append(number)
    return numbers


def github_slug(remote_url: str) -> str:
    """``owner/repo`` of a GitHub remote."""
    try:
        info = parse_repo_url(remote_url)
    except InvalidRepositoryUrl as err:
        raise GitError(f"Not a GitHub repository: {remote_url}") from err
    if info.domain != "github.com":
        raise GitError(f"Not a GitHub repository: {remote_url}")
    return info.slug


class GitHubCLI:
    """Thin wrapper around the ``gh`` executable."""

    def __init__(self, executable: str = "gh") -> None:
        self.executable = executable

    def _run(self, *args: str) -> str:
        cmd = [self.executable, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as err:
            raise ExternalCommandFailed(cmd, str(err)) from err
        if proc.returncode != 0:
            raise ExternalCommandFailed(cmd, proc.stderr, proc.returncode)
        return proc.stdout

    def available(self) -> bool:
        try:
            self._run("--version")
        except ExternalCommandFailed:
            return False
        return True

    def view(self, slug: str, number: int) -> PullRequest:
        output = self._run("pr", "view", str(number), "--repo", slug, "--json", PR_FIELDS)
        return PullRequest.from_gh(number, json.loads(output))

    def open_pull_list(self, slug: str) -> None:
        self._run("pr", "list", "--web", "--repo", slug)


def fetch_pull_requests(gh: GitHubCLI, slug: str, numbers: Iterable[int]) -> list[PullRequest]:
    """Look up each PR; ones that fail (issues, other repos) are skipped."""
    pulls = []
    for number in numbers:
        try:
            pulls.append(gh.view(slug, number))
        except (ExternalCommandFailed, ValueError) as err:
            logger.warning("Skipping #%d: %s", number, err)
    return pulls


def pulls_search_url(slug: str, numbers: Iterable[int]) -> str:
    query = "+".join(str(number) for number in numbers)
    return f"https://github.com/{slug}/pulls?q=is:pr+is:merged+{query}"


def osc8_link(url: str, text: str) -> str:
    return f"\x1b]8;;{url}\x1b\\{text}\x1b]8;;\x1b\\"


def format_text(pulls: Iterable[PullRequest], links: bool = True) -> str:
    lines = []
    for pull in pulls:
        label = f"#{pull.number}"
        lines.append(osc8_link(pull.url, label) if links else label)
    return "\n".join(lines)


def format_json(rev_range: str, pulls: Iterable[PullRequest]) -> str:
    data = {
        "range": rev_range,
        "platform": PLATFORM,
        "pulls": [pull.to_dict() for pull in pulls],
    }
    return json.dumps(data, indent=2)


def format_markdown(rev_range: str, pulls: Iterable[PullRequest]) -> str:
    lines = [f"## Merged PRs ({rev_range})", ""]
    for pull in pulls:
        line = f"- [#{pull.number}]({pull.url}) {pull.title}"
        if pull.author:
            line += f" (@{pull.author})"
        lines.append(line)
    return "\n".join(lines)
