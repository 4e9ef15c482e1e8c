"""Configuration lookup.

All settings live in git config. Commands receive a ``ConfigProvider`` so tests
can hand in fixed values instead of reading the user's real configuration.
"""

import os
from pathlib import Path
from typing import Mapping, Optional, Protocol

from git import Git, GitCommandError

from git_utils.errors import RepoRootNotConfigured

ROOT_KEY = "git-repo.root"
PREFER_SSH_KEY = "git-repo.prefer-ssh"
BASE_BRANCH_KEY = "git-branch-delete.base"

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0", ""}


class ConfigProvider(Protocol):
    """Read-only key/value configuration source."""

    def get(self, key: str) -> Optional[str]: ...

    def get_bool(self, key: str) -> Optional[bool]: ...


class GitConfigProvider:
    """Reads values with ``git config --get``.

    When ``working_dir`` is inside a repository its local config takes
    precedence over the global one, as git itself resolves it.
    """

    def __init__(self, working_dir: Optional[Path] = None) -> None:
        self._git = Git(str(working_dir) if working_dir else None)

    def get(self, key: str) -> Optional[str]:
        try:
            value = self._git.config("--get", key).strip()
        except GitCommandError:
            # exit status 1 means the key is not set
            return None
        return value or None

    def get_bool(self, key: str) -> Optional[bool]:
        try:
            value = self._git.config("--bool", "--get", key).strip()
        except GitCommandError:
            return None
        return value == "true"


class StaticConfigProvider:
    """In-memory configuration, mainly for tests."""

    def __init__(self, values: Optional[Mapping[str, object]] = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str) -> Optional[str]:
        value = self._values.get(key)
        if value is None:
            return None
        return str(value)

    def get_bool(self, key: str) -> Optional[bool]:
        value = self._values.get(key)
        if value is None:
            return None
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError(f"{key} must be a boolean, got '{value}'")


def repo_root(config: ConfigProvider) -> Path:
    """Return the managed repository root with ``~`` expanded."""
    value = config.get(ROOT_KEY)
    if not value:
        raise RepoRootNotConfigured()
    return Path(os.path.expanduser(value))


def prefer_ssh(config: ConfigProvider) -> bool:
    return bool(config.get_bool(PREFER_SSH_KEY))


def configured_base_branch(config: ConfigProvider) -> Optional[str]:
    value = config.get(BASE_BRANCH_KEY)
    return value.strip() if value else None
