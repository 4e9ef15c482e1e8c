"""Shell integration for ``git-utils setup``."""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from git_utils.errors import GitError, IoFailure

SHELLS = ("bash", "zsh", "fish")
MARKER_COMMENT = "# git-utils"
SOURCE_MARKER = "git-utils/env"

ENV_SH_TEMPLATE = """\
# git-utils environment (bash/zsh)
export GIT_REPO_ROOT="${GIT_REPO_ROOT:-$(git config --get git-repo.root || echo "$HOME/src")}"

# grs: jump to a managed repository
grs() {
    local repo
    repo=$(git-repo ls | fzf --prompt="repo> ") || return
    [ -n "$repo" ] && cd "$GIT_REPO_ROOT/$repo"
}
"""

ENV_FISH_TEMPLATE = """\
# git-utils environment (fish)
set -q GIT_REPO_ROOT; or set -gx GIT_REPO_ROOT (git config --get git-repo.root; or echo $HOME/src)

# grs: jump to a managed repository
function grs
    set -l repo (git-repo ls | fzf --prompt="repo> ")
    test -n "$repo"; and cd "$GIT_REPO_ROOT/$repo"
end
"""

GITCONFIG_TEMPLATE = """\
# git-utils recommended settings
[git-repo]
    root = ~/src
    prefer-ssh = true

[git-branch-delete]
    base = main

[alias]
    bs = !git-branch-switch
    bd = !git-branch-delete
    repo = !git-repo
    pr-merged = !git-pr-merged
"""


@dataclass
class SetupResult:
    created: list[Path] = field(default_factory=list)
    preserved: list[Path] = field(default_factory=list)
    examples: list[Path] = field(default_factory=list)
    rc_file: Optional[Path] = None
    source_added: bool = False


def git_utils_dir(home: Path) -> Path:
    return home / ".git-utils"


def detect_shell(environ: Optional[Mapping[str, str]] = None) -> str:
    environ = os.environ if environ is None else environ
    shell = Path(environ.get("SHELL", "")).name
    if shell not in SHELLS:
        raise GitError("Could not detect shell. Please specify with --shell")
    return shell


def rc_file(shell: str, home: Path) -> Path:
    if shell == "fish":
        return home / ".config" / "fish" / "config.fish"
    if shell in ("bash", "zsh"):
        return home / f".{shell}rc"
    raise GitError(f"Unsupported shell: {shell}")


def source_line(shell: str) -> str:
    if shell == "fish":
        return "test -f ~/.git-utils/env.fish && source ~/.git-utils/env.fish"
    return "[ -f ~/.git-utils/env.sh ] && source ~/.git-utils/env.sh"


def add_source_line(rc: Path, line: str) -> bool:
    """Append the marked source line once. Returns False if already present."""
    if rc.exists() and SOURCE_MARKER in rc.read_text():
        return False
    rc.parent.mkdir(parents=True, exist_ok=True)
    with rc.open("a") as handle:
        handle.write(f"\n{MARKER_COMMENT}\n{line}\n")
    return True


def remove_source_lines(rc: Path) -> None:
    """Drop the marker comment and the source line following it."""
    lines = rc.read_text().splitlines()
    kept = []
    skip_next = False
    for line in lines:
        if line.strip() == MARKER_COMMENT:
            skip_next = True
            continue
        if skip_next and SOURCE_MARKER in line:
            skip_next = False
            continue
        skip_next = False
        kept.append(line)
    rc.write_text("\n".join(kept).rstrip("\n") + "\n")


def install(home: Path, shell: str) -> SetupResult:
    """Write env files and hook them into the shell rc file.

    The ``.example`` copies are always refreshed; env files the user may have
    edited are left alone.
    """
    result = SetupResult()
    target_dir = git_utils_dir(home)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        for name, template in (("env.sh", ENV_SH_TEMPLATE), ("env.fish", ENV_FISH_TEMPLATE)):
            env_file = target_dir / name
            example = target_dir / f"{name}.example"
            example.write_text(template)
            result.examples.append(example)
            if env_file.exists():
                result.preserved.append(env_file)
            else:
                env_file.write_text(template)
                result.created.append(env_file)
        result.rc_file = rc_file(shell, home)
        result.source_added = add_source_line(result.rc_file, source_line(shell))
    except OSError as err:
        raise IoFailure(target_dir, err) from err
    return result


def print_snippet(shell: str) -> str:
    if shell not in SHELLS:
        raise GitError(f"Unsupported shell: {shell}")
    target = "~/.config/fish/config.fish" if shell == "fish" else f"~/.{shell}rc"
    return f"# Add this to your {target}:\n{source_line(shell)}"


def uninstall(home: Path) -> list[Path]:
    """Remove source lines and ``~/.git-utils``. Returns what was touched."""
    touched = []
    for shell in SHELLS:
        rc = rc_file(shell, home)
        if rc.exists():
            remove_source_lines(rc)
            touched.append(rc)
    target_dir = git_utils_dir(home)
    if target_dir.exists():
        shutil.rmtree(target_dir)
        touched.append(target_dir)
    return touched
