"""Tests for shell integration setup."""

from pathlib import Path

import pytest

from git_utils.errors import GitError
from git_utils.shell import (
    MARKER_COMMENT,
    add_source_line,
    detect_shell,
    install,
    print_snippet,
    rc_file,
    remove_source_lines,
    source_line,
    uninstall,
)


def test_detect_shell() -> None:
    assert detect_shell({"SHELL": "/usr/bin/zsh"}) == "zsh"
    assert detect_shell({"SHELL": "/opt/homebrew/bin/fish"}) == "fish"
    with pytest.raises(GitError, match="--shell"):
        detect_shell({"SHELL": "/bin/tcsh"})
    with pytest.raises(GitError):
        detect_shell({})


def test_rc_file(tmp_path: Path) -> None:
    assert rc_file("bash", tmp_path) == tmp_path / ".bashrc"
    assert rc_file("fish", tmp_path) == tmp_path / ".config" / "fish" / "config.fish"


def test_source_line_added_once(tmp_path: Path) -> None:
    rc = tmp_path / ".zshrc"
    rc.write_text("export EDITOR=vim\n")
    assert add_source_line(rc, source_line("zsh"))
    assert not add_source_line(rc, source_line("zsh"))
    assert rc.read_text().count(MARKER_COMMENT) == 1


def test_remove_source_lines(tmp_path: Path) -> None:
    rc = tmp_path / ".bashrc"
    rc.write_text("alias ll='ls -l'\n")
    add_source_line(rc, source_line("bash"))
    remove_source_lines(rc)
    assert rc.read_text() == "alias ll='ls -l'\n"


def test_install_creates_and_preserves(tmp_path: Path) -> None:
    result = install(tmp_path, "bash")
    env_sh = tmp_path / ".git-utils" / "env.sh"
    assert env_sh in result.created
    assert (tmp_path / ".git-utils" / "env.sh.example").exists()
    assert result.source_added
    assert "git-utils/env.sh" in (tmp_path / ".bashrc").read_text()

    env_sh.write_text("# my changes\n")
    again = install(tmp_path, "bash")
    assert env_sh in again.preserved
    assert not again.created
    assert not again.source_added
    assert env_sh.read_text() == "# my changes\n"


def test_install_fish(tmp_path: Path) -> None:
    result = install(tmp_path, "fish")
    assert result.rc_file == tmp_path / ".config" / "fish" / "config.fish"
    assert "env.fish" in result.rc_file.read_text()


def test_print_snippet() -> None:
    snippet = print_snippet("zsh")
    assert snippet.splitlines() == ["# Add this to your ~/.zshrc:", source_line("zsh")]
    with pytest.raises(GitError):
        print_snippet("powershell")


def test_uninstall(tmp_path: Path) -> None:
    install(tmp_path, "zsh")
    touched = uninstall(tmp_path)
    assert tmp_path / ".git-utils" in touched
    assert not (tmp_path / ".git-utils").exists()
    assert "git-utils" not in (tmp_path / ".zshrc").read_text()
    assert tmp_path / ".git-utils" not in uninstall(tmp_path)


def test_remove_source_lines_keeps_unrelated_mentions(tmp_path: Path) -> None:
    """Only the exact marker line and its source line are removed."""
    rc = tmp_path / ".zshrc"
    rc.write_text("alias gu=git-utils  # git-utils shortcut\n# git-utils notes: see README\n")
    add_source_line(rc, source_line("zsh"))
    remove_source_lines(rc)
    assert rc.read_text() == "alias gu=git-utils  # git-utils shortcut\n# git-utils notes: see README\n"
