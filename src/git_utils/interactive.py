"""Interactive prompt helpers built on InquirerPy."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Sequence

from InquirerPy import inquirer
from InquirerPy.base.control import Choice

from git_utils.errors import PromptUnavailable
from git_utils.repos import CollisionAction

HELP_MESSAGE = "Use arrow keys to navigate, type to filter"


def is_interactive() -> bool:
    return sys.stdin.isatty()


def _ensure_tty() -> None:
    if not is_interactive():
        raise PromptUnavailable("Interactive mode requires a TTY.")


def confirm(message: str, default: bool = False) -> bool:
    _ensure_tty()
    return bool(inquirer.confirm(message=message, default=default).execute())


def fuzzy_select(message: str, choices: Sequence[Choice | str]) -> Any:
    _ensure_tty()
    return inquirer.fuzzy(message=message, choices=choices, long_instruction=HELP_MESSAGE).execute()


def choose_collision_action(target: Path) -> CollisionAction:
    """Ask what to do with a clone target that already exists."""
    _ensure_tty()
    choices = [
        Choice(value=CollisionAction.SKIP, name="Skip"),
        Choice(value=CollisionAction.UPDATE, name="Update (git pull)"),
        Choice(value=CollisionAction.REPLACE, name="Replace (delete and clone again)"),
        Choice(value=CollisionAction.RENAME, name="Rename (clone next to it with a suffix)"),
    ]
    return inquirer.select(
        message=f"Directory already exists: {target}",
        choices=choices,
        default=CollisionAction.SKIP,
    ).execute()
