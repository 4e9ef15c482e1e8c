"""Tests for branch deletion and switching decisions."""

from pathlib import Path

import pytest
from git import Repo

from git_utils.branches import (
    BranchCandidate,
    BranchCleaner,
    DeleteMode,
    DeleteOptions,
    SwitchOptions,
    switch_candidates,
)
from git_utils.config import StaticConfigProvider
from git_utils.errors import BaseBranchNotFound
from git_utils.git import GitRepo


@pytest.fixture
def repo(test_env: tuple[Path, Path]) -> GitRepo:
    local_path, _ = test_env
    return GitRepo(local_path, config=StaticConfigProvider({}))


def names(candidates: list[BranchCandidate]) -> list[str]:
    return [candidate.name for candidate in candidates]


@pytest.mark.parametrize(
    "flags",
    [
        {"all": True, "merged": True},
        {"all": True, "select": True},
        {"force": True, "merged": True},
    ],
)
def test_conflicting_delete_options(flags: dict) -> None:
    with pytest.raises(ValueError):
        DeleteOptions(**flags)


def test_delete_modes() -> None:
    assert DeleteOptions().mode is DeleteMode.MERGED
    assert DeleteOptions(merged=True).mode is DeleteMode.MERGED
    assert DeleteOptions(all=True, force=True).mode is DeleteMode.ALL
    assert DeleteOptions(select=True, merged=True).mode is DeleteMode.SELECT


def test_conflicting_switch_options() -> None:
    with pytest.raises(ValueError):
        SwitchOptions(merged=True, no_merged=True)


def test_candidate_label() -> None:
    assert BranchCandidate("feature/x", merged=True).label == "feature/x [merged]"
    assert BranchCandidate("feature/x").label == "feature/x"


def test_merged_candidates(repo: GitRepo) -> None:
    """By default only merged branches are offered, never base or current."""
    cleaner = BranchCleaner(repo, "main", DeleteOptions())
    candidates = cleaner.candidates("feature/current")
    assert names(candidates) == ["feature/fresh", "feature/merged"]
    assert all(candidate.merged for candidate in candidates)


def test_all_candidates(repo: GitRepo) -> None:
    cleaner = BranchCleaner(repo, "main", DeleteOptions(all=True))
    candidates = cleaner.candidates("feature/current")
    assert names(candidates) == ["feature/fresh", "feature/local", "feature/merged", "feature/unmerged"]
    assert {candidate.name: candidate.merged for candidate in candidates} == {
        "feature/fresh": True,
        "feature/local": False,
        "feature/merged": True,
        "feature/unmerged": False,
    }


def test_force_lifts_merged_filter(repo: GitRepo) -> None:
    cleaner = BranchCleaner(repo, "main", DeleteOptions(force=True))
    assert "feature/unmerged" in names(cleaner.candidates("feature/current"))


def test_select_offers_everything(repo: GitRepo) -> None:
    cleaner = BranchCleaner(repo, "main", DeleteOptions(select=True))
    assert len(cleaner.candidates("feature/current")) == 4


def test_delete_batch_continues_past_failures(repo: GitRepo) -> None:
    """An unmerged branch in an --all batch is skipped, the rest is deleted."""
    cleaner = BranchCleaner(repo, "main", DeleteOptions(all=True))
    report = cleaner.delete(["feature/merged", "feature/unmerged"])
    assert report.deleted == ["feature/merged"]
    assert report.deleted_count == 1
    assert report.skipped_count == 1
    branch, reason = report.skipped[0]
    assert branch == "feature/unmerged"
    assert "not merged" in reason
    assert "feature/unmerged" in repo.local_branches()


def test_delete_forced(repo: GitRepo) -> None:
    cleaner = BranchCleaner(repo, "main", DeleteOptions(all=True, force=True))
    report = cleaner.delete(["feature/unmerged", "feature/local"])
    assert report.deleted == ["feature/unmerged", "feature/local"]
    assert not report.skipped


def test_delete_current_branch_is_skipped(repo: GitRepo) -> None:
    """git refuses to delete the checked out branch even when forced."""
    cleaner = BranchCleaner(repo, "main", DeleteOptions(all=True, force=True))
    report = cleaner.delete(["feature/current"])
    assert not report.deleted
    assert report.skipped[0][0] == "feature/current"


def test_delete_leaves_remote_alone_by_default(repo: GitRepo, test_env: tuple[Path, Path]) -> None:
    _, remote_path = test_env
    cleaner = BranchCleaner(repo, "main", DeleteOptions())
    report = cleaner.delete(["feature/merged"])
    assert report.deleted == ["feature/merged"]
    assert not report.remote_deleted
    assert "feature/merged" in {head.name for head in Repo(remote_path).heads}


def test_delete_remote_with_confirmation(repo: GitRepo, test_env: tuple[Path, Path]) -> None:
    """Remote deletion is only asked for branches the remote has."""
    _, remote_path = test_env
    asked = []

    def confirm(branch: str) -> bool:
        asked.append(branch)
        return branch == "feature/merged"

    cleaner = BranchCleaner(repo, "main", DeleteOptions(all=True, force=True, remote=True))
    report = cleaner.delete(["feature/merged", "feature/unmerged", "feature/fresh"], confirm_remote=confirm)

    assert report.deleted == ["feature/merged", "feature/unmerged", "feature/fresh"]
    assert asked == ["feature/merged", "feature/unmerged"]
    assert report.remote_deleted == ["feature/merged"]
    remote_heads = {head.name for head in Repo(remote_path).heads}
    assert "feature/merged" not in remote_heads
    assert "feature/unmerged" in remote_heads


def test_delete_remote_failure_is_recorded(repo: GitRepo, test_env: tuple[Path, Path]) -> None:
    """A failed remote deletion does not undo or stop the local one."""
    _, remote_path = test_env
    repo.delete_remote_branch("feature/unmerged")
    # the remote-tracking ref survives, the remote branch is gone
    repo.repo.git.update_ref("refs/remotes/origin/feature/unmerged", "feature/unmerged")

    cleaner = BranchCleaner(repo, "main", DeleteOptions(all=True, force=True, remote=True))
    report = cleaner.delete(["feature/unmerged"])
    assert report.deleted == ["feature/unmerged"]
    assert report.remote_failed[0][0] == "feature/unmerged"


def test_switch_candidates_exclude_current(repo: GitRepo) -> None:
    candidates = switch_candidates(repo, "feature/current", SwitchOptions())
    assert "feature/current" not in names(candidates)
    assert "main" in names(candidates)


def test_switch_candidates_pattern(repo: GitRepo) -> None:
    candidates = switch_candidates(repo, "feature/current", SwitchOptions(pattern="merged"))
    assert names(candidates) == ["feature/merged", "feature/unmerged"]
    assert [candidate.label for candidate in candidates] == ["feature/merged [merged]", "feature/unmerged"]


def test_switch_candidates_merged_filters(repo: GitRepo) -> None:
    merged = names(switch_candidates(repo, "feature/current", SwitchOptions(pattern="feature", merged=True)))
    unmerged = names(switch_candidates(repo, "feature/current", SwitchOptions(no_merged=True)))
    assert merged == ["feature/fresh", "feature/merged"]
    assert unmerged == ["feature/local", "feature/unmerged"]


def test_switch_candidates_recent(repo: GitRepo) -> None:
    """Recent mode follows the reflog and drops branches that no longer exist."""
    repo.switch_branch("feature/merged")
    repo.switch_branch("feature/current")
    repo.delete_branch("feature/merged")
    candidates = names(switch_candidates(repo, "feature/current", SwitchOptions(recent=True)))
    assert "feature/merged" not in candidates
    assert candidates[0] == "main"


def test_switch_candidates_without_base(tmp_path: Path, make_repo) -> None:
    """Merge labels need a base branch, plain listing does not."""
    raw = make_repo(tmp_path / "repo")
    raw.git.branch("-M", "trunk")
    raw.create_head("topic")
    repo = GitRepo(tmp_path / "repo", config=StaticConfigProvider({}))

    assert names(switch_candidates(repo, "trunk", SwitchOptions())) == ["topic"]
    with pytest.raises(BaseBranchNotFound):
        switch_candidates(repo, "trunk", SwitchOptions(merged=True))
