"""Command line interfaces for git-utils."""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from InquirerPy.base.control import Choice
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from git_utils import interactive as prompts
from git_utils import shell as shell_setup
from git_utils.branches import BranchCleaner, DeleteOptions, SwitchOptions, switch_candidates
from git_utils.config import ConfigProvider, GitConfigProvider, prefer_ssh, repo_root
from git_utils.errors import GitError
from git_utils.git import GitRepo
from git_utils.logging_config import setup_logging
from git_utils.pulls import (
    GitHubCLI,
    RangeOptions,
    extract_pr_numbers,
    fetch_pull_requests,
    format_json,
    format_markdown,
    format_text,
    github_slug,
    pulls_search_url,
    resolve_range,
)
from git_utils.repos import CloneOptions, clone_repo, delete_repo, list_repos, resolve_delete_target

console = Console()

branch_delete_app = typer.Typer(help="Delete git branches interactively")
branch_switch_app = typer.Typer(help="Interactive branch switcher")
pr_merged_app = typer.Typer(help="List merged pull requests in a revision range")
repo_app = typer.Typer(help="Manage git repositories")
utils_app = typer.Typer(help="Git utilities setup and management")

PathOption = Annotated[Path, typer.Option(help="Path to git repository")]
VerboseOption = Annotated[bool, typer.Option("--verbose", help="Show progress messages")]
DebugOption = Annotated[bool, typer.Option("--debug", help="Show debug output")]


def get_config(path: Optional[Path] = None) -> ConfigProvider:
    """Configuration source for commands."""
    return GitConfigProvider(path)


def fail(message: object, code: int = 1) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(str(message))}")
    raise typer.Exit(code=code)


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path, config=get_config(path))
    except GitError as err:
        fail(err)


@branch_delete_app.command()
def branch_delete(
    all_: bool = typer.Option(False, "--all", "-a", help="Delete all branches except base and current"),
    merged: bool = typer.Option(False, "--merged", "-m", help="Delete only merged branches (default)"),
    select: bool = typer.Option(False, "--select", "-s", help="Select branches one by one"),
    force: bool = typer.Option(False, "--force", "-f", help="Force delete (use -D instead of -d)"),
    remote: bool = typer.Option(False, "--remote", "-r", help="Also delete remote tracking branches"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompts"),
    path: PathOption = Path("."),
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Delete local branches that are merged into the base branch."""
    try:
        options = DeleteOptions(all=all_, merged=merged, select=select, force=force, remote=remote)
    except ValueError as err:
        fail(err, code=2)
    setup_logging(verbose, debug)

    repo = get_repo(path)
    try:
        current = repo.current_branch()
        base = repo.resolve_base_branch()
    except GitError as err:
        fail(err)

    console.print(f"Base branch: [cyan]{escape(base)}[/cyan]")
    console.print(f"Current branch: [cyan]{escape(current)}[/cyan]")

    cleaner = BranchCleaner(repo, base, options)
    candidates = cleaner.candidates(current)
    if not candidates:
        console.print("No branches to delete")
        return

    try:
        if options.select:
            chosen = [
                candidate.name
                for candidate in candidates
                if prompts.confirm(f"Delete branch '{candidate.label}'?", default=False)
            ]
        else:
            table = Table(
                title="Branches to Delete",
                show_header=True,
                header_style="bold",
                title_style="bold blue",
                show_edge=True,
            )
            table.add_column("Branch", style="cyan", no_wrap=True)
            table.add_column("Status", style="magenta", justify="center")
            for candidate in candidates:
                status = "[green]merged[/green]" if candidate.merged else "[yellow]unmerged[/yellow]"
                table.add_row(escape(candidate.name), status)
            console.print()
            console.print(table)
            if yes or prompts.confirm(f"Delete {len(candidates)} branches?", default=False):
                chosen = [candidate.name for candidate in candidates]
            else:
                chosen = []
    except GitError as err:
        fail(err)

    if not chosen:
        console.print("No branches deleted")
        return

    def confirm_remote(branch: str) -> bool:
        return yes or prompts.confirm(f"Delete remote branch '{options.remote_name}/{branch}'?", default=False)

    try:
        report = cleaner.delete(chosen, confirm_remote=confirm_remote)
    except GitError as err:
        fail(err)

    for branch in report.deleted:
        console.print(f"Deleted local branch '{escape(branch)}'")
    for branch, reason in report.skipped:
        console.print(f"[red]Failed to delete branch '{escape(branch)}':[/red] {escape(reason)}")
    for branch in report.remote_deleted:
        console.print(f"Deleted remote branch '{options.remote_name}/{escape(branch)}'")
    for branch, reason in report.remote_failed:
        console.print(
            f"[red]Failed to delete remote branch '{options.remote_name}/{escape(branch)}':[/red] {escape(reason)}"
        )

    console.print()
    console.print(f"Deleted {report.deleted_count} local branches")
    if report.skipped_count:
        console.print(f"Skipped {report.skipped_count} branches")
    if options.remote and report.remote_deleted:
        console.print(f"Deleted {len(report.remote_deleted)} remote branches")


@branch_switch_app.command()
def branch_switch(
    branch_pattern: Optional[str] = typer.Argument(None, help="Branch name or pattern to filter"),
    recent: bool = typer.Option(False, "--recent", "-r", help="Show recently used branches"),
    merged: bool = typer.Option(False, "--merged", "-m", help="Show only merged branches"),
    no_merged: bool = typer.Option(False, "--no-merged", help="Show only unmerged branches"),
    path: PathOption = Path("."),
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Pick a branch and check it out."""
    try:
        options = SwitchOptions(pattern=branch_pattern, recent=recent, merged=merged, no_merged=no_merged)
    except ValueError as err:
        fail(err, code=2)
    setup_logging(verbose, debug)

    repo = get_repo(path)
    try:
        current = repo.current_branch()
        candidates = switch_candidates(repo, current, options)
    except GitError as err:
        fail(err)

    if not candidates:
        console.print("No branches found")
        return

    try:
        branch = prompts.fuzzy_select(
            "Select a branch:",
            [Choice(value=candidate.name, name=candidate.label) for candidate in candidates],
        )
        repo.switch_branch(branch)
    except GitError as err:
        fail(err)
    console.print(f"Switched to branch '{escape(branch)}'")


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"
    PLAIN = "plain"


@pr_merged_app.command()
def pr_merged(
    revision_range: Optional[str] = typer.Argument(
        None, help="Revision range (e.g. v1.0.0..v1.1.0). Defaults to <latest tag>..HEAD"
    ),
    count: Optional[int] = typer.Option(None, "--count", "-c", help="Number of commits to check"),
    web: bool = typer.Option(False, "--web", "-w", help="Open PR list in web browser"),
    output_format: OutputFormat = typer.Option(OutputFormat.TEXT, "--format", help="Output format"),
    path: PathOption = Path("."),
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """List pull requests merged in a revision range."""
    try:
        options = RangeOptions(revision_range=revision_range, count=count)
    except ValueError as err:
        fail(err, code=2)
    setup_logging(verbose, debug)

    repo = get_repo(path)
    rev_range = resolve_range(options, repo.latest_tag())

    gh = GitHubCLI()
    if not gh.available():
        fail("gh command not found. Please install GitHub CLI: https://cli.github.com/")

    try:
        slug = github_slug(repo.remote_url("origin"))
        numbers = extract_pr_numbers(repo.log_subjects(rev_range))
    except GitError as err:
        fail(err)

    if not numbers:
        console.print(f"No merged pull requests found in range: {escape(rev_range)}")
        return

    if web:
        try:
            gh.open_pull_list(slug)
        except GitError as err:
            fail(err)
        console.print(f"Opened in browser: {pulls_search_url(slug, numbers)}")
        return

    pulls = fetch_pull_requests(gh, slug, numbers)
    if output_format is OutputFormat.JSON:
        typer.echo(format_json(rev_range, pulls))
    elif output_format is OutputFormat.MARKDOWN:
        typer.echo(format_markdown(rev_range, pulls))
    else:
        typer.echo(format_text(pulls, links=output_format is OutputFormat.TEXT))


def managed_root() -> Path:
    try:
        return repo_root(get_config())
    except GitError as err:
        fail(err)


@repo_app.command()
def clone(
    url: str = typer.Argument(..., help="Repository URL"),
    shallow: bool = typer.Option(False, "--shallow", help="Shallow clone with --depth=1"),
    bare: bool = typer.Option(False, "--bare", help="Clone as bare repository"),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Checkout specific branch"),
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Clone a repository to <root>/<domain>/<user>/<repo>."""
    setup_logging(verbose, debug)
    root = managed_root()
    choose = prompts.choose_collision_action if prompts.is_interactive() else None
    try:
        result = clone_repo(
            url,
            root,
            CloneOptions(shallow=shallow, bare=bare, branch=branch),
            prefer_ssh=prefer_ssh(get_config()),
            choose=choose,
        )
    except GitError as err:
        fail(err)

    if result.action == "skipped":
        console.print(f"Directory already exists: {escape(str(result.path))}")
        console.print("Repository already cloned")
    elif result.action == "updated":
        console.print(f"Updated {escape(str(result.path))}")
    else:
        console.print(f"Successfully cloned to {escape(str(result.path))}")


@repo_app.command()
def ls(
    long: bool = typer.Option(False, "--long", "-l", help="Show detailed information"),
    absolute: bool = typer.Option(False, "--absolute", "-a", help="Show absolute paths"),
    dirty: bool = typer.Option(False, "--dirty", help="Show only dirty repositories"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """List all managed repositories."""
    setup_logging(verbose, debug)
    root = managed_root()
    if not root.exists():
        console.print(f"Repository root does not exist: {escape(str(root))}")
        return

    try:
        entries = list_repos(root, long=long or as_json, dirty_only=dirty)
    except GitError as err:
        fail(err)
    if not entries:
        console.print("No repositories found")
        return

    if as_json:
        typer.echo(json.dumps([entry.to_dict(absolute=absolute) for entry in entries], indent=2))
        return
    for entry in entries:
        name = str(entry.absolute_path) if absolute else entry.path
        if long:
            typer.echo(f"{name:<50} {entry.branch or '':<20} {entry.status or ''}")
        else:
            typer.echo(name)


@repo_app.command()
def delete(
    repo_path: Optional[str] = typer.Argument(None, help="Repository path (relative to repo root)"),
    interactive: bool = typer.Option(False, "--interactive", "-i", help="Interactive selection"),
    force: bool = typer.Option(False, "--force", "-f", help="Force delete without warnings"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Dry run (preview only)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the final confirmation"),
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Delete a managed repository."""
    setup_logging(verbose, debug)
    root = managed_root()

    def select(paths: list[str]) -> str:
        return prompts.fuzzy_select("Select repository to delete:", paths)

    confirm = (lambda message: prompts.confirm(message, default=False)) if prompts.is_interactive() else None
    try:
        target = resolve_delete_target(root, repo_path, select if interactive else None)
        outcome = delete_repo(target, root, force=force, dry_run=dry_run, confirm=confirm, assume_yes=yes)
    except GitError as err:
        fail(err)

    if outcome.status == "dry-run":
        for warning in outcome.safety.warnings:
            console.print(f"[yellow]Warning:[/yellow] {warning}")
        console.print(f"Would delete: {escape(outcome.relative)}")
        console.print(f"Path: {escape(str(outcome.path))}")
    elif outcome.status == "cancelled":
        console.print("Cancelled")
    else:
        console.print(f"Deleted repository: {escape(outcome.relative)}")


class Shell(str, Enum):
    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"


@utils_app.callback()
def utils_main() -> None:
    """Git utilities setup and management."""


@utils_app.command()
def setup(
    shell: Optional[Shell] = typer.Option(None, "--shell", help="Shell to configure"),
    print_shell: Optional[Shell] = typer.Option(
        None, "--print", metavar="SHELL", help="Print configuration snippet for the given shell"
    ),
    gitconfig: bool = typer.Option(False, "--gitconfig", help="Print gitconfig settings"),
    uninstall: bool = typer.Option(False, "--uninstall", help="Uninstall git-utils setup"),
) -> None:
    """Set up the shell environment for git-utils."""
    home = Path.home()
    try:
        if uninstall:
            for touched in shell_setup.uninstall(home):
                console.print(f"Cleaned up {escape(str(touched))}")
            console.print("Uninstall complete!")
            return
        if gitconfig:
            typer.echo(shell_setup.GITCONFIG_TEMPLATE)
            return
        if print_shell is not None:
            typer.echo(shell_setup.print_snippet(print_shell.value))
            return

        shell_name = shell.value if shell is not None else shell_setup.detect_shell()
        result = shell_setup.install(home, shell_name)
    except GitError as err:
        fail(err)

    console.print("Updated template files:")
    for example in result.examples:
        console.print(f"  {escape(str(example))}")
    if result.created:
        console.print("\nCreated environment files:")
        for created in result.created:
            console.print(f"  {escape(str(created))}")
    if result.preserved:
        console.print("\nExisting files preserved (not overwritten):")
        for preserved in result.preserved:
            console.print(f"  {escape(str(preserved))}")
        console.print("\nCompare them with the .example files to pick up template changes.")
    if result.source_added:
        console.print(f"Added source line to {escape(str(result.rc_file))}")
    else:
        console.print(f"Source line already exists in {escape(str(result.rc_file))}")
    console.print("\nSetup complete! Restart your shell to load it.")
