"""Command-line interface for the backport tools."""

import json
import signal
from collections import Counter
from pathlib import Path
from typing import NoReturn, Optional

import git
import typer
from rich.console import Console
from rich.markup import escape

from gitbackport.backport import BackportComparator, DiffViewer, ReviewSession, build_report
from gitbackport.errors import BackportToolError, InvalidOptionError, RunInterrupted
from gitbackport.iteration import CompileCheck, ForeachRunner
from gitbackport.log import configure_logging
from gitbackport.models import (
    BackportDiffConfig,
    CompileCheckConfig,
    ForeachConfig,
    IterationOrder,
    MatchPreference,
    Settings,
)
from gitbackport.repository import GitRepository, RepoSettingsStore

app = typer.Typer(
    name="git-backport-tools",
    help="Git helpers for backport work: build each commit, run a command on each commit, "
    "compare backports with upstream",
    add_completion=False,
)
console = Console()

# Enum and integer options are taken as text and validated with the persisted
# settings, so a bad value is reported like any other invalid setting
ORDER_HELP = "Iteration order: " + ", ".join(o.value for o in IterationOrder)
PREFER_HELP = "Upstream commit used when several share the subject: " + ", ".join(
    p.value for p in MatchPreference
)


def _configure(verbose: bool) -> None:
    settings = Settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_format)


def _fail(ctx: typer.Context, error: BackportToolError) -> NoReturn:
    """Report an error the way its kind calls for and exit with its code."""
    if isinstance(error, RunInterrupted):
        console.print("\n[yellow]Interrupted[/yellow]")
    else:
        if isinstance(error, InvalidOptionError):
            console.print(ctx.get_help(), markup=False, highlight=False)
        console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(error.exit_code)


def compile_check(
    ctx: typer.Context,
    commit_range: Optional[str] = typer.Option(
        None, "--range", "-r", help="Revision range to build [compile-check.range, default HEAD^..HEAD]"
    ),
    config_opts: Optional[str] = typer.Option(
        None, "--configure-opts", "-c", help="Options passed to configure [compile-check.configopts]"
    ),
    make_opts: Optional[str] = typer.Option(
        None, "--make-opts", "-m", help="Options passed to make [compile-check.makeopts]"
    ),
    log_dir: Optional[str] = typer.Option(None, "--log-dir", "-d", help="Log directory [compile-check.logdir]"),
    log_file: Optional[str] = typer.Option(None, "--log-file", "-l", help="Log file name [compile-check.logfile]"),
    make: Optional[str] = typer.Option(None, "--make", help="Build command [compile-check.make]"),
    configure: Optional[str] = typer.Option(None, "--configure", help="Configure command [compile-check.configure]"),
    skip_configure: Optional[bool] = typer.Option(
        None, "--skip-configure/--run-configure", "-s/-S", help="Skip the configure step"
    ),
    clean_tree: Optional[bool] = typer.Option(
        None,
        "--clean-tree/--no-clean-tree",
        "-x/-X",
        help="DESTRUCTIVE: git reset --hard and git clean -fdx before each build",
    ),
    keep_going: Optional[bool] = typer.Option(
        None, "--keep-going/--stop-on-failure", "-k/-K", help="Continue with the next commit after a failure"
    ),
    order: Optional[str] = typer.Option(None, "--order", help=ORDER_HELP),
    repo_path: Path = typer.Option(Path("."), "--repo", help="Path inside the Git repository"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Check out, configure and build every commit of a range."""
    _configure(verbose)
    try:
        repository = GitRepository(repo_path)
        store = RepoSettingsStore(repository)
        config = store.load(
            CompileCheckConfig,
            commit_range=commit_range,
            config_opts=config_opts,
            make_opts=make_opts,
            log_dir=log_dir,
            log_file=log_file,
            make=make,
            configure=configure,
            skip_configure=skip_configure,
            clean_tree=clean_tree,
            keep_going=keep_going,
            order=order,
        )
        commits = repository.resolve_range(config.commit_range, config.order)
        store.seed_defaults(CompileCheckConfig)

        console.print(f"[bold green]Building range:[/bold green] {escape(config.commit_range)}")
        console.print(f"[bold blue]Log file:[/bold blue] {escape(str(config.log_path))}\n")

        outcomes = CompileCheck(repository, config, console).run(commits)
        failed = [outcome for outcome in outcomes if not outcome.result.success]
        if failed:
            console.print(f"\n[bold red]✗[/bold red] {len(failed)} of {len(outcomes)} commits failed to build")
            raise typer.Exit(1)
        console.print(f"\n[bold green]✓[/bold green] Built {len(outcomes)} commits")

    except BackportToolError as e:
        _fail(ctx, e)
    except KeyboardInterrupt:
        _fail(ctx, RunInterrupted(signal.SIGINT))
    except git.exc.GitCommandError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


def foreach(
    ctx: typer.Context,
    command: Optional[str] = typer.Option(
        None, "--command", "-c", help="Shell command run on each commit [foreach.command]"
    ),
    commit_range: Optional[str] = typer.Option(
        None, "--range", "-r", help="Revision range [foreach.range, default HEAD^..HEAD]"
    ),
    log_dir: Optional[str] = typer.Option(None, "--log-dir", "-d", help="Log directory [foreach.logdir]"),
    log_file: Optional[str] = typer.Option(None, "--log-file", "-l", help="Log file name [foreach.logfile]"),
    ignore_errors: Optional[bool] = typer.Option(
        None, "--ignore-errors/--stop-on-error", "-i/-I", help="Do not abort when the command fails"
    ),
    order: Optional[str] = typer.Option(None, "--order", help=ORDER_HELP),
    repo_path: Path = typer.Option(Path("."), "--repo", help="Path inside the Git repository"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Run a shell command with each commit of a range checked out."""
    _configure(verbose)
    try:
        repository = GitRepository(repo_path)
        store = RepoSettingsStore(repository)
        config = store.load(
            ForeachConfig,
            command=command,
            commit_range=commit_range,
            log_dir=log_dir,
            log_file=log_file,
            ignore_errors=ignore_errors,
            order=order,
        )
        runner = ForeachRunner(repository, config, console)
        commits = repository.resolve_range(config.commit_range, config.order)
        store.seed_defaults(ForeachConfig)

        outcomes = runner.run(commits)
        console.print(f"\n[bold green]✓[/bold green] Ran on {len(outcomes)} commits")

    except BackportToolError as e:
        _fail(ctx, e)
    except KeyboardInterrupt:
        _fail(ctx, RunInterrupted(signal.SIGINT))
    except git.exc.GitCommandError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


def backport_diff(
    ctx: typer.Context,
    commit_range: Optional[str] = typer.Option(
        None, "--range", "-r", help="Downstream revision range [backport-diff.range, default HEAD^..HEAD]"
    ),
    upstream: Optional[str] = typer.Option(
        None, "--upstream", "-u", help="Upstream reference [backport-diff.upstream, default origin/master]"
    ),
    diff_prog: Optional[str] = typer.Option(
        None, "--diff", "-d", help="Interactive diff viewer [backport-diff.diffprog, default meld]"
    ),
    sensitivity: Optional[str] = typer.Option(
        None,
        "--sensitivity",
        "-s",
        help="Which diffs to view: 0 functional, 1 also contextual, 2 all matched [backport-diff.sensitivity]",
    ),
    summary: Optional[bool] = typer.Option(
        None, "--summary/--no-summary", "-n/-N", help="Only print the summary, do not offer to view diffs"
    ),
    pause: Optional[bool] = typer.Option(
        None, "--pause/--no-pause", "-p/-P", help="Ask before opening each diff"
    ),
    color: Optional[bool] = typer.Option(None, "--color/--no-color", "-c/-C", help="Colorize the summary"),
    prefer: Optional[str] = typer.Option(None, "--prefer", help=PREFER_HELP),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the classification report as JSON"),
    repo_path: Path = typer.Option(Path("."), "--repo", help="Path inside the Git repository"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Compare backported commits with their upstream originals, matched by subject."""
    _configure(verbose)
    try:
        repository = GitRepository(repo_path)
        store = RepoSettingsStore(repository)
        config = store.load(
            BackportDiffConfig,
            commit_range=commit_range,
            upstream=upstream,
            diff_prog=diff_prog,
            sensitivity=sensitivity,
            summary=summary,
            pause=pause,
            color=color,
            prefer=prefer,
        )
        console.no_color = not config.color
        comparator = BackportComparator(repository, config, console)
        commits = comparator.resolve()
        store.seed_defaults(BackportDiffConfig)

        comparator.print_key()
        entries = comparator.compare(commits)

        counts = Counter(entry.classification.value for entry in entries)
        console.print(
            f"\n[bold]{len(entries)} commits:[/bold] "
            + ", ".join(f"{count} {name}" for name, count in sorted(counts.items()))
        )

        if output:
            output.parent.mkdir(parents=True, exist_ok=True)
            with open(output, "w") as f:
                json.dump(build_report(entries), f, indent=2)
            console.print(f"[bold green]✓[/bold green] Saved to {output}")

        if not config.summary:
            session = ReviewSession(DiffViewer(repository, config.diff_prog), console, pause=config.pause)
            session.review([entry for entry in entries if entry.queued])

    except BackportToolError as e:
        _fail(ctx, e)
    except KeyboardInterrupt:
        _fail(ctx, RunInterrupted(signal.SIGINT))
    except typer.Abort:
        # Ctrl-C or end of input at a viewer prompt
        _fail(ctx, RunInterrupted(signal.SIGINT))
    except git.exc.GitCommandError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


app.command("compile-check")(compile_check)
app.command("foreach")(foreach)
app.command("backport-diff")(backport_diff)

# Standalone entry points, usable as git subcommands (git backport-diff ...)
compile_check_app = typer.Typer(name="git-compile-check", add_completion=False)
compile_check_app.command()(compile_check)

foreach_app = typer.Typer(name="git-foreach", add_completion=False)
foreach_app.command()(foreach)

backport_diff_app = typer.Typer(name="git-backport-diff", add_completion=False)
backport_diff_app.command()(backport_diff)


if __name__ == "__main__":
    app()
