"""Command-line interface for the goals and challenges engine.

Built with Typer for commands and Rich for output.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import get_config
from .db import get_db
from .errors import GrowthError, NotAuthenticated, ValidationError, require_user

# Create the main app
app = typer.Typer(
    name="shepherd",
    help="Track spiritual-growth challenges, goals and achievements.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
challenge_app = typer.Typer(help="Browse, join and track catalog challenges.")
app.add_typer(challenge_app, name="challenge")

goal_app = typer.Typer(help="Create and update your own goals.")
app.add_typer(goal_app, name="goal")

log_app = typer.Typer(help="Record prayer, service and reading activity.")
app.add_typer(log_app, name="log")

# Rich consoles for pretty output
console = Console()
err_console = Console(stderr=True)

USER_OPTION_HELP = "User id (default: SHEPHERD_USER_ID)"


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def progress_bar(percentage: float, width: int = 10) -> str:
    """Render a text progress bar."""
    filled = int(min(100.0, max(0.0, percentage)) / 100 * width)
    return "[green]" + "*" * filled + "[/green]" + "-" * (width - filled)


def resolve_user(user: Optional[str]) -> str:
    """Use the --user option or the configured session user."""
    try:
        return require_user(user or get_config().user_id)
    except NotAuthenticated:
        print_error("Please log in first (set SHEPHERD_USER_ID or pass --user)")
        raise typer.Exit(1)


def _db():
    return get_db(str(get_config().db_path))


def _challenge_manager():
    from .activity import ActivitySource
    from .catalog import load_catalog
    from .challenges import ChallengeManager
    from .progress import ProgressEngine

    config = get_config()
    db = _db()
    source = ActivitySource(db, lookback_days=config.streak_lookback_days)
    return ChallengeManager(
        db,
        catalog=load_catalog(config.catalog_path),
        engine=ProgressEngine(source),
        progress_workers=config.progress_workers,
    )


def _goal_manager():
    from .goals import GoalManager

    return GoalManager(_db())


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Track spiritual-growth challenges, goals and achievements."""
    config = get_config()
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"shepherd version {__version__}")


# ============================================================================
# Challenge Commands
# ============================================================================


@challenge_app.command("catalog")
def challenge_catalog(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Filter by category"),
) -> None:
    """List every challenge in the catalog."""
    from .catalog import ChallengeCategory, load_catalog

    catalog = load_catalog(get_config().catalog_path)

    if category:
        try:
            templates = catalog.by_category(ChallengeCategory(category))
        except ValueError:
            print_error(f"Invalid category: {category}")
            console.print(f"[dim]Valid categories: {', '.join(c.value for c in ChallengeCategory)}[/dim]")
            raise typer.Exit(1)
    else:
        templates = catalog.list_templates()

    table = Table(title=f"Challenge Catalog (v{catalog.version})", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Category", style="green")
    table.add_column("Difficulty", style="yellow")
    table.add_column("Target", justify="right")

    for t in templates:
        table.add_row(
            t.id,
            t.title,
            t.category_label,
            t.difficulty.value,
            f"{t.target:g} {t.unit}",
        )

    console.print(table)


@challenge_app.command("available")
def challenge_available(
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """List challenges you have not joined yet."""
    user_id = resolve_user(user)
    manager = _challenge_manager()

    templates = manager.available_challenges(user_id)
    if not templates:
        console.print("[dim]You have joined every challenge in the catalog.[/dim]")
        return

    table = Table(title="Available Challenges", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Duration", justify="right")
    table.add_column("Target", justify="right")

    for t in templates:
        duration = "open" if t.is_open_ended else f"{t.duration_days} days"
        table.add_row(t.id, t.title, duration, f"{t.target:g} {t.unit}")

    console.print(table)


@challenge_app.command("join")
def challenge_join(
    challenge_id: str = typer.Argument(..., help="Catalog challenge id, e.g. prayer-7"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Join a challenge from the catalog."""
    user_id = resolve_user(user)
    manager = _challenge_manager()

    if challenge_id in manager.enrolled_challenge_ids(user_id):
        print_warning(f"You have already joined {challenge_id}")
        raise typer.Exit(1)

    try:
        enrollment = manager.join(user_id, challenge_id)
    except ValidationError as e:
        print_error(str(e))
        console.print("[dim]Use 'challenge available' to see challenges you can join.[/dim]")
        raise typer.Exit(1)

    print_success(f"You've joined the {enrollment.title}!")
    print_info(f"Enrollment: {enrollment.id}")


@challenge_app.command("active")
def challenge_active(
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Show progress on your active challenges."""
    user_id = resolve_user(user)
    manager = _challenge_manager()

    results = manager.evaluate_all(user_id)
    if not results:
        console.print("[dim]No active challenges. Join one with 'challenge join'.[/dim]")
        return

    table = Table(title="Active Challenges", show_header=True, header_style="bold magenta")
    table.add_column("Challenge", style="cyan")
    table.add_column("Progress")
    table.add_column("%", justify="right")
    table.add_column("Days Left", justify="right")
    table.add_column("Status")

    for item in results:
        enrollment, progress = item.enrollment, item.progress
        if not progress.is_supported:
            status = "[dim]manual[/dim]"
        elif item.is_completed:
            status = "[bold green]Completed![/bold green]"
        else:
            status = "[yellow]active[/yellow]"
        days_left = enrollment.days_remaining

        table.add_row(
            enrollment.title,
            f"{progress_bar(progress.percentage)} {progress.display}",
            f"{progress.percentage:.0f}%",
            str(days_left) if days_left is not None else "-",
            status,
        )

    console.print(table)

    for item in results:
        if item.newly_completed:
            print_success(f"Completed {item.enrollment.title}!")


@challenge_app.command("completed")
def challenge_completed(
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """List challenges you have completed."""
    user_id = resolve_user(user)
    manager = _challenge_manager()

    enrollments = manager.list_completed(user_id)
    if not enrollments:
        console.print("[dim]No completed challenges yet.[/dim]")
        return

    table = Table(title="Completed Challenges", show_header=True, header_style="bold magenta")
    table.add_column("Challenge", style="cyan")
    table.add_column("Completed", style="green")

    for e in enrollments:
        table.add_row(e.title, (e.completed_at or "")[:10])

    console.print(table)


@challenge_app.command("progress")
def challenge_progress(
    enrollment_id: str = typer.Argument(..., help="Enrollment id"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Show detailed progress for one enrollment."""
    user_id = resolve_user(user)
    manager = _challenge_manager()

    enrollment = manager.get_enrollment(enrollment_id, user_id=user_id)
    if enrollment is None:
        print_error(f"Enrollment not found: {enrollment_id}")
        raise typer.Exit(1)

    result = manager.evaluate(enrollment)
    enrollment, progress = result.enrollment, result.progress
    data = enrollment.get_challenge_data()

    console.print(f"\n[bold]{enrollment.title}[/bold]")
    if data.description:
        console.print(f"[dim]{data.description}[/dim]")
    console.print(f"Status: {enrollment.status}")
    console.print(f"Started: {(enrollment.start_date or '')[:10]}")
    if enrollment.end_date:
        console.print(f"Ends: {enrollment.end_date[:10]} ({enrollment.days_remaining} days left)")

    if progress.is_supported:
        console.print(f"Progress: {progress_bar(progress.percentage, 20)} {progress.display}")
        console.print(f"{progress.percentage:.0f}% complete")
    else:
        print_warning("Progress for this challenge is not tracked automatically.")
        console.print(f"[dim]Use 'challenge complete {enrollment.id}' when you finish.[/dim]")

    if result.newly_completed:
        console.print(Panel("[bold green]Challenge completed![/bold green]", style="green"))


@challenge_app.command("complete")
def challenge_complete(
    enrollment_id: str = typer.Argument(..., help="Enrollment id"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Mark an enrollment as completed."""
    user_id = resolve_user(user)
    manager = _challenge_manager()

    enrollment = manager.complete(enrollment_id, user_id)
    if enrollment is None:
        print_error(f"Enrollment not found: {enrollment_id}")
        raise typer.Exit(1)

    print_success(f"Completed {enrollment.title}")


@challenge_app.command("share")
def challenge_share(
    enrollment_id: str = typer.Argument(..., help="Enrollment id"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Print a shareable progress message."""
    from .challenges import share_message

    user_id = resolve_user(user)
    manager = _challenge_manager()

    enrollment = manager.get_enrollment(enrollment_id, user_id=user_id)
    if enrollment is None:
        print_error(f"Enrollment not found: {enrollment_id}")
        raise typer.Exit(1)

    progress = manager.get_progress(enrollment)
    console.print(share_message(enrollment.get_challenge_data().title, progress))


# ============================================================================
# Goal Commands
# ============================================================================


@goal_app.command("create")
def goal_create(
    title: str = typer.Argument(..., help="Goal title"),
    target: str = typer.Argument(..., help="Target number"),
    description: str = typer.Option("", "--description", "-d", help="Description"),
    category: str = typer.Option("personal", "--category", "-c", help="Category"),
    unit: str = typer.Option("times", "--unit", help="Unit label"),
    deadline: Optional[str] = typer.Option(None, "--deadline", help="Deadline (YYYY-MM-DD)"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Create a custom goal."""
    user_id = resolve_user(user)
    manager = _goal_manager()

    try:
        deadline_date = date.fromisoformat(deadline) if deadline else None
    except ValueError:
        print_error(f"Invalid deadline: {deadline}")
        raise typer.Exit(1)

    try:
        goal = manager.create_goal(
            user_id,
            title=title,
            target=target,
            description=description,
            category=category,
            unit=unit,
            deadline=deadline_date,
        )
    except ValidationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Goal created: {goal.title}")
    print_info(f"Goal: {goal.id}")


@goal_app.command("list")
def goal_list(
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """List your goals with progress."""
    user_id = resolve_user(user)
    manager = _goal_manager()

    goals = manager.list_goals_with_progress(user_id)
    if not goals:
        console.print("[dim]No goals yet. Create one with 'goal create'.[/dim]")
        return

    table = Table(title="My Goals", show_header=True, header_style="bold magenta")
    table.add_column("Goal", style="cyan")
    table.add_column("Progress")
    table.add_column("%", justify="right")
    table.add_column("Deadline")
    table.add_column("Status")

    for goal, progress in goals:
        status = (
            "[bold green]DONE[/bold green]" if goal.is_complete else "[yellow]active[/yellow]"
        )
        table.add_row(
            goal.title,
            f"{progress_bar(progress.percentage)} {progress.display}",
            f"{progress.percentage:.0f}%",
            goal.deadline or "-",
            status,
        )

    console.print(table)


@goal_app.command("show")
def goal_show(
    goal_id: str = typer.Argument(..., help="Goal id"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Show one goal in detail."""
    user_id = resolve_user(user)
    manager = _goal_manager()

    goal = manager.get_goal(goal_id, user_id=user_id)
    if goal is None:
        print_error(f"Goal not found: {goal_id}")
        raise typer.Exit(1)

    progress = manager.goal_progress(goal)

    console.print(f"\n[bold]{goal.title}[/bold]")
    if goal.description:
        console.print(f"[dim]{goal.description}[/dim]")
    console.print(f"Category: {goal.category}")
    console.print(f"Progress: {progress_bar(progress.percentage, 20)} {progress.display}")
    console.print(f"{progress.percentage:.0f}% complete")
    if goal.deadline:
        console.print(f"Deadline: {goal.deadline}")
    if goal.completed_at:
        console.print(f"[green]Completed {goal.completed_at[:10]}[/green]")
    else:
        console.print(f"{progress.remaining:g} {goal.unit} to go")


def _report_goal(goal, was_complete: bool) -> None:
    from .progress import ProgressEngine

    progress = ProgressEngine.goal_progress(goal)
    console.print(f"[bold]{goal.title}[/bold]: {progress.display} ({progress.percentage:.0f}%)")
    if goal.is_complete and not was_complete:
        console.print(Panel("[bold green]Goal completed![/bold green]", style="green"))


@goal_app.command("update")
def goal_update(
    goal_id: str = typer.Argument(..., help="Goal id"),
    value: str = typer.Argument(..., help="New progress value"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Set a goal's progress."""
    user_id = resolve_user(user)
    manager = _goal_manager()

    before = manager.get_goal(goal_id, user_id=user_id)
    if before is None:
        print_error(f"Goal not found: {goal_id}")
        raise typer.Exit(1)

    try:
        goal = manager.update_goal_progress(user_id, goal_id, value)
    except ValidationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    _report_goal(goal, before.is_complete)


@goal_app.command("add")
def goal_add(
    goal_id: str = typer.Argument(..., help="Goal id"),
    amount: str = typer.Argument("1", help="Amount to add"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Add to a goal's progress."""
    user_id = resolve_user(user)
    manager = _goal_manager()

    before = manager.get_goal(goal_id, user_id=user_id)
    if before is None:
        print_error(f"Goal not found: {goal_id}")
        raise typer.Exit(1)

    try:
        goal = manager.increment_goal_progress(user_id, goal_id, amount)
    except ValidationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    _report_goal(goal, before.is_complete)


# ============================================================================
# Achievements
# ============================================================================


@app.command()
def achievements(
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """List your unlocked achievements."""
    from .achievements import AchievementLedger

    user_id = resolve_user(user)
    unlocked = AchievementLedger(_db()).list_achievements(user_id)

    count = len(unlocked)
    console.print(f"You have {count} achievement{'s' if count != 1 else ''}!")
    for achievement_id in unlocked:
        console.print(f"  [yellow]*[/yellow] {achievement_id}")


# ============================================================================
# Activity Logging
# ============================================================================


@log_app.command("prayer")
def log_prayer(
    title: str = typer.Option("", "--title", "-t", help="Entry title"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Add a prayer journal entry for today."""
    from .activity import ActivityRecorder

    user_id = resolve_user(user)
    ActivityRecorder(_db()).log_prayer(user_id, title=title)
    print_success("Prayer entry recorded")


@log_app.command("volunteer")
def log_volunteer(
    hours: float = typer.Argument(..., help="Hours completed"),
    opportunity: str = typer.Option("", "--opportunity", "-o", help="Opportunity name"),
    pending: bool = typer.Option(False, "--pending", help="Record as awaiting approval"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Record volunteer service hours."""
    from .activity import ActivityRecorder

    user_id = resolve_user(user)
    try:
        ActivityRecorder(_db()).record_volunteer_hours(
            user_id,
            hours,
            opportunity=opportunity,
            status="pending" if pending else "approved",
        )
    except ValidationError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Recorded {hours:g} volunteer hours")


@log_app.command("reading")
def log_reading(
    plan: str = typer.Argument(..., help="Reading plan id"),
    day: int = typer.Argument(..., help="Plan day number"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Mark a Bible reading-plan day as read."""
    from .activity import ActivityRecorder

    user_id = resolve_user(user)
    ActivityRecorder(_db()).complete_reading_day(user_id, plan, day)
    print_success(f"Marked {plan} day {day} as read")


# ============================================================================
# Import / Export
# ============================================================================


@app.command("export")
def export_documents(
    output: Path = typer.Argument(..., help="Output JSON file"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help=USER_OPTION_HELP),
) -> None:
    """Export your challenges, goals and achievements as store documents."""
    from .export import DocumentExporter

    user_id = resolve_user(user)
    result = DocumentExporter(_db()).export_to_file(user_id, output)
    if not result.success:
        print_error(f"Export failed: {result.error}")
        raise typer.Exit(1)

    print_success(f"Exported to {result.file_path}")
    print_info(
        f"{result.challenges_exported} challenges, {result.goals_exported} goals, "
        f"{result.achievements_exported} achievements"
    )


@app.command("import")
def import_documents(
    path: Path = typer.Argument(..., help="JSON file produced by 'export'"),
) -> None:
    """Import store documents."""
    from .export import DocumentImporter

    if not path.exists():
        print_error(f"File not found: {path}")
        raise typer.Exit(1)

    try:
        result = DocumentImporter(_db()).import_file(path)
    except (GrowthError, ValueError) as e:
        print_error(f"Import failed: {e}")
        raise typer.Exit(1)

    print_success(
        f"Imported {result.challenges_imported} challenges, {result.goals_imported} goals, "
        f"{result.achievements_imported} achievements"
    )
    if result.skipped:
        print_warning(f"Skipped {len(result.skipped)} invalid documents")


def main() -> None:
    """Entry point for the shepherd command."""
    app()


if __name__ == "__main__":
    main()
