"""CLI commands for satprep.

Commands:
- init-db: Create the database schema
- add-user / set-tier / add-test: Seed the user store and test catalog
- start: Start or resume an attempt
- submit: Submit answers from a JSON file
- status: Attempt counters and remaining quota for a test
- wallet: Coins and streak for a user
- serve: Run the Web API
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from satprep.core.errors import AttemptError, QuotaExceeded
from satprep.core.lifecycle import get_lifecycle
from satprep.core.models import QuestionOutcome
from satprep.core.rewards import bonus_used_today
from satprep.db import tests_repository, users_repository
from satprep.db.database import init_db as do_init_db

app = typer.Typer(
    name="satprep",
    help="SAT practice attempts: quotas, scoring and rewards.",
    no_args_is_help=True,
)

console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(code=1)


def _print_attempt_error(error: AttemptError) -> None:
    console.print(f"[red]✗ {error}[/red]")
    if isinstance(error, QuotaExceeded):
        console.print(
            f"  [dim]tier:[/dim] {error.tier}  "
            f"[dim]used:[/dim] {error.current_attempts}/{error.max_attempts}"
        )
        if error.upgrade_eligible:
            console.print("  [yellow]Upgrade your account to get more attempts.[/yellow]")
    raise typer.Exit(code=1)


def _load_outcomes(answers_path: Path) -> tuple[list[QuestionOutcome], dict]:
    """Read question results from an answers JSON file."""
    if not answers_path.exists():
        _fail(f"Answers file not found: {answers_path}")

    try:
        data = json.loads(answers_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        _fail(f"Error reading answers file: {e}")

    raw = data.get("question_results", []) if isinstance(data, dict) else data
    try:
        outcomes = [QuestionOutcome.from_dict(q) for q in raw]
    except (KeyError, TypeError, ValueError) as e:
        _fail(f"Invalid question result: {e}")

    return outcomes, data if isinstance(data, dict) else {}


@app.command(name="init-db")
def init_db(
    db_path: Path | None = typer.Option(None, "--db", help="Database file path"),
) -> None:
    """Create the database schema."""
    do_init_db(db_path)
    console.print("[green]✓ Database ready[/green]")


@app.command(name="add-user")
def add_user(
    user_id: str = typer.Argument(..., help="User ID"),
    tier: str = typer.Option("free", "--tier", "-t", help="Account type"),
) -> None:
    """Register a user in the local user store."""
    do_init_db()
    try:
        users_repository.insert_user(user_id, tier)
    except sqlite3.IntegrityError:
        _fail(f"User '{user_id}' already exists")
    console.print(f"[green]✓ User {user_id} ({tier.lower()})[/green]")


@app.command(name="set-tier")
def set_tier(
    user_id: str = typer.Argument(..., help="User ID"),
    tier: str = typer.Argument(..., help="New account type"),
) -> None:
    """Change a user's account tier."""
    do_init_db()
    if not users_repository.update_account_type(user_id, tier):
        _fail(f"User '{user_id}' not found")
    console.print(f"[green]✓ {user_id} is now {tier.lower()}[/green]")


@app.command(name="add-test")
def add_test(
    test_id: str = typer.Argument(..., help="Test ID"),
    title: str = typer.Option("", "--title", help="Test title"),
    max_score: int | None = typer.Option(
        None, "--max-score", help="Maximum score (default from config)"
    ),
    passing_score: int | None = typer.Option(
        None, "--passing-score", help="Passing score (default from config)"
    ),
) -> None:
    """Register a test reference."""
    do_init_db()
    try:
        test = tests_repository.insert_test(test_id, title, max_score, passing_score)
    except sqlite3.IntegrityError:
        _fail(f"Test '{test_id}' already exists")
    except ValueError as e:
        _fail(str(e))
    console.print(f"[green]✓ Test {test_id} (max {test.max_score})[/green]")


@app.command()
def start(
    user_id: str = typer.Argument(..., help="User ID"),
    test_id: str = typer.Argument(..., help="Test ID"),
) -> None:
    """Start an attempt, or resume the one in progress."""
    do_init_db()
    try:
        result = get_lifecycle().start(user_id, test_id)
    except AttemptError as e:
        _print_attempt_error(e)

    attempt = result.attempt
    verb = "Resumed" if result.resumed else "Started"
    console.print(f"[green]✓ {verb} attempt #{attempt.attempt_number}[/green]")
    console.print(f"  [dim]attempt_id:[/dim] {attempt.attempt_id}")
    console.print(f"  [dim]started:[/dim]    {attempt.start_time.isoformat()}")


@app.command()
def submit(
    attempt_id: str = typer.Argument(..., help="Attempt ID"),
    user_id: str = typer.Option(..., "--user", "-u", help="Submitting user"),
    answers: Path = typer.Option(..., "--answers", "-a", help="Answers JSON file"),
    status: str | None = typer.Option(
        None, "--status", "-s", help="completed | abandoned | timeout"
    ),
) -> None:
    """Submit question results for an attempt."""
    do_init_db()
    outcomes, data = _load_outcomes(answers)

    final_status = status or data.get("status", "completed")
    end_time = None
    if data.get("end_time"):
        try:
            end_time = datetime.fromisoformat(data["end_time"])
        except ValueError:
            _fail(f"Invalid end_time: {data['end_time']}")

    try:
        result = get_lifecycle().submit(
            attempt_id, user_id, outcomes, end_time=end_time, status=final_status
        )
    except AttemptError as e:
        _print_attempt_error(e)
    except ValueError as e:
        _fail(str(e))

    attempt = result.attempt
    console.print(f"[green]✓ Attempt {attempt.status}[/green]")
    console.print(
        f"  [dim]score:[/dim] {attempt.score}/{attempt.max_score} ({attempt.percentage}%)"
    )
    console.print(
        f"  [dim]correct:[/dim] {attempt.correct_answers}  "
        f"[dim]incorrect:[/dim] {attempt.incorrect_answers}  "
        f"[dim]skipped:[/dim] {attempt.skipped_questions}"
    )
    if result.coins_earned or result.streak_bonus:
        console.print(
            f"  [yellow]+{result.coins_earned} coins[/yellow] {result.streak_bonus_message}"
        )


@app.command()
def status(
    user_id: str = typer.Argument(..., help="User ID"),
    test_id: str = typer.Argument(..., help="Test ID"),
) -> None:
    """Show attempt counters and remaining quota for a test."""
    do_init_db()
    try:
        result = get_lifecycle().get_status(user_id, test_id)
    except AttemptError as e:
        _print_attempt_error(e)

    table = Table(title=f"{user_id} / {test_id}")
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("completed", str(result.completed_attempts))
    table.add_row("in progress", str(result.incomplete_attempts))
    table.add_row(
        "max attempts", "unlimited" if result.max_attempts is None else str(result.max_attempts)
    )
    table.add_row(
        "remaining",
        "unlimited" if result.attempts_remaining is None else str(result.attempts_remaining),
    )
    table.add_row("can attempt", "yes" if result.can_attempt else "no")
    console.print(table)


@app.command()
def wallet(
    user_id: str = typer.Argument(..., help="User ID"),
) -> None:
    """Show coins and streak for a user."""
    do_init_db()
    user = users_repository.get_user(user_id)
    if user is None:
        _fail(f"User '{user_id}' not found")

    today = get_lifecycle().clock.today()
    console.print(f"[bold]{user.user_id}[/bold] ({user.account_type})")
    console.print(f"  [dim]coins:[/dim]    {user.coins}")
    console.print(f"  [dim]streak:[/dim]   {user.login_streak} day(s)")
    console.print(f"  [dim]tests:[/dim]    {user.total_tests_taken}")
    console.print(f"  [dim]accuracy:[/dim] {user.average_accuracy:.1f}%")
    if bonus_used_today(user, today):
        console.print("  [dim]streak bonus already used today[/dim]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    uvicorn.run("satprep.web.api:app", host=host, port=port)


if __name__ == "__main__":
    app()
