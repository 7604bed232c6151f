from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from src.app import AppSettings, build_scheduler
from src.db.repetition_store import RepetitionStoreError
from src.scheduler.priority import priority_score
from src.scheduler.service import RepetitionScheduler
from src.scheduler.srs import RepetitionRecord


app = typer.Typer(help="MCQ Review Scheduler - spaced-repetition bookkeeping for question banks")
console = Console()


def get_scheduler(settings: AppSettings) -> RepetitionScheduler:
    return build_scheduler(settings)


def _result_label(record: RepetitionRecord) -> str:
    if record.is_new:
        return "not started"
    return record.last_result.value


@app.command()
def answer(
    question_id: str = typer.Argument(..., help="Question identifier"),
    correct: bool = typer.Option(..., "--correct/--incorrect", help="Whether the answer was right"),
):
    """Record an answer and show when the question comes back"""
    scheduler = get_scheduler(AppSettings.from_env())
    record = scheduler.record_answer(question_id, correct)
    mark = "[green]✓[/green]" if correct else "[red]✗[/red]"
    console.print(f"{mark} {question_id}: next review in {record.interval} day(s)")
    console.print(f"  Due: {record.next_review_at:%Y-%m-%d %H:%M} UTC")
    console.print(f"  Ease factor: {record.ease_factor:.2f}, streak: {record.repetitions}")


@app.command()
def show(question_id: str = typer.Argument(..., help="Question identifier")):
    """Show the repetition record of a question"""
    scheduler = get_scheduler(AppSettings.from_env())
    now = scheduler.now()
    record = scheduler.store.get_one(question_id, now)

    table = Table(title=f"Question {question_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Last result", _result_label(record))
    table.add_row("Ease factor", f"{record.ease_factor:.2f}")
    table.add_row("Interval", f"{record.interval} day(s)")
    table.add_row("Repetitions", str(record.repetitions))
    table.add_row("Next review", f"{record.next_review_at:%Y-%m-%d %H:%M} UTC")
    table.add_row("Priority", f"{priority_score(record, now):.1f}")
    console.print(table)


@app.command()
def due(question_ids: List[str] = typer.Argument(..., help="Question identifiers to check")):
    """List the questions that are due for review"""
    scheduler = get_scheduler(AppSettings.from_env())
    due_ids = scheduler.filter_due([{"id": question_id} for question_id in question_ids])
    console.print(f"[bold]{len(due_ids)}[/bold] of {len(question_ids)} question(s) due")
    for item in due_ids:
        console.print(f"  • {item['id']}")


@app.command()
def stats(question_ids: List[str] = typer.Argument(..., help="Question identifiers to summarize")):
    """Summarize learning progress for a set of questions"""
    scheduler = get_scheduler(AppSettings.from_env())
    summary = scheduler.stats(question_ids)

    table = Table(title="Review progress")
    table.add_column("Stage", style="cyan")
    table.add_column("Questions", justify="right")
    table.add_row("Mastered", str(summary.mastered))
    table.add_row("Learning", str(summary.learning))
    table.add_row("Needs review", str(summary.needs_review))
    table.add_row("Not started", str(summary.not_started))
    table.add_row("Total", str(summary.total), style="bold")
    console.print(table)


@app.command()
def queue(
    question_ids: List[str] = typer.Argument(..., help="Question pool to draw from"),
    count: Optional[int] = typer.Option(None, "--count", "-n", min=1, help="Session size"),
):
    """Build a smart review session ordered by priority"""
    settings = AppSettings.from_env()
    scheduler = get_scheduler(settings)
    size = count if count is not None else settings.smart_review_size
    session = scheduler.rank([{"id": question_id} for question_id in question_ids])[:size]

    table = Table(title=f"Smart review ({len(session)} question(s))")
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Priority", justify="right")
    table.add_column("Status")
    for position, (item, record, priority) in enumerate(session, start=1):
        table.add_row(str(position), item["id"], f"{priority:.1f}", _result_label(record))
    console.print(table)


@app.command()
def reset(question_ids: List[str] = typer.Argument(..., help="Questions whose progress is cleared")):
    """Clear progress for specific questions (e.g. one chapter)"""
    scheduler = get_scheduler(AppSettings.from_env())
    try:
        scheduler.reset_questions(question_ids)
    except RepetitionStoreError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Progress reset for {len(question_ids)} question(s)")


@app.command()
def reset_all(yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")):
    """Clear all spaced-repetition progress (WARNING: irreversible!)"""
    if not yes:
        confirm = typer.confirm("⚠️  This will DELETE ALL review progress. Are you sure?")
        if not confirm:
            console.print("[yellow]Cancelled.[/yellow]")
            return

    scheduler = get_scheduler(AppSettings.from_env())
    try:
        scheduler.reset_all()
    except RepetitionStoreError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)
    console.print("[green]✓[/green] All review progress cleared")


@app.command()
def import_data(path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON document to load")):
    """Replace stored progress with a previously exported document"""
    scheduler = get_scheduler(AppSettings.from_env())
    try:
        imported = scheduler.store.import_document(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError:
        console.print(f"[red]✗[/red] {path} is not a UTF-8 text file")
        raise typer.Exit(code=1)
    except RepetitionStoreError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Imported {imported} record(s) from {path}")


@app.command()
def export_data(path: Path = typer.Argument(..., dir_okay=False, help="Destination JSON file")):
    """Write stored progress to a JSON document"""
    scheduler = get_scheduler(AppSettings.from_env())
    path.write_text(scheduler.store.export_document(), encoding="utf-8")
    console.print(f"[green]✓[/green] Exported repetition data to {path}")


if __name__ == "__main__":
    app()
