"""Interactive CLI application."""
import logging
from concurrent.futures import ThreadPoolExecutor

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table

from srs_engine.config import load_settings
from srs_engine.dashboard import (
    calc_retention, get_mastery_color, get_mastery_label, get_review_counts, learned_percentage,
)
from srs_engine.db import init_db
from srs_engine.review import ReviewQueue
from srs_engine.seed import is_seeded, seed_all
from srs_engine.session import Decision, StudySession
from srs_engine.store import SQLiteProgressStore

console = Console()

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """The learner asked to leave the current session."""


def session_prompt(text: str, **kwargs) -> str:
    answer = Prompt.ask(text, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def show_welcome():
    console.print(Panel(
        "[bold]Spaced Repetition Trainer[/bold]\n[dim]SM-2 scheduled flashcards[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("review", "Cards due today"),
        ("study", "Study a whole set"),
        ("stats", "Review statistics"),
        ("sets", "List flashcard sets"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<10}[/cyan] {desc}")


def show_card(session: StudySession) -> None:
    card = session.current()
    title = f"Card {session.current_index + 1}/{len(session.active_cards)}"
    if session.retry_mode:
        title += " (retry)"
    console.print(Panel(card.front, title=title, border_style="cyan"))
    session_prompt("[dim]Press Enter to reveal answer[/dim]")
    console.print(Panel(card.back, border_style="green"))


def end_of_deck(session: StudySession) -> None:
    """Offer the end-of-deck actions; q leaves the session."""
    counts = session.progress()
    console.print(
        f"\n[bold]Deck finished.[/bold] Known: [green]{counts['known']}[/green]  "
        f"Unknown: [red]{counts['unknown']}[/red]"
    )
    choices = ["a"]
    hints = ["a=start over"]
    if session.unknown:
        choices.append("r")
        hints.append("r=retry unknown")
    if session.retry_mode:
        choices.append("x")
        hints.append("x=leave retry")
    if session.history:
        choices.append("z")
        hints.append("z=undo")
    choices.append("q")
    hints.append("q=done")
    choice = session_prompt(", ".join(hints), choices=choices)
    if choice == "r":
        session.enter_retry()
    elif choice == "x":
        session.exit_retry()
    elif choice == "z":
        session.undo()
    elif choice == "a":
        session.reset_all()


def run_study_session(session: StudySession) -> None:
    if not session.deck:
        console.print("[yellow]No flashcards to study right now![/yellow]")
        return
    console.print(f"\n[bold]Study Session[/bold] — {len(session.deck)} cards\n")
    while True:
        if session.is_exhausted():
            end_of_deck(session)
            continue
        show_card(session)
        choices = ["k", "u"] + (["z"] if session.history else [])
        action = session_prompt("k=known, u=unknown" + (", z=undo" if session.history else ""), choices=choices)
        if action == "z":
            entry = session.undo()
            console.print(f"[dim]Undid {entry.decision.value} on card {entry.card_id}[/dim]")
        elif action == "k":
            session.mark(Decision.KNOWN)
        else:
            session.mark(Decision.UNKNOWN)
        console.print()


def finish_session(session: StudySession) -> None:
    failures = session.wait_for_writes(timeout=10)
    if failures:
        console.print(f"[yellow]{len(failures)} rating(s) could not be saved: {failures[0]}[/yellow]")
    counts = session.progress()
    console.print(f"[dim]Known {counts['known']}, unknown {counts['unknown']}.[/dim]")


def study(session: StudySession) -> None:
    try:
        run_study_session(session)
    except SessionExitRequested:
        console.print("[dim]Leaving session.[/dim]")
    finally:
        finish_session(session)


def cmd_review(queue: ReviewQueue, learner_id: str):
    with ThreadPoolExecutor(max_workers=1) as executor:
        study(queue.start_session(learner_id, executor=executor))


def choose_set(store: SQLiteProgressStore) -> int | None:
    sets = store.list_sets()
    if not sets:
        console.print("[yellow]No flashcard sets yet.[/yellow]")
        return None
    for s in sets:
        console.print(f"  [cyan]{s.id}[/cyan]) {s.title}")
    return IntPrompt.ask("Select set", choices=[str(s.id) for s in sets])


def cmd_study(queue: ReviewQueue, learner_id: str):
    set_id = choose_set(queue.store)
    if set_id is None:
        return
    with ThreadPoolExecutor(max_workers=1) as executor:
        session = queue.start_session(
            learner_id, set_id, due_only=False, carry_over=True, executor=executor,
        )
        study(session)


def cmd_stats(queue: ReviewQueue, db_path: str, learner_id: str):
    stats = queue.stats(learner_id)
    pct = learned_percentage(stats)
    color = get_mastery_color(pct)
    counts = get_review_counts(db_path, learner_id, queue.clock())

    table = Table(title=f"Review Statistics — {learner_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total cards", str(stats.total_cards))
    table.add_row("Due today", str(stats.cards_due_today))
    table.add_row("Learned", f"{stats.cards_learned} ({pct}%)")
    table.add_row("Average EF", f"{stats.average_ef:.2f}")
    table.add_row("Retention", f"{calc_retention(db_path, learner_id)}%")
    table.add_row("Reviews today", str(counts["reviews_today"]))
    console.print(table)
    console.print(f"\n  Mastery: [{color}]{get_mastery_label(pct)}[/{color}]")


def cmd_sets(queue: ReviewQueue, learner_id: str):
    table = Table(title="Flashcard Sets")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Cards", justify="right")
    table.add_column("Due", justify="right")
    for s in queue.store.list_sets():
        cards = queue.cards_with_progress(learner_id, s.id)
        table.add_row(str(s.id), s.title, str(len(cards)), str(sum(1 for c in cards if c.is_due)))
    console.print(table)


def main():
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    db_path = settings.db_path
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    queue = ReviewQueue(SQLiteProgressStore(db_path), page_size=settings.due_limit)
    learner_id = settings.learner_id
    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="review").strip().lower()
        try:
            if choice == "review":
                cmd_review(queue, learner_id)
            elif choice == "study":
                cmd_study(queue, learner_id)
            elif choice == "stats":
                cmd_stats(queue, db_path, learner_id)
            elif choice == "sets":
                cmd_sets(queue, learner_id)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you at the next review![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
