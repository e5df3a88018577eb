#!/usr/bin/env python3
"""Interactive terminal front end for the feedback service.

Two views share one in-memory store:
1. Patient view: rate a session and describe it
2. Therapist dashboard: KPIs, sentiment distribution, top themes and
   the recent feedback list with per-record detail
"""
import asyncio
import logging
import sys

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from physio_insight.ai_analyzer import AIAnalyzer
from physio_insight.config import config
from physio_insight.dashboard import build_dashboard
from physio_insight.feedback_service import FeedbackService, InvalidFeedbackError
from physio_insight.schemas import FeedbackRecord
from physio_insight.store import AppStore, RecordNotFoundError

console = Console()

SENTIMENT_STYLES = {"Positive": "green", "Neutral": "yellow", "Negative": "red"}


def stars(rating: int) -> str:
    return "★" * rating + "☆" * (5 - rating)


class InteractiveFeedbackApp:
    """Terminal controller owning the store and the submission service."""

    def __init__(self, store: AppStore = None, service: FeedbackService = None):
        self.store = store or AppStore()
        self.service = service or FeedbackService(self.store, AIAnalyzer())

    async def collect_feedback(self):
        """Patient view: ask for rating, text and name, then submit."""
        console.print(Panel(
            "[bold]How was your session?[/bold]\n"
            "[dim]Your feedback helps us improve your treatment.[/dim]",
            border_style="cyan",
            box=box.ROUNDED
        ))

        rating = IntPrompt.ask("Overall rating (1-5, 0 to cancel)", default=0)
        if rating == 0:
            console.print("[dim]Submission cancelled[/dim]")
            return None
        text = Prompt.ask("Tell us about your experience")
        name = Prompt.ask("Name (optional)", default="")

        console.print()
        console.print("[yellow]Analyzing feedback...[/yellow]")
        try:
            record = await self.service.submit(text, rating, name)
        except InvalidFeedbackError as e:
            console.print(f"[red]{e}[/red]")
            return None

        self.display_notification()
        return record

    def display_notification(self):
        notification = self.store.current_notification()
        if notification:
            style = "green" if notification.type == "success" else "red"
            console.print(f"[{style}]{notification.message}[/{style}]")

    def display_dashboard(self):
        """Therapist view: KPIs, charts as tables, recent feedback."""
        records = self.store.records()
        stats = build_dashboard(records)

        kpis = Table(title="Clinical Analytics Dashboard", box=box.ROUNDED, header_style="bold magenta")
        kpis.add_column("Total Feedback", justify="center")
        kpis.add_column("Avg Rating", justify="center")
        kpis.add_column("Net Sentiment", justify="center")
        kpis.add_column("Clinical Flags", justify="center")
        flag_style = "bold red" if stats.clinical_flags else "white"
        kpis.add_row(
            str(stats.total),
            f"{stats.average_rating} / 5.0",
            f"{'+' if stats.net_sentiment > 0 else ''}{stats.net_sentiment}%",
            f"[{flag_style}]{stats.clinical_flags}[/{flag_style}]"
        )
        console.print(kpis)

        distribution = Table(title="Sentiment Distribution", box=box.SIMPLE)
        distribution.add_column("Sentiment")
        distribution.add_column("Count", justify="right")
        for item in stats.sentiment_distribution:
            style = SENTIMENT_STYLES[item.name]
            distribution.add_row(f"[{style}]{item.name}[/{style}]", str(item.value))
        console.print(distribution)

        themes = Table(title="Top Themes", box=box.SIMPLE)
        themes.add_column("Theme", style="cyan")
        themes.add_column("Mentions", justify="right")
        for theme in stats.top_themes:
            themes.add_row(escape(theme.name), "█" * theme.value + f" {theme.value}")
        console.print(themes)

        recent = Table(title="Recent Feedback", box=box.ROUNDED)
        recent.add_column("ID", style="dim")
        recent.add_column("Patient")
        recent.add_column("Date")
        recent.add_column("Rating", style="yellow")
        recent.add_column("Status")
        recent.add_column("Feedback", overflow="ellipsis", max_width=50)
        for record in records:
            status = record.status
            if record.analysis and record.analysis.clinical_flags:
                status += " [bold red]⚑[/bold red]"
            recent.add_row(
                record.id,
                escape(record.patient_name),
                record.date.strftime("%Y-%m-%d"),
                stars(record.rating),
                status,
                escape(record.text)
            )
        console.print(recent)

    def display_detail(self, record: FeedbackRecord):
        """Full analysis of one record."""
        if not record.analysis:
            console.print(f"[yellow]Feedback {record.id} has no analysis ({record.status})[/yellow]")
            return

        analysis = record.analysis
        style = SENTIMENT_STYLES[analysis.sentiment_label]
        insights = "\n".join(
            f"  {index}. {escape(insight)}" for index, insight in enumerate(analysis.actionable_insights, start=1)
        )
        content = (
            f"[italic]\"{escape(record.text)}\"[/italic]\n\n"
            f"[bold]Sentiment:[/bold] {analysis.sentiment_score:g}/100 "
            f"[{style}]{analysis.sentiment_label}[/{style}]\n"
            f"[bold]Themes:[/bold] {escape(', '.join(analysis.key_themes))}\n\n"
            f"[bold]Summary:[/bold] {escape(analysis.summary)}\n\n"
            f"[bold yellow]Recommended actions:[/bold yellow]\n{insights}"
        )
        if analysis.clinical_flags:
            content += (
                "\n\n[bold red]Clinical flag:[/bold red] severe pain, regression or a "
                "complication was mentioned. Review with the patient."
            )

        console.print(Panel(
            content,
            title=f"Feedback from {escape(record.patient_name)} on {record.date:%Y-%m-%d}",
            border_style="bold red" if analysis.clinical_flags else "blue",
            box=box.DOUBLE,
            padding=(1, 2)
        ))

    def display_welcome(self):
        welcome = f"""
[bold cyan]PhysioInsight[/bold cyan]
[dim]Patient feedback analysis[/dim]

Commands:
  [green]p[/green]  patient view (submit feedback)
  [green]d[/green]  therapist dashboard
  [green]v[/green]  view one feedback in detail
  [green]q[/green]  quit

Model: {config.AI_MODEL}{'' if self.service.analyzer.available else ' [yellow](unavailable, fallback only)[/yellow]'}
        """
        console.print(Panel(welcome, border_style="bold blue", box=box.DOUBLE, padding=(1, 2)))

    async def run_interactive(self):
        """Run the interactive CLI loop."""
        self.display_welcome()

        while True:
            console.print()
            view = "dashboard" if self.store.view == "therapist" else "patient view"
            command = Prompt.ask(f"[bold]{view}[/bold] >", choices=["p", "d", "v", "q"], default="d")

            if command == "q":
                console.print("\n[cyan]Goodbye![/cyan]\n")
                break

            if command == "p":
                self.store.set_view("patient")
                if await self.collect_feedback():
                    self.display_dashboard()
            elif command == "d":
                self.store.set_view("therapist")
                self.display_dashboard()
            elif command == "v":
                record_id = Prompt.ask("Feedback ID")
                try:
                    self.display_detail(self.store.get(record_id))
                except RecordNotFoundError:
                    console.print(f"[red]No feedback with ID {record_id}[/red]")


async def main():
    """Main entry point."""
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    store = AppStore()
    if config.SEED_EXAMPLE_DATA:
        store.seed_example_records()

    app = InteractiveFeedbackApp(store)

    try:
        await app.run_interactive()
    except KeyboardInterrupt:
        console.print("\n\n[cyan]Goodbye![/cyan]\n")
        sys.exit(0)


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
