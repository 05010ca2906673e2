"""Console UI for terminal output using Rich."""

from typing import Iterable

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from paperpilot.models.chat import ChatMessage
from paperpilot.models.paper import Paper
from paperpilot.models.section import GeneratedSection, SectionStatus
from paperpilot.utils.text import join_authors


class ConsoleUI:
    """Rich-based console UI for papers, drafts and chat."""

    def __init__(self, console: Console | None = None):
        """Initialize console."""
        self.console = console or Console()

    def info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(message)

    def success(self, message: str) -> None:
        """Print a success message in green."""
        self.console.print(f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning message in yellow."""
        self.console.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Print an error message in red."""
        self.console.print(f"[red]Error:[/red] {message}")

    def display_papers(
        self,
        papers: list[Paper],
        selected: frozenset[str],
        topic: str,
        page: int,
        total: int,
        per_page: int,
    ) -> None:
        """Display one result page with selection marks.

        Args:
            papers: Papers on the page
            selected: Selected paper ids
            topic: Research topic (for the title)
            page: Current page number
            total: Total hits reported by the index
            per_page: Page size
        """
        pages = max(1, -(-total // per_page)) if per_page else 1
        table = Table(title=f'"{topic}" - page {page}/{pages} ({total} results)')
        table.add_column("", width=1)
        table.add_column("Paper ID", overflow="fold")
        table.add_column("Year", justify="right", width=4)
        table.add_column("Cites", justify="right")
        table.add_column("Title", overflow="fold")
        table.add_column("Authors", overflow="fold")

        for paper in papers:
            table.add_row(
                "✓" if paper.paper_id in selected else "",
                paper.paper_id,
                str(paper.year) if paper.year else "-",
                str(paper.citation_count) if paper.citation_count is not None else "-",
                paper.title,
                join_authors(paper.authors[:3], fallback="-"),
            )

        self.console.print(table)
        if not papers:
            self.console.print("No papers found.")
        else:
            self.console.print(f"Selected: [bold]{len(selected)}[/bold]")

    def display_section(self, section: GeneratedSection) -> None:
        """Render a generated section (Markdown) or its error."""
        title = section.name.label
        if section.status is SectionStatus.FAILED:
            self.error(f"{title}: {section.error}")
            return
        if not section.content:
            self.info(f"{title}: nothing generated yet.")
            return
        self.console.print(Panel(Markdown(section.content), title=title))
        for source in section.grounding or []:
            self.console.print(f"  • {source['title']} - {source['uri']}")

    def display_chat(self, messages: Iterable[ChatMessage]) -> None:
        """Print a chat transcript."""
        for message in messages:
            if message.sender == "user":
                self.console.print(f"[bold cyan]You:[/bold cyan] {message.text}")
            elif message.text.startswith("Error:"):
                self.console.print(f"[red]{message.text}[/red]")
            else:
                self.console.print("[bold magenta]AI:[/bold magenta]")
                self.console.print(Markdown(message.text))
