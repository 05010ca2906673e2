"""Command-line interface handlers."""

import argparse
import asyncio
import logging
from typing import Optional

from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn

from paperpilot.config import API_KEY_NAMES, ApiProvider, Settings
from paperpilot.console import ConsoleUI
from paperpilot.database.repository import StateRepository
from paperpilot.gui.helpers import parse_section
from paperpilot.models.section import SectionStatus
from paperpilot.services.generation_service import GenerationValidationError
from paperpilot.services.workspace_service import WorkspaceService


class PaperPilotCLI:
    """CLI application for PaperPilot.

    Shares the GUI's persisted state, so a topic searched here shows up
    in the browser and vice versa.  The paper cache is per process:
    commands that need paper details reload the current page first.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        workspace: Optional[WorkspaceService] = None,
        ui: Optional[ConsoleUI] = None,
    ):
        """Initialize CLI with settings.

        Args:
            settings: Application settings (loads from .metadata if not provided)
            workspace: Pre-built workspace (tests)
            ui: Console UI (tests)
        """
        self.settings = settings or Settings.load()
        self.ui = ui or ConsoleUI()
        self.workspace = workspace or WorkspaceService(
            self.settings, StateRepository(self.settings.db_path)
        )

    def _spinner(self, description: str) -> Progress:
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            console=self.ui.console,
            transient=True,
        )
        progress.add_task(description, total=None)
        return progress

    def _show_page(self) -> None:
        ws = self.workspace
        if ws.search_error:
            self.ui.error(ws.search_error)
            return
        self.ui.display_papers(
            ws.store.page,
            ws.store.selection,
            ws.topic,
            ws.store.current_page,
            ws.store.total,
            self.settings.papers_per_page,
        )

    async def cmd_search(self, topic: str) -> None:
        """Search a new topic (clears selection and drafts)."""
        with self._spinner(f"Searching '{topic}'..."):
            await self.workspace.search(topic)
        self._show_page()

    async def cmd_page(self, page: int) -> None:
        """Show result page *page* of the current topic."""
        if not self.workspace.topic:
            self.ui.warning("No topic yet. Run `paperpilot search <topic>` first.")
            return
        with self._spinner(f"Loading page {page}..."):
            await self.workspace.change_page(page)
        self._show_page()

    async def cmd_list(self) -> None:
        """Show the current page with selection marks."""
        await self.cmd_page(self.workspace.store.current_page)

    def cmd_toggle(self, ids: list[str]) -> None:
        """Toggle selection of paper IDs."""
        for paper_id in ids:
            if self.workspace.toggle_paper(paper_id):
                self.ui.success(f"Selected: {paper_id}")
            else:
                self.ui.info(f"Unselected: {paper_id}")

    async def cmd_select_page(self) -> None:
        await self.workspace.restore()
        self.workspace.select_page()
        self.ui.success(f"Selected {len(self.workspace.store.selection)} papers")

    async def cmd_select_all(self) -> None:
        """Select every result across pages (up to the practical limit)."""
        with self._spinner("Fetching all papers..."):
            count = await self.workspace.select_all_across_pages()
        if self.workspace.search_error:
            self.ui.error(self.workspace.search_error)
        else:
            self.ui.success(f"Selected {count} papers")

    def cmd_deselect_all(self) -> None:
        self.workspace.deselect_all()
        self.ui.success("Selection cleared")

    async def cmd_generate(self, section: str, provider: Optional[str] = None) -> None:
        """Generate a section from the selected papers (or the current page)."""
        section_type = parse_section(section)
        if section_type is None:
            self.ui.error(f"Unknown section '{section}'")
            return
        ws = self.workspace
        if provider:
            ws.set_generation_provider(ApiProvider(provider))
        if ws.store.selection:
            # Selected papers may span pages; fetch them again to fill the cache.
            with self._spinner("Loading selected papers..."):
                await ws.refresh_cache()
        else:
            await ws.restore()

        try:
            with self._spinner(f"Generating {section_type.label}..."):
                result = await ws.generate_section(section_type)
        except GenerationValidationError as e:
            self.ui.error(str(e))
            return
        self.ui.display_section(result)
        if result.status is SectionStatus.DONE:
            self.ui.success(f"{section_type.label} saved")

    def cmd_show(self, section: Optional[str] = None) -> None:
        """Print stored sections (all, or just *section*)."""
        sections = self.workspace.generator.sections
        if section:
            section_type = parse_section(section)
            if section_type is None:
                self.ui.error(f"Unknown section '{section}'")
                return
            self.ui.display_section(sections[section_type])
            return
        for s in sections.values():
            self.ui.display_section(s)

    async def cmd_chat(self, message: str, provider: Optional[str] = None) -> None:
        """Send one chat message and print the reply."""
        p = ApiProvider(provider) if provider else None
        with self._spinner("Waiting for reply..."):
            reply = await self.workspace.send_chat(message, p)
        self.ui.display_chat([reply])

    def cmd_chat_log(self) -> None:
        self.ui.display_chat(self.workspace.chat.messages)

    def cmd_chat_clear(self) -> None:
        self.workspace.clear_chat()
        self.ui.success("Chat cleared")

    def cmd_set_key(self, name: str, value: str) -> None:
        self.workspace.set_api_key(name, value)
        self.ui.success(f"Saved {name} API key")

    def cmd_set_model(self, provider: str, model: str) -> None:
        self.workspace.set_model(ApiProvider(provider), model)
        self.ui.success(f"{ApiProvider(provider).display_name} model: {model}")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="paperpilot",
        description="Semantic Scholar → selected papers → LLM-drafted sections",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    providers = [p.value for p in ApiProvider]

    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Search papers for a new topic")
    search_parser.add_argument("topic", nargs="+", help="Research topic")

    page_parser = subparsers.add_parser("page", help="Show a result page")
    page_parser.add_argument("number", type=int, help="Page number (1-based)")

    subparsers.add_parser("list", help="Show the current result page")

    toggle_parser = subparsers.add_parser("toggle", help="Toggle selection of paper IDs")
    toggle_parser.add_argument("ids", nargs="+", help="Semantic Scholar paper IDs")

    subparsers.add_parser("select-page", help="Select every paper on the current page")
    subparsers.add_parser("select-all", help="Select all results across pages")
    subparsers.add_parser("deselect-all", help="Clear the selection")

    gen_parser = subparsers.add_parser("generate", help="Generate a paper section")
    gen_parser.add_argument("section", choices=["introduction", "related-works"])
    gen_parser.add_argument("--provider", choices=providers, help="Generation provider")

    show_parser = subparsers.add_parser("show", help="Print generated sections")
    show_parser.add_argument("section", nargs="?", choices=["introduction", "related-works"])

    chat_parser = subparsers.add_parser("chat", help="Send a chat message")
    chat_parser.add_argument("message", nargs="*", help="Message (omit to print the transcript)")
    chat_parser.add_argument("--provider", choices=providers, help="Chat provider")
    chat_parser.add_argument("--clear", action="store_true", help="Clear the conversation")

    key_parser = subparsers.add_parser("set-key", help="Store an API key")
    key_parser.add_argument("name", choices=list(API_KEY_NAMES))
    key_parser.add_argument("value")

    model_parser = subparsers.add_parser("set-model", help="Select the model for a provider")
    model_parser.add_argument("provider", choices=providers)
    model_parser.add_argument("model")

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


async def _dispatch(cli: PaperPilotCLI, args: argparse.Namespace) -> None:
    if args.command == "search":
        await cli.cmd_search(" ".join(args.topic))
    elif args.command == "page":
        await cli.cmd_page(args.number)
    elif args.command == "list":
        await cli.cmd_list()
    elif args.command == "toggle":
        cli.cmd_toggle(args.ids)
    elif args.command == "select-page":
        await cli.cmd_select_page()
    elif args.command == "select-all":
        await cli.cmd_select_all()
    elif args.command == "deselect-all":
        cli.cmd_deselect_all()
    elif args.command == "generate":
        await cli.cmd_generate(args.section, args.provider)
    elif args.command == "show":
        cli.cmd_show(args.section)
    elif args.command == "chat":
        if args.clear:
            cli.cmd_chat_clear()
        elif args.message:
            await cli.cmd_chat(" ".join(args.message), args.provider)
        else:
            cli.cmd_chat_log()
    elif args.command == "set-key":
        cli.cmd_set_key(args.name, args.value)
    elif args.command == "set-model":
        cli.cmd_set_model(args.provider, args.model)


def run_cli(argv: Optional[list[str]] = None) -> None:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    cli = PaperPilotCLI()
    asyncio.run(_dispatch(cli, args))
