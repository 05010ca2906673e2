import asyncio
import io

import pytest
from rich.console import Console

from paperpilot.cli import PaperPilotCLI, create_parser
from paperpilot.config import ApiProvider
from paperpilot.console import ConsoleUI
from paperpilot.services.workspace_service import WorkspaceService

from conftest import FakeSearchService


@pytest.fixture
def cli(settings, repo, papers, providers):
    workspace = WorkspaceService(settings, repo, search_service=FakeSearchService(papers), providers=providers)
    ui = ConsoleUI(Console(file=io.StringIO(), width=200, force_terminal=False))
    return PaperPilotCLI(settings=settings, workspace=workspace, ui=ui)


def _output(cli) -> str:
    return cli.ui.console.file.getvalue()


def test_parser_accepts_documented_commands():
    parser = create_parser()
    args = parser.parse_args(["generate", "related-works", "--provider", "openrouter"])
    assert (args.command, args.section, args.provider) == ("generate", "related-works", "openrouter")
    args = parser.parse_args(["search", "graph", "neural", "networks"])
    assert args.topic == ["graph", "neural", "networks"]
    with pytest.raises(SystemExit):
        parser.parse_args(["generate", "conclusion"])


def test_search_prints_page(cli):
    asyncio.run(cli.cmd_search("graph learning"))
    out = _output(cli)
    assert "Paper p1" in out
    assert "Paper p2" in out
    assert "page 1/3" in out


def test_generate_prints_section(cli, providers):
    providers[ApiProvider.GEMINI].replies = ["A drafted introduction [1]."]
    asyncio.run(cli.cmd_search("t"))
    cli.cmd_toggle(["p3"])

    asyncio.run(cli.cmd_generate("introduction"))

    assert "A drafted introduction" in _output(cli)
    prompt = providers[ApiProvider.GEMINI].generate_calls[0]["prompt"]
    assert "[1] Title: Paper p3" in prompt


def test_generate_validation_error_is_printed(cli, providers):
    asyncio.run(cli.cmd_generate("introduction"))
    assert "Please search for a topic first." in _output(cli)
    assert providers[ApiProvider.GEMINI].remote_calls == 0


def test_chat_prints_reply(cli, providers):
    providers[ApiProvider.GEMINI].replies = ["Sure."]
    asyncio.run(cli.cmd_chat("help me"))
    assert "Sure." in _output(cli)
