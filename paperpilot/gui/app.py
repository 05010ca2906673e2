"""FastAPI app for PaperPilot."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from paperpilot import __version__
from paperpilot.gui.routers import chat, common, generation, papers
from paperpilot.gui.state import init_state


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup and reload the persisted result page."""
    workspace = init_state()
    await workspace.restore()
    yield


app = FastAPI(title="PaperPilot", version=__version__, lifespan=lifespan)
app.include_router(common.router)
app.include_router(papers.router)
app.include_router(generation.router)
app.include_router(chat.router)
