"""Application state shared by the GUI routers."""

from typing import Optional

from paperpilot.config import Settings
from paperpilot.database.repository import StateRepository
from paperpilot.services.workspace_service import WorkspaceService


# ============================================================================
# Global State
# ============================================================================


class AppState:
    """Mutable singleton holding the runtime services."""

    settings: Settings
    repo: StateRepository
    workspace: Optional[WorkspaceService] = None


state = AppState()


def init_state(settings: Optional[Settings] = None) -> WorkspaceService:
    """Create settings, repository and workspace unless already initialised."""
    if state.workspace is not None:
        return state.workspace
    state.settings = settings or Settings.load()
    state.repo = StateRepository(state.settings.db_path)
    state.workspace = WorkspaceService(state.settings, state.repo)
    return state.workspace


def get_workspace() -> WorkspaceService:
    """Return the live workspace, initialising it on first use."""
    return init_state()
