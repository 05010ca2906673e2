"""Paper routes: search, pagination and selection."""

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from paperpilot.gui.helpers import error_response
from paperpilot.gui.state import get_workspace

router = APIRouter(prefix="/api", tags=["papers"])


def _page_payload() -> dict:
    """Current page, hit count, selection and search error."""
    snap = get_workspace().snapshot()
    return {
        key: snap[key]
        for key in (
            "topic",
            "papers",
            "total_papers",
            "current_page",
            "papers_per_page",
            "selected_ids",
            "search_error",
            "can_generate",
        )
    }


# ============================================================================
# Search & pagination
# ============================================================================


class SearchPayload(BaseModel):
    """Request body for a new search."""
    topic: str


@router.post("/search")
async def search(body: SearchPayload):
    """Search a new topic.  Clears the selection, drafts and paper cache."""
    if not body.topic.strip():
        return error_response("Please enter a research topic.")
    await get_workspace().search(body.topic)
    return JSONResponse(_page_payload())


@router.get("/papers")
async def list_papers(
    page: Optional[int] = Query(None, ge=1, description="Page to load; omit for the current page"),
):
    """Return the current page, loading *page* first when it differs."""
    ws = get_workspace()
    if page is not None and (page != ws.store.current_page or not ws.store.page):
        await ws.change_page(page)
    return JSONResponse(_page_payload())


# ============================================================================
# Selection
# ============================================================================


@router.post("/papers/{paper_id}/toggle")
async def toggle_paper(paper_id: str):
    """Flip the selection of one paper."""
    selected = get_workspace().toggle_paper(paper_id)
    return JSONResponse({"paper_id": paper_id, "selected": selected})


@router.post("/selection/page")
async def select_page():
    """Select every paper on the current page."""
    get_workspace().select_page()
    return JSONResponse(_page_payload())


@router.post("/selection/all")
async def select_all_across_pages():
    """Fetch up to the practical limit of results and select them all."""
    ws = get_workspace()
    count = await ws.select_all_across_pages()
    if ws.search_error:
        return error_response(ws.search_error)
    return JSONResponse({"selected": count, "limit": ws.settings.select_all_limit})


@router.delete("/selection")
async def deselect_all():
    get_workspace().deselect_all()
    return JSONResponse({"selected_ids": []})
