"""Section generation routes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from paperpilot.gui.helpers import error_response, parse_section
from paperpilot.gui.state import get_workspace
from paperpilot.services.generation_service import GenerationValidationError

router = APIRouter(prefix="/api", tags=["generation"])


@router.get("/sections")
async def list_sections():
    """Return every section slot (content, grounding, error, status)."""
    sections = get_workspace().generator.sections
    return JSONResponse({t.value: s.to_dict() for t, s in sections.items()})


@router.post("/sections/{section}")
async def generate_section(section: str):
    """Generate one section with the current generation provider.

    Validation failures return 400 without calling the provider; provider
    failures return 200 with the error stored in the slot.
    """
    section_type = parse_section(section)
    if section_type is None:
        return error_response(f"Unknown section '{section}'", status_code=404)
    try:
        result = await get_workspace().generate_section(section_type)
    except GenerationValidationError as e:
        return error_response(str(e))
    return JSONResponse(result.to_dict())
