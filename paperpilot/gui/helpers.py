"""Shared helpers for the API routers."""

from typing import Optional

from fastapi.responses import JSONResponse

from paperpilot.config import ApiProvider
from paperpilot.models.section import SectionType


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    """JSON error body used by every router: ``{"error": message}``."""
    return JSONResponse({"error": message}, status_code=status_code)


def parse_provider(value: Optional[str]) -> Optional[ApiProvider]:
    """Map a path/body value to a provider, or None when unknown."""
    if value is None:
        return None
    try:
        return ApiProvider(value)
    except ValueError:
        return None


def parse_section(value: str) -> Optional[SectionType]:
    """Accept ``introduction``, ``relatedWorks`` or ``related-works``."""
    normalized = {"related-works": "relatedWorks", "related_works": "relatedWorks"}.get(value, value)
    try:
        return SectionType(normalized)
    except ValueError:
        return None
