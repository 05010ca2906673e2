"""Common routes: workspace snapshot, LLM model registry, API keys, models, providers."""

from dataclasses import asdict

from fastapi import APIRouter
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from paperpilot import __version__
from paperpilot.config import API_KEY_NAMES, load_llm_models
from paperpilot.gui.helpers import error_response, parse_provider
from paperpilot.gui.state import get_workspace

router = APIRouter()


# ============================================================================
# Main Page
# ============================================================================


@router.get("/")
async def index():
    """The browser front end lives elsewhere; point visitors at the API docs."""
    return RedirectResponse(url="/docs")


@router.get("/api/state")
async def workspace_state():
    """Return the whole workspace (page, selection, drafts, chat) as JSON."""
    return JSONResponse({"version": __version__, **get_workspace().snapshot()})


# ============================================================================
# LLM Model Registry
# ============================================================================


@router.get("/api/llm-models")
async def get_llm_models():
    """Return the built-in LLM model registry as JSON.

    Used by the front end to populate the per-provider model pickers.
    """
    return JSONResponse([asdict(m) for m in load_llm_models()])


# ============================================================================
# API keys
# ============================================================================


class KeyPayload(BaseModel):
    """Request body for updating one API key."""
    value: str


@router.get("/api/keys")
async def list_keys():
    """Return which API keys are set (never the keys themselves)."""
    keys = get_workspace().settings.api_keys
    return JSONResponse({name: bool(getattr(keys, name)) for name in API_KEY_NAMES})


@router.put("/api/keys/{name}")
async def update_key(name: str, body: KeyPayload):
    """Update an API key and persist to ``api_keys.yaml``.

    Changing an LLM key discards that provider's chat session and history.
    """
    if name not in API_KEY_NAMES:
        return error_response(f"Unknown API key '{name}'", status_code=404)
    get_workspace().set_api_key(name, body.value.strip())
    return JSONResponse({"name": name, "set": bool(body.value.strip())})


# ============================================================================
# Models & providers
# ============================================================================


class ModelPayload(BaseModel):
    """Request body for selecting a model."""
    model: str


class ProviderPayload(BaseModel):
    """Request body for choosing a provider."""
    provider: str


@router.put("/api/models/{provider}")
async def select_model(provider: str, body: ModelPayload):
    """Select the model used for *provider* (generation and chat)."""
    p = parse_provider(provider)
    if p is None:
        return error_response(f"Unknown provider '{provider}'", status_code=404)
    ws = get_workspace()
    ws.set_model(p, body.model.strip())
    return JSONResponse({"provider": p.value, "model": ws.models[p]})


@router.put("/api/providers/generation")
async def set_generation_provider(body: ProviderPayload):
    p = parse_provider(body.provider)
    if p is None:
        return error_response(f"Unknown provider '{body.provider}'", status_code=404)
    get_workspace().set_generation_provider(p)
    return JSONResponse({"generation_provider": p.value})


@router.put("/api/providers/chat")
async def set_chat_provider(body: ProviderPayload):
    p = parse_provider(body.provider)
    if p is None:
        return error_response(f"Unknown provider '{body.provider}'", status_code=404)
    get_workspace().set_chat_provider(p)
    return JSONResponse({"chat_provider": p.value})
