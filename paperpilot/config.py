"""Configuration management.

``Settings`` is a **metaclass-based singleton**: the first call to
``Settings.load()`` creates the instance; every later call returns
the same object.  Use ``update()`` to change values at runtime, or
``reload()`` to re-read everything from disk.

All user-editable configuration lives under ``.metadata/``:

* ``api_keys.yaml`` – Semantic Scholar / Gemini / OpenRouter API keys

On first run, missing files are copied from ``.metadata.example/``.
UI state (topic, selection, drafts, chat) is kept separately in the
SQLite state database, see :mod:`paperpilot.database.repository`.
"""

import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

# Results shown per search page
PAPERS_PER_PAGE = 10
# Word budget for the assembled paper context
MAX_CONTEXT_LENGTH_WORDS = 3000
# Upper bound for "select all across pages"
PRACTICAL_SELECT_ALL_LIMIT = 100


class ApiProvider(str, Enum):
    """LLM providers available for generation and chat."""

    GEMINI = "gemini"
    OPENROUTER = "openrouter"

    @property
    def display_name(self) -> str:
        return "Gemini" if self is ApiProvider.GEMINI else "OpenRouter"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass
class LLMModel:
    """A single model entry from the built-in registry."""

    id: str
    name: str
    provider_id: str
    provider_name: str
    context_window: int = 0


@dataclass
class ApiKeys:
    """API credentials for the search index and both LLM providers."""

    semantic_scholar: str = ""
    gemini: str = ""
    openrouter: str = ""

    def for_provider(self, provider: ApiProvider) -> str:
        return self.gemini if provider is ApiProvider.GEMINI else self.openrouter


API_KEY_NAMES = ("semantic_scholar", "gemini", "openrouter")


# ---------------------------------------------------------------------------
# Singleton metaclass
# ---------------------------------------------------------------------------

class _SettingsMeta(type):
    """Metaclass that enforces a process-wide singleton for *Settings*.

    * First ``Settings(...)`` creates and caches the instance.
    * Later ``Settings(...)`` calls return the cached instance (args ignored).
    """

    _instances: dict[type, Any] = {}

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        if cls not in cls._instances:
            cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]


# ---------------------------------------------------------------------------
# Settings dataclass (singleton)
# ---------------------------------------------------------------------------

@dataclass
class Settings(metaclass=_SettingsMeta):
    """Application settings: singleton with runtime-mutable fields.

    Usage::

        settings = Settings.load()          # first call → create
        settings = Settings.load()          # later → same object
        settings.update(db_path=Path(...))  # runtime change
        settings = Settings.reload()        # re-read from disk
    """

    db_path: Path = Path("paperpilot.db")
    metadata_dir: Path = Path(".metadata")
    api_keys: ApiKeys = field(default_factory=ApiKeys)

    papers_per_page: int = PAPERS_PER_PAGE
    max_context_words: int = MAX_CONTEXT_LENGTH_WORDS
    select_all_limit: int = PRACTICAL_SELECT_ALL_LIMIT
    # Attach Google Search grounding to Gemini section generation
    use_search_grounding: bool = False

    # ── Computed properties ────────────────────────────────────────────

    @property
    def api_keys_path(self) -> Path:
        return self.metadata_dir / "api_keys.yaml"

    # ── Runtime helpers ───────────────────────────────────────────────

    def update(self, **kwargs: Any) -> None:
        """Mutate settings fields at runtime.

        >>> Settings.load().update(db_path=Path("/tmp/test.db"))
        """
        for key, value in kwargs.items():
            if not hasattr(self, key):
                raise AttributeError(f"Settings has no field '{key}'")
            setattr(self, key, value)

    # ── Factory / lifecycle ───────────────────────────────────────────

    @classmethod
    def load(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Load or return the singleton Settings instance.

        On first call the singleton is created; subsequent calls return
        the cached instance.  Pass *base_dir* to override the project
        root (defaults to the repository root one level above ``paperpilot/``).
        """
        if cls in _SettingsMeta._instances:
            return _SettingsMeta._instances[cls]  # type: ignore[return-value]

        if base_dir is None:
            base_dir = Path(__file__).resolve().parent.parent

        metadata_dir = base_dir / ".metadata"
        cls._ensure_default_files(base_dir, metadata_dir)

        return cls(
            db_path=base_dir / "paperpilot.db",
            metadata_dir=metadata_dir,
            api_keys=_load_api_keys(metadata_dir / "api_keys.yaml"),
        )

    @classmethod
    def reload(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Discard the current singleton and re-load from disk."""
        cls.reset()
        return cls.load(base_dir)

    @classmethod
    def reset(cls) -> None:
        """Discard the singleton so the next ``load()`` re-creates it."""
        _SettingsMeta._instances.pop(cls, None)

    # ── Private ───────────────────────────────────────────────────────

    @staticmethod
    def _ensure_default_files(base_dir: Path, metadata_dir: Path) -> None:
        """Copy ``.metadata.example/`` templates when real files are missing."""
        metadata_dir.mkdir(parents=True, exist_ok=True)

        example_dir = base_dir / ".metadata.example"
        if not example_dir.exists():
            return

        for example_file in example_dir.iterdir():
            if example_file.is_file():
                target = metadata_dir / example_file.name
                if not target.exists():
                    shutil.copy2(example_file, target)
                    logger.info("Created .metadata/%s from template", example_file.name)


# ---------------------------------------------------------------------------
# YAML loaders
# ---------------------------------------------------------------------------

def _load_api_keys(path: Path) -> ApiKeys:
    """Load API keys from ``api_keys.yaml``.  Missing or broken file → empty keys."""
    if not path.exists():
        return ApiKeys()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning("Could not parse %s: %s", path, e)
        return ApiKeys()
    if not isinstance(data, dict):
        return ApiKeys()
    return ApiKeys(**{name: str(data.get(name) or "") for name in API_KEY_NAMES})


def save_api_keys(path: Path, keys: ApiKeys) -> None:
    """Persist API keys to ``api_keys.yaml``."""
    with open(path, "w", encoding="utf-8") as f:
        f.write("# API keys (kept locally, never committed)\n")
        f.write("# semantic_scholar: paper search / gemini, openrouter: LLM providers\n\n")
        yaml.dump(
            {name: getattr(keys, name) for name in API_KEY_NAMES},
            f,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )


def load_llm_models() -> list[LLMModel]:
    """Load the built-in LLM model registry from ``paperpilot/data/llm_models.yaml``.

    This is **application data** (ships with the package), not user config.
    Model pickers and the default model per provider come from this list.
    """
    registry_path = Path(__file__).resolve().parent / "data" / "llm_models.yaml"
    if not registry_path.exists():
        return []
    with open(registry_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        return []

    models: list[LLMModel] = []
    for provider in data.get("providers") or []:
        pid = provider.get("id", "")
        pname = provider.get("name", "")
        for m in provider.get("models") or []:
            models.append(
                LLMModel(
                    id=str(m["id"]),
                    name=str(m.get("name", m["id"])),
                    provider_id=pid,
                    provider_name=pname,
                    context_window=int(m.get("context_window", 0)),
                )
            )
    return models


def available_models(provider: ApiProvider) -> list[str]:
    """Model ids registered for *provider*, in registry order."""
    return [m.id for m in load_llm_models() if m.provider_id == provider.value]


def default_model(provider: ApiProvider) -> str:
    """First registered model for *provider*, or ``""`` if none."""
    models = available_models(provider)
    return models[0] if models else ""
