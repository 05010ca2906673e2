"""Section generation: precondition checks, prompt, dispatch, slot routing."""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

from paperpilot.config import MAX_CONTEXT_LENGTH_WORDS, ApiProvider
from paperpilot.models.paper import Paper
from paperpilot.models.section import GeneratedSection, SectionStatus, SectionType
from paperpilot.services.context_assembler import build_context
from paperpilot.services.llm_base import LLMProvider, ProviderAuthError, ProviderError
from paperpilot.services.prompts import SECTION_SYSTEM_INSTRUCTION, build_section_prompt
from paperpilot.services.provider_session import ProviderSession

logger = logging.getLogger(__name__)


class GenerationValidationError(ValueError):
    """A precondition for generation is not met; no remote call was made."""


@dataclass(frozen=True)
class GenerationConfig:
    """Provider, credentials and model used for one generation request."""

    provider: ApiProvider
    api_key: str
    model: str
    use_search_grounding: bool = False


class GenerationOrchestrator:
    """Owns the provider clients, their chat sessions and the section slots.

    Each slot follows ``idle → generating → done | failed`` and may be
    re-entered from any terminal state.  A slot that is still generating
    refuses a second request.
    """

    def __init__(
        self,
        providers: Mapping[ApiProvider, LLMProvider],
        word_budget: int = MAX_CONTEXT_LENGTH_WORDS,
    ):
        """Initialize orchestrator.

        Args:
            providers: One client per provider
            word_budget: Word budget passed to the context assembler
        """
        self.providers = dict(providers)
        self.sessions = {p: ProviderSession(client) for p, client in self.providers.items()}
        self.word_budget = word_budget
        self.sections: dict[SectionType, GeneratedSection] = {
            t: GeneratedSection(name=t) for t in SectionType
        }

    def _store(self, section: GeneratedSection) -> GeneratedSection:
        self.sections = {**self.sections, section.name: section}
        return section

    def restore_sections(self, sections: Iterable[GeneratedSection]) -> None:
        for section in sections:
            self._store(section)

    def clear_sections(self) -> None:
        self.sections = {t: GeneratedSection(name=t) for t in SectionType}

    def prepare(
        self,
        section_type: SectionType,
        topic: str,
        selection: Iterable[str],
        cache: Mapping[str, Paper],
        fallback_page: Iterable[Paper],
        provider_config: GenerationConfig,
    ) -> str:
        """Check preconditions in order and return the prompt context.

        Raises:
            GenerationValidationError: topic, context, API key or model missing,
                or the slot is already generating
        """
        name = provider_config.provider.display_name
        if not topic or not topic.strip():
            raise GenerationValidationError("Please search for a topic first.")
        context = build_context(selection, fallback_page, cache, self.word_budget)
        if not context:
            raise GenerationValidationError("No papers available to provide context.")
        if not provider_config.api_key:
            raise GenerationValidationError(f"API key for {name} is not set.")
        if not provider_config.model:
            raise GenerationValidationError(f"Model for {name} is not selected.")
        if self.sections[section_type].status is SectionStatus.GENERATING:
            raise GenerationValidationError(f"{section_type.label} is already being generated.")
        if provider_config.provider not in self.providers:
            raise GenerationValidationError(f"Provider {name} is not available.")
        return context

    async def generate(
        self,
        section_type: SectionType,
        topic: str,
        selection: Iterable[str],
        cache: Mapping[str, Paper],
        fallback_page: Iterable[Paper],
        provider_config: GenerationConfig,
    ) -> GeneratedSection:
        """Generate *section_type* from the selected papers.

        Returns the slot after the attempt (``done`` or ``failed``).  Provider
        failures are stored in the slot, not raised.

        Raises:
            GenerationValidationError: If a precondition fails (slot untouched)
        """
        context = self.prepare(
            section_type, topic, selection, cache, fallback_page, provider_config
        )
        prompt = build_section_prompt(section_type, topic.strip(), context)

        # Content, grounding and error are cleared at every attempt start.
        self._store(GeneratedSection(name=section_type, status=SectionStatus.GENERATING))

        provider = provider_config.provider
        logger.info("Generating %s with %s (%s)", section_type.value, provider.value, provider_config.model)
        try:
            result = await self.providers[provider].generate_once(
                provider_config.api_key,
                prompt,
                provider_config.model,
                SECTION_SYSTEM_INSTRUCTION,
                provider_config.use_search_grounding,
            )
        except ProviderError as e:
            if isinstance(e, ProviderAuthError):
                self.sessions[provider].reset()
            logger.error("Generation of %s failed: %s", section_type.value, e)
            return self._store(
                GeneratedSection(name=section_type, error=str(e), status=SectionStatus.FAILED)
            )
        except Exception as e:
            # Never leave the slot stuck in "generating".
            self._store(
                GeneratedSection(name=section_type, error=str(e), status=SectionStatus.FAILED)
            )
            raise

        return self._store(
            GeneratedSection(
                name=section_type,
                content=result.text,
                grounding=result.grounding,
                status=SectionStatus.DONE,
            )
        )
