"""Prompt templates for section generation and chat."""

from paperpilot.models.section import SectionType

SECTION_SYSTEM_INSTRUCTION = (
    "You are an expert academic writing assistant specializing in drafting research "
    "paper sections with proper citations and references according to the user's "
    "detailed instructions. Adhere strictly to the citation and reference formatting provided."
)

CHAT_SYSTEM_INSTRUCTION = (
    "You are a helpful AI assistant specialized in research-related queries. "
    "Be concise and informative."
)

SECTION_PROMPT_TEMPLATE = """
You are an academic writing assistant. Based on the following research papers (each prefixed with a number like [1], [2], etc.) related to the research topic "{topic}", write {action} for a new research paper.
Instructions:
1. The tone should be academic, formal, and objective.
2. Synthesize information from the provided papers to create a coherent narrative. Do not simply summarize each paper individually.
3. When you use information or ideas from a specific paper in the context, you MUST cite it using its corresponding number in square brackets (e.g., [1], [2]).
4. Ensure that citations are placed appropriately within the text.
5. At the end of the generated section, you MUST include a 'References' section.
6. In the 'References' section, list all papers that you cited. Use the corresponding number for each reference.
7. For each reference, include the authors, year, title, and venue. If a URL is available, you can include it. Format example:
   [1] Author, A. A., & Author, B. B. (Year). Title of paper. *Venue*. URL (if available)
   [2] Author, C. C., et al. (Year). Another title. *Conference or Journal Name*.
Context Papers:
{context}
Begin the {action} now:"""


def build_section_prompt(section_type: SectionType, topic: str, context: str) -> str:
    """Deterministic generation prompt for *section_type*."""
    return SECTION_PROMPT_TEMPLATE.format(
        topic=topic,
        action=section_type.prompt_action,
        context=context,
    )
