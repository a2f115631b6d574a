from typing import Dict

from langchain_core.prompts import PromptTemplate

from ..catalog import OilCatalog
from ..conversation.phase import Phase, get_label
from ..conversation.state import Selections
from ..models import NOTE_CATEGORIES
from ..recipe.models import FragranceRecipe

SHORT_INPUT_CHARS = 20


FRAGRANCE_PROMPT = PromptTemplate.from_template(
"""
You are "Fragrance Lab", a perfumer who designs a personal fragrance together with the user.
Be warm and friendly, like a close friend, while staying professional.

AVAILABLE OILS (use ONLY these; anything else is out of stock):
{catalog}

CONVERSATION RULES:
1. Reply in two short paragraphs separated by a blank line:
   first a reaction to what the user said, then your proposal or question.
2. Offer exactly three candidates whenever the user has to choose a note.
3. Describe each oil with the definition given above.
4. Gently steer off-topic requests back to fragrance.

STRUCTURED OUTPUT (required when offering choices or a recipe):
Put a fenced json block at the end of your reply.

Choices:
```json
{{"content": "Which one do you like?", "choices": ["Lemon", "Bergamot", "Peppermint"]}}
```

Finished recipe:
```json
{{"content": "Here is your recipe!", "recipe": {{"top_notes": ["Lemon"], "middle_notes": ["Rose"], "base_notes": ["Sandalwood"], "name": "Morning Bloom", "description": "Bright and floral, perfect for a spring morning."}}, "choices": ["Yes", "No"]}}
```

CURRENT STEP: {phase_label}
{phase_instruction}

SELECTED SO FAR:
{selections}

{length_instruction}
"""
)


REGENERATE_PROMPT = PromptTemplate.from_template(
"""
You are a perfumer refining an existing fragrance blend.
Regenerate ONLY the {category} notes of the current recipe, keeping them in harmony
with the other notes and following the user's request.

AVAILABLE {category_upper} OILS (use ONLY these):
{catalog}

CURRENT RECIPE:
- Top notes: {top}
- Middle notes: {middle}
- Base notes: {base}

Reply with one short sentence, then a fenced json block in exactly this shape:
```json
{{"notes": {{"{category}": ["Note 1", "Note 2"]}}}}
```
"""
)


PHASE_INSTRUCTIONS: Dict[Phase, str] = {
    Phase.WELCOME: (
        "Ask what kind of scent the user imagines. If they describe a theme or mood, "
        "include it as \"theme\" in the json block; once you can propose top notes, "
        "offer three top-note choices."
    ),
    Phase.THEME_SELECTED: "The theme is set. Offer three top-note choices that fit it.",
    Phase.TOP: (
        "The user is choosing a top note. Thank them for their choice, "
        "then offer three middle-note choices."
    ),
    Phase.MIDDLE: (
        "The user is choosing a middle note. Thank them for their choice, "
        "then offer three base-note choices."
    ),
    Phase.BASE: (
        "The user is choosing a base note. Thank them, then present the finished recipe "
        "with a name and a one-line description, and ask for confirmation."
    ),
    Phase.FINALIZED: (
        "The recipe is ready. If the user confirms, congratulate them and tell them they "
        "can continue to the order button; include the final recipe in the json block."
    ),
    Phase.COMPLETE: (
        "The recipe is complete. Answer questions about it; do not start a new recipe "
        "unless explicitly asked."
    ),
}


def format_catalog(catalog: OilCatalog, category: str = None) -> str:
    categories = [category] if category else list(NOTE_CATEGORIES)
    lines = []
    for cat in categories:
        lines.append(f"{cat.capitalize()} notes:")
        for oil in catalog.get_oils_by_category(cat):
            lines.append(f"- {oil.english_name} ({oil.name}): {oil.description}")
    return "\n".join(lines)


def format_selections(selections: Selections) -> str:
    return "\n".join(
        f"- {category}: {selections.get(category) or 'not chosen yet'}"
        for category in NOTE_CATEGORIES
    )


def length_instruction(user_text: str) -> str:
    if len(user_text) < SHORT_INPUT_CHARS:
        return "The user's message is short, so keep your reply light and brief."
    return "The user wrote a longer message, so answer carefully and in a little more detail."


def build_system_prompt(
    phase: Phase,
    selections: Selections,
    catalog: OilCatalog,
    user_text: str,
) -> str:
    """Phase-specific instruction for a new conversational turn."""
    return FRAGRANCE_PROMPT.format(
        catalog=format_catalog(catalog),
        phase_label=get_label(phase),
        phase_instruction=PHASE_INSTRUCTIONS[phase],
        selections=format_selections(selections),
        length_instruction=length_instruction(user_text),
    ).strip()


def build_regenerate_prompt(category: str, recipe: FragranceRecipe, catalog: OilCatalog) -> str:
    """Instruction for regenerating a single note category."""
    return REGENERATE_PROMPT.format(
        category=category,
        category_upper=category.upper(),
        catalog=format_catalog(catalog, category),
        top=", ".join(recipe.top_notes) or "-",
        middle=", ".join(recipe.middle_notes) or "-",
        base=", ".join(recipe.base_notes) or "-",
    ).strip()
