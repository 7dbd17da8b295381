"""Prompt composition for deck generation.

The system instruction carries the rules (count, ordering, tone, difficulty,
schema); the user message carries the source text and the section coverage
targets.
"""

from __future__ import annotations

from app.modules.flashcards.models.analysis import PromptSpec, SectionHint
from app.modules.flashcards.models.cards import DifficultyLevel, Vibe


VIBE_DIRECTIVES: dict[Vibe, str] = {
    Vibe.KID: (
        "Explain like a friendly teacher talking to a curious 10-year-old. "
        "Use short sentences, playful language and vivid everyday metaphors. "
        "Avoid jargon; when a technical word is unavoidable, define it simply."
    ),
    Vibe.STUDENT: (
        "Explain like a clear, encouraging tutor for a high-school or college "
        "student. Balance precise terminology with conceptual explanation and "
        "show how ideas connect."
    ),
    Vibe.PRO: (
        "Write for a busy professional. Be advanced, analytical and dense: "
        "focus on mechanisms, trade-offs, edge cases and how the idea is "
        "applied or implemented in practice."
    ),
}

DIFFICULTY_DIRECTIVE = (
    "Assign each card a difficulty from [beginner, intermediate, advanced]. "
    "Use {target} as the center of gravity for the deck, but let individual "
    "cards move up or down according to how complex their concept really is."
)

CONTENT_PRIORITIES = (
    "Choose what to teach in this priority order:\n"
    "1. Key terms and their definitions.\n"
    "2. Causal or relational statements (X causes Y, X differs from Y, "
    "X is part of Y).\n"
    "3. The overall takeaway of the text.\n"
    "Skip anecdotes, filler and repeated examples."
)

OUTPUT_SCHEMA = """\
Return ONLY a single JSON object of the form {"cards": [...]}. No markdown, no code fences, no commentary.
Concept card:
  {"id": string, "isQuiz": false, "hook": string (short attention-grabbing headline),
   "meat": string (core explanation, 2-4 sentences), "simplified": string (one-sentence plain restatement),
   "category": string (topic label), "difficulty": "beginner" | "intermediate" | "advanced"}
Quiz card:
  {"id": string, "isQuiz": true, "hook": "Quick Check", "meat": "Test your understanding.",
   "quizQuestion": string, "quizOptions": [string, ...] (exactly 4 options),
   "quizAnswer": integer (0-based index of the correct option), "category": "Quiz",
   "difficulty": "beginner" | "intermediate" | "advanced"}"""


def _count_directive(card_count: int) -> str:
    concept_count = max(card_count - 1, 0)
    return (
        f"Produce EXACTLY {card_count} cards. Cards 1 to {concept_count} are "
        f"concept cards. The LAST card (card {card_count}) is always the quiz "
        "card that verifies the most important idea of the deck; no other card "
        "is a quiz."
    )


def _coverage_block(section_hints: list[SectionHint], card_count: int) -> str:
    if not section_hints:
        return ""
    lines = "\n".join(f"- {hint.render()}" for hint in section_hints)
    return (
        "Coverage targets (one per section of the source):\n"
        f"{lines}\n"
        "Cover every section. If there are more sections than the "
        f"{max(card_count - 1, 1)} concept cards available, merge adjacent "
        "sections into one card instead of dropping any."
    )


def compose(
    source_text: str,
    vibe: Vibe,
    card_target: int,
    target_difficulty: DifficultyLevel,
    section_hints: list[SectionHint],
) -> PromptSpec:
    """Build the instruction set for one generation call."""
    system_prompt = "\n\n".join(
        [
            "You are a viral education creator who turns dense text into a "
            "swipeable deck of bite-sized study cards.",
            _count_directive(card_target),
            CONTENT_PRIORITIES,
            "Tone: " + VIBE_DIRECTIVES[vibe],
            DIFFICULTY_DIRECTIVE.format(target=target_difficulty.value),
            OUTPUT_SCHEMA,
        ]
    )

    parts = [f"Source text:\n{source_text}"]
    coverage = _coverage_block(section_hints, card_target)
    if coverage:
        parts.append(coverage)
    parts.append(f"Remember: exactly {card_target} cards, quiz card last.")

    return PromptSpec(
        system_prompt=system_prompt,
        user_message="\n\n".join(parts),
        card_count=card_target,
        target_difficulty=target_difficulty,
        vibe=vibe,
        section_hints=section_hints,
    )
