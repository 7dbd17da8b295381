"""Document analysis: counts, complexity, sections and deck sizing.

All functions are pure. The numeric constants come from
``AnalyzerSettings`` so the heuristics can be tuned without touching the
pipeline.
"""

from __future__ import annotations

import math
import re

from app.core.config import AnalyzerSettings, settings
from app.modules.flashcards.models.analysis import DocumentAnalysis, SectionHint
from app.modules.flashcards.models.cards import DifficultyLevel

_WORD_RE = re.compile(r"[\w']+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_SECTION_SPLIT_RE = re.compile(r"\n\s*\n")
_WHITESPACE_RE = re.compile(r"\s+")


def _cfg(config: AnalyzerSettings | None) -> AnalyzerSettings:
    return config if config is not None else settings.analyzer


def extract_words(text: str) -> list[str]:
    return _WORD_RE.findall(text or "")


def count_sentences(text: str) -> int:
    return sum(1 for frag in _SENTENCE_SPLIT_RE.split(text or "") if frag.strip())


def complexity_score(
    avg_sentence_length: float,
    avg_word_length: float,
    config: AnalyzerSettings | None = None,
) -> float:
    """Rough reading-difficulty proxy; higher means harder."""
    cfg = _cfg(config)
    return (
        avg_sentence_length * cfg.sentence_weight
        + avg_word_length * cfg.word_length_weight
    )


def infer_difficulty(
    score: float, config: AnalyzerSettings | None = None
) -> DifficultyLevel:
    cfg = _cfg(config)
    if score < cfg.beginner_below:
        return DifficultyLevel.BEGINNER
    if score < cfg.intermediate_below:
        return DifficultyLevel.INTERMEDIATE
    return DifficultyLevel.ADVANCED


def split_sections(text: str) -> list[str]:
    """Split on blank lines; each non-empty segment is one section."""
    return [seg.strip() for seg in _SECTION_SPLIT_RE.split(text or "") if seg.strip()]


def build_section_hints(
    sections: list[str], config: AnalyzerSettings | None = None
) -> list[SectionHint]:
    limit = _cfg(config).hint_words
    hints: list[SectionHint] = []
    for idx, section in enumerate(sections, start=1):
        words = _WHITESPACE_RE.sub(" ", section).strip().split(" ")
        preview = " ".join(words[:limit])
        if len(words) > limit:
            preview += " ..."
        hints.append(SectionHint(index=idx, label=f"Section {idx}", preview=preview))
    return hints


def compute_card_target(
    word_count: int, section_count: int, config: AnalyzerSettings | None = None
) -> int:
    """Scale with length, cover every section up to a cap, stay within bounds."""
    cfg = _cfg(config)
    base_count = math.ceil(word_count / cfg.words_per_card)
    section_boost = min(section_count, cfg.section_cap)
    target = max(base_count, section_boost, cfg.min_cards)
    return max(cfg.min_cards, min(target, cfg.max_cards))


def analyze(text: str, config: AnalyzerSettings | None = None) -> DocumentAnalysis:
    cfg = _cfg(config)
    words = extract_words(text)
    word_count = len(words)
    sentence_count = count_sentences(text)

    # Floor both at 1 so empty input does not divide by zero
    safe_words = max(word_count, 1)
    safe_sentences = max(sentence_count, 1)
    avg_word_length = sum(len(w) for w in words) / safe_words
    avg_sentence_length = safe_words / safe_sentences
    score = complexity_score(avg_sentence_length, avg_word_length, cfg)

    sections = split_sections(text)
    return DocumentAnalysis(
        word_count=word_count,
        sentence_count=safe_sentences,
        avg_word_length=round(avg_word_length, 3),
        avg_sentence_length=round(avg_sentence_length, 3),
        complexity_score=round(score, 3),
        sections=build_section_hints(sections, cfg),
        inferred_difficulty=infer_difficulty(score, cfg),
        card_target=compute_card_target(word_count, len(sections), cfg),
    )
