"""
Structural checks applied to parsed model output.

The pydantic models cover per-entity invariants (four unique quiz options,
cloze blank/answer alignment). The checks here span a whole response or
compare it with its input:

1. Sentence alignment - model segmentation vs. a local sentence splitter
2. Distractor sets - exactly three distinct wrong answers
3. Theme cleanup - stripping model over-formatting
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from deutsch_meister.models import DISTRACTOR_COUNT, TranslationPair

# Abbreviations whose trailing period does not end a sentence
GERMAN_ABBREVIATIONS = frozenset(
    {
        "z.b.", "d.h.", "u.a.", "usw.", "bzw.", "ca.", "vgl.", "evtl.", "ggf.",
        "etc.", "nr.", "dr.", "prof.", "hr.", "fr.", "str.", "z.t.", "o.ä.",
        "u.s.w.", "inkl.", "bzgl.", "mio.", "mrd.", "jh.",
    }
)

GERMAN_MONTHS = frozenset(
    {
        "januar", "februar", "märz", "april", "mai", "juni", "juli", "august",
        "september", "oktober", "november", "dezember",
    }
)

_SENTENCE_END = re.compile(r"[.!?…][\"»«“”'’)]*(?=\s)")
_ORDINAL = re.compile(r"^\d+\.$")


@dataclass
class AlignmentCheck:
    """Result of comparing model sentences with the local splitter."""

    is_aligned: bool
    expected_count: int
    actual_count: int
    issues: list[str] = field(default_factory=list)


def _is_sentence_boundary(candidate: str, following: str) -> bool:
    last_token = candidate.rsplit(" ", 1)[-1].lower()
    if last_token in GERMAN_ABBREVIATIONS:
        return False
    if _ORDINAL.match(last_token):
        next_word = following.split(" ", 1)[0].strip(".,;:!?").lower()
        if following[:1].islower() or next_word in GERMAN_MONTHS:
            return False
    return True


def split_sentences(text: str) -> list[str]:
    """
    Split German text into sentences.

    Breaks after ``.``, ``!``, ``?`` or ``…`` (optionally followed by closing
    quotes) and whitespace, except after common abbreviations and ordinal
    numbers such as ``3. Mai``.
    """
    text = " ".join(text.split())
    if not text:
        return []

    sentences: list[str] = []
    start = 0
    for match in _SENTENCE_END.finditer(text):
        candidate = text[start : match.end()].strip()
        following = text[match.end() :].lstrip()
        if not candidate or not _is_sentence_boundary(candidate, following):
            continue
        sentences.append(candidate)
        start = match.end()

    tail = text[start:].strip()
    if tail:
        sentences.append(tail)
    return sentences


def _normalize(sentence: str) -> str:
    return " ".join(sentence.split())


def check_sentence_alignment(text: str, pairs: list[TranslationPair]) -> AlignmentCheck:
    """
    Compare the model's sentence pairs against the local segmentation of ``text``.

    Each ``pair.german`` must equal the local sentence at the same position
    (whitespace-normalized), so reordered or re-segmented output is rejected
    even when the count matches.
    """
    expected = split_sentences(text)
    issues: list[str] = []

    if len(pairs) != len(expected):
        issues.append(f"expected {len(expected)} sentences, model returned {len(pairs)}")

    empty = [i for i, pair in enumerate(pairs) if not pair.german or not pair.turkish]
    if empty:
        issues.append(f"empty sentence or translation at positions {empty}")

    mismatched = [
        i
        for i, (pair, sentence) in enumerate(zip(pairs, expected))
        if _normalize(pair.german) != _normalize(sentence)
    ]
    if mismatched:
        issues.append(f"sentence differs from the source text at positions {mismatched}")

    return AlignmentCheck(
        is_aligned=not issues,
        expected_count=len(expected),
        actual_count=len(pairs),
        issues=issues,
    )


def check_distractors(word: str, distractors: list[str]) -> list[str]:
    """Return a list of problems with a distractor set (empty when valid)."""
    issues = []
    cleaned = [d.strip() for d in distractors]

    if len(cleaned) != DISTRACTOR_COUNT:
        issues.append(f"expected {DISTRACTOR_COUNT} distractors, got {len(cleaned)}")
    if any(not d for d in cleaned):
        issues.append("empty distractor")

    lowered = [d.lower() for d in cleaned]
    if len(set(lowered)) != len(lowered):
        issues.append("duplicate distractors")
    if word.strip().lower() in lowered:
        issues.append("distractor equals the correct answer")

    return issues


def clean_theme(raw: str) -> str:
    """Trim whitespace and strip one leading and one trailing quote character."""
    theme = raw.strip()
    if theme.startswith('"'):
        theme = theme[1:]
    if theme.endswith('"'):
        theme = theme[:-1]
    return theme
