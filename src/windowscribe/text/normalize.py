from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def collapse_repeated_ngrams(
    text: str,
    *,
    max_gram_size: int = 20,
    min_gram_size: int = 3,
    min_words: int = 6,
) -> str:
    """Collapse runs of an identical phrase produced by greedy decoding loops.

    Larger grams are collapsed first so that long looped phrases disappear
    before short, legitimately repeated words ("very very tired") are looked at.
    After a deletion the same position is checked again, so overlapping
    repeats ("a b c a b c a b c") reduce to a single occurrence.
    """

    normalized = normalize_whitespace(text)
    if not normalized:
        return ""

    words = normalized.split(" ")
    if len(words) < min_words:
        return normalized

    # A short-gram deletion can expose a longer repeat, so run passes to a fixed point.
    changed = True
    while changed and len(words) >= min_words:
        changed = False
        for gram_size in range(min(max_gram_size, len(words) // 2), min_gram_size - 1, -1):
            index = gram_size * 2
            while index <= len(words):
                first = words[index - gram_size * 2 : index - gram_size]
                second = words[index - gram_size : index]
                if first == second:
                    del words[index - gram_size : index]
                    changed = True
                else:
                    index += 1

    return " ".join(words)


def normalize_for_compare(text: str, **collapse_options: int) -> str:
    """Comparison key for two transcriptions of the same audio."""

    return collapse_repeated_ngrams(text, **collapse_options).lower()
