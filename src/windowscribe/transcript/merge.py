from __future__ import annotations

from typing import Iterable

from windowscribe.asr.base import TranscriptSegment
from windowscribe.text.normalize import collapse_repeated_ngrams, normalize_for_compare


def _same_content(left: str, right: str) -> bool:
    return left == right or left in right or right in left


def _absorb(
    current: TranscriptSegment,
    current_key: str,
    other: TranscriptSegment,
    other_key: str,
) -> str:
    """Fold ``other`` into ``current`` in place and return the surviving key."""

    current.start = min(current.start, other.start)
    current.end = max(current.end, other.end)
    if len(other_key) > len(current_key):
        current.text = other.text
        return other_key
    return current_key


def merge_segments(
    segments: Iterable[TranscriptSegment],
    *,
    epsilon_s: float = 0.35,
    max_gram_size: int = 20,
    min_gram_size: int = 3,
    min_words: int = 6,
) -> list[TranscriptSegment]:
    """Merge segments that overlapping windows transcribed twice.

    A candidate folds into the previous merged segment when it starts no later
    than ``epsilon_s`` after that segment ends and one normalized text equals or
    contains the other. The longer text wins and ``end`` is extended. A segment
    whose text grew is folded backwards into its predecessor while the two still
    match, so no adjacent pair in the output matches. Input segments are left
    untouched.
    """

    collapse_options = {
        "max_gram_size": max_gram_size,
        "min_gram_size": min_gram_size,
        "min_words": min_words,
    }
    ordered = sorted(segments, key=lambda item: (item.start, item.end))

    merged: list[TranscriptSegment] = []
    keys: list[str] = []

    def matches(earlier: int, later: int) -> bool:
        return merged[later].start <= merged[earlier].end + epsilon_s and _same_content(
            keys[earlier], keys[later]
        )

    for segment in ordered:
        text = collapse_repeated_ngrams(segment.text, **collapse_options)
        if not text:
            continue
        merged.append(
            TranscriptSegment(
                text=text,
                start=segment.start,
                end=max(segment.end, segment.start),
            )
        )
        keys.append(normalize_for_compare(text, **collapse_options))

        while len(merged) >= 2 and matches(-2, -1):
            later = merged.pop()
            later_key = keys.pop()
            keys[-1] = _absorb(merged[-1], keys[-1], later, later_key)

    return merged


def build_canonical_text(
    segments: Iterable[TranscriptSegment],
    fallback_text: str = "",
    **collapse_options: int,
) -> str:
    """Join merged segment texts into one transcript, or fall back to raw window text."""

    joined = " ".join(segment.text for segment in segments)
    canonical = collapse_repeated_ngrams(joined, **collapse_options)
    if canonical:
        return canonical
    return collapse_repeated_ngrams(fallback_text, **collapse_options)
