# src/application/text_matching.py
#
# Shared matching primitives: normalization, edit distance, threshold,
# document-level approximate matching and offset mapping.
# Everything here is pure and safe to call from any thread.

from typing import Optional

from rapidfuzz.distance import Levenshtein

from src.domain.models import MatchCandidate, NormalizedText


# One typo tolerated per five normalized characters.
TYPO_TOLERANCE = 0.2


# ─── Normalizer ──────────────────────────────────────────────────────────────

def _normalize_char(char: str) -> str:
    """Normalized output contributed by a single source character."""
    if char == "&":
        return "and"
    return "".join(c for c in char.lower() if c.isalnum())


def normalize(text: str) -> NormalizedText:
    """
    Lower-case, expand '&' to 'and', drop everything that is not a letter
    or digit. Applied per character so map_to_original() can replay it.
    """
    return NormalizedText(
        normalized="".join(_normalize_char(char) for char in text),
        source_length=len(text),
    )


def normalize_text(text: str) -> str:
    return normalize(text).normalized


# ─── Edit-Distance Engine ────────────────────────────────────────────────────

def edit_distance(a: str, b: str, score_cutoff: Optional[int] = None) -> int:
    """
    Levenshtein distance with unit costs for insert, delete and substitute.

    With score_cutoff set, any distance above the cutoff is reported as
    score_cutoff + 1, which lets window scans bail out early.
    """
    return Levenshtein.distance(a, b, score_cutoff=score_cutoff)


def match_threshold(query_length: int) -> int:
    return int(query_length * TYPO_TOLERANCE)


# ─── Approximate Matcher ─────────────────────────────────────────────────────

def find_match_candidate(
    normalized_text: str,
    normalized_query: str,
) -> Optional[MatchCandidate]:
    """
    Best approximate occurrence of an already-normalized query.

    Exact substring first; otherwise every query-sized window is scored and
    the leftmost window with the lowest distance under the threshold wins.
    """
    if not normalized_query:
        return None

    exact = normalized_text.find(normalized_query)
    if exact != -1:
        return MatchCandidate(offset=exact, distance=0)

    query_length = len(normalized_query)
    threshold = match_threshold(query_length)
    if threshold == 0:
        # Only an exact window could qualify, and there is none.
        return None

    best: Optional[MatchCandidate] = None
    for offset in range(len(normalized_text) - query_length + 1):
        window = normalized_text[offset : offset + query_length]
        distance = edit_distance(normalized_query, window, score_cutoff=threshold)
        if distance <= threshold and (best is None or distance < best.distance):
            best = MatchCandidate(offset=offset, distance=distance)

    return best


def find_match(text: str, query: str) -> Optional[int]:
    """
    Offset in the original `text` where `query` approximately occurs,
    or None when it does not.
    """
    candidate = find_match_candidate(normalize_text(text), normalize_text(query))
    if candidate is None:
        return None
    return map_to_original(text, candidate.offset)


# ─── Position Mapper ─────────────────────────────────────────────────────────

def map_to_original(text: str, normalized_offset: int) -> int:
    """
    Convert an offset into normalize(text) back into an offset into `text`.

    Returns the position of the source character whose normalized output
    covers `normalized_offset`, so stripped characters in front of a match
    are not included. Returns len(text) when the offset is past the end.
    """
    progress = 0
    for position, char in enumerate(text):
        produced = len(_normalize_char(char))
        if produced and progress + produced > normalized_offset:
            return position
        progress += produced
    return len(text)
