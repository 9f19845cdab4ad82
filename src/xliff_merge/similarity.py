"""
Fuzzy matching of units by source text.

A score is the Levenshtein distance between two texts divided by the length
of the origin text, so lower is closer and 0 means identical. Only scores
below FUZZY_MATCH_THRESHOLD count as a match.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from rapidfuzz.distance import Levenshtein

from .constants import FUZZY_MATCH_THRESHOLD

logger = logging.getLogger("xliff-merge")


@dataclass
class MatchCandidate:
    """An origin unit paired with the removal candidate it resembles."""
    origin: Any
    destination: Any
    score: float


def similarity_score(origin_text: str, candidate_text: str) -> float:
    """
    Normalized edit distance from ``origin_text`` to ``candidate_text``.

    Returns:
        Distance divided by the origin length; infinity for an empty origin
    """
    if not origin_text:
        return math.inf
    return Levenshtein.distance(origin_text, candidate_text) / len(origin_text)


def assign_matches(
    origins: Sequence[Tuple[Any, str]],
    candidates: Sequence[Tuple[Any, str]],
    threshold: float = FUZZY_MATCH_THRESHOLD,
) -> List[MatchCandidate]:
    """
    Pair origin units with candidates, best pair first across the whole set.

    Every origin x candidate score is computed once. The lowest-scoring pair
    over everything still unassigned is committed, both sides leave the pool,
    and this repeats until no qualifying pair is left. Since scores do not
    change between rounds, that is one stable sort followed by a greedy walk.
    An origin unit therefore cannot take a candidate that another origin unit
    matches more closely, whatever order the units come in.

    Args:
        origins: (origin unit, normalized source text) pairs
        candidates: (removal candidate, normalized source text) pairs
        threshold: Scores at or above this never match

    Returns:
        Committed matches, in the order they were chosen
    """
    scored: List[Tuple[float, int, int]] = []
    for origin_index, (_, origin_text) in enumerate(origins):
        for candidate_index, (_, candidate_text) in enumerate(candidates):
            score = similarity_score(origin_text, candidate_text)
            if score < threshold:
                scored.append((score, origin_index, candidate_index))

    # Ties keep iteration order: origin first, then candidate
    scored.sort()

    matches: List[MatchCandidate] = []
    used_origins = set()
    used_candidates = set()
    for score, origin_index, candidate_index in scored:
        if origin_index in used_origins or candidate_index in used_candidates:
            continue
        used_origins.add(origin_index)
        used_candidates.add(candidate_index)
        matches.append(MatchCandidate(
            origin=origins[origin_index][0],
            destination=candidates[candidate_index][0],
            score=score,
        ))

    logger.debug(
        f"Fuzzy matching: {len(matches)} of {len(origins)} unmatched units paired "
        f"with {len(candidates)} removal candidates"
    )
    return matches
