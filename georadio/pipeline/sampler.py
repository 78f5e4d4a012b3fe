"""
Language-weighted per-country sampling.

Multi-language countries get a quota per official language so the main
language dominates without drowning out the others:

    1 language   -> 100%
    2 languages  -> 90 / 10
    3 languages  -> 80 / 10 / 10
    4 languages  -> 70 / 10 / 10 / 10
    5+ languages -> 70% main, remaining 30% split equally

The sampler does not drop anything: candidates it does not prefer are kept
as overflow, in original order, so the prober has alternates.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from .languages import MATCH_SUBSTRING, match_official_language
from .models import CandidateBucket, SampleResult, StationRecord
from .rules import genre_hints_for, has_local_genre

logger = logging.getLogger(__name__)

DEFAULT_TARGET_SIZE = 25

# Fixed splits for up to four languages
WEIGHT_TABLE = {
    1: (1.0,),
    2: (0.9, 0.1),
    3: (0.8, 0.1, 0.1),
    4: (0.7, 0.1, 0.1, 0.1),
}
MAIN_WEIGHT_MANY = 0.7

# Guards floor() against 0.1 * 30 == 3.0000000000000004 style noise
_FLOOR_EPSILON = 1e-9


def compute_language_weights(languages: Sequence[str]) -> Dict[str, float]:
    """
    Quota fraction per official language (main language first).

    Returns:
        Ordered ``{language: weight}``; weights sum to 1.0 (empty for no languages)
    """
    k = len(languages)
    if k == 0:
        return {}
    if k in WEIGHT_TABLE:
        weights = WEIGHT_TABLE[k]
    else:
        rest = (1.0 - MAIN_WEIGHT_MANY) / (k - 1)
        weights = (MAIN_WEIGHT_MANY,) + (rest,) * (k - 1)
    return dict(zip(languages, weights))


def quota_for(weight: float, target_size: int) -> int:
    return int(math.floor(weight * target_size + _FLOOR_EPSILON))


def _bucket_positions(country_code: str, candidates: Sequence[StationRecord],
                      official_languages: Sequence[str],
                      genre_hints: Optional[Sequence[str]],
                      mode: str, split_on_whitespace: bool) -> Tuple[Dict[str, List[int]], List[int]]:
    """Candidate positions per official language, plus unmatched positions."""
    if genre_hints is None:
        genre_hints = genre_hints_for(country_code)

    buckets: Dict[str, List[int]] = {lang: [] for lang in official_languages}
    unmatched: List[int] = []
    for pos, station in enumerate(candidates):
        lang = match_official_language(station.language, official_languages, mode, split_on_whitespace)
        if lang is None:
            unmatched.append(pos)
        else:
            buckets[lang].append(pos)

    if genre_hints:
        for positions in buckets.values():
            positions.sort(key=lambda p: 0 if has_local_genre(candidates[p].tag_list, genre_hints) else 1)

    return buckets, unmatched


def bucket_candidates(country_code: str, candidates: Sequence[StationRecord],
                      official_languages: Sequence[str],
                      genre_hints: Optional[Sequence[str]] = None,
                      mode: str = MATCH_SUBSTRING,
                      split_on_whitespace: bool = False) -> CandidateBucket:
    """
    Bucket candidates by the first official language they match.

    Within a bucket, stations tagged with a local-genre hint come first; the
    sort is stable so original order is otherwise kept.
    """
    candidates = list(candidates)
    buckets, unmatched = _bucket_positions(country_code, candidates, official_languages,
                                           genre_hints, mode, split_on_whitespace)
    return CandidateBucket(
        country_code=country_code,
        buckets={lang: [candidates[p] for p in positions] for lang, positions in buckets.items()},
        unmatched=[candidates[p] for p in unmatched],
    )


def filter_language_matched(country_code: str, candidates: Sequence[StationRecord],
                            official_languages: Sequence[str],
                            mode: str = MATCH_SUBSTRING,
                            split_on_whitespace: bool = False) -> List[StationRecord]:
    """Candidates that serve one of the country's official languages.

    Countries without a language profile keep every candidate.
    """
    if not official_languages:
        return list(candidates)
    return [
        s for s in candidates
        if match_official_language(s.language, official_languages, mode, split_on_whitespace)
    ]


def sample_country(country_code: str, candidates: Sequence[StationRecord],
                   official_languages: Sequence[str],
                   target_size: int = DEFAULT_TARGET_SIZE,
                   genre_hints: Optional[Sequence[str]] = None,
                   mode: str = MATCH_SUBSTRING,
                   split_on_whitespace: bool = False) -> SampleResult:
    """
    Order one country's candidates for probing.

    Args:
        country_code: Alpha-2 code
        candidates: Stations for the country, in directory order
        official_languages: Ordered profile, main language first (may be empty)
        target_size: Preferred section size (stations per country)
        genre_hints: Local-genre tag hints; defaults to the rule table
        mode: Language match mode ("substring" or "exact")
        split_on_whitespace: Also split language fields on whitespace

    Returns:
        SampleResult whose ``ordered`` list is preferred picks then overflow
    """
    candidates = list(candidates)

    if not official_languages:
        return SampleResult(
            country_code=country_code,
            preferred=candidates[:target_size],
            overflow=candidates[target_size:],
        )

    buckets, _ = _bucket_positions(country_code, candidates, official_languages,
                                   genre_hints, mode, split_on_whitespace)
    if not any(buckets.values()):
        # No language gives a usable target; retry unweighted
        logger.debug(f"{country_code}: no candidate matches {list(official_languages)}, sampling unweighted")
        return sample_country(country_code, candidates, (), target_size)

    weights = compute_language_weights(official_languages)

    # Positions, not records: equal records may legitimately repeat
    selected: List[int] = []
    chosen = set()
    per_language: Dict[str, int] = {}

    for lang in official_languages:
        picks = buckets[lang][:quota_for(weights[lang], target_size)]
        selected.extend(picks)
        chosen.update(picks)
        per_language[lang] = len(picks)

    # Sparse buckets: top up from the main language
    main = official_languages[0]
    for pos in buckets[main]:
        if len(selected) >= target_size:
            break
        if pos in chosen:
            continue
        selected.append(pos)
        chosen.add(pos)
        per_language[main] += 1

    preferred = [candidates[p] for p in selected]
    overflow = [s for p, s in enumerate(candidates) if p not in chosen]

    logger.debug(
        f"{country_code}: preferred {len(preferred)} "
        f"({', '.join(f'{k}={v}' for k, v in per_language.items())}), overflow {len(overflow)}"
    )
    return SampleResult(
        country_code=country_code,
        preferred=preferred,
        overflow=overflow,
        per_language=per_language,
    )
