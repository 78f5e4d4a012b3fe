"""Country grouping, the UNKNOWN rescue pass, and per-country deduplication."""

import logging
from typing import Dict, Iterable, List, Sequence, Tuple
from urllib.parse import urlsplit

from .models import StationRecord, UNKNOWN_COUNTRY
from .rules import RESCUE_HINTS, rescue_country_code

logger = logging.getLogger(__name__)


def normalize_country_code(raw: str) -> str:
    """Trimmed upper-case code, or UNKNOWN for blank values."""
    cc = (raw or "").strip().upper()
    return cc or UNKNOWN_COUNTRY


def group_by_country_code(stations: Iterable[StationRecord]) -> Dict[str, List[StationRecord]]:
    """
    Bucket stations by country code.

    Each grouped record is a copy carrying ``source_country``; blank or absent
    codes land in ``UNKNOWN``.
    """
    grouped: Dict[str, List[StationRecord]] = {}
    for station in stations:
        cc = normalize_country_code(station.countrycode)
        grouped.setdefault(cc, []).append(station.with_source_country(cc))
    return grouped


def rescue_unknown(grouped: Dict[str, List[StationRecord]],
                   hints: Sequence[Tuple[str, str]] = RESCUE_HINTS) -> int:
    """
    Move UNKNOWN stations whose free-text country matches a hint.

    Updates ``grouped`` in place (the grouping is owned by the caller; the
    records themselves are replaced, never mutated).

    Returns:
        Number of stations rescued
    """
    unknown = grouped.get(UNKNOWN_COUNTRY, [])
    remaining: List[StationRecord] = []
    rescued = 0

    for station in unknown:
        cc = rescue_country_code(station.country, hints)
        if cc is None:
            remaining.append(station)
            continue
        grouped.setdefault(cc, []).append(station.with_source_country(cc))
        rescued += 1

    grouped[UNKNOWN_COUNTRY] = remaining
    logger.info(f"Reassigned {rescued} stations from {UNKNOWN_COUNTRY} to recognized codes "
                f"({len(remaining)} remain unknown)")
    return rescued


def stream_key(url: str) -> str:
    """Comparison key for stream URLs: scheme dropped, host lower-cased, trailing slash stripped."""
    parts = urlsplit(url.strip())
    if not parts.netloc:
        return url.strip().rstrip("/").lower()
    key = parts.netloc.lower() + parts.path.rstrip("/")
    if parts.query:
        key += "?" + parts.query
    return key


def dedupe_stations(stations: Sequence[StationRecord]) -> List[StationRecord]:
    """Drop stations whose stream URL was already seen, keeping first occurrences."""
    seen = set()
    unique: List[StationRecord] = []
    for station in stations:
        key = stream_key(station.stream_url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(station)
    return unique
