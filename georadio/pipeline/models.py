"""
Pipeline data models for catalog → sample → probe → dataset.

These are intentionally lightweight (stdlib only). Records are frozen: later
stages derive copies (``dataclasses.replace``) rather than mutating them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

UNKNOWN_COUNTRY = "UNKNOWN"


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class StationRecord:
    """One raw station as published by the radio directory."""
    name: str
    url: str
    url_resolved: str = ""
    country: str = ""
    countrycode: str = ""
    language: str = ""
    tags: str = ""
    homepage: str = ""
    bitrate: int = 0
    stationuuid: str = ""
    source_country: Optional[str] = None  # set when grouped / rescued

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "StationRecord":
        """Build from one directory API object; missing fields become empty."""
        return cls(
            name=_as_str(data.get("name")).strip(),
            url=_as_str(data.get("url")).strip(),
            url_resolved=_as_str(data.get("url_resolved")).strip(),
            country=_as_str(data.get("country")).strip(),
            countrycode=_as_str(data.get("countrycode")).strip(),
            language=_as_str(data.get("language")),
            tags=_as_str(data.get("tags")),
            homepage=_as_str(data.get("homepage")).strip(),
            bitrate=_as_int(data.get("bitrate")),
            stationuuid=_as_str(data.get("stationuuid")),
        )

    @property
    def stream_url(self) -> str:
        """The directory's resolved stream URL, else the registered one."""
        return self.url_resolved or self.url

    @property
    def tag_list(self) -> List[str]:
        return [t.strip().lower() for t in self.tags.split(",") if t.strip()]

    def with_source_country(self, country_code: str) -> "StationRecord":
        return replace(self, source_country=country_code)


@dataclass
class CandidateBucket:
    """Per-country language buckets, in official-language order."""
    country_code: str
    buckets: Dict[str, List[StationRecord]] = field(default_factory=dict)
    unmatched: List[StationRecord] = field(default_factory=list)

    @property
    def matched_count(self) -> int:
        return sum(len(v) for v in self.buckets.values())


@dataclass
class SampleResult:
    """Ordered candidates for one country: preferred picks, then overflow."""
    country_code: str
    preferred: List[StationRecord] = field(default_factory=list)
    overflow: List[StationRecord] = field(default_factory=list)
    per_language: Dict[str, int] = field(default_factory=dict)

    @property
    def ordered(self) -> List[StationRecord]:
        return self.preferred + self.overflow


@dataclass(frozen=True)
class VerifiedStation:
    station: StationRecord
    display_country: str
    verified_url: str


@dataclass
class CountryReport:
    country_code: str
    status: str  # EMITTED, TOO_FEW_CANDIDATES, NO_VERIFIED
    display_name: str = ""
    candidates: int = 0
    matched: int = 0
    probed: int = 0
    verified: int = 0
    per_language: Dict[str, int] = field(default_factory=dict)


@dataclass
class RunReport:
    """Counts for one pipeline run; written next to the dataset."""
    started_at_utc: str = ""
    finished_at_utc: str = ""
    mirror_count: int = 0
    stations_fetched: int = 0
    unknown_before_rescue: int = 0
    rescued: int = 0
    duplicates_removed: int = 0
    country_scope: Optional[str] = None
    countries: Dict[str, CountryReport] = field(default_factory=dict)

    def record(self, country: CountryReport) -> None:
        self.countries[country.country_code] = country

    def status_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for c in self.countries.values():
            counts[c.status] = counts.get(c.status, 0) + 1
        return counts

    def totals(self) -> Tuple[int, int]:
        """(countries emitted, stations emitted)."""
        emitted = [c for c in self.countries.values() if c.status == "EMITTED"]
        return len(emitted), sum(c.verified for c in emitted)
