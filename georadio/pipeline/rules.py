"""
Rule tables for the string-matching heuristics.

Kept as data so each rule can be audited and tested on its own:
- RESCUE_HINTS: free-text country fragments that move a station out of
  UNKNOWN. Checked in order, first match wins, matching is a lowercase
  substring test.
- LOCAL_GENRE_HINTS: per-country tag fragments; matching stations are sorted
  to the front of their language bucket.
"""

from typing import Dict, List, Optional, Sequence, Tuple

RESCUE_HINTS: Tuple[Tuple[str, str], ...] = (
    ("russia", "RU"),
    ("united states", "US"),
    ("poland", "PL"),
    ("germany", "DE"),
    ("united kingdom", "GB"),
    ("france", "FR"),
    ("brazil", "BR"),
    ("ukraine", "UA"),
    ("netherlands", "NL"),
    ("mexico", "MX"),
)

LOCAL_GENRE_HINTS: Dict[str, Tuple[str, ...]] = {
    "DE": ("schlager", "volksmusik"),
    "AT": ("schlager", "volksmusik"),
    "BR": ("mpb", "samba", "sertanejo", "forró", "forro"),
    "MX": ("regional mexicano", "ranchera", "banda", "norteño", "norteno"),
    "FR": ("chanson",),
    "IT": ("musica italiana",),
    "PT": ("fado",),
    "ES": ("flamenco",),
    "AR": ("tango", "cumbia"),
    "CO": ("vallenato", "cumbia"),
    "CU": ("son cubano", "salsa"),
    "JM": ("reggae", "dancehall"),
    "IE": ("irish", "celtic"),
    "GR": ("laika", "rebetiko"),
    "TR": ("türk halk", "turkish folk", "arabesk"),
    "IN": ("bollywood", "hindi"),
    "JP": ("j-pop", "enka"),
    "KR": ("k-pop", "trot"),
    "RS": ("narodna", "turbo folk"),
    "PL": ("disco polo",),
}


def rescue_country_code(free_text_country: str,
                        hints: Sequence[Tuple[str, str]] = RESCUE_HINTS) -> Optional[str]:
    """Country code for a free-text country string, or None if no hint matches."""
    text = (free_text_country or "").lower()
    if not text:
        return None
    for fragment, code in hints:
        if fragment in text:
            return code
    return None


def genre_hints_for(country_code: str,
                    table: Optional[Dict[str, Tuple[str, ...]]] = None) -> List[str]:
    if table is None:
        table = LOCAL_GENRE_HINTS
    return list(table.get(country_code.upper(), ()))


def has_local_genre(tags: Sequence[str], hints: Sequence[str]) -> bool:
    """True if any tag contains any of the hints."""
    return any(hint in tag for tag in tags for hint in hints)
