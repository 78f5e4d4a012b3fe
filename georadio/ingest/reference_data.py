"""
Static geographic and linguistic lookup tables.

Built once at start-up and passed explicitly into every stage:
- official languages per alpha-2 country code (countries-list tables)
- display names per alpha-2 code (world-atlas TopoJSON geometry names)

The world-atlas geometries carry numeric ISO 3166-1 ids; pycountry maps them
to alpha-2. Geometries without an id (Kosovo, Northern Cyprus, ...) fall back
to a name lookup against the countries table.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import pycountry

from .base_fetcher import BaseFetcher, get_json

logger = logging.getLogger(__name__)


class ReferenceDataError(Exception):
    """Raised when a reference payload does not have the expected shape."""
    pass


@dataclass(frozen=True)
class ReferenceData:
    """Read-only lookup tables shared by all stages of a run."""
    official_languages: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    display_names: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    country_names: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, official_languages: Dict[str, Sequence[str]],
              display_names: Optional[Dict[str, str]] = None,
              country_names: Optional[Dict[str, str]] = None) -> "ReferenceData":
        """Freeze plain dicts into read-only mappings (codes upper-cased)."""
        return cls(
            official_languages=MappingProxyType(
                {cc.upper(): tuple(langs) for cc, langs in official_languages.items()}
            ),
            display_names=MappingProxyType(
                {cc.upper(): name for cc, name in (display_names or {}).items()}
            ),
            country_names=MappingProxyType(
                {cc.upper(): name for cc, name in (country_names or {}).items()}
            ),
        )

    def official_languages_for(self, country_code: str) -> Tuple[str, ...]:
        return self.official_languages.get(country_code.upper(), ())

    def display_name_for(self, country_code: str, fallback: str = "") -> str:
        """Atlas display name, else countries-table name, else fallback, else the code."""
        cc = country_code.upper()
        return (
            self.display_names.get(cc)
            or self.country_names.get(cc)
            or fallback
            or cc
        )


def build_official_languages(countries: Any, languages: Any) -> Dict[str, Tuple[str, ...]]:
    """
    Map each country code to its ordered official language names.

    Args:
        countries: ``{"CA": {"languages": ["en", "fr"], ...}, ...}``
        languages: ``{"en": {"name": "English"}, ...}``

    Returns:
        ``{"CA": ("english", "french"), ...}``; unknown language codes are
        kept as the code itself.

    Raises:
        ReferenceDataError: If either table is not a mapping
    """
    if not isinstance(countries, dict):
        raise ReferenceDataError("countries table must be a JSON object keyed by alpha-2 code")
    if not isinstance(languages, dict):
        raise ReferenceDataError("languages table must be a JSON object keyed by language code")

    result: Dict[str, Tuple[str, ...]] = {}
    for cc, info in countries.items():
        if not isinstance(info, dict):
            continue
        codes = info.get("languages") or []
        if isinstance(codes, str):
            codes = [c.strip() for c in codes.split(",") if c.strip()]
        names = []
        for code in codes:
            lang = languages.get(code)
            name = lang.get("name") if isinstance(lang, dict) else None
            name = (name or code).lower()
            if name not in names:
                names.append(name)
        result[cc.upper()] = tuple(names)
    return result


def build_country_names(countries: Any) -> Dict[str, str]:
    """``{"CA": "Canada", ...}`` from the countries table."""
    if not isinstance(countries, dict):
        raise ReferenceDataError("countries table must be a JSON object keyed by alpha-2 code")
    return {
        cc.upper(): info["name"]
        for cc, info in countries.items()
        if isinstance(info, dict) and isinstance(info.get("name"), str)
    }


def _alpha2_for_numeric(numeric_id: Any) -> Optional[str]:
    if numeric_id is None:
        return None
    numeric = str(numeric_id).strip()
    if not numeric.isdigit():
        return None
    try:
        country = pycountry.countries.get(numeric=numeric.zfill(3))
    except (KeyError, LookupError):
        country = None
    return country.alpha_2 if country else None


def build_atlas_names(topology: Any, country_names: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Map alpha-2 codes to the display names used by the globe geometry.

    Args:
        topology: world-atlas TopoJSON (``objects.countries.geometries``)
        country_names: alpha-2 → name table used when a geometry has no usable id

    Returns:
        ``{"CA": "Canada", "US": "United States of America", ...}``

    Raises:
        ReferenceDataError: If the payload is not a topology with country geometries
    """
    if not isinstance(topology, dict) or topology.get("type") != "Topology":
        raise ReferenceDataError("world geometry payload is not a TopoJSON Topology")
    objects = topology.get("objects")
    countries_obj = objects.get("countries") if isinstance(objects, dict) else None
    geometries = countries_obj.get("geometries") if isinstance(countries_obj, dict) else None
    if not isinstance(geometries, list):
        raise ReferenceDataError("world geometry payload has no objects.countries.geometries list")

    name_to_code = {
        name.lower().strip(): cc for cc, name in (country_names or {}).items()
    }

    result: Dict[str, str] = {}
    for geometry in geometries:
        if not isinstance(geometry, dict):
            raise ReferenceDataError("world geometry entries must be objects")
        props = geometry.get("properties") or {}
        name = props.get("name") if isinstance(props, dict) else None
        if not isinstance(name, str) or not name.strip():
            continue

        cc = _alpha2_for_numeric(geometry.get("id"))
        if cc is None:
            cc = name_to_code.get(name.lower().strip())
        if cc is None:
            logger.debug(f"No alpha-2 code for atlas geometry {geometry.get('id')!r} ({name})")
            continue
        # First geometry wins for duplicated ids
        result.setdefault(cc, name.strip())

    return result


class JsonDocumentFetcher(BaseFetcher):
    """Fetch a single JSON document from one or more equivalent locations."""

    def __init__(self, source_id: str, sources: Sequence[str]):
        super().__init__(sources)
        self.source_id = source_id

    def _fetch_impl(self, source: str) -> Any:
        logger.info(f"Loading {self.source_id} from {source}")
        return get_json(source)


def load_reference_data(countries_url: str, languages_url: str, atlas_url: str) -> ReferenceData:
    """
    Fetch the three reference payloads and build the lookup tables.

    Raises:
        FetchError: If a payload cannot be retrieved
        ReferenceDataError: If a payload has an unexpected shape
    """
    countries = JsonDocumentFetcher("countries_table", [countries_url]).fetch()
    languages = JsonDocumentFetcher("languages_table", [languages_url]).fetch()
    topology = JsonDocumentFetcher("world_atlas", [atlas_url]).fetch()

    official = build_official_languages(countries, languages)
    country_names = build_country_names(countries)
    display_names = build_atlas_names(topology, country_names)

    logger.info(
        f"Reference data: {len(official)} language profiles, "
        f"{len(display_names)} atlas display names"
    )
    return ReferenceData.build(official, display_names, country_names)
