"""
Pipeline configuration.

Usage:
    from georadio.config.settings import load_config

    config = load_config()                      # config/pipeline.yaml + env
    config = load_config(country="ca")          # scoped run

Precedence (lowest to highest): built-in defaults, ``config/pipeline.yaml``,
environment variables (``.env`` is loaded on import), explicit keyword
overrides.

Environment variables:
    GEORADIO_COUNTRY        Scope the run to one alpha-2 country code
    GEORADIO_OUTPUT         Output path for stations.json
    GEORADIO_PROBE_TIMEOUT  Per-probe timeout in seconds
"""

import logging
import os
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env from the repository root, else from the current directory
_repo_root = Path(__file__).resolve().parent.parent.parent
_env_path = _repo_root / ".env"
if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()

CONFIG_FILENAME = "config/pipeline.yaml"

DEFAULT_MIRRORS = (
    "https://de1.api.radio-browser.info",
    "https://de2.api.radio-browser.info",
    "https://fi1.api.radio-browser.info",
    "https://nl1.api.radio-browser.info",
)

DEFAULT_COUNTRIES_URL = "https://unpkg.com/countries-list@2.6.1/dist/countries.min.json"
DEFAULT_LANGUAGES_URL = "https://unpkg.com/countries-list@2.6.1/dist/languages.all.min.json"
DEFAULT_ATLAS_URL = "https://unpkg.com/world-atlas@2/countries-110m.json"

MATCH_MODES = ("substring", "exact")

_COUNTRY_CODE_RE = re.compile(r"^[A-Za-z]{2}$")


class ConfigError(Exception):
    """Raised when a configuration value is missing or invalid."""
    pass


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable run configuration, built once at start-up."""
    mirrors: Tuple[str, ...] = DEFAULT_MIRRORS
    catalog_limit: int = 500000
    hide_broken: bool = True
    catalog_timeout: float = 120.0
    stations_per_country: int = 25
    min_candidates: int = 3
    probe_timeout: float = 5.0
    probe_origin: str = "https://georadio.app"
    language_match: str = "substring"
    split_on_whitespace: bool = False
    countries_url: str = DEFAULT_COUNTRIES_URL
    languages_url: str = DEFAULT_LANGUAGES_URL
    atlas_url: str = DEFAULT_ATLAS_URL
    output_path: str = "stations.json"
    report_path: Optional[str] = "stations_report.json"
    country: Optional[str] = None
    user_agent: str = "GeoRadio-StationCurator/0.3"

    def __post_init__(self):
        if self.language_match not in MATCH_MODES:
            raise ConfigError(
                f"language_match must be one of {MATCH_MODES}, got {self.language_match!r}"
            )
        if self.stations_per_country < 1:
            raise ConfigError("stations_per_country must be positive")
        if self.min_candidates < 0:
            raise ConfigError("min_candidates must not be negative")
        if self.probe_timeout <= 0:
            raise ConfigError("probe_timeout must be positive")
        if not self.mirrors:
            raise ConfigError("at least one mirror base URL is required")
        if self.country is not None and not is_country_code(self.country):
            raise ConfigError(f"Invalid country code: {self.country!r}")

    def in_scope(self, country_code: str) -> bool:
        """Country filter predicate; no configured country means every country."""
        if not self.country:
            return True
        return country_code.upper() == self.country.upper()


def is_country_code(value: str) -> bool:
    """True for a two-letter alphabetic code (format check only)."""
    return bool(value) and bool(_COUNTRY_CODE_RE.match(value.strip()))


def find_config_file(filename: str = CONFIG_FILENAME) -> Optional[str]:
    """Locate the YAML config relative to cwd first, then the repository root."""
    config_paths = [
        filename,
        str(_repo_root / filename),
    ]
    for path in config_paths:
        if os.path.exists(path):
            return path
    return None


def load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the pipeline YAML file.

    Args:
        path: Explicit path; when None the default locations are searched

    Returns:
        Config dict, or empty dict if no file was found

    Raises:
        ConfigError: If an explicit path is given but unreadable or not a mapping
    """
    if path is None:
        path = find_config_file()
        if path is None:
            return {}
    elif not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def _from_yaml(data: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten the nested YAML sections into PipelineConfig keyword arguments."""
    catalog = data.get("catalog", {}) or {}
    sampling = data.get("sampling", {}) or {}
    probe = data.get("probe", {}) or {}
    reference = data.get("reference", {}) or {}
    output = data.get("output", {}) or {}

    kwargs: Dict[str, Any] = {}
    if "mirrors" in catalog:
        kwargs["mirrors"] = tuple(catalog["mirrors"])
    for yaml_key, attr in (
        ("limit", "catalog_limit"),
        ("hidebroken", "hide_broken"),
        ("timeout_seconds", "catalog_timeout"),
    ):
        if yaml_key in catalog:
            kwargs[attr] = catalog[yaml_key]
    for yaml_key, attr in (
        ("stations_per_country", "stations_per_country"),
        ("min_candidates", "min_candidates"),
        ("language_match", "language_match"),
        ("split_on_whitespace", "split_on_whitespace"),
    ):
        if yaml_key in sampling:
            kwargs[attr] = sampling[yaml_key]
    for yaml_key, attr in (
        ("timeout_seconds", "probe_timeout"),
        ("origin", "probe_origin"),
        ("user_agent", "user_agent"),
    ):
        if yaml_key in probe:
            kwargs[attr] = probe[yaml_key]
    for yaml_key, attr in (
        ("countries_url", "countries_url"),
        ("languages_url", "languages_url"),
        ("atlas_url", "atlas_url"),
    ):
        if yaml_key in reference:
            kwargs[attr] = reference[yaml_key]
    for yaml_key, attr in (("path", "output_path"), ("report_path", "report_path")):
        if yaml_key in output:
            kwargs[attr] = output[yaml_key]
    return kwargs


def _from_env() -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    country = os.environ.get("GEORADIO_COUNTRY", "").strip()
    if country:
        kwargs["country"] = country
    output = os.environ.get("GEORADIO_OUTPUT", "").strip()
    if output:
        kwargs["output_path"] = output
    timeout = os.environ.get("GEORADIO_PROBE_TIMEOUT", "").strip()
    if timeout:
        try:
            kwargs["probe_timeout"] = float(timeout)
        except ValueError as e:
            raise ConfigError(f"GEORADIO_PROBE_TIMEOUT must be a number, got {timeout!r}") from e
    return kwargs


def load_config(path: Optional[str] = None, **overrides: Any) -> PipelineConfig:
    """
    Build the run configuration.

    Args:
        path: Optional explicit YAML path
        **overrides: Highest-precedence values (None values are ignored)

    Returns:
        Frozen PipelineConfig

    Raises:
        ConfigError: On unreadable files or invalid values
    """
    kwargs = _from_yaml(load_yaml_config(path))
    kwargs.update(_from_env())
    kwargs.update({k: v for k, v in overrides.items() if v is not None})

    if kwargs.get("country"):
        kwargs["country"] = str(kwargs["country"]).strip().upper()

    try:
        config = PipelineConfig(**kwargs)
    except TypeError as e:
        raise ConfigError(f"Unknown configuration key: {e}") from e

    logger.debug(f"Loaded pipeline config: {config}")
    return config


def with_country(config: PipelineConfig, country: Optional[str]) -> PipelineConfig:
    """Return a copy of ``config`` scoped to ``country`` (None clears the scope)."""
    if country:
        country = country.strip().upper()
    return replace(config, country=country or None)
