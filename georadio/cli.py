"""
Command-line interface for the station curation pipeline.

Usage:
    # Full run (prompts for an optional country code when interactive)
    python scripts/generate_stations.py

    # Scope the run to one country (testing mode)
    python scripts/generate_stations.py CA

    # Non-interactive full run
    GEORADIO_COUNTRY= python scripts/generate_stations.py < /dev/null
"""

import argparse
import logging
import sys
from typing import Callable, Optional

import pycountry

from .config.settings import ConfigError, PipelineConfig, is_country_code, load_config, with_country
from .ingest.base_fetcher import FetchError
from .ingest.reference_data import ReferenceDataError, load_reference_data
from .logging_config import configure_logging
from .pipeline.runner import run_pipeline

logger = logging.getLogger("georadio.cli")

PROMPT = "Enter a country code to generate stations for (leave blank for all countries): "

# Codes the directory uses that ISO 3166-1 does not assign
USER_ASSIGNED_CODES = {"XK"}


def is_known_country(code: str) -> bool:
    """Two letters and a real (or directory-used user-assigned) alpha-2 code."""
    if not is_country_code(code):
        return False
    code = code.strip().upper()
    if code in USER_ASSIGNED_CODES:
        return True
    try:
        return pycountry.countries.get(alpha_2=code) is not None
    except (KeyError, LookupError):
        return False


def prompt_for_country(input_fn: Callable[[str], str] = input) -> Optional[str]:
    """Ask for an optional country code; blank or EOF means every country."""
    try:
        answer = input_fn(PROMPT)
    except EOFError:
        return None
    answer = (answer or "").strip()
    return answer or None


def resolve_country(arg_country: Optional[str], config: PipelineConfig,
                    interactive: bool,
                    input_fn: Callable[[str], str] = input) -> Optional[str]:
    """Positional argument, else configured scope, else the interactive prompt."""
    if arg_country:
        return arg_country.strip()
    if config.country:
        return config.country
    if interactive:
        return prompt_for_country(input_fn)
    return None


def main(argv: Optional[list] = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="georadio-stations",
        description="Build the GeoRadio stations.json dataset from the public radio directory"
    )
    parser.add_argument(
        "country",
        nargs="?",
        help="Optional ISO 3166-1 alpha-2 code to scope the run to one country"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to pipeline YAML (default: config/pipeline.yaml)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging"
    )
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    country = resolve_country(args.country, config, interactive=sys.stdin.isatty())
    if country:
        if not is_known_country(country):
            logger.error(f"Invalid country code: {country!r} (expected ISO 3166-1 alpha-2, e.g. CA)")
            return 1
        config = with_country(config, country)
        logger.info(f"Testing mode: only generating stations for {config.country}")
    else:
        config = with_country(config, None)

    try:
        reference = load_reference_data(config.countries_url, config.languages_url, config.atlas_url)
        run_pipeline(config, reference)
    except (FetchError, ReferenceDataError) as e:
        logger.error(f"Failed to generate station list: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
