"""
End-to-end station curation run.

Flow:
1. Fetch the raw catalog (mirror fallback; fatal on exhaustion)
2. Group by country code, rescue UNKNOWN records
3. Per country (sorted codes, optional scope):
   a. dedupe by stream URL
   b. keep official-language matches; skip below the candidate floor
   c. sample: weighted preferred picks, then overflow
   d. probe candidates one at a time until the per-country cap or exhaustion
4. Build and write the dataset (only after every country is done)

Everything runs sequentially on one thread; each network call blocks until
response or timeout.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from ..config.settings import PipelineConfig
from ..ingest.fetch_stations import StationCatalogFetcher
from ..ingest.reference_data import ReferenceData
from .emitter import build_dataset, log_summary, write_dataset, write_run_report
from .grouping import dedupe_stations, group_by_country_code, rescue_unknown
from .models import (
    UNKNOWN_COUNTRY,
    CountryReport,
    RunReport,
    StationRecord,
    VerifiedStation,
)
from .prober import ProbeOutcome, StreamProber
from .sampler import filter_language_matched, sample_country

logger = logging.getLogger(__name__)

STATUS_EMITTED = "EMITTED"
STATUS_TOO_FEW = "TOO_FEW_CANDIDATES"
STATUS_NO_VERIFIED = "NO_VERIFIED"


class CatalogSource(Protocol):
    def fetch_stations(self) -> List[StationRecord]: ...


class StationVerifier(Protocol):
    def verify_station(self, station: StationRecord) -> ProbeOutcome: ...


@dataclass
class PipelineResult:
    dataset: Dict[str, List[dict]]
    report: RunReport
    verified: Dict[str, List[VerifiedStation]] = field(default_factory=dict)


class CurationPipeline:
    """Wires the stages together; every collaborator is injected."""

    def __init__(self, config: PipelineConfig, reference: ReferenceData,
                 catalog: Optional[CatalogSource] = None,
                 prober: Optional[StationVerifier] = None):
        self.config = config
        self.reference = reference
        self.catalog = catalog or StationCatalogFetcher(
            config.mirrors,
            limit=config.catalog_limit,
            hide_broken=config.hide_broken,
            timeout=config.catalog_timeout,
            user_agent=config.user_agent,
        )
        self.prober = prober or StreamProber(
            origin=config.probe_origin,
            timeout=config.probe_timeout,
            user_agent=config.user_agent,
        )

    def verify_candidates(self, country_code: str, display_name: str,
                          candidates: List[StationRecord],
                          country_report: CountryReport) -> List[VerifiedStation]:
        """Probe candidates in order until the cap is reached or they run out."""
        cap = self.config.stations_per_country
        verified: List[VerifiedStation] = []

        for station in candidates:
            if len(verified) >= cap:
                break
            country_report.probed += 1
            outcome = self.prober.verify_station(station)
            if outcome.accepted:
                verified.append(VerifiedStation(
                    station=station,
                    display_country=display_name,
                    verified_url=outcome.url,
                ))
                logger.info(f"  [OK] {country_code} {station.name!r} ({len(verified)}/{cap})")
            else:
                logger.info(f"  [SKIP] {country_code} {station.name!r}: {outcome.reason or outcome.state.value}")

        return verified

    def process_country(self, country_code: str, stations: List[StationRecord],
                        report: RunReport) -> List[VerifiedStation]:
        cfg = self.config
        official = self.reference.official_languages_for(country_code)

        unique = dedupe_stations(stations)
        report.duplicates_removed += len(stations) - len(unique)

        matched = filter_language_matched(country_code, unique, official,
                                          cfg.language_match, cfg.split_on_whitespace)
        display_name = self.reference.display_name_for(
            country_code, matched[0].country if matched else ""
        )
        country_report = CountryReport(
            country_code=country_code,
            status=STATUS_TOO_FEW,
            display_name=display_name,
            candidates=len(unique),
            matched=len(matched),
        )
        report.record(country_report)

        if len(matched) < cfg.min_candidates:
            logger.info(f"{country_code}: skipped, only {len(matched)} language-matched "
                        f"candidates (need {cfg.min_candidates})")
            return []

        sample = sample_country(
            country_code, matched, official,
            target_size=cfg.stations_per_country,
            mode=cfg.language_match,
            split_on_whitespace=cfg.split_on_whitespace,
        )
        country_report.per_language = dict(sample.per_language)
        logger.info(f"{country_code} ({display_name}): {len(sample.preferred)} preferred, "
                    f"{len(sample.overflow)} overflow candidates")

        verified = self.verify_candidates(country_code, display_name, sample.ordered, country_report)
        country_report.verified = len(verified)
        country_report.status = STATUS_EMITTED if verified else STATUS_NO_VERIFIED
        if not verified:
            logger.warning(f"{country_code}: no candidate passed verification, omitted")
        return verified

    def run(self) -> PipelineResult:
        """
        Execute the full curation run (nothing is written here).

        Raises:
            FetchError: If every catalog mirror failed
        """
        cfg = self.config
        report = RunReport(
            started_at_utc=datetime.now(timezone.utc).isoformat(),
            mirror_count=len(cfg.mirrors),
            country_scope=cfg.country,
        )

        stations = self.catalog.fetch_stations()
        report.stations_fetched = len(stations)

        logger.info("Grouping by country code...")
        grouped = group_by_country_code(stations)
        report.unknown_before_rescue = len(grouped.get(UNKNOWN_COUNTRY, []))
        report.rescued = rescue_unknown(grouped)

        verified_by_country: Dict[str, List[VerifiedStation]] = {}
        for cc in sorted(grouped):
            if cc == UNKNOWN_COUNTRY or not cfg.in_scope(cc):
                continue
            verified = self.process_country(cc, grouped[cc], report)
            if verified:
                verified_by_country[cc] = verified

        if cfg.country and cfg.country not in grouped:
            logger.warning(f"No stations found for country {cfg.country}")

        dataset = build_dataset(verified_by_country, limit=cfg.stations_per_country)
        report.finished_at_utc = datetime.now(timezone.utc).isoformat()
        return PipelineResult(dataset=dataset, report=report, verified=verified_by_country)


def run_pipeline(config: PipelineConfig, reference: ReferenceData,
                 catalog: Optional[CatalogSource] = None,
                 prober: Optional[StationVerifier] = None) -> PipelineResult:
    """Run the pipeline and write the dataset (and report, if configured)."""
    result = CurationPipeline(config, reference, catalog, prober).run()
    write_dataset(config.output_path, result.dataset)
    if config.report_path:
        write_run_report(config.report_path, result.report)
    log_summary(result.dataset)
    return result
