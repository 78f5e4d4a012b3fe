"""
Output dataset assembly and run reporting.

The dataset is the only contract with the game client:

    { "<display country name>": [ {name, url, country, countrycode,
                                   language, tags?, bitrate}, ... ] }

It is written with sorted keys so that re-running over frozen inputs yields
byte-identical output.
"""

import json
import logging
import os
from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Sequence

from .models import RunReport, VerifiedStation

logger = logging.getLogger(__name__)

STATIONS_PER_COUNTRY = 25


def to_summary(verified: VerifiedStation) -> Dict[str, Any]:
    """Reduce a verified station to the fields the client reads."""
    station = verified.station
    summary: Dict[str, Any] = {
        "name": station.name,
        "url": verified.verified_url,
        "country": verified.display_country,
        "countrycode": station.source_country or station.countrycode.upper(),
        "language": station.language,
    }
    if station.tags.strip():
        summary["tags"] = station.tags
    summary["bitrate"] = station.bitrate
    return summary


def build_dataset(verified_by_country: Mapping[str, Sequence[VerifiedStation]],
                  limit: int = STATIONS_PER_COUNTRY) -> Dict[str, List[Dict[str, Any]]]:
    """
    Key each country's verified stations by display name, capped at ``limit``.

    Countries with no verified stations are omitted. Two codes resolving to the
    same display name are disambiguated as ``"<name> (<CC>)"``.
    """
    dataset: Dict[str, List[Dict[str, Any]]] = {}
    for cc in sorted(verified_by_country):
        stations = list(verified_by_country[cc])[:limit]
        if not stations:
            continue
        name = stations[0].display_country or cc
        if name in dataset:
            logger.warning(f"Display name {name!r} already used; keying {cc} as '{name} ({cc})'")
            name = f"{name} ({cc})"
        dataset[name] = [to_summary(v) for v in stations]
    return dataset


def _write_json(path: str, data: Any) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
        f.write("\n")
    os.replace(tmp_path, path)


def write_dataset(path: str, dataset: Mapping[str, Any]) -> None:
    """Write the dataset as UTF-8 JSON (indent 2, sorted keys)."""
    _write_json(path, dict(dataset))
    logger.info(f"Saved station list for {len(dataset)} countries to {path}")


def write_run_report(path: str, report: RunReport) -> None:
    data = asdict(report)
    countries, stations = report.totals()
    data["summary"] = {
        "countries_emitted": countries,
        "stations_emitted": stations,
        "status_counts": report.status_counts(),
    }
    _write_json(path, data)
    logger.info(f"Run report written to {path}")


def log_summary(dataset: Mapping[str, Sequence[Any]]) -> None:
    """Per-country counts and totals, for the operator."""
    logger.info("--- Station counts by country ---")
    total = 0
    for name in sorted(dataset):
        logger.info(f"{name}: {len(dataset[name])}")
        total += len(dataset[name])
    logger.info(f"Total countries: {len(dataset)}")
    logger.info(f"Total stations: {total}")
