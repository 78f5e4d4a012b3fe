"""Shared fixtures: station factory, reference tables, fake HTTP responses."""

import os
import sys
from unittest.mock import MagicMock

import pytest
from requests.structures import CaseInsensitiveDict

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from georadio.ingest.reference_data import ReferenceData
from georadio.pipeline.models import StationRecord
from georadio.pipeline.prober import ProbeOutcome, ProbeState


def _make_station(name, language="english", countrycode="US", country="", tags="",
                  url=None, bitrate=128):
    stream = url or f"http://streams.example.net/{name.replace(' ', '-').lower()}"
    return StationRecord(
        name=name,
        url=stream,
        url_resolved=stream,
        country=country,
        countrycode=countrycode,
        language=language,
        tags=tags,
        bitrate=bitrate,
    )


@pytest.fixture
def make_station():
    """Factory for StationRecords with sensible defaults."""
    return _make_station


@pytest.fixture
def reference():
    """Small frozen reference table covering the scenario countries."""
    return ReferenceData.build(
        official_languages={
            "US": ["english"],
            "CA": ["english", "french"],
            "BR": ["portuguese"],
            "DE": ["german"],
            "RU": ["russian"],
            "PL": ["polish"],
            "NO": ["norwegian", "norwegian bokmål", "norwegian nynorsk"],
            "CH": ["german", "french", "italian", "romansh"],
            "ZA": ["afrikaans", "english", "zulu", "xhosa", "sotho", "tswana"],
        },
        display_names={
            "US": "United States of America",
            "CA": "Canada",
            "BR": "Brazil",
            "DE": "Germany",
            "RU": "Russia",
        },
        country_names={
            "US": "United States",
            "CA": "Canada",
            "BR": "Brazil",
            "DE": "Germany",
            "RU": "Russia",
            "PL": "Poland",
        },
    )


def _fake_response(status=200, headers=None):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = CaseInsensitiveDict(headers or {})
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    return resp


@pytest.fixture
def fake_response():
    """Factory for requests-like responses usable as context managers."""
    return _fake_response


class StubProber:
    """Accepts stations by a fixed predicate; records what it was asked."""

    def __init__(self, accept):
        self.accept = accept
        self.calls = []

    def verify_station(self, station):
        self.calls.append(station.name)
        outcome = ProbeOutcome(url=station.stream_url.replace("http://", "https://", 1))
        outcome.advance(ProbeState.LIGHTWEIGHT_TRIED)
        if self.accept(station):
            outcome.advance(ProbeState.VERIFIED)
        else:
            outcome.advance(ProbeState.FULL_TRIED, "stubbed rejection")
            outcome.advance(ProbeState.REJECTED)
        return outcome


@pytest.fixture
def stub_prober():
    return StubProber
