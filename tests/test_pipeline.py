"""End-to-end tests for the curation run with stubbed network collaborators."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from georadio.config.settings import PipelineConfig
from georadio.ingest.base_fetcher import FetchError
from georadio.pipeline.prober import StreamProber
from georadio.pipeline.runner import (
    STATUS_EMITTED,
    STATUS_NO_VERIFIED,
    STATUS_TOO_FEW,
    CurationPipeline,
    run_pipeline,
)


class FakeCatalog:
    def __init__(self, stations):
        self.stations = stations

    def fetch_stations(self):
        return list(self.stations)


class FailingCatalog:
    def fetch_stations(self):
        raise FetchError("radio_browser", "All 4 sources failed")


@pytest.fixture
def catalog_stations(make_station):
    stations = []
    stations += [make_station(f"ca-en-{i}", language="english", countrycode="CA", country="Canada")
                 for i in range(30)]
    stations += [make_station(f"ca-fr-{i}", language="french", countrycode="CA", country="Canada")
                 for i in range(10)]
    stations += [make_station(f"br-{i}", language="Brazilian Portuguese", countrycode="BR",
                              country="Brazil") for i in range(4)]
    # Only two German-language stations: below the floor
    stations += [make_station(f"de-{i}", language="german", countrycode="DE", country="Germany")
                 for i in range(2)]
    stations += [make_station(f"de-en-{i}", language="english", countrycode="DE", country="Germany")
                 for i in range(5)]
    # Rescued from UNKNOWN
    stations += [make_station(f"ru-{i}", language="russian", countrycode="", country="Russia")
                 for i in range(3)]
    stations += [make_station("lost", language="english", countrycode="", country="Atlantis")]
    # Polish stations that will all fail verification
    stations += [make_station(f"pl-{i}", language="polish", countrycode="PL", country="Poland")
                 for i in range(3)]
    return stations


@pytest.fixture
def config(tmp_path):
    return PipelineConfig(
        output_path=str(tmp_path / "stations.json"),
        report_path=str(tmp_path / "stations_report.json"),
    )


def _accept_all_but_polish(station):
    return not station.name.startswith("pl-")


class TestCurationPipeline:
    """Tests for the orchestration loop."""

    def test_emitted_countries(self, config, reference, catalog_stations, stub_prober):
        result = CurationPipeline(config, reference, FakeCatalog(catalog_stations),
                                  stub_prober(_accept_all_but_polish)).run()

        assert sorted(result.dataset) == ["Brazil", "Canada", "Russia"]

    def test_at_most_25_per_country(self, config, reference, catalog_stations, stub_prober):
        result = CurationPipeline(config, reference, FakeCatalog(catalog_stations),
                                  stub_prober(lambda s: True)).run()

        for name, stations in result.dataset.items():
            assert len(stations) <= 25
        assert len(result.dataset["Canada"]) == 25

    def test_canada_language_split(self, config, reference, catalog_stations, stub_prober):
        result = CurationPipeline(config, reference, FakeCatalog(catalog_stations),
                                  stub_prober(lambda s: True)).run()

        languages = [s["language"] for s in result.dataset["Canada"]]
        assert languages.count("english") == 23
        assert languages.count("french") == 2

    def test_emitted_countries_had_enough_candidates(self, config, reference, catalog_stations,
                                                     stub_prober):
        result = CurationPipeline(config, reference, FakeCatalog(catalog_stations),
                                  stub_prober(lambda s: True)).run()

        for country in result.report.countries.values():
            if country.status == STATUS_EMITTED:
                assert country.matched >= 3

    def test_country_below_floor_skipped(self, config, reference, catalog_stations, stub_prober):
        prober = stub_prober(lambda s: True)
        result = CurationPipeline(config, reference, FakeCatalog(catalog_stations), prober).run()

        assert "Germany" not in result.dataset
        assert result.report.countries["DE"].status == STATUS_TOO_FEW
        assert result.report.countries["DE"].matched == 2
        assert not any(name.startswith("de-") for name in prober.calls)

    def test_rescued_station_emitted_under_ru(self, config, reference, catalog_stations, stub_prober):
        result = CurationPipeline(config, reference, FakeCatalog(catalog_stations),
                                  stub_prober(lambda s: True)).run()

        assert result.report.rescued == 3
        assert {s["countrycode"] for s in result.dataset["Russia"]} == {"RU"}

    def test_unknown_never_emitted(self, config, reference, catalog_stations, stub_prober):
        prober = stub_prober(lambda s: True)
        result = CurationPipeline(config, reference, FakeCatalog(catalog_stations), prober).run()

        assert "lost" not in prober.calls
        assert "UNKNOWN" not in result.report.countries

    def test_country_with_zero_verified_omitted(self, config, reference, catalog_stations, stub_prober):
        result = CurationPipeline(config, reference, FakeCatalog(catalog_stations),
                                  stub_prober(_accept_all_but_polish)).run()

        assert "Poland" not in result.dataset
        assert result.report.countries["PL"].status == STATUS_NO_VERIFIED
        assert result.report.countries["PL"].probed == 3

    def test_failed_candidates_replaced_from_overflow(self, config, reference, make_station,
                                                      stub_prober):
        stations = [make_station(f"us-{i}", language="english", countrycode="US") for i in range(30)]
        rejected = {"us-0", "us-3"}
        prober = stub_prober(lambda s: s.name not in rejected)

        result = CurationPipeline(config, reference, FakeCatalog(stations), prober).run()

        names = [s["name"] for s in result.dataset["United States of America"]]
        assert len(names) == 25
        assert rejected.isdisjoint(names)
        assert names[-2:] == ["us-25", "us-26"]
        assert len(prober.calls) == 27

    def test_country_scope(self, tmp_path, reference, catalog_stations, stub_prober):
        config = PipelineConfig(output_path=str(tmp_path / "s.json"), report_path=None, country="BR")
        prober = stub_prober(lambda s: True)

        result = CurationPipeline(config, reference, FakeCatalog(catalog_stations), prober).run()

        assert list(result.dataset) == ["Brazil"]
        assert all(name.startswith("br-") for name in prober.calls)

    def test_duplicate_streams_probed_once(self, config, reference, make_station, stub_prober):
        stations = [make_station(f"s{i}", language="portuguese", countrycode="BR") for i in range(3)]
        stations.append(make_station("dupe", language="portuguese", countrycode="BR",
                                     url=stations[0].stream_url + "/"))
        prober = stub_prober(lambda s: True)

        result = CurationPipeline(config, reference, FakeCatalog(stations), prober).run()

        assert "dupe" not in prober.calls
        assert result.report.duplicates_removed == 1

    def test_fetch_failure_propagates(self, config, reference, stub_prober):
        with pytest.raises(FetchError):
            CurationPipeline(config, reference, FailingCatalog(), stub_prober(lambda s: True)).run()

    def test_fetch_failure_writes_nothing(self, config, reference, stub_prober, tmp_path):
        with pytest.raises(FetchError):
            run_pipeline(config, reference, FailingCatalog(), stub_prober(lambda s: True))
        assert not (tmp_path / "stations.json").exists()


class TestIdempotence:
    """Re-running over frozen inputs yields the same bytes."""

    def test_byte_identical_output(self, tmp_path, reference, catalog_stations, stub_prober):
        outputs = []
        for run in range(2):
            config = PipelineConfig(output_path=str(tmp_path / f"run{run}.json"), report_path=None)
            run_pipeline(config, reference, FakeCatalog(catalog_stations),
                         stub_prober(_accept_all_but_polish))
            outputs.append((tmp_path / f"run{run}.json").read_bytes())

        assert outputs[0] == outputs[1]

    def test_report_written(self, config, reference, catalog_stations, stub_prober):
        run_pipeline(config, reference, FakeCatalog(catalog_stations), stub_prober(lambda s: True))

        with open(config.report_path) as f:
            report = json.load(f)
        assert report["stations_fetched"] == len(catalog_stations)
        assert report["summary"]["countries_emitted"] == 4


class TestProbeRejectionScenario:
    """A 403 without CORS headers is rejected and the next candidate is tried."""

    def test_403_replaced_by_next_candidate(self, tmp_path, reference, make_station, fake_response):
        stations = [
            make_station("blocked", language="portuguese", countrycode="BR",
                         url="http://blocked.example/live"),
            make_station("open", language="portuguese", countrycode="BR",
                         url="http://open.example/live"),
            make_station("spare", language="portuguese", countrycode="BR",
                         url="http://spare.example/live"),
        ]
        good = {"Access-Control-Allow-Origin": "*", "Content-Type": "audio/mpeg"}

        def head(url, **kwargs):
            return fake_response(403, {}) if "blocked" in url else fake_response(200, good)

        def get(url, **kwargs):
            return fake_response(403, {}) if "blocked" in url else fake_response(200, good)

        session = MagicMock(spec=requests.Session)
        session.head.side_effect = head
        session.get.side_effect = get

        config = PipelineConfig(output_path=str(tmp_path / "s.json"), report_path=None,
                                stations_per_country=2)
        prober = StreamProber(origin=config.probe_origin, timeout=1, session=session)

        result = CurationPipeline(config, reference, FakeCatalog(stations), prober).run()

        names = [s["name"] for s in result.dataset["Brazil"]]
        assert names == ["open", "spare"]
        assert result.dataset["Brazil"][0]["url"] == "https://open.example/live"
        head_urls = [c.args[0] for c in session.head.call_args_list]
        assert head_urls[0] == "https://blocked.example/live"

    def test_malformed_url_does_not_abort_run(self, tmp_path, reference, make_station, fake_response):
        stations = [
            make_station("broken", language="portuguese", countrycode="BR",
                         url="http://" + "a" * 64 + ".example/live"),
            make_station("open", language="portuguese", countrycode="BR",
                         url="http://open.example/live"),
            make_station("spare", language="portuguese", countrycode="BR",
                         url="http://spare.example/live"),
        ]
        good = {"Access-Control-Allow-Origin": "*", "Content-Type": "audio/mpeg"}

        def respond(url, **kwargs):
            if "aaaa" in url:
                raise ValueError("Failed to parse: label empty or too long")
            return fake_response(200, good)

        session = MagicMock(spec=requests.Session)
        session.head.side_effect = respond
        session.get.side_effect = respond

        config = PipelineConfig(output_path=str(tmp_path / "s.json"), report_path=None)
        prober = StreamProber(origin=config.probe_origin, timeout=1, session=session)

        result = CurationPipeline(config, reference, FakeCatalog(stations), prober).run()

        assert [s["name"] for s in result.dataset["Brazil"]] == ["open", "spare"]
        assert result.report.countries["BR"].probed == 3
