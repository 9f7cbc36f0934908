"""
Tests for the command line application.
"""
import json
from unittest.mock import patch

import pytest

import main
from collectors.ekg_collector.ekg_collector import EkgCollector
from collectors.process_collector.process_collector import ProcessCollector
from statsd_sync.collector import CompositeSource


def test_parse_collector_spec():
    assert main.parse_collector_spec("process") == ("process", {})
    assert main.parse_collector_spec("EKG:url=http://x:8000/, timeout=2") == (
        "ekg", {"url": "http://x:8000/", "timeout": "2"})


def test_parse_collector_spec_rejects_bad_params():
    with pytest.raises(ValueError):
        main.parse_collector_spec("ekg:url")
    with pytest.raises(ValueError):
        main.parse_collector_spec(":url=x")


def test_discovery_finds_bundled_collectors():
    registry = main.CollectorRegistry()
    registry.discover_collectors()

    assert registry.get_collector_class("ekg") is EkgCollector
    assert registry.get_collector_class("Process") is ProcessCollector
    assert "snapshotsource" not in registry.get_available_collectors()


def test_build_source_instantiates_each_collector():
    main.collector_registry.discover_collectors()

    source = main.build_source(["process:namespace=me", "ekgcollector:url=http://x:1/"])

    assert isinstance(source, CompositeSource)
    assert [type(s) for s in source.sources] == [ProcessCollector, EkgCollector]
    assert source.sources[0].namespace == "me"


def test_unknown_collector_type():
    with pytest.raises(ValueError, match="Collector type not found"):
        main.instantiate_collector("nope", {})


def test_config_file_fills_unset_options(tmp_path):
    config_file = tmp_path / "statsd.json"
    config_file.write_text(json.dumps({
        "collectors": ["process"],
        "host": "statsd.internal",
        "flush-interval": 250,
        "prefix": "svc",
    }))

    args = main.parse_args(["--config-file", str(config_file), "--prefix", "cli"])
    options = main.options_from_args(args)

    assert args.collectors == ["process"]
    assert options.host == "statsd.internal"
    assert options.flush_interval == 250
    assert options.prefix == "cli"


def test_collectors_are_required():
    with pytest.raises(SystemExit):
        main.parse_args([])


def test_main_reports_startup_failure():
    with patch("main.setup_logging"), \
            patch("main.fork_statsd", side_effect=OSError("unsupported address: nowhere")):
        assert main.main(["--collectors", "process", "--log-level", "ERROR"]) == 1


def test_main_runs_until_loop_fails(udp_server):
    with patch("main.setup_logging"), patch("main.time.sleep"):
        with patch("collectors.process_collector.process_collector.ProcessCollector.sample",
                   side_effect=RuntimeError("boom")):
            code = main.main(["--collectors", "process", "--host", udp_server.host,
                              "--port", str(udp_server.port), "--flush-interval", "10",
                              "--log-level", "CRITICAL"])

    assert code == 1


def test_main_reports_system_exit_from_collector(udp_server):
    with patch("main.setup_logging"), patch("main.time.sleep"):
        with patch("collectors.process_collector.process_collector.ProcessCollector.sample",
                   side_effect=SystemExit(2)):
            code = main.main(["--collectors", "process", "--host", udp_server.host,
                              "--port", str(udp_server.port), "--flush-interval", "10",
                              "--log-level", "CRITICAL"])

    assert code == 1
