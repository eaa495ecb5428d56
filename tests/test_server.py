"""Tests for the HTTP telemetry endpoint."""

from __future__ import annotations

import threading
import urllib.error
import urllib.request
from unittest.mock import MagicMock

import pytest

from ros_exporter.models import ScrapeResult
from ros_exporter.server import ScrapeRequest, landing_page, make_server, query_flag


class TestScrapeRequest:
    """Test query-string decoding."""

    def test_defaults(self):
        request = ScrapeRequest.from_query("target=192.0.2.1")

        assert request.target.address == "192.0.2.1"
        assert request.target.username == "prometheus"
        assert request.target.password == ""
        assert request.target.port is None
        assert (request.collect_bgp, request.collect_ppp, request.collect_wireless) == (False, False, False)

    def test_all_parameters(self):
        request = ScrapeRequest.from_query(
            "target=router1&user=mon&password=p%40ss&port=8729&collect_bgp=true&collect_ppp=1&collect_wireless=T",
            timeout=3.0,
        )

        assert request.target.username == "mon"
        assert request.target.password == "p@ss"
        assert request.target.port == 8729
        assert request.target.timeout == 3.0
        assert (request.collect_bgp, request.collect_ppp, request.collect_wireless) == (True, True, True)

    def test_configured_default_username(self):
        request = ScrapeRequest.from_query("target=router1&user=", default_username="exporter")
        assert request.target.username == "exporter"

    @pytest.mark.parametrize("query", ["", "target=", "user=admin", "target=%20"])
    def test_missing_target(self, query):
        with pytest.raises(ValueError, match="target"):
            ScrapeRequest.from_query(query)

    @pytest.mark.parametrize("port", ["abc", "0", "70000"])
    def test_bad_port(self, port):
        with pytest.raises(ValueError):
            ScrapeRequest.from_query(f"target=router1&port={port}")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("1", True), ("yes", True), ("TRUE", True), ("0", False), ("", False), ("nope", False)],
    )
    def test_query_flag(self, value, expected):
        assert query_flag(value) is expected


class TestLandingPage:
    def test_links_telemetry_path(self):
        page = landing_page("/probe").decode("utf-8")
        assert "<a href='/probe'>Metrics</a>" in page


@pytest.fixture()
def running_server():
    """Exporter on an ephemeral localhost port with a mocked scraper factory."""
    scraper = MagicMock()
    scraper.scrape.return_value = ScrapeResult(address="192.0.2.1", up=True, duration_seconds=0.1)
    factory = MagicMock(return_value=scraper)

    server = make_server(listen_address="127.0.0.1:0", scrape_timeout=4.0, scraper_factory=factory)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base_url = f"http://127.0.0.1:{server.server_address[1]}"
    try:
        yield base_url, factory
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def _get(url):
    try:
        with urllib.request.urlopen(url, timeout=5) as response:
            return response.status, response.headers.get("Content-Type"), response.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        return e.code, e.headers.get("Content-Type"), e.read().decode("utf-8")


class TestExporterHandler:
    """Test request routing through a real server socket."""

    def test_metrics(self, running_server):
        base_url, factory = running_server

        status, content_type, body = _get(f"{base_url}/metrics?target=192.0.2.1&collect_ppp=true")

        assert status == 200
        assert content_type.startswith("text/plain")
        assert "mikrotik_up 1.0" in body
        target = factory.call_args.args[0]
        assert target.address == "192.0.2.1"
        assert target.timeout == 4.0
        assert factory.call_args.kwargs == {"collect_bgp": False, "collect_ppp": True, "collect_wireless": False}

    def test_missing_target(self, running_server):
        base_url, factory = running_server

        status, _, body = _get(f"{base_url}/metrics")

        assert status == 400
        assert "'target' parameter is missing" in body
        factory.assert_not_called()

    def test_landing_page(self, running_server):
        base_url, _ = running_server

        status, content_type, body = _get(f"{base_url}/")

        assert status == 200
        assert content_type.startswith("text/html")
        assert "MikroTik Exporter" in body

    def test_unknown_path(self, running_server):
        base_url, _ = running_server

        status, _, _ = _get(f"{base_url}/favicon.ico")

        assert status == 404


class TestMakeServer:
    def test_listen_address_needs_port(self):
        with pytest.raises(ValueError, match="no port"):
            make_server(listen_address="127.0.0.1")
