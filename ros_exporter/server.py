"""Multi-target HTTP endpoint: ``GET /metrics?target=<router>`` scrapes on demand."""

from __future__ import annotations

import html
import http.server
import signal
import threading
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import parse_qs, urlsplit

from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import ValidationError

from ros_exporter.metrics import render
from ros_exporter.models import DEFAULT_TIMEOUT, DEFAULT_USERNAME, Target
from ros_exporter.scrape import Scraper
from ros_exporter.session import split_host_port

DEFAULT_LISTEN_ADDRESS = ":9483"
DEFAULT_TELEMETRY_PATH = "/metrics"

TRUE_VALUES = ("1", "t", "true", "yes")


def query_flag(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


@dataclass(frozen=True)
class ScrapeRequest:
    """Target and collection switches decoded from one telemetry query string."""

    target: Target
    collect_bgp: bool = False
    collect_ppp: bool = False
    collect_wireless: bool = False

    @classmethod
    def from_query(
        cls, query: str, default_username: str = DEFAULT_USERNAME, timeout: float = DEFAULT_TIMEOUT
    ) -> ScrapeRequest:
        """Decode ``target``/``user``/``password``/``port``/``collect_*`` parameters.

        Raises:
            ValueError: If ``target`` is missing or ``port`` is not a valid port.
        """
        params = {key: values[0] for key, values in parse_qs(query, keep_blank_values=True).items()}

        address = params.get("target", "").strip()
        if not address:
            raise ValueError("'target' parameter is missing")

        port_text = params.get("port", "").strip()
        try:
            port = int(port_text) if port_text else None
        except ValueError:
            raise ValueError(f"invalid 'port' parameter: {port_text!r}") from None

        user = params.get("user", "")
        if not user:
            logger.debug(f"Scrape for target {address}: 'user' parameter missing, using default '{default_username}'")

        try:
            target = Target(
                address=address,
                username=user or default_username,
                password=params.get("password", ""),
                port=port,
                timeout=timeout,
            )
        except ValidationError as e:
            raise ValueError(f"invalid scrape parameters: {e.errors()[0]['msg']}") from e

        return cls(
            target=target,
            collect_bgp=query_flag(params.get("collect_bgp", "")),
            collect_ppp=query_flag(params.get("collect_ppp", "")),
            collect_wireless=query_flag(params.get("collect_wireless", "")),
        )


def landing_page(telemetry_path: str) -> bytes:
    path = html.escape(telemetry_path, quote=True)
    return (
        "<html>\n"
        "<head><title>MikroTik Exporter</title></head>\n"
        "<body>\n"
        "<h1>MikroTik Exporter</h1>\n"
        f"<p><a href='{path}'>Metrics</a></p>\n"
        "</body>\n"
        "</html>\n"
    ).encode("utf-8")


class ExporterHandler(http.server.BaseHTTPRequestHandler):
    """HTTP handler serving the landing page and the per-target telemetry endpoint."""

    telemetry_path: str = DEFAULT_TELEMETRY_PATH
    default_username: str = DEFAULT_USERNAME
    scrape_timeout: float = DEFAULT_TIMEOUT
    scraper_factory: Callable[..., Scraper] = Scraper

    def _send(self, status: int, content_type: str, data: bytes) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self) -> None:
        url = urlsplit(self.path)
        if url.path == self.telemetry_path:
            self._serve_metrics(url.query)
        elif url.path in ("/", "/index.html"):
            self._send(200, "text/html; charset=utf-8", landing_page(self.telemetry_path))
        else:
            self._send(404, "text/plain; charset=utf-8", b"404 page not found\n")

    def _serve_metrics(self, query: str) -> None:
        try:
            request = ScrapeRequest.from_query(query, self.default_username, self.scrape_timeout)
        except ValueError as e:
            self._send(400, "text/plain; charset=utf-8", f"{e}\n".encode("utf-8"))
            return

        target = request.target
        logger.info(
            f"Processing scrape request for address: {target.address}, user: {target.username}, "
            f"collect_bgp: {request.collect_bgp}, collect_ppp: {request.collect_ppp}, "
            f"collect_wireless: {request.collect_wireless}"
        )
        scraper = type(self).scraper_factory(
            target,
            collect_bgp=request.collect_bgp,
            collect_ppp=request.collect_ppp,
            collect_wireless=request.collect_wireless,
        )
        result = scraper.scrape()
        self._send(200, CONTENT_TYPE_LATEST, render(result))
        logger.info(f"Finished scrape request for address: {target.address}")

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug(f"{self.address_string()} - {format % args}")


def make_server(
    listen_address: str = DEFAULT_LISTEN_ADDRESS,
    telemetry_path: str = DEFAULT_TELEMETRY_PATH,
    default_username: str = DEFAULT_USERNAME,
    scrape_timeout: float = DEFAULT_TIMEOUT,
    scraper_factory: Callable[..., Scraper] = Scraper,
) -> http.server.ThreadingHTTPServer:
    """Bind a threading server; each request gets its own handler, scraper and session."""
    host, port = split_host_port(listen_address)
    if port is None:
        raise ValueError(f"listen address {listen_address!r} has no port")

    handler = type(
        "ConfiguredExporterHandler",
        (ExporterHandler,),
        {
            "telemetry_path": telemetry_path,
            "default_username": default_username,
            "scrape_timeout": scrape_timeout,
            "scraper_factory": staticmethod(scraper_factory),
        },
    )
    server = http.server.ThreadingHTTPServer((host, port), handler)
    server.daemon_threads = True
    return server


def serve(server: http.server.ThreadingHTTPServer) -> None:
    """Serve until SIGINT/SIGTERM, then stop accepting and close the socket."""

    def _stop(signum: int, _frame: Any) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, shutting down server...")
        # shutdown() blocks until serve_forever() returns, so it must not run on the serving thread
        threading.Thread(target=server.shutdown, daemon=True).start()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    host, port = server.server_address[:2]
    logger.info(f"Listening on {host or '0.0.0.0'}:{port}")
    try:
        server.serve_forever()
    finally:
        server.server_close()
    logger.info("Server gracefully stopped")
