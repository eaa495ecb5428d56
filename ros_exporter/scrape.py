"""Scrape orchestration: one device, one session, sequential collectors."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger

from ros_exporter.collectors import (
    BaseCollector,
    BGPCollector,
    InterfaceCollector,
    PPPCollector,
    SystemCollector,
    WirelessCollector,
)
from ros_exporter.exceptions import ConnectError, ExporterError, FeatureUnsupportedError
from ros_exporter.models import ScrapeResult, Target
from ros_exporter.session import CommandSession


@dataclass(frozen=True)
class ScrapeStep:
    """One subsystem call and the ``ScrapeResult`` slot it fills."""

    name: str
    slot: str
    collect: Callable[[], Any]
    collector: BaseCollector


class Scraper:
    """Runs one scrape of one target.

    ``up`` reports reachability (the initial connect), ``had_error`` reports
    completeness: it is set when any subsystem call failed or returned a
    degraded result, but not when the device simply lacks a feature.

    Usage::

        result = Scraper(Target(address="192.168.88.1", password="pw"), collect_bgp=True).scrape()
        print(result.up, result.had_error, len(result.interfaces or ()))
    """

    def __init__(
        self,
        target: Target,
        collect_bgp: bool = False,
        collect_ppp: bool = False,
        collect_wireless: bool = False,
        session_factory: Callable[[Target], CommandSession] = CommandSession,
    ):
        self.target = target
        self.collect_bgp = collect_bgp
        self.collect_ppp = collect_ppp
        self.collect_wireless = collect_wireless
        self._session_factory = session_factory
        self._lock = threading.Lock()
        self._log = logger.bind(target=target.address)

    def scrape(self) -> ScrapeResult:
        with self._lock:
            start = time.perf_counter()
            self._log.info(f"Starting scrape for router {self.target.address}")

            result = ScrapeResult(address=self.target.address)
            session = self._session_factory(self.target)
            try:
                self._collect(session, result)
            finally:
                session.close()

            result.duration_seconds = time.perf_counter() - start
            self._log.info(
                f"Scrape finished for router {self.target.address} in {result.duration_seconds:.2f} seconds "
                f"(up={result.up}, error={result.had_error})"
            )
            return result

    def steps(self, session: CommandSession) -> list[ScrapeStep]:
        """The subsystem calls of this scrape, in execution order."""
        system = SystemCollector(session)
        interfaces = InterfaceCollector(session)
        steps = [
            ScrapeStep("system resources", "system_resource", system.get_resources, system),
            ScrapeStep("routerboard info", "routerboard", system.get_routerboard, system),
            ScrapeStep("interface stats", "interfaces", interfaces.collect, interfaces),
            ScrapeStep("system health", "health", system.get_health, system),
        ]
        if self.collect_bgp:
            bgp = BGPCollector(session)
            steps.append(ScrapeStep("BGP stats", "bgp_peers", bgp.collect, bgp))
        if self.collect_ppp:
            ppp = PPPCollector(session)
            steps.append(ScrapeStep("PPP stats", "ppp_sessions", ppp.collect, ppp))
        if self.collect_wireless:
            wireless = WirelessCollector(session)
            steps.append(
                ScrapeStep("wireless interface stats", "wireless_interfaces", wireless.get_interfaces, wireless)
            )
            steps.append(ScrapeStep("wireless client stats", "wireless_clients", wireless.get_clients, wireless))
        return steps

    def _collect(self, session: CommandSession, result: ScrapeResult) -> None:
        try:
            session.connect()
        except ConnectError as e:
            self._log.error(f"Failed to connect to router {self.target.address}: {e}")
            result.had_error = True
            return

        result.up = True
        for step in self.steps(session):
            if not self._run_step(step, result):
                result.had_error = True

    def _run_step(self, step: ScrapeStep, result: ScrapeResult) -> bool:
        """Run one subsystem call; returns False if it failed or came back degraded."""
        degraded_before = len(step.collector.degradations)
        try:
            value = step.collect()
        except FeatureUnsupportedError as e:
            self._log.info(f"{step.name} not supported on {self.target.address}: {e}")
            return True
        except ExporterError as e:
            self._log.error(f"Failed to get {step.name} from {self.target.address}: {e}")
            return False

        setattr(result, step.slot, value)
        if len(step.collector.degradations) > degraded_before:
            self._log.warning(f"{step.name} from {self.target.address} are incomplete")
            return False
        return True
