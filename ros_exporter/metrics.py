"""Prometheus exposition of one :class:`~ros_exporter.models.ScrapeResult`.

The metric schema is declared once in :data:`METRICS`; :class:`ScrapeCollector`
only maps records onto it. Every request renders through a fresh registry, so
nothing is shared between scrapes of different targets.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from ros_exporter.models import ScrapeResult

NAMESPACE = "mikrotik"


class MetricKind(str, Enum):
    GAUGE = "gauge"
    COUNTER = "counter"


@dataclass(frozen=True)
class MetricSpec:
    """Name, help text, type and label names of one metric family."""

    name: str
    documentation: str
    kind: MetricKind = MetricKind.GAUGE
    labels: tuple[str, ...] = ()

    def family(self) -> GaugeMetricFamily | CounterMetricFamily:
        if self.kind is MetricKind.COUNTER:
            return CounterMetricFamily(self.name, self.documentation, labels=self.labels)
        return GaugeMetricFamily(self.name, self.documentation, labels=self.labels)


def _spec(
    subsystem: str,
    name: str,
    documentation: str,
    kind: MetricKind = MetricKind.GAUGE,
    labels: tuple[str, ...] = (),
) -> MetricSpec:
    parts = [NAMESPACE, subsystem, name] if subsystem else [NAMESPACE, name]
    return MetricSpec("_".join(parts), documentation, kind, labels)


_COUNTER = MetricKind.COUNTER
_IFACE = ("name",)
_PEER = ("name",)
_CLIENT = ("interface", "mac_address")

METRICS: dict[str, MetricSpec] = {
    # scrape status
    "up": _spec("", "up", "Was the last scrape of the MikroTik router successful."),
    "scrape_duration": _spec("", "scrape_duration_seconds", "Duration of the last scrape."),
    "last_scrape_error": _spec(
        "", "last_scrape_error", "Whether the last scrape of metrics resulted in an error (1 for error, 0 for success)."
    ),
    # system
    "cpu_load": _spec("system", "cpu_load_percent", "Current CPU load percentage."),
    "memory_usage": _spec("system", "memory_usage_bytes", "Currently used memory in bytes."),
    "memory_total": _spec("system", "memory_total_bytes", "Total available memory in bytes."),
    "uptime": _spec("system", "uptime_seconds", "System uptime in seconds."),
    "storage_total": _spec("system", "storage_total_bytes", "Total system storage (HDD) size in bytes."),
    "storage_free": _spec("system", "storage_free_bytes", "Free system storage (HDD) space in bytes."),
    "storage_used": _spec("system", "storage_used_bytes", "Used system storage (HDD) space in bytes."),
    "system_info": _spec(
        "system",
        "info",
        "Non-numeric information about the router board.",
        labels=(
            "board_name",
            "model",
            "serial_number",
            "firmware_type",
            "factory_firmware",
            "current_firmware",
            "upgrade_firmware",
        ),
    ),
    # interfaces
    "interface_info": _spec(
        "interface",
        "info",
        "Interface information (1 = running).",
        labels=("name", "type", "comment", "mac_address"),
    ),
    "interface_rx_bytes": _spec(
        "interface", "receive_bytes_total", "Total number of bytes received.", _COUNTER, _IFACE
    ),
    "interface_tx_bytes": _spec(
        "interface", "transmit_bytes_total", "Total number of bytes transmitted.", _COUNTER, _IFACE
    ),
    "interface_rx_packets": _spec(
        "interface", "receive_packets_total", "Total number of packets received.", _COUNTER, _IFACE
    ),
    "interface_tx_packets": _spec(
        "interface", "transmit_packets_total", "Total number of packets transmitted.", _COUNTER, _IFACE
    ),
    "interface_rx_errors": _spec(
        "interface", "receive_errors_total", "Total number of receive errors.", _COUNTER, _IFACE
    ),
    "interface_tx_errors": _spec(
        "interface", "transmit_errors_total", "Total number of transmit errors.", _COUNTER, _IFACE
    ),
    "interface_rx_drops": _spec(
        "interface", "receive_drops_total", "Total number of received packets dropped.", _COUNTER, _IFACE
    ),
    "interface_tx_drops": _spec(
        "interface", "transmit_drops_total", "Total number of transmitted packets dropped.", _COUNTER, _IFACE
    ),
    # health
    "temperature": _spec(
        "health", "temperature_celsius", "System temperature in degrees Celsius.", labels=("sensor",)
    ),
    "voltage": _spec("health", "voltage_volts", "System voltage."),
    "current": _spec("health", "current_amperes", "System current draw in Amperes (if available)."),
    "power_consumed": _spec("health", "power_consumed_watts", "System power consumption in Watts (if available)."),
    "fan_speed": _spec("health", "fan_speed_rpm", "Fan speed in RPM (if available).", labels=("fan",)),
    # bgp
    "bgp_info": _spec(
        "bgp_peer",
        "info",
        "BGP peer information.",
        labels=(
            "name",
            "instance",
            "remote_address",
            "remote_as",
            "local_address",
            "local_role",
            "remote_role",
            "disabled",
        ),
    ),
    "bgp_state": _spec(
        "bgp_peer", "state", "BGP peer state (1 = Established, 0 = Other).", labels=("name", "state_text")
    ),
    "bgp_uptime": _spec("bgp_peer", "uptime_seconds", "BGP peer session uptime in seconds.", labels=_PEER),
    "bgp_prefix_count": _spec(
        "bgp_peer", "prefix_count", "Number of prefixes received from the BGP peer.", labels=_PEER
    ),
    "bgp_updates_sent": _spec(
        "bgp_peer", "updates_sent_total", "Total number of BGP update messages sent.", _COUNTER, _PEER
    ),
    "bgp_updates_received": _spec(
        "bgp_peer", "updates_received_total", "Total number of BGP update messages received.", _COUNTER, _PEER
    ),
    "bgp_withdraws_sent": _spec(
        "bgp_peer", "withdraws_sent_total", "Total number of BGP withdraw messages sent.", _COUNTER, _PEER
    ),
    "bgp_withdraws_received": _spec(
        "bgp_peer", "withdraws_received_total", "Total number of BGP withdraw messages received.", _COUNTER, _PEER
    ),
    # ppp
    "ppp_active_count": _spec("ppp", "active_users_count", "Total number of active PPP users."),
    "ppp_user_info": _spec(
        "ppp_user",
        "info",
        "PPP user session information (1 = active).",
        labels=("name", "service", "caller_id", "address", "uptime_text"),
    ),
    "ppp_user_uptime": _spec("ppp_user", "uptime_seconds", "PPP user session uptime in seconds.", labels=("name",)),
    # wireless
    "wireless_info": _spec(
        "wireless_interface", "info", "Wireless interface information.", labels=("name", "ssid", "frequency")
    ),
    "wireless_signal": _spec(
        "wireless_interface",
        "signal_strength_dbm",
        "Wireless interface signal strength in dBm (primarily for station mode).",
        labels=_IFACE,
    ),
    "wireless_tx_rate": _spec(
        "wireless_interface", "transmit_rate_bps", "Wireless interface transmit rate in bits per second.", labels=_IFACE
    ),
    "wireless_rx_rate": _spec(
        "wireless_interface", "receive_rate_bps", "Wireless interface receive rate in bits per second.", labels=_IFACE
    ),
    "wireless_active_clients": _spec(
        "wireless_interface",
        "active_clients_count",
        "Number of active clients connected to a wireless interface (AP mode).",
        labels=("interface",),
    ),
    "wireless_client_info": _spec(
        "wireless_client",
        "info",
        "Connected wireless client information (1 = connected).",
        labels=("interface", "mac_address", "uptime_text"),
    ),
    "wireless_client_signal": _spec(
        "wireless_client", "signal_strength_dbm", "Connected wireless client signal strength in dBm.", labels=_CLIENT
    ),
    "wireless_client_ccq": _spec(
        "wireless_client",
        "transmit_ccq_percent",
        "Connected wireless client transmit CCQ (Client Connection Quality) in percent.",
        labels=_CLIENT,
    ),
}


class ScrapeCollector(Collector):
    """Custom collector yielding the metric families of one scrape result."""

    def __init__(self, result: ScrapeResult):
        self.result = result
        self._families: dict[str, GaugeMetricFamily | CounterMetricFamily] = {}

    def _add(self, key: str, value: float, labels: tuple[str, ...] = ()) -> None:
        family = self._families.get(key)
        if family is None:
            family = self._families[key] = METRICS[key].family()
        family.add_metric(list(labels), value)

    def collect(self) -> Iterator[Metric]:
        self._families = {}
        result = self.result

        self._add("up", 1.0 if result.up else 0.0)
        self._add("scrape_duration", result.duration_seconds)
        self._add("last_scrape_error", 1.0 if result.had_error else 0.0)

        if result.up:
            self._add_system()
            self._add_interfaces()
            self._add_health()
            self._add_bgp()
            self._add_ppp()
            self._add_wireless()

        yield from self._families.values()

    def _add_system(self) -> None:
        res = self.result.system_resource
        if res is None:
            return
        self._add("cpu_load", res.cpu_load_percent)
        self._add("memory_usage", res.used_memory)
        self._add("memory_total", res.total_memory)
        self._add("uptime", res.uptime.total_seconds())
        self._add("storage_total", res.total_storage)
        self._add("storage_free", res.free_storage)
        self._add("storage_used", res.used_storage)

        # routerboard identity wins; resource print carries the basic identity on x86/CHR
        rb = self.result.routerboard
        if rb is not None:
            info = (
                rb.board_name or res.board_name,
                rb.model or res.model,
                rb.serial_number or res.serial_number,
                rb.firmware_type,
                rb.factory_firmware,
                rb.current_firmware,
                rb.upgrade_firmware,
            )
        else:
            info = (res.board_name, res.model, res.serial_number, "", "", "", "")
        self._add("system_info", 1.0, info)

    def _add_interfaces(self) -> None:
        for iface in self.result.interfaces or ():
            name = (iface.name,)
            info = (iface.name, iface.type, iface.comment, iface.mac_address)
            self._add("interface_info", 1.0 if iface.running else 0.0, info)
            self._add("interface_rx_bytes", iface.rx_bytes, name)
            self._add("interface_tx_bytes", iface.tx_bytes, name)
            self._add("interface_rx_packets", iface.rx_packets, name)
            self._add("interface_tx_packets", iface.tx_packets, name)
            self._add("interface_rx_errors", iface.rx_errors, name)
            self._add("interface_tx_errors", iface.tx_errors, name)
            self._add("interface_rx_drops", iface.rx_drops, name)
            self._add("interface_tx_drops", iface.tx_drops, name)

    def _add_health(self) -> None:
        health = self.result.health
        if health is None:
            return
        # zero means the sensor is absent on this model
        if health.cpu_temperature:
            self._add("temperature", health.cpu_temperature, ("cpu",))
        if health.board_temperature and health.board_temperature != health.cpu_temperature:
            self._add("temperature", health.board_temperature, ("board",))
        if health.voltage:
            self._add("voltage", health.voltage)
        if health.current:
            self._add("current", health.current)
        if health.power_consumed:
            self._add("power_consumed", health.power_consumed)
        if health.fan_speed:
            self._add("fan_speed", health.fan_speed, ("fan1",))

    def _add_bgp(self) -> None:
        for peer in self.result.bgp_peers or ():
            name = (peer.name,)
            self._add(
                "bgp_info",
                1.0,
                (
                    peer.name,
                    peer.instance,
                    peer.remote_address,
                    peer.remote_as,
                    peer.local_address,
                    peer.local_role,
                    peer.remote_role,
                    "true" if peer.disabled else "false",
                ),
            )
            self._add("bgp_state", 1.0 if peer.established else 0.0, (peer.name, peer.state))
            self._add("bgp_uptime", peer.uptime.total_seconds(), name)
            self._add("bgp_prefix_count", peer.prefix_count, name)
            self._add("bgp_updates_sent", peer.updates_sent, name)
            self._add("bgp_updates_received", peer.updates_received, name)
            self._add("bgp_withdraws_sent", peer.withdraws_sent, name)
            self._add("bgp_withdraws_received", peer.withdraws_received, name)

    def _add_ppp(self) -> None:
        sessions = self.result.ppp_sessions
        if sessions is None:
            return
        self._add("ppp_active_count", len(sessions))
        for user in sessions:
            self._add("ppp_user_info", 1.0, (user.name, user.service, user.caller_id, user.address, user.uptime_text))
            self._add("ppp_user_uptime", user.uptime.total_seconds(), (user.name,))

    def _add_wireless(self) -> None:
        for iface in self.result.wireless_interfaces or ():
            name = (iface.name,)
            self._add("wireless_info", 1.0, (iface.name, iface.ssid, str(iface.frequency)))
            if iface.signal_strength:
                self._add("wireless_signal", iface.signal_strength, name)
            if iface.tx_rate_bps > 0:
                self._add("wireless_tx_rate", iface.tx_rate_bps, name)
            if iface.rx_rate_bps > 0:
                self._add("wireless_rx_rate", iface.rx_rate_bps, name)

        clients = self.result.wireless_clients or ()
        for client in clients:
            key = (client.interface_name, client.mac_address)
            self._add("wireless_client_info", 1.0, (*key, client.uptime_text))
            if client.signal_strength:
                self._add("wireless_client_signal", client.signal_strength, key)
            if client.tx_ccq:
                self._add("wireless_client_ccq", client.tx_ccq, key)

        for interface_name, count in sorted(Counter(c.interface_name for c in clients).items()):
            self._add("wireless_active_clients", count, (interface_name,))


def render(result: ScrapeResult) -> bytes:
    """Prometheus text exposition of ``result``."""
    registry = CollectorRegistry(auto_describe=False)
    registry.register(ScrapeCollector(result))
    return generate_latest(registry)
