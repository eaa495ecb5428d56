"""Pydantic models for scrape targets, collected records and scrape results."""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_API_PORT = 8728
DEFAULT_USERNAME = "prometheus"
DEFAULT_TIMEOUT = 10.0


class Target(BaseModel):
    """Connection parameters for one device, built fresh for every scrape."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(min_length=1)
    username: str = DEFAULT_USERNAME
    password: str = ""
    port: Optional[int] = Field(default=None, gt=0, lt=65536)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)


class Record(BaseModel):
    """Base for collected records; immutable once returned by a collector."""

    model_config = ConfigDict(frozen=True)


class SystemResource(Record):
    uptime: timedelta = timedelta()
    free_memory: int = 0
    total_memory: int = 0
    cpu_load_percent: int = 0
    free_storage: int = 0
    total_storage: int = 0
    board_name: str = ""
    model: str = ""
    serial_number: str = ""

    @property
    def used_memory(self) -> int:
        return max(self.total_memory - self.free_memory, 0)

    @property
    def used_storage(self) -> int:
        return max(self.total_storage - self.free_storage, 0)


class RouterboardIdentity(Record):
    board_name: str = ""
    model: str = ""
    serial_number: str = ""
    firmware_type: str = ""
    factory_firmware: str = ""
    current_firmware: str = ""
    upgrade_firmware: str = ""


class SystemHealth(Record):
    """Sensor readings; zero means the sensor is absent on this model."""

    cpu_temperature: float = 0.0
    board_temperature: float = 0.0
    voltage: float = 0.0
    current: float = 0.0
    power_consumed: float = 0.0
    fan_speed: int = 0


class InterfaceStat(Record):
    name: str
    type: str = ""
    comment: str = ""
    mac_address: str = ""
    running: bool = False
    disabled: bool = False
    rx_bytes: int = 0
    tx_bytes: int = 0
    rx_packets: int = 0
    tx_packets: int = 0
    rx_errors: int = 0
    tx_errors: int = 0
    rx_drops: int = 0
    tx_drops: int = 0


class RoutingPeerSession(Record):
    name: str
    instance: str = ""
    remote_address: str = ""
    remote_as: str = ""
    local_address: str = ""
    local_role: str = ""
    remote_role: str = ""
    state: str = ""
    uptime: timedelta = timedelta()
    prefix_count: int = 0
    updates_sent: int = 0
    updates_received: int = 0
    withdraws_sent: int = 0
    withdraws_received: int = 0
    disabled: bool = False

    @property
    def established(self) -> bool:
        return self.state == "established"


class DialupUserSession(Record):
    name: str
    service: str = ""
    caller_id: str = ""
    address: str = ""
    uptime: timedelta = timedelta()
    uptime_text: str = ""
    rx_bytes: int = 0
    tx_bytes: int = 0


class WirelessInterfaceState(Record):
    name: str
    ssid: str = ""
    frequency: int = 0
    signal_strength: int = 0
    tx_rate_bps: float = 0.0
    rx_rate_bps: float = 0.0


class WirelessClientSession(Record):
    interface_name: str = ""
    mac_address: str
    signal_strength: int = 0
    tx_ccq: int = 0
    rx_rate: str = ""
    tx_rate: str = ""
    uptime_text: str = ""


class ScrapeResult(BaseModel):
    """Outcome of one scrape.

    A record-set slot is ``None`` when its collector did not run or failed, and
    an empty tuple when it ran and the device had nothing to report.
    """

    address: str = ""
    up: bool = False
    had_error: bool = False
    duration_seconds: float = 0.0

    system_resource: Optional[SystemResource] = None
    routerboard: Optional[RouterboardIdentity] = None
    health: Optional[SystemHealth] = None
    interfaces: Optional[tuple[InterfaceStat, ...]] = None
    bgp_peers: Optional[tuple[RoutingPeerSession, ...]] = None
    ppp_sessions: Optional[tuple[DialupUserSession, ...]] = None
    wireless_interfaces: Optional[tuple[WirelessInterfaceState, ...]] = None
    wireless_clients: Optional[tuple[WirelessClientSession, ...]] = None
