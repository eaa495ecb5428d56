"""Wireless interface and registration-table collection.

RouterOS 6 and the legacy 7.x package expose ``/interface/wireless``; newer
RouterOS 7 builds with the wifi package expose ``/interface/wifi`` instead.
Both menus share the print / monitor / registration-table layout.
"""

from __future__ import annotations

from functools import partial

from ros_exporter.collectors.base import BaseCollector
from ros_exporter.exceptions import CommandError, CommandTimeoutError, ConnectError
from ros_exporter.models import WirelessClientSession, WirelessInterfaceState
from ros_exporter.parsers import parse_int, parse_measurement, parse_rate, parse_signal

WIRELESS_MENUS = ("/interface/wireless", "/interface/wifi")

MONITOR_PROPERTIES = ("name", "ssid", "frequency", "signal-strength", "tx-rate", "rx-rate")
REGISTRATION_PROPERTIES = (
    "interface",
    "mac-address",
    "signal-strength",
    "signal",
    "tx-ccq",
    "rx-rate",
    "tx-rate",
    "uptime",
)

SIGNAL_FIELDS = ("signal-strength", "signal")


class WirelessCollector(BaseCollector):
    """Collects wireless interface snapshots and connected clients."""

    def get_interfaces(self) -> tuple[WirelessInterfaceState, ...]:
        chain = [(f"{menu}/print", {"proplist": (".id", "name")}) for menu in WIRELESS_MENUS]
        found = self._run_first_supported(chain, "wireless interface list")
        if found is None:
            return ()
        command, rows = found
        monitor_command = command.rsplit("/", 1)[0] + "/monitor"

        interfaces: list[WirelessInterfaceState] = []
        for row in rows:
            name = row.get("name", "")
            iface_id = row.get(".id", "")
            if not name or not iface_id:
                continue
            state = self._monitor(monitor_command, name, iface_id)
            if state is not None:
                interfaces.append(state)
        return tuple(interfaces)

    def _monitor(self, command: str, name: str, iface_id: str) -> WirelessInterfaceState | None:
        """Single-shot monitor snapshot (``once``) keyed by the internal id."""
        try:
            rows = self._session.execute(command, numbers=iface_id, once="", proplist=MONITOR_PROPERTIES)
        except (CommandTimeoutError, ConnectError) as e:
            self._degrade(e, f"Error monitoring wireless interface {name} ({iface_id}): {e}")
            return None
        except CommandError as e:
            # a disabled or down radio rejects monitor; not a collection failure
            self._log.warning(f"Error monitoring wireless interface {name} ({iface_id}): {e}")
            return None

        if not rows:
            return None
        data = rows[0]

        return WirelessInterfaceState(
            name=name,
            ssid=data.get("ssid", ""),
            frequency=int(self._parse(partial(parse_measurement, units=("MHz",)), data, "frequency", 0.0)),
            signal_strength=self._parse(parse_signal, data, SIGNAL_FIELDS, 0),
            tx_rate_bps=self._parse(parse_rate, data, "tx-rate", 0.0),
            rx_rate_bps=self._parse(parse_rate, data, "rx-rate", 0.0),
        )

    def get_clients(self) -> tuple[WirelessClientSession, ...]:
        chain = [
            (f"{menu}/registration-table/print", {"proplist": REGISTRATION_PROPERTIES}) for menu in WIRELESS_MENUS
        ]
        found = self._run_first_supported(chain, "wireless registration table")
        if found is None:
            return ()
        _, rows = found

        clients: list[WirelessClientSession] = []
        for row in rows:
            mac = row.get("mac-address", "")
            if not mac:
                continue
            clients.append(
                WirelessClientSession(
                    interface_name=row.get("interface", ""),
                    mac_address=mac,
                    signal_strength=self._parse(parse_signal, row, SIGNAL_FIELDS, 0),
                    tx_ccq=self._parse(parse_int, row, "tx-ccq", 0),
                    rx_rate=row.get("rx-rate", ""),
                    tx_rate=row.get("tx-rate", ""),
                    uptime_text=row.get("uptime", ""),
                )
            )
        return tuple(clients)
