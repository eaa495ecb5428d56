"""Interface traffic collection.

Counters are gathered in three steps: the plain interface list, a detail
listing for comment/MAC/status and a ``stats`` listing for the counters. Only
the first step is mandatory; the other two degrade to partial records.
"""

from __future__ import annotations

from typing import Any

from ros_exporter.collectors.base import BaseCollector
from ros_exporter.exceptions import CommandError, ConnectError
from ros_exporter.models import InterfaceStat
from ros_exporter.parsers import parse_bool, resolve_count

DIALUP_MARKERS = ("ppp", "pppoe")

DETAIL_PROPERTIES = ("name", "comment", "mac-address", "running", "disabled")

# InterfaceStat attribute -> aliases (RouterOS 7 first)
INTERFACE_COUNTER_FIELDS: dict[str, tuple[str, ...]] = {
    "rx_bytes": ("rx-byte", "rx-bytes", "bytes-in"),
    "tx_bytes": ("tx-byte", "tx-bytes", "bytes-out"),
    "rx_packets": ("rx-packet", "rx-packets", "packets-in"),
    "tx_packets": ("tx-packet", "tx-packets", "packets-out"),
    "rx_errors": ("rx-error", "rx-errors", "errors-in"),
    "tx_errors": ("tx-error", "tx-errors", "errors-out"),
    "rx_drops": ("rx-drop", "rx-drops", "drops-in"),
    "tx_drops": ("tx-drop", "tx-drops", "drops-out"),
}


def is_dialup(name: str, iface_type: str) -> bool:
    """PPP/PPPoE interfaces are reported by the PPP collector instead."""
    haystack = f"{name.lower()} {iface_type.lower()}"
    return any(marker in haystack for marker in DIALUP_MARKERS)


class InterfaceCollector(BaseCollector):
    """Collects per-interface status and traffic counters."""

    def collect(self) -> tuple[InterfaceStat, ...]:
        rows = self._run("/interface/print", "interface names/types", proplist=("name", "type"))

        tracked: dict[str, dict[str, Any]] = {}
        for row in rows:
            name = row.get("name", "")
            if not name:
                self._log.warning(f"Skipping interface with empty name: {row}")
                continue
            iface_type = row.get("type", "")
            if is_dialup(name, iface_type):
                self._log.debug(f"Skipping PPP/PPPoE interface: {name} (type: {iface_type})")
                continue
            tracked[name] = {"name": name, "type": iface_type}

        if not tracked:
            self._log.info("No non-PPP/PPPoE interfaces found to monitor traffic for")
            return ()

        self._add_details(tracked)
        self._add_counters(tracked)
        return tuple(InterfaceStat(**fields) for fields in tracked.values())

    def _add_details(self, tracked: dict[str, dict[str, Any]]) -> None:
        try:
            rows = self._session.execute("/interface/print", proplist=DETAIL_PROPERTIES)
        except (CommandError, ConnectError) as e:
            self._degrade(
                e,
                f"Failed to get detailed interface info for {self.address}: {e}. "
                "Proceeding without comment/mac/status.",
            )
            return

        for row in rows:
            fields = tracked.get(row.get("name", ""))
            if fields is None:
                continue
            fields["comment"] = row.get("comment", "")
            fields["mac_address"] = row.get("mac-address", "")
            fields["running"] = parse_bool(row.get("running", ""))
            fields["disabled"] = parse_bool(row.get("disabled", ""))

    def _add_counters(self, tracked: dict[str, dict[str, Any]]) -> None:
        try:
            rows = self._session.execute("/interface/print", stats="")
        except (CommandError, ConnectError) as e:
            self._degrade(
                e,
                f"Failed to get interface traffic counters for {self.address}: {e}. "
                "Returning interface info without traffic counters.",
            )
            return

        if not rows:
            self._log.warning(f"Received empty interface stats reply from {self.address}")
            return

        self._log.debug(f"Sample stats fields for {rows[0].get('name')}: {sorted(rows[0])}")
        try:
            for row in rows:
                name = row.get("name", "")
                fields = tracked.get(name)
                if fields is None:
                    self._log.debug(f"Ignoring stats for untracked interface '{name}'")
                    continue
                for attribute, aliases in INTERFACE_COUNTER_FIELDS.items():
                    fields[attribute] = resolve_count(row, aliases, context=f"interface '{name}'")
        except Exception as e:
            # keep whatever was merged so far
            self._log.opt(exception=e).error(
                f"Unexpected error while processing interface stats for {self.address}: {e}"
            )
            self.degradations.append(e)
