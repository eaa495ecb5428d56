"""BGP peer session collection across RouterOS 6 and 7."""

from __future__ import annotations

from ros_exporter.collectors.base import BaseCollector, CommandChain
from ros_exporter.models import RoutingPeerSession
from ros_exporter.parsers import resolve, resolve_bool, resolve_count, resolve_duration

# RouterOS 7 lists live sessions under /routing/bgp/session; RouterOS 6 lists peers under /routing/bgp/peer
BGP_PEER_COMMANDS: CommandChain = (
    ("/routing/bgp/session/print", {}),
    ("/routing/bgp/peer/print", {}),
)

BGP_PEER_FIELDS: dict[str, tuple[str, ...]] = {
    "instance": ("instance", "instance-name"),
    "remote_address": ("remote-address", "remote.address"),
    "remote_as": ("remote-as", "remote.as"),
    "local_address": ("local-address", "local.address"),
    "local_role": ("local-role", "local.role"),
    "remote_role": ("remote-role", "remote.role"),
    "state": ("state", "connection-state", "status"),
    "uptime": ("uptime", "established-for"),
    "prefix_count": ("prefix-count", "prefixes", "prefixes-count", "received-prefixes"),
    "updates_sent": ("updates-sent", "sent-updates", "updates-out"),
    "updates_received": ("updates-received", "received-updates", "updates-in"),
    "withdraws_sent": ("withdraws-sent", "sent-withdraws", "withdraws-out"),
    "withdraws_received": ("withdraws-received", "received-withdraws", "withdraws-in"),
    "disabled": ("disabled", "inactive"),
}


class BGPCollector(BaseCollector):
    """Collects BGP peer sessions; an absent routing package yields no peers."""

    def collect(self) -> tuple[RoutingPeerSession, ...]:
        found = self._run_first_supported(BGP_PEER_COMMANDS, "BGP peer details")
        if found is None:
            return ()
        command, rows = found
        self._log.debug(f"Got {len(rows)} BGP peer(s) using {command}")

        peers: list[RoutingPeerSession] = []
        for row in rows:
            self._log.debug(f"BGP peer fields available: {sorted(row)}")
            name = row.get("name", "")
            if not name:
                self._log.warning(f"Skipping BGP peer with empty name: {row}")
                continue
            peers.append(self._to_peer(name, row))
        return tuple(peers)

    @staticmethod
    def _to_peer(name: str, row: dict[str, str]) -> RoutingPeerSession:
        context = f"BGP peer '{name}'"
        f = BGP_PEER_FIELDS

        state = resolve(row, f["state"])
        if not state and resolve_bool(row, ("established",)):
            state = "established"

        return RoutingPeerSession(
            name=name,
            instance=resolve(row, f["instance"]),
            remote_address=resolve(row, f["remote_address"]),
            remote_as=resolve(row, f["remote_as"]),
            local_address=resolve(row, f["local_address"]),
            local_role=resolve(row, f["local_role"]),
            remote_role=resolve(row, f["remote_role"]),
            state=state,
            uptime=resolve_duration(row, f["uptime"], context),
            prefix_count=resolve_count(row, f["prefix_count"], context),
            updates_sent=resolve_count(row, f["updates_sent"], context),
            updates_received=resolve_count(row, f["updates_received"], context),
            withdraws_sent=resolve_count(row, f["withdraws_sent"], context),
            withdraws_received=resolve_count(row, f["withdraws_received"], context),
            disabled=resolve_bool(row, f["disabled"]),
        )
