"""Active PPP (dial-up) session collection."""

from __future__ import annotations

from ros_exporter.collectors.base import BaseCollector
from ros_exporter.models import DialupUserSession
from ros_exporter.parsers import resolve_count, resolve_duration

PPP_ACTIVE_COMMANDS = (("/ppp/active/print", {}),)

PPP_BYTES_IN = ("bytes-in", "rx-byte")
PPP_BYTES_OUT = ("bytes-out", "tx-byte")


class PPPCollector(BaseCollector):
    """Collects active PPP users; a disabled PPP package yields no sessions."""

    def collect(self) -> tuple[DialupUserSession, ...]:
        found = self._run_first_supported(PPP_ACTIVE_COMMANDS, "active PPP users")
        if found is None:
            return ()
        _, rows = found

        sessions: list[DialupUserSession] = []
        for row in rows:
            name = row.get("name", "")
            if not name:
                self._log.warning(f"Skipping PPP user with empty name: {row}")
                continue

            context = f"PPP user '{name}'"
            sessions.append(
                DialupUserSession(
                    name=name,
                    service=row.get("service", ""),
                    caller_id=row.get("caller-id", ""),
                    address=row.get("address", ""),
                    uptime=resolve_duration(row, ("uptime",), context),
                    uptime_text=row.get("uptime", ""),
                    rx_bytes=resolve_count(row, PPP_BYTES_IN, context),
                    tx_bytes=resolve_count(row, PPP_BYTES_OUT, context),
                )
            )
        return tuple(sessions)
