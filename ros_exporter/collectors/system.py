"""System resource, routerboard identity and health collection."""

from __future__ import annotations

from datetime import timedelta
from functools import partial

from ros_exporter.collectors.base import BaseCollector
from ros_exporter.exceptions import CollectionError, CommandError, FeatureUnsupportedError
from ros_exporter.models import RouterboardIdentity, SystemHealth, SystemResource
from ros_exporter.parsers import parse_bytes, parse_duration, parse_measurement
from ros_exporter.session import Reply

KIB = 1024

# attribute -> (alias list, accepted unit suffixes)
HEALTH_FIELDS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "cpu_temperature": (("cpu-temperature", "temperature"), ("C",)),
    "board_temperature": (("board-temperature", "board-temperature1"), ("C",)),
    "voltage": (("voltage",), ("V",)),
    "current": (("current",), ("A",)),
    "power_consumed": (("power-consumption",), ("W",)),
    "fan_speed": (("fan1-speed", "fan-speed"), ("RPM",)),
}


class SystemCollector(BaseCollector):
    """Collects ``/system/resource``, ``/system/routerboard`` and ``/system/health``."""

    def get_resources(self) -> SystemResource:
        rows = self._run("/system/resource/print", "system resources")
        if not rows:
            raise CollectionError("no system resource data received")
        res = rows[0]

        return SystemResource(
            uptime=self._parse(parse_duration, res, "uptime", timedelta()),
            free_memory=self._parse(parse_bytes, res, "free-memory", 0),
            total_memory=self._parse(parse_bytes, res, "total-memory", 0),
            cpu_load_percent=self._parse(parse_bytes, res, "cpu-load", 0),
            free_storage=self._parse(parse_bytes, res, "free-hdd-space", 0) * KIB,
            total_storage=self._parse(parse_bytes, res, "total-hdd-space", 0) * KIB,
            board_name=res.get("board-name", ""),
            model=res.get("model", ""),
            serial_number=res.get("serial-number", ""),
        )

    def get_routerboard(self) -> RouterboardIdentity:
        rows = self._run("/system/routerboard/print", "routerboard info")
        if not rows:
            raise CollectionError("no routerboard data received")
        rb = rows[0]

        return RouterboardIdentity(
            board_name=rb.get("board-name", ""),
            model=rb.get("model", ""),
            serial_number=rb.get("serial-number", ""),
            firmware_type=rb.get("firmware-type", ""),
            factory_firmware=rb.get("factory-firmware", ""),
            current_firmware=rb.get("current-firmware", ""),
            upgrade_firmware=rb.get("upgrade-firmware", ""),
        )

    def get_health(self) -> SystemHealth | None:
        """Read health sensors; None when the model has none."""
        try:
            rows = self._session.execute("/system/health/print")
        except FeatureUnsupportedError:
            self._log.info(f"/system/health/print not available on {self.address}, health monitoring not supported")
            return None
        except CommandError as e:
            raise CollectionError(f"failed to get system health: {e}") from e

        if not rows:
            self._log.warning(f"No system health data received from {self.address}")
            return None

        fields = self._fold_sensor_rows(rows)
        readings = {
            attribute: self._parse(partial(parse_measurement, units=units), fields, aliases, 0.0)
            for attribute, (aliases, units) in HEALTH_FIELDS.items()
        }

        health = SystemHealth(
            cpu_temperature=readings["cpu_temperature"],
            board_temperature=readings["board_temperature"],
            voltage=readings["voltage"],
            current=readings["current"],
            power_consumed=readings["power_consumed"],
            fan_speed=int(readings["fan_speed"]),
        )
        self._log.debug(f"Parsed health data: {health}")
        return health

    @staticmethod
    def _fold_sensor_rows(rows: Reply) -> dict[str, str]:
        """RouterOS 7 reports one ``name=... value=...`` row per sensor."""
        if any("name" in row and "value" in row for row in rows):
            return {row["name"]: row.get("value", "") for row in rows if row.get("name")}
        return rows[0]

