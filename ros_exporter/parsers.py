"""Value parsers for RouterOS-formatted strings and the field-alias resolver.

RouterOS renders most numbers as plain strings, but durations use a compact
``4w2d3h37m8.5s`` notation, rates carry units (``65Mbps-20MHz/1S``) and sensor
readings may carry a trailing unit letter depending on model and version.
Field names also differ between RouterOS 6 and 7, so every collector looks
attributes up through an ordered alias list (newest name first).
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Mapping, Sequence

from loguru import logger

from ros_exporter.exceptions import FormatError

DURATION_UNITS: dict[str, int] = {
    "w": 7 * 24 * 3600,
    "d": 24 * 3600,
    "h": 3600,
    "m": 60,
    "s": 1,
}

_DIGITS = "0123456789"
_UNSIGNED = re.compile(r"^[0-9]+$")
_SIGNED = re.compile(r"^[+-]?[0-9]+$")
_RATE = re.compile(r"^(?P<value>[0-9]+(?:\.[0-9]+)?)(?:(?P<prefix>[kKMG]?)bps)?(?:[-/].*)?$")
_RATE_MULTIPLIERS = {"": 1.0, "k": 1e3, "K": 1e3, "M": 1e6, "G": 1e9}


def parse_duration(text: str) -> timedelta:
    """Parse a RouterOS duration such as ``1w2d3h4m5.5s``.

    Only the seconds group may carry a fractional part.

    Raises:
        FormatError: On empty input, a unit without a value, an unknown unit
            or digits that are not followed by a unit.
    """
    if not text:
        raise FormatError("empty duration string")

    total = timedelta()
    buffer = ""
    for char in text:
        if char in _DIGITS or char == ".":
            buffer += char
            continue

        if not buffer:
            raise FormatError(f"invalid duration format near unit '{char}' in '{text}'")
        if char not in DURATION_UNITS:
            raise FormatError(f"unknown duration unit '{char}' in '{text}'")

        if char == "s":
            try:
                total += timedelta(seconds=float(buffer))
            except ValueError as e:
                raise FormatError(f"could not parse value '{buffer}' in duration '{text}'") from e
        else:
            if not _UNSIGNED.match(buffer):
                raise FormatError(f"could not parse value '{buffer}' in duration '{text}'")
            total += timedelta(seconds=int(buffer) * DURATION_UNITS[char])
        buffer = ""

    if buffer:
        raise FormatError(f"trailing number without unit in duration '{text}'")
    return total


def parse_bytes(text: str) -> int:
    """Parse an unsigned decimal counter."""
    if not text:
        raise FormatError("empty byte string")
    if not _UNSIGNED.match(text):
        raise FormatError(f"could not parse byte value '{text}'")
    return int(text)


def parse_int(text: str) -> int:
    """Parse a signed decimal integer."""
    text = text.strip()
    if not _SIGNED.match(text):
        raise FormatError(f"could not parse integer '{text}'")
    return int(text)


def parse_bool(text: str) -> bool:
    """RouterOS booleans: case-insensitive ``true``, anything else is False."""
    return text.lower() == "true"


def parse_signal(text: str) -> int:
    """Parse a signal strength, dropping a ``@rate`` suffix (``-74@6Mbps``)."""
    return parse_int(text.split("@", 1)[0])


def parse_rate(text: str) -> float:
    """Parse a link rate to bits per second.

    Accepts plain numbers (already bps) and RouterOS rate strings with a unit
    prefix, where anything after a ``-`` or ``/`` (channel width, streams) is
    ignored: ``65Mbps-20MHz/1S/SGI`` -> ``65e6``.
    """
    match = _RATE.match(text.strip())
    if not match:
        raise FormatError(f"could not parse rate '{text}'")
    return float(match.group("value")) * _RATE_MULTIPLIERS[match.group("prefix") or ""]


def parse_measurement(text: str, units: Sequence[str] = ()) -> float:
    """Parse a sensor reading, stripping one trailing unit from ``units``.

    A suffix that is not in ``units`` makes the value unparseable, so readings
    are never accepted in an unexpected magnitude.
    """
    value = text.strip()
    for unit in sorted(units, key=len, reverse=True):
        if value.endswith(unit):
            value = value[: -len(unit)].strip()
            break
    try:
        return float(value)
    except ValueError as e:
        raise FormatError(f"could not parse measurement '{text}'") from e


# ── field resolution ─────────────────────────────────────────────────


def resolve(record: Mapping[str, str], candidates: Sequence[str]) -> str:
    """Return the first non-empty value among ``candidates``, else ``""``."""
    for field in candidates:
        value = record.get(field)
        if value:
            return value
    return ""


def resolve_count(record: Mapping[str, str], candidates: Sequence[str], context: str = "") -> int:
    """Resolve an unsigned counter; missing or unparseable values are 0."""
    value = resolve(record, candidates)
    if not value:
        return 0
    try:
        return parse_bytes(value)
    except FormatError as e:
        logger.warning(f"Could not parse {candidates[0]} for {context or 'record'}: {e}")
        return 0


def resolve_bool(record: Mapping[str, str], candidates: Sequence[str]) -> bool:
    return parse_bool(resolve(record, candidates))


def resolve_duration(record: Mapping[str, str], candidates: Sequence[str], context: str = "") -> timedelta:
    """Resolve a duration; missing or unparseable values are zero."""
    value = resolve(record, candidates)
    if not value:
        return timedelta()
    try:
        return parse_duration(value)
    except FormatError as e:
        logger.warning(f"Could not parse {candidates[0]} for {context or 'record'}: {e}")
        return timedelta()
