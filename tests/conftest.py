"""Shared fixtures for the ros_exporter test suite."""

from __future__ import annotations

from functools import partial
from typing import Callable
from unittest.mock import MagicMock

import pytest

from ros_exporter.exceptions import FeatureUnsupportedError
from ros_exporter.models import Target
from ros_exporter.session import CommandSession

# ── canned RouterOS replies ───────────────────────────────────────────


class ReplyBook:
    """Stand-in for ``CommandSession.execute`` answering from canned replies.

    Each command maps to one or more entries, optionally guarded by a
    ``when(proplist, args)`` predicate; the first matching entry answers.
    An entry holds a queue of replies (row lists or exceptions) consumed in
    order, the last one answering repeatedly. Unknown commands are rejected
    the way RouterOS rejects a missing menu.
    """

    def __init__(self) -> None:
        self.replies: dict[str, list[tuple[Callable | None, list]]] = {}
        self.calls: list[tuple[str, tuple[str, ...] | None, dict]] = []

    def add(self, command: str, *replies, when: Callable | None = None) -> ReplyBook:
        self.replies.setdefault(command, []).append((when, list(replies)))
        return self

    def replace(self, command: str, *replies) -> ReplyBook:
        """Drop every entry of ``command`` and answer with ``replies`` instead."""
        self.replies[command] = [(None, list(replies))]
        return self

    def commands(self) -> list[str]:
        return [command for command, _, _ in self.calls]

    def __call__(self, command: str, proplist=None, **args):
        proplist = tuple(proplist) if proplist else None
        self.calls.append((command, proplist, args))
        for when, queue in self.replies.get(command, []):
            if when is None or when(proplist, args):
                break
        else:
            raise FeatureUnsupportedError(f"{command}: no such command prefix", command=command)

        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        return [dict(row) for row in reply]


def is_stats_listing(proplist, args) -> bool:
    return "stats" in args


def is_detail_listing(proplist, args) -> bool:
    return bool(proplist) and "comment" in proplist


def add_interface_replies(book: ReplyBook, listing, detail, stats) -> ReplyBook:
    """Register the three ``/interface/print`` variants the interface collector issues."""
    book.add("/interface/print", stats, when=is_stats_listing)
    book.add("/interface/print", detail, when=is_detail_listing)
    book.add("/interface/print", listing)
    return book


SYSTEM_RESOURCE = {
    "uptime": "4w2d3h37m8.5s",
    "free-memory": "200000000",
    "total-memory": "1073741824",
    "cpu-load": "7",
    "free-hdd-space": "1000",
    "total-hdd-space": "16384",
    "board-name": "CCR2004-1G-12S+2XS",
    "serial-number": "HE10ABC123",
}

ROUTERBOARD = {
    "routerboard": "true",
    "board-name": "CCR2004-1G-12S+2XS",
    "model": "CCR2004-1G-12S+2XS",
    "serial-number": "HE10ABC123",
    "firmware-type": "al2",
    "factory-firmware": "7.1",
    "current-firmware": "7.14.3",
    "upgrade-firmware": "7.14.3",
}

HEALTH_V7 = [
    {"name": "cpu-temperature", "value": "47", "type": "C"},
    {"name": "board-temperature1", "value": "39", "type": "C"},
    {"name": "voltage", "value": "24.1", "type": "V"},
    {"name": "fan1-speed", "value": "5400", "type": "RPM"},
]

INTERFACE_LIST = [
    {"name": "ether1", "type": "ether"},
    {"name": "sfp-sfpplus1", "type": "ether"},
    {"name": "pppoe-out1", "type": "pppoe-out"},
]

INTERFACE_DETAIL = [
    {"name": "ether1", "comment": "uplink", "mac-address": "48:A9:8A:00:00:01", "running": "true", "disabled": "false"},
    {"name": "sfp-sfpplus1", "mac-address": "48:A9:8A:00:00:02", "running": "false", "disabled": "true"},
    {"name": "pppoe-out1", "running": "true", "disabled": "false"},
]

INTERFACE_STATS = [
    {
        "name": "ether1",
        "rx-byte": "1000",
        "tx-byte": "2000",
        "rx-packet": "10",
        "tx-packet": "20",
        "rx-error": "1",
        "tx-error": "2",
        "rx-drop": "3",
        "tx-drop": "4",
    },
    {"name": "sfp-sfpplus1", "rx-byte": "0", "tx-byte": "0"},
    {"name": "pppoe-out1", "rx-byte": "99", "tx-byte": "99"},
]

BGP_SESSIONS_V7 = [
    {
        "name": "upstream-1",
        "remote.address": "203.0.113.1",
        "remote.as": "64500",
        "local.address": "203.0.113.2",
        "local.role": "ebgp",
        "established": "true",
        "uptime": "1d2h",
        "prefix-count": "950000",
        "disabled": "false",
    },
]

PPP_ACTIVE = [
    {
        "name": "alice",
        "service": "pppoe",
        "caller-id": "AA:BB:CC:00:00:01",
        "address": "10.0.0.10",
        "uptime": "3h5m",
        "bytes-in": "1234",
        "bytes-out": "5678",
    },
]


@pytest.fixture()
def target() -> Target:
    return Target(address="192.0.2.1", username="prometheus", password="secret", timeout=2.0)


@pytest.fixture()
def reply_book() -> ReplyBook:
    """Empty ReplyBook; every command is rejected as unknown until added."""
    return ReplyBook()


@pytest.fixture()
def routeros_v7(reply_book) -> ReplyBook:
    """ReplyBook answering like a RouterOS 7 router with BGP and PPP but no radios."""
    reply_book.add("/system/resource/print", [SYSTEM_RESOURCE])
    reply_book.add("/system/routerboard/print", [ROUTERBOARD])
    add_interface_replies(reply_book, INTERFACE_LIST, INTERFACE_DETAIL, INTERFACE_STATS)
    reply_book.add("/system/health/print", HEALTH_V7)
    reply_book.add("/routing/bgp/session/print", BGP_SESSIONS_V7)
    reply_book.add("/ppp/active/print", PPP_ACTIVE)
    return reply_book


@pytest.fixture()
def mock_session(target, reply_book):
    """MagicMock of CommandSession whose execute() answers from ``reply_book``."""
    session = MagicMock(spec=CommandSession)
    session.target = target
    session.execute.side_effect = reply_book
    return session


@pytest.fixture()
def session_factory(mock_session):
    """Factory for Scraper(session_factory=...) handing out ``mock_session``."""
    factory = MagicMock(return_value=mock_session)
    return factory


@pytest.fixture()
def add_interfaces(reply_book):
    """``add_interfaces(listing, detail, stats)`` registers interface replies on ``reply_book``."""
    return partial(add_interface_replies, reply_book)
