"""Tests for BGP peer collection and the command-path fallback."""

from __future__ import annotations

from datetime import timedelta

import pytest

from ros_exporter.collectors.bgp import BGPCollector
from ros_exporter.exceptions import CollectionError, CommandError, CommandTimeoutError, FeatureUnsupportedError

V7 = "/routing/bgp/session/print"
V6 = "/routing/bgp/peer/print"


class TestCommandFallback:
    """Test newest-first command selection."""

    def test_v7_answers(self, mock_session, routeros_v7):
        peers = BGPCollector(mock_session).collect()

        assert [p.name for p in peers] == ["upstream-1"]
        assert routeros_v7.commands() == [V7]

    def test_legacy_attempted_exactly_once(self, mock_session, reply_book):
        """An unrecognized v7 command falls back to the v6 path once."""
        reply_book.add(V6, [{"name": "peer1", "remote-address": "198.51.100.1", "state": "established"}])

        peers = BGPCollector(mock_session).collect()

        assert [p.name for p in peers] == ["peer1"]
        assert reply_book.commands() == [V7, V6]

    def test_routeros6_peer_menu(self, mock_session, reply_book):
        """RouterOS 6 answers only under /routing/bgp/peer."""
        reply_book.add(V7, FeatureUnsupportedError("no such command prefix", command=V7))
        reply_book.add("/routing/bgp/peer/print", [{"name": "peer1", "remote-as": "64500", "state": "established"}])
        collector = BGPCollector(mock_session)

        peers = collector.collect()

        assert [(p.name, p.remote_as, p.established) for p in peers] == [("peer1", "64500", True)]
        assert reply_book.commands() == ["/routing/bgp/session/print", "/routing/bgp/peer/print"]
        assert collector.degradations == []

    def test_both_unsupported(self, mock_session, reply_book):
        """No routing package: empty set, not an error."""
        collector = BGPCollector(mock_session)

        assert collector.collect() == ()
        assert reply_book.commands() == [V7, V6]
        assert collector.degradations == []

    def test_v7_failure_stops(self, mock_session, reply_book):
        """A non-"unsupported" failure is reported with the command, without trying v6."""
        reply_book.add(V7, CommandTimeoutError("command timeout after 2.0s", command=V7))

        with pytest.raises(CollectionError, match=V7):
            BGPCollector(mock_session).collect()
        assert reply_book.commands() == [V7]

    def test_legacy_failure(self, mock_session, reply_book):
        reply_book.add(V6, CommandError("failure", command=V6))

        with pytest.raises(CollectionError, match=V6):
            BGPCollector(mock_session).collect()


class TestPeerRecords:
    """Test per-peer field resolution."""

    def test_v7_dotted_fields(self, mock_session, routeros_v7):
        (peer,) = BGPCollector(mock_session).collect()

        assert peer.remote_address == "203.0.113.1"
        assert peer.remote_as == "64500"
        assert peer.local_address == "203.0.113.2"
        assert peer.local_role == "ebgp"
        assert peer.prefix_count == 950000
        assert peer.uptime == timedelta(days=1, hours=2)
        assert peer.disabled is False

    def test_state_from_established_flag(self, mock_session, routeros_v7):
        """v7 sessions carry no state field; the established flag stands in."""
        (peer,) = BGPCollector(mock_session).collect()

        assert peer.state == "established"
        assert peer.established is True

    def test_v6_fields(self, mock_session, reply_book):
        reply_book.add(
            V6,
            [
                {
                    "name": "peer1",
                    "instance": "default",
                    "remote-address": "198.51.100.1",
                    "remote-as": "65001",
                    "state": "active",
                    "established-for": "",
                    "uptime": "",
                    "prefix-count": "12",
                    "updates-sent": "100",
                    "updates-received": "200",
                    "withdraws-sent": "3",
                    "withdraws-received": "4",
                    "disabled": "true",
                }
            ],
        )

        (peer,) = BGPCollector(mock_session).collect()

        assert peer.instance == "default"
        assert peer.state == "active"
        assert peer.established is False
        assert peer.uptime == timedelta()
        assert (peer.updates_sent, peer.updates_received) == (100, 200)
        assert (peer.withdraws_sent, peer.withdraws_received) == (3, 4)
        assert peer.disabled is True

    def test_uptime_falls_back_to_established_for(self, mock_session, reply_book):
        reply_book.add(V6, [{"name": "peer1", "uptime": "", "established-for": "5m30s"}])

        (peer,) = BGPCollector(mock_session).collect()

        assert peer.uptime == timedelta(minutes=5, seconds=30)

    def test_bad_uptime_is_zero(self, mock_session, reply_book):
        reply_book.add(V6, [{"name": "peer1", "uptime": "n/a", "prefix-count": "lots"}])

        (peer,) = BGPCollector(mock_session).collect()

        assert peer.uptime == timedelta()
        assert peer.prefix_count == 0

    def test_unnamed_peer_skipped(self, mock_session, reply_book):
        reply_book.add(V7, [{"remote.address": "192.0.2.9"}, {"name": "ok"}])

        assert [p.name for p in BGPCollector(mock_session).collect()] == ["ok"]
