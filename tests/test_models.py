"""Tests for target and record models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ros_exporter.models import (
    InterfaceStat,
    RoutingPeerSession,
    ScrapeResult,
    SystemResource,
    Target,
    WirelessClientSession,
)


class TestTarget:
    def test_defaults(self):
        target = Target(address="192.0.2.1")

        assert target.username == "prometheus"
        assert target.password == ""
        assert target.port is None
        assert target.timeout == 10.0

    def test_empty_address_rejected(self):
        with pytest.raises(ValidationError):
            Target(address="")

    @pytest.mark.parametrize("port", [0, -1, 65536])
    def test_port_range(self, port):
        with pytest.raises(ValidationError):
            Target(address="192.0.2.1", port=port)

    def test_timeout_positive(self):
        with pytest.raises(ValidationError):
            Target(address="192.0.2.1", timeout=0)

    def test_frozen(self):
        target = Target(address="192.0.2.1")
        with pytest.raises(ValidationError):
            target.address = "192.0.2.2"


class TestRecords:
    """Test record defaults and derived values."""

    def test_used_values_never_negative(self):
        res = SystemResource(free_memory=10, total_memory=5, free_storage=3, total_storage=1)
        assert res.used_memory == 0
        assert res.used_storage == 0

    def test_interface_requires_name(self):
        with pytest.raises(ValidationError):
            InterfaceStat()

    def test_interface_zero_counters(self):
        iface = InterfaceStat(name="ether1")
        assert (iface.rx_bytes, iface.tx_bytes, iface.rx_drops, iface.tx_errors) == (0, 0, 0, 0)
        assert iface.running is False

    def test_peer_established(self):
        assert RoutingPeerSession(name="p", state="established").established is True
        assert RoutingPeerSession(name="p", state="idle").established is False

    def test_client_requires_mac(self):
        with pytest.raises(ValidationError):
            WirelessClientSession(interface_name="wlan1")

    def test_records_frozen(self):
        iface = InterfaceStat(name="ether1")
        with pytest.raises(ValidationError):
            iface.rx_bytes = 5


class TestScrapeResult:
    def test_slots_start_absent(self):
        result = ScrapeResult(address="192.0.2.1")

        assert result.up is False
        assert result.had_error is False
        assert result.interfaces is None
        assert result.bgp_peers is None

    def test_empty_vs_absent(self):
        result = ScrapeResult(interfaces=())
        assert result.interfaces == ()
        assert result.ppp_sessions is None
