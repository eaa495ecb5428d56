"""Subsystem collectors; each turns RouterOS command replies into typed records."""

from ros_exporter.collectors.base import BaseCollector
from ros_exporter.collectors.bgp import BGPCollector
from ros_exporter.collectors.interfaces import InterfaceCollector
from ros_exporter.collectors.ppp import PPPCollector
from ros_exporter.collectors.system import SystemCollector
from ros_exporter.collectors.wireless import WirelessCollector

__all__ = [
    "BaseCollector",
    "BGPCollector",
    "InterfaceCollector",
    "PPPCollector",
    "SystemCollector",
    "WirelessCollector",
]
