"""Data models for devices, the registry and the status table."""

from .device import Device
from .registry import DeviceRegistry, StatusTable, resolve_slaves, resolve_topology
