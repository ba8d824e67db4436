"""Device registry, master/slave topology and last-known statuses.

The registry only grows: a device is created by the first discovery
message that names its address and is never replaced by later ones.
"""

from __future__ import annotations

import logging
from typing import Iterator

from ..protocol.constants import DeviceType
from .device import Device

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Known devices, keyed by address, in registration order."""

    def __init__(self) -> None:
        self._devices: dict[int, Device] = {}

    def __contains__(self, address: object) -> bool:
        return address in self._devices

    def __iter__(self) -> Iterator[Device]:
        return iter(list(self._devices.values()))

    def __len__(self) -> int:
        return len(self._devices)

    def get(self, address: int) -> Device | None:
        return self._devices.get(address)

    def find_by_name(self, name: str) -> Device | None:
        """Return the first registered device called ``name``."""
        for device in self._devices.values():
            if device.name == name:
                return device
        return None

    def upsert_device(
        self, address: int, device_type: DeviceType, name: str, serial: int
    ) -> tuple[Device, bool]:
        """Register a device unless its address is already known.

        Returns:
            ``(device, created)``; on a repeat the existing entry is returned
            untouched.
        """
        existing = self._devices.get(address)
        if existing is not None:
            return existing, False

        device = Device(address=address, device_type=device_type, name=name, serial=serial)
        self._devices[address] = device
        logger.debug("Registered %r", device)
        return device, True

    def add_slave_name(self, address: int, name: str) -> None:
        """Append ``name`` to a master's slave list unless already present."""
        device = self._devices[address]
        if name not in device.slaves:
            device.slaves.append(name)


def resolve_slaves(registry: DeviceRegistry, master: Device) -> list[int]:
    """Resolve a master's slave names to the addresses registered now.

    Names with no registered device are skipped.
    """
    addresses: list[int] = []
    for name in master.slaves:
        slave = registry.find_by_name(name)
        if slave is None:
            logger.debug("%r: slave %r is not registered, edge dropped", master, name)
            continue
        addresses.append(slave.address)
    return addresses


def resolve_topology(registry: DeviceRegistry) -> dict[int, list[int]]:
    """Build the master -> slaves graph for every Switch and EnvSensor."""
    return {
        device.address: resolve_slaves(registry, device)
        for device in registry
        if device.is_master
    }


class StatusTable:
    """Last-known single-byte status per device address."""

    def __init__(self) -> None:
        self._values: dict[int, int] = {}

    def __contains__(self, address: object) -> bool:
        return address in self._values

    def get(self, address: int) -> int | None:
        return self._values.get(address)

    def record_status(self, address: int, value: int) -> bool:
        """Store ``value`` and report whether it differs from the previous one."""
        if self._values.get(address) == value:
            return False
        self._values[address] = value
        return True

    def as_dict(self) -> dict[int, int]:
        return dict(self._values)
