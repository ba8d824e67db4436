"""Device model."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..protocol.constants import MASTER_TYPES, DeviceType


@dataclass
class Device:
    """A network participant known to the hub."""

    address: int
    device_type: DeviceType
    name: str
    serial: int = 0
    slaves: list[str] = field(default_factory=list)

    @property
    def is_master(self) -> bool:
        return self.device_type in MASTER_TYPES

    def observe_serial(self, serial: int) -> None:
        """Raise the recorded serial to ``serial`` if it is higher."""
        if serial > self.serial:
            self.serial = serial

    def next_serial(self) -> int:
        """Advance and return the serial for the next packet this device sends."""
        self.serial += 1
        return self.serial

    def to_dict(self) -> dict:
        return {
            "address": f"0x{self.address:04X}",
            "type": self.device_type.name,
            "name": self.name,
            "serial": self.serial,
            "slaves": list(self.slaves),
        }

    def __repr__(self) -> str:
        return (
            f"Device({self.device_type.name} {self.name!r} "
            f"at 0x{self.address:04X})"
        )
