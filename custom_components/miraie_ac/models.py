"""Data models for MirAIe AC integration."""

import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

_ACCESSORY_NAMESPACE = uuid.UUID("5b4f0a0e-8f0b-4d8e-9a63-6d6972616965")


class TargetMode(StrEnum):
    """Target operating mode in the heater-cooler vocabulary."""

    AUTO = "auto"
    COOL = "cool"
    HEAT = "heat"


class RunningState(StrEnum):
    """Running state derived locally from room and target temperature."""

    IDLE = "idle"
    HEATING = "heating"
    COOLING = "cooling"


@dataclass(frozen=True, slots=True)
class MirAIeDevice:
    """Represents an air conditioner registered on the MirAIe platform.

    Attributes:
        device_id: Stable platform-wide device identifier.
        name: Human-readable device name.
        topics: MQTT topic roots; the first one is the control root.

    """

    device_id: str
    name: str
    topics: tuple[str, ...]

    @property
    def control_topic_root(self) -> str:
        """Return the topic root used for outbound commands."""
        return self.topics[0]


@dataclass(frozen=True, slots=True)
class MirAIeSpace:
    """Represents a room (space) inside a MirAIe home."""

    space_id: str
    name: str
    devices: tuple[MirAIeDevice, ...]


@dataclass(frozen=True, slots=True)
class MirAIeHome:
    """Represents a home registered with the MirAIe account."""

    home_id: str
    name: str
    spaces: tuple[MirAIeSpace, ...]

    @property
    def devices(self) -> list[tuple[MirAIeSpace, MirAIeDevice]]:
        """Return every device of the home together with its space."""
        return [(space, device) for space in self.spaces for device in space.devices]


@dataclass(frozen=True, slots=True)
class MirAIeDeviceStatus:
    """A status update as published by the device; every field is optional."""

    power: str | None = None
    room_temperature: str | None = None
    target_temperature: str | None = None
    mode: str | None = None
    fan_speed: str | None = None
    vertical_swing: int | None = None
    display: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MirAIeConnectionStatus:
    """A connection status update for a device."""

    online: bool
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class MirAIeDeviceState:
    """Locally held state of one air conditioner."""

    active: bool | None = None
    current_temperature: float | None = None
    target_temperature: float | None = None
    mode: str | None = None  # last recognised acmd token
    fan_level: int | None = None
    swing_enabled: bool | None = None
    display_on: bool | None = None
    target_mode: TargetMode | None = None
    running_state: RunningState = RunningState.IDLE


def accessory_uid(device_id: str) -> str:
    """Return the deterministic accessory identifier for a device id."""
    return str(uuid.uuid5(_ACCESSORY_NAMESPACE, device_id))
