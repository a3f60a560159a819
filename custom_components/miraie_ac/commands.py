"""Command encoding for MirAIe control messages.

Every control message carries the same envelope plus exactly one control
field selected by the command kind.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from .const import CONTROL_TOPIC_SUFFIX, DISPLAY_OFF, DISPLAY_ON, POWER_OFF, POWER_ON

if TYPE_CHECKING:
    from collections.abc import Callable

_LOGGER = logging.getLogger(__name__)


class CommandKind(Enum):
    """Kinds of control commands understood by MirAIe devices."""

    POWER = "power"
    MODE = "mode"
    TEMPERATURE = "temperature"
    FAN = "fan"
    SWING = "swing"
    DISPLAY_MODE = "display_mode"


def build_base_payload() -> dict[str, Any]:
    """Return the envelope present on every control message."""
    return {"ki": 1, "cnt": "ios", "sid": "1"}


def _power_field(command: str) -> tuple[str, Any]:
    return "ps", POWER_OFF if command.lower() == POWER_OFF else POWER_ON


def _mode_field(command: str) -> tuple[str, Any]:
    return "acmd", command.lower()


def _temperature_field(command: str) -> tuple[str, Any]:
    return "actmp", command


def _fan_field(command: str) -> tuple[str, Any]:
    return "acfs", command.lower()


def _swing_field(command: str) -> tuple[str, Any]:
    return "acvs", int(command)


def _display_field(command: str) -> tuple[str, Any]:
    return "acdc", DISPLAY_ON if command == DISPLAY_ON else DISPLAY_OFF


_FIELD_BUILDERS: dict[CommandKind, Callable[[str], tuple[str, Any]]] = {
    CommandKind.POWER: _power_field,
    CommandKind.MODE: _mode_field,
    CommandKind.TEMPERATURE: _temperature_field,
    CommandKind.FAN: _fan_field,
    CommandKind.SWING: _swing_field,
    CommandKind.DISPLAY_MODE: _display_field,
}


def control_topic(topic_root: str) -> str:
    """Return the control topic below a device topic root."""
    return f"{topic_root}/{CONTROL_TOPIC_SUFFIX}"


def build_messages(
    topic_root: str,
    command: str,
    kind: CommandKind,
) -> list[tuple[str, dict[str, Any]]]:
    """Build the control messages for a command.

    Args:
        topic_root: Device topic root.
        command: Command value as a string.
        kind: Kind of command.

    Returns:
        List of (topic, payload) pairs; empty for an unknown kind.

    Raises:
        ValueError: If a swing command is not an integer.

    """
    builder = _FIELD_BUILDERS.get(kind)
    if builder is None:
        _LOGGER.debug("Unknown command kind %r, nothing to send", kind)
        return []

    field, value = builder(command)
    payload = build_base_payload()
    payload[field] = value
    return [(control_topic(topic_root), payload)]
