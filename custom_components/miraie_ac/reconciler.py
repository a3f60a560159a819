"""Device state reconciliation for MirAIe air conditioners.

This module merges the sparse status payloads published by a device into
locally held state, derives the values the platform never transmits (target
mode and running state), tracks whether the device is online, and turns
user requests into control commands.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .commands import CommandKind
from .const import (
    CONNECTION_STATUS_TOPIC_SUFFIX,
    DISPLAY_OFF,
    DISPLAY_ON,
    FAN_SPEED_LEVEL_MAP,
    FAN_SPEEDS,
    KNOWN_MODES,
    MODE_AUTO,
    MODE_COMMAND_MAP,
    MODE_COOL,
    ONLINE_STATUS_TRUE,
    POWER_OFF,
    POWER_ON,
    STATUS_TOPIC_SUFFIX,
    SWING_DISABLED_POSITION,
    SWING_ENABLED_POSITION,
    TARGET_MODE_MAP,
)
from .models import (
    MirAIeConnectionStatus,
    MirAIeDeviceState,
    MirAIeDeviceStatus,
    RunningState,
    TargetMode,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from .broker import MirAIeBroker
    from .models import MirAIeDevice

_LOGGER = logging.getLogger(__name__)


class MirAIeDeviceOfflineError(Exception):
    """Exception raised when a command targets a device that is offline."""


def _optional_str(value: Any) -> str | None:  # noqa: ANN401
    return None if value is None else str(value)


def decode_device_status(payload: dict[str, Any]) -> MirAIeDeviceStatus:
    """Decode a status payload; fields missing from the payload stay None."""
    vertical_swing = payload.get("acvs")
    return MirAIeDeviceStatus(
        power=_optional_str(payload.get("ps")),
        room_temperature=_optional_str(payload.get("rmtmp")),
        target_temperature=_optional_str(payload.get("actmp")),
        mode=_optional_str(payload.get("acmd")),
        fan_speed=_optional_str(payload.get("acfs")),
        vertical_swing=None if vertical_swing is None else int(vertical_swing),
        display=_optional_str(payload.get("acdc")),
        raw=payload,
    )


def decode_connection_status(payload: dict[str, Any]) -> MirAIeConnectionStatus:
    """Decode a connection status payload."""
    return MirAIeConnectionStatus(
        online=payload.get("onlineStatus") == ONLINE_STATUS_TRUE,
        raw=payload,
    )


def parse_temperature(value: str) -> float:
    """Parse a temperature string to the nearest half degree."""
    return round(float(value) * 2) / 2


def derive_target_mode(mode: str | None) -> TargetMode | None:
    """Map a device mode token onto the heater-cooler target mode."""
    if mode is None:
        return None
    return TARGET_MODE_MAP.get(mode)


def derive_running_state(
    mode: str | None,
    current_temperature: float | None,
    target_temperature: float | None,
) -> RunningState:
    """Derive whether the unit is heating, cooling or idle.

    Auto mode heats below and cools above the target, cool mode only cools.
    Every other mode, and any unknown temperature, is idle.
    """
    if current_temperature is None or target_temperature is None:
        return RunningState.IDLE

    if mode == MODE_AUTO:
        if current_temperature < target_temperature:
            return RunningState.HEATING
        if current_temperature > target_temperature:
            return RunningState.COOLING
        return RunningState.IDLE

    if mode == MODE_COOL and current_temperature > target_temperature:
        return RunningState.COOLING

    return RunningState.IDLE


class MirAIeDeviceReconciler:
    """Holds and updates the state of one MirAIe air conditioner.

    The device starts online. A connection status other than ``"true"``
    latches it offline: status updates are ignored and commands fail until
    the device reports itself online again.
    """

    def __init__(
        self,
        broker: MirAIeBroker,
        device: MirAIeDevice,
        display_name: str | None = None,
    ) -> None:
        """Initialize the reconciler.

        Args:
            broker: Broker of the home the device belongs to.
            device: Device information from the inventory.
            display_name: Name used in log messages.

        """
        self._broker = broker
        self._device = device
        self._name = display_name or device.name
        self._state = MirAIeDeviceState()
        self._online = True
        self._listeners: list[Callable[[], None]] = []

    @property
    def device(self) -> MirAIeDevice:
        """Return the device information."""
        return self._device

    @property
    def state(self) -> MirAIeDeviceState:
        """Return the held device state."""
        return self._state

    @property
    def online(self) -> bool:
        """Return False while the device is latched offline."""
        return self._online

    def async_add_listener(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback for state changes.

        Args:
            callback: Function to call after the state or online flag changed.

        Returns:
            A function to unregister the callback.

        """
        self._listeners.append(callback)

        def unregister() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unregister

    def _notify_listeners(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                _LOGGER.exception("Error in state listener of %s", self._name)

    async def async_start(self) -> None:
        """Subscribe to the status and connection status topics."""
        status_topics = [
            f"{topic}/{STATUS_TOPIC_SUFFIX}" for topic in self._device.topics
        ]
        connection_topics = [
            f"{topic}/{CONNECTION_STATUS_TOPIC_SUFFIX}" for topic in self._device.topics
        ]
        await self._broker.async_subscribe(status_topics, self.handle_status)
        await self._broker.async_subscribe(
            connection_topics, self.handle_connection_status
        )

    def handle_connection_status(self, payload: dict[str, Any]) -> None:
        """Apply a connection status payload to the online latch."""
        status = decode_connection_status(payload)
        if status.online:
            _LOGGER.debug("Device %s is online, resuming status updates", self._name)
            self._online = True
        else:
            _LOGGER.info("Device %s is offline, setting status as unavailable", self._name)
            self._online = False
        self._notify_listeners()

    def handle_status(self, payload: dict[str, Any]) -> None:
        """Apply a status payload; never raises."""
        if not self._online:
            _LOGGER.debug(
                "Device %s is offline, skipping device status refresh", self._name
            )
            return

        try:
            self._apply_status(decode_device_status(payload))
        except Exception:
            _LOGGER.error(
                "An error occurred while refreshing the status of %s. "
                "Enable debug logging for more information",
                self._name,
            )
            _LOGGER.debug("Failed to apply status payload %s", payload, exc_info=True)
            return

        self._notify_listeners()

    def _apply_status(self, status: MirAIeDeviceStatus) -> None:
        _LOGGER.debug("Refreshing device %s from %s", self._name, status.raw)
        state = self._state

        # Parse before assigning so a bad field leaves the state untouched
        current_temperature = state.current_temperature
        if status.room_temperature:
            current_temperature = parse_temperature(status.room_temperature)
        target_temperature = state.target_temperature
        if status.target_temperature:
            target_temperature = float(status.target_temperature)

        if status.power == POWER_ON:
            state.active = True
        elif status.power == POWER_OFF:
            state.active = False

        state.current_temperature = current_temperature
        state.target_temperature = target_temperature

        if status.mode is not None:
            if status.mode in KNOWN_MODES:
                state.mode = status.mode
            else:
                _LOGGER.error(
                    "Unknown mode '%s' reported by %s", status.mode, self._name
                )

        if status.fan_speed is not None:
            level = FAN_SPEED_LEVEL_MAP.get(status.fan_speed)
            if level is None:
                _LOGGER.error(
                    "Unknown fan speed '%s' reported by %s",
                    status.fan_speed,
                    self._name,
                )
            else:
                state.fan_level = level

        if status.vertical_swing is not None:
            state.swing_enabled = status.vertical_swing == SWING_ENABLED_POSITION

        if status.display == DISPLAY_ON:
            state.display_on = True
        elif status.display == DISPLAY_OFF:
            state.display_on = False

        state.target_mode = derive_target_mode(state.mode)
        state.running_state = derive_running_state(
            state.mode, state.current_temperature, state.target_temperature
        )

    def _ensure_online(self) -> None:
        if not self._online:
            _LOGGER.info(
                "Device %s is offline, unable to update device state", self._name
            )
            error_msg = f"Device {self._name} is offline"
            raise MirAIeDeviceOfflineError(error_msg)

    async def _async_send(self, command: str, kind: CommandKind) -> None:
        try:
            await self._broker.async_publish(
                self._device.control_topic_root, command, kind
            )
        except Exception:
            _LOGGER.exception(
                "An error occurred while sending a device update to %s", self._name
            )

    async def async_set_active(self, active: bool) -> None:  # noqa: FBT001
        """Turn the device on or off.

        Raises:
            MirAIeDeviceOfflineError: If the device is offline.

        """
        self._ensure_online()
        await self._async_send(POWER_ON if active else POWER_OFF, CommandKind.POWER)

    async def async_set_target_mode(self, target_mode: TargetMode) -> None:
        """Set the operating mode; HEAT is carried out as dry.

        Raises:
            MirAIeDeviceOfflineError: If the device is offline.

        """
        self._ensure_online()
        command = MODE_COMMAND_MAP.get(target_mode)
        if command is None:
            _LOGGER.error("Unknown target mode [%s]", target_mode)
            return
        await self._async_send(command, CommandKind.MODE)

    async def async_set_fan_level(self, level: int) -> None:
        """Set the fan speed from a rotation level between 0 and 4.

        Raises:
            MirAIeDeviceOfflineError: If the device is offline.

        """
        self._ensure_online()
        if level not in range(len(FAN_SPEEDS)):
            _LOGGER.error("Unknown fan level [%s]", level)
            return
        await self._async_send(FAN_SPEEDS[level], CommandKind.FAN)

    async def async_set_swing(self, enabled: bool) -> None:  # noqa: FBT001
        """Enable or disable vertical swing.

        Raises:
            MirAIeDeviceOfflineError: If the device is offline.

        """
        self._ensure_online()
        position = SWING_ENABLED_POSITION if enabled else SWING_DISABLED_POSITION
        await self._async_send(str(position), CommandKind.SWING)

    async def async_set_temperature(self, temperature: float) -> None:
        """Set the target temperature.

        Raises:
            MirAIeDeviceOfflineError: If the device is offline.

        """
        self._ensure_online()
        await self._async_send(f"{float(temperature):.1f}", CommandKind.TEMPERATURE)

    async def async_set_display(self, on: bool) -> None:  # noqa: FBT001
        """Turn the display light on or off.

        Raises:
            MirAIeDeviceOfflineError: If the device is offline.

        """
        self._ensure_online()
        await self._async_send(DISPLAY_ON if on else DISPLAY_OFF, CommandKind.DISPLAY_MODE)
