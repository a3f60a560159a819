"""Climate entities for MirAIe air conditioners.

This module exposes every discovered MirAIe device as a Home Assistant
climate entity. The entity holds no state of its own: it reads from the
device reconciler and sends user changes through it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.components.climate import (
    ClimateEntity,
    ClimateEntityFeature,
    HVACAction,
    HVACMode,
)
from homeassistant.components.climate.const import SWING_OFF, SWING_ON
from homeassistant.const import ATTR_TEMPERATURE, UnitOfTemperature
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo

from .const import (
    DOMAIN,
    FAN_SPEED_LEVEL_MAP,
    FAN_SPEEDS,
    MANUFACTURER,
    MAX_TARGET_TEMP,
    MIN_TARGET_TEMP,
    MODEL,
    TARGET_TEMP_STEP,
)
from .models import RunningState, TargetMode, accessory_uid
from .reconciler import MirAIeDeviceOfflineError

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import MirAIeDiscoveryCoordinator
    from .reconciler import MirAIeDeviceReconciler

_LOGGER = logging.getLogger(__name__)

HVAC_MODE_TO_TARGET_MODE = {
    HVACMode.AUTO: TargetMode.AUTO,
    HVACMode.COOL: TargetMode.COOL,
    HVACMode.DRY: TargetMode.HEAT,
}
TARGET_MODE_TO_HVAC_MODE = {
    TargetMode.AUTO: HVACMode.AUTO,
    TargetMode.COOL: HVACMode.COOL,
    TargetMode.HEAT: HVACMode.DRY,
}
RUNNING_STATE_TO_HVAC_ACTION = {
    RunningState.IDLE: HVACAction.IDLE,
    RunningState.HEATING: HVACAction.HEATING,
    RunningState.COOLING: HVACAction.COOLING,
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up climate entities for MirAIe devices."""
    coordinator: MirAIeDiscoveryCoordinator = hass.data[DOMAIN][entry.entry_id]

    entities = [
        MirAIeClimateEntity(
            reconciler, coordinator.device_spaces.get(device_id)
        )
        for device_id, reconciler in coordinator.reconcilers.items()
    ]
    async_add_entities(entities)


def build_device_info(device_id: str, name: str, area: str | None) -> DeviceInfo:
    """Return the device registry information for a MirAIe device."""
    return DeviceInfo(
        identifiers={(DOMAIN, device_id)},
        manufacturer=MANUFACTURER,
        model=MODEL,
        name=name,
        suggested_area=area,
    )


class MirAIeClimateEntity(ClimateEntity):
    """Climate entity for a MirAIe air conditioner.

    The MirAIe units cool, dry and run in auto mode. Dry is offered in the
    heat slot of the device vocabulary, so a reported dry or fan mode reads
    back as auto.
    """

    _attr_temperature_unit = UnitOfTemperature.CELSIUS
    _attr_target_temperature_step = TARGET_TEMP_STEP
    _attr_min_temp = MIN_TARGET_TEMP
    _attr_max_temp = MAX_TARGET_TEMP
    _attr_has_entity_name = True
    _attr_name = None
    _attr_should_poll = False
    _attr_hvac_modes = [HVACMode.OFF, HVACMode.AUTO, HVACMode.COOL, HVACMode.DRY]
    _attr_fan_modes = list(FAN_SPEEDS)
    _attr_swing_modes = [SWING_ON, SWING_OFF]
    _attr_supported_features = (
        ClimateEntityFeature.TARGET_TEMPERATURE
        | ClimateEntityFeature.FAN_MODE
        | ClimateEntityFeature.SWING_MODE
        | ClimateEntityFeature.TURN_OFF
        | ClimateEntityFeature.TURN_ON
    )

    def __init__(
        self,
        reconciler: MirAIeDeviceReconciler,
        area: str | None = None,
    ) -> None:
        """Initialize the climate entity.

        Args:
            reconciler: Reconciler holding the state of the device.
            area: Name of the space the device is installed in.

        """
        self._reconciler = reconciler
        device = reconciler.device
        self._attr_unique_id = accessory_uid(device.device_id)
        self._attr_device_info = build_device_info(device.device_id, device.name, area)

    @property
    def available(self) -> bool:
        """Return False while the device reports itself offline."""
        return self._reconciler.online

    @property
    def hvac_mode(self) -> HVACMode | None:
        """Return the current operating mode."""
        state = self._reconciler.state
        if state.active is None:
            return None
        if not state.active:
            return HVACMode.OFF
        if state.target_mode is None:
            return None
        return TARGET_MODE_TO_HVAC_MODE[state.target_mode]

    @property
    def hvac_action(self) -> HVACAction | None:
        """Return what the unit is currently doing."""
        state = self._reconciler.state
        if state.active is None:
            return None
        if not state.active:
            return HVACAction.OFF
        return RUNNING_STATE_TO_HVAC_ACTION[state.running_state]

    @property
    def current_temperature(self) -> float | None:
        """Return the room temperature."""
        return self._reconciler.state.current_temperature

    @property
    def target_temperature(self) -> float | None:
        """Return the target temperature."""
        return self._reconciler.state.target_temperature

    @property
    def fan_mode(self) -> str | None:
        """Return the fan speed."""
        level = self._reconciler.state.fan_level
        return None if level is None else FAN_SPEEDS[level]

    @property
    def swing_mode(self) -> str | None:
        """Return the vertical swing setting."""
        enabled = self._reconciler.state.swing_enabled
        if enabled is None:
            return None
        return SWING_ON if enabled else SWING_OFF

    async def async_added_to_hass(self) -> None:
        """Subscribe to reconciler updates."""
        await super().async_added_to_hass()
        self.async_on_remove(
            self._reconciler.async_add_listener(self.async_write_ha_state)
        )

    async def _async_call(self, request: Awaitable[None]) -> None:
        try:
            await request
        except MirAIeDeviceOfflineError as err:
            raise HomeAssistantError(str(err)) from err

    async def async_set_hvac_mode(self, hvac_mode: HVACMode) -> None:
        """Set the operating mode, powering the unit on or off as needed."""
        if hvac_mode == HVACMode.OFF:
            await self._async_call(self._reconciler.async_set_active(False))
            return

        target_mode = HVAC_MODE_TO_TARGET_MODE.get(hvac_mode)
        if target_mode is None:
            _LOGGER.error("Unsupported HVAC mode %s for %s", hvac_mode, self.entity_id)
            return

        if not self._reconciler.state.active:
            await self._async_call(self._reconciler.async_set_active(True))
        await self._async_call(self._reconciler.async_set_target_mode(target_mode))

    async def async_set_temperature(self, **kwargs: Any) -> None:
        """Set the target temperature."""
        temperature = kwargs.get(ATTR_TEMPERATURE)
        if temperature is None:
            return
        await self._async_call(self._reconciler.async_set_temperature(temperature))

    async def async_set_fan_mode(self, fan_mode: str) -> None:
        """Set the fan speed."""
        level = FAN_SPEED_LEVEL_MAP.get(fan_mode)
        if level is None:
            _LOGGER.error("Unsupported fan mode %s for %s", fan_mode, self.entity_id)
            return
        await self._async_call(self._reconciler.async_set_fan_level(level))

    async def async_set_swing_mode(self, swing_mode: str) -> None:
        """Enable or disable vertical swing."""
        await self._async_call(
            self._reconciler.async_set_swing(swing_mode == SWING_ON)
        )

    async def async_turn_on(self) -> None:
        """Turn the unit on."""
        await self._async_call(self._reconciler.async_set_active(True))

    async def async_turn_off(self) -> None:
        """Turn the unit off."""
        await self._async_call(self._reconciler.async_set_active(False))
