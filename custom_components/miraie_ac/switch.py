"""Display light switches for MirAIe air conditioners."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.switch import SwitchEntity
from homeassistant.const import EntityCategory
from homeassistant.exceptions import HomeAssistantError

from .climate import build_device_info
from .const import DOMAIN
from .models import accessory_uid
from .reconciler import MirAIeDeviceOfflineError

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import MirAIeDiscoveryCoordinator
    from .reconciler import MirAIeDeviceReconciler


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up display switches for MirAIe devices."""
    coordinator: MirAIeDiscoveryCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        MirAIeDisplaySwitch(reconciler, coordinator.device_spaces.get(device_id))
        for device_id, reconciler in coordinator.reconcilers.items()
    )


class MirAIeDisplaySwitch(SwitchEntity):
    """Switch for the display light of a MirAIe air conditioner."""

    _attr_has_entity_name = True
    _attr_name = "Display"
    _attr_should_poll = False
    _attr_entity_category = EntityCategory.CONFIG

    def __init__(
        self, reconciler: MirAIeDeviceReconciler, area: str | None = None
    ) -> None:
        """Initialize the display switch."""
        self._reconciler = reconciler
        device = reconciler.device
        self._attr_unique_id = f"{accessory_uid(device.device_id)}_display"
        self._attr_device_info = build_device_info(device.device_id, device.name, area)

    @property
    def available(self) -> bool:
        """Return False while the device reports itself offline."""
        return self._reconciler.online

    @property
    def is_on(self) -> bool | None:
        """Return True if the display light is on."""
        return self._reconciler.state.display_on

    async def async_added_to_hass(self) -> None:
        """Subscribe to reconciler updates."""
        await super().async_added_to_hass()
        self.async_on_remove(
            self._reconciler.async_add_listener(self.async_write_ha_state)
        )

    async def _async_set_display(self, on: bool) -> None:  # noqa: FBT001
        try:
            await self._reconciler.async_set_display(on)
        except MirAIeDeviceOfflineError as err:
            raise HomeAssistantError(str(err)) from err

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn the display light on."""
        await self._async_set_display(True)  # noqa: FBT003

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Turn the display light off."""
        await self._async_set_display(False)  # noqa: FBT003
