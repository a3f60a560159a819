"""Coordinator for MirAIe AC integration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.helpers import device_registry as dr
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from . import api
from .broker import MirAIeBroker
from .const import DOMAIN
from .reconciler import MirAIeDeviceReconciler

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .models import MirAIeHome

_LOGGER = logging.getLogger(__name__)


class MirAIeDiscoveryCoordinator(DataUpdateCoordinator[list["MirAIeHome"]]):
    """Coordinator that discovers MirAIe homes and wires up their devices.

    Runs one discovery cycle per config entry setup: fetches the home
    inventory, creates one broker per home and one reconciler per device.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        miraie_api: api.MirAIeApi,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=None,
        )
        self.api = miraie_api
        self.brokers: dict[str, MirAIeBroker] = {}
        self.reconcilers: dict[str, MirAIeDeviceReconciler] = {}
        self.device_spaces: dict[str, str] = {}
        self.data = []

    async def _async_update_data(self) -> list[MirAIeHome]:
        """Fetch the home inventory."""
        try:
            homes = await self.api.async_get_home_details()
        except api.MirAIeApiAuthError as err:
            raise UpdateFailed(f"Authentication error while discovering devices: {err}") from err
        except api.MirAIeApiConnectionError as err:
            raise UpdateFailed(f"Connection error while discovering devices: {err}") from err
        except api.MirAIeApiClientError as err:
            raise UpdateFailed(f"API error while discovering devices: {err}") from err

        _LOGGER.info(
            "Discovered %d devices in %d homes",
            sum(len(home.devices) for home in homes),
            len(homes),
        )
        return homes

    @property
    def known_device_ids(self) -> set[str]:
        """Return the device ids found by the last discovery cycle."""
        return {
            device.device_id
            for home in self.data or []
            for _space, device in home.devices
        }

    def _create_broker(self) -> MirAIeBroker:
        return MirAIeBroker()

    async def async_setup_devices(self) -> None:
        """Connect one broker per home and start one reconciler per device."""
        for home in self.data or []:
            broker = self._create_broker()
            self.brokers[home.home_id] = broker
            if not await broker.async_connect(
                home.home_id, lambda: self.api.access_token
            ):
                _LOGGER.warning(
                    "MQTT connection for home %s is not up yet, devices will "
                    "update once it is established",
                    home.name,
                )

            for space, device in home.devices:
                if device.device_id in self.reconcilers:
                    _LOGGER.debug("Device %s listed twice, skipping", device.device_id)
                    continue
                display_name = f"{home.name}_{space.name}_{device.name}"
                reconciler = MirAIeDeviceReconciler(broker, device, display_name)
                await reconciler.async_start()
                self.reconcilers[device.device_id] = reconciler
                self.device_spaces[device.device_id] = space.name
                _LOGGER.debug("Set up device %s (%s)", display_name, device.device_id)

    def async_remove_stale_devices(self) -> None:
        """Detach registry devices that no longer exist on the MirAIe account."""
        known = self.known_device_ids
        registry = dr.async_get(self.hass)
        for device_entry in dr.async_entries_for_config_entry(
            registry, self.config_entry.entry_id
        ):
            device_ids = {
                identifier
                for domain, identifier in device_entry.identifiers
                if domain == DOMAIN
            }
            if device_ids & known:
                continue
            _LOGGER.info(
                "Removing device %s because it does not exist on the MirAIe "
                "account anymore",
                device_entry.name,
            )
            registry.async_update_device(
                device_entry.id, remove_config_entry_id=self.config_entry.entry_id
            )

    async def async_shutdown(self) -> None:
        """Disconnect all brokers and close the session."""
        await super().async_shutdown()
        for broker in self.brokers.values():
            await broker.async_disconnect()
        self.brokers.clear()
        await self.api.async_close()
