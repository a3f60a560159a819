from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_PASSWORD, Platform
from homeassistant.core import HomeAssistant, callback

from . import api
from .api import create_session_client
from .const import CONF_USER_ID, DOMAIN
from .coordinator import MirAIeDiscoveryCoordinator

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.CLIMATE, Platform.SWITCH]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Setting up MirAIe AC integration for entry %s", entry.entry_id)

    user_id = entry.data.get(CONF_USER_ID)
    password = entry.data.get(CONF_PASSWORD)
    if not user_id:
        _LOGGER.error(
            "User id is not configured for entry %s, aborting setup", entry.entry_id
        )
        return False
    if not password:
        _LOGGER.error(
            "Password is not configured for entry %s, aborting setup", entry.entry_id
        )
        return False

    session = create_session_client(hass)
    miraie_api = api.MirAIeApi(session, user_id, password)
    coordinator = MirAIeDiscoveryCoordinator(hass, entry, miraie_api)

    try:
        _LOGGER.debug("Logging into MirAIe platform")
        await miraie_api.async_login()
        _LOGGER.info("Successfully logged into MirAIe platform")
    except api.MirAIeApiClientError as err:
        _LOGGER.error(
            "Login failed for entry %s, skipping device discovery: %s",
            entry.entry_id,
            err,
        )
        return await _async_wait_for_login(hass, entry, coordinator)

    await coordinator.async_refresh()
    if not coordinator.last_update_success:
        _LOGGER.error(
            "An error occurred during device discovery for entry %s: %s",
            entry.entry_id,
            coordinator.last_exception,
        )
        if miraie_api.pending_retries:
            return await _async_wait_for_login(hass, entry, coordinator)
        await coordinator.async_shutdown()
        return False

    try:
        await coordinator.async_setup_devices()
        coordinator.async_remove_stale_devices()
    except Exception:
        _LOGGER.exception("Failed to set up devices for entry %s", entry.entry_id)
        await coordinator.async_shutdown()
        return False

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator
    _LOGGER.debug(
        "Stored coordinator for entry %s: %d devices",
        entry.entry_id,
        len(coordinator.reconcilers),
    )

    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
        _LOGGER.info(
            "Successfully setup MirAIe AC integration for entry %s", entry.entry_id
        )
        return True
    except Exception as err:
        _LOGGER.error("Failed to setup platforms for entry %s: %s", entry.entry_id, err)
        hass.data[DOMAIN].pop(entry.entry_id, None)
        await coordinator.async_shutdown()
        return False


async def _async_wait_for_login(
    hass: HomeAssistant, entry: ConfigEntry, coordinator: MirAIeDiscoveryCoordinator
) -> bool:
    """Keep the entry loaded without devices until a retry login succeeds.

    The session client stays alive so its retry timer keeps running. The first
    successful login reloads the entry, which runs discovery again. Unloading
    the entry shuts the coordinator down and cancels the timer.
    """

    @callback
    def _async_logged_in() -> None:
        _LOGGER.info(
            "Logged into MirAIe platform, reloading entry %s", entry.entry_id
        )
        hass.config_entries.async_schedule_reload(entry.entry_id)

    entry.async_on_unload(coordinator.api.async_add_login_listener(_async_logged_in))
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception as err:
        _LOGGER.error("Failed to setup platforms for entry %s: %s", entry.entry_id, err)
        hass.data[DOMAIN].pop(entry.entry_id, None)
        await coordinator.async_shutdown()
        return False

    _LOGGER.warning(
        "MirAIe AC entry %s is waiting for a successful login, no devices are set up",
        entry.entry_id,
    )
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Unloading MirAIe AC integration for entry %s", entry.entry_id)

    try:
        unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
        if unload_ok:
            if DOMAIN in hass.data and entry.entry_id in hass.data[DOMAIN]:
                coordinator = hass.data[DOMAIN].pop(entry.entry_id)
                await coordinator.async_shutdown()
                _LOGGER.debug("Cleaned up data for entry %s", entry.entry_id)
            _LOGGER.info(
                "Successfully unloaded MirAIe AC integration for entry %s",
                entry.entry_id,
            )
        else:
            _LOGGER.warning(
                "Failed to unload some platforms for entry %s", entry.entry_id
            )

        return unload_ok
    except Exception as err:
        _LOGGER.error(
            "Error unloading MirAIe AC integration for entry %s: %s",
            entry.entry_id,
            err,
        )
        return False
