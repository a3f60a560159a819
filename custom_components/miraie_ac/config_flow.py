"""
Configuration flow for MirAIe AC integration.

This module handles the setup of the MirAIe AC integration through Home
Assistant's config flow system by verifying the account credentials.
"""

import logging
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.const import CONF_PASSWORD
from homeassistant.helpers.httpx_client import get_async_client

from . import api
from .const import (
    CONF_USER_ID,
    DOMAIN,
    ERROR_API_ERROR,
    ERROR_CANNOT_CONNECT,
    ERROR_INVALID_AUTH,
    ERROR_UNKNOWN,
)

_LOGGER = logging.getLogger(__name__)


class MirAIeConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle configuration flow for MirAIe AC integration."""

    VERSION = 1

    async def _async_validate_credentials(self, user_id: str, password: str) -> None:
        miraie_api = api.MirAIeApi(get_async_client(self.hass), user_id, password)
        try:
            await miraie_api.async_login()
        finally:
            await miraie_api.async_close()

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Handle the initial step of the config flow.

        Args:
            user_input: User input data containing user id and password.

        Returns:
            ConfigFlowResult indicating the next step or errors.

        """
        errors: dict[str, str] = {}

        if user_input is not None:
            user_id = user_input[CONF_USER_ID].strip()
            password = user_input[CONF_PASSWORD]

            try:
                await self._async_validate_credentials(user_id, password)
                _LOGGER.info("Successfully authenticated with MirAIe API")

            except api.MirAIeApiAuthError as err:
                _LOGGER.warning(
                    "Authentication failed (%s): %s", ERROR_INVALID_AUTH, err
                )
                errors["base"] = ERROR_INVALID_AUTH
            except api.MirAIeApiConnectionError:
                _LOGGER.exception("Connection error (%s)", ERROR_CANNOT_CONNECT)
                errors["base"] = ERROR_CANNOT_CONNECT
            except api.MirAIeApiClientError:
                _LOGGER.exception("API client error (%s)", ERROR_API_ERROR)
                errors["base"] = ERROR_API_ERROR
            except Exception:
                _LOGGER.exception(
                    "Unexpected error during authentication (%s)",
                    ERROR_UNKNOWN,
                )
                errors["base"] = ERROR_UNKNOWN

            else:
                await self.async_set_unique_id(user_id.lower())
                self._abort_if_unique_id_configured()

                return self.async_create_entry(
                    title=f"MirAIe AC ({user_id})",
                    data={
                        CONF_USER_ID: user_id,
                        CONF_PASSWORD: password,
                    },
                )

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_USER_ID): str,
                    vol.Required(CONF_PASSWORD): str,
                }
            ),
            errors=errors,
        )
