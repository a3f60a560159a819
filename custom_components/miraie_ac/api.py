"""API client for the MirAIe platform.

This module provides the session client that logs into the MirAIe platform,
keeps the bearer token fresh, and fetches the home inventory.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
import re
from typing import TYPE_CHECKING, Any

import httpx
from homeassistant.helpers.httpx_client import create_async_httpx_client
from httpx_retries import Retry, RetryTransport

from .const import (
    HOMES_URL,
    HTTP_CLIENT_ID,
    LOGIN_RETRY_DELAY,
    LOGIN_TOKEN_REFRESH_INTERVAL,
    LOGIN_URL,
)
from .models import MirAIeDevice, MirAIeHome, MirAIeSpace

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401

SCOPE_MAX = 999_999_999

_NUMBER_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class MirAIeApiClientError(Exception):
    """Base exception for MirAIe API client errors."""


class MirAIeApiAuthError(MirAIeApiClientError):
    """Exception raised when credentials are missing or rejected."""


class MirAIeApiConnectionError(MirAIeApiClientError):
    """Exception raised when the server did not respond."""


class MirAIeApiRequestError(MirAIeApiClientError):
    """Exception raised when the request could not be built or sent."""


def create_headers(access_token: str | None = None) -> dict[str, str]:
    """Create HTTP headers for MirAIe API requests.

    Args:
        access_token: Optional bearer token to include in headers.

    Returns:
        Dictionary containing HTTP headers for API requests.

    """
    headers = {
        "content-type": "application/json",
        "accept": "application/json",
    }
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers


def is_http_error(status: int) -> bool:
    """Check if HTTP status code indicates an error."""
    return status >= HTTP_BAD_REQUEST


def is_auth_error(status: int) -> bool:
    """Check if HTTP status code indicates authentication error."""
    return status == HTTP_UNAUTHORIZED


def is_number(value: str | float | None) -> bool:
    """Check if a user identifier looks like a number (a mobile number).

    Args:
        value: The identifier to classify.

    Returns:
        True if the stripped value is a finite decimal number (digit
        separators such as underscores are rejected).

    """
    if value is None:
        return False
    text = str(value).strip()
    if not _NUMBER_RE.fullmatch(text):
        return False
    return math.isfinite(float(text))


def generate_scope() -> str:
    """Return a random login scope tag."""
    return f"an_{random.randint(0, SCOPE_MAX)}"  # noqa: S311


def build_login_payload(user_id: str, password: str) -> dict[str, str]:
    """Build the login request body.

    Numeric user identifiers are sent as ``mobile``, anything else as
    ``email``.
    """
    payload = {
        "password": password,
        "clientId": HTTP_CLIENT_ID,
        "scope": generate_scope(),
    }
    if is_number(user_id):
        payload["mobile"] = user_id
    else:
        payload["email"] = user_id
    return payload


def validate_response(response: httpx.Response) -> Any:  # noqa: ANN401
    """Validate HTTP response and return parsed JSON data.

    Args:
        response: HTTP response object to validate.

    Returns:
        Parsed JSON data from response.

    Raises:
        MirAIeApiAuthError: If the server rejected the credentials.
        MirAIeApiClientError: If the server returned another error status.

    """
    _validate_http_status(response)
    try:
        return response.json()
    except ValueError as err:
        error_msg = f"Invalid JSON in response: {err}"
        raise MirAIeApiClientError(error_msg) from err


def _validate_http_status(response: httpx.Response) -> None:
    if not is_http_error(response.status_code):
        return

    if is_auth_error(response.status_code):
        auth_error = "Authentication error"
        raise MirAIeApiAuthError(auth_error)

    client_error = f"Request failed: {response.status_code}"
    raise MirAIeApiClientError(client_error)


def extract_access_token(data: dict[str, Any]) -> str:
    """Extract the bearer token from a login response."""
    token = data.get("accessToken") if isinstance(data, dict) else None
    if not token:
        error_msg = "Login response did not contain an access token"
        raise MirAIeApiAuthError(error_msg)
    return token


def _extract_device(data: dict[str, Any]) -> MirAIeDevice:
    topics = data.get("topic") or []
    if isinstance(topics, str):
        topics = [topics]
    return MirAIeDevice(
        device_id=str(data["deviceId"]),
        name=str(data.get("deviceName") or data["deviceId"]),
        topics=tuple(str(topic) for topic in topics),
    )


def extract_homes(data: list[dict[str, Any]]) -> list[MirAIeHome]:
    """Extract the home inventory from the homes API response.

    Devices without any topic root cannot be controlled and are skipped.

    Args:
        data: API response data (a list of home records).

    Returns:
        List of MirAIeHome objects.

    """
    homes = []
    for home in data or []:
        spaces = []
        for space in home.get("spaces") or []:
            devices = []
            for device_data in space.get("devices") or []:
                device = _extract_device(device_data)
                if not device.topics:
                    _LOGGER.warning(
                        "Skipping device %s without MQTT topics", device.device_id
                    )
                    continue
                devices.append(device)
            spaces.append(
                MirAIeSpace(
                    space_id=str(space.get("spaceId", "")),
                    name=str(space.get("spaceName", "")),
                    devices=tuple(devices),
                )
            )
        homes.append(
            MirAIeHome(
                home_id=str(home["homeId"]),
                name=str(home.get("homeName", "")),
                spaces=tuple(spaces),
            )
        )
    return homes


def create_session_client(hass: HomeAssistant) -> httpx.AsyncClient:
    """Create HTTP client with retry logic for MirAIe API.

    Args:
        hass: Home Assistant instance.

    Returns:
        Configured httpx AsyncClient with retry transport.

    """
    base_client = create_async_httpx_client(hass, timeout=10.0)
    retry = Retry(total=3, backoff_factor=0.5)
    base_client._transport = RetryTransport(  # noqa: SLF001
        transport=base_client._transport,  # noqa: SLF001
        retry=retry,
    )
    return base_client


async def _async_request(
    session: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: Any,  # noqa: ANN401
) -> httpx.Response:
    """Send a request and map httpx failures onto the client error taxonomy."""
    try:
        return await session.request(method, url, **kwargs)
    except httpx.TransportError as err:
        _LOGGER.debug("No response from %s: %r", url, err)
        error_msg = f"No response from MirAIe platform: {err}"
        raise MirAIeApiConnectionError(error_msg) from err
    except (httpx.RequestError, httpx.InvalidURL) as err:
        _LOGGER.debug("Could not send request to %s: %r", url, err)
        error_msg = f"Invalid request: {err}"
        raise MirAIeApiRequestError(error_msg) from err


class MirAIeApi:
    """Session client for the MirAIe platform.

    Holds the bearer token and the timers that keep it fresh: one refresh
    timer (a safety net) and the retry timers scheduled after failed logins
    or unauthorized responses. Every login first cancels all of them, so a
    burst of re-login requests collapses into a single attempt.
    """

    def __init__(
        self,
        session: httpx.AsyncClient,
        user_id: str,
        password: str,
    ) -> None:
        """Initialize the session client.

        Args:
            session: HTTP client session.
            user_id: MirAIe user identifier (mobile number or e-mail).
            password: MirAIe account password.

        """
        self._session = session
        self._user_id = user_id
        self._password = password
        self._access_token = ""
        self._refresh_handle: asyncio.TimerHandle | None = None
        self._retry_handles: list[asyncio.TimerHandle] = []
        self._login_tasks: set[asyncio.Task[None]] = set()
        self._login_listeners: list[Callable[[], None]] = []

    @property
    def access_token(self) -> str:
        """Return the current bearer token (empty before the first login)."""
        return self._access_token

    @property
    def refresh_pending(self) -> bool:
        """Return True if a periodic refresh login is scheduled."""
        return self._refresh_handle is not None and not self._refresh_handle.cancelled()

    @property
    def pending_retries(self) -> int:
        """Return the number of scheduled retry logins."""
        return sum(1 for handle in self._retry_handles if not handle.cancelled())

    def _cancel_timers(self) -> None:
        for handle in self._retry_handles:
            handle.cancel()
        self._retry_handles.clear()
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None

    def _start_scheduled_login(self) -> None:
        """Run a timer-triggered login in the background."""
        task = asyncio.get_running_loop().create_task(self._async_scheduled_login())
        self._login_tasks.add(task)
        task.add_done_callback(self._login_tasks.discard)

    async def _async_scheduled_login(self) -> None:
        try:
            await self.async_login()
        except MirAIeApiClientError:
            # Already logged and a retry is scheduled
            return

    def schedule_login_retry(self) -> None:
        """Schedule a single retry login after LOGIN_RETRY_DELAY."""
        if self.pending_retries:
            _LOGGER.debug("Login retry already scheduled, not adding another one")
            return
        handle = asyncio.get_running_loop().call_later(
            LOGIN_RETRY_DELAY, self._start_scheduled_login
        )
        self._retry_handles.append(handle)

    def _schedule_refresh(self) -> None:
        self._refresh_handle = asyncio.get_running_loop().call_later(
            LOGIN_TOKEN_REFRESH_INTERVAL, self._start_scheduled_login
        )

    def async_add_login_listener(
        self, callback: Callable[[], None]
    ) -> Callable[[], None]:
        """Register a callback run after every successful login.

        Returns:
            A function to unregister the callback.

        """
        self._login_listeners.append(callback)

        def unregister() -> None:
            if callback in self._login_listeners:
                self._login_listeners.remove(callback)

        return unregister

    async def async_login(self) -> None:
        """Log into the MirAIe platform and store the bearer token.

        On success a refresh login is scheduled; on failure a retry login is
        scheduled and the error is raised.

        Raises:
            MirAIeApiAuthError: If the credentials were rejected.
            MirAIeApiClientError: If the login request failed otherwise.

        """
        _LOGGER.debug("Logging into MirAIe platform")
        self._cancel_timers()
        payload = build_login_payload(self._user_id, self._password)

        try:
            response = await _async_request(
                self._session,
                "POST",
                LOGIN_URL,
                headers=create_headers(),
                json=payload,
            )
            data = validate_response(response)
            self._access_token = extract_access_token(data)
        except MirAIeApiClientError as err:
            _LOGGER.debug("MirAIe platform login failed: %s", err)
            _LOGGER.error(
                "Login failed. The MirAIe platform might be experiencing issues at "
                "the moment, another attempt will be made in %d seconds. If the "
                "issue persists, make sure the configured user id and password are "
                "correct and reload the integration after changing them",
                LOGIN_RETRY_DELAY,
            )
            self.schedule_login_retry()
            raise

        _LOGGER.debug("MirAIe platform login succeeded")
        self._schedule_refresh()
        for callback in list(self._login_listeners):
            callback()

    async def async_get_home_details(self) -> list[MirAIeHome]:
        """Fetch the homes registered with the MirAIe account.

        Returns:
            List of MirAIeHome objects.

        Raises:
            MirAIeApiAuthError: If no token is held or the token was rejected.
            MirAIeApiConnectionError: If the server did not respond.
            MirAIeApiRequestError: If the request could not be sent.
            MirAIeApiClientError: If the API request failed otherwise.

        """
        _LOGGER.debug("Fetching home details from MirAIe platform")
        if not self._access_token:
            error_msg = (
                "No auth token available (login probably failed). "
                "Check your credentials and reload the integration"
            )
            raise MirAIeApiAuthError(error_msg)

        response = await _async_request(
            self._session,
            "GET",
            HOMES_URL,
            headers=create_headers(self._access_token),
        )
        try:
            data = validate_response(response)
        except MirAIeApiAuthError:
            _LOGGER.debug("Access token rejected, scheduling a new login")
            self.schedule_login_retry()
            raise

        homes = extract_homes(data)
        _LOGGER.debug("Retrieved %d homes from MirAIe platform", len(homes))
        return homes

    async def async_close(self) -> None:
        """Cancel all timers and pending logins."""
        self._cancel_timers()
        tasks = list(self._login_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._login_tasks.clear()
