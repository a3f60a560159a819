"""MQTT transport for the MirAIe platform.

This module wraps an aiomqtt connection behind connect, subscribe, publish
and disconnect primitives, delivers inbound messages by topic, and
reconnects on its own when the broker drops the connection.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import ssl
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import aiomqtt

from .const import MQTT_RECONNECT_DELAY

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

_LOGGER = logging.getLogger(__name__)


class MirAIeTransportError(Exception):
    """Exception raised when the MQTT transport fails."""


@dataclass(frozen=True, slots=True)
class MqttConnectionParams:
    """Parameters of an MQTT connection, kept for reconnects.

    The password may be a callable returning the current credential, so a
    reconnect uses the value held at that time.
    """

    host: str
    port: int
    client_id: str
    use_tls: bool
    username: str
    password: str | Callable[[], str]
    clean_session: bool


def encode_payload(payload: Any) -> str | bytes:  # noqa: ANN401
    """Serialize a payload for transmission; strings are sent as they are."""
    if isinstance(payload, str | bytes):
        return payload
    return json.dumps(payload, separators=(",", ":"))


class MirAIeMqttClient:
    """Single MQTT connection to the MirAIe broker.

    Messages are delivered to the ``on_message`` callback in arrival order
    by one listener task. When the connection is lost it is re-established
    after MQTT_RECONNECT_DELAY seconds and every known topic is subscribed
    again.
    """

    def __init__(self) -> None:
        """Initialize the transport."""
        self._client: aiomqtt.Client | None = None
        self._params: MqttConnectionParams | None = None
        self._on_connected: Callable[[], None] | None = None
        self._on_message: Callable[[str, bytes], None] | None = None
        self._subscriptions: dict[str, int] = {}
        self._connected = False
        self._shutdown = False
        self._listener_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None

    @property
    def connected(self) -> bool:
        """Return True if the broker connection is up."""
        return self._connected

    async def async_connect(
        self,
        host: str,
        port: int,
        client_id: str,
        use_tls: bool,  # noqa: FBT001
        username: str,
        password: str | Callable[[], str],
        clean_session: bool,  # noqa: FBT001
        on_connected: Callable[[], None] | None,
        on_message: Callable[[str, bytes], None] | None,
    ) -> None:
        """Connect to the MQTT broker.

        Raises:
            MirAIeTransportError: If the connection could not be established.
                A reconnect is scheduled in that case.

        """
        self._params = MqttConnectionParams(
            host=host,
            port=port,
            client_id=client_id,
            use_tls=use_tls,
            username=username,
            password=password,
            clean_session=clean_session,
        )
        self._on_connected = on_connected
        self._on_message = on_message
        self._shutdown = False

        try:
            await self._async_open()
        except MirAIeTransportError:
            self._schedule_reconnect()
            raise

    async def _async_open(self) -> None:
        params = self._params
        if params is None:
            error_msg = "Connection parameters are not set"
            raise MirAIeTransportError(error_msg)

        tls_context = None
        if params.use_tls:
            tls_context = await asyncio.get_running_loop().run_in_executor(
                None, ssl.create_default_context
            )

        password = params.password() if callable(params.password) else params.password

        client = aiomqtt.Client(
            hostname=params.host,
            port=params.port,
            username=params.username,
            password=password,
            identifier=params.client_id,
            clean_session=params.clean_session,
            tls_context=tls_context,
        )

        _LOGGER.debug(
            "Connecting to MQTT broker %s:%s as %s",
            params.host,
            params.port,
            params.client_id,
        )
        try:
            await client.__aenter__()
        except aiomqtt.MqttError as err:
            error_msg = f"Failed to connect to {params.host}:{params.port}: {err}"
            raise MirAIeTransportError(error_msg) from err

        self._client = client
        self._connected = True
        self._listener_task = asyncio.get_running_loop().create_task(
            self._async_listen(client)
        )

        if self._subscriptions:
            try:
                await self._async_subscribe_client(
                    client, list(self._subscriptions.items())
                )
            except MirAIeTransportError as err:
                _LOGGER.warning("Failed to restore subscriptions: %s", err)

        if self._on_connected is not None:
            self._on_connected()

    async def _async_listen(self, client: aiomqtt.Client) -> None:
        """Dispatch inbound messages until the connection drops."""
        try:
            async for message in client.messages:
                self._dispatch(message)
        except aiomqtt.MqttError as err:
            _LOGGER.warning("Lost connection to MQTT broker: %s", err)
            self._connected = False
            if self._client is client:
                self._client = None
            with contextlib.suppress(aiomqtt.MqttError):
                await client.__aexit__(None, None, None)
            if not self._shutdown:
                self._schedule_reconnect()

    def _dispatch(self, message: aiomqtt.Message) -> None:
        if self._on_message is None:
            return

        payload = message.payload
        if isinstance(payload, str):
            payload = payload.encode()
        elif not isinstance(payload, bytes | bytearray):
            payload = b"" if payload is None else str(payload).encode()

        try:
            self._on_message(message.topic.value, bytes(payload))
        except Exception:
            _LOGGER.exception("Error in MQTT message callback")

    def _schedule_reconnect(self) -> None:
        """Schedule a reconnection attempt."""
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return  # Reconnection already scheduled

        async def reconnect() -> None:
            await asyncio.sleep(MQTT_RECONNECT_DELAY)
            if self._shutdown:
                return
            _LOGGER.info("Attempting to reconnect to MQTT broker...")
            try:
                await self._async_open()
            except MirAIeTransportError as err:
                _LOGGER.warning("Reconnect to MQTT broker failed: %s", err)
                self._reconnect_task = None
                self._schedule_reconnect()

        self._reconnect_task = asyncio.get_running_loop().create_task(reconnect())

    async def _async_subscribe_client(
        self, client: aiomqtt.Client, topics: list[tuple[str, int]]
    ) -> None:
        try:
            await client.subscribe(topics)
        except aiomqtt.MqttError as err:
            error_msg = f"Failed to subscribe to {[topic for topic, _ in topics]}: {err}"
            raise MirAIeTransportError(error_msg) from err

    async def async_subscribe(self, topics: Iterable[str], qos: int = 0) -> None:
        """Subscribe to topics; they are subscribed again after a reconnect.

        Raises:
            MirAIeTransportError: If the broker rejected the subscription.

        """
        pairs = [(topic, qos) for topic in topics]
        if not pairs:
            return
        self._subscriptions.update(pairs)

        if not self._connected or self._client is None:
            _LOGGER.debug(
                "Not connected, deferring subscription to %s",
                [topic for topic, _ in pairs],
            )
            return

        await self._async_subscribe_client(self._client, pairs)

    async def async_publish(
        self,
        topic: str,
        payload: Any,  # noqa: ANN401
        qos: int = 0,
        retain: bool = False,  # noqa: FBT001, FBT002
    ) -> None:
        """Publish a message.

        Raises:
            MirAIeTransportError: If not connected or the publish failed.

        """
        if not self._connected or self._client is None:
            error_msg = f"Cannot publish to {topic}: not connected"
            raise MirAIeTransportError(error_msg)

        try:
            await self._client.publish(
                topic, encode_payload(payload), qos=qos, retain=retain
            )
        except aiomqtt.MqttError as err:
            error_msg = f"Failed to publish to {topic}: {err}"
            raise MirAIeTransportError(error_msg) from err

    async def async_disconnect(self) -> None:
        """Disconnect from the broker; does nothing when not connected."""
        self._shutdown = True

        for task in (self._reconnect_task, self._listener_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._reconnect_task = None
        self._listener_task = None

        client = self._client
        self._client = None
        if client is None:
            return

        try:
            await client.__aexit__(None, None, None)
            _LOGGER.debug("Disconnected from MQTT broker")
        except aiomqtt.MqttError as err:
            _LOGGER.warning("MQTT disconnect failed: %s", err)
        finally:
            self._connected = False
