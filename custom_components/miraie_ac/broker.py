"""Per-home MQTT broker for MirAIe devices.

This module provides the broker that owns one MQTT connection per MirAIe
home, routes inbound messages to the callback registered for their topic,
and publishes encoded control commands.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import TYPE_CHECKING, Any

from .commands import CommandKind, build_messages
from .const import (
    MQTT_CLIENT_ID_PREFIX,
    MQTT_HOST,
    MQTT_PORT,
    MQTT_QOS,
    MQTT_USE_TLS,
)
from .mqtt import MirAIeMqttClient, MirAIeTransportError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

_LOGGER = logging.getLogger(__name__)


def generate_client_id() -> str:
    """Return a random MQTT client identifier for this process."""
    return f"{MQTT_CLIENT_ID_PREFIX}{uuid.uuid4().hex[:8]}"


class MirAIeBroker:
    """MQTT broker facade for the devices of one MirAIe home.

    Keeps a topic to callback registry (the last registration for a topic
    wins) and turns high-level commands into control messages.
    """

    def __init__(self, transport: MirAIeMqttClient | None = None) -> None:
        """Initialize the broker.

        Args:
            transport: MQTT transport to use; a new one is created if omitted.

        """
        self._transport = transport or MirAIeMqttClient()
        self._callbacks: dict[str, Callable[[dict[str, Any]], None]] = {}

    @property
    def connected(self) -> bool:
        """Return True if the MQTT connection is up."""
        return self._transport.connected

    async def async_connect(
        self, home_id: str, access_token: str | Callable[[], str]
    ) -> bool:
        """Connect to the MirAIe MQTT broker for a home.

        Args:
            home_id: Home identifier, used as MQTT username.
            access_token: Bearer token, used as MQTT password. A callable is
                called on every (re)connect to read the current token.

        Returns:
            True if the connection was established, False otherwise.

        """
        client_id = generate_client_id()
        _LOGGER.debug(
            "Connecting to MirAIe MQTT for home %s with client id %s",
            home_id,
            client_id,
        )
        try:
            await self._transport.async_connect(
                MQTT_HOST,
                MQTT_PORT,
                client_id,
                MQTT_USE_TLS,
                home_id,
                access_token,
                False,  # noqa: FBT003
                self._on_connected,
                self._on_message,
            )
        except MirAIeTransportError as err:
            _LOGGER.error("Error connecting to MirAIe MQTT: %s", err)
            return False
        return True

    def _on_connected(self) -> None:
        _LOGGER.info("Successfully connected to MirAIe MQTT")

    def _on_message(self, topic: str, payload: bytes) -> None:
        callback = self._callbacks.get(topic)
        if callback is None:
            _LOGGER.debug("Dropping message on unregistered topic %s", topic)
            return

        try:
            message = json.loads(payload)
        except ValueError:
            _LOGGER.debug("Dropping non-JSON message on %s: %r", topic, payload)
            return

        if not isinstance(message, dict):
            _LOGGER.debug("Dropping unexpected message on %s: %r", topic, message)
            return

        callback(message)

    async def async_subscribe(
        self,
        topics: Iterable[str],
        callback: Callable[[dict[str, Any]], None],
    ) -> None:
        """Register a callback for topics and subscribe to them.

        Args:
            topics: Topics to subscribe to.
            callback: Called with the decoded payload of every message.

        """
        topics = list(topics)
        _LOGGER.debug("Subscribing to topics %s", topics)
        for topic in topics:
            self._callbacks[topic] = callback

        try:
            await self._transport.async_subscribe(topics, MQTT_QOS)
        except MirAIeTransportError as err:
            _LOGGER.error("Error subscribing to topics: %s", err)

    async def async_publish(
        self,
        topic_root: str,
        command: str,
        kind: CommandKind,
    ) -> None:
        """Publish a command to a device.

        Args:
            topic_root: Device topic root.
            command: Command value as a string.
            kind: Kind of command.

        """
        _LOGGER.debug(
            "Publishing command %s of kind %s to %s", command, kind, topic_root
        )
        try:
            messages = build_messages(topic_root, command, kind)
        except ValueError as err:
            _LOGGER.error(
                "Error encoding command %s of kind %s: %s", command, kind, err
            )
            return

        for topic, payload in messages:
            try:
                await self._transport.async_publish(
                    topic, payload, MQTT_QOS, False  # noqa: FBT003
                )
            except MirAIeTransportError as err:
                _LOGGER.error("Error publishing message to MirAIe MQTT: %s", err)

    async def async_disconnect(self) -> None:
        """Disconnect from the MQTT broker."""
        await self._transport.async_disconnect()
