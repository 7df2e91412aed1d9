"""MQTT connection that routes incoming messages to per-topic callbacks."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, str], None]

DEFAULT_CONNECT_TIMEOUT = 10.0


@dataclass(frozen=True)
class _Subscription:
    topic: str
    callback: MessageCallback


def _default_client(client_id: str) -> Any:
    import paho.mqtt.client as paho

    return paho.Client(paho.CallbackAPIVersion.VERSION2, client_id=client_id)


class MQTTManager:
    """Keeps a list of topic subscriptions and re-applies them on every connect."""

    def __init__(self, host: str, port: int, client_id: str, client: Any = None) -> None:
        self.host = host
        self.port = port
        self.client_id = client_id
        self.connect_timeout = DEFAULT_CONNECT_TIMEOUT
        self._client = client if client is not None else _default_client(client_id)
        self._client.on_message = self._on_message
        self._subscriptions: list[_Subscription] = []

    def set_certificates(self, ca_cert: str, client_cert: str, private_key: str) -> None:
        """Use mutual TLS with the given PEM files."""
        self._client.tls_set(ca_certs=ca_cert, certfile=client_cert, keyfile=private_key)

    def connect(self) -> bool:
        """Connect if not already connected and resubscribe to every topic."""
        if self.connected():
            return True
        logger.info("Attempting MQTT connection to %s as %s", self.host, self.client_id)
        try:
            rc = self._client.connect(self.host, self.port)
        except (OSError, ValueError) as exc:
            logger.warning("MQTT connect failed: %s", exc)
            return False
        if rc:
            logger.warning("MQTT connect failed, rc=%s", rc)
            return False

        deadline = time.monotonic() + self.connect_timeout
        while not self._client.is_connected() and time.monotonic() < deadline:
            self._client.loop(timeout=0.1)
        if not self._client.is_connected():
            logger.warning("MQTT connect failed: no acknowledgement from broker")
            return False

        logger.info("MQTT connected!")
        for subscription in self._subscriptions:
            logger.info("Resubscribing to: %s", subscription.topic)
            self._client.subscribe(subscription.topic)
        return True

    def disconnect(self) -> None:
        self._client.disconnect()
        logger.info("MQTT disconnected.")

    def publish(self, topic: str, message: str, retained: bool = False) -> bool:
        """Publish ``message``; returns whether the client accepted it."""
        if not self.connected():
            logger.warning("MQTT not connected. Cannot publish.")
            return False
        info = self._client.publish(topic, message, retain=retained)
        success = info.rc == 0
        if success:
            logger.info("Successfully published to %s: %s", topic, message)
        else:
            logger.warning("Failed to publish to topic: %s", topic)
        return success

    def subscribe(self, topic: str, callback: MessageCallback) -> None:
        """Register ``callback`` for ``topic``; it becomes active on connect."""
        self._subscriptions.append(_Subscription(topic, callback))
        if not self.connected():
            logger.info(
                "MQTT not connected. Subscription to '%s' will activate on next connection.",
                topic,
            )
            return
        rc, _mid = self._client.subscribe(topic)
        if rc == 0:
            logger.info("Subscribed to: %s", topic)
        else:
            logger.warning("Failed to subscribe to: %s", topic)

    def update(self) -> None:
        """Service the network connection once, delivering pending messages."""
        if self.connected():
            self._client.loop(timeout=0.0)

    def connected(self) -> bool:
        return bool(self._client.is_connected())

    def dispatch(self, topic: str, payload: bytes | str) -> bool:
        """Hand a message to the first callback registered for ``topic``."""
        message = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else payload
        for subscription in self._subscriptions:
            if subscription.topic == topic:
                subscription.callback(topic, message)
                return True
        logger.warning("No callback registered for MQTT topic: %s", topic)
        return False

    def _on_message(self, _client: Any, _userdata: Any, message: Any) -> None:
        self.dispatch(message.topic, message.payload)