"""
MQTT bus client over paho-mqtt.

paho runs its network loop in a background thread; received messages
are handed to the asyncio loop with call_soon_threadsafe and fanned out
to every messages() iterator. Topic subscriptions are reference counted
and re-established whenever the broker connection is (re)made, so the
broker sees one SUBSCRIBE per topic however many interests share it.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import AsyncIterator, Iterable
from typing import Any

import paho.mqtt.client as mqtt

from tpibridge.bus.messages import BusMessage, PublishMessage
from tpibridge.config import BusConfig
from tpibridge.exceptions import ConnectionError

logger = logging.getLogger(__name__)


class MqttBusClient:
    """
    Bus client for an MQTT broker.

    Example:
        >>> async with MqttBusClient(BusConfig(host="localhost")) as bus:
        ...     bus.publish(PublishMessage(topic="tpi/online", payload="1"))
        ...     async for message in interest(bus.messages(), "tpi/cmd/#",
        ...                                   bus.subscribe, bus.unsubscribe):
        ...         print(message.topic)
    """

    def __init__(self, config: BusConfig, *, qos: int = 0) -> None:
        self._config = config
        self._qos = qos
        self._client: mqtt.Client | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._topics: Counter[str] = Counter()
        self._queues: list[asyncio.Queue[BusMessage]] = []
        self._connected = False

    @property
    def is_running(self) -> bool:
        return self._client is not None

    @property
    def is_connected(self) -> bool:
        """Whether the broker connection is currently up."""
        return self._connected

    @property
    def topics(self) -> list[str]:
        """Topics currently subscribed."""
        return list(self._topics)

    def start(self) -> None:
        """
        Connect to the broker in the background.

        Must be called from a running event loop. paho reconnects on its
        own after a lost connection.
        """
        if self._client is not None:
            raise ConnectionError("Bus client already started")
        self._loop = asyncio.get_running_loop()

        client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self._config.client_id,
        )
        client.enable_logger(logger)
        if self._config.username is not None:
            client.username_pw_set(self._config.username, self._config.password)

        client.on_connect = self._on_connect
        client.on_message = self._on_message
        client.on_disconnect = self._on_disconnect

        logger.info("Connecting to MQTT broker %s:%d", self._config.host, self._config.port)
        client.connect_async(self._config.host, self._config.port, keepalive=self._config.keepalive)
        client.loop_start()
        self._client = client

    def stop(self) -> None:
        """Disconnect and stop the network loop."""
        client, self._client = self._client, None
        self._connected = False
        if client is None:
            return
        try:
            client.disconnect()
        finally:
            client.loop_stop()
            logger.debug("MQTT network loop stopped")

    def subscribe(self, topics: str | Iterable[str]) -> None:
        """Add interest in `topics`."""
        added = []
        for topic in _topic_list(topics):
            self._topics[topic] += 1
            if self._topics[topic] == 1:
                added.append(topic)
        if added and self._client is not None and self._connected:
            self._client.subscribe([(topic, self._qos) for topic in added])

    def unsubscribe(self, topics: str | Iterable[str]) -> None:
        """Drop interest in `topics`; the broker is told when none is left."""
        removed = []
        for topic in _topic_list(topics):
            if self._topics[topic] <= 0:
                logger.debug("Unsubscribe from %s without subscription", topic)
                continue
            self._topics[topic] -= 1
            if self._topics[topic] == 0:
                del self._topics[topic]
                removed.append(topic)
        if removed and self._client is not None and self._connected:
            self._client.unsubscribe(removed)

    def publish(self, message: PublishMessage) -> None:
        """
        Publish a message.

        Raises:
            ConnectionError: If the client was not started.
        """
        if self._client is None:
            raise ConnectionError("Bus client not started")
        logger.debug("Publishing %s: %r", message.topic, message.payload)
        self._client.publish(message.topic, message.payload, qos=message.qos, retain=message.retain)

    async def messages(self) -> AsyncIterator[BusMessage]:
        """Yield every message received while iterating."""
        queue: asyncio.Queue[BusMessage] = asyncio.Queue()
        self._queues.append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.remove(queue)

    def _dispatch(self, message: BusMessage) -> None:
        for queue in self._queues:
            queue.put_nowait(message)

    def _on_connect(
        self,
        client: mqtt.Client,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if reason_code.is_failure:
            logger.warning("MQTT connect failed: %s", reason_code)
            return
        logger.info("MQTT connected")
        self._connected = True
        # Subscriptions are owned by the event loop thread
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._resubscribe, client)

    def _resubscribe(self, client: mqtt.Client) -> None:
        if client is not self._client or not self._connected or not self._topics:
            return
        client.subscribe([(topic, self._qos) for topic in self._topics])

    def _on_message(self, _client: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        message = BusMessage(topic=msg.topic, payload=msg.payload, qos=msg.qos, retain=msg.retain)
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._dispatch, message)

    def _on_disconnect(
        self,
        _client: mqtt.Client,
        _userdata: Any,
        _disconnect_flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        self._connected = False
        if self._client is not None:
            logger.warning("MQTT disconnected: %s", reason_code)

    async def __aenter__(self) -> MqttBusClient:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


def _topic_list(topics: str | Iterable[str]) -> list[str]:
    if isinstance(topics, str):
        return [topics]
    return list(topics)
