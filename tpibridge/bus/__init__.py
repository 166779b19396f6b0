"""
Message bus side: topic pattern matching, topic interests, message
models and the MQTT client.
"""

from tpibridge.bus.interest import interest
from tpibridge.bus.messages import (
    BusMessage,
    PublishMessage,
    indicator_message,
    partition_message,
    trouble_messages,
    zone_message,
)
from tpibridge.bus.mqtt import MqttBusClient
from tpibridge.bus.topics import any_qualifies, topic_qualifies

__all__ = [
    "topic_qualifies",
    "any_qualifies",
    "interest",
    "BusMessage",
    "PublishMessage",
    "zone_message",
    "partition_message",
    "indicator_message",
    "trouble_messages",
    "MqttBusClient",
]
