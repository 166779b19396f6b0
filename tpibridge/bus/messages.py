"""
Bus message models and state payloads.

State payloads are JSON objects stamped with ``since``, the epoch second
at which the state was observed. They are published retained under
``<prefix>/<kind>/<id>``:

    tpi/zone/1          {"id": 1, "situation": "alarm", "restored": false,
                         "since": 1582217100, "partition": "1"}
    tpi/partition/1     {"id": 1, "state": "armed-away", "since": ...}
    tpi/indicator/0     {"id": 0, "state": 2, "since": ...}
    tpi/trouble/1       {"id": 1, "state": true, "since": ...}
"""

from __future__ import annotations

import json
import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tpibridge.models.records import IndicatorUpdate, PartitionState, TroubleStatus, ZoneState


class BusMessage(BaseModel):
    """A message received from the bus."""

    model_config = ConfigDict(frozen=True)

    topic: str
    payload: bytes = b""
    qos: int = Field(default=0, ge=0, le=2)
    retain: bool = False

    def text(self, encoding: str = "utf-8") -> str:
        return self.payload.decode(encoding)

    def decode_json(self) -> Any:
        """Decode the payload as JSON."""
        return json.loads(self.payload)


class PublishMessage(BaseModel):
    """A message to publish on the bus."""

    model_config = ConfigDict(frozen=True)

    topic: str = Field(min_length=1)
    payload: str | bytes = ""
    qos: int = Field(default=0, ge=0, le=2)
    retain: bool = False


def _now(since: int | None) -> int:
    return int(time.time()) if since is None else since


def _state_message(topic: str, body: dict[str, Any]) -> PublishMessage:
    return PublishMessage(
        topic=topic,
        payload=json.dumps(body, separators=(",", ":")),
        retain=True,
    )


def zone_message(state: ZoneState, prefix: str = "tpi", since: int | None = None) -> PublishMessage:
    """Compose the retained state message of a zone."""
    body: dict[str, Any] = {
        "id": state.zone_number,
        "situation": state.situation.value,
        "restored": state.restored,
        "since": _now(since),
    }
    if state.partition is not None:
        body["partition"] = state.partition
    return _state_message(f"{prefix}/zone/{state.zone_number}", body)


def partition_message(
    state: PartitionState, prefix: str = "tpi", since: int | None = None
) -> PublishMessage:
    """Compose the retained state message of a partition."""
    partition_id = int(state.partition)
    body = {"id": partition_id, "state": state.activity.value, "since": _now(since)}
    return _state_message(f"{prefix}/partition/{partition_id}", body)


def indicator_message(
    update: IndicatorUpdate, prefix: str = "tpi", since: int | None = None
) -> PublishMessage:
    """Compose the retained state message of a keypad indicator (0 off, 1 on, 2 flashing)."""
    body = {"id": update.index, "state": int(update.state), "since": _now(since)}
    return _state_message(f"{prefix}/indicator/{update.index}", body)


def trouble_messages(
    status: TroubleStatus, prefix: str = "tpi", since: int | None = None
) -> list[PublishMessage]:
    """Compose one retained message per trouble flag."""
    stamp = _now(since)
    return [
        _state_message(f"{prefix}/trouble/{index}", {"id": index, "state": flag, "since": stamp})
        for index, flag in enumerate(status.flags)
    ]
