"""
Pydantic models for decoded TPI state.

Design principles:
- All models are frozen (immutable); a newer report replaces the old one
- Identifiers keep their wire form ("001" for zone 1) so they round-trip
  into outbound commands unchanged
- Persisting and merging states is left to the caller
"""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tpibridge.protocol.constants import (
    IndicatorState,
    PartitionActivityType,
    ProtocolConstants,
    ZoneActivityType,
)

KEYPAD_LED_LABELS: Final[tuple[str, ...]] = (
    "ready",
    "armed",
    "memory",
    "bypass",
    "trouble",
    "program",
    "fire",
    "backlight",
)
"""Keypad LED names by bit index."""

TROUBLE_LABELS: Final[tuple[str, ...]] = (
    "service-required",
    "ac-power-lost",
    "telephone-line-fault",
    "failure-to-communicate",
    "zone-fault",
    "zone-tamper",
    "zone-low-battery",
    "loss-of-time",
)
"""Trouble flag names by bit index."""


class ZoneState(BaseModel):
    """
    Situation of a single zone.

    Example:
        >>> state = ZoneState(zone="001", situation=ZoneActivityType.ALARM,
        ...                   restored=False, partition="1")
        >>> state.zone_number
        1
    """

    model_config = ConfigDict(frozen=True)

    zone: str = Field(min_length=1, description="Zone id as sent on the wire")
    situation: ZoneActivityType
    restored: bool
    partition: str | None = None

    @property
    def zone_number(self) -> int:
        """Zone id as an integer."""
        return int(self.zone)

    def merge(self, update: ZoneState) -> ZoneState:
        """
        Combine with a later partial update for the same zone.

        Zone open/restored reports carry no partition; the partition
        learned from an earlier alarm or tamper report is kept.
        """
        if update.zone != self.zone:
            raise ValueError(f"Cannot merge zone {update.zone} into zone {self.zone}")
        if update.partition is None and self.partition is not None:
            return update.model_copy(update={"partition": self.partition})
        return update


class ZoneTimerEntry(BaseModel):
    """
    One zone of a zone timer dump.

    Attributes:
        zone: Zone number, starting at 1.
        duration: Seconds since the zone was restored.
        restored: False when the zone is still open.
        maxed: The duration saturated (beyond roughly 91 hours).
    """

    model_config = ConfigDict(frozen=True)

    zone: int = Field(ge=1)
    duration: int = Field(ge=0)
    restored: bool
    maxed: bool

    @classmethod
    def from_ticks(cls, zone: int, ticks: int) -> ZoneTimerEntry:
        """Build an entry from the raw countdown tick value."""
        return cls(
            zone=zone,
            duration=(ProtocolConstants.TIMER_OPEN - ticks) * ProtocolConstants.TIMER_TICK_SECONDS,
            restored=ticks != ProtocolConstants.TIMER_OPEN,
            maxed=ticks == 0,
        )


class PartitionState(BaseModel):
    """Activity of a partition."""

    model_config = ConfigDict(frozen=True)

    partition: str = Field(min_length=1)
    activity: PartitionActivityType

    @property
    def is_armed(self) -> bool:
        return self.activity in (
            PartitionActivityType.ARMED_AWAY,
            PartitionActivityType.ARMED_STAY,
            PartitionActivityType.ARMED_ZERO_ENTRY_AWAY,
            PartitionActivityType.ARMED_ZERO_ENTRY_STAY,
        )


class IndicatorUpdate(BaseModel):
    """A keypad LED that changed state."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, lt=ProtocolConstants.INDICATOR_COUNT)
    state: IndicatorState

    @property
    def label(self) -> str:
        return KEYPAD_LED_LABELS[self.index]


class TroubleStatus(BaseModel):
    """
    The 8 trouble flags, replaced wholesale on every report.
    """

    model_config = ConfigDict(frozen=True)

    flags: tuple[bool, ...]

    @field_validator("flags")
    @classmethod
    def _check_width(cls, value: tuple[bool, ...]) -> tuple[bool, ...]:
        if len(value) != ProtocolConstants.INDICATOR_COUNT:
            raise ValueError(
                f"Expected {ProtocolConstants.INDICATOR_COUNT} trouble flags, got {len(value)}"
            )
        return value

    @classmethod
    def clear(cls) -> TroubleStatus:
        """All troubles off."""
        return cls(flags=(False,) * ProtocolConstants.INDICATOR_COUNT)

    @property
    def active(self) -> list[str]:
        """Labels of the troubles currently set."""
        return [label for label, on in zip(TROUBLE_LABELS, self.flags) if on]
