"""
Data models for decoded TPI state.

- Zone situations and zone timer dump entries
- Partition activity
- Keypad indicator updates and trouble flags
"""

from tpibridge.models.records import (
    KEYPAD_LED_LABELS,
    TROUBLE_LABELS,
    IndicatorUpdate,
    PartitionState,
    TroubleStatus,
    ZoneState,
    ZoneTimerEntry,
)

__all__ = [
    "ZoneState",
    "ZoneTimerEntry",
    "PartitionState",
    "IndicatorUpdate",
    "TroubleStatus",
    "KEYPAD_LED_LABELS",
    "TROUBLE_LABELS",
]
