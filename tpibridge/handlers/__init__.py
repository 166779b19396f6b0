"""
Command dispatcher chain and its handlers.

Standard processing order:

1. ReactionHandler (500, 501)
2. SystemErrorHandler (502)
3. LoginHandler (505)
4. KeypadLEDHandler (510, 511)
5. TimeBroadcastHandler (550)
6. ZoneStateHandler (601-606, 609, 610)
7. ZoneTimerDumpHandler (615)
8. PartitionStateHandler (650-657, 659, 672-674)
9. TroubleHandler (840, 841, 849)
10. InformationalHandler (log-only long tail), optional
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from tpibridge.handlers.base import CommandHandler, DispatcherChain, UnhandledCallback
from tpibridge.handlers.keypad import KeypadIndicators, KeypadLEDHandler
from tpibridge.handlers.login import LoginHandler, SendCallback
from tpibridge.handlers.partitions import PartitionStateHandler, decode_partition_state
from tpibridge.handlers.reaction import ReactionHandler, SystemErrorHandler
from tpibridge.handlers.system import (
    InformationalHandler,
    TimeBroadcastHandler,
    TroubleHandler,
    decode_broadcast_time,
)
from tpibridge.handlers.zones import (
    ZoneStateHandler,
    ZoneTimerDumpHandler,
    decode_zone_state,
    decode_zone_timers,
)
from tpibridge.models.records import PartitionState, TroubleStatus, ZoneState, ZoneTimerEntry
from tpibridge.protocol.constants import IndicatorState


def build_standard_chain(
    send: SendCallback,
    password: str,
    *,
    on_ack: Callable[[str], None] | None = None,
    on_command_error: Callable[[], None] | None = None,
    on_system_error: Callable[[str], None] | None = None,
    on_login_success: Callable[[], None] | None = None,
    on_login_failure: Callable[[], None] | None = None,
    on_indicator: Callable[[int, IndicatorState], None] | None = None,
    on_time: Callable[[datetime], None] | None = None,
    on_zone: Callable[[ZoneState], None] | None = None,
    on_zone_timers: Callable[[list[ZoneTimerEntry]], None] | None = None,
    on_partition: Callable[[PartitionState], None] | None = None,
    on_trouble: Callable[[TroubleStatus], None] | None = None,
    on_unhandled: UnhandledCallback | None = None,
    informational: bool = True,
) -> DispatcherChain:
    """
    Build a chain with every handler in the standard order.

    Args:
        send: Outbound channel used by the login handshake.
        password: TPI password.
        informational: Include the log-only handler; when False those
            codes reach `on_unhandled`.
    """
    handlers: list[CommandHandler] = [
        ReactionHandler(on_ack, on_command_error),
        SystemErrorHandler(on_system_error),
        LoginHandler(send, password, on_login_success, on_login_failure),
        KeypadLEDHandler(on_indicator),
        TimeBroadcastHandler(on_time),
        ZoneStateHandler(on_zone),
        ZoneTimerDumpHandler(on_zone_timers),
        PartitionStateHandler(on_partition),
        TroubleHandler(on_trouble),
    ]
    if informational:
        handlers.append(InformationalHandler())
    return DispatcherChain(handlers, on_unhandled)


__all__ = [
    "CommandHandler",
    "DispatcherChain",
    "build_standard_chain",
    "ReactionHandler",
    "SystemErrorHandler",
    "LoginHandler",
    "KeypadLEDHandler",
    "KeypadIndicators",
    "TimeBroadcastHandler",
    "ZoneStateHandler",
    "ZoneTimerDumpHandler",
    "PartitionStateHandler",
    "TroubleHandler",
    "InformationalHandler",
    "decode_zone_state",
    "decode_zone_timers",
    "decode_partition_state",
    "decode_broadcast_time",
]
