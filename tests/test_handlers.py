"""Tests for the dispatcher chain and its handlers."""

from datetime import datetime

import pytest

from tpibridge.handlers import build_standard_chain
from tpibridge.handlers.base import CommandHandler, DispatcherChain
from tpibridge.handlers.keypad import KeypadIndicators, KeypadLEDHandler
from tpibridge.handlers.login import LoginHandler
from tpibridge.handlers.partitions import PartitionStateHandler, decode_armed_mode
from tpibridge.handlers.reaction import ReactionHandler, SystemErrorHandler
from tpibridge.handlers.system import (
    InformationalHandler,
    TimeBroadcastHandler,
    TroubleHandler,
    decode_broadcast_time,
    describe_informational,
)
from tpibridge.handlers.zones import (
    ZoneStateHandler,
    ZoneTimerDumpHandler,
    decode_zone_state,
    decode_zone_timers,
)
from tpibridge.exceptions import ProtocolError
from tpibridge.protocol.constants import (
    IndicatorState,
    PartitionActivityType,
    ZoneActivityType,
)
from tpibridge.protocol.frame_reader import ParsedFrame


class TestReactionHandlers:
    """Tests for acknowledgement, command error and system error."""

    def test_ack_reports_command(self):
        """Test that 500 reports the acknowledged command."""
        acks = []
        chain = DispatcherChain([ReactionHandler(on_ack=acks.append)])

        assert chain.dispatch(ParsedFrame("500", "005")) is None
        assert acks == ["005"]

    def test_command_error(self):
        """Test that 501 invokes the error callback."""
        errors = []
        chain = DispatcherChain([ReactionHandler(on_command_error=lambda: errors.append(True))])

        chain.dispatch(ParsedFrame("501"))
        assert errors == [True]

    def test_system_error_reports_code(self):
        """Test that 502 reports the error code."""
        codes = []
        chain = DispatcherChain([SystemErrorHandler(on_error=codes.append)])

        chain.dispatch(ParsedFrame("502", "020"))
        assert codes == ["020"]


class TestLoginHandler:
    """Tests for the login handshake."""

    @pytest.fixture
    def sent(self):
        """Collect outbound (command, data) pairs."""
        return []

    @pytest.fixture
    def outcomes(self):
        return []

    @pytest.fixture
    def chain(self, sent, outcomes):
        """Create a chain holding only the login handler."""
        handler = LoginHandler(
            lambda command, data: sent.append((command, data)),
            "user",
            on_success=lambda: outcomes.append("success"),
            on_failure=lambda: outcomes.append("failure"),
        )
        return DispatcherChain([handler])

    def test_timeout_required_success_sequence(self, chain, sent, outcomes):
        """Test that timeout and required each resend the password once."""
        for data in ("2", "3", "1"):
            assert chain.dispatch(ParsedFrame("505", data)) is None

        other = ParsedFrame("609", "001")
        assert chain.dispatch(other) is other

        assert sent == [("005", "user"), ("005", "user")]
        assert outcomes == ["success"]

    def test_failure_not_retried(self, chain, sent, outcomes):
        """Test that a rejected password is reported once without a retry."""
        chain.dispatch(ParsedFrame("505", "0"))

        assert outcomes == ["failure"]
        assert sent == []

    def test_unknown_state_consumed(self, chain, sent, outcomes):
        """Test that an unknown login state is ignored and not forwarded."""
        assert chain.dispatch(ParsedFrame("505", "9")) is None
        assert sent == []
        assert outcomes == []


class TestKeypadLEDHandler:
    """Tests for the keypad LED diff."""

    def test_steady_and_flash_sequence(self):
        """Test combined state reporting across both fields."""
        changes = []
        handler = KeypadLEDHandler(on_change=lambda index, state: changes.append((index, state)))
        chain = DispatcherChain([handler])

        for command, data in [("511", "40"), ("510", "40"), ("511", "00"), ("510", "00")]:
            chain.dispatch(ParsedFrame(command, data))

        assert changes == [(6, 2), (6, 2), (6, 1), (6, 0)]

    def test_only_changed_bits_reported(self):
        """Test that repeating a field reports nothing."""
        changes = []
        chain = DispatcherChain([KeypadLEDHandler(lambda i, s: changes.append(i))])

        chain.dispatch(ParsedFrame("510", "81"))
        chain.dispatch(ParsedFrame("510", "81"))

        assert changes == [0, 7]

    def test_state_survives_between_frames(self):
        """Test that the handler keeps both fields."""
        handler = KeypadLEDHandler()
        handler.handle(ParsedFrame("510", "01"))
        handler.handle(ParsedFrame("511", "02"))

        assert handler.indicators.state(0) == IndicatorState.ON
        assert handler.indicators.state(1) == IndicatorState.FLASHING
        assert handler.indicators.state(2) == IndicatorState.OFF

    def test_indicators_apply(self):
        """Test KeypadIndicators.apply() directly."""
        leds = KeypadIndicators()
        updates = leds.apply(flashing=False, bits=(True,) + (False,) * 7)

        assert len(updates) == 1
        assert updates[0].index == 0
        assert updates[0].label == "ready"
        assert updates[0].state == IndicatorState.ON

    def test_malformed_bitfield_dropped(self):
        """Test that non-hex LED data is dropped without a callback."""
        changes = []
        chain = DispatcherChain([KeypadLEDHandler(lambda i, s: changes.append(i))])

        assert chain.dispatch(ParsedFrame("510", "XY")) is None
        assert changes == []

    @pytest.mark.parametrize(
        ("command", "data"), [("510", "-1"), ("511", "0x_40"), ("510", " 1"), ("511", "+F")]
    )
    def test_loose_integer_syntax_dropped(self, command, data):
        """Test that signs, prefixes and blanks in LED data are rejected."""
        changes = []
        chain = DispatcherChain([KeypadLEDHandler(lambda i, s: changes.append(i))])

        assert chain.dispatch(ParsedFrame(command, data)) is None
        assert changes == []


class TestTimeBroadcastHandler:
    """Tests for the 550 time broadcast."""

    def test_decode(self):
        """Test decoding hour, minute, month, day and year."""
        assert decode_broadcast_time("1645022020") == datetime(2020, 2, 20, 16, 45)

    def test_handler(self):
        """Test the handler reports the decoded time."""
        times = []
        DispatcherChain([TimeBroadcastHandler(times.append)]).dispatch(
            ParsedFrame("550", "0905123124")
        )
        assert times == [datetime(2024, 12, 31, 9, 5)]

    def test_invalid_date_raises(self):
        """Test that an impossible date raises ProtocolError."""
        with pytest.raises(ProtocolError):
            decode_broadcast_time("1645133020")


class TestZoneStateHandler:
    """Tests for zone state reports."""

    def test_open_without_partition(self):
        """Test a zone open report."""
        state = decode_zone_state(ParsedFrame("609", "001"))

        assert state.zone == "001"
        assert state.zone_number == 1
        assert state.situation == ZoneActivityType.NORMAL
        assert state.restored is False
        assert state.partition is None

    def test_restored(self):
        """Test a zone restored report."""
        state = decode_zone_state(ParsedFrame("610", "012"))
        assert state.situation == ZoneActivityType.NORMAL
        assert state.restored is True

    def test_fault_and_restore(self):
        """Test fault reports."""
        assert decode_zone_state(ParsedFrame("605", "004")).situation == ZoneActivityType.FAULT
        assert decode_zone_state(ParsedFrame("606", "004")).restored is True

    def test_alarm_with_partition(self):
        """Test an alarm report carrying the partition first."""
        state = decode_zone_state(ParsedFrame("601", "1003"))

        assert state.partition == "1"
        assert state.zone == "003"
        assert state.situation == ZoneActivityType.ALARM
        assert state.restored is False

    def test_tamper_restored_with_partition(self):
        """Test a tamper restore report."""
        state = decode_zone_state(ParsedFrame("604", "2064"))

        assert state.partition == "2"
        assert state.zone == "064"
        assert state.situation == ZoneActivityType.TAMPER
        assert state.restored is True

    def test_short_data_raises(self):
        """Test that missing zone digits raise ProtocolError."""
        with pytest.raises(ProtocolError):
            decode_zone_state(ParsedFrame("601", "10"))

    def test_handler_callback(self):
        """Test the handler reports each zone state."""
        zones = []
        chain = DispatcherChain([ZoneStateHandler(zones.append)])
        chain.dispatch(ParsedFrame("602", "1001"))

        assert len(zones) == 1
        assert zones[0].situation == ZoneActivityType.ALARM
        assert zones[0].restored is True


class TestZoneTimerDumpHandler:
    """Tests for the 615 zone timer dump."""

    def test_decode(self):
        """Test durations and flags of a four zone dump."""
        timers = decode_zone_timers("FFFF00FFDFB10000")

        assert [t.zone for t in timers] == [1, 2, 3, 4]
        assert [t.duration for t in timers] == [0, 1275, 100000, 327675]
        assert [t.restored for t in timers] == [False, True, True, True]
        assert [t.maxed for t in timers] == [False, False, False, True]

    def test_empty_dump(self):
        """Test that an empty dump yields no entries."""
        assert decode_zone_timers("") == []

    def test_partial_word_raises(self):
        """Test that a truncated dump raises ProtocolError."""
        with pytest.raises(ProtocolError):
            decode_zone_timers("FFFF00")

    def test_handler_callback(self):
        """Test the handler reports the whole dump at once."""
        dumps = []
        DispatcherChain([ZoneTimerDumpHandler(dumps.append)]).dispatch(
            ParsedFrame("615", "FFFFFFFF")
        )
        assert len(dumps) == 1
        assert len(dumps[0]) == 2


class TestPartitionStateHandler:
    """Tests for partition status reports."""

    @pytest.fixture
    def states(self):
        return []

    @pytest.fixture
    def chain(self, states):
        return DispatcherChain([PartitionStateHandler(states.append)])

    @pytest.mark.parametrize(
        "command, activity",
        [
            ("650", PartitionActivityType.READY),
            ("651", PartitionActivityType.NOT_READY),
            ("653", PartitionActivityType.READY_FORCE_ARMING),
            ("654", PartitionActivityType.ALARM),
            ("655", PartitionActivityType.DISARMED),
            ("656", PartitionActivityType.EXIT_DELAY),
            ("657", PartitionActivityType.ENTRY_DELAY),
            ("659", PartitionActivityType.ARM_FAILED),
            ("672", PartitionActivityType.ARM_FAILED),
            ("673", PartitionActivityType.BUSY),
            ("674", PartitionActivityType.ARMING),
        ],
    )
    def test_fixed_activities(self, chain, states, command, activity):
        """Test the table of fixed partition activities."""
        chain.dispatch(ParsedFrame(command, "1"))

        assert states[0].partition == "1"
        assert states[0].activity == activity

    @pytest.mark.parametrize(
        "digit, activity",
        [
            ("0", PartitionActivityType.ARMED_AWAY),
            ("1", PartitionActivityType.ARMED_STAY),
            ("2", PartitionActivityType.ARMED_ZERO_ENTRY_AWAY),
            ("3", PartitionActivityType.ARMED_ZERO_ENTRY_STAY),
        ],
    )
    def test_armed_modes(self, chain, states, digit, activity):
        """Test the 652 armed variants."""
        chain.dispatch(ParsedFrame("652", "2" + digit))

        assert states[0].partition == "2"
        assert states[0].activity == activity
        assert states[0].is_armed

    @pytest.mark.parametrize("digit", ["4", "9", "", "x", "\u00b2", "\u0663"])
    def test_unknown_armed_mode_rejected(self, chain, states, digit):
        """Test that armed mode digits outside 0-3 report nothing."""
        assert chain.dispatch(ParsedFrame("652", "1" + digit)) is None
        assert states == []

    def test_decode_armed_mode_raises(self):
        """Test decode_armed_mode() rejects out-of-range digits."""
        with pytest.raises(ProtocolError):
            decode_armed_mode("4")


class TestTroubleHandler:
    """Tests for trouble reports."""

    @pytest.fixture
    def statuses(self):
        return []

    @pytest.fixture
    def chain(self, statuses):
        return DispatcherChain([TroubleHandler(statuses.append)])

    def test_verbose_status(self, chain, statuses):
        """Test that 849 passes the bitfield through."""
        chain.dispatch(ParsedFrame("849", "50"))

        assert statuses[0].flags == (False, False, False, False, True, False, True, False)
        assert statuses[0].active == ["zone-fault", "zone-low-battery"]

    def test_led_on_is_noop(self, chain, statuses):
        """Test that 840 is claimed but reports nothing."""
        assert chain.dispatch(ParsedFrame("840", "1")) is None
        assert statuses == []

    def test_led_off_clears(self, chain, statuses):
        """Test that 841 clears every flag."""
        chain.dispatch(ParsedFrame("841", "1"))
        assert statuses[0].flags == (False,) * 8


class TestInformationalHandler:
    """Tests for log-only reports."""

    def test_partition_and_user_detail(self):
        """Test that partition and user are extracted."""
        assert (
            describe_informational(ParsedFrame("700", "11234"))
            == "User closing. Partition: 1, user: 1234"
        )

    def test_message_without_detail(self):
        """Test a report without data fields."""
        assert describe_informational(ParsedFrame("802")) == "Panel AC trouble"

    def test_handler_forwards_text(self):
        """Test the handler hands the text to its callback."""
        messages = []
        chain = DispatcherChain([InformationalHandler(messages.append)])

        assert chain.dispatch(ParsedFrame("663", "1")) is None
        assert messages == ["Chime enabled. Partition: 1"]


class TestDispatcherChain:
    """Tests for DispatcherChain routing."""

    def test_unhandled_passes_through(self):
        """Test that an unclaimed frame is returned and reported."""
        unhandled = []
        chain = DispatcherChain([ReactionHandler()], on_unhandled=unhandled.append)
        frame = ParsedFrame("999", "abc")

        assert chain.dispatch(frame) is frame
        assert unhandled == [frame]

    def test_first_handler_wins(self):
        """Test that the earliest handler claiming a code owns it."""
        calls = []

        class First(CommandHandler):
            commands = frozenset({"500"})

            def handle(self, frame):
                calls.append("first")

        class Second(CommandHandler):
            commands = frozenset({"500"})

            def handle(self, frame):
                calls.append("second")

        chain = DispatcherChain([First(), Second()])
        chain.dispatch(ParsedFrame("500", "000"))

        assert calls == ["first"]
        assert isinstance(chain.handler_for("500"), First)

    def test_handler_for_unknown(self):
        """Test lookup of an unclaimed code."""
        assert DispatcherChain([]).handler_for("500") is None

    @pytest.mark.asyncio
    async def test_run_yields_unhandled(self):
        """Test the async form of the chain."""
        acks = []
        chain = DispatcherChain([ReactionHandler(on_ack=acks.append)])

        async def frames():
            yield ParsedFrame("500", "000")
            yield ParsedFrame("999")
            yield ParsedFrame("500", "001")

        unhandled = [frame async for frame in chain.run(frames())]

        assert unhandled == [ParsedFrame("999")]
        assert acks == ["000", "001"]


class TestStandardChain:
    """Tests for build_standard_chain()."""

    def test_order(self):
        """Test the standard handler order."""
        chain = build_standard_chain(lambda c, d: None, "user")
        names = [type(h).__name__ for h in chain.handlers]

        assert names == [
            "ReactionHandler",
            "SystemErrorHandler",
            "LoginHandler",
            "KeypadLEDHandler",
            "TimeBroadcastHandler",
            "ZoneStateHandler",
            "ZoneTimerDumpHandler",
            "PartitionStateHandler",
            "TroubleHandler",
            "InformationalHandler",
        ]

    def test_without_informational(self):
        """Test that informational codes become unhandled when disabled."""
        unhandled = []
        chain = build_standard_chain(
            lambda c, d: None, "user", on_unhandled=unhandled.append, informational=False
        )

        chain.dispatch(ParsedFrame("700", "11234"))
        assert unhandled == [ParsedFrame("700", "11234")]

    def test_callbacks_wired(self):
        """Test that domain callbacks reach their handlers."""
        zones, partitions = [], []
        chain = build_standard_chain(
            lambda c, d: None, "user", on_zone=zones.append, on_partition=partitions.append
        )

        chain.dispatch(ParsedFrame("609", "005"))
        chain.dispatch(ParsedFrame("650", "1"))

        assert zones[0].zone == "005"
        assert partitions[0].activity == PartitionActivityType.READY
