"""
Strip feedback observer - binds one surface slot to one channel strip.

The observer subscribes to a strip's signals, translates every change into
at most one outgoing message per affected path, and is ticked periodically
to sample values that have no change event (meters, gain under automation
playback).

Binding state machine:

    UNBOUND ──bind(strip)──▶ BOUND ──drop_references──▶ UNBOUND (idle)
       ▲                       │
       └──── bind(None) ───────┘   (cleared burst)

    any ──set_link_ready(n>0)──▶ LINK_WAIT ──set_link_ready(0)──▶ bind(pending, force)

Threading: engine callbacks and the tick may arrive on different threads.
bind() raises the `initializing` guard for its whole body and waits briefly
for an in-flight tick; callbacks arriving while the guard is up are dropped
because bind() re-reads every value itself.
"""

import time
from typing import Optional, Sequence, Union

from stripbound.config import FeedbackFlag, GainMode, RemoteAddress, SurfaceConfig
from stripbound.controls import AutomationState, Controllable, MonitorChoice
from stripbound.logging_config import get_logger
from stripbound.signals import ConnectionList, Signal
from stripbound.sink import MessageSink
from stripbound.state import ObserverState, SnapshotCache
from stripbound.strips import Properties, Stripable
from stripbound.utils import (
    METER_SILENCE_DB,
    clamp_meter,
    coefficient_to_db,
    format_gain_db,
    meter_to_interface,
    meter_to_led_bits,
    signal_present,
)

logger = get_logger(__name__)

# Ticks the numeric gain readout stays on /strip/name
GAIN_NAME_TIMEOUT = 8

# Bounded wait for an in-flight tick when rebinding
TICK_WAIT_TIMEOUT = 0.01
TICK_WAIT_POLL = 0.0001

# Cleared-state values
CLEARED_GAIN_DB = -193.0
CLEARED_PAN = 0.5

# Link-set placeholder text per slot; slot 2 shows the number of missing surfaces
LINK_PLACEHOLDERS = {1: "Device", 3: "Missing", 4: "from", 5: "Linkset"}
LINK_COUNT_SLOT = 2


class StripObserver:
    """
    Feedback adapter for one surface slot.

    Example:
        >>> sink = RecordingSink()
        >>> observer = StripObserver(1, sink, RemoteAddress(port=9000))
        >>> observer.bind(track, force=True)
        >>> observer.tick()
        >>> observer.close()
    """

    def __init__(
        self,
        ssid: int,
        sink: MessageSink,
        address: RemoteAddress,
        feedback: Union[FeedbackFlag, int] = FeedbackFlag.STRIP_BUTTONS | FeedbackFlag.STRIP_VARIABLES,
        gain_mode: Union[GainMode, int] = GainMode.DB,
    ):
        """
        Create an idle observer. Nothing is sent until bind() or clear().

        Args:
            ssid: Slot id on the surface (1-based)
            sink: Message sink shared by the surface
            address: Surface address; opened now, released by close()
            feedback: Enabled feedback categories
            gain_mode: How gain is displayed
        """
        self._ssid = ssid
        self._sink = sink
        self._address = sink.open_address(address)
        self._feedback = FeedbackFlag(feedback)
        self._gain_mode = GainMode(gain_mode)
        self._in_line = FeedbackFlag.SSID_AS_PATH in self._feedback

        self._strip: Optional[Stripable] = None
        self._connections = ConnectionList()
        self._cache = SnapshotCache()

        self._expand: Optional[int] = None
        self._link_not_ready = 0
        self._automation_state: Optional[AutomationState] = AutomationState.OFF
        self._gain_timeout = 0

        # Guards
        self._init = True
        self._dropped = False  # strip destroyed, slot not yet cleared
        self._tick_busy = False
        self._closed = False

    @classmethod
    def from_config(
        cls,
        ssid: int,
        sink: MessageSink,
        config: SurfaceConfig,
        strips: Sequence[Optional[Stripable]],
    ) -> "StripObserver":
        """
        Create an observer for a slot of a configured surface and sync it.

        The strip for the slot is taken from the already-banked strip list.
        A slot past the end of the list is cleared; while the link-set is
        not ready the slot shows its placeholder and holds the strip until
        set_link_ready(0).

        Args:
            ssid: Slot id (1-based)
            sink: Message sink
            config: Resolved surface configuration
            strips: Strips in surface order

        Returns:
            Synced observer
        """
        observer = cls(ssid, sink, config.remote_address, feedback=config.feedback, gain_mode=config.gain_mode)

        index = config.strip_index(ssid)
        strip = strips[index] if 0 <= index < len(strips) else None

        if config.link_not_ready:
            observer.set_link_ready(config.link_not_ready)
            observer.bind(strip)
        else:
            observer.bind(strip, force=True)

        observer.set_expand(config.expand if config.expand_enable else 0)
        return observer

    # Properties

    @property
    def ssid(self) -> int:
        return self._ssid

    @property
    def strip(self) -> Optional[Stripable]:
        """Observed strip (or the strip held while waiting for the link-set)."""
        return self._strip

    @property
    def state(self) -> ObserverState:
        if self._link_not_ready:
            return ObserverState.LINK_WAIT
        if self._strip is not None:
            return ObserverState.BOUND
        return ObserverState.UNBOUND

    @property
    def feedback(self) -> FeedbackFlag:
        return self._feedback

    @property
    def gain_mode(self) -> GainMode:
        return self._gain_mode

    @property
    def cache(self) -> SnapshotCache:
        return self._cache

    @property
    def initializing(self) -> bool:
        return self._init

    @property
    def tick_busy(self) -> bool:
        return self._tick_busy

    @property
    def link_not_ready(self) -> int:
        return self._link_not_ready

    @property
    def automation_state(self) -> Optional[AutomationState]:
        return self._automation_state

    @property
    def gain_timeout(self) -> int:
        return self._gain_timeout

    @property
    def subscription_count(self) -> int:
        return len(self._connections)

    @property
    def closed(self) -> bool:
        return self._closed

    # Binding

    def bind(self, strip: Optional[Stripable], force: bool = False) -> None:
        """
        Observe a strip (or clear the slot when strip is None).

        Rebinding the strip already observed is a no-op apart from the
        selection status unless force is set, in which case every value is
        sent again.

        Args:
            strip: Strip to observe, or None
            force: Resubscribe and resend even if strip is unchanged

        Raises:
            RuntimeError: If the observer was closed
        """
        self._ensure_open()

        if strip is not None and getattr(strip, "destroyed", False):
            logger.warning(f"Slot {self._ssid}: refusing to bind destroyed strip {strip!r}")
            strip = None

        if self._link_not_ready:
            # Shown once the link-set is complete
            self._strip = strip
            logger.debug(f"Slot {self._ssid}: holding {strip!r} until link-set is ready")
            return

        self._init = True
        self._wait_for_tick()

        self._cache.invalidate("gain", "trim")
        self._send_select_status()

        if strip is self._strip and not force and not self._dropped:
            # Tick must stay off while there is nothing to sample
            self._init = self._strip is None
            return

        self._connections.drop_connections()
        self._strip = strip
        self._dropped = False

        if strip is None:
            self._clear_strip()
            return

        logger.debug(f"Slot {self._ssid}: binding {strip!r} (force={force})")

        # Not gated: the strip can go away at any time, even mid-bind
        self._connections.connect(strip.drop_references, self.unbind)
        self._automation_state = AutomationState.OFF

        if FeedbackFlag.STRIP_BUTTONS in self._feedback:
            self._subscribe_buttons(strip)

        if FeedbackFlag.STRIP_VARIABLES in self._feedback:
            self._subscribe_levels(strip)

        self._init = False
        self.tick()

    def unbind(self) -> None:
        """
        Stop observing the current strip because it is being destroyed.

        Leaves the observer idle without touching the strip or sending
        anything; the banking layer rebinds once slots are recalculated.
        The next bind() always takes effect, so bind(None) sends the
        cleared burst instead of leaving the dead strip on the surface.
        """
        self._init = True
        self._connections.drop_connections()
        strip, self._strip = self._strip, None
        self._cache.reset()
        self._dropped = True
        logger.debug(f"Slot {self._ssid}: strip {strip!r} dropped, idle until rebound")

    def clear(self) -> None:
        """Forget the strip and send the neutral cleared state."""
        self._ensure_open()
        self._init = True
        self._wait_for_tick()
        self._strip = None
        self._dropped = False
        self._clear_strip()

    def set_link_ready(self, not_ready: int) -> None:
        """
        Update link-set readiness.

        Args:
            not_ready: Number of surfaces the link-set still waits for;
                0 resumes normal feedback for the held strip

        Raises:
            ValueError: If not_ready is negative
        """
        if not_ready < 0:
            raise ValueError(f"not_ready must be >= 0, got {not_ready}")
        self._ensure_open()

        if not_ready:
            self._link_not_ready = not_ready
            self._init = True
            self._wait_for_tick()
            self._clear_strip()

            if self._ssid == LINK_COUNT_SLOT:
                placeholder: Optional[str] = str(not_ready)
            else:
                placeholder = LINK_PLACEHOLDERS.get(self._ssid)
            if placeholder is not None:
                self._send_text("/strip/name", placeholder)
            logger.debug(f"Slot {self._ssid}: waiting for {not_ready} link-set surface(s)")
        else:
            self._link_not_ready = 0
            logger.debug(f"Slot {self._ssid}: link-set ready")
            self.bind(self._strip, force=True)

    def set_expand(self, expand: int) -> None:
        """
        Update the surface-wide expanded slot.

        Args:
            expand: Slot id currently expanded (0 for none)
        """
        self._ensure_open()
        if expand == self._expand:
            return
        self._expand = expand
        self._send_float("/strip/expand", 1.0 if expand == self._ssid else 0.0)

    def close(self) -> None:
        """Drop every subscription, then release the surface address."""
        if self._closed:
            return
        self._init = True
        self._connections.drop_connections()
        self._strip = None
        self._closed = True
        self._sink.release_address(self._address)
        logger.debug(f"Slot {self._ssid}: closed")

    # Periodic sampling

    def tick(self) -> None:
        """
        Sample meters and automation-driven gain.

        Called periodically by the surface driver; a no-op while binding,
        cleared or idle.
        """
        if self._init:
            return
        strip = self._strip
        if strip is None:
            return

        self._tick_busy = True
        try:
            if self._feedback.has_meter:
                self._sample_meter(strip)

            if FeedbackFlag.STRIP_VARIABLES in self._feedback:
                if self._gain_timeout:
                    if self._gain_timeout == 1:
                        self._send_text("/strip/name", strip.name)
                    self._gain_timeout -= 1

                if self._automation_state is not None and self._automation_state.is_playing:
                    self._send_gain_message()
        finally:
            self._tick_busy = False

    def _sample_meter(self, strip: Stripable) -> None:
        meter = strip.peak_meter
        sampled = meter.meter_level(0) if meter is not None else METER_SILENCE_DB
        level = clamp_meter(sampled)

        meter_flags = FeedbackFlag.METER | FeedbackFlag.METER_LED_STRIP
        if self._feedback & meter_flags and self._cache.update("meter", level):
            if FeedbackFlag.METER in self._feedback:
                if self._gain_mode.uses_fader:
                    self._send_float("/strip/meter", meter_to_interface(level))
                else:
                    self._send_float("/strip/meter", level)
            else:
                self._send_int("/strip/meter", meter_to_led_bits(level))

        if FeedbackFlag.SIGNAL_PRESENT in self._feedback:
            signal = signal_present(sampled)
            if self._cache.update("signal", signal):
                self._send_float("/strip/signal", signal)

    # Subscriptions

    def _subscribe_buttons(self, strip: Stripable) -> None:
        self._connect(strip.property_changed, self._name_changed)
        self._name_changed(frozenset({Properties.NAME}))

        self._connect(strip.presentation_changed, self._presentation_changed)
        self._send_int("/strip/hide", int(strip.is_hidden()))

        self._watch_control("/strip/mute", strip.mute_control)
        self._watch_control("/strip/solo", strip.solo_control)
        self._watch_control("/strip/solo_iso", strip.solo_isolate_control)
        self._watch_control("/strip/solo_safe", strip.solo_safe_control)

        monitoring = strip.monitoring_control
        if strip.is_track and monitoring is not None:
            self._connect(monitoring.changed, self._send_monitor_status, monitoring)
            self._send_monitor_status(monitoring)

        self._watch_control("/strip/recenable", strip.rec_enable_control)
        self._watch_control("/strip/record_safe", strip.rec_safe_control)

        self._connect(strip.presentation_changed, self._send_select_status)
        self._send_select_status()

    def _subscribe_levels(self, strip: Stripable) -> None:
        gain = strip.gain_control
        self._connect(gain.automation_state_changed, self._gain_automation)
        self._connect(gain.changed, self._send_gain_message)
        self._gain_automation()

        trim = strip.trim_control
        if trim is not None:
            self._connect(trim.changed, self._send_trim_message)
            self._send_trim_message()

        self._watch_control("/strip/pan_stereo_position", strip.pan_azimuth_control)

    def _watch_control(self, path: str, control: Optional[Controllable]) -> None:
        """Subscribe to an optional control and send its current value."""
        if control is None:
            return
        self._connect(control.changed, self._send_change_message, path, control)
        self._send_change_message(path, control)

    def _connect(self, signal: Signal, handler, *args) -> None:
        """
        Subscribe handler(*args, *signal_args) to signal.

        Events delivered while the observer is initializing are dropped.
        """

        def on_signal(*signal_args):
            if self._init:
                return
            handler(*args, *signal_args)

        on_signal.__name__ = getattr(handler, "__name__", "on_signal")
        self._connections.connect(signal, on_signal)

    # Emission

    def _name_changed(self, what_changed: frozenset) -> None:
        if Properties.NAME not in what_changed:
            return
        strip = self._strip
        if strip is not None:
            self._send_text("/strip/name", strip.name)

    def _presentation_changed(self, what_changed: frozenset) -> None:
        strip = self._strip
        if strip is not None:
            self._send_int("/strip/hide", int(strip.is_hidden()))

    def _send_select_status(self, what_changed: frozenset = frozenset({Properties.SELECTED})) -> None:
        if Properties.SELECTED not in what_changed:
            return
        strip = self._strip
        if strip is not None:
            self._send_float("/strip/select", 1.0 if strip.is_selected() else 0.0)

    def _send_change_message(self, path: str, control: Controllable) -> None:
        self._send_float(path, control.internal_to_interface(control.get_value()))

    def _send_monitor_status(self, control: Controllable) -> None:
        choice = int(control.get_value())
        monitor_input = int(choice in (MonitorChoice.INPUT, MonitorChoice.CUE))
        monitor_disk = int(choice in (MonitorChoice.DISK, MonitorChoice.CUE))
        self._send_int("/strip/monitor_input", monitor_input)
        self._send_int("/strip/monitor_disk", monitor_disk)

    def _send_trim_message(self) -> None:
        strip = self._strip
        if strip is None or strip.trim_control is None:
            return
        value = strip.trim_control.get_value()
        if not self._cache.update("trim", value):
            return
        self._send_float("/strip/trimdB", coefficient_to_db(value))

    def _send_gain_message(self) -> None:
        strip = self._strip
        if strip is None:
            return
        control = strip.gain_control
        value = control.get_value()
        if not self._cache.update("gain", value):
            return

        if self._gain_mode.uses_fader:
            self._send_float("/strip/fader", control.internal_to_interface(value))
            if self._gain_mode == GainMode.FADER_WITH_NAME:
                self._send_text("/strip/name", format_gain_db(value))
                self._gain_timeout = GAIN_NAME_TIMEOUT

        if self._gain_mode.uses_db:
            # coefficient_to_db floors silence instead of returning -inf
            self._send_float("/strip/gain", coefficient_to_db(value))

    def _gain_automation(self) -> None:
        strip = self._strip
        if strip is None:
            return

        # A mode change always refreshes the displayed gain
        self._cache.invalidate("gain")
        self._send_gain_message()

        path = "/strip/fader" if self._gain_mode.uses_fader else "/strip/gain"
        raw_state = strip.gain_control.automation_state
        try:
            state = AutomationState(raw_state)
        except ValueError:
            logger.warning(f"Slot {self._ssid}: unknown automation state {raw_state!r}, not reported")
            self._automation_state = None
            return

        self._automation_state = state
        self._send_float(f"{path}/automation", float(state.code))
        self._send_text(f"{path}/automation_name", state.label)

    def _clear_strip(self) -> None:
        """Drop subscriptions and send every path's neutral value."""
        self._init = True
        self._connections.drop_connections()
        self._cache.reset()
        self._gain_timeout = 0
        logger.debug(f"Slot {self._ssid}: cleared")

        self._send_float("/strip/expand", 0.0)

        if FeedbackFlag.STRIP_BUTTONS in self._feedback:
            self._send_text("/strip/name", " ")
            for path in (
                "/strip/mute",
                "/strip/solo",
                "/strip/recenable",
                "/strip/record_safe",
                "/strip/monitor_input",
                "/strip/monitor_disk",
                "/strip/gui_select",
                "/strip/select",
            ):
                self._send_float(path, 0.0)

        if FeedbackFlag.STRIP_VARIABLES in self._feedback:
            if self._gain_mode.uses_fader:
                self._send_float("/strip/fader", 0.0)
            else:
                self._send_float("/strip/gain", CLEARED_GAIN_DB)
            self._send_float("/strip/trimdB", 0.0)
            self._send_float("/strip/pan_stereo_position", CLEARED_PAN)

        if FeedbackFlag.SIGNAL_PRESENT in self._feedback:
            self._send_float("/strip/signal", 0.0)

        if FeedbackFlag.METER in self._feedback:
            self._send_float("/strip/meter", 0.0 if self._gain_mode.uses_fader else METER_SILENCE_DB)
        elif FeedbackFlag.METER_LED_STRIP in self._feedback:
            self._send_float("/strip/meter", 0.0)

    # Helpers

    def _wait_for_tick(self) -> None:
        """Give an in-flight tick on another thread a moment to finish."""
        if not self._tick_busy:
            return
        deadline = time.monotonic() + TICK_WAIT_TIMEOUT
        while self._tick_busy and time.monotonic() < deadline:
            time.sleep(TICK_WAIT_POLL)
        if self._tick_busy:
            logger.debug(f"Slot {self._ssid}: tick still running after {TICK_WAIT_TIMEOUT}s, continuing")

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"Observer for slot {self._ssid} is closed")

    def _send_float(self, path: str, value: float) -> None:
        self._sink.float_message_with_id(path, self._ssid, value, self._in_line, self._address)

    def _send_int(self, path: str, value: int) -> None:
        self._sink.int_message_with_id(path, self._ssid, value, self._in_line, self._address)

    def _send_text(self, path: str, value: str) -> None:
        self._sink.text_message_with_id(path, self._ssid, value, self._in_line, self._address)

    def __repr__(self) -> str:
        return f"StripObserver(ssid={self._ssid}, state={self.state.value}, strip={self._strip!r})"
