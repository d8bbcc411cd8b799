"""
Mixer control abstractions observed by stripbound.

This module models the controls a mixing engine exposes on a channel strip:
generic ranged controls, gain with automation state, monitoring selection
and peak meters. Each control owns a `changed` Signal that fires whenever
its value actually changes. Hosts bridging a real engine implement the same
surface; the in-memory classes here are complete engines for tests, demos
and software mixers.
"""

import threading
from enum import Enum, IntEnum
from typing import Optional

from stripbound.signals import Signal
from stripbound.utils import (
    MAX_GAIN_COEFFICIENT,
    METER_SILENCE_DB,
    gain_to_slider_position_with_max,
    slider_position_to_gain_with_max,
)


class AutomationState(str, Enum):
    """Automation mode of a control's automation list."""

    OFF = "off"  # Manual
    PLAY = "play"
    WRITE = "write"
    TOUCH = "touch"
    LATCH = "latch"

    @property
    def code(self) -> int:
        """Numeric code sent to surfaces."""
        return _AUTOMATION_CODES[self]

    @property
    def label(self) -> str:
        """Human-readable name sent to surfaces."""
        return _AUTOMATION_LABELS[self]

    @property
    def is_playing(self) -> bool:
        """True for modes where the engine moves the control on its own."""
        return self in (AutomationState.PLAY, AutomationState.TOUCH)


_AUTOMATION_CODES = {
    AutomationState.OFF: 0,
    AutomationState.PLAY: 1,
    AutomationState.WRITE: 2,
    AutomationState.TOUCH: 3,
    AutomationState.LATCH: 4,
}

_AUTOMATION_LABELS = {
    AutomationState.OFF: "Manual",
    AutomationState.PLAY: "Play",
    AutomationState.WRITE: "Write",
    AutomationState.TOUCH: "Touch",
    AutomationState.LATCH: "Latch",
}


class MonitorChoice(IntEnum):
    """Values of a track's monitoring control."""

    AUTO = 0
    INPUT = 1
    DISK = 2
    CUE = 3  # Input and disk together


class Controllable:
    """
    A ranged, observable control value.

    Values are stored in the engine's internal unit. The default interface
    mapping is linear over [lower, upper]; subclasses with a non-linear
    law (gain) override internal_to_interface/interface_to_internal.
    """

    def __init__(self, name: str, lower: float = 0.0, upper: float = 1.0, normal: float = 0.0):
        """
        Initialize control at its normal value.

        Args:
            name: Control name, used in log output
            lower: Lowest internal value
            upper: Highest internal value
            normal: Default internal value
        """
        if upper <= lower:
            raise ValueError(f"Control '{name}': upper ({upper}) must be above lower ({lower})")

        self._name = name
        self._lower = lower
        self._upper = upper
        self._normal = normal
        self._value = self._clamp(normal)
        self._lock = threading.RLock()
        self.changed = Signal(f"{name}.changed")

    @property
    def name(self) -> str:
        return self._name

    @property
    def lower(self) -> float:
        return self._lower

    @property
    def upper(self) -> float:
        return self._upper

    @property
    def normal(self) -> float:
        return self._normal

    def get_value(self) -> float:
        """Get current internal value (thread-safe)."""
        with self._lock:
            return self._value

    def set_value(self, value: float) -> bool:
        """
        Set the internal value and notify observers on change.

        Args:
            value: New internal value, clamped to [lower, upper]

        Returns:
            True if the value changed
        """
        value = self._clamp(float(value))
        with self._lock:
            if value == self._value:
                return False
            self._value = value

        # Emit outside the lock so observers can read back freely
        self.changed.emit()
        return True

    def set_interface(self, position: float) -> bool:
        """Set the value from a 0..1 interface position."""
        return self.set_value(self.interface_to_internal(position))

    def internal_to_interface(self, value: float) -> float:
        """Map an internal value to 0..1."""
        return (value - self._lower) / (self._upper - self._lower)

    def interface_to_internal(self, position: float) -> float:
        """Map a 0..1 position to an internal value."""
        return self._lower + position * (self._upper - self._lower)

    def _clamp(self, value: float) -> float:
        return max(self._lower, min(self._upper, value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, value={self.get_value()!r})"


class ToggleControl(Controllable):
    """Binary control (mute, solo, record enable...)."""

    def __init__(self, name: str, normal: bool = False):
        super().__init__(name, lower=0.0, upper=1.0, normal=1.0 if normal else 0.0)

    @property
    def enabled(self) -> bool:
        return self.get_value() > 0.5

    def set_enabled(self, enabled: bool) -> bool:
        return self.set_value(1.0 if enabled else 0.0)


class PanAzimuthControl(Controllable):
    """Stereo position, 0.0 hard left to 1.0 hard right."""

    def __init__(self, name: str = "pan"):
        super().__init__(name, lower=0.0, upper=1.0, normal=0.5)


class TrimControl(Controllable):
    """Input trim as a linear coefficient, -20 dB to +20 dB."""

    def __init__(self, name: str = "trim"):
        super().__init__(name, lower=0.1, upper=10.0, normal=1.0)


class MonitorControl(Controllable):
    """Track monitoring selection, see MonitorChoice."""

    def __init__(self, name: str = "monitoring"):
        super().__init__(name, lower=float(MonitorChoice.AUTO), upper=float(MonitorChoice.CUE), normal=0.0)

    def set_choice(self, choice: MonitorChoice) -> bool:
        return self.set_value(float(choice))


class GainControl(Controllable):
    """
    Fader gain as a linear coefficient with an automation state.

    The interface mapping follows the fader law in stripbound.utils so a
    position of 1.0 is the top of the fader (+6 dB by default).
    """

    def __init__(self, name: str = "gain", max_gain: float = MAX_GAIN_COEFFICIENT):
        super().__init__(name, lower=0.0, upper=max_gain, normal=1.0)
        self._automation_state = AutomationState.OFF
        self.automation_state_changed = Signal(f"{name}.automation_state_changed")

    @property
    def automation_state(self) -> AutomationState:
        with self._lock:
            return self._automation_state

    def set_automation_state(self, state: AutomationState) -> bool:
        """
        Change the automation mode and notify observers on change.

        Returns:
            True if the mode changed
        """
        with self._lock:
            if state == self._automation_state:
                return False
            self._automation_state = state

        self.automation_state_changed.emit()
        return True

    def play_automation(self, value: float) -> None:
        """
        Move the gain the way automation playback does.

        Playback writes the value without emitting `changed`; surfaces pick
        the motion up on their next tick.
        """
        with self._lock:
            self._value = self._clamp(float(value))

    def internal_to_interface(self, value: float) -> float:
        return gain_to_slider_position_with_max(value, self._upper)

    def interface_to_internal(self, position: float) -> float:
        return slider_position_to_gain_with_max(position, self._upper)


class PeakMeter:
    """
    Per-channel peak levels in dB.

    The engine's metering thread writes with set_level(); readers poll
    meter_level(). Meters have no change signal.
    """

    def __init__(self, channels: int = 2):
        self._levels = [METER_SILENCE_DB] * max(1, channels)
        self._lock = threading.Lock()

    @property
    def channels(self) -> int:
        return len(self._levels)

    def meter_level(self, channel: int = 0) -> float:
        """
        Get the current peak for a channel.

        Args:
            channel: Channel index; out of range channels read as silence
        """
        with self._lock:
            if 0 <= channel < len(self._levels):
                return self._levels[channel]
        return METER_SILENCE_DB

    def set_level(self, db: float, channel: Optional[int] = None) -> None:
        """
        Store a new peak.

        Args:
            db: Level in dB
            channel: Channel to write, or None for all channels
        """
        with self._lock:
            if channel is None:
                self._levels = [db] * len(self._levels)
            elif 0 <= channel < len(self._levels):
                self._levels[channel] = db
            else:
                raise ValueError(f"Meter channel {channel} out of range (0-{len(self._levels) - 1})")
