"""
Channel strip model.

A strip bundles the controls of one mixer channel plus three signals:
`property_changed` (carries the set of changed property names),
`presentation_changed` (hidden/selected) and `drop_references`, fired once
just before the strip is destroyed. Observers must stop touching a strip as
soon as `drop_references` fires.

The hierarchy mirrors what engines typically expose:

- Stripable: minimal strip (VCA-like) - mute, solo, gain
- Route: adds solo isolate/safe, trim, pan and metering (busses)
- Track: adds monitoring and record controls
"""

import threading
from typing import Optional

from stripbound.controls import (
    GainControl,
    MonitorControl,
    PanAzimuthControl,
    PeakMeter,
    ToggleControl,
    TrimControl,
)
from stripbound.logging_config import get_logger
from stripbound.signals import Signal

logger = get_logger(__name__)


class Properties:
    """Property names carried by property_changed/presentation_changed."""

    NAME = "name"
    HIDDEN = "hidden"
    SELECTED = "selected"


class Stripable:
    """Base strip with mute, solo and gain."""

    def __init__(self, name: str, hidden: bool = False, selected: bool = False):
        self._name = name
        self._hidden = hidden
        self._selected = selected
        self._destroyed = False
        self._lock = threading.RLock()

        self.property_changed = Signal(f"{name}.property_changed")
        self.presentation_changed = Signal(f"{name}.presentation_changed")
        self.drop_references = Signal(f"{name}.drop_references")

        self._mute = ToggleControl(f"{name}/mute")
        self._solo = ToggleControl(f"{name}/solo")
        self._gain = GainControl(f"{name}/gain")

    # Presentation

    @property
    def name(self) -> str:
        with self._lock:
            return self._name

    def set_name(self, name: str) -> None:
        with self._lock:
            if name == self._name:
                return
            self._name = name
        self.property_changed.emit(frozenset({Properties.NAME}))

    def is_hidden(self) -> bool:
        with self._lock:
            return self._hidden

    def set_hidden(self, hidden: bool) -> None:
        with self._lock:
            if hidden == self._hidden:
                return
            self._hidden = hidden
        self.presentation_changed.emit(frozenset({Properties.HIDDEN}))

    def is_selected(self) -> bool:
        with self._lock:
            return self._selected

    def set_selected(self, selected: bool) -> None:
        with self._lock:
            if selected == self._selected:
                return
            self._selected = selected
        self.presentation_changed.emit(frozenset({Properties.SELECTED}))

    @property
    def is_track(self) -> bool:
        """True for strips that record (have monitoring and rec controls)."""
        return False

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def destroy(self) -> None:
        """Announce removal to every observer. Only the first call fires."""
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
        logger.debug(f"Strip '{self._name}' dropping references")
        self.drop_references.emit()

    # Controls (optional ones return None)

    @property
    def mute_control(self) -> ToggleControl:
        return self._mute

    @property
    def solo_control(self) -> ToggleControl:
        return self._solo

    @property
    def gain_control(self) -> GainControl:
        return self._gain

    @property
    def solo_isolate_control(self) -> Optional[ToggleControl]:
        return None

    @property
    def solo_safe_control(self) -> Optional[ToggleControl]:
        return None

    @property
    def trim_control(self) -> Optional[TrimControl]:
        return None

    @property
    def pan_azimuth_control(self) -> Optional[PanAzimuthControl]:
        return None

    @property
    def peak_meter(self) -> Optional[PeakMeter]:
        return None

    @property
    def monitoring_control(self) -> Optional[MonitorControl]:
        return None

    @property
    def rec_enable_control(self) -> Optional[ToggleControl]:
        return None

    @property
    def rec_safe_control(self) -> Optional[ToggleControl]:
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class Route(Stripable):
    """Bus strip with isolate/safe, trim, pan and a peak meter."""

    def __init__(self, name: str, hidden: bool = False, selected: bool = False, meter_channels: int = 2):
        super().__init__(name, hidden=hidden, selected=selected)
        self._solo_isolate = ToggleControl(f"{name}/solo_isolate")
        self._solo_safe = ToggleControl(f"{name}/solo_safe")
        self._trim = TrimControl(f"{name}/trim")
        self._pan = PanAzimuthControl(f"{name}/pan")
        self._meter = PeakMeter(meter_channels)

    @property
    def solo_isolate_control(self) -> ToggleControl:
        return self._solo_isolate

    @property
    def solo_safe_control(self) -> ToggleControl:
        return self._solo_safe

    @property
    def trim_control(self) -> TrimControl:
        return self._trim

    @property
    def pan_azimuth_control(self) -> PanAzimuthControl:
        return self._pan

    @property
    def peak_meter(self) -> PeakMeter:
        return self._meter


class Track(Route):
    """Recordable strip."""

    def __init__(self, name: str, hidden: bool = False, selected: bool = False, meter_channels: int = 2):
        super().__init__(name, hidden=hidden, selected=selected, meter_channels=meter_channels)
        self._monitoring = MonitorControl(f"{name}/monitoring")
        self._rec_enable = ToggleControl(f"{name}/rec_enable")
        self._rec_safe = ToggleControl(f"{name}/rec_safe")

    @property
    def is_track(self) -> bool:
        return True

    @property
    def monitoring_control(self) -> MonitorControl:
        return self._monitoring

    @property
    def rec_enable_control(self) -> ToggleControl:
        return self._rec_enable

    @property
    def rec_safe_control(self) -> ToggleControl:
        return self._rec_safe
