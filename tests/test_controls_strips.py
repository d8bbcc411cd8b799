"""Tests for the in-memory mixer model."""

import pytest

from stripbound.controls import (
    AutomationState,
    Controllable,
    GainControl,
    MonitorChoice,
    PeakMeter,
    ToggleControl,
)
from stripbound.strips import Properties, Route, Stripable, Track


class TestControllable:
    def test_changed_fires_only_on_change(self):
        control = ToggleControl("mute")
        events = []
        control.changed.connect(lambda: events.append(control.get_value()))

        assert control.set_enabled(True)
        assert not control.set_enabled(True)

        assert events == [1.0]
        assert control.enabled

    def test_value_clamped(self):
        control = Controllable("level", lower=-1.0, upper=1.0)
        control.set_value(5.0)
        assert control.get_value() == 1.0

    def test_invalid_range(self):
        with pytest.raises(ValueError):
            Controllable("broken", lower=1.0, upper=1.0)

    def test_linear_interface(self):
        control = Controllable("level", lower=-1.0, upper=1.0)
        assert control.internal_to_interface(0.0) == 0.5
        control.set_interface(1.0)
        assert control.get_value() == 1.0


class TestGainControl:
    def test_fader_law_interface(self):
        gain = GainControl()
        assert gain.internal_to_interface(2.0) == pytest.approx(1.0)
        assert gain.interface_to_internal(gain.internal_to_interface(0.5)) == pytest.approx(0.5)

    def test_automation_state_change(self):
        gain = GainControl()
        events = []
        gain.automation_state_changed.connect(lambda: events.append(gain.automation_state))

        assert gain.set_automation_state(AutomationState.TOUCH)
        assert not gain.set_automation_state(AutomationState.TOUCH)

        assert events == [AutomationState.TOUCH]

    def test_playback_does_not_emit(self):
        gain = GainControl()
        events = []
        gain.changed.connect(lambda: events.append(True))

        gain.play_automation(0.5)

        assert gain.get_value() == 0.5
        assert events == []

    @pytest.mark.parametrize(
        "state, code, label, playing",
        [
            (AutomationState.OFF, 0, "Manual", False),
            (AutomationState.PLAY, 1, "Play", True),
            (AutomationState.WRITE, 2, "Write", False),
            (AutomationState.TOUCH, 3, "Touch", True),
            (AutomationState.LATCH, 4, "Latch", False),
        ],
    )
    def test_automation_codes(self, state, code, label, playing):
        assert (state.code, state.label, state.is_playing) == (code, label, playing)


class TestPeakMeter:
    def test_starts_silent(self):
        assert PeakMeter().meter_level() == -193.0

    def test_set_channel(self):
        meter = PeakMeter(2)
        meter.set_level(-6.0, channel=1)
        assert meter.meter_level(0) == -193.0
        assert meter.meter_level(1) == -6.0
        assert meter.meter_level(5) == -193.0

    def test_invalid_channel(self):
        with pytest.raises(ValueError):
            PeakMeter(2).set_level(0.0, channel=2)


class TestStrips:
    def test_capabilities(self):
        vca, bus, track = Stripable("VCA"), Route("Bus"), Track("Kick")

        assert vca.trim_control is None and vca.peak_meter is None
        assert bus.trim_control is not None and bus.monitoring_control is None
        assert track.is_track and not bus.is_track
        assert track.monitoring_control.get_value() == float(MonitorChoice.AUTO)

    def test_name_change_signal(self):
        strip = Stripable("VCA")
        events = []
        strip.property_changed.connect(events.append)

        strip.set_name("VCA 1")
        strip.set_name("VCA 1")

        assert events == [frozenset({Properties.NAME})]
        assert strip.name == "VCA 1"

    def test_presentation_signals(self):
        strip = Stripable("VCA")
        events = []
        strip.presentation_changed.connect(events.append)

        strip.set_hidden(True)
        strip.set_selected(True)

        assert events == [frozenset({Properties.HIDDEN}), frozenset({Properties.SELECTED})]

    def test_destroy_fires_once(self):
        strip = Track("Kick")
        events = []
        strip.drop_references.connect(lambda: events.append(True))

        strip.destroy()
        strip.destroy()

        assert events == [True]
        assert strip.destroyed
