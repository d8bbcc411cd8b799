"""Tests for Surface slot management."""

import time

import pytest

from stripbound.config import FeedbackFlag, SurfaceConfig
from stripbound.sink import RecordingSink
from stripbound.state import ObserverState
from stripbound.strips import Route, Track
from stripbound.surface import Surface


@pytest.fixture
def strips():
    return [Track("Kick"), Track("Bass"), Route("Drum Bus")]


def names_by_slot(sink):
    return {m.ssid: m.value for m in sink.messages_for("/strip/name")}


class TestConnect:
    def test_one_observer_per_strip(self, sink, strips):
        with Surface(SurfaceConfig(), sink, strips) as surface:
            assert [o.ssid for o in surface.observers] == [1, 2, 3]
            assert names_by_slot(sink) == {1: "Kick", 2: "Bass", 3: "Drum Bus"}
            assert surface.is_connected

    def test_bank_offset(self, sink, strips):
        with Surface(SurfaceConfig(bank=2), sink, strips) as surface:
            assert surface.get_observer(1).strip is strips[1]
            assert surface.get_observer(2).strip is strips[2]
            assert surface.get_observer(3) is None

    def test_slots_past_strip_list_are_cleared(self, sink, strips):
        """Test a fixed-size bank clears slots with no strip."""
        with Surface(SurfaceConfig(bank_size=5), sink, strips) as surface:
            assert surface.get_observer(5).state == ObserverState.UNBOUND
            assert sink.values("/strip/name", ssid=4) == [" "]
            assert sink.values("/strip/name", ssid=5) == [" "]

    def test_expand_sent_per_slot(self, sink, strips):
        config = SurfaceConfig(expand=2, expand_enable=True)
        with Surface(config, sink, strips):
            assert sink.values("/strip/expand", ssid=1) == [0.0]
            assert sink.values("/strip/expand", ssid=2) == [1.0]

    def test_disconnect_releases_address(self, sink, strips):
        surface = Surface(SurfaceConfig(), sink, strips)
        surface.connect()
        assert len(sink.open_addresses()) == 1

        surface.disconnect()

        assert sink.open_addresses() == []
        assert surface.observers == []
        assert not surface.is_connected


class TestLinkSet:
    def test_link_wait_until_ready(self, sink, strips):
        config = SurfaceConfig(linkset=1, link_not_ready=2, bank_size=5)
        with Surface(config, sink, strips) as surface:
            assert names_by_slot(sink) == {1: "Device", 2: "2", 3: "Missing", 4: "from", 5: "Linkset"}
            assert all(o.state == ObserverState.LINK_WAIT for o in surface.observers)

            sink.clear()
            surface.set_link_ready(0)

            assert names_by_slot(sink) == {1: "Kick", 2: "Bass", 3: "Drum Bus", 4: " ", 5: " "}
            assert surface.get_observer(1).state == ObserverState.BOUND


class TestSetStrips:
    def test_unchanged_strips_only_resend_selection(self, sink, strips):
        with Surface(SurfaceConfig(), sink, strips) as surface:
            sink.clear()
            surface.set_strips(strips)

            assert set(sink.paths()) == {"/strip/select"}

    def test_new_bank_rebinds(self, sink, strips):
        with Surface(SurfaceConfig(bank_size=2), sink, strips) as surface:
            sink.clear()
            surface.set_strips(strips, bank=2)

            assert surface.config.bank == 2
            assert surface.get_observer(1).strip is strips[1]
            assert names_by_slot(sink) == {1: "Bass", 2: "Drum Bus"}

    def test_growing_and_shrinking(self, sink, strips):
        with Surface(SurfaceConfig(), sink, strips[:1]) as surface:
            surface.set_strips(strips)
            assert len(surface.observers) == 3

            surface.set_strips(strips[:1])
            assert len(surface.observers) == 1
            assert strips[1].mute_control.changed.connection_count() == 0

    def test_destroyed_strip_slot_cleared_on_shrink(self, sink, strips):
        """Test a slot freed by a deleted strip gets the cleared burst."""
        kick, bass = strips[0], strips[1]
        with Surface(SurfaceConfig(bank_size=2), sink, [kick, bass]) as surface:
            bass.destroy()
            sink.clear()

            surface.set_strips([kick])

            assert sink.last("/strip/name", ssid=2) == " "
            assert sink.last("/strip/mute", ssid=2) == 0.0
            assert surface.get_observer(2).state == ObserverState.UNBOUND

    def test_set_strips_before_connect(self, sink, strips):
        surface = Surface(SurfaceConfig(), sink)
        surface.set_strips(strips)
        assert len(sink) == 0

        surface.connect()
        assert len(surface.observers) == 3
        surface.disconnect()


class TestTicking:
    def test_tick_reaches_every_slot(self, strips):
        sink = RecordingSink()
        config = SurfaceConfig(feedback=FeedbackFlag.METER)
        with Surface(config, sink, strips) as surface:
            sink.clear()
            for strip in strips:
                strip.peak_meter.set_level(-12.0)

            surface.tick()

            assert sorted(m.ssid for m in sink.messages_for("/strip/meter")) == [1, 2, 3]

    def test_driver_ticks_surface(self, strips):
        sink = RecordingSink()
        config = SurfaceConfig(feedback=FeedbackFlag.METER, tick_interval=0.01)
        with Surface(config, sink, strips) as surface:
            strips[0].peak_meter.set_level(-12.0)
            surface.start()

            deadline = time.monotonic() + 2.0
            while -12.0 not in sink.values("/strip/meter", ssid=1) and time.monotonic() < deadline:
                time.sleep(0.01)

            surface.stop()

        assert -12.0 in sink.values("/strip/meter", ssid=1)
