"""Tests for the last-sent value cache."""

from stripbound.state import SnapshotCache


class TestSnapshotCache:
    def test_starts_reset(self):
        cache = SnapshotCache()
        assert cache.is_reset()
        assert cache.snapshot() == {"gain": None, "trim": None, "meter": None, "signal": None}

    def test_first_value_always_changes(self):
        """Test no real value equals the reset marker, including zero."""
        cache = SnapshotCache()
        assert cache.update("gain", 0.0)
        assert cache.gain == 0.0

    def test_identical_value_suppressed(self):
        cache = SnapshotCache()
        cache.update("meter", -10.0)

        assert not cache.update("meter", -10.0)
        assert cache.update("meter", -10.000001)

    def test_invalidate_single_field(self):
        cache = SnapshotCache()
        cache.update("gain", 1.0)
        cache.update("trim", 1.0)

        cache.invalidate("gain")

        assert cache.gain is None
        assert cache.trim == 1.0
        assert cache.update("gain", 1.0)

    def test_reset(self):
        cache = SnapshotCache()
        cache.update("signal", 1.0)
        cache.update("meter", -3.0)

        cache.reset()

        assert cache.is_reset()
        assert cache.signal is None
        assert cache.meter is None
