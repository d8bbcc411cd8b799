"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from stripbound.config import (
    ConfigurationError,
    FeedbackFlag,
    GainMode,
    RemoteAddress,
    SurfaceConfig,
)


class TestFeedbackFlag:
    def test_bit_positions(self):
        assert FeedbackFlag.STRIP_BUTTONS == 1
        assert FeedbackFlag.STRIP_VARIABLES == 2
        assert FeedbackFlag.SSID_AS_PATH == 4
        assert FeedbackFlag.METER == 128
        assert FeedbackFlag.METER_LED_STRIP == 256
        assert FeedbackFlag.SIGNAL_PRESENT == 512

    @pytest.mark.parametrize(
        "flags, expected",
        [
            (FeedbackFlag.STRIP_BUTTONS, False),
            (FeedbackFlag.METER, True),
            (FeedbackFlag.METER_LED_STRIP, True),
            (FeedbackFlag.SIGNAL_PRESENT, True),
        ],
    )
    def test_has_meter(self, flags, expected):
        assert flags.has_meter is expected


class TestGainMode:
    def test_mode_outputs(self):
        assert not GainMode.DB.uses_fader
        assert GainMode.DB.uses_db
        assert GainMode.FADER_WITH_NAME.uses_fader
        assert not GainMode.FADER_WITH_NAME.uses_db
        assert GainMode.FADER_AND_DB.uses_fader
        assert GainMode.FADER_AND_DB.uses_db


class TestRemoteAddress:
    @pytest.mark.parametrize(
        "url, host, port",
        [
            ("osc.udp://192.168.1.20:8000/", "192.168.1.20", 8000),
            ("udp://localhost:9000", "localhost", 9000),
            ("127.0.0.1:9001", "127.0.0.1", 9001),
        ],
    )
    def test_from_url(self, url, host, port):
        address = RemoteAddress.from_url(url)
        assert (address.host, address.port) == (host, port)

    @pytest.mark.parametrize("url", ["osc.tcp://127.0.0.1:9000/", "osc.udp://127.0.0.1/", "osc.udp://host:port/"])
    def test_invalid_url(self, url):
        with pytest.raises(ConfigurationError):
            RemoteAddress.from_url(url)

    def test_url_round_trip(self):
        address = RemoteAddress(host="10.0.0.5", port=9000)
        assert address.url == "osc.udp://10.0.0.5:9000/"
        assert RemoteAddress.from_url(address.url) == address

    def test_hashable(self):
        assert len({RemoteAddress(port=9000), RemoteAddress(port=9000)}) == 1


class TestSurfaceConfig:
    def test_defaults(self):
        config = SurfaceConfig()
        assert config.feedback == FeedbackFlag.STRIP_BUTTONS | FeedbackFlag.STRIP_VARIABLES
        assert config.gain_mode == GainMode.DB
        assert config.remote_address == RemoteAddress(host="127.0.0.1", port=8000)
        assert not config.in_line

    def test_integer_feedback_word(self):
        """Test the raw feedback word a surface registers with is accepted."""
        config = SurfaceConfig(feedback=0b1000000111)
        assert FeedbackFlag.SSID_AS_PATH in config.feedback
        assert FeedbackFlag.SIGNAL_PRESENT in config.feedback
        assert config.in_line

    def test_negative_feedback_rejected(self):
        with pytest.raises(ValidationError):
            SurfaceConfig(feedback=-1)

    def test_invalid_url_rejected(self):
        with pytest.raises(ValidationError):
            SurfaceConfig(remote_url="osc.tcp://127.0.0.1:9000/")

    def test_link_not_ready_requires_linkset(self):
        with pytest.raises(ValidationError):
            SurfaceConfig(link_not_ready=2)
        assert SurfaceConfig(linkset=1, link_not_ready=2).link_not_ready == 2

    @pytest.mark.parametrize("field, value", [("bank", 0), ("bank_size", -1), ("tick_interval", 0.0)])
    def test_range_validation(self, field, value):
        with pytest.raises(ValidationError):
            SurfaceConfig(**{field: value})

    def test_strip_index(self):
        config = SurfaceConfig(bank=3)
        assert config.strip_index(1) == 2
        assert config.strip_index(4) == 5

    def test_slot_count(self):
        assert SurfaceConfig(bank_size=8).slot_count(3) == 8
        assert SurfaceConfig().slot_count(5) == 5
        assert SurfaceConfig(bank=4).slot_count(5) == 2
        assert SurfaceConfig(bank=9).slot_count(5) == 0

    def test_describe(self):
        text = SurfaceConfig(remote_url="10.0.0.5:9000", bank_size=8).describe("desk")
        assert text.startswith("desk osc.udp://10.0.0.5:9000/")
        assert "bank=1/8" in text
