"""
Pydantic configuration models for surface feedback.

This module defines the surface-wide settings an observer reads but never
owns: which feedback categories are enabled, how gain is displayed, where
messages go and the already-resolved bank/link-set state.
"""

from enum import IntEnum, IntFlag
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator, model_validator

from .logging_config import get_logger

logger = get_logger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration is invalid or conflicts with the surface setup."""
    pass


class FeedbackFlag(IntFlag):
    """
    Feedback categories a surface can enable.

    Bit positions match the feedback word surfaces send when they register,
    so an integer received from a surface can be converted directly.
    """

    NONE = 0
    STRIP_BUTTONS = 1 << 0  # Mute, solo, rec, select, name...
    STRIP_VARIABLES = 1 << 1  # Fader/gain, trim, pan, automation
    SSID_AS_PATH = 1 << 2  # Put the slot id in the path instead of the arguments
    HEARTBEAT = 1 << 3
    MASTER_SECTION = 1 << 4
    PLAYHEAD_BBT = 1 << 5
    PLAYHEAD_TIMECODE = 1 << 6
    METER = 1 << 7  # Meter as dB or 0..1 float
    METER_LED_STRIP = 1 << 8  # Meter as 16 bit LED mask
    SIGNAL_PRESENT = 1 << 9
    PLAYHEAD_SAMPLES = 1 << 10
    PLAYHEAD_MIN_SEC = 1 << 11
    SELECT_FEEDBACK = 1 << 13

    @property
    def has_meter(self) -> bool:
        """True if any metering category is enabled."""
        return bool(self & (FeedbackFlag.METER | FeedbackFlag.METER_LED_STRIP | FeedbackFlag.SIGNAL_PRESENT))


class GainMode(IntEnum):
    """How gain is reported to the surface."""

    DB = 0  # /strip/gain in dB
    FADER_WITH_NAME = 1  # /strip/fader position, gain flashed on /strip/name
    FADER_AND_DB = 2  # /strip/fader and /strip/gain

    @property
    def uses_fader(self) -> bool:
        return self != GainMode.DB

    @property
    def uses_db(self) -> bool:
        return self != GainMode.FADER_WITH_NAME


class RemoteAddress(BaseModel):
    """UDP destination of a surface."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)

    model_config = {"frozen": True}

    @classmethod
    def from_url(cls, url: str) -> "RemoteAddress":
        """
        Parse a surface URL.

        Examples:
            "osc.udp://192.168.1.20:8000/" → host 192.168.1.20, port 8000
            "127.0.0.1:9000" → host 127.0.0.1, port 9000

        Raises:
            ConfigurationError: If the URL is not a UDP host:port address
        """
        if "://" not in url:
            url = f"osc.udp://{url}"

        parts = urlsplit(url)
        if parts.scheme not in ("osc.udp", "udp"):
            raise ConfigurationError(f"Unsupported transport '{parts.scheme}' in '{url}' (only UDP is supported)")

        try:
            port = parts.port
        except ValueError as e:
            raise ConfigurationError(f"Invalid port in '{url}': {e}") from e

        if not parts.hostname or port is None:
            raise ConfigurationError(f"Surface URL '{url}' must include host and port")

        return cls(host=parts.hostname, port=port)

    @property
    def url(self) -> str:
        return f"osc.udp://{self.host}:{self.port}/"


class SurfaceConfig(BaseModel):
    """
    Already-resolved settings of one remote surface.

    Bank and link-set values are computed by the banking layer; observers
    only read them.
    """

    remote_url: str = "osc.udp://127.0.0.1:8000/"
    feedback: FeedbackFlag = FeedbackFlag.STRIP_BUTTONS | FeedbackFlag.STRIP_VARIABLES
    gain_mode: GainMode = GainMode.DB

    # First strip shown on slot 1 (1-based) and slots on the surface (0 = all strips)
    bank: int = Field(default=1, ge=1)
    bank_size: int = Field(default=0, ge=0)

    # Expanded slot selector
    expand: int = Field(default=0, ge=0)
    expand_enable: bool = False

    # Link-set membership and how many surfaces it still waits for
    linkset: int = Field(default=0, ge=0)
    link_not_ready: int = Field(default=0, ge=0)

    # Seconds between ticks when driven by FeedbackDriver
    tick_interval: float = Field(default=0.1, gt=0.0)

    @field_validator("feedback", mode="before")
    @classmethod
    def coerce_feedback(cls, v):
        """Accept the raw integer feedback word."""
        if isinstance(v, int) and not isinstance(v, FeedbackFlag):
            if v < 0:
                raise ValueError(f"feedback must be a non-negative bit mask, got {v}")
            return FeedbackFlag(v)
        return v

    @field_validator("remote_url")
    @classmethod
    def validate_remote_url(cls, v):
        try:
            RemoteAddress.from_url(v)
        except ConfigurationError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def validate_link_state(self):
        """Surfaces outside a link-set never wait for one."""
        if self.link_not_ready and not self.linkset:
            raise ValueError("link_not_ready requires a linkset")
        return self

    @property
    def remote_address(self) -> RemoteAddress:
        return RemoteAddress.from_url(self.remote_url)

    @property
    def in_line(self) -> bool:
        """Routing hint: slot id carried in the path."""
        return FeedbackFlag.SSID_AS_PATH in self.feedback

    def strip_index(self, ssid: int) -> int:
        """
        Index into the resolved strip list shown on a slot.

        Args:
            ssid: 1-based slot id

        Returns:
            0-based strip index (may be past the end of the list)
        """
        return self.bank + ssid - 2

    def slot_count(self, strip_count: int) -> int:
        """Number of slots for a strip list of the given length."""
        if self.bank_size:
            return self.bank_size
        return max(0, strip_count - self.bank + 1)

    def describe(self, name: Optional[str] = None) -> str:
        """One-line summary for log output."""
        label = f"{name} " if name else ""
        return (
            f"{label}{self.remote_address.url} feedback={int(self.feedback)} "
            f"gain_mode={self.gain_mode.name} bank={self.bank}/{self.bank_size or 'all'}"
        )
