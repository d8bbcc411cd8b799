"""Shared conversion and formatting helpers for stripbound."""

import math

# Linear gains below this are treated as silence before any log conversion
SILENCE_COEFFICIENT = 1e-15

# dB reported on /strip/gain for a silent (zero) gain
GAIN_SILENCE_DB = -200.0

# Meter readings below the floor are reported as the meter silence value
METER_FLOOR_DB = -120.0
METER_SILENCE_DB = -193.0

# Threshold for /strip/signal
SIGNAL_THRESHOLD_DB = -40.0

# LED strip meters: 16 LEDs, 3.75 dB per LED starting at -54 dB
METER_LED_COUNT = 16
METER_LED_BASE_DB = -54.0
METER_LED_STEP_DB = 3.75

# Default maximum linear gain of a fader (+6 dB)
MAX_GAIN_COEFFICIENT = 2.0


def coefficient_to_db(coefficient: float, floor: float = GAIN_SILENCE_DB) -> float:
    """
    Convert a linear gain coefficient to decibels.

    Args:
        coefficient: Linear gain (1.0 == 0 dB)
        floor: Value returned for silent coefficients instead of -inf

    Returns:
        Gain in dB, never non-finite
    """
    if coefficient < SILENCE_COEFFICIENT:
        return floor
    return 20.0 * math.log10(coefficient)


def db_to_coefficient(db: float) -> float:
    """Convert decibels to a linear gain coefficient."""
    if db <= GAIN_SILENCE_DB:
        return 0.0
    return math.pow(10.0, db / 20.0)


def gain_to_slider_position(gain: float) -> float:
    """
    Map a linear gain to a 0..1 fader position.

    Uses the classic console fader law where unity gain sits at roughly
    three quarters of the travel when the fader tops out at +6 dB.
    """
    if gain <= 0.0:
        return 0.0
    base = (6.0 * math.log2(gain) + 192.0) / 198.0
    return math.pow(max(0.0, base), 8.0)


def slider_position_to_gain(position: float) -> float:
    """Inverse of gain_to_slider_position()."""
    if position <= 0.0:
        return 0.0
    return math.pow(2.0, (math.sqrt(math.sqrt(math.sqrt(position))) * 198.0 - 192.0) / 6.0)


def gain_to_slider_position_with_max(gain: float, max_gain: float = MAX_GAIN_COEFFICIENT) -> float:
    """Fader position for gain on a fader whose top is max_gain."""
    return gain_to_slider_position(gain * 2.0 / max_gain)


def slider_position_to_gain_with_max(position: float, max_gain: float = MAX_GAIN_COEFFICIENT) -> float:
    """Linear gain for a fader position on a fader whose top is max_gain."""
    return slider_position_to_gain(position) * max_gain / 2.0


def format_gain_db(coefficient: float) -> str:
    """Numeric gain readout shown on a strip's name display, e.g. '-6.02'."""
    return f"{coefficient_to_db(coefficient):.2f}"


def clamp_meter(db: float) -> float:
    """Clamp meter readings below the floor to the meter silence value."""
    if db < METER_FLOOR_DB:
        return METER_SILENCE_DB
    return db


def meter_to_interface(db: float) -> float:
    """Normalised meter value used alongside fader gain modes."""
    return (db + 94.0) / 100.0


def meter_to_led_bits(db: float) -> int:
    """
    Bit mask for a 16 LED meter strip.

    The lowest n bits are lit, n being the number of 3.75 dB steps above
    -54 dB (minus one), clamped to the strip length.

    Args:
        db: Meter level in dB

    Returns:
        16 bit integer mask
    """
    level = int((db - METER_LED_BASE_DB) / METER_LED_STEP_DB - 1)
    level = max(0, min(METER_LED_COUNT, level))
    return (1 << level) - 1


def signal_present(db: float) -> float:
    """1.0 when the level is at or above the signal threshold, else 0.0."""
    return 1.0 if db >= SIGNAL_THRESHOLD_DB else 0.0
