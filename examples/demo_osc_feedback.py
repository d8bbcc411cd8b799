#!/usr/bin/env python3
"""
Demo script for OSC strip feedback.

This script demonstrates:
- Building a small in-memory mixer (three tracks and a bus)
- Connecting a surface with fader gain mode, meters and signal feedback
- Ticking the surface from a background FeedbackDriver
- Changing strip state and watching the resulting OSC traffic

Point any OSC monitor (e.g. `oscdump 9000`) or a TouchOSC layout at the
target port to see the messages. Run with --debug to log every message.
"""

import argparse
import logging
import math
import time

from stripbound.config import FeedbackFlag, GainMode, SurfaceConfig
from stripbound.controls import AutomationState, MonitorChoice
from stripbound.logging_config import get_logger, set_module_level, setup_logging
from stripbound.sink import OSCMessageSink
from stripbound.strips import Route, Track
from stripbound.surface import Surface

logger = get_logger(__name__)


def build_mixer() -> list:
    """Create the strips shown on the surface."""
    return [
        Track("Kick"),
        Track("Bass"),
        Track("Vox", selected=True),
        Route("Drum Bus"),
    ]


def animate_meters(strips: list, t: float) -> None:
    """Feed the peak meters with a slow sine per strip."""
    for i, strip in enumerate(strips):
        meter = strip.peak_meter
        if meter is not None:
            meter.set_level(-60.0 + 50.0 * (0.5 + 0.5 * math.sin(t * (1.0 + i * 0.3))))


def main() -> None:
    parser = argparse.ArgumentParser(description="Send strip feedback to an OSC surface")
    parser.add_argument("--host", default="127.0.0.1", help="Surface host")
    parser.add_argument("--port", type=int, default=9000, help="Surface UDP port")
    parser.add_argument("--seconds", type=float, default=10.0, help="How long to run")
    parser.add_argument("--debug", action="store_true", help="Log every outgoing message")
    args = parser.parse_args()

    setup_logging(level=logging.INFO)
    if args.debug:
        set_module_level("stripbound.sink", logging.DEBUG)
        set_module_level("stripbound.observer", logging.DEBUG)

    config = SurfaceConfig(
        remote_url=f"osc.udp://{args.host}:{args.port}/",
        feedback=(
            FeedbackFlag.STRIP_BUTTONS
            | FeedbackFlag.STRIP_VARIABLES
            | FeedbackFlag.METER
            | FeedbackFlag.SIGNAL_PRESENT
        ),
        gain_mode=GainMode.FADER_WITH_NAME,
        bank_size=4,
        tick_interval=0.05,
    )

    strips = build_mixer()
    kick, bass, vox, drum_bus = strips

    with OSCMessageSink() as sink, Surface(config, sink, strips, name="demo") as surface:
        surface.start()

        # Some state changes to watch on the surface
        kick.mute_control.set_enabled(True)
        bass.monitoring_control.set_choice(MonitorChoice.INPUT)
        vox.rec_enable_control.set_enabled(True)
        drum_bus.gain_control.set_value(0.5)

        # Bass fader follows automation playback; picked up on ticks
        bass.gain_control.set_automation_state(AutomationState.PLAY)

        start = time.monotonic()
        elapsed = 0.0
        while elapsed < args.seconds:
            elapsed = time.monotonic() - start
            animate_meters(strips, elapsed)
            bass.gain_control.play_automation(1.0 + 0.5 * math.sin(elapsed))
            time.sleep(0.02)

        logger.info(f"Sent {sink.get_stats()['sent']} messages")


if __name__ == "__main__":
    main()
