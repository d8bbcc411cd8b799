"""
Stripbound: Channel Strip Feedback for OSC Control Surfaces

Binds the slots of a remote control surface to mixer channel strips and
keeps the surface in sync with a minimal, deduplicated stream of OSC
messages: button states on change, levels with last-sent suppression,
meters and automation playback sampled on a periodic tick.
"""

__version__ = "0.1.0"

# Main API
# Configuration models
from .config import (
    ConfigurationError,
    FeedbackFlag,
    GainMode,
    RemoteAddress,
    SurfaceConfig,
)

# Mixer model
from .controls import (
    AutomationState,
    Controllable,
    GainControl,
    MonitorChoice,
    MonitorControl,
    PanAzimuthControl,
    PeakMeter,
    ToggleControl,
    TrimControl,
)
from .driver import FeedbackDriver

# Logging configuration
from .logging_config import (
    get_logger,
    set_module_level,
    setup_logging,
)
from .observer import StripObserver
from .signals import Connection, ConnectionList, Signal

# Message sinks
from .sink import (
    FeedbackMessage,
    MessageSink,
    OSCMessageSink,
    RecordingSink,
)
from .state import ObserverState, SnapshotCache
from .strips import Properties, Route, Stripable, Track
from .surface import Surface

__all__ = [
    # Version
    "__version__",
    # Main API
    "Surface",
    "StripObserver",
    "FeedbackDriver",
    "ObserverState",
    "SnapshotCache",
    # Configuration models
    "SurfaceConfig",
    "RemoteAddress",
    "FeedbackFlag",
    "GainMode",
    # Mixer model
    "Stripable",
    "Route",
    "Track",
    "Properties",
    "Controllable",
    "ToggleControl",
    "GainControl",
    "TrimControl",
    "PanAzimuthControl",
    "MonitorControl",
    "MonitorChoice",
    "PeakMeter",
    "AutomationState",
    # Signals
    "Signal",
    "Connection",
    "ConnectionList",
    # Message sinks
    "FeedbackMessage",
    "MessageSink",
    "OSCMessageSink",
    "RecordingSink",
    # Logging configuration
    "setup_logging",
    "get_logger",
    "set_module_level",
    # Exceptions
    "ConfigurationError",
]
