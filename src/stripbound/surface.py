"""
Surface API - owns the strip observers of one remote surface.

A Surface is handed an already-banked strip list and its resolved
configuration; it creates one StripObserver per slot, forwards surface-wide
changes (expand, link-set readiness, new strip lists) to them and drives
their ticks.
"""

import threading
from typing import Optional, Sequence

from stripbound.config import SurfaceConfig
from stripbound.driver import FeedbackDriver
from stripbound.logging_config import get_logger
from stripbound.observer import StripObserver
from stripbound.sink import MessageSink
from stripbound.strips import Stripable

logger = get_logger(__name__)


class Surface:
    """
    Feedback for every slot of one remote surface.

    Example:
        >>> sink = OSCMessageSink()
        >>> config = SurfaceConfig(remote_url="osc.udp://10.0.0.5:9000/", bank_size=8)
        >>> with Surface(config, sink, strips) as surface:
        ...     surface.start()
        ...     run_session()
    """

    def __init__(
        self,
        config: SurfaceConfig,
        sink: MessageSink,
        strips: Sequence[Optional[Stripable]] = (),
        name: Optional[str] = None,
    ):
        """
        Initialize surface (observers are created by connect()).

        Args:
            config: Resolved surface configuration
            sink: Message sink
            strips: Strips in surface order (the banking layer's output)
            name: Name used in log messages
        """
        self._config = config
        self._sink = sink
        self._strips: list[Optional[Stripable]] = list(strips)
        self._name = name or config.remote_address.url
        self._observers: dict[int, StripObserver] = {}
        self._driver: Optional[FeedbackDriver] = None
        self._connected = False
        self._lock = threading.RLock()

    @property
    def config(self) -> SurfaceConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def observers(self) -> list[StripObserver]:
        """Observers ordered by slot id."""
        with self._lock:
            return [self._observers[ssid] for ssid in sorted(self._observers)]

    def get_observer(self, ssid: int) -> Optional[StripObserver]:
        with self._lock:
            return self._observers.get(ssid)

    def connect(self) -> None:
        """Create and sync an observer for every slot."""
        with self._lock:
            if self._connected:
                logger.warning(f"Surface {self._name} already connected")
                return

            for ssid in range(1, self._config.slot_count(len(self._strips)) + 1):
                self._observers[ssid] = StripObserver.from_config(ssid, self._sink, self._config, self._strips)

            self._connected = True
        logger.info(f"Surface connected: {self._config.describe(self._name)} ({len(self._observers)} slots)")

    def disconnect(self) -> None:
        """Stop ticking and close every observer."""
        self.stop()
        with self._lock:
            if not self._connected:
                return
            for observer in self._observers.values():
                observer.close()
            self._observers.clear()
            self._connected = False
        logger.info(f"Surface disconnected: {self._name}")

    # Surface-wide updates

    def set_strips(self, strips: Sequence[Optional[Stripable]], bank: Optional[int] = None) -> None:
        """
        Apply a new strip list (and optionally a new bank) from the banking layer.

        Slots whose strip is unchanged only resend their selection status.

        Args:
            strips: Strips in surface order
            bank: New first strip (1-based), or None to keep the current bank
        """
        with self._lock:
            self._strips = list(strips)
            if bank is not None:
                self._config = self._config.model_copy(update={"bank": bank})

            if not self._connected:
                return

            slot_count = self._config.slot_count(len(self._strips))

            for ssid in [s for s in self._observers if s > slot_count]:
                self._observers.pop(ssid).close()

            for ssid in range(1, slot_count + 1):
                observer = self._observers.get(ssid)
                if observer is None:
                    self._observers[ssid] = StripObserver.from_config(ssid, self._sink, self._config, self._strips)
                    continue
                index = self._config.strip_index(ssid)
                observer.bind(self._strips[index] if 0 <= index < len(self._strips) else None)

        logger.debug(f"Surface {self._name}: bank {self._config.bank}, {len(self._strips)} strips")

    def set_expand(self, expand: int, enable: bool = True) -> None:
        """
        Update the expanded slot on every observer.

        Args:
            expand: Expanded slot id
            enable: False sends "nothing expanded" to every slot
        """
        with self._lock:
            self._config = self._config.model_copy(update={"expand": expand, "expand_enable": enable})
            for observer in self._observers.values():
                observer.set_expand(expand if enable else 0)

    def set_link_ready(self, not_ready: int) -> None:
        """
        Forward link-set readiness to every observer.

        Args:
            not_ready: Surfaces the link-set still waits for (0 = ready)
        """
        with self._lock:
            self._config = self._config.model_copy(update={"link_not_ready": not_ready})
            for observer in self._observers.values():
                observer.set_link_ready(not_ready)

    # Ticking

    def tick(self) -> None:
        """Tick every observer once."""
        for observer in self.observers:
            observer.tick()

    def start(self) -> None:
        """Start a FeedbackDriver ticking this surface."""
        if self._driver and self._driver.is_running:
            return
        self._driver = FeedbackDriver(self.tick, self._config.tick_interval, name=f"FeedbackTick[{self._name}]")
        self._driver.start()

    def stop(self) -> None:
        """Stop the tick driver, if running."""
        if self._driver:
            self._driver.stop()
            self._driver = None

    def __enter__(self):
        if not self._connected:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        return False
