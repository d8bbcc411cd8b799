"""
Error-isolated signal/connection system.

Engine objects expose Signals; observers connect callbacks and keep the
returned Connection handles in a ConnectionList they own, so every
subscription can be dropped deterministically when the observed object
changes or goes away.
"""

import threading
from typing import Callable, Optional

from stripbound.logging_config import get_logger

logger = get_logger(__name__)


class Connection:
    """
    Handle for one callback connected to a Signal.

    Disconnecting is idempotent. A disconnected handle never fires again,
    even if the signal is mid-dispatch on another thread.
    """

    def __init__(self, signal: "Signal", callback: Callable):
        self._signal: Optional["Signal"] = signal
        self._callback = callback

    @property
    def connected(self) -> bool:
        """Check if the handle is still attached to its signal."""
        return self._signal is not None

    @property
    def callback(self) -> Callable:
        return self._callback

    def disconnect(self) -> None:
        """Detach the callback from its signal."""
        signal = self._signal
        if signal is None:
            return
        self._signal = None
        signal._remove(self)


class Signal:
    """
    Explicit observer registry for one notification source.

    Callbacks are copied under the lock and executed without holding it
    (copy-before-dispatch), so a callback may connect or disconnect
    handlers, including its own, while the signal is emitting.
    """

    def __init__(self, name: str = "signal"):
        """
        Initialize an empty signal.

        Args:
            name: Name used in log messages
        """
        self._name = name
        self._connections: list[Connection] = []
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        return self._name

    def connect(self, callback: Callable) -> Connection:
        """
        Connect a callback.

        Args:
            callback: Called with the arguments passed to emit()

        Returns:
            Connection handle used to disconnect later
        """
        connection = Connection(self, callback)
        with self._lock:
            self._connections.append(connection)
        logger.debug(f"Connected {getattr(callback, '__name__', repr(callback))} to '{self._name}'")
        return connection

    def emit(self, *args) -> None:
        """
        Call every connected callback with args.

        Args:
            *args: Arguments passed to each callback
        """
        with self._lock:
            connections = self._connections.copy()

        for connection in connections:
            # Skip handles dropped by an earlier callback in this dispatch
            if connection.connected:
                self._safe_call(connection.callback, *args)

    def connection_count(self) -> int:
        """Number of live connections."""
        with self._lock:
            return len(self._connections)

    def _remove(self, connection: Connection) -> None:
        with self._lock:
            if connection in self._connections:
                self._connections.remove(connection)

    def _safe_call(self, callback: Callable, *args) -> None:
        """
        Execute callback with exception isolation.

        Logs errors but continues with the other callbacks.
        """
        try:
            callback(*args)
        except Exception as e:
            callback_name = getattr(callback, "__name__", repr(callback))
            logger.exception(f"Error in '{self._name}' callback '{callback_name}': {e}")


class ConnectionList:
    """
    Owned set of Connection handles, dropped together.

    The owner adds a handle for every subscription it makes and calls
    drop_connections() whenever the subscriptions become invalid.
    """

    def __init__(self):
        self._connections: list[Connection] = []
        self._lock = threading.Lock()

    def connect(self, signal: Signal, callback: Callable) -> Connection:
        """
        Connect callback to signal and keep the handle.

        Args:
            signal: Signal to subscribe to
            callback: Handler

        Returns:
            The new connection
        """
        connection = signal.connect(callback)
        with self._lock:
            self._connections.append(connection)
        return connection

    def drop_connections(self) -> None:
        """Disconnect and forget every held connection."""
        with self._lock:
            connections = self._connections
            self._connections = []

        for connection in connections:
            connection.disconnect()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
