"""
Outgoing message sinks.

Observers hand every feedback message to a MessageSink together with the
RemoteAddress of their surface. Delivery is fire-and-forget: failures are
logged and counted, never raised back into the observer.

- OSCMessageSink sends over UDP with python-osc
- RecordingSink keeps messages in memory (tests, diagnostics)
"""

import threading
from abc import ABC, abstractmethod
from collections import Counter
from typing import Any, Optional, Union

from pydantic import BaseModel
from pythonosc import udp_client

from stripbound.config import RemoteAddress
from stripbound.logging_config import get_logger

logger = get_logger(__name__)

Payload = Union[int, float, str]


class FeedbackMessage(BaseModel):
    """
    One feedback message for one slot.

    With in_line routing the slot id becomes the last path component;
    otherwise it is sent as the first argument.
    """

    path: str
    ssid: int
    value: Payload
    in_line: bool = False

    model_config = {"frozen": True}

    @property
    def address_pattern(self) -> str:
        """OSC address the message is sent to."""
        if self.in_line:
            return f"{self.path}/{self.ssid}"
        return self.path

    @property
    def arguments(self) -> list[Any]:
        """OSC arguments in wire order."""
        if self.in_line:
            return [self.value]
        return [self.ssid, self.value]


class MessageSink(ABC):
    """
    Destination for feedback messages.

    Addresses are reference counted: each observer opens its surface
    address on creation and releases it on close, so implementations can
    create and free per-destination resources.
    """

    def __init__(self):
        self._address_refs: Counter = Counter()
        self._address_lock = threading.Lock()
        self._sent_messages = 0
        self._failed_messages = 0

    def open_address(self, address: RemoteAddress) -> RemoteAddress:
        """
        Take a reference on a destination.

        Args:
            address: Surface address

        Returns:
            The same address, for chaining
        """
        with self._address_lock:
            self._address_refs[address] += 1
            first = self._address_refs[address] == 1
        if first:
            self._address_opened(address)
            logger.debug(f"Opened feedback address {address.url}")
        return address

    def release_address(self, address: RemoteAddress) -> None:
        """Drop a reference taken with open_address()."""
        with self._address_lock:
            if self._address_refs[address] <= 0:
                logger.warning(f"Release of unopened address {address.url}")
                return
            self._address_refs[address] -= 1
            last = self._address_refs[address] == 0
            if last:
                del self._address_refs[address]
        if last:
            self._address_closed(address)
            logger.debug(f"Released feedback address {address.url}")

    def open_addresses(self) -> list[RemoteAddress]:
        """Addresses currently referenced by at least one observer."""
        with self._address_lock:
            return list(self._address_refs)

    def send(self, message: FeedbackMessage, address: RemoteAddress) -> bool:
        """
        Deliver a message.

        Returns:
            True if the transport accepted it
        """
        if self._deliver(message, address):
            self._sent_messages += 1
            return True
        self._failed_messages += 1
        return False

    def float_message_with_id(
        self, path: str, ssid: int, value: float, in_line: bool, address: RemoteAddress
    ) -> bool:
        return self.send(FeedbackMessage(path=path, ssid=ssid, value=float(value), in_line=in_line), address)

    def int_message_with_id(self, path: str, ssid: int, value: int, in_line: bool, address: RemoteAddress) -> bool:
        return self.send(FeedbackMessage(path=path, ssid=ssid, value=int(value), in_line=in_line), address)

    def text_message_with_id(self, path: str, ssid: int, value: str, in_line: bool, address: RemoteAddress) -> bool:
        return self.send(FeedbackMessage(path=path, ssid=ssid, value=str(value), in_line=in_line), address)

    def get_stats(self) -> dict[str, int]:
        """
        Get delivery statistics.

        Returns:
            Dictionary with sent/failed counts and open addresses
        """
        return {
            "sent": self._sent_messages,
            "failed": self._failed_messages,
            "addresses": len(self.open_addresses()),
        }

    @abstractmethod
    def _deliver(self, message: FeedbackMessage, address: RemoteAddress) -> bool:
        """Transport-specific send (subclass implements)."""
        pass

    def _address_opened(self, address: RemoteAddress) -> None:
        """Hook: first reference to address taken."""
        pass

    def _address_closed(self, address: RemoteAddress) -> None:
        """Hook: last reference to address dropped."""
        pass


class OSCMessageSink(MessageSink):
    """
    UDP OSC sink backed by pythonosc.udp_client.SimpleUDPClient.

    One client per open address; socket access is serialised so observers
    on different threads can share the sink.
    """

    def __init__(self):
        super().__init__()
        self._clients: dict[RemoteAddress, udp_client.SimpleUDPClient] = {}
        self._client_lock = threading.Lock()

    def _address_opened(self, address: RemoteAddress) -> None:
        with self._client_lock:
            self._clients[address] = udp_client.SimpleUDPClient(address.host, address.port)

    def _address_closed(self, address: RemoteAddress) -> None:
        with self._client_lock:
            client = self._clients.pop(address, None)
        if client is not None:
            _close_client(client, address)

    def _deliver(self, message: FeedbackMessage, address: RemoteAddress) -> bool:
        with self._client_lock:
            client = self._clients.get(address)
            if client is None:
                logger.warning(f"Cannot send {message.path}: address {address.url} not open")
                return False

            try:
                client.send_message(message.address_pattern, message.arguments)
                return True
            except OSError as e:
                logger.error(f"Error sending {message.address_pattern} to {address.url}: {e}")
                return False

    def close(self) -> None:
        """Close every client regardless of references."""
        with self._client_lock:
            clients = list(self._clients.items())
            self._clients.clear()
        for address, client in clients:
            _close_client(client, address)
            logger.debug(f"Closed OSC client for {address.url}")
        with self._address_lock:
            self._address_refs.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _close_client(client: udp_client.SimpleUDPClient, address: RemoteAddress) -> None:
    """
    Close the socket held by a python-osc client.

    SimpleUDPClient has no public close(); this relies on its private
    `_sock` attribute. If a python-osc release renames it, the missing
    socket is logged instead of leaking silently.
    """
    sock = getattr(client, "_sock", None)
    if sock is None:
        logger.warning(f"OSC client for {address.url} has no _sock attribute, socket not closed")
        return
    sock.close()


class RecordingSink(MessageSink):
    """In-memory sink that records every message in order."""

    def __init__(self):
        super().__init__()
        self._messages: list[tuple[RemoteAddress, FeedbackMessage]] = []
        self._lock = threading.Lock()

    def _deliver(self, message: FeedbackMessage, address: RemoteAddress) -> bool:
        with self._lock:
            self._messages.append((address, message))
        logger.debug(f"{address.url} {message.address_pattern} {message.arguments}")
        return True

    @property
    def messages(self) -> list[FeedbackMessage]:
        with self._lock:
            return [message for _, message in self._messages]

    def messages_for(self, path: str, ssid: Optional[int] = None) -> list[FeedbackMessage]:
        """Messages sent on a path, optionally for one slot."""
        return [m for m in self.messages if m.path == path and (ssid is None or m.ssid == ssid)]

    def values(self, path: str, ssid: Optional[int] = None) -> list[Payload]:
        """Payloads sent on a path, in order."""
        return [m.value for m in self.messages_for(path, ssid)]

    def last(self, path: str, ssid: Optional[int] = None) -> Optional[Payload]:
        """Most recent payload on a path, or None."""
        values = self.values(path, ssid)
        return values[-1] if values else None

    def paths(self) -> list[str]:
        return [m.path for m in self.messages]

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
