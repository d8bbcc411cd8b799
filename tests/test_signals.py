"""Tests for Signal, Connection and ConnectionList."""

from stripbound.signals import ConnectionList, Signal


class TestSignal:
    def test_emit_passes_arguments(self):
        signal = Signal("test")
        received = []
        signal.connect(lambda *args: received.append(args))

        signal.emit(1, "two")

        assert received == [(1, "two")]

    def test_callbacks_run_in_connection_order(self):
        signal = Signal("test")
        order = []
        signal.connect(lambda: order.append("first"))
        signal.connect(lambda: order.append("second"))

        signal.emit()

        assert order == ["first", "second"]

    def test_failing_callback_does_not_stop_others(self, caplog):
        """Test a raising callback is logged and the rest still run."""
        signal = Signal("test")
        received = []

        def broken():
            raise RuntimeError("boom")

        signal.connect(broken)
        signal.connect(lambda: received.append(True))

        signal.emit()

        assert received == [True]
        assert "broken" in caplog.text

    def test_disconnect_during_dispatch(self):
        """Test a handle dropped by an earlier callback does not fire."""
        signal = Signal("test")
        received = []
        handles = {}

        handles["first"] = signal.connect(lambda: handles["second"].disconnect())
        handles["second"] = signal.connect(lambda: received.append("second"))

        signal.emit()

        assert received == []
        assert signal.connection_count() == 1


class TestConnection:
    def test_disconnect_is_idempotent(self):
        signal = Signal("test")
        connection = signal.connect(lambda: None)

        connection.disconnect()
        connection.disconnect()

        assert not connection.connected
        assert signal.connection_count() == 0


class TestConnectionList:
    def test_drop_connections(self):
        first, second = Signal("first"), Signal("second")
        received = []
        connections = ConnectionList()
        connections.connect(first, lambda: received.append("first"))
        connections.connect(second, lambda: received.append("second"))
        assert len(connections) == 2

        connections.drop_connections()
        first.emit()
        second.emit()

        assert received == []
        assert len(connections) == 0
        assert first.connection_count() == 0
        assert second.connection_count() == 0

    def test_drop_from_inside_callback(self):
        """Test an owner can drop its own subscriptions while being notified."""
        signal = Signal("test")
        connections = ConnectionList()
        calls = []

        def handler():
            calls.append(True)
            connections.drop_connections()

        connections.connect(signal, handler)
        signal.emit()
        signal.emit()

        assert calls == [True]
