"""Tests for SessionManager slot handling and inbound routing."""

from unittest.mock import Mock

import pytest

from oscsurface.devices import ClientAddress, VirtualRing, VirtualSurface
from oscsurface.exceptions import MalformedMessageError, UnknownCategoryError
from oscsurface.models import DeviceCategory
from oscsurface.protocols import SessionEvent
from oscsurface.session import Port, SessionManager

SURFACE = DeviceCategory.SURFACE
RING = DeviceCategory.RING


@pytest.fixture
def sessions(config, transport, clock):
    return SessionManager(config, transport, clock=clock)


def clients(count):
    return [ClientAddress("10.0.1.%d" % (i + 1), 8000) for i in range(count)]


@pytest.mark.unit
class TestConnect:
    """Test slot allocation."""

    def test_connect_acknowledges_with_size(self, sessions, client, sent):
        port = sessions.connect(client, SURFACE)

        assert port.index == 1
        assert isinstance(port.device, VirtualSurface)
        assert port.device.slot == 1
        ack = sent("/sys/connect")
        assert ack == [(client, "/sys/connect", (port.device.serial, "grid", 16, 8))]
        assert sent("/sys/id")

    def test_slots_fill_in_order(self, sessions):
        ports = [sessions.connect(c, SURFACE) for c in clients(4)]
        assert [p.index for p in ports] == [1, 2, 3, 4]
        assert sessions.find_free_slot(SURFACE) is None

    def test_full_pool_refuses(self, sessions, sent):
        """Fifth client on a 4-slot host is refused and nothing changes."""
        five = clients(5)
        for c in five[:4]:
            sessions.connect(c, SURFACE)

        assert sessions.connect(five[4], SURFACE) is None
        assert (five[4], "/sys/connect", (0,)) in sent("/sys/connect")
        assert sessions.connected_slots(SURFACE) == [1, 2, 3, 4]
        assert sessions.find_client_slot(five[4], SURFACE) is None

    def test_reconnect_reuses_slot(self, sessions, client, other_client, sent, transport):
        sessions.connect(other_client, SURFACE)
        first = sessions.connect(client, SURFACE)
        first.device.led(1, 1, 15)
        transport.send.reset_mock()

        again = sessions.connect(client, SURFACE)

        assert again is first
        assert again.index == 2
        assert sessions.connected_slots(SURFACE) == [1, 2]
        paths = [path for _, path, _ in sent()]
        assert paths[0] == "/sys/connect"
        assert paths[1] == "/oscsurface_bulk"
        assert sent("/oscsurface_bulk")[0][2][0][0] == "F"

    def test_categories_have_separate_pools(self, sessions, client):
        surface = sessions.connect(client, SURFACE)
        ring = sessions.connect(client, RING)
        assert surface.index == 1
        assert ring.index == 1
        assert isinstance(ring.device, VirtualRing)
        assert sessions.find_any_client(client) == (SURFACE, 1)

    def test_ring_dimensions(self, sessions, client, sent):
        port = sessions.connect(client, RING, serial="my-arc", cols=2, rows=32)
        assert port.device.size == (2, 32)
        assert sent("/sys/connect")[0][2] == ("my-arc", "arc", 2, 32)

    def test_port_index_bounds(self, sessions):
        with pytest.raises(IndexError):
            sessions.port(SURFACE, 0)
        with pytest.raises(IndexError):
            sessions.port(SURFACE, 5)

    def test_connect_any(self, sessions, other_client):
        assert sessions.connect_any(SURFACE).index == 1
        sessions.connect(ClientAddress("10.0.0.9", 1), SURFACE)
        sessions.disconnect_slot(SURFACE, 1)
        sessions.connect(ClientAddress("10.0.0.9", 2), SURFACE)
        sessions.connect(other_client, SURFACE)
        sessions.disconnect_slot(SURFACE, 1)
        assert sessions.connect_any(SURFACE).index == 2


@pytest.mark.unit
class TestDisconnect:
    """Test teardown paths."""

    def test_disconnect_frees_slot(self, sessions, client, sent):
        port = sessions.connect(client, SURFACE)
        serial = port.device.serial

        assert sessions.disconnect(client) == 1
        assert not port.connected
        assert port.name == "none"
        assert sent("/sys/disconnect") == [(client, "/sys/disconnect", (serial,))]

    def test_disconnect_only_one_category(self, sessions, client):
        sessions.connect(client, SURFACE)
        sessions.connect(client, RING)
        assert sessions.disconnect(client, RING) == 1
        assert sessions.find_client_slot(client, SURFACE) == 1

    def test_disconnect_unknown_client(self, sessions, client):
        assert sessions.disconnect(client) == 0
        assert sessions.disconnect_slot(SURFACE, 3) is False

    def test_shutdown_empties_every_slot(self, sessions, sent):
        for c in clients(3):
            sessions.connect(c, SURFACE)
        sessions.connect(clients(1)[0], RING)

        sessions.shutdown()

        assert list(sessions.devices()) == []
        assert len(sent("/sys/disconnect")) == 4

    def test_shutdown_survives_failing_cleanup(self, sessions, sent):
        a, b, c = clients(3)
        first = sessions.connect(a, SURFACE)
        sessions.connect(b, SURFACE)
        sessions.connect(c, RING)
        first.device.cleanup = Mock(side_effect=OSError("network unreachable"))

        sessions.shutdown()

        assert list(sessions.devices()) == []
        assert not first.connected
        assert len(sent("/sys/disconnect")) == 2

    def test_failing_cleanup_still_frees_slot(self, sessions, client):
        observer = Mock()
        sessions.register_observer(observer)
        port = sessions.connect(client, SURFACE)
        port.device.cleanup = Mock(side_effect=RuntimeError("boom"))

        assert sessions.disconnect(client) == 1
        assert sessions.find_free_slot(SURFACE) == 1
        observer.on_session_event.assert_called_with(SessionEvent.DEVICE_REMOVED, port, client)

    def test_freed_slot_is_reused(self, sessions):
        a, b, c = clients(3)
        sessions.connect(a, SURFACE)
        sessions.connect(b, SURFACE)
        sessions.disconnect(a)
        assert sessions.connect(c, SURFACE).index == 1


@pytest.mark.unit
class TestCallbacksAndObservers:
    """Test application callbacks and session events."""

    def test_add_and_remove_callbacks(self, sessions, client):
        added, removed = Mock(), Mock()
        sessions.callbacks[SURFACE].add = added
        sessions.callbacks[SURFACE].remove = removed

        port = sessions.connect(client, SURFACE)
        added.assert_called_once_with(port)

        sessions.disconnect(client)
        removed.assert_called_once_with(port)

    def test_failing_callback_does_not_break_connect(self, sessions, client, sent):
        sessions.callbacks[SURFACE].add = Mock(side_effect=RuntimeError("script bug"))
        port = sessions.connect(client, SURFACE)
        assert port.connected
        assert sent("/sys/id")

    def test_observer_sees_lifecycle(self, sessions, client):
        observer = Mock()
        sessions.register_observer(observer)

        port = sessions.connect(client, SURFACE)
        sessions.connect(client, SURFACE)
        sessions.disconnect(client)

        events = [c.args[0] for c in observer.on_session_event.call_args_list]
        assert events == [SessionEvent.DEVICE_ADDED, SessionEvent.DEVICE_RECONNECTED, SessionEvent.DEVICE_REMOVED]
        assert observer.on_session_event.call_args_list[0].args[1] is port

    def test_observer_sees_refusal(self, sessions):
        observer = Mock()
        sessions.register_observer(observer)
        five = clients(5)
        for c in five:
            sessions.connect(c, SURFACE)
        observer.on_session_event.assert_called_with(SessionEvent.CONNECT_REFUSED, None, five[4])

    def test_clear_all_blanks_and_drops_callbacks(self, sessions, client, sent):
        port = sessions.connect(client, SURFACE)
        port.key = Mock()
        sessions.callbacks[SURFACE].add = Mock()
        port.led(1, 1, 15)

        sessions.clear_all()

        assert port.key is None
        assert sessions.callbacks[SURFACE].add is None
        assert port.connected
        assert sent("/oscsurface_bulk")[-1][2] == ("0" * 128,)

    def test_discovery_notified_on_add(self, sessions, client, other_client, sent):
        sessions.discovery.subscribe(other_client)
        port = sessions.connect(client, SURFACE)
        assert sent("/serialosc/add") == [(other_client, "/serialosc/add", (port.device.serial,))]


@pytest.mark.unit
class TestConnectMessages:
    """Test /sys/connect and /sys/disconnect parsing."""

    def test_connect_defaults(self, sessions, client):
        assert sessions.handle_message(client, "/sys/connect", ()) is True
        device = sessions.port(SURFACE, 1).device
        assert device.size == (16, 8)
        assert device.serial == "oscsurface-grid-10.0.0.5:9000"

    def test_connect_with_serial_and_size(self, sessions, client):
        sessions.handle_message(client, "/sys/connect", ("pad", "grid", 8, 8))
        device = sessions.port(SURFACE, 1).device
        assert device.serial == "pad"
        assert device.size == (8, 8)
        assert device.type_name == "monome 64"

    def test_zero_dimensions_mean_default(self, sessions, client):
        sessions.handle_message(client, "/sys/connect", ("", "arc", 0, 0))
        device = sessions.port(RING, 1).device
        assert device.size == (4, 64)

    def test_type_is_case_insensitive(self, sessions, client):
        sessions.handle_message(client, "/sys/connect", ("", "ARC"))
        assert sessions.port(RING, 1).connected

    def test_unknown_type_is_refused(self, sessions, client, sent):
        with pytest.raises(UnknownCategoryError):
            sessions.handle_message(client, "/sys/connect", ("x", "keyboard"))
        assert sent("/sys/connect") == [(client, "/sys/connect", (0,))]
        assert list(sessions.devices()) == []

    def test_negative_dimensions_rejected(self, sessions, client):
        with pytest.raises(MalformedMessageError):
            sessions.handle_message(client, "/sys/connect", ("x", "grid", -1, 8))

    def test_oversized_surface_is_refused(self, sessions, client, sent):
        assert sessions.handle_message(client, "/sys/connect", ("s", "grid", 1024, 1024)) is True

        assert not sessions.port(SURFACE, 1).connected
        assert sent("/sys/connect") == [(client, "/sys/connect", (0,))]
        assert sessions.find_free_slot(SURFACE) == 1

    @pytest.mark.parametrize("cols,rows,allowed", [
        (64, 64, True),
        (65, 8, False),
        (16, 65, False),
    ])
    def test_surface_size_limit(self, sessions, client, cols, rows, allowed):
        sessions.handle_message(client, "/sys/connect", ("s", "grid", cols, rows))
        assert sessions.port(SURFACE, 1).connected is allowed

    @pytest.mark.parametrize("rings,leds,allowed", [
        (8, 256, True),
        (9, 64, False),
        (4, 257, False),
    ])
    def test_ring_size_limit(self, sessions, client, rings, leds, allowed):
        sessions.handle_message(client, "/sys/connect", ("k", "arc", rings, leds))
        assert sessions.port(RING, 1).connected is allowed

    def test_oversized_request_notifies_refusal(self, sessions, client):
        observer = Mock()
        sessions.register_observer(observer)
        assert sessions.connect(client, RING, cols=2, rows=4096) is None
        observer.on_session_event.assert_called_once_with(SessionEvent.CONNECT_REFUSED, None, client)

    def test_one_client_gets_distinct_serials(self, sessions, client):
        sessions.handle_message(client, "/sys/connect", ("", "grid"))
        sessions.handle_message(client, "/sys/connect", ("", "arc"))
        surface = sessions.port(SURFACE, 1).device
        ring = sessions.port(RING, 1).device

        assert surface.serial == "oscsurface-grid-10.0.0.5:9000"
        assert ring.serial == "oscsurface-arc-10.0.0.5:9000"
        assert surface.prefix != ring.prefix

    def test_disconnect_message(self, sessions, client):
        sessions.connect(client, SURFACE)
        sessions.connect(client, RING)
        assert sessions.handle_message(client, "/sys/disconnect", ()) is True
        assert list(sessions.devices()) == []


@pytest.mark.unit
class TestInputRouting:
    """Test delivery of key and encoder input to the sender's device."""

    def test_key_under_device_prefix(self, sessions, client):
        port = sessions.connect(client, SURFACE)
        port.key = Mock()

        consumed = sessions.handle_message(client, port.device.prefix + "/grid/key", (2, 3, 1))

        assert consumed is True
        port.key.assert_called_once_with(3, 4, 1)

    def test_other_client_cannot_press_keys(self, sessions, client, other_client):
        port = sessions.connect(client, SURFACE)
        port.key = Mock()
        assert sessions.handle_message(other_client, port.device.prefix + "/grid/key", (0, 0, 1)) is False
        port.key.assert_not_called()

    def test_button_under_global_prefix(self, sessions, client):
        port = sessions.connect(client, SURFACE)
        port.key = Mock()
        assert sessions.handle_message(client, "/oscsurface/18", (1.0,)) is True
        port.key.assert_called_once_with(2, 2, 1)

    def test_button_without_device_is_consumed(self, sessions, client):
        assert sessions.handle_message(client, "/oscsurface/3", (1,)) is True

    def test_device_suffix_under_global_prefix(self, sessions, client):
        port = sessions.connect(client, RING)
        port.delta = Mock()
        assert sessions.handle_message(client, "/oscsurface/enc/delta", (1, 4)) is True
        port.delta.assert_called_once_with(2, 4)

    def test_global_prefix_follows_changes(self, sessions, client):
        port = sessions.connect(client, SURFACE)
        port.key = Mock()
        sessions.global_prefix = "/touch"
        assert sessions.handle_message(client, "/oscsurface/1", (1,)) is False
        assert sessions.handle_message(client, "/touch/1", (1,)) is True
        port.key.assert_called_once_with(1, 1, 1)

    def test_unrelated_path_not_consumed(self, sessions, client):
        sessions.connect(client, SURFACE)
        assert sessions.handle_message(client, "/mixer/fader1", (0.5,)) is False

    def test_ring_input_under_device_prefix(self, sessions, client):
        port = sessions.connect(client, RING)
        port.key = Mock()
        sessions.handle_message(client, port.device.prefix + "/enc/key", (0, 1))
        port.key.assert_called_once_with(1, 1)


@pytest.mark.unit
class TestStaleness:
    """Test the optional forced flush of long-pending surface changes."""

    def test_flush_stale(self, sessions, client, clock, sent):
        port = sessions.connect(client, SURFACE)
        port.led(1, 1, 15)

        clock.advance(0.1)
        assert sessions.flush_stale(0.5) == 0

        clock.advance(0.5)
        assert sessions.flush_stale(0.5) == 1
        assert port.device.pending_since is None
        assert sent("/oscsurface_bulk")[-1][2][0][0] == "F"

    def test_clean_surfaces_are_not_flushed(self, sessions, client, clock):
        sessions.connect(client, SURFACE)
        clock.advance(10)
        assert sessions.flush_stale(0.5) == 0


@pytest.mark.unit
class TestPorts:
    """Test the application handles around slots."""

    def test_base_port_is_abstract(self):
        with pytest.raises(TypeError):
            Port(1)

    def test_empty_port_swallows_calls(self, sessions):
        grid = sessions.port(SURFACE, 2)
        grid.led(1, 1, 15)
        grid.all(3)
        grid.refresh()
        assert not grid.connected
        assert (grid.cols, grid.rows) == (0, 0)
        assert sessions.port(RING, 1).ring_count == 0

    def test_surface_mirror_sees_the_same_calls(self, sessions, client):
        grid = sessions.port(SURFACE, 1)
        grid.mirror = Mock()
        sessions.connect(client, SURFACE)

        grid.led(2, 3, 9)
        grid.rotation(1)
        grid.refresh()

        grid.mirror.led.assert_called_once_with(2, 3, 9)
        grid.mirror.rotation.assert_called_once_with(1)
        grid.mirror.refresh.assert_called_once()
        assert grid.surface.rotation_state == 1

    def test_ring_mirror_without_client(self, sessions):
        arc = sessions.port(RING, 1)
        arc.mirror = Mock()
        arc.segment(1, 0.0, 1.0, 15)
        arc.all(0)
        arc.mirror.segment.assert_called_once_with(1, 0.0, 1.0, 15)
        arc.mirror.all.assert_called_once_with(0)

    def test_port_survives_reconnects(self, sessions, client):
        grid = sessions.port(SURFACE, 1)
        sessions.connect(client, SURFACE)
        sessions.disconnect(client)
        sessions.connect(client, SURFACE)
        assert sessions.port(SURFACE, 1) is grid
        assert grid.connected
