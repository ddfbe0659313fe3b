"""Tests for OSC encoding, the outbound transport and argument decoding."""

from unittest.mock import Mock

import pytest
from pythonosc.osc_message import OscMessage

from oscsurface.devices import ClientAddress, Transport
from oscsurface.exceptions import MalformedMessageError
from oscsurface.osc import OscTransport, encode_message
from oscsurface.osc.addresses import float_arg, int_args, join_path

DEST = ClientAddress("127.0.0.1", 9000)


@pytest.mark.unit
class TestEncoding:
    """Test datagram encoding."""

    def test_encode_message(self):
        message = OscMessage(encode_message("/ring/map", 0, 15, 0))
        assert message.address == "/ring/map"
        assert message.params == [0, 15, 0]

    def test_encode_string_and_float(self):
        message = OscMessage(encode_message("/sys/connect", "pad", 0.5))
        assert message.params[0] == "pad"
        assert message.params[1] == pytest.approx(0.5)


@pytest.mark.unit
class TestOscTransport:
    """Test sending and failure accounting."""

    def test_is_a_transport(self):
        assert isinstance(OscTransport(), Transport)

    def test_send_uses_socket(self):
        sock = Mock()
        transport = OscTransport(sock)

        transport.send(DEST, "/sys/id", "pad")

        data, address = sock.sendto.call_args.args
        assert address == ("127.0.0.1", 9000)
        assert OscMessage(data).params == ["pad"]
        assert transport.sent_count == 1

    def test_send_failure_is_counted_not_raised(self):
        sock = Mock()
        sock.sendto.side_effect = OSError("network unreachable")
        transport = OscTransport(sock)

        transport.send(DEST, "/sys/id", "pad")

        assert transport.error_count == 1
        assert transport.sent_count == 0

    def test_unencodable_argument(self):
        sock = Mock()
        transport = OscTransport(sock)
        transport.send(DEST, "/x", object())
        assert transport.error_count == 1
        sock.sendto.assert_not_called()

    def test_attach_replaces_socket(self):
        first, second = Mock(), Mock()
        transport = OscTransport(first)
        transport.attach(second)
        transport.send(DEST, "/x", 1)
        second.sendto.assert_called_once()
        first.sendto.assert_not_called()
        first.close.assert_not_called()

    def test_close_only_closes_owned_socket(self):
        sock = Mock()
        transport = OscTransport(sock)
        transport.close()
        sock.close.assert_not_called()


@pytest.mark.unit
class TestArgumentDecoding:
    """Test integer and float argument helpers."""

    def test_int_args_truncates_floats(self):
        assert int_args("/x", (1.9, 2, "3"), 3) == [1, 2, 3]

    def test_int_args_ignores_extras(self):
        assert int_args("/x", (1, 2, 3, 4), 2) == [1, 2]

    def test_int_args_missing(self):
        with pytest.raises(MalformedMessageError):
            int_args("/x", (1,), 2)

    def test_int_args_not_numeric(self):
        with pytest.raises(MalformedMessageError):
            int_args("/x", ("one",), 1)
        with pytest.raises(MalformedMessageError):
            int_args("/x", (None,), 1)

    def test_float_arg(self):
        assert float_arg("/x", (0, 3), 1) == 3.0
        with pytest.raises(MalformedMessageError):
            float_arg("/x", (0,), 1)
        with pytest.raises(MalformedMessageError):
            float_arg("/x", (0, True), 1)

    def test_join_path(self):
        assert join_path("/pad", "/grid/key") == "/pad/grid/key"
        assert join_path("/", "/grid/key") == "/grid/key"
