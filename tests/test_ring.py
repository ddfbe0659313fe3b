"""Tests for the virtual encoder ring device."""

import math
from unittest.mock import Mock

import pytest

from oscsurface.devices import VirtualRing
from oscsurface.devices.ring import TAU, round_half_up, segment_levels
from oscsurface.exceptions import MalformedMessageError


@pytest.fixture
def ring(client, transport):
    return VirtualRing(client, transport, ring_count=4, leds_per_ring=64, prefix="/arc")


def at(position, leds=8):
    """Angle of a fractional LED position."""
    return position / leds * TAU


@pytest.mark.unit
class TestSegmentLevels:
    """Test anti-aliased arc rendering."""

    def test_boundary_leds_are_dimmed(self):
        levels = segment_levels(at(1.25), at(4.5), 8, 8)
        assert levels == [0, 6, 8, 8, 4, 0, 0, 0]

    def test_arc_wraps_through_zero(self):
        levels = segment_levels(at(7.5), at(0.5), 8, 8)
        assert levels == [4, 0, 0, 0, 0, 0, 0, 4]

    def test_full_turn_lights_everything(self):
        assert segment_levels(0, 2 * math.pi, 15, 64) == [15] * 64
        assert segment_levels(1.0, 1.0 + 3 * math.pi, 9, 16) == [9] * 16

    @pytest.mark.parametrize("angle", [0.0, 0.3, math.pi, 5.9])
    def test_empty_segment_lights_at_most_one_led(self, angle):
        levels = segment_levels(angle, angle, 15, 64)
        assert sum(1 for level in levels if level) <= 1

    def test_level_is_clamped(self):
        assert segment_levels(0, TAU, 40, 4) == [15] * 4

    def test_angles_beyond_a_turn_are_reduced(self):
        assert segment_levels(at(1) + TAU, at(3) + TAU, 8, 8) == segment_levels(at(1), at(3), 8, 8)

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(0.49) == 0


@pytest.mark.unit
class TestRingLeds:
    """Test immediate-send LED operations."""

    def test_type_and_size(self, ring):
        assert ring.type_name == "monome arc 4"
        assert ring.size == (4, 64)

    def test_led_sends_when_changed(self, ring, sent):
        ring.led(2, 10, 7)
        assert sent("/arc/ring/set") == [(ring.destination, "/arc/ring/set", (1, 9, 7))]
        assert ring.get(2, 10) == 7
        assert not ring.buffer.has_dirty()

    def test_led_same_value_sends_nothing(self, ring, transport):
        ring.led(1, 1, 5)
        transport.send.reset_mock()
        ring.led(1, 1, 5)
        assert not transport.send.called

    @pytest.mark.parametrize("n,x", [(0, 1), (5, 1), (1, 0), (1, 65)])
    def test_led_out_of_range(self, ring, transport, n, x):
        ring.led(n, x, 15)
        assert not transport.send.called
        assert ring.get(n, x) == 0

    def test_all_sends_every_ring(self, ring, sent):
        ring.all(20)
        assert [args for _, _, args in sent("/arc/ring/all")] == [(0, 15), (1, 15), (2, 15), (3, 15)]
        assert ring.get(4, 64) == 15
        assert not ring.buffer.has_dirty()

    def test_segment_replaces_ring(self, ring, sent):
        ring.map(1, [3] * 64)
        ring.segment(1, 0, math.pi, 15)

        *_, (_, _, args) = sent("/arc/ring/map")
        assert args[0] == 0
        assert list(args[1:33]) == [15] * 32
        assert list(args[33:]) == [0] * 32

    def test_segment_leaves_other_rings(self, ring):
        ring.map(2, [9] * 64)
        ring.segment(1, 0, TAU, 4)
        assert ring.get(2, 1) == 9

    def test_range_wraps_inclusively(self, ring, sent):
        ring.range(1, 63, 2, 5)
        lit = [x for x in range(1, 65) if ring.get(1, x)]
        assert lit == [1, 2, 63, 64]
        assert len(sent("/arc/ring/map")) == 1

    def test_range_keeps_other_leds(self, ring):
        ring.led(1, 10, 12)
        ring.range(1, 1, 3, 2)
        assert ring.get(1, 10) == 12
        assert ring.get(1, 3) == 2

    def test_map_pads_short_lists(self, ring, sent):
        ring.map(3, [1, 2, 3])
        (_, _, args), = sent("/arc/ring/map")
        assert args[:4] == (2, 1, 2, 3)
        assert set(args[4:]) == {0}

    def test_refresh_is_noop(self, ring, transport):
        ring.led(1, 1, 1)
        transport.send.reset_mock()
        assert ring.refresh() is False
        assert not transport.send.called

    def test_force_refresh_sends_map_per_ring(self, ring, sent):
        ring.force_refresh()
        assert [args[0] for _, _, args in sent("/arc/ring/map")] == [0, 1, 2, 3]

    def test_cleanup(self, ring, sent):
        ring.led(1, 1, 15)
        ring.cleanup()
        paths = [path for _, path, _ in sent()]
        assert paths[-1] == "/sys/disconnect"
        assert ring.get(1, 1) == 0


@pytest.mark.unit
class TestRingInput:
    """Test encoder input handling."""

    def test_delta_from_wire(self, ring):
        ring.delta = Mock()
        assert ring.handle_input("/enc/delta", (0, -3)) is True
        ring.delta.assert_called_once_with(1, -3)

    def test_key_from_wire(self, ring):
        ring.key = Mock()
        ring.handle_input("/enc/key", (3, 1))
        ring.key.assert_called_once_with(4, 1)

    def test_zero_delta_is_dropped(self, ring):
        ring.delta = Mock()
        ring.handle_delta(1, 0)
        ring.delta.assert_not_called()

    def test_unknown_ring_is_dropped(self, ring):
        ring.delta = Mock()
        ring.key = Mock()
        ring.handle_input("/enc/delta", (4, 1))
        ring.handle_input("/enc/key", (-1, 1))
        ring.delta.assert_not_called()
        ring.key.assert_not_called()

    def test_other_paths_not_handled(self, ring):
        assert ring.handle_input("/grid/key", (0, 0, 1)) is False

    def test_first_position_only_seeds(self, ring):
        ring.delta = Mock()
        ring.handle_input("/enc/position", (0, 0.1))
        ring.delta.assert_not_called()

    def test_position_becomes_scaled_delta(self, ring):
        ring.delta = Mock()
        ring.handle_position(1, 0.1)
        ring.handle_position(1, 0.2)
        ring.delta.assert_called_once_with(1, 50)

    @pytest.mark.parametrize("start,end,expected", [(0.95, 0.05, 50), (0.05, 0.95, -50)])
    def test_position_wraps_through_zero(self, ring, start, end, expected):
        ring.delta = Mock()
        ring.handle_position(2, start)
        ring.handle_position(2, end)
        ring.delta.assert_called_once_with(2, expected)

    def test_positions_are_per_ring(self, ring):
        ring.delta = Mock()
        ring.handle_position(1, 0.5)
        ring.handle_position(2, 0.7)
        ring.delta.assert_not_called()

    def test_malformed_input(self, ring):
        with pytest.raises(MalformedMessageError):
            ring.handle_input("/enc/delta", (0,))
        with pytest.raises(MalformedMessageError):
            ring.handle_input("/enc/position", (0, "half"))
