"""
Tests for edge debouncing.

Run with: pytest tests/test_filters.py -v
"""

import pytest
from motion_bridge.common.filters import EdgeDebouncer


@pytest.fixture
def debouncer():
    return EdgeDebouncer(debounce_ms=50.0)


class TestEdgeDebouncer:
    """Test window-based edge acceptance."""

    def test_first_edge_accepted(self, debouncer):
        """With no reference point the first edge passes."""
        assert debouncer.accept(now=10.0)
        assert debouncer.last_accepted == 10.0

    def test_edge_inside_window_rejected(self, debouncer):
        """Edges closer than the window are bounces."""
        debouncer.accept(now=1.0)

        assert not debouncer.accept(now=1.02)
        assert debouncer.last_accepted == 1.0

    def test_rejected_edges_do_not_extend_window(self, debouncer):
        """The window is measured from the last accepted edge."""
        debouncer.accept(now=1.0)
        debouncer.accept(now=1.03)

        assert debouncer.accept(now=1.06)

    def test_mark_opens_window(self, debouncer):
        """mark() suppresses edges right after it."""
        debouncer.mark(now=0.0)

        assert not debouncer.accept(now=0.0)
        assert debouncer.accept(now=0.2)

    def test_reset(self, debouncer):
        """reset() forgets the reference point."""
        debouncer.accept(now=1.0)
        debouncer.reset()

        assert debouncer.last_accepted is None
        assert debouncer.accept(now=1.001)

    def test_uses_clock_when_no_time_given(self):
        """The injected clock supplies event times."""
        times = iter([0.0, 0.01, 0.1])
        debouncer = EdgeDebouncer(debounce_ms=50.0, clock=lambda: next(times))

        assert debouncer.accept()
        assert not debouncer.accept()
        assert debouncer.accept()

    def test_gap_equal_to_window_after_float_arithmetic(self, debouncer):
        """0.15 - 0.1 is just under 0.05 in floats; it still counts as a full window."""
        debouncer.accept(now=0.1)

        assert debouncer.accept(now=0.15)
        assert debouncer.accept(now=0.2)
        assert debouncer.accept(now=0.25)
