"""Tests for the time-sortable id generator."""

from __future__ import annotations

from core.ids import IdGenerator, new_id


class TestIdGenerator:
    def test_format(self):
        value = new_id()
        assert len(value) == 26
        assert value == value.lower()
        assert set(value) <= set("0123456789abcdefghjkmnpqrstvwxyz")

    def test_unique_and_sorted_within_same_millisecond(self):
        gen = IdGenerator(clock=lambda: 1_700_000_000.0)
        ids = [gen.new_id() for _ in range(200)]
        assert len(set(ids)) == 200
        assert ids == sorted(ids)

    def test_sorted_by_time(self):
        ticks = iter([1.0, 2.0, 3.0])
        gen = IdGenerator(clock=lambda: next(ticks))
        a, b, c = gen.new_id(), gen.new_id(), gen.new_id()
        assert a < b < c

    def test_clock_going_backwards_does_not_reorder(self):
        ticks = iter([5.0, 4.0])
        gen = IdGenerator(clock=lambda: next(ticks))
        first, second = gen.new_id(), gen.new_id()
        assert first < second
