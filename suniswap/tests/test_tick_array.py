"""
Tick Array 테스트

버킷 시작 틱 계산 (내림), 포지션 / 스왑 버킷 목록을 테스트합니다.
"""

import random

import pytest

from ..constants import MIN_TICK, MAX_TICK
from ..errors import DomainRangeError
from ..tick_array import (
    TickArrayRange,
    tick_array_size,
    get_tick_array_start_index,
    get_tick_arrays_for_range,
    get_tick_arrays_spanning,
    get_tick_arrays_for_swap,
    is_tick_in_array,
    tick_offset_in_array,
    engine_accepts_tick_array_start,
)


class TestStartIndex:
    """get_tick_array_start_index 테스트"""

    def test_negative_tick_floors(self):
        """spacing=60 → 폭 480, tick=-120 → -480 (0 이 아님)"""
        assert tick_array_size(60) == 480
        assert get_tick_array_start_index(-120, 60) == -480

    def test_zero_and_positive(self):
        assert get_tick_array_start_index(0, 60) == 0
        assert get_tick_array_start_index(479, 60) == 0
        assert get_tick_array_start_index(480, 60) == 480

    def test_negative_boundaries(self):
        assert get_tick_array_start_index(-1, 60) == -480
        assert get_tick_array_start_index(-480, 60) == -480
        assert get_tick_array_start_index(-481, 60) == -960

    def test_custom_array_size(self):
        assert get_tick_array_start_index(-1, 10, array_size=88) == -880

    def test_contains_tick(self):
        rng = random.Random(1)
        for _ in range(500):
            spacing = rng.choice([1, 10, 60, 200])
            tick = rng.randint(MIN_TICK, MAX_TICK)
            start = get_tick_array_start_index(tick, spacing)
            size = tick_array_size(spacing)
            assert start % size == 0
            assert start <= tick < start + size

    def test_domain_edges(self):
        assert get_tick_array_start_index(MIN_TICK, 60) == -444000
        assert get_tick_array_start_index(MAX_TICK, 60) == 443520

    def test_invalid_inputs(self):
        with pytest.raises(DomainRangeError):
            get_tick_array_start_index(MAX_TICK + 1, 60)
        with pytest.raises(DomainRangeError):
            get_tick_array_start_index(0, 0)
        with pytest.raises(DomainRangeError):
            get_tick_array_start_index(0, 60, array_size=0)


class TestArraysForRange:
    """포지션 경계 버킷"""

    def test_same_array(self):
        result = get_tick_arrays_for_range(60, 240, 60)
        assert result == TickArrayRange(0, 0)
        assert result.starts == (0,)

    def test_two_arrays(self):
        result = get_tick_arrays_for_range(-120, 120, 60)
        assert result.lower_start == -480
        assert result.upper_start == 0
        assert result.starts == (-480, 0)

    def test_bounds_contained(self):
        result = get_tick_arrays_for_range(-1200, 3000, 60)
        assert is_tick_in_array(-1200, result.lower_start, 60)
        assert is_tick_in_array(3000, result.upper_start, 60)

    def test_invalid_range(self):
        with pytest.raises(DomainRangeError):
            get_tick_arrays_for_range(120, -120, 60)
        with pytest.raises(DomainRangeError):
            get_tick_arrays_for_range(-100, 120, 60)


class TestArraysSpanning:
    """구간을 덮는 모든 버킷"""

    def test_covers_range(self):
        """모든 틱이 정확히 하나의 버킷에 속함"""
        tick_lower, tick_upper, spacing = -1500, 1020, 60
        starts = get_tick_arrays_spanning(tick_lower, tick_upper, spacing)
        size = tick_array_size(spacing)
        assert list(starts) == sorted(starts)
        assert all(b - a == size for a, b in zip(starts, starts[1:]))
        for tick in range(tick_lower, tick_upper + 1, spacing):
            assert sum(1 for s in starts if is_tick_in_array(tick, s, spacing)) == 1

    def test_single_array(self):
        assert get_tick_arrays_spanning(0, 60, 60) == (0,)


class TestArraysForSwap:
    """스왑 버킷 목록"""

    def test_a_to_b_descending(self):
        assert get_tick_arrays_for_swap(-120, 60, a_to_b=True) == (-480, -960, -1440)

    def test_b_to_a_ascending(self):
        assert get_tick_arrays_for_swap(-120, 60, a_to_b=False) == (-480, 0, 480)

    def test_strictly_monotonic_no_duplicates(self):
        rng = random.Random(2)
        for _ in range(200):
            tick = rng.randint(-400000, 400000)
            for a_to_b in (True, False):
                starts = get_tick_arrays_for_swap(tick, 60, a_to_b, count=5)
                assert len(set(starts)) == 5
                pairs = list(zip(starts, starts[1:]))
                if a_to_b:
                    assert all(a > b for a, b in pairs)
                else:
                    assert all(a < b for a, b in pairs)

    def test_count(self):
        assert get_tick_arrays_for_swap(0, 1, a_to_b=True, count=1) == (0,)
        with pytest.raises(DomainRangeError):
            get_tick_arrays_for_swap(0, 1, a_to_b=True, count=0)

    def test_walk_off_top_fails(self):
        """도메인 밖 버킷이 필요하면 잘라내지 않고 실패"""
        with pytest.raises(DomainRangeError):
            get_tick_arrays_for_swap(MAX_TICK, 60, a_to_b=False, count=2)

    def test_walk_off_bottom_fails(self):
        with pytest.raises(DomainRangeError):
            get_tick_arrays_for_swap(MIN_TICK, 60, a_to_b=True, count=2)

    def test_edge_bucket_alone_is_fine(self):
        assert get_tick_arrays_for_swap(MAX_TICK, 60, a_to_b=False, count=1) == (443520,)
        assert get_tick_arrays_for_swap(MAX_TICK, 60, a_to_b=True) == (443520, 443040, 442560)


class TestTickOffset:

    def test_offsets(self):
        assert tick_offset_in_array(-480, -480, 60) == 0
        assert tick_offset_in_array(-120, -480, 60) == 6
        assert tick_offset_in_array(-60, -480, 60) == 7

    def test_outside_array(self):
        with pytest.raises(DomainRangeError):
            tick_offset_in_array(0, -480, 60)

    def test_misaligned(self):
        with pytest.raises(DomainRangeError):
            tick_offset_in_array(-100, -480, 60)


class TestEngineAcceptance:
    """배포된 엔진의 시작 틱 수용 규칙"""

    def test_interior(self):
        assert engine_accepts_tick_array_start(-480, 60)
        assert engine_accepts_tick_array_start(0, 60)

    def test_misaligned(self):
        assert not engine_accepts_tick_array_start(-120, 60)

    def test_floor_bucket_below_min_tick(self):
        """내림 규칙의 최하단 버킷은 MIN_TICK 아래에서 시작해 엔진이 거부"""
        start = get_tick_array_start_index(MIN_TICK, 60)
        assert start < MIN_TICK
        assert not engine_accepts_tick_array_start(start, 60)

    def test_top_bucket(self):
        """최상단 버킷은 MAX_TICK + spacing 을 넘어 엔진이 거부"""
        start = get_tick_array_start_index(MAX_TICK, 60)
        assert start + tick_array_size(60) > MAX_TICK + 60
        assert not engine_accepts_tick_array_start(start, 60)
        assert engine_accepts_tick_array_start(start - 480, 60)
