"""
Tick Math 테스트

tick_math.py 의 함수들을 테스트합니다.
해석적 값 (decimal) 과 정산 엔진 곱셈 테이블 값을 비교하여 정확도를 검증합니다.
"""

import random

import pytest

from ..config import PrecisionConfig
from ..constants import (
    Q64,
    MIN_TICK,
    MAX_TICK,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
)
from ..errors import DomainRangeError
from ..math.tick_math import (
    tick_to_sqrt_price,
    sqrt_price_to_tick,
    engine_sqrt_price_at_tick,
    is_valid_tick,
    get_next_valid_tick,
    round_tick_to_spacing,
    validate_tick_range,
    get_tick_spacing_for_fee,
)


def _sample_ticks(n: int, seed: int = 7):
    rng = random.Random(seed)
    ticks = [MIN_TICK, MIN_TICK + 1, -1, 0, 1, MAX_TICK - 1, MAX_TICK]
    ticks += [rng.randint(MIN_TICK, MAX_TICK) for _ in range(n)]
    return ticks


class TestTickToSqrtPrice:
    """tick_to_sqrt_price 테스트"""

    def test_tick_0(self):
        """틱 0 에서 정확히 2^64"""
        assert tick_to_sqrt_price(0) == Q64 == 18446744073709551616

    def test_min_tick(self):
        assert tick_to_sqrt_price(MIN_TICK) == MIN_SQRT_PRICE

    def test_max_tick(self):
        """해석적 내림값은 엔진 값보다 1 작음"""
        result = tick_to_sqrt_price(MAX_TICK)
        assert result == 79226673515401279992447579061
        assert result <= MAX_SQRT_PRICE

    def test_known_values(self):
        """floor(sqrt(1.0001^t) * 2^64) 기준값"""
        assert tick_to_sqrt_price(1) == 18447666387855959850
        assert tick_to_sqrt_price(-1) == 18445821805675392311
        assert tick_to_sqrt_price(120) == 18557751677670031987
        assert tick_to_sqrt_price(-120) == 18336400488125385352
        assert tick_to_sqrt_price(1000) == 19392480388906836277

    def test_monotonic(self):
        """틱이 커지면 sqrtPrice 도 커짐"""
        ticks = sorted(set(_sample_ticks(200)))
        prices = [tick_to_sqrt_price(t) for t in ticks]
        assert all(a < b for a, b in zip(prices, prices[1:]))

    def test_invalid_tick_too_low(self):
        with pytest.raises(DomainRangeError):
            tick_to_sqrt_price(MIN_TICK - 1)

    def test_invalid_tick_too_high(self):
        with pytest.raises(DomainRangeError):
            tick_to_sqrt_price(MAX_TICK + 1)

    @pytest.mark.parametrize("tick", [1.0, "1", True, None])
    def test_non_integer_tick(self, tick):
        with pytest.raises(DomainRangeError):
            tick_to_sqrt_price(tick)

    def test_range_error_is_value_error(self):
        """기존 ValueError 처리 코드와 호환"""
        with pytest.raises(ValueError):
            tick_to_sqrt_price(MAX_TICK + 1)

    def test_precision_config(self):
        """정밀도를 바꿔도 같은 내림값"""
        config = PrecisionConfig(precision=120)
        for tick in (MIN_TICK, -5000, 0, 5000, MAX_TICK):
            assert tick_to_sqrt_price(tick, config) == tick_to_sqrt_price(tick)

    def test_precision_too_low(self):
        with pytest.raises(DomainRangeError):
            PrecisionConfig(precision=20)

    def test_invalid_config_type(self):
        with pytest.raises(TypeError):
            tick_to_sqrt_price(0, 80)


class TestSqrtPriceToTick:
    """sqrt_price_to_tick 테스트"""

    def test_min_sqrt_price(self):
        assert sqrt_price_to_tick(MIN_SQRT_PRICE) == MIN_TICK

    def test_max_sqrt_price(self):
        assert sqrt_price_to_tick(MAX_SQRT_PRICE) == MAX_TICK

    def test_q64(self):
        assert sqrt_price_to_tick(Q64) == 0

    def test_floor_between_ticks(self):
        """두 틱 사이의 값은 아래 틱으로 내림"""
        assert sqrt_price_to_tick(tick_to_sqrt_price(1) - 1) == 0
        assert sqrt_price_to_tick(Q64 - 1) == -1
        assert sqrt_price_to_tick(tick_to_sqrt_price(-120) + 1) == -120

    def test_round_trip(self):
        """모든 유효 틱에서 sqrt_price_to_tick(tick_to_sqrt_price(t)) == t"""
        for tick in _sample_ticks(300):
            assert sqrt_price_to_tick(tick_to_sqrt_price(tick)) == tick

    def test_round_trip_near_zero(self):
        for tick in range(-200, 201):
            assert sqrt_price_to_tick(tick_to_sqrt_price(tick)) == tick

    def test_below_min(self):
        with pytest.raises(DomainRangeError):
            sqrt_price_to_tick(MIN_SQRT_PRICE - 1)

    def test_above_max(self):
        with pytest.raises(DomainRangeError):
            sqrt_price_to_tick(MAX_SQRT_PRICE + 1)

    def test_zero(self):
        with pytest.raises(DomainRangeError):
            sqrt_price_to_tick(0)


class TestEngineSqrtPriceAtTick:
    """정산 엔진 곱셈 테이블 재현 테스트"""

    def test_tick_0(self):
        assert engine_sqrt_price_at_tick(0) == Q64

    def test_known_values(self):
        assert engine_sqrt_price_at_tick(1) == 18447666387855959851
        assert engine_sqrt_price_at_tick(-1) == 18445821805675392312
        assert engine_sqrt_price_at_tick(MIN_TICK) == 4295048017
        assert engine_sqrt_price_at_tick(MAX_TICK) == MAX_SQRT_PRICE

    def test_matches_analytic_within_tolerance(self):
        """엔진 값은 해석적 내림값 이상, 차이는 최대 2"""
        for tick in _sample_ticks(300, seed=11):
            analytic = tick_to_sqrt_price(tick)
            engine = engine_sqrt_price_at_tick(tick)
            assert 0 <= engine - analytic <= 2, tick

    def test_engine_value_maps_back_to_tick(self):
        """엔진 값도 같은 틱으로 역변환"""
        for tick in _sample_ticks(100, seed=3):
            assert sqrt_price_to_tick(engine_sqrt_price_at_tick(tick)) == tick

    def test_monotonic(self):
        ticks = sorted(set(_sample_ticks(200, seed=5)))
        prices = [engine_sqrt_price_at_tick(t) for t in ticks]
        assert all(a < b for a, b in zip(prices, prices[1:]))

    def test_invalid_tick(self):
        with pytest.raises(DomainRangeError):
            engine_sqrt_price_at_tick(MAX_TICK + 1)


class TestTickSpacing:
    """틱 간격 정렬 테스트"""

    def test_is_valid_tick(self):
        assert is_valid_tick(120, 60)
        assert is_valid_tick(-120, 60)
        assert not is_valid_tick(100, 60)
        assert not is_valid_tick(MAX_TICK + 1, 1)
        assert not is_valid_tick(60, 0)

    def test_next_valid_tick_negative(self):
        """음수 틱도 −∞ 방향 내림 기준"""
        assert get_next_valid_tick(-100, 60, True) == -120
        assert get_next_valid_tick(-100, 60, False) == -60
        assert get_next_valid_tick(-120, 60, True) == -120
        assert get_next_valid_tick(-120, 60, False) == -60

    def test_next_valid_tick_positive(self):
        assert get_next_valid_tick(100, 60, True) == 60
        assert get_next_valid_tick(100, 60, False) == 120

    def test_round_exact(self):
        assert round_tick_to_spacing(120, 60) == 120

    def test_round_down(self):
        assert round_tick_to_spacing(125, 60) == 120

    def test_round_up(self):
        assert round_tick_to_spacing(155, 60) == 180

    def test_round_tie_goes_up(self):
        assert round_tick_to_spacing(90, 60) == 120
        assert round_tick_to_spacing(-90, 60) == -60

    def test_round_negative(self):
        assert round_tick_to_spacing(-125, 60) == -120
        assert round_tick_to_spacing(-155, 60) == -180

    def test_invalid_spacing(self):
        with pytest.raises(DomainRangeError):
            round_tick_to_spacing(100, 0)


class TestValidateTickRange:
    """포지션 범위 검증 테스트"""

    def test_valid(self):
        validate_tick_range(-120, 120, 60)

    def test_inverted(self):
        with pytest.raises(DomainRangeError):
            validate_tick_range(120, -120, 60)

    def test_empty(self):
        with pytest.raises(DomainRangeError):
            validate_tick_range(60, 60, 60)

    def test_misaligned(self):
        with pytest.raises(DomainRangeError):
            validate_tick_range(-100, 120, 60)

    def test_out_of_domain(self):
        with pytest.raises(DomainRangeError):
            validate_tick_range(MIN_TICK - 4, 0, 1)


class TestTickSpacingForFee:

    @pytest.mark.parametrize("fee_rate,spacing", [(100, 1), (500, 10), (3000, 60), (10000, 200)])
    def test_known_tiers(self, fee_rate, spacing):
        assert get_tick_spacing_for_fee(fee_rate) == spacing

    def test_unknown_tier(self):
        with pytest.raises(DomainRangeError, match="0.30%"):
            get_tick_spacing_for_fee(2500)
