"""
Tick Math - Tick ↔ sqrtPrice 변환

SuniSwap 의 틱 수학 함수들. 가격의 표준 표현은 Q64.64 sqrtPrice 입니다.

핵심 공식:
    price = 1.0001^tick
    sqrtPriceX64 = floor(sqrt(1.0001^tick) * 2^64)
    tick = floor(log₁.₀₀₀₁(price))

tick → sqrtPrice 변환은 내림(floor) 방향으로 손실이 있습니다.
sqrt_price_to_tick 은 그 내림값을 기준으로 "sqrtPrice 가 입력 이하인 가장 큰 틱"을
돌려주므로 왕복 변환(tick → sqrtPrice → tick)은 항상 원래 틱이 됩니다.

정산 엔진은 같은 값을 비트별 곱셈 테이블(Q128.128)로 계산합니다.
engine_sqrt_price_at_tick 이 그 계산을 그대로 재현하며, 해석적 값과의
차이는 테스트에서 비교합니다 (엔진 쪽이 올림이라 보통 1 이상 큼).
"""

from decimal import Decimal, ROUND_FLOOR
from typing import Optional

from ..config import PrecisionConfig, resolve_precision
from ..constants import (
    Q64,
    MIN_TICK,
    MAX_TICK,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    TICK_BASE,
    FEE_TIERS,
    TICK_SPACINGS,
    MAX_TICK_SPACING,
    U128_MAX,
)
from ..errors import DomainRangeError


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_tick(tick) -> int:
    """틱이 [MIN_TICK, MAX_TICK] 범위의 정수인지 검증

    Raises:
        DomainRangeError: 정수가 아니거나 범위를 벗어난 경우
    """
    if not _is_int(tick):
        raise DomainRangeError(f"틱은 정수여야 합니다: {tick!r}")
    if tick < MIN_TICK or tick > MAX_TICK:
        raise DomainRangeError(f"틱이 유효 범위를 벗어났습니다: {tick} (범위: {MIN_TICK} ~ {MAX_TICK})")
    return tick


def validate_sqrt_price(sqrt_price) -> int:
    """sqrtPriceX64 가 [MIN_SQRT_PRICE, MAX_SQRT_PRICE] 범위인지 검증"""
    if not _is_int(sqrt_price):
        raise DomainRangeError(f"sqrtPriceX64 는 정수여야 합니다: {sqrt_price!r}")
    if sqrt_price < MIN_SQRT_PRICE or sqrt_price > MAX_SQRT_PRICE:
        raise DomainRangeError(
            f"sqrtPriceX64 가 유효 범위를 벗어났습니다: {sqrt_price} "
            f"(범위: {MIN_SQRT_PRICE} ~ {MAX_SQRT_PRICE})"
        )
    return sqrt_price


def validate_tick_spacing(tick_spacing) -> int:
    """틱 간격이 [1, MAX_TICK_SPACING] 범위의 정수인지 검증"""
    if not _is_int(tick_spacing):
        raise DomainRangeError(f"틱 간격은 정수여야 합니다: {tick_spacing!r}")
    if tick_spacing < 1 or tick_spacing > MAX_TICK_SPACING:
        raise DomainRangeError(f"틱 간격이 유효 범위를 벗어났습니다: {tick_spacing} (범위: 1 ~ {MAX_TICK_SPACING})")
    return tick_spacing


def _floor(value: Decimal, ctx) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR, context=ctx))


def tick_to_sqrt_price(tick: int, config: Optional[PrecisionConfig] = None) -> int:
    """틱에서 sqrtPriceX64 계산

    sqrtPriceX64 = floor(sqrt(1.0001^tick) * 2^64), 임의 정밀도 decimal 연산.
    결과는 내림이므로 실제 값보다 최대 1 작을 수 있습니다 (보정하지 않음).

    Args:
        tick: 틱 인덱스 (MIN_TICK ~ MAX_TICK)
        config: decimal 정밀도 (기본값 DEFAULT_PRECISION)

    Returns:
        sqrtPriceX64 (Q64.64 형식)

    Raises:
        DomainRangeError: 틱이 유효 범위를 벗어난 경우
    """
    validate_tick(tick)
    ctx = resolve_precision(config).context()

    price = ctx.power(TICK_BASE, Decimal(tick))
    sqrt_price = ctx.multiply(ctx.sqrt(price), Decimal(Q64))
    return _floor(sqrt_price, ctx)


def sqrt_price_to_tick(sqrt_price: int, config: Optional[PrecisionConfig] = None) -> int:
    """sqrtPriceX64 에서 틱 계산

    tick_to_sqrt_price(tick) <= sqrt_price 를 만족하는 가장 큰 틱 (−∞ 방향 내림).
    로그로 추정한 뒤 tick_to_sqrt_price 와 직접 비교해 보정합니다.

    Args:
        sqrt_price: sqrtPriceX64 (Q64.64 형식)
        config: decimal 정밀도

    Returns:
        틱 인덱스

    Raises:
        DomainRangeError: sqrtPriceX64 가 [MIN_SQRT_PRICE, MAX_SQRT_PRICE] 를 벗어난 경우
    """
    validate_sqrt_price(sqrt_price)
    config = resolve_precision(config)
    ctx = config.context()

    # tick = 2 * ln(sqrtPrice / 2^64) / ln(1.0001)
    ratio = ctx.divide(Decimal(sqrt_price), Decimal(Q64))
    estimate = ctx.divide(ctx.multiply(Decimal(2), ctx.ln(ratio)), ctx.ln(TICK_BASE))
    tick = _floor(estimate, ctx)
    tick = max(MIN_TICK, min(MAX_TICK, tick))  # 탐색 시작점만 도메인 안으로

    while tick_to_sqrt_price(tick, config) > sqrt_price:
        if tick == MIN_TICK:
            raise DomainRangeError(f"sqrtPriceX64 에 해당하는 틱이 없습니다: {sqrt_price}")
        tick -= 1
    while tick < MAX_TICK and tick_to_sqrt_price(tick + 1, config) <= sqrt_price:
        tick += 1

    return tick


def engine_sqrt_price_at_tick(tick: int) -> int:
    """정산 엔진과 동일한 방식으로 틱에서 sqrtPriceX64 계산

    엔진의 get_sqrt_price_at_tick 재현:
    1.0001^(-2^i / 2) 를 Q128.128 로 미리 계산한 곱셈 상수를 비트마다 곱하고
    (매번 내림), 양수 틱은 floor(2^192 / ratio) + 1, 음수 틱은 Q64.64 로
    내리면서 올림합니다. 해석적 tick_to_sqrt_price 와 값이 다를 수 있습니다.

    Args:
        tick: 틱 인덱스 (MIN_TICK ~ MAX_TICK)

    Returns:
        엔진이 계산하는 sqrtPriceX64

    Raises:
        DomainRangeError: 틱이 유효 범위를 벗어난 경우
    """
    validate_tick(tick)

    abs_tick = abs(tick)

    # 1.0 은 Q128.128 에서 2^128 이지만 엔진은 u128::MAX 로 근사
    ratio = 0xfffcb933bd6fad37aa2d162d1a594001 if abs_tick & 0x1 else U128_MAX

    if abs_tick & 0x2:
        ratio = (ratio * 0xfff97272373d413259a46990580e213a) >> 128
    if abs_tick & 0x4:
        ratio = (ratio * 0xfff2e50f5f656932ef12357cf3c7fdcc) >> 128
    if abs_tick & 0x8:
        ratio = (ratio * 0xffe5caca7e10e4e61c3624eaa0941cd0) >> 128
    if abs_tick & 0x10:
        ratio = (ratio * 0xffcb9843d60f6159c9db58835c926644) >> 128
    if abs_tick & 0x20:
        ratio = (ratio * 0xff973b41fa98c081472e6896dfb254c0) >> 128
    if abs_tick & 0x40:
        ratio = (ratio * 0xff2ea16466c96a3843ec78b326b52861) >> 128
    if abs_tick & 0x80:
        ratio = (ratio * 0xfe5dee046a99a2a811c461f1969c3053) >> 128
    if abs_tick & 0x100:
        ratio = (ratio * 0xfcbe86c7900a88aedcffc83b479aa3a4) >> 128
    if abs_tick & 0x200:
        ratio = (ratio * 0xf987a7253ac413176f2b074cf7815e54) >> 128
    if abs_tick & 0x400:
        ratio = (ratio * 0xf3392b0822b70005940c7a398e4b70f3) >> 128
    if abs_tick & 0x800:
        ratio = (ratio * 0xe7159475a2c29b7443b29c7fa6e889d9) >> 128
    if abs_tick & 0x1000:
        ratio = (ratio * 0xd097f3bdfd2022b8845ad8f792aa5825) >> 128
    if abs_tick & 0x2000:
        ratio = (ratio * 0xa9f746462d870fdf8a65dc1f90e061e5) >> 128
    if abs_tick & 0x4000:
        ratio = (ratio * 0x70d869a156d2a1b890bb3df62baf32f7) >> 128
    if abs_tick & 0x8000:
        ratio = (ratio * 0x31be135f97d08fd981231505542fcfa6) >> 128
    if abs_tick & 0x10000:
        ratio = (ratio * 0x9aa508b5b7a84e1c677de54f3e99bc9) >> 128
    if abs_tick & 0x20000:
        ratio = (ratio * 0x5d6af8dedb81196699c329225ee604) >> 128
    if abs_tick & 0x40000:
        ratio = (ratio * 0x2216e584f5fa1ea926041bedfe98) >> 128

    if tick > 0:
        # Q128.128 역수를 Q64.64 로: 2^192 / ratio, 엔진은 u128 에서 포화 덧셈
        return min(((1 << 192) // ratio) + 1, U128_MAX)

    # Q128.128 -> Q64.64
    return (ratio >> 64) + (1 if ratio % (1 << 64) != 0 else 0)


def is_valid_tick(tick: int, tick_spacing: int) -> bool:
    """틱이 도메인 안에 있고 틱 간격에 정렬되어 있는지"""
    if not _is_int(tick) or not _is_int(tick_spacing) or tick_spacing < 1:
        return False
    return MIN_TICK <= tick <= MAX_TICK and tick % tick_spacing == 0


def get_next_valid_tick(tick: int, tick_spacing: int, less_than_or_equal: bool) -> int:
    """틱 간격에 정렬된 다음 유효 틱

    less_than_or_equal=True 면 tick 이하의 가장 큰 정렬 틱,
    False 면 tick 보다 큰 가장 작은 정렬 틱 (음수 틱도 floor 기준).
    """
    validate_tick_spacing(tick_spacing)
    if not _is_int(tick):
        raise DomainRangeError(f"틱은 정수여야 합니다: {tick!r}")

    compressed = tick // tick_spacing
    if not less_than_or_equal:
        compressed += 1
    return compressed * tick_spacing


def round_tick_to_spacing(tick: int, tick_spacing: int) -> int:
    """틱을 유효한 틱 간격으로 반올림

    가장 가까운 유효 틱으로 반올림합니다. 정확히 중간이면 위쪽(+∞ 방향).

    Args:
        tick: 반올림할 틱
        tick_spacing: 틱 간격 (예: 60 for 0.3% fee)

    Returns:
        반올림된 틱 (가장 가까운 유효 틱)
    """
    validate_tick_spacing(tick_spacing)

    # Python의 floor division을 사용하여 lower bound 계산
    lower = (tick // tick_spacing) * tick_spacing
    upper = lower + tick_spacing

    dist_lower = tick - lower
    dist_upper = upper - tick

    if dist_lower < dist_upper:
        return lower
    return upper


def validate_tick_range(tick_lower: int, tick_upper: int, tick_spacing: int) -> None:
    """포지션 범위 검증

    Raises:
        DomainRangeError: 도메인 밖, 틱 간격 미정렬, tick_lower >= tick_upper
    """
    validate_tick_spacing(tick_spacing)
    validate_tick(tick_lower)
    validate_tick(tick_upper)

    if tick_lower % tick_spacing != 0:
        raise DomainRangeError(f"하한 틱이 틱 간격 {tick_spacing} 에 정렬되지 않았습니다: {tick_lower}")
    if tick_upper % tick_spacing != 0:
        raise DomainRangeError(f"상한 틱이 틱 간격 {tick_spacing} 에 정렬되지 않았습니다: {tick_upper}")
    if tick_lower >= tick_upper:
        raise DomainRangeError(f"하한 틱은 상한 틱보다 작아야 합니다: {tick_lower} >= {tick_upper}")


def get_tick_spacing_for_fee(fee_rate: int) -> int:
    """수수료 티어에 해당하는 틱 간격 반환

    Args:
        fee_rate: 수수료 티어 (100, 500, 3000, 10000)

    Returns:
        틱 간격
    """
    if fee_rate not in TICK_SPACINGS:
        supported = ", ".join(f"{fee} ({label})" for fee, label in FEE_TIERS.items())
        raise DomainRangeError(f"지원하지 않는 수수료 티어: {fee_rate} (지원: {supported})")
    return TICK_SPACINGS[fee_rate]
