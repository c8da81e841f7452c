"""
Liquidity Math - 유동성 ↔ 토큰 수량 계산

집중화된 유동성(Concentrated Liquidity)에서 가격 범위와 현재 가격이 주어졌을 때
유동성과 토큰 수량 간의 변환. 현재 가격의 위치에 따라 세 구간으로 나뉩니다.

    P <= P_lower:           token A 만  amountA = L * (P_upper - P_lower) / (P_lower * P_upper)
    P >= P_upper:           token B 만  amountB = L * (P_upper - P_lower) / 2^64
    P_lower < P < P_upper:  amountA = L * (P_upper - P) / (P * P_upper)
                            amountB = L * (P - P_lower) / 2^64

(P 는 모두 sqrtPriceX64, amountA 식에는 2^64 스케일이 곱해짐)

반올림 규칙은 계약의 일부입니다:
- 호출자가 지불하는 수량: Rounding.UP (올림)
- 호출자가 받는 수량, 수량에서 도출한 유동성: Rounding.DOWN (내림)
반올림 방향을 생략하면 RoundingModeError.

중간값은 Python int (임의 정밀도), 최종 결과만 amount → u64, liquidity → u128 로
좁히고 넘치면 OverflowError.
"""

from typing import Optional, Tuple

from ..constants import Q64
from .full_math import (
    Rounding,
    check_u64,
    check_u128,
    mul_div,
    require_rounding,
    to_u64,
    to_u128,
)
from .tick_math import engine_sqrt_price_at_tick, validate_sqrt_price, validate_tick_range
from ..errors import DomainRangeError


def _sorted_bounds(sqrt_price_a: int, sqrt_price_b: int) -> Tuple[int, int]:
    validate_sqrt_price(sqrt_price_a)
    validate_sqrt_price(sqrt_price_b)
    if sqrt_price_a > sqrt_price_b:
        sqrt_price_a, sqrt_price_b = sqrt_price_b, sqrt_price_a
    return sqrt_price_a, sqrt_price_b


def _check_range(sqrt_price_lower: int, sqrt_price_upper: int) -> None:
    validate_sqrt_price(sqrt_price_lower)
    validate_sqrt_price(sqrt_price_upper)
    if sqrt_price_lower >= sqrt_price_upper:
        raise DomainRangeError(
            f"하한 sqrtPrice 는 상한보다 작아야 합니다: {sqrt_price_lower} >= {sqrt_price_upper}"
        )


def get_amount_a_delta(
    sqrt_price_a: int,
    sqrt_price_b: int,
    liquidity: int,
    rounding: Optional[Rounding] = None,
) -> int:
    """두 가격 사이에서 유동성에 해당하는 token A 수량

    공식: ΔA = L * (√P_b - √P_a) * 2^64 / (√P_a * √P_b)

    정산 엔진과 같이 두 단계로 나눠 계산합니다:
        step1 = L * (√P_b - √P_a) / √P_b
        step2 = step1 * 2^64 / √P_a
    각 단계는 요청한 방향으로 반올림.

    Args:
        sqrt_price_a: sqrtPriceX64 (순서 무관)
        sqrt_price_b: sqrtPriceX64 (순서 무관)
        liquidity: 유동성 (u128)
        rounding: Rounding.UP (지불) / Rounding.DOWN (수령)

    Returns:
        token A 수량 (u64, 최소 단위)

    Raises:
        RoundingModeError: rounding 이 없는 경우
        OverflowError: 결과가 u64 를 넘는 경우
    """
    rounding = require_rounding(rounding)
    check_u128(liquidity, "liquidity")
    lower, upper = _sorted_bounds(sqrt_price_a, sqrt_price_b)

    diff = upper - lower
    intermediate = mul_div(liquidity, diff, upper, rounding)
    return to_u64(mul_div(intermediate, Q64, lower, rounding), "amount_a")


def get_amount_b_delta(
    sqrt_price_a: int,
    sqrt_price_b: int,
    liquidity: int,
    rounding: Optional[Rounding] = None,
) -> int:
    """두 가격 사이에서 유동성에 해당하는 token B 수량

    공식: ΔB = L * (√P_b - √P_a) / 2^64

    Returns:
        token B 수량 (u64, 최소 단위)
    """
    rounding = require_rounding(rounding)
    check_u128(liquidity, "liquidity")
    lower, upper = _sorted_bounds(sqrt_price_a, sqrt_price_b)

    return to_u64(mul_div(liquidity, upper - lower, Q64, rounding), "amount_b")


def get_liquidity_for_amount_a(
    sqrt_price_a: int,
    sqrt_price_b: int,
    amount_a: int,
) -> int:
    """token A 수량으로 얻을 수 있는 최대 유동성 (내림)

    공식: L = ΔA * √P_a * √P_b / (2^64 * (√P_b - √P_a))

    Raises:
        DomainRangeError: 두 가격이 같은 경우
    """
    check_u64(amount_a, "amount_a")
    lower, upper = _sorted_bounds(sqrt_price_a, sqrt_price_b)
    if lower == upper:
        raise DomainRangeError(f"가격 범위의 폭이 0 입니다: {lower}")

    intermediate = mul_div(amount_a, upper, upper - lower, Rounding.DOWN)
    return to_u128(mul_div(intermediate, lower, Q64, Rounding.DOWN), "liquidity")


def get_liquidity_for_amount_b(
    sqrt_price_a: int,
    sqrt_price_b: int,
    amount_b: int,
) -> int:
    """token B 수량으로 얻을 수 있는 최대 유동성 (내림)

    공식: L = ΔB * 2^64 / (√P_b - √P_a)
    """
    check_u64(amount_b, "amount_b")
    lower, upper = _sorted_bounds(sqrt_price_a, sqrt_price_b)
    if lower == upper:
        raise DomainRangeError(f"가격 범위의 폭이 0 입니다: {lower}")

    return to_u128(mul_div(amount_b, Q64, upper - lower, Rounding.DOWN), "liquidity")


def get_liquidity_for_amounts(
    sqrt_price: int,
    sqrt_price_lower: int,
    sqrt_price_upper: int,
    amount_a: int,
    amount_b: int,
) -> int:
    """토큰 수량에서 유동성 계산

    현재 가격과 범위, 두 토큰 수량이 주어졌을 때 민트 가능한 최대 유동성.
    범위 안이면 각 토큰이 허용하는 유동성 중 작은 값 (구속 조건)을 반환하므로
    어느 한쪽 수량도 넘어서는 유동성을 요청할 수 없습니다. 항상 내림.
    결과를 Rounding.DOWN 으로 되돌린 수량은 입력을 넘지 않습니다. 예치할 때
    (올림 청구) 는 get_deposit_liquidity_for_amounts 를 사용합니다.

    Args:
        sqrt_price: 현재 sqrtPriceX64
        sqrt_price_lower: 하한 sqrtPriceX64
        sqrt_price_upper: 상한 sqrtPriceX64
        amount_a: token A 수량 (u64)
        amount_b: token B 수량 (u64)

    Returns:
        유동성 (u128)
    """
    validate_sqrt_price(sqrt_price)
    _check_range(sqrt_price_lower, sqrt_price_upper)
    check_u64(amount_a, "amount_a")
    check_u64(amount_b, "amount_b")

    if sqrt_price <= sqrt_price_lower:
        # 가격이 범위 아래: token A 만 사용
        return get_liquidity_for_amount_a(sqrt_price_lower, sqrt_price_upper, amount_a)

    elif sqrt_price < sqrt_price_upper:
        # 가격이 범위 내: 양쪽 토큰 사용, 작은 값 반환
        liquidity_a = get_liquidity_for_amount_a(sqrt_price, sqrt_price_upper, amount_a)
        liquidity_b = get_liquidity_for_amount_b(sqrt_price_lower, sqrt_price, amount_b)
        return min(liquidity_a, liquidity_b)

    else:
        # 가격이 범위 위: token B 만 사용
        return get_liquidity_for_amount_b(sqrt_price_lower, sqrt_price_upper, amount_b)


def _max_liquidity_paid_in_a(sqrt_price_a: int, sqrt_price_b: int, amount_a: int) -> int:
    # get_amount_a_delta(UP) <= amount_a 를 만족하는 가장 큰 L
    #   ceil(step1 * 2^64 / P_a) <= amount  <=>  step1 <= floor(amount * P_a / 2^64)
    #   ceil(L * diff / P_b) <= step1       <=>  L <= floor(step1 * P_b / diff)
    lower, upper = _sorted_bounds(sqrt_price_a, sqrt_price_b)
    step1 = mul_div(amount_a, lower, Q64, Rounding.DOWN)
    return to_u128(mul_div(step1, upper, upper - lower, Rounding.DOWN), "liquidity")


def get_deposit_liquidity_for_amounts(
    sqrt_price: int,
    sqrt_price_lower: int,
    sqrt_price_upper: int,
    amount_a: int,
    amount_b: int,
) -> int:
    """예치 시 요청할 유동성

    get_liquidity_for_amounts 는 엔진과 같은 값을 내지만, 엔진은 그 유동성에 대한
    지불 수량을 올림으로 청구하므로 준비한 수량보다 1 많게 청구될 수 있습니다.
    이 함수는 get_amounts_for_liquidity(..., Rounding.UP) 가 (amount_a, amount_b)
    를 넘지 않는 가장 큰 유동성을 돌려줍니다. 예치 명령에는 이 값을 사용합니다.

    Returns:
        유동성 (u128)
    """
    validate_sqrt_price(sqrt_price)
    _check_range(sqrt_price_lower, sqrt_price_upper)
    check_u64(amount_a, "amount_a")
    check_u64(amount_b, "amount_b")

    # token B 쪽은 내림으로 구한 L 이 그대로 올림 청구 한도 안에 들어감
    if sqrt_price <= sqrt_price_lower:
        return _max_liquidity_paid_in_a(sqrt_price_lower, sqrt_price_upper, amount_a)

    elif sqrt_price < sqrt_price_upper:
        liquidity_a = _max_liquidity_paid_in_a(sqrt_price, sqrt_price_upper, amount_a)
        liquidity_b = get_liquidity_for_amount_b(sqrt_price_lower, sqrt_price, amount_b)
        return min(liquidity_a, liquidity_b)

    else:
        return get_liquidity_for_amount_b(sqrt_price_lower, sqrt_price_upper, amount_b)


def get_amounts_for_liquidity(
    sqrt_price: int,
    sqrt_price_lower: int,
    sqrt_price_upper: int,
    liquidity: int,
    rounding: Optional[Rounding] = None,
) -> Tuple[int, int]:
    """유동성에서 토큰 수량 계산

    Args:
        sqrt_price: 현재 sqrtPriceX64
        sqrt_price_lower: 하한 sqrtPriceX64
        sqrt_price_upper: 상한 sqrtPriceX64
        liquidity: 유동성 (u128)
        rounding: Rounding.UP (예치 시 지불) / Rounding.DOWN (인출 시 수령)

    Returns:
        (amount_a, amount_b) 튜플. 범위 밖 쪽 토큰은 정확히 0.
    """
    rounding = require_rounding(rounding)
    validate_sqrt_price(sqrt_price)
    _check_range(sqrt_price_lower, sqrt_price_upper)
    check_u128(liquidity, "liquidity")

    if sqrt_price <= sqrt_price_lower:
        # 가격이 범위 아래: token A 만 보유
        amount_a = get_amount_a_delta(sqrt_price_lower, sqrt_price_upper, liquidity, rounding)
        amount_b = 0

    elif sqrt_price < sqrt_price_upper:
        # 가격이 범위 내: 양쪽 토큰 보유
        amount_a = get_amount_a_delta(sqrt_price, sqrt_price_upper, liquidity, rounding)
        amount_b = get_amount_b_delta(sqrt_price_lower, sqrt_price, liquidity, rounding)

    else:
        # 가격이 범위 위: token B 만 보유
        amount_a = 0
        amount_b = get_amount_b_delta(sqrt_price_lower, sqrt_price_upper, liquidity, rounding)

    return amount_a, amount_b


def get_amounts_for_position(
    sqrt_price: int,
    tick_lower: int,
    tick_upper: int,
    liquidity: int,
    tick_spacing: int,
    rounding: Optional[Rounding] = None,
) -> Tuple[int, int]:
    """틱 범위로 지정한 포지션의 토큰 수량

    범위 경계는 정산 엔진의 곱셈 테이블(engine_sqrt_price_at_tick)로 구하므로
    엔진이 실제로 청구/지급하는 수량과 일치합니다.
    """
    validate_tick_range(tick_lower, tick_upper, tick_spacing)
    return get_amounts_for_liquidity(
        sqrt_price,
        engine_sqrt_price_at_tick(tick_lower),
        engine_sqrt_price_at_tick(tick_upper),
        liquidity,
        rounding,
    )


def get_liquidity_for_position(
    sqrt_price: int,
    tick_lower: int,
    tick_upper: int,
    tick_spacing: int,
    amount_a: int,
    amount_b: int,
    deposit: bool = False,
) -> int:
    """틱 범위로 지정한 포지션에 두 수량으로 넣을 수 있는 최대 유동성

    deposit=True 면 엔진이 올림으로 청구해도 두 수량을 넘지 않는 값
    (get_deposit_liquidity_for_amounts).
    """
    validate_tick_range(tick_lower, tick_upper, tick_spacing)
    compute = get_deposit_liquidity_for_amounts if deposit else get_liquidity_for_amounts
    return compute(
        sqrt_price,
        engine_sqrt_price_at_tick(tick_lower),
        engine_sqrt_price_at_tick(tick_upper),
        amount_a,
        amount_b,
    )
