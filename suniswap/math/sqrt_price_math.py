"""
Sqrt Price Math - sqrtPriceX64 ↔ 가격 변환

SuniSwap 의 가격은 sqrtPriceX64 (Q64.64) 형식으로 저장됩니다.
    sqrtPriceX64 = sqrt(price_raw) * 2^64
    price = (sqrtPriceX64 / 2^64)^2 * 10^(decimals_a - decimals_b)

가격(Decimal)은 입력/표시 경계에서만 사용합니다. float 는 str 을 거쳐
Decimal 로 바꾼 뒤에만 계산에 들어갑니다.

스왑 시 다음 sqrtPrice 계산 (정산 엔진과 같은 반올림):
- token A 쪽: 올림 (가격이 덜 움직이도록)
- token B 쪽: 내림
"""

from decimal import Decimal, ROUND_FLOOR
from typing import Optional, Union

from ..config import PrecisionConfig, resolve_precision
from ..constants import Q64, MIN_SQRT_PRICE, MAX_SQRT_PRICE, ENGINE_MAX_SQRT_PRICE, TICK_BASE, U8_MAX
from ..errors import DomainRangeError
from .full_math import Rounding, check_u64, check_u128, mul_div
from .tick_math import validate_sqrt_price, validate_tick, sqrt_price_to_tick

PriceLike = Union[Decimal, int, str, float]


def to_price(price: PriceLike) -> Decimal:
    """가격 입력을 양의 유한 Decimal 로 변환

    Raises:
        DomainRangeError: 숫자가 아니거나 0 이하, NaN/Infinity 인 경우
    """
    if isinstance(price, bool):
        raise DomainRangeError(f"가격은 숫자여야 합니다: {price!r}")
    if isinstance(price, float):
        price = str(price)
    try:
        value = price if isinstance(price, Decimal) else Decimal(price)
    except (ArithmeticError, TypeError, ValueError) as exc:
        raise DomainRangeError(f"가격을 해석할 수 없습니다: {price!r}") from exc

    if not value.is_finite():
        raise DomainRangeError(f"가격은 유한해야 합니다: {price!r}")
    if value <= 0:
        raise DomainRangeError("가격은 양수여야 합니다")
    return value


def validate_decimals(decimals) -> int:
    """토큰 소수점 자릿수 검증 (u8)"""
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise DomainRangeError(f"소수점 자릿수는 정수여야 합니다: {decimals!r}")
    if decimals < 0 or decimals > U8_MAX:
        raise DomainRangeError(f"소수점 자릿수가 유효 범위를 벗어났습니다: {decimals}")
    return decimals


def sqrt_price_to_price(
    sqrt_price: int,
    decimals_a: int,
    decimals_b: int,
    config: Optional[PrecisionConfig] = None,
) -> Decimal:
    """sqrtPriceX64 를 human-readable 가격으로 변환

    price = (sqrtPriceX64 / 2^64)^2 * 10^(decimals_a - decimals_b)

    Args:
        sqrt_price: sqrtPriceX64 값
        decimals_a: token A 소수점 자릿수
        decimals_b: token B 소수점 자릿수
        config: decimal 정밀도

    Returns:
        가격 (token A 1개당 token B, Decimal)
    """
    validate_sqrt_price(sqrt_price)
    validate_decimals(decimals_a)
    validate_decimals(decimals_b)
    ctx = resolve_precision(config).context()

    ratio = ctx.divide(Decimal(sqrt_price), Decimal(Q64))
    price_raw = ctx.multiply(ratio, ratio)
    return ctx.scaleb(price_raw, Decimal(decimals_a - decimals_b))


def price_to_sqrt_price(
    price: PriceLike,
    decimals_a: int,
    decimals_b: int,
    config: Optional[PrecisionConfig] = None,
) -> int:
    """Human-readable 가격을 sqrtPriceX64 로 변환 (내림)

    sqrtPriceX64 = floor(sqrt(price / 10^(decimals_a - decimals_b)) * 2^64)

    Raises:
        DomainRangeError: 가격이 양수가 아니거나 결과가 sqrtPrice 범위를 벗어난 경우
    """
    value = to_price(price)
    validate_decimals(decimals_a)
    validate_decimals(decimals_b)
    ctx = resolve_precision(config).context()

    price_raw = ctx.scaleb(value, Decimal(decimals_b - decimals_a))
    scaled = ctx.multiply(ctx.sqrt(price_raw), Decimal(Q64))
    sqrt_price = int(scaled.to_integral_value(rounding=ROUND_FLOOR, context=ctx))

    if sqrt_price < MIN_SQRT_PRICE or sqrt_price > MAX_SQRT_PRICE:
        raise DomainRangeError(f"가격이 표현 가능한 범위를 벗어났습니다: {value}")
    return sqrt_price


def tick_to_price(
    tick: int,
    decimals_a: int,
    decimals_b: int,
    config: Optional[PrecisionConfig] = None,
) -> Decimal:
    """틱을 human-readable 가격으로 변환

    price = 1.0001^tick * 10^(decimals_a - decimals_b)

    Example:
        >>> tick_to_price(0, 9, 6)
        Decimal('1E+3')
    """
    validate_tick(tick)
    validate_decimals(decimals_a)
    validate_decimals(decimals_b)
    ctx = resolve_precision(config).context()

    price_raw = ctx.power(TICK_BASE, Decimal(tick))
    return ctx.scaleb(price_raw, Decimal(decimals_a - decimals_b))


def price_to_tick(
    price: PriceLike,
    decimals_a: int,
    decimals_b: int,
    config: Optional[PrecisionConfig] = None,
) -> int:
    """Human-readable 가격을 틱으로 변환 (−∞ 방향 내림)

    price → sqrtPriceX64 (내림) → 틱 (내림)
    """
    config = resolve_precision(config)
    return sqrt_price_to_tick(price_to_sqrt_price(price, decimals_a, decimals_b, config), config)


def invert_price(price: PriceLike, config: Optional[PrecisionConfig] = None) -> Decimal:
    """1 / price (토큰 순서가 뒤집혔을 때의 가격)"""
    value = to_price(price)
    ctx = resolve_precision(config).context()
    return ctx.divide(Decimal(1), value)


def get_next_sqrt_price_from_amount_a_rounding_up(
    sqrt_price: int,
    liquidity: int,
    amount: int,
    add: bool,
) -> int:
    """token A 변화에 따른 다음 sqrtPriceX64 (올림)

    add=True (A 를 팔 때, 가격 하락):  L * P / (L + amount * P)
    add=False (A 를 살 때, 가격 상승): L * P / (L - amount * P)
    L 은 Q64 로 올린 값 (liquidity << 64)
    """
    if amount == 0:
        return sqrt_price

    numerator = liquidity << 64
    product = amount * sqrt_price

    if add:
        denominator = numerator + product
    else:
        if product >= numerator:
            raise DomainRangeError(
                f"유동성이 부족합니다: amount={amount}, liquidity={liquidity}"
            )
        denominator = numerator - product

    return mul_div(numerator, sqrt_price, denominator, Rounding.UP)


def get_next_sqrt_price_from_amount_b_rounding_down(
    sqrt_price: int,
    liquidity: int,
    amount: int,
    add: bool,
) -> int:
    """token B 변화에 따른 다음 sqrtPriceX64 (내림)

    add=True (B 를 팔 때, 가격 상승):  P + amount * 2^64 / L
    add=False (B 를 살 때, 가격 하락): P - amount * 2^64 / L
    """
    if amount == 0:
        return sqrt_price

    quotient = mul_div(amount, Q64, liquidity, Rounding.DOWN)

    if add:
        return sqrt_price + quotient

    if quotient > sqrt_price:
        raise DomainRangeError(f"sqrtPrice 가 최솟값 아래로 내려갑니다: {sqrt_price} - {quotient}")
    return sqrt_price - quotient


def _check_swap_inputs(sqrt_price: int, liquidity: int, amount: int) -> None:
    validate_sqrt_price(sqrt_price)
    check_u128(liquidity, "liquidity")
    check_u64(amount, "amount")
    if liquidity == 0:
        raise DomainRangeError("유동성이 0 인 구간에서는 가격을 계산할 수 없습니다")


def _check_result(next_sqrt_price: int) -> int:
    if next_sqrt_price < MIN_SQRT_PRICE or next_sqrt_price > MAX_SQRT_PRICE:
        raise DomainRangeError(f"다음 sqrtPriceX64 가 유효 범위를 벗어났습니다: {next_sqrt_price}")
    return next_sqrt_price


def get_next_sqrt_price_from_input(
    sqrt_price: int,
    liquidity: int,
    amount_in: int,
    a_to_b: bool,
) -> int:
    """입력 수량으로 스왑했을 때의 다음 sqrtPriceX64

    Args:
        sqrt_price: 현재 sqrtPriceX64
        liquidity: 현재 활성 유동성
        amount_in: 입력 토큰 수량 (u64)
        a_to_b: True 면 A 를 팔고 B 를 받음 (가격 하락)

    Returns:
        다음 sqrtPriceX64
    """
    _check_swap_inputs(sqrt_price, liquidity, amount_in)
    if a_to_b:
        result = get_next_sqrt_price_from_amount_a_rounding_up(sqrt_price, liquidity, amount_in, True)
    else:
        result = get_next_sqrt_price_from_amount_b_rounding_down(sqrt_price, liquidity, amount_in, True)
    return _check_result(result)


def get_next_sqrt_price_from_output(
    sqrt_price: int,
    liquidity: int,
    amount_out: int,
    a_to_b: bool,
) -> int:
    """출력 수량을 받기 위해 필요한 다음 sqrtPriceX64"""
    _check_swap_inputs(sqrt_price, liquidity, amount_out)
    if a_to_b:
        result = get_next_sqrt_price_from_amount_b_rounding_down(sqrt_price, liquidity, amount_out, False)
    else:
        result = get_next_sqrt_price_from_amount_a_rounding_up(sqrt_price, liquidity, amount_out, False)
    return _check_result(result)


def get_sqrt_price_limit(
    sqrt_price: int,
    a_to_b: bool,
    sqrt_price_limit: Optional[int] = None,
) -> int:
    """스왑 명령에 넣을 sqrtPrice 한도

    한도를 주지 않으면 엔진 기본값 (a_to_b: MIN_SQRT_PRICE + 1,
    반대 방향: ENGINE_MAX_SQRT_PRICE - 1) 을 사용합니다.
    엔진이 거부할 한도는 미리 DomainRangeError 로 알려줍니다.

    Raises:
        DomainRangeError: 한도가 현재 가격의 반대쪽이거나 엔진 범위 밖인 경우
    """
    validate_sqrt_price(sqrt_price)
    if sqrt_price_limit is None:
        return MIN_SQRT_PRICE + 1 if a_to_b else ENGINE_MAX_SQRT_PRICE - 1

    validate_sqrt_price(sqrt_price_limit)
    if a_to_b:
        if sqrt_price_limit >= sqrt_price:
            raise DomainRangeError(
                f"a_to_b 스왑의 한도는 현재 sqrtPrice 보다 작아야 합니다: {sqrt_price_limit} >= {sqrt_price}"
            )
    else:
        if sqrt_price_limit <= sqrt_price:
            raise DomainRangeError(
                f"b_to_a 스왑의 한도는 현재 sqrtPrice 보다 커야 합니다: {sqrt_price_limit} <= {sqrt_price}"
            )
        if sqrt_price_limit > ENGINE_MAX_SQRT_PRICE:
            raise DomainRangeError(f"엔진이 받는 상한을 넘었습니다: {sqrt_price_limit} > {ENGINE_MAX_SQRT_PRICE}")
    return sqrt_price_limit
