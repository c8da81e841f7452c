"""
토큰 수량 표시/입력 변환과 슬리피지, 가격 영향 계산.

amount (최소 단위 정수) ↔ 문자열, 스왑 전 견적 보조 함수.
"""

from decimal import Decimal, InvalidOperation, ROUND_FLOOR
from typing import Optional

from ..config import PrecisionConfig, resolve_precision
from ..constants import BPS_DENOMINATOR, DEFAULT_SLIPPAGE_BPS
from ..errors import DomainRangeError
from .full_math import Rounding, check_u64, mul_div, require_rounding, to_u64
from .sqrt_price_math import PriceLike, to_price, validate_decimals


def format_token_amount(amount: int, decimals: int, config: Optional[PrecisionConfig] = None) -> str:
    """최소 단위 수량을 소수점 표기 문자열로 (자릿수 고정)

    Example:
        >>> format_token_amount(1500000, 6)
        '1.500000'
    """
    check_u64(amount, "amount")
    validate_decimals(decimals)
    ctx = resolve_precision(config).context()
    value = ctx.scaleb(Decimal(amount), Decimal(-decimals))
    return f"{value:.{decimals}f}"


def parse_token_amount(text: str, decimals: int, config: Optional[PrecisionConfig] = None) -> int:
    """소수점 표기 문자열을 최소 단위 수량으로 (내림)

    Raises:
        DomainRangeError: 숫자가 아니거나 음수인 경우
        OverflowError: 결과가 u64 를 넘는 경우
    """
    validate_decimals(decimals)
    ctx = resolve_precision(config).context()
    try:
        value = ctx.create_decimal(text)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise DomainRangeError(f"수량을 해석할 수 없습니다: {text!r}") from exc
    if not value.is_finite() or value < 0:
        raise DomainRangeError(f"수량은 0 이상의 유한한 값이어야 합니다: {text!r}")

    scaled = ctx.scaleb(value, Decimal(decimals))
    return to_u64(int(scaled.to_integral_value(rounding=ROUND_FLOOR, context=ctx)), "amount")


def calculate_price_impact(
    amount_in: int,
    amount_out: int,
    decimals_in: int,
    decimals_out: int,
    spot_price: PriceLike,
    config: Optional[PrecisionConfig] = None,
) -> Decimal:
    """스왑의 가격 영향 (0 = 영향 없음, 0.01 = 1%)

    실행 가격 = (amount_out / 10^decimals_out) / (amount_in / 10^decimals_in)
    영향 = |spot - 실행 가격| / spot
    """
    check_u64(amount_in, "amount_in")
    check_u64(amount_out, "amount_out")
    validate_decimals(decimals_in)
    validate_decimals(decimals_out)
    spot = to_price(spot_price)
    if amount_in == 0:
        raise DomainRangeError("입력 수량이 0 이면 가격 영향을 계산할 수 없습니다")

    ctx = resolve_precision(config).context()
    input_value = ctx.scaleb(Decimal(amount_in), Decimal(-decimals_in))
    output_value = ctx.scaleb(Decimal(amount_out), Decimal(-decimals_out))
    execution_price = ctx.divide(output_value, input_value)
    return ctx.abs(ctx.divide(ctx.subtract(spot, execution_price), spot))


def apply_slippage(
    amount: int,
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    rounding: Optional[Rounding] = None,
) -> int:
    """슬리피지 허용 범위를 적용한 수량 한도

    Rounding.UP: 최대 지불 한도  amount * (1 + bps/10000), 올림
    Rounding.DOWN: 최소 수령 한도 amount * (1 - bps/10000), 내림
    slippage_bps 기본값은 DEFAULT_SLIPPAGE_BPS (0.5%).

    Raises:
        DomainRangeError: slippage_bps 가 [0, 10000] 밖인 경우
        OverflowError: 최대 지불 한도가 u64 를 넘는 경우
    """
    rounding = require_rounding(rounding)
    check_u64(amount, "amount")
    if isinstance(slippage_bps, bool) or not isinstance(slippage_bps, int):
        raise DomainRangeError(f"slippage_bps 는 정수여야 합니다: {slippage_bps!r}")
    if slippage_bps < 0 or slippage_bps > BPS_DENOMINATOR:
        raise DomainRangeError(f"slippage_bps 가 유효 범위를 벗어났습니다: {slippage_bps}")

    if rounding is Rounding.UP:
        return to_u64(mul_div(amount, BPS_DENOMINATOR + slippage_bps, BPS_DENOMINATOR, Rounding.UP),
                      "max_amount_in")
    return mul_div(amount, BPS_DENOMINATOR - slippage_bps, BPS_DENOMINATOR, Rounding.DOWN)
