"""
Math layer for SuniSwap client

정산 엔진과 같은 정수 정밀도의 수학 함수들:
- tick_math: Tick ↔ sqrtPriceX64 변환, 틱 간격 정렬
- sqrt_price_math: sqrtPriceX64 ↔ 가격, 스왑 후 다음 sqrtPrice
- liquidity_math: 유동성 ↔ 토큰 수량 (명시적 반올림)
- full_math: mul_div, 반올림 방향, u64/u128 폭 검사
- convert: 토큰 수량 표시, 슬리피지, 가격 영향
"""

from .full_math import (
    Rounding,
    mul_div,
    to_u64,
    to_u128,
)
from .tick_math import (
    tick_to_sqrt_price,
    sqrt_price_to_tick,
    engine_sqrt_price_at_tick,
    is_valid_tick,
    get_next_valid_tick,
    round_tick_to_spacing,
    validate_tick_range,
    validate_tick_spacing,
    get_tick_spacing_for_fee,
)
from .sqrt_price_math import (
    sqrt_price_to_price,
    price_to_sqrt_price,
    tick_to_price,
    price_to_tick,
    invert_price,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
    get_sqrt_price_limit,
)
from .liquidity_math import (
    get_amount_a_delta,
    get_amount_b_delta,
    get_liquidity_for_amount_a,
    get_liquidity_for_amount_b,
    get_liquidity_for_amounts,
    get_deposit_liquidity_for_amounts,
    get_amounts_for_liquidity,
    get_amounts_for_position,
    get_liquidity_for_position,
)
from .convert import (
    format_token_amount,
    parse_token_amount,
    calculate_price_impact,
    apply_slippage,
)
