"""
Full Math - 고정소수점 정수 연산 보조 함수

정산 엔진의 full_math / checked 연산에 대응하는 함수들.
Python int 는 임의 정밀도이므로 중간값은 절대 넘치지 않고,
최종 결과를 u64 / u128 로 좁힐 때만 폭을 검사합니다.

반올림 방향은 호출자가 항상 명시해야 합니다 (Rounding.UP / Rounding.DOWN).
"""

from enum import Enum

from ..constants import U64_MAX, U128_MAX
from ..errors import DomainRangeError, OverflowError, RoundingModeError


class Rounding(Enum):
    """반올림 방향

    UP: 호출자가 지불하는 금액 (올림, 프로토콜이 덜 받는 일을 막음)
    DOWN: 호출자가 받는 금액, 또는 주어진 수량에서 도출한 유동성 (내림)
    """
    UP = "up"
    DOWN = "down"


def require_rounding(rounding) -> Rounding:
    """반올림 방향 검증

    Raises:
        RoundingModeError: None 이거나 Rounding 멤버가 아닌 경우 (bool 포함)
    """
    if rounding is None:
        raise RoundingModeError("반올림 방향이 지정되지 않았습니다 (Rounding.UP 또는 Rounding.DOWN)")
    if not isinstance(rounding, Rounding):
        raise RoundingModeError(f"지원하지 않는 반올림 방향: {rounding!r}")
    return rounding


def div_rounding_up(numerator: int, denominator: int) -> int:
    """numerator / denominator 올림"""
    result = numerator // denominator
    if numerator % denominator > 0:
        result += 1
    return result


def mul_div(a: int, b: int, denominator: int, rounding: Rounding) -> int:
    """(a * b) / denominator 를 지정한 방향으로 반올림

    Raises:
        DomainRangeError: denominator 가 0 이하인 경우
        RoundingModeError: 반올림 방향이 없는 경우
    """
    rounding = require_rounding(rounding)
    if denominator <= 0:
        raise DomainRangeError(f"분모는 양수여야 합니다: {denominator}")

    product = a * b
    if rounding is Rounding.UP:
        return div_rounding_up(product, denominator)
    return product // denominator


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_uint(value, max_value: int, what: str) -> int:
    """입력값이 [0, max_value] 범위의 정수인지 검증

    Raises:
        DomainRangeError: 정수가 아니거나 범위를 벗어난 경우
    """
    if not _is_int(value):
        raise DomainRangeError(f"{what} 은(는) 정수여야 합니다: {value!r}")
    if value < 0 or value > max_value:
        raise DomainRangeError(f"{what} 이(가) 유효 범위를 벗어났습니다: {value} (범위: 0 ~ {max_value})")
    return value


def check_u64(value, what: str = "amount") -> int:
    return check_uint(value, U64_MAX, what)


def check_u128(value, what: str = "liquidity") -> int:
    return check_uint(value, U128_MAX, what)


def narrow(value: int, max_value: int, what: str) -> int:
    """계산 결과를 고정 폭으로 좁힘

    Raises:
        OverflowError: 결과가 max_value 를 넘는 경우 (wrap 하지 않음)
        DomainRangeError: 결과가 음수인 경우
    """
    if value < 0:
        raise DomainRangeError(f"{what} 결과가 음수입니다: {value}")
    if value > max_value:
        raise OverflowError(f"{what} 결과가 표현 가능한 폭을 넘었습니다: {value} > {max_value}")
    return value


def to_u64(value: int, what: str = "amount") -> int:
    return narrow(value, U64_MAX, what)


def to_u128(value: int, what: str = "liquidity") -> int:
    return narrow(value, U128_MAX, what)
