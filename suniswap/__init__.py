"""
SuniSwap client numerics & addressing

SuniSwap 집중화된 유동성 풀의 클라이언트 쪽 계산 라이브러리.
정산 엔진과 같은 정수 정밀도로 틱/가격 변환, 유동성 ↔ 수량 계산,
틱 배열 인덱스, 계정 주소 (PDA) 를 계산합니다.
"""

__version__ = "0.1.0"

from .constants import Q64, Q128, MIN_TICK, MAX_TICK, MIN_SQRT_PRICE, MAX_SQRT_PRICE, TICK_ARRAY_SIZE
from .errors import (
    SuniswapError,
    DomainRangeError,
    RangeError,
    OverflowError,
    RoundingModeError,
    IdentityError,
    OrderingError,
    NotAvailableError,
    AccountDataError,
)
from .config import PrecisionConfig, DEFAULT_PRECISION, Settings
from .math import Rounding
from .pda import PdaDeriver, DerivedAddress, OrderedMints, order_mints
