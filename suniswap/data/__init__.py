"""
Data layer for SuniSwap client

- types: 정산 엔진 계정 모델 (pydantic)
- layouts: 계정 바이트 디코딩 (construct)
"""

from .types import (
    FeeTierState,
    PoolState,
    PositionState,
    TickArrayState,
    TickState,
)
from .layouts import (
    account_discriminator,
    decode_fee_tier,
    decode_pool,
    decode_position,
    decode_tick_array,
)
