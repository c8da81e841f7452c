"""
SuniSwap 상수 정의

정산 엔진(온체인 프로그램)과 동일한 값을 사용해야 하는 상수들:
- Q64: sqrt price 인코딩에 사용 (2^64, Q64.64 형식)
- Q128: fee growth 인코딩에 사용 (2^128)
- MIN_TICK / MAX_TICK: 틱 도메인
- MIN_SQRT_PRICE / MAX_SQRT_PRICE: 틱 도메인 양 끝의 sqrtPriceX64
- TICK_ARRAY_SIZE: 틱 배열(버킷) 하나에 들어가는 틱 개수
- FEE_TIERS / TICK_SPACINGS: 수수료 티어와 틱 간격
"""

from decimal import Decimal
from typing import Dict

# Fixed-point 인코딩 상수
Q64: int = 2 ** 64
Q128: int = 2 ** 128

# 틱 범위 상수 (정산 엔진과 동일)
MIN_TICK: int = -443636
MAX_TICK: int = 443636

# sqrt price 범위 (Q64.64)
# MIN: floor(sqrt(1.0001^MIN_TICK) * 2^64)
# MAX: engine_sqrt_price_at_tick(MAX_TICK), 해석적 내림값 ...061 보다 1 큼
MIN_SQRT_PRICE: int = 4295048016
MAX_SQRT_PRICE: int = 79226673515401279992447579062

# 배포된 엔진이 풀 초기화 / 스왑 한도에 쓰는 상한 (MAX_TICK 의 값보다 작음)
ENGINE_MAX_SQRT_PRICE: int = 79226673515401279992447579055

# 1.0001 (tick 계산에 사용)
TICK_BASE: Decimal = Decimal("1.0001")

# 틱 배열 하나당 틱 개수
TICK_ARRAY_SIZE: int = 8

# 정수 폭
U8_MAX: int = 2 ** 8 - 1
U32_MAX: int = 2 ** 32 - 1
U64_MAX: int = 2 ** 64 - 1
U128_MAX: int = 2 ** 128 - 1

# 수수료 단위: 1/100 bip (1_000_000 = 100%)
FEE_RATE_DENOMINATOR: int = 1_000_000

# 수수료 티어
# 100 = 0.01%, 500 = 0.05%, 3000 = 0.30%, 10000 = 1.00%
FEE_TIERS: Dict[int, str] = {
    100: "0.01%",    # stable pairs
    500: "0.05%",
    3000: "0.30%",   # most pairs
    10000: "1.00%",  # exotic pairs
}

# 각 수수료 티어별 틱 간격
TICK_SPACINGS: Dict[int, int] = {
    100: 1,
    500: 10,
    3000: 60,
    10000: 200,
}

MAX_TICK_SPACING: int = 16384

# 네트워크별 정산 엔진 프로그램 ID
PROGRAM_IDS: Dict[str, str] = {
    "localnet": "859DmKSfDQxnHY7dbYdFNwUE7QWhnb1WiBbXwbq1ktky",
    "devnet": "D3mEetFkLuB1sia8Bvvv2nmt9k6RsJPAGR2PE6tj7EFq",
    "mainnet": "D3mEetFkLuB1sia8Bvvv2nmt9k6RsJPAGR2PE6tj7EFq",
}

DEFAULT_NETWORK: str = "devnet"

# 슬리피지 기본값 (basis points)
DEFAULT_SLIPPAGE_BPS: int = 50
BPS_DENOMINATOR: int = 10_000

# PDA seed 태그
CONFIG_SEED: bytes = b"config"
FEE_TIER_SEED: bytes = b"fee_tier"
POOL_SEED: bytes = b"pool"
POOL_VAULT_SEED: bytes = b"pool_vault"
TICK_ARRAY_SEED: bytes = b"tick_array"
POSITION_SEED: bytes = b"position"
ORACLE_SEED: bytes = b"oracle"

# seed 레이아웃 버전 (seed 구성이 바뀌면 올린다)
SEED_LAYOUT_VERSION: int = 1
