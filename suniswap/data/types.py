"""
SuniSwap 계정 데이터 타입 정의

정산 엔진 계정 (Pool, TickArray, Position, FeeTier) 을 pydantic 모델로 정의.
모든 숫자 필드는 온체인 정밀도를 위해 int 타입 사용.

모델은 생성 시 한 번 검증되고 이후 변경할 수 없습니다 (frozen).
- 타입 변환 실패 (정수가 아닌 값, 해석할 수 없는 주소): pydantic.ValidationError
- 도메인 검증 실패 (틱/가격 범위, 정수 폭): DomainRangeError
- mint 순서/동일성: OrderingError / IdentityError
"""

from decimal import Decimal
from typing import Annotated, Mapping, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from solders.pubkey import Pubkey

from ..config import PrecisionConfig
from ..constants import FEE_RATE_DENOMINATOR, MAX_TICK, MIN_TICK, TICK_ARRAY_SIZE, U8_MAX, U32_MAX
from ..errors import DomainRangeError, NotAvailableError
from ..math.full_math import Rounding, check_u64, check_u128, check_uint, mul_div
from ..math.liquidity_math import get_amounts_for_liquidity
from ..math.sqrt_price_math import sqrt_price_to_price
from ..math.tick_math import (
    engine_sqrt_price_at_tick,
    validate_sqrt_price,
    validate_tick,
    validate_tick_spacing,
)
from ..pda import assert_canonical_order, to_pubkey
from ..tick_array import tick_array_size, tick_offset_in_array

I64_MIN: int = -(2 ** 63)
I64_MAX: int = 2 ** 63 - 1
I128_MIN: int = -(2 ** 127)
I128_MAX: int = 2 ** 127 - 1

# a_to_b 스왑이 MIN_TICK 에 정확히 멈추면 엔진은 tick_current 를 MIN_TICK - 1 로 기록
POOL_TICK_CURRENT_MIN: int = MIN_TICK - 1


def _coerce_pubkey(value):
    if isinstance(value, (str, bytes, bytearray)):
        return to_pubkey(value)
    return value


PubkeyField = Annotated[Pubkey, BeforeValidator(_coerce_pubkey)]


def _check_signed(value: int, min_value: int, max_value: int, what: str) -> int:
    if value < min_value or value > max_value:
        raise DomainRangeError(f"{what} 이(가) 유효 범위를 벗어났습니다: {value} (범위: {min_value} ~ {max_value})")
    return value


def _pubkey_or_none(data: dict, key: str) -> Optional[Pubkey]:
    value = data.get(key)
    return to_pubkey(value, key) if value else None


class AccountModel(BaseModel):
    """계정 모델 공통 설정

    pydantic 의 타입 변환 뒤 도메인 검증 (_check) 을 실행합니다.
    생성자, from_dict, model_validate 어느 쪽으로 만들어도 도메인 오류는
    ValidationError 로 감싸지지 않고 DomainRangeError 등 그대로 올라옵니다.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def __init__(self, **data):
        super().__init__(**data)
        self._check()

    @classmethod
    def model_validate(cls, obj, **kwargs):
        # pydantic 검증기 안에서 __init__ 이 불리면 도메인 오류가 ValidationError 로 바뀜
        if isinstance(obj, Mapping) and not kwargs:
            return cls(**obj)
        return super().model_validate(obj, **kwargs)

    def _check(self) -> None:
        pass


class FeeTierState(AccountModel):
    """수수료 티어 계정

    - fee_rate: 1/100 bip 단위 (3000 = 0.30%)
    - tick_spacing: 이 티어의 풀이 사용하는 틱 간격
    """
    config: Optional[PubkeyField] = Field(default=None, description="Config account")
    fee_rate: int = Field(..., description="Fee rate in hundredths of a bip")
    tick_spacing: int = Field(..., description="Tick spacing")
    bump: int = Field(default=0, description="PDA bump seed")

    def _check(self) -> None:
        check_uint(self.fee_rate, FEE_RATE_DENOMINATOR, "fee_rate")
        validate_tick_spacing(self.tick_spacing)
        check_uint(self.bump, U8_MAX, "bump")

    def calculate_fee(self, amount: int) -> int:
        """입력 수량에 대한 수수료 (내림)"""
        check_u64(amount, "amount")
        return mul_div(amount, self.fee_rate, FEE_RATE_DENOMINATOR, Rounding.DOWN)

    @classmethod
    def from_dict(cls, data: dict) -> "FeeTierState":
        return cls(
            config=_pubkey_or_none(data, "config"),
            fee_rate=int(data["feeRate"]),
            tick_spacing=int(data["tickSpacing"]),
            bump=int(data.get("bump", 0)),
        )


class PoolState(AccountModel):
    """풀 계정

    Global State:
    - sqrt_price: 현재 √가격 (Q64.64)
    - liquidity: 현재 가격에서 활성화된 총 유동성
    - tick_current: 현재 틱 인덱스
    - fee_growth_global_a/b: 단위 유동성당 누적 수수료 (Q64.64)

    계정에는 수수료율이 없고 fee_tier 주소만 있으므로 fee_rate 는
    FeeTier 계정이나 호출자가 채웁니다 (with_fee_tier).
    """
    token_mint_a: PubkeyField
    token_mint_b: PubkeyField
    sqrt_price: int
    liquidity: int
    tick_current: int
    tick_spacing: int
    fee_growth_global_a: int = 0
    fee_growth_global_b: int = 0
    protocol_fees_a: int = 0
    protocol_fees_b: int = 0
    protocol_fee_rate: int = 0
    is_paused: bool = False
    fee_rate: Optional[int] = None
    config: Optional[PubkeyField] = None
    token_vault_a: Optional[PubkeyField] = None
    token_vault_b: Optional[PubkeyField] = None
    fee_tier: Optional[PubkeyField] = None
    oracle: Optional[PubkeyField] = None

    def _check(self) -> None:
        assert_canonical_order(self.token_mint_a, self.token_mint_b)
        validate_sqrt_price(self.sqrt_price)
        check_u128(self.liquidity, "liquidity")
        _check_signed(self.tick_current, POOL_TICK_CURRENT_MIN, MAX_TICK, "tick_current")
        validate_tick_spacing(self.tick_spacing)
        check_u128(self.fee_growth_global_a, "fee_growth_global_a")
        check_u128(self.fee_growth_global_b, "fee_growth_global_b")
        check_u64(self.protocol_fees_a, "protocol_fees_a")
        check_u64(self.protocol_fees_b, "protocol_fees_b")
        check_uint(self.protocol_fee_rate, U8_MAX, "protocol_fee_rate")
        if self.fee_rate is not None:
            check_uint(self.fee_rate, FEE_RATE_DENOMINATOR, "fee_rate")

    def price(self, decimals_a: int, decimals_b: int, config: Optional[PrecisionConfig] = None) -> Decimal:
        """현재 가격 (token A 1개당 token B)"""
        return sqrt_price_to_price(self.sqrt_price, decimals_a, decimals_b, config)

    def is_in_range(self, tick_lower: int, tick_upper: int) -> bool:
        """현재 틱이 [tick_lower, tick_upper) 안에 있는지"""
        return tick_lower <= self.tick_current < tick_upper

    def with_fee_tier(self, fee_tier: FeeTierState) -> "PoolState":
        """FeeTier 계정의 수수료율을 채운 새 PoolState"""
        if fee_tier.tick_spacing != self.tick_spacing:
            raise DomainRangeError(
                f"수수료 티어의 틱 간격 {fee_tier.tick_spacing} 이(가) 풀의 틱 간격 {self.tick_spacing} 과 다릅니다"
            )
        return type(self)(**{**self.model_dump(), "fee_rate": fee_tier.fee_rate})

    @classmethod
    def from_dict(cls, data: dict) -> "PoolState":
        fee_rate = data.get("feeRate")
        return cls(
            token_mint_a=to_pubkey(data["tokenMintA"], "tokenMintA"),
            token_mint_b=to_pubkey(data["tokenMintB"], "tokenMintB"),
            sqrt_price=int(data["sqrtPrice"]),
            liquidity=int(data["liquidity"]),
            tick_current=int(data["tickCurrent"]),
            tick_spacing=int(data["tickSpacing"]),
            fee_growth_global_a=int(data.get("feeGrowthGlobalA", 0)),
            fee_growth_global_b=int(data.get("feeGrowthGlobalB", 0)),
            protocol_fees_a=int(data.get("protocolFeesA", 0)),
            protocol_fees_b=int(data.get("protocolFeesB", 0)),
            protocol_fee_rate=int(data.get("protocolFeeRate", 0)),
            is_paused=bool(data.get("isPaused", False)),
            fee_rate=int(fee_rate) if fee_rate is not None else None,
            config=_pubkey_or_none(data, "config"),
            token_vault_a=_pubkey_or_none(data, "tokenVaultA"),
            token_vault_b=_pubkey_or_none(data, "tokenVaultB"),
            fee_tier=_pubkey_or_none(data, "feeTier"),
            oracle=_pubkey_or_none(data, "oracle"),
        )


class TickState(AccountModel):
    """틱 상태

    - liquidity_net: 틱을 왼쪽→오른쪽으로 지날 때 활성 유동성 변화량 (i128)
    - liquidity_gross: 이 틱을 경계로 하는 총 유동성
    - fee_growth_outside_a/b: 틱 바깥쪽 누적 수수료
    """
    liquidity_net: int = 0
    liquidity_gross: int = 0
    fee_growth_outside_a: int = 0
    fee_growth_outside_b: int = 0
    seconds_per_liquidity_outside: int = 0
    tick_cumulative_outside: int = 0
    seconds_outside: int = 0
    initialized: bool = False

    def _check(self) -> None:
        _check_signed(self.liquidity_net, I128_MIN, I128_MAX, "liquidity_net")
        check_u128(self.liquidity_gross, "liquidity_gross")
        check_u128(self.fee_growth_outside_a, "fee_growth_outside_a")
        check_u128(self.fee_growth_outside_b, "fee_growth_outside_b")
        check_u128(self.seconds_per_liquidity_outside, "seconds_per_liquidity_outside")
        _check_signed(self.tick_cumulative_outside, I64_MIN, I64_MAX, "tick_cumulative_outside")
        check_uint(self.seconds_outside, U32_MAX, "seconds_outside")

    @classmethod
    def from_dict(cls, data: dict) -> "TickState":
        return cls(
            liquidity_net=int(data.get("liquidityNet", 0)),
            liquidity_gross=int(data.get("liquidityGross", 0)),
            fee_growth_outside_a=int(data.get("feeGrowthOutsideA", 0)),
            fee_growth_outside_b=int(data.get("feeGrowthOutsideB", 0)),
            seconds_per_liquidity_outside=int(data.get("secondsPerLiquidityOutside", 0)),
            tick_cumulative_outside=int(data.get("tickCumulativeOutside", 0)),
            seconds_outside=int(data.get("secondsOutside", 0)),
            initialized=bool(data.get("initialized", False)),
        )


class TickArrayState(AccountModel):
    """틱 배열 계정

    계정에는 틱 간격이 없으므로 풀의 tick_spacing 을 함께 받습니다.
    start_tick_index 는 tick_spacing * TICK_ARRAY_SIZE 의 배수.
    """
    pool: PubkeyField
    start_tick_index: int
    tick_spacing: int
    ticks: Tuple[TickState, ...]
    initialized_bitmap: int = 0

    def _check(self) -> None:
        size = tick_array_size(self.tick_spacing)
        if self.start_tick_index % size != 0:
            raise DomainRangeError(
                f"시작 틱 {self.start_tick_index} 이(가) 배열 폭 {size} 의 배수가 아닙니다"
            )
        if len(self.ticks) != TICK_ARRAY_SIZE:
            raise DomainRangeError(f"틱 배열에는 {TICK_ARRAY_SIZE} 개의 틱이 필요합니다: {len(self.ticks)}")
        check_uint(self.initialized_bitmap, U8_MAX, "initialized_bitmap")

    def tick_index(self, offset: int) -> int:
        """배열 내 위치의 틱 인덱스"""
        return self.start_tick_index + offset * self.tick_spacing

    def get_tick(self, tick: int) -> TickState:
        """틱 인덱스로 틱 상태 조회

        Raises:
            NotAvailableError: 틱이 이 배열 밖인 경우
            DomainRangeError: 틱 간격에 정렬되지 않은 경우
        """
        size = tick_array_size(self.tick_spacing)
        if not self.start_tick_index <= tick < self.start_tick_index + size:
            raise NotAvailableError(
                f"틱 {tick} 은(는) 시작 틱 {self.start_tick_index} 의 배열에 없습니다"
            )
        return self.ticks[tick_offset_in_array(tick, self.start_tick_index, self.tick_spacing)]

    def initialized_ticks(self) -> Tuple[int, ...]:
        """초기화된 틱 인덱스 (오름차순)"""
        return tuple(
            self.tick_index(offset)
            for offset, tick in enumerate(self.ticks)
            if tick.initialized
        )

    @classmethod
    def from_dict(cls, data: dict, tick_spacing: int) -> "TickArrayState":
        return cls(
            pool=to_pubkey(data["pool"], "pool"),
            start_tick_index=int(data["startTickIndex"]),
            tick_spacing=tick_spacing,
            ticks=tuple(TickState.from_dict(t) for t in data["ticks"]),
            initialized_bitmap=int(data.get("initializedBitmap", 0)),
        )


class PositionState(AccountModel):
    """포지션 계정

    - liquidity: 포지션이 가진 유동성
    - tick_lower / tick_upper: 가격 범위
    - fee_growth_inside_a/b_last: 마지막 정산 시점의 범위 내 누적 수수료
    - tokens_owed_a/b: 정산됐지만 아직 수령하지 않은 수량
    """
    pool: PubkeyField
    owner: PubkeyField
    liquidity: int
    tick_lower: int
    tick_upper: int
    position_mint: Optional[PubkeyField] = None
    fee_growth_inside_a_last: int = 0
    fee_growth_inside_b_last: int = 0
    tokens_owed_a: int = 0
    tokens_owed_b: int = 0

    def _check(self) -> None:
        check_u128(self.liquidity, "liquidity")
        validate_tick(self.tick_lower)
        validate_tick(self.tick_upper)
        if self.tick_lower >= self.tick_upper:
            raise DomainRangeError(f"하한 틱은 상한 틱보다 작아야 합니다: {self.tick_lower} >= {self.tick_upper}")
        check_u128(self.fee_growth_inside_a_last, "fee_growth_inside_a_last")
        check_u128(self.fee_growth_inside_b_last, "fee_growth_inside_b_last")
        check_u64(self.tokens_owed_a, "tokens_owed_a")
        check_u64(self.tokens_owed_b, "tokens_owed_b")

    def token_amounts(self, sqrt_price: int, rounding: Optional[Rounding] = None) -> Tuple[int, int]:
        """현재 sqrtPrice 에서 포지션 유동성에 해당하는 (amount_a, amount_b)

        인출 견적은 Rounding.DOWN, 같은 유동성을 다시 넣을 때 필요한 수량은 Rounding.UP.
        """
        return get_amounts_for_liquidity(
            sqrt_price,
            engine_sqrt_price_at_tick(self.tick_lower),
            engine_sqrt_price_at_tick(self.tick_upper),
            self.liquidity,
            rounding,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "PositionState":
        return cls(
            pool=to_pubkey(data["pool"], "pool"),
            owner=to_pubkey(data["owner"], "owner"),
            position_mint=_pubkey_or_none(data, "positionMint"),
            liquidity=int(data["liquidity"]),
            tick_lower=int(data["tickLower"]),
            tick_upper=int(data["tickUpper"]),
            fee_growth_inside_a_last=int(data.get("feeGrowthInsideALast", 0)),
            fee_growth_inside_b_last=int(data.get("feeGrowthInsideBLast", 0)),
            tokens_owed_a=int(data.get("tokensOwedA", 0)),
            tokens_owed_b=int(data.get("tokensOwedB", 0)),
        )
