"""
PDA (Program Derived Address) 계산

정산 엔진 계정의 주소는 seed 와 프로그램 ID 로부터 결정적으로 계산됩니다.
같은 입력이면 언제나 같은 주소가 나오며, 클라이언트가 계정을 조회하기 전에
주소를 미리 알 수 있습니다.

seed 레이아웃 (버전 SEED_LAYOUT_VERSION, 정수는 little-endian):
    config      b"config"
    fee_tier    b"fee_tier" | u32(fee_rate)
    pool        b"pool" | mint_a | mint_b | u32(fee_rate)     (mint_a < mint_b)
    pool_vault  b"pool_vault" | pool | mint
    tick_array  b"tick_array" | pool | i32(start_tick_index)
    position    b"position" | pool | owner | i32(tick_lower) | i32(tick_upper)
    oracle      b"oracle" | pool

풀의 두 mint 는 32 바이트 원시값 비교로 정렬합니다 (mint_a < mint_b).
"""

import logging
from decimal import Decimal
from typing import NamedTuple, Optional, Tuple, Union

from construct import ConstructError, Int32sl, Int32ul
from solders.pubkey import Pubkey

from .config import PrecisionConfig
from .constants import (
    CONFIG_SEED,
    FEE_TIER_SEED,
    ORACLE_SEED,
    POOL_SEED,
    POOL_VAULT_SEED,
    POSITION_SEED,
    SEED_LAYOUT_VERSION,
    TICK_ARRAY_SEED,
)
from .errors import DomainRangeError, IdentityError, OrderingError, OverflowError
from .math.sqrt_price_math import PriceLike, invert_price, to_price
from .math.tick_math import validate_tick
from .tick_array import get_tick_arrays_for_range, get_tick_arrays_for_swap

logger = logging.getLogger(__name__)

PubkeyLike = Union[Pubkey, str, bytes]


class DerivedAddress(NamedTuple):
    """PDA 주소와 bump seed"""
    address: Pubkey
    bump: int


class TickArrayAddress(NamedTuple):
    """틱 배열 시작 틱과 그 PDA"""
    start_tick_index: int
    address: Pubkey
    bump: int


def to_pubkey(value: PubkeyLike, what: str = "pubkey") -> Pubkey:
    """Pubkey, base58 문자열, 32 바이트를 Pubkey 로 변환

    Raises:
        DomainRangeError: 해석할 수 없는 값
    """
    if isinstance(value, Pubkey):
        return value
    try:
        if isinstance(value, str):
            return Pubkey.from_string(value)
        if isinstance(value, (bytes, bytearray)):
            if len(value) != 32:
                raise DomainRangeError(f"{what} 은(는) 32 바이트여야 합니다: {len(value)}")
            return Pubkey(bytes(value))
    except ValueError as exc:
        raise DomainRangeError(f"{what} 이(가) 올바른 주소가 아닙니다: {value!r}") from exc
    raise DomainRangeError(f"{what} 은(는) Pubkey 또는 base58 문자열이어야 합니다: {value!r}")


def _encode_int(field, value: int, what: str) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise DomainRangeError(f"{what} 은(는) 정수여야 합니다: {value!r}")
    try:
        return field.build(value)
    except ConstructError as exc:
        raise OverflowError(f"{what} 이(가) seed 필드 폭을 넘었습니다: {value}") from exc


def encode_u32(value: int, what: str = "value") -> bytes:
    return _encode_int(Int32ul, value, what)


def encode_i32(value: int, what: str = "value") -> bytes:
    return _encode_int(Int32sl, value, what)


# =============================================================================
# Mint 정렬
# =============================================================================

class OrderedMints(NamedTuple):
    """정렬된 mint 쌍

    is_reversed 는 호출자가 준 순서 (mint_x, mint_y) 가 정렬 순서와 반대였는지.
    호출자 기준의 가격/수량을 풀 기준 (A/B) 으로 바꿀 때 사용합니다.
    """
    mint_a: Pubkey
    mint_b: Pubkey
    is_reversed: bool

    def canonical_price(self, price: PriceLike, config: Optional[PrecisionConfig] = None) -> Decimal:
        """호출자 기준 가격 (mint_x 1개당 mint_y) → 풀 기준 가격 (A 1개당 B)"""
        if self.is_reversed:
            return invert_price(price, config)
        return to_price(price)

    def canonical_amounts(self, amount_x: int, amount_y: int) -> Tuple[int, int]:
        """(amount_x, amount_y) → (amount_a, amount_b)"""
        if self.is_reversed:
            return amount_y, amount_x
        return amount_x, amount_y

    def canonical_decimals(self, decimals_x: int, decimals_y: int) -> Tuple[int, int]:
        if self.is_reversed:
            return decimals_y, decimals_x
        return decimals_x, decimals_y


def order_mints(mint_x: PubkeyLike, mint_y: PubkeyLike) -> OrderedMints:
    """두 mint 를 정렬 순서 (원시 바이트 오름차순) 로

    이미 정렬된 쌍을 넣으면 그대로 돌려줍니다 (is_reversed=False).

    Raises:
        IdentityError: 두 mint 가 같은 경우
    """
    x = to_pubkey(mint_x, "mint_x")
    y = to_pubkey(mint_y, "mint_y")
    x_bytes, y_bytes = bytes(x), bytes(y)

    if x_bytes == y_bytes:
        raise IdentityError(f"두 mint 가 같습니다: {x}")
    if x_bytes < y_bytes:
        return OrderedMints(mint_a=x, mint_b=y, is_reversed=False)
    return OrderedMints(mint_a=y, mint_b=x, is_reversed=True)


def assert_canonical_order(mint_a: PubkeyLike, mint_b: PubkeyLike) -> None:
    """mint_a < mint_b 인지 확인

    Raises:
        IdentityError: 두 mint 가 같은 경우
        OrderingError: 순서가 반대인 경우
    """
    if order_mints(mint_a, mint_b).is_reversed:
        raise OrderingError(f"mint 순서가 반대입니다: {mint_a} > {mint_b}")


# =============================================================================
# PDA 계산
# =============================================================================

def _find(seeds, program_id: PubkeyLike, kind: str) -> DerivedAddress:
    program = to_pubkey(program_id, "program_id")
    address, bump = Pubkey.find_program_address(list(seeds), program)
    logger.debug("Derived %s address %s (bump=%d)", kind, address, bump)
    return DerivedAddress(address=address, bump=bump)


def derive_config_address(program_id: PubkeyLike) -> DerivedAddress:
    return _find([CONFIG_SEED], program_id, "config")


def derive_fee_tier_address(program_id: PubkeyLike, fee_rate: int) -> DerivedAddress:
    return _find([FEE_TIER_SEED, encode_u32(fee_rate, "fee_rate")], program_id, "fee_tier")


def derive_pool_address(
    program_id: PubkeyLike,
    mint_x: PubkeyLike,
    mint_y: PubkeyLike,
    fee_rate: int,
    require_ordered: bool = False,
) -> DerivedAddress:
    """풀 PDA

    require_ordered=False 면 mint 를 먼저 정렬하므로 어느 순서로 넣어도 같은 주소.
    True 면 이미 정렬된 쌍만 받습니다.

    Raises:
        IdentityError: 두 mint 가 같은 경우
        OrderingError: require_ordered=True 인데 순서가 반대인 경우
    """
    if require_ordered:
        assert_canonical_order(mint_x, mint_y)
    mints = order_mints(mint_x, mint_y)
    seeds = [
        POOL_SEED,
        bytes(mints.mint_a),
        bytes(mints.mint_b),
        encode_u32(fee_rate, "fee_rate"),
    ]
    return _find(seeds, program_id, "pool")


def derive_vault_address(program_id: PubkeyLike, pool: PubkeyLike, mint: PubkeyLike) -> DerivedAddress:
    seeds = [POOL_VAULT_SEED, bytes(to_pubkey(pool, "pool")), bytes(to_pubkey(mint, "mint"))]
    return _find(seeds, program_id, "pool_vault")


def derive_tick_array_address(
    program_id: PubkeyLike,
    pool: PubkeyLike,
    start_tick_index: int,
) -> DerivedAddress:
    seeds = [
        TICK_ARRAY_SEED,
        bytes(to_pubkey(pool, "pool")),
        encode_i32(start_tick_index, "start_tick_index"),
    ]
    return _find(seeds, program_id, "tick_array")


def derive_position_address(
    program_id: PubkeyLike,
    pool: PubkeyLike,
    owner: PubkeyLike,
    tick_lower: int,
    tick_upper: int,
) -> DerivedAddress:
    validate_tick(tick_lower)
    validate_tick(tick_upper)
    seeds = [
        POSITION_SEED,
        bytes(to_pubkey(pool, "pool")),
        bytes(to_pubkey(owner, "owner")),
        encode_i32(tick_lower, "tick_lower"),
        encode_i32(tick_upper, "tick_upper"),
    ]
    return _find(seeds, program_id, "position")


def derive_oracle_address(program_id: PubkeyLike, pool: PubkeyLike) -> DerivedAddress:
    return _find([ORACLE_SEED, bytes(to_pubkey(pool, "pool"))], program_id, "oracle")


class PdaDeriver:
    """프로그램 ID 에 묶인 PDA 계산기

    Example:
        >>> deriver = PdaDeriver("D3mEetFkLuB1sia8Bvvv2nmt9k6RsJPAGR2PE6tj7EFq")
        >>> pool = deriver.pool(mint_usdc, mint_sol, 3000)
        >>> deriver.swap_tick_arrays(pool.address, current_tick=-120, tick_spacing=60, a_to_b=True)
    """

    seed_layout_version = SEED_LAYOUT_VERSION

    def __init__(self, program_id: PubkeyLike):
        self.program_id = to_pubkey(program_id, "program_id")

    def config(self) -> DerivedAddress:
        return derive_config_address(self.program_id)

    def fee_tier(self, fee_rate: int) -> DerivedAddress:
        return derive_fee_tier_address(self.program_id, fee_rate)

    def pool(
        self,
        mint_x: PubkeyLike,
        mint_y: PubkeyLike,
        fee_rate: int,
        require_ordered: bool = False,
    ) -> DerivedAddress:
        return derive_pool_address(self.program_id, mint_x, mint_y, fee_rate, require_ordered)

    def vault(self, pool: PubkeyLike, mint: PubkeyLike) -> DerivedAddress:
        return derive_vault_address(self.program_id, pool, mint)

    def tick_array(self, pool: PubkeyLike, start_tick_index: int) -> DerivedAddress:
        return derive_tick_array_address(self.program_id, pool, start_tick_index)

    def position(
        self,
        pool: PubkeyLike,
        owner: PubkeyLike,
        tick_lower: int,
        tick_upper: int,
    ) -> DerivedAddress:
        return derive_position_address(self.program_id, pool, owner, tick_lower, tick_upper)

    def oracle(self, pool: PubkeyLike) -> DerivedAddress:
        return derive_oracle_address(self.program_id, pool)

    def _tick_arrays(self, pool: PubkeyLike, starts) -> Tuple[TickArrayAddress, ...]:
        result = []
        for start in starts:
            derived = self.tick_array(pool, start)
            result.append(TickArrayAddress(start, derived.address, derived.bump))
        return tuple(result)

    def swap_tick_arrays(
        self,
        pool: PubkeyLike,
        current_tick: int,
        tick_spacing: int,
        a_to_b: bool,
        count: int = 3,
    ) -> Tuple[TickArrayAddress, ...]:
        """스왑에 넘길 틱 배열 주소 (진행 방향 순서)"""
        starts = get_tick_arrays_for_swap(current_tick, tick_spacing, a_to_b, count)
        return self._tick_arrays(pool, starts)

    def position_tick_arrays(
        self,
        pool: PubkeyLike,
        tick_lower: int,
        tick_upper: int,
        tick_spacing: int,
    ) -> Tuple[TickArrayAddress, ...]:
        """포지션 경계 틱이 속한 틱 배열 주소 (1 개 또는 2 개)"""
        starts = get_tick_arrays_for_range(tick_lower, tick_upper, tick_spacing).starts
        return self._tick_arrays(pool, starts)

    def __repr__(self) -> str:
        return f"PdaDeriver(program_id={self.program_id}, seed_layout_version={self.seed_layout_version})"
