"""
정산 엔진 계정 바이트 레이아웃 (construct)

계정 데이터 = 8 바이트 Anchor discriminator + 본문 (little-endian).
Pool / TickArray / Position 은 zero-copy (repr(C)) 구조체, FeeTier 는 Borsh.

    Pool       8 + 384 바이트
    TickArray  8 + 816 바이트 (Tick 96 바이트 x 8)
    Position   8 + 208 바이트
    FeeTier    8 + 71 바이트

u128 / i128 은 Bytes(16) 를 정수로 바꾸는 Adapter 로 읽습니다.
"""

import hashlib
import logging

from construct import (
    Adapter,
    Array,
    Bytes,
    ConstructError,
    Int8ul,
    Int16ul,
    Int32sl,
    Int32ul,
    Int64sl,
    Int64ul,
    Padding,
    Struct,
)
from solders.pubkey import Pubkey

from ..constants import TICK_ARRAY_SIZE
from ..errors import AccountDataError, NotAvailableError
from .types import FeeTierState, PoolState, PositionState, TickArrayState, TickState

logger = logging.getLogger(__name__)

DISCRIMINATOR_SIZE: int = 8


# --- construct Adapter ---
class PubkeyAdapter(Adapter):
    def _decode(self, obj, context, path):
        return Pubkey(obj)

    def _encode(self, obj, context, path):
        return bytes(obj)


class U128Adapter(Adapter):
    def _decode(self, obj, context, path):
        return int.from_bytes(obj, "little")

    def _encode(self, obj, context, path):
        return obj.to_bytes(16, "little")


class I128Adapter(Adapter):
    def _decode(self, obj, context, path):
        return int.from_bytes(obj, "little", signed=True)

    def _encode(self, obj, context, path):
        return obj.to_bytes(16, "little", signed=True)


construct_pubkey = PubkeyAdapter(Bytes(32))
u128 = U128Adapter(Bytes(16))
i128 = I128Adapter(Bytes(16))


# --- Layouts ---
POOL_LAYOUT = Struct(
    "sqrt_price" / u128,
    "liquidity" / u128,
    "fee_growth_global_a" / u128,
    "fee_growth_global_b" / u128,
    "protocol_fees_a" / Int64ul,
    "protocol_fees_b" / Int64ul,
    "tick_current" / Int32sl,
    "tick_spacing" / Int16ul,
    "observation_index" / Int16ul,
    "observation_cardinality" / Int16ul,
    "observation_cardinality_next" / Int16ul,
    "protocol_fee_rate" / Int8ul,
    "is_paused" / Int8ul,
    "bump" / Int8ul,
    "hook_flags" / Int8ul,
    "config" / construct_pubkey,
    "token_mint_a" / construct_pubkey,
    "token_mint_b" / construct_pubkey,
    "token_vault_a" / construct_pubkey,
    "token_vault_b" / construct_pubkey,
    "fee_tier" / construct_pubkey,
    "hook_program" / construct_pubkey,
    "oracle" / construct_pubkey,
    Padding(32),
)

TICK_LAYOUT = Struct(
    "liquidity_net" / i128,
    "liquidity_gross" / u128,
    "fee_growth_outside_a" / u128,
    "fee_growth_outside_b" / u128,
    "seconds_per_liquidity_outside" / u128,
    "tick_cumulative_outside" / Int64sl,
    "seconds_outside" / Int32ul,
    "initialized" / Int8ul,
    Padding(3),
)

TICK_ARRAY_LAYOUT = Struct(
    "pool" / construct_pubkey,
    "start_tick_index" / Int32sl,
    "initialized_bitmap" / Int8ul,
    "bump" / Int8ul,
    Padding(10),
    "ticks" / Array(TICK_ARRAY_SIZE, TICK_LAYOUT),
)

POSITION_LAYOUT = Struct(
    "liquidity" / u128,
    "fee_growth_inside_a_last" / u128,
    "fee_growth_inside_b_last" / u128,
    "tokens_owed_a" / Int64ul,
    "tokens_owed_b" / Int64ul,
    "tick_lower" / Int32sl,
    "tick_upper" / Int32sl,
    "bump" / Int8ul,
    Padding(7),
    "pool" / construct_pubkey,
    "owner" / construct_pubkey,
    "position_mint" / construct_pubkey,
    Padding(32),
)

FEE_TIER_LAYOUT = Struct(
    "config" / construct_pubkey,
    "fee_rate" / Int32ul,
    "tick_spacing" / Int16ul,
    "bump" / Int8ul,
    Padding(32),
)


def account_discriminator(name: str) -> bytes:
    """Anchor 계정 discriminator: sha256("account:<Name>") 앞 8 바이트"""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:DISCRIMINATOR_SIZE]


def parse_account_data(data: bytes, layout: Struct, name: str):
    """계정 데이터를 레이아웃으로 파싱

    Raises:
        NotAvailableError: 데이터가 비어 있는 경우 (계정 없음 / 닫힌 계정)
        AccountDataError: 길이나 discriminator 가 맞지 않는 경우
    """
    if not data:
        raise NotAvailableError(f"{name} 계정 데이터가 없습니다")

    expected = DISCRIMINATOR_SIZE + layout.sizeof()
    if len(data) != expected:
        raise AccountDataError(f"{name} 계정 크기가 다릅니다: {len(data)} != {expected}")
    if bytes(data[:DISCRIMINATOR_SIZE]) != account_discriminator(name):
        raise AccountDataError(f"{name} 계정의 discriminator 가 다릅니다")

    try:
        parsed = layout.parse(bytes(data[DISCRIMINATOR_SIZE:]))
    except ConstructError as exc:
        raise AccountDataError(f"{name} 계정을 파싱할 수 없습니다: {exc}") from exc
    logger.debug("Parsed %s account (%d bytes)", name, len(data))
    return parsed


def decode_pool(data: bytes) -> PoolState:
    parsed = parse_account_data(data, POOL_LAYOUT, "Pool")
    return PoolState(
        token_mint_a=parsed.token_mint_a,
        token_mint_b=parsed.token_mint_b,
        sqrt_price=parsed.sqrt_price,
        liquidity=parsed.liquidity,
        tick_current=parsed.tick_current,
        tick_spacing=parsed.tick_spacing,
        fee_growth_global_a=parsed.fee_growth_global_a,
        fee_growth_global_b=parsed.fee_growth_global_b,
        protocol_fees_a=parsed.protocol_fees_a,
        protocol_fees_b=parsed.protocol_fees_b,
        protocol_fee_rate=parsed.protocol_fee_rate,
        is_paused=bool(parsed.is_paused),
        config=parsed.config,
        token_vault_a=parsed.token_vault_a,
        token_vault_b=parsed.token_vault_b,
        fee_tier=parsed.fee_tier,
        oracle=parsed.oracle,
    )


def _decode_tick(parsed) -> TickState:
    return TickState(
        liquidity_net=parsed.liquidity_net,
        liquidity_gross=parsed.liquidity_gross,
        fee_growth_outside_a=parsed.fee_growth_outside_a,
        fee_growth_outside_b=parsed.fee_growth_outside_b,
        seconds_per_liquidity_outside=parsed.seconds_per_liquidity_outside,
        tick_cumulative_outside=parsed.tick_cumulative_outside,
        seconds_outside=parsed.seconds_outside,
        initialized=bool(parsed.initialized),
    )


def decode_tick_array(data: bytes, tick_spacing: int) -> TickArrayState:
    """틱 배열 계정 디코딩 (틱 간격은 계정에 없으므로 풀에서 받음)"""
    parsed = parse_account_data(data, TICK_ARRAY_LAYOUT, "TickArray")
    return TickArrayState(
        pool=parsed.pool,
        start_tick_index=parsed.start_tick_index,
        tick_spacing=tick_spacing,
        ticks=tuple(_decode_tick(tick) for tick in parsed.ticks),
        initialized_bitmap=parsed.initialized_bitmap,
    )


def decode_position(data: bytes) -> PositionState:
    parsed = parse_account_data(data, POSITION_LAYOUT, "Position")
    return PositionState(
        pool=parsed.pool,
        owner=parsed.owner,
        position_mint=parsed.position_mint,
        liquidity=parsed.liquidity,
        tick_lower=parsed.tick_lower,
        tick_upper=parsed.tick_upper,
        fee_growth_inside_a_last=parsed.fee_growth_inside_a_last,
        fee_growth_inside_b_last=parsed.fee_growth_inside_b_last,
        tokens_owed_a=parsed.tokens_owed_a,
        tokens_owed_b=parsed.tokens_owed_b,
    )


def decode_fee_tier(data: bytes) -> FeeTierState:
    parsed = parse_account_data(data, FEE_TIER_LAYOUT, "FeeTier")
    return FeeTierState(
        config=parsed.config,
        fee_rate=parsed.fee_rate,
        tick_spacing=parsed.tick_spacing,
        bump=parsed.bump,
    )
