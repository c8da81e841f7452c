"""
Data 테스트

계정 모델 검증과 계정 바이트 디코딩을 테스트합니다.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError
from solders.pubkey import Pubkey

from ..constants import Q64, MIN_TICK, MAX_TICK
from ..data.layouts import (
    FEE_TIER_LAYOUT,
    POOL_LAYOUT,
    POSITION_LAYOUT,
    TICK_ARRAY_LAYOUT,
    account_discriminator,
    decode_fee_tier,
    decode_pool,
    decode_position,
    decode_tick_array,
)
from ..data.types import FeeTierState, PoolState, PositionState, TickArrayState, TickState
from ..errors import AccountDataError, DomainRangeError, IdentityError, NotAvailableError, OrderingError
from ..math.full_math import Rounding
from ..math.liquidity_math import get_amounts_for_position
from ..math.tick_math import engine_sqrt_price_at_tick

MINT_A = Pubkey(b"A" * 32)
MINT_Z = Pubkey(b"Z" * 32)
POOL = Pubkey(b"P" * 32)
OWNER = Pubkey(b"O" * 32)
ZERO = Pubkey(bytes(32))


def _pool_fields(**overrides):
    fields = dict(
        sqrt_price=Q64,
        liquidity=10 ** 12,
        fee_growth_global_a=5,
        fee_growth_global_b=7,
        protocol_fees_a=1,
        protocol_fees_b=2,
        tick_current=0,
        tick_spacing=60,
        observation_index=0,
        observation_cardinality=1,
        observation_cardinality_next=1,
        protocol_fee_rate=10,
        is_paused=0,
        bump=254,
        hook_flags=0,
        config=ZERO,
        token_mint_a=MINT_A,
        token_mint_b=MINT_Z,
        token_vault_a=ZERO,
        token_vault_b=ZERO,
        fee_tier=ZERO,
        hook_program=ZERO,
        oracle=ZERO,
    )
    fields.update(overrides)
    return fields


def _tick_fields(**overrides):
    fields = dict(
        liquidity_net=0,
        liquidity_gross=0,
        fee_growth_outside_a=0,
        fee_growth_outside_b=0,
        seconds_per_liquidity_outside=0,
        tick_cumulative_outside=0,
        seconds_outside=0,
        initialized=0,
    )
    fields.update(overrides)
    return fields


def _account(name, layout, fields):
    return account_discriminator(name) + layout.build(fields)


class TestPoolState:

    def test_from_dict(self):
        pool = PoolState.from_dict({
            "tokenMintA": str(MINT_A),
            "tokenMintB": str(MINT_Z),
            "sqrtPrice": str(Q64),
            "liquidity": "1000000",
            "tickCurrent": 0,
            "tickSpacing": 60,
        })
        assert pool.sqrt_price == Q64
        assert pool.fee_rate is None
        assert pool.price(9, 6) == Decimal(1000)

    def test_reversed_mints(self):
        with pytest.raises(OrderingError):
            PoolState(token_mint_a=MINT_Z, token_mint_b=MINT_A, sqrt_price=Q64,
                      liquidity=0, tick_current=0, tick_spacing=60)

    def test_identical_mints(self):
        with pytest.raises(IdentityError):
            PoolState(token_mint_a=MINT_A, token_mint_b=MINT_A, sqrt_price=Q64,
                      liquidity=0, tick_current=0, tick_spacing=60)

    def test_out_of_domain(self):
        with pytest.raises(DomainRangeError):
            PoolState(token_mint_a=MINT_A, token_mint_b=MINT_Z, sqrt_price=0,
                      liquidity=0, tick_current=0, tick_spacing=60)
        with pytest.raises(DomainRangeError):
            PoolState(token_mint_a=MINT_A, token_mint_b=MINT_Z, sqrt_price=Q64,
                      liquidity=0, tick_current=MAX_TICK + 1, tick_spacing=60)

    def test_tick_current_below_min_tick(self):
        """MIN_TICK 에 멈춘 a_to_b 스왑 뒤의 풀 상태 (tick_current = MIN_TICK - 1)"""
        pool = PoolState(token_mint_a=MINT_A, token_mint_b=MINT_Z,
                         sqrt_price=engine_sqrt_price_at_tick(MIN_TICK),
                         liquidity=0, tick_current=MIN_TICK - 1, tick_spacing=1)
        assert pool.tick_current == MIN_TICK - 1
        with pytest.raises(DomainRangeError):
            PoolState(token_mint_a=MINT_A, token_mint_b=MINT_Z, sqrt_price=Q64,
                      liquidity=0, tick_current=MIN_TICK - 2, tick_spacing=1)

    def test_model_validate_keeps_typed_errors(self):
        fields = dict(token_mint_a=MINT_A, token_mint_b=MINT_A, sqrt_price=Q64,
                      liquidity=0, tick_current=0, tick_spacing=60)
        with pytest.raises(IdentityError):
            PoolState.model_validate(fields)
        with pytest.raises(DomainRangeError):
            PoolState.model_validate({**fields, "token_mint_b": MINT_Z, "sqrt_price": 0})
        pool = PoolState.model_validate({**fields, "token_mint_b": str(MINT_Z)})
        assert pool.token_mint_b == MINT_Z

    def test_bad_type(self):
        with pytest.raises(ValidationError):
            PoolState(token_mint_a=MINT_A, token_mint_b=MINT_Z, sqrt_price="abc",
                      liquidity=0, tick_current=0, tick_spacing=60)

    def test_frozen(self):
        pool = PoolState(token_mint_a=MINT_A, token_mint_b=MINT_Z, sqrt_price=Q64,
                         liquidity=0, tick_current=0, tick_spacing=60)
        with pytest.raises(ValidationError):
            pool.liquidity = 5

    def test_with_fee_tier(self):
        pool = PoolState(token_mint_a=str(MINT_A), token_mint_b=str(MINT_Z), sqrt_price=Q64,
                         liquidity=0, tick_current=0, tick_spacing=60)
        tier = FeeTierState(fee_rate=3000, tick_spacing=60)
        assert pool.with_fee_tier(tier).fee_rate == 3000
        assert pool.fee_rate is None
        with pytest.raises(DomainRangeError):
            pool.with_fee_tier(FeeTierState(fee_rate=500, tick_spacing=10))

    def test_is_in_range(self):
        pool = PoolState(token_mint_a=MINT_A, token_mint_b=MINT_Z, sqrt_price=Q64,
                         liquidity=0, tick_current=0, tick_spacing=60)
        assert pool.is_in_range(-60, 60)
        assert pool.is_in_range(0, 60)
        assert not pool.is_in_range(-60, 0)


class TestFeeTierState:

    def test_calculate_fee(self):
        tier = FeeTierState.from_dict({"feeRate": 3000, "tickSpacing": 60})
        assert tier.calculate_fee(1_000_000) == 3000
        assert tier.calculate_fee(333) == 0

    def test_invalid(self):
        with pytest.raises(DomainRangeError):
            FeeTierState(fee_rate=1_000_001, tick_spacing=60)
        with pytest.raises(DomainRangeError):
            FeeTierState(fee_rate=3000, tick_spacing=0)


class TestTickArrayState:

    def _array(self, start=-480):
        ticks = [TickState() for _ in range(8)]
        ticks[6] = TickState(liquidity_net=-5, liquidity_gross=5, initialized=True)
        return TickArrayState(pool=POOL, start_tick_index=start, tick_spacing=60, ticks=tuple(ticks))

    def test_get_tick(self):
        array = self._array()
        assert array.get_tick(-120).liquidity_net == -5
        assert array.get_tick(-480).initialized is False
        assert array.initialized_ticks() == (-120,)

    def test_tick_not_in_array(self):
        with pytest.raises(NotAvailableError):
            self._array().get_tick(0)

    def test_misaligned_tick(self):
        with pytest.raises(DomainRangeError):
            self._array().get_tick(-100)

    def test_misaligned_start(self):
        with pytest.raises(DomainRangeError):
            self._array(start=-120)

    def test_wrong_tick_count(self):
        with pytest.raises(DomainRangeError):
            TickArrayState(pool=POOL, start_tick_index=0, tick_spacing=60, ticks=(TickState(),))


class TestPositionState:

    def test_token_amounts(self):
        position = PositionState.from_dict({
            "pool": str(POOL),
            "owner": str(OWNER),
            "liquidity": str(10 ** 12),
            "tickLower": -120,
            "tickUpper": 120,
        })
        expected = get_amounts_for_position(Q64, -120, 120, 10 ** 12, 60, Rounding.DOWN)
        assert position.token_amounts(Q64, Rounding.DOWN) == expected

    def test_inverted_range(self):
        with pytest.raises(DomainRangeError):
            PositionState(pool=POOL, owner=OWNER, liquidity=1, tick_lower=120, tick_upper=-120)


class TestLayouts:
    """계정 바이트 디코딩"""

    def test_layout_sizes(self):
        assert POOL_LAYOUT.sizeof() == 384
        assert TICK_ARRAY_LAYOUT.sizeof() == 816
        assert POSITION_LAYOUT.sizeof() == 208
        assert FEE_TIER_LAYOUT.sizeof() == 71

    def test_decode_pool(self):
        data = _account("Pool", POOL_LAYOUT, _pool_fields(tick_current=-120, sqrt_price=Q64 - 10 ** 15))
        pool = decode_pool(data)
        assert pool.tick_current == -120
        assert pool.sqrt_price == Q64 - 10 ** 15
        assert pool.token_mint_a == MINT_A
        assert pool.token_mint_b == MINT_Z
        assert pool.fee_growth_global_b == 7
        assert pool.is_paused is False

    def test_decode_pool_at_bottom_of_domain(self):
        data = _account("Pool", POOL_LAYOUT, _pool_fields(
            sqrt_price=engine_sqrt_price_at_tick(MIN_TICK), tick_current=MIN_TICK - 1, tick_spacing=1))
        pool = decode_pool(data)
        assert pool.tick_current == MIN_TICK - 1
        assert pool.sqrt_price == 4295048017

    def test_decode_pool_reversed_mints(self):
        data = _account("Pool", POOL_LAYOUT, _pool_fields(token_mint_a=MINT_Z, token_mint_b=MINT_A))
        with pytest.raises(OrderingError):
            decode_pool(data)

    def test_decode_tick_array(self):
        ticks = [_tick_fields() for _ in range(8)]
        ticks[6] = _tick_fields(liquidity_net=-(10 ** 20), liquidity_gross=10 ** 20, initialized=1)
        fields = dict(pool=POOL, start_tick_index=-480, initialized_bitmap=0b01000000, bump=255, ticks=ticks)
        array = decode_tick_array(_account("TickArray", TICK_ARRAY_LAYOUT, fields), tick_spacing=60)
        assert array.start_tick_index == -480
        assert array.get_tick(-120).liquidity_net == -(10 ** 20)
        assert array.initialized_ticks() == (-120,)

    def test_decode_position(self):
        fields = dict(
            liquidity=10 ** 12,
            fee_growth_inside_a_last=0,
            fee_growth_inside_b_last=0,
            tokens_owed_a=3,
            tokens_owed_b=4,
            tick_lower=-120,
            tick_upper=120,
            bump=250,
            pool=POOL,
            owner=OWNER,
            position_mint=ZERO,
        )
        position = decode_position(_account("Position", POSITION_LAYOUT, fields))
        assert position.owner == OWNER
        assert (position.tick_lower, position.tick_upper) == (-120, 120)
        assert position.tokens_owed_b == 4

    def test_decode_fee_tier(self):
        fields = dict(config=ZERO, fee_rate=500, tick_spacing=10, bump=253)
        tier = decode_fee_tier(_account("FeeTier", FEE_TIER_LAYOUT, fields))
        assert tier.fee_rate == 500
        assert tier.tick_spacing == 10

    def test_empty_account(self):
        """계정이 없으면 추정값 대신 NotAvailableError"""
        with pytest.raises(NotAvailableError):
            decode_pool(b"")

    def test_wrong_size(self):
        data = _account("Pool", POOL_LAYOUT, _pool_fields())
        with pytest.raises(AccountDataError):
            decode_pool(data[:-1])

    def test_wrong_discriminator(self):
        data = _account("Position", POOL_LAYOUT, _pool_fields())
        with pytest.raises(AccountDataError):
            decode_pool(data)
