"""Typed errors raised by the suniswap numerics and addressing layer"""

import builtins


class SuniswapError(Exception):
    """Base exception for all suniswap errors"""
    pass


class DomainRangeError(SuniswapError, ValueError):
    """Tick, price, liquidity or amount outside protocol bounds"""
    pass


# alias for callers that match on "RangeError"
RangeError = DomainRangeError


class OverflowError(SuniswapError, builtins.OverflowError):
    """Intermediate or final value does not fit its fixed width"""
    pass


class RoundingModeError(SuniswapError, ValueError):
    """Caller omitted a required rounding direction"""
    pass


class IdentityError(SuniswapError, ValueError):
    """Two distinct-role identifiers were supplied equal (e.g. mint A == mint B)"""
    pass


class OrderingError(SuniswapError, ValueError):
    """Identifiers supplied out of canonical order where pre-ordering is required"""
    pass


class NotAvailableError(SuniswapError, LookupError):
    """A record needed to seed a computation is absent"""
    pass


class AccountDataError(SuniswapError, ValueError):
    """Raw account bytes do not match the expected layout"""
    pass
