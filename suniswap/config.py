"""
Configuration for the suniswap client library

Two kinds of configuration live here:

- PrecisionConfig: decimal precision handed to every decimal computation.
  Each call builds its own decimal.Context from it, so callers running
  concurrently with different precision needs never share mutable state.
- Settings: network / program id defaults. Loaded from the environment
  (and an optional .env file) only when a caller asks for it.
"""
import logging
import os
from dataclasses import dataclass
from decimal import (
    Context,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    ROUND_HALF_EVEN,
)
from typing import Optional

from dotenv import load_dotenv
from solders.pubkey import Pubkey

from .constants import DEFAULT_NETWORK, PROGRAM_IDS
from .errors import DomainRangeError

logger = logging.getLogger(__name__)

# Q64.64 values reach 29 integer digits; floor must be exact on top of that
MIN_DECIMAL_PRECISION: int = 50
DEFAULT_DECIMAL_PRECISION: int = 80


@dataclass(frozen=True)
class PrecisionConfig:
    """Decimal precision for price conversions"""

    precision: int = DEFAULT_DECIMAL_PRECISION

    def __post_init__(self):
        if isinstance(self.precision, bool) or not isinstance(self.precision, int):
            raise DomainRangeError(f"precision must be an int, got {self.precision!r}")
        if self.precision < MIN_DECIMAL_PRECISION:
            raise DomainRangeError(
                f"precision {self.precision} is below the minimum of {MIN_DECIMAL_PRECISION}"
            )

    def context(self) -> Context:
        """Build a fresh decimal context for a single call"""
        return Context(
            prec=self.precision,
            rounding=ROUND_HALF_EVEN,
            Emin=-999999,
            Emax=999999,
            capitals=1,
            clamp=0,
            flags=[],
            traps=[InvalidOperation, DivisionByZero, Overflow],
        )


DEFAULT_PRECISION = PrecisionConfig()


def resolve_precision(config: Optional[PrecisionConfig]) -> PrecisionConfig:
    """None -> DEFAULT_PRECISION, anything else must be a PrecisionConfig"""
    if config is None:
        return DEFAULT_PRECISION
    if not isinstance(config, PrecisionConfig):
        raise TypeError(f"config must be a PrecisionConfig, got {type(config).__name__}")
    return config


class Settings:
    """Client settings

    Settings are plain values bound to an instance. Nothing is read from the
    environment unless Settings.from_env() is called.
    """

    def __init__(
        self,
        network: str = DEFAULT_NETWORK,
        program_id: Optional[str] = None,
        precision: int = DEFAULT_DECIMAL_PRECISION,
    ):
        if network not in PROGRAM_IDS:
            raise DomainRangeError(
                f"unknown network: {network} (known: {', '.join(sorted(PROGRAM_IDS))})"
            )
        self.network = network
        self.program_id = program_id or PROGRAM_IDS[network]
        try:
            Pubkey.from_string(self.program_id)
        except ValueError as exc:
            raise DomainRangeError(f"invalid program id: {self.program_id}") from exc
        self.precision = precision
        # validates precision eagerly
        self._precision_config = PrecisionConfig(precision)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Load settings from environment variables (and .env if present)

        SUNISWAP_NETWORK            localnet | devnet | mainnet (default devnet)
        SUNISWAP_PROGRAM_ID         overrides the network's program id
        SUNISWAP_DECIMAL_PRECISION  decimal digits for price math (default 80)
        """
        load_dotenv(env_file)
        network = os.getenv("SUNISWAP_NETWORK", DEFAULT_NETWORK)
        program_id = os.getenv("SUNISWAP_PROGRAM_ID") or None
        raw_precision = os.getenv("SUNISWAP_DECIMAL_PRECISION", str(DEFAULT_DECIMAL_PRECISION))
        try:
            precision = int(raw_precision)
        except ValueError as exc:
            raise DomainRangeError(
                f"SUNISWAP_DECIMAL_PRECISION must be an integer, got {raw_precision!r}"
            ) from exc

        logger.debug("Loaded settings: network=%s program_id=%s precision=%d",
                     network, program_id or PROGRAM_IDS.get(network), precision)
        return cls(network=network, program_id=program_id, precision=precision)

    def precision_config(self) -> PrecisionConfig:
        return self._precision_config

    def deriver(self):
        """PdaDeriver bound to this program id"""
        from .pda import PdaDeriver
        return PdaDeriver(self.program_id)

    def __repr__(self) -> str:
        return (f"Settings(network={self.network!r}, program_id={self.program_id!r}, "
                f"precision={self.precision})")
