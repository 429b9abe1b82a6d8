"""
Price Resolver.

Derives token prices from a concentrated-liquidity pool's ``sqrtPriceX96``
using integer arithmetic only. Prices are 1e18-scaled: the amount of the
other pool token, in whole units, one whole unit of the priced token buys.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from vault_keeper.chain.models import PoolState
from vault_keeper.core.exceptions import ChainError, PriceError
from vault_keeper.core.logger import get_logger

logger = get_logger(__name__)

PRICE_SCALE = 10**18
Q192 = 2**192


def price_from_sqrt_price(
    sqrt_price_x96: int,
    decimals0: int,
    decimals1: int,
    token0_is_base: bool = True,
) -> int:
    """
    Convert ``sqrtPriceX96`` into a 1e18-scaled price.

    Args:
        sqrt_price_x96: Pool ``slot0().sqrtPriceX96``
        decimals0: Decimals of token0
        decimals1: Decimals of token1
        token0_is_base: Price token0 in token1 when True, token1 in token0 otherwise

    Returns:
        Price scaled by 1e18 (floor)

    Raises:
        PriceError: Non-positive sqrt price, or an inverse of a zero price

    Example:
        >>> price_from_sqrt_price(2**96, 18, 18)
        1000000000000000000
    """
    if sqrt_price_x96 <= 0:
        raise PriceError(f"Invalid sqrtPriceX96: {sqrt_price_x96}")

    numerator = sqrt_price_x96 * sqrt_price_x96 * PRICE_SCALE
    if decimals0 >= decimals1:
        price = numerator * 10 ** (decimals0 - decimals1) // Q192
    else:
        price = numerator // (Q192 * 10 ** (decimals1 - decimals0))

    if token0_is_base:
        return price

    if price == 0:
        raise PriceError("Price rounds to zero; cannot invert")
    return PRICE_SCALE * PRICE_SCALE // price


@dataclass(frozen=True)
class PriceQuote:
    """
    Price of ``token`` in units of ``quote_token``.

    ``fee`` is the priced pool's swap fee in hundredths of a bip.

    ``is_placeholder`` marks a fallback rate used when the pool could not be
    read; callers that need a real bound must check it.
    """
    token: str
    quote_token: Optional[str]
    price: int
    token_decimals: int = 18
    quote_decimals: int = 18
    pool: Optional[str] = None
    fee: int = 0
    is_placeholder: bool = False

    def convert(self, amount: int) -> int:
        """Raw ``token`` amount to raw ``quote_token`` amount (floor)."""
        return (
            amount * self.price * 10**self.quote_decimals
            // (PRICE_SCALE * 10**self.token_decimals)
        )

    @property
    def as_float(self) -> float:
        return self.price / PRICE_SCALE


class PoolReader(Protocol):
    """Anything that can read pool state."""

    async def read_pool(self, pool: str) -> PoolState: ...


class PriceResolver:
    """
    Resolves pool prices, falling back to a flagged placeholder on read failure.

    Example:
        >>> resolver = PriceResolver(reader)
        >>> quote = await resolver.resolve(pool, weth)
        >>> quote.convert(10**18)
    """

    def __init__(self, reader: PoolReader, placeholder_rate: int = PRICE_SCALE):
        self._reader = reader
        self._placeholder_rate = placeholder_rate

    async def resolve(self, pool: str, token: str) -> PriceQuote:
        """
        Price ``token`` against the other token of ``pool``.

        Raises:
            PriceError: ``token`` is not one of the pool's tokens
        """
        try:
            state = await self._reader.read_pool(pool)
        except ChainError as e:
            logger.warning(f"Pool {pool} unreadable, using placeholder price: {e}")
            return self.placeholder(token, pool)

        token_lower = token.lower()
        if token_lower == state.token0.lower():
            is_token0 = True
        elif token_lower == state.token1.lower():
            is_token0 = False
        else:
            raise PriceError(
                f"Token {token} is not in pool {pool}",
                details={"token0": state.token0, "token1": state.token1},
            )

        try:
            price = price_from_sqrt_price(
                state.sqrt_price_x96, state.decimals0, state.decimals1, token0_is_base=is_token0
            )
        except PriceError as e:
            logger.warning(f"Pool {pool} has no usable price, using placeholder: {e}")
            return self.placeholder(token, pool)

        return PriceQuote(
            token=state.token0 if is_token0 else state.token1,
            quote_token=state.token1 if is_token0 else state.token0,
            price=price,
            token_decimals=state.decimals0 if is_token0 else state.decimals1,
            quote_decimals=state.decimals1 if is_token0 else state.decimals0,
            pool=pool,
            fee=state.fee,
        )

    def placeholder(self, token: str, pool: Optional[str] = None) -> PriceQuote:
        return PriceQuote(
            token=token,
            quote_token=None,
            price=self._placeholder_rate,
            pool=pool,
            is_placeholder=True,
        )
