"""
Pricing - USD valuation of bids from an oracle quote.

The two currencies are valued differently:

- Native bids are collapsed to whole dollars:
      usd = amount * price // 10**(decimals + NATIVE_DECIMALS)
- Fungible bids keep the token's minimal-unit scale:
      usd = amount * price // 10**decimals

With price = 2000e8 and decimals = 8, a native bid of 1e18 is worth 2000
while a fungible bid of 1e18 is worth 2000e18. Consumers depend on this
asymmetry.
"""

from typing import Tuple

from auctionhouse.core.errors import ErrorReason, StaleDataError, ValidationError
from auctionhouse.core.interfaces import IPriceOracle
from auctionhouse.utils.validation import validate_amount

# Base units per whole native coin (10**18)
NATIVE_DECIMALS = 18


def read_price(oracle: IPriceOracle) -> Tuple[int, int]:
    """
    Latest (price, decimals) from an oracle.

    Raises:
        StaleDataError: if the oracle reports a non-positive price
    """
    round_data = oracle.latest_round_data()
    if round_data.answer <= 0:
        raise StaleDataError(
            f"Invalid price data: {round_data.answer} (round {round_data.round_id})",
            reason=ErrorReason.INVALID_PRICE,
        )
    return round_data.answer, oracle.decimals()


def quote_usd(amount: int, price: int, decimals: int, is_fungible: bool) -> int:
    """
    USD value of a bid.

    Args:
        amount: Bid amount in base units
        price: Oracle answer (must be positive)
        decimals: Oracle decimal scale
        is_fungible: True for ledger-token bids, False for native bids

    Returns:
        USD value (see module docstring for scaling)
    """
    valid, err = validate_amount(amount)
    if not valid:
        raise ValidationError(err, reason=ErrorReason.AMOUNT_NOT_POSITIVE)

    if price <= 0:
        raise StaleDataError(f"Invalid price data: {price}", reason=ErrorReason.INVALID_PRICE)

    if is_fungible:
        return amount * price // 10**decimals
    return amount * price // 10**(decimals + NATIVE_DECIMALS)
