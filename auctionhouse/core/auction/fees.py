"""
Fees - Settlement fee arithmetic for AuctionHouse.

Manages:
- Fee calculation in basis points (10000 = 100%)
- Proceeds split between seller and fee destination

The fee is always rounded down, so the seller never receives less than
amount - amount * bps / 10000.
"""

from dataclasses import dataclass

from auctionhouse.core.errors import ErrorReason, ValidationError
from auctionhouse.utils.validation import (
    BASIS_POINTS_DENOMINATOR,
    validate_amount,
    validate_fee_basis_points,
)


@dataclass(frozen=True)
class FeeReceipt:
    """Breakdown of a settled auction's proceeds."""
    amount: int
    fee: int
    seller_amount: int
    fee_basis_points: int
    is_fungible: bool = False


def compute_fee(amount: int, fee_basis_points: int) -> int:
    """
    Fee owed on `amount`.

    Args:
        amount: Winning bid amount
        fee_basis_points: Fee rate, in [0, 10000)

    Returns:
        floor(amount * fee_basis_points / 10000)
    """
    valid, err = validate_amount(amount)
    if not valid:
        raise ValidationError(err, reason=ErrorReason.AMOUNT_NOT_POSITIVE)

    valid, err = validate_fee_basis_points(fee_basis_points)
    if not valid:
        raise ValidationError(err, reason=ErrorReason.INVALID_FEE)

    return amount * fee_basis_points // BASIS_POINTS_DENOMINATOR


def split_proceeds(amount: int, fee_basis_points: int, is_fungible: bool = False) -> FeeReceipt:
    """Split a winning bid into fee and seller payout."""
    fee = compute_fee(amount, fee_basis_points)
    return FeeReceipt(
        amount=amount,
        fee=fee,
        seller_amount=amount - fee,
        fee_basis_points=fee_basis_points,
        is_fungible=is_fungible,
    )
