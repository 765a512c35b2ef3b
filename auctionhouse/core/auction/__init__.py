"""
AuctionHouse Auction Module.

This module provides the per-asset auction state machine:
- Bid acceptance with refund of the displaced leader
- Timed, exactly-once settlement
- Fee split in basis points
- USD valuation of bids via a price oracle
"""

from auctionhouse.core.auction.fees import (
    FeeReceipt,
    compute_fee,
    split_proceeds,
)

from auctionhouse.core.auction.pricing import (
    NATIVE_DECIMALS,
    quote_usd,
    read_price,
)

from auctionhouse.core.auction.auction import (
    Auction,
    AuctionState,
    HighestBid,
    validate_auction_parameters,
)

__all__ = [
    # Fees
    "FeeReceipt",
    "compute_fee",
    "split_proceeds",
    # Pricing
    "NATIVE_DECIMALS",
    "quote_usd",
    "read_price",
    # Auction
    "Auction",
    "AuctionState",
    "HighestBid",
    "validate_auction_parameters",
]
