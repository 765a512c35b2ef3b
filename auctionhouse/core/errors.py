"""
Error taxonomy for AuctionHouse.

Every failure raised by an auction, the factory or a collaborator is an
AuctionError subclass carrying a stable ErrorReason. Callers branch on
the class and the reason, never on message text.

A raised error aborts the whole call frame: the chain restores every
balance, event and contract field the frame touched.
"""

from enum import Enum
from typing import Optional


class ErrorReason(str, Enum):
    """Stable reason codes."""

    # Construction / parameters
    INVALID_ASSET = "invalid_asset"
    INVALID_DURATION = "invalid_duration"
    INVALID_FEE = "invalid_fee"
    INVALID_ORACLE = "invalid_oracle"
    INVALID_SELLER = "invalid_seller"
    INVALID_TEMPLATE = "invalid_template"
    INVALID_ADDRESS = "invalid_address"
    INVALID_PAGE = "invalid_page"
    INVALID_CONFIG = "invalid_config"
    ALREADY_INITIALIZED = "already_initialized"
    NOT_INITIALIZED = "not_initialized"
    NOT_PAYABLE = "not_payable"
    NONEXISTENT_TOKEN = "nonexistent_token"
    UNSAFE_RECIPIENT = "unsafe_recipient"

    # Bidding
    AMOUNT_NOT_POSITIVE = "amount_not_positive"
    BID_TOO_LOW = "bid_too_low"
    FUNGIBLE_DISABLED = "fungible_disabled"

    # Authorization
    SELLER_CANNOT_BID = "seller_cannot_bid"
    INSUFFICIENT_APPROVAL = "insufficient_approval"
    NOT_OWNER = "not_owner"

    # Funds
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INSUFFICIENT_ALLOWANCE = "insufficient_allowance"

    # Oracle
    INVALID_PRICE = "invalid_price"
    UNKNOWN_ROUND = "unknown_round"

    # Timing
    AUCTION_NOT_ENDED = "auction_not_ended"
    BIDDING_CLOSED = "bidding_closed"


class AuctionError(Exception):
    """Base class for all AuctionHouse errors."""

    default_reason: ErrorReason = ErrorReason.INVALID_CONFIG

    def __init__(self, message: str, reason: Optional[ErrorReason] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason if reason is not None else self.default_reason

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reason.value}: {self.message})"


class ValidationError(AuctionError):
    """Bad construction or bid parameters."""
    default_reason = ErrorReason.INVALID_CONFIG


class AuthorizationError(AuctionError):
    """Caller is not allowed to perform the operation."""
    default_reason = ErrorReason.NOT_OWNER


class InsufficientFundsError(AuctionError):
    """Balance or allowance shortfall."""
    default_reason = ErrorReason.INSUFFICIENT_BALANCE


class StaleDataError(AuctionError):
    """Oracle reports unusable price data."""
    default_reason = ErrorReason.INVALID_PRICE


class TimingError(AuctionError):
    """Operation attempted at the wrong point of the auction timeline."""
    default_reason = ErrorReason.AUCTION_NOT_ENDED


__all__ = [
    "ErrorReason",
    "AuctionError",
    "ValidationError",
    "AuthorizationError",
    "InsufficientFundsError",
    "StaleDataError",
    "TimingError",
]
