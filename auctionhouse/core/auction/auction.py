"""
Auction - Sealed-custody English auction for a single unique asset.

Lifecycle:
---------
1. UNINITIALIZED: deployed but inert until initialize() is called once
2. ACTIVE: accepts bids in native value or ledger tokens until end_time
3. AWAITING_SETTLEMENT: deadline passed, end_auction() not yet called
4. ENDED: proceeds and asset moved exactly once; queryable forever

Bidding:
-------
Each accepted bid must strictly exceed the current highest bid. The
displaced leader is refunded in the currency they bid with, whatever the
currency of the new bid. The contract only ever holds the leader's funds
(plus retained fees after settlement).

Ordering:
--------
Every entry point follows checks-effects-interactions: the new leader or
the `ended` flag is recorded before any refund, payout or asset transfer.
A recipient that re-enters during a transfer therefore sees the updated
state and cannot be paid twice.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from auctionhouse.core.auction.fees import FeeReceipt, split_proceeds
from auctionhouse.core.auction.pricing import quote_usd, read_price
from auctionhouse.core.chain import Contract, external
from auctionhouse.core.errors import (
    AuthorizationError,
    ErrorReason,
    InsufficientFundsError,
    TimingError,
    ValidationError,
)
from auctionhouse.core.interfaces import (
    ASSET_RECEIVED_MAGIC,
    IAssetReceiver,
    IAssetRegistry,
    IFungibleLedger,
    IPriceOracle,
)
from auctionhouse.crypto import ZERO_ADDRESS, short
from auctionhouse.utils.logger import get_logger
from auctionhouse.utils.validation import (
    is_zero_address,
    validate_address,
    validate_amount,
    validate_duration,
    validate_fee_basis_points,
)

logger = get_logger("auction")


# =============================================================================
# Enums and Value Types
# =============================================================================


class AuctionState(IntEnum):
    """State of an auction instance."""
    UNINITIALIZED = 0       # Deployed, initialize() not called
    ACTIVE = 1              # Accepting bids
    AWAITING_SETTLEMENT = 2 # Deadline passed, not settled
    ENDED = 3               # Settled


@dataclass(frozen=True)
class HighestBid:
    """
    The current leading bid.

    Attributes:
        bidder: Leader's address (zero address = no bid yet)
        amount: Bid amount in base units of its currency
        is_fungible: True if paid in ledger tokens, False if native
    """
    bidder: str = ZERO_ADDRESS
    amount: int = 0
    is_fungible: bool = False

    @property
    def is_empty(self) -> bool:
        return is_zero_address(self.bidder)


# =============================================================================
# Parameter Validation
# =============================================================================


def validate_auction_parameters(
    asset: str,
    duration: int,
    fee_basis_points: int,
    oracle: str,
) -> None:
    """
    Check creation parameters in the one fixed order used everywhere:
    asset, duration, fee, oracle.

    Raises:
        ValidationError: with a distinct reason for each parameter
    """
    valid, err = validate_address(asset, "asset", allow_zero=False)
    if not valid:
        raise ValidationError(f"Invalid asset contract address: {err}", reason=ErrorReason.INVALID_ASSET)

    valid, err = validate_duration(duration)
    if not valid:
        raise ValidationError(f"Invalid auction duration: {err}", reason=ErrorReason.INVALID_DURATION)

    valid, err = validate_fee_basis_points(fee_basis_points)
    if not valid:
        raise ValidationError(f"Invalid fee percentage: {err}", reason=ErrorReason.INVALID_FEE)

    valid, err = validate_address(oracle, "oracle", allow_zero=False)
    if not valid:
        raise ValidationError(f"Invalid price feed address: {err}", reason=ErrorReason.INVALID_ORACLE)


# =============================================================================
# Auction
# =============================================================================


class Auction(Contract, IAssetReceiver):
    """
    One auction for one asset.

    Attributes:
        asset: Asset registry address
        asset_id: Asset under auction
        seller: Account that created the auction
        end_time: Bidding deadline (chain time)
        fee_basis_points: Fee deducted from the seller's payout
        ledger: Fungible ledger address (zero = fungible bids disabled)
        oracle: Price oracle address
        fee_recipient: Where the fee goes (zero = retained by this auction)
        highest_bid: Current leader
        ended: Whether settlement happened
        retained_fees: Fees kept by the auction, per currency
        settlement: Proceeds breakdown once settled with a winner
    """

    def __init__(self):
        super().__init__()
        self.initialized = False
        self.asset = ZERO_ADDRESS
        self.asset_id = 0
        self.seller = ZERO_ADDRESS
        self.end_time = 0
        self.fee_basis_points = 0
        self.ledger = ZERO_ADDRESS
        self.oracle = ZERO_ADDRESS
        self.fee_recipient = ZERO_ADDRESS
        self.highest_bid = HighestBid()
        self.ended = False
        self.bid_count = 0
        self.retained_fees = {"native": 0, "fungible": 0}
        self.settlement: Optional[FeeReceipt] = None

    # =========================================================================
    # Initialization
    # =========================================================================

    @external
    def initialize(
        self,
        asset: str,
        asset_id: int,
        seller: str,
        duration: int,
        ledger_token: str,
        oracle: str,
        fee_basis_points: int,
        fee_recipient: str = ZERO_ADDRESS,
    ) -> None:
        """
        One-time setup.

        Args:
            asset: Asset registry address
            asset_id: Asset under auction
            seller: Account receiving the proceeds
            duration: Seconds from now until bidding closes
            ledger_token: Fungible ledger address, zero to disable token bids
            oracle: Price oracle address
            fee_basis_points: Fee rate in [0, 10000)
            fee_recipient: Fee destination, zero to retain the fee here
        """
        if self.initialized:
            raise ValidationError("Auction already initialized", reason=ErrorReason.ALREADY_INITIALIZED)

        validate_auction_parameters(asset, duration, fee_basis_points, oracle)

        valid, err = validate_address(seller, "seller", allow_zero=False)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_SELLER)

        for name, address in (("ledger_token", ledger_token), ("fee_recipient", fee_recipient)):
            valid, err = validate_address(address, name)
            if not valid:
                raise ValidationError(err, reason=ErrorReason.INVALID_ADDRESS)

        valid, err = validate_amount(asset_id, "asset_id")
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_ASSET)

        self.initialized = True
        self.asset = asset
        self.asset_id = asset_id
        self.seller = seller
        self.end_time = self.now + duration
        self.fee_basis_points = fee_basis_points
        self.ledger = ledger_token
        self.oracle = oracle
        self.fee_recipient = fee_recipient

        logger.info(
            f"Auction {short(self.address)} initialized: asset={short(asset)}#{asset_id}, "
            f"seller={short(seller)}, ends at {self.end_time}, fee={fee_basis_points}bps"
        )

    # =========================================================================
    # Bidding
    # =========================================================================

    @external(payable=True)
    def bid_native(self) -> None:
        """Bid the native value attached to the call."""
        self._place_bid(self.msg.sender, self.msg.value, is_fungible=False)

    @external
    def bid_fungible(self, amount: int) -> None:
        """
        Bid `amount` ledger tokens.

        The caller must have approved this auction for at least `amount`
        on the ledger. Ledger shortfall errors propagate unchanged.
        """
        self._place_bid(self.msg.sender, amount, is_fungible=True)

    def _check_bid(self, bidder: str, amount: int, is_fungible: bool) -> None:
        self._require_initialized()

        if self.ended or self.now >= self.end_time:
            raise TimingError("Auction bidding has closed", reason=ErrorReason.BIDDING_CLOSED)

        if bidder == self.seller:
            raise AuthorizationError("Seller cannot bid", reason=ErrorReason.SELLER_CANNOT_BID)

        valid, err = validate_amount(amount)
        if not valid or amount == 0:
            raise ValidationError(
                f"Bid amount must be positive{': ' + err if err else ''}",
                reason=ErrorReason.AMOUNT_NOT_POSITIVE,
            )

        if amount <= self.highest_bid.amount:
            raise ValidationError(
                f"Bid must exceed current highest bid: {amount} <= {self.highest_bid.amount}",
                reason=ErrorReason.BID_TOO_LOW,
            )

        if is_fungible and is_zero_address(self.ledger):
            raise ValidationError("Fungible bidding is disabled", reason=ErrorReason.FUNGIBLE_DISABLED)

    def _place_bid(self, bidder: str, amount: int, is_fungible: bool) -> None:
        # Checks
        self._check_bid(bidder, amount, is_fungible)

        # Effects
        previous = self.highest_bid
        self.highest_bid = HighestBid(bidder=bidder, amount=amount, is_fungible=is_fungible)
        self.bid_count += 1
        self._emit("NewBid", bidder=bidder, amount=amount, is_fungible=is_fungible)

        # Interactions
        if is_fungible:
            self._ledger().transfer_from(bidder, self.address, amount)

        if not previous.is_empty:
            self._pay(previous.bidder, previous.amount, previous.is_fungible)
            logger.debug(f"Refunded {previous.amount} to {short(previous.bidder)} (fungible={previous.is_fungible})")

        logger.info(f"New bid on {short(self.address)}: {short(bidder)} bid {amount} (fungible={is_fungible})")

    # =========================================================================
    # Settlement
    # =========================================================================

    @external
    def end_auction(self) -> None:
        """
        Settle the auction. Callable by anyone once the deadline has passed;
        calls after the first settlement are no-ops.
        """
        self._require_initialized()

        if self.now < self.end_time:
            raise TimingError(
                f"Auction not yet ended: {self.end_time - self.now}s remaining",
                reason=ErrorReason.AUCTION_NOT_ENDED,
            )

        if self.ended:
            logger.debug(f"Auction {short(self.address)} already settled, ignoring end_auction")
            return

        self.ended = True
        winner = self.highest_bid

        if winner.is_empty:
            self._emit("AuctionEnded", winner=ZERO_ADDRESS, amount=0)
            self._registry().transfer_from(self.address, self.seller, self.asset_id)
            logger.info(f"Auction {short(self.address)} ended without bids, asset returned to seller")
            return

        receipt = split_proceeds(winner.amount, self.fee_basis_points, winner.is_fungible)
        self.settlement = receipt
        forward_fee = receipt.fee > 0 and not is_zero_address(self.fee_recipient)
        if receipt.fee > 0 and not forward_fee:
            self.retained_fees["fungible" if winner.is_fungible else "native"] += receipt.fee

        self._emit("AuctionEnded", winner=winner.bidder, amount=winner.amount)
        if forward_fee:
            self._emit(
                "FeeCollected",
                recipient=self.fee_recipient,
                amount=receipt.fee,
                is_fungible=winner.is_fungible,
            )

        self._pay(self.seller, receipt.seller_amount, winner.is_fungible)
        if forward_fee:
            self._pay(self.fee_recipient, receipt.fee, winner.is_fungible)
        self._registry().transfer_from(self.address, winner.bidder, self.asset_id)

        logger.info(
            f"Auction {short(self.address)} won by {short(winner.bidder)} for {winner.amount}: "
            f"seller={receipt.seller_amount}, fee={receipt.fee}"
        )

    # =========================================================================
    # Custody
    # =========================================================================

    @external
    def on_asset_received(self, operator: str, from_: str, asset_id: int, data: bytes = b"") -> bytes:
        """Accept custody of this auction's own asset only."""
        if not self.initialized or self.ended:
            raise ValidationError("Auction cannot take custody now", reason=ErrorReason.UNSAFE_RECIPIENT)

        if self.msg.sender != self.asset or asset_id != self.asset_id:
            raise ValidationError(
                f"Unexpected asset {short(self.msg.sender)}#{asset_id}",
                reason=ErrorReason.UNSAFE_RECIPIENT,
            )

        logger.debug(f"Auction {short(self.address)} received asset #{asset_id} from {short(from_)}")
        return ASSET_RECEIVED_MAGIC

    def has_custody(self) -> bool:
        """Whether the asset currently sits in this auction."""
        return self._registry().owner_of(self.asset_id) == self.address

    # =========================================================================
    # Queries
    # =========================================================================

    def get_bid_usd_value(self, amount: int, is_fungible: bool) -> int:
        """USD value of a hypothetical bid at the oracle's latest price."""
        price, decimals = read_price(self._oracle())
        return quote_usd(amount, price, decimals, is_fungible)

    def time_left(self) -> int:
        return max(0, self.end_time - self.now)

    def state(self) -> AuctionState:
        if not self.initialized:
            return AuctionState.UNINITIALIZED
        if self.ended:
            return AuctionState.ENDED
        if self.now >= self.end_time:
            return AuctionState.AWAITING_SETTLEMENT
        return AuctionState.ACTIVE

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise ValidationError("Auction not initialized", reason=ErrorReason.NOT_INITIALIZED)

    def _registry(self) -> IAssetRegistry:
        return self._require_chain().at(self.asset)

    def _ledger(self) -> IFungibleLedger:
        return self._require_chain().at(self.ledger)

    def _oracle(self) -> IPriceOracle:
        return self._require_chain().at(self.oracle)

    def _pay(self, to: str, amount: int, is_fungible: bool) -> None:
        """Send `amount` in the given currency."""
        if amount == 0:
            return
        if is_fungible:
            if not self._ledger().transfer(to, amount):
                raise InsufficientFundsError(
                    f"Ledger refused transfer of {amount} to {short(to)}",
                    reason=ErrorReason.INSUFFICIENT_BALANCE,
                )
        else:
            self._send_native(to, amount)

    def stats(self) -> dict:
        """Get auction statistics."""
        return {
            "state": self.state().name,
            "seller": self.seller,
            "asset": self.asset,
            "asset_id": self.asset_id,
            "end_time": self.end_time,
            "time_left": self.time_left(),
            "bid_count": self.bid_count,
            "highest_bidder": self.highest_bid.bidder,
            "highest_amount": self.highest_bid.amount,
            "highest_is_fungible": self.highest_bid.is_fungible,
            "fee_basis_points": self.fee_basis_points,
            "retained_fees": dict(self.retained_fees),
        }
