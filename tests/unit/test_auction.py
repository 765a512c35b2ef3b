"""
Unit tests for the auction state machine.

Tests cover:
1. One-time initialization and parameter validation order
2. Bid acceptance, ordering and refunds in both currencies
3. Timing of bids and settlement
4. Settlement payouts, fee routing and exactly-once semantics
5. Asset custody
6. USD valuation
"""

import pytest

from auctionhouse.core.auction import Auction, AuctionState, HighestBid
from auctionhouse.core.errors import (
    AuthorizationError,
    ErrorReason,
    InsufficientFundsError,
    StaleDataError,
    TimingError,
    ValidationError,
)
from auctionhouse.crypto import ZERO_ADDRESS

ETHER = 10**18
DURATION = 3600


@pytest.fixture
def bare_auction(chain, seller):
    """Deployed directly, not initialized."""
    return chain.deploy(Auction(), deployer=seller)


def list_asset(chain, factory, nft, seller, ledger, oracle, fee_bps=100):
    """Mint a fresh asset and list it through the factory."""
    asset_id = nft.mint(seller, "", sender=seller)
    nft.approve(factory.address, asset_id, sender=seller)
    address = factory.create_auction(
        nft.address, asset_id, DURATION, ledger, oracle, fee_bps, sender=seller,
    )
    return chain.at(address)


# =============================================================================
# Initialization
# =============================================================================

class TestInitialization:
    """Tests for initialize()."""

    def test_fresh_auction_is_inert(self, bare_auction, alice):
        assert bare_auction.state() == AuctionState.UNINITIALIZED

        with pytest.raises(ValidationError) as exc:
            bare_auction.bid_native(sender=alice, value=ETHER)
        assert exc.value.reason == ErrorReason.NOT_INITIALIZED

        with pytest.raises(ValidationError) as exc:
            bare_auction.end_auction(sender=alice)
        assert exc.value.reason == ErrorReason.NOT_INITIALIZED

    def test_initialize_sets_fields(self, chain, bare_auction, nft, token, price_feed, seller):
        bare_auction.initialize(
            nft.address, 7, seller, DURATION, token.address, price_feed.address, 250, sender=seller,
        )
        assert bare_auction.initialized
        assert bare_auction.asset == nft.address
        assert bare_auction.asset_id == 7
        assert bare_auction.seller == seller
        assert bare_auction.end_time == chain.now + DURATION
        assert bare_auction.fee_basis_points == 250
        assert bare_auction.fee_recipient == ZERO_ADDRESS
        assert bare_auction.highest_bid == HighestBid()
        assert bare_auction.state() == AuctionState.ACTIVE

    def test_initialize_only_once(self, auction, nft, token, price_feed, alice):
        with pytest.raises(ValidationError) as exc:
            auction.initialize(
                nft.address, 0, alice, DURATION, token.address, price_feed.address, 0, sender=alice,
            )
        assert exc.value.reason == ErrorReason.ALREADY_INITIALIZED

    @pytest.mark.parametrize(
        "overrides, reason",
        [
            # Every case also breaks every later parameter
            ({"asset": ZERO_ADDRESS, "duration": 0, "fee": 10_000, "oracle": ZERO_ADDRESS,
              "seller": ZERO_ADDRESS}, ErrorReason.INVALID_ASSET),
            ({"duration": 0, "fee": 10_000, "oracle": ZERO_ADDRESS,
              "seller": ZERO_ADDRESS}, ErrorReason.INVALID_DURATION),
            ({"fee": 10_000, "oracle": ZERO_ADDRESS, "seller": ZERO_ADDRESS}, ErrorReason.INVALID_FEE),
            ({"oracle": ZERO_ADDRESS, "seller": ZERO_ADDRESS}, ErrorReason.INVALID_ORACLE),
            ({"seller": ZERO_ADDRESS}, ErrorReason.INVALID_SELLER),
            ({"asset": "0x1234"}, ErrorReason.INVALID_ASSET),
        ],
    )
    def test_validation_order(self, bare_auction, nft, token, price_feed, seller, overrides, reason):
        """Parameters are checked as asset, duration, fee, oracle, seller."""
        params = {
            "asset": nft.address,
            "duration": DURATION,
            "fee": 100,
            "oracle": price_feed.address,
            "seller": seller,
        }
        params.update(overrides)

        with pytest.raises(ValidationError) as exc:
            bare_auction.initialize(
                params["asset"], 0, params["seller"], params["duration"],
                token.address, params["oracle"], params["fee"], sender=seller,
            )
        assert exc.value.reason == reason
        assert not bare_auction.initialized


# =============================================================================
# Bidding
# =============================================================================

class TestBidding:
    """Tests for bid_native() and bid_fungible()."""

    def test_first_native_bid(self, chain, auction, alice):
        auction.bid_native(sender=alice, value=ETHER)

        assert auction.highest_bid == HighestBid(bidder=alice, amount=ETHER, is_fungible=False)
        assert auction.balance == ETHER
        assert auction.bid_count == 1

        event = chain.last_event("NewBid", emitter=auction.address)
        assert event.args == {"bidder": alice, "amount": ETHER, "is_fungible": False}

    def test_outbid_refunds_native(self, chain, auction, alice, bob):
        auction.bid_native(sender=alice, value=ETHER)
        auction.bid_native(sender=bob, value=2 * ETHER)

        assert auction.highest_bid.bidder == bob
        assert auction.balance == 2 * ETHER
        assert chain.balance_of(alice) == 100 * ETHER
        assert chain.balance_of(bob) == 98 * ETHER

    def test_fungible_bid_pulls_tokens(self, auction, token, alice, fund_tokens):
        fund_tokens(alice, auction.address, 5 * ETHER)
        auction.bid_fungible(2 * ETHER, sender=alice)

        assert auction.highest_bid == HighestBid(bidder=alice, amount=2 * ETHER, is_fungible=True)
        assert token.balance_of(auction.address) == 2 * ETHER
        assert token.balance_of(alice) == 3 * ETHER
        assert token.allowance(alice, auction.address) == 3 * ETHER

    def test_refund_in_displaced_currency(self, chain, auction, token, alice, bob, fund_tokens):
        """The outbid leader is refunded in the currency they bid with."""
        auction.bid_native(sender=alice, value=ETHER)

        fund_tokens(bob, auction.address, 2 * ETHER)
        auction.bid_fungible(2 * ETHER, sender=bob)
        assert chain.balance_of(alice) == 100 * ETHER
        assert auction.balance == 0
        assert token.balance_of(auction.address) == 2 * ETHER

        auction.bid_native(sender=alice, value=3 * ETHER)
        assert token.balance_of(bob) == 2 * ETHER
        assert token.balance_of(auction.address) == 0
        assert auction.balance == 3 * ETHER

    def test_equal_bid_rejected(self, auction, alice, bob):
        auction.bid_native(sender=alice, value=ETHER)
        with pytest.raises(ValidationError) as exc:
            auction.bid_native(sender=bob, value=ETHER)
        assert exc.value.reason == ErrorReason.BID_TOO_LOW

    def test_lower_bid_rejected_across_currencies(self, auction, alice, bob, fund_tokens):
        """Amounts are compared raw, whatever the currency."""
        auction.bid_native(sender=alice, value=2 * ETHER)
        fund_tokens(bob, auction.address, ETHER)
        with pytest.raises(ValidationError) as exc:
            auction.bid_fungible(ETHER, sender=bob)
        assert exc.value.reason == ErrorReason.BID_TOO_LOW

    def test_rejected_bid_keeps_funds(self, chain, auction, alice, bob):
        auction.bid_native(sender=alice, value=2 * ETHER)
        with pytest.raises(ValidationError):
            auction.bid_native(sender=bob, value=ETHER)
        assert chain.balance_of(bob) == 100 * ETHER
        assert auction.balance == 2 * ETHER

    def test_zero_bid_rejected(self, auction, alice):
        with pytest.raises(ValidationError) as exc:
            auction.bid_native(sender=alice, value=0)
        assert exc.value.reason == ErrorReason.AMOUNT_NOT_POSITIVE

        with pytest.raises(ValidationError) as exc:
            auction.bid_fungible(0, sender=alice)
        assert exc.value.reason == ErrorReason.AMOUNT_NOT_POSITIVE

    def test_seller_cannot_bid(self, chain, auction, seller):
        chain.fund(seller, ETHER)
        with pytest.raises(AuthorizationError) as exc:
            auction.bid_native(sender=seller, value=ETHER)
        assert exc.value.reason == ErrorReason.SELLER_CANNOT_BID

        with pytest.raises(AuthorizationError):
            auction.bid_fungible(ETHER, sender=seller)

    def test_seller_upper_case_alias_rejected(self, chain, auction, token, seller):
        """Addresses are lowercase only, so the seller cannot bid under another spelling."""
        alias = "0x" + seller[2:].upper()

        with pytest.raises(ValidationError) as exc:
            token.mint(alias, 5 * ETHER, sender=seller)
        assert exc.value.reason == ErrorReason.INVALID_ADDRESS

        with pytest.raises(ValidationError) as exc:
            auction.bid_native(sender=alias, value=ETHER)
        assert exc.value.reason == ErrorReason.INVALID_ADDRESS

        with pytest.raises(ValidationError):
            auction.bid_fungible(ETHER, sender=alias)

        assert auction.highest_bid.is_empty
        assert chain.events_named("NewBid", emitter=auction.address) == []

    def test_fungible_without_allowance(self, chain, auction, token, alice):
        """Ledger errors propagate and the bid leaves no trace."""
        token.mint(alice, ETHER, sender=alice)
        with pytest.raises(InsufficientFundsError) as exc:
            auction.bid_fungible(ETHER, sender=alice)

        assert exc.value.reason == ErrorReason.INSUFFICIENT_ALLOWANCE
        assert auction.highest_bid.is_empty
        assert auction.bid_count == 0
        assert chain.events_named("NewBid") == []

    def test_fungible_without_balance(self, auction, token, alice):
        token.approve(auction.address, ETHER, sender=alice)
        with pytest.raises(InsufficientFundsError) as exc:
            auction.bid_fungible(ETHER, sender=alice)
        assert exc.value.reason == ErrorReason.INSUFFICIENT_BALANCE

    def test_fungible_disabled(self, chain, factory, nft, price_feed, seller, alice):
        native_only = list_asset(chain, factory, nft, seller, ZERO_ADDRESS, price_feed.address)
        with pytest.raises(ValidationError) as exc:
            native_only.bid_fungible(ETHER, sender=alice)
        assert exc.value.reason == ErrorReason.FUNGIBLE_DISABLED

        native_only.bid_native(sender=alice, value=ETHER)
        assert native_only.highest_bid.bidder == alice


# =============================================================================
# Timing
# =============================================================================

class TestTiming:
    """Tests for the bidding window."""

    def test_bid_just_before_deadline(self, chain, auction, alice):
        chain.advance_time(DURATION - 1)
        auction.bid_native(sender=alice, value=ETHER)
        assert auction.time_left() == 1

    def test_bid_at_deadline_rejected(self, chain, auction, alice):
        chain.advance_time(DURATION)
        with pytest.raises(TimingError) as exc:
            auction.bid_native(sender=alice, value=ETHER)
        assert exc.value.reason == ErrorReason.BIDDING_CLOSED

    def test_end_before_deadline_rejected(self, chain, auction, alice):
        chain.advance_time(DURATION - 1)
        with pytest.raises(TimingError) as exc:
            auction.end_auction(sender=alice)
        assert exc.value.reason == ErrorReason.AUCTION_NOT_ENDED

    def test_state_transitions(self, chain, auction, alice):
        assert auction.state() == AuctionState.ACTIVE
        assert auction.time_left() == DURATION

        chain.advance_time(DURATION)
        assert auction.state() == AuctionState.AWAITING_SETTLEMENT
        assert auction.time_left() == 0

        auction.end_auction(sender=alice)
        assert auction.state() == AuctionState.ENDED


# =============================================================================
# Settlement
# =============================================================================

class TestSettlement:
    """Tests for end_auction()."""

    def test_no_bids_returns_asset(self, chain, auction, nft, seller, asset_id, bob):
        chain.advance_time(DURATION)
        auction.end_auction(sender=bob)

        assert auction.ended
        assert nft.owner_of(asset_id) == seller
        event = chain.last_event("AuctionEnded", emitter=auction.address)
        assert event.args == {"winner": ZERO_ADDRESS, "amount": 0}

    def test_native_winner(self, chain, auction, nft, seller, asset_id, alice):
        auction.bid_native(sender=alice, value=10 * ETHER)
        chain.advance_time(DURATION)
        auction.end_auction(sender=alice)

        assert nft.owner_of(asset_id) == alice
        assert chain.balance_of(seller) == 10 * ETHER - ETHER // 10
        assert auction.balance == ETHER // 10
        assert auction.retained_fees == {"native": ETHER // 10, "fungible": 0}
        assert auction.settlement.fee == ETHER // 10

        event = chain.last_event("AuctionEnded", emitter=auction.address)
        assert event.args == {"winner": alice, "amount": 10 * ETHER}
        assert chain.events_named("FeeCollected") == []

    def test_fungible_winner(self, chain, auction, nft, token, seller, asset_id, bob, fund_tokens):
        fund_tokens(bob, auction.address, 10 * ETHER)
        auction.bid_fungible(10 * ETHER, sender=bob)
        chain.advance_time(DURATION)
        auction.end_auction(sender=bob)

        assert nft.owner_of(asset_id) == bob
        assert token.balance_of(seller) == 10 * ETHER - ETHER // 10
        assert token.balance_of(auction.address) == ETHER // 10
        assert auction.retained_fees == {"native": 0, "fungible": ETHER // 10}

    def test_forwarded_fee(self, chain, factory, nft, token, price_feed, seller, alice):
        treasury = chain.create_account()
        factory.set_fee_recipient(treasury, sender=seller)
        auction = list_asset(chain, factory, nft, seller, token.address, price_feed.address)

        auction.bid_native(sender=alice, value=10 * ETHER)
        chain.advance_time(DURATION)
        auction.end_auction(sender=alice)

        assert chain.balance_of(treasury) == ETHER // 10
        assert chain.balance_of(seller) == 10 * ETHER - ETHER // 10
        assert auction.balance == 0
        assert auction.retained_fees == {"native": 0, "fungible": 0}

        event = chain.last_event("FeeCollected", emitter=auction.address)
        assert event.args == {"recipient": treasury, "amount": ETHER // 10, "is_fungible": False}

    def test_zero_fee(self, chain, factory, nft, token, price_feed, seller, alice):
        auction = list_asset(chain, factory, nft, seller, token.address, price_feed.address, fee_bps=0)
        auction.bid_native(sender=alice, value=ETHER)
        chain.advance_time(DURATION)
        auction.end_auction(sender=alice)

        assert chain.balance_of(seller) == ETHER
        assert auction.balance == 0

    def test_second_end_is_noop(self, chain, auction, seller, alice):
        auction.bid_native(sender=alice, value=ETHER)
        chain.advance_time(DURATION)
        auction.end_auction(sender=alice)

        events_before = len(chain.events)
        seller_balance = chain.balance_of(seller)

        auction.end_auction(sender=alice)

        assert len(chain.events) == events_before
        assert chain.balance_of(seller) == seller_balance

    def test_bid_after_settlement_rejected(self, chain, auction, alice):
        chain.advance_time(DURATION)
        auction.end_auction(sender=alice)
        with pytest.raises(TimingError) as exc:
            auction.bid_native(sender=alice, value=ETHER)
        assert exc.value.reason == ErrorReason.BIDDING_CLOSED

    def test_anyone_can_settle(self, chain, auction, alice):
        stranger = chain.create_account()
        auction.bid_native(sender=alice, value=ETHER)
        chain.advance_time(DURATION)
        auction.end_auction(sender=stranger)
        assert auction.ended


# =============================================================================
# Custody
# =============================================================================

class TestCustody:
    """Tests for asset custody."""

    def test_auction_holds_asset(self, auction, nft, asset_id):
        assert auction.has_custody()
        assert nft.owner_of(asset_id) == auction.address

    def test_direct_hook_call_rejected(self, auction, alice, asset_id):
        """Only the configured registry may announce a transfer."""
        with pytest.raises(ValidationError) as exc:
            auction.on_asset_received(alice, alice, asset_id, b"", sender=alice)
        assert exc.value.reason == ErrorReason.UNSAFE_RECIPIENT

    def test_other_asset_rejected(self, auction, nft, seller):
        other_id = nft.mint(seller, "", sender=seller)
        with pytest.raises(ValidationError) as exc:
            nft.safe_transfer_from(seller, auction.address, other_id, sender=seller)
        assert exc.value.reason == ErrorReason.UNSAFE_RECIPIENT
        assert nft.owner_of(other_id) == seller


# =============================================================================
# Valuation and Stats
# =============================================================================

class TestValuation:
    """Tests for get_bid_usd_value() and stats()."""

    def test_usd_value(self, auction):
        assert auction.get_bid_usd_value(ETHER, False) == 2000
        assert auction.get_bid_usd_value(ETHER, True) == 2000 * ETHER

    def test_usd_value_follows_feed(self, auction, price_feed, seller):
        price_feed.update_answer(3000 * 10**8, sender=seller)
        assert auction.get_bid_usd_value(ETHER, False) == 3000

    def test_invalid_price(self, auction, price_feed, seller):
        price_feed.update_answer(-1, sender=seller)
        with pytest.raises(StaleDataError) as exc:
            auction.get_bid_usd_value(ETHER, False)
        assert exc.value.reason == ErrorReason.INVALID_PRICE

    def test_stats(self, auction, seller, alice):
        auction.bid_native(sender=alice, value=ETHER)
        stats = auction.stats()
        assert stats["state"] == "ACTIVE"
        assert stats["seller"] == seller
        assert stats["bid_count"] == 1
        assert stats["highest_bidder"] == alice
        assert stats["highest_amount"] == ETHER
        assert stats["fee_basis_points"] == 100
