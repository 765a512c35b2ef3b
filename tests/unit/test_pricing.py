"""
Unit tests for USD valuation of bids.

Tests cover:
1. Native vs fungible scaling
2. Truncation
3. Rejection of non-positive prices
4. Reading quotes from a price feed
"""

import pytest

from auctionhouse.core.auction import NATIVE_DECIMALS, quote_usd, read_price
from auctionhouse.core.chain import Chain
from auctionhouse.core.errors import ErrorReason, StaleDataError, ValidationError
from auctionhouse.mocks import MockV3Aggregator

ETHER = 10**18
PRICE = 2000 * 10**8


class TestQuoteUsd:
    """Tests for quote_usd."""

    def test_native_whole_dollars(self):
        """One native coin at $2000 is worth 2000."""
        assert quote_usd(ETHER, PRICE, 8, is_fungible=False) == 2000

    def test_fungible_keeps_token_scale(self):
        """One token (1e18 units) at $2000 is worth 2000e18."""
        assert quote_usd(ETHER, PRICE, 8, is_fungible=True) == 2000 * ETHER

    def test_fractional_native(self):
        assert quote_usd(3 * ETHER // 2, PRICE, 8, is_fungible=False) == 3000

    def test_native_truncates(self):
        """Amounts worth less than a dollar quote as zero."""
        assert quote_usd(10**14, PRICE, 8, is_fungible=False) == 0

    def test_eighteen_decimal_feed(self):
        assert quote_usd(ETHER, 3000 * 10**18, 18, is_fungible=False) == 3000

    def test_native_decimals(self):
        assert NATIVE_DECIMALS == 18

    @pytest.mark.parametrize("price", [0, -1, -PRICE])
    def test_non_positive_price_rejected(self, price):
        with pytest.raises(StaleDataError) as exc:
            quote_usd(ETHER, price, 8, is_fungible=False)
        assert exc.value.reason == ErrorReason.INVALID_PRICE

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            quote_usd(-1, PRICE, 8, is_fungible=True)


class TestReadPrice:
    """Tests for read_price against a deployed feed."""

    @pytest.fixture
    def feed(self):
        chain = Chain(timestamp=1_000)
        admin = chain.create_account()
        feed = chain.deploy(MockV3Aggregator(8, PRICE), deployer=admin)
        return feed, admin

    def test_latest_price(self, feed):
        feed, _ = feed
        assert read_price(feed) == (PRICE, 8)

    def test_updated_price(self, feed):
        feed, admin = feed
        feed.update_answer(3000 * 10**8, sender=admin)
        assert read_price(feed) == (3000 * 10**8, 8)

    def test_zero_answer_rejected(self, feed):
        feed, admin = feed
        feed.update_answer(0, sender=admin)
        with pytest.raises(StaleDataError) as exc:
            read_price(feed)
        assert exc.value.reason == ErrorReason.INVALID_PRICE
