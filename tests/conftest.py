"""
Shared fixtures: a chain with funded accounts, mock collaborators, an
initialized factory and one listed auction.
"""

import pytest

from auctionhouse.core.auction import Auction
from auctionhouse.core.chain import Chain
from auctionhouse.core.factory import AuctionFactory
from auctionhouse.mocks import MockERC20, MockNFT, MockV3Aggregator

START_TIME = 1_700_000_000
ETHER = 10**18
DURATION = 3600
FEE_BPS = 100                 # 1%
PRICE = 2000 * 10**8          # $2000 with 8 decimals
PRICE_DECIMALS = 8


# =============================================================================
# Accounts
# =============================================================================

@pytest.fixture
def chain():
    return Chain(timestamp=START_TIME)


@pytest.fixture
def seller(chain):
    """Deploys the fixtures, owns the NFT collection and the factory."""
    return chain.create_account()


@pytest.fixture
def alice(chain):
    return chain.create_account(balance=100 * ETHER)


@pytest.fixture
def bob(chain):
    return chain.create_account(balance=100 * ETHER)


# =============================================================================
# Collaborators
# =============================================================================

@pytest.fixture
def nft(chain, seller):
    return chain.deploy(MockNFT(), deployer=seller)


@pytest.fixture
def token(chain, seller):
    return chain.deploy(MockERC20("Mock Token", "MTK"), deployer=seller)


@pytest.fixture
def price_feed(chain, seller):
    return chain.deploy(MockV3Aggregator(PRICE_DECIMALS, PRICE), deployer=seller)


# =============================================================================
# Auctions
# =============================================================================

@pytest.fixture
def template(chain, seller):
    return chain.deploy(Auction(), deployer=seller)


@pytest.fixture
def factory(chain, seller, template):
    factory = chain.deploy(AuctionFactory(), deployer=seller)
    factory.initialize(template.address, sender=seller)
    return factory


@pytest.fixture
def asset_id(nft, seller):
    return nft.mint(seller, "ipfs://auctionhouse/0", sender=seller)


@pytest.fixture
def auction(chain, factory, nft, token, price_feed, seller, asset_id):
    """Auction created through the factory: 1 hour, 1% fee, token bids enabled."""
    nft.approve(factory.address, asset_id, sender=seller)
    address = factory.create_auction(
        nft.address,
        asset_id,
        DURATION,
        token.address,
        price_feed.address,
        FEE_BPS,
        sender=seller,
    )
    return chain.at(address)


@pytest.fixture
def fund_tokens(token):
    """Mint `amount` tokens to `account` and approve `spender` for them."""
    def _fund(account: str, spender: str, amount: int) -> None:
        token.mint(account, amount, sender=account)
        token.approve(spender, amount, sender=account)
    return _fund
