"""Test doubles for the external collaborators"""
from auctionhouse.mocks.erc20 import MockERC20
from auctionhouse.mocks.erc721 import MockNFT
from auctionhouse.mocks.price_feed import MockV3Aggregator

__all__ = [
    "MockERC20",
    "MockNFT",
    "MockV3Aggregator",
]
