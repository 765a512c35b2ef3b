"""
AuctionHouse Factory Module.

Deploys, funds and tracks auction instances.
"""

from auctionhouse.core.factory.factory import (
    AuctionFactory,
    FactoryConfig,
)

__all__ = [
    "AuctionFactory",
    "FactoryConfig",
]
