"""
AuctionHouse

An on-chain style English auction system:
- Per-asset auction instances with custody of the auctioned asset
- Bids in native value or a fungible ledger token, refunding the outbid
- Fee split at settlement
- USD valuation of bids via a price oracle
- A factory that deploys and tracks every auction
"""

__version__ = "0.1.0"
