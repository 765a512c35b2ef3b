"""Execution environment: accounts, contracts, call frames and events"""
from auctionhouse.core.chain.events import Event
from auctionhouse.core.chain.contract import Contract, external, RUNTIME_ATTRS
from auctionhouse.core.chain.runtime import (
    Chain,
    Journal,
    Message,
    MAX_CALL_DEPTH,
)

__all__ = [
    "Event",
    "Contract",
    "external",
    "RUNTIME_ATTRS",
    "Chain",
    "Journal",
    "Message",
    "MAX_CALL_DEPTH",
]
