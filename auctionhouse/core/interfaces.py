"""
Capability interfaces consumed by the auction core.

The auction and the factory never depend on concrete collaborators. They
resolve an address on the chain and call it through one of these
interfaces, so test doubles and alternative backends plug in unchanged.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from auctionhouse.crypto import keccak256


# Value a receiver returns to accept an asset sent with safe_transfer_from
ASSET_RECEIVED_MAGIC = keccak256(b"on_asset_received(address,address,uint256,bytes)")[:4]


@dataclass(frozen=True)
class RoundData:
    """One price round reported by an oracle."""
    round_id: int
    answer: int          # Signed price, scaled by 10**decimals
    started_at: int
    updated_at: int
    answered_in_round: int


class IPriceOracle(ABC):
    """Price feed for a base/quote pair."""

    @abstractmethod
    def decimals(self) -> int:
        """Decimal scale of `answer`."""

    @abstractmethod
    def latest_round_data(self) -> RoundData:
        """Most recent round."""

    @abstractmethod
    def get_round_data(self, round_id: int) -> RoundData:
        """A specific historical round."""


class IAssetRegistry(ABC):
    """Ownership and transfer of unique, non-divisible assets."""

    @abstractmethod
    def owner_of(self, asset_id: int) -> str:
        ...

    @abstractmethod
    def transfer_from(self, from_: str, to: str, asset_id: int) -> None:
        ...

    @abstractmethod
    def safe_transfer_from(self, from_: str, to: str, asset_id: int, data: bytes = b"") -> None:
        """Transfer, requiring contract recipients to accept via IAssetReceiver."""

    @abstractmethod
    def approve(self, spender: str, asset_id: int) -> None:
        ...


class IFungibleLedger(ABC):
    """Balances, allowances and transfers of a divisible token."""

    @abstractmethod
    def balance_of(self, account: str) -> int:
        ...

    @abstractmethod
    def allowance(self, owner: str, spender: str) -> int:
        ...

    @abstractmethod
    def transfer_from(self, from_: str, to: str, amount: int) -> bool:
        ...

    @abstractmethod
    def transfer(self, to: str, amount: int) -> bool:
        ...


class IAssetReceiver(ABC):
    """Contracts that can take custody of a unique asset."""

    @abstractmethod
    def on_asset_received(self, operator: str, from_: str, asset_id: int, data: bytes) -> bytes:
        """Return ASSET_RECEIVED_MAGIC to accept the asset."""


__all__ = [
    "ASSET_RECEIVED_MAGIC",
    "RoundData",
    "IPriceOracle",
    "IAssetRegistry",
    "IFungibleLedger",
    "IAssetReceiver",
]
