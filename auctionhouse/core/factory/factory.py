"""
Auction Factory - Deploys and tracks isolated auction instances.

Conceptual Background:
---------------------
Every auctioned asset gets its own Auction contract, so bids, funds and
custody for one asset can never leak into another. The factory:

1. Validates creation parameters (asset, duration, fee, oracle, in that order)
2. Deploys a fresh instance of the current template
3. Initializes it with the caller as seller
4. Pulls the asset from the seller into the instance's custody
5. Records the instance in an append-only registry

Custody:
-------
The seller approves the *factory* for the asset beforehand. The factory
then calls safe_transfer_from(seller, instance, asset_id). Without
approval the registry raises AuthorizationError and the whole creation,
deployment included, is rolled back.

Configuration:
-------------
Instead of an upgradeable proxy, the factory holds a versioned, immutable
FactoryConfig. The owner can migrate to a new template or change the fee
recipient; each change bumps the version. Existing auctions keep the
behavior they were created with.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from auctionhouse.core.auction import Auction, validate_auction_parameters
from auctionhouse.core.chain import Contract, external
from auctionhouse.core.config import config as default_config
from auctionhouse.core.errors import AuthorizationError, ErrorReason, ValidationError
from auctionhouse.core.interfaces import IAssetRegistry
from auctionhouse.crypto import ZERO_ADDRESS, short
from auctionhouse.utils.logger import get_logger
from auctionhouse.utils.validation import validate_address, validate_page

logger = get_logger("factory")


@dataclass(frozen=True)
class FactoryConfig:
    """
    Versioned factory configuration.

    Attributes:
        version: Incremented on every change
        template: Deployed Auction whose class new instances use
        fee_recipient: Fee destination handed to new auctions
            (zero = each auction retains its fee)
    """
    version: int
    template: str
    fee_recipient: str = ZERO_ADDRESS


class AuctionFactory(Contract):
    """
    Creates auctions and keeps the ordered list of deployed instances.

    Attributes:
        owner: Governance account for template migration
        config: Current FactoryConfig
        deployed_auctions: Instance addresses in creation order
        auction_versions: Config version each instance was created under
        max_page_size: Largest page get_auctions_range will return
    """

    def __init__(self, max_page_size: Optional[int] = None):
        super().__init__()
        self.initialized = False
        self.owner = ZERO_ADDRESS
        self.config: Optional[FactoryConfig] = None
        self.deployed_auctions: List[str] = []
        self.auction_versions: Dict[str, int] = {}
        self.max_page_size = max_page_size or default_config.max_page_size

    # =========================================================================
    # Initialization and Governance
    # =========================================================================

    @external
    def initialize(self, template: str) -> None:
        """One-time setup. The caller becomes the owner."""
        if self.initialized:
            raise ValidationError("Factory already initialized", reason=ErrorReason.ALREADY_INITIALIZED)

        self._check_template(template)

        self.initialized = True
        self.owner = self.msg.sender
        self.config = FactoryConfig(version=1, template=template)

        self._emit("OwnershipTransferred", previous_owner=ZERO_ADDRESS, new_owner=self.owner)
        logger.info(f"Factory {short(self.address)} initialized: template={short(template)}, owner={short(self.owner)}")

    @external
    def migrate(self, new_template: str) -> int:
        """
        Point new auctions at a different template.

        Returns:
            The new config version
        """
        self._require_owner()
        self._check_template(new_template)

        previous = self.config.template
        self.config = replace(self.config, version=self.config.version + 1, template=new_template)

        self._emit(
            "TemplateMigrated",
            previous_template=previous,
            new_template=new_template,
            version=self.config.version,
        )
        logger.info(f"Factory {short(self.address)} migrated to template {short(new_template)} (v{self.config.version})")
        return self.config.version

    @external
    def set_fee_recipient(self, recipient: str) -> int:
        """Change where new auctions send their fee (zero = retain)."""
        self._require_owner()

        valid, err = validate_address(recipient, "fee_recipient")
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_ADDRESS)

        self.config = replace(self.config, version=self.config.version + 1, fee_recipient=recipient)

        self._emit("FeeRecipientUpdated", recipient=recipient, version=self.config.version)
        return self.config.version

    @external
    def transfer_ownership(self, new_owner: str) -> None:
        self._require_owner()

        valid, err = validate_address(new_owner, "new_owner", allow_zero=False)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_ADDRESS)

        previous = self.owner
        self.owner = new_owner
        self._emit("OwnershipTransferred", previous_owner=previous, new_owner=new_owner)

    # =========================================================================
    # Auction Creation
    # =========================================================================

    @external
    def create_auction(
        self,
        asset: str,
        asset_id: int,
        duration: int,
        ledger_token: str,
        oracle: str,
        fee_basis_points: int,
    ) -> str:
        """
        Deploy and fund a new auction for the caller's asset.

        Args:
            asset: Asset registry address
            asset_id: Asset to auction (caller must have approved the factory)
            duration: Bidding period in seconds
            ledger_token: Fungible ledger accepted for bids (zero = native only)
            oracle: Price oracle address
            fee_basis_points: Fee rate in [0, 10000)

        Returns:
            Address of the new auction
        """
        self._require_initialized()
        validate_auction_parameters(asset, duration, fee_basis_points, oracle)

        seller = self.msg.sender
        template = self.chain.at(self.config.template)
        auction = self.chain.deploy(type(template)())
        auction.initialize(
            asset,
            asset_id,
            seller,
            duration,
            ledger_token,
            oracle,
            fee_basis_points,
            self.config.fee_recipient,
        )

        self.deployed_auctions.append(auction.address)
        self.auction_versions[auction.address] = self.config.version
        self._emit(
            "AuctionDeployed",
            auction=auction.address,
            seller=seller,
            asset=asset,
            asset_id=asset_id,
        )

        registry: IAssetRegistry = self.chain.at(asset)
        registry.safe_transfer_from(seller, auction.address, asset_id)

        logger.info(
            f"Auction {short(auction.address)} deployed for {short(asset)}#{asset_id} "
            f"by {short(seller)} (#{len(self.deployed_auctions)})"
        )
        return auction.address

    # =========================================================================
    # Queries
    # =========================================================================

    def get_auctions(self) -> List[str]:
        """All deployed auctions in creation order."""
        return list(self.deployed_auctions)

    def get_auctions_range(self, offset: int, limit: int) -> List[str]:
        """
        A page of deployed auctions in creation order.

        Args:
            offset: Index of the first auction
            limit: Maximum number of auctions to return

        Returns:
            Up to `limit` addresses (empty past the end)
        """
        valid, err = validate_page(offset, limit, self.max_page_size)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_PAGE)
        return self.deployed_auctions[offset:offset + limit]

    def auction_count(self) -> int:
        return len(self.deployed_auctions)

    def is_auction(self, address: str) -> bool:
        return address in self.auction_versions

    def version_of(self, auction: str) -> Optional[int]:
        """Config version an auction was created under."""
        return self.auction_versions.get(auction)

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise ValidationError("Factory not initialized", reason=ErrorReason.NOT_INITIALIZED)

    def _require_owner(self) -> None:
        self._require_initialized()
        if self.msg.sender != self.owner:
            raise AuthorizationError(
                f"Caller {short(self.msg.sender)} is not the owner",
                reason=ErrorReason.NOT_OWNER,
            )

    def _check_template(self, template: str) -> None:
        valid, err = validate_address(template, "template", allow_zero=False)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_TEMPLATE)

        contract = self._require_chain().contracts.get(template)
        if not isinstance(contract, Auction):
            raise ValidationError(
                f"Template {template} is not a deployed Auction",
                reason=ErrorReason.INVALID_TEMPLATE,
            )

    def stats(self) -> dict:
        """Get factory statistics."""
        return {
            "owner": self.owner,
            "version": self.config.version if self.config else 0,
            "template": self.config.template if self.config else ZERO_ADDRESS,
            "auction_count": len(self.deployed_auctions),
        }
