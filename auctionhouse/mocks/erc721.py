"""
MockNFT - Minimal unique-asset registry.

Test double for the Asset Registry collaborator. Only the deployer may
mint. Token ids are sequential from 0.
"""

from typing import Dict

from auctionhouse.core.chain import Contract, external
from auctionhouse.core.errors import AuthorizationError, ErrorReason, ValidationError
from auctionhouse.core.interfaces import ASSET_RECEIVED_MAGIC, IAssetReceiver, IAssetRegistry
from auctionhouse.crypto import ZERO_ADDRESS, short
from auctionhouse.utils.logger import get_logger
from auctionhouse.utils.validation import validate_address

logger = get_logger("mocks")


class MockNFT(Contract, IAssetRegistry):
    """
    Registry of unique tokens with per-token and operator approvals.

    Attributes:
        next_token_id: Id the next mint receives
        owners: token id -> owner
        token_uris: token id -> metadata URI
        token_approvals: token id -> approved spender
        operator_approvals: owner -> operator -> approved
    """

    def __init__(self, name: str = "MyAuctionNFT", symbol: str = "MAUCN"):
        super().__init__()
        self.name = name
        self.symbol = symbol
        self.next_token_id = 0
        self.owners: Dict[int, str] = {}
        self.balances: Dict[str, int] = {}
        self.token_uris: Dict[int, str] = {}
        self.token_approvals: Dict[int, str] = {}
        self.operator_approvals: Dict[str, Dict[str, bool]] = {}

    @property
    def owner(self) -> str:
        """Account allowed to mint (the deployer)."""
        return self.deployer

    # =========================================================================
    # Views
    # =========================================================================

    def owner_of(self, asset_id: int) -> str:
        owner = self.owners.get(asset_id)
        if owner is None:
            raise ValidationError(f"Nonexistent token {asset_id}", reason=ErrorReason.NONEXISTENT_TOKEN)
        return owner

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def token_uri(self, asset_id: int) -> str:
        self.owner_of(asset_id)
        return self.token_uris.get(asset_id, "")

    def get_approved(self, asset_id: int) -> str:
        self.owner_of(asset_id)
        return self.token_approvals.get(asset_id, ZERO_ADDRESS)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self.operator_approvals.get(owner, {}).get(operator, False)

    # =========================================================================
    # Mutations
    # =========================================================================

    @external
    def mint(self, to: str, uri: str = "") -> int:
        """Mint the next token to `to`. Returns its id."""
        if self.msg.sender != self.owner:
            raise AuthorizationError(
                f"Caller {short(self.msg.sender)} is not the owner",
                reason=ErrorReason.NOT_OWNER,
            )

        valid, err = validate_address(to, "to", allow_zero=False)
        if not valid:
            raise ValidationError(f"NFT: mint to invalid address: {err}", reason=ErrorReason.INVALID_ADDRESS)

        asset_id = self.next_token_id
        self.next_token_id += 1
        self.owners[asset_id] = to
        self.balances[to] = self.balances.get(to, 0) + 1
        self.token_uris[asset_id] = uri

        self._emit("Transfer", from_=ZERO_ADDRESS, to=to, asset_id=asset_id)
        logger.debug(f"{self.symbol} #{asset_id} minted to {short(to)}")
        return asset_id

    @external
    def approve(self, spender: str, asset_id: int) -> None:
        owner = self.owner_of(asset_id)
        caller = self.msg.sender
        if caller != owner and not self.is_approved_for_all(owner, caller):
            raise AuthorizationError(
                f"{short(caller)} cannot approve token {asset_id}",
                reason=ErrorReason.INSUFFICIENT_APPROVAL,
            )

        self.token_approvals[asset_id] = spender
        self._emit("Approval", owner=owner, spender=spender, asset_id=asset_id)

    @external
    def set_approval_for_all(self, operator: str, approved: bool) -> None:
        valid, err = validate_address(operator, "operator", allow_zero=False)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_ADDRESS)

        owner = self.msg.sender
        self.operator_approvals.setdefault(owner, {})[operator] = approved
        self._emit("ApprovalForAll", owner=owner, operator=operator, approved=approved)

    @external
    def transfer_from(self, from_: str, to: str, asset_id: int) -> None:
        self._transfer(self.msg.sender, from_, to, asset_id)

    @external
    def safe_transfer_from(self, from_: str, to: str, asset_id: int, data: bytes = b"") -> None:
        """Transfer, then require a contract recipient to accept the asset."""
        operator = self.msg.sender
        self._transfer(operator, from_, to, asset_id)

        if self.chain.is_contract(to):
            receiver = self.chain.at(to)
            if not isinstance(receiver, IAssetReceiver):
                raise ValidationError(
                    f"Recipient {short(to)} cannot receive assets",
                    reason=ErrorReason.UNSAFE_RECIPIENT,
                )
            if receiver.on_asset_received(operator, from_, asset_id, data) != ASSET_RECEIVED_MAGIC:
                raise ValidationError(
                    f"Recipient {short(to)} rejected asset {asset_id}",
                    reason=ErrorReason.UNSAFE_RECIPIENT,
                )

    # =========================================================================
    # Internals
    # =========================================================================

    def _is_authorized(self, spender: str, owner: str, asset_id: int) -> bool:
        return (
            spender == owner
            or self.token_approvals.get(asset_id) == spender
            or self.is_approved_for_all(owner, spender)
        )

    def _transfer(self, spender: str, from_: str, to: str, asset_id: int) -> None:
        owner = self.owner_of(asset_id)

        if not self._is_authorized(spender, owner, asset_id):
            raise AuthorizationError(
                f"{short(spender)} is not approved for token {asset_id}",
                reason=ErrorReason.INSUFFICIENT_APPROVAL,
            )

        if owner != from_:
            raise ValidationError(
                f"Token {asset_id} is owned by {short(owner)}, not {short(from_)}",
                reason=ErrorReason.INVALID_ADDRESS,
            )

        valid, err = validate_address(to, "to", allow_zero=False)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_ADDRESS)

        self.token_approvals.pop(asset_id, None)
        self.balances[from_] -= 1
        self.balances[to] = self.balances.get(to, 0) + 1
        self.owners[asset_id] = to

        self._emit("Transfer", from_=from_, to=to, asset_id=asset_id)
        logger.debug(f"{self.symbol} #{asset_id} {short(from_)} -> {short(to)}")
