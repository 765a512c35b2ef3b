"""
MockERC20 - Minimal fungible balance ledger.

Test double for the Fungible Ledger collaborator. Anyone may mint.
Transfers check allowance before balance, so a spender without allowance
sees INSUFFICIENT_ALLOWANCE even when the owner is also broke.
"""

from typing import Dict

from auctionhouse.core.chain import Contract, external
from auctionhouse.core.errors import ErrorReason, InsufficientFundsError, ValidationError
from auctionhouse.core.interfaces import IFungibleLedger
from auctionhouse.crypto import ZERO_ADDRESS, short
from auctionhouse.utils.logger import get_logger
from auctionhouse.utils.validation import MAX_AMOUNT, validate_address, validate_amount

logger = get_logger("mocks")


class MockERC20(Contract, IFungibleLedger):
    """
    Fungible token with 18 decimals.

    Attributes:
        name: Token name
        symbol: Ticker
        supply: Total minted
        balances: Balance per account
        allowances: owner -> spender -> remaining allowance
    """

    def __init__(self, name: str = "MockToken", symbol: str = "MTK", decimals: int = 18):
        super().__init__()
        self.name = name
        self.symbol = symbol
        self.token_decimals = decimals
        self.supply = 0
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[str, Dict[str, int]] = {}

    # =========================================================================
    # Views
    # =========================================================================

    def decimals(self) -> int:
        return self.token_decimals

    def total_supply(self) -> int:
        return self.supply

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(owner, {}).get(spender, 0)

    # =========================================================================
    # Mutations
    # =========================================================================

    @external
    def mint(self, to: str, amount: int) -> None:
        self._check_recipient(to)
        self._check_amount(amount)

        self.supply += amount
        self.balances[to] = self.balances.get(to, 0) + amount
        self._emit("Transfer", from_=ZERO_ADDRESS, to=to, amount=amount)

    @external
    def transfer(self, to: str, amount: int) -> bool:
        self._transfer(self.msg.sender, to, amount)
        return True

    @external
    def approve(self, spender: str, amount: int) -> bool:
        self._check_recipient(spender)
        self._check_amount(amount)

        owner = self.msg.sender
        self.allowances.setdefault(owner, {})[spender] = amount
        self._emit("Approval", owner=owner, spender=spender, amount=amount)
        return True

    @external
    def transfer_from(self, from_: str, to: str, amount: int) -> bool:
        spender = self.msg.sender
        current = self.allowance(from_, spender)
        if current < amount:
            raise InsufficientFundsError(
                f"Insufficient allowance: {short(spender)} may spend {current} of {short(from_)}, needs {amount}",
                reason=ErrorReason.INSUFFICIENT_ALLOWANCE,
            )

        # Infinite approvals are never decremented
        if current != MAX_AMOUNT:
            self.allowances[from_][spender] = current - amount

        self._transfer(from_, to, amount)
        return True

    # =========================================================================
    # Internals
    # =========================================================================

    def _transfer(self, from_: str, to: str, amount: int) -> None:
        self._check_recipient(to)
        self._check_amount(amount)

        available = self.balance_of(from_)
        if available < amount:
            raise InsufficientFundsError(
                f"Insufficient balance: {short(from_)} has {available}, needs {amount}",
                reason=ErrorReason.INSUFFICIENT_BALANCE,
            )

        self.balances[from_] = available - amount
        self.balances[to] = self.balances.get(to, 0) + amount
        self._emit("Transfer", from_=from_, to=to, amount=amount)
        logger.debug(f"{self.symbol} transfer {short(from_)} -> {short(to)}: {amount}")

    @staticmethod
    def _check_recipient(address: str) -> None:
        valid, err = validate_address(address, "recipient", allow_zero=False)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_ADDRESS)

    @staticmethod
    def _check_amount(amount: int) -> None:
        valid, err = validate_amount(amount)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.AMOUNT_NOT_POSITIVE)
