"""
Chain - Transactional execution environment for AuctionHouse contracts.

Conceptual Background:
---------------------
The Chain is a deterministic, in-process stand-in for a smart-contract
VM. It maintains:

1. **Accounts**: native balances per address
2. **Contracts**: deployed contract objects by address
3. **Clock**: a timestamp that only moves when told to
4. **Event log**: append-only list of emitted events
5. **Call frames**: stack of (sender, to, value) for the running calls

Atomicity:
---------
Every external call runs in its own frame with a journal of pre-images.
The called contract's state is copied on entry, and balances and nonces
are recorded the first time the frame changes them. Deployments and the
event log length are noted too. If the call raises, the journal is
replayed before the error propagates, so a failed call has no observable
effect. When a call returns, its journal folds into the caller's, keeping
the caller's older pre-images. A caller that catches a failing sub-call
sees only that sub-call undone.

A frame only copies the contracts it enters, so the cost of a call does
not grow with the number of contracts deployed.

Reentrancy:
----------
Sending native value to a contract invokes its payable `receive` entry
point, which may call back into the sender. Contracts must update their
own state before any outbound transfer.
"""

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from auctionhouse.core.chain.events import Event
from auctionhouse.core.errors import (
    ErrorReason,
    InsufficientFundsError,
    ValidationError,
)
from auctionhouse.crypto import (
    ZERO_ADDRESS,
    contract_address,
    generate_keypair,
    short,
)
from auctionhouse.utils.logger import get_logger
from auctionhouse.utils.validation import validate_address, validate_amount

if TYPE_CHECKING:
    from auctionhouse.core.chain.contract import Contract

logger = get_logger("chain")

# Maximum nesting of call frames
MAX_CALL_DEPTH = 64


# =============================================================================
# Call Frames
# =============================================================================


@dataclass(frozen=True)
class Message:
    """
    An active call frame.

    Attributes:
        sender: Address that made the call
        to: Address of the contract being executed
        value: Native value attached to the call
        depth: Nesting level (0 = top-level transaction)
    """
    sender: str
    to: str
    value: int
    depth: int


@dataclass
class Journal:
    """
    Pre-images of everything a call frame has touched.

    Attributes:
        states: Contract state on first entry, by address
        balances: Native balance before the first change (None = absent)
        nonces: Deployer nonce before the first change (None = absent)
        deployed: Contracts deployed inside the frame, in order
        event_count: Length of the event log when the frame opened
    """
    event_count: int
    states: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    balances: Dict[str, Optional[int]] = field(default_factory=dict)
    nonces: Dict[str, Optional[int]] = field(default_factory=dict)
    deployed: List[str] = field(default_factory=list)

    def fold_into(self, parent: "Journal") -> None:
        """Hand this frame's pre-images to the calling frame."""
        for address, state in self.states.items():
            parent.states.setdefault(address, state)
        for address, balance in self.balances.items():
            parent.balances.setdefault(address, balance)
        for address, nonce in self.nonces.items():
            parent.nonces.setdefault(address, nonce)
        parent.deployed.extend(self.deployed)


# =============================================================================
# Chain
# =============================================================================


class Chain:
    """
    Serial, atomic execution environment.

    Attributes:
        timestamp: Current chain time (seconds)
        balances: Native balance per address
        contracts: Deployed contracts by address
        events: Append-only event log
        accounts: Externally owned accounts created on this chain
        tx_count: Number of top-level calls executed
    """

    def __init__(self, timestamp: Optional[int] = None):
        """
        Initialize the chain.

        Args:
            timestamp: Starting time. None = current wall-clock time.
        """
        self.timestamp = int(time.time()) if timestamp is None else timestamp
        self.balances: Dict[str, int] = {}
        self.nonces: Dict[str, int] = {}
        self.contracts: Dict[str, "Contract"] = {}
        self.events: List[Event] = []
        self.accounts: List[str] = []
        self.tx_count = 0
        self._frames: List[Message] = []
        self._journals: List[Journal] = []

    # =========================================================================
    # Clock
    # =========================================================================

    @property
    def now(self) -> int:
        return self.timestamp

    def advance_time(self, seconds: int) -> int:
        """Move the clock forward. Returns the new timestamp."""
        if seconds < 0:
            raise ValueError("Time cannot move backwards")
        self.timestamp += seconds
        return self.timestamp

    # =========================================================================
    # Accounts
    # =========================================================================

    def create_account(self, balance: int = 0) -> str:
        """
        Create an externally owned account.

        Args:
            balance: Initial native balance

        Returns:
            The new account's address
        """
        address = generate_keypair().address
        self.accounts.append(address)
        if balance:
            self.fund(address, balance)
        return address

    def fund(self, address: str, amount: int) -> None:
        """Credit native value out of thin air (faucet)."""
        valid, err = validate_address(address)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_ADDRESS)
        valid, err = validate_amount(amount)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.AMOUNT_NOT_POSITIVE)
        self._record_balance(address)
        self.balances[address] = self.balances.get(address, 0) + amount

    def balance_of(self, address: str) -> int:
        """Native balance of an address."""
        return self.balances.get(address, 0)

    def transfer_native(self, sender: str, to: str, amount: int) -> None:
        """
        Move native value. A contract recipient's `receive` entry point runs
        with `sender` as caller and may re-enter.
        """
        if amount == 0:
            return

        recipient = self.contracts.get(to)
        if recipient is not None:
            recipient.receive(sender=sender, value=amount)
        else:
            self._move_native(sender, to, amount)

    def _move_native(self, sender: str, to: str, amount: int) -> None:
        valid, err = validate_address(to, "recipient")
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_ADDRESS)

        valid, err = validate_amount(amount)
        if not valid:
            raise ValidationError(err, reason=ErrorReason.AMOUNT_NOT_POSITIVE)

        available = self.balances.get(sender, 0)
        if available < amount:
            raise InsufficientFundsError(
                f"Insufficient native balance: {short(sender)} has {available}, needs {amount}",
                reason=ErrorReason.INSUFFICIENT_BALANCE,
            )

        self._record_balance(sender)
        self._record_balance(to)
        self.balances[sender] = available - amount
        self.balances[to] = self.balances.get(to, 0) + amount

    # =========================================================================
    # Contracts
    # =========================================================================

    def deploy(self, contract: "Contract", deployer: Optional[str] = None) -> "Contract":
        """
        Deploy a contract.

        Args:
            contract: Freshly constructed contract object
            deployer: Deploying address. Defaults to the running contract,
                or the zero address outside any call.

        Returns:
            The same contract, now bound to this chain
        """
        if contract.chain is not None:
            raise RuntimeError(f"{contract!r} is already deployed")

        if deployer is None:
            deployer = self._frames[-1].to if self._frames else ZERO_ADDRESS

        valid, err = validate_address(deployer, "deployer")
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_ADDRESS)

        nonce = self.nonces.get(deployer, 0)
        address = contract_address(deployer, nonce)
        self._record_nonce(deployer)
        self.nonces[deployer] = nonce + 1

        contract.chain = self
        contract.address = address
        contract.deployer = deployer
        self.contracts[address] = contract
        if self._journals:
            self._journals[-1].deployed.append(address)
        contract.on_deploy()

        logger.debug(f"Deployed {type(contract).__name__} at {short(address)} (deployer={short(deployer)})")
        return contract

    def next_contract_address(self, deployer: str) -> str:
        """Address the next deployment by `deployer` will receive."""
        return contract_address(deployer, self.nonces.get(deployer, 0))

    def at(self, address: str) -> "Contract":
        """Resolve a deployed contract by address."""
        contract = self.contracts.get(address)
        if contract is None:
            raise ValidationError(
                f"No contract deployed at {address}",
                reason=ErrorReason.INVALID_ADDRESS,
            )
        return contract

    def is_contract(self, address: str) -> bool:
        return address in self.contracts

    # =========================================================================
    # Execution
    # =========================================================================

    @property
    def msg(self) -> Message:
        """The innermost active call frame."""
        if not self._frames:
            raise RuntimeError("No active call frame")
        return self._frames[-1]

    @property
    def depth(self) -> int:
        return len(self._frames)

    def execute(
        self,
        contract: "Contract",
        fn: Callable,
        args: Tuple,
        kwargs: Dict[str, Any],
        sender: Optional[str] = None,
        value: int = 0,
        payable: bool = False,
    ) -> Any:
        """
        Run a contract method inside a new call frame.

        Args:
            contract: Target contract
            fn: Unbound method to run
            args, kwargs: Method arguments
            sender: Caller. Defaults to the currently executing contract.
            value: Native value to move from sender to contract
            payable: Whether the method accepts value

        Returns:
            The method's return value

        Raises:
            Whatever the method raises, after the frame's effects are undone
        """
        if contract.chain is not self:
            raise RuntimeError(f"{contract!r} is not deployed on this chain")

        if sender is None:
            if not self._frames:
                raise ValueError("sender is required for top-level calls")
            sender = self._frames[-1].to

        valid, err = validate_address(sender, "sender")
        if not valid:
            raise ValidationError(err, reason=ErrorReason.INVALID_ADDRESS)

        if value and not payable:
            raise ValidationError(
                f"{fn.__name__} does not accept native value",
                reason=ErrorReason.NOT_PAYABLE,
            )

        if len(self._frames) >= MAX_CALL_DEPTH:
            raise RuntimeError(f"Max call depth {MAX_CALL_DEPTH} exceeded")

        if not self._frames:
            self.tx_count += 1
        journal = Journal(event_count=len(self.events))
        journal.states[contract.address] = contract._export_state()
        self._frames.append(Message(sender=sender, to=contract.address, value=value, depth=len(self._frames)))
        self._journals.append(journal)

        try:
            if value:
                self._move_native(sender, contract.address, value)
            result = fn(contract, *args, **kwargs)
        except Exception as e:
            self._revert(journal)
            logger.debug(f"Reverted {type(contract).__name__}.{fn.__name__} from {short(sender)}: {e!r}")
            raise
        finally:
            self._frames.pop()
            self._journals.pop()

        if self._journals:
            journal.fold_into(self._journals[-1])
        return result

    # =========================================================================
    # Events
    # =========================================================================

    def emit(self, emitter: str, name: str, args: Dict[str, Any]) -> Event:
        event = Event(name=name, emitter=emitter, args=dict(args), timestamp=self.timestamp)
        self.events.append(event)
        return event

    def events_named(self, name: str, emitter: Optional[str] = None) -> List[Event]:
        """All events with the given name, optionally from one emitter."""
        return [
            e for e in self.events
            if e.name == name and (emitter is None or e.emitter == emitter)
        ]

    def last_event(self, name: str, emitter: Optional[str] = None) -> Optional[Event]:
        matches = self.events_named(name, emitter)
        return matches[-1] if matches else None

    # =========================================================================
    # Journaling
    # =========================================================================

    def _record_balance(self, address: str) -> None:
        if self._journals:
            self._journals[-1].balances.setdefault(address, self.balances.get(address))

    def _record_nonce(self, address: str) -> None:
        if self._journals:
            self._journals[-1].nonces.setdefault(address, self.nonces.get(address))

    def _revert(self, journal: Journal) -> None:
        """Undo everything a failed frame did."""
        for address, state in journal.states.items():
            self.contracts[address]._import_state(state)

        for address, balance in journal.balances.items():
            if balance is None:
                self.balances.pop(address, None)
            else:
                self.balances[address] = balance

        for address, nonce in journal.nonces.items():
            if nonce is None:
                self.nonces.pop(address, None)
            else:
                self.nonces[address] = nonce

        # Contracts deployed inside the frame are dropped and unbound
        for address in reversed(journal.deployed):
            self.contracts.pop(address).chain = None

        del self.events[journal.event_count:]

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return f"Chain(time={self.timestamp}, contracts={len(self.contracts)}, events={len(self.events)})"

    def stats(self) -> dict:
        """Get chain statistics."""
        return {
            "timestamp": self.timestamp,
            "accounts": len(self.accounts),
            "contracts": len(self.contracts),
            "events": len(self.events),
            "transactions": self.tx_count,
            "total_native": sum(self.balances.values()),
        }
