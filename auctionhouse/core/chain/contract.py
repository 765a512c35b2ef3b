"""
Contract - Base class for everything deployed on a Chain.

Conceptual Background:
---------------------
A contract is a plain Python object whose public state lives in instance
attributes. Methods decorated with @external are entry points: calling
one opens a call frame on the chain that records who is calling
(`sender`) and how much native value is attached (`value`).

    auction.bid_native(sender=alice, value=10**18)

When one contract calls another, `sender` defaults to the calling
contract's address, mirroring msg.sender semantics.

State Rules:
-----------
Contract state must be plain data (ints, strings, dicts, dataclasses).
Other contracts are referenced by address and resolved with chain.at().
This keeps journal copies cheap and restorable.

A contract changes only its own state, and only inside one of its own
@external methods. The chain copies a contract when a frame enters it,
so a write made any other way is not undone by a failed call.
"""

import copy
import functools
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from auctionhouse.crypto import ZERO_ADDRESS

if TYPE_CHECKING:
    from auctionhouse.core.chain.runtime import Chain, Message


# Attributes bound by the chain at deploy time, never journaled
RUNTIME_ATTRS = frozenset({"chain", "address"})


def external(func: Optional[Callable] = None, *, payable: bool = False):
    """
    Mark a contract method as an external entry point.

    The wrapped method accepts two extra keyword arguments:
        sender: calling address (defaults to the calling contract)
        value: native amount attached to the call (payable methods only)

    Args:
        payable: Whether the method accepts attached native value
    """
    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(self, *args, sender: Optional[str] = None, value: int = 0, **kwargs):
            chain = self._require_chain()
            return chain.execute(self, fn, args, kwargs, sender=sender, value=value, payable=payable)

        wrapper.is_external = True
        wrapper.is_payable = payable
        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


class Contract:
    """
    Base contract.

    Attributes:
        chain: Chain the contract is deployed on (None until deployed)
        address: Deployed address
        deployer: Address that deployed the contract
    """

    def __init__(self):
        self.chain: Optional["Chain"] = None
        self.address: str = ZERO_ADDRESS
        self.deployer: str = ZERO_ADDRESS

    # =========================================================================
    # Execution Context
    # =========================================================================

    def _require_chain(self) -> "Chain":
        if self.chain is None:
            raise RuntimeError(f"{type(self).__name__} is not deployed")
        return self.chain

    @property
    def msg(self) -> "Message":
        """Current call frame."""
        return self._require_chain().msg

    @property
    def now(self) -> int:
        """Current chain timestamp."""
        return self._require_chain().now

    @property
    def balance(self) -> int:
        """Native balance held by this contract."""
        return self._require_chain().balance_of(self.address)

    # =========================================================================
    # Effects and Interactions
    # =========================================================================

    def _emit(self, name: str, **args: Any) -> None:
        """Append an event to the chain log."""
        self._require_chain().emit(self.address, name, args)

    def _send_native(self, to: str, amount: int) -> None:
        """Send native value from this contract. Contract recipients may re-enter."""
        self._require_chain().transfer_native(self.address, to, amount)

    @external(payable=True)
    def receive(self) -> None:
        """Accept plain native transfers."""

    def on_deploy(self) -> None:
        """Constructor hook, run once the contract is bound to a chain."""

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def _export_state(self) -> Dict[str, Any]:
        """Deep copy of the contract's mutable state."""
        return copy.deepcopy(
            {k: v for k, v in vars(self).items() if k not in RUNTIME_ATTRS}
        )

    def _import_state(self, state: Dict[str, Any]) -> None:
        """Replace the contract's state with a previously exported copy."""
        for key in [k for k in vars(self) if k not in RUNTIME_ATTRS]:
            delattr(self, key)
        self.__dict__.update(state)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.address})"
