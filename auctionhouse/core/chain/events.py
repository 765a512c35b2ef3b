"""Observable events emitted by contracts."""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class Event:
    """
    A log entry emitted by a contract.

    Attributes:
        name: Event name (e.g. "NewBid")
        emitter: Address of the emitting contract
        args: Event arguments by name
        timestamp: Chain time at emission
    """
    name: str
    emitter: str
    args: Dict[str, Any] = field(default_factory=dict)
    timestamp: int = 0

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def values(self) -> tuple:
        """Arguments in declaration order."""
        return tuple(self.args.values())
