"""
External collaborators consumed by the pool.

The pool never moves value or reads time itself:
- Clock stamps campaign records
- TransferGateway moves value between principals

The in-memory implementations here back tests, the CLI demo and any
embedding that keeps the external ledger in process.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List
import time


class Clock:
    """Source of a monotonically non-decreasing current time."""

    def now(self) -> int:
        raise NotImplementedError


class BlockClock(Clock):
    """
    Manually advanced block-height clock.

    Starts at height 0 and only moves forward.
    """

    def __init__(self, height: int = 0):
        if height < 0:
            raise ValueError(f"Block height must be >= 0, got {height}")
        self.height = height

    def now(self) -> int:
        return self.height

    def advance(self, blocks: int = 1) -> int:
        """Move the clock forward and return the new height."""
        if blocks < 0:
            raise ValueError(f"Cannot move clock backwards by {blocks}")
        self.height += blocks
        return self.height


class SystemClock(Clock):
    """Wall clock in unix seconds."""

    def now(self) -> int:
        return int(time.time())


@dataclass
class TransferRecord:
    """One value movement between two principals."""
    amount: int
    sender: str
    recipient: str


class TransferGateway:
    """Moves value between principals on the external ledger."""

    def transfer(self, amount: int, sender: str, recipient: str) -> None:
        raise NotImplementedError


class RecordingTransferGateway(TransferGateway):
    """
    In-memory gateway that records every transfer in order.

    Tracks net flow per principal; balances may go negative since
    external wallets are not modelled.
    """

    def __init__(self):
        self.transfers: List[TransferRecord] = []
        self.net_flows: Dict[str, int] = defaultdict(int)

    def transfer(self, amount: int, sender: str, recipient: str) -> None:
        if amount <= 0:
            raise ValueError(f"Transfer amount must be positive, got {amount}")
        self.transfers.append(TransferRecord(amount=amount, sender=sender, recipient=recipient))
        self.net_flows[sender] -= amount
        self.net_flows[recipient] += amount

    def balance_of(self, principal: str) -> int:
        """Net amount received by a principal."""
        return self.net_flows.get(principal, 0)

    def received_by(self, principal: str) -> List[TransferRecord]:
        """All transfers paid to a principal."""
        return [t for t in self.transfers if t.recipient == principal]
