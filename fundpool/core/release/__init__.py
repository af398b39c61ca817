"""
Fundpool Release Module.

Approve-then-release protocol and fee settlement.
"""

from fundpool.core.release.settlement import (
    ReleaseApproval,
    SettlementReceipt,
    ReleaseEngine,
    compute_fee,
)

__all__ = [
    "ReleaseApproval",
    "SettlementReceipt",
    "ReleaseEngine",
    "compute_fee",
]
