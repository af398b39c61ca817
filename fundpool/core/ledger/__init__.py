"""
Fundpool Campaign Ledger Module.

Campaign records, deposits, lock state and emergency withdrawal.
"""

from fundpool.core.ledger.campaign_ledger import (
    Campaign,
    CampaignMetadata,
    CampaignLedger,
)

__all__ = [
    "Campaign",
    "CampaignMetadata",
    "CampaignLedger",
]
