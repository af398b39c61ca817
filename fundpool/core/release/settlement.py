"""
Release Engine - Two-phase fund release with fee settlement.

This module implements a two-phase release protocol:
1. Approve: a privileged principal records an amount against a
   (campaign_id, proposal_id) pair
2. Release: anyone settles an approved pair

Settlement:
----------
    fee = floor(amount * platform_fee_rate / 100)
    net = amount - fee

The fee goes to the authority principal, the net amount to the campaign
recipient, fee first. The campaign balance drops by the full amount and
the campaign is locked. If the net payout fails the fee is transferred
back before the error propagates, and the ledger is left untouched.

Approvals are not reservations: they never debit the balance and are
not consumed by release. The balance is re-checked at release time.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from fundpool.core.errors import EscrowError
from fundpool.core.ledger import CampaignLedger
from fundpool.utils.logger import get_logger

logger = get_logger("release")


def compute_fee(amount: int, fee_rate: int) -> int:
    """Platform fee carved out of a release amount, rounded down."""
    return amount * fee_rate // 100


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class ReleaseApproval:
    """
    Recorded authorization to release an amount from a campaign.

    Attributes:
        amount: Amount to release, within the registry release bounds
        approved: Always True once stored
        releaser: Principal who approved
    """
    amount: int
    releaser: str
    approved: bool = True


@dataclass
class SettlementReceipt:
    """Breakdown of one settled release."""
    campaign_id: int
    proposal_id: int
    amount: int
    fee: int
    net: int
    fee_recipient: Optional[str]
    recipient: str
    new_balance: int


# =============================================================================
# Release Engine
# =============================================================================


class ReleaseEngine:
    """
    Owner of the approval table and settlement history.
    """

    def __init__(self, ledger: CampaignLedger):
        self.ledger = ledger
        self.registry = ledger.registry

        # (campaign_id, proposal_id) -> approval
        self.approvals: Dict[Tuple[int, int], ReleaseApproval] = {}

        self.receipts: List[SettlementReceipt] = []
        self.total_fees: int = 0
        self.total_paid_out: int = 0

    def get_approval(self, campaign_id: int, proposal_id: int) -> Optional[ReleaseApproval]:
        """Get approval by composite key."""
        return self.approvals.get((campaign_id, proposal_id))

    # =========================================================================
    # Approve
    # =========================================================================

    def approve_release(
        self,
        caller: str,
        campaign_id: int,
        proposal_id: int,
        amount: int,
    ) -> Tuple[bool, Optional[EscrowError]]:
        """
        Approve a release amount for a campaign proposal.

        Overwrites any earlier approval under the same proposal id.

        Args:
            caller: Administrator or authority
            campaign_id: Campaign to release from
            proposal_id: Caller-chosen positive id
            amount: Amount to release

        Returns:
            (success, error)
        """
        state = self.registry.state

        if not self.registry.is_admin_or_authority(caller):
            logger.warning(f"{caller} not authorized to approve releases")
            return False, EscrowError.NOT_AUTHORIZED
        if amount <= 0:
            return False, EscrowError.INVALID_AMOUNT
        if not self.ledger.is_issued(campaign_id):
            return False, EscrowError.INVALID_CAMPAIGN_ID
        if proposal_id <= 0:
            return False, EscrowError.INVALID_PROPOSAL_ID

        campaign = self.ledger.get_campaign(campaign_id)
        if campaign is None:
            return False, EscrowError.CAMPAIGN_NOT_FOUND
        if campaign.balance < amount:
            logger.debug(f"Approval {campaign_id}/{proposal_id} rejected: {amount} > balance {campaign.balance}")
            return False, EscrowError.INSUFFICIENT_FUNDS
        if amount < state.min_release_amount:
            return False, EscrowError.INVALID_MIN_RELEASE
        if amount > state.max_release_amount:
            return False, EscrowError.INVALID_MAX_RELEASE

        self.approvals[(campaign_id, proposal_id)] = ReleaseApproval(amount=amount, releaser=caller)

        logger.info(f"Release {campaign_id}/{proposal_id} approved for {amount} by {caller}")
        return True, None

    # =========================================================================
    # Release
    # =========================================================================

    def release_funds(
        self,
        campaign_id: int,
        proposal_id: int,
    ) -> Tuple[Optional[int], Optional[EscrowError]]:
        """
        Settle an approved release.

        Open to any caller; authorization happened at approval.

        Args:
            campaign_id: Campaign to release from
            proposal_id: Approved proposal id

        Returns:
            (net_amount, error)
        """
        if not self.ledger.is_issued(campaign_id):
            return None, EscrowError.INVALID_CAMPAIGN_ID
        if proposal_id <= 0:
            return None, EscrowError.INVALID_PROPOSAL_ID

        campaign = self.ledger.get_campaign(campaign_id)
        if campaign is None:
            return None, EscrowError.CAMPAIGN_NOT_FOUND

        approval = self.approvals.get((campaign_id, proposal_id))
        if approval is None or not approval.approved:
            logger.debug(f"Release {campaign_id}/{proposal_id} rejected: not approved")
            return None, EscrowError.VOTE_NOT_APPROVED

        amount = approval.amount
        if campaign.balance < amount:
            logger.debug(f"Release {campaign_id}/{proposal_id} rejected: {amount} > balance {campaign.balance}")
            return None, EscrowError.INSUFFICIENT_FUNDS

        fee = compute_fee(amount, self.registry.platform_fee_rate)
        net = amount - fee
        authority = self.registry.authority_principal
        if fee > 0 and authority is None:
            return None, EscrowError.AUTHORITY_NOT_SET

        pool = self.ledger.pool_principal
        gateway = self.ledger.gateway
        if fee > 0:
            gateway.transfer(fee, pool, authority)
        try:
            gateway.transfer(net, pool, campaign.recipient)
        except Exception:
            # refund the fee so a failed payout leaves no effect behind
            if fee > 0:
                logger.error(f"Net payout for {campaign_id}/{proposal_id} failed, returning fee {fee} from {authority}")
                gateway.transfer(fee, authority, pool)
            raise

        self.ledger.debit(campaign, amount, lock=True)

        receipt = SettlementReceipt(
            campaign_id=campaign_id,
            proposal_id=proposal_id,
            amount=amount,
            fee=fee,
            net=net,
            fee_recipient=authority if fee > 0 else None,
            recipient=campaign.recipient,
            new_balance=campaign.balance,
        )
        self.receipts.append(receipt)
        self.total_fees += fee
        self.total_paid_out += net

        logger.info(
            f"Released {amount} from campaign {campaign_id} (proposal {proposal_id}): "
            f"fee {fee} -> {authority}, net {net} -> {campaign.recipient}"
        )
        return net, None

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self) -> dict:
        """Get settlement statistics."""
        return {
            "approvals": len(self.approvals),
            "releases": len(self.receipts),
            "fees_collected": self.total_fees,
            "net_paid_out": self.total_paid_out,
        }


__all__ = [
    "ReleaseApproval",
    "SettlementReceipt",
    "ReleaseEngine",
    "compute_fee",
]
