"""
Campaign Ledger - Campaign records and escrowed balances.

Conceptual Background:
---------------------
Each campaign is a pool of escrowed value with:

1. **Funds record**: balance, lock flag, last-updated stamp, recipient
2. **Metadata record**: name, description and an informational goal

Both records are created together by create_campaign and never deleted.
Campaign ids are issued sequentially from GlobalConfig.next_campaign_id.

Accounting:
----------
GlobalConfig.total_funds always equals the sum of campaign balances:
- deposit increments both
- emergency withdrawal and release decrement both

Every operation validates fully before its first effect.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from fundpool.core.collaborators import Clock, TransferGateway
from fundpool.core.errors import EscrowError
from fundpool.core.registry import ConfigRegistry
from fundpool.utils.logger import get_logger

logger = get_logger("ledger")


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class Campaign:
    """
    Escrowed funds of one campaign.

    Attributes:
        campaign_id: Sequential id assigned at creation
        balance: Undistributed funds, never negative
        locked: Blocks deposits while set
        last_updated_at: Clock reading of the last balance or lock change
        recipient: Principal paid on release
    """
    campaign_id: int
    recipient: str
    balance: int = 0
    locked: bool = False
    last_updated_at: int = 0


@dataclass
class CampaignMetadata:
    """Descriptive campaign data. The goal is never enforced against the balance."""
    name: str
    description: str
    goal: int


# =============================================================================
# Campaign Ledger
# =============================================================================


class CampaignLedger:
    """
    Owner of the campaign and metadata tables.

    Consults the registry for limits and roles, stamps records with the
    clock and moves value through the transfer gateway.
    """

    def __init__(
        self,
        registry: ConfigRegistry,
        clock: Clock,
        gateway: TransferGateway,
        pool_principal: str = "contract",
    ):
        """
        Initialize the ledger.

        Args:
            registry: Global parameters and role checks
            clock: Time source for record stamps
            gateway: Value transfer primitive
            pool_principal: Principal holding escrowed value
        """
        self.registry = registry
        self.clock = clock
        self.gateway = gateway
        self.pool_principal = pool_principal

        # Campaign ID -> records
        self.campaigns: Dict[int, Campaign] = {}
        self.metadata: Dict[int, CampaignMetadata] = {}

        # Value sent to the administrator through the rescue path
        self.emergency_withdrawn: int = 0

    # =========================================================================
    # Lookup
    # =========================================================================

    def is_issued(self, campaign_id: int) -> bool:
        """Check if an id has been handed out by create_campaign."""
        return 0 <= campaign_id < self.registry.state.next_campaign_id

    def get_campaign(self, campaign_id: int) -> Optional[Campaign]:
        """Get campaign funds by ID."""
        return self.campaigns.get(campaign_id)

    def get_metadata(self, campaign_id: int) -> Optional[CampaignMetadata]:
        """Get campaign metadata by ID."""
        return self.metadata.get(campaign_id)

    def _resolve(self, campaign_id: int) -> Tuple[Optional[Campaign], Optional[EscrowError]]:
        if not self.is_issued(campaign_id):
            return None, EscrowError.INVALID_CAMPAIGN_ID
        campaign = self.campaigns.get(campaign_id)
        if campaign is None:
            return None, EscrowError.CAMPAIGN_NOT_FOUND
        return campaign, None

    def _reject(self, action: str, campaign_id, error: EscrowError):
        logger.debug(f"{action} rejected for campaign {campaign_id}: {error.name}")

    # =========================================================================
    # Creation
    # =========================================================================

    def create_campaign(
        self,
        name: str,
        description: str,
        goal: int,
        recipient: str,
    ) -> Tuple[Optional[int], Optional[EscrowError]]:
        """
        Create a campaign and its metadata.

        Open to any caller.

        Args:
            name: Campaign name
            description: Campaign description
            goal: Informational funding goal, must be positive
            recipient: Principal paid on release, not the administrator

        Returns:
            (campaign_id, error) - campaign_id is None on failure
        """
        state = self.registry.state

        if goal <= 0:
            return None, EscrowError.INVALID_AMOUNT
        if recipient == self.registry.administrator:
            return None, EscrowError.INVALID_RECIPIENT
        if state.next_campaign_id >= state.max_campaigns:
            return None, EscrowError.MAX_CAMPAIGNS_EXCEEDED

        campaign_id = state.next_campaign_id
        self.campaigns[campaign_id] = Campaign(
            campaign_id=campaign_id,
            recipient=recipient,
            last_updated_at=self.clock.now(),
        )
        self.metadata[campaign_id] = CampaignMetadata(name=name, description=description, goal=goal)
        state.next_campaign_id += 1

        logger.info(f"Created campaign {campaign_id} '{name}' for {recipient} (goal {goal})")
        return campaign_id, None

    # =========================================================================
    # Funds
    # =========================================================================

    def deposit_funds(
        self,
        caller: str,
        campaign_id: int,
        amount: int,
    ) -> Tuple[Optional[int], Optional[EscrowError]]:
        """
        Deposit funds into an unlocked campaign.

        Args:
            caller: Principal paying in
            campaign_id: Target campaign
            amount: Amount to deposit

        Returns:
            (new_balance, error)
        """
        if amount <= 0:
            return None, EscrowError.INVALID_AMOUNT

        campaign, err = self._resolve(campaign_id)
        if err is not None:
            self._reject("Deposit", campaign_id, err)
            return None, err

        if campaign.locked:
            self._reject("Deposit", campaign_id, EscrowError.ALREADY_LOCKED)
            return None, EscrowError.ALREADY_LOCKED

        self.gateway.transfer(amount, caller, self.pool_principal)

        campaign.balance += amount
        campaign.last_updated_at = self.clock.now()
        self.registry.state.total_funds += amount

        logger.info(f"Campaign {campaign_id}: {caller} deposited {amount}, balance {campaign.balance}")
        return campaign.balance, None

    def withdraw_emergency(
        self,
        caller: str,
        campaign_id: int,
        amount: int,
    ) -> Tuple[Optional[int], Optional[EscrowError]]:
        """
        Pull funds out of a campaign to the administrator.

        Rescue path: works on locked campaigns too.

        Args:
            caller: Administrator or authority
            campaign_id: Campaign to draw from
            amount: Amount to withdraw

        Returns:
            (new_balance, error)
        """
        if not self.registry.is_admin_or_authority(caller):
            logger.warning(f"{caller} not authorized for emergency withdrawal")
            return None, EscrowError.NOT_AUTHORIZED
        if amount <= 0:
            return None, EscrowError.INVALID_AMOUNT

        campaign, err = self._resolve(campaign_id)
        if err is not None:
            return None, err

        if campaign.balance < amount:
            self._reject("Emergency withdrawal", campaign_id, EscrowError.INSUFFICIENT_FUNDS)
            return None, EscrowError.INSUFFICIENT_FUNDS

        administrator = self.registry.administrator
        self.gateway.transfer(amount, self.pool_principal, administrator)

        campaign.balance -= amount
        campaign.last_updated_at = self.clock.now()
        self.registry.state.total_funds -= amount
        self.emergency_withdrawn += amount

        logger.warning(
            f"Emergency withdrawal of {amount} from campaign {campaign_id} "
            f"to {administrator} by {caller}, balance {campaign.balance}"
        )
        return campaign.balance, None

    def debit(self, campaign: Campaign, amount: int, lock: bool = False) -> None:
        """
        Remove already-validated funds from a campaign.

        Used by settlement; the caller has checked balance >= amount.
        """
        campaign.balance -= amount
        if lock:
            campaign.locked = True
        campaign.last_updated_at = self.clock.now()
        self.registry.state.total_funds -= amount

    # =========================================================================
    # Lock State
    # =========================================================================

    def lock_campaign(self, caller: str, campaign_id: int) -> Tuple[bool, Optional[EscrowError]]:
        """Lock a campaign against further deposits."""
        return self._set_locked(caller, campaign_id, True)

    def unlock_campaign(self, caller: str, campaign_id: int) -> Tuple[bool, Optional[EscrowError]]:
        """Reopen a locked campaign for deposits."""
        return self._set_locked(caller, campaign_id, False)

    def _set_locked(self, caller: str, campaign_id: int, locked: bool) -> Tuple[bool, Optional[EscrowError]]:
        action = "lock" if locked else "unlock"
        if not self.registry.is_admin_or_authority(caller):
            logger.warning(f"{caller} not authorized to {action} campaign {campaign_id}")
            return False, EscrowError.NOT_AUTHORIZED

        campaign, err = self._resolve(campaign_id)
        if err is not None:
            return False, err

        if campaign.locked == locked:
            err = EscrowError.ALREADY_LOCKED if locked else EscrowError.NOT_LOCKED
            self._reject(action.capitalize(), campaign_id, err)
            return False, err

        campaign.locked = locked
        campaign.last_updated_at = self.clock.now()

        logger.info(f"Campaign {campaign_id} {action}ed by {caller}")
        return True, None

    # =========================================================================
    # Metadata
    # =========================================================================

    def update_metadata(
        self,
        caller: str,
        campaign_id: int,
        name: str,
        description: str,
        goal: int,
    ) -> Tuple[bool, Optional[EscrowError]]:
        """
        Overwrite campaign metadata. Funds are untouched.

        Returns:
            (success, error)
        """
        if not self.registry.is_admin_or_authority(caller):
            logger.warning(f"{caller} not authorized to update campaign {campaign_id}")
            return False, EscrowError.NOT_AUTHORIZED
        if not self.is_issued(campaign_id):
            return False, EscrowError.INVALID_CAMPAIGN_ID
        if campaign_id not in self.metadata:
            return False, EscrowError.CAMPAIGN_NOT_FOUND
        if goal <= 0:
            return False, EscrowError.INVALID_AMOUNT

        self.metadata[campaign_id] = CampaignMetadata(name=name, description=description, goal=goal)

        logger.info(f"Campaign {campaign_id} metadata updated by {caller}")
        return True, None

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self) -> dict:
        """Get ledger statistics."""
        return {
            "campaigns": len(self.campaigns),
            "locked_campaigns": sum(1 for c in self.campaigns.values() if c.locked),
            "escrowed": sum(c.balance for c in self.campaigns.values()),
            "emergency_withdrawn": self.emergency_withdrawn,
        }


__all__ = [
    "Campaign",
    "CampaignMetadata",
    "CampaignLedger",
]
