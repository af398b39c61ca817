"""
Funding Pool - Service object for the escrow state machine.

Owns one aggregate of shared state:
- ConfigRegistry (global parameters, roles)
- CampaignLedger (campaign and metadata tables)
- ReleaseEngine (approval table, settlement history)

Every public call holds a single re-entrant lock for its full duration,
so operations stay atomic when the pool is shared between threads.
Queries return detached copies.
"""

from dataclasses import replace
import threading
from typing import List, Optional, Tuple

from fundpool.core.collaborators import BlockClock, Clock, RecordingTransferGateway, TransferGateway
from fundpool.core.config import PoolConfig
from fundpool.core.errors import EscrowError
from fundpool.core.ledger import Campaign, CampaignLedger, CampaignMetadata
from fundpool.core.registry import ConfigRegistry, GlobalConfig
from fundpool.core.release import ReleaseApproval, ReleaseEngine, SettlementReceipt
from fundpool.utils.logger import get_logger

logger = get_logger("pool")


class FundingPool:
    """
    Campaign escrow pool.

    Mutators take the calling principal first and return
    (value, error) pairs; error is None on success.
    """

    def __init__(
        self,
        config: Optional[PoolConfig] = None,
        clock: Optional[Clock] = None,
        gateway: Optional[TransferGateway] = None,
    ):
        """
        Initialize the pool.

        Args:
            config: Deployment parameters. None = defaults.
            clock: Time source. None = BlockClock at height 0.
            gateway: Transfer primitive. None = in-memory recorder.
        """
        self.config = config or PoolConfig()
        self.clock = clock or BlockClock()
        self.gateway = gateway or RecordingTransferGateway()

        self.registry = ConfigRegistry(self.config)
        self.ledger = CampaignLedger(
            self.registry,
            self.clock,
            self.gateway,
            pool_principal=self.config.pool_principal,
        )
        self.release_engine = ReleaseEngine(self.ledger)

        self._lock = threading.RLock()

        logger.info(f"FundingPool initialized, escrow held by {self.config.pool_principal}")

    @property
    def administrator(self) -> str:
        return self.registry.administrator

    # =========================================================================
    # Queries
    # =========================================================================

    def get_total_funds(self) -> int:
        with self._lock:
            return self.registry.state.total_funds

    def get_config(self) -> GlobalConfig:
        with self._lock:
            return self.registry.snapshot()

    def get_campaign(self, campaign_id: int) -> Optional[Campaign]:
        with self._lock:
            campaign = self.ledger.get_campaign(campaign_id)
            return replace(campaign) if campaign else None

    def get_metadata(self, campaign_id: int) -> Optional[CampaignMetadata]:
        with self._lock:
            metadata = self.ledger.get_metadata(campaign_id)
            return replace(metadata) if metadata else None

    def get_approval(self, campaign_id: int, proposal_id: int) -> Optional[ReleaseApproval]:
        with self._lock:
            approval = self.release_engine.get_approval(campaign_id, proposal_id)
            return replace(approval) if approval else None

    def campaign_count(self) -> int:
        with self._lock:
            return self.registry.state.next_campaign_id

    @property
    def releases(self) -> List[SettlementReceipt]:
        """Settled releases, oldest first."""
        with self._lock:
            return [replace(r) for r in self.release_engine.receipts]

    # =========================================================================
    # Configuration
    # =========================================================================

    def set_authority(self, caller: str, new_authority: str) -> Tuple[bool, Optional[EscrowError]]:
        with self._lock:
            return self.registry.set_authority_principal(caller, new_authority)

    def set_max_campaigns(self, caller: str, new_max: int) -> Tuple[bool, Optional[EscrowError]]:
        with self._lock:
            return self.registry.set_max_campaigns(caller, new_max)

    def set_min_release(self, caller: str, new_min: int) -> Tuple[bool, Optional[EscrowError]]:
        with self._lock:
            return self.registry.set_min_release_amount(caller, new_min)

    def set_max_release(self, caller: str, new_max: int) -> Tuple[bool, Optional[EscrowError]]:
        with self._lock:
            return self.registry.set_max_release_amount(caller, new_max)

    def set_fee_rate(self, caller: str, new_rate: int) -> Tuple[bool, Optional[EscrowError]]:
        with self._lock:
            return self.registry.set_platform_fee_rate(caller, new_rate)

    # =========================================================================
    # Campaigns
    # =========================================================================

    def create_campaign(
        self,
        caller: str,
        name: str,
        description: str,
        goal: int,
        recipient: str,
    ) -> Tuple[Optional[int], Optional[EscrowError]]:
        """Create a campaign. Any caller may create one."""
        with self._lock:
            logger.debug(f"{caller} creating campaign '{name}'")
            return self.ledger.create_campaign(name, description, goal, recipient)

    def deposit(self, caller: str, campaign_id: int, amount: int) -> Tuple[Optional[int], Optional[EscrowError]]:
        with self._lock:
            return self.ledger.deposit_funds(caller, campaign_id, amount)

    def lock(self, caller: str, campaign_id: int) -> Tuple[bool, Optional[EscrowError]]:
        with self._lock:
            return self.ledger.lock_campaign(caller, campaign_id)

    def unlock(self, caller: str, campaign_id: int) -> Tuple[bool, Optional[EscrowError]]:
        with self._lock:
            return self.ledger.unlock_campaign(caller, campaign_id)

    def update_metadata(
        self,
        caller: str,
        campaign_id: int,
        name: str,
        description: str,
        goal: int,
    ) -> Tuple[bool, Optional[EscrowError]]:
        with self._lock:
            return self.ledger.update_metadata(caller, campaign_id, name, description, goal)

    def emergency_withdraw(
        self,
        caller: str,
        campaign_id: int,
        amount: int,
    ) -> Tuple[Optional[int], Optional[EscrowError]]:
        with self._lock:
            return self.ledger.withdraw_emergency(caller, campaign_id, amount)

    # =========================================================================
    # Release
    # =========================================================================

    def approve_release(
        self,
        caller: str,
        campaign_id: int,
        proposal_id: int,
        amount: int,
    ) -> Tuple[bool, Optional[EscrowError]]:
        with self._lock:
            return self.release_engine.approve_release(caller, campaign_id, proposal_id, amount)

    def release(
        self,
        caller: str,
        campaign_id: int,
        proposal_id: int,
    ) -> Tuple[Optional[int], Optional[EscrowError]]:
        """Settle an approved release. The caller is only logged."""
        with self._lock:
            logger.debug(f"{caller} releasing {campaign_id}/{proposal_id}")
            return self.release_engine.release_funds(campaign_id, proposal_id)

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self) -> dict:
        """Get pool statistics."""
        with self._lock:
            ledger_stats = self.ledger.stats()
            release_stats = self.release_engine.stats()
            return {
                "campaigns": ledger_stats["campaigns"],
                "locked_campaigns": ledger_stats["locked_campaigns"],
                "approvals": release_stats["approvals"],
                "releases": release_stats["releases"],
                "total_funds": self.registry.state.total_funds,
                "fees_collected": release_stats["fees_collected"],
                "net_paid_out": release_stats["net_paid_out"],
                "emergency_withdrawn": ledger_stats["emergency_withdrawn"],
            }


__all__ = ["FundingPool"]
