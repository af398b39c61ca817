"""
Configuration Registry - Global pool parameters.

This module provides:
- The single GlobalConfig record (limits, fee rate, authority, counters)
- The shared authorization predicate (administrator or authority)
- Role-gated setters that validate before overwriting

Setters are total overwrites with no side effect beyond the registry.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from fundpool.core.config import PoolConfig, MAX_FEE_RATE
from fundpool.core.errors import EscrowError
from fundpool.utils.logger import get_logger

logger = get_logger("registry")


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class GlobalConfig:
    """
    Process-wide pool parameters.

    Attributes:
        total_funds: Sum of undistributed campaign balances
        max_campaigns: Upper bound on issued campaign ids
        min_release_amount: Smallest amount an approval may carry
        max_release_amount: Largest amount an approval may carry
        platform_fee_rate: Integer percentage taken on release (0-10)
        authority_principal: Secondary privileged principal, None if unset
        next_campaign_id: Next id to issue, never reused
    """
    total_funds: int = 0
    max_campaigns: int = 500
    min_release_amount: int = 100
    max_release_amount: int = 1_000_000
    platform_fee_rate: int = 5
    authority_principal: Optional[str] = None
    next_campaign_id: int = 0


# =============================================================================
# Configuration Registry
# =============================================================================


class ConfigRegistry:
    """
    Owner of GlobalConfig.

    The administrator is fixed at construction; the authority principal
    can be reassigned at runtime by either privileged role.
    """

    def __init__(self, config: Optional[PoolConfig] = None):
        config = config or PoolConfig()
        self.administrator = config.administrator
        self.state = GlobalConfig(
            max_campaigns=config.max_campaigns,
            min_release_amount=config.min_release_amount,
            max_release_amount=config.max_release_amount,
            platform_fee_rate=config.platform_fee_rate,
            authority_principal=config.authority_principal,
        )

        logger.info(
            f"ConfigRegistry initialized: admin={self.administrator} "
            f"authority={self.state.authority_principal} fee_rate={self.state.platform_fee_rate}%"
        )

    # =========================================================================
    # Authorization
    # =========================================================================

    def is_admin_or_authority(self, caller: str) -> bool:
        """Check if caller holds either privileged role."""
        if caller == self.administrator:
            return True
        authority = self.state.authority_principal
        return authority is not None and caller == authority

    def _deny(self, caller: str, action: str) -> Tuple[bool, EscrowError]:
        logger.warning(f"{caller} not authorized to {action}")
        return False, EscrowError.NOT_AUTHORIZED

    # =========================================================================
    # Read Accessors
    # =========================================================================

    def snapshot(self) -> GlobalConfig:
        """Get a detached copy of the current parameters."""
        return replace(self.state)

    @property
    def authority_principal(self) -> Optional[str]:
        return self.state.authority_principal

    @property
    def platform_fee_rate(self) -> int:
        return self.state.platform_fee_rate

    # =========================================================================
    # Setters
    # =========================================================================

    def set_authority_principal(
        self,
        caller: str,
        new_authority: str,
    ) -> Tuple[bool, Optional[EscrowError]]:
        """
        Reassign the authority principal.

        The administrator may not be made the authority.

        Args:
            caller: Principal invoking the change
            new_authority: Principal to install

        Returns:
            (success, error)
        """
        if not self.is_admin_or_authority(caller):
            return self._deny(caller, "set authority")
        if new_authority == self.administrator:
            return False, EscrowError.INVALID_RECIPIENT

        self.state.authority_principal = new_authority
        logger.info(f"Authority principal set to {new_authority} by {caller}")
        return True, None

    def set_max_campaigns(self, caller: str, new_max: int) -> Tuple[bool, Optional[EscrowError]]:
        """Overwrite the campaign cap."""
        return self._set_positive(caller, "max_campaigns", new_max)

    def set_min_release_amount(self, caller: str, new_min: int) -> Tuple[bool, Optional[EscrowError]]:
        """Overwrite the minimum release amount."""
        return self._set_positive(caller, "min_release_amount", new_min)

    def set_max_release_amount(self, caller: str, new_max: int) -> Tuple[bool, Optional[EscrowError]]:
        """Overwrite the maximum release amount."""
        return self._set_positive(caller, "max_release_amount", new_max)

    def set_platform_fee_rate(self, caller: str, new_rate: int) -> Tuple[bool, Optional[EscrowError]]:
        """
        Overwrite the platform fee rate.

        Args:
            caller: Principal invoking the change
            new_rate: Integer percentage in [0, 10]

        Returns:
            (success, error)
        """
        if not self.is_admin_or_authority(caller):
            return self._deny(caller, "set platform_fee_rate")
        if new_rate < 0 or new_rate > MAX_FEE_RATE:
            return False, EscrowError.INVALID_FEE_RATE

        self.state.platform_fee_rate = new_rate
        logger.info(f"platform_fee_rate set to {new_rate}% by {caller}")
        return True, None

    def _set_positive(self, caller: str, field_name: str, value: int) -> Tuple[bool, Optional[EscrowError]]:
        if not self.is_admin_or_authority(caller):
            return self._deny(caller, f"set {field_name}")
        if value <= 0:
            return False, EscrowError.INVALID_AMOUNT

        setattr(self.state, field_name, value)
        logger.info(f"{field_name} set to {value} by {caller}")
        return True, None

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self) -> dict:
        """Get registry statistics."""
        return {
            "administrator": self.administrator,
            "authority_principal": self.state.authority_principal,
            "max_campaigns": self.state.max_campaigns,
            "min_release_amount": self.state.min_release_amount,
            "max_release_amount": self.state.max_release_amount,
            "platform_fee_rate": self.state.platform_fee_rate,
            "campaigns_issued": self.state.next_campaign_id,
            "total_funds": self.state.total_funds,
        }


__all__ = [
    "GlobalConfig",
    "ConfigRegistry",
]
