"""
Error taxonomy for the escrow state machine.

Every failed operation returns exactly one of these codes and leaves the
pool state untouched. Numeric values match the deployed contract codes.
"""

from enum import IntEnum


class EscrowError(IntEnum):
    """Failure codes returned by pool operations."""
    NOT_AUTHORIZED = 100
    CAMPAIGN_NOT_FOUND = 101
    INSUFFICIENT_FUNDS = 102
    VOTE_NOT_APPROVED = 103
    INVALID_AMOUNT = 104
    ALREADY_LOCKED = 105
    NOT_LOCKED = 106
    INVALID_CAMPAIGN_ID = 107
    INVALID_PROPOSAL_ID = 108
    INVALID_RECIPIENT = 113
    MAX_CAMPAIGNS_EXCEEDED = 114
    AUTHORITY_NOT_SET = 116
    INVALID_MIN_RELEASE = 117
    INVALID_MAX_RELEASE = 118
    INVALID_FEE_RATE = 119


__all__ = ["EscrowError"]
