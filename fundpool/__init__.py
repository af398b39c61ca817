"""
Fundpool

A campaign-based escrow ledger providing:
- Campaign creation, deposits and lock/unlock
- Two-phase fund release (approve, then release)
- Platform fee settlement on release
- Role-gated configuration registry
"""

__version__ = "0.1.0"
