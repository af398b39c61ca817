"""
Fundpool Configuration Registry Module.

Holds global pool parameters behind role-gated setters.
"""

from fundpool.core.registry.config_registry import (
    ConfigRegistry,
    GlobalConfig,
)

__all__ = [
    "ConfigRegistry",
    "GlobalConfig",
]
