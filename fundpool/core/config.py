"""
Pool configuration parameters for Fundpool.

Defines the deployment parameters of a funding pool: the privileged
principals, campaign and release limits, and the platform fee rate.
Values are validated with pydantic using the same bounds the
configuration registry enforces at runtime.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Environment variables are read as FUNDPOOL_<FIELD NAME>
ENV_PREFIX = "FUNDPOOL_"

MAX_FEE_RATE = 10


class PoolConfig(BaseModel):
    """Deployment parameters of a funding pool"""

    model_config = ConfigDict(extra="forbid")

    # Principals
    administrator: str = Field("ST1TEST", min_length=1)
    authority_principal: Optional[str] = Field("ST2AUTHORITY", min_length=1)
    pool_principal: str = Field("contract", min_length=1)  # holds escrowed value

    # Limits
    max_campaigns: int = Field(500, gt=0)
    min_release_amount: int = Field(100, gt=0)
    max_release_amount: int = Field(1_000_000, gt=0)

    # Fee as an integer percentage
    platform_fee_rate: int = Field(5, ge=0, le=MAX_FEE_RATE)

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("logs")


def _read_env() -> Dict[str, Any]:
    """Collect FUNDPOOL_* overrides from the environment."""
    overrides: Dict[str, Any] = {}
    for name in PoolConfig.model_fields:
        value = os.environ.get(ENV_PREFIX + name.upper())
        if value is not None:
            overrides[name] = value
    return overrides


def load_config(
    config_path: Optional[str] = None,
    env_file: Optional[str] = None,
) -> PoolConfig:
    """
    Load configuration from defaults, a JSON file and the environment.

    Later sources win: defaults < JSON file < FUNDPOOL_* variables.

    Args:
        config_path: Optional path to a JSON config file
        env_file: Optional .env file loaded before reading the environment

    Returns:
        PoolConfig instance

    Raises:
        ValueError: If the config file is not JSON
        pydantic.ValidationError: If a value is out of bounds
    """
    values: Dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.suffix.lower() != ".json":
            raise ValueError(f"Unsupported config format: {path.suffix or path.name}")
        values.update(json.loads(path.read_text(encoding="utf-8")))

    load_dotenv(dotenv_path=env_file)
    values.update(_read_env())

    return PoolConfig(**values)
