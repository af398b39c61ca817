"""
Unit tests for pool configuration loading.

Tests cover:
1. Defaults
2. Bounds validation
3. JSON file, environment and .env overrides
"""

import json

import pytest
from pydantic import ValidationError

from fundpool.core.config import PoolConfig, load_config


class TestPoolConfig:
    """Tests for the config model."""

    def test_defaults(self):
        """Defaults match the deployed contract."""
        config = PoolConfig()
        assert config.administrator == "ST1TEST"
        assert config.authority_principal == "ST2AUTHORITY"
        assert config.max_campaigns == 500
        assert config.min_release_amount == 100
        assert config.max_release_amount == 1_000_000
        assert config.platform_fee_rate == 5

    @pytest.mark.parametrize("field,value", [
        ("platform_fee_rate", 15),
        ("platform_fee_rate", -1),
        ("max_campaigns", 0),
        ("min_release_amount", -10),
    ])
    def test_out_of_bounds(self, field, value):
        """Registry bounds are enforced at construction."""
        with pytest.raises(ValidationError):
            PoolConfig(**{field: value})

    def test_unknown_field(self):
        """Typos are rejected."""
        with pytest.raises(ValidationError):
            PoolConfig(fee_rate=3)


class TestLoadConfig:
    """Tests for config sources."""

    def test_json_file(self, tmp_path):
        """JSON values override defaults."""
        path = tmp_path / "pool.json"
        path.write_text(json.dumps({"platform_fee_rate": 3, "authority_principal": "ST2AUTH"}))

        config = load_config(str(path))

        assert config.platform_fee_rate == 3
        assert config.authority_principal == "ST2AUTH"

    def test_unsupported_format(self, tmp_path):
        """Only JSON files are read."""
        path = tmp_path / "pool.yaml"
        path.write_text("platform_fee_rate: 3")

        with pytest.raises(ValueError, match="Unsupported config format"):
            load_config(str(path))

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        """Environment wins over the file."""
        path = tmp_path / "pool.json"
        path.write_text(json.dumps({"max_campaigns": 10}))
        monkeypatch.setenv("FUNDPOOL_MAX_CAMPAIGNS", "20")

        config = load_config(str(path))

        assert config.max_campaigns == 20

    def test_env_file(self, tmp_path, monkeypatch):
        """A .env file feeds FUNDPOOL_* variables."""
        env_file = tmp_path / ".env"
        env_file.write_text("FUNDPOOL_MIN_RELEASE_AMOUNT=250\n")
        # register for restore so load_dotenv does not leak into other tests
        monkeypatch.setenv("FUNDPOOL_MIN_RELEASE_AMOUNT", "0")
        monkeypatch.delenv("FUNDPOOL_MIN_RELEASE_AMOUNT")

        config = load_config(env_file=str(env_file))

        assert config.min_release_amount == 250

    def test_invalid_env_value(self, monkeypatch):
        """Environment values go through the same validation."""
        monkeypatch.setenv("FUNDPOOL_PLATFORM_FEE_RATE", "11")

        with pytest.raises(ValidationError):
            load_config()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
