"""
Configuration parameters for AuctionHouse.

Defines auction defaults, pagination limits, fee routing and logging
options. Values come from a JSON file or from AUCTIONHOUSE_* environment
variables (a .env file is honoured).
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from auctionhouse.core.errors import ErrorReason, ValidationError
from auctionhouse.crypto import ZERO_ADDRESS
from auctionhouse.utils.logger import SUBSYSTEMS
from auctionhouse.utils.validation import (
    BASIS_POINTS_DENOMINATOR,
    MAX_PAGE_SIZE,
    validate_address,
)

ENV_PREFIX = "AUCTIONHOUSE_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_level(value: str) -> str:
    level = value.strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level: {value}")
    return level


class AuctionHouseConfig(BaseModel):
    """Deployment-wide configuration parameters"""

    # Auction defaults
    default_duration: int = Field(default=86400, gt=0)  # One day
    default_fee_basis_points: int = Field(default=100, ge=0, lt=BASIS_POINTS_DENOMINATOR)  # 1%

    # Factory parameters
    max_page_size: int = Field(default=100, gt=0, le=MAX_PAGE_SIZE)
    fee_recipient: str = ZERO_ADDRESS  # Zero = fee retained by each auction

    # Logging
    log_level: str = "INFO"
    log_levels: Dict[str, str] = Field(default_factory=dict)  # Per subsystem
    log_dir: Path = Path("logs")
    log_to_file: bool = False

    @field_validator("fee_recipient")
    @classmethod
    def _check_fee_recipient(cls, value: str) -> str:
        # Operators may paste checksummed addresses; contracts only see lowercase
        value = value.lower()
        valid, err = validate_address(value, "fee_recipient")
        if not valid:
            raise ValueError(err)
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        return _parse_level(value)

    @field_validator("log_levels", mode="before")
    @classmethod
    def _check_log_levels(cls, value: Any) -> Dict[str, str]:
        # Environment form: "chain=WARNING,auction=DEBUG"
        if isinstance(value, str):
            pairs = [item.split("=", 1) for item in value.split(",") if item.strip()]
            if any(len(pair) != 2 for pair in pairs):
                raise ValueError(f"expected subsystem=LEVEL pairs, got {value!r}")
            value = {name.strip(): level for name, level in pairs}
        if not isinstance(value, dict):
            raise ValueError("log_levels must be a mapping of subsystem to level")

        levels = {}
        for name, level in value.items():
            if name not in SUBSYSTEMS:
                raise ValueError(f"unknown logging subsystem: {name}")
            levels[name] = _parse_level(str(level))
        return levels

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)

    @property
    def subsystem_logging_levels(self) -> Dict[str, int]:
        return {name: getattr(logging, level) for name, level in self.log_levels.items()}


# Global config instance (can be overridden)
config = AuctionHouseConfig()


def _from_environment() -> dict:
    values = {}
    for name in AuctionHouseConfig.model_fields:
        raw = os.getenv(ENV_PREFIX + name.upper())
        if raw is not None:
            values[name] = raw
    return values


def load_config(
    config_path: Optional[str] = None,
    env_file: Optional[str] = None,
) -> AuctionHouseConfig:
    """
    Load configuration from file or environment.

    Args:
        config_path: Optional path to a JSON config file. When given, the
            environment is ignored.
        env_file: Optional .env file to load before reading the environment

    Returns:
        AuctionHouseConfig instance

    Raises:
        ValidationError: if the file cannot be parsed or a value is invalid
    """
    if config_path:
        try:
            values = json.loads(Path(config_path).read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ValidationError(
                f"Cannot read config file {config_path}: {e}",
                reason=ErrorReason.INVALID_CONFIG,
            ) from e
    else:
        load_dotenv(env_file)
        values = _from_environment()

    try:
        return AuctionHouseConfig.model_validate(values)
    except PydanticValidationError as e:
        raise ValidationError(str(e), reason=ErrorReason.INVALID_CONFIG) from e
