"""Configuration for the scheduling core."""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .data.models import DEFAULT_DAYS, Day

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"

ENV_API_URL = "TIMEGRID_API_URL"
ENV_TIMEOUT = "TIMEGRID_TIMEOUT"
ENV_SLOT_SOURCE = "TIMEGRID_SLOT_SOURCE"
ENV_TOKEN = "TIMEGRID_TOKEN"


class SlotSource(str, Enum):
    """Where the grid's rows come from."""
    REGISTRY = "registry"  # the service's time-slot list
    ENTRIES = "entries"    # intervals observed on loaded entries


class CoreConfig(BaseModel):
    """Settings for the service client and grid."""
    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(default=DEFAULT_BASE_URL, min_length=1, description="Scheduling service base URL")
    timeout_seconds: float = Field(default=10.0, gt=0, le=300, description="Per-request timeout")
    days: list[Day] = Field(default_factory=lambda: list(DEFAULT_DAYS), min_length=1, description="Grid columns")
    slot_source: SlotSource = Field(default=SlotSource.REGISTRY, description="Source of grid rows")
    preview_limit: int = Field(default=2, ge=1, le=10, description="Entries shown per cell before '+N'")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("days")
    @classmethod
    def unique_days(cls, v: list[Day]) -> list[Day]:
        if len(set(v)) != len(v):
            raise ValueError("days must not repeat")
        return v


def load_config(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CoreConfig:
    """
    Build a CoreConfig from an optional JSON file and environment overrides.

    Args:
        path: JSON file with CoreConfig fields
        env: Environment mapping (defaults to os.environ)

    Raises:
        FileNotFoundError: If path doesn't exist
        pydantic.ValidationError: If a value is invalid
    """
    env = os.environ if env is None else env
    data: dict = {}

    if path is not None:
        with open(Path(path)) as f:
            data = json.load(f)

    if env.get(ENV_API_URL):
        data["base_url"] = env[ENV_API_URL]
    if env.get(ENV_TIMEOUT):
        data["timeout_seconds"] = env[ENV_TIMEOUT]
    if env.get(ENV_SLOT_SOURCE):
        data["slot_source"] = env[ENV_SLOT_SOURCE].lower()

    config = CoreConfig.model_validate(data)
    logger.debug(f"Using scheduling service at {config.base_url}")
    return config
