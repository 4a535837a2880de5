"""Validated settings for the Hukum room service."""

from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "HUKUM_"


class ServiceSettings(BaseModel):
    hand_end_delay: float = Field(2.0, description="Seconds between a hand ending and dealer selection.")
    match_restart_delay: float = Field(10.0, description="Seconds before a finished match is reset.")
    auto_select_dealer: bool = Field(
        True,
        description="Pick the lowest seat of the dealer-choosing team once the hand-end delay passes.",
    )
    room_code_length: int = Field(6, description="Length of generated room codes.")
    seed: Optional[int] = Field(None, description="Seed for reproducible deals; unset for random play.")

    @field_validator("hand_end_delay", "match_restart_delay")
    @classmethod
    def ensure_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Delays must not be negative.")
        return value

    @field_validator("room_code_length")
    @classmethod
    def validate_code_length(cls, value: int) -> int:
        if not 4 <= value <= 12:
            raise ValueError("Room codes must be between 4 and 12 characters.")
        return value


def load_settings(payload: Optional[Mapping[str, object]] = None) -> ServiceSettings:
    return ServiceSettings(**dict(payload or {}))


def settings_from_env(environ: Optional[Mapping[str, str]] = None) -> ServiceSettings:
    """Build settings from ``HUKUM_*`` variables, e.g. ``HUKUM_HAND_END_DELAY=0.5``."""
    source = os.environ if environ is None else environ
    payload = {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in source.items()
        if key.startswith(ENV_PREFIX) and value != ""
    }
    return load_settings(payload)
