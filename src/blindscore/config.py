"""
Engine Configuration for BlindScore
Configuration loading and validation for one engine deployment
"""

import json
import logging
import os
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from blindscore.attestation.crypto import deserialize_public_key

logger = logging.getLogger(__name__)

ENV_PREFIX = "BLINDSCORE_"


def max_safe_capacity(max_per_item: int, accumulator_bits: int) -> int:
    """
    Largest submission count whose worst-case sum fits the accumulator

    Args:
        max_per_item: Highest composite score one submission can add
        accumulator_bits: Width of the encrypted accumulator

    Returns:
        floor((2^bits - 1) / max_per_item)
    """
    if max_per_item <= 0:
        raise ValueError("max_per_item must be positive")
    if accumulator_bits <= 0:
        raise ValueError("accumulator_bits must be positive")
    return ((1 << accumulator_bits) - 1) // max_per_item


class EngineConfig(BaseModel):
    """Deployment settings for a confidential scoring engine"""

    model_config = ConfigDict(extra="forbid", frozen=True)

    submission_cap: int = Field(default=600, ge=1, description="Hard cap on folded submissions")
    max_score_per_submission: int = Field(default=100, ge=1, description="Highest composite score")
    accumulator_bits: int = Field(default=16, ge=1, le=64, description="Encrypted accumulator width")
    publish_sum_owner_only: bool = Field(default=True, description="Restrict publish_sum to the owner")
    attestation_max_skew_seconds: int = Field(default=300, ge=1, description="Input proof freshness window")
    debug_decrypt: bool = Field(default=False, description="Allow test-harness decryption of any handle")
    trace_limit: int = Field(default=10000, ge=1, description="Operation trace entries retained")
    trusted_attestor_keys: Tuple[str, ...] = Field(
        default=(), description="Base64 Ed25519 public keys whose input proofs are accepted"
    )

    @field_validator("trusted_attestor_keys", mode="before")
    @classmethod
    def split_attestor_keys(cls, v):
        # environment variables carry a comma-separated list
        if isinstance(v, str):
            return tuple(key.strip() for key in v.split(",") if key.strip())
        return v

    @field_validator("trusted_attestor_keys")
    @classmethod
    def validate_attestor_keys(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        for key in v:
            try:
                deserialize_public_key(key)
            except ValueError as e:
                raise ValueError(f"invalid attestor public key {key!r}: {e}") from e
        return v

    @model_validator(mode="after")
    def validate_capacity(self) -> 'EngineConfig':
        limit = max_safe_capacity(self.max_score_per_submission, self.accumulator_bits)
        if self.submission_cap > limit:
            raise ValueError(
                f"submission_cap {self.submission_cap} x {self.max_score_per_submission} "
                f"overflows a {self.accumulator_bits}-bit accumulator (max cap {limit})"
            )
        return self

    @property
    def capacity_headroom(self) -> int:
        """Unused accumulator range at a full aggregate"""
        return (1 << self.accumulator_bits) - 1 - self.submission_cap * self.max_score_per_submission

    @classmethod
    def from_environment(cls, environ: Optional[Dict[str, str]] = None) -> 'EngineConfig':
        """Load configuration from BLINDSCORE_<FIELD> environment variables"""
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            if field.annotation is bool:
                values[name] = raw.strip().lower() in ('true', '1', 'yes', 'on')
            else:
                values[name] = raw.strip()
        if values:
            logger.info(f"Engine config overrides from environment: {sorted(values)}")
        return cls(**values)

    @classmethod
    def load_from_file(cls, config_path: str) -> 'EngineConfig':
        """Load configuration from a JSON file; defaults when the file is absent"""
        if not os.path.exists(config_path):
            logger.warning(f"Engine config file not found: {config_path}")
            return cls()

        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info(f"Loaded engine config from {config_path}")
        return cls(**data)
