"""GPU model normalization and the profile models built from validation results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from verigpu.types import MinerUID


class GpuCategory(str, Enum):
    """Canonical GPU categories. Every category comparison goes through these values."""

    H100 = "H100"
    H200 = "H200"
    OTHER = "OTHER"


REWARDABLE_CATEGORIES: tuple[str, ...] = (GpuCategory.H100.value, GpuCategory.H200.value)


def normalize_gpu_model(gpu_model: str) -> str:
    """
    Map a raw device label to its canonical category.

    Vendor strings vary ("NVIDIA H100 80GB HBM3", "h100-sxm5", "H200 NVL"),
    so matching ignores case, spaces, dashes and underscores. Unknown labels
    map to OTHER.
    """
    compact = "".join(ch for ch in gpu_model.upper() if ch not in " -_")
    if "H200" in compact:
        return GpuCategory.H200.value
    if "H100" in compact:
        return GpuCategory.H100.value
    return GpuCategory.OTHER.value


def is_rewardable(gpu_model: str, rewardable: tuple[str, ...] = REWARDABLE_CATEGORIES) -> bool:
    """Check whether a (raw or canonical) GPU label belongs to a rewardable category."""
    return normalize_gpu_model(gpu_model) in rewardable


class ExecutorValidationResult(BaseModel):
    """Outcome of validating one executor (a machine with one or more GPUs)."""

    executor_id: str
    is_valid: bool
    gpu_model: str
    gpu_count: int = Field(ge=0)
    gpu_memory_gb: int = Field(default=0, ge=0)
    attestation_valid: bool
    validation_timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def passed(self) -> bool:
        """Both the validation and the hardware attestation succeeded."""
        return self.is_valid and self.attestation_valid


def determine_primary_gpu_model(executor_validations: list[ExecutorValidationResult]) -> str:
    """
    Pick the canonical category holding the most GPUs in a batch.

    Ties go to the category seen first in the input. An empty batch is OTHER.
    """
    counts: dict[str, int] = {}
    for validation in executor_validations:
        category = normalize_gpu_model(validation.gpu_model)
        # dict preserves first-seen order, which max() keeps on ties
        counts[category] = counts.get(category, 0) + validation.gpu_count

    if not counts:
        return GpuCategory.OTHER.value

    return max(counts, key=lambda category: counts[category])


def count_valid_gpus_by_category(
    executor_validations: list[ExecutorValidationResult],
) -> dict[str, int]:
    """Sum GPU counts per canonical category over fully valid results only."""
    counts: dict[str, int] = {}
    for validation in executor_validations:
        if not validation.passed or validation.gpu_count <= 0:
            continue
        category = normalize_gpu_model(validation.gpu_model)
        counts[category] = counts.get(category, 0) + validation.gpu_count
    return counts


class MinerGpuProfile(BaseModel):
    """Current GPU reputation of one miner. Replaced wholesale on every validation round."""

    miner_uid: MinerUID
    primary_gpu_model: str
    gpu_counts: dict[str, int] = Field(default_factory=dict)
    total_score: float = Field(ge=0.0, le=1.0)
    verification_count: int = Field(default=0, ge=0)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_successful_validation: datetime | None = None

    @field_validator("gpu_counts")
    @classmethod
    def _prune_zero_counts(cls, value: dict[str, int]) -> dict[str, int]:
        return {gpu_model: count for gpu_model, count in value.items() if count > 0}

    @classmethod
    def from_validations(
        cls,
        miner_uid: MinerUID,
        executor_validations: list[ExecutorValidationResult],
        score: float,
    ) -> MinerGpuProfile:
        """Build a fresh profile from one round of executor validations."""
        successful_timestamps = [v.validation_timestamp for v in executor_validations if v.passed]
        return cls(
            miner_uid=miner_uid,
            primary_gpu_model=determine_primary_gpu_model(executor_validations),
            gpu_counts=count_valid_gpus_by_category(executor_validations),
            total_score=score,
            verification_count=len(executor_validations),
            last_updated=datetime.now(timezone.utc),
            last_successful_validation=max(successful_timestamps, default=None),
        )

    def total_gpu_count(self) -> int:
        return sum(self.gpu_counts.values())

    def rewardable_gpu_counts(
        self, rewardable: tuple[str, ...] = REWARDABLE_CATEGORIES
    ) -> dict[str, int]:
        """GPU counts restricted to rewardable categories, keyed by canonical name."""
        counts: dict[str, int] = {}
        for gpu_model, gpu_count in self.gpu_counts.items():
            if gpu_count <= 0:
                continue
            category = normalize_gpu_model(gpu_model)
            if category in rewardable:
                counts[category] = counts.get(category, 0) + gpu_count
        return counts
