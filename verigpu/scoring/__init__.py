"""
Scoring module for GPU verification scores and weight allocation.

Turns executor validation rounds into miner GPU profiles, groups eligible
miners by rewardable GPU category and splits the weight budget across them.
"""

from verigpu.scoring.allocation import (
    BurnAllocation,
    CategoryAllocation,
    WeightAllocationEngine,
    WeightDistribution,
)
from verigpu.scoring.categorization import (
    REWARDABLE_CATEGORIES,
    ExecutorValidationResult,
    GpuCategory,
    MinerGpuProfile,
    determine_primary_gpu_model,
    normalize_gpu_model,
)
from verigpu.scoring.engine import CategoryStats, GpuScoringEngine, ProfileStore
from verigpu.scoring.verification import MAX_GPU_COUNT, calculate_verification_score

__all__ = [
    "BurnAllocation",
    "CategoryAllocation",
    "CategoryStats",
    "ExecutorValidationResult",
    "GpuCategory",
    "GpuScoringEngine",
    "MAX_GPU_COUNT",
    "MinerGpuProfile",
    "ProfileStore",
    "REWARDABLE_CATEGORIES",
    "WeightAllocationEngine",
    "WeightDistribution",
    "calculate_verification_score",
    "determine_primary_gpu_model",
    "normalize_gpu_model",
]
