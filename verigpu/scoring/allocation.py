"""Weight allocation: split the u16 budget across GPU categories with burn fallback."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from verigpu.types import MinersByCategory, MinerUID, WeightEntry

if TYPE_CHECKING:
    from verigpu.config import EmissionConfig

logger = structlog.get_logger()


@dataclass
class CategoryAllocation:
    """How one GPU category's pool was handled in a cycle."""

    gpu_model: str
    miner_count: int
    total_score: float
    weight_pool: int
    allocation_percentage: float
    # Weight actually handed to miners; the pool minus this is either burned
    # (empty category) or flooring residual
    distributed_weight: int = 0
    burned: bool = False


@dataclass
class BurnAllocation:
    """Weight routed to the burn uid."""

    uid: MinerUID
    weight: int
    percentage: float


@dataclass
class WeightDistribution:
    """Full result of one allocation run."""

    weights: list[WeightEntry]
    burn_allocation: BurnAllocation
    category_allocations: dict[str, CategoryAllocation] = field(default_factory=dict)
    total_weight: int = 0
    miners_served: int = 0

    @property
    def allocated_weight(self) -> int:
        return sum(entry.weight for entry in self.weights)


def split_pool(pool: int, miners: list[tuple[MinerUID, float]]) -> list[WeightEntry]:
    """
    Divide an integer pool proportionally to scores, rounding every share down.

    The running total is capped at ``pool`` so float error can never push a
    category over its budget. Flooring residuals stay unallocated.
    """
    total_score = sum(score for _, score in miners)
    entries: list[WeightEntry] = []
    distributed = 0

    for uid, score in miners:
        weight = math.floor(score / total_score * pool) if total_score > 0 else 0
        weight = max(0, min(weight, pool - distributed))
        distributed += weight
        entries.append(WeightEntry(uid, weight))

    return entries


class WeightAllocationEngine:
    """
    Converts per-category miner scores into the final u16 weight vector.

    Algorithm:
    1. ``base_burn = floor(total * burn% / 100)``; the rest is ``remaining``
    2. each configured category gets ``floor(remaining * share% / 100)``
    3. a category's pool is split by score; an empty category burns its pool
    4. one burn entry carries ``base_burn`` plus every burned pool

    The burn uid is reserved: miner entries under it are dropped before step 3.
    """

    def __init__(self, config: EmissionConfig):
        """
        Initialize the engine.

        Args:
            config: Emission configuration

        Raises:
            ValueError: If the configuration cannot produce a valid allocation
        """
        config.validate_allocation()
        self.config = config

    def calculate_weight_distribution(
        self,
        miners_by_category: MinersByCategory,
    ) -> WeightDistribution:
        """
        Allocate the weight budget for one reward cycle.

        Args:
            miners_by_category: Output of the category aggregator

        Returns:
            WeightDistribution whose weights sum to at most ``total_weight``
        """
        total_weight = self.config.total_weight
        base_burn = math.floor(total_weight * self.config.burn_percentage / 100.0)
        remaining = total_weight - base_burn

        weights: list[WeightEntry] = []
        category_allocations: dict[str, CategoryAllocation] = {}
        served_uids: set[MinerUID] = set()
        burn_uid = MinerUID(self.config.burn_uid)
        burn_total = 0
        pools_assigned = 0

        for gpu_model, share in self.config.gpu_allocations.items():
            # shares may sum slightly above 100 within tolerance; cap at remaining
            pool = min(math.floor(remaining * share / 100.0), remaining - pools_assigned)
            pools_assigned += pool
            candidates = miners_by_category.get(gpu_model, [])
            # The burn uid is a reserved sink and never earns a miner share
            miners = [entry for entry in candidates if entry[0] != burn_uid]
            if len(miners) != len(candidates):
                logger.warning(
                    "burn_uid_excluded_from_category", gpu_model=gpu_model, burn_uid=burn_uid
                )
            total_score = sum(score for _, score in miners)

            allocation = CategoryAllocation(
                gpu_model=gpu_model,
                miner_count=len(miners),
                total_score=total_score,
                weight_pool=pool,
                allocation_percentage=share,
            )

            if not miners or total_score <= 0:
                burn_total += pool
                allocation.burned = True
                logger.info(
                    "empty_category_burned",
                    gpu_model=gpu_model,
                    miners=len(miners),
                    burned_weight=pool,
                )
            else:
                category_weights = split_pool(pool, miners)
                weights.extend(category_weights)
                served_uids.update(entry.uid for entry in category_weights)
                allocation.distributed_weight = sum(entry.weight for entry in category_weights)

            category_allocations[gpu_model] = allocation

        burn_weight = base_burn + burn_total
        weights.append(WeightEntry(burn_uid, burn_weight))

        distribution = WeightDistribution(
            weights=weights,
            burn_allocation=BurnAllocation(
                uid=burn_uid,
                weight=burn_weight,
                percentage=100.0 * burn_weight / total_weight,
            ),
            category_allocations=category_allocations,
            total_weight=total_weight,
            miners_served=len(served_uids),
        )

        logger.info(
            "weights_allocated",
            total_weight=total_weight,
            base_burn=base_burn,
            category_burn=burn_total,
            allocated=distribution.allocated_weight,
            miners_served=distribution.miners_served,
            entries=len(weights),
        )
        return distribution

    def allocate_weights(self, miners_by_category: MinersByCategory) -> list[WeightEntry]:
        """Weight vector for one reward cycle, burn entry last."""
        return self.calculate_weight_distribution(miners_by_category).weights
