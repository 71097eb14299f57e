"""GPU scoring engine: profile updates and per-category eligibility."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

import structlog

from verigpu.scoring.categorization import (
    REWARDABLE_CATEGORIES,
    ExecutorValidationResult,
    MinerGpuProfile,
)
from verigpu.scoring.verification import MAX_GPU_COUNT, calculate_verification_score
from verigpu.types import LivenessView, MinersByCategory, MinerUID

logger = structlog.get_logger()


class ProfileStore(Protocol):
    """Durable uid -> MinerGpuProfile mapping.

    ``upsert_gpu_profile`` replaces the whole profile for a miner atomically
    (last write wins). Store errors are raised to the caller as-is.
    """

    async def upsert_gpu_profile(self, profile: MinerGpuProfile) -> None: ...
    async def get_gpu_profile(self, miner_uid: int) -> MinerGpuProfile | None: ...
    async def get_all_gpu_profiles(self) -> list[MinerGpuProfile]: ...


@dataclass
class CategoryStats:
    """Summary of proportional scores in one GPU category."""

    miner_count: int = 0
    total_score: float = 0.0
    min_score: float = 0.0
    max_score: float = 0.0
    average_score: float = 0.0


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def is_within_epoch(profile: MinerGpuProfile, cutoff_time: datetime) -> bool:
    return _as_utc(profile.last_updated) >= cutoff_time


def proportional_category_scores(
    profile: MinerGpuProfile,
    rewardable: tuple[str, ...] = REWARDABLE_CATEGORIES,
) -> list[tuple[str, float]]:
    """
    Split a profile's score across its rewardable categories by GPU share.

    A miner with 4 H100 and 2 H200 and score 0.9 contributes 0.6 to H100
    and 0.3 to H200, so the total is never double-counted.

    Returns:
        List of (category, proportional_score); empty if nothing is rewardable
    """
    rewardable_counts = profile.rewardable_gpu_counts(rewardable)
    total_rewardable_gpus = sum(rewardable_counts.values())
    if total_rewardable_gpus <= 0:
        return []

    return [
        (category, profile.total_score * gpu_count / total_rewardable_gpus)
        for category, gpu_count in rewardable_counts.items()
    ]


def group_by_category(
    profiles: list[MinerGpuProfile],
    rewardable: tuple[str, ...] = REWARDABLE_CATEGORIES,
) -> MinersByCategory:
    """
    Group profiles into rewardable categories with proportional scores.

    Every rewardable category is present in the result (possibly empty).
    Each list is ordered by score descending, then uid ascending.
    """
    miners_by_category: MinersByCategory = {category: [] for category in rewardable}

    for profile in profiles:
        for category, category_score in proportional_category_scores(profile, rewardable):
            miners_by_category[category].append((profile.miner_uid, category_score))

    for miners in miners_by_category.values():
        miners.sort(key=lambda entry: (-entry[1], entry[0]))

    return miners_by_category


def compute_category_statistics(
    miners_by_category: MinersByCategory,
) -> dict[str, CategoryStats]:
    """Summarize each category's proportional scores. Empty categories report zeros."""
    category_stats: dict[str, CategoryStats] = {}

    for category, miners in miners_by_category.items():
        scores = [score for _, score in miners]
        if not scores:
            category_stats[category] = CategoryStats()
            continue

        total_score = sum(scores)
        category_stats[category] = CategoryStats(
            miner_count=len(scores),
            total_score=total_score,
            min_score=min(scores),
            max_score=max(scores),
            average_score=total_score / len(scores),
        )

    return category_stats


class GpuScoringEngine:
    """
    Turns validation rounds into stored GPU profiles and reads them back per category.

    Usage:
        engine = GpuScoringEngine(InMemoryProfileStore())
        await engine.update_miner_profile_from_validation(MinerUID(1), results)
        miners = await engine.get_miners_by_gpu_category(6, liveness_snapshot)
    """

    def __init__(
        self,
        store: ProfileStore,
        max_gpu_count: int = MAX_GPU_COUNT,
        rewardable_categories: tuple[str, ...] | list[str] = REWARDABLE_CATEGORIES,
    ):
        """
        Initialize the engine.

        Args:
            store: Profile store (in-memory or SQL)
            max_gpu_count: GPU count at which the device weight saturates
            rewardable_categories: Canonical categories that earn rewards
        """
        self.store = store
        self.max_gpu_count = max_gpu_count
        self.rewardable_categories = tuple(rewardable_categories)

    async def update_miner_profile_from_validation(
        self,
        miner_uid: MinerUID,
        executor_validations: list[ExecutorValidationResult],
    ) -> MinerGpuProfile:
        """
        Score one validation round and persist the resulting profile.

        The previous profile for the miner is fully replaced. An empty round
        stores a zero-score profile with no GPU counts, which is never
        eligible for rewards but stays queryable.

        Returns:
            The profile as stored, including any value the store carried forward
        """
        score = calculate_verification_score(executor_validations, self.max_gpu_count)
        profile = MinerGpuProfile.from_validations(miner_uid, executor_validations, score)

        await self.store.upsert_gpu_profile(profile)
        stored = await self.store.get_gpu_profile(miner_uid)
        if stored is not None:
            profile = stored

        logger.info(
            "gpu_profile_updated",
            miner_uid=miner_uid,
            primary_gpu=profile.primary_gpu_model,
            score=score,
            total_gpus=profile.total_gpu_count(),
            validations=len(executor_validations),
            gpu_distribution=profile.gpu_counts,
        )
        return profile

    async def get_miners_by_gpu_category(
        self,
        cutoff_hours: int,
        liveness: LivenessView,
        now: datetime | None = None,
    ) -> MinersByCategory:
        """
        Get reward-eligible miners grouped by GPU category.

        A profile is eligible when it was updated within ``cutoff_hours``,
        its uid has an active axon in ``liveness`` and it holds at least one
        rewardable GPU. A miner with several rewardable GPU types appears in
        each category with a score proportional to its GPU share.

        Args:
            cutoff_hours: Maximum profile age in hours
            liveness: Already-fetched metagraph liveness snapshot
            now: Reference time (defaults to the current UTC time)

        Returns:
            Dict mapping category -> [(uid, score)] sorted by score descending
        """
        all_profiles = await self.store.get_all_gpu_profiles()
        cutoff_time = _as_utc(now or datetime.now(timezone.utc)) - timedelta(hours=cutoff_hours)

        eligible: list[MinerGpuProfile] = []
        for profile in all_profiles:
            if not is_within_epoch(profile, cutoff_time):
                logger.debug("miner_skipped_stale", miner_uid=profile.miner_uid)
                continue
            if not liveness.is_active(profile.miner_uid):
                logger.debug("miner_skipped_inactive_axon", miner_uid=profile.miner_uid)
                continue
            eligible.append(profile)

        miners_by_category = group_by_category(eligible, self.rewardable_categories)

        logger.info(
            "miners_by_gpu_category",
            categories={category: len(miners) for category, miners in miners_by_category.items()},
            total_entries=sum(len(miners) for miners in miners_by_category.values()),
            profiles=len(all_profiles),
            cutoff_hours=cutoff_hours,
            metagraph_size=len(liveness),
        )
        return miners_by_category

    async def get_category_statistics(self) -> dict[str, CategoryStats]:
        """
        Per-category score statistics over every stored profile.

        Informational only: no epoch or liveness filtering, just the
        rewardable-category split with proportional scores.
        """
        all_profiles = await self.store.get_all_gpu_profiles()
        return compute_category_statistics(
            group_by_category(all_profiles, self.rewardable_categories)
        )
