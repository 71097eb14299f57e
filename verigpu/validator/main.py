"""Validator that scores GPU miners from stored profiles and submits weights to chain."""

from __future__ import annotations

import asyncio

import structlog
from bittensor import Subtensor
from bittensor_wallet import Wallet

from verigpu.chain.metagraph import fetch_liveness_snapshot
from verigpu.chain.weights import set_weights, verify_weight_setting_eligibility
from verigpu.config import ValidatorConfig
from verigpu.scoring.allocation import WeightAllocationEngine, WeightDistribution
from verigpu.scoring.engine import GpuScoringEngine, ProfileStore
from verigpu.storage.store import SqlProfileStore

logger = structlog.get_logger()


class Validator:
    """
    Validator that, once per reward cycle:
    1. Snapshots the metagraph axons (liveness)
    2. Groups eligible GPU profiles by category
    3. Allocates the weight budget, burning empty categories
    4. Submits the weight vector to the Bittensor chain

    Profiles are written by the verification pipeline through
    ``scoring_engine.update_miner_profile_from_validation``.
    """

    def __init__(
        self,
        config: ValidatorConfig,
        store: ProfileStore,
        wallet: Wallet | None = None,
    ):
        """
        Initialize validator.

        Args:
            config: Validator configuration
            store: GPU profile store

        Raises:
            ValueError: If the emission configuration is invalid
        """
        self.config = config
        self.store = store
        self.scoring_engine = GpuScoringEngine(
            store,
            max_gpu_count=config.scoring.max_gpu_count,
            rewardable_categories=config.scoring.rewardable_categories,
        )
        self.allocation_engine = WeightAllocationEngine(config.emission)
        self.subtensor: Subtensor | None = None
        self.wallet = wallet or Wallet(
            name=config.wallet_name,
            hotkey=config.hotkey_name,
        )

        self.last_distribution: WeightDistribution | None = None

        logger.info(
            "validator_initialized",
            network=config.network,
            netuid=config.netuid,
            burn_uid=config.emission.burn_uid,
            burn_percentage=config.emission.burn_percentage,
            gpu_allocations=config.emission.gpu_allocations,
            cycle_seconds=config.reward_cycle_seconds(),
            dry_run=config.dry_run,
        )

    async def run(self) -> None:
        """
        Main validator loop.

        Runs one reward cycle every ``config.reward_cycle_seconds()``.
        """
        logger.info("starting_validator_loop")

        if self.subtensor is None:
            raise RuntimeError("subtensor is not initialized")

        if not self.config.dry_run:
            eligible, reason = await asyncio.to_thread(
                verify_weight_setting_eligibility,
                self.subtensor,
                self.wallet,
                self.config.netuid,
            )
            if not eligible:
                logger.error("validator_not_eligible", reason=reason)
                return

            logger.info("validator_eligible", hotkey=self.wallet.hotkey.ss58_address)

        while True:
            try:
                await self.run_reward_cycle()
            except Exception as e:
                # Retry happens on the next interval
                logger.error("reward_cycle_failed", error=str(e))

            await asyncio.sleep(self.config.reward_cycle_seconds())

    async def run_reward_cycle(self) -> WeightDistribution:
        """
        Compute the weight vector in memory, then submit it in a single call.

        Returns:
            The distribution computed for this cycle
        """
        if self.subtensor is None:
            raise RuntimeError("subtensor is not initialized")

        liveness = await asyncio.to_thread(
            fetch_liveness_snapshot, self.subtensor, self.config.netuid
        )
        miners_by_category = await self.scoring_engine.get_miners_by_gpu_category(
            self.config.scoring.epoch_cutoff_hours, liveness
        )
        category_stats = await self.scoring_engine.get_category_statistics()
        for gpu_model, stats in category_stats.items():
            logger.info(
                "category_statistics",
                gpu_model=gpu_model,
                miner_count=stats.miner_count,
                average_score=round(stats.average_score, 4),
                min_score=round(stats.min_score, 4),
                max_score=round(stats.max_score, 4),
            )

        distribution = self.allocation_engine.calculate_weight_distribution(miners_by_category)
        self.last_distribution = distribution

        if self.config.dry_run:
            logger.info(
                "dry_run_weights",
                weights=[(int(uid), weight) for uid, weight in distribution.weights],
            )
            return distribution

        success = await asyncio.to_thread(
            set_weights,
            self.subtensor,
            self.wallet,
            self.config.netuid,
            distribution.weights,
        )

        if success:
            logger.info(
                "weights_submitted",
                miners_served=distribution.miners_served,
                burn_weight=distribution.burn_allocation.weight,
            )
        else:
            logger.error("weights_submission_failed", entries=len(distribution.weights))

        return distribution


async def run_validator(config: ValidatorConfig) -> None:
    """
    Entry point for running the validator.

    Args:
        config: Validator configuration
    """
    store = SqlProfileStore(config.database_url)
    await store.initialize()

    validator = Validator(config, store)
    try:
        validator.subtensor = await asyncio.to_thread(Subtensor, network=config.network)
        await validator.run()
    finally:
        if validator.subtensor is not None:
            try:
                await asyncio.to_thread(validator.subtensor.close)
            except Exception:
                logger.warning("subtensor_close_failed", exc_info=True)
        await store.close()
