"""Tests for the validator reward cycle."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from verigpu.config import EmissionConfig, ValidatorConfig
from verigpu.scoring.categorization import MinerGpuProfile
from verigpu.storage.store import InMemoryProfileStore
from verigpu.types import MinerUID, WeightEntry
from verigpu.validator.main import Validator


def _neuron(uid: int, active: bool = True):
    return SimpleNamespace(
        uid=uid,
        axon_info=SimpleNamespace(ip="10.0.0.1" if active else "0.0.0.0", port=8091),
    )


def _profile(uid: int, gpu_counts: dict[str, int], score: float) -> MinerGpuProfile:
    return MinerGpuProfile(
        miner_uid=MinerUID(uid),
        primary_gpu_model=next(iter(gpu_counts)),
        gpu_counts=gpu_counts,
        total_score=score,
        verification_count=1,
        last_updated=datetime.now(timezone.utc),
    )


@pytest.fixture
def subtensor():
    subtensor = MagicMock()
    subtensor.neurons.return_value = [_neuron(0), _neuron(1), _neuron(2, active=False)]
    subtensor.set_weights.return_value = SimpleNamespace(success=True, message="")
    return subtensor


def _validator(store, subtensor, dry_run: bool = False) -> Validator:
    config = ValidatorConfig(
        netuid=12,
        dry_run=dry_run,
        emission=EmissionConfig(burn_uid=0),
    )
    validator = Validator(config, store, wallet=MagicMock())
    validator.subtensor = subtensor
    return validator


class TestRewardCycle:
    """Tests for Validator.run_reward_cycle()."""

    @pytest.mark.asyncio
    async def test_cycle_submits_distribution(self, subtensor) -> None:
        store = InMemoryProfileStore(
            [_profile(1, {"H100": 8}, 1.0), _profile(2, {"H200": 8}, 1.0)]
        )
        validator = _validator(store, subtensor)

        distribution = await validator.run_reward_cycle()

        # uid 2 has no axon, so the H200 pool is burned
        assert distribution.weights == [WeightEntry(1, 35389), WeightEntry(0, 6553 + 23592)]
        assert validator.last_distribution is distribution

        kwargs = subtensor.set_weights.call_args.kwargs
        assert kwargs["uids"] == [0, 1]
        assert kwargs["weights"] == [30145, 35389]
        assert kwargs["netuid"] == 12

    @pytest.mark.asyncio
    async def test_dry_run_does_not_submit(self, subtensor) -> None:
        store = InMemoryProfileStore([_profile(1, {"H100": 8}, 1.0)])
        validator = _validator(store, subtensor, dry_run=True)

        distribution = await validator.run_reward_cycle()

        assert distribution.miners_served == 1
        subtensor.set_weights.assert_not_called()

    @pytest.mark.asyncio
    async def test_requires_subtensor(self) -> None:
        validator = _validator(InMemoryProfileStore(), None)

        with pytest.raises(RuntimeError, match="subtensor"):
            await validator.run_reward_cycle()


class _StopLoop(Exception):
    pass


class TestRunLoop:
    """Tests for Validator.run()."""

    @pytest.mark.asyncio
    async def test_ineligible_validator_stops(self, subtensor) -> None:
        validator = _validator(InMemoryProfileStore(), subtensor)

        with patch(
            "verigpu.validator.main.verify_weight_setting_eligibility",
            return_value=(False, "No validator permit"),
        ):
            await validator.run()

        subtensor.set_weights.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_cycle_is_retried(self, subtensor) -> None:
        """A cycle error is logged and the loop keeps going."""
        validator = _validator(InMemoryProfileStore(), subtensor, dry_run=True)
        calls = []

        async def flaky_cycle():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("store unavailable")

        async def stop_after_two(_seconds):
            if len(calls) >= 2:
                raise _StopLoop

        validator.run_reward_cycle = flaky_cycle

        with patch("verigpu.validator.main.asyncio.sleep", side_effect=stop_after_two):
            with pytest.raises(_StopLoop):
                await validator.run()

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_sleeps_for_the_emission_block_interval(self, subtensor) -> None:
        validator = _validator(InMemoryProfileStore(), subtensor, dry_run=True)
        validator.config.emission.weight_set_interval_blocks = 25
        slept = []

        async def record_and_stop(seconds):
            slept.append(seconds)
            raise _StopLoop

        with patch("verigpu.validator.main.asyncio.sleep", side_effect=record_and_stop):
            with pytest.raises(_StopLoop):
                await validator.run()

        assert slept == [25 * 12]
