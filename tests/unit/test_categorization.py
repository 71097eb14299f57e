"""Tests for GPU model normalization and profile construction."""

from datetime import datetime, timedelta, timezone

import pytest

from verigpu.scoring.categorization import (
    ExecutorValidationResult,
    GpuCategory,
    MinerGpuProfile,
    count_valid_gpus_by_category,
    determine_primary_gpu_model,
    is_rewardable,
    normalize_gpu_model,
)
from verigpu.types import MinerUID


def _result(
    gpu_model: str = "NVIDIA H100 80GB HBM3",
    gpu_count: int = 8,
    is_valid: bool = True,
    attestation_valid: bool = True,
    **kwargs,
) -> ExecutorValidationResult:
    return ExecutorValidationResult(
        executor_id=kwargs.pop("executor_id", "exec-0"),
        is_valid=is_valid,
        gpu_model=gpu_model,
        gpu_count=gpu_count,
        gpu_memory_gb=kwargs.pop("gpu_memory_gb", 80),
        attestation_valid=attestation_valid,
        **kwargs,
    )


class TestNormalizeGpuModel:
    """Tests for normalize_gpu_model()."""

    @pytest.mark.parametrize(
        "label",
        ["H100", "h100", "NVIDIA H100 80GB HBM3", "H100-SXM5", "nvidia_h100_pcie", "H 100"],
    )
    def test_h100_variants(self, label: str) -> None:
        assert normalize_gpu_model(label) == GpuCategory.H100.value

    @pytest.mark.parametrize("label", ["H200", "NVIDIA H200", "h200-nvl", "H200_SXM"])
    def test_h200_variants(self, label: str) -> None:
        assert normalize_gpu_model(label) == GpuCategory.H200.value

    @pytest.mark.parametrize("label", ["", "A100", "RTX 4090", "NVIDIA L40S", "H10", "MI300X"])
    def test_unknown_labels_map_to_other(self, label: str) -> None:
        assert normalize_gpu_model(label) == GpuCategory.OTHER.value

    def test_canonical_values_are_fixed_points(self) -> None:
        """Normalizing a canonical name returns it unchanged."""
        for category in GpuCategory:
            assert normalize_gpu_model(category.value) == category.value

    def test_is_rewardable(self) -> None:
        assert is_rewardable("NVIDIA H100")
        assert is_rewardable("H200")
        assert not is_rewardable("A100")
        assert not is_rewardable("H200", rewardable=("H100",))


class TestDeterminePrimaryGpuModel:
    """Tests for determine_primary_gpu_model()."""

    def test_empty_batch_is_other(self) -> None:
        assert determine_primary_gpu_model([]) == GpuCategory.OTHER.value

    def test_highest_device_count_wins(self) -> None:
        results = [
            _result("H200", gpu_count=2),
            _result("H100", gpu_count=4),
            _result("H200", gpu_count=1),
        ]
        assert determine_primary_gpu_model(results) == "H100"

    def test_counts_are_summed_across_executors(self) -> None:
        """Several small H200 executors outweigh one larger H100 executor."""
        results = [
            _result("H100", gpu_count=4),
            _result("H200", gpu_count=3),
            _result("NVIDIA H200", gpu_count=3),
        ]
        assert determine_primary_gpu_model(results) == "H200"

    def test_tie_goes_to_first_seen(self) -> None:
        results = [_result("H200", gpu_count=4), _result("H100", gpu_count=4)]
        assert determine_primary_gpu_model(results) == "H200"

        results = [_result("H100", gpu_count=4), _result("H200", gpu_count=4)]
        assert determine_primary_gpu_model(results) == "H100"

    def test_invalid_results_still_count(self) -> None:
        results = [
            _result("A100", gpu_count=8, is_valid=False),
            _result("H100", gpu_count=2),
        ]
        assert determine_primary_gpu_model(results) == GpuCategory.OTHER.value


class TestCountValidGpus:
    """Tests for count_valid_gpus_by_category()."""

    def test_only_fully_valid_results_count(self) -> None:
        results = [
            _result("H100", gpu_count=8),
            _result("H100", gpu_count=4, is_valid=False),
            _result("H200", gpu_count=2, attestation_valid=False),
            _result("H200 NVL", gpu_count=1),
        ]
        assert count_valid_gpus_by_category(results) == {"H100": 8, "H200": 1}

    def test_zero_count_results_are_skipped(self) -> None:
        assert count_valid_gpus_by_category([_result("H100", gpu_count=0)]) == {}


class TestMinerGpuProfile:
    """Tests for MinerGpuProfile construction."""

    def test_zero_counts_are_pruned(self) -> None:
        profile = MinerGpuProfile(
            miner_uid=MinerUID(1),
            primary_gpu_model="H100",
            gpu_counts={"H100": 4, "H200": 0},
            total_score=0.5,
        )
        assert profile.gpu_counts == {"H100": 4}
        assert profile.total_gpu_count() == 4

    def test_score_out_of_range_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            MinerGpuProfile(miner_uid=MinerUID(1), primary_gpu_model="H100", total_score=1.5)

    def test_from_validations(self) -> None:
        now = datetime.now(timezone.utc)
        results = [
            _result("H100", gpu_count=8, validation_timestamp=now - timedelta(minutes=5)),
            _result("H200", gpu_count=2, validation_timestamp=now),
            _result("H200", gpu_count=4, is_valid=False, validation_timestamp=now),
        ]

        profile = MinerGpuProfile.from_validations(MinerUID(7), results, score=0.5)

        assert profile.miner_uid == 7
        assert profile.primary_gpu_model == "H100"
        assert profile.gpu_counts == {"H100": 8, "H200": 2}
        assert profile.verification_count == 3
        assert profile.last_successful_validation == now
        assert profile.last_updated.tzinfo is not None

    def test_from_validations_without_success(self) -> None:
        results = [_result("H100", is_valid=False)]
        profile = MinerGpuProfile.from_validations(MinerUID(3), results, score=0.0)

        assert profile.gpu_counts == {}
        assert profile.last_successful_validation is None

    def test_rewardable_gpu_counts(self) -> None:
        profile = MinerGpuProfile(
            miner_uid=MinerUID(1),
            primary_gpu_model="H100",
            gpu_counts={"H100": 4, "H200": 2, "OTHER": 8},
            total_score=0.9,
        )
        assert profile.rewardable_gpu_counts() == {"H100": 4, "H200": 2}
        assert profile.rewardable_gpu_counts(("H200",)) == {"H200": 2}
