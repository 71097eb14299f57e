"""Testing commands for Verigpu CLI."""

import asyncio

import numpy as np
import typer

from verigpu.chain.metagraph import LivenessSnapshot
from verigpu.config import EmissionConfig
from verigpu.scoring.allocation import WeightAllocationEngine
from verigpu.scoring.categorization import ExecutorValidationResult
from verigpu.scoring.engine import GpuScoringEngine
from verigpu.storage.store import InMemoryProfileStore
from verigpu.types import MinerUID

SIMULATED_GPU_MODELS = ["NVIDIA H100 80GB HBM3", "NVIDIA H200", "NVIDIA A100-SXM4-80GB"]


def _simulate_validations(rng: np.random.Generator, max_executors: int):
    """Random validation round for one miner."""
    n_executors = int(rng.integers(1, max_executors + 1))
    return [
        ExecutorValidationResult(
            executor_id=f"exec-{i}",
            is_valid=bool(rng.random() < 0.85),
            gpu_model=str(rng.choice(SIMULATED_GPU_MODELS)),
            gpu_count=int(rng.integers(1, 9)),
            gpu_memory_gb=80,
            attestation_valid=bool(rng.random() < 0.9),
        )
        for i in range(n_executors)
    ]


def test_scoring(
    n_miners: int = typer.Option(8, help="Number of simulated miners"),
    max_executors: int = typer.Option(3, help="Maximum executors per miner"),
    inactive_fraction: float = typer.Option(0.1, help="Fraction of miners without an axon"),
    seed: int | None = typer.Option(None, help="Random seed"),
):
    """
    Test GPU scoring and weight allocation with simulated miners.

    Uses an in-memory profile store and the emission settings from the
    environment (VERIGPU_EMISSION_*).
    """
    rng = np.random.default_rng(seed)
    emission = EmissionConfig()
    store = InMemoryProfileStore()
    engine = GpuScoringEngine(store)

    typer.echo(f"Testing GPU scoring with {n_miners} miners\n")

    # uid 0 is left to the burn sink
    endpoints = [("0.0.0.0", 0)]
    for _ in range(n_miners):
        active = rng.random() >= inactive_fraction
        endpoints.append(("10.0.0.1", 8091) if active else ("0.0.0.0", 0))
    liveness = LivenessSnapshot.from_endpoints(endpoints)

    async def _run():
        typer.echo("Miner profiles:")
        for uid in range(1, n_miners + 1):
            validations = _simulate_validations(rng, max_executors)
            profile = await engine.update_miner_profile_from_validation(
                MinerUID(uid), validations
            )
            counts = ", ".join(f"{k}: {v}" for k, v in profile.gpu_counts.items()) or "none"
            status = "active" if liveness.is_active(uid) else "inactive"
            typer.echo(
                f"  UID {uid} ({status}): score {profile.total_score:.3f}, "
                f"primary {profile.primary_gpu_model}, valid GPUs [{counts}]"
            )
        return await engine.get_miners_by_gpu_category(6, liveness)

    miners_by_category = asyncio.run(_run())
    distribution = WeightAllocationEngine(emission).calculate_weight_distribution(
        miners_by_category
    )

    typer.echo("\nCategory pools:")
    for gpu_model, allocation in distribution.category_allocations.items():
        state = "burned" if allocation.burned else f"{allocation.distributed_weight} distributed"
        typer.echo(
            f"  {gpu_model} ({allocation.allocation_percentage}%): pool {allocation.weight_pool}, "
            f"{allocation.miner_count} miners, {state}"
        )

    typer.echo("\nFinal weights:")
    for uid, weight in distribution.weights:
        typer.echo(f"  UID {uid}: {weight} ({weight / distribution.total_weight:.4f})")

    burn = distribution.burn_allocation
    typer.echo(f"\nBurn: UID {burn.uid} gets {burn.weight} ({burn.percentage:.2f}%)")
    typer.echo(f"Allocated {distribution.allocated_weight} / {distribution.total_weight}")
