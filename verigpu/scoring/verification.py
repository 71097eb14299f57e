"""Verification score calculation from executor validation results."""

import structlog

from verigpu.scoring.categorization import ExecutorValidationResult

logger = structlog.get_logger()

MAX_GPU_COUNT = 8


def calculate_verification_score(
    executor_validations: list[ExecutorValidationResult],
    max_gpu_count: int = MAX_GPU_COUNT,
) -> float:
    """
    Score one validation round for a miner.

    score = validation_ratio * min(avg_valid_gpu_count / max_gpu_count, 1.0)

    where validation_ratio is the share of executors that passed both the
    validation and the attestation, and avg_valid_gpu_count is the mean GPU
    count over those passing executors. GPU memory is deliberately ignored:
    two rounds differing only in memory size score identically.

    Args:
        executor_validations: Results for every executor tested in the round
        max_gpu_count: GPU count at which the device weight saturates

    Returns:
        Score in [0, 1]; 0.0 for an empty round or when nothing passed
    """
    if not executor_validations:
        logger.warning("no_validations_for_score", validations=0)
        return 0.0

    total_count = len(executor_validations)
    valid_count = 0
    valid_gpu_count = 0

    for validation in executor_validations:
        if validation.passed:
            valid_count += 1
            valid_gpu_count += validation.gpu_count

    validation_ratio = valid_count / total_count
    avg_gpu_count = valid_gpu_count / valid_count if valid_count > 0 else 0.0
    gpu_weight = min(avg_gpu_count / max_gpu_count, 1.0)
    final_score = validation_ratio * gpu_weight

    logger.debug(
        "verification_score_calculated",
        valid_count=valid_count,
        total_count=total_count,
        avg_gpu_count=avg_gpu_count,
        gpu_weight=gpu_weight,
        validation_ratio=validation_ratio,
        final_score=final_score,
    )
    return final_score
