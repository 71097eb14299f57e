"""
Chain integration for Bittensor subnet operations.

Handles metagraph liveness snapshots and weight setting.
"""

from verigpu.chain.metagraph import AxonEndpoint, LivenessSnapshot, fetch_liveness_snapshot
from verigpu.chain.weights import (
    merge_weight_entries,
    set_weights,
    verify_weight_setting_eligibility,
)

__all__ = [
    "AxonEndpoint",
    "LivenessSnapshot",
    "fetch_liveness_snapshot",
    "merge_weight_entries",
    "set_weights",
    "verify_weight_setting_eligibility",
]
