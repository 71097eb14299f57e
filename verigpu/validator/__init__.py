"""
Validator module for the GPU compute subnet.

Orchestrates the reward cycle:
1. Snapshot miner liveness from the metagraph
2. Group recent GPU profiles by category
3. Allocate the weight budget across category pools
4. Set weights on chain
"""

from verigpu.validator.main import Validator, run_validator

__all__ = ["Validator", "run_validator"]
