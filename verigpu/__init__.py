"""
Verigpu - GPU reputation scoring and weight allocation for a Bittensor compute subnet.

Validators test miners' GPU executors, fold the results into per-miner GPU
profiles, and each reward cycle split a fixed u16 weight budget across H100 and
H200 providers. Whatever cannot be allocated is routed to a burn uid.
"""

import os

# https://docs.learnbittensor.org/sdk/migration-guide#disabling-cli-argument-parsing
os.environ.setdefault("BT_NO_PARSE_CLI_ARGS", "1")

__version__ = "0.1.0"
