"""
Cross-module type definitions for Verigpu.

This module centralizes NewTypes, type aliases, protocols and small result
tuples used across multiple Verigpu modules. It has zero verigpu imports
to avoid circular dependency risk.
"""

from __future__ import annotations

from typing import NamedTuple, NewType, Protocol, TypeAlias

MinerUID = NewType("MinerUID", int)

MinerCategoryScore: TypeAlias = tuple[MinerUID, float]
MinersByCategory: TypeAlias = dict[str, list[MinerCategoryScore]]  # category -> [(uid, score)]

U16_MAX = 65535


class WeightEntry(NamedTuple):
    """A single (uid, weight) pair in the vector handed to the chain."""

    uid: MinerUID
    weight: int


class EligibilityResult(NamedTuple):
    """Result of verify_weight_setting_eligibility(). Backwards-compatible with tuple unpacking."""

    eligible: bool
    reason: str


class LivenessView(Protocol):
    """Read-only view of which miner uids currently serve an active axon.

    Implemented by ``verigpu.chain.metagraph.LivenessSnapshot``; the scoring
    engine only depends on this structural interface so it can be tested
    without a chain connection.
    """

    def is_active(self, uid: int) -> bool: ...
    def __len__(self) -> int: ...
