"""Liveness snapshots of miner axons, read from the subnet metagraph."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from bittensor import Subtensor

logger = structlog.get_logger()

_ZERO_IPS = frozenset({"", "0", "0.0.0.0", "::", "0:0:0:0:0:0:0:0"})


@dataclass(frozen=True)
class AxonEndpoint:
    """Advertised network address of one uid."""

    ip: str
    port: int

    @property
    def is_active(self) -> bool:
        """Active iff both the address and the port are non-zero."""
        return self.port != 0 and self.ip.strip() not in _ZERO_IPS

    @classmethod
    def from_axon_info(cls, axon: Any) -> AxonEndpoint:
        # Any: bittensor AxonInfo; ip may be an int on older SDKs
        if axon is None:
            return cls(ip="", port=0)
        ip = getattr(axon, "ip", "") or ""
        port = getattr(axon, "port", 0) or 0
        return cls(ip=str(ip), port=int(port))


INACTIVE_AXON = AxonEndpoint(ip="", port=0)


@dataclass(frozen=True)
class LivenessSnapshot:
    """
    Immutable view of the metagraph axons, indexed by uid.

    Uids beyond the snapshot size are inactive. Built once per reward cycle
    by the caller and passed into the scoring engine.
    """

    axons: tuple[AxonEndpoint, ...] = ()

    def __len__(self) -> int:
        return len(self.axons)

    def is_active(self, uid: int) -> bool:
        if uid < 0 or uid >= len(self.axons):
            return False
        return self.axons[uid].is_active

    def active_uids(self) -> list[int]:
        return [uid for uid, axon in enumerate(self.axons) if axon.is_active]

    @classmethod
    def from_endpoints(cls, endpoints: Sequence[tuple[str, int]]) -> LivenessSnapshot:
        """Build from (ip, port) pairs where position is the uid."""
        return cls(axons=tuple(AxonEndpoint(ip=str(ip), port=int(port)) for ip, port in endpoints))

    @classmethod
    def from_metagraph(cls, metagraph: Any) -> LivenessSnapshot:
        """Build from a bittensor Metagraph (``metagraph.axons`` is ordered by uid)."""
        return cls(axons=tuple(AxonEndpoint.from_axon_info(axon) for axon in metagraph.axons))

    @classmethod
    def from_neurons(cls, neurons: Iterable[Any]) -> LivenessSnapshot:
        """Build from ``subtensor.neurons()``; missing uids are inactive."""
        by_uid = {
            int(neuron.uid): AxonEndpoint.from_axon_info(neuron.axon_info) for neuron in neurons
        }
        size = max(by_uid) + 1 if by_uid else 0
        return cls(axons=tuple(by_uid.get(uid, INACTIVE_AXON) for uid in range(size)))


def fetch_liveness_snapshot(subtensor: Subtensor, netuid: int) -> LivenessSnapshot:
    """
    Read the current axon table for a subnet.

    Args:
        subtensor: Bittensor subtensor connection
        netuid: Subnet UID

    Returns:
        LivenessSnapshot covering every registered uid
    """
    # Use neurons() instead of metagraph() for compatibility with various substrate versions
    neurons = subtensor.neurons(netuid=netuid)
    snapshot = LivenessSnapshot.from_neurons(neurons or [])

    logger.info(
        "liveness_snapshot_fetched",
        netuid=netuid,
        n_uids=len(snapshot),
        n_active=len(snapshot.active_uids()),
    )
    return snapshot
