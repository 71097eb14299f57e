"""Storage layer for miner GPU profiles."""

from verigpu.storage.models import Base, GpuProfileORM
from verigpu.storage.store import InMemoryProfileStore, SqlProfileStore

__all__ = [
    "Base",
    "GpuProfileORM",
    "InMemoryProfileStore",
    "SqlProfileStore",
]
