"""Database models for miner GPU profiles."""

from datetime import datetime

from sqlalchemy import DateTime, Float, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from verigpu.scoring.categorization import MinerGpuProfile
from verigpu.types import MinerUID

# =============================================================================
# SQLAlchemy ORM Models
# =============================================================================


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class GpuProfileORM(Base):
    """Database model for the current GPU profile of each miner."""

    __tablename__ = "miner_gpu_profiles"

    miner_uid: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    primary_gpu_model: Mapped[str] = mapped_column(String(32), nullable=False)
    gpu_counts: Mapped[dict[str, int]] = mapped_column(JSONB, nullable=False, default=dict)
    total_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    verification_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=func.now()
    )
    last_successful_validation: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("idx_gpu_profiles_last_updated", "last_updated"),
        Index("idx_gpu_profiles_primary_gpu", "primary_gpu_model"),
    )

    def to_profile(self) -> MinerGpuProfile:
        """Convert the row into a detached pydantic profile."""
        return MinerGpuProfile(
            miner_uid=MinerUID(self.miner_uid),
            primary_gpu_model=self.primary_gpu_model,
            gpu_counts=dict(self.gpu_counts or {}),
            total_score=self.total_score,
            verification_count=self.verification_count,
            last_updated=self.last_updated,
            last_successful_validation=self.last_successful_validation,
        )


def profile_to_row(profile: MinerGpuProfile) -> dict:
    """Column values for an INSERT ... ON CONFLICT upsert."""
    return {
        "miner_uid": int(profile.miner_uid),
        "primary_gpu_model": profile.primary_gpu_model,
        "gpu_counts": dict(profile.gpu_counts),
        "total_score": profile.total_score,
        "verification_count": profile.verification_count,
        "last_updated": profile.last_updated,
        "last_successful_validation": profile.last_successful_validation,
    }
