"""Run model."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Index, Text
from sqlalchemy.dialects.postgresql import JSONB

from comfyrun.database import Base


class Run(Base):
    """Run represents one image generation job accepted by ComfyDeploy."""

    __tablename__ = "runs"

    run_id = Column(Text, primary_key=True)  # Assigned by the provider
    user_id = Column(Text, nullable=False)
    inputs = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    image_url = Column(Text)  # Null until the first completion write
    created_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime)

    __table_args__ = (Index("idx_runs_user_id", "user_id"),)

    @property
    def status(self) -> str:
        """Derived status: 'pending' until an image URL is recorded."""
        return "complete" if self.image_url else "pending"
