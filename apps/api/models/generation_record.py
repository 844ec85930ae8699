"""GenerationRecord model for persisted script generation batches."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class GenerationRecord(Base):
    """One successful generation: theme, settings, analysis and valid variants."""

    __tablename__ = "generation_records"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    theme_json = Column(JSON, nullable=False)
    settings_json = Column(JSON, nullable=False)
    variants_json = Column(JSON, nullable=False)
    analysis_json = Column(JSON, nullable=True, default=dict)
    production_constraints = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        index=True,
    )

    user = relationship("User", back_populates="generation_records")
