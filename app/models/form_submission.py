"""
app/models/form_submission.py

Purpose: Step submission audit model

- One row per step submission (resubmissions append)
- Captured form data as a JSON document
- Validation outcome of the submission
- Indexed for (user, step) lookups and submitted_at range scans
"""

import uuid
from datetime import datetime
from typing import Any, Dict, TYPE_CHECKING

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base
from app.flow.states import ValidationStatus
from utils.time_utils import utc_now

if TYPE_CHECKING:
    from app.models.user import User


class FormSubmission(Base):
    __tablename__ = "form_submissions"
    __table_args__ = (
        Index("idx_user_step", "user_id", "step_number"),
        Index("idx_submission_date", "submitted_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False
    )
    step_number: Mapped[int] = mapped_column(Integer, nullable=False)
    form_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    validation_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ValidationStatus.PENDING.value
    )
    submitted_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    user: Mapped["User"] = relationship(back_populates="submissions")

    def __repr__(self) -> str:
        return f"<FormSubmission step={self.step_number} status={self.validation_status}>"
