"""
app/models/user.py

Purpose: Registration user model

- One row per registration session
- Session ID the client correlates all steps with
- Overall registration status
- Owns its form submissions
"""

import uuid
from datetime import datetime
from typing import List, TYPE_CHECKING

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base
from utils.time_utils import utc_now
from app.flow.states import RegistrationStatus

if TYPE_CHECKING:
    from app.models.form_submission import FormSubmission


def gen_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=gen_id)
    session_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=RegistrationStatus.IN_PROGRESS.value
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    submissions: Mapped[List["FormSubmission"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="FormSubmission.submitted_at",
    )

    def __repr__(self) -> str:
        return f"<User {self.session_id} status={self.status}>"
