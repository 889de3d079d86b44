"""
app/models/form_schema.py

Purpose: Versioned form definition

- Stored copy of the registration form layout and rules
- At most one active version is served
"""

import uuid
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, Boolean, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base
from utils.time_utils import utc_now


class FormSchema(Base):
    __tablename__ = "form_schemas"
    __table_args__ = (
        Index("idx_active_schema", "is_active"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    version: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    schema_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
