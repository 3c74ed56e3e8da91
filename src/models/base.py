"""
Declarative base for the back-office schema.

Tables with their own key or timestamp columns (commission_history,
audit_logs, system_settings) derive from Base directly; everything else
uses BaseModel.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )


class BaseModel(Base, TimestampMixin):
    """Integer surrogate key plus timestamps, loaded back on flush."""

    __abstract__ = True
    # created_at is read right after flush (rule ordering, payroll periods)
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(primary_key=True)
