"""
Person model: reps, managers and everyone else on the org chart.
"""

from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel


class PersonStatus(str, Enum):
    """Employment status."""
    ONBOARDING = "onboarding"
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"


class SetterTier(str, Enum):
    """Setter seniority; rule conditions may key on it."""
    ROOKIE = "Rookie"
    VETERAN = "Veteran"
    TEAM_LEAD = "Team Lead"


class Person(BaseModel):
    """
    A person in the sales organization.

    Two independent parent pointers form two graphs over this table:
    - reports_to_id: the management chain (org chart)
    - recruited_by_id: the recruiting lineage

    Neither graph is guaranteed acyclic by the database. Every traversal
    must carry its own visited-set and depth cap (see
    src.services.hierarchy).
    """

    __tablename__ = "people"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )

    role_id: Mapped[int] = mapped_column(
        ForeignKey("roles.id"),
        nullable=False,
        index=True,
    )
    office_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("offices.id"),
        nullable=True,
        index=True,
    )
    reports_to_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
        index=True,
    )
    recruited_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
        index=True,
    )

    status: Mapped[PersonStatus] = mapped_column(
        SQLAlchemyEnum(
            PersonStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PersonStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    setter_tier: Mapped[Optional[SetterTier]] = mapped_column(
        SQLAlchemyEnum(
            SetterTier,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    hire_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Person(id={self.id}, name='{self.full_name}', office_id={self.office_id})>"
