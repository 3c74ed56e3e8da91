"""
Org structure: roles, regions, offices, teams and office leadership.

Hierarchy of grouping entities:
    Region -> Office -> Team -> people

These are plain lookup tables. The reporting and recruiting graphs live on
the Person rows themselves (see src.models.person).
"""

from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel


class Role(BaseModel):
    """
    Job role. ``level`` orders seniority: 1 = rep, higher = more senior.

    The role name is also the key into the static permission matrix
    (src.auth.permissions.ROLE_PERMISSIONS).
    """

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name='{self.name}', level={self.level})>"


class Region(BaseModel):
    """A named group of offices."""

    __tablename__ = "regions"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Region(id={self.id}, name='{self.name}')>"


class Office(BaseModel):
    """Sales office. Office membership is the unit of office-tier visibility."""

    __tablename__ = "offices"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    region_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("regions.id"),
        nullable=True,
        index=True,
    )
    division: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Office(id={self.id}, name='{self.name}', region_id={self.region_id})>"


class Team(BaseModel):
    """A team inside an office, optionally led by one person."""

    __tablename__ = "teams"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    office_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("offices.id"),
        nullable=True,
        index=True,
    )
    team_lead_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class PersonTeam(BaseModel):
    """Time-ranged team membership. ``end_date`` is null for the current one."""

    __tablename__ = "person_teams"

    person_id: Mapped[int] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
        index=True,
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id"),
        nullable=False,
        index=True,
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class LeadershipRole(str, Enum):
    """Kind of leadership seat held over an office, region or division."""
    AREA_DIRECTOR = "ad"
    REGIONAL = "regional"
    DIVISIONAL = "divisional"
    VP = "vp"


class OfficeLeadership(BaseModel):
    """
    Who leads an office (AD), a region (regional) or a division.

    Exactly one of office_id / region_id / division is normally set,
    matching the role_type. Rows are effective between effective_from and
    effective_to (inclusive, open-ended when effective_to is null).
    """

    __tablename__ = "office_leadership"

    person_id: Mapped[int] = mapped_column(
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_type: Mapped[LeadershipRole] = mapped_column(
        SQLAlchemyEnum(
            LeadershipRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    office_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("offices.id"),
        nullable=True,
        index=True,
    )
    region_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("regions.id"),
        nullable=True,
        index=True,
    )
    division: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
