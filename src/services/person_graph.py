"""
Read-only accessor over the people table's two parent pointers.

Everything that walks the org chart or the recruiting lineage goes through
PersonGraph, so there is exactly one place that knows how a parent pointer
is stored.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import (
    Office,
    OverrideSource,
    PayPlan,
    Person,
    PersonPayPlan,
    PersonTeam,
    Role,
    Team,
)

logger = logging.getLogger(__name__)


def parent_column(source: OverrideSource):
    """Column holding the parent pointer for a chain."""
    if source == OverrideSource.REPORTS_TO:
        return Person.reports_to_id
    return Person.recruited_by_id


@dataclass
class PersonDetails:
    """Person projection used by the people API."""
    person: Person
    role: Optional[Role]
    office: Optional[Office]
    manager: Optional[Person]
    recruiter: Optional[Person]
    current_pay_plan: Optional[PayPlan]


class PersonGraph:
    """
    Adjacency lookups by id. Holds no back-pointers or caches of its own;
    the session identity map already dedupes repeated gets within a request.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_person(self, person_id: Optional[int]) -> Optional[Person]:
        if person_id is None:
            return None
        return await self.db.get(Person, person_id)

    async def get_parent_id(self, person_id: int, source: OverrideSource) -> Optional[int]:
        """Direct parent in the chosen chain, or None at the top / for unknown ids."""
        person = await self.get_person(person_id)
        if person is None:
            return None
        if source == OverrideSource.REPORTS_TO:
            return person.reports_to_id
        return person.recruited_by_id

    async def get_child_ids(
        self,
        parent_ids: Iterable[int],
        source: OverrideSource = OverrideSource.REPORTS_TO,
    ) -> list[int]:
        """Ids of everyone whose parent pointer is in parent_ids."""
        parent_ids = list(parent_ids)
        if not parent_ids:
            return []
        column = parent_column(source)
        result = await self.db.execute(
            select(Person.id).where(column.in_(parent_ids)).order_by(Person.id)
        )
        return list(result.scalars().all())

    async def get_role(self, person_id: int) -> Optional[Role]:
        person = await self.get_person(person_id)
        if person is None:
            return None
        return await self.db.get(Role, person.role_id)

    async def get_current_assignment(
        self,
        person_id: int,
        as_of: Optional[date] = None,
    ) -> Optional[PersonPayPlan]:
        """
        Pay plan assignment effective on as_of (default today).

        When ranges overlap the latest effective_date wins.
        """
        as_of = as_of or date.today()
        result = await self.db.execute(
            select(PersonPayPlan)
            .where(
                PersonPayPlan.person_id == person_id,
                PersonPayPlan.effective_date <= as_of,
                or_(
                    PersonPayPlan.end_date.is_(None),
                    PersonPayPlan.end_date >= as_of,
                ),
            )
            .order_by(PersonPayPlan.effective_date.desc(), PersonPayPlan.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_led_team_member_ids(
        self,
        person_id: int,
        as_of: Optional[date] = None,
    ) -> list[int]:
        """Current members of every active team this person leads."""
        as_of = as_of or date.today()
        result = await self.db.execute(
            select(PersonTeam.person_id)
            .join(Team, Team.id == PersonTeam.team_id)
            .where(
                Team.team_lead_id == person_id,
                Team.is_active.is_(True),
                PersonTeam.effective_date <= as_of,
                or_(PersonTeam.end_date.is_(None), PersonTeam.end_date >= as_of),
            )
            .distinct()
        )
        return list(result.scalars().all())

    async def get_person_with_details(self, person_id: int) -> Optional[PersonDetails]:
        person = await self.get_person(person_id)
        if person is None:
            return None

        assignment = await self.get_current_assignment(person_id)
        plan = await self.db.get(PayPlan, assignment.pay_plan_id) if assignment else None
        office = await self.db.get(Office, person.office_id) if person.office_id else None

        return PersonDetails(
            person=person,
            role=await self.db.get(Role, person.role_id),
            office=office,
            manager=await self.get_person(person.reports_to_id),
            recruiter=await self.get_person(person.recruited_by_id),
            current_pay_plan=plan,
        )
