"""
Pytest configuration and fixtures.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from src.models import (
    Base,
    CalcMethod,
    CommissionRule,
    Deal,
    DealStatus,
    Office,
    OfficeLeadership,
    LeadershipRole,
    OverrideSource,
    PayPlan,
    Person,
    PersonPayPlan,
    PersonStatus,
    PersonTeam,
    Region,
    Role,
    RuleType,
    SetterTier,
    Team,
)


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ROLE_LEVELS = {
    "Sales Rep": 1,
    "Team Lead": 2,
    "Area Director": 3,
    "Regional Manager": 4,
    "Divisional": 5,
    "VP": 6,
    "Admin": 7,
}

PLAN_START = date(2024, 1, 1)


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


class OrgFactory:
    """Builds org chart, pay plan and deal rows. Every helper flushes."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._roles: dict[str, Role] = {}
        self._seq = 0

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def role(self, name: str = "Sales Rep") -> Role:
        if name not in self._roles:
            self._roles[name] = await self._save(
                Role(name=name, level=ROLE_LEVELS.get(name, 1))
            )
        return self._roles[name]

    async def region(self, name: str = "West") -> Region:
        return await self._save(Region(name=name))

    async def office(self, name: str = "Phoenix", region: Optional[Region] = None) -> Office:
        return await self._save(
            Office(name=name, region_id=region.id if region else None)
        )

    async def person(
        self,
        first_name: Optional[str] = None,
        role: str = "Sales Rep",
        office: Optional[Office] = None,
        reports_to: Optional[Person] = None,
        recruited_by: Optional[Person] = None,
        setter_tier: Optional[SetterTier] = None,
        status: PersonStatus = PersonStatus.ACTIVE,
    ) -> Person:
        self._seq += 1
        first_name = first_name or f"Rep{self._seq}"
        role_row = await self.role(role)
        return await self._save(
            Person(
                first_name=first_name,
                last_name="Test",
                email=f"{first_name.lower()}.{self._seq}@example.com",
                role_id=role_row.id,
                office_id=office.id if office else None,
                reports_to_id=reports_to.id if reports_to else None,
                recruited_by_id=recruited_by.id if recruited_by else None,
                setter_tier=setter_tier,
                status=status,
            )
        )

    async def pay_plan(self, name: str = "Standard") -> PayPlan:
        return await self._save(PayPlan(name=name))

    async def rule(
        self,
        plan: PayPlan,
        rule_type: RuleType,
        calc_method: CalcMethod,
        amount: str,
        **kwargs,
    ) -> CommissionRule:
        return await self._save(
            CommissionRule(
                pay_plan_id=plan.id,
                rule_type=rule_type,
                calc_method=calc_method,
                amount=Decimal(amount),
                **kwargs,
            )
        )

    async def override_rule(
        self,
        plan: PayPlan,
        level: int,
        amount: str,
        calc_method: CalcMethod = CalcMethod.PERCENTAGE_OF_DEAL,
        source: OverrideSource = OverrideSource.REPORTS_TO,
        **kwargs,
    ) -> CommissionRule:
        return await self.rule(
            plan,
            RuleType.OVERRIDE,
            calc_method,
            amount,
            override_level=level,
            override_source=source,
            **kwargs,
        )

    async def assign(
        self,
        person: Person,
        plan: PayPlan,
        effective_date: date = PLAN_START,
        end_date: Optional[date] = None,
    ) -> PersonPayPlan:
        return await self._save(
            PersonPayPlan(
                person_id=person.id,
                pay_plan_id=plan.id,
                effective_date=effective_date,
                end_date=end_date,
            )
        )

    async def deal(
        self,
        setter: Optional[Person],
        closer: Optional[Person],
        deal_value: str = "30000",
        system_size_kw: Optional[str] = "8",
        **kwargs,
    ) -> Deal:
        kwargs.setdefault("sale_date", date(2024, 6, 1))
        kwargs.setdefault("status", DealStatus.SOLD)
        kwargs.setdefault("office_id", closer.office_id if closer else None)
        return await self._save(
            Deal(
                setter_id=setter.id if setter else None,
                closer_id=closer.id if closer else None,
                is_self_gen=setter is not None and closer is not None and setter.id == closer.id,
                deal_value=Decimal(deal_value),
                system_size_kw=Decimal(system_size_kw) if system_size_kw is not None else None,
                **kwargs,
            )
        )

    async def team(self, lead: Person, members: list[Person], office: Optional[Office] = None) -> Team:
        team = await self._save(
            Team(
                name=f"{lead.first_name}'s team",
                office_id=office.id if office else lead.office_id,
                team_lead_id=lead.id,
            )
        )
        for member in members:
            await self._save(
                PersonTeam(person_id=member.id, team_id=team.id, effective_date=PLAN_START)
            )
        return team

    async def regional_leadership(self, person: Person, region: Region) -> OfficeLeadership:
        return await self._save(
            OfficeLeadership(
                person_id=person.id,
                role_type=LeadershipRole.REGIONAL,
                region_id=region.id,
                effective_from=PLAN_START,
            )
        )


@pytest.fixture
def factory(db_session) -> OrgFactory:
    return OrgFactory(db_session)
