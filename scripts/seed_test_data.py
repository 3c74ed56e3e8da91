"""
Seed a small sales org for local testing.

Usage:
    python scripts/seed_test_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_test_data.py

This script creates:
- Roles, one region with two offices
- An org chart: regional manager -> area director -> team lead -> reps
- A pay plan with setter, closer, self-gen and two override rules
- A few deals, with commissions calculated through the engine
"""

import asyncio
import os
import sys
from datetime import date
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.config import settings
from src.models import (
    CalcMethod,
    CommissionRule,
    Deal,
    Office,
    OverrideSource,
    PayPlan,
    Person,
    PersonPayPlan,
    Region,
    Role,
    RuleType,
    SetterTier,
)
from src.services.commission import calculate_commissions_safely, derive_deal_value

ROLES = [
    ("Sales Rep", 1),
    ("Team Lead", 2),
    ("Area Director", 3),
    ("Regional Manager", 4),
    ("Divisional", 5),
    ("VP", 6),
    ("Admin", 7),
]

PLAN_START = date(2024, 1, 1)


async def get_or_create_roles(db: AsyncSession) -> dict[str, Role]:
    roles = {}
    for name, level in ROLES:
        result = await db.execute(select(Role).where(Role.name == name))
        role = result.scalar_one_or_none()
        if not role:
            role = Role(name=name, level=level)
            db.add(role)
            await db.flush()
            print(f"Created role: {name}")
        roles[name] = role
    return roles


async def get_or_create_office(db: AsyncSession, name: str, region: Region) -> Office:
    result = await db.execute(
        select(Office).where(Office.name == name, Office.region_id == region.id)
    )
    office = result.scalar_one_or_none()
    if not office:
        office = Office(name=name, region_id=region.id)
        db.add(office)
        await db.flush()
        print(f"Created office: {name}")
    return office


async def create_person(
    db: AsyncSession,
    first_name: str,
    last_name: str,
    role: Role,
    office: Office,
    reports_to: Person | None = None,
    recruited_by: Person | None = None,
    setter_tier: SetterTier | None = None,
) -> Person:
    email = f"{first_name}.{last_name}@example.com".lower()
    result = await db.execute(select(Person).where(Person.email == email))
    person = result.scalar_one_or_none()
    if person:
        print(f"Person already exists: {email} (id={person.id})")
        return person

    person = Person(
        first_name=first_name,
        last_name=last_name,
        email=email,
        role_id=role.id,
        office_id=office.id,
        reports_to_id=reports_to.id if reports_to else None,
        recruited_by_id=recruited_by.id if recruited_by else None,
        setter_tier=setter_tier,
        hire_date=PLAN_START,
    )
    db.add(person)
    await db.flush()
    print(f"Created {role.name}: {person.full_name} (id={person.id})")
    return person


async def create_pay_plan(db: AsyncSession, roles: dict[str, Role]) -> PayPlan:
    plan = PayPlan(name="Standard 2024", description="Default rep plan")
    db.add(plan)
    await db.flush()

    rules = [
        CommissionRule(
            pay_plan_id=plan.id, name="Setter per kW",
            rule_type=RuleType.SETTER_COMMISSION, calc_method=CalcMethod.FLAT_PER_KW,
            amount=Decimal("50"), sort_order=1,
        ),
        CommissionRule(
            pay_plan_id=plan.id, name="Veteran setter bonus",
            rule_type=RuleType.SETTER_COMMISSION, calc_method=CalcMethod.FLAT_FEE,
            amount=Decimal("150"), sort_order=2,
            conditions={"setter_tier": ["Veteran", "Team Lead"], "skip_non_positive": True},
        ),
        CommissionRule(
            pay_plan_id=plan.id, name="Closer flat",
            rule_type=RuleType.CLOSER_COMMISSION, calc_method=CalcMethod.FLAT_FEE,
            amount=Decimal("500"), sort_order=3,
        ),
        CommissionRule(
            pay_plan_id=plan.id, name="Self-gen per kW",
            rule_type=RuleType.SELF_GEN_COMMISSION, calc_method=CalcMethod.FLAT_PER_KW,
            amount=Decimal("100"), sort_order=4,
        ),
        CommissionRule(
            pay_plan_id=plan.id, name="Team lead override",
            rule_type=RuleType.OVERRIDE, calc_method=CalcMethod.FLAT_PER_KW,
            amount=Decimal("10"), override_level=1, override_source=OverrideSource.REPORTS_TO,
            applies_to_role_id=roles["Team Lead"].id, sort_order=5,
        ),
        CommissionRule(
            pay_plan_id=plan.id, name="Area director override",
            rule_type=RuleType.OVERRIDE, calc_method=CalcMethod.PERCENTAGE_OF_DEAL,
            amount=Decimal("0.01"), override_level=2, override_source=OverrideSource.REPORTS_TO,
            sort_order=6,
        ),
        CommissionRule(
            pay_plan_id=plan.id, name="Recruiter bonus",
            rule_type=RuleType.RECRUITING_BONUS, calc_method=CalcMethod.FLAT_FEE,
            amount=Decimal("100"), sort_order=7,
            conditions={"earner": "closer_recruiter"},
        ),
    ]
    db.add_all(rules)
    await db.flush()
    print(f"Created pay plan #{plan.id} with {len(rules)} rules")
    return plan


async def create_deal(
    db: AsyncSession,
    customer: str,
    setter: Person,
    closer: Person,
    kw: str,
    ppw: str,
    deal_type: str = "loan",
) -> Deal:
    system_size_kw = Decimal(kw)
    price = Decimal(ppw)
    deal = Deal(
        customer_name=customer,
        setter_id=setter.id,
        closer_id=closer.id,
        is_self_gen=setter.id == closer.id,
        office_id=closer.office_id,
        deal_type=deal_type,
        system_size_kw=system_size_kw,
        ppw=price,
        deal_value=derive_deal_value(system_size_kw, price),
        sale_date=date.today(),
    )
    db.add(deal)
    await db.commit()

    written = await calculate_commissions_safely(db, deal.id)
    print(f"Created deal #{deal.id} for {customer}: {written} commission rows")
    return deal


async def seed_all(database_url: str):
    print(f"\nConnecting to database...")
    print(f"URL: {database_url[:50]}...")

    engine = create_async_engine(database_url, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as db:
        print("\n=== Creating test data ===\n")

        roles = await get_or_create_roles(db)

        result = await db.execute(select(Region).where(Region.name == "Southwest"))
        region = result.scalar_one_or_none()
        if not region:
            region = Region(name="Southwest")
            db.add(region)
            await db.flush()
            print(f"Created region: {region.name}")
        phoenix = await get_or_create_office(db, "Phoenix", region)
        tucson = await get_or_create_office(db, "Tucson", region)

        rm = await create_person(db, "Rita", "Morales", roles["Regional Manager"], phoenix)
        ad = await create_person(db, "Andre", "Dunn", roles["Area Director"], phoenix, reports_to=rm)
        tl = await create_person(
            db, "Tess", "Lang", roles["Team Lead"], phoenix,
            reports_to=ad, recruited_by=ad, setter_tier=SetterTier.TEAM_LEAD,
        )
        closer = await create_person(
            db, "Carl", "Ortiz", roles["Sales Rep"], phoenix, reports_to=tl, recruited_by=tl,
        )
        setter = await create_person(
            db, "Sam", "Reyes", roles["Sales Rep"], phoenix,
            reports_to=tl, recruited_by=closer, setter_tier=SetterTier.ROOKIE,
        )
        veteran = await create_person(
            db, "Vera", "Quinn", roles["Sales Rep"], tucson,
            reports_to=ad, setter_tier=SetterTier.VETERAN,
        )

        plan = await create_pay_plan(db, roles)
        for person in (tl, closer, setter, veteran):
            db.add(PersonPayPlan(person_id=person.id, pay_plan_id=plan.id, effective_date=PLAN_START))
        await db.commit()

        print("\n--- Deals ---")
        await create_deal(db, "Harper Household", setter, closer, "8.4", "3.10")
        await create_deal(db, "Nguyen Residence", closer, closer, "11.2", "2.95")
        await create_deal(db, "Patel Home", veteran, tl, "6.0", "3.40", deal_type="cash")

        print("\n" + "="*50)
        print("TEST DATA CREATED SUCCESSFULLY!")
        print("="*50)
        print(f"""
People:
  - Regional manager: {rm.email}
  - Area director:    {ad.email}
  - Team lead:        {tl.email}
  - Closer:           {closer.email}
  - Setter:           {setter.email}

Pay plan: {plan.name} (id={plan.id})
        """)

    await engine.dispose()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed test data for the back office")
    parser.add_argument(
        "--database-url",
        default=os.environ.get("DATABASE_URL", settings.database_url),
        help="Database URL (defaults to DATABASE_URL)",
    )

    args = parser.parse_args()
    url = args.database_url
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    asyncio.run(seed_all(url))
