"""People API endpoints: roster, org chain and org-chart writes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.common import (
    ensure_can_view,
    get_settings_store,
    not_found,
    paginate,
    visibility_restriction,
)
from src.auth.dependencies import get_current_user, require_any_permission
from src.auth.permissions import Actor, Permission
from src.db import get_db
from src.models import AuditAction, OverrideSource, PayPlan, Person, PersonStatus
from src.schemas.person import (
    ChainLinkResponse,
    ChainResponse,
    ChangeManagerRequest,
    ChangeRecruiterRequest,
    PersonDetailResponse,
    PersonListResponse,
    PersonResponse,
)
from src.services.commission import assign_pay_plan
from src.services.errors import HierarchyCycleError
from src.services.hierarchy import HierarchyWalker
from src.services.person_graph import PersonGraph
from src.services.settings_store import SettingsStore
from src.services.visibility import EntityKind
from src.utils.audit import log_action

router = APIRouter(prefix="/people", tags=["People"])

require_org_manager = require_any_permission(
    Permission.MANAGE_ALL_OFFICES,
    Permission.MANAGE_OWN_REGION,
    Permission.MANAGE_OWN_OFFICE,
)


class PayPlanAssignRequest(BaseModel):
    pay_plan_id: int
    effective_date: date
    notes: Optional[str] = Field(None, max_length=1000)


@router.get("", response_model=PersonListResponse)
async def list_people(
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
    status_filter: Optional[PersonStatus] = Query(None, alias="status"),
    office_id: Optional[int] = Query(None),
    role_id: Optional[int] = Query(None),
    reports_to_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
):
    """List the people the caller can see."""
    query = select(Person).where(
        await visibility_restriction(db, current_user, EntityKind.PERSON, store)
    )

    if status_filter:
        query = query.where(Person.status == status_filter)
    if office_id is not None:
        query = query.where(Person.office_id == office_id)
    if role_id is not None:
        query = query.where(Person.role_id == role_id)
    if reports_to_id is not None:
        query = query.where(Person.reports_to_id == reports_to_id)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Person.first_name.ilike(pattern),
                Person.last_name.ilike(pattern),
                Person.email.ilike(pattern),
            )
        )

    people, total, pages = await paginate(
        db, query, page, per_page, order_by=Person.last_name.asc()
    )

    return PersonListResponse(
        items=[PersonResponse.model_validate(p) for p in people],
        total=total,
        page=page,
        per_page=per_page,
        pages=pages,
    )


@router.get("/{person_id}", response_model=PersonDetailResponse)
async def get_person(
    person_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
):
    details = await PersonGraph(db).get_person_with_details(person_id)
    if details is None:
        raise not_found("Person")
    await ensure_can_view(db, current_user, EntityKind.PERSON, person_id, store)

    response = PersonDetailResponse.model_validate(details.person)
    response.role_name = details.role.name if details.role else None
    response.role_level = details.role.level if details.role else None
    response.office_name = details.office.name if details.office else None
    response.manager_name = details.manager.full_name if details.manager else None
    response.recruiter_name = details.recruiter.full_name if details.recruiter else None
    if details.current_pay_plan:
        response.pay_plan_id = details.current_pay_plan.id
        response.pay_plan_name = details.current_pay_plan.name
    return response


@router.get("/{person_id}/chain", response_model=ChainResponse)
async def get_chain(
    person_id: int,
    source: OverrideSource = Query(OverrideSource.REPORTS_TO),
    levels: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
):
    """Ancestors of a person in the management or recruiting chain."""
    if not await db.get(Person, person_id):
        raise not_found("Person")
    await ensure_can_view(db, current_user, EntityKind.PERSON, person_id, store)

    max_depth = await store.max_hierarchy_depth(db)
    walker = HierarchyWalker(PersonGraph(db), max_depth=max_depth)
    result = await walker.walk(person_id, source, levels or max_depth)

    return ChainResponse(
        person_id=person_id,
        source=source,
        chain=[ChainLinkResponse(level=link.level, person_id=link.person_id) for link in result.chain],
        truncated=result.truncated,
    )


async def _change_parent(
    db: AsyncSession,
    store: SettingsStore,
    current_user: Actor,
    person_id: int,
    new_parent_id: Optional[int],
    source: OverrideSource,
) -> tuple[Person, Optional[int]]:
    """
    Point a person's parent in one chain at someone else.

    Returns:
        (person, previous parent id)

    Raises:
        HierarchyCycleError: if the new parent is the person or one of
            their descendants in that chain
    """
    person = await db.get(Person, person_id)
    if not person:
        raise not_found("Person")
    await ensure_can_view(db, current_user, EntityKind.PERSON, person_id, store)

    if new_parent_id is not None:
        if not await db.get(Person, new_parent_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="New parent not found",
            )
        await ensure_can_view(db, current_user, EntityKind.PERSON, new_parent_id, store)

    walker = HierarchyWalker(PersonGraph(db))
    if await walker.would_create_cycle(person_id, new_parent_id, source):
        raise HierarchyCycleError(person_id, new_parent_id, source.value)

    if source == OverrideSource.REPORTS_TO:
        previous = person.reports_to_id
        person.reports_to_id = new_parent_id
    else:
        previous = person.recruited_by_id
        person.recruited_by_id = new_parent_id
    return person, previous


@router.post("/{person_id}/change-manager", response_model=PersonResponse)
async def change_manager(
    person_id: int,
    data: ChangeManagerRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(require_org_manager),
    store: SettingsStore = Depends(get_settings_store),
):
    """Move a person under a new manager. Rejects assignments that form a cycle."""
    try:
        person, previous = await _change_parent(
            db, store, current_user, person_id, data.new_manager_id, OverrideSource.REPORTS_TO
        )
    except HierarchyCycleError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    await log_action(
        db,
        user_id=current_user.id,
        action=AuditAction.CHANGE_MANAGER,
        target_type="person",
        target_id=person.id,
        action_metadata={
            "old_manager_id": previous,
            "new_manager_id": data.new_manager_id,
            "reason": data.reason,
        },
        request=request,
    )
    await db.commit()
    await db.refresh(person)

    return PersonResponse.model_validate(person)


@router.post("/{person_id}/change-recruiter", response_model=PersonResponse)
async def change_recruiter(
    person_id: int,
    data: ChangeRecruiterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(require_org_manager),
    store: SettingsStore = Depends(get_settings_store),
):
    """Re-attribute who recruited a person. Rejects assignments that form a cycle."""
    try:
        person, previous = await _change_parent(
            db, store, current_user, person_id, data.new_recruiter_id, OverrideSource.RECRUITED_BY
        )
    except HierarchyCycleError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    await log_action(
        db,
        user_id=current_user.id,
        action=AuditAction.CHANGE_RECRUITER,
        target_type="person",
        target_id=person.id,
        action_metadata={
            "old_recruiter_id": previous,
            "new_recruiter_id": data.new_recruiter_id,
            "reason": data.reason,
        },
        request=request,
    )
    await db.commit()
    await db.refresh(person)

    return PersonResponse.model_validate(person)


@router.post("/{person_id}/pay-plan", status_code=status.HTTP_201_CREATED)
async def assign_person_pay_plan(
    person_id: int,
    data: PayPlanAssignRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(require_org_manager),
    store: SettingsStore = Depends(get_settings_store),
):
    """Start a new pay plan for a person from effective_date."""
    if not await db.get(Person, person_id):
        raise not_found("Person")
    await ensure_can_view(db, current_user, EntityKind.PERSON, person_id, store)
    if not await db.get(PayPlan, data.pay_plan_id):
        raise not_found("Pay plan")

    assignment = await assign_pay_plan(
        db, person_id, data.pay_plan_id, data.effective_date, notes=data.notes
    )

    await log_action(
        db,
        user_id=current_user.id,
        action=AuditAction.ASSIGN_PAY_PLAN,
        target_type="person",
        target_id=person_id,
        action_metadata={
            "pay_plan_id": data.pay_plan_id,
            "effective_date": data.effective_date.isoformat(),
        },
        request=request,
    )
    await db.commit()

    return {
        "id": assignment.id,
        "person_id": person_id,
        "pay_plan_id": assignment.pay_plan_id,
        "effective_date": assignment.effective_date,
    }
