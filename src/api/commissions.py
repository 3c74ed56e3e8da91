"""Commissions API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.common import (
    ensure_can_view,
    get_settings_store,
    not_found,
    paginate,
    permission_denied,
    visibility_restriction,
)
from src.auth.dependencies import get_current_user, require_permission
from src.auth.permissions import Actor, Permission, has_permission
from src.db import get_db
from src.models import AuditAction, Commission, CommissionStatus
from src.schemas.commission import (
    CommissionListResponse,
    CommissionResponse,
    CommissionStatusUpdate,
)
from src.services.commission import transition_commission
from src.services.errors import InvalidStatusTransition
from src.services.settings_store import SettingsStore
from src.services.visibility import EntityKind
from src.utils.audit import log_action

router = APIRouter(prefix="/commissions", tags=["Commissions"])


@router.get("", response_model=CommissionListResponse)
async def list_commissions(
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
    status_filter: Optional[CommissionStatus] = Query(None, alias="status"),
    commission_type: Optional[str] = Query(None),
    person_id: Optional[int] = Query(None),
    deal_id: Optional[int] = Query(None),
    overrides_only: bool = Query(False),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
):
    """List the commissions the caller can see."""
    query = select(Commission).where(
        await visibility_restriction(db, current_user, EntityKind.COMMISSION, store)
    )

    if status_filter:
        query = query.where(Commission.status == status_filter)
    if commission_type:
        query = query.where(Commission.commission_type == commission_type)
    if person_id is not None:
        query = query.where(Commission.person_id == person_id)
    if deal_id is not None:
        query = query.where(Commission.deal_id == deal_id)
    if overrides_only:
        query = query.where(Commission.commission_type.like("override_%"))

    commissions, total, pages = await paginate(
        db, query, page, per_page, order_by=Commission.id.desc()
    )

    return CommissionListResponse(
        items=[CommissionResponse.model_validate(c) for c in commissions],
        total=total,
        page=page,
        per_page=per_page,
        pages=pages,
    )


@router.get("/{commission_id}", response_model=CommissionResponse)
async def get_commission(
    commission_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
):
    commission = await db.get(Commission, commission_id)
    if not commission:
        raise not_found("Commission")
    await ensure_can_view(db, current_user, EntityKind.COMMISSION, commission_id, store)
    return CommissionResponse.model_validate(commission)


@router.patch("/{commission_id}/status", response_model=CommissionResponse)
async def update_commission_status(
    commission_id: int,
    data: CommissionStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(require_permission(Permission.APPROVE_COMMISSIONS)),
    store: SettingsStore = Depends(get_settings_store),
):
    """
    Approve, pay or void a commission.

    Paying additionally requires RUN_PAYROLL.
    """
    commission = await db.get(Commission, commission_id)
    if not commission:
        raise not_found("Commission")
    await ensure_can_view(db, current_user, EntityKind.COMMISSION, commission_id, store)

    if data.status == CommissionStatus.PAID and not has_permission(
        current_user, Permission.RUN_PAYROLL
    ):
        raise permission_denied()

    previous_status = commission.status
    try:
        await transition_commission(
            db,
            commission,
            data.status,
            actor_id=current_user.id,
            reason=data.reason,
        )
    except InvalidStatusTransition as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    await log_action(
        db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_COMMISSION_STATUS,
        target_type="commission",
        target_id=commission.id,
        action_metadata={
            "deal_id": commission.deal_id,
            "from": previous_status.value,
            "to": data.status.value,
            "reason": data.reason,
        },
        request=request,
    )
    await db.commit()
    await db.refresh(commission)

    return CommissionResponse.model_validate(commission)
