"""Deals API endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.common import (
    ensure_can_view,
    get_settings_store,
    not_found,
    paginate,
    visibility_restriction,
)
from src.auth.dependencies import get_current_user, require_permission
from src.auth.permissions import Actor, Permission
from src.db import get_db
from src.models import PAYABLE_FIELDS, AuditAction, Deal, DealStatus, Person
from src.schemas.deal import (
    CalculateResponse,
    DealCreate,
    DealListResponse,
    DealResponse,
    DealUpdate,
    DealWriteResponse,
)
from src.services.commission import (
    CommissionCalculator,
    calculate_commissions_safely,
    derive_deal_value,
    void_commissions_for_deal,
)
from src.services.errors import DealNotFoundError
from src.services.settings_store import SettingsStore
from src.services.visibility import EntityKind
from src.utils.audit import log_action

router = APIRouter(prefix="/deals", tags=["Deals"])

# Columns a PATCH may change but never clear
REQUIRED_FIELDS = ("status", "deal_value")


def _audit_value(value):
    """JSON-safe representation for audit metadata."""
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if hasattr(value, "value"):
        return value.value
    return str(value)


async def _load_deal(db: AsyncSession, deal_id: int) -> Deal:
    deal = await db.get(Deal, deal_id)
    if not deal:
        raise not_found("Deal")
    return deal


async def _check_participant(db: AsyncSession, person_id: Optional[int], label: str) -> Optional[Person]:
    if person_id is None:
        return None
    person = await db.get(Person, person_id)
    if not person:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{label} not found",
        )
    return person


@router.post("", response_model=DealWriteResponse, status_code=status.HTTP_201_CREATED)
async def create_deal(
    data: DealCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(require_permission(Permission.CREATE_DEALS)),
    store: SettingsStore = Depends(get_settings_store),
):
    """
    Create a deal and calculate its commissions.

    The deal is committed first; a failing commission run is logged and
    reported as zero rows written, never as a failed create.
    """
    await _check_participant(db, data.setter_id, "Setter")
    closer = await _check_participant(db, data.closer_id, "Closer")

    deal_value = data.deal_value
    if not deal_value:
        deal_value = derive_deal_value(data.system_size_kw, data.ppw)

    deal = Deal(
        customer_name=data.customer_name,
        setter_id=data.setter_id,
        closer_id=data.closer_id,
        is_self_gen=data.setter_id is not None and data.setter_id == data.closer_id,
        office_id=data.office_id if data.office_id is not None else closer.office_id,
        deal_type=data.deal_type,
        system_size_kw=data.system_size_kw,
        ppw=data.ppw,
        deal_value=deal_value,
        sale_date=data.sale_date,
        close_date=data.close_date,
        status=data.status,
        notes=data.notes,
    )
    db.add(deal)
    await db.flush()

    await log_action(
        db,
        user_id=current_user.id,
        action=AuditAction.CREATE_DEAL,
        target_type="deal",
        target_id=deal.id,
        action_metadata={
            "setter_id": deal.setter_id,
            "closer_id": deal.closer_id,
            "deal_value": str(deal.deal_value),
        },
        request=request,
    )
    await db.commit()

    max_depth = await store.max_hierarchy_depth(db)
    written = await calculate_commissions_safely(db, deal.id, max_depth=max_depth)
    await db.refresh(deal)

    return DealWriteResponse(
        deal=DealResponse.model_validate(deal),
        commissions_written=written,
    )


@router.get("", response_model=DealListResponse)
async def list_deals(
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
    status_filter: Optional[DealStatus] = Query(None, alias="status"),
    deal_type: Optional[str] = Query(None),
    office_id: Optional[int] = Query(None),
    setter_id: Optional[int] = Query(None),
    closer_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """List the deals the caller can see."""
    query = select(Deal).where(
        await visibility_restriction(db, current_user, EntityKind.DEAL, store)
    )

    if status_filter:
        query = query.where(Deal.status == status_filter)
    if deal_type:
        query = query.where(Deal.deal_type == deal_type)
    if office_id is not None:
        query = query.where(Deal.office_id == office_id)
    if setter_id is not None:
        query = query.where(Deal.setter_id == setter_id)
    if closer_id is not None:
        query = query.where(Deal.closer_id == closer_id)

    deal_date = func.coalesce(Deal.close_date, Deal.sale_date)
    if date_from:
        query = query.where(deal_date >= date_from)
    if date_to:
        query = query.where(deal_date <= date_to)

    deals, total, pages = await paginate(
        db, query, page, per_page, order_by=Deal.created_at.desc()
    )

    return DealListResponse(
        items=[DealResponse.model_validate(d) for d in deals],
        total=total,
        page=page,
        per_page=per_page,
        pages=pages,
    )


@router.get("/{deal_id}", response_model=DealResponse)
async def get_deal(
    deal_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
):
    deal = await _load_deal(db, deal_id)
    await ensure_can_view(db, current_user, EntityKind.DEAL, deal_id, store)
    return DealResponse.model_validate(deal)


@router.patch("/{deal_id}", response_model=DealWriteResponse)
async def update_deal(
    deal_id: int,
    data: DealUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(require_permission(Permission.EDIT_DEALS)),
    store: SettingsStore = Depends(get_settings_store),
):
    """
    Update a deal.

    - moving to cancelled voids its commissions
    - moving to sold, or changing a payable field, recalculates when
      recompute_commissions_on_update is on
    """
    deal = await _load_deal(db, deal_id)
    await ensure_can_view(db, current_user, EntityKind.DEAL, deal_id, store)

    update_data = data.model_dump(exclude_unset=True)
    for field in REQUIRED_FIELDS:
        if field in update_data and update_data[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} cannot be null",
            )
    if "setter_id" in update_data:
        await _check_participant(db, update_data["setter_id"], "Setter")
    if "closer_id" in update_data:
        if update_data["closer_id"] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A deal must have a closer",
            )
        await _check_participant(db, update_data["closer_id"], "Closer")

    previous_status = deal.status
    value_was_derived = deal.deal_value == derive_deal_value(deal.system_size_kw, deal.ppw)

    changes = {}
    for field, value in update_data.items():
        old = getattr(deal, field)
        if old != value:
            changes[field] = {"old": _audit_value(old), "new": _audit_value(value)}
            setattr(deal, field, value)

    if ("system_size_kw" in changes or "ppw" in changes) and "deal_value" not in update_data:
        if value_was_derived or not deal.deal_value:
            new_value = derive_deal_value(deal.system_size_kw, deal.ppw)
            if new_value != deal.deal_value:
                changes["deal_value"] = {
                    "old": _audit_value(deal.deal_value),
                    "new": _audit_value(new_value),
                }
                deal.deal_value = new_value

    deal.is_self_gen = deal.setter_id is not None and deal.setter_id == deal.closer_id

    voided = 0
    new_status = deal.status
    if new_status == DealStatus.CANCELLED and previous_status != DealStatus.CANCELLED:
        voided = await void_commissions_for_deal(
            db, deal.id, reason="deal cancelled", actor_id=current_user.id
        )

    await log_action(
        db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_DEAL,
        target_type="deal",
        target_id=deal.id,
        action_metadata={"changes": changes},
        request=request,
    )
    await db.commit()

    recalculate = False
    if new_status != DealStatus.CANCELLED:
        if new_status == DealStatus.SOLD and previous_status != DealStatus.SOLD:
            recalculate = True
        elif PAYABLE_FIELDS.intersection(changes) and await store.recompute_on_update(db):
            recalculate = True

    written = 0
    if recalculate:
        max_depth = await store.max_hierarchy_depth(db)
        written = await calculate_commissions_safely(db, deal.id, max_depth=max_depth)
    await db.refresh(deal)

    return DealWriteResponse(
        deal=DealResponse.model_validate(deal),
        commissions_written=written,
        commissions_voided=voided,
    )


@router.post("/{deal_id}/calculate", response_model=CalculateResponse)
async def calculate_deal_commissions(
    deal_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(require_permission(Permission.CREATE_DEALS)),
    store: SettingsStore = Depends(get_settings_store),
):
    """
    Explicitly (re)calculate a deal's commissions.

    Unlike the automatic run on create, errors here surface to the caller.
    """
    await _load_deal(db, deal_id)
    await ensure_can_view(db, current_user, EntityKind.DEAL, deal_id, store)

    max_depth = await store.max_hierarchy_depth(db)
    try:
        written = await CommissionCalculator(db, max_depth=max_depth).calculate_commissions_for_deal(
            deal_id
        )
    except DealNotFoundError:
        raise not_found("Deal")

    await log_action(
        db,
        user_id=current_user.id,
        action=AuditAction.RECALCULATE_COMMISSIONS,
        target_type="deal",
        target_id=deal_id,
        action_metadata={"commissions_written": written},
        request=request,
    )
    await db.commit()

    return CalculateResponse(deal_id=deal_id, commissions_written=written)


@router.post("/{deal_id}/cancel", response_model=DealWriteResponse)
async def cancel_deal(
    deal_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(require_permission(Permission.EDIT_DEALS)),
    store: SettingsStore = Depends(get_settings_store),
):
    """Cancel a deal and void every commission on it."""
    deal = await _load_deal(db, deal_id)
    await ensure_can_view(db, current_user, EntityKind.DEAL, deal_id, store)

    if deal.status == DealStatus.CANCELLED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deal is already cancelled",
        )

    previous_status = deal.status
    deal.status = DealStatus.CANCELLED
    voided = await void_commissions_for_deal(
        db, deal.id, reason="deal cancelled", actor_id=current_user.id
    )

    await log_action(
        db,
        user_id=current_user.id,
        action=AuditAction.CANCEL_DEAL,
        target_type="deal",
        target_id=deal.id,
        action_metadata={
            "previous_status": previous_status.value,
            "commissions_voided": voided,
        },
        request=request,
    )
    await db.commit()
    await db.refresh(deal)

    return DealWriteResponse(
        deal=DealResponse.model_validate(deal),
        commissions_voided=voided,
    )
