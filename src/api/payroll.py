"""Payroll API endpoints: period summary and bulk payout."""

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.common import ensure_can_view, get_settings_store, visibility_restriction
from src.auth.dependencies import require_permission
from src.auth.permissions import Actor, Permission
from src.db import get_db
from src.models import AuditAction, Commission, CommissionStatus
from src.schemas.payroll import MarkPaidRequest, MarkPaidResponse, PayrollSummaryResponse
from src.services.commission import CENT, transition_commission
from src.services.settings_store import SettingsStore
from src.services.visibility import EntityKind
from src.utils.audit import log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payroll", tags=["Payroll"])


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


@router.get("/summary", response_model=PayrollSummaryResponse)
async def payroll_summary(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(require_permission(Permission.RUN_PAYROLL)),
    store: SettingsStore = Depends(get_settings_store),
):
    """
    Totals of commissions created between start_date and end_date (inclusive).

    Only commissions visible to the caller are counted.
    """
    if start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date",
        )

    period_start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    period_end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
    conditions = [
        await visibility_restriction(db, current_user, EntityKind.COMMISSION, store),
        Commission.created_at >= period_start,
        Commission.created_at < period_end,
        Commission.status != CommissionStatus.VOID,
    ]

    result = await db.execute(
        select(
            Commission.status,
            func.count(Commission.id),
            func.sum(Commission.amount),
        )
        .where(*conditions)
        .group_by(Commission.status)
    )
    by_status = {
        CommissionStatus(row_status): (count, _money(amount))
        for row_status, count, amount in result.all()
    }
    people_count = await db.scalar(
        select(func.count(func.distinct(Commission.person_id))).where(*conditions)
    )

    def amount_for(commission_status: CommissionStatus) -> Decimal:
        return by_status.get(commission_status, (0, Decimal("0.00")))[1]

    return PayrollSummaryResponse(
        start_date=start_date,
        end_date=end_date,
        total_amount=sum((amount for _, amount in by_status.values()), Decimal("0.00")),
        commission_count=sum(count for count, _ in by_status.values()),
        people_count=people_count or 0,
        pending_amount=amount_for(CommissionStatus.PENDING),
        approved_amount=amount_for(CommissionStatus.APPROVED),
        paid_amount=amount_for(CommissionStatus.PAID),
    )


@router.post("/mark-paid", response_model=MarkPaidResponse)
async def mark_paid(
    data: MarkPaidRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Actor = Depends(require_permission(Permission.RUN_PAYROLL)),
    store: SettingsStore = Depends(get_settings_store),
):
    """
    Pay a batch of approved commissions.

    All or nothing: if any id is missing, not visible or not approved,
    nothing is paid.
    """
    ids = list(dict.fromkeys(data.commission_ids))
    result = await db.execute(select(Commission).where(Commission.id.in_(ids)))
    commissions = {c.id: c for c in result.scalars().all()}

    missing = [i for i in ids if i not in commissions]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Commissions not found: {missing}",
        )
    for commission_id in ids:
        await ensure_can_view(db, current_user, EntityKind.COMMISSION, commission_id, store)
    not_approved = [i for i in ids if commissions[i].status != CommissionStatus.APPROVED]
    if not_approved:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only approved commissions can be paid: {not_approved}",
        )

    total = Decimal("0.00")
    for commission_id in ids:
        commission = commissions[commission_id]
        await transition_commission(
            db,
            commission,
            CommissionStatus.PAID,
            actor_id=current_user.id,
            reason=data.reason,
        )
        total += commission.amount
        await log_action(
            db,
            user_id=current_user.id,
            action=AuditAction.UPDATE_COMMISSION_STATUS,
            target_type="commission",
            target_id=commission.id,
            action_metadata={
                "deal_id": commission.deal_id,
                "from": CommissionStatus.APPROVED.value,
                "to": CommissionStatus.PAID.value,
                "reason": data.reason,
                "batch": True,
            },
            request=request,
        )
    await db.commit()

    logger.info(f"Payroll: {len(ids)} commissions paid by person {current_user.id}, total {total}")
    return MarkPaidResponse(paid_ids=ids, count=len(ids), total_amount=_money(total))
