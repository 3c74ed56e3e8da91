"""
Audit trail for API writes.

Rows are added to the caller's session; the endpoint commits them together
with the change they describe, so a rolled-back write leaves no audit row.
"""

import logging
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.audit import AuditAction, AuditLog

logger = logging.getLogger(__name__)


def _client_ip(request: Optional[Request]) -> Optional[str]:
    """First hop of X-Forwarded-For, else the socket peer."""
    if request is None:
        return None
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


async def log_action(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    action_metadata: Optional[dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> AuditLog:
    """
    Record one write made by user_id.

    action_metadata must be JSON-serializable (Decimals and enums as strings).
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        action_metadata=action_metadata,
        ip_address=_client_ip(request),
    )
    db.add(entry)
    logger.debug(f"Audit: person {user_id} {action.value} {target_type}#{target_id}")
    return entry
