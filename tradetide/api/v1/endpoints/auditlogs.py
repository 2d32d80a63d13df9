from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, func, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from tradetide.constants.constants import DEFAULT_PAGE_SIZE
from tradetide.core.database import aget_db
from tradetide.core.security import get_current_user
from tradetide.models.auditlog import AuditLog
from tradetide.models.user import User
from tradetide.schemas.auditlogSchema import AuditLogResponse
from tradetide.utils.filters import date_range, split_csv
from tradetide.utils.pagination import normalize_page, page_offset, total_pages

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


@router.get("")
async def list_audit_logs(
    user: Optional[str] = None,
    action: Optional[str] = Query(None, description="Comma-separated list of actions"),
    target: Optional[str] = None,
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Audit trail, newest first"""
    conditions = []
    if user:
        conditions.append(AuditLog.user_id == user)
    actions = split_csv(action)
    if actions:
        conditions.append(AuditLog.action.in_(actions))
    if target:
        conditions.append(AuditLog.target == target)
    conditions.extend(date_range(AuditLog.created_at, after=date_from, before=date_to, inclusive=True))

    where = and_(*conditions) if conditions else true()

    total_query = await db.execute(select(func.count(AuditLog.log_id)).where(where))
    total = total_query.scalar() or 0

    page, limit = normalize_page(page, limit)
    result = await db.execute(
        select(AuditLog)
        .where(where)
        .order_by(AuditLog.created_at.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    )
    return {
        "logs": [AuditLogResponse.model_validate(log) for log in result.scalars().all()],
        "total": total,
        "page": page,
        "totalPages": total_pages(total, limit),
    }
