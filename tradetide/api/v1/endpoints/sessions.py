import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tradetide.constants.constants import (
    SESSION_TRANSITIONS,
    AuditAction,
    NotificationType,
    SessionStatus,
)
from tradetide.core.database import aget_db
from tradetide.core.security import get_current_user
from tradetide.models.session import SkillSession
from tradetide.models.user import User
from tradetide.schemas.sessionSchema import SessionCreateRequest, SessionResponse, SessionStatusUpdateRequest
from tradetide.utils.activity import add_audit_log, add_notification
from tradetide.utils.filters import naive_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("")
async def list_sessions(
    status: Optional[SessionStatus] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Sessions the caller scheduled or was invited to, soonest first"""
    conditions = [
        or_(SkillSession.scheduled_by == current_user.user_id,
            SkillSession.participant_id == current_user.user_id)
    ]
    if status:
        conditions.append(SkillSession.status == status)

    result = await db.execute(
        select(SkillSession).where(and_(*conditions)).order_by(SkillSession.date.asc())
    )
    return {"sessions": [SessionResponse.model_validate(s) for s in result.scalars().all()]}


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Propose a session with another user; it starts as pending"""
    skill = body.skill.strip()
    if not skill:
        raise HTTPException(status_code=400, detail="Skill is required")
    if body.participant_id == current_user.user_id:
        raise HTTPException(status_code=400, detail="Cannot schedule a session with yourself")

    participant_query = await db.execute(select(User).where(User.user_id == body.participant_id))
    participant = participant_query.scalar_one_or_none()
    if not participant:
        raise HTTPException(status_code=404, detail="Participant not found")

    session = SkillSession(
        scheduled_by=current_user.user_id,
        participant_id=participant.user_id,
        skill=skill,
        date=naive_utc(body.date),
        status=SessionStatus.pending,
    )
    db.add(session)
    await db.flush()

    add_notification(
        db,
        participant.user_id,
        NotificationType.session,
        f"{current_user.username} scheduled a {skill} session with you",
    )
    add_audit_log(
        db,
        current_user.user_id,
        AuditAction.session_created,
        session.session_id,
        SessionResponse.model_validate(session).model_dump(by_alias=True, mode="json"),
    )
    await db.commit()

    logger.info(f"Session {session.session_id} scheduled by {current_user.user_id} with {participant.user_id}")
    return SessionResponse.model_validate(session)


@router.put("/{session_id}/status", response_model=SessionResponse)
async def update_session_status(
    session_id: str,
    body: SessionStatusUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """
    Move a session along pending -> accepted|declined, accepted -> completed
    Either participant may do this
    """
    result = await db.execute(select(SkillSession).where(SkillSession.session_id == session_id))
    session = result.scalar_one_or_none()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    if not session.involves(current_user.user_id):
        raise HTTPException(status_code=403, detail="Only participants can update this session")

    new_status = body.status
    if new_status not in SESSION_TRANSITIONS[session.status]:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot move a {session.status.value} session to {new_status.value}"
        )

    previous = session.status
    session.status = new_status
    add_notification(
        db,
        session.counterparty_of(current_user.user_id),
        NotificationType.session,
        f"{current_user.username} marked your {session.skill} session as {new_status.value}",
    )
    add_audit_log(
        db,
        current_user.user_id,
        AuditAction(f"session_{new_status.value}"),
        session.session_id,
        {"from": previous.value, "to": new_status.value},
    )
    await db.commit()

    logger.info(f"Session {session_id}: {previous.value} -> {new_status.value}")
    return SessionResponse.model_validate(session)
