import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tradetide.constants.constants import (
    BARTER_TRANSITIONS,
    AuditAction,
    BarterStatus,
    NotificationType,
)
from tradetide.core.database import aget_db
from tradetide.core.security import get_current_user
from tradetide.models.barterrequest import BarterRequest
from tradetide.models.user import User
from tradetide.schemas.barterSchema import BarterRequestCreate, BarterRequestResponse
from tradetide.utils.activity import add_audit_log, add_notification

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/barter-requests", tags=["barter-requests"])


async def get_request_or_404(db: AsyncSession, request_id: str) -> BarterRequest:
    result = await db.execute(select(BarterRequest).where(BarterRequest.request_id == request_id))
    barter = result.scalar_one_or_none()
    if not barter:
        raise HTTPException(status_code=404, detail="Barter request not found")
    return barter


def snapshot(barter: BarterRequest) -> dict:
    return BarterRequestResponse.model_validate(barter).model_dump(
        by_alias=True, mode="json", exclude={"sender", "receiver"}
    )


@router.post("", response_model=BarterRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_barter_request(
    body: BarterRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """
    Propose a skill trade to another user
    The caller is always the sender
    """
    skill = body.skill.strip()
    if not skill:
        raise HTTPException(status_code=400, detail="Skill is required")
    if body.receiver_id == current_user.user_id:
        raise HTTPException(status_code=400, detail="Cannot send a barter request to yourself")

    receiver_query = await db.execute(select(User).where(User.user_id == body.receiver_id))
    receiver = receiver_query.scalar_one_or_none()
    if not receiver:
        raise HTTPException(status_code=404, detail="Receiver not found")

    barter = BarterRequest(
        sender_id=current_user.user_id,
        receiver_id=receiver.user_id,
        sender=current_user,
        receiver=receiver,
        skill=skill,
        status=BarterStatus.pending,
    )
    db.add(barter)
    await db.flush()

    add_notification(
        db,
        receiver.user_id,
        NotificationType.barter,
        f"{current_user.username} sent you a barter request for {skill}",
    )
    add_audit_log(db, current_user.user_id, AuditAction.barter_created, barter.request_id, snapshot(barter))
    await db.commit()

    logger.info(f"Barter request {barter.request_id} created: {current_user.user_id} -> {receiver.user_id}")
    return BarterRequestResponse.model_validate(barter)


@router.get("")
async def list_barter_requests(
    user: Optional[str] = None,
    status: Optional[BarterStatus] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """
    The caller's barter requests, sent or received
    `user` narrows them to the ones exchanged with that user
    """
    me = current_user.user_id
    conditions = [or_(BarterRequest.sender_id == me, BarterRequest.receiver_id == me)]
    if user and user != me:
        conditions.append(or_(BarterRequest.sender_id == user, BarterRequest.receiver_id == user))
    if status:
        conditions.append(BarterRequest.status == status)

    result = await db.execute(
        select(BarterRequest)
        .where(and_(*conditions))
        .order_by(BarterRequest.created_at.desc())
    )
    requests = result.scalars().all()
    return {"requests": [BarterRequestResponse.model_validate(r) for r in requests]}


@router.get("/{request_id}", response_model=BarterRequestResponse)
async def get_barter_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    barter = await get_request_or_404(db, request_id)
    if not barter.involves(current_user.user_id):
        raise HTTPException(status_code=404, detail="Barter request not found")
    return BarterRequestResponse.model_validate(barter)


async def change_status(
    db: AsyncSession,
    barter: BarterRequest,
    actor: User,
    new_status: BarterStatus,
    action: AuditAction,
) -> BarterRequest:
    if new_status not in BARTER_TRANSITIONS[barter.status]:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot move a {barter.status.value} request to {new_status.value}"
        )

    previous = barter.status
    barter.status = new_status
    add_notification(
        db,
        barter.counterparty_of(actor.user_id),
        NotificationType.barter,
        f"{actor.username} marked your barter request for {barter.skill} as {new_status.value}",
    )
    add_audit_log(
        db,
        actor.user_id,
        action,
        barter.request_id,
        {"from": previous.value, "to": new_status.value},
    )
    await db.commit()

    logger.info(f"Barter request {barter.request_id}: {previous.value} -> {new_status.value}")
    return barter


@router.put("/{request_id}/accept", response_model=BarterRequestResponse)
async def accept_barter_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    barter = await get_request_or_404(db, request_id)
    if barter.receiver_id != current_user.user_id:
        raise HTTPException(status_code=403, detail="Only the receiver can accept this request")
    barter = await change_status(db, barter, current_user, BarterStatus.accepted, AuditAction.barter_accepted)
    return BarterRequestResponse.model_validate(barter)


@router.put("/{request_id}/decline", response_model=BarterRequestResponse)
async def decline_barter_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    barter = await get_request_or_404(db, request_id)
    if barter.receiver_id != current_user.user_id:
        raise HTTPException(status_code=403, detail="Only the receiver can decline this request")
    barter = await change_status(db, barter, current_user, BarterStatus.declined, AuditAction.barter_declined)
    return BarterRequestResponse.model_validate(barter)


@router.put("/{request_id}/complete", response_model=BarterRequestResponse)
async def complete_barter_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    barter = await get_request_or_404(db, request_id)
    if not barter.involves(current_user.user_id):
        raise HTTPException(status_code=403, detail="Only participants can complete this request")
    barter = await change_status(db, barter, current_user, BarterStatus.completed, AuditAction.barter_completed)
    return BarterRequestResponse.model_validate(barter)


@router.delete("/{request_id}")
async def delete_barter_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    barter = await get_request_or_404(db, request_id)
    if barter.sender_id != current_user.user_id:
        raise HTTPException(status_code=403, detail="Only the sender can delete this request")

    add_audit_log(db, current_user.user_id, AuditAction.barter_deleted, barter.request_id, snapshot(barter))
    await db.delete(barter)
    await db.commit()

    logger.info(f"Barter request {request_id} deleted by {current_user.user_id}")
    return {"success": True}
