"""
Per-rental chat thread: append-only messages between the renter and admins.
"""
import asyncio
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, WebSocket, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.deps import get_db, get_current_user, get_session_factory, user_from_token
from app.models.rental import RentalMessage
from app.models.user import User
from app.schemas.chat import MessageCreateIn, MessageOut
from app.services import rental_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rentals", tags=["chat"])


def _list_messages(db: Session, rental_id: uuid.UUID, since=None) -> list[RentalMessage]:
    q = db.query(RentalMessage).filter(RentalMessage.rental_id == rental_id)
    if since is not None:
        q = q.filter(RentalMessage.created_at >= since)
    return q.order_by(RentalMessage.created_at.asc()).all()


def _dump(message: RentalMessage) -> dict:
    return MessageOut.model_validate(message).model_dump(mode="json")


@router.get("/{rental_id}/messages", response_model=list[MessageOut])
def list_messages(
    rental_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rental = rental_service.get_rental_or_404(db, rental_id)
    rental_service.ensure_participant(rental, user)
    return _list_messages(db, rental.id)


@router.post("/{rental_id}/messages", response_model=MessageOut, status_code=201)
def send_message(
    rental_id: uuid.UUID,
    payload: MessageCreateIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rental = rental_service.get_rental_or_404(db, rental_id)
    rental_service.ensure_participant(rental, user)

    msg = RentalMessage(
        rental_id=rental.id,
        sender_id=user.id,
        sender_name=user.game_nickname,
        is_admin=user.is_admin,
        message=payload.message,
    )
    try:
        db.add(msg)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(msg)
    logger.info(f"[Chat] Ticket #{rental.ticket_number}: message from {user.game_nickname}")
    return msg


def _authorize_subscription(session_factory, token: str, rental_id: uuid.UUID) -> tuple[str, int]:
    with session_factory() as db:
        user = user_from_token(db, token)
        rental = rental_service.get_rental_or_404(db, rental_id)
        rental_service.ensure_participant(rental, user)
        return user.game_nickname, rental.ticket_number


def _fetch_messages(session_factory, rental_id: uuid.UUID, since=None, seen=frozenset()) -> list[tuple]:
    """(id, created_at, payload) for each message at or after `since` not already sent."""
    with session_factory() as db:
        return [
            (m.id, m.created_at, _dump(m))
            for m in _list_messages(db, rental_id, since=since)
            if m.id not in seen
        ]


async def _wait_for_close(websocket: WebSocket):
    while True:
        frame = await websocket.receive()
        if frame["type"] == "websocket.disconnect":
            return


@router.websocket("/{rental_id}/messages/ws")
async def subscribe_messages(
    websocket: WebSocket,
    rental_id: uuid.UUID,
    token: str,
    session_factory=Depends(get_session_factory),
):
    """
    Live thread: a snapshot of every message on connect, then each new
    message as it is stored. Incoming frames are ignored; post messages
    through the HTTP endpoint.

    Database work runs in the threadpool, one short session per poll.
    """
    try:
        nickname, ticket_number = await run_in_threadpool(
            _authorize_subscription, session_factory, token, rental_id
        )
    except HTTPException as e:
        logger.warning(f"[Chat] Subscription to {rental_id} refused: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    messages = await run_in_threadpool(_fetch_messages, session_factory, rental_id)
    await websocket.send_json({"type": "snapshot", "messages": [payload for _, _, payload in messages]})

    # Polls ask for created_at >= last_seen_at, so only ids stamped exactly
    # last_seen_at can come back twice
    last_seen_at = messages[-1][1] if messages else None
    seen = {mid for mid, at, _ in messages if at == last_seen_at}

    closed = asyncio.create_task(_wait_for_close(websocket))
    try:
        while True:
            await asyncio.wait({closed}, timeout=settings.CHAT_POLL_INTERVAL_SECONDS)
            if closed.done():
                break

            fresh = await run_in_threadpool(
                _fetch_messages, session_factory, rental_id, last_seen_at, frozenset(seen)
            )
            if not fresh:
                continue

            newest = fresh[-1][1]
            if newest != last_seen_at:
                seen = set()
                last_seen_at = newest
            seen.update(mid for mid, at, _ in fresh if at == newest)

            for _, _, payload in fresh:
                await websocket.send_json({"type": "message", "message": payload})
    finally:
        if not closed.done():
            closed.cancel()
        elif not closed.cancelled() and closed.exception() is not None:
            logger.warning(f"[Chat] Subscription to ticket #{ticket_number} ended abnormally: {closed.exception()!r}")
        logger.info(f"[Chat] {nickname} left ticket #{ticket_number}")
