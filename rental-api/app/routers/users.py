import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.deps import get_current_user, get_db, require_admin
from app.models.user import User, UserRole, Nickname
from app.schemas.user import UserOut, RoleUpdateIn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])
admin_router = APIRouter(prefix="/admin/users", tags=["admin"])


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


def _get_user_or_404(db: Session, user_id: uuid.UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@admin_router.get("", response_model=list[UserOut])
def list_users(
    search: str | None = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(User)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        q = q.filter(or_(User.game_nickname.ilike(pattern), User.email.ilike(pattern)))
    return q.order_by(User.game_nickname.asc()).all()


@admin_router.patch("/{user_id}/role", response_model=UserOut)
def update_role(
    user_id: uuid.UUID,
    payload: RoleUpdateIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if user_id == admin.id:
        logger.warning(f"[Auth] {admin.game_nickname} tried to change their own role")
        raise HTTPException(status_code=403, detail="You cannot change your own role")

    target = _get_user_or_404(db, user_id)
    try:
        record = db.get(UserRole, target.id)
        if record:
            record.role = payload.role
        else:
            db.add(UserRole(user_id=target.id, role=payload.role))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(target)
    logger.info(f"[Auth] {admin.game_nickname} set role of {target.game_nickname} to {payload.role}")
    return target


@admin_router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if user_id == admin.id:
        raise HTTPException(status_code=403, detail="You cannot delete your own account")

    target = _get_user_or_404(db, user_id)
    nickname = target.game_nickname
    try:
        db.query(Nickname).filter(Nickname.user_id == target.id).delete(synchronize_session=False)
        db.delete(target)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"[Auth] {admin.game_nickname} deleted account {nickname}")
