import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.deps import get_db
from app.models.user import User, UserRole, Nickname, normalize_nickname
from app.schemas.auth import RegisterIn, LoginIn, TokenOut, UserInfo, NicknameAvailabilityOut
from app.schemas.user import UserOut
from app.core.security import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_NICKNAME_LENGTH = 3

NICKNAME_TAKEN = "Nickname already in use"


@router.get("/nickname-available", response_model=NicknameAvailabilityOut)
def nickname_available(nickname: str, db: Session = Depends(get_db)):
    normalized = normalize_nickname(nickname)
    if not normalized:
        return NicknameAvailabilityOut(nickname=normalized, available=False)
    return NicknameAvailabilityOut(
        nickname=normalized,
        available=db.get(Nickname, normalized) is None,
    )


@router.post("/register", response_model=UserOut)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    email = payload.email.lower()
    nickname = normalize_nickname(payload.game_nickname)
    game_id = payload.game_id.strip()

    if len(nickname) < MIN_NICKNAME_LENGTH:
        raise HTTPException(status_code=400, detail=f"Nickname must be at least {MIN_NICKNAME_LENGTH} characters")
    if not game_id:
        raise HTTPException(status_code=400, detail="game_id is required")

    exists = db.query(User).filter(User.email == email).first()
    if exists:
        raise HTTPException(status_code=409, detail="Email already used")

    if db.get(Nickname, nickname) is not None:
        raise HTTPException(status_code=409, detail=NICKNAME_TAKEN)

    # Credential, nickname reservation, profile and role go in together:
    # a concurrent signup for the same nickname trips the primary key.
    user_id = uuid.uuid4()
    user = User(
        id=user_id,
        email=email,
        password_hash=hash_password(payload.password),
        game_nickname=nickname,
        game_id=game_id,
        profile_url=(payload.profile_url or "").strip() or None,
    )
    db.add(user)
    db.add(Nickname(nickname=nickname, user_id=user_id))
    db.add(UserRole(user_id=user_id, role="user"))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if db.get(Nickname, nickname) is not None:
            logger.warning(f"[Auth] Signup lost nickname race for '{nickname}'")
            raise HTTPException(status_code=409, detail=NICKNAME_TAKEN)
        raise HTTPException(status_code=409, detail="Email already used")

    db.refresh(user)
    logger.info(f"[Auth] Registered {nickname}")
    return user


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="User inactive or not found")

    token = create_access_token(str(user.id))
    return TokenOut(
        access_token=token,
        user=UserInfo(
            id=user.id,
            email=user.email,
            game_nickname=user.game_nickname,
            role=user.role,
            is_admin=user.is_admin,
        ),
    )
