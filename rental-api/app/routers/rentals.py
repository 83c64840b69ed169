import logging
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.deps import get_db, get_current_user, require_admin
from app.models.rental import Rental
from app.models.user import User
from app.schemas.rental import RentalCreateIn, RentalOut, RentalQuoteIn, RentalQuoteOut
from app.services import rental_service
from app.services.settings_service import get_or_create_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rentals", tags=["rentals"])


@router.post("/quote", response_model=RentalQuoteOut)
def quote(
    payload: RentalQuoteIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return rental_service.quote_rental(db, payload)


@router.post("", response_model=RentalOut, status_code=201)
def create_rental(
    payload: RentalCreateIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        app_settings = get_or_create_settings(db)
        rental = rental_service.create_rental(db, user, payload, app_settings)
        db.commit()

    except HTTPException as e:
        db.rollback()
        logger.warning(f"[Rentals] Request by {user.game_nickname} refused: {e.detail}")
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(rental)
    return rental_service.serialize_rental(rental)


@router.get("/mine", response_model=list[RentalOut])
def list_my_rentals(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rentals = (
        db.query(Rental)
        .filter(Rental.renter_id == user.id)
        .order_by(Rental.created_at.desc())
        .all()
    )
    return [rental_service.serialize_rental(r) for r in rentals]


@router.get("", response_model=list[RentalOut])
def list_rentals(
    status: Literal["pending", "active", "completed", "cancelled"] | None = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(Rental)
    if status:
        q = q.filter(Rental.status == status)
    rentals = q.order_by(Rental.created_at.desc()).all()
    return [rental_service.serialize_rental(r) for r in rentals]


@router.get("/{rental_id}", response_model=RentalOut)
def get_rental(
    rental_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rental = rental_service.get_rental_or_404(db, rental_id)
    rental_service.ensure_participant(rental, user)
    return rental_service.serialize_rental(rental)


def _run_transition(db: Session, transition, rental_id: uuid.UUID) -> dict:
    try:
        rental = transition(db, rental_id)
        db.commit()

    except HTTPException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(rental)
    return rental_service.serialize_rental(rental)


@router.post("/{rental_id}/approve", response_model=RentalOut)
def approve(
    rental_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return _run_transition(db, rental_service.approve_rental, rental_id)


@router.post("/{rental_id}/complete", response_model=RentalOut)
def complete(
    rental_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return _run_transition(db, rental_service.complete_rental, rental_id)


@router.post("/{rental_id}/cancel", response_model=RentalOut)
def cancel(
    rental_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return _run_transition(db, rental_service.cancel_rental, rental_id)


@router.delete("/{rental_id}", status_code=204)
def delete(
    rental_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    try:
        rental_service.delete_rental(db, rental_id)
        db.commit()

    except HTTPException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        raise
