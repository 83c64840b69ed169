from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.deps import get_db
from app.models.item import Item
from app.models.rental import Rental
from app.schemas.stats import StatsOut

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=StatsOut)
def get_stats(db: Session = Depends(get_db)):
    total_items = db.query(func.count(Item.id)).scalar() or 0
    available_items = db.query(func.count(Item.id)).filter(Item.availability == "available").scalar() or 0

    by_status = dict(
        db.query(Rental.status, func.count(Rental.id)).group_by(Rental.status).all()
    )

    return StatsOut(
        total_items=total_items,
        available_items=available_items,
        pending_rentals=by_status.get("pending", 0),
        active_rentals=by_status.get("active", 0),
        completed_rentals=by_status.get("completed", 0),
    )
