import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.deps import get_db, require_admin
from app.models.item import Item
from app.models.user import User
from app.schemas.item import Availability, ItemCreateIn, ItemOut, ItemUpdateIn
from app.services.pricing import derive_rates, reconcile_available

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["items"])


def _get_item_or_404(db: Session, item_id: uuid.UUID) -> Item:
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


def _apply_market_rate(item: Item, market_rate: int):
    """Re-derive the stored rate snapshot from a market rate."""
    daily, weekly, collateral = derive_rates(market_rate)
    item.market_rate = market_rate
    item.daily_rate = daily
    item.weekly_rate = weekly
    item.required_collateral = collateral


@router.get("", response_model=list[ItemOut])
def list_items(
    availability: Availability | None = None,
    category: str | None = None,
    db: Session = Depends(get_db),
):
    q = db.query(Item)
    if availability:
        q = q.filter(Item.availability == availability)
    if category:
        q = q.filter(Item.category == category)
    return q.order_by(Item.created_at.desc()).all()


@router.get("/{item_id}", response_model=ItemOut)
def get_item(item_id: uuid.UUID, db: Session = Depends(get_db)):
    return _get_item_or_404(db, item_id)


@router.post("", response_model=ItemOut, status_code=201)
def create_item(
    payload: ItemCreateIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    item = Item(
        name=payload.name,
        category=payload.category,
        image_url=payload.image_url or None,
        availability=payload.availability,
        quantity=payload.quantity,
        available_quantity=payload.quantity,
        created_by=admin.id,
    )
    _apply_market_rate(item, payload.market_rate)

    try:
        db.add(item)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(item)
    logger.info(f"[Catalog] {admin.game_nickname} created item '{item.name}' (qty={item.quantity})")
    return item


@router.patch("/{item_id}", response_model=ItemOut)
def update_item(
    item_id: uuid.UUID,
    payload: ItemUpdateIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    try:
        item = db.query(Item).filter(Item.id == item_id).with_for_update().first()
        if not item:
            raise HTTPException(status_code=404, detail="Item not found")

        # Only update fields that are provided
        if payload.name is not None:
            item.name = payload.name.strip()
        if payload.category is not None:
            item.category = payload.category.strip()
        if "image_url" in payload.model_fields_set:
            item.image_url = payload.image_url or None
        if payload.availability is not None:
            item.availability = payload.availability
        if payload.market_rate is not None:
            _apply_market_rate(item, payload.market_rate)
        if payload.quantity is not None and payload.quantity != item.quantity:
            item.available_quantity = reconcile_available(
                item.quantity, item.available_quantity, payload.quantity
            )
            item.quantity = payload.quantity

        db.commit()

    except HTTPException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(item)
    logger.info(f"[Catalog] {admin.game_nickname} updated item '{item.name}'")
    return item


@router.delete("/{item_id}", status_code=204)
def delete_item(
    item_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    item = _get_item_or_404(db, item_id)
    name = item.name
    try:
        # Rentals keep their snapshot; references to this id become orphans
        db.delete(item)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"[Catalog] {admin.game_nickname} deleted item '{name}'")
