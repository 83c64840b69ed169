"""
Rental ledger
- Creation with price/collateral snapshots and item reservation
- Lifecycle transitions (approve / complete / cancel / delete) and their
  stock side effects on the catalog
- Remaining-time derivation for active rentals

Functions here only stage changes on the session; callers own the commit so
that a transition and all of its item updates land in one transaction.
"""
import logging
import uuid
from datetime import datetime, timedelta

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.timeutils import as_utc, utcnow
from app.models.app_settings import AppSettings
from app.models.item import Item
from app.models.rental import Rental, RentalMessage
from app.models.user import User
from app.services import pricing
from app.services.ticket_counter import get_next_ticket_number

logger = logging.getLogger(__name__)

GRACE_PERIOD = timedelta(hours=24)


# ═══════════════════════════════════════════════════════════
# LOOKUPS
# ═══════════════════════════════════════════════════════════

def get_rental_or_404(db: Session, rental_id: uuid.UUID, lock: bool = False) -> Rental:
    stmt = select(Rental).where(Rental.id == rental_id)
    if lock:
        stmt = stmt.with_for_update()
    rental = db.execute(stmt).scalar_one_or_none()
    if not rental:
        raise HTTPException(status_code=404, detail="Rental not found")
    return rental


def _lock_items(db: Session, item_ids) -> dict[uuid.UUID, Item]:
    """Load and row-lock catalog items, always in id order."""
    ids = sorted({uuid.UUID(str(i)) for i in item_ids}, key=str)
    if not ids:
        return {}
    rows = db.execute(
        select(Item).where(Item.id.in_(ids)).order_by(Item.id).with_for_update()
    ).scalars().all()
    return {row.id: row for row in rows}


def _snapshot_item_ids(rental: Rental) -> list[uuid.UUID]:
    return [uuid.UUID(str(line["item_id"])) for line in (rental.items or [])]


# ═══════════════════════════════════════════════════════════
# PRICING / QUOTES
# ═══════════════════════════════════════════════════════════

def build_rental_lines(db: Session, requested_lines, rental_days: int, lock: bool = False):
    """
    Resolve requested (item_id, quantity) pairs against the catalog.

    Returns (items_by_id, snapshot_lines, total_cost, total_collateral).
    Raises 400/404 before anything is staged.
    """
    if not requested_lines:
        raise HTTPException(status_code=400, detail="At least one item is required")

    seen = set()
    for line in requested_lines:
        if line.item_id in seen:
            raise HTTPException(status_code=400, detail="Duplicate item in request")
        seen.add(line.item_id)

    if lock:
        items_by_id = _lock_items(db, seen)
    else:
        rows = db.execute(select(Item).where(Item.id.in_(seen))).scalars().all()
        items_by_id = {row.id: row for row in rows}

    snapshot = []
    total_cost = 0
    total_collateral = 0
    for line in requested_lines:
        item = items_by_id.get(line.item_id)
        if not item:
            raise HTTPException(status_code=404, detail=f"Item {line.item_id} not found")

        qty = int(line.quantity)
        if qty < 1:
            raise HTTPException(status_code=400, detail="quantity must be >= 1")
        if qty > item.available_quantity:
            raise HTTPException(status_code=400, detail=f"Not enough stock for '{item.name}'")

        collateral = pricing.line_collateral(item.required_collateral, qty)
        cost = pricing.line_cost(item.daily_rate, item.weekly_rate, rental_days, qty)
        total_collateral += collateral
        total_cost += cost

        snapshot.append({
            "item_id": str(item.id),
            "item_name": item.name,
            "item_image_url": item.image_url,
            "quantity": qty,
            "daily_rate": item.daily_rate,
            "weekly_rate": item.weekly_rate,
            "collateral_amount": collateral,
        })

    return items_by_id, snapshot, total_cost, total_collateral


def resolve_collateral_items(db: Session, item_ids, rented_ids=()) -> list[dict]:
    """
    Snapshot catalog items pledged as trade collateral, valued at market rate.
    An item being rented cannot also be pledged.
    """
    if not item_ids:
        return []
    ids = list(dict.fromkeys(item_ids))
    if set(ids) & set(rented_ids):
        raise HTTPException(status_code=400, detail="A rented item cannot be pledged as collateral")
    rows = db.execute(select(Item).where(Item.id.in_(ids))).scalars().all()
    by_id = {row.id: row for row in rows}

    pledged = []
    for item_id in ids:
        item = by_id.get(item_id)
        if not item:
            raise HTTPException(status_code=404, detail=f"Collateral item {item_id} not found")
        pledged.append({
            "id": str(item.id),
            "name": item.name,
            "category": item.category,
            "image_url": item.image_url,
            "value": item.market_rate,
        })
    return pledged


def quote_rental(db: Session, payload) -> dict:
    _items, lines, total_cost, total_collateral = build_rental_lines(
        db, payload.items, payload.rental_days
    )
    pledged = resolve_collateral_items(
        db, payload.collateral_item_ids, [line.item_id for line in payload.items]
    )
    pledged_value = sum(p["value"] for p in pledged)
    return {
        "items": lines,
        "rental_days": payload.rental_days,
        "rental_type": pricing.rental_type_for(payload.rental_days),
        "rental_cost": total_cost,
        "collateral_amount": total_collateral,
        "credits_needed": pricing.credits_for(total_collateral),
        "collateral_items_value": pledged_value,
        "collateral_covered": pledged_value >= total_collateral,
    }


# ═══════════════════════════════════════════════════════════
# LIFECYCLE
# ═══════════════════════════════════════════════════════════

def create_rental(db: Session, renter: User, payload, app_settings: AppSettings) -> Rental:
    """Stage a new pending rental and reserve its items."""
    if not payload.terms_accepted:
        raise HTTPException(status_code=400, detail="Terms must be accepted")

    if not app_settings.allows(payload.payment_method):
        raise HTTPException(status_code=400, detail=f"Payment method '{payload.payment_method}' is disabled")

    items_by_id, lines, total_cost, total_collateral = build_rental_lines(
        db, payload.items, payload.rental_days, lock=True
    )

    pledged = []
    if payload.payment_method == "trade":
        pledged = resolve_collateral_items(db, payload.collateral_item_ids, items_by_id.keys())
        pledged_value = sum(p["value"] for p in pledged)
        if pledged_value < total_collateral:
            raise HTTPException(
                status_code=400,
                detail=f"Collateral items worth {pledged_value} do not cover required {total_collateral}",
            )

    ticket_number = get_next_ticket_number(db)

    rental = Rental(
        ticket_number=ticket_number,
        items=lines,
        renter_id=renter.id,
        renter_nickname=renter.game_nickname,
        payment_method=payload.payment_method,
        collateral_amount=total_collateral,
        collateral_items=pledged,
        rental_cost=total_cost,
        rental_type=pricing.rental_type_for(payload.rental_days),
        rental_days=payload.rental_days,
        delivery_location=payload.delivery_location,
        terms_accepted=True,
        terms_text=payload.terms_text,
        status="pending",
    )
    db.add(rental)

    # Stock is only held here; it is consumed on approval
    for item in items_by_id.values():
        item.availability = "reserved"

    db.flush()
    logger.info(
        f"[Rentals] Ticket #{ticket_number} created by {renter.game_nickname} "
        f"({len(lines)} item(s), cost={total_cost}, collateral={total_collateral})"
    )
    return rental


def _require_status(rental: Rental, expected: str, action: str):
    if rental.status != expected:
        logger.warning(f"[Rentals] Cannot {action} ticket #{rental.ticket_number}: status is {rental.status}")
        raise HTTPException(
            status_code=409,
            detail=f"Cannot {action} a rental that is {rental.status}",
        )


def _consume_stock(db: Session, rental: Rental):
    items_by_id = _lock_items(db, _snapshot_item_ids(rental))
    for line in rental.items or []:
        item = items_by_id.get(uuid.UUID(str(line["item_id"])))
        if not item:
            continue
        new_available = max(0, item.available_quantity - int(line["quantity"]))
        item.available_quantity = new_available
        item.availability = "unavailable" if new_available == 0 else "available"


def _restore_stock(db: Session, rental: Rental):
    items_by_id = _lock_items(db, _snapshot_item_ids(rental))
    for line in rental.items or []:
        item = items_by_id.get(uuid.UUID(str(line["item_id"])))
        if not item:
            continue
        item.available_quantity = min(item.quantity, item.available_quantity + int(line["quantity"]))
        item.availability = "available"


def _release_reservation(db: Session, rental: Rental):
    items_by_id = _lock_items(db, _snapshot_item_ids(rental))
    for item in items_by_id.values():
        # Leave items another transition already moved out of "reserved"
        if item.availability == "reserved":
            item.availability = "available"


def approve_rental(db: Session, rental_id: uuid.UUID) -> Rental:
    rental = get_rental_or_404(db, rental_id, lock=True)
    _require_status(rental, "pending", "approve")

    now = utcnow()
    rental.status = "active"
    rental.approved_at = now
    rental.start_date = now
    _consume_stock(db, rental)

    db.flush()
    logger.info(f"[Rentals] Ticket #{rental.ticket_number} approved")
    return rental


def complete_rental(db: Session, rental_id: uuid.UUID) -> Rental:
    rental = get_rental_or_404(db, rental_id, lock=True)
    _require_status(rental, "active", "complete")

    rental.status = "completed"
    rental.end_date = utcnow()
    _restore_stock(db, rental)

    db.flush()
    logger.info(f"[Rentals] Ticket #{rental.ticket_number} completed")
    return rental


def cancel_rental(db: Session, rental_id: uuid.UUID) -> Rental:
    rental = get_rental_or_404(db, rental_id, lock=True)
    _require_status(rental, "pending", "cancel")

    rental.status = "cancelled"
    rental.end_date = utcnow()
    _release_reservation(db, rental)

    db.flush()
    logger.info(f"[Rentals] Ticket #{rental.ticket_number} cancelled")
    return rental


def delete_rental(db: Session, rental_id: uuid.UUID) -> None:
    rental = get_rental_or_404(db, rental_id, lock=True)

    if rental.status == "active":
        _restore_stock(db, rental)
    elif rental.status == "pending":
        _release_reservation(db, rental)

    ticket_number = rental.ticket_number
    previous_status = rental.status
    db.query(RentalMessage).filter(RentalMessage.rental_id == rental.id).delete(synchronize_session=False)
    db.delete(rental)
    db.flush()
    logger.info(f"[Rentals] Ticket #{ticket_number} deleted (was {previous_status})")


# ═══════════════════════════════════════════════════════════
# DERIVED VALUES
# ═══════════════════════════════════════════════════════════

def calculate_remaining_time(rental: Rental, now: datetime | None = None) -> dict:
    """
    Remaining time of an active rental. Expiry is approved_at + rental_days;
    once past it the rental is expired, and the first 24h after expiry are
    the grace window.
    """
    result = {
        "days": 0,
        "hours": 0,
        "minutes": 0,
        "expired": False,
        "expires_at": None,
        "overdue_within_grace": False,
        "overdue_beyond_grace": False,
        "grace_hours_left": 0,
    }
    approved_at = as_utc(rental.approved_at)
    if rental.status != "active" or approved_at is None:
        return result

    now = as_utc(now) if now else utcnow()
    expires_at = approved_at + timedelta(days=rental.rental_days)
    result["expires_at"] = expires_at

    diff = expires_at - now
    if diff <= timedelta(0):
        result["expired"] = True
        overdue = now - expires_at
        if overdue <= GRACE_PERIOD:
            result["overdue_within_grace"] = True
            left = (GRACE_PERIOD - overdue).total_seconds()
            result["grace_hours_left"] = max(0, -(-int(left) // 3600))
        else:
            result["overdue_beyond_grace"] = True
        return result

    seconds = int(diff.total_seconds())
    result["days"] = seconds // 86400
    result["hours"] = (seconds % 86400) // 3600
    result["minutes"] = (seconds % 3600) // 60
    return result


def serialize_rental(rental: Rental, now: datetime | None = None) -> dict:
    return {
        "id": rental.id,
        "ticket_number": rental.ticket_number,
        "items": rental.items or [],
        "renter_id": rental.renter_id,
        "renter_nickname": rental.renter_nickname,
        "payment_method": rental.payment_method,
        "collateral_amount": rental.collateral_amount,
        "collateral_items": rental.collateral_items or [],
        "credits_needed": pricing.credits_for(rental.collateral_amount),
        "rental_cost": rental.rental_cost,
        "rental_type": rental.rental_type,
        "rental_days": rental.rental_days,
        "delivery_location": rental.delivery_location,
        "terms_accepted": rental.terms_accepted,
        "terms_text": rental.terms_text,
        "status": rental.status,
        "created_at": rental.created_at,
        "approved_at": rental.approved_at,
        "start_date": rental.start_date,
        "end_date": rental.end_date,
        "remaining": calculate_remaining_time(rental, now),
    }


def ensure_participant(rental: Rental, user: User):
    """Only the renter and admins may see a rental or its chat."""
    if user.is_admin or rental.renter_id == user.id:
        return
    raise HTTPException(status_code=403, detail="Not allowed")
