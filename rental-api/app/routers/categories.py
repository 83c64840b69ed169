import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.deps import get_db, require_admin
from app.models.category import Category
from app.models.user import User
from app.schemas.category import CategoryCreateIn, CategoryOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return db.query(Category).order_by(Category.name.asc()).all()


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryCreateIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Category name cannot be empty")

    category = Category(name=name, created_by=admin.id)
    try:
        db.add(category)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(category)
    logger.info(f"[Catalog] Category '{name}' created")
    return category


@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    name = category.name
    # Items keep the category name they were saved with
    try:
        db.delete(category)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"[Catalog] Category '{name}' deleted")
