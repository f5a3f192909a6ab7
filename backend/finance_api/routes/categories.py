from fastapi import APIRouter, Depends
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from typing import List
import logging

from finance_api.database import get_db
from finance_api.models import Category, Transaction, new_id
from finance_api.db_helpers import get_user_id
from finance_api.schemas import (
    BulkDeleteRequest,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    DataResponse,
    DeletedId,
)
from finance_api.services.ownership import delete_owned, owned_records_cte, update_owned
from finance_api.services.transaction_service import not_found, require_id

logger = logging.getLogger(__name__)

router = APIRouter()


def _delete_categories(db: Session, user_id: str, category_ids: List[str]) -> List[str]:
    """
    Delete the caller's categories among category_ids.
    Transactions that referenced them are kept and become uncategorized.
    """
    owned = owned_records_cte(Category, user_id, category_ids, "categories_to_delete")
    db.execute(
        update(Transaction)
        .where(Transaction.category_id.in_(select(owned.c.id)))
        .values(category_id=None)
        .execution_options(synchronize_session=False)
    )
    return delete_owned(db, Category, owned)


@router.get("", response_model=DataResponse[List[CategoryResponse]])
def list_categories(db: Session = Depends(get_db)):
    """List all categories for the current user."""
    user_id = get_user_id()
    categories = db.query(Category).filter(Category.user_id == user_id).order_by(Category.name).all()
    return {"data": [CategoryResponse.model_validate(category) for category in categories]}


@router.get("/{category_id}", response_model=DataResponse[CategoryResponse])
def get_category(category_id: str, db: Session = Depends(get_db)):
    """Get a specific category by ID."""
    user_id = get_user_id()
    category_id = require_id(category_id)
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.user_id == user_id
    ).first()
    if not category:
        raise not_found()
    return {"data": CategoryResponse.model_validate(category)}


@router.post("", response_model=DataResponse[CategoryResponse])
def create_category(category: CategoryCreate, db: Session = Depends(get_db)):
    """Create a new category."""
    user_id = get_user_id()
    db_category = Category(id=new_id(), user_id=user_id, **category.model_dump())
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    logger.info(f"[CATEGORIES] Created category {db_category.id} for user {user_id}")
    return {"data": CategoryResponse.model_validate(db_category)}


@router.post("/bulk-delete", response_model=DataResponse[List[DeletedId]])
def bulk_delete_categories(request: BulkDeleteRequest, db: Session = Depends(get_db)):
    """Delete the requested categories that belong to the current user."""
    user_id = get_user_id()
    deleted = _delete_categories(db, user_id, request.ids)
    db.commit()
    logger.info(f"[CATEGORIES] Deleted {len(deleted)} category(ies) for user {user_id}")
    return {"data": [DeletedId(id=category_id) for category_id in deleted]}


@router.patch("/{category_id}", response_model=DataResponse[CategoryResponse])
def update_category(category_id: str, updates: CategoryUpdate, db: Session = Depends(get_db)):
    """Rename a category."""
    user_id = get_user_id()
    category_id = require_id(category_id)
    owned = owned_records_cte(Category, user_id, [category_id], "categories_to_update")
    rows = update_owned(
        db,
        Category,
        owned,
        updates.model_dump(),
        (Category.id, Category.name, Category.plaid_id),
    )
    if not rows:
        db.rollback()
        raise not_found()
    db.commit()
    logger.info(f"[CATEGORIES] Updated category {category_id} for user {user_id}")
    return {"data": CategoryResponse.model_validate(rows[0])}


@router.delete("/{category_id}", response_model=DataResponse[DeletedId])
def delete_category(category_id: str, db: Session = Depends(get_db)):
    """Delete a category; its transactions stay, uncategorized."""
    user_id = get_user_id()
    category_id = require_id(category_id)
    deleted = _delete_categories(db, user_id, [category_id])
    if not deleted:
        db.rollback()
        raise not_found()
    db.commit()
    logger.info(f"[CATEGORIES] Deleted category {category_id} for user {user_id}")
    return {"data": DeletedId(id=deleted[0])}
