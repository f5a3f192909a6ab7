from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.orm import Session
from typing import List
import logging

from finance_api.database import get_db
from finance_api.models import Account, Transaction, new_id
from finance_api.db_helpers import get_user_id
from finance_api.schemas import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    BulkDeleteRequest,
    DataResponse,
    DeletedId,
)
from finance_api.services.ownership import delete_owned, owned_records_cte, update_owned
from finance_api.services.transaction_service import not_found, require_id

logger = logging.getLogger(__name__)

router = APIRouter()


def _delete_accounts(db: Session, user_id: str, account_ids: List[str]) -> List[str]:
    """
    Delete the caller's accounts among account_ids together with their transactions.
    """
    owned = owned_records_cte(Account, user_id, account_ids, "accounts_to_delete")
    db.execute(
        delete(Transaction)
        .where(Transaction.account_id.in_(select(owned.c.id)))
        .execution_options(synchronize_session=False)
    )
    return delete_owned(db, Account, owned)


@router.get("", response_model=DataResponse[List[AccountResponse]])
def list_accounts(db: Session = Depends(get_db)):
    """List all accounts for the current user."""
    user_id = get_user_id()
    accounts = db.query(Account).filter(Account.user_id == user_id).order_by(Account.name).all()
    return {"data": [AccountResponse.model_validate(account) for account in accounts]}


@router.get("/{account_id}", response_model=DataResponse[AccountResponse])
def get_account(account_id: str, db: Session = Depends(get_db)):
    """Get a specific account by ID."""
    user_id = get_user_id()
    account_id = require_id(account_id)
    account = db.query(Account).filter(
        Account.id == account_id,
        Account.user_id == user_id
    ).first()
    if not account:
        raise not_found()
    return {"data": AccountResponse.model_validate(account)}


@router.post("", response_model=DataResponse[AccountResponse])
def create_account(account: AccountCreate, db: Session = Depends(get_db)):
    """Create a new account."""
    user_id = get_user_id()
    db_account = Account(id=new_id(), user_id=user_id, **account.model_dump())
    db.add(db_account)
    db.commit()
    db.refresh(db_account)
    logger.info(f"[ACCOUNTS] Created account {db_account.id} for user {user_id}")
    return {"data": AccountResponse.model_validate(db_account)}


@router.post("/bulk-delete", response_model=DataResponse[List[DeletedId]])
def bulk_delete_accounts(request: BulkDeleteRequest, db: Session = Depends(get_db)):
    """Delete the requested accounts that belong to the current user, with their transactions."""
    user_id = get_user_id()
    deleted = _delete_accounts(db, user_id, request.ids)
    db.commit()
    logger.info(f"[ACCOUNTS] Deleted {len(deleted)} account(s) for user {user_id}")
    return {"data": [DeletedId(id=account_id) for account_id in deleted]}


@router.patch("/{account_id}", response_model=DataResponse[AccountResponse])
def update_account(account_id: str, updates: AccountUpdate, db: Session = Depends(get_db)):
    """Rename an account."""
    user_id = get_user_id()
    account_id = require_id(account_id)
    owned = owned_records_cte(Account, user_id, [account_id], "accounts_to_update")
    rows = update_owned(
        db,
        Account,
        owned,
        updates.model_dump(),
        (Account.id, Account.name, Account.plaid_id),
    )
    if not rows:
        db.rollback()
        raise not_found()
    db.commit()
    logger.info(f"[ACCOUNTS] Updated account {account_id} for user {user_id}")
    return {"data": AccountResponse.model_validate(rows[0])}


@router.delete("/{account_id}", response_model=DataResponse[DeletedId])
def delete_account(account_id: str, db: Session = Depends(get_db)):
    """Delete an account and its transactions."""
    user_id = get_user_id()
    account_id = require_id(account_id)
    deleted = _delete_accounts(db, user_id, [account_id])
    if not deleted:
        db.rollback()
        raise not_found()
    db.commit()
    logger.info(f"[ACCOUNTS] Deleted account {account_id} for user {user_id}")
    return {"data": DeletedId(id=deleted[0])}
