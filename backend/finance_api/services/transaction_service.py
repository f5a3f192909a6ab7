"""
Service for listing and mutating transactions on behalf of an authenticated user.

Reads always join through accounts and filter on the owner. Mutations go through
the ownership-scoped builders so that the authorization check and the write are a
single statement.
"""
from datetime import datetime
from typing import List, Optional, Sequence
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from finance_api.models import Account, Category, Transaction, new_id
from finance_api.schemas import (
    DeletedId,
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
    TransactionWithDetails,
)
from finance_api.services.ownership import (
    TRANSACTION_COLUMNS,
    delete_owned_transactions,
    update_owned_transaction,
)

logger = logging.getLogger(__name__)


def require_id(record_id: Optional[str]) -> str:
    if record_id is None or not record_id.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing id")
    return record_id.strip()


def not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")


class TransactionService:
    """Transaction CRUD scoped to one user."""

    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id

    def list_transactions(
        self,
        start: datetime,
        end: datetime,
        account_id: Optional[str] = None,
    ) -> List[TransactionWithDetails]:
        """
        List the user's transactions dated within [start, end], most recent first.

        Args:
            start: Inclusive lower bound
            end: Inclusive upper bound
            account_id: Optional account filter
        """
        query = (
            self.db.query(
                Transaction.id,
                Transaction.amount,
                Transaction.payee,
                Transaction.notes,
                Transaction.date,
                Account.name.label("account"),
                Transaction.account_id,
                Category.name.label("category"),
                Transaction.category_id,
            )
            .join(Account, Transaction.account_id == Account.id)
            .outerjoin(Category, Transaction.category_id == Category.id)
            .filter(
                Account.user_id == self.user_id,
                Transaction.date >= start,
                Transaction.date <= end,
            )
        )
        if account_id:
            query = query.filter(Transaction.account_id == account_id)

        rows = query.order_by(Transaction.date.desc()).all()
        return [TransactionWithDetails.model_validate(row) for row in rows]

    def get_transaction(self, transaction_id: Optional[str]) -> TransactionResponse:
        transaction_id = require_id(transaction_id)
        row = (
            self.db.query(*TRANSACTION_COLUMNS)
            .join(Account, Transaction.account_id == Account.id)
            .filter(
                Account.user_id == self.user_id,
                Transaction.id == transaction_id,
            )
            .first()
        )
        if not row:
            raise not_found()
        return TransactionResponse.model_validate(row)

    def _ensure_references_owned(self, payloads: Sequence[TransactionCreate]) -> None:
        """
        Reject payloads that point at accounts or categories the user does not own.
        """
        account_ids = {payload.account_id for payload in payloads}
        owned_accounts = {
            row.id
            for row in self.db.query(Account.id).filter(
                Account.user_id == self.user_id,
                Account.id.in_(account_ids),
            )
        }
        if account_ids - owned_accounts:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid account")

        category_ids = {payload.category_id for payload in payloads if payload.category_id}
        if category_ids:
            owned_categories = {
                row.id
                for row in self.db.query(Category.id).filter(
                    Category.user_id == self.user_id,
                    Category.id.in_(category_ids),
                )
            }
            if category_ids - owned_categories:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid category")

    def create_transaction(self, payload: TransactionCreate) -> TransactionResponse:
        return self.bulk_create_transactions([payload])[0]

    def bulk_create_transactions(self, payloads: Sequence[TransactionCreate]) -> List[TransactionResponse]:
        """
        Insert all payloads in one database transaction. Either every row is
        persisted or none is.
        """
        if not payloads:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No transactions provided")

        self._ensure_references_owned(payloads)

        db_transactions = [
            Transaction(id=new_id(), **payload.model_dump())
            for payload in payloads
        ]
        self.db.add_all(db_transactions)
        self.db.commit()

        logger.info(f"[TRANSACTIONS] Created {len(db_transactions)} transaction(s) for user {self.user_id}")
        return [TransactionResponse.model_validate(txn) for txn in db_transactions]

    def bulk_delete_transactions(self, transaction_ids: Sequence[str]) -> List[DeletedId]:
        """
        Delete the subset of transaction_ids owned by the user.
        Returns only the ids actually deleted.
        """
        if not transaction_ids:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No ids provided")

        deleted = delete_owned_transactions(self.db, self.user_id, transaction_ids)
        self.db.commit()

        logger.info(
            f"[TRANSACTIONS] Deleted {len(deleted)} of {len(transaction_ids)} requested transaction(s) "
            f"for user {self.user_id}"
        )
        return [DeletedId(id=transaction_id) for transaction_id in deleted]

    def update_transaction(self, transaction_id: Optional[str], payload: TransactionUpdate) -> TransactionResponse:
        transaction_id = require_id(transaction_id)
        self._ensure_references_owned([payload])

        row = update_owned_transaction(self.db, self.user_id, transaction_id, payload.model_dump())
        if row is None:
            self.db.rollback()
            raise not_found()
        self.db.commit()

        logger.info(f"[TRANSACTIONS] Updated transaction {transaction_id} for user {self.user_id}")
        return TransactionResponse.model_validate(row)

    def delete_transaction(self, transaction_id: Optional[str]) -> DeletedId:
        transaction_id = require_id(transaction_id)
        deleted = delete_owned_transactions(self.db, self.user_id, [transaction_id])
        if not deleted:
            self.db.rollback()
            raise not_found()
        self.db.commit()

        logger.info(f"[TRANSACTIONS] Deleted transaction {transaction_id} for user {self.user_id}")
        return DeletedId(id=deleted[0])
