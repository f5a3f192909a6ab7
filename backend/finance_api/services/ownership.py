"""
Ownership-scoped query builder.

Every mutation is issued as one statement: a CTE selects the ids the caller is
allowed to touch, and the UPDATE/DELETE is filtered by that CTE only. Ids the
caller does not own never match, whether or not they exist.

    WITH transactions_to_delete AS (
        SELECT transactions.id FROM transactions
        JOIN accounts ON transactions.account_id = accounts.id
        WHERE accounts.user_id = :user_id AND transactions.id IN (...)
    )
    DELETE FROM transactions
    WHERE transactions.id IN (SELECT id FROM transactions_to_delete)
    RETURNING transactions.id
"""
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import CTE, Row, delete, select, update
from sqlalchemy.orm import Session

from finance_api.models import Account, Transaction

TRANSACTION_COLUMNS = (
    Transaction.id,
    Transaction.amount,
    Transaction.payee,
    Transaction.notes,
    Transaction.date,
    Transaction.account_id,
    Transaction.category_id,
)


def owned_transactions_cte(user_id: str, transaction_ids: Sequence[str], name: str) -> CTE:
    """Transactions whose account belongs to user_id, restricted to transaction_ids."""
    if not user_id:
        raise ValueError("user_id is required")
    return (
        select(Transaction.id)
        .join(Account, Transaction.account_id == Account.id)
        .where(
            Account.user_id == user_id,
            Transaction.id.in_(list(transaction_ids)),
        )
        .cte(name)
    )


def owned_records_cte(model, user_id: str, record_ids: Sequence[str], name: str) -> CTE:
    """Rows of a directly owned model (Account, Category) restricted to record_ids."""
    if not user_id:
        raise ValueError("user_id is required")
    return (
        select(model.id)
        .where(
            model.user_id == user_id,
            model.id.in_(list(record_ids)),
        )
        .cte(name)
    )


def delete_owned(db: Session, model, owned: CTE) -> List[str]:
    """Delete the rows selected by the CTE; returns the deleted ids."""
    stmt = (
        delete(model)
        .where(model.id.in_(select(owned.c.id)))
        .returning(model.id)
        .execution_options(synchronize_session=False)
    )
    return list(db.execute(stmt).scalars().all())


def update_owned(
    db: Session,
    model,
    owned: CTE,
    values: Dict[str, Any],
    returning: Sequence[Any],
) -> List[Row]:
    """Apply values to the rows selected by the CTE; returns post-update rows."""
    stmt = (
        update(model)
        .where(model.id.in_(select(owned.c.id)))
        .values(**values)
        .returning(*returning)
        .execution_options(synchronize_session=False)
    )
    return list(db.execute(stmt).all())


def delete_owned_transactions(db: Session, user_id: str, transaction_ids: Sequence[str]) -> List[str]:
    owned = owned_transactions_cte(user_id, transaction_ids, "transactions_to_delete")
    return delete_owned(db, Transaction, owned)


def update_owned_transaction(
    db: Session,
    user_id: str,
    transaction_id: str,
    values: Dict[str, Any],
) -> Optional[Row]:
    owned = owned_transactions_cte(user_id, [transaction_id], "transactions_to_update")
    rows = update_owned(db, Transaction, owned, values, TRANSACTION_COLUMNS)
    return rows[0] if rows else None
