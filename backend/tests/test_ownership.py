"""
Unit tests for the ownership-scoped mutation builders.
"""
from datetime import datetime

import pytest
from fastapi import HTTPException

from finance_api.models import Account, Category, Transaction
from finance_api.services.ownership import (
    delete_owned,
    delete_owned_transactions,
    owned_records_cte,
    owned_transactions_cte,
    update_owned_transaction,
)
from finance_api.services.transaction_service import TransactionService, require_id


def seed(db):
    db.add_all([
        Account(id="acc_alice", name="Checking", user_id="alice"),
        Account(id="acc_bob", name="Checking", user_id="bob"),
        Category(id="cat_alice", name="Food", user_id="alice"),
        Transaction(id="t1", amount=-1000, payee="A", date=datetime(2024, 1, 1), account_id="acc_alice"),
        Transaction(id="t2", amount=-2000, payee="B", date=datetime(2024, 1, 2), account_id="acc_alice"),
        Transaction(id="t3", amount=-3000, payee="C", date=datetime(2024, 1, 3), account_id="acc_bob"),
    ])
    db.commit()


def test_delete_only_touches_owned_subset(db) -> None:
    seed(db)

    deleted = delete_owned_transactions(db, "alice", ["t1", "t3", "unknown"])
    db.commit()

    assert deleted == ["t1"]
    assert sorted(txn.id for txn in db.query(Transaction).all()) == ["t2", "t3"]


def test_delete_with_no_owned_ids_affects_nothing(db) -> None:
    seed(db)

    assert delete_owned_transactions(db, "bob", ["t1", "t2"]) == []
    db.commit()

    assert db.query(Transaction).count() == 3


def test_update_returns_post_update_row(db) -> None:
    seed(db)

    row = update_owned_transaction(db, "alice", "t2", {"payee": "Bakery", "category_id": "cat_alice"})
    db.commit()

    assert row.id == "t2"
    assert row.payee == "Bakery"
    assert row.category_id == "cat_alice"
    assert row.amount == -2000


def test_update_of_foreign_row_returns_none(db) -> None:
    seed(db)

    assert update_owned_transaction(db, "bob", "t1", {"payee": "Hijack"}) is None
    db.commit()

    assert db.get(Transaction, "t1").payee == "A"


def test_owner_is_required() -> None:
    with pytest.raises(ValueError):
        owned_transactions_cte("", ["t1"], "transactions_to_delete")
    with pytest.raises(ValueError):
        owned_records_cte(Account, "", ["acc_alice"], "accounts_to_delete")


def test_direct_ownership_for_accounts(db) -> None:
    seed(db)
    db.query(Transaction).delete()
    db.commit()

    owned = owned_records_cte(Account, "alice", ["acc_alice", "acc_bob"], "accounts_to_delete")
    deleted = delete_owned(db, Account, owned)
    db.commit()

    assert deleted == ["acc_alice"]
    assert [account.id for account in db.query(Account).all()] == ["acc_bob"]


def test_require_id_rejects_blank() -> None:
    with pytest.raises(HTTPException) as exc_info:
        require_id("   ")
    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Missing id"

    assert require_id(" t1 ") == "t1"


def test_service_get_is_not_found_for_other_user(db) -> None:
    seed(db)

    assert TransactionService(db, "alice").get_transaction("t1").payee == "A"
    with pytest.raises(HTTPException) as exc_info:
        TransactionService(db, "bob").get_transaction("t1")
    assert exc_info.value.status_code == 404
