"""
API tests for the accounts and categories resources.
"""
import logging

import pytest

from finance_api.models import Transaction


def _create(signed_client, resource, name):
    response = signed_client.post(f"/api/{resource}", json={"name": name})
    assert response.status_code == 200, response.text
    return response.json()["data"]["id"]


def _create_transaction(signed_client, account_id, category_id=None):
    payload = {
        "accountId": account_id,
        "categoryId": category_id,
        "amount": -1500,
        "payee": "Shop",
        "date": "2024-03-01T12:00:00",
    }
    response = signed_client.post("/api/transactions", json=payload)
    assert response.status_code == 200, response.text
    return response.json()["data"]["id"]


def test_accounts_are_listed_per_user_by_name(alice, bob) -> None:
    _create(alice, "accounts", "Savings")
    _create(alice, "accounts", "Checking")
    _create(bob, "accounts", "Bob's account")

    data = alice.get("/api/accounts").json()["data"]

    assert [account["name"] for account in data] == ["Checking", "Savings"]
    assert set(data[0]) == {"id", "name", "plaidId"}


def test_account_name_is_required(alice) -> None:
    assert alice.post("/api/accounts", json={"name": "   "}).status_code == 400
    assert alice.post("/api/accounts", json={}).status_code == 400


def test_get_account_of_other_user_is_not_found(alice, bob) -> None:
    account_id = _create(alice, "accounts", "Checking")

    assert alice.get(f"/api/accounts/{account_id}").json()["data"]["name"] == "Checking"
    assert bob.get(f"/api/accounts/{account_id}").status_code == 404


def test_rename_account(alice, bob) -> None:
    account_id = _create(alice, "accounts", "Checking")

    assert bob.patch(f"/api/accounts/{account_id}", json={"name": "Mine now"}).status_code == 404

    response = alice.patch(f"/api/accounts/{account_id}", json={"name": "Everyday"})
    assert response.status_code == 200
    assert response.json()["data"] == {"id": account_id, "name": "Everyday", "plaidId": None}


def test_deleting_account_removes_its_transactions(alice, db) -> None:
    keep = _create(alice, "accounts", "Keep")
    drop = _create(alice, "accounts", "Drop")
    kept_txn = _create_transaction(alice, keep)
    _create_transaction(alice, drop)

    response = alice.delete(f"/api/accounts/{drop}")

    assert response.status_code == 200
    assert response.json()["data"] == {"id": drop}
    assert [txn.id for txn in db.query(Transaction).all()] == [kept_txn]


def test_bulk_delete_accounts_ignores_foreign_ids(alice, bob) -> None:
    mine = _create(alice, "accounts", "Mine")
    theirs = _create(bob, "accounts", "Theirs")

    response = alice.post("/api/accounts/bulk-delete", json={"ids": [mine, theirs]})

    assert response.status_code == 200
    assert response.json()["data"] == [{"id": mine}]
    assert bob.get(f"/api/accounts/{theirs}").status_code == 200


def test_deleting_category_uncategorizes_transactions(alice, db) -> None:
    account_id = _create(alice, "accounts", "Checking")
    category_id = _create(alice, "categories", "Food")
    txn_id = _create_transaction(alice, account_id, category_id)

    response = alice.delete(f"/api/categories/{category_id}")

    assert response.status_code == 200
    txn = db.get(Transaction, txn_id)
    assert txn is not None
    assert txn.category_id is None


def test_category_lifecycle(alice, bob) -> None:
    first = _create(alice, "categories", "Travel")
    second = _create(alice, "categories", "Bills")

    assert [c["name"] for c in alice.get("/api/categories").json()["data"]] == ["Bills", "Travel"]
    assert bob.get("/api/categories").json()["data"] == []
    assert bob.delete(f"/api/categories/{first}").status_code == 404

    renamed = alice.patch(f"/api/categories/{first}", json={"name": "Holidays"}).json()["data"]
    assert renamed["name"] == "Holidays"

    response = alice.post("/api/categories/bulk-delete", json={"ids": [first, second]})
    assert sorted(row["id"] for row in response.json()["data"]) == sorted([first, second])
    assert alice.get(f"/api/categories/{first}").status_code == 404


@pytest.mark.parametrize("resource, tag", [("accounts", "[ACCOUNTS]"), ("categories", "[CATEGORIES]")])
def test_rename_is_logged(alice, caplog, resource, tag) -> None:
    record_id = _create(alice, resource, "Before")

    with caplog.at_level(logging.INFO):
        response = alice.patch(f"/api/{resource}/{record_id}", json={"name": "After"})

    assert response.status_code == 200
    assert any(tag in message and record_id in message for message in caplog.messages)
