from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from finance_api.database import get_db
from finance_api.db_helpers import get_user_id
from finance_api.schemas import (
    BulkDeleteRequest,
    CsvImportRequest,
    DataResponse,
    DeletedId,
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
    TransactionWithDetails,
)
from finance_api.services.csv_import_service import CsvMappingError, map_csv_rows
from finance_api.services.transaction_service import TransactionService
from finance_api.utils import parse_date_param, resolve_date_range

router = APIRouter()


def resolve_query_range(from_param: Optional[str], to_param: Optional[str]):
    """Parse yyyy-MM-dd query bounds into an inclusive datetime window."""
    try:
        return resolve_date_range(parse_date_param(from_param), parse_date_param(to_param))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("", response_model=DataResponse[List[TransactionWithDetails]])
def list_transactions(
    account_id: Optional[str] = Query(None, alias="accountId"),
    from_param: Optional[str] = Query(None, alias="from"),
    to_param: Optional[str] = Query(None, alias="to"),
    db: Session = Depends(get_db),
):
    """
    List transactions for the current user.

    Defaults to the last 30 days when from/to are not given.
    """
    user_id = get_user_id()
    start, end = resolve_query_range(from_param, to_param)
    data = TransactionService(db, user_id).list_transactions(start, end, account_id or None)
    return {"data": data}


@router.get("/{transaction_id}", response_model=DataResponse[TransactionResponse])
def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
):
    """Get a specific transaction by ID."""
    user_id = get_user_id()
    return {"data": TransactionService(db, user_id).get_transaction(transaction_id)}


@router.post("", response_model=DataResponse[TransactionResponse])
def create_transaction(
    transaction: TransactionCreate,
    db: Session = Depends(get_db),
):
    """Create a new transaction."""
    user_id = get_user_id()
    return {"data": TransactionService(db, user_id).create_transaction(transaction)}


@router.post("/bulk-create", response_model=DataResponse[List[TransactionResponse]])
def bulk_create_transactions(
    transactions: List[TransactionCreate],
    db: Session = Depends(get_db),
):
    """Create many transactions atomically."""
    user_id = get_user_id()
    return {"data": TransactionService(db, user_id).bulk_create_transactions(transactions)}


@router.post("/bulk-delete", response_model=DataResponse[List[DeletedId]])
def bulk_delete_transactions(
    request: BulkDeleteRequest,
    db: Session = Depends(get_db),
):
    """
    Delete the requested transactions that belong to the current user.
    Ids that are unknown or owned by someone else are ignored.
    """
    user_id = get_user_id()
    return {"data": TransactionService(db, user_id).bulk_delete_transactions(request.ids)}


@router.post("/import", response_model=DataResponse[List[TransactionResponse]])
def import_transactions(
    request: CsvImportRequest,
    db: Session = Depends(get_db),
):
    """
    Import rows of a parsed CSV file into one account.

    Example request:
    ```json
    {
        "accountId": "4f6c0b7e5d0a4b1f9f3c2a1e8d7b6c5a",
        "headers": ["Date", "Payee", "Amount"],
        "rows": [["2024-01-05 10:30:00", "Store", "-5.00"]],
        "columns": {"0": "date", "1": "payee", "2": "amount"}
    }
    ```
    """
    user_id = get_user_id()
    try:
        payloads = map_csv_rows(request)
    except CsvMappingError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"data": TransactionService(db, user_id).bulk_create_transactions(payloads)}


@router.patch("/{transaction_id}", response_model=DataResponse[TransactionResponse])
def update_transaction(
    transaction_id: str,
    updates: TransactionUpdate,
    db: Session = Depends(get_db),
):
    """Replace a transaction's fields."""
    user_id = get_user_id()
    return {"data": TransactionService(db, user_id).update_transaction(transaction_id, updates)}


@router.delete("/{transaction_id}", response_model=DataResponse[DeletedId])
def delete_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
):
    """Delete a transaction."""
    user_id = get_user_id()
    return {"data": TransactionService(db, user_id).delete_transaction(transaction_id)}
