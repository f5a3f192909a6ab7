from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from finance_api.database import get_db, settings
from finance_api.db_helpers import get_user_id
from finance_api.routes.transactions import resolve_query_range
from finance_api.schemas import DataResponse, SummaryResponse
from finance_api.services.summary_service import SummaryService

router = APIRouter()


@router.get("", response_model=DataResponse[SummaryResponse])
def get_summary(
    account_id: Optional[str] = Query(None, alias="accountId"),
    from_param: Optional[str] = Query(None, alias="from"),
    to_param: Optional[str] = Query(None, alias="to"),
    db: Session = Depends(get_db),
):
    """
    Income, expenses and remaining for the window, their change versus the
    previous window, top expense categories and a daily series. Amounts are
    in miliunits.
    """
    user_id = get_user_id()
    start, end = resolve_query_range(from_param, to_param)
    service = SummaryService(db, user_id, top_categories=settings.summary_top_categories)
    return {"data": service.get_summary(start, end, account_id or None)}
