"""
Service for the dashboard summary.
Computes, for one user and date window:
1. Income, expenses and remaining totals (miliunits)
2. Percentage change of each total versus the preceding window of equal length
3. Expense totals per category (top N plus an "Other" bucket)
4. A zero-filled daily income/expenses series
"""
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple
import logging

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from finance_api.models import Account, Category, Transaction
from finance_api.schemas import CategoryTotal, DailyTotals, SummaryResponse
from finance_api.utils import calculate_percentage_change, fill_missing_days, period_length_days

logger = logging.getLogger(__name__)

OTHER_CATEGORY_NAME = "Other"

_income_expr = case((Transaction.amount >= 0, Transaction.amount), else_=0)
_expense_expr = case((Transaction.amount < 0, -Transaction.amount), else_=0)


def _as_date(value) -> date:
    # SQLite returns DATE() as text, PostgreSQL as a date
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class SummaryService:
    """Aggregates a user's transactions for the dashboard."""

    def __init__(self, db: Session, user_id: str, top_categories: int = 3):
        self.db = db
        self.user_id = user_id
        self.top_categories = max(0, top_categories)

    def _scoped(self, query, start: datetime, end: datetime, account_id: Optional[str]):
        query = query.join(Account, Transaction.account_id == Account.id).filter(
            Account.user_id == self.user_id,
            Transaction.date >= start,
            Transaction.date <= end,
        )
        if account_id:
            query = query.filter(Transaction.account_id == account_id)
        return query

    def period_totals(
        self,
        start: datetime,
        end: datetime,
        account_id: Optional[str] = None,
    ) -> Tuple[int, int, int]:
        """
        Returns (income, expenses, remaining). Expenses are a positive magnitude,
        so remaining == income - expenses.
        """
        row = self._scoped(
            self.db.query(
                func.coalesce(func.sum(_income_expr), 0).label("income"),
                func.coalesce(func.sum(_expense_expr), 0).label("expenses"),
            ).select_from(Transaction),
            start,
            end,
            account_id,
        ).one()
        income = int(row.income)
        expenses = int(row.expenses)
        return income, expenses, income - expenses

    def category_totals(
        self,
        start: datetime,
        end: datetime,
        account_id: Optional[str] = None,
    ) -> List[CategoryTotal]:
        """
        Expense totals per category, largest first. Categories beyond the top N
        are folded into a single "Other" entry.
        """
        total_expr = func.sum(-Transaction.amount)
        rows = (
            self._scoped(
                self.db.query(
                    Category.name.label("name"),
                    total_expr.label("value"),
                ).select_from(Transaction),
                start,
                end,
                account_id,
            )
            .join(Category, Transaction.category_id == Category.id)
            .filter(Transaction.amount < 0)
            .group_by(Category.name)
            .order_by(total_expr.desc(), Category.name)
            .all()
        )

        top = [CategoryTotal(name=row.name, value=int(row.value)) for row in rows[:self.top_categories]]
        remainder = rows[self.top_categories:]
        if remainder:
            top.append(
                CategoryTotal(
                    name=OTHER_CATEGORY_NAME,
                    value=sum(int(row.value) for row in remainder),
                )
            )
        return top

    def daily_totals(
        self,
        start: datetime,
        end: datetime,
        account_id: Optional[str] = None,
    ) -> List[DailyTotals]:
        day_expr = func.date(Transaction.date)
        rows = (
            self._scoped(
                self.db.query(
                    day_expr.label("day"),
                    func.coalesce(func.sum(_income_expr), 0).label("income"),
                    func.coalesce(func.sum(_expense_expr), 0).label("expenses"),
                ).select_from(Transaction),
                start,
                end,
                account_id,
            )
            .group_by(day_expr)
            .order_by(day_expr)
            .all()
        )

        active_days: Dict[date, Tuple[int, int]] = {
            _as_date(row.day): (int(row.income), int(row.expenses))
            for row in rows
        }
        return [
            DailyTotals(**day)
            for day in fill_missing_days(active_days, start.date(), end.date())
        ]

    def get_summary(
        self,
        start: datetime,
        end: datetime,
        account_id: Optional[str] = None,
    ) -> SummaryResponse:
        """
        Build the full summary for [start, end] and compare it with the
        immediately preceding window of the same number of days.
        """
        length = timedelta(days=period_length_days(start, end))
        last_start = start - length
        last_end = end - length

        income, expenses, remaining = self.period_totals(start, end, account_id)
        last_income, last_expenses, last_remaining = self.period_totals(last_start, last_end, account_id)

        logger.info(
            f"[SUMMARY] user={self.user_id} window={start.date()}..{end.date()} "
            f"income={income} expenses={expenses}"
        )

        return SummaryResponse(
            remaining_amount=remaining,
            remaining_change=calculate_percentage_change(remaining, last_remaining),
            income_amount=income,
            income_change=calculate_percentage_change(income, last_income),
            expenses_amount=expenses,
            expenses_change=calculate_percentage_change(expenses, last_expenses),
            categories=self.category_totals(start, end, account_id),
            days=self.daily_totals(start, end, account_id),
        )
