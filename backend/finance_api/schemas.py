from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Dict, Generic, List, Literal, Optional, TypeVar

DataT = TypeVar("DataT")

# One trillion units either way, in miliunits; keeps column sums inside a signed 64-bit integer
MAX_AMOUNT_MILIUNITS = 10**15 - 1


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class DataResponse(BaseModel, Generic[DataT]):
    """Envelope used by every endpoint: {"data": ...}."""
    data: DataT


class DeletedId(CamelModel):
    id: str


class BulkDeleteRequest(CamelModel):
    ids: List[str] = Field(..., min_length=1)


# Account Schemas
class AccountCreate(CamelModel):
    name: str = Field(..., min_length=1)


class AccountUpdate(AccountCreate):
    pass


class AccountResponse(CamelModel):
    id: str
    name: str
    plaid_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# Category Schemas
class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1)


class CategoryUpdate(CategoryCreate):
    pass


class CategoryResponse(CamelModel):
    id: str
    name: str
    plaid_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# Transaction Schemas
class TransactionBase(CamelModel):
    amount: int = Field(..., ge=-MAX_AMOUNT_MILIUNITS, le=MAX_AMOUNT_MILIUNITS)  # miliunits
    payee: str = Field(..., min_length=1)
    notes: Optional[str] = None
    date: datetime
    account_id: str = Field(..., min_length=1)
    category_id: Optional[str] = None


class TransactionCreate(TransactionBase):
    @field_validator("category_id", "notes", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        # Stored as timestamp without time zone, in UTC
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class TransactionUpdate(TransactionCreate):
    pass


class TransactionResponse(TransactionBase):
    id: str

    model_config = ConfigDict(from_attributes=True)


class TransactionWithDetails(TransactionResponse):
    account: str
    category: Optional[str] = None


# CSV import
ImportTarget = Literal["amount", "date", "payee", "notes"]


class CsvImportRequest(CamelModel):
    """
    Parsed CSV table plus the column -> field mapping chosen by the user.
    Column keys are zero-based indices into each row.
    """
    account_id: str = Field(..., min_length=1)
    headers: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(..., min_length=1)
    columns: Dict[int, Optional[ImportTarget]]


# Summary Schemas
class CategoryTotal(CamelModel):
    name: str
    value: int


class DailyTotals(CamelModel):
    date: str  # yyyy-MM-dd
    income: int
    expenses: int


class SummaryResponse(CamelModel):
    remaining_amount: int
    remaining_change: float
    income_amount: int
    income_change: float
    expenses_amount: int
    expenses_change: float
    categories: List[CategoryTotal]
    days: List[DailyTotals]
