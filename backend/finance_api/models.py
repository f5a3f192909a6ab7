"""
SQLAlchemy models for accounts, categories and transactions.

Users are owned by the external auth service; only their opaque id is stored.
Transaction amounts are integers in miliunits (amount * 1000).
"""
import uuid
from sqlalchemy import (
    Column,
    String,
    DateTime,
    Text,
    BigInteger,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship

from finance_api.database import Base


def new_id() -> str:
    return uuid.uuid4().hex


class Account(Base):
    """
    Bank account owned by a single user.
    """
    __tablename__ = "accounts"

    id = Column(String, primary_key=True, default=new_id)
    plaid_id = Column(String, nullable=True)
    name = Column(String, nullable=False)
    user_id = Column(String, nullable=False)

    transactions = relationship("Transaction", back_populates="account")

    __table_args__ = (
        Index("idx_accounts_user", "user_id"),
    )


class Category(Base):
    """
    Spending category owned by a single user.
    """
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=new_id)
    plaid_id = Column(String, nullable=True)
    name = Column(String, nullable=False)
    user_id = Column(String, nullable=False)

    transactions = relationship("Transaction", back_populates="category")

    __table_args__ = (
        Index("idx_categories_user", "user_id"),
    )


class Transaction(Base):
    """
    Transaction belonging to exactly one account, optionally categorized.
    Ownership is derived through the account; there is no user_id column.
    """
    __tablename__ = "transactions"

    id = Column(String, primary_key=True, default=new_id)
    amount = Column(BigInteger, nullable=False)  # miliunits
    payee = Column(String, nullable=False)
    notes = Column(Text, nullable=True)
    date = Column(DateTime, nullable=False)
    account_id = Column(String, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(String, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)

    account = relationship("Account", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")

    __table_args__ = (
        Index("idx_transactions_account", "account_id"),
        Index("idx_transactions_category", "category_id"),
        Index("idx_transactions_date", "date"),
    )
