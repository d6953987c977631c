"""
Credit ledger model.
"""

from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

TRANSACTION_TYPES = ("subscription", "purchase", "usage", "refund", "initial")


class CreditTransaction(Base, TimestampMixin):
    """
    Append-only record of one credit mutation.

    amount is signed (negative for usage); balance_after is the user's
    credit balance right after the mutation.
    """

    __tablename__ = "credit_transactions"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    amount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    balance_after: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    transaction_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    related_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<CreditTransaction(id={self.id}, amount={self.amount}, type={self.transaction_type})>"


# Indexes
Index("idx_credit_transactions_user_created", CreditTransaction.user_id, CreditTransaction.created_at)
Index("idx_credit_transactions_type", CreditTransaction.transaction_type)
