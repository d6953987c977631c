"""
Subscription model mirroring Stripe subscriptions and Apple IAP purchases.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, utcnow

PAYMENT_STATUSES = ("pending", "completed", "failed", "cancelled")
PAYMENT_PROVIDERS = ("stripe", "apple")


class Subscription(Base, TimestampMixin):
    """
    A purchased plan period.

    A subscription is active while status is completed and expires_at lies
    in the future.
    """

    __tablename__ = "subscriptions"

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
        index=True,
    )

    # Provider references
    payment_provider: Mapped[str] = mapped_column(
        String(20),
        default="apple",
        nullable=False,
    )
    stripe_subscription_id: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )
    stripe_price_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    apple_transaction_id: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )

    # Plan snapshot
    tier: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        default=Decimal("0"),
        nullable=False,
    )
    credits_per_month: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    images_per_month: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20),
        default="pending",
        nullable=False,
    )
    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    auto_renew: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id}, tier={self.tier}, "
            f"provider={self.payment_provider}, status={self.status})>"
        )


# Indexes
Index("idx_subscriptions_user_status", Subscription.user_id, Subscription.status)
Index("idx_subscriptions_expires_at", Subscription.expires_at)
