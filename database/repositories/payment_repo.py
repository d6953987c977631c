"""
Payment and upload repositories.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import PaymentHistory, UploadedImage


class PaymentRepository:
    """Repository for PaymentHistory model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        user_id: UUID,
        payment_provider: str,
        amount: Decimal | float,
        status: str,
        currency: str = "usd",
        subscription_id: UUID | None = None,
        stripe_session_id: str | None = None,
        stripe_payment_intent_id: str | None = None,
        apple_transaction_id: str | None = None,
        receipt_data: str | None = None,
    ) -> PaymentHistory:
        """Append a payment record."""
        payment = PaymentHistory(
            user_id=user_id,
            payment_provider=payment_provider,
            amount=Decimal(str(amount)),
            status=status,
            currency=currency,
            subscription_id=subscription_id,
            stripe_session_id=stripe_session_id,
            stripe_payment_intent_id=stripe_payment_intent_id,
            apple_transaction_id=apple_transaction_id,
            receipt_data=receipt_data,
        )
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def list_by_user(self, user_id: UUID, limit: int = 20) -> list[PaymentHistory]:
        """List a user's payments newest first."""
        query = (
            select(PaymentHistory)
            .where(PaymentHistory.user_id == user_id)
            .order_by(desc(PaymentHistory.created_at))
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())


class UploadRepository:
    """Repository for UploadedImage model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: UUID,
        file_size: int,
        mime_type: str,
        storage_path: str,
        public_url: str,
        file_name: str | None = None,
    ) -> UploadedImage:
        """Record an uploaded file."""
        upload = UploadedImage(
            user_id=user_id,
            file_name=file_name,
            file_size=file_size,
            mime_type=mime_type,
            storage_path=storage_path,
            public_url=public_url,
        )
        self.session.add(upload)
        await self.session.flush()
        return upload
