"""
Credit repository for balance mutations and the transaction ledger.

Balance changes are single conditional UPDATE ... RETURNING statements so
two concurrent requests can never spend the same credits twice.
"""

from uuid import UUID

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import CreditTransaction, User, utcnow


class CreditRepository:
    """Repository for User balances and CreditTransaction rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ============ Balance Operations ============

    async def get_balance(self, user_id: UUID) -> tuple[int, int] | None:
        """Return (credits, free_attempts) or None for an unknown user."""
        result = await self.session.execute(
            select(User.credits, User.free_attempts).where(User.id == user_id)
        )
        row = result.first()
        if row is None:
            return None
        return row.credits, row.free_attempts

    async def consume_free_attempt(self, user_id: UUID) -> tuple[int, int] | None:
        """
        Decrement free_attempts by one if any remain.

        Returns the new (credits, free_attempts), or None when the user had
        no free attempt left.
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.free_attempts > 0)
            .values(free_attempts=User.free_attempts - 1, updated_at=utcnow())
            .returning(User.credits, User.free_attempts)
        )
        row = (await self.session.execute(stmt)).first()
        if row is None:
            return None
        return row.credits, row.free_attempts

    async def restore_free_attempt(self, user_id: UUID) -> tuple[int, int] | None:
        """Give back one free attempt."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(free_attempts=User.free_attempts + 1, updated_at=utcnow())
            .returning(User.credits, User.free_attempts)
        )
        row = (await self.session.execute(stmt)).first()
        if row is None:
            return None
        return row.credits, row.free_attempts

    async def subtract_credits(self, user_id: UUID, amount: int) -> int | None:
        """
        Subtract credits only if the balance covers the amount.

        Returns the new balance, or None when the balance was too low.
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.credits >= amount)
            .values(credits=User.credits - amount, updated_at=utcnow())
            .returning(User.credits)
        )
        row = (await self.session.execute(stmt)).first()
        return None if row is None else row.credits

    async def increment_credits(self, user_id: UUID, amount: int) -> int | None:
        """Add credits; returns the new balance or None for an unknown user."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(credits=User.credits + amount, updated_at=utcnow())
            .returning(User.credits)
        )
        row = (await self.session.execute(stmt)).first()
        return None if row is None else row.credits

    async def set_credits(self, user_id: UUID, credits: int) -> int | None:
        """Overwrite the balance (used when a subscription starts)."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(credits=credits, updated_at=utcnow())
            .returning(User.credits)
        )
        row = (await self.session.execute(stmt)).first()
        return None if row is None else row.credits

    # ============ Ledger Operations ============

    async def record_transaction(
        self,
        user_id: UUID,
        amount: int,
        balance_after: int,
        transaction_type: str,
        description: str | None = None,
        related_id: UUID | None = None,
    ) -> CreditTransaction:
        """Append a ledger row."""
        transaction = CreditTransaction(
            user_id=user_id,
            amount=amount,
            balance_after=balance_after,
            transaction_type=transaction_type,
            description=description,
            related_id=related_id,
        )
        self.session.add(transaction)
        await self.session.flush()
        return transaction

    async def list_transactions(
        self,
        user_id: UUID,
        transaction_type: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[CreditTransaction]:
        """List ledger rows newest first."""
        query = select(CreditTransaction).where(CreditTransaction.user_id == user_id)

        if transaction_type:
            query = query.where(CreditTransaction.transaction_type == transaction_type)

        query = query.order_by(desc(CreditTransaction.created_at), desc(CreditTransaction.id))
        query = query.limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_transactions(
        self,
        user_id: UUID,
        transaction_type: str | None = None,
    ) -> int:
        """Count ledger rows for a user."""
        query = select(func.count()).select_from(CreditTransaction)
        query = query.where(CreditTransaction.user_id == user_id)

        if transaction_type:
            query = query.where(CreditTransaction.transaction_type == transaction_type)

        result = await self.session.execute(query)
        return result.scalar_one()
