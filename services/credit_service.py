"""
Credit ledger service.

Free attempts are spent before paid credits. Every balance change goes
through a conditional UPDATE in CreditRepository, so a deduction either
applies in full against the current row or does not apply at all.
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import InsufficientCreditsError, UserNotFoundError
from database.repositories import CreditRepository

logger = logging.getLogger(__name__)


@dataclass
class CreditCheck:
    """Snapshot of whether a user can pay for an operation."""

    has_credits: bool
    credits: int
    free_attempts: int


@dataclass
class DeductionResult:
    """Outcome of a successful deduction."""

    credits_charged: int
    new_balance: int
    free_attempts: int
    used_free_attempt: bool = False
    transaction_id: UUID | None = None


class CreditService:
    """Credit checks, deductions, grants and refunds for one DB session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = CreditRepository(session)

    async def check_credits(self, user_id: UUID, required: int) -> CreditCheck:
        """Check whether the user can pay `required` credits (or has a free attempt)."""
        balance = await self.repo.get_balance(user_id)
        if balance is None:
            return CreditCheck(has_credits=False, credits=0, free_attempts=0)

        credits, free_attempts = balance
        return CreditCheck(
            has_credits=credits >= required or free_attempts > 0,
            credits=credits,
            free_attempts=free_attempts,
        )

    async def deduct_credits(
        self,
        user_id: UUID,
        amount: int,
        transaction_type: str = "usage",
        description: str | None = None,
        related_id: UUID | None = None,
    ) -> DeductionResult:
        """
        Charge the user for one operation.

        Raises:
            InsufficientCreditsError: no free attempt left and too few credits
        """
        free = await self.repo.consume_free_attempt(user_id)
        if free is not None:
            credits, free_attempts = free
            logger.info(f"User {user_id} used a free attempt ({free_attempts} left)")
            return DeductionResult(
                credits_charged=0,
                new_balance=credits,
                free_attempts=free_attempts,
                used_free_attempt=True,
            )

        new_balance = await self.repo.subtract_credits(user_id, amount)
        if new_balance is None:
            balance = await self.repo.get_balance(user_id)
            if balance is None:
                raise UserNotFoundError()
            logger.warning(
                f"Insufficient credits for user {user_id}: need {amount}, have {balance[0]}"
            )
            raise InsufficientCreditsError(
                details={"required": amount, "credits": balance[0], "free_attempts": balance[1]}
            )

        transaction = await self.repo.record_transaction(
            user_id=user_id,
            amount=-amount,
            balance_after=new_balance,
            transaction_type=transaction_type,
            description=description,
            related_id=related_id,
        )
        balance = await self.repo.get_balance(user_id)
        return DeductionResult(
            credits_charged=amount,
            new_balance=new_balance,
            free_attempts=balance[1] if balance else 0,
            transaction_id=transaction.id,
        )

    async def add_credits(
        self,
        user_id: UUID,
        amount: int,
        transaction_type: str,
        description: str | None = None,
        related_id: UUID | None = None,
    ) -> int:
        """Grant credits and append a ledger row; returns the new balance."""
        new_balance = await self.repo.increment_credits(user_id, amount)
        if new_balance is None:
            raise UserNotFoundError()

        await self.repo.record_transaction(
            user_id=user_id,
            amount=amount,
            balance_after=new_balance,
            transaction_type=transaction_type,
            description=description,
            related_id=related_id,
        )
        logger.info(f"Added {amount} credits to user {user_id} ({transaction_type})")
        return new_balance

    async def set_credits(
        self,
        user_id: UUID,
        credits: int,
        transaction_type: str,
        description: str | None = None,
        related_id: UUID | None = None,
    ) -> int:
        """Reset the balance to a plan allotment, recording the grant."""
        new_balance = await self.repo.set_credits(user_id, credits)
        if new_balance is None:
            raise UserNotFoundError()

        await self.repo.record_transaction(
            user_id=user_id,
            amount=credits,
            balance_after=new_balance,
            transaction_type=transaction_type,
            description=description,
            related_id=related_id,
        )
        return new_balance

    async def refund(
        self,
        user_id: UUID,
        deduction: DeductionResult,
        description: str | None = None,
        related_id: UUID | None = None,
    ) -> None:
        """Undo a deduction: give back the free attempt or the charged credits."""
        if deduction.used_free_attempt:
            await self.repo.restore_free_attempt(user_id)
            logger.info(f"Restored free attempt for user {user_id}")
            return

        if deduction.credits_charged > 0:
            await self.add_credits(
                user_id,
                deduction.credits_charged,
                "refund",
                description=description,
                related_id=related_id,
            )

    async def get_history(
        self,
        user_id: UUID,
        limit: int = 20,
        offset: int = 0,
        transaction_type: str | None = None,
    ) -> dict[str, Any]:
        """
        Ledger page plus a summary.

        total_earned / total_spent are computed over the returned page.
        """
        transactions = await self.repo.list_transactions(
            user_id, transaction_type=transaction_type, limit=limit, offset=offset
        )
        total = await self.repo.count_transactions(user_id, transaction_type=transaction_type)
        balance = await self.repo.get_balance(user_id) or (0, 0)

        total_earned = sum(t.amount for t in transactions if t.amount > 0)
        total_spent = sum(-t.amount for t in transactions if t.amount < 0)

        return {
            "transactions": transactions,
            "total": total,
            "summary": {
                "current_balance": balance[0],
                "free_attempts": balance[1],
                "total_earned": total_earned,
                "total_spent": total_spent,
            },
        }
