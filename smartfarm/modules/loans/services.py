from sqlalchemy import select, update
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, List, Dict, Any
import logging

from smartfarm.core.exceptions import (
    AuthorizationError, ConflictError, InvalidTransitionError, NotFoundError, ValidationError
)
from smartfarm.core.persistence import Persistence
from smartfarm.core.security import sanitize_input
from smartfarm.modules.loans.calculator import compute_schedule, interest_rate_for, to_cents
from smartfarm.modules.loans.models import Loan, LoanPayment, LoanStatus, LoanType, PaymentStatus
from smartfarm.modules.users.models import User

logger = logging.getLogger(__name__)

# Allowed status changes; statuses missing from the map are terminal
LOAN_TRANSITIONS = {
    LoanStatus.PENDING: {LoanStatus.APPROVED, LoanStatus.REJECTED},
    LoanStatus.APPROVED: {LoanStatus.ACTIVE, LoanStatus.COMPLETED, LoanStatus.DEFAULTED},
    LoanStatus.ACTIVE: {LoanStatus.COMPLETED, LoanStatus.DEFAULTED},
}

PAYABLE_STATUSES = (LoanStatus.APPROVED, LoanStatus.ACTIVE)


def can_transition(current: LoanStatus, target: LoanStatus) -> bool:
    return target in LOAN_TRANSITIONS.get(current, set())


class LoanLedger:
    """
    Loan origination, admin decisions and repayment tracking.

    Built once per request around a ``Persistence`` and handed to the route
    handlers, which authenticate the caller and validate the payload first.
    """

    def __init__(self, persistence: Persistence):
        self.persistence = persistence

    async def _get_loan(self, loan_id: int) -> Loan:
        loan = await self.persistence.fetch_one(
            select(Loan)
            .where(Loan.id == loan_id)
            .execution_options(populate_existing=True)
        )
        if loan is None:
            raise NotFoundError("Loan not found")
        return loan

    @staticmethod
    def _require_admin(actor: User, action: str) -> None:
        if not actor.is_admin:
            logger.warning(f"User {actor.id} attempted to {action} without admin role")
            raise AuthorizationError("Admin access required")

    # ------------------------------------------------------------
    # Application
    # ------------------------------------------------------------

    async def apply_for_loan(
        self,
        user_id: int,
        amount: Decimal,
        duration_months: int,
        loan_type: LoanType,
        crop_season: str,
        expected_harvest_date: date,
        purpose: Optional[str] = None,
        collateral_value: Optional[Decimal] = None
    ) -> Dict[str, Any]:
        """Price the loan from its category and store it as pending"""
        loan_type = LoanType(loan_type)
        interest_rate = interest_rate_for(loan_type)
        schedule = compute_schedule(amount, interest_rate, duration_months)

        loan = Loan(
            user_id=user_id,
            amount=to_cents(amount),
            interest_rate=interest_rate,
            duration_months=duration_months,
            loan_type=loan_type,
            status=LoanStatus.PENDING,
            crop_season=crop_season,
            expected_harvest_date=expected_harvest_date,
            collateral_value=to_cents(collateral_value) if collateral_value is not None else None,
            monthly_payment=to_cents(schedule.monthly_payment),
            total_payment=to_cents(schedule.total_payment),
            amount_paid=Decimal("0"),
            purpose=sanitize_input(purpose)
        )

        async with self.persistence.transaction():
            await self.persistence.add(loan)

        logger.info(
            f"Loan {loan.id} applied by user {user_id}: {loan.amount} over "
            f"{duration_months} months at {interest_rate}%"
        )

        return {
            "loan_id": loan.id,
            "status": LoanStatus.PENDING,
            "interest_rate": interest_rate,
            "monthly_payment": to_cents(schedule.monthly_payment),
            "total_payment": to_cents(schedule.total_payment)
        }

    # ------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------

    async def _transition(self, loan_id: int, target: LoanStatus, **values) -> Loan:
        """
        Move a loan to ``target`` if the state machine allows it.

        Repeating a transition the loan already made is a no-op. The UPDATE
        is guarded on the status that was read, so a concurrent change makes
        it match no rows and the request fails instead of overwriting.
        """
        loan = await self._get_loan(loan_id)
        current = loan.status

        if current == target:
            return loan

        if not can_transition(current, target):
            logger.warning(f"Refused transition of loan {loan_id} from {current.value} to {target.value}")
            raise InvalidTransitionError(current.value, target.value)

        async with self.persistence.transaction():
            result = await self.persistence.execute(
                update(Loan)
                .where(Loan.id == loan_id, Loan.status == current)
                .values(status=target, **values)
                .execution_options(synchronize_session=False)
            )
            if result.rows_affected == 0:
                raise InvalidTransitionError(
                    current.value, target.value, "Loan status changed while processing the request"
                )

        return await self._get_loan(loan_id)

    async def approve_loan(self, actor: User, loan_id: int) -> Loan:
        self._require_admin(actor, "approve loans")
        loan = await self._transition(
            loan_id,
            LoanStatus.APPROVED,
            approved_by=actor.id,
            approved_date=datetime.now(timezone.utc)
        )
        logger.info(f"Loan {loan_id} approved by admin {actor.id}")
        return loan

    async def reject_loan(self, actor: User, loan_id: int, reason: str) -> Loan:
        self._require_admin(actor, "reject loans")
        reason = sanitize_input(reason or "")
        if not reason:
            raise ValidationError("reason", "Rejection reason is required")

        loan = await self._transition(
            loan_id,
            LoanStatus.REJECTED,
            rejection_reason=reason,
            approved_date=datetime.now(timezone.utc)
        )
        logger.info(f"Loan {loan_id} rejected by admin {actor.id}")
        return loan

    async def activate_loan(self, actor: User, loan_id: int) -> Loan:
        """Approved loan whose funds have been disbursed"""
        self._require_admin(actor, "activate loans")
        loan = await self._transition(loan_id, LoanStatus.ACTIVE)
        logger.info(f"Loan {loan_id} activated by admin {actor.id}")
        return loan

    async def mark_defaulted(self, actor: User, loan_id: int) -> Loan:
        self._require_admin(actor, "mark loans as defaulted")
        loan = await self._transition(loan_id, LoanStatus.DEFAULTED)
        logger.info(f"Loan {loan_id} marked as defaulted by admin {actor.id}")
        return loan

    # ------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------

    async def record_payment(
        self,
        actor: User,
        loan_id: int,
        amount: Decimal,
        payment_method: str,
        transaction_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Record a repayment and fold it into the loan's running total.

        The payment row, the increment of ``amount_paid`` and the optional
        move to ``completed`` commit together or not at all. The increment
        is evaluated by the database (``amount_paid = amount_paid + :amount``)
        so concurrent payments on one loan are serialized by its row lock
        rather than overwriting each other.
        """
        amount = to_cents(amount)
        if amount <= 0:
            raise ValidationError("amount", "Valid payment amount required")
        payment_method = (payment_method or "").strip()
        if not payment_method:
            raise ValidationError("payment_method", "Payment method required")

        loan = await self._get_loan(loan_id)

        if loan.user_id != actor.id and not actor.is_admin:
            logger.warning(f"User {actor.id} attempted to pay loan {loan_id} they do not own")
            raise AuthorizationError("Access denied")

        if loan.status not in PAYABLE_STATUSES:
            raise ConflictError(f"Payments are not accepted for {loan.status.value} loans")

        async with self.persistence.transaction():
            payment = await self.persistence.add(LoanPayment(
                loan_id=loan_id,
                amount=amount,
                payment_method=payment_method,
                transaction_id=transaction_id,
                status=PaymentStatus.COMPLETED
            ))

            result = await self.persistence.execute(
                update(Loan)
                .where(Loan.id == loan_id, Loan.status.in_(PAYABLE_STATUSES))
                .values(amount_paid=Loan.amount_paid + amount)
                .execution_options(synchronize_session=False)
            )
            if result.rows_affected == 0:
                raise ConflictError("Loan is no longer accepting payments")

            rows = await self.persistence.fetch_all(
                select(Loan.amount_paid, Loan.total_payment, Loan.status).where(Loan.id == loan_id)
            )
            amount_paid, total_payment, loan_status = rows[0]

            if amount_paid >= total_payment and loan_status != LoanStatus.COMPLETED:
                await self.persistence.execute(
                    update(Loan)
                    .where(Loan.id == loan_id, Loan.status.in_(PAYABLE_STATUSES))
                    .values(status=LoanStatus.COMPLETED)
                    .execution_options(synchronize_session=False)
                )
                loan_status = LoanStatus.COMPLETED

        logger.info(f"Payment {payment.id} of {amount} recorded on loan {loan_id} by user {actor.id}")
        if loan_status == LoanStatus.COMPLETED:
            logger.info(f"Loan {loan_id} fully repaid")

        return {
            "payment_id": payment.id,
            "amount_paid": amount_paid,
            "remaining": max(Decimal("0.00"), total_payment - amount_paid),
            "status": loan_status
        }

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    async def list_user_loans(self, user_id: int) -> List[Loan]:
        return await self.persistence.fetch_all(
            select(Loan)
            .where(Loan.user_id == user_id)
            .order_by(Loan.created_at.desc(), Loan.id.desc())
            .execution_options(populate_existing=True)
        )

    async def get_loan_detail(self, actor: User, loan_id: int) -> Dict[str, Any]:
        """Loan with its payment history, newest payment first"""
        loan = await self._get_loan(loan_id)

        if loan.user_id != actor.id and not actor.is_admin:
            raise AuthorizationError("Access denied")

        payments = await self.persistence.fetch_all(
            select(LoanPayment)
            .where(LoanPayment.loan_id == loan_id)
            .order_by(LoanPayment.payment_date.desc(), LoanPayment.id.desc())
        )
        return {"loan": loan, "payments": payments}

    async def list_loans(self, status: Optional[LoanStatus] = None) -> List[Dict[str, Any]]:
        """Every loan with its borrower, for the admin dashboard"""
        query = select(Loan, User.name, User.email).join(User, Loan.user_id == User.id)
        if status is not None:
            query = query.where(Loan.status == status)
        query = query.order_by(Loan.created_at.desc(), Loan.id.desc()).execution_options(populate_existing=True)

        rows = await self.persistence.fetch_all(query)
        loans = []
        for loan, borrower_name, borrower_email in rows:
            data = {column.name: getattr(loan, column.name) for column in Loan.__table__.columns}
            data.update({"borrower_name": borrower_name, "borrower_email": borrower_email})
            loans.append(data)
        return loans
