from fastapi import APIRouter, Depends, status
from typing import Optional

from smartfarm.core.dependencies import get_current_active_user, get_persistence, require_admin
from smartfarm.core.persistence import Persistence
from smartfarm.modules.users.models import User
from smartfarm.modules.loans.models import LoanStatus, LoanType
from smartfarm.modules.loans import schemas
from smartfarm.modules.loans.services import LoanLedger

router = APIRouter(prefix="/api/loans", tags=["loans"])


def get_loan_ledger(persistence: Persistence = Depends(get_persistence)) -> LoanLedger:
    return LoanLedger(persistence)


@router.post("/apply", response_model=schemas.LoanApplicationResponse, status_code=status.HTTP_201_CREATED)
async def apply_for_loan(
    application: schemas.LoanApplicationRequest,
    current_user: User = Depends(get_current_active_user),
    ledger: LoanLedger = Depends(get_loan_ledger)
):
    """
    Submit a loan application.

    - Interest rate is set by loan type
    - Monthly and total payments are fixed now and never recomputed
    """
    return await ledger.apply_for_loan(
        user_id=current_user.id,
        amount=application.amount,
        duration_months=application.duration_months,
        loan_type=LoanType(application.loan_type.value),
        crop_season=application.crop_season,
        expected_harvest_date=application.expected_harvest_date,
        purpose=application.purpose,
        collateral_value=application.collateral_value
    )


@router.get("/my-loans", response_model=schemas.LoanListResponse)
async def read_my_loans(
    current_user: User = Depends(get_current_active_user),
    ledger: LoanLedger = Depends(get_loan_ledger)
):
    loans = await ledger.list_user_loans(current_user.id)
    return {"loans": loans, "count": len(loans)}


@router.get("/", response_model=schemas.AdminLoanListResponse)
async def read_loans(
    status: Optional[schemas.LoanStatusEnum] = None,
    admin: User = Depends(require_admin),
    ledger: LoanLedger = Depends(get_loan_ledger)
):
    """List all loans with borrower details (admin only)"""
    loan_status = LoanStatus(status.value) if status else None
    loans = await ledger.list_loans(status=loan_status)
    return {"loans": loans, "count": len(loans)}


@router.get("/{loan_id}", response_model=schemas.LoanDetailResponse)
async def read_loan(
    loan_id: int,
    current_user: User = Depends(get_current_active_user),
    ledger: LoanLedger = Depends(get_loan_ledger)
):
    """Loan details and payment history (owner or admin)"""
    return await ledger.get_loan_detail(current_user, loan_id)


@router.post("/{loan_id}/approve", response_model=schemas.LoanStatusChangeResponse)
async def approve_loan(
    loan_id: int,
    current_user: User = Depends(get_current_active_user),
    ledger: LoanLedger = Depends(get_loan_ledger)
):
    loan = await ledger.approve_loan(current_user, loan_id)
    return {"message": "Loan approved successfully", "loan_id": loan.id, "status": loan.status}


@router.post("/{loan_id}/reject", response_model=schemas.LoanStatusChangeResponse)
async def reject_loan(
    loan_id: int,
    rejection: schemas.LoanRejectRequest,
    current_user: User = Depends(get_current_active_user),
    ledger: LoanLedger = Depends(get_loan_ledger)
):
    loan = await ledger.reject_loan(current_user, loan_id, rejection.reason)
    return {"message": "Loan rejected", "loan_id": loan.id, "status": loan.status}


@router.post("/{loan_id}/activate", response_model=schemas.LoanStatusChangeResponse)
async def activate_loan(
    loan_id: int,
    current_user: User = Depends(get_current_active_user),
    ledger: LoanLedger = Depends(get_loan_ledger)
):
    """Mark an approved loan as disbursed and active"""
    loan = await ledger.activate_loan(current_user, loan_id)
    return {"message": "Loan marked as active", "loan_id": loan.id, "status": loan.status}


@router.post("/{loan_id}/default", response_model=schemas.LoanStatusChangeResponse)
async def mark_loan_defaulted(
    loan_id: int,
    current_user: User = Depends(get_current_active_user),
    ledger: LoanLedger = Depends(get_loan_ledger)
):
    loan = await ledger.mark_defaulted(current_user, loan_id)
    return {"message": "Loan marked as defaulted", "loan_id": loan.id, "status": loan.status}


@router.post("/{loan_id}/payment", response_model=schemas.LoanPaymentResult)
async def record_payment(
    loan_id: int,
    payment: schemas.LoanPaymentRequest,
    current_user: User = Depends(get_current_active_user),
    ledger: LoanLedger = Depends(get_loan_ledger)
):
    """
    Record a repayment.

    - Borrower or admin only
    - Loan moves to completed once the total payment is reached
    """
    return await ledger.record_payment(
        actor=current_user,
        loan_id=loan_id,
        amount=payment.amount,
        payment_method=payment.payment_method,
        transaction_id=payment.transaction_id
    )
