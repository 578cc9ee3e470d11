# Loans module
from smartfarm.modules.loans.models import Loan, LoanPayment, LoanType, LoanStatus, PaymentStatus
from smartfarm.modules.loans.calculator import Schedule, compute_schedule, interest_rate_for
from smartfarm.modules.loans.services import LoanLedger
from smartfarm.modules.loans.router import router

__all__ = [
    "Loan", "LoanPayment", "LoanType", "LoanStatus", "PaymentStatus",
    "Schedule", "compute_schedule", "interest_rate_for",
    "LoanLedger", "router"
]
