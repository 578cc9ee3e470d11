from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from enum import Enum

from smartfarm.core.config import settings


class LoanTypeEnum(str, Enum):
    SEASONAL = "seasonal"
    EQUIPMENT = "equipment"
    LAND = "land"
    EMERGENCY = "emergency"


class LoanStatusEnum(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"


class PaymentStatusEnum(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# Application
class LoanApplicationRequest(BaseModel):
    """Loan application submitted by a farmer"""
    amount: Decimal = Field(..., ge=Decimal(str(settings.MIN_LOAN_AMOUNT)), max_digits=15, decimal_places=2)
    duration_months: int = Field(..., ge=1, le=settings.MAX_LOAN_DURATION_MONTHS)
    loan_type: LoanTypeEnum
    crop_season: str = Field(..., min_length=1, max_length=100)
    expected_harvest_date: date
    purpose: Optional[str] = None
    collateral_value: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)

    @field_validator('crop_season')
    @classmethod
    def validate_crop_season(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Crop season is required')
        return v


class LoanApplicationResponse(BaseModel):
    message: str = "Loan application submitted successfully"
    loan_id: int
    status: LoanStatusEnum
    interest_rate: Decimal
    monthly_payment: Decimal
    total_payment: Decimal


# Admin decisions
class LoanRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class LoanStatusChangeResponse(BaseModel):
    message: str
    loan_id: int
    status: LoanStatusEnum


# Payments
class LoanPaymentRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    payment_method: str = Field(..., min_length=1, max_length=50)
    transaction_id: Optional[str] = Field(None, min_length=1, max_length=100)

    @field_validator('payment_method')
    @classmethod
    def validate_payment_method(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Payment method required')
        return v


class LoanPaymentResult(BaseModel):
    message: str = "Payment recorded successfully"
    payment_id: int
    amount_paid: Decimal
    remaining: Decimal
    status: LoanStatusEnum


class LoanPaymentResponse(BaseModel):
    id: int
    loan_id: int
    amount: Decimal
    payment_date: datetime
    payment_method: Optional[str]
    transaction_id: Optional[str]
    status: PaymentStatusEnum

    class Config:
        from_attributes = True


# Loan views
class LoanResponse(BaseModel):
    id: int
    user_id: int
    amount: Decimal
    interest_rate: Decimal
    duration_months: int
    loan_type: LoanTypeEnum
    purpose: Optional[str]
    status: LoanStatusEnum
    crop_season: Optional[str]
    expected_harvest_date: Optional[date]
    collateral_value: Optional[Decimal]
    monthly_payment: Decimal
    total_payment: Decimal
    amount_paid: Decimal
    approved_by: Optional[int]
    approved_date: Optional[datetime]
    rejection_reason: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class AdminLoanResponse(LoanResponse):
    borrower_name: str
    borrower_email: str


class LoanListResponse(BaseModel):
    loans: List[LoanResponse]
    count: int


class AdminLoanListResponse(BaseModel):
    loans: List[AdminLoanResponse]
    count: int


class LoanDetailResponse(BaseModel):
    loan: LoanResponse
    payments: List[LoanPaymentResponse]
