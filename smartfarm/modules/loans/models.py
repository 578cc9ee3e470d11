from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Date, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from smartfarm.core.database import Base, enum_values
import enum


class LoanType(str, enum.Enum):
    """Loan category"""
    SEASONAL = "seasonal"
    EQUIPMENT = "equipment"
    LAND = "land"
    EMERGENCY = "emergency"


class LoanStatus(str, enum.Enum):
    """Loan lifecycle status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Loan(Base):
    """One credit application and its repayment ledger"""
    __tablename__ = "loans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Terms
    amount = Column(Numeric(15, 2), nullable=False)
    interest_rate = Column(Numeric(5, 2), nullable=False, default=8.5)
    duration_months = Column(Integer, nullable=False)
    loan_type = Column(SQLEnum(LoanType, name="loan_type", values_callable=enum_values), nullable=False)
    purpose = Column(Text, nullable=True)
    status = Column(
        SQLEnum(LoanStatus, name="loan_status", values_callable=enum_values),
        nullable=False,
        default=LoanStatus.PENDING,
        index=True
    )

    # Harvest
    crop_season = Column(String(100), nullable=True)
    expected_harvest_date = Column(Date, nullable=True)
    collateral_value = Column(Numeric(15, 2), nullable=True)

    # Schedule, fixed at application time
    monthly_payment = Column(Numeric(15, 2), nullable=False)
    total_payment = Column(Numeric(15, 2), nullable=False)
    amount_paid = Column(Numeric(15, 2), nullable=False, default=0)

    # Decision
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_date = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    borrower = relationship("User", back_populates="loans", foreign_keys=[user_id])
    payments = relationship(
        "LoanPayment",
        back_populates="loan",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    def __repr__(self):
        return f"<Loan(id={self.id}, user_id={self.user_id}, status={self.status})>"


class LoanPayment(Base):
    """A repayment recorded against a loan"""
    __tablename__ = "loan_payments"

    id = Column(Integer, primary_key=True, index=True)
    loan_id = Column(Integer, ForeignKey("loans.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    payment_method = Column(String(50), nullable=False)
    transaction_id = Column(String(100), unique=True, nullable=True)
    status = Column(
        SQLEnum(PaymentStatus, name="payment_status", values_callable=enum_values),
        nullable=False,
        default=PaymentStatus.COMPLETED
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    loan = relationship("Loan", back_populates="payments")
