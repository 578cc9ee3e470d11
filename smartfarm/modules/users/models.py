from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from smartfarm.core.database import Base, enum_values
import enum


class UserType(str, enum.Enum):
    """User role enumeration"""
    FARMER = "farmer"
    BUYER = "buyer"
    ADMIN = "admin"


class User(Base):
    """Farmer, buyer or administrator account"""
    __tablename__ = "users"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # Authentication
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Personal Information
    name = Column(String(150), nullable=False)
    phone = Column(String(20), nullable=True)
    user_type = Column(
        SQLEnum(UserType, name="user_type", values_callable=enum_values),
        nullable=False
    )

    # Farm Profile
    farm_name = Column(String(150), nullable=True)
    farm_location = Column(String(255), nullable=True)
    crops_grown = Column(String(255), nullable=True)
    profile_image = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)

    # Account Status
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    loans = relationship("Loan", back_populates="borrower", foreign_keys="Loan.user_id", passive_deletes=True)
    products = relationship("MarketplaceProduct", back_populates="farmer", passive_deletes=True)

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, type={self.user_type})>"
