from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Date, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from smartfarm.core.database import Base, enum_values
import enum


class ProductStatus(str, enum.Enum):
    AVAILABLE = "available"
    SOLD = "sold"
    EXPIRED = "expired"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderPaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class MarketplaceProduct(Base):
    """Produce listed for sale by a farmer"""
    __tablename__ = "marketplace_products"

    id = Column(Integer, primary_key=True, index=True)
    farmer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    crop_type = Column(String(100), nullable=False, index=True)
    quantity = Column(Numeric(12, 2), nullable=False)
    unit = Column(String(30), nullable=False)  # kg, tons, bundles...
    price_per_unit = Column(Numeric(15, 2), nullable=False)
    harvest_date = Column(Date, nullable=True)
    location = Column(String(255), nullable=True)
    image_url = Column(String(500), nullable=True)
    status = Column(
        SQLEnum(ProductStatus, name="product_status", values_callable=enum_values),
        nullable=False,
        default=ProductStatus.AVAILABLE
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    farmer = relationship("User", back_populates="products")
    orders = relationship("Order", back_populates="product", cascade="all, delete-orphan", passive_deletes=True)


class Order(Base):
    """Buyer's order for a listed product"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    buyer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("marketplace_products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(15, 2), nullable=False)
    delivery_address = Column(Text, nullable=False)
    status = Column(
        SQLEnum(OrderStatus, name="order_status", values_callable=enum_values),
        nullable=False,
        default=OrderStatus.PENDING
    )
    payment_status = Column(
        SQLEnum(OrderPaymentStatus, name="order_payment_status", values_callable=enum_values),
        nullable=False,
        default=OrderPaymentStatus.PENDING
    )
    estimated_delivery = Column(Date, nullable=True)
    actual_delivery = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    product = relationship("MarketplaceProduct", back_populates="orders")
