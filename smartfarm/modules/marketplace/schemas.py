from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from enum import Enum


class ProductStatusEnum(str, Enum):
    AVAILABLE = "available"
    SOLD = "sold"
    EXPIRED = "expired"


class OrderStatusEnum(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderPaymentStatusEnum(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


# Products
class ProductCreate(BaseModel):
    """New produce listing"""
    product_name: str = Field(..., min_length=1, max_length=150)
    crop_type: str = Field(..., min_length=1, max_length=100)
    quantity: Decimal = Field(..., ge=Decimal("0.1"), max_digits=12, decimal_places=2)
    unit: str = Field(..., min_length=1, max_length=30)
    price_per_unit: Decimal = Field(..., ge=Decimal("0.01"), max_digits=15, decimal_places=2)
    location: str = Field(..., min_length=1, max_length=255)
    harvest_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator('product_name', 'crop_type', 'unit', 'location')
    @classmethod
    def require_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Field is required')
        return v


class ProductUpdate(BaseModel):
    quantity: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    price_per_unit: Optional[Decimal] = Field(None, ge=Decimal("0.01"), max_digits=15, decimal_places=2)
    status: Optional[ProductStatusEnum] = None


class ProductResponse(BaseModel):
    id: int
    farmer_id: int
    product_name: str
    description: Optional[str]
    crop_type: str
    quantity: Decimal
    unit: str
    price_per_unit: Decimal
    harvest_date: Optional[date]
    location: Optional[str]
    image_url: Optional[str]
    status: ProductStatusEnum
    created_at: datetime

    class Config:
        from_attributes = True


class ProductListingResponse(ProductResponse):
    """Public listing enriched with the seller"""
    farmer_name: str
    farm_location: Optional[str]


class ProductDetailResponse(ProductListingResponse):
    phone: Optional[str]


class ProductListResponse(BaseModel):
    products: List[ProductListingResponse]
    count: int


class FarmerProductListResponse(BaseModel):
    products: List[ProductResponse]
    count: int


class ProductCreatedResponse(BaseModel):
    message: str = "Product listed successfully"
    product_id: int
    status: ProductStatusEnum


# Orders
class OrderCreate(BaseModel):
    product_id: int
    quantity: Decimal = Field(..., ge=Decimal("0.1"), max_digits=12, decimal_places=2)
    delivery_address: str = Field(..., min_length=1)

    @field_validator('delivery_address')
    @classmethod
    def validate_address(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Delivery address required')
        return v


class OrderCreatedResponse(BaseModel):
    message: str = "Order created successfully"
    order_id: int
    total_price: Decimal


class OrderResponse(BaseModel):
    id: int
    buyer_id: int
    product_id: int
    quantity: Decimal
    total_price: Decimal
    delivery_address: str
    status: OrderStatusEnum
    payment_status: OrderPaymentStatusEnum
    estimated_delivery: Optional[date]
    actual_delivery: Optional[date]
    created_at: datetime
    product_name: str
    crop_type: str
    farmer_name: str


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    count: int
