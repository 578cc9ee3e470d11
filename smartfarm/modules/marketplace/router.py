from fastapi import APIRouter, Depends, status
from decimal import Decimal
from typing import Optional

from smartfarm.core.dependencies import get_current_active_user, get_persistence
from smartfarm.core.persistence import Persistence
from smartfarm.modules.users.models import User
from smartfarm.modules.marketplace import schemas
from smartfarm.modules.marketplace.services import MarketplaceService

router = APIRouter(prefix="/api/marketplace", tags=["marketplace"])


def get_marketplace_service(persistence: Persistence = Depends(get_persistence)) -> MarketplaceService:
    return MarketplaceService(persistence)


@router.get("/products", response_model=schemas.ProductListResponse)
async def list_products(
    crop_type: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    location: Optional[str] = None,
    service: MarketplaceService = Depends(get_marketplace_service)
):
    """Browse available produce (public)"""
    products = await service.list_products(
        crop_type=crop_type, min_price=min_price, max_price=max_price, location=location
    )
    return {"products": products, "count": len(products)}


@router.get("/products/{product_id}", response_model=schemas.ProductDetailResponse)
async def get_product(
    product_id: int,
    service: MarketplaceService = Depends(get_marketplace_service)
):
    return await service.get_product(product_id)


@router.get("/farmer/products", response_model=schemas.FarmerProductListResponse)
async def list_my_products(
    current_user: User = Depends(get_current_active_user),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    products = await service.list_farmer_products(current_user.id)
    return {"products": products, "count": len(products)}


@router.post("/products", response_model=schemas.ProductCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: schemas.ProductCreate,
    current_user: User = Depends(get_current_active_user),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    product = await service.create_product(current_user, product_data)
    return {"product_id": product.id, "status": product.status}


@router.put("/products/{product_id}", response_model=schemas.ProductResponse)
async def update_product(
    product_id: int,
    product_data: schemas.ProductUpdate,
    current_user: User = Depends(get_current_active_user),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    """Update stock, price or status (seller or admin)"""
    return await service.update_product(current_user, product_id, product_data)


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: int,
    current_user: User = Depends(get_current_active_user),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    await service.delete_product(current_user, product_id)
    return {"message": "Product deleted successfully"}


@router.post("/orders", response_model=schemas.OrderCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: schemas.OrderCreate,
    current_user: User = Depends(get_current_active_user),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    order = await service.create_order(current_user, order_data)
    return {"order_id": order.id, "total_price": order.total_price}


@router.get("/orders", response_model=schemas.OrderListResponse)
async def list_orders(
    current_user: User = Depends(get_current_active_user),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    orders = await service.list_orders(current_user.id)
    return {"orders": orders, "count": len(orders)}
