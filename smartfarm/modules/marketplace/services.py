from sqlalchemy import select
from decimal import Decimal
from typing import Optional, List, Dict, Any
import logging

from smartfarm.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from smartfarm.core.persistence import Persistence
from smartfarm.core.security import sanitize_input
from smartfarm.modules.marketplace.models import MarketplaceProduct, Order, ProductStatus
from smartfarm.modules.marketplace import schemas
from smartfarm.modules.users.models import User

logger = logging.getLogger(__name__)


def _product_dict(product: MarketplaceProduct, **extra) -> Dict[str, Any]:
    data = {column.name: getattr(product, column.name) for column in MarketplaceProduct.__table__.columns}
    data.update(extra)
    return data


class MarketplaceService:
    """Produce listings and buyer orders"""

    def __init__(self, persistence: Persistence):
        self.persistence = persistence

    async def _get_product(self, product_id: int) -> MarketplaceProduct:
        product = await self.persistence.fetch_one(
            select(MarketplaceProduct).where(MarketplaceProduct.id == product_id)
        )
        if product is None:
            raise NotFoundError("Product not found")
        return product

    @staticmethod
    def _require_owner(product: MarketplaceProduct, actor: User) -> None:
        if product.farmer_id != actor.id and not actor.is_admin:
            logger.warning(f"User {actor.id} attempted to modify product {product.id}")
            raise AuthorizationError("Access denied")

    async def list_products(
        self,
        crop_type: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        location: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Available listings with the seller's name and farm location"""
        query = (
            select(MarketplaceProduct, User.name, User.farm_location)
            .join(User, MarketplaceProduct.farmer_id == User.id)
            .where(MarketplaceProduct.status == ProductStatus.AVAILABLE)
        )

        if crop_type:
            query = query.where(MarketplaceProduct.crop_type == crop_type)
        if min_price is not None:
            query = query.where(MarketplaceProduct.price_per_unit >= min_price)
        if max_price is not None:
            query = query.where(MarketplaceProduct.price_per_unit <= max_price)
        if location:
            query = query.where(MarketplaceProduct.location.ilike(f"%{location}%"))

        query = query.order_by(MarketplaceProduct.created_at.desc(), MarketplaceProduct.id.desc())
        rows = await self.persistence.fetch_all(query)
        return [
            _product_dict(product, farmer_name=farmer_name, farm_location=farm_location)
            for product, farmer_name, farm_location in rows
        ]

    async def get_product(self, product_id: int) -> Dict[str, Any]:
        rows = await self.persistence.fetch_all(
            select(MarketplaceProduct, User.name, User.phone, User.farm_location)
            .join(User, MarketplaceProduct.farmer_id == User.id)
            .where(MarketplaceProduct.id == product_id)
        )
        if not rows:
            raise NotFoundError("Product not found")

        product, farmer_name, phone, farm_location = rows[0]
        return _product_dict(product, farmer_name=farmer_name, phone=phone, farm_location=farm_location)

    async def list_farmer_products(self, farmer_id: int) -> List[MarketplaceProduct]:
        return await self.persistence.fetch_all(
            select(MarketplaceProduct)
            .where(MarketplaceProduct.farmer_id == farmer_id)
            .order_by(MarketplaceProduct.created_at.desc(), MarketplaceProduct.id.desc())
        )

    async def create_product(self, actor: User, data: schemas.ProductCreate) -> MarketplaceProduct:
        product = MarketplaceProduct(
            farmer_id=actor.id,
            product_name=sanitize_input(data.product_name),
            crop_type=data.crop_type,
            quantity=data.quantity,
            unit=data.unit,
            price_per_unit=data.price_per_unit,
            location=sanitize_input(data.location),
            harvest_date=data.harvest_date,
            description=sanitize_input(data.description),
            status=ProductStatus.AVAILABLE
        )
        async with self.persistence.transaction():
            await self.persistence.add(product)
        await self.persistence.refresh(product)

        logger.info(f"Product {product.id} listed by user {actor.id}")
        return product

    async def update_product(self, actor: User, product_id: int, data: schemas.ProductUpdate) -> MarketplaceProduct:
        product = await self._get_product(product_id)
        self._require_owner(product, actor)

        async with self.persistence.transaction():
            if data.quantity is not None:
                product.quantity = data.quantity
            if data.price_per_unit is not None:
                product.price_per_unit = data.price_per_unit
            if data.status is not None:
                product.status = ProductStatus(data.status.value)

        return await self.persistence.refresh(product)

    async def delete_product(self, actor: User, product_id: int) -> None:
        product = await self._get_product(product_id)
        self._require_owner(product, actor)

        async with self.persistence.transaction():
            await self.persistence.delete(product)
        logger.info(f"Product {product_id} deleted by user {actor.id}")

    async def create_order(self, actor: User, data: schemas.OrderCreate) -> Order:
        """Place an order priced at the listing's current unit price"""
        product = await self._get_product(data.product_id)

        if product.status != ProductStatus.AVAILABLE:
            raise ValidationError("product_id", "Product is not available")
        if data.quantity > product.quantity:
            raise ValidationError("quantity", "Insufficient quantity available")

        order = Order(
            buyer_id=actor.id,
            product_id=product.id,
            quantity=data.quantity,
            total_price=(data.quantity * product.price_per_unit).quantize(Decimal("0.01")),
            delivery_address=sanitize_input(data.delivery_address)
        )
        async with self.persistence.transaction():
            await self.persistence.add(order)
        await self.persistence.refresh(order)

        logger.info(f"Order {order.id} placed by user {actor.id} for product {product.id}")
        return order

    async def list_orders(self, buyer_id: int) -> List[Dict[str, Any]]:
        """Buyer's orders with product and seller names"""
        farmer = User.__table__.alias("farmer")
        rows = await self.persistence.fetch_all(
            select(Order, MarketplaceProduct.product_name, MarketplaceProduct.crop_type, farmer.c.name)
            .join(MarketplaceProduct, Order.product_id == MarketplaceProduct.id)
            .join(farmer, MarketplaceProduct.farmer_id == farmer.c.id)
            .where(Order.buyer_id == buyer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )

        orders = []
        for order, product_name, crop_type, farmer_name in rows:
            data = {column.name: getattr(order, column.name) for column in Order.__table__.columns}
            data.update({"product_name": product_name, "crop_type": crop_type, "farmer_name": farmer_name})
            orders.append(data)
        return orders
