# Marketplace module
from smartfarm.modules.marketplace.models import MarketplaceProduct, Order, ProductStatus, OrderStatus
from smartfarm.modules.marketplace.router import router

__all__ = ["MarketplaceProduct", "Order", "ProductStatus", "OrderStatus", "router"]
