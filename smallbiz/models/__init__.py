from smallbiz.models.customer import Customer
from smallbiz.models.inventory import AdjustmentType, Product, StockAdjustment
from smallbiz.models.sales import PaymentMethod, PaymentStatus, Sale, SaleItem

__all__ = [
    "AdjustmentType",
    "Customer",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "Sale",
    "SaleItem",
    "StockAdjustment",
]
