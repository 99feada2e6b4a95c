"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .enums import InputMode, PaymentMethod
from .client import Client
from .client_group import ClientGroup, client_group_members
from .material import Material, MaterialRatio
from .oxidant import Oxidant
from .product import Product
from .service_template import ServiceTemplate
from .visit import Visit, VisitService, Bowl, MaterialLine, VisitProduct
from .product_sale import ProductSale, ProductSaleLine

__all__ = [
    "Base",
    "BaseModel",
    # Enums
    "InputMode",
    "PaymentMethod",
    # Clients
    "Client",
    "ClientGroup",
    "client_group_members",
    # Catalog
    "Material",
    "MaterialRatio",
    "Oxidant",
    "Product",
    "ServiceTemplate",
    # Recipe tree
    "Visit",
    "VisitService",
    "Bowl",
    "MaterialLine",
    "VisitProduct",
    # Sales outside visits
    "ProductSale",
    "ProductSaleLine",
]
