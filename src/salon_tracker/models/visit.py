"""
Visit models - the recipe tree of one client appointment.

This module contains:
- Visit: Root of the tree with date, payment and amounts
- VisitService: A named treatment within the visit
- Bowl: A mixing bowl within a service, with its oxidant and oxidant grams
- MaterialLine: One material in a bowl, with a snapshot of its mixing ratio
- VisitProduct: A retail product sold during the visit

Each child row is keyed by its parent. Names and ratios are copied onto the
rows when the visit is written, so a stored recipe stays reproducible after
the catalog changes.
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Numeric,
    Text,
    Date,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class Visit(BaseModel):
    """
    Client appointment record, root of the recipe tree.

    Attributes:
        owner_id: Account that owns the record
        client_id: Foreign key to Client
        client_first_name: Client first name at the time of the visit
        client_last_name: Client last name at the time of the visit
        visit_date: Date of the appointment
        note: Free-text note
        payment_method: 'cash', 'qr' or None
        service_amount: Amount charged for services (entered by the stylist)
        product_amount: Sum of product lines
        total_amount: service_amount + product_amount
        service_count: Number of services, denormalized for list views
    """

    __tablename__ = "visits"

    owner_id = Column(String(128), nullable=False, index=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    client_first_name = Column(String(100), nullable=True)
    client_last_name = Column(String(100), nullable=True)

    visit_date = Column(Date, nullable=False, index=True)
    note = Column(Text, nullable=True)
    payment_method = Column(String(10), nullable=True)

    service_amount = Column(Numeric(10, 2), nullable=True)
    product_amount = Column(Numeric(10, 2), nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=True)

    service_count = Column(Integer, nullable=False, default=0)

    client = relationship("Client", back_populates="visits")
    services = relationship(
        "VisitService",
        back_populates="visit",
        cascade="all, delete-orphan",
        order_by="VisitService.position",
        lazy="select",
    )
    products = relationship(
        "VisitProduct",
        back_populates="visit",
        cascade="all, delete-orphan",
        order_by="VisitProduct.position",
        lazy="select",
    )

    __table_args__ = (
        Index("idx_visit_owner_date", "owner_id", "visit_date"),
        CheckConstraint(
            "payment_method IS NULL OR payment_method IN ('cash', 'qr')",
            name="ck_visit_payment_method",
        ),
    )

    def __repr__(self) -> str:
        """String representation of visit."""
        return f"Visit(id={self.id}, client_id={self.client_id}, date={self.visit_date})"


class VisitService(BaseModel):
    """
    Named treatment within a visit (e.g., "Root colour", "Cut").

    Attributes:
        visit_id: Foreign key to Visit
        name: Treatment name
        position: 1-based display order within the visit
    """

    __tablename__ = "visit_services"

    visit_id = Column(Integer, ForeignKey("visits.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    position = Column(Integer, nullable=False)

    visit = relationship("Visit", back_populates="services")
    bowls = relationship(
        "Bowl",
        back_populates="service",
        cascade="all, delete-orphan",
        order_by="Bowl.position",
        lazy="select",
    )

    __table_args__ = (
        Index("idx_visit_service_visit", "visit_id", "position"),
        CheckConstraint("position >= 1", name="ck_visit_service_position"),
    )


class Bowl(BaseModel):
    """
    Mixing bowl within a service.

    Attributes:
        service_id: Foreign key to VisitService
        position: 1-based display order within the service
        oxidant_id: Foreign key to Oxidant (null for an empty bowl)
        oxidant_name: Oxidant name at the time of the visit
        oxidant_grams: Oxidant needed for the bowl's materials (derived)
    """

    __tablename__ = "bowls"

    service_id = Column(
        Integer, ForeignKey("visit_services.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, nullable=False)
    oxidant_id = Column(Integer, ForeignKey("oxidants.id", ondelete="SET NULL"), nullable=True)
    oxidant_name = Column(String(200), nullable=True)
    oxidant_grams = Column(Float, nullable=False, default=0.0)

    service = relationship("VisitService", back_populates="bowls")
    oxidant = relationship("Oxidant")
    material_lines = relationship(
        "MaterialLine",
        back_populates="bowl",
        cascade="all, delete-orphan",
        order_by="MaterialLine.position",
        lazy="select",
    )

    __table_args__ = (
        Index("idx_bowl_service", "service_id", "position"),
        CheckConstraint("position >= 1", name="ck_bowl_position"),
        CheckConstraint("oxidant_grams >= 0", name="ck_bowl_oxidant_grams"),
    )


class MaterialLine(BaseModel):
    """
    One material in a bowl.

    The ratio columns are a snapshot of the ratio chosen when the visit was
    recorded, not a reference to the catalog.

    Attributes:
        bowl_id: Foreign key to Bowl
        position: 1-based order within the bowl
        material_id: Foreign key to Material (null once the material is deleted)
        material_name: Material name at the time of the visit
        shade_label: Shade text or number (e.g., "7/1")
        grams: Material weight in grams (> 0)
        ratio_material: Material parts of the ratio used
        ratio_oxidant: Oxidant parts of the ratio used
    """

    __tablename__ = "material_lines"

    bowl_id = Column(Integer, ForeignKey("bowls.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="SET NULL"), nullable=True
    )
    material_name = Column(String(200), nullable=False)
    shade_label = Column(String(100), nullable=False, default="")
    grams = Column(Float, nullable=False)
    ratio_material = Column(Float, nullable=False)
    ratio_oxidant = Column(Float, nullable=False)

    bowl = relationship("Bowl", back_populates="material_lines")
    material = relationship("Material")

    __table_args__ = (
        Index("idx_material_line_bowl", "bowl_id", "position"),
        CheckConstraint("grams > 0", name="ck_material_line_grams_positive"),
        CheckConstraint("ratio_material > 0", name="ck_material_line_ratio_material"),
        CheckConstraint("ratio_oxidant > 0", name="ck_material_line_ratio_oxidant"),
    )


class VisitProduct(BaseModel):
    """
    Retail product sold during a visit.

    Attributes:
        visit_id: Foreign key to Visit
        position: 1-based order within the visit
        product_id: Foreign key to Product (null once the product is deleted)
        product_name: Product name at the time of the sale
        quantity: Number of pieces (>= 1)
        unit_price: Price per piece
    """

    __tablename__ = "visit_products"

    visit_id = Column(Integer, ForeignKey("visits.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)

    visit = relationship("Visit", back_populates="products")
    product = relationship("Product")

    __table_args__ = (
        Index("idx_visit_product_visit", "visit_id", "position"),
        CheckConstraint("quantity >= 1", name="ck_visit_product_quantity"),
        CheckConstraint("unit_price >= 0", name="ck_visit_product_unit_price"),
    )

    @property
    def line_total(self):
        """quantity * unit_price."""
        return self.unit_price * self.quantity
