# pos_edge/db/models/products.py
import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB

from pos_edge.db.base import Base, utcnow


class Product(Base):
    __tablename__ = "products"

    """A sellable product and its on-hand quantity at one branch.

    Catalog data (name, category, price, cost, variants) and inventory
    (stock, min_stock) live on the same row. ``variants`` is an ordered list
    of ``{"name": str, "price": int}`` add-ons whose price is added to the
    unit price. ``min_stock`` only drives the low-stock flag.
    """

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    branch_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=False, index=True)

    # unique per branch by convention only
    sku = Column(String, nullable=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default="Lainnya")

    price = Column(Integer, nullable=False, default=0)
    cost = Column(Integer, nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    variants = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_products_branch_sku", "branch_id", "sku"),
    )
