import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB

from pos_edge.db.base import Base, utcnow


class TransactionItem(Base):
    __tablename__ = "transaction_items"

    """Represents one product-and-variant line within a transaction.

    A line item captures the product name, category, quantity, unit price
    (variant add-ons included), unit cost and the chosen variants at the time
    of sale so that history and reports do not depend on the mutable catalog.
    ``product_id`` is not a foreign key: deleting a product keeps its sales.
    """

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    transaction_id = Column(Uuid(as_uuid=True), ForeignKey("transactions.id"), nullable=False, index=True)
    line_number = Column(Integer, nullable=False, default=0)

    product_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    name = Column(String, nullable=True)
    category = Column(String, nullable=True)

    quantity = Column(Integer, nullable=False, default=1)
    price_at_sale = Column(Integer, nullable=False)
    cost_at_sale = Column(Integer, nullable=False, default=0)
    variants = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
