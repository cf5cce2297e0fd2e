import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Uuid

from pos_edge.db.base import Base, utcnow


class Transaction(Base):
    __tablename__ = "transactions"

    """Represents a single completed sale (receipt header) at a branch.

    A transaction aggregates one or more ``transaction_items`` rows and
    records the total, the payment method, the sale timestamp and the
    profile of the cashier that rang it up, when known.
    """

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    branch_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=False)
    profile_id = Column(String, nullable=True)

    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    payment_method = Column(String, nullable=False, default="Cash")
    total = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_transactions_branch_date", "branch_id", "date"),
    )
