import uuid

from sqlalchemy import Column, DateTime, String, Uuid

from pos_edge.db.base import Base, utcnow


class Account(Base):
    __tablename__ = "accounts"

    """A cooperative account, i.e. one physical branch of the shop.

    The branch id partitions products and transactions: every catalog read
    and every sale is scoped to exactly one account.
    """

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False, default="")
    phone = Column(String, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
