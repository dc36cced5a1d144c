"""
SQLAlchemy models for receipt persistence.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReceiptModel(Base):
    __tablename__ = "receipts"

    id = Column(String, primary_key=True, default=_new_id)
    store_name = Column(String, nullable=False, default="Unknown Store")
    date = Column(Date, nullable=False)
    total_amount = Column(Float, nullable=False)
    image_url = Column(String)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    items = relationship(
        "ReceiptItemModel",
        back_populates="receipt",
        order_by="ReceiptItemModel.position",
        cascade="all, delete-orphan",
    )

    def recompute_total(self) -> float:
        """Overwrite ``total_amount`` with the sum over the current items."""
        self.total_amount = sum(item.price * item.quantity for item in self.items)
        return self.total_amount


class ReceiptItemModel(Base):
    __tablename__ = "receipt_items"

    id = Column(String, primary_key=True, default=_new_id)
    receipt_id = Column(
        String, ForeignKey("receipts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    receipt = relationship("ReceiptModel", back_populates="items")
