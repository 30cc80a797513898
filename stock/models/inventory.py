import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock.database import Base


class MovementType(str, PyEnum):
    PURCHASE = "purchase"
    SALE = "sale"
    SALE_REVERSAL = "sale_reversal"


# Movement types that add to the on-hand quantity; everything else subtracts
CREDIT_TYPES = (MovementType.PURCHASE, MovementType.SALE_REVERSAL)


class InventoryRecord(Base):
    """Materialized on-hand quantity for one product."""

    __tablename__ = "inventory"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id: Mapped[str] = mapped_column(String, ForeignKey("products.id"), unique=True, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_update: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    product: Mapped["Product"] = relationship("Product", back_populates="inventory")

    @property
    def product_name(self) -> str:
        return self.product.name if self.product else ""


class InventoryMovement(Base):
    """Immutable ledger entry. Only ever inserted, through inventory_service."""

    __tablename__ = "inventory_movements"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    # Cleared when the product is deleted; product_name keeps the history readable
    product_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True
    )
    product_name: Mapped[str] = mapped_column(String, default="")
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    movement_type: Mapped[str] = mapped_column(
        Enum(MovementType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    related_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("sales.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.movement_type in CREDIT_TYPES else -self.quantity


from stock.models.product import Product  # noqa: E402, F401
from stock.models.sale import Sale  # noqa: E402, F401
