import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock.database import Base


class UnitOfMeasure(str, PyEnum):
    WEIGHT = "weight"
    UNIT = "unit"


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    description: Mapped[str] = mapped_column(String, default="")
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    unit_of_measure: Mapped[str] = mapped_column(
        Enum(UnitOfMeasure, values_callable=lambda x: [e.value for e in x]),
        default=UnitOfMeasure.UNIT,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    inventory: Mapped["InventoryRecord"] = relationship(
        "InventoryRecord", back_populates="product", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def quantity(self) -> int:
        return self.inventory.quantity if self.inventory else 0


# Avoid circular import — InventoryRecord is in stock.models.inventory
from stock.models.inventory import InventoryRecord  # noqa: E402, F401
