"""Plan model — subscription tiers (seeded reference data)."""

from decimal import Decimal

from sqlalchemy import JSON, Boolean, Numeric, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from gymapp.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Plan(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A membership tier with its Stripe price."""

    __tablename__ = "plans"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    features: Mapped[list | None] = mapped_column(JSON, nullable=True)
    highlighted: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)
    stripe_price_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Plan(id={self.id}, name={self.name!r}, price={self.price} {self.currency})>"
