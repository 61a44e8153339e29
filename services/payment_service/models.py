import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint

from shared.config.database import Base, utcnow


class BakerType(str, enum.Enum):
    JUNIOR_BAKER = "junior_baker"
    MAIN_BAKER = "main_baker"


class PaymentDistribution(Base):
    """
    One row per order whose revenue has been split.

    The primary key on order_id is the idempotency guard: claiming it is a
    single insert-if-absent, so two racing distributions cannot both win.
    """
    __tablename__ = "payment_distributions"

    order_id = Column(Integer, ForeignKey("orders.id"), primary_key=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    distributed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class BakerEarning(Base):
    __tablename__ = "baker_earnings"
    __table_args__ = (
        UniqueConstraint("order_id", "baker_type", name="uq_baker_earnings_order_role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(
        Integer, ForeignKey("payment_distributions.order_id"), nullable=False, index=True
    )
    baker_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    baker_type = Column(String(32), nullable=False) # BakerType value, role at time of payment
    amount = Column(Numeric(10, 2), nullable=False)
    percentage = Column(Numeric(5, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
