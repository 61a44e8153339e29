import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String

from shared.config.database import Base, utcnow


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    QUALITY_CHECK = "quality_check"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_code = Column(String(32), unique=True, nullable=False, index=True) # BB-ORD-123456
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    main_baker_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    # Never set without main_baker_id
    junior_baker_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    status = Column(
        Enum(OrderStatus, name="order_status", values_callable=lambda states: [s.value for s in states]),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    total_amount = Column(Numeric(10, 2), nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
