import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from shared.config.database import Base, utcnow


class ParticipantRole(str, enum.Enum):
    CUSTOMER = "customer"
    JUNIOR_BAKER = "junior_baker"
    MAIN_BAKER = "main_baker"


class ChatParticipant(Base):
    """Who may read and post in an order's chat. Rows are only ever added."""
    __tablename__ = "chat_participants"
    __table_args__ = (
        UniqueConstraint("order_id", "user_id", name="uq_chat_participants_order_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    role = Column(String(32), nullable=False) # ParticipantRole value
    joined_at = Column(DateTime(timezone=True), default=utcnow)
