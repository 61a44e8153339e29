import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)

from shared.config.database import Base, utcnow
from services.user_service.models import user_role_enum


class BakerTeam(Base):
    """
    Main baker -> junior baker membership.

    Rows are deactivated, never deleted. The partial unique index keeps at
    most one active membership per junior baker at the storage level.
    """
    __tablename__ = "baker_team"
    __table_args__ = (
        Index(
            "uq_baker_team_active_junior",
            "junior_baker_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    main_baker_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    junior_baker_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True), default=utcnow)
    is_active = Column(Boolean, nullable=False, default=True)


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BakerApplication(Base):
    __tablename__ = "baker_applications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    current_role = Column(user_role_enum, nullable=False)
    requested_role = Column(user_role_enum, nullable=False)
    # The main baker whose team a junior applicant wants to join
    main_baker_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    reason = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default=ApplicationStatus.PENDING.value)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
