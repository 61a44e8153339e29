import enum

from sqlalchemy import Column, DateTime, Enum, Integer, String

from shared.config.database import Base, utcnow


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    JUNIOR_BAKER = "junior_baker"
    MAIN_BAKER = "main_baker"
    ADMIN = "admin"


user_role_enum = Enum(UserRole, name="user_role", values_callable=lambda roles: [r.value for r in roles])


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    role = Column(user_role_enum, nullable=False, default=UserRole.CUSTOMER)
    created_at = Column(DateTime(timezone=True), default=utcnow)
