from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship
from assistant_backend.core.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)

    # Optional profile fields, validated before write
    full_name = Column(String, nullable=True)
    phone = Column(String(10), nullable=True)
    date_of_birth = Column(String(10), nullable=True)  # MM/DD/YYYY

    is_verified = Column(Boolean, default=False, nullable=False)

    # Registration challenge
    two_factor_token = Column(String(6), nullable=True)
    two_factor_token_expires_at = Column(DateTime, nullable=True)
    two_factor_token_sent_at = Column(DateTime, nullable=True)

    # Password reset challenge
    reset_token = Column(String(6), nullable=True)
    reset_token_expires_at = Column(DateTime, nullable=True)
    reset_token_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    sessions = relationship("UserSession", back_populates="user")
