"""
User profile with a monthly credit allotment.
Authenticated via Firebase (firebase_uid).
Every generation debits a fixed number of credits from the balance.
"""
from sqlalchemy import Column, String, Integer, Index, DateTime, CheckConstraint

from app.models.base import Base, generate_uuid, utcnow


class User(Base):
    """User profile holding the credit balance."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    firebase_uid = Column(String(128), nullable=False, unique=True)  # Firebase user ID
    email = Column(String(255), nullable=True)  # Email from Firebase token
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    credits = Column(Integer, nullable=False, default=0)  # Current balance, never negative
    last_credit_reset = Column(DateTime, nullable=False, default=utcnow)  # Start of the current allotment

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_user_firebase_uid", "firebase_uid"),
        CheckConstraint("credits >= 0", name="ck_users_credits_non_negative"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, firebase_uid={self.firebase_uid}, credits={self.credits})>"
