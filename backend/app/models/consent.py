"""
Marketing consent history.
Granting appends a row; revoking flips granted rows to "revoked".
Rows are never deleted so the history stays auditable.
"""
import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Enum as SQLEnum, Index

from app.models.base import Base, generate_uuid, utcnow


class ConsentStatus(str, enum.Enum):
    """Consent state of a record."""
    GRANTED = "granted"
    REVOKED = "revoked"


MARKETING_EMAILS = "marketing_emails"


class UserConsent(Base):
    """A consent decision with the text the user agreed to."""

    __tablename__ = "user_consents"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    consent_type = Column(String(50), nullable=False, default=MARKETING_EMAILS)
    status = Column(
        SQLEnum(ConsentStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    timestamp = Column(DateTime, nullable=False, default=utcnow)  # When the current status was set
    consent_method = Column(String(50), nullable=False, default="settings_toggle_button")
    consent_text = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_user_consents_user_type_status", "user_id", "consent_type", "status"),
    )

    def __repr__(self):
        return f"<UserConsent(user_id={self.user_id}, type={self.consent_type}, status={self.status})>"
