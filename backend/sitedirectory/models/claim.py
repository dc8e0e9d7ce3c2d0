"""
Site claim model.

A claim is a user's request to take ownership of a site listing. Claims are
never deleted; a rejected claim stays on record and the user may claim again.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, text
from enum import Enum

from sitedirectory.core.database import Base


class ClaimStatus(str, Enum):
    """Claim status values. `approved` and `rejected` are terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VerificationMethod(str, Enum):
    """How ownership is verified, fixed when the claim is created."""
    GAMBLING_MANAGER_MATCH = "gambling_manager_match"
    MANUAL_REVIEW = "manual_review"


_APPROVED = text("status = 'approved'")
_OPEN = text("status IN ('pending', 'approved')")


class SiteClaim(Base):
    __tablename__ = "site_claims"

    id = Column(Integer, primary_key=True, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default=ClaimStatus.PENDING.value)
    verification_method = Column(String(30), nullable=False)
    gambling_manager_match = Column(Boolean, nullable=False, default=False)
    notes = Column(Text)

    requested_at = Column(DateTime(timezone=True), nullable=False)
    reviewed_at = Column(DateTime(timezone=True))

    __table_args__ = (
        # One approved owner per site
        Index(
            'uq_site_claims_approved_site', 'site_id',
            unique=True, sqlite_where=_APPROVED, postgresql_where=_APPROVED,
        ),
        # One open (pending or approved) claim per user and site
        Index(
            'uq_site_claims_open_user_site', 'site_id', 'user_id',
            unique=True, sqlite_where=_OPEN, postgresql_where=_OPEN,
        ),
    )

    def __repr__(self):
        return f"<SiteClaim(id={self.id}, site_id={self.site_id}, user_id={self.user_id}, status='{self.status}')>"
