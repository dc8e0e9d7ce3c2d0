from sqlalchemy import Column, Integer, String, Float, BigInteger, Boolean, DateTime, JSON, Index
from sqlalchemy.sql import func
from sitedirectory.core.database import Base
import enum


class ListingStatus(str, enum.Enum):
    """How (and whether) a site listing has been claimed."""
    UNCLAIMED = "unclaimed"
    STANDARD = "standard"
    PREMIUM = "premium"


class GamblingSite(Base):
    """Licensed gaming location with the operator-provided overlay."""

    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, index=True)

    # Descriptive
    site_name = Column(String(255), nullable=False)
    organization_name = Column(String(255))
    gambling_manager = Column(String(255))

    # Address fields
    street_address = Column(String(255))
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(2))
    zip_code = Column(String(10))

    # Coordinates (both set or both null)
    latitude = Column(Float)
    longitude = Column(Float)

    # Regulatory
    license_number = Column(String(50))
    gambling_types_inferred = Column(String(255))  # comma separated type codes

    # Financial (fiscal-year scoped)
    gross_receipts = Column(BigInteger)
    net_receipts = Column(BigInteger)
    fiscal_year = Column(String(20))

    # Operator-provided overlay, null until claimed and edited
    phone = Column(String(20))
    website = Column(String(500))
    hours = Column(JSON)  # {"monday": {"open": "11:00", "close": "23:00"}, ...}
    photos = Column(JSON)  # ordered list of URLs
    tab_type = Column(String(20))  # booth, behind_bar, machine
    pull_tab_prices = Column(JSON)  # subset of [1, 2, 3, 4, 5]
    etab_system = Column(String(20))  # pilot, 3_diamonds

    # Status
    listing_status = Column(String(20), nullable=False, default=ListingStatus.UNCLAIMED.value)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Metadata
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_sites_lat_lng', 'latitude', 'longitude'),
        Index('idx_sites_active_name', 'is_active', 'site_name'),
    )

    def __repr__(self):
        return f"<GamblingSite(id={self.id}, name={self.site_name}, city={self.city})>"
