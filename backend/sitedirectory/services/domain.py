"""
Domain values shared by the site repository, the claim service and the stores.

Rows from either store are converted into these models once, and the API layer
decodes query parameters into a `SiteFilters` once; nothing downstream works
with raw dicts.
"""

from datetime import datetime, time
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from ..models.site import ListingStatus
from ..models.claim import ClaimStatus, VerificationMethod


# =============================================================================
# Enumerations and labels
# =============================================================================

class TabType(str, Enum):
    """Where pull-tabs are sold at a site."""
    BOOTH = "booth"
    BEHIND_BAR = "behind_bar"
    MACHINE = "machine"


class EtabSystem(str, Enum):
    """Electronic pull-tab vendor."""
    PILOT = "pilot"
    THREE_DIAMONDS = "3_diamonds"


PULL_TAB_PRICES = (1, 2, 3, 4, 5)

GAMBLING_TYPE_LABELS = {
    "pull_tabs": "Pull-Tabs",
    "e_tabs": "E-Tabs",
    "bingo": "Bingo",
    "e_bingo": "Electronic Bingo",
    "tipboards": "Tipboards",
    "paddlewheels": "Paddlewheels",
    "raffles": "Raffles",
}

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def format_gambling_type(code: str) -> str:
    """Display label for a type code; unknown codes pass through unchanged."""
    code = code.strip()
    return GAMBLING_TYPE_LABELS.get(code, code)


def format_gambling_types(codes) -> str:
    """Build the display string from a comma separated code string or a list of codes."""
    if not codes:
        return ""
    if isinstance(codes, str):
        codes = codes.split(",")
    return ", ".join(format_gambling_type(c) for c in codes if c.strip())


# =============================================================================
# Site
# =============================================================================

class DayHours(BaseModel):
    """Opening hours for one weekday, as "HH:MM" strings."""
    open: str
    close: str

    @field_validator("open", "close")
    @classmethod
    def _check_time(cls, value: str) -> str:
        time.fromisoformat(value)
        return value

    @property
    def open_time(self) -> time:
        return time.fromisoformat(self.open)

    @property
    def close_time(self) -> time:
        return time.fromisoformat(self.close)


class SiteHours(BaseModel):
    """Per-weekday hours; a missing day means the site is closed that day."""
    monday: Optional[DayHours] = None
    tuesday: Optional[DayHours] = None
    wednesday: Optional[DayHours] = None
    thursday: Optional[DayHours] = None
    friday: Optional[DayHours] = None
    saturday: Optional[DayHours] = None
    sunday: Optional[DayHours] = None

    def for_weekday(self, weekday: int) -> Optional[DayHours]:
        """Hours for `datetime.weekday()` (0 = Monday)."""
        return getattr(self, WEEKDAYS[weekday])


class Site(BaseModel):
    """A licensed gaming location."""
    site_id: int
    site_name: str
    organization_name: str = ""
    gambling_manager: str = ""

    street_address: str = ""
    city: str
    state: str = "MN"
    zip_code: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    license_number: str = ""
    gambling_types_inferred: str = ""

    gross_receipts: Optional[int] = None
    net_receipts: Optional[int] = None
    fiscal_year: Optional[str] = None

    # Operator-provided overlay
    phone: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[SiteHours] = None
    photos: List[str] = []
    tab_type: Optional[TabType] = None
    pull_tab_prices: List[int] = []
    etab_system: Optional[EtabSystem] = None

    listing_status: ListingStatus = ListingStatus.UNCLAIMED
    is_active: bool = True

    @computed_field
    @property
    def full_address(self) -> str:
        return f"{self.street_address}, {self.city}, {self.state} {self.zip_code}".strip()

    @property
    def is_geocoded(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def gambling_type_labels(self) -> List[str]:
        if not self.gambling_types_inferred:
            return []
        return self.gambling_types_inferred.split(", ")


# =============================================================================
# Query descriptor
# =============================================================================

class Bounds(BaseModel):
    """Map viewport, inclusive on every edge."""
    north: float = Field(..., ge=-90, le=90)
    south: float = Field(..., ge=-90, le=90)
    east: float = Field(..., ge=-180, le=180)
    west: float = Field(..., ge=-180, le=180)

    @model_validator(mode="after")
    def _check_order(self):
        if self.south > self.north:
            raise ValueError("south must not be greater than north")
        if self.west > self.east:
            raise ValueError("west must not be greater than east")
        return self


class SiteFilters(BaseModel):
    """Site query descriptor, decoded and validated once at the API boundary."""
    search: Optional[str] = None
    city: Optional[str] = None
    gambling_types: List[str] = []
    tab_types: List[TabType] = []
    pull_tab_prices: List[int] = []
    etab_system: Optional[EtabSystem] = None
    open_now: bool = False

    # Radius search
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    distance: Optional[float] = Field(None, ge=0)  # miles

    # Viewport search (takes precedence over radius, never paginated)
    bounds: Optional[Bounds] = None

    limit: int = Field(100, ge=1)
    offset: int = Field(0, ge=0)

    @field_validator("gambling_types")
    @classmethod
    def _normalize_types(cls, value: List[str]) -> List[str]:
        # Accept type codes as well as display labels
        return [format_gambling_type(v) for v in value if v.strip()]

    @field_validator("pull_tab_prices")
    @classmethod
    def _check_prices(cls, value: List[int]) -> List[int]:
        for price in value:
            if price not in PULL_TAB_PRICES:
                raise ValueError(f"pull-tab price must be one of {list(PULL_TAB_PRICES)}, got {price}")
        return value

    @property
    def has_radius(self) -> bool:
        return self.lat is not None and self.lng is not None and self.distance is not None


# =============================================================================
# Claims and identities
# =============================================================================

class Claim(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    site_id: int
    user_id: int
    status: ClaimStatus
    verification_method: VerificationMethod
    gambling_manager_match: bool
    notes: Optional[str] = None
    requested_at: datetime
    reviewed_at: Optional[datetime] = None

    @property
    def auto_approved(self) -> bool:
        return self.gambling_manager_match


class ClaimWithSite(Claim):
    """A claim joined with a summary of its site."""
    site_name: str
    city: str
    street_address: str = ""


class OperatorSite(BaseModel):
    """A site as seen from the operator dashboard."""
    id: int
    site_name: str
    city: str
    listing_status: ListingStatus
    claim_status: ClaimStatus
    requested_at: datetime
    reviewed_at: Optional[datetime] = None


class CurrentUser(BaseModel):
    """Identity supplied by the auth provider."""
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
