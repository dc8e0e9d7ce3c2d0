from sitedirectory.models.site import GamblingSite, ListingStatus
from sitedirectory.models.claim import SiteClaim, ClaimStatus, VerificationMethod
from sitedirectory.models.user import User

__all__ = ["GamblingSite", "ListingStatus", "SiteClaim", "ClaimStatus", "VerificationMethod", "User"]
