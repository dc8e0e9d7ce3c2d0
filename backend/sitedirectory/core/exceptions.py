"""
Domain errors for the site directory.

Each error carries the HTTP status it maps to and a user-facing message.
Claim conflicts are kept distinct so the UI can explain why a claim failed.
"""


class SiteDirectoryError(Exception):
    """Base class for all errors surfaced to API callers."""
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class StoreUnavailable(SiteDirectoryError):
    status_code = 500
    default_message = "Site store is unavailable"


class InvalidRequest(SiteDirectoryError):
    status_code = 400
    default_message = "Invalid request"


class NotAuthenticated(SiteDirectoryError):
    status_code = 401
    default_message = "Unauthorized"


class SiteNotFound(SiteDirectoryError):
    status_code = 404
    default_message = "Site not found"


class ClaimConflict(SiteDirectoryError):
    """A claim could not be created because of an existing claim."""
    status_code = 409
    default_message = "This site could not be claimed because of a conflicting claim"


class DuplicatePendingClaim(ClaimConflict):
    default_message = "You already have a pending claim for this site"


class AlreadyClaimedBySelf(ClaimConflict):
    default_message = "You have already claimed this site"


class AlreadyClaimedByOther(ClaimConflict):
    default_message = "This site has already been claimed by another user"
