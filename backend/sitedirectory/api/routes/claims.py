"""
Claim API endpoints.

Operators claim site listings here. The caller identity comes from the auth
provider; anonymous callers get a 401 before the claim service is touched.
"""

import logging
from typing import Any, Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from sitedirectory.api.deps import get_claim_service, get_current_user, require_user
from sitedirectory.core.exceptions import InvalidRequest, NotAuthenticated
from sitedirectory.services.claims import ClaimService
from sitedirectory.services.domain import ClaimWithSite, CurrentUser, OperatorSite

logger = logging.getLogger(__name__)

router = APIRouter(tags=["claims"])

AUTO_APPROVED_MESSAGE = "Claim approved! Your name matches the gambling manager on file."
PENDING_MESSAGE = "Claim submitted for review. We will verify your ownership and get back to you."


# =============================================================================
# Request/Response Models
# =============================================================================

class ClaimCreate(BaseModel):
    """Request model for claiming a site."""
    siteId: Optional[Any] = None
    notes: Optional[str] = None


def _parse_site_id(value: Any) -> int:
    """Site id from the request body; checked only after the caller is known."""
    if value is None or value == "" or value == 0:
        raise InvalidRequest("Site ID is required")
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise InvalidRequest("Invalid siteId: expected an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequest("Invalid siteId: expected an integer")


class ClaimSummary(BaseModel):
    id: int
    status: str
    autoApproved: bool


class ClaimCreatedResponse(BaseModel):
    message: str
    claim: ClaimSummary


class ClaimListResponse(BaseModel):
    claims: List[ClaimWithSite]


class OperatorSiteListResponse(BaseModel):
    sites: List[OperatorSite]


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/claims", response_model=ClaimCreatedResponse, status_code=201)
def create_claim(
    body: ClaimCreate,
    user: Optional[CurrentUser] = Depends(get_current_user),
    service: ClaimService = Depends(get_claim_service),
):
    """
    Claim a site listing for the current user.

    Auto-approved when the user's name matches the site's gambling manager;
    otherwise the claim waits for manual review.
    """
    if user is None:
        raise NotAuthenticated("Unauthorized. Please sign in to claim a listing.")
    site_id = _parse_site_id(body.siteId)

    claim = service.submit_claim(
        site_id=site_id,
        user_id=user.id,
        claimant_name=user.name,
        notes=body.notes,
    )

    return ClaimCreatedResponse(
        message=AUTO_APPROVED_MESSAGE if claim.auto_approved else PENDING_MESSAGE,
        claim=ClaimSummary(id=claim.id, status=claim.status.value, autoApproved=claim.auto_approved),
    )


@router.get("/claims", response_model=ClaimListResponse)
def list_claims(
    user: CurrentUser = Depends(require_user),
    service: ClaimService = Depends(get_claim_service),
):
    """All claims of the current user, newest first."""
    return ClaimListResponse(claims=service.list_claims_for_user(user.id))


@router.get("/operator/sites", response_model=OperatorSiteListResponse)
def list_operator_sites(
    user: CurrentUser = Depends(require_user),
    service: ClaimService = Depends(get_claim_service),
):
    """Sites the current user has claimed, with listing and claim status."""
    return OperatorSiteListResponse(sites=service.list_operator_sites(user.id))
