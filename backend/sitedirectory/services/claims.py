"""
Claim Service

Creates site claims and enforces:
- at most one pending or approved claim per (site, user)
- at most one approved claim per site

A claim whose claimant name matches the site's recorded gambling manager is
approved on creation and moves the site to the `standard` listing status in
the same transaction. Everything else waits as `pending` for manual review.
"""

import logging
from typing import List, Optional

from ..core.exceptions import (
    SiteNotFound,
    DuplicatePendingClaim,
    AlreadyClaimedBySelf,
    AlreadyClaimedByOther,
)
from ..models.site import ListingStatus
from ..models.claim import ClaimStatus, VerificationMethod
from .domain import Claim, ClaimWithSite, OperatorSite
from .site_store import SiteStore

logger = logging.getLogger(__name__)


def computes_manager_match(claimant_name: Optional[str], manager_name: Optional[str]) -> bool:
    """Loose name match between a claimant and the site's gambling manager.

    Case-insensitive substring containment in either direction after trimming;
    false when either side is empty. Short names ("Al" vs "Alice") match too.
    """
    user_name = (claimant_name or "").strip().lower()
    manager = (manager_name or "").strip().lower()
    if not user_name or not manager:
        return False
    return user_name in manager or manager in user_name


class ClaimService:
    """Claim lifecycle over a `SiteStore`."""

    def __init__(self, store: SiteStore):
        self.store = store

    def submit_claim(
        self,
        site_id: int,
        user_id: int,
        claimant_name: Optional[str],
        notes: Optional[str] = None,
    ) -> Claim:
        """
        Create a claim on a site for a user.

        Raises:
            SiteNotFound: no site with `site_id`
            DuplicatePendingClaim: the user already has a pending claim on the site
            AlreadyClaimedBySelf: the user already owns the site
            AlreadyClaimedByOther: another user owns the site
            ClaimConflict: a concurrent claim won the race
        """
        with self.store.claim_transaction() as tx:
            site = tx.lock_site(site_id)
            if site is None:
                raise SiteNotFound()

            own_statuses = {c.status for c in tx.find_claims(site_id, user_id=user_id)}
            if ClaimStatus.PENDING in own_statuses:
                raise DuplicatePendingClaim()
            if ClaimStatus.APPROVED in own_statuses:
                raise AlreadyClaimedBySelf()
            if tx.find_claims(site_id, statuses=[ClaimStatus.APPROVED]):
                raise AlreadyClaimedByOther()

            manager_match = computes_manager_match(claimant_name, site.gambling_manager)
            claim = tx.insert_claim(
                site_id=site_id,
                user_id=user_id,
                status=ClaimStatus.APPROVED if manager_match else ClaimStatus.PENDING,
                verification_method=(
                    VerificationMethod.GAMBLING_MANAGER_MATCH if manager_match
                    else VerificationMethod.MANUAL_REVIEW
                ),
                gambling_manager_match=manager_match,
                notes=notes or None,
            )
            if manager_match:
                tx.update_site_status(site_id, ListingStatus.STANDARD)

        if manager_match:
            logger.info(f"Claim #{claim.id} auto-approved: user {user_id} manages site {site_id}")
        else:
            logger.info(f"Claim #{claim.id} pending review: user {user_id} on site {site_id}")
        return claim

    def list_claims_for_user(self, user_id: int) -> List[ClaimWithSite]:
        return self.store.list_claims_for_user(user_id)

    def list_operator_sites(self, user_id: int) -> List[OperatorSite]:
        return self.store.list_operator_sites(user_id)
