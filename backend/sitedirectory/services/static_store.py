"""
In-memory site store built from the seed JSON document.

Used when no DATABASE_URL is configured and in tests. Claims and users live in
process memory; claim transactions are serialized by a lock and staged until
the transaction body completes, so a failed claim leaves no trace.
"""

import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List, Iterable

from ..core.exceptions import ClaimConflict
from ..models.site import ListingStatus
from ..models.claim import ClaimStatus, VerificationMethod
from ..utils.geo import BoundingBox
from .domain import Site, Claim, ClaimWithSite, OperatorSite, CurrentUser, format_gambling_types
from .site_store import SiteStore, ClaimTransaction

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (ClaimStatus.PENDING, ClaimStatus.APPROVED)


def site_from_seed(seed: dict, index: int) -> Site:
    """Convert one seed record; ids are assigned from the record position."""
    address = seed.get("address") or {}
    location = seed.get("location") or {}
    financial = seed.get("financial") or {}
    lat, lng = location.get("lat"), location.get("lng")
    if lat is None or lng is None:
        lat = lng = None

    return Site(
        site_id=index + 1,
        site_name=seed["site_name"],
        organization_name=seed.get("organization_name") or "",
        gambling_manager=seed.get("gambling_manager") or "",
        street_address=address.get("street") or "",
        city=address.get("city") or "",
        state=address.get("state") or "MN",
        zip_code=str(address.get("zip") or ""),
        latitude=lat,
        longitude=lng,
        license_number=str(seed.get("license_number") or ""),
        gambling_types_inferred=format_gambling_types(seed.get("gambling_types") or []),
        gross_receipts=financial.get("gross_receipts"),
        net_receipts=financial.get("net_receipts"),
        fiscal_year=financial.get("fiscal_year"),
        phone=seed.get("phone"),
        website=seed.get("website"),
        hours=seed.get("hours"),
        photos=seed.get("photos") or [],
        tab_type=seed.get("tab_type"),
        pull_tab_prices=seed.get("pull_tab_prices") or [],
        etab_system=seed.get("etab_system"),
        listing_status=seed.get("listing_status") or ListingStatus.UNCLAIMED,
        is_active=seed.get("is_active", True),
    )


class _StaticClaimTransaction(ClaimTransaction):

    def __init__(self, store: "StaticSiteStore"):
        self.store = store
        self._new_claims: List[Claim] = []
        self._status_updates: dict[int, ListingStatus] = {}

    def lock_site(self, site_id: int) -> Optional[Site]:
        return self.store._sites.get(site_id)

    def find_claims(
        self,
        site_id: int,
        user_id: Optional[int] = None,
        statuses: Optional[Iterable[ClaimStatus]] = None,
    ) -> List[Claim]:
        wanted = set(statuses) if statuses is not None else None
        return [
            c for c in self.store._claims + self._new_claims
            if c.site_id == site_id
            and (user_id is None or c.user_id == user_id)
            and (wanted is None or c.status in wanted)
        ]

    def insert_claim(
        self,
        site_id: int,
        user_id: int,
        status: ClaimStatus,
        verification_method: VerificationMethod,
        gambling_manager_match: bool,
        notes: Optional[str],
    ) -> Claim:
        claim = Claim(
            id=self.store._next_claim_id + len(self._new_claims),
            site_id=site_id,
            user_id=user_id,
            status=status,
            verification_method=verification_method,
            gambling_manager_match=gambling_manager_match,
            notes=notes,
            requested_at=datetime.now(timezone.utc),
        )
        self._new_claims.append(claim)
        return claim

    def update_site_status(self, site_id: int, status: ListingStatus) -> None:
        self._status_updates[site_id] = status

    def commit(self) -> None:
        """Apply staged writes after re-checking the uniqueness rules."""
        committed = list(self.store._claims)
        for claim in self._new_claims:
            for other in committed:
                if other.site_id != claim.site_id:
                    continue
                if claim.status == ClaimStatus.APPROVED and other.status == ClaimStatus.APPROVED:
                    raise ClaimConflict()
                if (other.user_id == claim.user_id
                        and claim.status in _OPEN_STATUSES and other.status in _OPEN_STATUSES):
                    raise ClaimConflict()
            committed.append(claim)

        self.store._claims = committed
        self.store._next_claim_id += len(self._new_claims)
        for site_id, status in self._status_updates.items():
            site = self.store._sites[site_id]
            self.store._sites[site_id] = site.model_copy(update={"listing_status": status})


class StaticSiteStore(SiteStore):
    """Site store over a fixed in-memory dataset."""

    backend = "static"

    def __init__(self, sites: Iterable[Site] = (), users: Iterable[CurrentUser] = ()):
        self._sites: dict[int, Site] = {s.site_id: s for s in sites}
        self._users: dict[int, CurrentUser] = {u.id: u for u in users}
        self._claims: List[Claim] = []
        self._next_claim_id = 1
        self._lock = threading.Lock()

    @classmethod
    def from_seed_file(cls, path) -> "StaticSiteStore":
        """Load the seed document. A missing, unreadable or malformed file gives an empty store."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            sites = [site_from_seed(seed, i) for i, seed in enumerate(data.get("sites", []))]
            users = [CurrentUser.model_validate(u) for u in data.get("users", [])]
        except (OSError, ValueError, KeyError) as e:
            # pydantic's ValidationError is a ValueError
            logger.error(f"Error loading sites seed data from {path}: {e!r}")
            return cls()

        logger.info(f"Loaded {len(sites)} sites from {path}")
        return cls(sites, users)

    def query_sites_raw(self, box: Optional[BoundingBox] = None) -> List[Site]:
        sites = [s for s in self._sites.values() if s.is_active]
        if box is not None:
            sites = [s for s in sites if s.is_geocoded and box.contains(s.latitude, s.longitude)]
        return sites

    def get_site(self, site_id: int) -> Optional[Site]:
        return self._sites.get(site_id)

    def list_cities(self) -> List[str]:
        return sorted({s.city for s in self._sites.values() if s.is_active and s.city})

    def get_user(self, user_id: int) -> Optional[CurrentUser]:
        return self._users.get(user_id)

    def _user_claims(self, user_id: int) -> List[Claim]:
        claims = [c for c in self._claims if c.user_id == user_id]
        return sorted(claims, key=lambda c: (c.requested_at, c.id), reverse=True)

    def list_claims_for_user(self, user_id: int) -> List[ClaimWithSite]:
        result = []
        for claim in self._user_claims(user_id):
            site = self._sites[claim.site_id]
            result.append(ClaimWithSite(
                **claim.model_dump(),
                site_name=site.site_name,
                city=site.city,
                street_address=site.street_address,
            ))
        return result

    def list_operator_sites(self, user_id: int) -> List[OperatorSite]:
        result = []
        for claim in self._user_claims(user_id):
            site = self._sites[claim.site_id]
            result.append(OperatorSite(
                id=site.site_id,
                site_name=site.site_name,
                city=site.city,
                listing_status=site.listing_status,
                claim_status=claim.status,
                requested_at=claim.requested_at,
                reviewed_at=claim.reviewed_at,
            ))
        return result

    @contextmanager
    def claim_transaction(self):
        with self._lock:
            tx = _StaticClaimTransaction(self)
            yield tx
            tx.commit()
