"""
Relational site store backed by SQLAlchemy.

One instance wraps one request-scoped `Session`. Store failures are logged and
re-raised as `StoreUnavailable`; they are never retried here.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional, List, Iterable

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session
from pydantic import ValidationError

from ..core.exceptions import ClaimConflict, StoreUnavailable
from ..models.site import GamblingSite, ListingStatus
from ..models.claim import SiteClaim, ClaimStatus, VerificationMethod
from ..models.user import User
from ..utils.geo import BoundingBox
from .domain import Site, SiteHours, Claim, ClaimWithSite, OperatorSite, CurrentUser, format_gambling_types
from .site_store import SiteStore, ClaimTransaction

logger = logging.getLogger(__name__)

# A stored row that fails validation counts as a store failure
_STORE_ERRORS = (OperationalError, InterfaceError, ValidationError)


def site_from_row(row: GamblingSite) -> Site:
    """Convert a `sites` row into a Site, filling display defaults."""
    return Site(
        site_id=row.id,
        site_name=row.site_name,
        organization_name=row.organization_name or "",
        gambling_manager=row.gambling_manager or "",
        street_address=row.street_address or "",
        city=row.city,
        state=row.state or "MN",
        zip_code=row.zip_code or "",
        latitude=float(row.latitude) if row.latitude is not None else None,
        longitude=float(row.longitude) if row.longitude is not None else None,
        license_number=row.license_number or "",
        gambling_types_inferred=format_gambling_types(row.gambling_types_inferred),
        gross_receipts=row.gross_receipts,
        net_receipts=row.net_receipts,
        fiscal_year=row.fiscal_year,
        phone=row.phone,
        website=row.website,
        hours=SiteHours.model_validate(row.hours) if row.hours else None,
        photos=row.photos or [],
        tab_type=row.tab_type,
        pull_tab_prices=row.pull_tab_prices or [],
        etab_system=row.etab_system,
        listing_status=row.listing_status or ListingStatus.UNCLAIMED,
        is_active=row.is_active if row.is_active is not None else True,
    )


@contextmanager
def _store_errors(action: str):
    try:
        yield
    except _STORE_ERRORS as e:
        logger.error(f"Site store failure while {action}: {e}")
        raise StoreUnavailable() from e


class _SqlClaimTransaction(ClaimTransaction):

    def __init__(self, db: Session):
        self.db = db
        self._locked: dict[int, GamblingSite] = {}

    def lock_site(self, site_id: int) -> Optional[Site]:
        # FOR UPDATE serializes concurrent claims on the same site (no-op on SQLite)
        row = (
            self.db.query(GamblingSite)
            .filter(GamblingSite.id == site_id)
            .with_for_update()
            .first()
        )
        if row is None:
            return None
        self._locked[site_id] = row
        return site_from_row(row)

    def find_claims(
        self,
        site_id: int,
        user_id: Optional[int] = None,
        statuses: Optional[Iterable[ClaimStatus]] = None,
    ) -> List[Claim]:
        query = self.db.query(SiteClaim).filter(SiteClaim.site_id == site_id)
        if user_id is not None:
            query = query.filter(SiteClaim.user_id == user_id)
        if statuses is not None:
            query = query.filter(SiteClaim.status.in_([s.value for s in statuses]))
        return [Claim.model_validate(row) for row in query.order_by(SiteClaim.id).all()]

    def insert_claim(
        self,
        site_id: int,
        user_id: int,
        status: ClaimStatus,
        verification_method: VerificationMethod,
        gambling_manager_match: bool,
        notes: Optional[str],
    ) -> Claim:
        row = SiteClaim(
            site_id=site_id,
            user_id=user_id,
            status=status.value,
            verification_method=verification_method.value,
            gambling_manager_match=gambling_manager_match,
            notes=notes,
            requested_at=datetime.now(timezone.utc),
        )
        self.db.add(row)
        self.db.flush()
        return Claim.model_validate(row)

    def update_site_status(self, site_id: int, status: ListingStatus) -> None:
        row = self._locked.get(site_id)
        if row is None:
            row = self.db.query(GamblingSite).filter(GamblingSite.id == site_id).one()
        row.listing_status = status.value
        self.db.flush()


class SqlSiteStore(SiteStore):
    """Site store over the `sites`, `site_claims` and `users` tables."""

    backend = "database"

    def __init__(self, db: Session):
        self.db = db

    def query_sites_raw(self, box: Optional[BoundingBox] = None) -> List[Site]:
        with _store_errors("querying sites"):
            query = self.db.query(GamblingSite).filter(GamblingSite.is_active.is_(True))
            if box is not None:
                query = query.filter(
                    GamblingSite.latitude.isnot(None),
                    GamblingSite.longitude.isnot(None),
                    GamblingSite.latitude >= box.min_lat,
                    GamblingSite.latitude <= box.max_lat,
                    GamblingSite.longitude >= box.min_lng,
                    GamblingSite.longitude <= box.max_lng,
                )
            rows = query.all()
            return [site_from_row(row) for row in rows]

    def get_site(self, site_id: int) -> Optional[Site]:
        with _store_errors("loading site"):
            row = self.db.query(GamblingSite).filter(GamblingSite.id == site_id).first()
            return site_from_row(row) if row else None

    def list_cities(self) -> List[str]:
        with _store_errors("listing cities"):
            rows = (
                self.db.query(GamblingSite.city)
                .filter(GamblingSite.is_active.is_(True), GamblingSite.city.isnot(None))
                .distinct()
                .order_by(GamblingSite.city)
                .all()
            )
        return [r[0] for r in rows]

    def get_user(self, user_id: int) -> Optional[CurrentUser]:
        with _store_errors("loading user"):
            user = self.db.query(User).filter(User.id == user_id).first()
            if user is None:
                return None
            return CurrentUser(id=user.id, name=user.name, email=user.email)

    def _claims_with_sites(self, user_id: int):
        return (
            self.db.query(SiteClaim, GamblingSite)
            .join(GamblingSite, SiteClaim.site_id == GamblingSite.id)
            .filter(SiteClaim.user_id == user_id)
            .order_by(SiteClaim.requested_at.desc(), SiteClaim.id.desc())
            .all()
        )

    def list_claims_for_user(self, user_id: int) -> List[ClaimWithSite]:
        with _store_errors("listing claims"):
            rows = self._claims_with_sites(user_id)
            return [
                ClaimWithSite(
                    **Claim.model_validate(claim).model_dump(),
                    site_name=site.site_name,
                    city=site.city,
                    street_address=site.street_address or "",
                )
                for claim, site in rows
            ]

    def list_operator_sites(self, user_id: int) -> List[OperatorSite]:
        with _store_errors("listing operator sites"):
            rows = self._claims_with_sites(user_id)
            return [
                OperatorSite(
                    id=site.id,
                    site_name=site.site_name,
                    city=site.city,
                    listing_status=site.listing_status or ListingStatus.UNCLAIMED,
                    claim_status=claim.status,
                    requested_at=claim.requested_at,
                    reviewed_at=claim.reviewed_at,
                )
                for claim, site in rows
            ]

    @contextmanager
    def claim_transaction(self):
        try:
            yield _SqlClaimTransaction(self.db)
            self.db.commit()
        except IntegrityError as e:
            # A concurrent writer won the race; the partial unique indexes rejected us
            self.db.rollback()
            logger.warning(f"Claim rejected by uniqueness constraint: {e.orig}")
            raise ClaimConflict() from e
        except _STORE_ERRORS as e:
            self.db.rollback()
            logger.error(f"Site store failure while creating claim: {e}")
            raise StoreUnavailable() from e
        except Exception:
            self.db.rollback()
            raise

    def ping(self) -> bool:
        try:
            self.db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection check failed: {e}")
            return False
