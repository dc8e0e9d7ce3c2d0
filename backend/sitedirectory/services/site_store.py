"""
Site store capability.

The site repository and the claim service never talk to a database handle
directly; they are given a `SiteStore`. Two implementations exist:

- `SqlSiteStore` (sql_store.py): the relational store, via SQLAlchemy.
- `StaticSiteStore` (static_store.py): an in-memory dataset loaded from the
  seed JSON, used for offline development and tests.

Claim creation runs inside `claim_transaction()`: every read and write made
through the yielded `ClaimTransaction` is committed together or not at all.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, List, Iterable

from ..utils.geo import BoundingBox
from ..models.site import ListingStatus
from ..models.claim import ClaimStatus, VerificationMethod
from .domain import Site, Claim, ClaimWithSite, OperatorSite, CurrentUser


class ClaimTransaction(ABC):
    """Reads and writes that must be applied atomically when creating a claim."""

    @abstractmethod
    def lock_site(self, site_id: int) -> Optional[Site]:
        """Load a site (active or not) and hold it against concurrent claims."""

    @abstractmethod
    def find_claims(
        self,
        site_id: int,
        user_id: Optional[int] = None,
        statuses: Optional[Iterable[ClaimStatus]] = None,
    ) -> List[Claim]:
        """Claims for a site, optionally narrowed to one user and/or statuses."""

    @abstractmethod
    def insert_claim(
        self,
        site_id: int,
        user_id: int,
        status: ClaimStatus,
        verification_method: VerificationMethod,
        gambling_manager_match: bool,
        notes: Optional[str],
    ) -> Claim:
        ...

    @abstractmethod
    def update_site_status(self, site_id: int, status: ListingStatus) -> None:
        ...


class SiteStore(ABC):
    """Narrow read/write contract over sites, site claims and users."""

    backend: str = "unknown"

    @abstractmethod
    def query_sites_raw(self, box: Optional[BoundingBox] = None) -> List[Site]:
        """Active sites, unordered.

        With a box, only geocoded sites whose coordinates fall inside it
        (edges inclusive) are returned.
        """

    @abstractmethod
    def get_site(self, site_id: int) -> Optional[Site]:
        ...

    @abstractmethod
    def list_cities(self) -> List[str]:
        """Distinct cities of active sites, sorted."""

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[CurrentUser]:
        ...

    @abstractmethod
    def list_claims_for_user(self, user_id: int) -> List[ClaimWithSite]:
        """All claims of a user joined with their site, newest first."""

    @abstractmethod
    def list_operator_sites(self, user_id: int) -> List[OperatorSite]:
        """Sites a user has claimed, newest claim first."""

    @abstractmethod
    def claim_transaction(self) -> AbstractContextManager:
        """Context manager yielding a `ClaimTransaction`."""

    def ping(self) -> bool:
        """True when the store is reachable."""
        return True
