"""
Request-scoped dependencies.

The store is chosen once from configuration: a SQLAlchemy session per request
when DATABASE_URL is set, otherwise the process-wide static dataset.
"""

import logging
from functools import lru_cache
from typing import Iterator, Optional

from fastapi import Depends, Request

from sitedirectory.core.config import settings
from sitedirectory.core.database import get_session_local
from sitedirectory.core.exceptions import NotAuthenticated
from sitedirectory.services.domain import CurrentUser
from sitedirectory.services.site_store import SiteStore
from sitedirectory.services.sql_store import SqlSiteStore
from sitedirectory.services.static_store import StaticSiteStore
from sitedirectory.services.site_repository import SiteRepository
from sitedirectory.services.claims import ClaimService

logger = logging.getLogger(__name__)


@lru_cache
def get_static_store() -> StaticSiteStore:
    logger.info(f"DATABASE_URL not set, serving sites from {settings.SEED_DATA_PATH}")
    return StaticSiteStore.from_seed_file(settings.SEED_DATA_PATH)


def get_site_store() -> Iterator[SiteStore]:
    """Dependency to get the site store for one request."""
    if not settings.uses_database:
        yield get_static_store()
        return

    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield SqlSiteStore(db)
    finally:
        db.close()


def get_site_repository(store: SiteStore = Depends(get_site_store)) -> SiteRepository:
    return SiteRepository(store)


def get_claim_service(store: SiteStore = Depends(get_site_store)) -> ClaimService:
    return ClaimService(store)


def get_current_user(
    request: Request,
    store: SiteStore = Depends(get_site_store),
) -> Optional[CurrentUser]:
    """Resolve the caller identity set by the auth provider, or None."""
    raw_id = request.headers.get(settings.USER_ID_HEADER)
    if not raw_id or not raw_id.strip().isdigit():
        return None
    return store.get_user(int(raw_id))


def require_user(user: Optional[CurrentUser] = Depends(get_current_user)) -> CurrentUser:
    if user is None:
        raise NotAuthenticated()
    return user
