from sitedirectory.services.site_store import SiteStore, ClaimTransaction
from sitedirectory.services.sql_store import SqlSiteStore
from sitedirectory.services.static_store import StaticSiteStore
from sitedirectory.services.site_repository import SiteRepository, SiteQueryResult
from sitedirectory.services.claims import ClaimService, computes_manager_match

__all__ = [
    "SiteStore",
    "ClaimTransaction",
    "SqlSiteStore",
    "StaticSiteStore",
    "SiteRepository",
    "SiteQueryResult",
    "ClaimService",
    "computes_manager_match",
]
