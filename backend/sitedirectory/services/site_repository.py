"""
Site Repository

Turns a `SiteFilters` into an ordered list of sites:

1. Selection, by the first mode that applies:
   - viewport (`bounds`): sites inside the box, by name, never paginated
   - radius (`lat`, `lng`, `distance`): bounding-box pre-filter, then exact
     haversine distance, nearest first
   - otherwise every active site, by name
2. Attribute filters (search, city, types, tab types, prices, e-tab system,
   open now), AND-composed.
3. limit/offset pagination, except in viewport mode.

Every call is read-only and holds no state between requests.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from ..core.config import settings
from ..core.exceptions import SiteNotFound
from ..utils.geo import BoundingBox, bounding_box, distance_miles
from .domain import Site, SiteFilters, SiteHours
from .site_store import SiteStore

logger = logging.getLogger(__name__)


@dataclass
class SiteQueryResult:
    """One page of matching sites. `limit`/`offset` are None for viewport queries."""
    sites: List[Site]
    total: int
    limit: Optional[int] = None
    offset: Optional[int] = None


def local_now() -> datetime:
    """Current time in the directory's regional zone."""
    return datetime.now(ZoneInfo(settings.LOCAL_TIMEZONE))


# =============================================================================
# Attribute predicates
# =============================================================================

def matches_search(site: Site, search: str) -> bool:
    needle = search.lower()
    return (
        needle in site.site_name.lower()
        or needle in site.organization_name.lower()
        or needle in site.city.lower()
    )


def is_open_at(hours: Optional[SiteHours], moment: datetime) -> bool:
    """Whether the site is open at `moment` (a local time).

    A missing entry for the weekday means closed. Hours whose close is before
    open (e.g. Friday 16:00-01:00) run past midnight, so the early hours of
    Saturday belong to Friday's entry. Equal open and close means all day.
    """
    if hours is None:
        return False
    now = moment.time().replace(tzinfo=None)

    today = hours.for_weekday(moment.weekday())
    if today is not None:
        opens, closes = today.open_time, today.close_time
        if opens == closes:
            return True
        if opens < closes and opens <= now < closes:
            return True
        if closes < opens and now >= opens:
            return True

    yesterday = hours.for_weekday((moment.weekday() - 1) % 7)
    if yesterday is not None and yesterday.close_time < yesterday.open_time:
        return now < yesterday.close_time
    return False


def apply_attribute_filters(sites: List[Site], filters: SiteFilters, now: datetime) -> List[Site]:
    if filters.search:
        sites = [s for s in sites if matches_search(s, filters.search)]

    if filters.city:
        city = filters.city.lower()
        sites = [s for s in sites if s.city.lower() == city]

    if filters.gambling_types:
        wanted = set(filters.gambling_types)
        sites = [s for s in sites if wanted.intersection(s.gambling_type_labels)]

    if filters.tab_types:
        sites = [s for s in sites if s.tab_type in filters.tab_types]

    if filters.pull_tab_prices:
        wanted_prices = set(filters.pull_tab_prices)
        sites = [s for s in sites if wanted_prices.intersection(s.pull_tab_prices)]

    if filters.etab_system:
        sites = [s for s in sites if s.etab_system == filters.etab_system]

    if filters.open_now:
        sites = [s for s in sites if is_open_at(s.hours, now)]

    return sites


def _by_name(site: Site):
    return (site.site_name, site.site_id)


# =============================================================================
# Repository
# =============================================================================

class SiteRepository:
    """Filtered, ordered site queries over a `SiteStore`."""

    def __init__(self, store: SiteStore, clock: Callable[[], datetime] = local_now):
        self.store = store
        self.clock = clock

    def _select(self, filters: SiteFilters) -> List[Site]:
        if filters.bounds is not None:
            b = filters.bounds
            box = BoundingBox(min_lat=b.south, max_lat=b.north, min_lng=b.west, max_lng=b.east)
            return sorted(self.store.query_sites_raw(box), key=_by_name)

        if filters.has_radius:
            box = bounding_box(filters.lat, filters.lng, filters.distance)
            ranked = []
            for site in self.store.query_sites_raw(box):
                dist = distance_miles(filters.lat, filters.lng, site.latitude, site.longitude)
                if dist <= filters.distance:
                    ranked.append((dist, site.site_id, site))
            ranked.sort(key=lambda r: (r[0], r[1]))
            return [site for _, _, site in ranked]

        return sorted(self.store.query_sites_raw(), key=_by_name)

    def search(self, filters: SiteFilters) -> SiteQueryResult:
        """Run a site query and return the requested page plus the total match count."""
        sites = apply_attribute_filters(self._select(filters), filters, self.clock())
        total = len(sites)

        if filters.bounds is not None:
            logger.debug(f"Viewport query matched {total} sites")
            return SiteQueryResult(sites=sites, total=total)

        page = sites[filters.offset:filters.offset + filters.limit]
        return SiteQueryResult(sites=page, total=total, limit=filters.limit, offset=filters.offset)

    def query_sites(self, filters: SiteFilters) -> List[Site]:
        return self.search(filters).sites

    def get_site(self, site_id: int) -> Site:
        site = self.store.get_site(site_id)
        if site is None:
            raise SiteNotFound()
        return site

    def list_cities(self) -> List[str]:
        return self.store.list_cities()
