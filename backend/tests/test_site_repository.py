"""
Site repository selection modes, ordering and pagination.
Every test runs against both the static and the SQL store.
"""
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from sitedirectory.core.exceptions import SiteNotFound
from sitedirectory.services.domain import Bounds, SiteFilters
from sitedirectory.services.site_repository import SiteRepository
from sitedirectory.utils.geo import distance_miles

from conftest import CENTER_LAT, CENTER_LNG

MONDAY_NOON = datetime(2026, 10, 19, 12, 0, tzinfo=ZoneInfo("America/Chicago"))

VIEWPORT = Bounds(north=47, south=46, east=-94, west=-95)


@pytest.fixture()
def repo(store):
    return SiteRepository(store, clock=lambda: MONDAY_NOON)


def ids(sites):
    return [s.site_id for s in sites]


# ===================== DEFAULT MODE =====================


def test_default_returns_active_sites_by_name(repo):
    result = repo.search(SiteFilters())
    assert ids(result.sites) == [3, 6, 1, 2, 5, 4]
    assert result.total == 6
    assert result.limit == 100
    assert result.offset == 0


def test_inactive_sites_never_returned(repo):
    filter_sets = [
        SiteFilters(),
        SiteFilters(search="closed"),
        SiteFilters(bounds=VIEWPORT),
        SiteFilters(lat=46.71, lng=-94.71, distance=1),
    ]
    for filters in filter_sets:
        sites = repo.query_sites(filters)
        assert all(s.is_active for s in sites)
        assert 7 not in ids(sites)


def test_pagination_slices_sorted_list(repo):
    result = repo.search(SiteFilters(limit=2, offset=2))
    assert ids(result.sites) == [1, 2]
    assert result.total == 6
    assert (result.limit, result.offset) == (2, 2)


def test_offset_past_end_is_empty(repo):
    result = repo.search(SiteFilters(offset=50))
    assert result.sites == []
    assert result.total == 6


def test_no_match_returns_empty(repo):
    assert repo.query_sites(SiteFilters(search="no such site")) == []


# ===================== VIEWPORT MODE =====================


def test_viewport_returns_sites_inside_box_by_name(repo):
    result = repo.search(SiteFilters(bounds=VIEWPORT))
    assert ids(result.sites) == [3, 1, 2, 4]
    for site in result.sites:
        assert VIEWPORT.south <= site.latitude <= VIEWPORT.north
        assert VIEWPORT.west <= site.longitude <= VIEWPORT.east


def test_viewport_is_not_paginated(repo):
    result = repo.search(SiteFilters(bounds=VIEWPORT, limit=1, offset=1))
    assert len(result.sites) == 4
    assert result.total == 4
    assert result.limit is None
    assert result.offset is None


def test_viewport_edges_are_inclusive(repo):
    bounds = Bounds(north=46.5, south=46.5, east=-94.5, west=-94.5)
    assert ids(repo.query_sites(SiteFilters(bounds=bounds))) == [4]


def test_viewport_takes_precedence_over_radius(repo):
    filters = SiteFilters(bounds=VIEWPORT, lat=CENTER_LAT, lng=CENTER_LNG, distance=1)
    assert ids(repo.query_sites(filters)) == [3, 1, 2, 4]


def test_viewport_with_attribute_filters(repo):
    filters = SiteFilters(bounds=VIEWPORT, gambling_types=["Pull-Tabs"])
    assert ids(repo.query_sites(filters)) == [1, 2, 4]


# ===================== RADIUS MODE =====================


def test_radius_includes_9_9_and_excludes_10_5_miles(repo):
    sites = repo.query_sites(SiteFilters(lat=CENTER_LAT, lng=CENTER_LNG, distance=10))
    assert ids(sites) == [1, 2]


def test_radius_sorted_by_distance(repo):
    filters = SiteFilters(lat=CENTER_LAT, lng=CENTER_LNG, distance=25)
    sites = repo.query_sites(filters)
    distances = [distance_miles(CENTER_LAT, CENTER_LNG, s.latitude, s.longitude) for s in sites]
    assert ids(sites) == [1, 2, 3, 4]
    assert distances == sorted(distances)
    assert all(d <= 25 for d in distances)


def test_radius_excludes_ungeocoded_sites(repo):
    filters = SiteFilters(lat=CENTER_LAT, lng=CENTER_LNG, distance=500)
    sites = repo.query_sites(filters)
    assert 6 not in ids(sites)
    assert ids(sites)[-1] == 5


def test_radius_is_paginated(repo):
    filters = SiteFilters(lat=CENTER_LAT, lng=CENTER_LNG, distance=25, limit=2, offset=1)
    result = repo.search(filters)
    assert ids(result.sites) == [2, 3]
    assert result.total == 4


def test_lat_lng_without_distance_is_default_mode(repo):
    sites = repo.query_sites(SiteFilters(lat=CENTER_LAT, lng=CENTER_LNG))
    assert ids(sites) == [3, 6, 1, 2, 5, 4]


# ===================== OTHER =====================


def test_open_now_uses_clock(repo, store):
    assert ids(repo.query_sites(SiteFilters(open_now=True))) == [1]

    closed_repo = SiteRepository(store, clock=lambda: datetime(2026, 10, 20, 12, 0))
    assert closed_repo.query_sites(SiteFilters(open_now=True)) == []


def test_identical_queries_are_idempotent(repo):
    filters = SiteFilters(lat=CENTER_LAT, lng=CENTER_LNG, distance=25, search="a")
    assert repo.query_sites(filters) == repo.query_sites(filters)


def test_get_site(repo):
    site = repo.get_site(2)
    assert site.site_name == "Cedar Lounge"
    assert site.gambling_types_inferred == "Pull-Tabs"
    assert site.full_address == ", Backus, MN"


def test_get_site_not_found(repo):
    with pytest.raises(SiteNotFound):
        repo.get_site(999)


def test_list_cities(repo):
    assert repo.list_cities() == ["Backus", "Duluth", "Hackensack", "Pine River", "Walker"]
