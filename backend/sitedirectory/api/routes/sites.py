"""
Site search API endpoints.

Query parameters are decoded into a `SiteFilters` here and nowhere else.
"""

import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ValidationError

from sitedirectory.api.deps import get_site_repository
from sitedirectory.core.config import settings
from sitedirectory.core.exceptions import InvalidRequest
from sitedirectory.services.domain import Site, SiteFilters, Bounds
from sitedirectory.services.site_repository import SiteRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sites", tags=["sites"])


class CityListResponse(BaseModel):
    cities: List[str]


def _split(value: Optional[str]) -> List[str]:
    """Split a comma separated query value, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _validation_message(e: ValidationError) -> str:
    err = e.errors()[0]
    field = ".".join(str(p) for p in err["loc"])
    return f"Invalid {field}: {err['msg']}" if field else err["msg"]


def build_filters(
    search: Optional[str] = None,
    city: Optional[str] = None,
    types: Optional[str] = None,
    tab_types: Optional[str] = None,
    pull_tab_prices: Optional[str] = None,
    etab_system: Optional[str] = None,
    open_now: bool = False,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    distance: Optional[float] = None,
    north: Optional[float] = None,
    south: Optional[float] = None,
    east: Optional[float] = None,
    west: Optional[float] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> SiteFilters:
    """Decode raw query values into a validated SiteFilters."""
    try:
        prices = [int(p) for p in _split(pull_tab_prices)]
    except ValueError:
        raise InvalidRequest("Invalid pullTabPrices: expected comma separated integers")

    try:
        # A partial viewport is ignored, not rejected
        bounds = None
        if None not in (north, south, east, west):
            bounds = Bounds(north=north, south=south, east=east, west=west)

        return SiteFilters(
            search=search or None,
            city=city or None,
            gambling_types=_split(types),
            tab_types=_split(tab_types),
            pull_tab_prices=prices,
            etab_system=etab_system or None,
            open_now=open_now,
            lat=lat,
            lng=lng,
            distance=distance,
            bounds=bounds,
            limit=limit if limit is not None else settings.DEFAULT_PAGE_LIMIT,
            offset=offset,
        )
    except ValidationError as e:
        raise InvalidRequest(_validation_message(e))


@router.get("")
def list_sites(
    search: Optional[str] = Query(None, description="Matches site, organization or city name"),
    city: Optional[str] = Query(None, description="Exact city (case-insensitive)"),
    types: Optional[str] = Query(None, description="Comma separated gambling types"),
    tab_types: Optional[str] = Query(None, alias="tabTypes", description="booth, behind_bar, machine"),
    pull_tab_prices: Optional[str] = Query(None, alias="pullTabPrices", description="Comma separated prices 1-5"),
    etab_system: Optional[str] = Query(None, alias="etabSystem", description="pilot or 3_diamonds"),
    open_now: bool = Query(False, alias="openNow"),
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    distance: Optional[float] = Query(None, description="Radius in miles"),
    north: Optional[float] = Query(None),
    south: Optional[float] = Query(None),
    east: Optional[float] = Query(None),
    west: Optional[float] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=settings.MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    repo: SiteRepository = Depends(get_site_repository),
):
    """
    Search sites.

    With north/south/east/west every site in the viewport is returned and
    limit/offset are ignored (and omitted from the response).
    """
    filters = build_filters(
        search=search,
        city=city,
        types=types,
        tab_types=tab_types,
        pull_tab_prices=pull_tab_prices,
        etab_system=etab_system,
        open_now=open_now,
        lat=lat,
        lng=lng,
        distance=distance,
        north=north,
        south=south,
        east=east,
        west=west,
        limit=limit,
        offset=offset,
    )
    result = repo.search(filters)

    response = {"sites": result.sites, "total": result.total}
    if result.limit is not None:
        response["limit"] = result.limit
        response["offset"] = result.offset
    return response


@router.get("/cities", response_model=CityListResponse)
def list_cities(repo: SiteRepository = Depends(get_site_repository)):
    """Cities that have at least one active site."""
    return CityListResponse(cities=repo.list_cities())


@router.get("/{site_id}", response_model=Site)
def get_site(site_id: int, repo: SiteRepository = Depends(get_site_repository)):
    """Get a single site by ID."""
    return repo.get_site(site_id)
