"""
Test fixtures - a shared site dataset served by both store implementations,
plus a TestClient bound to the FastAPI app.
"""
from math import pi

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sitedirectory.core.database import Base
from sitedirectory.main import app
from sitedirectory.api.deps import get_site_store
from sitedirectory.models import GamblingSite, User
from sitedirectory.services.domain import CurrentUser
from sitedirectory.services.sql_store import SqlSiteStore, site_from_row
from sitedirectory.services.static_store import StaticSiteStore
from sitedirectory.utils.geo import EARTH_RADIUS_MILES

MILES_PER_DEGREE = EARTH_RADIUS_MILES * pi / 180

CENTER_LAT = 46.7
CENTER_LNG = -94.7


def north_of_center(miles: float) -> float:
    """Latitude `miles` due north of the center point."""
    return CENTER_LAT + miles / MILES_PER_DEGREE


SITE_RECORDS = [
    dict(
        id=1, site_name="Borderline Bar", organization_name="Pine River Lions",
        gambling_manager="John Smith", street_address="1 Main St", city="Pine River",
        zip_code="56474", latitude=CENTER_LAT, longitude=CENTER_LNG,
        license_number="1001", gambling_types_inferred="pull_tabs, bingo",
        tab_type="booth", pull_tab_prices=[1, 2], etab_system="pilot",
        hours={"monday": {"open": "11:00", "close": "23:00"},
               "friday": {"open": "16:00", "close": "01:00"}},
    ),
    dict(
        id=2, site_name="Cedar Lounge", organization_name="Backus Fire Relief",
        gambling_manager="Mary Jones", city="Backus",
        latitude=north_of_center(9.9), longitude=CENTER_LNG,
        gambling_types_inferred="pull_tabs", tab_type="behind_bar", pull_tab_prices=[3],
    ),
    dict(
        id=3, site_name="Aspen Inn", organization_name="Hackensack Hockey",
        gambling_manager="", city="Hackensack",
        latitude=north_of_center(10.5), longitude=CENTER_LNG,
        gambling_types_inferred="e_tabs", etab_system="3_diamonds",
    ),
    dict(
        id=4, site_name="Zephyr Hall", organization_name="Walker Legion",
        gambling_manager="Al Berg", city="Walker",
        latitude=46.5, longitude=-94.5,
        gambling_types_inferred="pull_tabs, raffles", tab_type="machine", pull_tab_prices=[5],
    ),
    dict(
        id=5, site_name="Depot Taproom", organization_name="Duluth Youth Soccer",
        gambling_manager="Pat Lee", city="Duluth",
        latitude=46.78, longitude=-92.1,
        gambling_types_inferred="pull_tabs",
    ),
    dict(
        id=6, site_name="Backwoods Pub", organization_name="Walker Snowmobile Club",
        gambling_manager="Chris Nord", city="Pine River",
        gambling_types_inferred="raffles",
    ),
    dict(
        id=7, site_name="Closed Lodge", organization_name="Pine River Lions",
        gambling_manager="John Smith", city="Pine River",
        latitude=46.71, longitude=-94.71,
        gambling_types_inferred="pull_tabs", is_active=False,
    ),
]

USER_RECORDS = [
    dict(id=1, name="john smith", email="john@example.com"),
    dict(id=2, name="Jane Doe", email="jane@example.com"),
    dict(id=3, name="Another Person", email="other@example.com"),
]


def _site_rows():
    return [
        GamblingSite(**{"state": "MN", "listing_status": "unclaimed", "is_active": True, **rec})
        for rec in SITE_RECORDS
    ]


@pytest.fixture()
def static_store():
    """In-memory store over the shared dataset."""
    sites = [site_from_row(row) for row in _site_rows()]
    users = [CurrentUser(**u) for u in USER_RECORDS]
    return StaticSiteStore(sites, users)


@pytest.fixture()
def db_session():
    """Fresh in-memory SQLite database for each test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()

    session.add_all(_site_rows())
    session.add_all([User(**u) for u in USER_RECORDS])
    session.commit()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def sql_store(db_session):
    return SqlSiteStore(db_session)


@pytest.fixture(params=["static", "sql"])
def store(request):
    """Runs the test once against each store implementation."""
    if request.param == "static":
        return request.getfixturevalue("static_store")
    return request.getfixturevalue("sql_store")


@pytest.fixture()
def client(store):
    """TestClient with the site store dependency overridden"""

    def override_get_site_store():
        yield store

    app.dependency_overrides[get_site_store] = override_get_site_store

    with TestClient(app) as tc:
        yield tc

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def _headers(user_id: int) -> dict:
        return {"X-User-Id": str(user_id)}
    return _headers
