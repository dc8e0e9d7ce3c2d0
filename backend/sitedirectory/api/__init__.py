from fastapi import APIRouter
from sitedirectory.api.routes import (
    sites,
    claims,
)

api_router = APIRouter()

api_router.include_router(sites.router)
api_router.include_router(claims.router)
