# drugstock/api/router.py
from fastapi import APIRouter

from drugstock.api import (
    routes_auth,
    routes_drug,
)

api_router = APIRouter()

# ---- Core
api_router.include_router(routes_auth.router, prefix="/auth", tags=["auth"])

# ---- Stock
api_router.include_router(routes_drug.router)
