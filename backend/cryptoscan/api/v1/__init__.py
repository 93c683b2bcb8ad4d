"""
API v1 Router

All API endpoints for the frontend.
"""

from fastapi import APIRouter

from cryptoscan.api.v1.endpoints import crypto

router = APIRouter()

# Include all endpoint routers
router.include_router(crypto.router, prefix="/crypto", tags=["Crypto Analysis"])
