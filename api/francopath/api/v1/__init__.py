"""
API v1 router aggregation.
"""
from fastapi import APIRouter
from francopath.api.v1.endpoints import study, cards

api_router = APIRouter()

# Include all endpoint routers
# Note: Each router already defines its own prefix, so we don't add another one here
api_router.include_router(study.router)
api_router.include_router(cards.router)
