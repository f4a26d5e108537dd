from api.endpoints import recommendation
from fastapi import APIRouter

api_router = APIRouter()
api_router.include_router(recommendation.router, prefix="/recommendations", tags=["Trip Recommendations"])
