import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import engine_config
from app.db.database import get_db
from app.recommendation.repository import AlbumRepository
from app.recommendation.schema import AnalyzeMediaRequest, RecommendationResponse
from app.recommendation.services.clustering import RecommendationClusterer
from app.recommendation.services.recommendation import RecommendationService
from core.dependencies import get_current_user_id

logger = logging.getLogger(__name__)
router = APIRouter()


def get_recommendation_service(db: AsyncSession = Depends(get_db)) -> RecommendationService:
    return RecommendationService(AlbumRepository(db), RecommendationClusterer(engine_config.recommendation))


@router.post("/analyze", response_model=RecommendationResponse)
async def analyze_media(
    req: AnalyzeMediaRequest,
    user_id: int = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_recommendation_service),
):
    """
    Group the client's media metadata into trips and suggest albums for them.
    """
    logger.info(f"📥 Analyze request from user {user_id}: {len(req.media_info_list)} media")
    return await service.analyze_and_recommend(user_id, req)
