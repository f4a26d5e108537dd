import logging

from app.recommendation.repository import AlbumRepository
from app.recommendation.schema import AnalyzeMediaRequest, RecommendationResponse
from app.recommendation.services.clustering import RecommendationClusterer
from app.utils.performance import monitored

logger = logging.getLogger(__name__)


class RecommendationService:
    def __init__(self, album_repository: AlbumRepository, clusterer: RecommendationClusterer):
        self.album_repository = album_repository
        self.clusterer = clusterer

    async def analyze_and_recommend(self, user_id: int, req: AnalyzeMediaRequest) -> RecommendationResponse:
        if not req.media_info_list:
            return RecommendationResponse(recommendations=[])

        with monitored("analyze_media") as monitor:
            albums = await self.album_repository.find_by_user_id_order_by_created_at_desc(user_id)
            recommendations = self.clusterer.analyze(req.media_info_list, albums)
        logger.info(f"User {user_id}: {monitor.report(count=len(req.media_info_list))}")

        return RecommendationResponse(recommendations=recommendations)
