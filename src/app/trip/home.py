import asyncio
import logging
from typing import Optional, Sequence

from app.cluster.clusters.spatial import SpatialCluster
from app.common.models import GeoPoint, HomeLocation, MediaWithLocation
from app.config import TripDetectionConfig
from app.trip.geocoder import ReverseGeocoder

logger = logging.getLogger(__name__)


class HomeLocationResolver:
    def __init__(self, geocoder: ReverseGeocoder, config: Optional[TripDetectionConfig] = None):
        self.geocoder = geocoder
        self.config = config or TripDetectionConfig()
        self.clusterer = SpatialCluster(self.config.home_cluster_radius_m)

    def resolve(
        self,
        stored: Optional[HomeLocation],
        media: Sequence[MediaWithLocation],
    ) -> Optional[HomeLocation]:
        """The stored home, else one inferred from ``media``. Nothing is persisted."""
        if stored is not None:
            return stored
        return self.auto_detect(media)

    def auto_detect(self, media: Sequence[MediaWithLocation]) -> Optional[HomeLocation]:
        """Center of the largest 1 km cluster, i.e. where most pictures were taken."""
        if not media:
            return None

        clusters = self.clusterer.cluster(media)
        # max() keeps the first cluster on ties.
        largest = max(clusters, key=lambda c: c.size)
        logger.info(
            f"Auto-detected home at ({largest.center_lat:.5f}, {largest.center_lng:.5f}) "
            f"from {largest.size}/{len(media)} items"
        )
        return HomeLocation(point=largest.center, address=None, is_auto_detected=True)

    async def build_manual(self, lat: float, lng: float) -> HomeLocation:
        try:
            address = await self.geocoder.address_for(lat, lng)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Home address lookup failed for ({lat}, {lng}): {e}")
            address = None
        return HomeLocation(point=GeoPoint(lat, lng), address=address, is_auto_detected=False)
