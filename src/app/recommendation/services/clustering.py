import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from app.cluster.clusters.base import Clusterer, seed_partition
from app.common.geo import haversine_km
from app.common.models import AlbumSummary
from app.config import RecommendationConfig
from app.recommendation.schema import MediaInfo, RecommendationItem
from app.schemas.enum import RecommendationType

logger = logging.getLogger(__name__)


@dataclass
class MediaCluster:
    center_latitude: Optional[float]
    center_longitude: Optional[float]
    start_date: Optional[date]
    end_date: Optional[date]
    media_count: int
    preview_filenames: List[str]
    location: Optional[str] = None


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


class RecommendationClusterer(Clusterer[MediaInfo, MediaCluster]):
    """
    Groups bare upload metadata into trips and matches them to existing albums.

    Works on metadata only. A candidate joins a seed when they were taken within
    ``date_gap_days`` of each other OR within ``location_radius_km``; either
    rule alone is enough.
    """

    def __init__(self, config: Optional[RecommendationConfig] = None):
        self.config = config or RecommendationConfig()

    def cluster(self, items: Sequence[MediaInfo]) -> List[MediaCluster]:
        groups = seed_partition(items, self.should_cluster_together)
        return [self._to_cluster(group) for group in groups]

    def should_cluster_together(self, a: MediaInfo, b: MediaInfo) -> bool:
        date_close = False
        if a.taken_at is not None and b.taken_at is not None:
            days_diff = abs((a.taken_at.date() - b.taken_at.date()).days)
            date_close = days_diff <= self.config.date_gap_days

        location_close = False
        if None not in (a.latitude, a.longitude, b.latitude, b.longitude):
            distance = haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)
            location_close = distance <= self.config.location_radius_km

        return date_close or location_close

    def match_album(self, cluster: MediaCluster, albums: Sequence[AlbumSummary]) -> Optional[AlbumSummary]:
        """First album (in the given order) near the cluster or overlapping its dates."""
        for album in albums:
            if self._is_matching(cluster, album):
                return album
        return None

    def analyze(self, items: Sequence[MediaInfo], albums: Sequence[AlbumSummary]) -> List[RecommendationItem]:
        if not items:
            return []

        clusters = self.cluster(items)
        logger.info(f"Clustered {len(items)} media into {len(clusters)} candidate trips")

        recommendations = []
        for cluster in clusters:
            album = self.match_album(cluster, albums)
            recommendations.append(
                RecommendationItem(
                    type=RecommendationType.ADD_TO_EXISTING if album else RecommendationType.NEW_TRIP,
                    location=cluster.location,
                    latitude=cluster.center_latitude,
                    longitude=cluster.center_longitude,
                    start_date=cluster.start_date,
                    end_date=cluster.end_date,
                    media_count=cluster.media_count,
                    preview_filenames=cluster.preview_filenames,
                    target_album_id=album.id if album else None,
                    target_album_title=album.title if album else None,
                )
            )
        return recommendations

    def _to_cluster(self, members: List[MediaInfo]) -> MediaCluster:
        located = [m for m in members if m.latitude is not None and m.longitude is not None]
        dates = [m.taken_at.date() for m in members if m.taken_at is not None]
        return MediaCluster(
            center_latitude=_mean([m.latitude for m in located]),
            center_longitude=_mean([m.longitude for m in located]),
            start_date=min(dates) if dates else None,
            end_date=max(dates) if dates else None,
            media_count=len(members),
            preview_filenames=[m.filename for m in members[: self.config.preview_count]],
        )

    def _is_matching(self, cluster: MediaCluster, album: AlbumSummary) -> bool:
        location_match = False
        if None not in (cluster.center_latitude, cluster.center_longitude, album.lat, album.lon):
            distance = haversine_km(cluster.center_latitude, cluster.center_longitude, album.lat, album.lon)
            location_match = distance <= self.config.location_radius_km

        date_match = False
        if None not in (cluster.start_date, cluster.end_date, album.start_date, album.end_date):
            date_match = not (cluster.end_date < album.start_date or cluster.start_date > album.end_date)

        return location_match or date_match
