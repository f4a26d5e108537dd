import logging
from typing import List, Optional, Sequence

from app.cluster.clusters.base import Clusterer, seed_partition
from app.common.geo import distance_meters
from app.common.models import LocationCluster, MediaWithLocation

logger = logging.getLogger(__name__)


class SpatialCluster(Clusterer[MediaWithLocation, LocationCluster]):
    """Radius-based partition of geo-tagged media around single seeds."""

    def __init__(self, radius_m: float):
        self.radius_m = radius_m

    def cluster(
        self,
        items: Sequence[MediaWithLocation],
        radius_m: Optional[float] = None,
    ) -> List[LocationCluster]:
        if not items:
            return []

        radius = self.radius_m if radius_m is None else radius_m
        groups = seed_partition(
            items,
            lambda seed, other: distance_meters(seed.point, other.point) <= radius,
        )
        logger.debug(f"Clustered {len(items)} items into {len(groups)} clusters (radius={radius}m)")
        return [to_location_cluster(group) for group in groups]


def to_location_cluster(members: List[MediaWithLocation]) -> LocationCluster:
    n = len(members)
    dates = [m.taken_date for m in members]
    return LocationCluster(
        center_lat=sum(m.point.lat for m in members) / n,
        center_lng=sum(m.point.lng for m in members) / n,
        members=members,
        start_date=min(dates),
        end_date=max(dates),
    )
