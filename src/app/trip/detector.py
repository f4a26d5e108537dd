import asyncio
import logging
import traceback
from typing import AbstractSet, List, Optional

from app.cluster.clusters.spatial import SpatialCluster
from app.common.geo import distance_meters
from app.common.models import DetectedTrip, GeoPoint, HomeLocation, LocationCluster, MediaWithLocation
from app.common.result import Result
from app.config import DAY_MS, TripDetectionConfig
from app.schemas.enum import MediaKind
from app.trip.geocoder import ReverseGeocoder
from app.trip.home import HomeLocationResolver
from app.trip.media_index import MediaIndex
from app.utils.clock import Clock, current_millis
from app.utils.ids import new_trip_id
from app.utils.performance import monitored

logger = logging.getLogger(__name__)


class TripDetectionService:
    """
    Finds trips in the device library.

    Pipeline: scan recent geo-tagged media, drop already uploaded files, keep
    what was shot away from home, cluster it by place, and turn every cluster
    that is big enough into a ``DetectedTrip``.
    """

    def __init__(
        self,
        media_index: MediaIndex,
        geocoder: ReverseGeocoder,
        config: Optional[TripDetectionConfig] = None,
        home_resolver: Optional[HomeLocationResolver] = None,
        clock: Clock = current_millis,
    ):
        self.media_index = media_index
        self.geocoder = geocoder
        self.config = config or TripDetectionConfig()
        self.home_resolver = home_resolver or HomeLocationResolver(geocoder, self.config)
        self.clusterer = SpatialCluster(self.config.cluster_radius_m)
        self.clock = clock

    async def detect_trips(
        self,
        home: Optional[HomeLocation],
        excluded_filenames: AbstractSet[str] = frozenset(),
        days: Optional[int] = None,
    ) -> Result[List[DetectedTrip]]:
        days = self.config.scan_days if days is None else days
        try:
            with monitored("detect_trips") as monitor:
                trips = await self._detect(home, excluded_filenames, days)
            logger.info(monitor.report(count=len(trips)))
            return Result.success(trips)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"💥 Trip detection failed: {e}")
            logger.debug(traceback.format_exc())
            return Result.failure(e)

    async def _detect(
        self,
        home: Optional[HomeLocation],
        excluded_filenames: AbstractSet[str],
        days: int,
    ) -> List[DetectedTrip]:
        # 1. Recent media with a location
        all_media = await self.get_recent_media_with_location(days)

        # 2. Skip files that are already in an album
        media = [m for m in all_media if m.filename not in excluded_filenames]
        logger.debug(f"Scanned {len(all_media)} geo-tagged items, {len(media)} not uploaded yet")
        if not media:
            return []

        # 3. Home location (stored, else inferred)
        resolved_home = self.home_resolver.resolve(home, media)
        if resolved_home is None:
            return []

        # 4. Away from home only
        away = [
            m for m in media
            if distance_meters(resolved_home.point, m.point) >= self.config.home_distance_threshold_m
        ]
        if not away:
            logger.info("All recent media was taken near home. No trips.")
            return []

        # 5-6. Cluster by place, keep big enough clusters
        clusters = [
            c for c in self.clusterer.cluster(away)
            if c.size >= self.config.min_media_count
        ]
        logger.info(f"{len(away)} items away from home -> {len(clusters)} trip clusters")

        # 7. Assemble trips
        return [await self._cluster_to_trip(cluster) for cluster in clusters]

    async def get_recent_media_with_location(self, days: int) -> List[MediaWithLocation]:
        since_ms = self.clock() - days * DAY_MS

        images = await asyncio.to_thread(self._query_media_with_location, since_ms, MediaKind.IMAGE)
        videos = await asyncio.to_thread(self._query_media_with_location, since_ms, MediaKind.VIDEO)

        result = images + videos
        result.sort(key=lambda m: m.taken_at, reverse=True)
        return result[: self.config.max_scan_count]

    def _query_media_with_location(self, since_ms: int, kind: MediaKind) -> List[MediaWithLocation]:
        result = []
        for record in self.media_index.query_geo_tagged(since_ms, kind):
            if len(result) >= self.config.max_scan_count:
                break
            location = self.media_index.extract_gps(record.file_path)
            if location is None:
                continue
            result.append(
                MediaWithLocation(
                    id=record.id,
                    filename=record.display_name,
                    point=GeoPoint(*location),
                    taken_at=record.taken_at_ms,
                    is_video=kind == MediaKind.VIDEO,
                )
            )
        return result

    async def _cluster_to_trip(self, cluster: LocationCluster) -> DetectedTrip:
        address = await self._lookup_address(cluster.center_lat, cluster.center_lng)
        if address is not None:
            location = address
            title = self.config.trip_title_format.format(location=address)
        else:
            location = self.config.unknown_location
            title = self.config.default_trip_title

        photo_count = sum(1 for m in cluster.members if not m.is_video)
        # Photos first; sorted() is stable so capture order is kept within each kind.
        preview = sorted(cluster.members, key=lambda m: m.is_video)[: self.config.preview_count]

        return DetectedTrip(
            id=new_trip_id(),
            location=location,
            point=cluster.center,
            start_date=cluster.start_date,
            end_date=cluster.end_date,
            media_ids=[m.id for m in cluster.members],
            media_count=cluster.size,
            photo_count=photo_count,
            video_count=cluster.size - photo_count,
            preview_ids=[m.id for m in preview],
            suggested_title=title,
        )

    async def _lookup_address(self, lat: float, lng: float) -> Optional[str]:
        try:
            return await self.geocoder.address_for(lat, lng)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Reverse geocoding failed for ({lat:.4f}, {lng:.4f}): {e}")
            return None
