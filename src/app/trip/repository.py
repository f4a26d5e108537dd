import asyncio
import logging
from typing import List, Optional, Set

from app.common.models import DetectedTrip, HomeLocation
from app.common.result import Result
from app.config import TripDetectionConfig
from app.trip.album_store import RemoteAlbumStore
from app.trip.detector import TripDetectionService
from app.trip.home import HomeLocationResolver
from app.trip.preferences import TripDetectionPreferences
from app.trip.uploader import ProgressCallback, UploadOrchestrator
from app.utils.clock import Clock, current_millis
from core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class TripDetectionRepository:
    """
    Entry point for trip suggestions on the device.

    Holds the last detection result for 24h, hides dismissed trips at read time
    and creates albums from accepted trips. ``_cache_lock`` guards the cached
    trips and their timestamp; concurrent ``detect_trips`` calls are serialized
    and the later one is served from the earlier one's result.
    """

    def __init__(
        self,
        detection_service: TripDetectionService,
        preferences: TripDetectionPreferences,
        album_store: RemoteAlbumStore,
        home_resolver: HomeLocationResolver,
        config: Optional[TripDetectionConfig] = None,
        clock: Clock = current_millis,
        upload_lock: Optional[asyncio.Lock] = None,
    ):
        self.detection_service = detection_service
        self.preferences = preferences
        self.album_store = album_store
        self.home_resolver = home_resolver
        self.config = config or TripDetectionConfig()
        self.clock = clock
        self.uploader = UploadOrchestrator(
            album_store,
            upload_lock=upload_lock,
            on_album_created=self._forget_trip,
        )

        self._cache_lock = asyncio.Lock()
        self._cached_trips: Optional[List[DetectedTrip]] = None
        self._cache_timestamp: int = 0

    async def detect_trips(self, force_refresh: bool = False) -> Result[List[DetectedTrip]]:
        async with self._cache_lock:
            now = self.clock()
            try:
                if (
                    not force_refresh
                    and self._cached_trips is not None
                    and now - self._cache_timestamp < self.config.cache_duration_ms
                ):
                    logger.debug(f"Serving {len(self._cached_trips)} trips from cache")
                    return Result.success(await self._without_dismissed(self._cached_trips))
                return await self._refresh(now)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"💥 Trip refresh failed: {e}")
                return Result.failure(e)

    async def _refresh(self, now: int) -> Result[List[DetectedTrip]]:
        # Caller holds _cache_lock.
        await self.preferences.clear_expired_dismissals()
        home = await self.preferences.get_home_location()
        uploaded = await self.get_uploaded_media_filenames()

        result = await self.detection_service.detect_trips(home, uploaded)
        if result.is_failure:
            return result

        self._cached_trips = result.value
        self._cache_timestamp = now
        await self.preferences.update_last_scan_time()

        return Result.success(await self._without_dismissed(result.value))

    async def get_uploaded_media_filenames(self) -> Set[str]:
        """Original filenames of everything already in the user's albums."""
        filenames: Set[str] = set()
        try:
            albums = await self.album_store.list_albums()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Could not list albums, scanning without exclusions: {e}")
            return set()

        for album in albums:
            try:
                media = await self.album_store.list_media(album.id)
            except asyncio.CancelledError:
                raise
            except NotFoundError:
                logger.info(f"Album {album.id} disappeared while listing, skipped")
                continue
            except Exception as e:
                logger.warning(f"Could not list media of album {album.id}: {e}")
                continue
            filenames.update(m.original_filename for m in media if m.original_filename)
        return filenames

    async def dismiss_trip(self, trip_id: str) -> None:
        await self.preferences.dismiss_trip(trip_id)

    async def set_home_location(self, lat: float, lng: float) -> HomeLocation:
        home = await self.home_resolver.build_manual(lat, lng)
        await self.preferences.save_home_location(home)
        await self.invalidate_cache()
        return home

    async def get_home_location(self) -> Optional[HomeLocation]:
        return await self.preferences.get_home_location()

    async def create_album_from_trip(
        self,
        trip: DetectedTrip,
        title: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Result[int]:
        return await self.uploader.create_album_from_trip(trip, title, on_progress)

    async def invalidate_cache(self) -> None:
        async with self._cache_lock:
            self._cached_trips = None
            self._cache_timestamp = 0
        logger.info("Trip cache invalidated")

    async def _forget_trip(self, trip: DetectedTrip) -> None:
        async with self._cache_lock:
            if self._cached_trips is not None:
                self._cached_trips = [t for t in self._cached_trips if t.id != trip.id]

    async def _without_dismissed(self, trips: List[DetectedTrip]) -> List[DetectedTrip]:
        dismissed = await self.preferences.get_dismissed_trip_ids()
        return [t for t in trips if t.id not in dismissed]
