import asyncio
import logging
import traceback
from typing import Awaitable, Callable, Optional

from app.common.models import AlbumSpec, DetectedTrip
from app.common.result import Result
from app.schemas.enum import AlbumVisibility
from app.trip.album_store import RemoteAlbumStore
from app.utils.performance import record_upload

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
TripCallback = Callable[[DetectedTrip], Awaitable[None]]


class UploadOrchestrator:
    """
    Turns an accepted trip into a remote album.

    Item uploads go through ``upload_lock`` one at a time. The lock is taken per
    item, so two albums being filled concurrently interleave between items but
    never overlap inside an upload.
    """

    def __init__(
        self,
        album_store: RemoteAlbumStore,
        upload_lock: Optional[asyncio.Lock] = None,
        on_album_created: Optional[TripCallback] = None,
    ):
        self.album_store = album_store
        self.upload_lock = upload_lock or asyncio.Lock()
        self.on_album_created = on_album_created

    async def create_album_from_trip(
        self,
        trip: DetectedTrip,
        title: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Result[int]:
        # 1. Album
        spec = AlbumSpec(
            title=title,
            location=trip.location,
            latitude=trip.point.lat,
            longitude=trip.point.lng,
            start_date=trip.start_date,
            end_date=trip.end_date,
            visibility=AlbumVisibility.PRIVATE,
        )
        try:
            album_id = await self.album_store.create_album(spec)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"💥 Album creation for trip {trip.id} failed: {e}")
            logger.debug(traceback.format_exc())
            return Result.failure(e)

        # 2. Media, strictly one at a time
        total = len(trip.media_ids)
        success_count = 0
        fail_count = 0
        for index, ref in enumerate(trip.media_ids):
            async with self.upload_lock:
                ok = await self._upload_one(album_id, ref)
            record_upload(ok)
            if ok:
                success_count += 1
            else:
                fail_count += 1
            if on_progress is not None:
                on_progress(index + 1, total)

        logger.info(
            f"✅ Album {album_id} filled from trip {trip.id}: success={success_count}, fail={fail_count}"
        )

        # 3. The trip is now an album; stop suggesting it.
        if self.on_album_created is not None:
            try:
                await self.on_album_created(trip)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Could not drop trip {trip.id} from cache: {e}")

        return Result.success(album_id)

    async def _upload_one(self, album_id: int, ref: str) -> bool:
        try:
            return await self.album_store.upload_media(album_id, ref)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ Upload of {ref} to album {album_id} raised: {e}")
            return False
