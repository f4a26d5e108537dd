import asyncio
import os
import sys
from datetime import datetime
from typing import Dict, List, Optional, Tuple

sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from app.common.models import AlbumSpec, AlbumSummary, GeoPoint, MediaRecord, MediaWithLocation, RemoteMedia
from app.schemas.enum import MediaKind
from app.trip.album_store import RemoteAlbumStore
from app.trip.geocoder import ReverseGeocoder
from app.trip.media_index import MediaIndex

# 2026-10-17 12:00:00 local time
NOW_MS = int(datetime(2026, 10, 17, 12, 0, 0).timestamp() * 1000)
HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

SEOUL_HOME = GeoPoint(37.50, 127.03)
BUSAN = GeoPoint(35.18, 129.08)


class FakeClock:
    def __init__(self, now: int = NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def media(
    media_id: str,
    lat: float,
    lng: float,
    taken_at: int = NOW_MS - HOUR_MS,
    is_video: bool = False,
    filename: Optional[str] = None,
) -> MediaWithLocation:
    return MediaWithLocation(
        id=media_id,
        filename=filename or f"{media_id}.jpg",
        point=GeoPoint(lat, lng),
        taken_at=taken_at,
        is_video=is_video,
    )


class FakeMediaIndex(MediaIndex):
    """In-memory media library; items without a point have no GPS."""

    def __init__(self, items: List[MediaWithLocation] = (), no_gps: List[MediaRecord] = ()):
        self.items = list(items)
        self.no_gps = list(no_gps)
        self.queries = 0

    def query_geo_tagged(self, since_ms: int, kind: MediaKind) -> List[MediaRecord]:
        self.queries += 1
        want_video = kind == MediaKind.VIDEO
        records = [
            MediaRecord(id=m.id, taken_at_ms=m.taken_at, file_path=m.id, display_name=m.filename)
            for m in self.items
            if m.is_video == want_video and m.taken_at >= since_ms
        ]
        if not want_video:
            records += [r for r in self.no_gps if r.taken_at_ms >= since_ms]
        records.sort(key=lambda r: r.taken_at_ms, reverse=True)
        return records

    def extract_gps(self, file_path: str) -> Optional[Tuple[float, float]]:
        for m in self.items:
            if m.id == file_path:
                return m.point.lat, m.point.lng
        return None


class FakeGeocoder(ReverseGeocoder):
    def __init__(self, address: Optional[str] = "Busan, South Korea", error: Optional[Exception] = None):
        self.address = address
        self.error = error
        self.calls: List[Tuple[float, float]] = []

    async def address_for(self, lat: float, lng: float) -> Optional[str]:
        self.calls.append((lat, lng))
        if self.error is not None:
            raise self.error
        return self.address


class FakeAlbumStore(RemoteAlbumStore):
    def __init__(
        self,
        albums: List[AlbumSummary] = (),
        media_by_album: Optional[Dict[int, List[str]]] = None,
        failing_refs: Tuple[str, ...] = (),
        create_error: Optional[Exception] = None,
        list_error: Optional[Exception] = None,
        upload_delay: float = 0.0,
    ):
        self.albums = list(albums)
        self.media_by_album = media_by_album or {}
        self.failing_refs = set(failing_refs)
        self.create_error = create_error
        self.list_error = list_error
        self.upload_delay = upload_delay

        self.created: List[AlbumSpec] = []
        self.uploaded: List[Tuple[int, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.next_album_id = 100

    async def list_albums(self) -> List[AlbumSummary]:
        if self.list_error is not None:
            raise self.list_error
        return self.albums

    async def list_media(self, album_id: int) -> List[RemoteMedia]:
        names = self.media_by_album.get(album_id)
        if names is None:
            raise RuntimeError(f"album {album_id} unavailable")
        return [RemoteMedia(id=i, original_filename=n) for i, n in enumerate(names)]

    async def create_album(self, spec: AlbumSpec) -> int:
        if self.create_error is not None:
            raise self.create_error
        self.created.append(spec)
        self.next_album_id += 1
        return self.next_album_id

    async def upload_media(self, album_id: int, ref: str) -> bool:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.upload_delay)
            self.uploaded.append((album_id, ref))
            return ref not in self.failing_refs
        finally:
            self.in_flight -= 1
