from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from app.schemas.enum import AlbumVisibility


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class MediaWithLocation:
    id: str
    filename: str
    point: GeoPoint
    taken_at: int  # epoch millis
    is_video: bool = False

    @property
    def taken_date(self) -> date:
        # Local calendar date, same as the device gallery shows it.
        return datetime.fromtimestamp(self.taken_at / 1000).date()


@dataclass
class LocationCluster:
    center_lat: float
    center_lng: float
    members: List[MediaWithLocation]
    start_date: date
    end_date: date

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(self.center_lat, self.center_lng)

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass
class DetectedTrip:
    id: str
    location: str
    point: GeoPoint
    start_date: date
    end_date: date
    media_ids: List[str]
    media_count: int
    photo_count: int
    video_count: int
    preview_ids: List[str]
    suggested_title: str


@dataclass
class HomeLocation:
    point: GeoPoint
    address: Optional[str] = None
    is_auto_detected: bool = False


@dataclass
class DismissedTripEntry:
    trip_id: str
    dismissed_at_ms: int

    def is_active(self, now_ms: int, duration_ms: int) -> bool:
        return now_ms - self.dismissed_at_ms < duration_ms


@dataclass
class MediaRecord:
    """Row returned by a media index query, before GPS extraction."""

    id: str
    taken_at_ms: int
    file_path: str
    display_name: str


@dataclass
class AlbumSummary:
    id: int
    title: str
    location: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass
class RemoteMedia:
    id: int
    original_filename: Optional[str] = None


@dataclass
class AlbumSpec:
    title: str
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    visibility: AlbumVisibility = AlbumVisibility.PRIVATE
