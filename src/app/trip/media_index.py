import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional, Tuple

import piexif

from app.common.models import MediaRecord
from app.schemas.enum import MediaKind
from core.exceptions import StorageError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".heic", ".heif", ".png", ".tif", ".tiff", ".webp")
VIDEO_EXTENSIONS = (".mp4", ".mov", ".m4v", ".3gp")


class MediaIndex(ABC):
    """Device media catalogue. Implementations may block; callers run them in a thread."""

    @abstractmethod
    def query_geo_tagged(self, since_ms: int, kind: MediaKind) -> List[MediaRecord]:
        """
        List media of ``kind`` taken at or after ``since_ms``, newest first.

        Returns candidates only; GPS is read separately with ``extract_gps``.
        """
        raise NotImplementedError()

    @abstractmethod
    def extract_gps(self, file_path: str) -> Optional[Tuple[float, float]]:
        """Returns ``(lat, lng)`` or None when the file has no usable location."""
        raise NotImplementedError()


ExifFields = Tuple[Optional[int], Optional[Tuple[float, float]]]


def _load_exif(path: str) -> Optional[dict]:
    try:
        return piexif.load(path)
    except Exception as e:
        logger.debug(f"No EXIF for {path}: {e}")
        return None


@lru_cache(maxsize=4096)
def _exif_fields(path: str, mtime_ns: int) -> ExifFields:
    """``(taken_at_ms, (lat, lng))`` from one EXIF read; either may be None."""
    # mtime_ns is only part of the cache key, so an edited file is re-read.
    exif = _load_exif(path)
    if exif is None:
        return None, None
    taken = _parse_datetime_original(exif)
    taken_at_ms = int(taken.timestamp() * 1000) if taken is not None else None
    return taken_at_ms, _parse_gps(exif)


class LocalMediaIndex(MediaIndex):
    """
    MediaIndex over a local directory tree, EXIF read with piexif.

    piexif only understands image containers, so videos get their capture time
    from mtime and never a location; video GPS needs another MediaIndex.
    """

    def __init__(self, media_root: str):
        self.media_root = Path(media_root)
        logger.debug(f"LocalMediaIndex initialized with base path {self.media_root}")

    def query_geo_tagged(self, since_ms: int, kind: MediaKind) -> List[MediaRecord]:
        if not self.media_root.exists():
            logger.warning(f"Media root does not exist: {self.media_root}")
            return []

        extensions = VIDEO_EXTENSIONS if kind == MediaKind.VIDEO else IMAGE_EXTENSIONS
        records = []
        try:
            for root, _, filenames in os.walk(self.media_root):
                for filename in filenames:
                    if not filename.lower().endswith(extensions):
                        continue
                    full_path = str(Path(root) / filename)
                    taken_at_ms = self._taken_at_ms(full_path)
                    if taken_at_ms < since_ms:
                        continue
                    records.append(
                        MediaRecord(
                            id=full_path,
                            taken_at_ms=taken_at_ms,
                            file_path=full_path,
                            display_name=filename,
                        )
                    )
        except OSError as e:
            raise StorageError(f"Failed to scan media root {self.media_root}: {e}") from e

        records.sort(key=lambda r: r.taken_at_ms, reverse=True)
        return records

    def extract_gps(self, file_path: str) -> Optional[Tuple[float, float]]:
        return self._fields(file_path)[1]

    def _fields(self, path: str) -> ExifFields:
        try:
            mtime_ns = os.stat(path).st_mtime_ns
        except OSError:
            return None, None
        return _exif_fields(path, mtime_ns)

    def _taken_at_ms(self, path: str) -> int:
        taken_at_ms = self._fields(path)[0]
        if taken_at_ms is not None:
            return taken_at_ms
        return int(os.path.getmtime(path) * 1000)


def _parse_gps(exif: dict) -> Optional[Tuple[float, float]]:
    gps = exif.get("GPS")
    if not gps:
        return None
    lat = _convert_coord(gps.get(piexif.GPSIFD.GPSLatitude), gps.get(piexif.GPSIFD.GPSLatitudeRef))
    lng = _convert_coord(gps.get(piexif.GPSIFD.GPSLongitude), gps.get(piexif.GPSIFD.GPSLongitudeRef))
    if lat is None or lng is None:
        return None
    # Zero coordinates mean the GPS had no fix when the shot was taken.
    if lat == 0.0 or lng == 0.0:
        return None
    return lat, lng


def _parse_datetime_original(exif: dict) -> Optional[datetime]:
    raw = exif.get("Exif", {}).get(piexif.ExifIFD.DateTimeOriginal)
    if not raw:
        return None
    try:
        # Wall-clock time of the camera, read as local time.
        return datetime.strptime(raw.decode(), "%Y:%m:%d %H:%M:%S")
    except (UnicodeDecodeError, ValueError):
        return None


def _convert_coord(coord: Any, ref: Any) -> Optional[float]:
    if not coord:
        return None
    try:
        degrees, minutes, seconds = [x[0] / x[1] for x in coord]
    except (TypeError, ValueError, ZeroDivisionError, IndexError):
        return None
    result = degrees + (minutes / 60.0) + (seconds / 3600.0)

    if isinstance(ref, bytes):
        ref = ref.decode(errors="ignore")
    if isinstance(ref, str) and ref.upper() in ("S", "W"):
        return -result
    return result
