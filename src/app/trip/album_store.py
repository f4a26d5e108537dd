import asyncio
import logging
import mimetypes
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from app.common.models import AlbumSpec, AlbumSummary, RemoteMedia
from core.config import configs
from core.exceptions import ExternalServiceError, NotFoundError

logger = logging.getLogger(__name__)

MEDIA_PAGE_SIZE = 1000


class RemoteAlbumStore(ABC):
    """The user's albums on the TripMuse backend."""

    @abstractmethod
    async def list_albums(self) -> List[AlbumSummary]:
        raise NotImplementedError()

    @abstractmethod
    async def list_media(self, album_id: int) -> List[RemoteMedia]:
        raise NotImplementedError()

    @abstractmethod
    async def create_album(self, spec: AlbumSpec) -> int:
        """Creates the album and returns its id."""
        raise NotImplementedError()

    @abstractmethod
    async def upload_media(self, album_id: int, ref: str) -> bool:
        """Uploads one media file; returns False instead of raising on failure."""
        raise NotImplementedError()


class HttpAlbumStore(RemoteAlbumStore):
    def __init__(
        self,
        base_url: str = configs.TRIPMUSE_API_BASE_URL,
        token: str = configs.TRIPMUSE_API_TOKEN,
        timeout: float = configs.HTTP_TIMEOUT_SECONDS,
        max_attempts: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.max_attempts = max_attempts
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    async def list_albums(self) -> List[AlbumSummary]:
        body = await self._get_json("/albums")
        return [_to_album_summary(a) for a in body.get("albums", [])]

    async def list_media(self, album_id: int) -> List[RemoteMedia]:
        body = await self._get_json(f"/albums/{album_id}/media", params={"size": MEDIA_PAGE_SIZE})
        return [
            RemoteMedia(id=m["id"], original_filename=m.get("originalFilename"))
            for m in body.get("media", [])
        ]

    async def create_album(self, spec: AlbumSpec) -> int:
        payload = {
            "title": spec.title,
            "location": spec.location,
            "latitude": spec.latitude,
            "longitude": spec.longitude,
            "startDate": spec.start_date.isoformat() if spec.start_date else None,
            "endDate": spec.end_date.isoformat() if spec.end_date else None,
            "visibility": spec.visibility.value,
        }
        try:
            response = await self._client.post("/albums", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(f"Failed to create album: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Failed to create album: {e}") from e

        album_id = response.json()["id"]
        logger.info(f"Created album {album_id} '{spec.title}'")
        return album_id

    async def upload_media(self, album_id: int, ref: str) -> bool:
        path = Path(ref)
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.error(f"❌ Cannot read {ref} for upload: {e}")
            return False

        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        files = {"file": (path.name, content, content_type)}
        try:
            response = await self._client.post(f"/albums/{album_id}/media", files=files)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"❌ Upload of {path.name} failed: HTTP {e.response.status_code} - {e.response.text}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"❌ Upload of {path.name} failed: {e}")
            return False
        return True

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> dict:
        for attempt in range(self.max_attempts):
            try:
                response = await self._client.get(url, params=params)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                logger.error(
                    f"❌ GET {url} failed (attempt {attempt + 1}/{self.max_attempts}): HTTP {e.response.status_code}"
                )
                if e.response.status_code == 404:
                    raise NotFoundError(f"GET {url}: not found") from e
                if 400 <= e.response.status_code < 500:
                    # Do not retry client errors
                    raise ExternalServiceError(f"GET {url} failed: HTTP {e.response.status_code}") from e
            except httpx.HTTPError as e:
                logger.error(f"❌ GET {url} connection error (attempt {attempt + 1}/{self.max_attempts}): {e}")

            if attempt < self.max_attempts - 1:
                await asyncio.sleep(2 ** attempt)

        raise ExternalServiceError(f"GET {url} failed after {self.max_attempts} attempts")


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _to_album_summary(data: dict) -> AlbumSummary:
    return AlbumSummary(
        id=data["id"],
        title=data.get("title", ""),
        location=data.get("location"),
        lat=data.get("latitude"),
        lon=data.get("longitude"),
        start_date=_parse_date(data.get("startDate")),
        end_date=_parse_date(data.get("endDate")),
    )
