import logging
from functools import lru_cache

from app.config import engine_config
from app.db.database import AsyncSessionLocal
from app.trip.album_store import HttpAlbumStore
from app.trip.detector import TripDetectionService
from app.trip.geocoder import NominatimGeocoder
from app.trip.home import HomeLocationResolver
from app.trip.media_index import LocalMediaIndex
from app.trip.preferences import TripDetectionPreferences
from app.trip.repository import TripDetectionRepository
from core.config import configs

logger = logging.getLogger(__name__)


@lru_cache()
def get_trip_repository() -> TripDetectionRepository:
    """
    Process-wide repository. Being a singleton is what makes its upload lock and
    its trip cache shared by every caller in the process.
    """
    logger.debug(f"Creating trip repository (cached). Media root: {configs.MEDIA_ROOT}")
    config = engine_config.detection
    geocoder = NominatimGeocoder()
    home_resolver = HomeLocationResolver(geocoder, config)

    return TripDetectionRepository(
        detection_service=TripDetectionService(
            LocalMediaIndex(configs.MEDIA_ROOT),
            geocoder,
            config=config,
            home_resolver=home_resolver,
        ),
        preferences=TripDetectionPreferences(AsyncSessionLocal, config),
        album_store=HttpAlbumStore(),
        home_resolver=home_resolver,
        config=config,
    )
