import logging
from typing import List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.common.models import DismissedTripEntry, GeoPoint, HomeLocation
from app.config import TripDetectionConfig
from app.models.preference import SINGLETON_ROW_ID, DismissedTrip, HomeLocationRecord, ScanState
from app.utils.clock import Clock, current_millis

logger = logging.getLogger(__name__)


class TripDetectionPreferences:
    """Durable trip-detection state: home location, dismissals, last scan time."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        config: Optional[TripDetectionConfig] = None,
        clock: Clock = current_millis,
    ):
        self.session_factory = session_factory
        self.dismiss_duration_ms = (config or TripDetectionConfig()).dismiss_duration_ms
        self.clock = clock

    async def get_home_location(self) -> Optional[HomeLocation]:
        async with self.session_factory() as session:
            record = await session.get(HomeLocationRecord, SINGLETON_ROW_ID)
            if record is None:
                return None
            return HomeLocation(
                point=GeoPoint(record.latitude, record.longitude),
                address=record.address,
                is_auto_detected=record.is_auto_detected,
            )

    async def save_home_location(self, home: HomeLocation) -> None:
        async with self.session_factory() as session:
            record = await session.get(HomeLocationRecord, SINGLETON_ROW_ID)
            if record is None:
                record = HomeLocationRecord(id=SINGLETON_ROW_ID)
                session.add(record)
            record.latitude = home.point.lat
            record.longitude = home.point.lng
            # A missing address keeps the previous one.
            if home.address is not None:
                record.address = home.address
            record.is_auto_detected = home.is_auto_detected
            await session.commit()
        logger.info(f"Saved home location ({home.point.lat}, {home.point.lng}), auto={home.is_auto_detected}")

    async def dismiss_trip(self, trip_id: str) -> None:
        async with self.session_factory() as session:
            # Re-dismissing restarts the 7-day window.
            await session.merge(DismissedTrip(trip_id=trip_id, dismissed_at_ms=self.clock()))
            await session.commit()
        logger.info(f"Dismissed trip {trip_id}")

    async def get_dismissals(self) -> List[DismissedTripEntry]:
        async with self.session_factory() as session:
            rows = (await session.execute(select(DismissedTrip))).scalars().all()
            return [DismissedTripEntry(r.trip_id, r.dismissed_at_ms) for r in rows]

    async def get_dismissed_trip_ids(self) -> Set[str]:
        """Ids whose dismissal is still active."""
        now = self.clock()
        return {
            entry.trip_id
            for entry in await self.get_dismissals()
            if entry.is_active(now, self.dismiss_duration_ms)
        }

    async def clear_expired_dismissals(self) -> int:
        cutoff = self.clock() - self.dismiss_duration_ms
        async with self.session_factory() as session:
            result = await session.execute(
                delete(DismissedTrip).where(DismissedTrip.dismissed_at_ms <= cutoff)
            )
            await session.commit()
        if result.rowcount:
            logger.debug(f"Purged {result.rowcount} expired dismissals")
        return result.rowcount or 0

    async def get_last_scan_time(self) -> Optional[int]:
        async with self.session_factory() as session:
            state = await session.get(ScanState, SINGLETON_ROW_ID)
            return state.last_scan_ms if state else None

    async def update_last_scan_time(self) -> None:
        async with self.session_factory() as session:
            await session.merge(ScanState(id=SINGLETON_ROW_ID, last_scan_ms=self.clock()))
            await session.commit()

    async def clear(self) -> None:
        async with self.session_factory() as session:
            for model in (HomeLocationRecord, DismissedTrip, ScanState):
                await session.execute(delete(model))
            await session.commit()
        logger.info("Cleared trip detection preferences")
