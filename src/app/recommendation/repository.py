import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.common.models import AlbumSummary
from app.models.album import Album

logger = logging.getLogger(__name__)


class AlbumRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_user_id_order_by_created_at_desc(self, user_id: int) -> List[AlbumSummary]:
        stmt = (
            select(Album)
            .where(Album.user_id == user_id)
            .order_by(Album.created_at.desc(), Album.id.desc())
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        logger.debug(f"Loaded {len(rows)} albums for user {user_id}")
        return [
            AlbumSummary(
                id=row.id,
                title=row.title,
                location=row.location,
                lat=row.latitude,
                lon=row.longitude,
                start_date=row.start_date,
                end_date=row.end_date,
            )
            for row in rows
        ]
