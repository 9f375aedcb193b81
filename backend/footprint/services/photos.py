"""Read journey photos from PostGIS."""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from footprint.schemas.fog import PhotoPoint


async def load_journey_photos(db: AsyncSession, journey_id: str) -> list[PhotoPoint]:
    """Photos of a journey in capture order, with the point split into lat/lng."""
    result = await db.execute(
        text("""
            SELECT
                id,
                "takenAt" AS taken_at,
                "locationName" AS location_name,
                caption,
                ST_Y(location::geometry) AS lat,
                ST_X(location::geometry) AS lng
            FROM photo_nodes
            WHERE "journeyId" = :journey_id
            ORDER BY "takenAt" ASC
        """),
        {"journey_id": journey_id},
    )
    return [
        PhotoPoint(
            id=str(row.id),
            lat=row.lat,
            lng=row.lng,
            date_time=row.taken_at,
            location_name=row.location_name,
            caption=row.caption,
        )
        for row in result
    ]
