"""Photo node model (written by the upload service, read here)."""
from datetime import datetime
from sqlalchemy import DateTime, String, Text
from geoalchemy2 import Geometry
from sqlalchemy.orm import Mapped, mapped_column

from footprint.database import Base


class PhotoNode(Base):
    """A geotagged photo in a journey."""

    __tablename__ = "photo_nodes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    journey_id: Mapped[str] = mapped_column("journeyId", String(36), index=True)
    s3_key: Mapped[str | None] = mapped_column("s3Key", String(500), nullable=True)
    taken_at: Mapped[datetime | None] = mapped_column("takenAt", DateTime, nullable=True)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    location_name: Mapped[str | None] = mapped_column("locationName", String(255), nullable=True)

    # Spatial data (PostGIS)
    location = mapped_column(Geometry("POINT", srid=4326), nullable=False)
