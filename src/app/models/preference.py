from sqlalchemy import BigInteger, Boolean, Column, Float, Integer, String

from app.db.database import Base

SINGLETON_ROW_ID = 1


class HomeLocationRecord(Base):
    __tablename__ = "home_locations"

    id = Column(Integer, primary_key=True, default=SINGLETON_ROW_ID)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address = Column(String, nullable=True)
    is_auto_detected = Column(Boolean, nullable=False, default=False)


class DismissedTrip(Base):
    __tablename__ = "dismissed_trips"

    trip_id = Column(String, primary_key=True)
    dismissed_at_ms = Column(BigInteger, nullable=False)


class ScanState(Base):
    __tablename__ = "scan_state"

    id = Column(Integer, primary_key=True, default=SINGLETON_ROW_ID)
    last_scan_ms = Column(BigInteger, nullable=True)
