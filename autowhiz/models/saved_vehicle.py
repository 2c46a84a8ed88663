from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, JSON, Numeric, Text, UniqueConstraint
from autowhiz.db.base import Base, new_uuid, utcnow


class SavedVehicle(Base):
    __tablename__ = "saved_vehicles"
    __table_args__ = (UniqueConstraint("user_id", "vin", name="uq_saved_vehicles_user_vin"),)

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    vin = Column(String(17), nullable=False)
    analysis_id = Column(String(36), ForeignKey("analyses.id", ondelete="SET NULL"), nullable=True)
    year = Column(Integer, nullable=True)
    make = Column(String, nullable=True)
    model = Column(String, nullable=True)
    trim = Column(String, nullable=True)
    listing_url = Column(String, nullable=True)
    listing_price = Column(Numeric(12, 2), nullable=True)
    dealer_name = Column(String, nullable=True)
    dealer_location = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True)
    status = Column(String, nullable=True)  # e.g. watching, contacted, purchased
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
