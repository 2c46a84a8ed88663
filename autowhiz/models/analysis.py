"""
Vehicle analysis requests and their per-source detail records.

Detail rows are written by the external analysis worker; this service only
reads them and removes them together with their parent analysis.
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, JSON, Numeric, Text
from sqlalchemy.orm import relationship
from autowhiz.db.base import Base, new_uuid, utcnow

ANALYSIS_STATUSES = ("pending", "processing", "completed", "failed")


class Analysis(Base):
    __tablename__ = "analyses"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    vin = Column(String(17), nullable=False, index=True)
    status = Column(String, nullable=False, default="pending", index=True)
    progress = Column(Integer, nullable=False, default=0)
    mileage = Column(Integer, nullable=True)
    asking_price = Column(Numeric(12, 2), nullable=True)
    analysis_options = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True)
    starred = Column(Boolean, nullable=False, default=False)
    overall_score = Column(Integer, nullable=True)
    summary = Column(Text, nullable=True)
    error_message = Column(String, nullable=True)
    extra_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    vehicle_history = relationship(
        "VehicleHistory", cascade="all, delete-orphan", passive_deletes=True, uselist=False
    )
    visual_analysis = relationship(
        "VisualAnalysis", cascade="all, delete-orphan", passive_deletes=True, uselist=False
    )
    audio_analysis = relationship(
        "AudioAnalysis", cascade="all, delete-orphan", passive_deletes=True, uselist=False
    )
    market_value = relationship(
        "MarketValue", cascade="all, delete-orphan", passive_deletes=True, uselist=False
    )

    def __repr__(self):
        return f"<Analysis(id={self.id}, vin={self.vin}, status={self.status})>"


class _AnalysisDetail:
    id = Column(String(36), primary_key=True, default=new_uuid)
    result = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class VehicleHistory(_AnalysisDetail, Base):
    __tablename__ = "vehicle_histories"

    analysis_id = Column(String(36), ForeignKey("analyses.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String, nullable=True)
    title_status = Column(String, nullable=True)
    owner_count = Column(Integer, nullable=True)
    accident_count = Column(Integer, nullable=True)


class VisualAnalysis(_AnalysisDetail, Base):
    __tablename__ = "visual_analyses"

    analysis_id = Column(String(36), ForeignKey("analyses.id", ondelete="CASCADE"), nullable=False, index=True)
    image_count = Column(Integer, nullable=True)
    score = Column(Integer, nullable=True)


class AudioAnalysis(_AnalysisDetail, Base):
    __tablename__ = "audio_analyses"

    analysis_id = Column(String(36), ForeignKey("analyses.id", ondelete="CASCADE"), nullable=False, index=True)
    duration_seconds = Column(Integer, nullable=True)
    score = Column(Integer, nullable=True)


class MarketValue(_AnalysisDetail, Base):
    __tablename__ = "market_values"

    analysis_id = Column(String(36), ForeignKey("analyses.id", ondelete="CASCADE"), nullable=False, index=True)
    average_price = Column(Numeric(12, 2), nullable=True)
    price_low = Column(Numeric(12, 2), nullable=True)
    price_high = Column(Numeric(12, 2), nullable=True)
