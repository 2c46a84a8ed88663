from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, JSON, Text
from autowhiz.db.base import Base, new_uuid, utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)  # analysis_complete, payment_failed, subscription, system, recall_alert...
    title = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    analysis_id = Column(String(36), ForeignKey("analyses.id", ondelete="SET NULL"), nullable=True)
    action_url = Column(String, nullable=True)
    action_text = Column(String, nullable=True)
    priority = Column(String, nullable=False, default="normal")  # low/normal/high
    read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    extra_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
