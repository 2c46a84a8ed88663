"""
Append-only audit trail. Rows are never updated or deleted by normal flows.
"""
from sqlalchemy import Column, String, ForeignKey, DateTime, JSON
from autowhiz.db.base import Base, new_uuid, utcnow


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String, nullable=False, index=True)  # analysis_created, subscription_canceled, ...
    resource_type = Column(String, nullable=True)
    resource_id = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<ActivityLog(action={self.action}, resource={self.resource_type}:{self.resource_id})>"
