"""
Stripe event ids that have already been applied, so redeliveries are acknowledged
without running their handler a second time.
"""
from sqlalchemy import Column, String, DateTime
from autowhiz.db.base import Base, utcnow


class WebhookEvent(Base):
    __tablename__ = "webhook_events"

    id = Column(String, primary_key=True)  # Stripe event id (evt_...)
    type = Column(String, nullable=False)
    received_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
