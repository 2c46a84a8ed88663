from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric
from autowhiz.db.base import Base, new_uuid, utcnow


class Payment(Base):
    """
    One row per Stripe invoice payment, used to render billing history.
    """

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # Stripe identifiers
    stripe_invoice_id = Column(String, nullable=True, index=True)
    stripe_payment_intent_id = Column(String, nullable=True, index=True)

    # Amount in major units (e.g. 19.99); Stripe sends minor units
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String, nullable=False)

    status = Column(String, nullable=False, default="succeeded")  # pending/succeeded/failed/refunded/disputed
    description = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
