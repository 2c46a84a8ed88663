from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, Numeric, or_
from autowhiz.db.base import Base, new_uuid, utcnow


class SubscriptionPlan(Base):
    """Plan catalog. Looked up by Stripe price id while processing webhooks."""

    __tablename__ = "subscription_plans"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    tier = Column(String, nullable=False, default="free")  # free/starter/pro/enterprise
    description = Column(String, nullable=True)
    price_monthly = Column(Numeric(10, 2), nullable=False, default=0)
    price_yearly = Column(Numeric(10, 2), nullable=True)
    currency = Column(String, nullable=False, default="usd")
    analyses_per_month = Column(Integer, nullable=True)  # NULL means uncapped
    history_reports_per_month = Column(Integer, nullable=True)
    stripe_product_id = Column(String, nullable=True)
    stripe_price_id_monthly = Column(String, unique=True, index=True, nullable=True)
    stripe_price_id_yearly = Column(String, unique=True, index=True, nullable=True)
    features = Column(JSON, nullable=True)
    is_popular = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @classmethod
    def price_filter(cls, price_id: str):
        """Match either the monthly or the yearly Stripe price."""
        return or_(
            cls.stripe_price_id_monthly == price_id,
            cls.stripe_price_id_yearly == price_id,
        )
