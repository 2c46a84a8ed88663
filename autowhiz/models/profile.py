from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import relationship
from autowhiz.db.base import Base, utcnow


class Profile(Base):
    """One row per auth user; id is the Supabase user id (JWT `sub`)."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    email = Column(String, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    display_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    role = Column(String, nullable=False, default="user")  # user/pro/enterprise/admin/super_admin
    preferences = Column(JSON, nullable=True)
    country = Column(String, nullable=False, default="US")
    state = Column(String, nullable=True)
    city = Column(String, nullable=True)
    zip_code = Column(String, nullable=True)
    total_analyses = Column(Integer, nullable=False, default=0)
    analyses_this_month = Column(Integer, nullable=False, default=0)  # Reset by invoice.paid only
    last_analysis_at = Column(DateTime(timezone=True), nullable=True)
    stripe_customer_id = Column(String, unique=True, index=True, nullable=True)
    extra_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)  # Soft delete marker

    subscription = relationship("Subscription", back_populates="profile", uselist=False)

    def __repr__(self):
        return f"<Profile(id={self.id}, role={self.role}, analyses_this_month={self.analyses_this_month})>"
