"""
Guestbook model (custom domain columns).

The guestbook row is the source of truth for its custom domain; the Redis
domain cache is only an accelerator in front of it.
"""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, JSON, Uuid, func
from app.db.base_class import Base


class Guestbook(Base):
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)   # owner
    name = Column(String, nullable=False)
    slug = Column(String(100), unique=True, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # ── Custom domain ──
    custom_domain = Column(String(253), nullable=True, unique=True, index=True)  # normalized hostname
    domain_verified = Column(Boolean, nullable=False, default=False)
    domain_vercel_status = Column(String(20), nullable=False, default="none")    # none, pending_add, pending_dns, verified, error
    domain_verification_data = Column(JSON, nullable=True)                        # {"isApex": bool, "verification": [...]}
