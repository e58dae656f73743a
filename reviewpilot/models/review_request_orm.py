"""
ORM Models for stored review request campaigns.

A saved campaign owns its customers, its queue items and one or more dataset
snapshots. Every row is tenant-scoped.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from reviewpilot.core.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReviewRequestCampaignORM(Base):
    __tablename__ = "review_request_campaigns"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(50), nullable=False, index=True)
    business_name = Column(String(255), nullable=False)
    business_type = Column(String(255), nullable=True)
    platform = Column(String(20), nullable=False)
    review_link_url = Column(Text, nullable=False)
    language_mode = Column(String(20), nullable=False)
    tone_style = Column(String(20), nullable=False)
    brand_voice = Column(Text, nullable=True)
    channel_mode = Column(String(10), nullable=False)  # sms | email | both
    trigger_type = Column(String(20), nullable=False)
    send_delay_hours = Column(Integer, nullable=False)
    follow_up_enabled = Column(Boolean, default=False, nullable=False)
    follow_up_delay_days = Column(Integer, nullable=True)
    frequency_cap_days = Column(Integer, nullable=False)
    quiet_hours_start = Column(String(5), nullable=True)
    quiet_hours_end = Column(String(5), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    customers = relationship("ReviewRequestCustomerORM", back_populates="campaign", cascade="all, delete-orphan")
    queue_items = relationship("ReviewRequestQueueItemORM", back_populates="campaign", cascade="all, delete-orphan")
    datasets = relationship("ReviewRequestDatasetORM", back_populates="campaign", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<ReviewRequestCampaign {self.business_name} for {self.tenant_id}>"


class ReviewRequestCustomerORM(Base):
    __tablename__ = "review_request_customers"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(50), nullable=False, index=True)
    campaign_id = Column(String(36), ForeignKey("review_request_campaigns.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    last_visit_date = Column(DateTime(timezone=True), nullable=True)
    service_type = Column(String(255), nullable=True)
    job_id = Column(String(100), nullable=True)
    opted_out = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    campaign = relationship(ReviewRequestCampaignORM, back_populates="customers")


class ReviewRequestQueueItemORM(Base):
    __tablename__ = "review_request_queue_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(50), nullable=False, index=True)
    campaign_id = Column(String(36), ForeignKey("review_request_campaigns.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("review_request_customers.id"), nullable=False, index=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    channel = Column(String(10), nullable=False)  # sms | email
    variant = Column(String(20), nullable=False)  # smsShort | smsStandard | email | followUpSms
    status = Column(String(20), nullable=False, default="pending", index=True)
    skipped_reason = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    clicked_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    opted_out_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    campaign = relationship(ReviewRequestCampaignORM, back_populates="queue_items")


class ReviewRequestDatasetORM(Base):
    __tablename__ = "review_request_datasets"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(50), nullable=False, index=True)
    campaign_id = Column(String(36), ForeignKey("review_request_campaigns.id"), nullable=False, index=True)
    snapshot_id = Column(String(20), nullable=False)  # RRA-12345678
    computed_at = Column(DateTime(timezone=True), nullable=False, index=True)
    totals = Column(JSON, nullable=False)
    warnings = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    campaign = relationship(ReviewRequestCampaignORM, back_populates="datasets")
