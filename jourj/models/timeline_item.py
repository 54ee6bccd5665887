"""
Timeline item model - time-boxed steps of the wedding day
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from datetime import datetime
from jourj.database import Base


class TimelineItem(Base):
    __tablename__ = "timeline_items"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    time = Column(String, nullable=False, default="08:00")  # "HH:MM" or "HH:MM:SS"
    duration = Column(Integer, nullable=False, default=60)  # minutes
    sort_order = Column(Integer, nullable=False, default=0)

    category = Column(String, nullable=False, default="Préparation")
    priority = Column(String, nullable=False, default="medium")
    status = Column(String, nullable=False, default="scheduled")

    assigned_person_ids = Column(JSON, nullable=False, default=list)
    assigned_vendor_ids = Column(JSON, nullable=False, default=list)
    # Older records were assigned by role ("photographer", "caterer") before people existed
    assigned_role = Column(String, nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
